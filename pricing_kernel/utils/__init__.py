"""Utility functions for the pricing kernel."""

from pricing_kernel.utils.hashing import canonicalize_json, hash_payload

__all__ = ["canonicalize_json", "hash_payload"]
