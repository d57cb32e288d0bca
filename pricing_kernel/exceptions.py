"""
Typed Exception Hierarchy for the Pricing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A quote carries a customer-facing price.  Callers (forms, batch recompute
jobs) must surface the exact field and reason that blocked a calculation,
so errors are never reported as a generic "something went wrong":
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (field names, values, identifiers)

Example - handling a form submission:
    try:
        priced = price_budget(inputs, regime)
    except ValidationError as e:
        form.add_error(e.field, str(e))          # field-level message
    except DomainError as e:
        form.add_error(None, e.reason)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PricingKernelError (base)
    |
    +-- ValidationError            malformed or negative cost/rate input
    |
    +-- DomainError                non-representable pricing (rate >= 100%)
    |
    +-- NotFoundError
    |   +-- TemplateNotFoundError
    |   +-- QuoteNotFoundError
    |
    +-- LifecycleError
    |   +-- InvalidTransitionError
    |   +-- GuardRejectedError
    |   +-- QuoteNotEditableError
    |
    +-- PayloadMismatchError       same identifier, different payload
    |
    +-- CurrencyMismatchError      Money arithmetic across currencies

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                        | When Raised
----------------------------|---------------------------------------------
VALIDATION_ERROR            | Negative / non-numeric cost, rate, margin
DOMAIN_ERROR                | Combined tax rate or margin >= 100%
TEMPLATE_NOT_FOUND          | Unknown template identifier
QUOTE_NOT_FOUND             | Unknown quote identifier
INVALID_TRANSITION          | Lifecycle action not allowed from state
GUARD_REJECTED              | Transition guard failed (e.g. past validity)
QUOTE_NOT_EDITABLE          | Cost edit on a quote that left draft
PAYLOAD_MISMATCH            | Idempotent create with a different payload
CURRENCY_MISMATCH           | Mixed currencies in a Money operation

===============================================================================
"""

from typing import Any


class PricingKernelError(Exception):
    """
    Base exception for all pricing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PRICING_KERNEL_ERROR"


class ValidationError(PricingKernelError):
    """Malformed or out-of-range input; names the offending field."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, reason: str = "must be non-negative"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class DomainError(PricingKernelError):
    """
    The inputs are valid numbers but no price can represent them.

    Raised when a rate quoted against the final price would consume the
    whole price (combined consumption tax >= 100%, or margin-on-price
    >= 100%).
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, reason: str, field: str | None = None, value: Any = None):
        self.reason = reason
        self.field = field
        self.value = value
        detail = f" ({field}={value})" if field is not None else ""
        super().__init__(f"{reason}{detail}")


# Repository lookups


class NotFoundError(PricingKernelError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"


class TemplateNotFoundError(NotFoundError):
    """Budget template with given ID was not found."""

    code: str = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Budget template not found: {template_id}")


class QuoteNotFoundError(NotFoundError):
    """Budget quote with given ID was not found."""

    code: str = "QUOTE_NOT_FOUND"

    def __init__(self, quote_id: str):
        self.quote_id = quote_id
        super().__init__(f"Budget quote not found: {quote_id}")


# Lifecycle


class LifecycleError(PricingKernelError):
    """Base exception for quote lifecycle violations."""

    code: str = "LIFECYCLE_ERROR"


class InvalidTransitionError(LifecycleError):
    """No transition for the requested action exists from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, from_state: str, action: str):
        self.workflow = workflow
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Action '{action}' is not allowed from state '{from_state}' "
            f"in workflow {workflow}"
        )


class GuardRejectedError(LifecycleError):
    """The transition exists but its guard condition does not hold."""

    code: str = "GUARD_REJECTED"

    def __init__(self, workflow: str, action: str, guard: str, reason: str):
        self.workflow = workflow
        self.action = action
        self.guard = guard
        self.reason = reason
        super().__init__(f"Action '{action}' blocked by guard '{guard}': {reason}")


class QuoteNotEditableError(LifecycleError):
    """Cost or margin edits are only accepted while a quote is a draft."""

    code: str = "QUOTE_NOT_EDITABLE"

    def __init__(self, quote_id: str, status: str):
        self.quote_id = quote_id
        self.status = status
        super().__init__(
            f"Quote {quote_id} is '{status}'; only draft quotes can be repriced"
        )


class PayloadMismatchError(PricingKernelError):
    """
    Identifier exists but with a different payload hash.

    Create operations are idempotent for a given identifier AND payload;
    reusing an identifier for different data is a caller error.
    """

    code: str = "PAYLOAD_MISMATCH"

    def __init__(self, entity_id: str, expected_hash: str, received_hash: str):
        self.entity_id = entity_id
        self.expected_hash = expected_hash
        self.received_hash = received_hash
        super().__init__(
            f"Payload mismatch for {entity_id}: "
            f"expected {expected_hash}, received {received_hash}"
        )


class CurrencyMismatchError(PricingKernelError):
    """Money operation mixed two currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"Currency mismatch: {left} and {right}")
