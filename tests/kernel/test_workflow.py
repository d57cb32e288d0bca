"""
Tests for Workflow and the budget quote lifecycle definition.

Validates:
- Every declared transition of QUOTE_WORKFLOW resolves
- Actions not declared from a state raise InvalidTransitionError
- Terminal states have no outgoing actions
- Malformed workflow definitions are rejected at construction
"""

import pytest

from pricing_kernel.domain.workflow import Transition, Workflow
from pricing_kernel.exceptions import InvalidTransitionError
from pricing_modules.budget.models import QuoteStatus
from pricing_modules.budget.workflows import QUOTE_WORKFLOW, WITHIN_VALIDITY


class TestQuoteWorkflow:

    @pytest.mark.parametrize("from_state,action,to_state", [
        ("draft", "send", "sent"),
        ("sent", "approve", "approved"),
        ("sent", "reject", "rejected"),
        ("sent", "revise", "draft"),
        ("sent", "expire", "expired"),
        ("approved", "convert", "converted"),
        ("approved", "expire", "expired"),
    ])
    def test_declared_transitions(self, from_state, action, to_state):
        assert QUOTE_WORKFLOW.apply(from_state, action).to_state == to_state

    @pytest.mark.parametrize("from_state,action", [
        ("draft", "approve"),
        ("draft", "convert"),
        ("draft", "expire"),
        ("sent", "convert"),
        ("approved", "send"),
        ("approved", "reject"),
        ("rejected", "revise"),
        ("converted", "send"),
        ("expired", "approve"),
    ])
    def test_undeclared_transitions_raise(self, from_state, action):
        with pytest.raises(InvalidTransitionError) as exc_info:
            QUOTE_WORKFLOW.apply(from_state, action)
        assert exc_info.value.from_state == from_state
        assert exc_info.value.action == action
        assert exc_info.value.code == "INVALID_TRANSITION"

    def test_only_approval_is_guarded(self):
        guarded = [t for t in QUOTE_WORKFLOW.transitions if t.guard is not None]
        assert [(t.action, t.guard) for t in guarded] == [("approve", WITHIN_VALIDITY)]

    @pytest.mark.parametrize("state", ["rejected", "converted", "expired"])
    def test_terminal_states(self, state):
        assert QUOTE_WORKFLOW.is_terminal(state)
        assert QUOTE_WORKFLOW.actions_from(state) == ()

    def test_states_match_quote_status(self):
        assert set(QUOTE_WORKFLOW.states) == {s.value for s in QuoteStatus}
        assert QUOTE_WORKFLOW.initial_state == QuoteStatus.DRAFT.value

    def test_actions_from_sent(self):
        assert set(QUOTE_WORKFLOW.actions_from("sent")) == {
            "approve", "reject", "revise", "expire",
        }


class TestWorkflowDefinition:

    def test_unknown_initial_state(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow("w", "", "start", ("a",), ())

    def test_transition_to_unknown_state(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow("w", "", "a", ("a",), (Transition("a", "b", "go"),))

    def test_terminal_state_with_outgoing_transition(self):
        with pytest.raises(ValueError, match="terminal state"):
            Workflow(
                "w", "", "a", ("a", "b"),
                (Transition("a", "b", "go"), Transition("b", "a", "back")),
                terminal_states=("b",),
            )

    def test_ambiguous_action(self):
        with pytest.raises(ValueError, match="ambiguous"):
            Workflow(
                "w", "", "a", ("a", "b", "c"),
                (Transition("a", "b", "go"), Transition("a", "c", "go")),
            )
