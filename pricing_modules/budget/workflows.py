"""Budget Quote Workflows.

State machine for the commercial quote lifecycle.
"""

from pricing_kernel.domain.workflow import Guard, Transition, Workflow
from pricing_kernel.logging_config import get_logger

logger = get_logger("modules.budget.workflows")


WITHIN_VALIDITY = Guard("within_validity", "Quote has not passed its valid-until date")


QUOTE_WORKFLOW = Workflow(
    name="budget_quote",
    description="Commercial quote lifecycle",
    initial_state="draft",
    states=("draft", "sent", "approved", "rejected", "converted", "expired"),
    transitions=(
        Transition("draft", "sent", action="send"),
        Transition("sent", "approved", action="approve", guard=WITHIN_VALIDITY),
        Transition("sent", "rejected", action="reject"),
        Transition("sent", "draft", action="revise"),
        Transition("approved", "converted", action="convert"),
        Transition("sent", "expired", action="expire"),
        Transition("approved", "expired", action="expire"),
    ),
    terminal_states=("rejected", "converted", "expired"),
)

logger.info("budget_quote_workflow_registered", extra={
    "workflow_name": QUOTE_WORKFLOW.name,
    "state_count": len(QUOTE_WORKFLOW.states),
})
