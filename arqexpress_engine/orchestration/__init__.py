from .transitions import (
    BUDGET_TRANSITIONS,
    can_transition,
    create_budget,
    transition_budget,
    update_budget_scope,
)
from .project_factory import create_project_from_budget

__all__ = [
    "BUDGET_TRANSITIONS",
    "can_transition",
    "create_budget",
    "transition_budget",
    "update_budget_scope",
    "create_project_from_budget",
]
