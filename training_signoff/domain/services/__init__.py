"""Domain services for the training sign-off engine.

Domain services hold the business rules that do not belong to a single
model. They are pure and synchronous; they must NOT depend on
infrastructure.

Available services:
- RoleAuthority: who may sign as which role, and who may remove a signature
- SignatureLedger: the signature set of one progress unit
- completion_evaluator: the single completion rule and its aggregations
- cycle_classifier: training-cycle filtering and summaries
"""

from training_signoff.domain.services.completion_evaluator import (
    AssignmentEvaluation,
    AssignmentProgress,
    CompletionStatus,
    ModuleCompletionRate,
    ProgressStats,
    UnitEvaluation,
    aggregate_assignment_progress,
    classify_assignment,
    evaluate_assignment,
    evaluate_unit,
    is_unit_complete,
    module_completion_rates,
    summarize_progress,
)
from training_signoff.domain.services.cycle_classifier import (
    CycleSummary,
    available_training_years,
    cycle_summary,
    filter_cycle,
    is_in_cycle,
)
from training_signoff.domain.services.role_authority import (
    AuthorityDecision,
    RoleAuthority,
    SignOffDenial,
)
from training_signoff.domain.services.signature_ledger import (
    SignatureLedger,
    SignOffResult,
    SignOffStatus,
)

__all__: list[str] = [
    "AssignmentEvaluation",
    "AssignmentProgress",
    "AuthorityDecision",
    "CompletionStatus",
    "CycleSummary",
    "ModuleCompletionRate",
    "ProgressStats",
    "RoleAuthority",
    "SignOffDenial",
    "SignOffResult",
    "SignOffStatus",
    "SignatureLedger",
    "UnitEvaluation",
    "aggregate_assignment_progress",
    "available_training_years",
    "classify_assignment",
    "cycle_summary",
    "evaluate_assignment",
    "evaluate_unit",
    "filter_cycle",
    "is_in_cycle",
    "is_unit_complete",
    "module_completion_rates",
    "summarize_progress",
]
