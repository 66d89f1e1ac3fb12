from mergegate_core.combinator import any_satisfied, build_rules, evaluate_review
from mergegate_core.models import ReviewSnapshot, RuleResult, SnapshotError, User
from mergegate_core.snapshot import load_snapshot, snapshot_from_dict

__all__ = [
    "ReviewSnapshot",
    "RuleResult",
    "SnapshotError",
    "User",
    "any_satisfied",
    "build_rules",
    "evaluate_review",
    "load_snapshot",
    "snapshot_from_dict",
]
