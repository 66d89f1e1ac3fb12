"""Any-of combination of completion rules.

A review is approved as soon as any one policy is satisfied:

1. all files reviewed and all discussions resolved
2. enough LGTM emojis from the designated reviewers
3. enough platform approvals from the assignees

When none is satisfied, every status is reported side by side so a human can
see which path is closest to completion.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from mergegate_core.config import DEFAULT_CONFIG
from mergegate_core.models import RuleResult
from mergegate_core.rules import RULES
from mergegate_core.rules.base import unique_users

if TYPE_CHECKING:
    from mergegate_core.models import ReviewSnapshot
    from mergegate_core.rules.base import BaseRule

logger = logging.getLogger(__name__)


def build_rules(config: dict | None = None) -> list[BaseRule]:
    """Instantiate the configured rules in fixed priority order."""
    config = config or DEFAULT_CONFIG
    names = config.get("rules") or list(RULES)
    unknown = [name for name in names if name not in RULES]
    if unknown:
        raise ValueError(f"Unknown rule(s): {', '.join(unknown)}. Choose from {', '.join(RULES)}.")
    threshold = config.get("default_num_approvals_required", DEFAULT_CONFIG["default_num_approvals_required"])
    return [rule_cls(default_num_approvals_required=threshold) for name, rule_cls in RULES.items() if name in names]


def any_satisfied(rules: Sequence[BaseRule], snapshot: ReviewSnapshot) -> RuleResult:
    """Return the first completed rule result, or a pending aggregate of all of them."""
    results = [rule.evaluate(snapshot) for rule in rules]
    for rule, result in zip(rules, results):
        if result.completed:
            logger.debug("Review approved by %s: %s", rule.name, result.description)
            return result

    logger.debug("No rule satisfied across %d rule(s)", len(results))
    return RuleResult(
        completed=False,
        description=" / ".join(r.description for r in results),
        short_description=" / ".join(r.short_description for r in results),
        pending_reviewers=unique_users(user for r in results for user in r.pending_reviewers),
    )


def evaluate_review(snapshot: ReviewSnapshot, config: dict | None = None) -> RuleResult:
    return any_satisfied(build_rules(config), snapshot)
