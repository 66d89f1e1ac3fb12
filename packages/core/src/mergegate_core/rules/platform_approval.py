"""Completion by platform-native review approvals.

The platform invalidates approvals on new pushes itself, so unlike the emoji
rule there is no staleness tracking here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mergegate_core.models import APPROVED, CHANGES_REQUESTED, RuleResult, User
from mergegate_core.rules.base import BaseRule, discussion_blockers, unique_users

if TYPE_CHECKING:
    from mergegate_core.models import ReviewSnapshot

logger = logging.getLogger(__name__)


class PlatformApprovalRule(BaseRule):
    name = "platform_approval"

    def evaluate(self, snapshot: ReviewSnapshot) -> RuleResult:
        pr = snapshot.pull_request
        approvals = pr.approvals
        num_approvals_required = self.default_num_approvals_required

        num_approvals = sum(1 for state in approvals.values() if state == APPROVED)
        num_rejections = sum(1 for state in approvals.values() if state == CHANGES_REQUESTED)

        blockers = discussion_blockers(snapshot)
        pending = [*blockers, *(User(username=u.username) for u in pr.requested_reviewers)]

        required = [user.username for user in pr.assignees if user.username != pr.author.username]
        if required:
            num_approvals_required = max(len(required), num_approvals_required)
            approved_in_required = sum(1 for username in required if approvals.get(username) == APPROVED)
            num_approvals = approved_in_required + min(num_approvals, num_approvals_required - len(required))
            blocked = {user.username for user in blockers}
            missing = [
                User(username=username)
                for username in required
                if approvals.get(username) != APPROVED and username not in blocked
            ]
            pending = [*missing, *pending]

        rejections = f"{num_rejections} change requests, " if num_rejections else ""
        short_rejections = f"{num_rejections} ✗, " if num_rejections else ""

        completed = num_approvals >= num_approvals_required
        logger.debug(
            "platform_approval approvals=%d required=%d rejections=%d completed=%s",
            num_approvals,
            num_approvals_required,
            num_rejections,
            completed,
        )
        return RuleResult(
            completed=completed,
            description=f"{rejections}{num_approvals} of {num_approvals_required} approvals obtained",
            short_description=f"{short_rejections}{num_approvals} of {num_approvals_required} ✓",
            pending_reviewers=unique_users(pending),
        )
