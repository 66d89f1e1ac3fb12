"""Completion by LGTM emoji approvals.

Approval is granted with the ``lgtm`` and ``lgtm_strong`` emojis and withdrawn
with ``lgtm_cancel``. A plain ``lgtm`` is only good for the latest revision at
the time it was sent, so new commits require another one. An ``lgtm_strong``
is good for all revisions until canceled.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Mapping

from mergegate_core.models import LGTM, LGTM_CANCEL, LGTM_STRONG, RuleResult, User
from mergegate_core.rules.base import BaseRule, unique_users

if TYPE_CHECKING:
    from mergegate_core.models import ReviewSnapshot, Sentiment

logger = logging.getLogger(__name__)


def apply_sentiment(approvals: Mapping[str, bool], sentiment: Sentiment, last_revision_timestamp: float) -> dict:
    """Return the approval map after one sentiment; the input map is left untouched."""
    updated = dict(approvals)
    if LGTM_CANCEL in sentiment.emojis:
        updated.pop(sentiment.username, None)
    elif LGTM_STRONG in sentiment.emojis:
        updated[sentiment.username] = True
    elif LGTM in sentiment.emojis and not updated.get(sentiment.username):
        updated[sentiment.username] = sentiment.timestamp >= last_revision_timestamp
    return updated


def fold_sentiments(sentiments: Iterable[Sentiment], last_revision_timestamp: float) -> dict[str, bool]:
    """Fold chronologically ordered sentiments into a per-user approval map.

    True means a current approval, False a stale one; users without an entry
    never approved or canceled their approval.
    """
    approvals: dict[str, bool] = {}
    for sentiment in sentiments:
        approvals = apply_sentiment(approvals, sentiment, last_revision_timestamp)
    return approvals


class EmojiApprovalRule(BaseRule):
    name = "emoji_approval"

    def evaluate(self, snapshot: ReviewSnapshot) -> RuleResult:
        default_required = self.default_num_approvals_required
        approvals = fold_sentiments(snapshot.sentiments, snapshot.last_revision_timestamp)

        num_granted = sum(1 for granted in approvals.values() if granted)
        num_stale = sum(1 for granted in approvals.values() if not granted)

        required = [user.username for user in snapshot.designated_reviewers]
        pending: list[User] = []
        num_approvals_required = default_required
        if required:
            num_approvals_required = max(len(required), default_required)
            granted_in_required = sum(1 for username in required if approvals.get(username) is True)
            num_granted = granted_in_required + min(num_granted, num_approvals_required - len(required))
            pending = [User(username=username) for username in required if not approvals.get(username)]

        description = f"{num_granted} of {num_approvals_required} LGTMs obtained"
        short_description = f"{num_granted}/{num_approvals_required} LGTMs"
        if num_stale:
            description += f", and {num_stale} stale"
            short_description += f", {num_stale} stale"

        # Completion is gated on the configured floor, not on num_approvals_required.
        completed = num_granted >= default_required
        logger.debug(
            "emoji_approval granted=%d required=%d stale=%d completed=%s",
            num_granted,
            num_approvals_required,
            num_stale,
            completed,
        )
        return RuleResult(
            completed=completed,
            description=description,
            short_description=short_description,
            pending_reviewers=unique_users(pending),
            debug={
                "approvals": dict(approvals),
                "emojis": [sorted(s.emojis) for s in snapshot.sentiments],
                "last_revision_timestamp": snapshot.last_revision_timestamp,
            },
        )
