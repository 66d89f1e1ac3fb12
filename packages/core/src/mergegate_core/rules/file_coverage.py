"""Completion by full file coverage: every file reviewed, every discussion resolved."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mergegate_core.models import DRAFT, READY_MERGEABILITY, FileEntry, FileRevision, RuleResult, User
from mergegate_core.rules.base import BaseRule, discussion_blockers, unique_users

if TYPE_CHECKING:
    from mergegate_core.models import ReviewSnapshot

logger = logging.getLogger(__name__)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def _last_reviewed_revision(file: FileEntry) -> FileRevision | None:
    """Most recent revision of the file that somebody reviewed, or None if nobody ever did."""
    for rev in reversed(file.revisions):
        if rev.reviewers:
            return rev
    return None


def _is_participating(user: User, active: frozenset[str]) -> bool:
    if user.participating is not None:
        return user.participating
    return user.username in active


def _blockers(snapshot: ReviewSnapshot) -> tuple[User, ...]:
    """File blockers, then discussion blockers, then designated reviewers still missing."""
    # None marks a file that lost its reviewers and was never reviewed before.
    last_reviewed = []
    for file in snapshot.files:
        if all(r.obsolete for r in file.revisions):
            logger.warning("All revisions of file %s are obsolete; using the last one", file.path or "<unnamed>")
        if not file.effective_revision.reviewers:
            last_reviewed.append(_last_reviewed_revision(file))

    file_blockers = [
        user
        for rev in last_reviewed
        if rev is not None
        for user in sorted(rev.reviewers, key=lambda u: u.username)
    ]

    designated = snapshot.designated_reviewers
    if any(rev is None for rev in last_reviewed):
        missing = list(designated)
    else:
        active = snapshot.active_usernames()
        missing = [user for user in designated if not _is_participating(user, active)]

    return unique_users(
        User(username=user.username) for user in [*file_blockers, *discussion_blockers(snapshot), *missing]
    )


def is_ready_to_merge(snapshot: ReviewSnapshot, completed: bool) -> bool:
    """Whether the platform state allows merging once no reviewer is blocking."""
    pr = snapshot.pull_request
    if pr.target_branch_protected:
        return pr.mergeability in READY_MERGEABILITY
    return (
        completed
        and pr.mergeability != DRAFT
        and all(check.success for check in pr.checks if check.required)
    )


class FileCoverageRule(BaseRule):
    name = "file_coverage"

    def evaluate(self, snapshot: ReviewSnapshot) -> RuleResult:
        summary = snapshot.summary
        completed = not summary.num_unreviewed_files and not summary.num_unresolved_discussions

        reasons = []
        short_reasons = []
        if summary.num_unreviewed_files:
            reasons.append(
                f"{summary.num_files - summary.num_unreviewed_files} of {summary.num_files} files reviewed"
            )
            short_reasons.append(_plural(summary.num_unreviewed_files, "file"))
        else:
            reasons.append("all files reviewed")

        if summary.num_unresolved_discussions:
            reasons.append(_plural(summary.num_unresolved_discussions, "unresolved discussion"))
            short_reasons.append(_plural(summary.num_unresolved_discussions, "discussion"))
        else:
            reasons.append("all discussions resolved")

        # A complete summary leaves at most the author responsible, via the readiness check below.
        pending = [] if completed else list(_blockers(snapshot))

        if not pending and not is_ready_to_merge(snapshot, completed):
            author = snapshot.pull_request.author
            logger.debug("No reviewer blocking but not mergeable; %s is responsible", author.username)
            pending.append(User(username=author.username))

        if completed:
            short_description = f"{_plural(summary.num_files, 'file')} reviewed"
        else:
            short_description = ", ".join(short_reasons) + " left"

        logger.debug("file_coverage completed=%s pending=%s", completed, [u.username for u in pending])
        return RuleResult(
            completed=completed,
            description=", ".join(reasons),
            short_description=short_description,
            pending_reviewers=tuple(pending),
        )
