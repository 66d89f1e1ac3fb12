"""Review snapshot and rule result models.

Everything here is a frozen value object. The hosting layer materializes a
ReviewSnapshot from live review state; the rules only read from it and return
a RuleResult. Nothing in the engine creates, mutates or destroys review state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

APPROVED = "approved"
CHANGES_REQUESTED = "changes_requested"
PENDING = "pending"
APPROVAL_STATES = frozenset({APPROVED, CHANGES_REQUESTED, PENDING})

LGTM = "lgtm"
LGTM_STRONG = "lgtm_strong"
LGTM_CANCEL = "lgtm_cancel"

# Mergeability values reported by the platform that allow merging into a protected branch.
READY_MERGEABILITY = frozenset({"has_hooks", "clean", "unstable"})
DRAFT = "draft"


class SnapshotError(ValueError):
    """Raised when a snapshot violates its structural contract."""


@dataclass(frozen=True)
class User:
    """A user identified by username alone.

    ``participating`` is an optional hint supplied by the platform for
    designated reviewers. It never takes part in equality or hashing.
    """

    username: str
    participating: bool | None = field(default=None, compare=False)

    def to_dict(self) -> dict:
        return {"username": self.username}


def unique_users(users: Iterable[User]) -> tuple[User, ...]:
    """Drop repeated usernames, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for user in users:
        if user.username in seen:
            continue
        seen.add(user.username)
        result.append(user)
    return tuple(result)


@dataclass(frozen=True)
class ReviewSummary:
    num_files: int
    num_unreviewed_files: int
    num_unresolved_discussions: int

    def __post_init__(self):
        if min(self.num_files, self.num_unreviewed_files, self.num_unresolved_discussions) < 0:
            raise SnapshotError(f"Summary counters must be non-negative: {self}")
        if self.num_unreviewed_files > self.num_files:
            raise SnapshotError(
                f"numUnreviewedFiles ({self.num_unreviewed_files}) exceeds numFiles ({self.num_files})"
            )


@dataclass(frozen=True)
class FileRevision:
    obsolete: bool = False
    reviewers: frozenset[User] = frozenset()


@dataclass(frozen=True)
class FileEntry:
    """A file in the review with its revisions ordered oldest to newest."""

    revisions: tuple[FileRevision, ...]
    path: str = ""

    def __post_init__(self):
        if not self.revisions:
            raise SnapshotError(f"File {self.path or '<unnamed>'} has no revisions")

    @property
    def effective_revision(self) -> FileRevision:
        """The last non-obsolete revision, or the last revision if all are obsolete."""
        for rev in reversed(self.revisions):
            if not rev.obsolete:
                return rev
        return self.revisions[-1]


@dataclass(frozen=True)
class Participant:
    username: str
    resolved: bool


@dataclass(frozen=True)
class Discussion:
    resolved: bool
    participants: tuple[Participant, ...] = ()


@dataclass(frozen=True)
class Sentiment:
    username: str
    emojis: frozenset[str]
    timestamp: float


@dataclass(frozen=True)
class Revision:
    obsolete: bool
    snapshot_timestamp: float


@dataclass(frozen=True)
class Check:
    required: bool
    success: bool


@dataclass(frozen=True)
class PullRequest:
    author: User
    requested_reviewers: tuple[User, ...] = ()
    assignees: tuple[User, ...] = ()
    mergeability: str = "clean"
    checks: tuple[Check, ...] = ()
    approvals: Mapping[str, str] = field(default_factory=dict)
    target_branch_protected: bool = False

    def __post_init__(self):
        # Reviewer and assignee collections are sets keyed by username.
        object.__setattr__(self, "requested_reviewers", unique_users(self.requested_reviewers))
        object.__setattr__(self, "assignees", unique_users(self.assignees))
        unknown = sorted({state for state in self.approvals.values() if state not in APPROVAL_STATES})
        if unknown:
            raise SnapshotError(f"Unknown approval state(s): {', '.join(unknown)}")


@dataclass(frozen=True)
class ReviewSnapshot:
    """Root value object handed to every rule."""

    summary: ReviewSummary
    pull_request: PullRequest
    revisions: tuple[Revision, ...]
    files: tuple[FileEntry, ...] = ()
    discussions: tuple[Discussion, ...] = ()
    sentiments: tuple[Sentiment, ...] = ()

    def __post_init__(self):
        if not self.revisions:
            raise SnapshotError("Review has no revisions")

    @property
    def last_revision_timestamp(self) -> float:
        """Snapshot timestamp of the latest non-obsolete review revision."""
        for rev in reversed(self.revisions):
            if not rev.obsolete:
                return rev.snapshot_timestamp
        return self.revisions[-1].snapshot_timestamp

    @property
    def designated_reviewers(self) -> tuple[User, ...]:
        """Requested reviewers, or assignees when nobody was explicitly requested."""
        return self.pull_request.requested_reviewers or self.pull_request.assignees

    def active_usernames(self) -> frozenset[str]:
        """Usernames that left any trace of activity in the review."""
        names: set[str] = set()
        for file in self.files:
            for rev in file.revisions:
                names.update(user.username for user in rev.reviewers)
        for discussion in self.discussions:
            names.update(p.username for p in discussion.participants)
        names.update(s.username for s in self.sentiments)
        names.update(self.pull_request.approvals)
        return frozenset(names)


@dataclass(frozen=True)
class RuleResult:
    """Outcome of a single rule or of the combinator."""

    completed: bool
    description: str
    short_description: str
    pending_reviewers: tuple[User, ...] = ()
    debug: Mapping[str, Any] | None = None

    def to_dict(self) -> dict:
        data = {
            "completed": self.completed,
            "description": self.description,
            "shortDescription": self.short_description,
            "pendingReviewers": [user.to_dict() for user in self.pending_reviewers],
        }
        if self.debug is not None:
            data["debug"] = dict(self.debug)
        return data
