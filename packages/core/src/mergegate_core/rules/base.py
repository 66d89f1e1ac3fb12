"""Base rule and the blocker helpers shared by the concrete rules.

Every rule reads a ReviewSnapshot and returns a RuleResult; nothing else.
Concrete rules differ only in how they decide completion and whom they list
as pending, so the shared blocker vocabulary lives here. ``unique_users`` is
re-exported from the models for the rules that merge pending lists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from mergegate_core.config import DEFAULT_NUM_APPROVALS_REQUIRED
from mergegate_core.models import User, unique_users

if TYPE_CHECKING:
    from mergegate_core.models import ReviewSnapshot, RuleResult


class BaseRule(ABC):
    """A completion policy evaluated against one snapshot.

    ``name`` tags the variant; the combinator and the CLI refer to rules by it.
    """

    name: str = ""

    def __init__(self, default_num_approvals_required: int = DEFAULT_NUM_APPROVALS_REQUIRED):
        self.default_num_approvals_required = default_num_approvals_required

    @abstractmethod
    def evaluate(self, snapshot: ReviewSnapshot) -> RuleResult:
        """Decide whether the review is complete under this policy."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(default_num_approvals_required={self.default_num_approvals_required})"


def discussion_blockers(snapshot: ReviewSnapshot) -> tuple[User, ...]:
    """Participants who have not resolved a discussion that is still open."""
    return tuple(
        User(username=p.username)
        for discussion in snapshot.discussions
        if not discussion.resolved
        for p in discussion.participants
        if not p.resolved
    )
