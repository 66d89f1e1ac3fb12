"""Tests for the file-coverage rule."""

from mergegate_core.models import (
    Check,
    Discussion,
    FileEntry,
    FileRevision,
    Participant,
    PullRequest,
    ReviewSnapshot,
    ReviewSummary,
    Revision,
    Sentiment,
    User,
)
from mergegate_core.rules.file_coverage import FileCoverageRule


def _rev(*reviewers: str, obsolete: bool = False) -> FileRevision:
    return FileRevision(obsolete=obsolete, reviewers=frozenset(User(name) for name in reviewers))


def _make_snapshot(
    num_files=3,
    num_unreviewed=0,
    num_unresolved=0,
    files=(),
    discussions=(),
    sentiments=(),
    requested=(),
    assignees=(),
    mergeability="clean",
    checks=(),
    protected=False,
):
    return ReviewSnapshot(
        summary=ReviewSummary(num_files, num_unreviewed, num_unresolved),
        pull_request=PullRequest(
            author=User("carol"),
            requested_reviewers=tuple(requested),
            assignees=tuple(assignees),
            mergeability=mergeability,
            checks=tuple(checks),
            target_branch_protected=protected,
        ),
        revisions=(Revision(obsolete=False, snapshot_timestamp=1),),
        files=tuple(files),
        discussions=tuple(discussions),
        sentiments=tuple(sentiments),
    )


def _names(result) -> list[str]:
    return [u.username for u in result.pending_reviewers]


class TestCompletion:
    def test_all_reviewed_and_resolved(self):
        result = FileCoverageRule().evaluate(_make_snapshot())
        assert result.completed is True
        assert result.description == "all files reviewed, all discussions resolved"
        assert result.short_description == "3 files reviewed"
        assert result.pending_reviewers == ()

    def test_single_file_short_description_is_singular(self):
        result = FileCoverageRule().evaluate(_make_snapshot(num_files=1))
        assert result.short_description == "1 file reviewed"

    def test_unreviewed_files_and_discussions(self):
        result = FileCoverageRule().evaluate(_make_snapshot(num_files=5, num_unreviewed=2, num_unresolved=1))
        assert result.completed is False
        assert result.description == "3 of 5 files reviewed, 1 unresolved discussion"
        assert result.short_description == "2 files, 1 discussion left"

    def test_only_discussions_outstanding(self):
        result = FileCoverageRule().evaluate(_make_snapshot(num_unresolved=3))
        assert result.completed is False
        assert result.description == "all files reviewed, 3 unresolved discussions"
        assert result.short_description == "3 discussions left"

    def test_no_debug_payload(self):
        assert FileCoverageRule().evaluate(_make_snapshot()).debug is None


class TestReadinessFallback:
    def test_failing_required_check_makes_author_pending(self):
        snapshot = _make_snapshot(checks=[Check(required=True, success=False)])
        result = FileCoverageRule().evaluate(snapshot)
        assert result.completed is True
        assert _names(result) == ["carol"]

    def test_failing_optional_check_is_ignored(self):
        snapshot = _make_snapshot(checks=[Check(required=False, success=False), Check(required=True, success=True)])
        assert FileCoverageRule().evaluate(snapshot).pending_reviewers == ()

    def test_draft_makes_author_pending(self):
        result = FileCoverageRule().evaluate(_make_snapshot(mergeability="draft"))
        assert _names(result) == ["carol"]

    def test_incomplete_review_without_blockers_falls_to_author(self):
        result = FileCoverageRule().evaluate(_make_snapshot(num_unreviewed=1))
        assert result.completed is False
        assert _names(result) == ["carol"]

    def test_protected_branch_uses_mergeability_only(self):
        snapshot = _make_snapshot(num_unreviewed=1, protected=True, checks=[Check(required=True, success=False)])
        assert FileCoverageRule().evaluate(snapshot).pending_reviewers == ()

    def test_protected_branch_blocked_mergeability(self):
        snapshot = _make_snapshot(protected=True, mergeability="blocked")
        assert _names(FileCoverageRule().evaluate(snapshot)) == ["carol"]

    def test_protected_branch_accepts_has_hooks_and_unstable(self):
        for mergeability in ("has_hooks", "unstable", "clean"):
            snapshot = _make_snapshot(protected=True, mergeability=mergeability)
            assert FileCoverageRule().evaluate(snapshot).pending_reviewers == ()

    def test_author_not_added_when_reviewers_block(self):
        discussion = Discussion(resolved=False, participants=(Participant("dave", resolved=False),))
        snapshot = _make_snapshot(num_unresolved=1, discussions=[discussion], mergeability="draft")
        assert _names(FileCoverageRule().evaluate(snapshot)) == ["dave"]


class TestBlockers:
    def test_discussion_blockers(self):
        discussions = [
            Discussion(
                resolved=False,
                participants=(Participant("dave", resolved=False), Participant("erin", resolved=True)),
            ),
            Discussion(resolved=True, participants=(Participant("frank", resolved=False),)),
        ]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unresolved=1, discussions=discussions))
        assert _names(result) == ["dave"]

    def test_reviewers_of_previous_revision_block_unreviewed_file(self):
        files = [FileEntry(revisions=(_rev("bob"), _rev()), path="src/app.py")]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unreviewed=1, files=files))
        assert _names(result) == ["bob"]

    def test_most_recent_reviewed_revision_wins(self):
        files = [FileEntry(revisions=(_rev("alice"), _rev("bob"), _rev()))]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unreviewed=1, files=files))
        assert _names(result) == ["bob"]

    def test_reviewed_file_has_no_blockers(self):
        files = [FileEntry(revisions=(_rev(), _rev("bob")))]
        snapshot = _make_snapshot(num_unreviewed=1, files=files, protected=True)
        assert FileCoverageRule().evaluate(snapshot).pending_reviewers == ()

    def test_obsolete_trailing_revision_is_skipped(self):
        files = [FileEntry(revisions=(_rev("bob"), _rev(obsolete=True)))]
        snapshot = _make_snapshot(num_unreviewed=1, files=files, protected=True)
        assert FileCoverageRule().evaluate(snapshot).pending_reviewers == ()

    def test_all_obsolete_uses_last_revision(self):
        files = [FileEntry(revisions=(_rev("bob", obsolete=True), _rev(obsolete=True)))]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unreviewed=1, files=files))
        assert _names(result) == ["bob"]

    def test_never_reviewed_file_blocks_all_designated_reviewers(self):
        files = [FileEntry(revisions=(_rev(),))]
        requested = [User("alice", participating=True), User("bob", participating=True)]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unreviewed=1, files=files, requested=requested))
        assert _names(result) == ["alice", "bob"]

    def test_assignees_used_when_no_reviewers_requested(self):
        files = [FileEntry(revisions=(_rev(),))]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unreviewed=1, files=files, assignees=[User("zoe")]))
        assert _names(result) == ["zoe"]

    def test_non_participating_designated_reviewer_blocks(self):
        requested = [User("alice", participating=False), User("bob", participating=True)]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unresolved=1, requested=requested))
        assert _names(result) == ["alice"]

    def test_participation_derived_from_activity(self):
        sentiments = [Sentiment("alice", frozenset({"lgtm"}), 5)]
        requested = [User("alice"), User("bob")]
        snapshot = _make_snapshot(num_unresolved=1, requested=requested, sentiments=sentiments)
        result = FileCoverageRule().evaluate(snapshot)
        assert _names(result) == ["bob"]

    def test_participation_hint_overrides_activity(self):
        sentiments = [Sentiment("alice", frozenset({"lgtm"}), 5)]
        requested = [User("alice", participating=False)]
        snapshot = _make_snapshot(num_unresolved=1, requested=requested, sentiments=sentiments)
        result = FileCoverageRule().evaluate(snapshot)
        assert _names(result) == ["alice"]

    def test_blocker_order_and_uniqueness(self):
        files = [FileEntry(revisions=(_rev("bob"), _rev()))]
        discussions = [
            Discussion(
                resolved=False,
                participants=(Participant("dave", resolved=False), Participant("bob", resolved=False)),
            )
        ]
        requested = [User("alice", participating=False), User("dave", participating=False)]
        snapshot = _make_snapshot(
            num_unreviewed=1, num_unresolved=1, files=files, discussions=discussions, requested=requested
        )
        assert _names(FileCoverageRule().evaluate(snapshot)) == ["bob", "dave", "alice"]

    def test_pending_reviewers_carry_only_username(self):
        requested = [User("alice", participating=False)]
        result = FileCoverageRule().evaluate(_make_snapshot(num_unresolved=1, requested=requested))
        assert result.pending_reviewers[0].participating is None


class TestCompleteSummary:
    def _stale_activity(self, **kwargs):
        files = [FileEntry(revisions=(_rev("bob"), _rev()))]
        discussions = [Discussion(resolved=False, participants=(Participant("dave", resolved=False),))]
        requested = [User("alice", participating=False)]
        return _make_snapshot(files=files, discussions=discussions, requested=requested, **kwargs)

    def test_no_reviewer_is_listed(self):
        result = FileCoverageRule().evaluate(self._stale_activity())
        assert result.completed is True
        assert result.pending_reviewers == ()

    def test_at_most_the_author_is_listed(self):
        result = FileCoverageRule().evaluate(self._stale_activity(checks=[Check(required=True, success=False)]))
        assert result.completed is True
        assert _names(result) == ["carol"]


def test_evaluation_is_idempotent():
    files = [FileEntry(revisions=(_rev("bob", "alice"), _rev()))]
    snapshot = _make_snapshot(num_unreviewed=1, files=files)
    rule = FileCoverageRule()
    assert rule.evaluate(snapshot) == rule.evaluate(snapshot)
