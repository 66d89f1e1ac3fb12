"""Boundary parsing for review snapshots.

The hosting platform hands over review state as a loosely typed document
(Reviewable-style camelCase keys). This module turns it into a ReviewSnapshot
and rejects anything structurally wrong before a rule ever sees it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

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
    SnapshotError,
    User,
)

logger = logging.getLogger(__name__)


def _require(data: dict, key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise SnapshotError(f"{where} must be a mapping, got {type(data).__name__}")
    if key not in data:
        raise SnapshotError(f"{where} is missing required key {key!r}")
    return data[key]


def _as_list(value: Any, where: str) -> list:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise SnapshotError(f"{where} must be a list, got {type(value).__name__}")
    return list(value)


def _as_int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"{where} must be an integer, got {value!r}")
    return value


def _as_timestamp(value: Any, where: str) -> float:
    """Accept epoch milliseconds or an ISO-8601 string (converted to epoch milliseconds)."""
    if isinstance(value, bool):
        raise SnapshotError(f"{where} must be a timestamp, got {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise SnapshotError(f"{where} is not a valid timestamp: {value!r}") from exc
    if isinstance(value, datetime):
        # Naive values are UTC, never the local zone of the evaluating host.
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * 1000
    raise SnapshotError(f"{where} must be a timestamp, got {value!r}")


def _username(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value:
        raise SnapshotError(f"{where} must be a non-empty string, got {value!r}")
    return value


def _user(data: Any, where: str) -> User:
    if isinstance(data, str):
        return User(username=_username(data, where))
    username = _username(_require(data, "username", where), f"{where}.username")
    participating = data.get("participating")
    return User(username=username, participating=None if participating is None else bool(participating))


def _users(value: Any, where: str) -> tuple[User, ...]:
    return tuple(_user(item, f"{where}[{i}]") for i, item in enumerate(_as_list(value, where)))


def _summary(data: Any) -> ReviewSummary:
    return ReviewSummary(
        num_files=_as_int(_require(data, "numFiles", "summary"), "summary.numFiles"),
        num_unreviewed_files=_as_int(_require(data, "numUnreviewedFiles", "summary"), "summary.numUnreviewedFiles"),
        num_unresolved_discussions=_as_int(
            _require(data, "numUnresolvedDiscussions", "summary"), "summary.numUnresolvedDiscussions"
        ),
    )


def _file(data: Any, index: int) -> FileEntry:
    where = f"files[{index}]"
    revisions = []
    for j, rev in enumerate(_as_list(_require(data, "revisions", where), f"{where}.revisions")):
        rev_where = f"{where}.revisions[{j}]"
        if not isinstance(rev, dict):
            raise SnapshotError(f"{rev_where} must be a mapping")
        revisions.append(
            FileRevision(
                obsolete=bool(rev.get("obsolete", False)),
                reviewers=frozenset(_users(rev.get("reviewers"), f"{rev_where}.reviewers")),
            )
        )
    return FileEntry(revisions=tuple(revisions), path=str(data.get("path", "")))


def _discussion(data: Any, index: int) -> Discussion:
    where = f"discussions[{index}]"
    participants = []
    for j, item in enumerate(_as_list(data.get("participants") if isinstance(data, dict) else None, where)):
        p_where = f"{where}.participants[{j}]"
        participants.append(
            Participant(
                username=_username(_require(item, "username", p_where), f"{p_where}.username"),
                resolved=bool(_require(item, "resolved", p_where)),
            )
        )
    return Discussion(resolved=bool(_require(data, "resolved", where)), participants=tuple(participants))


def _sentiment(data: Any, index: int) -> Sentiment:
    where = f"sentiments[{index}]"
    emojis = _as_list(data.get("emojis") if isinstance(data, dict) else None, f"{where}.emojis")
    return Sentiment(
        username=_username(_require(data, "username", where), f"{where}.username"),
        emojis=frozenset(str(e) for e in emojis),
        timestamp=_as_timestamp(_require(data, "timestamp", where), f"{where}.timestamp"),
    )


def _revision(data: Any, index: int) -> Revision:
    where = f"revisions[{index}]"
    return Revision(
        obsolete=bool(data.get("obsolete", False)) if isinstance(data, dict) else False,
        snapshot_timestamp=_as_timestamp(_require(data, "snapshotTimestamp", where), f"{where}.snapshotTimestamp"),
    )


def _pull_request(data: Any) -> PullRequest:
    author = _user(_require(data, "author", "pullRequest"), "pullRequest.author")
    approvals = data.get("approvals") or {}
    if not isinstance(approvals, dict):
        raise SnapshotError("pullRequest.approvals must be a mapping of username to state")
    target = data.get("target") or {}
    if not isinstance(target, dict):
        raise SnapshotError("pullRequest.target must be a mapping")
    checks = []
    for i, check in enumerate(_as_list(data.get("checks"), "pullRequest.checks")):
        if not isinstance(check, dict):
            raise SnapshotError(f"pullRequest.checks[{i}] must be a mapping")
        checks.append(Check(required=bool(check.get("required", False)), success=bool(check.get("success", False))))
    return PullRequest(
        author=author,
        requested_reviewers=_users(data.get("requestedReviewers"), "pullRequest.requestedReviewers"),
        assignees=_users(data.get("assignees"), "pullRequest.assignees"),
        mergeability=str(data.get("mergeability", "clean")),
        checks=tuple(checks),
        approvals={str(k): str(v) for k, v in approvals.items()},
        target_branch_protected=bool(target.get("branchProtected", False)),
    )


def snapshot_from_dict(data: dict) -> ReviewSnapshot:
    """Build a validated ReviewSnapshot from a camelCase review document.

    Raises SnapshotError on any structural violation: missing keys, wrong
    types, unknown approval states or broken invariants.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a mapping")
    return ReviewSnapshot(
        summary=_summary(_require(data, "summary", "snapshot")),
        pull_request=_pull_request(_require(data, "pullRequest", "snapshot")),
        revisions=tuple(
            _revision(r, i) for i, r in enumerate(_as_list(_require(data, "revisions", "snapshot"), "revisions"))
        ),
        files=tuple(_file(f, i) for i, f in enumerate(_as_list(data.get("files"), "files"))),
        discussions=tuple(
            _discussion(d, i) for i, d in enumerate(_as_list(data.get("discussions"), "discussions"))
        ),
        sentiments=tuple(_sentiment(s, i) for i, s in enumerate(_as_list(data.get("sentiments"), "sentiments"))),
    )


def load_snapshot(path: str) -> ReviewSnapshot:
    """Read a snapshot document from a JSON or YAML file."""
    snapshot_path = Path(path)
    try:
        raw = snapshot_path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Could not read snapshot %s: %s", snapshot_path, exc)
        raise SnapshotError(f"Failed to read snapshot: {exc}") from exc

    try:
        if snapshot_path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            # YAML is a superset of JSON, so anything else goes through the YAML parser.
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        logger.error("Could not parse snapshot %s: %s", snapshot_path, exc)
        raise SnapshotError(f"Failed to parse snapshot: {exc}") from exc

    snapshot = snapshot_from_dict(data)
    logger.debug(
        "Loaded snapshot %s: %d file(s), %d discussion(s), %d sentiment(s)",
        snapshot_path,
        len(snapshot.files),
        len(snapshot.discussions),
        len(snapshot.sentiments),
    )
    return snapshot
