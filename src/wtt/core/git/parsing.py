"""Parsers for git's text output.

Everything that reads git's human or porcelain output lives here so the rest of
the code works on structured values. These are pure functions over strings.
"""

import re
from datetime import datetime
from pathlib import Path

from wtt.core.git.abc import (
    CommitInfo,
    FileChange,
    LineRange,
    MergeResult,
    ReflogEntry,
    StashEntry,
    StatusInfo,
    WorktreeInfo,
)

# Two-letter porcelain codes for unmerged entries (see git-status(1))
_UNMERGED_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

_CONFLICT_LINE = re.compile(r"^CONFLICT \(([^)]+)\):\s*(.*)$")
_CONTENT_CONFLICT_PATH = re.compile(r"Merge conflict in (.+)$")
_DELETE_CONFLICT_PATH = re.compile(r"^(.+?) deleted in ")
_ADD_CONFLICT_PATH = re.compile(r"(?:Adding|Added)\s+(.+?)(?:\s+in\s+|$)")


def parse_worktree_list(output: str) -> list[WorktreeInfo]:
    """Parse `git worktree list --porcelain`.

    The first record is marked as the root worktree (git guarantees this ordering).
    """
    worktrees: list[WorktreeInfo] = []
    current_path: Path | None = None
    current_branch: str | None = None
    current_head: str | None = None

    def flush() -> None:
        if current_path is not None:
            worktrees.append(
                WorktreeInfo(path=current_path, branch=current_branch, head_commit=current_head)
            )

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if line.startswith("worktree "):
            flush()
            current_path = Path(line.split(maxsplit=1)[1])
            current_branch = None
            current_head = None
        elif line.startswith("HEAD ") and current_path is not None:
            current_head = line.split(maxsplit=1)[1]
        elif line.startswith("branch ") and current_path is not None:
            branch_ref = line.split(maxsplit=1)[1]
            current_branch = branch_ref.removeprefix("refs/heads/")
        elif line == "":
            flush()
            current_path = None
            current_branch = None
            current_head = None

    flush()

    if worktrees:
        first = worktrees[0]
        worktrees[0] = WorktreeInfo(
            path=first.path, branch=first.branch, head_commit=first.head_commit, is_root=True
        )

    return worktrees


def _porcelain_path(entry: str) -> str:
    # Renames are reported as "old -> new"; the new path is what exists on disk
    if " -> " in entry:
        entry = entry.split(" -> ", 1)[1]
    if entry.startswith('"') and entry.endswith('"'):
        entry = entry[1:-1]
    return entry


def parse_porcelain_status(output: str) -> StatusInfo:
    """Parse `git status --porcelain` (v1) into changed/untracked/conflicted paths."""
    changed: list[str] = []
    untracked: list[str] = []
    conflicted: list[str] = []

    for line in output.splitlines():
        if len(line) < 4:
            continue

        status_code = line[:2]
        path = _porcelain_path(line[3:])

        if status_code == "??":
            untracked.append(path)
        elif status_code == "!!":
            continue
        elif status_code in _UNMERGED_CODES:
            conflicted.append(path)
        else:
            changed.append(path)

    return StatusInfo(changed_paths=changed, untracked_paths=untracked, conflicted_paths=conflicted)


def parse_name_status(output: str) -> list[FileChange]:
    """Parse `git diff --name-status` output.

    Renames and copies carry two paths; the destination path is recorded.
    """
    changes: list[FileChange] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        status = parts[0][:1]
        path = parts[-1]
        changes.append(FileChange(path=path, status=status))
    return changes


def parse_hunk_ranges(diff_output: str) -> list[LineRange]:
    """Extract base-side line ranges from a `--unified=0` diff of one file.

    A pure insertion (old count 0) after line N is recorded as the range N..N so
    that an edit to the neighbouring line on the other branch still counts as
    touching it.
    """
    ranges: list[LineRange] = []
    for line in diff_output.splitlines():
        match = _HUNK_HEADER.match(line)
        if match is None:
            continue
        start = int(match.group(1))
        count = int(match.group(2)) if match.group(2) is not None else 1
        if count == 0:
            ranges.append(LineRange(start=start, end=start))
        else:
            ranges.append(LineRange(start=start, end=start + count - 1))
    return ranges


def parse_numstat_binary_paths(output: str) -> set[str]:
    """Return paths reported as binary (`-\\t-\\t<path>`) by `git diff --numstat`."""
    binary: set[str] = set()
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) >= 3 and parts[0] == "-" and parts[1] == "-":
            binary.add(parts[-1])
    return binary


def _conflict_path(kind: str, detail: str) -> str | None:
    match = _CONTENT_CONFLICT_PATH.search(detail)
    if match:
        return match.group(1).strip()
    if "delete" in kind:
        match = _DELETE_CONFLICT_PATH.match(detail)
        if match:
            return match.group(1).strip()
    match = _ADD_CONFLICT_PATH.search(detail)
    if match:
        return match.group(1).strip()
    return None


def parse_conflicted_paths(merge_output: str) -> list[str]:
    """Extract conflicted paths from the `CONFLICT (...)` lines git merge prints."""
    paths: list[str] = []
    for line in merge_output.splitlines():
        match = _CONFLICT_LINE.match(line.strip())
        if match is None:
            continue
        path = _conflict_path(match.group(1), match.group(2))
        if path is not None and path not in paths:
            paths.append(path)
    return paths


def is_conflict_output(merge_output: str) -> bool:
    """Recognize the text git prints when a merge stops on conflicts."""
    return (
        "CONFLICT" in merge_output
        or "Automatic merge failed" in merge_output
        or "fix conflicts" in merge_output
    )


def classify_merge_output(returncode: int, stdout: str, stderr: str) -> MergeResult:
    """Turn the raw result of `git merge` into a MergeResult.

    This is the single place that decides "is this a merge conflict" from text.
    """
    output = "\n".join(part for part in (stdout.strip(), stderr.strip()) if part)
    if returncode == 0:
        return MergeResult(success=True, conflicted=False, output=output)
    if is_conflict_output(output):
        return MergeResult(
            success=False,
            conflicted=True,
            conflicted_paths=parse_conflicted_paths(output),
            output=output,
        )
    return MergeResult(success=False, conflicted=False, output=output)


# Unit separator between the fields of the --format strings below
FIELD_SEP = "\x1f"
COMMIT_INFO_FORMAT = "%H%x1f%aI%x1f%an%x1f%s"
REFLOG_FORMAT = "%H%x1f%gd%x1f%gs%x1f%aI%x1f%an%x1f%s"
STASH_FORMAT = "%H%x1f%gd%x1f%aI%x1f%gs"


def _fields(line: str, count: int) -> list[str] | None:
    parts = line.split(FIELD_SEP, count - 1)
    if len(parts) != count:
        return None
    return parts


def parse_commit_info(output: str) -> CommitInfo | None:
    """Parse `git show -s --format=COMMIT_INFO_FORMAT` for one commit."""
    for line in output.splitlines():
        parts = _fields(line, 4)
        if parts is None:
            continue
        commit, authored_at, author, subject = parts
        return CommitInfo(
            commit=commit,
            authored_at=datetime.fromisoformat(authored_at),
            author=author,
            subject=subject,
        )
    return None


def parse_reflog(output: str) -> list[ReflogEntry]:
    """Parse `git log -g --format=REFLOG_FORMAT`. Malformed lines are skipped."""
    entries: list[ReflogEntry] = []
    for line in output.splitlines():
        parts = _fields(line, 6)
        if parts is None:
            continue
        commit, selector, action, authored_at, author, subject = parts
        entries.append(
            ReflogEntry(
                commit=commit,
                selector=selector,
                action=action,
                authored_at=datetime.fromisoformat(authored_at),
                author=author,
                subject=subject,
            )
        )
    return entries


def parse_stash_list(output: str) -> list[StashEntry]:
    """Parse `git stash list --format=STASH_FORMAT`."""
    entries: list[StashEntry] = []
    for line in output.splitlines():
        parts = _fields(line, 4)
        if parts is None:
            continue
        commit, ref, created_at, message = parts
        entries.append(
            StashEntry(
                commit=commit,
                ref=ref,
                created_at=datetime.fromisoformat(created_at),
                message=message,
            )
        )
    return entries
