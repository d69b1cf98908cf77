"""Safety snapshots and merge-state records.

A snapshot captures enough of a checkout to put it back: the branch and commit,
a stash commit holding uncommitted tracked changes (or plain copies of them
when git cannot stash, as during a conflicted merge), and copies of untracked
files. Snapshots are written under `<worktrees_dir>/.backups/<id>/` and are
never modified after creation.

Layout:
    .backups/
      merge-state.json
      merge-2025-01-01T12-00-00-000000Z/
        snapshot.json
        untracked/<path>
        working/<path>
"""

import json
import logging
import shutil
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from wtt.core.errors import EngineError, SnapshotNotFound, SnapshotPersistenceFailed
from wtt.core.git.abc import Git
from wtt.core.repo_discovery import RepoContext
from wtt.core.time.abc import Time
from wtt.core.validation import is_tool_artifact

logger = logging.getLogger(__name__)

SNAPSHOT_FILE = "snapshot.json"
UNTRACKED_DIR = "untracked"
WORKING_DIR = "working"
MERGE_STATE_FILE = "merge-state.json"
STASH_MESSAGE_PREFIX = "wt snapshot "
DEFAULT_MAX_AGE_DAYS = 30


@dataclass(frozen=True)
class SavedState:
    """Uncommitted work captured alongside a snapshot."""

    stash_commit: str | None = None
    untracked_files: list[str] = field(default_factory=list)
    working_files: list[str] = field(default_factory=list)
    has_uncommitted_changes: bool = False

    @property
    def captured(self) -> bool:
        """True when uncommitted tracked changes can be put back from this snapshot."""
        return self.stash_commit is not None or bool(self.working_files)


@dataclass(frozen=True)
class Snapshot:
    """A recoverable record of a checkout taken before a destructive operation."""

    id: str
    operation: str
    created_at: datetime
    branch: str | None
    commit: str | None
    working_directory: Path
    saved_state: SavedState
    metadata: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["working_directory"] = str(self.working_directory)
        return data

    @staticmethod
    def from_json(data: dict[str, Any]) -> "Snapshot":
        saved = data.get("saved_state") or {}
        return Snapshot(
            id=str(data["id"]),
            operation=str(data["operation"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            branch=data.get("branch"),
            commit=data.get("commit"),
            working_directory=Path(data["working_directory"]),
            saved_state=SavedState(
                stash_commit=saved.get("stash_commit"),
                untracked_files=[str(p) for p in saved.get("untracked_files", [])],
                working_files=[str(p) for p in saved.get("working_files", [])],
                has_uncommitted_changes=bool(saved.get("has_uncommitted_changes", False)),
            ),
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
        )


@dataclass(frozen=True)
class MergeState:
    """What was being merged when a merge stopped on conflicts."""

    worktree_name: str
    branch_name: str
    main_branch: str
    conflicted: bool
    timestamp: datetime
    conflicted_paths: list[str] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @staticmethod
    def from_json(data: dict[str, Any]) -> "MergeState":
        return MergeState(
            worktree_name=str(data["worktree_name"]),
            branch_name=str(data["branch_name"]),
            main_branch=str(data["main_branch"]),
            conflicted=bool(data["conflicted"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            conflicted_paths=[str(p) for p in data.get("conflicted_paths", [])],
        )


def make_snapshot_id(operation: str, created_at: datetime) -> str:
    """Build a filesystem-safe id that sorts chronologically within an operation."""
    return f"{operation}-{created_at.strftime('%Y-%m-%dT%H-%M-%S-%fZ')}"


class SnapshotStore:
    """Creates, lists, restores and prunes snapshots of the main checkout."""

    def __init__(self, git: Git, repo: RepoContext, time: Time) -> None:
        self._git = git
        self._repo = repo
        self._time = time

    @property
    def backups_dir(self) -> Path:
        return self._repo.backups_dir

    def _snapshot_dir(self, snapshot_id: str) -> Path:
        return self.backups_dir / snapshot_id

    def _unique_id(self, operation: str, created_at: datetime) -> str:
        base_id = make_snapshot_id(operation, created_at)
        snapshot_id = base_id
        suffix = 2
        while self._snapshot_dir(snapshot_id).exists():
            snapshot_id = f"{base_id}-{suffix}"
            suffix += 1
        return snapshot_id

    def _capture_uncommitted(self, cwd: Path, snapshot_id: str, snapshot_dir: Path) -> SavedState:
        """Best-effort capture of uncommitted work. Failures are logged, not raised."""
        try:
            status = self._git.get_status(cwd)
        except EngineError as e:
            logger.warning("Could not read status for snapshot %s: %s", snapshot_id, e)
            return SavedState()

        has_changes = bool(status.changed_paths or status.conflicted_paths)

        stash_commit: str | None = None
        if has_changes:
            try:
                stash_commit = self._git.create_stash(cwd, STASH_MESSAGE_PREFIX + snapshot_id)
            except EngineError as e:
                logger.warning("Could not stash uncommitted changes for %s: %s", snapshot_id, e)

        # Unmerged paths cannot be stashed; keep plain copies of the files instead
        working: list[str] = []
        if has_changes and stash_commit is None:
            working = self._copy_files(
                cwd, [*status.conflicted_paths, *status.changed_paths], snapshot_dir / WORKING_DIR
            )

        # Skip the tool's own files, earlier snapshots included
        untracked = [p for p in status.untracked_paths if not is_tool_artifact(p, self._repo)]
        copied = self._copy_files(cwd, untracked, snapshot_dir / UNTRACKED_DIR)

        return SavedState(
            stash_commit=stash_commit,
            untracked_files=copied,
            working_files=working,
            has_uncommitted_changes=has_changes or bool(copied),
        )

    def _copy_files(self, cwd: Path, paths: list[str], target_dir: Path) -> list[str]:
        copied: list[str] = []
        for relative in dict.fromkeys(paths):
            source = cwd / relative
            if not source.is_file():
                continue
            target = target_dir / relative
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
            except OSError as e:
                logger.warning("Could not copy %s into snapshot: %s", relative, e)
                continue
            copied.append(relative)
        return copied

    def create_snapshot(
        self,
        operation: str,
        metadata: dict[str, str] | None = None,
        *,
        cwd: Path | None = None,
    ) -> Snapshot:
        """Capture the checkout at cwd (default: the main checkout).

        Raises:
            SnapshotPersistenceFailed: If the snapshot directory or record cannot
                be written. The partial directory is removed.
        """
        working_directory = cwd if cwd is not None else self._repo.root
        created_at = self._time.now()
        snapshot_id = self._unique_id(operation, created_at)
        snapshot_dir = self._snapshot_dir(snapshot_id)

        try:
            snapshot_dir.mkdir(parents=True)
        except OSError as e:
            raise SnapshotPersistenceFailed(
                f"Could not create snapshot directory {snapshot_dir}: {e}"
            ) from e

        try:
            saved_state = self._capture_uncommitted(working_directory, snapshot_id, snapshot_dir)
            snapshot = Snapshot(
                id=snapshot_id,
                operation=operation,
                created_at=created_at,
                branch=self._git.get_current_branch(working_directory),
                commit=self._git.get_head_commit(working_directory),
                working_directory=working_directory,
                saved_state=saved_state,
                metadata=dict(metadata or {}),
            )
            (snapshot_dir / SNAPSHOT_FILE).write_text(
                json.dumps(snapshot.to_json(), indent=2) + "\n", encoding="utf-8"
            )
        except (OSError, EngineError) as e:
            shutil.rmtree(snapshot_dir, ignore_errors=True)
            raise SnapshotPersistenceFailed(f"Could not write snapshot {snapshot_id}: {e}") from e

        logger.debug("Created snapshot %s in %s", snapshot_id, snapshot_dir)
        return snapshot

    def list_snapshots(self) -> list[Snapshot]:
        """Return all readable snapshots, newest first."""
        if not self.backups_dir.is_dir():
            return []

        snapshots: list[Snapshot] = []
        for entry in self.backups_dir.iterdir():
            record = entry / SNAPSHOT_FILE
            if not record.is_file():
                continue
            try:
                snapshots.append(Snapshot.from_json(json.loads(record.read_text(encoding="utf-8"))))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping unreadable snapshot %s: %s", entry.name, e)

        return sorted(snapshots, key=lambda s: s.created_at, reverse=True)

    def get_snapshot(self, snapshot_id: str) -> Snapshot:
        """Find a snapshot by exact id or unique id prefix.

        Raises:
            SnapshotNotFound: If nothing matches or the prefix is ambiguous
        """
        snapshots = self.list_snapshots()
        for snapshot in snapshots:
            if snapshot.id == snapshot_id:
                return snapshot

        matches = [s for s in snapshots if s.id.startswith(snapshot_id)]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            raise SnapshotNotFound(f"Snapshot '{snapshot_id}' not found")

        candidates = ", ".join(s.id for s in matches[:5])
        raise SnapshotNotFound(f"Snapshot id '{snapshot_id}' is ambiguous: {candidates}")

    def latest_snapshot(self) -> Snapshot | None:
        snapshots = self.list_snapshots()
        if not snapshots:
            return None
        return snapshots[0]

    def _copy_back(self, snapshot: Snapshot, subdir: str, paths: list[str]) -> None:
        snapshot_dir = self._snapshot_dir(snapshot.id)
        for relative in paths:
            source = snapshot_dir / subdir / relative
            if not source.is_file():
                logger.warning("Copy of %s missing from snapshot %s", relative, snapshot.id)
                continue
            target = snapshot.working_directory / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)

    def restore(self, snapshot_id: str, *, keep_changes: bool) -> Snapshot:
        """Put the captured checkout back to the snapshot's branch and commit.

        With keep_changes=False the working tree is reset hard to the captured
        commit and the captured uncommitted work is re-applied. With
        keep_changes=True only the branch position moves; current working
        changes stay.
        """
        snapshot = self.get_snapshot(snapshot_id)
        cwd = snapshot.working_directory

        if snapshot.commit is None:
            raise SnapshotNotFound(f"Snapshot '{snapshot.id}' has no commit to restore")

        if not keep_changes:
            # Discards an in-progress merge and any conflicted files so checkout can run
            self._git.reset(cwd, "HEAD", mode="hard")

        if snapshot.branch is not None:
            if self._git.get_current_branch(cwd) != snapshot.branch:
                self._git.checkout_branch(cwd, snapshot.branch)
        else:
            self._git.checkout_detached(cwd, snapshot.commit)

        if keep_changes:
            self._git.reset(cwd, snapshot.commit, mode="soft")
            logger.debug("Restored %s keeping working changes", snapshot.id)
            return snapshot

        self._git.reset(cwd, snapshot.commit, mode="hard")
        if snapshot.saved_state.stash_commit is not None:
            self._git.apply_stash(cwd, snapshot.saved_state.stash_commit)
        self._copy_back(snapshot, WORKING_DIR, snapshot.saved_state.working_files)
        self._copy_back(snapshot, UNTRACKED_DIR, snapshot.saved_state.untracked_files)

        logger.debug("Restored %s to %s", snapshot.id, snapshot.commit)
        return snapshot

    def delete_snapshot(self, snapshot_id: str) -> Snapshot:
        """Remove a snapshot directory. Captured commits stay reachable through git."""
        snapshot = self.get_snapshot(snapshot_id)
        shutil.rmtree(self._snapshot_dir(snapshot.id))
        logger.debug("Deleted snapshot %s", snapshot.id)
        return snapshot

    def clean_old_snapshots(self, max_age_days: int = DEFAULT_MAX_AGE_DAYS) -> list[Snapshot]:
        """Delete snapshots older than max_age_days and return them."""
        cutoff = self._time.now() - timedelta(days=max_age_days)
        removed: list[Snapshot] = []
        for snapshot in self.list_snapshots():
            if snapshot.created_at < cutoff:
                shutil.rmtree(self._snapshot_dir(snapshot.id))
                removed.append(snapshot)
        return removed

    @property
    def merge_state_path(self) -> Path:
        return self.backups_dir / MERGE_STATE_FILE

    def save_merge_state(self, state: MergeState) -> None:
        """Persist the merge state, replacing any previous one.

        Raises:
            SnapshotPersistenceFailed: If the record cannot be written
        """
        try:
            self.backups_dir.mkdir(parents=True, exist_ok=True)
            self.merge_state_path.write_text(
                json.dumps(state.to_json(), indent=2) + "\n", encoding="utf-8"
            )
        except OSError as e:
            raise SnapshotPersistenceFailed(
                f"Could not write merge state {self.merge_state_path}: {e}"
            ) from e

    def load_merge_state(self) -> MergeState | None:
        if not self.merge_state_path.is_file():
            return None
        try:
            data = json.loads(self.merge_state_path.read_text(encoding="utf-8"))
            return MergeState.from_json(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable merge state %s: %s", self.merge_state_path, e)
            return None

    def clear_merge_state(self) -> None:
        self.merge_state_path.unlink(missing_ok=True)
