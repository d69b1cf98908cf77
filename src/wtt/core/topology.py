"""Repository topology resolution.

Finds the authoritative main checkout for any directory inside a repository,
including directories inside linked worktrees. This reads `.git` entries from
the filesystem only and never invokes git.

Layouts handled:
- `<dir>/.git` is a directory: `<dir>` is a main checkout
- `<dir>/.git` is a file containing `gitdir: <path>`: `<dir>` is a linked
  worktree whose metadata lives at `<path>`, normally
  `<main>/.git/worktrees/<name>`
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from wtt.core.errors import NotARepository

logger = logging.getLogger(__name__)

GITDIR_PREFIX = "gitdir:"


@dataclass(frozen=True)
class RepositoryTopology:
    """Where a working directory sits relative to its repository.

    main_root is always the working path of a main checkout, never a linked
    worktree, no matter where resolution started.
    """

    working_path: Path
    git_metadata_path: Path
    is_linked_worktree: bool
    main_root: Path


def normalize_path(path: Path) -> str:
    """Return a comparison key for a path.

    Separators are unified and, on hosts with case-insensitive filesystems
    (Windows, macOS), the key is case-folded.
    """
    key = os.path.normpath(str(path)).replace("\\", "/")
    if sys.platform in ("win32", "darwin"):
        return key.casefold()
    return key


def same_path(a: Path, b: Path) -> bool:
    return normalize_path(a.resolve()) == normalize_path(b.resolve())


def is_within(path: Path, parent: Path) -> bool:
    """Check whether path equals parent or lies below it."""
    path_key = normalize_path(path.resolve())
    parent_key = normalize_path(parent.resolve())
    return path_key == parent_key or path_key.startswith(parent_key.rstrip("/") + "/")


def _read_gitdir_pointer(git_file: Path) -> Path:
    content = git_file.read_text(encoding="utf-8").strip()
    for line in content.splitlines():
        if line.startswith(GITDIR_PREFIX):
            target = Path(line[len(GITDIR_PREFIX) :].strip())
            if not target.is_absolute():
                target = git_file.parent / target
            return Path(os.path.normpath(target))
    raise NotARepository(
        git_file.parent, f"Malformed .git file at {git_file}: missing 'gitdir:' line"
    )


def _main_root_from_metadata(metadata_dir: Path) -> Path:
    """Find the main checkout that owns a linked worktree's metadata dir."""
    commondir_file = metadata_dir / "commondir"
    if commondir_file.is_file():
        common = Path(commondir_file.read_text(encoding="utf-8").strip())
        if not common.is_absolute():
            common = metadata_dir / common
        common = Path(os.path.normpath(common))
        logger.debug("Resolved common dir %s via %s", common, commondir_file)
        return common.parent

    # <store>/worktrees/<name>
    if metadata_dir.parent.name == "worktrees":
        return metadata_dir.parent.parent.parent

    return metadata_dir.parent


def resolve(start_dir: Path) -> RepositoryTopology:
    """Walk upward from start_dir to find the repository and its main checkout.

    Args:
        start_dir: Any directory inside a main checkout or a linked worktree

    Returns:
        RepositoryTopology for the nearest enclosing checkout

    Raises:
        NotARepository: If no git metadata is found up to the filesystem root, or
            if a linked worktree points at metadata that no longer exists
    """
    current = start_dir.resolve()

    for directory in [current, *current.parents]:
        git_entry = directory / ".git"

        if git_entry.is_dir():
            logger.debug("Found main checkout at %s", directory)
            return RepositoryTopology(
                working_path=directory,
                git_metadata_path=git_entry,
                is_linked_worktree=False,
                main_root=directory,
            )

        if git_entry.is_file():
            metadata_dir = _read_gitdir_pointer(git_entry)
            if not metadata_dir.is_dir():
                raise NotARepository(
                    start_dir,
                    f"Stale worktree at {directory}: gitdir points to missing {metadata_dir}",
                )
            main_root = _main_root_from_metadata(metadata_dir)
            logger.debug("Found linked worktree at %s (main checkout %s)", directory, main_root)
            return RepositoryTopology(
                working_path=directory,
                git_metadata_path=metadata_dir,
                is_linked_worktree=True,
                main_root=main_root.resolve(),
            )

    raise NotARepository(start_dir)
