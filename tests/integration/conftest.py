import shutil
from pathlib import Path

import pytest

from tests.test_utils.git_repo import commit_file, init_repo


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    if shutil.which("git") is not None:
        return
    skip = pytest.mark.skip(reason="git executable not found")
    for item in items:
        item.add_marker(skip)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A repository on `main` that already ignores the worktrees directory."""
    root = init_repo(tmp_path.resolve() / "repo")
    commit_file(root, ".gitignore", ".worktrees/\n.worktree-config.toml\n", "Ignore wt files")
    return root
