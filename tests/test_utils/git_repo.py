"""Helpers for integration tests that drive a real git binary."""

import subprocess
from pathlib import Path


def run_git(cwd: Path, *args: str, check: bool = True) -> str:
    """Run git in cwd and return stdout. Fails the test on a non-zero exit unless check=False."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=check,
    )
    return result.stdout


def init_repo(path: Path) -> Path:
    """Create a repository on `main` with one commit containing README.md."""
    path.mkdir(parents=True, exist_ok=True)
    run_git(path, "init", "-b", "main")
    run_git(path, "config", "user.email", "test@example.com")
    run_git(path, "config", "user.name", "Test User")
    run_git(path, "config", "commit.gpgsign", "false")
    commit_file(path, "README.md", "# test\n", "Initial commit")
    return path


def commit_file(cwd: Path, relative: str, content: str, message: str) -> str:
    """Write a file, commit it, and return the new commit sha."""
    target = cwd / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    run_git(cwd, "add", relative)
    run_git(cwd, "commit", "-m", message)
    return run_git(cwd, "rev-parse", "HEAD").strip()


def add_worktree(repo: Path, path: Path, branch: str) -> Path:
    """Create a linked worktree on a new branch from HEAD."""
    run_git(repo, "worktree", "add", "-b", branch, str(path))
    return path
