"""Init command - write repository config and ignore tool artifacts."""

from pathlib import Path

import click

from wtt.cli.config import CONFIG_FILE_NAME, save_config
from wtt.cli.ensure import Ensure
from wtt.cli.output import user_output
from wtt.core.context import WttContext
from wtt.core.repo_discovery import ensure_worktrees_dir

GITIGNORE_FILE = ".gitignore"


def ensure_gitignore_entries(repo_root: Path, entries: list[str]) -> list[str]:
    """Append entries missing from .gitignore and return the ones added."""
    gitignore = repo_root / GITIGNORE_FILE
    existing = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    present = {line.strip() for line in existing.splitlines()}

    added = [entry for entry in entries if entry not in present]
    if not added:
        return []

    content = existing
    if content and not content.endswith("\n"):
        content += "\n"
    content += "\n".join(added) + "\n"
    gitignore.write_text(content, encoding="utf-8")
    return added


@click.command("init")
@click.pass_obj
def init_cmd(ctx: WttContext) -> None:
    """Set up worktree management for this repository.

    Writes .worktree-config.toml (keeping existing values), creates the
    worktrees directory and adds both to .gitignore.
    """
    repo = Ensure.in_repo(ctx)

    cfg_path = save_config(repo.root, ctx.config)
    user_output(click.style("✓", fg="green") + f" Wrote {cfg_path.name}")

    worktrees_dir = ensure_worktrees_dir(repo)
    user_output(click.style("✓", fg="green") + f" Worktrees directory: {worktrees_dir}")

    base_dir = worktrees_dir.relative_to(repo.root).as_posix()
    added = ensure_gitignore_entries(repo.root, [f"{base_dir}/", CONFIG_FILE_NAME])
    if added:
        user_output(click.style("✓", fg="green") + f" Added to .gitignore: {', '.join(added)}")
    else:
        user_output(".gitignore already up to date")
