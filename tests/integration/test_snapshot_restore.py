"""Snapshot capture and restore on a real checkout."""

from pathlib import Path

from tests.test_utils.git_repo import commit_file, init_repo, run_git
from wtt.core.git.real import RealGit
from wtt.core.recovery import snapshot_id_for_stash
from wtt.core.repo_discovery import RepoContext, discover_repo_or_sentinel
from wtt.core.snapshots import SnapshotStore
from wtt.core.time.real import RealTime


def _store(repo: Path) -> SnapshotStore:
    repo_ctx = discover_repo_or_sentinel(repo)
    assert isinstance(repo_ctx, RepoContext)
    return SnapshotStore(RealGit(), repo_ctx, RealTime())


def test_restore_brings_back_commit_and_uncommitted_work(repo: Path) -> None:
    snapshot_commit = run_git(repo, "rev-parse", "HEAD").strip()
    (repo / "README.md").write_text("# edited\n", encoding="utf-8")
    (repo / "notes.txt").write_text("scratch\n", encoding="utf-8")
    store = _store(repo)

    snapshot = store.create_snapshot("manual")

    assert snapshot.commit == snapshot_commit
    assert snapshot.branch == "main"
    assert snapshot.saved_state.has_uncommitted_changes
    assert snapshot.saved_state.untracked_files == ["notes.txt"]

    run_git(repo, "reset", "--hard")
    (repo / "notes.txt").unlink()
    commit_file(repo, "later.txt", "later\n", "Later work")

    store.restore(snapshot.id, keep_changes=False)

    assert run_git(repo, "rev-parse", "HEAD").strip() == snapshot_commit
    assert (repo / "README.md").read_text(encoding="utf-8") == "# edited\n"
    assert (repo / "notes.txt").read_text(encoding="utf-8") == "scratch\n"
    assert not (repo / "later.txt").exists()


def test_snapshot_of_clean_checkout_has_no_saved_state(repo: Path) -> None:
    snapshot = _store(repo).create_snapshot("manual")

    assert snapshot.saved_state.stash_commit is None
    assert not snapshot.saved_state.has_uncommitted_changes


def test_restore_keep_changes_moves_branch_and_keeps_working_tree(repo: Path) -> None:
    snapshot_commit = run_git(repo, "rev-parse", "HEAD").strip()
    store = _store(repo)
    snapshot = store.create_snapshot("manual")
    commit_file(repo, "later.txt", "later\n", "Later work")
    (repo / "README.md").write_text("# still editing\n", encoding="utf-8")

    store.restore(snapshot.id, keep_changes=True)

    assert run_git(repo, "rev-parse", "HEAD").strip() == snapshot_commit
    assert run_git(repo, "branch", "--show-current").strip() == "main"
    assert (repo / "README.md").read_text(encoding="utf-8") == "# still editing\n"
    assert (repo / "later.txt").read_text(encoding="utf-8") == "later\n"


def test_conflicted_resolution_is_copied_and_restored(repo: Path) -> None:
    run_git(repo, "checkout", "-b", "feature")
    commit_file(repo, "README.md", "# feature\n", "Feature edit")
    run_git(repo, "checkout", "main")
    snapshot_commit = commit_file(repo, "README.md", "# main\n", "Main edit")
    run_git(repo, "merge", "feature", check=False)
    (repo / "README.md").write_text("# resolved\n", encoding="utf-8")
    store = _store(repo)

    snapshot = store.create_snapshot("merge-abort")

    assert snapshot.saved_state.working_files == ["README.md"]
    assert snapshot.saved_state.captured

    run_git(repo, "merge", "--abort")
    store.restore(snapshot.id, keep_changes=False)

    assert run_git(repo, "rev-parse", "HEAD").strip() == snapshot_commit
    assert (repo / "README.md").read_text(encoding="utf-8") == "# resolved\n"


def test_repeated_snapshots_skip_unignored_backups(tmp_path: Path) -> None:
    root = init_repo(tmp_path.resolve() / "unignored")
    (root / "notes.txt").write_text("scratch\n", encoding="utf-8")
    store = _store(root)

    snapshots = [store.create_snapshot("manual") for _ in range(3)]

    for snapshot in snapshots:
        assert snapshot.saved_state.untracked_files == ["notes.txt"]
    assert not list(store.backups_dir.glob("*/untracked/.worktrees"))


def test_snapshot_stash_is_listed_under_its_snapshot(repo: Path) -> None:
    (repo / "README.md").write_text("# edited\n", encoding="utf-8")
    snapshot = _store(repo).create_snapshot("manual")

    stashes = RealGit().list_stashes(repo)

    assert [s.commit for s in stashes] == [snapshot.saved_state.stash_commit]
    assert snapshot_id_for_stash(stashes[0]) == snapshot.id
