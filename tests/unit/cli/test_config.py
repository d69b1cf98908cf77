"""Tests for loading and saving `.worktree-config.toml`."""

from pathlib import Path

from wtt.cli.config import CONFIG_FILE_NAME, LoadedConfig, PortRange, load_config, save_config


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config == LoadedConfig()
    assert config.main_branch == "main"
    assert not config.auto_cleanup
    assert config.base_dir == ".worktrees"
    assert config.port_ranges["vite"] == PortRange(start=3000, count=10)


def test_load_reads_all_sections(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text(
        'main_branch = "trunk"\n'
        "auto_cleanup = true\n"
        "\n"
        "[worktrees]\n"
        'base_dir = "wt"\n'
        'name_pattern = "wt-{branch}"\n'
        "\n"
        "[ports.api]\n"
        "start = 9000\n"
        "count = 5\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.main_branch == "trunk"
    assert config.auto_cleanup
    assert config.base_dir == "wt"
    assert config.name_pattern == "wt-{branch}"
    assert config.port_ranges["api"] == PortRange(start=9000, count=5)
    assert "vite" in config.port_ranges


def test_save_then_load(tmp_path: Path) -> None:
    config = LoadedConfig(main_branch="develop", auto_cleanup=True, base_dir="trees")

    save_config(tmp_path, config)

    assert load_config(tmp_path) == config


def test_save_preserves_comments(tmp_path: Path) -> None:
    path = tmp_path / CONFIG_FILE_NAME
    path.write_text('# team settings\nmain_branch = "main"\n', encoding="utf-8")

    save_config(tmp_path, LoadedConfig(main_branch="trunk"))

    content = path.read_text(encoding="utf-8")
    assert "# team settings" in content
    assert 'main_branch = "trunk"' in content


def test_worktree_name_for_replaces_slashes() -> None:
    assert LoadedConfig().worktree_name_for("feature/login") == "feature-login"
    assert LoadedConfig(name_pattern="wt-{branch}").worktree_name_for("fix") == "wt-fix"


def test_port_range_end() -> None:
    assert PortRange(start=3000, count=10).end == 3009
