import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomlkit

CONFIG_FILE_NAME = ".worktree-config.toml"


@dataclass(frozen=True)
class PortRange:
    """A contiguous block of ports reserved for one kind of dev server."""

    start: int
    count: int

    @property
    def end(self) -> int:
        return self.start + self.count - 1


def _default_port_ranges() -> dict[str, PortRange]:
    return {
        "vite": PortRange(start=3000, count=10),
        "storybook": PortRange(start=6006, count=10),
        "custom": PortRange(start=8000, count=10),
    }


@dataclass(frozen=True)
class LoadedConfig:
    """In-memory representation of `.worktree-config.toml`."""

    main_branch: str = "main"
    auto_cleanup: bool = False
    base_dir: str = ".worktrees"
    name_pattern: str = "{branch}"
    port_ranges: dict[str, PortRange] = field(default_factory=_default_port_ranges)

    def worktree_name_for(self, branch: str) -> str:
        """Render name_pattern for a branch. Slashes become dashes."""
        return self.name_pattern.format(branch=branch.replace("/", "-"))


def load_config(repo_root: Path) -> LoadedConfig:
    """Load `.worktree-config.toml` from the repo root if present; otherwise return defaults.

    Example config:
      main_branch = "main"
      auto_cleanup = false

      [worktrees]
      base_dir = ".worktrees"
      name_pattern = "{branch}"

      [ports.vite]
      start = 3000
      count = 10
    """

    cfg_path = repo_root / CONFIG_FILE_NAME
    if not cfg_path.exists():
        return LoadedConfig()

    data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    defaults = LoadedConfig()

    worktrees = data.get("worktrees", {})
    port_ranges = dict(defaults.port_ranges)
    for service, spec in data.get("ports", {}).items():
        port_ranges[str(service)] = PortRange(start=int(spec["start"]), count=int(spec["count"]))

    return LoadedConfig(
        main_branch=str(data.get("main_branch", defaults.main_branch)),
        auto_cleanup=bool(data.get("auto_cleanup", defaults.auto_cleanup)),
        base_dir=str(worktrees.get("base_dir", defaults.base_dir)),
        name_pattern=str(worktrees.get("name_pattern", defaults.name_pattern)),
        port_ranges=port_ranges,
    )


def save_config(repo_root: Path, config: LoadedConfig) -> Path:
    """Save LoadedConfig to `.worktree-config.toml`, preserving existing formatting.

    Values already present in the file are updated in place so that comments
    written by hand survive.
    """
    cfg_path = repo_root / CONFIG_FILE_NAME

    if cfg_path.exists():
        doc = tomlkit.parse(cfg_path.read_text(encoding="utf-8"))
    else:
        doc = tomlkit.document()
        doc.add(tomlkit.comment("wt configuration"))

    doc["main_branch"] = config.main_branch
    doc["auto_cleanup"] = config.auto_cleanup

    if "worktrees" not in doc:
        doc["worktrees"] = tomlkit.table()
    doc["worktrees"]["base_dir"] = config.base_dir  # type: ignore[index]
    doc["worktrees"]["name_pattern"] = config.name_pattern  # type: ignore[index]

    if "ports" not in doc:
        doc["ports"] = tomlkit.table(is_super_table=True)
    for service, port_range in config.port_ranges.items():
        service_table = tomlkit.table()
        service_table["start"] = port_range.start
        service_table["count"] = port_range.count
        doc["ports"][service] = service_table  # type: ignore[index]

    cfg_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    return cfg_path
