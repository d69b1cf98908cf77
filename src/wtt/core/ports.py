"""Port reservation for worktrees.

Each managed worktree gets one port per configured service so that dev servers
from parallel worktrees never collide. Assignments are persisted in
`<worktrees_dir>/.port-map.json`:

    {
      "feature-x": {"vite": 3001, "storybook": 6007, "created": "2025-01-01T00:00:00+00:00"}
    }
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from wtt.cli.config import PortRange
from wtt.core.errors import PortAllocationError
from wtt.core.time.abc import Time

logger = logging.getLogger(__name__)

PORT_MAP_FILE = ".port-map.json"
_CREATED_KEY = "created"


class PortRegistry(ABC):
    """Abstract interface for per-worktree port reservations."""

    @abstractmethod
    def assign_ports(self, worktree_name: str, port_ranges: dict[str, PortRange]) -> dict[str, int]:
        """Reserve one free port per service for a worktree.

        Raises:
            PortAllocationError: If a range has no free port left
        """
        ...

    @abstractmethod
    def release_ports(self, worktree_name: str) -> None:
        """Release every port held by a worktree. Unknown names are ignored."""
        ...

    @abstractmethod
    def get_ports(self, worktree_name: str) -> dict[str, int] | None:
        """Get a worktree's ports, or None when it has no reservation."""
        ...

    @abstractmethod
    def all_ports(self) -> dict[str, dict[str, int]]:
        """Get the reservations of every worktree."""
        ...


def find_available_port(port_range: PortRange, used: set[int]) -> int:
    for port in range(port_range.start, port_range.start + port_range.count):
        if port not in used:
            return port
    raise PortAllocationError(f"No available ports in range {port_range.start}-{port_range.end}")


def format_ports(ports: dict[str, int] | None) -> str:
    """Render ports as `service:port` pairs for display."""
    if not ports:
        return "No ports assigned"
    return " ".join(f"{service}:{port}" for service, port in ports.items())


class JsonPortRegistry(PortRegistry):
    """Port registry persisted as a JSON file in the worktrees directory."""

    def __init__(self, worktrees_dir: Path, time: Time) -> None:
        self._path = worktrees_dir / PORT_MAP_FILE
        self._time = time

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, dict[str, int | str]]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise PortAllocationError(f"Port map at {self._path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise PortAllocationError(f"Port map at {self._path} must be a JSON object")
        return data

    def _save(self, data: dict[str, dict[str, int | str]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")

    @staticmethod
    def _service_ports(entry: dict[str, int | str]) -> dict[str, int]:
        return {
            key: value
            for key, value in entry.items()
            if key != _CREATED_KEY and isinstance(value, int)
        }

    def assign_ports(self, worktree_name: str, port_ranges: dict[str, PortRange]) -> dict[str, int]:
        data = self._load()
        used = {
            port
            for name, entry in data.items()
            if name != worktree_name
            for port in self._service_ports(entry).values()
        }

        assignments: dict[str, int] = {}
        for service, port_range in port_ranges.items():
            port = find_available_port(port_range, used)
            assignments[service] = port
            used.add(port)

        data[worktree_name] = {**assignments, _CREATED_KEY: self._time.now().isoformat()}
        self._save(data)
        logger.debug("Assigned ports for %s: %s", worktree_name, assignments)
        return assignments

    def release_ports(self, worktree_name: str) -> None:
        data = self._load()
        if worktree_name not in data:
            return
        del data[worktree_name]
        self._save(data)
        logger.debug("Released ports for %s", worktree_name)

    def get_ports(self, worktree_name: str) -> dict[str, int] | None:
        entry = self._load().get(worktree_name)
        if entry is None:
            return None
        return self._service_ports(entry)

    def all_ports(self) -> dict[str, dict[str, int]]:
        return {name: self._service_ports(entry) for name, entry in self._load().items()}
