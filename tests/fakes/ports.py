"""Fake PortRegistry implementation for testing."""

from wtt.cli.config import PortRange
from wtt.core.ports import PortRegistry, find_available_port


class FakePortRegistry(PortRegistry):
    """In-memory port registry.

    State is provided via constructor. Releases are recorded for assertions.
    """

    def __init__(
        self,
        *,
        assignments: dict[str, dict[str, int]] | None = None,
        assign_raises: Exception | None = None,
        release_raises: Exception | None = None,
    ) -> None:
        """Create FakePortRegistry.

        Args:
            assignments: Mapping of worktree name -> {service: port}
            assign_raises: Exception to raise when assign_ports() is called
            release_raises: Exception to raise when release_ports() is called
        """
        self._assignments = {name: dict(ports) for name, ports in (assignments or {}).items()}
        self._assign_raises = assign_raises
        self._release_raises = release_raises
        self._released: list[str] = []

    def assign_ports(self, worktree_name: str, port_ranges: dict[str, PortRange]) -> dict[str, int]:
        if self._assign_raises is not None:
            raise self._assign_raises
        used = {
            port
            for name, ports in self._assignments.items()
            if name != worktree_name
            for port in ports.values()
        }
        assigned: dict[str, int] = {}
        for service, port_range in port_ranges.items():
            port = find_available_port(port_range, used)
            assigned[service] = port
            used.add(port)
        self._assignments[worktree_name] = assigned
        return dict(assigned)

    def release_ports(self, worktree_name: str) -> None:
        if self._release_raises is not None:
            raise self._release_raises
        self._released.append(worktree_name)
        self._assignments.pop(worktree_name, None)

    def get_ports(self, worktree_name: str) -> dict[str, int] | None:
        ports = self._assignments.get(worktree_name)
        return dict(ports) if ports is not None else None

    def all_ports(self) -> dict[str, dict[str, int]]:
        return {name: dict(ports) for name, ports in self._assignments.items()}

    @property
    def released(self) -> list[str]:
        """Read-only access to released worktree names for test assertions."""
        return self._released
