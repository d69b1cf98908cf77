"""Git worktree manager with a guarded merge pipeline."""

__version__ = "0.3.0"
