from wtt.core.time.abc import Time
from wtt.core.time.real import RealTime

__all__ = ["RealTime", "Time"]
