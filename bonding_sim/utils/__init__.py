"""bonding_sim.utils - Utilities (logging, display formatting)."""

from .logger import get_logger
from .formatting import format_cap

__all__ = ["get_logger", "format_cap"]
