"""
Action host.

Device-side collaborator: publishes screen snapshots and performs
gestures, app launches and global navigation on request.
"""

from phonepilot.host.base import ActionHost
from phonepilot.host.simulated import SimulatedHost

__all__ = ["ActionHost", "SimulatedHost"]
