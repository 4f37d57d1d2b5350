"""
Trajectory simulation.
"""

from .trajectory import Trajectory, straight_line_states, simulate_bearing_track

__all__ = [
    "Trajectory",
    "straight_line_states",
    "simulate_bearing_track",
]
