"""
Replay: reconstruct canvas frames from the placement log.

Replay applies events to a canvas on a fixed simulated clock.
Must be 100% deterministic: same events -> same frames.
"""

from .runner import RenderResult, ReplayEngine, ReplayState, render

__all__ = [
    "RenderResult",
    "ReplayEngine",
    "ReplayState",
    "render",
]
