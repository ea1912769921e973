"""Milestone detection for momentum transitions. Pure."""

from typing import Optional, Sequence

from momentum_engine.models.momentum import MilestonePolicy

MILESTONES = (25, 40, 50, 75, 100)


def detect(
    previous: float,
    current: float,
    policy: MilestonePolicy = "lowest",
    milestones: Sequence[int] = MILESTONES,
) -> Optional[int]:
    """
    Return the milestone crossed going from `previous` to `current`.

    A milestone m is crossed when previous < m <= current. When a single
    transition crosses several, policy picks the lowest (default) or the
    highest. Decreases and flat transitions never report.
    """
    crossed = [m for m in milestones if previous < m <= current]
    if not crossed:
        return None
    return max(crossed) if policy == "highest" else min(crossed)
