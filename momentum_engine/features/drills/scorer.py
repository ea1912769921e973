"""Drill answer scoring. Pure; arity is validated by the caller."""

from typing import Sequence

from momentum_engine.models.drill import DrillScenario


def score(scenarios: Sequence[DrillScenario], answers: Sequence[int]) -> int:
    """Count answers that select an option in the `optimal` category.

    An out-of-range answer index selects nothing and does not score.
    """
    total = 0
    for scenario, answer in zip(scenarios, answers):
        if 0 <= answer < len(scenario.options) and scenario.options[answer].category == "optimal":
            total += 1
    return total
