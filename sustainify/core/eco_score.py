from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Union

from .types import Badge, EcoScores, QuizInputs

WATER_MAX = 40
ENERGY_MAX = 40
WASTE_MAX = 20

TIPS: dict[str, list[str]] = {
    "water": [
        "Install a low-flow showerhead if possible.",
        "Turn off the tap while brushing teeth.",
        "Use a bucket when washing small loads.",
    ],
    "energy": [
        "Unplug devices while away.",
        "Use power strips to switch multiple devices off at once.",
        "Keep electronics dust-free.",
    ],
    "waste": [
        "Carry reusable cutlery and bottles.",
        "Buy loose produce instead of pre-packaged items.",
        "Donate old clothes instead of discarding.",
    ],
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _coerce(inputs: Union[QuizInputs, Mapping[str, Any]]) -> QuizInputs:
    if isinstance(inputs, QuizInputs):
        return inputs
    return QuizInputs.from_dict(dict(inputs))


def water_score(inputs: QuizInputs) -> float:
    water = 30
    if inputs.uses_bucket:
        water += 10
    if inputs.shower_min <= 5:
        water += 20
    elif inputs.shower_min <= 10:
        water += 10
    elif inputs.shower_min <= 15:
        water += 0
    else:
        water -= 10
    return _clamp(water, 0, WATER_MAX)


def energy_score(inputs: QuizInputs) -> float:
    energy = 20 + min(inputs.num_led * 1.5, 10)
    if inputs.hours_devices <= 3:
        energy += 10
    elif inputs.hours_devices <= 6:
        energy += 5
    else:
        energy -= 5
    if inputs.ac_hours <= 2:
        energy += 5
    elif inputs.ac_hours <= 5:
        energy += 0
    else:
        energy -= 5
    return _clamp(energy, 0, ENERGY_MAX)


def waste_score(inputs: QuizInputs) -> float:
    waste = 10
    if inputs.uses_reusable:
        waste += 5
    if inputs.recycles:
        waste += 5
    if inputs.disposable_count <= 1:
        waste += 5
    elif inputs.disposable_count <= 3:
        waste += 0
    else:
        waste -= 5
    return _clamp(waste, 0, WASTE_MAX)


def compute_scores(inputs: Union[QuizInputs, Mapping[str, Any]]) -> EcoScores:
    """Map quiz answers to the water/energy/waste sub-scores and the eco total.

    Each sub-score is clamped before summation, so ``eco`` always lands in
    [0, 100]. Halves round up.
    """
    quiz = _coerce(inputs)
    water = water_score(quiz)
    energy = energy_score(quiz)
    waste = waste_score(quiz)
    return EcoScores(
        water=water,
        energy=energy,
        waste=waste,
        eco=_round_half_up(water + energy + waste),
    )


def derive_badges(inputs: Union[QuizInputs, Mapping[str, Any]]) -> list[Badge]:
    quiz = _coerce(inputs)
    badges = []
    if quiz.shower_min <= 5:
        badges.append(Badge("Water Saver", "Showers under 5 min", "💧"))
    if quiz.hours_devices <= 3 and quiz.ac_hours <= 2:
        badges.append(Badge("Energy Ninja", "Devices <=3 hrs & AC <=2 hrs", "⚡"))
    if quiz.uses_reusable and quiz.recycles:
        badges.append(Badge("Waste Warrior", "Uses reusable bottle & recycles", "🗑️"))
    return badges


def is_perfect_score(scores: EcoScores) -> bool:
    return scores.eco >= 100


def score_tips(scores: EcoScores) -> dict[str, list[str]]:
    """Tips for every sub-score that is below its maximum."""
    maxima = {"water": WATER_MAX, "energy": ENERGY_MAX, "waste": WASTE_MAX}
    return {
        area: list(TIPS[area])
        for area, top in maxima.items()
        if getattr(scores, area) < top
    }
