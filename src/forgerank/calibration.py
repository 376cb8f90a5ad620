"""Pluggable skill-weight adjustment.

Outcome calibration lives outside the engine; whatever it learns reaches the
capability scorer through a ``WeightAdjuster``.
"""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence, runtime_checkable

from .schemas import SkillRequirement


@runtime_checkable
class WeightAdjuster(Protocol):
    """Contract for re-weighting skill requirements before scoring."""

    def adjust(self, skills: Sequence[SkillRequirement]) -> dict[str, float]:
        """Return the effective weight per skill name."""


class IdentityWeightAdjuster:
    """Use the requested weights unchanged."""

    def adjust(self, skills: Sequence[SkillRequirement]) -> dict[str, float]:
        return {skill.name: float(skill.weight) for skill in skills}


class MultiplierWeightAdjuster:
    """Scale weights by per-skill multipliers, e.g. exported from an outcome calibration run."""

    def __init__(self, multipliers: Mapping[str, float] | None = None) -> None:
        self._multipliers = {
            name.lower(): float(value) for name, value in (multipliers or {}).items()
        }
        for name, value in self._multipliers.items():
            if value < 0:
                raise ValueError(f"Weight multiplier for {name!r} must not be negative")

    def adjust(self, skills: Sequence[SkillRequirement]) -> dict[str, float]:
        return {
            skill.name: float(skill.weight) * self._multipliers.get(skill.name.lower(), 1.0)
            for skill in skills
        }


__all__ = ["WeightAdjuster", "IdentityWeightAdjuster", "MultiplierWeightAdjuster"]
