"""Falloff blending for pressure-dependent reactions."""

from __future__ import annotations

import numpy as np

from blendkin.models import FalloffFunction


class FalloffManager:
    """Holds one blending function per falloff slot plus their work space.

    ``pr_to_falloff`` turns reduced pressures into the factor the
    high-pressure (falloff) or low-pressure (chemically activated) rate
    constant is multiplied by:

        falloff:               Pr/(1 + Pr) F
        chemically activated:   1/(1 + Pr) F
    """

    def __init__(self) -> None:
        self._functions: list[FalloffFunction] = []
        self._chemically_activated: list[bool] = []
        self._offsets: list[int] = []
        self.work = np.zeros(0)

    def __len__(self) -> int:
        return len(self._functions)

    @property
    def work_size(self) -> int:
        return sum(f.work_size for f in self._functions)

    def install(self, slot: int, function: FalloffFunction, chemically_activated: bool) -> None:
        if slot != len(self._functions):
            raise IndexError(f"Falloff slots are installed in order, expected {len(self)}, got {slot}.")
        self._offsets.append(self.work_size)
        self._functions.append(function)
        self._chemically_activated.append(chemically_activated)
        self.work = np.zeros(self.work_size)

    def replace(self, slot: int, function: FalloffFunction) -> None:
        if type(function) is not type(self._functions[slot]):
            raise ValueError(
                f"Cannot replace {type(self._functions[slot]).__name__} falloff "
                f"with {type(function).__name__}."
            )
        self._functions[slot] = function

    def update_temp(self, temperature: float) -> None:
        for offset, function in zip(self._offsets, self._functions):
            function.update_temp(temperature, self.work[offset : offset + function.work_size])

    def pr_to_falloff(self, pr: np.ndarray) -> None:
        """Replace reduced pressures by the blended rate factor, in place."""
        for j, (offset, function) in enumerate(zip(self._offsets, self._functions)):
            f = function.falloff(pr[j], self.work[offset : offset + function.work_size])
            if self._chemically_activated[j]:
                pr[j] = f / (1.0 + pr[j])
            else:
                pr[j] *= f / (1.0 + pr[j])

    def select(self, slots: np.ndarray) -> FalloffManager:
        """Copy keeping the listed slots, renumbered from zero."""
        reduced = FalloffManager()
        for new, old in enumerate(slots):
            reduced.install(new, self._functions[old], self._chemically_activated[old])
        return reduced
