"""Enhanced third-body concentrations."""

from __future__ import annotations

from typing import Mapping

import numpy as np


class ThirdBodyCalculator:
    """Computes [M]_i = default_i * ctot + sum_k (eff_ik - default_i) c_k.

    ``install`` takes the slot the value is written to; for three-body
    reactions that is the reaction index, for falloff reactions the index
    within the falloff list.
    """

    def __init__(self) -> None:
        self._slots: list[int] = []
        self._efficiencies: list[Mapping[int, float]] = []
        self._defaults: list[float] = []
        self._matrix: np.ndarray | None = None
        self.values = np.zeros(0)

    def __len__(self) -> int:
        return len(self._slots)

    def install(self, slot: int, efficiencies: Mapping[int, float], default: float) -> None:
        self._slots.append(slot)
        self._efficiencies.append(dict(efficiencies))
        self._defaults.append(default)
        self._matrix = None

    def _excess_matrix(self, n_species: int) -> np.ndarray:
        if self._matrix is None or self._matrix.shape[1] != n_species:
            matrix = np.zeros((len(self._slots), n_species))
            for j, (effs, default) in enumerate(zip(self._efficiencies, self._defaults)):
                for k, eff in effs.items():
                    matrix[j, k] = eff - default
            self._matrix = matrix
        return self._matrix

    def update(self, concentrations: np.ndarray, total: float) -> None:
        if not self._slots:
            return
        matrix = self._excess_matrix(concentrations.size)
        self.values = np.asarray(self._defaults) * total + matrix @ concentrations

    def multiply(self, out: np.ndarray) -> None:
        if self._slots:
            out[np.asarray(self._slots)] *= self.values

    def select(self, active: np.ndarray, id_map: np.ndarray) -> ThirdBodyCalculator:
        """Copy keeping entries whose slot is active, renumbered through ``id_map``."""
        reduced = ThirdBodyCalculator()
        for slot, effs, default in zip(self._slots, self._efficiencies, self._defaults):
            if active[slot]:
                reduced.install(int(id_map[slot]), effs, default)
        return reduced
