"""Sparse reaction/species stoichiometry bookkeeping."""

from __future__ import annotations

from typing import Sequence

import numpy as np


class StoichManager:
    """Per-reaction lists of (species index, order, stoichiometric coefficient).

    The order is used by :meth:`multiply` (law of mass action); the
    coefficient by the species and reaction increment/decrement helpers.
    Entries are kept as flat arrays so every operation is a single
    vectorized scatter.
    """

    def __init__(self) -> None:
        self._reactions: list[int] = []
        self._species: list[int] = []
        self._orders: list[float] = []
        self._stoich: list[float] = []
        self._arrays: tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray] | None = None

    def add(
        self,
        reaction: int,
        species: Sequence[int],
        orders: Sequence[float],
        stoich: Sequence[float],
    ) -> None:
        for k, order, nu in zip(species, orders, stoich):
            self._reactions.append(reaction)
            self._species.append(k)
            self._orders.append(order)
            self._stoich.append(nu)
        self._arrays = None

    @property
    def n_entries(self) -> int:
        return len(self._reactions)

    def _flat(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        if self._arrays is None:
            self._arrays = (
                np.array(self._reactions, dtype=int),
                np.array(self._species, dtype=int),
                np.array(self._orders, dtype=float),
                np.array(self._stoich, dtype=float),
            )
        return self._arrays

    def multiply(self, concentrations: np.ndarray, rates: np.ndarray) -> None:
        """rates[i] *= prod_k conc[k]**order_k, in place."""
        rxn, k, order, _ = self._flat()
        if rxn.size:
            np.multiply.at(rates, rxn, concentrations[k] ** order)

    def increment_species(self, rates: np.ndarray, out: np.ndarray) -> None:
        rxn, k, _, nu = self._flat()
        if rxn.size:
            np.add.at(out, k, nu * rates[rxn])

    def decrement_species(self, rates: np.ndarray, out: np.ndarray) -> None:
        rxn, k, _, nu = self._flat()
        if rxn.size:
            np.subtract.at(out, k, nu * rates[rxn])

    def increment_reactions(self, values: np.ndarray, out: np.ndarray) -> None:
        """out[i] += sum_k nu_ki values[k]."""
        rxn, k, _, nu = self._flat()
        if rxn.size:
            np.add.at(out, rxn, nu * values[k])

    def decrement_reactions(self, values: np.ndarray, out: np.ndarray) -> None:
        rxn, k, _, nu = self._flat()
        if rxn.size:
            np.subtract.at(out, rxn, nu * values[k])

    def coefficient(self, k: int, reaction: int) -> float:
        rxn, species, _, nu = self._flat()
        return float(np.sum(nu[(rxn == reaction) & (species == k)]))

    def entries(self, reaction: int) -> list[tuple[int, float, float]]:
        """(species, order, coefficient) triples of one reaction."""
        return [
            (k, order, nu)
            for i, k, order, nu in zip(self._reactions, self._species, self._orders, self._stoich)
            if i == reaction
        ]

    def triplets(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """(species, reaction, coefficient) arrays, e.g. for a sparse matrix."""
        rxn, k, _, nu = self._flat()
        return k, rxn, nu

    def select(self, active: np.ndarray, id_map: np.ndarray) -> StoichManager:
        """Copy keeping only active reactions, renumbered through ``id_map``."""
        reduced = StoichManager()
        for i, k, order, nu in zip(self._reactions, self._species, self._orders, self._stoich):
            if active[i]:
                reduced._reactions.append(int(id_map[i]))
                reduced._species.append(k)
                reduced._orders.append(order)
                reduced._stoich.append(nu)
        return reduced
