"""Quasi-steady-state treatment of short-lived intermediates.

QSS species are kinetics species that are not part of the gas phase.
Their concentrations follow from setting their net production to zero,
which is linear in the QSS concentrations as long as each reaction side
holds at most one of them:

    D_i c_i - sum_j P_ij c_j = P_i

D_i is the destruction rate of species i per unit c_i, P_ij the
production of i from j per unit c_j and P_i the production from reactions
free of QSS reactants. Forward and reverse rates of progress are first
evaluated with every QSS concentration set to one, then scaled by the
solved concentration of the QSS species they consume.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

import numpy as np
import scipy.sparse as sp
from scipy.sparse.csgraph import reverse_cuthill_mckee
from scipy.sparse.linalg import splu

from blendkin.errors import SingularSystemError, assert_finite
from blendkin.kinetics.engine import KineticsAlgorithm, KineticsEngine
from blendkin.models import Reaction, Species
from blendkin.thermo.ideal import ReferenceThermo

logger = logging.getLogger(__name__)


class QSSAAlgorithm(KineticsAlgorithm):
    """Adds QSS species to a :class:`KineticsEngine` and solves for them."""

    def __init__(self, species: Sequence[Species]):
        if not species:
            raise ValueError("QSSA needs at least one QSS species.")
        self.species = tuple(species)
        self.names = [s.name for s in self.species]
        self.n_qss = len(self.species)
        self.reference = ReferenceThermo(self.species)
        self.offset = 0

        # reactions consuming species i in the forward / reverse direction
        self.rodf: list[list[int]] = [[] for _ in range(self.n_qss)]
        self.rodr: list[list[int]] = [[] for _ in range(self.n_qss)]
        # reactions producing species i without consuming any QSS species
        self.ropf_noqss: list[list[int]] = [[] for _ in range(self.n_qss)]
        self.ropr_noqss: list[list[int]] = [[] for _ in range(self.n_qss)]
        # (destination, source) -> reactions turning source into destination
        self.ropf_qss: dict[tuple[int, int], list[int]] = defaultdict(list)
        self.ropr_qss: dict[tuple[int, int], list[int]] = defaultdict(list)

        self.concentrations = np.zeros(self.n_qss)
        self._initialized = False
        self._qss_ok = False
        self._rows = np.zeros(0, dtype=int)
        self._cols = np.zeros(0, dtype=int)
        self._permutation = np.zeros(0, dtype=int)
        # csc structure of the permuted matrix and the storage slot of each pair
        self._indices = np.zeros(0, dtype=np.int32)
        self._indptr = np.zeros(self.n_qss + 1, dtype=np.int32)
        self._slots = np.zeros(0, dtype=int)

    # Engine hooks ------------------------------------------------------------

    def species_names(self) -> list[str]:
        return list(self.names)

    def attach(self, engine: KineticsEngine) -> None:
        self.offset = engine.n_phase_species

    def supports_reduction(self) -> bool:
        return False

    def invalidate(self) -> None:
        self._qss_ok = False

    def reference_gibbs_rt(self, temperature: float) -> np.ndarray:
        return self.reference.evaluate(temperature).g_rt

    def reference_enthalpy_rt(self, temperature: float) -> np.ndarray:
        return self.reference.evaluate(temperature).h_rt

    def reference_entropy_r(self, temperature: float) -> np.ndarray:
        return self.reference.evaluate(temperature).s_r

    def _qss_side(self, engine: KineticsEngine, side) -> list[int]:
        found = []
        for name in side:
            k = engine.kinetics_species_index(name)
            if k is not None and k >= self.offset:
                found.append(k - self.offset)
        return found

    def on_add_reaction(self, engine: KineticsEngine, index: int, reaction: Reaction) -> None:
        """Classify a new reaction by the QSS species on either side."""
        reactants = self._qss_side(engine, reaction.reactants)
        products = self._qss_side(engine, reaction.products)
        if len(reactants) > 1 or len(products) > 1:
            logger.warning(
                "Reaction %d (%s) has more than one QSS species on a side; "
                "the QSS system is no longer linear in them.",
                index,
                reaction.equation,
            )

        for rt in reactants:
            self.rodf[rt].append(index)
        if reaction.reversible:
            for pd in products:
                self.rodr[pd].append(index)

        if not reactants:
            for pd in products:
                self.ropf_noqss[pd].append(index)
        if reaction.reversible and not products:
            for rt in reactants:
                self.ropr_noqss[rt].append(index)

        for rt in reactants:
            for pd in products:
                self.ropf_qss[(pd, rt)].append(index)
                if reaction.reversible:
                    self.ropr_qss[(rt, pd)].append(index)

        logger.debug(
            "Reaction %d: QSS reactants %s, QSS products %s", index, reactants, products
        )
        self._initialized = False

    def prepare_concentrations(self, concentrations: np.ndarray) -> None:
        concentrations[self.offset :] = 1.0

    def finish_rates_of_progress(
        self, engine: KineticsEngine, ropf: np.ndarray, ropr: np.ndarray
    ) -> None:
        self.calc_conc_qss(ropf, ropr)
        self.update_rop_qss(ropf, ropr)
        engine._conc[self.offset :] = self.concentrations

    # Linear system -----------------------------------------------------------

    def init_qss(self) -> None:
        """Fix the sparsity pattern and a fill-reducing ordering, once.

        The matrix is stored already permuted, so each solve only refills
        the nonzero values and factors them in the cached column order.
        """
        pairs = {(i, i) for i in range(self.n_qss)}
        pairs.update(key for key, rxns in self.ropf_qss.items() if rxns)
        pairs.update(key for key, rxns in self.ropr_qss.items() if rxns)
        ordered = sorted(pairs)
        self._rows = np.array([i for i, _ in ordered], dtype=int)
        self._cols = np.array([j for _, j in ordered], dtype=int)
        nnz = len(ordered)
        shape = (self.n_qss, self.n_qss)

        pattern = sp.csr_matrix((np.ones(nnz), (self._rows, self._cols)), shape=shape)
        self._permutation = reverse_cuthill_mckee(pattern, symmetric_mode=False)
        inverse = np.empty(self.n_qss, dtype=int)
        inverse[self._permutation] = np.arange(self.n_qss)

        # tag each pair with its position to find where it lands in csc storage
        tagged = sp.coo_matrix(
            (np.arange(1, nnz + 1, dtype=float), (inverse[self._rows], inverse[self._cols])),
            shape=shape,
        ).tocsc()
        self._indices = tagged.indices.copy()
        self._indptr = tagged.indptr.copy()
        self._slots = np.empty(nnz, dtype=int)
        self._slots[tagged.data.astype(int) - 1] = np.arange(nnz)

        self._initialized = True
        logger.info(
            "QSS system: %d species, %d nonzeros, %d coupled pairs",
            self.n_qss,
            nnz,
            nnz - self.n_qss,
        )
        for i, name in enumerate(self.names):
            logger.info(
                "  %s: destroyed by %s (fwd) %s (rev); produced by %s (fwd) %s (rev)",
                name,
                self.rodf[i],
                self.rodr[i],
                self.ropf_noqss[i],
                self.ropr_noqss[i],
            )

    def assemble(self, ropf: np.ndarray, ropr: np.ndarray) -> tuple[sp.csc_matrix, np.ndarray]:
        """Permuted matrix and right-hand side of the QSS balance for unit QSS concentrations."""
        n = self.n_qss
        rhs = np.zeros(n)
        destruction = np.zeros(n)
        for i in range(n):
            rhs[i] = ropf[self.ropf_noqss[i]].sum() + ropr[self.ropr_noqss[i]].sum()
            destruction[i] = ropf[self.rodf[i]].sum() + ropr[self.rodr[i]].sum()

        data = np.zeros(self._rows.size)
        for j, (dst, src) in enumerate(zip(self._rows, self._cols)):
            production = ropf[self.ropf_qss.get((dst, src), [])].sum()
            production += ropr[self.ropr_qss.get((dst, src), [])].sum()
            value = -production
            if dst == src:
                value += destruction[dst]
            data[self._slots[j]] = value
        matrix = sp.csc_matrix((data, self._indices, self._indptr), shape=(n, n))
        return matrix, rhs[self._permutation]

    def calc_conc_qss(self, ropf: np.ndarray, ropr: np.ndarray) -> np.ndarray:
        if self._qss_ok:
            return self.concentrations
        if not self._initialized:
            self.init_qss()

        matrix, rhs = self.assemble(ropf, ropr)
        try:
            lu = splu(matrix, permc_spec="NATURAL")
        except RuntimeError as exc:
            raise SingularSystemError(
                f"QSS matrix for species {self.names} is singular: {exc}"
            ) from exc
        solution = np.empty(self.n_qss)
        solution[self._permutation] = lu.solve(rhs)
        assert_finite(solution, "QSS concentration")
        self.concentrations = solution
        self._qss_ok = True
        return solution

    def update_rop_qss(self, ropf: np.ndarray, ropr: np.ndarray) -> None:
        """Scale rates of progress by the concentration of the QSS species consumed."""
        for i in range(self.n_qss):
            ropf[self.rodf[i]] *= self.concentrations[i]
            ropr[self.rodr[i]] *= self.concentrations[i]
