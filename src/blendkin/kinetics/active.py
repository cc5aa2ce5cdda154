"""Selection of reactions that can be dropped at the current state."""

from __future__ import annotations

import logging

import numpy as np
import scipy.sparse as sp

from blendkin.errors import ConfigurationError
from blendkin.kinetics.engine import KineticsEngine

logger = logging.getLogger(__name__)


class RxnActiveMgr:
    """Greedy deactivation of reactions under accumulated error bounds.

    For every reaction the normalized contributions to dT/dt and dY_k/dt
    are computed. Reactions are visited in index order and deactivated while
    the running sum of the dropped contributions stays within +-1 for the
    temperature and every mass fraction. The result depends on that order.
    """

    def __init__(self, engine: KineticsEngine):
        if not engine.algorithm.supports_reduction():
            raise ConfigurationError(
                f"Reaction activity needs a plain kinetics engine, got "
                f"{type(engine.algorithm).__name__}."
            )
        self.engine = engine
        self.stoich_matrix: sp.csc_matrix | None = None
        self.active = np.ones(engine.n_reactions, dtype=bool)
        # normalized per-reaction contributions from the last update
        self.d_temperature = np.zeros(0)
        self.d_mass_fractions: sp.csc_matrix | None = None

    def update_stoich_matrix(self) -> sp.csc_matrix:
        """Net stoichiometric matrix S (species x reactions), products minus reactants."""
        engine = self.engine
        shape = (engine.n_species, engine.n_reactions)
        rev, irrev = engine.product_stoich()
        matrix = sp.csc_matrix(shape)
        for manager, sign in ((rev, 1.0), (irrev, 1.0), (engine.reactant_stoich(), -1.0)):
            k, i, nu = manager.triplets()
            matrix = matrix + sp.csc_matrix((sign * nu, (k, i)), shape=shape)
        self.stoich_matrix = matrix.tocsc()
        self.stoich_matrix.eliminate_zeros()
        return self.stoich_matrix

    def update_active_reactions(self, rel_tol: float, abs_tol: float) -> np.ndarray:
        """Recompute and return the boolean activity mask."""
        if rel_tol < 0.0 or abs_tol < 0.0 or rel_tol + abs_tol == 0.0:
            raise ValueError(f"Tolerances must be non-negative and not both zero, got {rel_tol}, {abs_tol}.")
        engine = self.engine
        phase = engine.phase
        if self.stoich_matrix is None or self.stoich_matrix.shape[1] != engine.n_reactions:
            self.update_stoich_matrix()

        rop = engine.get_net_rates_of_progress()
        weighted = (self.stoich_matrix @ sp.diags(rop)).tocsc()

        temperature = phase.temperature
        density = phase.density
        u = phase.get_partial_molar_int_energies() / (
            -density * phase.cv_mass() * (rel_tol * temperature + abs_tol)
        )
        d_temperature = weighted.T @ u

        y_scale = phase.molecular_weights / (density * (rel_tol * phase.mass_fractions + abs_tol))
        d_mass_fractions = (sp.diags(y_scale) @ weighted).tocsc()

        active = np.ones(engine.n_reactions, dtype=bool)
        temperature_error = 0.0
        mass_fraction_error = np.zeros(engine.n_species)
        indptr, rows, data = d_mass_fractions.indptr, d_mass_fractions.indices, d_mass_fractions.data
        for i in range(engine.n_reactions):
            trial_t = temperature_error + d_temperature[i]
            if abs(trial_t) > 1.0:
                continue
            col = slice(indptr[i], indptr[i + 1])
            trial_y = mass_fraction_error[rows[col]] + data[col]
            if np.any(np.abs(trial_y) > 1.0):
                continue
            active[i] = False
            temperature_error = trial_t
            mass_fraction_error[rows[col]] = trial_y

        self.active = active
        self.d_temperature = d_temperature
        self.d_mass_fractions = d_mass_fractions
        logger.debug(
            "%d of %d reactions active (rtol=%g, atol=%g)",
            int(active.sum()),
            engine.n_reactions,
            rel_tol,
            abs_tol,
        )
        return active.copy()
