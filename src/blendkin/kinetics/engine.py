"""Gas-phase kinetics engine.

Rates of progress follow

    ropf_i = k_f,i * [M]_i * F_i * perturb_i * prod_k c_k^order_ki
    ropr_i = ropf_i / Kc_i * prod_k c_k^nu''_ki      (reversible only)

with Kc from the reference Gibbs energies of the kinetics species. The
engine owns its rate calculator sets and stoichiometry managers and reads
the thermodynamic state from a phase. Cached values are keyed on the phase
temperature, pressure and ``state_id``; any mutation of the phase or of a
reaction invalidates what depends on it.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from blendkin.constants import DEFAULT_CONTEXT, NumericContext
from blendkin.errors import ConfigurationError, assert_finite
from blendkin.kinetics.falloff import FalloffManager
from blendkin.kinetics.rates import ArrheniusRateSet, ChebyshevRateSet, PlogRateSet
from blendkin.kinetics.stoichiometry import StoichManager
from blendkin.kinetics.third_body import ThirdBodyCalculator
from blendkin.models import Reaction, ReactionKind, ThirdBody
from blendkin.thermo.ideal import IdealGasPhase

logger = logging.getLogger(__name__)

_FALLOFF_KINDS = (ReactionKind.FALLOFF, ReactionKind.CHEMICALLY_ACTIVATED)


@dataclass(frozen=True)
class KineticsConfiguration:
    """How reactions referring to unknown species are handled.

    Attributes:
        skip_undeclared_species: Silently drop reactions with a reactant or
            product that is not a kinetics species.
        skip_undeclared_third_bodies: Ignore third-body efficiencies of
            species that are not kinetics species.
    """

    skip_undeclared_species: bool = False
    skip_undeclared_third_bodies: bool = False


class KineticsAlgorithm:
    """Hooks that let a strategy extend the species set and the ROP pass.

    The default is plain mass-action kinetics over the phase species.
    """

    def species_names(self) -> list[str]:
        return []

    def attach(self, engine: KineticsEngine) -> None:
        pass

    def on_add_reaction(self, engine: KineticsEngine, index: int, reaction: Reaction) -> None:
        pass

    def reference_gibbs_rt(self, temperature: float) -> np.ndarray:
        return np.zeros(0)

    def reference_enthalpy_rt(self, temperature: float) -> np.ndarray:
        return np.zeros(0)

    def reference_entropy_r(self, temperature: float) -> np.ndarray:
        return np.zeros(0)

    def prepare_concentrations(self, concentrations: np.ndarray) -> None:
        pass

    def finish_rates_of_progress(
        self, engine: KineticsEngine, ropf: np.ndarray, ropr: np.ndarray
    ) -> None:
        pass

    def invalidate(self) -> None:
        pass

    def supports_reduction(self) -> bool:
        return True


class KineticsEngine:
    """Reaction mechanism evaluated against a gas phase."""

    def __init__(
        self,
        phase: IdealGasPhase,
        configuration: KineticsConfiguration = KineticsConfiguration(),
        algorithm: KineticsAlgorithm | None = None,
        context: NumericContext = DEFAULT_CONTEXT,
    ):
        self.phase = phase
        self.configuration = configuration
        self.algorithm = algorithm if algorithm is not None else KineticsAlgorithm()
        self.context = context

        self.species_names = list(phase.species_names) + self.algorithm.species_names()
        self._species_index = {name: k for k, name in enumerate(self.species_names)}
        self.n_species = len(self.species_names)
        self.n_phase_species = phase.n_species

        self.reactions: list[Reaction] = []
        self._reactant_stoich = StoichManager()
        self._rev_product_stoich = StoichManager()
        self._irrev_product_stoich = StoichManager()
        self._revindex: list[int] = []
        self._irrevindex: list[int] = []
        self._dn = np.zeros(0)
        self._perturb = np.zeros(0)

        self._rates = ArrheniusRateSet(context.gas_constant)
        self._plog_rates = PlogRateSet(context.gas_constant)
        self._cheb_rates = ChebyshevRateSet()
        self._three_body = ThirdBodyCalculator()

        self._falloff_low = ArrheniusRateSet(context.gas_constant)
        self._falloff_high = ArrheniusRateSet(context.gas_constant)
        self._falloff_concm = ThirdBodyCalculator()
        self._falloffn = FalloffManager()
        self._fallindx: list[int] = []
        self._rfallindx: dict[int, int] = {}

        self._allocate()
        self.algorithm.attach(self)

    # Species and reactions ---------------------------------------------------

    @property
    def n_reactions(self) -> int:
        return len(self.reactions)

    def kinetics_species_index(self, name: str) -> int | None:
        return self._species_index.get(name)

    def reaction(self, i: int) -> Reaction:
        return self.reactions[i]

    def reaction_type(self, i: int) -> ReactionKind:
        return self.reactions[i].kind

    def is_reversible(self, i: int) -> bool:
        return self.reactions[i].reversible

    def reactant_stoich_coeff(self, k: int, i: int) -> float:
        return self._reactant_stoich.coefficient(k, i)

    def product_stoich_coeff(self, k: int, i: int) -> float:
        return self._rev_product_stoich.coefficient(k, i) + self._irrev_product_stoich.coefficient(k, i)

    def reactant_stoich(self) -> StoichManager:
        return self._reactant_stoich

    def product_stoich(self) -> tuple[StoichManager, StoichManager]:
        """(reversible, irreversible) product managers."""
        return self._rev_product_stoich, self._irrev_product_stoich

    @property
    def reversible_indices(self) -> list[int]:
        return list(self._revindex)

    @property
    def falloff_indices(self) -> list[int]:
        return list(self._fallindx)

    def _allocate(self) -> None:
        n = self.n_reactions
        self._rfn = np.zeros(n)
        self._rkcn = np.zeros(n)
        self._ropf = np.zeros(n)
        self._ropr = np.zeros(n)
        self._ropnet = np.zeros(n)
        self._conc = np.zeros(self.n_species)
        nfall = len(self._fallindx)
        self._rfn_low = np.zeros(nfall)
        self._rfn_high = np.zeros(nfall)
        self.invalidate_cache()

    def invalidate_cache(self) -> None:
        self._temp: float | None = None
        self._pres: float | None = None
        self._state_id: int | None = None
        self._rop_ok = False
        self.algorithm.invalidate()

    def _resolve(self, side: dict[str, float], reaction: Reaction) -> list[tuple[int, float]] | None:
        indices = []
        for name, nu in side.items():
            k = self.kinetics_species_index(name)
            if k is None:
                if self.configuration.skip_undeclared_species:
                    logger.debug("Skipping reaction '%s': undeclared species %s", reaction.equation, name)
                    return None
                raise ConfigurationError(
                    f"Reaction '{reaction.equation}' contains undeclared species '{name}'."
                )
            indices.append((k, nu))
        return indices

    def _efficiencies(self, third_body: ThirdBody, reaction: Reaction) -> dict[int, float]:
        efficiencies = {}
        for name, eff in third_body.efficiencies.items():
            k = self.kinetics_species_index(name)
            if k is None:
                if self.configuration.skip_undeclared_third_bodies:
                    continue
                raise ConfigurationError(
                    f"Reaction '{reaction.equation}' has a third-body efficiency for "
                    f"undeclared species '{name}'."
                )
            efficiencies[k] = eff
        return efficiencies

    def add_reaction(self, reaction: Reaction) -> bool:
        """Append a reaction; returns False if it was skipped."""
        kind = getattr(reaction, "kind", None)
        if not isinstance(kind, ReactionKind):
            raise ConfigurationError(f"Unknown reaction type {kind!r} for {reaction!r}.")

        reactants = self._resolve(dict(reaction.reactants), reaction)
        products = self._resolve(dict(reaction.products), reaction)
        if reactants is None or products is None:
            return False
        orders = reaction.reaction_orders
        order_species = self._resolve(orders, reaction)
        if order_species is None:
            return False
        efficiencies = None
        if kind is ReactionKind.THREE_BODY or kind in _FALLOFF_KINDS:
            efficiencies = self._efficiencies(reaction.third_body, reaction)

        i = self.n_reactions
        reactant_coeff = dict(reactants)
        self._reactant_stoich.add(
            i,
            [k for k, _ in order_species],
            [order for _, order in order_species],
            [reactant_coeff.get(k, 0.0) for k, _ in order_species],
        )
        product_manager = self._rev_product_stoich if reaction.reversible else self._irrev_product_stoich
        product_manager.add(
            i,
            [k for k, _ in products],
            [nu for _, nu in products],
            [nu for _, nu in products],
        )
        (self._revindex if reaction.reversible else self._irrevindex).append(i)
        dn = sum(nu for _, nu in products) - sum(nu for _, nu in reactants)
        self._dn = np.append(self._dn, dn)
        self._perturb = np.append(self._perturb, 1.0)
        self.reactions.append(reaction)

        if kind is ReactionKind.ELEMENTARY:
            self._rates.install(i, reaction.rate)
        elif kind is ReactionKind.THREE_BODY:
            self._rates.install(i, reaction.rate)
            self._three_body.install(i, efficiencies, reaction.third_body.default_efficiency)
        elif kind in _FALLOFF_KINDS:
            slot = len(self._fallindx)
            self._falloff_low.install(slot, reaction.low_rate)
            self._falloff_high.install(slot, reaction.high_rate)
            self._falloff_concm.install(slot, efficiencies, reaction.third_body.default_efficiency)
            self._falloffn.install(slot, reaction.falloff, kind is ReactionKind.CHEMICALLY_ACTIVATED)
            self._fallindx.append(i)
            self._rfallindx[i] = slot
        elif kind is ReactionKind.PLOG:
            self._plog_rates.install(i, reaction.rate)
        elif kind is ReactionKind.CHEBYSHEV:
            self._cheb_rates.install(i, reaction.rate)

        self._allocate()
        self.algorithm.on_add_reaction(self, i, reaction)
        return True

    def modify_reaction(self, i: int, reaction: Reaction) -> None:
        """Swap the rate parameters of reaction ``i``; kind and stoichiometry must match."""
        old = self.reactions[i]
        kind = getattr(reaction, "kind", None)
        if kind is not old.kind:
            raise ConfigurationError(
                f"Reaction {i} is {old.kind.value}, cannot modify it with {kind!r}."
            )
        if (
            dict(reaction.reactants) != dict(old.reactants)
            or dict(reaction.products) != dict(old.products)
            or reaction.reversible != old.reversible
        ):
            raise ConfigurationError(f"Reaction {i}: modification must keep the stoichiometry.")
        if reaction.reaction_orders != old.reaction_orders:
            raise ConfigurationError(f"Reaction {i}: modification must keep the reaction orders.")
        if hasattr(old, "third_body") and (
            dict(reaction.third_body.efficiencies) != dict(old.third_body.efficiencies)
            or reaction.third_body.default_efficiency != old.third_body.default_efficiency
        ):
            raise ConfigurationError(
                f"Reaction {i}: modification must keep the third-body efficiencies."
            )

        if kind in (ReactionKind.ELEMENTARY, ReactionKind.THREE_BODY):
            self._rates.replace(i, reaction.rate)
        elif kind in _FALLOFF_KINDS:
            slot = self._rfallindx[i]
            self._falloff_low.replace(slot, reaction.low_rate)
            self._falloff_high.replace(slot, reaction.high_rate)
            self._falloffn.replace(slot, reaction.falloff)
        elif kind is ReactionKind.PLOG:
            self._plog_rates.replace(i, reaction.rate)
        elif kind is ReactionKind.CHEBYSHEV:
            self._cheb_rates.replace(i, reaction.rate)
        else:
            raise ConfigurationError(f"Unknown reaction type {kind!r}.")

        self.reactions[i] = reaction
        self.invalidate_cache()

    # Multipliers -------------------------------------------------------------

    def multiplier(self, i: int) -> float:
        return float(self._perturb[i])

    def set_multiplier(self, i: int, factor: float) -> None:
        self._perturb[i] = factor
        self._rop_ok = False

    # Rate constants ----------------------------------------------------------

    def update_rates_c(self) -> None:
        """Concentration- and pressure-dependent parts of the rate constants."""
        phase = self.phase
        self._conc[: self.n_phase_species] = phase.get_activity_concentrations()
        ctot = phase.molar_density
        self._three_body.update(self._conc, ctot)
        self._falloff_concm.update(self._conc, ctot)
        pressure = phase.pressure
        if len(self._plog_rates):
            self._plog_rates.update_c(math.log(pressure))
        if len(self._cheb_rates):
            self._cheb_rates.update_c(math.log10(pressure))
        self._rop_ok = False

    def update_rates_t(self) -> None:
        """Temperature-dependent rate constants and equilibrium factors."""
        t = self.phase.temperature
        p = self.phase.pressure
        log_t = math.log(t)
        if t != self._temp:
            self._rates.update(t, log_t, self._rfn)
            if len(self._fallindx):
                self._falloff_low.update(t, log_t, self._rfn_low)
                self._falloff_high.update(t, log_t, self._rfn_high)
                self._falloffn.update_temp(t)
            self.update_kc()
            self._rop_ok = False
        if t != self._temp or p != self._pres:
            self._plog_rates.update(t, log_t, self._rfn)
            self._cheb_rates.update(t, log_t, self._rfn)
            self._rop_ok = False
        self._temp = t
        self._pres = p

    def _gibbs_rt_ref(self, temperature: float) -> np.ndarray:
        return np.concatenate(
            [self.phase.get_gibbs_rt_ref(), self.algorithm.reference_gibbs_rt(temperature)]
        )

    def _log_standard_concentration(self) -> float:
        return math.log(self.phase.reference_pressure / self.phase.rt())

    def update_kc(self) -> None:
        """Reciprocal equilibrium constants 1/Kc, clipped at BIG; zero if irreversible."""
        self._rkcn[:] = 0.0
        if not self._revindex:
            return
        delta = np.zeros(self.n_reactions)
        g_rt = self._gibbs_rt_ref(self.phase.temperature)
        self._rev_product_stoich.increment_reactions(g_rt, delta)
        self._reactant_stoich.decrement_reactions(g_rt, delta)
        rev = np.asarray(self._revindex)
        with np.errstate(over="ignore"):
            rkc = np.exp(delta[rev] - self._dn[rev] * self._log_standard_concentration())
        self._rkcn[rev] = np.minimum(rkc, self.context.big_number)

    def process_falloff_reactions(self) -> None:
        pr = self._rfn_low / (self._rfn_high + self.context.small_number)
        self._falloff_concm.multiply(pr)
        assert_finite(pr, "falloff reduced pressure")
        self._falloffn.pr_to_falloff(pr)
        for slot, i in enumerate(self._fallindx):
            if self.reactions[i].kind is ReactionKind.CHEMICALLY_ACTIVATED:
                pr[slot] *= self._rfn_low[slot]
            else:
                pr[slot] *= self._rfn_high[slot]
        self._ropf[np.asarray(self._fallindx, dtype=int)] = pr

    # Rates of progress -------------------------------------------------------

    def update_rop(self) -> None:
        """Bring forward, reverse and net rates of progress up to date."""
        if self._rop_ok and self._state_id == self.phase.state_id:
            return
        self.algorithm.invalidate()
        self.update_rates_c()
        self.update_rates_t()

        ropf = self._ropf
        ropf[:] = self._rfn
        self._three_body.multiply(ropf)
        if self._fallindx:
            self.process_falloff_reactions()
        ropf *= self._perturb

        ropr = self._ropr
        ropr[:] = ropf * self._rkcn

        conc = self._conc.copy()
        self.algorithm.prepare_concentrations(conc)
        self._reactant_stoich.multiply(conc, ropf)
        self._rev_product_stoich.multiply(conc, ropr)
        self.algorithm.finish_rates_of_progress(self, ropf, ropr)

        self._ropnet[:] = ropf - ropr
        assert_finite(self._rfn, "rate constant")
        assert_finite(ropf, "forward rate of progress")
        assert_finite(ropr, "reverse rate of progress")
        self._state_id = self.phase.state_id
        self._rop_ok = True

    def get_fwd_rates_of_progress(self) -> np.ndarray:
        self.update_rop()
        return self._ropf.copy()

    def get_rev_rates_of_progress(self) -> np.ndarray:
        self.update_rop()
        return self._ropr.copy()

    def get_net_rates_of_progress(self) -> np.ndarray:
        self.update_rop()
        return self._ropnet.copy()

    def get_fwd_rate_constants(self) -> np.ndarray:
        """k_f including third-body, falloff and multiplier factors."""
        self.update_rates_c()
        self.update_rates_t()
        kf = self._rfn.copy()
        self._three_body.multiply(kf)
        if self._fallindx:
            saved = self._ropf.copy()
            self.process_falloff_reactions()
            fall = np.asarray(self._fallindx, dtype=int)
            kf[fall] = self._ropf[fall]
            self._ropf[:] = saved
        return kf * self._perturb

    def get_rev_rate_constants(self) -> np.ndarray:
        """k_f / Kc for reversible reactions, zero otherwise."""
        return self.get_fwd_rate_constants() * self._rkcn

    def get_equilibrium_constants(self) -> np.ndarray:
        """Kc of every reaction in concentration units, including irreversible ones."""
        g_rt = self._gibbs_rt_ref(self.phase.temperature)
        delta = np.zeros(self.n_reactions)
        self._rev_product_stoich.increment_reactions(g_rt, delta)
        self._irrev_product_stoich.increment_reactions(g_rt, delta)
        self._reactant_stoich.decrement_reactions(g_rt, delta)
        with np.errstate(over="ignore"):
            return np.exp(-delta + self._dn * self._log_standard_concentration())

    # Species production ------------------------------------------------------

    def get_creation_rates(self) -> np.ndarray:
        self.update_rop()
        out = np.zeros(self.n_species)
        self._rev_product_stoich.increment_species(self._ropf, out)
        self._irrev_product_stoich.increment_species(self._ropf, out)
        self._reactant_stoich.increment_species(self._ropr, out)
        return out

    def get_destruction_rates(self) -> np.ndarray:
        self.update_rop()
        out = np.zeros(self.n_species)
        self._rev_product_stoich.increment_species(self._ropr, out)
        self._reactant_stoich.increment_species(self._ropf, out)
        return out

    def get_net_production_rates(self) -> np.ndarray:
        self.update_rop()
        out = np.zeros(self.n_species)
        self._rev_product_stoich.increment_species(self._ropnet, out)
        self._irrev_product_stoich.increment_species(self._ropnet, out)
        self._reactant_stoich.decrement_species(self._ropnet, out)
        return out

    # Reaction thermochemistry ------------------------------------------------

    def _reaction_delta(self, species_values: np.ndarray) -> np.ndarray:
        delta = np.zeros(self.n_reactions)
        self._rev_product_stoich.increment_reactions(species_values, delta)
        self._irrev_product_stoich.increment_reactions(species_values, delta)
        self._reactant_stoich.decrement_reactions(species_values, delta)
        return delta

    def _extra_standard(self, what: str) -> np.ndarray:
        # pseudo-species have unit activity at the gas pressure
        t = self.phase.temperature
        rt = self.phase.rt()
        log_p = math.log(self.phase.pressure / self.phase.reference_pressure)
        if what == "gibbs":
            return (self.algorithm.reference_gibbs_rt(t) + log_p) * rt
        if what == "enthalpy":
            return self.algorithm.reference_enthalpy_rt(t) * rt
        return (self.algorithm.reference_entropy_r(t) - log_p) * self.context.gas_constant

    def get_delta_gibbs(self) -> np.ndarray:
        mu = np.concatenate([self.phase.get_chem_potentials(), self._extra_standard("gibbs")])
        return self._reaction_delta(mu)

    def get_delta_enthalpy(self) -> np.ndarray:
        hbar = np.concatenate(
            [self.phase.get_partial_molar_enthalpies(), self._extra_standard("enthalpy")]
        )
        return self._reaction_delta(hbar)

    def get_delta_entropy(self) -> np.ndarray:
        sbar = np.concatenate(
            [self.phase.get_partial_molar_entropies(), self._extra_standard("entropy")]
        )
        return self._reaction_delta(sbar)

    def get_delta_ss_gibbs(self) -> np.ndarray:
        mu0 = np.concatenate(
            [self.phase.get_standard_chem_potentials(), self._extra_standard("gibbs")]
        )
        return self._reaction_delta(mu0)

    def get_delta_ss_enthalpy(self) -> np.ndarray:
        h0 = np.concatenate(
            [self.phase.get_enthalpy_rt() * self.phase.rt(), self._extra_standard("enthalpy")]
        )
        return self._reaction_delta(h0)

    def get_delta_ss_entropy(self) -> np.ndarray:
        s0 = np.concatenate(
            [
                self.phase.get_entropy_r() * self.context.gas_constant,
                self._extra_standard("entropy"),
            ]
        )
        return self._reaction_delta(s0)

    # Reduction ---------------------------------------------------------------

    @classmethod
    def reduce_from(
        cls,
        source: KineticsEngine,
        active: Sequence[bool],
        phase: IdealGasPhase | None = None,
    ) -> KineticsEngine:
        """Build an engine holding only the active reactions of ``source``.

        Reactions keep their relative order. Falloff bookkeeping, third-body
        and rate sets are filtered and renumbered; multipliers carry over.
        The new engine works on a deep copy of the source phase unless a
        phase is passed explicitly.
        """
        if not source.algorithm.supports_reduction():
            raise ConfigurationError(
                f"Cannot reduce an engine using {type(source.algorithm).__name__}."
            )
        mask = np.asarray(active, dtype=bool)
        if mask.shape != (source.n_reactions,):
            raise ValueError(
                f"Activity mask has length {mask.size}, expected {source.n_reactions}."
            )
        if phase is None:
            phase = copy.deepcopy(source.phase)

        engine = cls(phase, source.configuration, context=source.context)
        id_list = np.flatnonzero(mask)
        id_map = np.cumsum(mask) - 1

        engine.reactions = [source.reactions[i] for i in id_list]
        engine._reactant_stoich = source._reactant_stoich.select(mask, id_map)
        engine._rev_product_stoich = source._rev_product_stoich.select(mask, id_map)
        engine._irrev_product_stoich = source._irrev_product_stoich.select(mask, id_map)
        engine._revindex = [int(id_map[i]) for i in source._revindex if mask[i]]
        engine._irrevindex = [int(id_map[i]) for i in source._irrevindex if mask[i]]
        engine._dn = source._dn[id_list].copy()
        engine._perturb = source._perturb[id_list].copy()

        engine._rates = source._rates.select(mask, id_map)
        engine._plog_rates = source._plog_rates.select(mask, id_map)
        engine._cheb_rates = source._cheb_rates.select(mask, id_map)
        engine._three_body = source._three_body.select(mask, id_map)

        fallindx = np.asarray(source._fallindx, dtype=int)
        fall_mask = mask[fallindx] if fallindx.size else np.zeros(0, dtype=bool)
        fall_slots = np.flatnonzero(fall_mask)
        fall_map = np.cumsum(fall_mask) - 1
        engine._falloff_low = source._falloff_low.select(fall_mask, fall_map)
        engine._falloff_high = source._falloff_high.select(fall_mask, fall_map)
        engine._falloff_concm = source._falloff_concm.select(fall_mask, fall_map)
        engine._falloffn = source._falloffn.select(fall_slots)
        engine._fallindx = [int(id_map[fallindx[j]]) for j in fall_slots]
        engine._rfallindx = {i: slot for slot, i in enumerate(engine._fallindx)}

        engine._allocate()
        logger.info(
            "Reduced mechanism: %d of %d reactions kept (%d falloff)",
            engine.n_reactions,
            source.n_reactions,
            len(engine._fallindx),
        )
        return engine
