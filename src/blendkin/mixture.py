"""A reacting gas mixture: a blended phase plus a kinetics engine."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Sequence

import numpy as np

from blendkin.errors import ConfigurationError
from blendkin.kinetics.active import RxnActiveMgr
from blendkin.kinetics.engine import KineticsConfiguration, KineticsEngine
from blendkin.kinetics.qssa import QSSAAlgorithm
from blendkin.models import Reaction, Species
from blendkin.thermo.blend import BlendConfiguration, BlendedThermoPhase
from blendkin.thermo.ideal import IdealGasPhase

logger = logging.getLogger(__name__)


class Mixture:
    """Holds the thermodynamic state and the mechanism evaluated on it.

    The engine reads the phase it was built with, so both must be the same
    object.
    """

    def __init__(self, phase: IdealGasPhase, kinetics: KineticsEngine):
        if kinetics.phase is not phase:
            raise ConfigurationError("The kinetics engine must be built on the mixture's phase.")
        self.phase = phase
        self.kinetics = kinetics

    @classmethod
    def from_mechanism(
        cls,
        species: Sequence[Species],
        reactions: Iterable[Reaction],
        qss_species: Sequence[Species] = (),
        blend: BlendConfiguration = BlendConfiguration(),
        kinetics: KineticsConfiguration = KineticsConfiguration(),
    ) -> Mixture:
        phase = BlendedThermoPhase(species, blend)
        algorithm = QSSAAlgorithm(qss_species) if qss_species else None
        engine = KineticsEngine(phase, kinetics, algorithm, context=phase.context)
        skipped = 0
        for reaction in reactions:
            if not engine.add_reaction(reaction):
                skipped += 1
        if skipped:
            logger.info("Skipped %d reactions with undeclared species", skipped)
        return cls(phase, engine)

    @property
    def uses_qssa(self) -> bool:
        return isinstance(self.kinetics.algorithm, QSSAAlgorithm)

    def activity_manager(self) -> RxnActiveMgr:
        return RxnActiveMgr(self.kinetics)

    def reduced(self, active: Sequence[bool]) -> Mixture:
        """Mixture with only the active reactions, on a copy of the phase."""
        engine = KineticsEngine.reduce_from(self.kinetics, active)
        return Mixture(engine.phase, engine)

    def summary(self) -> Dict[str, Any]:
        """State, properties and rates as plain Python values."""
        phase = self.phase
        kin = self.kinetics
        data: Dict[str, Any] = {
            "T": phase.temperature,
            "P": phase.pressure,
            "density": phase.density,
            "enthalpy_mole": phase.enthalpy_mole(),
            "cp_mole": phase.cp_mole(),
            "cv_mole": phase.cv_mole(),
            "entropy_mole": phase.entropy_mole(),
            "forward_rop": kin.get_fwd_rates_of_progress().tolist(),
            "reverse_rop": kin.get_rev_rates_of_progress().tolist(),
            "net_rop": kin.get_net_rates_of_progress().tolist(),
            "net_production_rates": dict(
                zip(kin.species_names, kin.get_net_production_rates().tolist())
            ),
        }
        if self.uses_qssa:
            algorithm = kin.algorithm
            data["qss_concentrations"] = dict(
                zip(algorithm.names, np.asarray(algorithm.concentrations).tolist())
            )
        return data
