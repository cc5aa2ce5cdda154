"""Ideal-gas / Peng-Robinson blended gas phase.

Every real-fluid-aware property is reported as

    ideal value + blend_factor * departure

so ``blend_factor = 0`` is an ideal gas and ``blend_factor = 1`` the full
Peng-Robinson fluid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from blendkin.constants import DEFAULT_CONTEXT, ONE_ATM, NumericContext
from blendkin.models import Species
from blendkin.thermo.critical import CRITICAL_TABLE, resolve_critical_data
from blendkin.thermo.ideal import IdealGasPhase
from blendkin.thermo.real_fluid import RealFluidState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlendConfiguration:
    """Settings of a blended phase.

    Attributes:
        blend_factor: Weight of the real-fluid departure, in [0, 1].
        allow_missing_critical: Accept species without critical data (they
            get zero critical properties and a warning) instead of failing.
        reference_pressure: Pressure of the species reference state (Pa).
    """

    blend_factor: float = 1.0
    allow_missing_critical: bool = False
    reference_pressure: float = ONE_ATM

    def __post_init__(self) -> None:
        if not 0.0 <= self.blend_factor <= 1.0:
            raise ValueError(f"blend_factor must lie in [0, 1], got {self.blend_factor}.")


class BlendedThermoPhase(IdealGasPhase):
    """Gas phase with a Peng-Robinson correction weighted by ``blend_factor``.

    ``pressure`` is always the ideal-gas pressure of the ideal-gas density
    stored by the last :meth:`set_pressure` (or of the density itself after
    :meth:`set_density`). Entropy, chemical potentials and activity
    coefficients stay ideal.
    """

    def __init__(
        self,
        species: Sequence[Species],
        configuration: BlendConfiguration = BlendConfiguration(),
        context: NumericContext = DEFAULT_CONTEXT,
        critical_table=CRITICAL_TABLE,
    ):
        super().__init__(species, configuration.reference_pressure, context)
        self.configuration = configuration
        self.blend_factor = configuration.blend_factor
        self.critical = resolve_critical_data(
            self.species,
            allow_missing=configuration.allow_missing_critical,
            table=critical_table,
            gas_constant=context.gas_constant,
        )
        self.real_fluid = RealFluidState(self.critical, context)
        self._density_ideal = self._density

    # State -------------------------------------------------------------------

    @property
    def pressure(self) -> float:
        return self.context.gas_constant * self._density_ideal / self._mmw * self._temperature

    @property
    def ideal_density(self) -> float:
        return self._density_ideal

    def set_density(self, density: float) -> None:
        super().set_density(density)
        self._density_ideal = self._density

    def set_pressure(self, pressure: float) -> None:
        if not pressure > 0.0:
            raise ValueError(f"Pressure must be positive, got {pressure}.")
        density_ideal = pressure * self._mmw / self.rt()
        if self.blend_factor > 0.0:
            self._update_real_fluid()
            volume = self.real_fluid.volume_from_pressure_temperature(pressure, self._temperature)
            density_real = self._mmw / volume
        else:
            density_real = density_ideal
        self.set_density((1.0 - self.blend_factor) * density_ideal + self.blend_factor * density_real)
        self._density_ideal = density_ideal

    def _update_real_fluid(self) -> RealFluidState:
        self.real_fluid.update(
            self._temperature, self._density, self._y, self._x, self.molar_volume
        )
        return self.real_fluid

    # Bulk properties ---------------------------------------------------------

    def enthalpy_mole(self) -> float:
        h0 = super().enthalpy_mole()
        if self.blend_factor == 0.0:
            return h0
        rf = self._update_real_fluid()
        return h0 + self.blend_factor * rf.enthalpy_departure(self.pressure, self.molar_volume)

    def cp_mole(self) -> float:
        cp0 = super().cp_mole()
        if self.blend_factor == 0.0:
            return cp0
        return cp0 + self.blend_factor * self._update_real_fluid().cp_departure()

    def cv_mole(self) -> float:
        cv0 = super().cp_mole() - self.context.gas_constant
        if self.blend_factor == 0.0:
            return cv0
        return cv0 + self.blend_factor * self._update_real_fluid().cv_departure()

    def int_energy_mole(self) -> float:
        return self.enthalpy_mole() - self.pressure * self.molar_volume

    # Partial molar properties ------------------------------------------------

    def get_partial_molar_enthalpies(self) -> np.ndarray:
        hbar0 = super().get_partial_molar_enthalpies()
        if self.blend_factor == 0.0:
            return hbar0
        rf = self._update_real_fluid()
        return hbar0 + self.blend_factor * rf.partial_molar_enthalpy_departures(self.pressure)

    # Critical properties -----------------------------------------------------

    def crit_temperature(self) -> float:
        return self.mean_x(self.critical.temperature)

    def crit_pressure(self) -> float:
        return self.mean_x(self.critical.pressure)

    def crit_volume(self) -> float:
        return self.mean_x(self.critical.volume)

    def crit_compressibility(self) -> float:
        return self.mean_x(self.critical.compressibility)

    def get_crit_temperature(self) -> np.ndarray:
        return self.critical.temperature.copy()

    def get_crit_pressure(self) -> np.ndarray:
        return self.critical.pressure.copy()

    def get_crit_volume(self) -> np.ndarray:
        return self.critical.volume.copy()

    def get_crit_compressibility(self) -> np.ndarray:
        return self.critical.compressibility.copy()

    def get_acentric_factor(self) -> np.ndarray:
        return self.critical.acentric_factor.copy()

    def get_dipole_moment(self) -> np.ndarray:
        return self.critical.dipole.copy()
