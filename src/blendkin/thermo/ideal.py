"""Ideal gas thermodynamics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

import numpy as np

from blendkin.constants import DEFAULT_CONTEXT, NumericContext
from blendkin.models import Species
from blendkin.thermo.base import ThermoPhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceState:
    """Dimensionless species properties at the reference pressure."""

    temperature: float
    cp_r: np.ndarray
    h_rt: np.ndarray
    s_r: np.ndarray
    g_rt: np.ndarray


class ReferenceThermo:
    """Evaluates NASA7 polynomials for a species set, cached by temperature."""

    def __init__(self, species: Sequence[Species]):
        self.n_species = len(species)
        self._low = np.array([sp.thermo.low for sp in species], dtype=float).reshape(-1, 7)
        self._high = np.array([sp.thermo.high for sp in species], dtype=float).reshape(-1, 7)
        self._t_mid = np.array([sp.thermo.t_mid for sp in species], dtype=float)
        self._cached: ReferenceState | None = None

    def evaluate(self, temperature: float) -> ReferenceState:
        if self._cached is not None and self._cached.temperature == temperature:
            return self._cached

        t = temperature
        c = np.where((t <= self._t_mid)[:, None], self._low, self._high)
        cp_r = c[:, 0] + t * (c[:, 1] + t * (c[:, 2] + t * (c[:, 3] + t * c[:, 4])))
        h_rt = (
            c[:, 0]
            + t * (c[:, 1] / 2.0 + t * (c[:, 2] / 3.0 + t * (c[:, 3] / 4.0 + t * c[:, 4] / 5.0)))
            + c[:, 5] / t
        )
        s_r = (
            c[:, 0] * np.log(t)
            + t * (c[:, 1] + t * (c[:, 2] / 2.0 + t * (c[:, 3] / 3.0 + t * c[:, 4] / 4.0)))
            + c[:, 6]
        )
        g_rt = h_rt - s_r
        for array in (cp_r, h_rt, s_r, g_rt):
            array.setflags(write=False)
        self._cached = ReferenceState(t, cp_r, h_rt, s_r, g_rt)
        return self._cached


class IdealGasPhase(ThermoPhase):
    """Ideal gas mixture with ideal mixing.

    The state is (temperature, mass density, mass fractions). Pressure follows
    from the ideal-gas law.
    """

    def __init__(
        self,
        species: Sequence[Species],
        reference_pressure: float | None = None,
        context: NumericContext = DEFAULT_CONTEXT,
    ):
        if not species:
            raise ValueError("A phase needs at least one species.")
        names = [sp.name for sp in species]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate species names in {names}.")

        self.species = tuple(species)
        self.context = context
        self.reference_pressure = (
            reference_pressure
            if reference_pressure is not None
            else species[0].thermo.reference_pressure
        )
        self._index = {name: k for k, name in enumerate(names)}
        self._mw = np.array([sp.molecular_weight for sp in species], dtype=float)
        self._mw.setflags(write=False)
        self._reference = ReferenceThermo(species)

        self._temperature = 298.15
        self._density = 0.0
        self._y = np.zeros(len(species))
        self._y[0] = 1.0
        self._x = np.zeros(len(species))
        self._mmw = 0.0
        self._update_mole_fractions()
        self._density = context.one_atm * self._mmw / (context.gas_constant * self._temperature)
        self.state_id = 0

    # Species set -------------------------------------------------------------

    @property
    def n_species(self) -> int:
        return len(self.species)

    @property
    def species_names(self) -> list[str]:
        return [sp.name for sp in self.species]

    def species_index(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise ValueError(f"Unknown species '{name}'.") from None

    def has_species(self, name: str) -> bool:
        return name in self._index

    @property
    def molecular_weights(self) -> np.ndarray:
        return self._mw

    # State -------------------------------------------------------------------

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def density(self) -> float:
        return self._density

    @property
    def mass_fractions(self) -> np.ndarray:
        return self._y.copy()

    @property
    def mole_fractions(self) -> np.ndarray:
        return self._x.copy()

    def mole_fraction(self, k: int) -> float:
        return float(self._x[k])

    @property
    def mean_molecular_weight(self) -> float:
        return self._mmw

    @property
    def molar_density(self) -> float:
        return self._density / self._mmw

    @property
    def molar_volume(self) -> float:
        return self._mmw / self._density

    @property
    def pressure(self) -> float:
        return self.context.gas_constant * self._temperature * self.molar_density

    def rt(self) -> float:
        return self.context.gas_constant * self._temperature

    def set_temperature(self, temperature: float) -> None:
        if not temperature > 0.0:
            raise ValueError(f"Temperature must be positive, got {temperature}.")
        self._temperature = float(temperature)
        self._touch()

    def set_density(self, density: float) -> None:
        if not density > 0.0:
            raise ValueError(f"Density must be positive, got {density}.")
        self._density = float(density)
        self._touch()

    def set_pressure(self, pressure: float) -> None:
        if not pressure > 0.0:
            raise ValueError(f"Pressure must be positive, got {pressure}.")
        self.set_density(pressure * self._mmw / self.rt())

    def set_mass_fractions(self, fractions: Sequence[float] | Mapping[str, float]) -> None:
        self._y = self._normalized(fractions)
        self._update_mole_fractions()
        self._touch()

    def set_mole_fractions(self, fractions: Sequence[float] | Mapping[str, float]) -> None:
        x = self._normalized(fractions)
        y = x * self._mw
        self._y = y / y.sum()
        self._update_mole_fractions()
        self._touch()

    def set_state_tpx(self, temperature: float, pressure: float, mole_fractions) -> None:
        self.set_temperature(temperature)
        self.set_mole_fractions(mole_fractions)
        self.set_pressure(pressure)

    def set_state_tpy(self, temperature: float, pressure: float, mass_fractions) -> None:
        self.set_temperature(temperature)
        self.set_mass_fractions(mass_fractions)
        self.set_pressure(pressure)

    def set_state_try(self, temperature: float, density: float, mass_fractions) -> None:
        self.set_temperature(temperature)
        self.set_mass_fractions(mass_fractions)
        self.set_density(density)

    def _normalized(self, fractions) -> np.ndarray:
        if isinstance(fractions, Mapping):
            values = np.zeros(self.n_species)
            for name, value in fractions.items():
                values[self.species_index(name)] = value
        else:
            values = np.array(fractions, dtype=float)
            if values.shape != (self.n_species,):
                raise ValueError(
                    f"Expected {self.n_species} fractions, got shape {values.shape}."
                )
        values = np.clip(values, 0.0, None)
        total = values.sum()
        if total <= 0.0:
            raise ValueError("Fractions must have a positive sum.")
        return values / total

    def _update_mole_fractions(self) -> None:
        moles = self._y / self._mw
        self._mmw = 1.0 / moles.sum()
        self._x = moles * self._mmw

    def _touch(self) -> None:
        self.state_id += 1

    # Reference state ---------------------------------------------------------

    def reference_state(self) -> ReferenceState:
        return self._reference.evaluate(self._temperature)

    def get_enthalpy_rt_ref(self) -> np.ndarray:
        return self.reference_state().h_rt.copy()

    def get_entropy_r_ref(self) -> np.ndarray:
        return self.reference_state().s_r.copy()

    def get_gibbs_rt_ref(self) -> np.ndarray:
        return self.reference_state().g_rt.copy()

    def get_gibbs_ref(self) -> np.ndarray:
        return self.reference_state().g_rt * self.rt()

    def get_cp_r_ref(self) -> np.ndarray:
        return self.reference_state().cp_r.copy()

    def get_int_energy_rt_ref(self) -> np.ndarray:
        return self.reference_state().h_rt - 1.0

    def get_standard_volumes_ref(self) -> np.ndarray:
        return np.full(self.n_species, self.rt() / self.reference_pressure)

    # Standard state at the current T and P ----------------------------------

    def _log_p_ratio(self) -> float:
        return float(np.log(self.pressure / self.reference_pressure))

    def standard_concentration(self, k: int = 0) -> float:
        return self.pressure / self.rt()

    def get_enthalpy_rt(self) -> np.ndarray:
        return self.get_enthalpy_rt_ref()

    def get_entropy_r(self) -> np.ndarray:
        return self.reference_state().s_r - self._log_p_ratio()

    def get_gibbs_rt(self) -> np.ndarray:
        return self.reference_state().g_rt + self._log_p_ratio()

    def get_pure_gibbs(self) -> np.ndarray:
        return self.get_gibbs_rt() * self.rt()

    def get_int_energy_rt(self) -> np.ndarray:
        return self.get_int_energy_rt_ref()

    def get_cp_r(self) -> np.ndarray:
        return self.get_cp_r_ref()

    def get_standard_volumes(self) -> np.ndarray:
        return np.full(self.n_species, 1.0 / self.molar_density)

    def get_standard_chem_potentials(self) -> np.ndarray:
        return self.get_pure_gibbs()

    # Mixture and partial molar properties -----------------------------------

    def mean_x(self, values: np.ndarray) -> float:
        return float(np.dot(self._x, values))

    def sum_xlogx(self) -> float:
        x = self._x[self._x > 0.0]
        return float(np.sum(x * np.log(x)))

    def get_concentrations(self) -> np.ndarray:
        return self._x * self.molar_density

    def get_activity_concentrations(self) -> np.ndarray:
        return self.get_concentrations()

    def get_activity_coefficients(self) -> np.ndarray:
        return np.ones(self.n_species)

    def get_chem_potentials(self) -> np.ndarray:
        x = np.maximum(self._x, self.context.small_number)
        return self.get_standard_chem_potentials() + self.rt() * np.log(x)

    def get_partial_molar_enthalpies(self) -> np.ndarray:
        return self.reference_state().h_rt * self.rt()

    def get_partial_molar_entropies(self) -> np.ndarray:
        r = self.context.gas_constant
        x = np.maximum(self._x, self.context.small_number)
        return r * (self.reference_state().s_r - self._log_p_ratio() - np.log(x))

    def get_partial_molar_int_energies(self) -> np.ndarray:
        return self.rt() * (self.reference_state().h_rt - 1.0)

    def get_partial_molar_cp(self) -> np.ndarray:
        return self.reference_state().cp_r * self.context.gas_constant

    def get_partial_molar_volumes(self) -> np.ndarray:
        return self.get_standard_volumes()

    def enthalpy_mole(self) -> float:
        return self.rt() * self.mean_x(self.reference_state().h_rt)

    def entropy_mole(self) -> float:
        r = self.context.gas_constant
        return r * (self.mean_x(self.reference_state().s_r) - self.sum_xlogx() - self._log_p_ratio())

    def cp_mole(self) -> float:
        return self.context.gas_constant * self.mean_x(self.reference_state().cp_r)

    def cv_mole(self) -> float:
        return self.cp_mole() - self.context.gas_constant

    def int_energy_mole(self) -> float:
        return self.enthalpy_mole() - self.pressure * self.molar_volume

    def gibbs_mole(self) -> float:
        return self.enthalpy_mole() - self._temperature * self.entropy_mole()

    def enthalpy_mass(self) -> float:
        return self.enthalpy_mole() / self._mmw

    def entropy_mass(self) -> float:
        return self.entropy_mole() / self._mmw

    def cp_mass(self) -> float:
        return self.cp_mole() / self._mmw

    def cv_mass(self) -> float:
        return self.cv_mole() / self._mmw

    def int_energy_mass(self) -> float:
        return self.int_energy_mole() / self._mmw

    # Equilibrium helper ------------------------------------------------------

    def set_to_equil_state(self, mu_rt: Sequence[float]) -> None:
        """Set the state from dimensionless species chemical potentials.

        Partial pressures follow p_k = p0 exp(mu_k/RT - g0_k/RT); very small
        exponents give zero and very large ones grow quadratically past
        exp(300) instead of overflowing.
        """
        tmp = np.asarray(mu_rt, dtype=float) - self.reference_state().g_rt
        p0 = self.reference_pressure
        partial = np.where(
            tmp < -600.0,
            0.0,
            np.where(
                tmp > 300.0,
                p0 * np.exp(300.0) * (tmp / 300.0) ** 2,
                p0 * np.exp(np.minimum(tmp, 300.0)),
            ),
        )
        total = float(partial.sum())
        logger.debug("Equilibrium state pressure %.6g Pa", total)
        self.set_mole_fractions(partial)
        self.set_pressure(total)
