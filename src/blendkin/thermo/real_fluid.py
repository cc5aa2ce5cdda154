"""Peng-Robinson mixture parameters and departure functions.

Mixing rules follow the corresponding-states combination of pure-species
critical data with a fixed binary interaction coefficient:

    Tc_ij = sqrt(Tc_i Tc_j) (1 - k_ij)
    Vc_ij = (Vc_i^(1/3) + Vc_j^(1/3))^3 / 8
    Zc_ij = (Zc_i + Zc_j) / 2
    Pc_ij = Zc_ij R Tc_ij / Vc_ij
    w_ij  = (w_i + w_j) / 2

    a_ij(T) = 0.457236 (R Tc_ij)^2 / Pc_ij [1 + c_ij (1 - sqrt(T / Tc_ij))]^2
    b_i     = 0.077796 R Tc_i / Pc_i
    Am = sum_ij x_i x_j a_ij,  Bm = sum_i x_i b_i

Values are cached on two levels. A change of composition recomputes the
O(n^2) mixing pass and the thermodynamic derivatives; a change of only
temperature or density recomputes the derivatives alone.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from blendkin.constants import DEFAULT_CONTEXT, NumericContext
from blendkin.thermo.critical import CriticalData
from blendkin.thermo.cubic import CubicEOSSolver, CubicRoot

logger = logging.getLogger(__name__)

OMEGA_A = 0.457236
OMEGA_B = 0.077796
SQRT2 = math.sqrt(2.0)


class RealFluidState:
    """Peng-Robinson mixture state for a fixed species set."""

    def __init__(self, critical: CriticalData, context: NumericContext = DEFAULT_CONTEXT):
        self.critical = critical
        self.context = context
        self.solver = CubicEOSSolver(context.cubic_tolerance)
        n = critical.temperature.size
        self.n_species = n

        # mixing-rule tables, filled by update_mixture_constants
        self.tcrit_ij = np.zeros((n, n))
        self.pcrit_ij = np.zeros((n, n))
        self.vcrit_ij = np.zeros((n, n))
        self.zcrit_ij = np.zeros((n, n))
        self.omega_ij = np.zeros((n, n))
        self.cst_a = np.zeros((n, n))
        self.cst_b = np.zeros(n)
        self.cst_c = np.zeros((n, n))
        self._pair_known = np.outer(critical.known, critical.known)

        self.bm = 0.0
        self.am = 0.0
        self.dam_dt = 0.0
        self.d2am_dt2 = 0.0
        self.dam_dn = np.zeros(n)
        self.d2am_dtdn = np.zeros(n)
        self.dp_dt = 0.0
        self.dp_dv = 0.0
        self.dp_dn = np.zeros(n)
        self.dv_dn = np.zeros(n)
        self.k1 = 0.0
        self.dk1_dn = np.zeros(n)

        self._mole_fractions = np.zeros(n)
        self._temperature = 0.0
        self._molar_volume = 0.0
        self._composition_key: np.ndarray | None = None
        self._state_key: tuple[float, float] | None = None
        self.constants_updates = 0
        self.thermo_updates = 0

    # Cache -------------------------------------------------------------------

    def update(
        self,
        temperature: float,
        density: float,
        mass_fractions: np.ndarray,
        mole_fractions: np.ndarray,
        molar_volume: float,
    ) -> None:
        """Bring cached parameters in line with the given state."""
        if self._composition_key is None or not np.array_equal(
            self._composition_key, mass_fractions
        ):
            self._mole_fractions = np.array(mole_fractions, dtype=float)
            self._temperature = temperature
            self._molar_volume = molar_volume
            self.update_mixture_constants()
            self.update_mixture_thermodynamics()
            self._composition_key = np.array(mass_fractions, dtype=float)
            self._state_key = (temperature, density)
        elif self._state_key != (temperature, density):
            self._temperature = temperature
            self._molar_volume = molar_volume
            self.update_mixture_thermodynamics()
            self._state_key = (temperature, density)

    def invalidate(self) -> None:
        self._composition_key = None
        self._state_key = None

    # Mixture parameters ------------------------------------------------------

    def update_mixture_constants(self) -> None:
        """Recompute binary critical tables, a_ij, b_i, c_ij and Bm."""
        r = self.context.gas_constant
        crit = self.critical
        known = self._pair_known
        n = self.n_species

        k_ij = np.full((n, n), self.context.binary_interaction)
        np.fill_diagonal(k_ij, 0.0)

        self.tcrit_ij = np.sqrt(np.outer(crit.temperature, crit.temperature)) * (1.0 - k_ij)
        cube_root = np.cbrt(crit.volume)
        self.vcrit_ij = (cube_root[:, None] + cube_root[None, :]) ** 3 / 8.0
        self.zcrit_ij = 0.5 * (crit.compressibility[:, None] + crit.compressibility[None, :])
        self.omega_ij = 0.5 * (crit.acentric_factor[:, None] + crit.acentric_factor[None, :])
        safe_vc = np.where(known, self.vcrit_ij, 1.0)
        self.pcrit_ij = np.where(known, self.zcrit_ij * r * self.tcrit_ij / safe_vc, 0.0)

        safe_pc = np.where(known, self.pcrit_ij, 1.0)
        self.cst_a = np.where(known, OMEGA_A * (r * self.tcrit_ij) ** 2 / safe_pc, 0.0)
        self.cst_c = 0.37464 + 1.54226 * self.omega_ij - 0.26992 * self.omega_ij**2
        safe_pc_i = np.where(crit.known, crit.pressure, 1.0)
        self.cst_b = np.where(crit.known, OMEGA_B * r * crit.temperature / safe_pc_i, 0.0)

        self.bm = float(np.dot(self._mole_fractions, self.cst_b))
        self.constants_updates += 1
        logger.debug("Recomputed Peng-Robinson mixture constants, Bm = %.6g", self.bm)

    def update_mixture_thermodynamics(self) -> None:
        """Recompute Am and its T and composition derivatives, EOS derivatives and K1."""
        r = self.context.gas_constant
        t = self._temperature
        v = self._molar_volume
        x = self._mole_fractions
        bm = self.bm
        known = self._pair_known

        safe_tc = np.where(known, self.tcrit_ij, 1.0)
        safe_pc = np.where(known, self.pcrit_ij, 1.0)
        sqrt_t = np.sqrt(t / safe_tc)
        alpha = 1.0 + self.cst_c * (1.0 - sqrt_t)
        a_ij = self.cst_a * alpha**2
        g_ij = np.where(known, self.cst_c * sqrt_t / alpha, 0.0)
        d_ij = np.where(
            known,
            self.cst_c * (1.0 + self.cst_c) * safe_tc / safe_pc * np.sqrt(safe_tc / t),
            0.0,
        )

        xx = np.outer(x, x)
        self.am = float(np.sum(xx * a_ij))
        self.dam_dt = float(-np.sum(xx * a_ij * g_ij)) / t
        self.d2am_dt2 = float(np.sum(xx * d_ij)) * OMEGA_A * r**2 / (2.0 * t)
        self.dam_dn = 2.0 * (a_ij @ x)
        self.d2am_dtdn = -2.0 / t * ((a_ij * g_ij) @ x)

        quad = v * v + 2.0 * bm * v - bm * bm
        excess = v - bm
        b = self.cst_b
        self.dp_dn = (
            r * t / excess
            + r * t * b / excess**2
            - self.dam_dn / quad
            + 2.0 * self.am * b * excess / quad**2
        )
        self.dp_dt = r / excess - self.dam_dt / quad
        self.dp_dv = -r * t / excess**2 + 2.0 * self.am * (v + bm) / quad**2

        if bm > 0.0:
            self.k1 = (
                1.0 / (math.sqrt(8.0) * bm)
                * math.log((v + (1.0 - SQRT2) * bm) / (v + (1.0 + SQRT2) * bm))
            )
            b_ratio = b / bm
        else:
            # limit of K1 as Bm -> 0
            self.k1 = -1.0 / v
            b_ratio = np.zeros_like(b)

        self.dv_dn = -self.dp_dn / self.dp_dv
        self.dk1_dn = self.dv_dn / quad - b_ratio * (self.k1 + v / quad)
        self.thermo_updates += 1

    # EOS ---------------------------------------------------------------------

    def pressure(self) -> float:
        """Peng-Robinson pressure at the cached temperature and molar volume."""
        r = self.context.gas_constant
        v = self._molar_volume
        bm = self.bm
        return r * self._temperature / (v - bm) - self.am / (v * v + 2.0 * v * bm - bm * bm)

    def compressibility_root(self, pressure: float, temperature: float) -> CubicRoot:
        rt = self.context.gas_constant * temperature
        a_star = self.am * pressure / rt**2
        b_star = self.bm * pressure / rt
        return self.solver.peng_robinson_z(a_star, b_star)

    def volume_from_pressure_temperature(self, pressure: float, temperature: float) -> float:
        """Molar volume (m3/kmol) solving the Peng-Robinson cubic in Z."""
        root = self.compressibility_root(pressure, temperature)
        volume = self.context.gas_constant * temperature * root.value / pressure
        if not volume > self.bm:
            raise ValueError(
                f"Cubic root Z = {root.value:.6g} ({root.case.name}) gives a molar volume "
                f"{volume:.6g} not above the co-volume {self.bm:.6g}."
            )
        return volume

    # Departure functions -----------------------------------------------------

    def enthalpy_departure(self, pressure: float, molar_volume: float) -> float:
        rt = self.context.gas_constant * self._temperature
        return -rt + self.k1 * (self.am - self._temperature * self.dam_dt) + pressure * molar_volume

    def cp_departure(self) -> float:
        t = self._temperature
        return (
            -self.context.gas_constant
            - self.k1 * t * self.d2am_dt2
            - t * self.dp_dt**2 / self.dp_dv
        )

    def cv_departure(self) -> float:
        return -self._temperature * self.d2am_dt2 * self.k1

    def partial_molar_enthalpy_departures(self, pressure: float) -> np.ndarray:
        t = self._temperature
        rt = self.context.gas_constant * t
        return (
            -rt
            + self.dk1_dn * (self.am - t * self.dam_dt)
            + self.k1 * (self.dam_dn - t * self.d2am_dtdn)
            + pressure * self.dv_dn
        )
