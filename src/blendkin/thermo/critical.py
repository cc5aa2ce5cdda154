"""Critical-point data for the real-fluid correction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

import numpy as np

from blendkin.constants import GAS_CONSTANT
from blendkin.errors import ConfigurationError
from blendkin.models import CriticalProperties, Species

logger = logging.getLogger(__name__)

# Tc [K], Pc [Pa], Vc [m3/kmol], acentric factor, dipole [Debye]
CRITICAL_TABLE: Mapping[str, CriticalProperties] = {
    "H2": CriticalProperties(33.0, 1.284e6, 64.28e-3, -0.216, 0.0),
    "O2": CriticalProperties(154.58, 5.043e6, 73.37e-3, 0.0222, 0.0),
    "H2O": CriticalProperties(647.10, 22.064e6, 55.95e-3, 0.3443, 1.855),
    "O": CriticalProperties(105.28, 7.088e6, 41.21e-3, 0.0, 0.0),
    "H": CriticalProperties(190.82, 31.013e6, 17.07e-3, 0.0, 0.0),
    "OH": CriticalProperties(105.28, 7.088e6, 41.21e-3, 0.0, 0.0),
    "H2O2": CriticalProperties(141.34, 4.786e6, 81.93e-3, 0.0, 0.0),
    "HO2": CriticalProperties(141.34, 4.786e6, 81.93e-3, 0.0, 0.0),
    "N2": CriticalProperties(126.19, 3.3958e6, 89.41e-3, 0.0372, 0.0),
}


@dataclass(frozen=True)
class CriticalData:
    """Per-species critical arrays; ``known`` marks species that have data."""

    temperature: np.ndarray
    pressure: np.ndarray
    volume: np.ndarray
    compressibility: np.ndarray
    density: np.ndarray
    acentric_factor: np.ndarray
    dipole: np.ndarray
    known: np.ndarray


def resolve_critical_data(
    species: Sequence[Species],
    allow_missing: bool = False,
    table: Mapping[str, CriticalProperties] = CRITICAL_TABLE,
    gas_constant: float = GAS_CONSTANT,
) -> CriticalData:
    """Collect critical properties, preferring the species' own data over the table.

    A species with neither is a configuration error unless ``allow_missing``
    is set, in which case it is logged and keeps zero critical data; such a
    species contributes nothing to the mixture a and b parameters.
    """
    n = len(species)
    tc, pc, vc, zc, rhoc, omega, dipole = (np.zeros(n) for _ in range(7))
    known = np.zeros(n, dtype=bool)
    missing = []
    for k, sp in enumerate(species):
        props = sp.critical if sp.critical is not None else table.get(sp.name)
        if props is None:
            missing.append(sp.name)
            continue
        tc[k] = props.temperature
        pc[k] = props.pressure
        vc[k] = props.volume
        zc[k] = props.compressibility(gas_constant)
        rhoc[k] = sp.molecular_weight / props.volume
        omega[k] = props.acentric_factor
        dipole[k] = props.dipole
        known[k] = True

    if missing:
        if not allow_missing:
            raise ConfigurationError(
                f"No critical properties for species {missing}; supply them on the "
                "Species or allow missing critical data explicitly."
            )
        for name in missing:
            logger.warning("Unknown species: %s. No critical properties found.", name)

    return CriticalData(tc, pc, vc, zc, rhoc, omega, dipole, known)
