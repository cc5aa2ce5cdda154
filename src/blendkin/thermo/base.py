"""Base interface for thermodynamic phases."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


class ThermoPhase(ABC):
    """State holder for a single-phase gas mixture.

    Subclasses own their composition, temperature and density and expose the
    properties the kinetics engine needs. ``state_id`` increases on every
    mutation so dependents can tell whether anything changed since they last
    looked.
    """

    state_id: int

    @property
    @abstractmethod
    def temperature(self) -> float:
        """Temperature (K)."""

    @property
    @abstractmethod
    def density(self) -> float:
        """Mass density (kg/m^3)."""

    @property
    @abstractmethod
    def pressure(self) -> float:
        """Pressure (Pa)."""

    @abstractmethod
    def set_pressure(self, pressure: float) -> None:
        """Set the density that corresponds to ``pressure`` at the current T and composition."""

    @abstractmethod
    def enthalpy_mole(self) -> float:
        """Molar enthalpy of the mixture (J/kmol)."""

    @abstractmethod
    def cp_mole(self) -> float:
        """Molar heat capacity at constant pressure (J/kmol/K)."""

    @abstractmethod
    def cv_mole(self) -> float:
        """Molar heat capacity at constant volume (J/kmol/K)."""

    @abstractmethod
    def entropy_mole(self) -> float:
        """Molar entropy of the mixture (J/kmol/K)."""

    @abstractmethod
    def get_activity_concentrations(self) -> np.ndarray:
        """Concentrations used in mass-action rate expressions (kmol/m^3)."""

    @abstractmethod
    def get_standard_chem_potentials(self) -> np.ndarray:
        """Standard-state chemical potentials at the current T and P (J/kmol)."""
