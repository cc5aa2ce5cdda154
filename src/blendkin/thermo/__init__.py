from .base import ThermoPhase
from .blend import BlendConfiguration, BlendedThermoPhase
from .critical import CRITICAL_TABLE, CriticalData, resolve_critical_data
from .cubic import CubicEOSSolver, CubicRoot, RootCase, solve_cubic
from .ideal import IdealGasPhase, ReferenceState, ReferenceThermo
from .real_fluid import RealFluidState

__all__ = [
    "ThermoPhase",
    "BlendConfiguration",
    "BlendedThermoPhase",
    "CRITICAL_TABLE",
    "CriticalData",
    "resolve_critical_data",
    "CubicEOSSolver",
    "CubicRoot",
    "RootCase",
    "solve_cubic",
    "IdealGasPhase",
    "ReferenceState",
    "ReferenceThermo",
    "RealFluidState",
]
