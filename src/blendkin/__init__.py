"""blendkin core package."""

from blendkin.constants import DEFAULT_CONTEXT, GAS_CONSTANT, ONE_ATM, NumericContext
from blendkin.errors import (
    BlendkinError,
    ConfigurationError,
    NonFiniteError,
    SingularSystemError,
)
from blendkin.kinetics import (
    KineticsConfiguration,
    KineticsEngine,
    QSSAAlgorithm,
    RxnActiveMgr,
)
from blendkin.mixture import Mixture
from blendkin.models import (
    NASA7,
    Arrhenius,
    CriticalProperties,
    Reaction,
    ReactionKind,
    Species,
)
from blendkin.thermo import BlendConfiguration, BlendedThermoPhase, IdealGasPhase

__all__ = [
    "DEFAULT_CONTEXT",
    "GAS_CONSTANT",
    "ONE_ATM",
    "NumericContext",
    "BlendkinError",
    "ConfigurationError",
    "NonFiniteError",
    "SingularSystemError",
    "KineticsConfiguration",
    "KineticsEngine",
    "QSSAAlgorithm",
    "RxnActiveMgr",
    "Mixture",
    "NASA7",
    "Arrhenius",
    "CriticalProperties",
    "Reaction",
    "ReactionKind",
    "Species",
    "BlendConfiguration",
    "BlendedThermoPhase",
    "IdealGasPhase",
]
