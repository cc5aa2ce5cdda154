from .active import RxnActiveMgr
from .engine import KineticsAlgorithm, KineticsConfiguration, KineticsEngine
from .falloff import FalloffManager
from .qssa import QSSAAlgorithm
from .rates import (
    ArrheniusRateSet,
    ChebyshevEvaluator,
    ChebyshevRateSet,
    PlogEvaluator,
    PlogRateSet,
    RateCalculatorSet,
)
from .stoichiometry import StoichManager
from .third_body import ThirdBodyCalculator

__all__ = [
    "RxnActiveMgr",
    "KineticsAlgorithm",
    "KineticsConfiguration",
    "KineticsEngine",
    "FalloffManager",
    "QSSAAlgorithm",
    "ArrheniusRateSet",
    "ChebyshevEvaluator",
    "ChebyshevRateSet",
    "PlogEvaluator",
    "PlogRateSet",
    "RateCalculatorSet",
    "StoichManager",
    "ThirdBodyCalculator",
]
