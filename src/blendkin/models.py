"""Data structures for species, rate parameters and reactions.

Reactions form a closed set of six kinds. Every consumer dispatches on
:class:`ReactionKind` and raises on anything else, so adding a kind means
touching each dispatch site.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import ClassVar, Mapping, Sequence, Union

import numpy as np

from blendkin.constants import GAS_CONSTANT, ONE_ATM


@dataclass(frozen=True)
class NASA7:
    """Two-range NASA 7-coefficient polynomial.

    cp/R = a1 + a2 T + a3 T² + a4 T³ + a5 T⁴
    h/RT = a1 + a2 T/2 + a3 T²/3 + a4 T³/4 + a5 T⁴/5 + a6/T
    s/R  = a1 ln T + a2 T + a3 T²/2 + a4 T³/3 + a5 T⁴/4 + a7
    """

    low: Sequence[float]
    high: Sequence[float]
    t_mid: float = 1000.0
    t_min: float = 200.0
    t_max: float = 6000.0
    reference_pressure: float = ONE_ATM

    def __post_init__(self) -> None:
        if len(self.low) != 7 or len(self.high) != 7:
            raise ValueError("NASA7 polynomials need exactly 7 coefficients per range.")

    def coefficients(self, temperature: float) -> Sequence[float]:
        return self.low if temperature <= self.t_mid else self.high

    def evaluate(self, temperature: float) -> tuple[float, float, float]:
        """Return (cp/R, h/RT, s/R) at ``temperature``."""
        a1, a2, a3, a4, a5, a6, a7 = self.coefficients(temperature)
        t = temperature
        cp_r = a1 + a2 * t + a3 * t**2 + a4 * t**3 + a5 * t**4
        h_rt = a1 + a2 * t / 2.0 + a3 * t**2 / 3.0 + a4 * t**3 / 4.0 + a5 * t**4 / 5.0 + a6 / t
        s_r = a1 * math.log(t) + a2 * t + a3 * t**2 / 2.0 + a4 * t**3 / 3.0 + a5 * t**4 / 4.0 + a7
        return cp_r, h_rt, s_r


@dataclass(frozen=True)
class CriticalProperties:
    temperature: float  # K
    pressure: float  # Pa
    volume: float  # m3/kmol
    acentric_factor: float = 0.0
    dipole: float = 0.0  # Debye

    def compressibility(self, gas_constant: float = GAS_CONSTANT) -> float:
        return self.pressure * self.volume / (gas_constant * self.temperature)


@dataclass(frozen=True)
class Species:
    name: str
    molecular_weight: float  # kg/kmol
    thermo: NASA7
    critical: CriticalProperties | None = None


@dataclass(frozen=True)
class Arrhenius:
    """Modified Arrhenius expression k = A T^b exp(-Ea / RT).

    ``activation_energy`` is in J/kmol.
    """

    pre_exponential: float
    temperature_exponent: float = 0.0
    activation_energy: float = 0.0

    def activation_temperature(self, gas_constant: float = GAS_CONSTANT) -> float:
        return self.activation_energy / gas_constant

    def rate_constant(self, temperature: float, gas_constant: float = GAS_CONSTANT) -> float:
        return (
            self.pre_exponential
            * temperature**self.temperature_exponent
            * np.exp(-self.activation_temperature(gas_constant) / temperature)
        )


@dataclass(frozen=True)
class PlogRate:
    """Table of (pressure [Pa], Arrhenius) nodes, several allowed per pressure."""

    rates: Sequence[tuple[float, Arrhenius]]

    def __post_init__(self) -> None:
        if not self.rates:
            raise ValueError("A PLOG rate needs at least one pressure node.")


@dataclass(frozen=True)
class ChebyshevRate:
    """Chebyshev expansion of log10(k) in reduced 1/T and reduced log10(P).

    ``coefficients`` has shape (n_temperature, n_pressure).
    """

    t_min: float
    t_max: float
    p_min: float
    p_max: float
    coefficients: Sequence[Sequence[float]]

    def __post_init__(self) -> None:
        if not (0.0 < self.t_min < self.t_max and 0.0 < self.p_min < self.p_max):
            raise ValueError("Chebyshev bounds must satisfy 0 < min < max.")


# Falloff blending functions --------------------------------------------------


@dataclass(frozen=True)
class Lindemann:
    work_size: ClassVar[int] = 0

    def update_temp(self, temperature: float, work: np.ndarray) -> None:
        pass

    def falloff(self, reduced_pressure: float, work: np.ndarray) -> float:
        return 1.0


@dataclass(frozen=True)
class Troe:
    """Troe falloff: F_cent from (A, T3, T1[, T2])."""

    a: float
    t3: float
    t1: float
    t2: float | None = None
    work_size: ClassVar[int] = 1

    def update_temp(self, temperature: float, work: np.ndarray) -> None:
        fcent = (1.0 - self.a) * _decay(temperature, self.t3) + self.a * _decay(temperature, self.t1)
        if self.t2 is not None:
            fcent += math.exp(-self.t2 / temperature)
        work[0] = math.log10(max(fcent, 1.0e-300))

    def falloff(self, reduced_pressure: float, work: np.ndarray) -> float:
        log_fcent = work[0]
        lpr = math.log10(max(reduced_pressure, 1.0e-300))
        cc = -0.4 - 0.67 * log_fcent
        nn = 0.75 - 1.27 * log_fcent
        f1 = (lpr + cc) / (nn - 0.14 * (lpr + cc))
        return 10.0 ** (log_fcent / (1.0 + f1 * f1))


@dataclass(frozen=True)
class SRI:
    """SRI falloff: F = d (a exp(-b/T) + exp(-T/c))^X T^e."""

    a: float
    b: float
    c: float
    d: float = 1.0
    e: float = 0.0
    work_size: ClassVar[int] = 2

    def update_temp(self, temperature: float, work: np.ndarray) -> None:
        base = self.a * math.exp(-self.b / temperature) + _decay(temperature, self.c)
        work[0] = math.log10(max(base, 1.0e-300))
        work[1] = self.d * temperature**self.e

    def falloff(self, reduced_pressure: float, work: np.ndarray) -> float:
        lpr = math.log10(max(reduced_pressure, 1.0e-300))
        xx = 1.0 / (1.0 + lpr * lpr)
        return 10.0 ** (xx * work[0]) * work[1]


FalloffFunction = Union[Lindemann, Troe, SRI]


def _decay(temperature: float, scale: float) -> float:
    # exp(-T/scale), with a zero scale meaning the term vanishes
    if abs(scale) < 1.0e-300:
        return 0.0
    return math.exp(-temperature / scale)


# Reactions -------------------------------------------------------------------


class ReactionKind(enum.Enum):
    ELEMENTARY = "elementary"
    THREE_BODY = "three_body"
    FALLOFF = "falloff"
    CHEMICALLY_ACTIVATED = "chemically_activated"
    PLOG = "plog"
    CHEBYSHEV = "chebyshev"


@dataclass(frozen=True)
class ThirdBody:
    efficiencies: Mapping[str, float] = field(default_factory=dict)
    default_efficiency: float = 1.0


@dataclass(frozen=True)
class _ReactionBase:
    reactants: Mapping[str, float]
    products: Mapping[str, float]
    reversible: bool = True
    orders: Mapping[str, float] = field(default_factory=dict)
    label: str = ""

    @property
    def equation(self) -> str:
        if self.label:
            return self.label
        arrow = " <=> " if self.reversible else " => "
        return _side(self.reactants) + arrow + _side(self.products)

    @property
    def reaction_orders(self) -> dict[str, float]:
        orders = dict(self.reactants)
        orders.update(self.orders)
        return orders


@dataclass(frozen=True)
class ElementaryReaction(_ReactionBase):
    rate: Arrhenius = Arrhenius(0.0)
    kind: ClassVar[ReactionKind] = ReactionKind.ELEMENTARY


@dataclass(frozen=True)
class ThreeBodyReaction(_ReactionBase):
    rate: Arrhenius = Arrhenius(0.0)
    third_body: ThirdBody = ThirdBody()
    kind: ClassVar[ReactionKind] = ReactionKind.THREE_BODY


@dataclass(frozen=True)
class FalloffReaction(_ReactionBase):
    low_rate: Arrhenius = Arrhenius(0.0)
    high_rate: Arrhenius = Arrhenius(0.0)
    third_body: ThirdBody = ThirdBody()
    falloff: FalloffFunction = Lindemann()
    kind: ClassVar[ReactionKind] = ReactionKind.FALLOFF


@dataclass(frozen=True)
class ChemicallyActivatedReaction(FalloffReaction):
    kind: ClassVar[ReactionKind] = ReactionKind.CHEMICALLY_ACTIVATED


@dataclass(frozen=True)
class PlogReaction(_ReactionBase):
    rate: PlogRate = PlogRate(((ONE_ATM, Arrhenius(0.0)),))
    kind: ClassVar[ReactionKind] = ReactionKind.PLOG


@dataclass(frozen=True)
class ChebyshevReaction(_ReactionBase):
    rate: ChebyshevRate = ChebyshevRate(300.0, 3000.0, 1.0e3, 1.0e7, ((0.0,),))
    kind: ClassVar[ReactionKind] = ReactionKind.CHEBYSHEV


Reaction = Union[
    ElementaryReaction,
    ThreeBodyReaction,
    FalloffReaction,
    ChemicallyActivatedReaction,
    PlogReaction,
    ChebyshevReaction,
]


def _side(stoich: Mapping[str, float]) -> str:
    terms = []
    for name, coeff in stoich.items():
        terms.append(name if coeff == 1.0 else f"{coeff:g} {name}")
    return " + ".join(terms)
