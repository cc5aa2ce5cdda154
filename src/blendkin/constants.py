"""Physical and numerical constants.

All quantities use SI units on a kmol basis (J/kmol, m³/kmol, kg/kmol).
"""

from __future__ import annotations

from dataclasses import dataclass

GAS_CONSTANT = 8314.46261815324  # J/kmol/K
ONE_ATM = 101325.0  # Pa

SMALL_NUMBER = 1.0e-300
BIG_NUMBER = 1.0e300

CUBIC_TOLERANCE = 1.0e-12
BINARY_INTERACTION = 0.1


@dataclass(frozen=True)
class NumericContext:
    """Immutable bundle of the constants a phase or kinetics engine uses.

    Instances are passed explicitly to the objects that need them, so two
    mixtures can run with different tolerances side by side.
    """

    gas_constant: float = GAS_CONSTANT
    one_atm: float = ONE_ATM
    small_number: float = SMALL_NUMBER
    big_number: float = BIG_NUMBER
    cubic_tolerance: float = CUBIC_TOLERANCE
    binary_interaction: float = BINARY_INTERACTION


DEFAULT_CONTEXT = NumericContext()
