"""Real root of a monic cubic, as needed by the Peng-Robinson equation of state.

The polynomial is

    Z^3 + a2 Z^2 + a1 Z + a0 = 0

and is reduced to the depressed form t^3 + p t + q = 0 with Z = t - a2/3.
The sign of D = (p/3)^3 + (q/2)^2 selects the branch.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass

from blendkin.constants import CUBIC_TOLERANCE

logger = logging.getLogger(__name__)


class RootCase(enum.Enum):
    SINGLE = 1
    """One real root, two complex conjugates (D > 0)."""
    REPEATED = 2
    """|D| within tolerance; the closed form is numerically fragile here."""
    THREE_REAL = 3
    """Three distinct real roots; one was picked by the selection policy."""


@dataclass(frozen=True)
class CubicRoot:
    value: float
    case: RootCase
    discriminant: float

    @property
    def reduced_confidence(self) -> bool:
        """True when the caller should double-check the returned root."""
        return self.case is not RootCase.SINGLE


def _signed_cbrt(value: float) -> float:
    return math.copysign(abs(value) ** (1.0 / 3.0), value)


def reduced_coefficients(a0: float, a1: float, a2: float) -> tuple[float, float]:
    """Return (p, q) of the depressed cubic."""
    p = (3.0 * a1 - a2**2) / 3.0
    q = a0 + 2.0 * a2**3 / 27.0 - a2 * a1 / 3.0
    return p, q


def solve_cubic(a0: float, a1: float, a2: float, eps: float = CUBIC_TOLERANCE) -> CubicRoot:
    """Return the physically relevant real root of Z^3 + a2 Z^2 + a1 Z + a0.

    With three real roots the smallest is taken if it is non-negative,
    otherwise the largest. This is a selection policy, not a fugacity
    minimization. No error is raised; the caller checks that the root gives
    a volume above the co-volume.
    """
    p, q = reduced_coefficients(a0, a1, a2)
    det = (p / 3.0) ** 3 + (q / 2.0) ** 2
    shift = -a2 / 3.0

    if abs(det) <= eps:
        logger.warning("Repeated cubic root (D = %.3e) for coefficients %r", det, (a0, a1, a2))
        u = _signed_cbrt(-q / 2.0)
        return CubicRoot(shift + 2.0 * u, RootCase.REPEATED, det)

    if det > 0.0:
        root_det = math.sqrt(det)
        u = _signed_cbrt(-q / 2.0 + root_det)
        v = _signed_cbrt(-q / 2.0 - root_det)
        return CubicRoot(shift + u + v, RootCase.SINGLE, det)

    scale = 2.0 * math.sqrt(abs(p) / 3.0)
    arg = -q / (2.0 * math.sqrt((abs(p) / 3.0) ** 3))
    phi = math.acos(max(-1.0, min(1.0, arg)))
    roots = (
        shift + scale * math.cos(phi / 3.0),
        shift - scale * math.cos((phi - math.pi) / 3.0),
        shift - scale * math.cos((phi + math.pi) / 3.0),
    )
    z = min(roots)
    if z < 0.0:
        z = max(roots)
    return CubicRoot(z, RootCase.THREE_REAL, det)


class CubicEOSSolver:
    """Compressibility root finder for a two-parameter cubic EOS."""

    def __init__(self, eps: float = CUBIC_TOLERANCE):
        self.eps = eps
        self.last_root: CubicRoot | None = None

    def solve(self, a0: float, a1: float, a2: float) -> CubicRoot:
        self.last_root = solve_cubic(a0, a1, a2, self.eps)
        return self.last_root

    def peng_robinson_z(self, a_star: float, b_star: float) -> CubicRoot:
        """Compressibility factor from the dimensionless A = a P/(RT)^2 and B = b P/RT."""
        a0 = b_star**3 + b_star**2 - a_star * b_star
        a1 = -3.0 * b_star**2 - 2.0 * b_star + a_star
        a2 = b_star - 1.0
        return self.solve(a0, a1, a2)
