"""Exceptions raised by blendkin."""

from __future__ import annotations

import numpy as np


class BlendkinError(Exception):
    """Base class for all blendkin errors."""


class ConfigurationError(BlendkinError):
    """The mixture or mechanism was set up inconsistently."""


class SingularSystemError(ConfigurationError):
    """The quasi-steady-state linear system could not be factorized."""


class NonFiniteError(BlendkinError, ArithmeticError):
    """A rate constant or rate of progress became NaN or infinite."""


def assert_finite(values: np.ndarray, name: str) -> None:
    """Raise :class:`NonFiniteError` naming the first non-finite entry."""
    bad = np.flatnonzero(~np.isfinite(values))
    if bad.size:
        raise NonFiniteError(f"{name}[{bad[0]}] is not finite ({values[bad[0]]}).")
