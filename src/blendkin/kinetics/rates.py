"""Rate-constant calculators, grouped by expression type.

A set holds every reaction of one rate type and writes their rate
constants into a shared array at the reaction's index. Pressure-dependent
types split the work: ``update_c`` takes the pressure part once per state,
``update`` the temperature part.
"""

from __future__ import annotations

import copy
import math
from typing import Generic, Protocol, TypeVar

import numpy as np
from numpy.polynomial import chebyshev

from blendkin.constants import GAS_CONSTANT, SMALL_NUMBER
from blendkin.models import Arrhenius, ChebyshevRate, PlogRate

# Sentinel log-pressures bracketing a PLOG table, giving constant extrapolation.
_LOG_P_LOW = -1000.0
_LOG_P_HIGH = 1000.0


class RateEvaluator(Protocol):
    def update_c(self, parameter: float) -> None:
        """Take the pressure-dependent part (log P or log10 P)."""
        ...

    def rate_constant(self, log_t: float, recip_t: float) -> float:
        """Calculate the rate constant at the last pressure."""
        ...


class ArrheniusEvaluator:
    def __init__(self, rate: Arrhenius, gas_constant: float = GAS_CONSTANT):
        self.rate = rate
        self.log_a = math.log(rate.pre_exponential) if rate.pre_exponential > 0.0 else None
        self.b = rate.temperature_exponent
        self.ta = rate.activation_temperature(gas_constant)

    def update_c(self, parameter: float) -> None:
        pass

    def log_rate_constant(self, log_t: float, recip_t: float) -> float:
        if self.log_a is None:
            raise ValueError(
                f"log of a non-positive pre-exponential factor {self.rate.pre_exponential}"
            )
        return self.log_a + self.b * log_t - self.ta * recip_t

    def rate_constant(self, log_t: float, recip_t: float) -> float:
        return self.rate.pre_exponential * math.exp(self.b * log_t - self.ta * recip_t)


class PlogEvaluator:
    """Log-linear interpolation in ln P between Arrhenius nodes.

    Several expressions at one pressure are summed. Outside the table the
    first or last node is used unchanged.
    """

    def __init__(self, rate: PlogRate, gas_constant: float = GAS_CONSTANT):
        self.rate = rate
        nodes = sorted(rate.rates, key=lambda node: node[0])
        self._rates = [ArrheniusEvaluator(arrhenius, gas_constant) for _, arrhenius in nodes]
        log_ps: list[float] = []
        groups: list[tuple[int, int]] = []
        for j, (pressure, _) in enumerate(nodes):
            if pressure <= 0.0:
                raise ValueError(f"PLOG pressures must be positive, got {pressure}.")
            log_p = math.log(pressure)
            if log_ps and log_ps[-1] == log_p:
                groups[-1] = (groups[-1][0], j + 1)
            else:
                log_ps.append(log_p)
                groups.append((j, j + 1))
        self.log_pressures = np.array([_LOG_P_LOW, *log_ps, _LOG_P_HIGH])
        self._groups = [groups[0], *groups, groups[-1]]
        self.log_p = math.nan
        self._interval = 0

    def update_c(self, parameter: float) -> None:
        self.log_p = parameter
        i = int(np.searchsorted(self.log_pressures, parameter, side="right")) - 1
        self._interval = min(max(i, 0), self.log_pressures.size - 2)

    def _log_group(self, group: tuple[int, int], log_t: float, recip_t: float) -> float:
        start, stop = group
        if stop - start == 1:
            return self._rates[start].log_rate_constant(log_t, recip_t)
        k = SMALL_NUMBER
        for evaluator in self._rates[start:stop]:
            k += evaluator.rate_constant(log_t, recip_t)
        return math.log(k)

    def rate_constant(self, log_t: float, recip_t: float) -> float:
        i = self._interval
        log_p1, log_p2 = self.log_pressures[i], self.log_pressures[i + 1]
        log_k1 = self._log_group(self._groups[i], log_t, recip_t)
        log_k2 = self._log_group(self._groups[i + 1], log_t, recip_t)
        return math.exp(log_k1 + (log_k2 - log_k1) * (self.log_p - log_p1) / (log_p2 - log_p1))


class ChebyshevEvaluator:
    """log10 k = sum_t sum_p a_tp T_t(Tr) T_p(Pr) over reduced 1/T and log10 P."""

    def __init__(self, rate: ChebyshevRate):
        self.rate = rate
        self.coefficients = np.atleast_2d(np.asarray(rate.coefficients, dtype=float))
        self._tr_num = -1.0 / rate.t_min - 1.0 / rate.t_max
        self._tr_den = 1.0 / (1.0 / rate.t_max - 1.0 / rate.t_min)
        self._pr_num = -math.log10(rate.p_min) - math.log10(rate.p_max)
        self._pr_den = 1.0 / (math.log10(rate.p_max) - math.log10(rate.p_min))
        self._dot = np.zeros(self.coefficients.shape[0])

    def update_c(self, parameter: float) -> None:
        pr = (2.0 * parameter + self._pr_num) * self._pr_den
        self._dot = chebyshev.chebval(pr, self.coefficients.T)

    def rate_constant(self, log_t: float, recip_t: float) -> float:
        tr = (2.0 * recip_t + self._tr_num) * self._tr_den
        return 10.0 ** float(chebyshev.chebval(tr, self._dot))


E = TypeVar("E", ArrheniusEvaluator, PlogEvaluator, ChebyshevEvaluator)


class RateCalculatorSet(Generic[E]):
    """Rate expressions of one type writing into ``out[index]``."""

    evaluator_type: type

    def __init__(self, gas_constant: float = GAS_CONSTANT) -> None:
        self.gas_constant = gas_constant
        self.indices: list[int] = []
        self.evaluators: list[E] = []

    def __len__(self) -> int:
        return len(self.indices)

    def _make(self, parameters) -> E:
        return self.evaluator_type(parameters)

    def install(self, index: int, parameters) -> None:
        self.indices.append(index)
        self.evaluators.append(self._make(parameters))

    def replace(self, index: int, parameters) -> None:
        try:
            j = self.indices.index(index)
        except ValueError:
            raise IndexError(f"No rate installed for reaction {index}.") from None
        self.evaluators[j] = self._make(parameters)

    def update_c(self, parameter: float) -> None:
        for evaluator in self.evaluators:
            evaluator.update_c(parameter)

    def update(self, temperature: float, log_t: float, out: np.ndarray) -> None:
        recip_t = 1.0 / temperature
        for index, evaluator in zip(self.indices, self.evaluators):
            out[index] = evaluator.rate_constant(log_t, recip_t)

    def select(self, active: np.ndarray, id_map: np.ndarray) -> RateCalculatorSet[E]:
        """Copy keeping active indices, renumbered through ``id_map``."""
        reduced = type(self)(self.gas_constant)
        for index, evaluator in zip(self.indices, self.evaluators):
            if active[index]:
                reduced.indices.append(int(id_map[index]))
                reduced.evaluators.append(copy.copy(evaluator))
        return reduced


class ArrheniusRateSet(RateCalculatorSet[ArrheniusEvaluator]):
    evaluator_type = ArrheniusEvaluator

    def __init__(self, gas_constant: float = GAS_CONSTANT) -> None:
        super().__init__(gas_constant)
        self._arrays: tuple[np.ndarray, ...] | None = None

    def _make(self, parameters: Arrhenius) -> ArrheniusEvaluator:
        return ArrheniusEvaluator(parameters, self.gas_constant)

    def install(self, index: int, parameters: Arrhenius) -> None:
        super().install(index, parameters)
        self._arrays = None

    def replace(self, index: int, parameters: Arrhenius) -> None:
        super().replace(index, parameters)
        self._arrays = None

    def update(self, temperature: float, log_t: float, out: np.ndarray) -> None:
        if not self.indices:
            return
        if self._arrays is None:
            self._arrays = (
                np.array(self.indices, dtype=int),
                np.array([e.rate.pre_exponential for e in self.evaluators]),
                np.array([e.b for e in self.evaluators]),
                np.array([e.ta for e in self.evaluators]),
            )
        index, a, b, ta = self._arrays
        out[index] = a * np.exp(b * log_t - ta / temperature)

    def select(self, active: np.ndarray, id_map: np.ndarray) -> ArrheniusRateSet:
        reduced = super().select(active, id_map)
        reduced._arrays = None
        return reduced


class PlogRateSet(RateCalculatorSet[PlogEvaluator]):
    evaluator_type = PlogEvaluator

    def _make(self, parameters: PlogRate) -> PlogEvaluator:
        return PlogEvaluator(parameters, self.gas_constant)


class ChebyshevRateSet(RateCalculatorSet[ChebyshevEvaluator]):
    evaluator_type = ChebyshevEvaluator
