"""Bounded bisection used where a closed form is not available (IRR)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class GoalSeekResult:
    status: str
    value: float | None
    achieved: float | None
    iterations: int
    message: str

    @property
    def solved(self) -> bool:
        return self.status == "solved"


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def bisect(
    evaluator: Callable[[float], float],
    lower_bound: float,
    upper_bound: float,
    target: float = 0.0,
    tol: float = 1e-7,
    max_iter: int = 200,
) -> GoalSeekResult:
    """Solve evaluator(x) == target on [lower_bound, upper_bound].

    The bracket is narrowed by the sign of ``evaluator(x) - target``. When the
    iteration budget runs out the bracket midpoint is returned with status
    ``"max_iter"``; the bracket is usually tight enough by then to use it.
    """
    lo = float(lower_bound)
    hi = float(upper_bound)
    if hi <= lo:
        return GoalSeekResult("failed", None, None, 0, "Upper bound must be greater than lower bound.")

    f_lo = float(evaluator(lo)) - target
    f_hi = float(evaluator(hi)) - target
    if not (math.isfinite(f_lo) and math.isfinite(f_hi)):
        return GoalSeekResult("failed", None, None, 0, "Evaluator is not finite at the bounds.")
    if _sign(f_lo) == _sign(f_hi):
        return GoalSeekResult("failed", None, None, 0, "Target is not bracketed in the selected bounds.")

    for i in range(1, max_iter + 1):
        mid = 0.5 * (lo + hi)
        y_mid = float(evaluator(mid))
        f_mid = y_mid - target
        if abs(f_mid) < tol:
            return GoalSeekResult("solved", mid, y_mid, i, "Converged.")
        if _sign(f_mid) == _sign(f_lo):
            lo, f_lo = mid, f_mid
        else:
            hi = mid

    mid = 0.5 * (lo + hi)
    return GoalSeekResult("max_iter", mid, float(evaluator(mid)), max_iter, "Reached max iterations before tolerance was met.")
