from __future__ import annotations

import math
import random


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def poisson_delay_ms(mean_ms: float, rng: random.Random | None = None) -> int:
    """Random delay around ``mean_ms``, in milliseconds.

    Samples the exponential distribution (the gap between events of a Poisson
    process) by inverse CDF, ``-ln(U) * mean``, so independent pollers drift
    apart instead of hitting the upstream in lockstep. The result is clamped
    to ``[0.1 * mean, 10 * mean]``.
    """
    rand = rng.random if rng is not None else random.random
    u = rand()
    while u == 0.0:
        u = rand()

    delay = int(-math.log(u) * mean_ms)
    return clamp(delay, int(0.1 * mean_ms), int(10 * mean_ms))
