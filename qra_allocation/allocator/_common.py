"""Shared utilities for allocation rules.

Contains clamping, half-up rounding matching the browser client, equal
splitting with a remainder, and residual correction that keeps rounded
values summing to their target.
"""

import math
from collections.abc import Hashable, Mapping

TOLERANCE = 0.01
STEP_PRECISION = 2
ACTIVITY_PRECISION = 1
DEFAULT_NON_RD_TIME = 10.0
MIN_PERCENT = 0.0
MAX_PERCENT = 100.0


def clamp_percent(value: float) -> float:
    """Clamp a percentage into ``[0, 100]``.

    Parameters
    ----------
    value : float
        Raw percentage.

    Returns
    -------
    float
        ``value`` limited to the valid range.
    """
    return min(MAX_PERCENT, max(MIN_PERCENT, value))


def round_half_up(value: float, precision: int = STEP_PRECISION) -> float:
    """Round like ``Math.round(value * 10**p) / 10**p``.

    Python's ``round`` uses banker's rounding; stored percentages were produced
    by half-up rounding, so this reproduces them exactly.

    Parameters
    ----------
    value : float
        Number to round.
    precision : int
        Decimal places to keep.

    Returns
    -------
    float
    """
    factor = 10**precision
    return math.floor(value * factor + 0.5) / factor


def equal_split(total: float, count: int, precision: int = STEP_PRECISION) -> list[float]:
    """Split ``total`` into ``count`` equal rounded shares.

    The rounding remainder is added to the first share so the shares sum to
    ``total`` on the precision grid.

    Parameters
    ----------
    total : float
        Amount to split.
    count : int
        Number of shares.
    precision : int
        Decimal places of each share.

    Returns
    -------
    list[float]
        ``count`` shares, empty when ``count`` is zero.
    """
    if count <= 0:
        return []
    share = round_half_up(total / count, precision)
    remainder = round_half_up(total - share * count, precision)
    shares = [share] * count
    if remainder != 0:
        shares[0] = round_half_up(share + remainder, precision)
    return shares


def settle_residual(
    values: Mapping[Hashable, float],
    target: float,
    precision: int = STEP_PRECISION,
) -> dict[Hashable, float]:
    """Assign the rounding residual of ``values`` to their largest member.

    Parameters
    ----------
    values : Mapping[Hashable, float]
        Already rounded values.
    target : float
        Sum the values should reach.
    precision : int
        Decimal places of the values.

    Returns
    -------
    dict[Hashable, float]
        Copy of ``values`` with the residual absorbed.
    """
    settled = dict(values)
    if not settled:
        return settled
    residual = round_half_up(target - sum(settled.values()), precision)
    if residual == 0:
        return settled
    largest = max(settled, key=lambda k: settled[k])
    settled[largest] = clamp_percent(round_half_up(settled[largest] + residual, precision))
    return settled


def scale_to(
    values: Mapping[Hashable, float],
    target: float,
    precision: int = STEP_PRECISION,
) -> dict[Hashable, float]:
    """Rescale ``values`` to sum to ``target``, preserving proportions.

    Falls back to an equal split when the current total is zero.

    Parameters
    ----------
    values : Mapping[Hashable, float]
        Current values.
    target : float
        Desired total.
    precision : int
        Decimal places of the results.

    Returns
    -------
    dict[Hashable, float]
    """
    keys = list(values)
    if not keys:
        return {}
    current = sum(values.values())
    if current > 0:
        ratio = target / current
        scaled = {k: clamp_percent(round_half_up(values[k] * ratio, precision)) for k in keys}
    else:
        scaled = dict(zip(keys, equal_split(target, len(keys), precision)))
    return settle_residual(scaled, target, precision)
