import random
from typing import Optional

MULTIPLIER_MIN = 1000
MULTIPLIER_MAX = 2000


def make_multiplier() -> float:
    """Uniform draw from [MULTIPLIER_MIN, MULTIPLIER_MAX)."""
    return MULTIPLIER_MIN + random.random() * (MULTIPLIER_MAX - MULTIPLIER_MIN)


def estimate_gdp(
    population: int,
    exchange_rate: Optional[float],
    currency_code: Optional[str],
    multiplier: Optional[float] = None,
) -> Optional[float]:
    """Rough GDP estimate: population * multiplier / exchange_rate.

    A country without any currency gets 0. A country whose currency has no
    usable rate gets None. The multiplier is random per call unless given,
    so the result is a noisy estimate, not a reproducible figure.
    """
    if not currency_code:
        return 0.0
    if exchange_rate is None or exchange_rate <= 0:
        return None
    if multiplier is None:
        multiplier = make_multiplier()
    return round(population * multiplier / exchange_rate, 2)
