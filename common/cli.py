import math
from typing import Callable

Reader = Callable[[str], str]
Writer = Callable[[str], None]


def parse_top_k(raw: str, default: int) -> int:
    """Positive finite number from user input, floored; anything else gives `default`."""
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return max(1, math.floor(value))
