import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward."""
    return int(math.floor(value + 0.5))


def scale_stat(value, multiplier: float):
    """Scale a stat by a rarity multiplier; missing/zero stats stay unset, others floor at 1."""
    if not value:
        return None
    return max(1, round_half_up(value * multiplier))
