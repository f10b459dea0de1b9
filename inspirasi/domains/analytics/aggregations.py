"""Counting, ranking and mode helpers shared by the insight generators.

Every helper preserves first-seen order, so ties are always resolved in
favour of the value that appeared earliest in the stored event order.
"""

import math
from collections.abc import Hashable, Iterable
from typing import TypeVar

K = TypeVar("K", bound=Hashable)


def count_by(values: Iterable[K | None]) -> dict[K, int]:
    """Count occurrences in first-seen order, skipping missing values."""
    counts: dict[K, int] = {}
    for value in values:
        if value is None or value == "":
            continue
        counts[value] = counts.get(value, 0) + 1
    return counts


def distinct(values: Iterable[K | None]) -> list[K]:
    return list(count_by(values))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rank_with_percentage(counts: dict[K, int], limit: int) -> list[tuple[K, int, int]]:
    """Top ``limit`` items by count with their share of the group total.

    Returns ``(key, count, percentage)`` tuples; an empty group yields an
    empty list rather than a division by zero.
    """
    total = sum(counts.values())
    if total == 0:
        return []
    ranked = sorted(counts.items(), key=lambda x: x[1], reverse=True)
    return [(key, count, round_half_up(count / total * 100)) for key, count in ranked[:limit]]


def top_counts(counts: dict[K, int], limit: int) -> list[tuple[K, int]]:
    # sorted() is stable: equal counts keep first-seen order
    return sorted(counts.items(), key=lambda x: x[1], reverse=True)[:limit]


def mode(values: Iterable[K | None], default: K) -> K:
    """Most frequent value; ties go to the value encountered first."""
    counts = count_by(values)
    if not counts:
        return default
    best_key = default
    best_count = 0
    for key, count in counts.items():
        if count > best_count:
            best_key, best_count = key, count
    return best_key


def growth_rate(current: int, prior: int) -> float | None:
    """Period-over-period delta as a fraction of the prior count."""
    if prior == 0:
        return None
    return round((current - prior) / prior, 4)


def safe_mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0
