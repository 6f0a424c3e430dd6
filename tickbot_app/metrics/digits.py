"""Digit distribution statistics over the rolling digit buffer"""

from typing import Sequence


def digit_histogram(digits: Sequence[int]) -> list[float]:
    """
    Percentage of occurrences of each digit 0-9.

    Returns all zeros for an empty buffer; otherwise the ten values sum to 100
    (up to float rounding).
    """
    counts = [0] * 10
    for digit in digits:
        counts[digit] += 1
    total = len(digits)
    if total == 0:
        return [0.0] * 10
    return [count * 100.0 / total for count in counts]


def even_odd_split(digits: Sequence[int]) -> tuple[float, float]:
    """(even %, odd %) of the digit buffer, (0, 0) when empty"""
    total = len(digits)
    if total == 0:
        return 0.0, 0.0
    even = sum(1 for d in digits if d % 2 == 0)
    return even * 100.0 / total, (total - even) * 100.0 / total


def over_under_counts(digits: Sequence[int]) -> list[tuple[int, int]]:
    """For each digit i, (count strictly greater than i, count strictly less than i)"""
    counts = [0] * 10
    for digit in digits:
        counts[digit] += 1
    table = []
    for i in range(10):
        over = sum(counts[i + 1:])
        under = sum(counts[:i])
        table.append((over, under))
    return table


def over_under_table(digits: Sequence[int]) -> list[tuple[float, float]]:
    """Over/under counts for every digit as percentages of the buffer length"""
    total = len(digits)
    if total == 0:
        return [(0.0, 0.0)] * 10
    return [(over * 100.0 / total, under * 100.0 / total)
            for over, under in over_under_counts(digits)]
