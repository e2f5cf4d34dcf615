"""
Lexicographic card ranks.

A rank is `0|` followed by a base-26 number written in lowercase letters, so
plain string comparison orders cards. New cards are ranked after their last
sibling.
"""

from __future__ import annotations

import string

ALPHABET = string.ascii_lowercase
BASE = len(ALPHABET)
PREFIX = "0|"

FIRST_RANK = PREFIX + ALPHABET[0]


def enbase(number: int) -> str:
    if number == 0:
        return ALPHABET[0]
    digits = ""
    while number > 0:
        digits = ALPHABET[number % BASE] + digits
        number //= BASE
    return digits


def debase(digits: str) -> int:
    number = 0
    for char in digits:
        number = number * BASE + ALPHABET.index(char)
    return number


def rank_after(rank: str) -> str:
    """Next rank after `rank`; grows a digit instead of carrying over."""
    digits = rank.removeprefix(PREFIX)
    following = enbase(debase(digits) + 1)
    if len(following) > len(digits):
        return PREFIX + digits + ALPHABET[BASE // 2]
    return PREFIX + following


def rank_between(lower: str, upper: str) -> str:
    """
    Rank strictly between two ranks.

    Raises:
        ValueError: `lower` is not smaller than `upper`
    """
    low = lower.removeprefix(PREFIX)
    high = upper.removeprefix(PREFIX)
    width = max(len(low), len(high))
    low, high = low.ljust(width, ALPHABET[0]), high.ljust(width, ALPHABET[0])
    low_number, high_number = debase(low), debase(high)
    if low_number >= high_number:
        raise ValueError("Lower rank must be smaller than upper rank")

    middle = enbase((low_number + high_number) // 2).rjust(width, ALPHABET[0])
    if middle not in (low, high):
        return PREFIX + middle
    return PREFIX + middle + ALPHABET[BASE // 2]


def next_rank(ranks: list[str]) -> str:
    """Rank for an item placed after every ranked item in `ranks`."""
    ranked = [r for r in ranks if r]
    return rank_after(max(ranked) if ranked else FIRST_RANK)
