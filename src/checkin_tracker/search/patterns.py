"""Fuzzy search patterns for locating an attendee under noisy data entry.

Operators type record numbers and phone numbers in every shape imaginable:
with or without leading zeros, with separators, with or without the country
code. ``generate_search_patterns`` expands one query into an ordered list of
substrings; the roster ORs a case-insensitive "contains" test of each one
against name, record number and phone.

Generation is a chain of small stages. Earlier stages win: patterns are
de-duplicated in generation order and the chain stops once the size budget
is reached, so later (broader) stages only contribute for short inputs.
"""
from __future__ import annotations

import re
from itertools import chain, islice
from typing import Iterable, Iterator, List

from ..core.constants import MAX_SEARCH_PATTERNS

COUNTRY_CODE = "961"
COUNTRY_PREFIXES = (COUNTRY_CODE, f"+{COUNTRY_CODE}", f"00{COUNTRY_CODE}")
MOBILE_PREFIXES = ("03", "70", "71", "76", "78", "79", "81")
SEPARATORS = ("/", "-", " ", "_", ".", "(", ")", "+")
SHORT_SEPARATORS = ("/", "-", " ")
RECORD_PREFIXES = ("REC", "rec", "R", "r")
NAME_PREFIXES = ("mr", "mrs", "ms", "dr", "prof")
NAME_SUFFIXES = ("jr", "sr", "ii", "iii")

_NON_DIGIT = re.compile(r"\D")
_ALL_DIGITS = re.compile(r"^\d+$")


def _zeros(count: int) -> str:
    return "0" * count


def _splits(digits: str) -> Iterator[tuple[str, str]]:
    for i in range(1, len(digits)):
        yield digits[:i], digits[i:]


def _trim_steps(digits: str) -> List[str]:
    """Every value produced by stripping one leading zero at a time."""
    steps = []
    while digits.startswith("0") and len(digits) > 1:
        digits = digits[1:]
        steps.append(digits)
    return steps


def _variants(digits: str, trimmed: str) -> tuple[str, ...]:
    return (digits, trimmed)


def leading_zero_stage(digits: str) -> Iterator[str]:
    yield digits
    for count in range(1, 5):
        yield _zeros(count) + digits


def trimmed_stage(digits: str) -> Iterator[str]:
    for trimmed in _trim_steps(digits):
        yield trimmed
        if len(trimmed) >= 3:
            for before, after in _splits(trimmed):
                for sep in SHORT_SEPARATORS:
                    yield f"{before}{sep}{after}"


def country_code_stage(digits: str, trimmed: str) -> Iterator[str]:
    if len(digits) < 6:
        return
    for prefix in COUNTRY_PREFIXES:
        yield prefix + digits
    if trimmed != digits and len(trimmed) >= 6:
        for prefix in COUNTRY_PREFIXES:
            yield prefix + trimmed

    for mobile in MOBILE_PREFIXES:
        if mobile in digits:
            rest = digits.replace(mobile, "", 1)
            yield f"{mobile}{rest}"
            yield f"0{mobile}{rest}"
            yield f"{COUNTRY_CODE}{mobile}{rest}"
            yield f"+{COUNTRY_CODE}{mobile}{rest}"
        if trimmed != digits and mobile in trimmed:
            rest = trimmed.replace(mobile, "", 1)
            yield f"{mobile}{rest}"
            yield f"0{mobile}{rest}"
            yield f"{COUNTRY_CODE}{mobile}{rest}"
            yield f"+{COUNTRY_CODE}{mobile}{rest}"

    yield f"+{digits}"
    yield f"00{digits}"
    if trimmed != digits:
        yield f"+{trimmed}"
        yield f"00{trimmed}"


def separator_stage(digits: str, trimmed: str) -> Iterator[str]:
    for value in _variants(digits, trimmed):
        if len(value) < 2:
            continue
        for before, after in _splits(value):
            for sep in SEPARATORS:
                yield f"{before}{sep}{after}"
                for count in range(1, 4):
                    zeros = _zeros(count)
                    yield f"{zeros}{before}{sep}{after}"
                    yield f"{before}{sep}{zeros}{after}"
                if len(value) >= 6:
                    for prefix in COUNTRY_PREFIXES:
                        yield f"{prefix}{sep}{before}{sep}{after}"


def _phone_shapes(*parts: str) -> Iterator[str]:
    spaced = " ".join(parts)
    dashed = "-".join(parts)
    yield f"+{COUNTRY_CODE} {spaced}"
    yield f"+{COUNTRY_CODE}-{dashed}"
    yield f"{COUNTRY_CODE} {spaced}"
    yield f"{COUNTRY_CODE}-{dashed}"


def phone_format_stage(digits: str, trimmed: str) -> Iterator[str]:
    for value in _variants(digits, trimmed):
        if len(value) < 6:
            continue
        head, tail = value[:2], value[2:]
        yield from _phone_shapes(head, tail)
        yield f"00{COUNTRY_CODE} {head} {tail}"
        yield f"00{COUNTRY_CODE}-{head}-{tail}"
        yield f"0{head} {tail}"
        yield f"0{head}-{tail}"
        yield f"0{head}/{tail}"
        yield f"(+{COUNTRY_CODE}) {head} {tail}"
        yield f"({COUNTRY_CODE}) {head} {tail}"

        for split in range(2, min(4, len(value) - 2) + 1):
            part1, part2 = value[:split], value[split:]
            yield from _phone_shapes(part1, part2)
            yield f"0{part1} {part2}"
            yield f"0{part1}-{part2}"
            yield f"0{part1}/{part2}"
            yield f"(+{COUNTRY_CODE}) {part1} {part2}"
            yield f"({COUNTRY_CODE}) {part1} {part2}"

            if len(part2) >= 4:
                middle = len(part2) // 2
                sub1, sub2 = part2[:middle], part2[middle:]
                yield from _phone_shapes(part1, sub1, sub2)
                yield f"0{part1} {sub1} {sub2}"
                yield f"0{part1}-{sub1}-{sub2}"
                yield f"(+{COUNTRY_CODE}) {part1} {sub1} {sub2}"
                yield f"({COUNTRY_CODE}) {part1} {sub1} {sub2}"


def record_number_stage(digits: str, trimmed: str) -> Iterator[str]:
    for value in _variants(digits, trimmed):
        if len(value) < 3:
            continue
        shapes = [
            lambda d: f"{d[:2]}/{d[2:]}",
            lambda d: f"{d[:3]}/{d[3:]}",
            lambda d: f"{d[:2]}-{d[2:]}",
            lambda d: f"{d[:3]}-{d[3:]}",
        ]
        shapes.extend(lambda d, p=prefix: f"{p}{d}" for prefix in RECORD_PREFIXES)
        for shape in shapes:
            yield shape(value)
            for count in range(1, 4):
                yield shape(_zeros(count) + value)


def reversed_stage(digits: str, trimmed: str) -> Iterator[str]:
    for value in _variants(digits, trimmed):
        if len(value) < 4:
            continue
        backwards = value[::-1]
        yield backwards
        for before, after in _splits(backwards):
            for sep in SHORT_SEPARATORS:
                yield f"{before}{sep}{after}"


def chunk_stage(digits: str, trimmed: str) -> Iterator[str]:
    for value in _variants(digits, trimmed):
        if len(value) < 4:
            continue
        for start in range(len(value) - 2):
            for end in range(start + 3, len(value) + 1):
                chunk = value[start:end]
                yield chunk
                yield f"0{chunk}"
                yield f"00{chunk}"


def digit_stages(term: str) -> Iterator[str]:
    digits = _NON_DIGIT.sub("", term)
    if len(digits) < 2:
        return
    steps = _trim_steps(digits)
    trimmed = steps[-1] if steps else digits
    yield from chain(
        leading_zero_stage(digits),
        trimmed_stage(digits),
        country_code_stage(digits, trimmed),
        separator_stage(digits, trimmed),
        phone_format_stage(digits, trimmed),
        record_number_stage(digits, trimmed),
        reversed_stage(digits, trimmed),
        chunk_stage(digits, trimmed),
    )


def name_stage(term: str) -> Iterator[str]:
    if _ALL_DIGITS.match(term):
        return
    lowered = term.lower()
    yield term.upper()
    for prefix in NAME_PREFIXES:
        yield f"{prefix} {lowered}"
        yield f"{prefix.upper()} {lowered}"
    for suffix in NAME_SUFFIXES:
        yield f"{lowered} {suffix}"
        yield f"{lowered} {suffix.upper()}"


def _unique(patterns: Iterable[str]) -> Iterator[str]:
    seen: set[str] = set()
    for pattern in patterns:
        if pattern not in seen:
            seen.add(pattern)
            yield pattern


def generate_search_patterns(query: str, *, limit: int = MAX_SEARCH_PATTERNS) -> List[str]:
    """Expand ``query`` into at most ``limit`` distinct substring patterns."""

    term = (query or "").strip()
    if not term:
        return [""]

    stages = chain((term.lower(),), digit_stages(term), name_stage(term))
    return list(islice(_unique(stages), limit))
