from __future__ import annotations

import re
import unicodedata
from typing import Any, Tuple

_DIGIT_RUN = re.compile(r"(\d+)")


def natural_key(value: Any) -> Tuple:
    """Sort key comparing text case-insensitively and digit runs numerically.

    ``"A2"`` sorts before ``"A10"``; ``None`` and blanks sort last.
    """

    if value is None:
        return (1,)
    text = unicodedata.normalize("NFKC", str(value)).strip().casefold()
    if not text:
        return (1,)
    parts = []
    for chunk in _DIGIT_RUN.split(text):
        if not chunk:
            continue
        if chunk.isdigit():
            # Numbers rank before letters at the same position.
            parts.append((0, int(chunk), chunk))
        else:
            parts.append((1, 0, chunk))
    return (0, tuple(parts))
