"""Initial vertex colourings from partition strings."""
from __future__ import annotations

from typing import List, Optional, Tuple

from isofilter.errors import ConfigurationError


def expand_partition_string(fmt: str) -> str:
    """
    Expand the 'x^N' repetition shorthand: 'a^3b' -> 'aaab'.
    """
    out: List[str] = []
    i = 0
    while i < len(fmt):
        c = fmt[i]
        if i + 1 < len(fmt) and fmt[i + 1] == "^":
            j = i + 2
            while j < len(fmt) and fmt[j].isdigit():
                j += 1
            if j == i + 2:
                raise ConfigurationError(f"partition string {fmt!r}: '^' must be followed by a count")
            out.append(c * int(fmt[i + 2:j]))
            i = j
        else:
            out.append(c)
            i += 1
    return "".join(out)


def parse_partition(fmt: Optional[str], n: int) -> Tuple[int, ...]:
    """
    Colour ranks for vertices 0..n-1 from a partition string.

    One character is associated with each vertex, in order; the string is
    extended on the right with 'z'. Canonical labellings put vertices in
    ascending character order, so the returned ranks are dense integers
    ordered the same way. With a leading '-' the characters are assigned
    from the last vertex backwards and the order is descending.

    None or '' gives the unit partition (all zeros).
    """
    if not fmt:
        return (0,) * n

    descending = fmt.startswith("-")
    chars = expand_partition_string(fmt[1:] if descending else fmt)
    chars = (chars + "z" * max(0, n - len(chars)))[:n]
    if descending:
        chars = chars[::-1]
        keys = [-ord(c) for c in chars]
    else:
        keys = [ord(c) for c in chars]

    rank = {k: i for i, k in enumerate(sorted(set(keys)))}
    return tuple(rank[k] for k in keys)
