"""Line protocol between the pipeline and the sort subprocess.

One record per line:

    <canonical form>[ <original text>][\t<sequence index>]\n

Neither text field may contain a space, tab or line break.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from isofilter.errors import ProtocolError


_FORBIDDEN = (" ", "\t", "\n", "\r")


@dataclass(frozen=True)
class CanonicalKeyLine:
    form: str
    original: Optional[str] = None
    index: Optional[int] = None


def _check_field(name: str, value: str) -> None:
    if not value:
        raise ProtocolError(f"empty {name} field")
    for ch in _FORBIDDEN:
        if ch in value:
            raise ProtocolError(f"{name} field contains {ch!r}: {value!r}")


def format_key_line(line: CanonicalKeyLine) -> str:
    _check_field("canonical", line.form)
    parts = [line.form]
    if line.original is not None:
        _check_field("original", line.original)
        parts.append(" ")
        parts.append(line.original)
    if line.index is not None:
        if line.index < 1:
            raise ProtocolError(f"sequence index must be positive, got {line.index}")
        parts.append(f"\t{line.index}")
    parts.append("\n")
    return "".join(parts)


def parse_key_line(text: str) -> CanonicalKeyLine:
    s = text.rstrip("\n")
    index: Optional[int] = None
    if "\t" in s:
        s, _, tail = s.partition("\t")
        try:
            index = int(tail.strip())
        except ValueError as exc:
            raise ProtocolError(f"index field corrupted: {text!r}") from exc
        if index < 1:
            raise ProtocolError(f"index field corrupted: {text!r}")

    form, sep, original = s.partition(" ")
    if not form:
        raise ProtocolError(f"record without canonical form: {text!r}")
    return CanonicalKeyLine(form=form, original=original if sep else None, index=index)
