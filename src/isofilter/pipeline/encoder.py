"""Turning decoded graphs into sort records."""
from __future__ import annotations

from typing import Optional

from isofilter.canon.canonicalizer import Canonicalizer
from isofilter.errors import ConfigurationError, FormatConflictError
from isofilter.io.graph6 import DIGRAPH6, FORMATS, GRAPH6, FormatScan, GraphRecord
from isofilter.pipeline.protocol import CanonicalKeyLine


def resolve_output_format(
    override: Optional[str] = None,
    header: Optional[str] = None,
    first: Optional[str] = None,
    has_digraph: bool = False,
) -> str:
    """
    Output encoding for a whole run.

    An explicit override wins, then the input header, then the format of
    the first graph; graph6 otherwise.  Any digraph in the input forces
    digraph6 regardless.
    """
    if override is not None and override not in FORMATS:
        raise ConfigurationError(f"unknown output format {override!r}")
    if has_digraph:
        return DIGRAPH6
    return override or header or first or GRAPH6


def format_from_scan(scan: FormatScan, override: Optional[str] = None) -> str:
    return resolve_output_format(override, scan.header, scan.first, scan.has_digraph)


class CanonicalEncoder:
    """Builds one CanonicalKeyLine per input graph.

    The output format is fixed when the encoder is built; a directed graph
    arriving when that format is not digraph6 is an error, since earlier
    records have already been encoded in the other format.
    """

    def __init__(
        self,
        canonicalizer: Canonicalizer,
        fmt: str = GRAPH6,
        *,
        keep_original: bool = False,
        keep_index: bool = False,
    ):
        if fmt not in FORMATS:
            raise ConfigurationError(f"unknown output format {fmt!r}")
        self.canonicalizer = canonicalizer
        self.fmt = fmt
        self.keep_original = keep_original
        self.keep_index = keep_index

    def encode(self, record: GraphRecord) -> CanonicalKeyLine:
        if record.directed and self.fmt != DIGRAPH6:
            raise FormatConflictError(
                f"input graph {record.index} is directed but output format "
                f"{self.fmt} was fixed before it was read; digraphs need digraph6"
            )
        form = self.canonicalizer.canonical_form(record.graph, self.fmt)
        return CanonicalKeyLine(
            form=form,
            original=record.text if self.keep_original else None,
            index=record.index if self.keep_index else None,
        )
