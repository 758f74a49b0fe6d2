"""Reading and writing graph6, sparse6 and digraph6 lines."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple, Union

import networkx as nx
from networkx.readwrite.graph6 import data_to_n, n_to_data

from isofilter.errors import DecodeError, EncodingError, FormatConflictError


GRAPH6 = "graph6"
SPARSE6 = "sparse6"
DIGRAPH6 = "digraph6"
FORMATS = (GRAPH6, SPARSE6, DIGRAPH6)

_HEADERS = {
    GRAPH6: ">>graph6<<",
    SPARSE6: ">>sparse6<<",
    DIGRAPH6: ">>digraph6<<",
}

AnyGraph = Union[nx.Graph, nx.DiGraph]


@dataclass(frozen=True)
class GraphRecord:
    """One decoded input graph.

    index: 1-based position in the input (blank lines and headers excluded).
    text:  the encoded line exactly as read, without header or terminator.
    """

    index: int
    text: str
    graph: AnyGraph
    fmt: str

    @property
    def directed(self) -> bool:
        return self.fmt == DIGRAPH6


@dataclass(frozen=True)
class FormatScan:
    header: Optional[str]
    first: Optional[str]
    has_digraph: bool
    count: int


def header_for(fmt: str) -> str:
    return _HEADERS[fmt]


def strip_header(line: str) -> Tuple[Optional[str], str]:
    """
    Remove an optional '>>graph6<<', '>>sparse6<<' or '>>digraph6<<' header.

    Returns (header_format or None, remainder).
    """
    for fmt, header in _HEADERS.items():
        if line.startswith(header):
            return fmt, line[len(header):]
    return None, line


def detect_format(text: str) -> str:
    """Format of one encoded graph, judged by its first character."""
    if not text:
        raise DecodeError("empty graph line")
    if text[0] == ":":
        return SPARSE6
    if text[0] == "&":
        return DIGRAPH6
    if text[0] == ";":
        raise DecodeError("incremental sparse6 is not supported")
    return GRAPH6


def _payload(text: str) -> list[int]:
    try:
        data = [c - 63 for c in text.encode("ascii")]
    except UnicodeEncodeError as exc:
        raise DecodeError(f"non-ASCII character in {text!r}") from exc
    if any(c < 0 or c > 63 for c in data):
        raise DecodeError(f"illegal character in {text!r}")
    return data


def _decode_digraph6(text: str) -> nx.DiGraph:
    data = _payload(text[1:])
    if not data:
        raise DecodeError(f"truncated digraph6 string {text!r}")
    try:
        n, rest = data_to_n(data)
    except IndexError as exc:
        raise DecodeError(f"truncated digraph6 string {text!r}") from exc
    need = (n * n + 5) // 6
    if len(rest) != need:
        raise DecodeError(f"expected {n * n} bits but got {len(rest) * 6} in digraph6 {text!r}")

    D = nx.DiGraph()
    D.add_nodes_from(range(n))
    k = 0
    for c in rest:
        for shift in range(5, -1, -1):
            if k >= n * n:
                break
            if (c >> shift) & 1:
                D.add_edge(k // n, k % n)
            k += 1
    return D


def decode_graph(text: str) -> AnyGraph:
    """
    Parse one graph6 / sparse6 / digraph6 string into a NetworkX graph
    on vertices 0..n-1.
    """
    fmt = detect_format(text)
    if fmt == DIGRAPH6:
        return _decode_digraph6(text)

    _payload(text[1:] if fmt == SPARSE6 else text)
    try:
        if fmt == SPARSE6:
            G = nx.from_sparse6_bytes(text.encode("ascii"))
        else:
            G = nx.from_graph6_bytes(text.encode("ascii"))
    except (nx.NetworkXError, ValueError, IndexError) as exc:
        raise DecodeError(f"bad {fmt} string {text!r}: {exc}") from exc

    if G.is_multigraph():
        raise DecodeError(f"multiple edges are not supported: {text!r}")
    return G


def _encode_digraph6(G: AnyGraph) -> str:
    n = G.number_of_nodes()
    bits = [0] * (n * n)
    for u, v in G.edges():
        bits[u * n + v] = 1
        if not G.is_directed():
            bits[v * n + u] = 1
    bits.extend([0] * (-len(bits) % 6))

    data = n_to_data(n)
    for i in range(0, len(bits), 6):
        c = 0
        for b in bits[i:i + 6]:
            c = (c << 1) | b
        data.append(c)
    return "&" + "".join(chr(63 + c) for c in data)


def encode_graph(G: AnyGraph, fmt: str) -> str:
    """
    Encode a graph on vertices 0..n-1 (in that order) as one line,
    without header or newline.
    """
    if fmt == DIGRAPH6:
        return _encode_digraph6(G)
    if G.is_directed():
        raise FormatConflictError(f"a directed graph cannot be written in {fmt}")

    if fmt == SPARSE6:
        return nx.to_sparse6_bytes(G, header=False).decode("ascii").strip()
    if fmt == GRAPH6:
        if nx.number_of_selfloops(G):
            raise EncodingError("graph6 cannot represent loops; use sparse6 or digraph6")
        return nx.to_graph6_bytes(G, header=False).decode("ascii").strip()
    raise EncodingError(f"unknown graph format {fmt!r}")


def _graph_lines(lines: Iterable[str]) -> Iterator[Tuple[Optional[str], str]]:
    """Yield (header_format, text) for every non-blank line.

    The header format is reported with the first graph, also when the
    header stands on a line of its own.
    """
    first = True
    pending: Optional[str] = None
    for raw in lines:
        line = raw.rstrip("\r\n")
        if first:
            pending, line = strip_header(line)
            first = False
        if not line:
            continue
        yield pending, line
        pending = None


def read_records(lines: Iterable[str]) -> Iterator[GraphRecord]:
    """Decode a stream of encoded graph lines, numbering them from 1."""
    index = 0
    for _, text in _graph_lines(lines):
        index += 1
        try:
            fmt = detect_format(text)
            G = decode_graph(text)
        except DecodeError as exc:
            raise DecodeError(str(exc), index=index) from exc
        yield GraphRecord(index=index, text=text, graph=G, fmt=fmt)


def scan_formats(lines: Iterable[str]) -> FormatScan:
    """
    Pre-scan raw lines for the header, the first graph's format and the
    presence of any digraph6 graph, without decoding anything.
    """
    header: Optional[str] = None
    first: Optional[str] = None
    has_digraph = False
    count = 0
    for i, raw in enumerate(lines):
        text = raw.rstrip("\r\n")
        if i == 0:
            header, text = strip_header(text)
        if not text:
            continue
        count += 1
        fmt = detect_format(text)
        if first is None:
            first = fmt
        if fmt == DIGRAPH6:
            has_digraph = True
    return FormatScan(header=header, first=first, has_digraph=has_digraph, count=count)
