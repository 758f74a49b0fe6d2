from .graph6 import (
    GRAPH6,
    SPARSE6,
    DIGRAPH6,
    FORMATS,
    GraphRecord,
    FormatScan,
    header_for,
    strip_header,
    detect_format,
    decode_graph,
    encode_graph,
    read_records,
    scan_formats,
)

__all__ = [
    "GRAPH6",
    "SPARSE6",
    "DIGRAPH6",
    "FORMATS",
    "GraphRecord",
    "FormatScan",
    "header_for",
    "strip_header",
    "detect_format",
    "decode_graph",
    "encode_graph",
    "read_records",
    "scan_formats",
]
