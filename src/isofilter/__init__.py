"""
isofilter: remove isomorphs from streams of graph6, sparse6 and digraph6
graphs by sorting canonical forms through an external sort process.
"""

from .errors import (
    IsofilterError,
    ConfigurationError,
    UnsupportedInvariant,
    DecodeError,
    EncodingError,
    FormatConflictError,
    ProtocolError,
    UnsupportedGraph,
    CapacityError,
    GraphTooLarge,
    OracleFailed,
)
from .io.graph6 import GraphRecord, decode_graph, encode_graph, read_records, scan_formats
from .canon.invariants import InvariantSpec
from .canon.canonicalizer import CanonConfig, make_canonicalizer, canonicalize
from .pipeline.protocol import CanonicalKeyLine
from .pipeline.encoder import CanonicalEncoder, resolve_output_format
from .pipeline.oracle import OracleConfig, OrderOracle
from .pipeline.classifier import Classifier, ClassState, OutputPolicy
from .pipeline.orchestrator import RunContext, run, filter_stream

__all__ = [
    # Errors
    "IsofilterError",
    "ConfigurationError",
    "UnsupportedInvariant",
    "DecodeError",
    "EncodingError",
    "FormatConflictError",
    "ProtocolError",
    "UnsupportedGraph",
    "CapacityError",
    "GraphTooLarge",
    "OracleFailed",
    # IO
    "GraphRecord",
    "decode_graph",
    "encode_graph",
    "read_records",
    "scan_formats",
    # Canonical labelling
    "InvariantSpec",
    "CanonConfig",
    "make_canonicalizer",
    "canonicalize",
    # Pipeline
    "CanonicalKeyLine",
    "CanonicalEncoder",
    "resolve_output_format",
    "OracleConfig",
    "OrderOracle",
    "Classifier",
    "ClassState",
    "OutputPolicy",
    "RunContext",
    "run",
    "filter_stream",
]
