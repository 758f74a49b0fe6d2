from .protocol import CanonicalKeyLine, format_key_line, parse_key_line
from .encoder import CanonicalEncoder, resolve_output_format, format_from_scan
from .oracle import OracleConfig, OrderOracle, sort_available, parse_size
from .classifier import ClassState, Classifier, OutputPolicy, ProvenanceLog
from .orchestrator import RunContext, build_encoder, run, filter_stream

__all__ = [
    "CanonicalKeyLine",
    "format_key_line",
    "parse_key_line",
    "CanonicalEncoder",
    "resolve_output_format",
    "format_from_scan",
    "OracleConfig",
    "OrderOracle",
    "sort_available",
    "parse_size",
    "ClassState",
    "Classifier",
    "OutputPolicy",
    "ProvenanceLog",
    "RunContext",
    "build_encoder",
    "run",
    "filter_stream",
]
