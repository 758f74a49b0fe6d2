"""Exception hierarchy for the isomorph-filtering pipeline.

Every failure aborts the whole run; nothing here is recoverable per record.
"""
from __future__ import annotations

from typing import Optional


class IsofilterError(Exception):
    """Base class for all errors raised by isofilter."""


class ConfigurationError(IsofilterError, ValueError):
    """Incompatible options, detected before any input is processed."""


class UnsupportedInvariant(ConfigurationError):
    """The chosen canonicalization mode does not implement the invariant."""


class DecodeError(IsofilterError, ValueError):
    """Malformed graph encoding."""

    def __init__(self, message: str, index: Optional[int] = None):
        if index is not None:
            message = f"input graph {index}: {message}"
        super().__init__(message)
        self.index = index


class EncodingError(IsofilterError, ValueError):
    """A graph or record cannot be written in the requested form."""


class FormatConflictError(EncodingError):
    """A directed graph was met while the run's output format is not digraph6."""


class ProtocolError(EncodingError):
    """A sort record is not representable, or came back corrupted."""


class UnsupportedGraph(IsofilterError, ValueError):
    """The canonicalization mode cannot handle this kind of graph."""


class CapacityError(IsofilterError, RuntimeError):
    """The canonicalizer's capacity was exceeded."""


class GraphTooLarge(CapacityError):
    def __init__(self, n: int, limit: int):
        super().__init__(f"graph with {n} vertices exceeds the limit of {limit}")
        self.n = n
        self.limit = limit


class OracleFailed(IsofilterError, RuntimeError):
    """The sort subprocess failed; ``status`` is its exit status if known.

    A negative status means the process was killed by signal ``-status``.
    """

    def __init__(self, message: str, status: Optional[int] = None, stderr: str = ""):
        if stderr.strip():
            message = f"{message}\nstderr={stderr.strip()!r}"
        super().__init__(message)
        self.status = status
        self.stderr = stderr
