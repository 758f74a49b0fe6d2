from .invariants import (
    INVARIANT_NAMES,
    InvariantSpec,
    check_invariant,
    apply_invariant,
)
from .partition import parse_partition, expand_partition_string
from .refine import Adjacency, adjacency_from_graph, refine, individualize, cells
from .canonicalizer import (
    CanonConfig,
    CanonicalResult,
    Canonicalizer,
    RefinementCanonicalizer,
    LabelgCanonicalizer,
    make_canonicalizer,
    canonicalize,
)

__all__ = [
    "INVARIANT_NAMES",
    "InvariantSpec",
    "check_invariant",
    "apply_invariant",
    "parse_partition",
    "expand_partition_string",
    "Adjacency",
    "adjacency_from_graph",
    "refine",
    "individualize",
    "cells",
    "CanonConfig",
    "CanonicalResult",
    "Canonicalizer",
    "RefinementCanonicalizer",
    "LabelgCanonicalizer",
    "make_canonicalizer",
    "canonicalize",
]
