"""Two-phase pipeline: feed every record to sort, then classify its output."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import IO, Iterable, Optional, TextIO

from isofilter.canon.canonicalizer import CanonConfig, make_canonicalizer
from isofilter.errors import ConfigurationError, OracleFailed
from isofilter.io.graph6 import GraphRecord, header_for, read_records, scan_formats
from isofilter.pipeline.classifier import Classifier, OutputPolicy
from isofilter.pipeline.encoder import CanonicalEncoder, format_from_scan
from isofilter.pipeline.oracle import OracleConfig, OrderOracle
from isofilter.pipeline.protocol import format_key_line


@dataclass
class RunContext:
    """Counters for one invocation."""

    fmt: Optional[str] = None
    has_header: bool = False
    num_read: int = 0
    num_sorted: int = 0
    num_written: int = 0
    num_classes: int = 0
    num_nontrivial: int = 0
    members_seen: int = 0
    exit_status: Optional[int] = None


def build_encoder(canon: CanonConfig, fmt: str, policy: OutputPolicy) -> CanonicalEncoder:
    return CanonicalEncoder(
        make_canonicalizer(canon),
        fmt,
        keep_original=policy.needs_original,
        keep_index=policy.needs_index,
    )


def run(
    records: Iterable[GraphRecord],
    policy: OutputPolicy,
    encoder: CanonicalEncoder,
    oracle: Optional[OracleConfig] = None,
    out: Optional[TextIO] = None,
    log: Optional[TextIO] = None,
    ctx: Optional[RunContext] = None,
) -> RunContext:
    """
    Phase 1 encodes every record and writes it to sort, then closes sort's
    input.  Phase 2 reads sort's output to the end and classifies it.
    Afterwards the sort process is reaped and its status checked.

    Sort buffers its whole input (spilling to disk) before writing anything,
    so the phases never need to overlap.
    """
    if policy.needs_original and not encoder.keep_original:
        raise ConfigurationError("original labelling requested but the encoder drops original text")
    if policy.needs_index and not encoder.keep_index:
        raise ConfigurationError("provenance requested but the encoder drops sequence indices")

    config = replace(oracle or OracleConfig(), unique=policy.representatives_only)
    ctx = ctx or RunContext()
    ctx.fmt = encoder.fmt
    classifier = Classifier(policy, out, log)

    with OrderOracle(config) as sorter:
        for record in records:
            ctx.num_read += 1
            sorter.write(format_key_line(encoder.encode(record)))
        sorter.close_input()

        for text in sorter.lines():
            ctx.num_sorted += 1
            classifier.feed_text(text)
        ctx.exit_status = sorter.wait()

        if config.unique:
            short = ctx.num_read > 0 and ctx.num_sorted == 0
            if short or ctx.num_sorted > ctx.num_read:
                raise OracleFailed(
                    f"sort process returned {ctx.num_sorted} records for {ctx.num_read} inputs",
                    status=ctx.exit_status,
                )
        elif ctx.num_sorted != ctx.num_read:
            raise OracleFailed(
                f"sort process returned {ctx.num_sorted} of {ctx.num_read} records",
                status=ctx.exit_status,
            )

    classifier.finish()
    ctx.num_written = classifier.num_written
    ctx.num_classes = classifier.num_classes
    ctx.num_nontrivial = classifier.num_nontrivial
    ctx.members_seen = classifier.members_seen
    return ctx


def filter_stream(
    stream: IO[str],
    policy: OutputPolicy,
    canon: Optional[CanonConfig] = None,
    oracle: Optional[OracleConfig] = None,
    out: Optional[TextIO] = None,
    log: Optional[TextIO] = None,
    fmt_override: Optional[str] = None,
) -> RunContext:
    """
    Filter a seekable stream of graph lines.

    The stream is scanned once to fix the output format (a single digraph
    anywhere makes the whole run digraph6), rewound, and then decoded and
    fed through run().  The output gets a header iff the input has one.
    """
    canon = canon or CanonConfig()
    canon.validate()
    if oracle is not None:
        oracle.validate()

    scan = scan_formats(stream)
    stream.seek(0)
    encoder = build_encoder(canon, format_from_scan(scan, fmt_override), policy)

    ctx = RunContext(has_header=scan.header is not None)
    if ctx.has_header and not policy.suppress_output and out is not None:
        out.write(header_for(encoder.fmt))
    return run(read_records(stream), policy, encoder, oracle, out, log, ctx=ctx)
