"""End-to-end runs of the filtering pipeline through a real or stand-in sort."""
import io

import pytest

from isofilter.canon.canonicalizer import CanonConfig, make_canonicalizer
from isofilter.canon.invariants import InvariantSpec
from isofilter.errors import DecodeError, FormatConflictError, OracleFailed, UnsupportedInvariant
from isofilter.io.graph6 import DIGRAPH6, GRAPH6, GraphRecord, decode_graph
from isofilter.pipeline.classifier import OutputPolicy
from isofilter.pipeline.encoder import CanonicalEncoder
from isofilter.pipeline.oracle import OracleConfig, sort_available
from isofilter.pipeline.orchestrator import filter_stream

needs_sort = pytest.mark.skipif(not sort_available(), reason="sort not found")

# The three labelled paths on 3 vertices, centred at 2, 0 and 1.
PATHS = "BW\nBo\nBg\n"
TRIANGLE = "Bw\n"


def _run(text, policy, **kw):
    out, log = io.StringIO(), io.StringIO()
    ctx = filter_stream(
        io.StringIO(text),
        policy,
        out=None if policy.suppress_output else out,
        log=log if policy.log_provenance else None,
        **kw,
    )
    return ctx, out.getvalue(), log.getvalue()


@needs_sort
def test_three_labellings_one_representative():
    ctx, out, _ = _run(PATHS, OutputPolicy())
    assert out == "BW\n"
    assert ctx.num_read == 3
    assert ctx.num_written == 1


@needs_sort
def test_three_labellings_full_membership():
    ctx, out, _ = _run(PATHS, OutputPolicy(emit_all_members=True))
    assert out == "BW\nBW\nBW\n"
    assert ctx.num_classes == 1
    assert ctx.num_nontrivial == 1


@needs_sort
def test_three_labellings_original_text():
    _, out, _ = _run(PATHS, OutputPolicy.from_flags(all_members=True, keep_labelling=True))
    assert out == PATHS


@needs_sort
def test_provenance():
    _, out, log = _run(PATHS, OutputPolicy(log_provenance=True))
    assert out == "BW\n"
    assert " ".join(log.split()) == "1 : 1 2 3"


@needs_sort
def test_two_singletons():
    text = TRIANGLE + "BW\n"
    ctx, out, _ = _run(text, OutputPolicy(only_nontrivial=True))
    assert out == ""
    assert ctx.num_classes == 2
    _, out, _ = _run(text, OutputPolicy())
    assert out.splitlines() == ["BW", "Bw"]


@needs_sort
def test_count_only():
    ctx, _, _ = _run(TRIANGLE + PATHS, OutputPolicy(suppress_output=True))
    assert ctx.num_written == 2


@needs_sort
def test_members_are_conserved():
    text = TRIANGLE + PATHS + TRIANGLE + "C~\nCF\n"
    ctx, out, _ = _run(text, OutputPolicy(emit_all_members=True))
    assert ctx.num_sorted == ctx.num_read == 7
    assert ctx.members_seen == 7
    assert len(out.splitlines()) == 7


@needs_sort
def test_nontrivial_is_subset_of_full_membership():
    text = TRIANGLE + PATHS + "C~\nCF\n"
    policy = dict(all_members=True, keep_labelling=True)
    _, full, _ = _run(text, OutputPolicy.from_flags(**policy))
    _, nontriv, _ = _run(text, OutputPolicy.from_flags(nontrivial=True, **policy))
    assert set(nontriv.splitlines()) <= set(full.splitlines())
    assert sorted(nontriv.splitlines()) == sorted(PATHS.split())


@needs_sort
def test_idempotent():
    text = TRIANGLE + PATHS + "C~\nCF\nCQ\n"
    _, once, _ = _run(text, OutputPolicy())
    _, twice, _ = _run(once, OutputPolicy())
    assert once == twice


@needs_sort
def test_header_kept():
    _, out, _ = _run(">>graph6<<" + PATHS, OutputPolicy())
    assert out == ">>graph6<<BW\n"


@needs_sort
def test_empty_input():
    ctx, out, _ = _run("", OutputPolicy())
    assert out == ""
    assert ctx.num_read == ctx.num_written == 0


@needs_sort
def test_digraph_later_in_stream_forces_digraph6():
    ctx, out, _ = _run(TRIANGLE + "&BO?\n", OutputPolicy())
    assert ctx.fmt == DIGRAPH6
    lines = out.splitlines()
    assert len(lines) == 2
    assert all(line.startswith("&") for line in lines)


def test_encoder_fixed_format_rejects_digraph():
    encoder = CanonicalEncoder(make_canonicalizer(CanonConfig()), GRAPH6)
    record = GraphRecord(index=2, text="&BO?", graph=decode_graph("&BO?"), fmt=DIGRAPH6)
    with pytest.raises(FormatConflictError):
        encoder.encode(record)


def test_unsupported_invariant_before_reading():
    canon = CanonConfig(mode="sparse", invariant=InvariantSpec(kind=1))
    with pytest.raises(UnsupportedInvariant):
        filter_stream(io.StringIO(";bad\n"), OutputPolicy(), canon=canon, out=io.StringIO())


@needs_sort
def test_decode_error_mid_stream():
    with pytest.raises(DecodeError) as info:
        _run("Bw\nBx?\n", OutputPolicy())
    assert info.value.index == 2


# --- failing sort programs ---

def test_sort_exit_status(fake_sort):
    prog = fake_sort("cat >/dev/null; printf 'Bw\\n'; exit 2")
    with pytest.raises(OracleFailed) as info:
        _run(TRIANGLE, OutputPolicy(), oracle=OracleConfig(program=prog))
    assert info.value.status == 2


def test_sort_killed(fake_sort):
    prog = fake_sort("cat >/dev/null; kill -KILL $$")
    with pytest.raises(OracleFailed) as info:
        _run(TRIANGLE, OutputPolicy(), oracle=OracleConfig(program=prog))
    assert info.value.status == -9


def test_sort_exits_early(fake_sort):
    prog = fake_sort("exit 3")
    with pytest.raises(OracleFailed):
        _run(TRIANGLE * 50, OutputPolicy(), oracle=OracleConfig(program=prog))


def test_sort_loses_records(fake_sort):
    prog = fake_sort("cat >/dev/null; printf 'Bw\\n'")
    with pytest.raises(OracleFailed):
        _run(TRIANGLE * 3, OutputPolicy(emit_all_members=True), oracle=OracleConfig(program=prog))


def test_sort_invents_records(fake_sort):
    prog = fake_sort("cat >/dev/null; printf 'Bw\\nBw\\nBw\\n'")
    with pytest.raises(OracleFailed):
        _run(TRIANGLE, OutputPolicy(), oracle=OracleConfig(program=prog))


def test_sort_truncates_output(fake_sort):
    prog = fake_sort("cat >/dev/null; printf 'Bw'")
    with pytest.raises(OracleFailed):
        _run(TRIANGLE, OutputPolicy(), oracle=OracleConfig(program=prog))
