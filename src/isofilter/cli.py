"""Command line interface: remove isomorphs from a file of graphs."""
from __future__ import annotations

import argparse
import os
import shutil
import sys
import tempfile
from typing import IO, List, Optional

from isofilter.canon.canonicalizer import BACKENDS, CanonConfig
from isofilter.canon.invariants import InvariantSpec
from isofilter.errors import ConfigurationError, IsofilterError
from isofilter.io.graph6 import DIGRAPH6, GRAPH6, SPARSE6
from isofilter.pipeline.classifier import OutputPolicy
from isofilter.pipeline.oracle import ISOFILTER_SORT, OracleConfig, parse_size
from isofilter.pipeline.orchestrator import RunContext, filter_stream


DESCRIPTION = """\
Remove isomorphs from a file of graphs.

If outfile is omitted, it is taken to be the same as infile.
If both are omitted (or given as '-'), input is read from stdin and
written to stdout.  The output has a header iff the input does.
"""


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="isofilter",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("infile", nargs="?", default=None)
    ap.add_argument("outfile", nargs="?", default=None)

    pol = ap.add_argument_group("output policy")
    pol.add_argument("-a", dest="all_members", action="store_true",
                     help="write every member of every class")
    pol.add_argument("-d", dest="nontrivial", action="store_true",
                     help="only classes with at least two members")
    pol.add_argument("-u", dest="count_only", action="store_true",
                     help="write nothing, just report how many graphs would be written")
    pol.add_argument("-k", dest="keep", action="store_true",
                     help="write graphs in their input labelling and format")
    pol.add_argument("-v", dest="provenance", action="store_true",
                     help="write to stderr which inputs produced which outputs")

    fmt = ap.add_argument_group("format")
    fmt.add_argument("-s", dest="fmt", action="append_const", const=SPARSE6,
                     help="force sparse6 output")
    fmt.add_argument("-g", dest="fmt", action="append_const", const=GRAPH6,
                     help="force graph6 output")
    fmt.add_argument("-z", dest="fmt", action="append_const", const=DIGRAPH6,
                     help="force digraph6 output")

    can = ap.add_argument_group("canonical labelling")
    can.add_argument("-S", dest="sparse", action="store_true",
                     help="sparse mode (changes the canonical labelling)")
    can.add_argument("-t", dest="traces", action="store_true",
                     help="Traces mode (no loops, digraphs or invariants)")
    can.add_argument("-f", dest="partition", default=None, metavar="xxx",
                     help="initial vertex partition; a leading '-' reverses the order")
    can.add_argument("-i", dest="invariant", type=int, default=None, metavar="#",
                     help="invariant number 0..16")
    can.add_argument("-I", dest="levels", default=None, metavar="#:#",
                     help="invariant level range (default 1:1)")
    can.add_argument("-K", dest="invararg", type=int, default=None, metavar="#",
                     help="invariant argument (default 3)")
    can.add_argument("--backend", choices=BACKENDS, default="python",
                     help="canonicalizer to use (default python)")
    can.add_argument("--maxn", type=int, default=None,
                     help="largest number of vertices accepted")

    srt = ap.add_argument_group("sorting")
    srt.add_argument("-T", dest="tempdir", default=None, metavar="dir",
                     help="directory for the sort process's temporary files")
    srt.add_argument("-Z", dest="memory", default=None, metavar="#",
                     help="memory for sorting (number followed by %%, K, M or G)")
    srt.add_argument("--sort", dest="sort_program", default=ISOFILTER_SORT, metavar="PROGRAM",
                     help="sort executable (default $ISOFILTER_SORT or sort)")

    ap.add_argument("-q", dest="quiet", action="store_true", help="suppress auxiliary output")
    return ap


def _configure(args: argparse.Namespace):
    formats = args.fmt or []
    if len(formats) + int(args.keep) > 1:
        raise ConfigurationError("-sgzk are incompatible")
    if args.count_only and args.outfile is not None:
        raise ConfigurationError("-u and outfile are incompatible")
    if args.traces and args.sparse:
        raise ConfigurationError("-t is incompatible with -S")
    if args.tempdir is not None and not args.tempdir:
        raise ConfigurationError("-T needs a non-empty argument")
    if args.memory is not None:
        parse_size(args.memory)

    mode = "traces" if args.traces else "sparse" if args.sparse else "dense"
    canon = CanonConfig(
        backend=args.backend,
        mode=mode,
        partition=args.partition,
        invariant=InvariantSpec.parse(args.invariant, args.levels, args.invararg),
        max_vertices=args.maxn,
    )
    canon.validate()

    policy = OutputPolicy.from_flags(
        all_members=args.all_members,
        nontrivial=args.nontrivial,
        keep_labelling=args.keep,
        count_only=args.count_only,
        provenance=args.provenance,
    )
    oracle = OracleConfig(
        program=args.sort_program, tempdir=args.tempdir, buffer_size=args.memory
    )
    return canon, policy, oracle, (formats[0] if formats else None)


def _banner(argv: List[str]) -> str:
    return ">A isofilter " + " ".join(argv) if argv else ">A isofilter"


def _open_input(name: Optional[str]) -> IO[str]:
    """Open the input for two passes; stdin is spooled to a temporary file."""
    if name is None or name == "-":
        spool = tempfile.SpooledTemporaryFile(max_size=1 << 24, mode="w+")
        shutil.copyfileobj(sys.stdin, spool)
        spool.seek(0)
        return spool
    return open(name, "r", encoding="ascii")


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(argv)

    if args.outfile is None and args.infile not in (None, "-") and not args.count_only:
        args.outfile = args.infile

    tmp_name: Optional[str] = None
    try:
        canon, policy, oracle, fmt = _configure(args)
        if not args.quiet:
            print(_banner(argv), file=sys.stderr)

        infile = _open_input(args.infile)
        in_name = "stdin" if args.infile in (None, "-") else args.infile

        with infile:
            if args.count_only:
                out_name = "<none>"
                ctx = _filter(infile, policy, canon, oracle, None, fmt, args)
            elif args.outfile in (None, "-"):
                out_name = "stdout"
                ctx = _filter(infile, policy, canon, oracle, sys.stdout, fmt, args)
                sys.stdout.flush()
            else:
                out_name = args.outfile
                directory = os.path.dirname(os.path.abspath(args.outfile))
                fd, tmp_name = tempfile.mkstemp(prefix=".isofilter-", dir=directory)
                with os.fdopen(fd, "w", encoding="ascii") as out:
                    ctx = _filter(infile, policy, canon, oracle, out, fmt, args)

        if tmp_name is not None:
            os.replace(tmp_name, args.outfile)
            tmp_name = None

    except IsofilterError as exc:
        print(f">E isofilter: {exc}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as exc:
        print(f">E isofilter: {exc}", file=sys.stderr)
        return 1
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    if not args.quiet:
        print(f">Z {ctx.num_read} graphs read from {in_name}", file=sys.stderr)
        if args.count_only:
            print(f">Z {ctx.num_written} graphs produced", file=sys.stderr)
        else:
            print(f">Z {ctx.num_written} graphs written to {out_name}", file=sys.stderr)
    return 0


def _filter(infile, policy, canon, oracle, out, fmt, args) -> RunContext:
    return filter_stream(
        infile,
        policy,
        canon=canon,
        oracle=oracle,
        out=out,
        log=sys.stderr if args.provenance else None,
        fmt_override=fmt,
    )


if __name__ == "__main__":
    sys.exit(main())
