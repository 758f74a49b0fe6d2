from __future__ import annotations

import os
import shutil
import subprocess
from typing import Iterable, List, Optional

from isofilter.canon.invariants import InvariantSpec


NAUTY_LABELG = os.environ.get("NAUTY_LABELG", "labelg")

_FORMAT_SWITCH = {"graph6": "-g", "sparse6": "-s", "digraph6": "-z"}


def labelg_available() -> bool:
    """Returns True iff labelg appears runnable."""
    return shutil.which(NAUTY_LABELG) is not None


def _looks_like_graph_line(line: str) -> bool:
    if not line:
        return False
    if line.startswith(">"):
        return False
    if (" " in line) or ("\t" in line):
        return False
    return True


def labelg_args(
    fmt: str,
    *,
    mode: str = "dense",
    partition: Optional[str] = None,
    invariant: InvariantSpec = InvariantSpec(),
) -> List[str]:
    """Command line for labelg producing canonical graphs in *fmt*."""
    cmd = [NAUTY_LABELG, "-q", _FORMAT_SWITCH[fmt]]
    if mode == "sparse":
        cmd.append("-S")
    elif mode == "traces":
        cmd.append("-t")
    if partition:
        cmd.append(f"-f{partition}")
    if invariant.kind:
        cmd.append(f"-i{invariant.kind}")
        cmd.append(f"-I{invariant.min_level}:{invariant.max_level}")
        cmd.append(f"-K{invariant.arg}")
    return cmd


def labelg_canonical(text: str, args: Iterable[str]) -> str:
    """Canonically label one encoded graph using nauty labelg."""
    if not labelg_available():
        raise RuntimeError(
            "nauty not available (need 'labelg' in PATH, or set NAUTY_LABELG)."
        )
    inp = (text.strip() + "\n").encode("ascii")
    p = subprocess.run(
        list(args),
        input=inp,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    if p.returncode != 0:
        raise RuntimeError(
            f"labelg failed with return code {p.returncode}.\n"
            f"input={text!r}\nstderr={p.stderr!r}"
        )
    lines = [ln.strip() for ln in p.stdout.decode("ascii", errors="replace").splitlines()]
    graph_lines = [ln for ln in lines if _looks_like_graph_line(ln)]
    if not graph_lines:
        raise RuntimeError(
            "labelg produced no output.\n"
            f"input={text!r}\nstdout={p.stdout!r}\nstderr={p.stderr!r}"
        )
    return graph_lines[-1]
