"""Class detection over the sorted record stream.

Equal canonical forms arrive adjacent, so an isomorphism class is a maximal
run of equal keys.  The first member of a class is withheld until either a
second member shows up (the class is non-trivial) or the run ends (the
class is a singleton); only then is it known whether to write it.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, TextIO

from isofilter.errors import ProtocolError
from isofilter.pipeline.protocol import CanonicalKeyLine, parse_key_line


@dataclass(frozen=True)
class OutputPolicy:
    """
    emit_all_members:       write every member, not one per class
    only_nontrivial:        drop classes of size 1
    use_original_labelling: write the input text instead of the canonical form
    suppress_output:        count only, write nothing
    log_provenance:         record which inputs formed each output
    """

    emit_all_members: bool = False
    only_nontrivial: bool = False
    use_original_labelling: bool = False
    suppress_output: bool = False
    log_provenance: bool = False

    @classmethod
    def from_flags(
        cls,
        *,
        all_members: bool = False,
        nontrivial: bool = False,
        keep_labelling: bool = False,
        count_only: bool = False,
        provenance: bool = False,
    ) -> "OutputPolicy":
        # Non-trivial classes in the original labelling are written in full.
        return cls(
            emit_all_members=all_members or (nontrivial and keep_labelling),
            only_nontrivial=nontrivial,
            use_original_labelling=keep_labelling,
            suppress_output=count_only,
            log_provenance=provenance,
        )

    @property
    def needs_original(self) -> bool:
        return self.use_original_labelling

    @property
    def needs_index(self) -> bool:
        return self.log_provenance

    @property
    def representatives_only(self) -> bool:
        """True when only the first member of each class matters."""
        return not (self.emit_all_members or self.only_nontrivial or self.log_provenance)


class ClassState(enum.Enum):
    AWAITING_FIRST = "awaiting-first"
    IN_CLASS = "in-class"
    DONE = "done"


@dataclass
class OpenClass:
    key: str
    size: int
    first: CanonicalKeyLine


class ProvenanceLog:
    """Writes blocks like

        23 :  30 154  78

    meaning inputs 30, 154 and 78 were isomorphic and produced output 23.
    Lines wrap after *width* members.
    """

    def __init__(self, stream: TextIO, width: int = 15):
        self.stream = stream
        self.width = width
        self.blocks = 0
        self._on_line = 0

    def open(self, label: int, index: int) -> None:
        self.stream.write(f"\n{label:3d} : {index:3d}")
        self.blocks += 1
        self._on_line = 1

    def add(self, index: int) -> None:
        if self._on_line == self.width:
            self.stream.write("\n     ")
            self._on_line = 0
        self.stream.write(f" {index:3d}")
        self._on_line += 1

    def close(self) -> None:
        if self.blocks:
            self.stream.write("\n\n")


class Classifier:
    def __init__(
        self,
        policy: OutputPolicy,
        out: Optional[TextIO] = None,
        log: Optional[TextIO] = None,
    ):
        if out is None and not policy.suppress_output:
            raise ValueError("an output stream is required unless output is suppressed")
        if policy.log_provenance and log is None:
            raise ValueError("provenance logging needs a log stream")
        self.policy = policy
        self.out = out
        self.log = ProvenanceLog(log) if policy.log_provenance else None
        self.state = ClassState.AWAITING_FIRST
        self.current: Optional[OpenClass] = None
        self.num_written = 0
        self.num_classes = 0
        self.num_nontrivial = 0
        self.members_seen = 0

    def _check(self, line: CanonicalKeyLine) -> None:
        if self.policy.use_original_labelling and line.original is None:
            raise ProtocolError(f"record without original text: {line.form!r}")
        if self.policy.log_provenance and line.index is None:
            raise ProtocolError(f"record without sequence index: {line.form!r}")

    def _emit(self, line: CanonicalKeyLine) -> int:
        self.num_written += 1
        if not self.policy.suppress_output:
            text = line.original if self.policy.use_original_labelling else line.form
            self.out.write(text + "\n")
        return self.num_written

    def _open(self, line: CanonicalKeyLine) -> None:
        self.num_classes += 1
        self.current = OpenClass(key=line.form, size=1, first=line)
        self.state = ClassState.IN_CLASS

    def _close(self) -> None:
        cur = self.current
        if cur.size == 1 and not self.policy.only_nontrivial:
            label = self._emit(cur.first)
            if self.log is not None:
                self.log.open(label, cur.first.index)
        self.current = None

    def feed(self, line: CanonicalKeyLine) -> None:
        if self.state is ClassState.DONE:
            raise RuntimeError("classifier already finished")
        self._check(line)
        self.members_seen += 1

        if self.state is ClassState.AWAITING_FIRST:
            self._open(line)
            return

        cur = self.current
        if line.form != cur.key:
            self._close()
            self._open(line)
            return

        cur.size += 1
        if cur.size == 2:
            self.num_nontrivial += 1
            label = self._emit(cur.first)
            if self.log is not None:
                self.log.open(label, cur.first.index)
        if self.policy.emit_all_members:
            self._emit(line)
        if self.log is not None:
            self.log.add(line.index)

    def feed_text(self, text: str) -> None:
        self.feed(parse_key_line(text))

    def finish(self) -> None:
        if self.state is ClassState.IN_CLASS:
            self._close()
        if self.state is not ClassState.DONE and self.log is not None:
            self.log.close()
        self.state = ClassState.DONE
