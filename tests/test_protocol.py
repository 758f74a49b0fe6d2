"""Tests for the sort line protocol."""
import pytest

from isofilter.errors import ProtocolError
from isofilter.pipeline.protocol import CanonicalKeyLine, format_key_line, parse_key_line


def test_format_plain():
    assert format_key_line(CanonicalKeyLine("Bw")) == "Bw\n"


def test_format_full():
    line = CanonicalKeyLine("Bw", original="Bw", index=12)
    assert format_key_line(line) == "Bw Bw\t12\n"
    assert parse_key_line("Bw Bw\t12\n") == line


def test_parse_index_without_original():
    assert parse_key_line("BW\t3") == CanonicalKeyLine("BW", None, 3)


@pytest.mark.parametrize("form,original", [
    ("B w", None),
    ("Bw\n", None),
    ("Bw", "B\tg"),
    ("", None),
])
def test_format_rejects_separators(form, original):
    with pytest.raises(ProtocolError):
        format_key_line(CanonicalKeyLine(form, original=original))


def test_format_rejects_bad_index():
    with pytest.raises(ProtocolError):
        format_key_line(CanonicalKeyLine("Bw", index=0))


def test_parse_corrupted_index():
    with pytest.raises(ProtocolError):
        parse_key_line("Bw\tabc\n")
