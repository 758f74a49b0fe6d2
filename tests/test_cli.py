import io
import sys

import pytest

from isofilter.cli import main
from isofilter.pipeline.oracle import sort_available

needs_sort = pytest.mark.skipif(not sort_available(), reason="sort not found")


@needs_sort
def test_file_to_file(tmp_path, capsys):
    src = tmp_path / "in.g6"
    dst = tmp_path / "out.g6"
    src.write_text("Bw\nBw\nBw\n")
    assert main([str(src), str(dst)]) == 0
    assert dst.read_text() == "Bw\n"
    err = capsys.readouterr().err
    assert err.startswith(">A isofilter")
    assert ">Z 3 graphs read from" in err
    assert ">Z 1 graphs written to" in err


@needs_sort
def test_outfile_defaults_to_infile(tmp_path):
    src = tmp_path / "in.g6"
    src.write_text(">>graph6<<BW\nBo\nBg\n")
    assert main(["-q", str(src)]) == 0
    assert src.read_text() == ">>graph6<<BW\n"


@needs_sort
def test_stdin_to_stdout(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("BW\nBo\nBw\n"))
    assert main(["-q", "-a"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "BW\nBW\nBw\n"
    assert captured.err == ""


@needs_sort
def test_count_only(tmp_path, capsys):
    src = tmp_path / "in.g6"
    src.write_text("BW\nBo\nBw\n")
    assert main(["-u", str(src)]) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert ">Z 2 graphs produced" in captured.err
    assert src.read_text() == "BW\nBo\nBw\n"


@needs_sort
def test_provenance_to_stderr(tmp_path, capsys):
    src = tmp_path / "in.g6"
    dst = tmp_path / "out.g6"
    src.write_text("BW\nBo\nBg\n")
    assert main(["-q", "-v", str(src), str(dst)]) == 0
    assert " ".join(capsys.readouterr().err.split()) == "1 : 1 2 3"


def test_count_only_with_outfile(tmp_path, capsys):
    src = tmp_path / "in.g6"
    src.write_text("Bw\n")
    assert main(["-u", str(src), str(tmp_path / "out.g6")]) == 1
    assert ">E isofilter" in capsys.readouterr().err


def test_incompatible_formats(tmp_path, capsys):
    src = tmp_path / "in.g6"
    src.write_text("Bw\n")
    assert main(["-s", "-g", str(src), str(tmp_path / "out.g6")]) == 1
    assert main(["-k", "-z", str(src), str(tmp_path / "out.g6")]) == 1


def test_bad_memory_size(tmp_path, capsys):
    src = tmp_path / "in.g6"
    src.write_text("Bw\n")
    assert main(["-Z", "lots", str(src), str(tmp_path / "out.g6")]) == 1


def test_unsupported_invariant(tmp_path, capsys):
    src = tmp_path / "in.g6"
    src.write_text("Bw\n")
    assert main(["-t", "-i", "8", str(src), str(tmp_path / "out.g6")]) == 1
    assert "invariant" in capsys.readouterr().err


def test_failed_sort_leaves_no_output(tmp_path, capsys, fake_sort):
    src = tmp_path / "in.g6"
    dst = tmp_path / "out.g6"
    src.write_text("Bw\nBW\n")
    prog = fake_sort("cat >/dev/null; exit 2")
    assert main(["--sort", prog, str(src), str(dst)]) == 1
    assert ">E isofilter" in capsys.readouterr().err
    assert not dst.exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["fakesort", "in.g6"]


def test_failed_sort_keeps_existing_output(tmp_path, fake_sort):
    src = tmp_path / "in.g6"
    dst = tmp_path / "out.g6"
    src.write_text("Bw\n")
    dst.write_text("old\n")
    prog = fake_sort("cat >/dev/null; exit 2")
    assert main(["-q", "--sort", prog, str(src), str(dst)]) == 1
    assert dst.read_text() == "old\n"


def test_missing_input(tmp_path, capsys):
    assert main(["-q", str(tmp_path / "nope.g6"), str(tmp_path / "out.g6")]) == 1
    assert ">E isofilter" in capsys.readouterr().err
