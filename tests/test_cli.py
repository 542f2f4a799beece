"""
gedstack CLI Tests

Runs main() with patched argv against small files on disk.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from gedstack import cli


def write_sample(tmp_path, text: str = None):
    path = tmp_path / "sample.ged"
    path.write_bytes((text or (
        "0 HEAD\n"
        "1 SOUR tests\n"
        "0 @I1@ INDI\n"
        "1 NAME Ann\n"
        "1 FAMS @F1@\n"
        "1 _ODD tag\n"
        "0 @F1@ FAM\n"
        "1 WIFE @I1@\n"
        "1 CHIL @I2@\n"
        "0 TRLR\n"
    )).encode())
    return path


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["gedstack", "--no-color", *argv])
    cli.main()


def test_stats(tmp_path, monkeypatch, capsys):
    run_cli(monkeypatch, "stats", str(write_sample(tmp_path)))
    out = capsys.readouterr().out
    assert "individuals" in out
    assert "families" in out
    assert "1 lines ignored (_ODD×1)" in out
    assert "I2" in out


def test_dump(tmp_path, monkeypatch, capsys):
    run_cli(monkeypatch, "dump", str(write_sample(tmp_path)))
    out = capsys.readouterr().out
    assert out.startswith("0 HEAD\n1 SOUR tests\n")
    assert "_ODD" not in out
    assert out.endswith("0 TRLR\n")


def test_refs_for_one_id(tmp_path, monkeypatch, capsys):
    run_cli(monkeypatch, "refs", str(write_sample(tmp_path)), "--xref", "F1")
    out = capsys.readouterr().out
    assert "I1" in out
    assert "I2" in out


def test_tokens_limit(tmp_path, monkeypatch, capsys):
    run_cli(monkeypatch, "--chunk-size", "3", "tokens", str(write_sample(tmp_path)), "-n", "2")
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(lines) == 2
    assert "HEAD" in lines[0]


def test_malformed_file_exits_nonzero(tmp_path, monkeypatch, capsys):
    path = write_sample(tmp_path, "0 HEAD\nnot a line\n")
    with pytest.raises(SystemExit) as info:
        run_cli(monkeypatch, "stats", str(path))
    assert info.value.code == 1
    assert "Malformed line" in capsys.readouterr().out


def test_missing_file_exits_nonzero(tmp_path, monkeypatch, capsys):
    with pytest.raises(SystemExit) as info:
        run_cli(monkeypatch, "stats", str(tmp_path / "absent.ged"))
    assert info.value.code == 1
