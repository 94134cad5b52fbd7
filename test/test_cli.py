"""Tests for the orgscan command line interface."""

import sys
from pathlib import Path

import pytest
from orgscan.main.entry import main
from orgscan.main.parser import create_parser

NOTES = """#+TAGS: [ Proj : alpha beta ]
* TODO [#A] Ship it :alpha:
* Idle :beta:
** TODO Nested
* Other
"""


@pytest.fixture
def notes_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.org"
    path.write_text(NOTES)
    return path


def _run(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, *argv: str
) -> int:
    config = str(tmp_path / "no-config.yml")
    monkeypatch.setattr(sys, "argv", ["orgscan", *argv, "--config", config])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code  # type: ignore[return-value]


def test_create_parser_subcommands() -> None:
    """Test that the parser knows every subcommand and its options."""
    parser = create_parser()
    args = parser.parse_args(["tags", "work", "a.org", "b.org", "-f", "plain", "-t"])
    assert args.command == "tags"
    assert args.files == ["a.org", "b.org"]
    assert args.format == "plain"
    assert args.todo_only is True
    assert args.config_path is None

    args = parser.parse_args(["expand", "Proj", "a.org", "--list"])
    assert (args.command, args.as_list) == ("expand", True)

    args = parser.parse_args(["sparse", "x", "a.org", "-v"])
    assert (args.command, args.verbose, args.todo_only) == ("sparse", True, False)


def test_create_parser_requires_command() -> None:
    """Test that a subcommand is required."""
    with pytest.raises(SystemExit):
        create_parser().parse_args([])


def test_tags_plain(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notes_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test listing matches in plain format, group tags expanded."""
    code = _run(monkeypatch, tmp_path, "tags", "Proj", str(notes_file), "-f", "plain")
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        f"{notes_file}:30: notes: TODO [#A] Ship it :alpha:",
        f"{notes_file}:58: notes: Idle :beta:",
        f"{notes_file}:72: notes: TODO Nested :beta:",
    ]


def test_tags_todo_only(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notes_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test the todo-only flag of the tags command."""
    code = _run(
        monkeypatch, tmp_path, "tags", "beta", str(notes_file), "-f", "plain", "-t"
    )
    assert code == 0
    assert capsys.readouterr().out.splitlines() == [
        f"{notes_file}:72: notes: TODO Nested :beta:"
    ]


def test_tags_rich(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notes_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test the table output reports the number of matches."""
    code = _run(monkeypatch, tmp_path, "tags", "alpha", str(notes_file))
    assert code == 0
    assert "Found 1 heading(s)" in capsys.readouterr().out


def test_tags_no_match(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notes_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test the message printed when nothing matches."""
    code = _run(monkeypatch, tmp_path, "tags", "gamma", str(notes_file))
    assert code == 0
    assert "No headings match the query." in capsys.readouterr().out


def test_tags_invalid_query(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notes_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test that an invalid query exits with status 1."""
    code = _run(monkeypatch, tmp_path, "tags", "a<", str(notes_file))
    assert code == 1
    assert "QuerySyntaxError" in capsys.readouterr().out


def test_tags_missing_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test that an unreadable file exits with status 1."""
    code = _run(monkeypatch, tmp_path, "tags", "x", str(tmp_path / "nope.org"))
    assert code == 1
    assert "OutlineParseError" in capsys.readouterr().out


def test_expand(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notes_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test printing a query with groups expanded."""
    code = _run(monkeypatch, tmp_path, "expand", "other", str(notes_file))
    assert code == 0
    assert capsys.readouterr().out == "other\n"

    code = _run(monkeypatch, tmp_path, "expand", "Proj", str(notes_file), "-l")
    assert code == 0
    assert capsys.readouterr().out.splitlines() == ["Proj", "alpha", "beta"]


def test_sparse(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notes_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test printing the folded outline."""
    code = _run(monkeypatch, tmp_path, "sparse", "beta", str(notes_file))
    assert code == 0
    out = capsys.readouterr().out
    assert "* Idle :beta:" in out
    assert "** TODO Nested" in out
    assert "* Other" in out
