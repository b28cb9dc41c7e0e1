"""Tests for the command line entrypoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import orjson
import pytest

from cardsearch.entrypoint import EXIT_PARSE_ERROR, get_args, load_cards, main

if TYPE_CHECKING:
    import pathlib

RAW_CARDS = [
    {"name": "Serra Angel", "type_line": "Creature — Angel", "cmc": 5.0, "colors": ["W"], "color_identity": ["W"]},
    {"name": "Lightning Bolt", "type_line": "Instant", "cmc": 1.0, "colors": ["R"], "color_identity": ["R"]},
    {"name": "Azorius Signet", "type_line": "Artifact", "cmc": 2.0, "colors": [], "color_identity": ["W", "U"]},
    {"name": "Sol Ring", "type_line": "Artifact", "cmc": 1.0, "colors": [], "color_identity": []},
]


@pytest.fixture
def cards_file(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "cards.json"
    path.write_bytes(orjson.dumps(RAW_CARDS))
    return path


def test_get_args(cards_file: pathlib.Path) -> None:
    args = get_args(["t:creature", "--cards", str(cards_file), "--max-results", "3", "--explain"])
    assert args == {"query": "t:creature", "cards": cards_file, "max_results": 3, "explain": True, "labels": False}


def test_load_cards(cards_file: pathlib.Path) -> None:
    cards = load_cards(cards_file)
    assert [card.name for card in cards] == ["Serra Angel", "Lightning Bolt", "Azorius Signet", "Sol Ring"]


def test_prints_matches(cards_file: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["t:artifact", "--cards", str(cards_file)]) == 0
    assert capsys.readouterr().out.splitlines() == ["Azorius Signet", "Sol Ring"]


def test_max_results(cards_file: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["mv<=2", "--cards", str(cards_file), "--max-results", "1"]) == 0
    assert capsys.readouterr().out.splitlines() == ["Lightning Bolt"]


def test_explain(cards_file: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["t:instant", "--cards", str(cards_file), "--explain"]) == 0
    assert capsys.readouterr().out.splitlines() == [
        'Searching for cards where the type includes "instant"',
        "Lightning Bolt",
    ]


def test_labels(cards_file: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["t:artifact", "--cards", str(cards_file), "--labels"]) == 0
    assert capsys.readouterr().out.splitlines() == ["Azorius Signet\tAzorius (WU)", "Sol Ring\tColorless"]


def test_parse_error(cards_file: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["t:creature foo:bar", "--cards", str(cards_file)]) == EXIT_PARSE_ERROR
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.splitlines()[:3] == ["error: Unknown field 'foo'", "t:creature foo:bar", "           ^^^"]


def test_missing_cards_argument() -> None:
    with pytest.raises(SystemExit):
        get_args(["t:creature"])
