"""Tests for the search service functions."""

from __future__ import annotations

import logging

import pytest

from cardsearch import Card, compile_search, filter_cards, has_search_operators, try_compile_search
from cardsearch.parsing.errors import ParseError, ParseErrorKind

CARDS = [
    Card(name="Serra Angel", type_line="Creature — Angel", oracle_text="Flying\nVigilance", mana_value=5),
    Card(name="Lightning Bolt", type_line="Instant", mana_value=1),
    Card(name="Birds of Paradise", type_line="Creature — Bird", oracle_text="Flying", mana_value=1),
    Card(name="Llanowar Elves", type_line="Creature — Elf Druid", mana_value=1),
]


class TestFilterCards:
    """Test filtering a corpus."""

    def test_keeps_corpus_order(self) -> None:
        assert [card.name for card in filter_cards(CARDS, "t:creature")] == [
            "Serra Angel",
            "Birds of Paradise",
            "Llanowar Elves",
        ]

    def test_max_results(self) -> None:
        assert [card.name for card in filter_cards(CARDS, "mv=1", max_results=2)] == ["Lightning Bolt", "Birds of Paradise"]

    def test_no_matches(self) -> None:
        assert filter_cards(CARDS, "t:planeswalker") == []

    def test_accepts_any_iterable(self) -> None:
        assert len(filter_cards(iter(CARDS), "o:flying")) == 2

    def test_parse_error_propagates(self) -> None:
        with pytest.raises(ParseError):
            filter_cards(CARDS, "t:creature (")

    def test_logs_counts(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="cardsearch.search"):
            filter_cards(CARDS, "o:flying")
        assert "matched 2 of 4 scanned cards" in caplog.text


class TestCompileSearch:
    """Test compiling queries."""

    def test_match(self) -> None:
        search = compile_search("t:creature -o:flying")
        assert [card.name for card in CARDS if search.match(card)] == ["Llanowar Elves"]

    def test_try_compile_success(self) -> None:
        outcome = try_compile_search("bolt")
        assert outcome.ok
        assert outcome.error is None
        assert outcome.search.match(CARDS[1])

    def test_try_compile_failure(self) -> None:
        outcome = try_compile_search("foo:bar")
        assert not outcome.ok
        assert outcome.search is None
        assert outcome.error.kind == ParseErrorKind.UNKNOWN_FIELD

    @pytest.mark.usefixtures("enable_parse_cache")
    def test_cached_queries_share_the_ast(self) -> None:
        assert compile_search("t:creature mv<=3").ast is compile_search("t:creature mv<=3").ast

    @pytest.mark.usefixtures("disable_parse_cache")
    def test_uncached_queries_build_new_asts(self) -> None:
        first = compile_search("t:creature mv<=3").ast
        second = compile_search("t:creature mv<=3").ast
        assert first is not second
        assert first == second

    @pytest.mark.usefixtures("enable_parse_cache")
    def test_failed_parses_are_not_cached(self) -> None:
        for _ in range(2):
            with pytest.raises(ParseError):
                compile_search("(")


class TestHasSearchOperators:
    """Test detection of search syntax in free text."""

    @pytest.mark.parametrize(
        "query",
        [
            "t:creature",
            "C<=wu",
            "mv>=3",
            "dragon OR angel",
            "a AND b",
            "-t:land",
            '"lightning bolt"',
            "!Shock",
            "(a b)",
            "/^goblin/",
        ],
    )
    def test_syntax(self, query: str) -> None:
        assert has_search_operators(query)

    @pytest.mark.parametrize("query", ["lightning bolt", "or dragon", "serra angel", "x-wing", "jace, the mind sculptor"])
    def test_plain_text(self, query: str) -> None:
        assert not has_search_operators(query)
