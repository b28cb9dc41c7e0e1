"""Search service: compile a query once and filter cards with it."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from cardsearch.parsing.errors import ParseError
from cardsearch.parsing.evaluator import evaluate
from cardsearch.parsing.field_info import KNOWN_FIELD_ALIASES
from cardsearch.parsing.parser import parse_search_query

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cardsearch.card import CardAccessor
    from cardsearch.parsing.nodes import QueryNode

logger = logging.getLogger(__name__)

CardT = TypeVar("CardT", bound="CardAccessor")

# Longest aliases first so "color" is tried before "c"
FIELD_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(map(re.escape, KNOWN_FIELD_ALIASES), key=len, reverse=True)) + r")(?:!=|<=|>=|[:=<>])",
    re.IGNORECASE,
)
# Upper case only: "or dragon" is more likely a typo than a boolean
SYNTAX_PATTERNS = (
    FIELD_PATTERN,
    re.compile(r"\bAND\b"),
    re.compile(r"\bOR\b"),
    re.compile(r"(?:^|[\s(])!"),
    re.compile(r"(?:^|[\s(])-\w"),
    re.compile(r'"'),
    re.compile(r"[()]"),
    re.compile(r"(?:^|\s)/.+/"),
)


@dataclass(frozen=True)
class CompiledSearch:
    """A parsed query ready to test cards."""

    query: str
    ast: QueryNode

    def match(self: CompiledSearch, card: CardAccessor) -> bool:
        """Check whether a card matches the query."""
        return evaluate(self.ast, card)


@dataclass(frozen=True)
class SearchOutcome:
    """Either a compiled search or the error that prevented it."""

    search: CompiledSearch | None = None
    error: ParseError | None = None

    @property
    def ok(self: SearchOutcome) -> bool:
        """True when the query compiled."""
        return self.search is not None


def compile_search(query: str) -> CompiledSearch:
    """Parse a query for repeated matching.

    Raises:
        ParseError: If the query is malformed.
    """
    return CompiledSearch(query=query, ast=parse_search_query(query))


def try_compile_search(query: str) -> SearchOutcome:
    """Parse a query, returning the error as a value instead of raising it."""
    try:
        return SearchOutcome(search=compile_search(query))
    except ParseError as e:
        logger.debug("Query %r failed to parse: %s", query, e)
        return SearchOutcome(error=e)


def filter_cards(cards: Iterable[CardT], query: str, max_results: int | None = None) -> list[CardT]:
    """Return the cards matching a query, in corpus order.

    Args:
        cards: The corpus to scan.
        query: The search query.
        max_results: Stop after this many matches; None scans everything.

    Returns:
        The matching cards.

    Raises:
        ParseError: If the query is malformed.
    """
    search = compile_search(query)
    matches: list[CardT] = []
    scanned = 0
    for card in cards:
        scanned += 1
        if search.match(card):
            matches.append(card)
            if max_results is not None and len(matches) >= max_results:
                break
    logger.debug("Query %r matched %d of %d scanned cards", query, len(matches), scanned)
    return matches


def has_search_operators(query: str) -> bool:
    """Check whether a query clearly uses search syntax.

    Plain text such as ``lightning bolt`` or ``or dragon`` returns False, so callers
    can send it to a fuzzy name search instead of the parser.
    """
    return any(pattern.search(query) for pattern in SYNTAX_PATTERNS)
