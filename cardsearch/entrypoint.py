"""Command line entrypoint: search a Scryfall bulk data file."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

import orjson

from cardsearch.card import Card
from cardsearch.parsing.colors import color_identity_label
from cardsearch.parsing.errors import ParseError
from cardsearch.parsing.explanation import explain_query
from cardsearch.search import compile_search
from cardsearch.settings import settings

logger = logging.getLogger("cardsearch")

EXIT_PARSE_ERROR = 2


def get_args(argv: list[str] | None = None) -> dict:
    """Argument parsing."""
    parser = argparse.ArgumentParser(prog="cardsearch", description="Search a Scryfall bulk data file.")
    parser.add_argument("query", help='search query, e.g. "t:creature c<=wu mv<=3"')
    parser.add_argument("--cards", type=pathlib.Path, required=True, help="path to a Scryfall bulk JSON array")
    parser.add_argument("--max-results", type=int, default=None, dest="max_results")
    parser.add_argument("--explain", action="store_true", help="print a description of the query first")
    parser.add_argument("--labels", action="store_true", help="print the color identity label of each match")
    return vars(parser.parse_args(argv))


def load_cards(path: pathlib.Path) -> list[Card]:
    """Load card records from a Scryfall bulk data JSON array."""
    raw_cards = orjson.loads(path.read_bytes())
    cards = [Card.from_scryfall(raw) for raw in raw_cards]
    logger.info("Loaded %d cards from %s", len(cards), path)
    return cards


def run_search(
    *,
    query: str,
    cards: pathlib.Path,
    max_results: int | None = None,
    explain: bool = False,
    labels: bool = False,
) -> int:
    """Run one search and print the matches.

    Returns:
        The process exit status.
    """
    try:
        search = compile_search(query)
    except ParseError as e:
        print(f"error: {e.message}", file=sys.stderr)
        print(e.pointer(), file=sys.stderr)
        return EXIT_PARSE_ERROR

    if explain:
        print(f"Searching for cards where {explain_query(search.ast)}")

    matched = 0
    for card in load_cards(cards):
        if not search.match(card):
            continue
        matched += 1
        if labels:
            print(f"{card.name}\t{color_identity_label(card.color_identity)}")
        else:
            print(card.name)
        if max_results is not None and matched >= max_results:
            break
    logger.info("%d cards matched", matched)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entrypoint for the command line tool."""
    logging.basicConfig(level=settings.log_level, stream=sys.stderr)
    args = get_args(argv)
    return run_search(**args)


if __name__ == "__main__":
    sys.exit(main())
