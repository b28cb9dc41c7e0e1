"""Card search query language: parse Scryfall-style queries and match cards."""

from cardsearch.card import Card, CardAccessor
from cardsearch.search import (
    CompiledSearch,
    SearchOutcome,
    compile_search,
    filter_cards,
    has_search_operators,
    try_compile_search,
)

classes = [Card, CardAccessor, CompiledSearch, SearchOutcome]
functions = [compile_search, filter_cards, has_search_operators, try_compile_search]
__all__ = [x.__name__ for x in classes + functions]
