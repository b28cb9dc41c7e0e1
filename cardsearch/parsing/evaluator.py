"""Evaluate a parsed query against a single card.

Comparisons dispatch twice: ``FIELD_GETTERS`` reads the field off the card and
``KIND_MATCHERS`` compares it according to the field's kind. Both tables are checked
for completeness at import time, so a new field or kind without a case fails loudly
before any card is evaluated.
"""

from __future__ import annotations

import operator as op
from typing import TYPE_CHECKING, Any

from cardsearch.parsing.colors import compare_colors
from cardsearch.parsing.field_info import (
    FIELD_ID_TO_FIELD_INFO,
    RARITY_TO_NUMBER,
    CompareOp,
    FieldId,
    FieldKind,
)
from cardsearch.parsing.nodes import (
    AndNode,
    BareRegexNode,
    BareTermNode,
    ColorSetValueNode,
    ComparisonNode,
    KeywordValueNode,
    NotNode,
    NumericValueNode,
    OrNode,
    QueryNode,
    RegexValueNode,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardsearch.card import CardAccessor

NUMERIC_OPERATORS: dict[CompareOp, Callable[[Any, Any], bool]] = {
    CompareOp.COLON: op.eq,
    CompareOp.EQ: op.eq,
    CompareOp.NE: op.ne,
    CompareOp.LT: op.lt,
    CompareOp.LE: op.le,
    CompareOp.GT: op.gt,
    CompareOp.GE: op.ge,
}

LEGAL_STATUSES = {
    FieldId.FORMAT: frozenset({"legal", "restricted"}),
    FieldId.BANNED: frozenset({"banned"}),
    FieldId.RESTRICTED: frozenset({"restricted"}),
}

STAT_TEXT_GETTERS: dict[FieldId, Callable[[CardAccessor], str | None]] = {
    FieldId.POWER: lambda card: card.power_text,
    FieldId.TOUGHNESS: lambda card: card.toughness_text,
    FieldId.LOYALTY: lambda card: card.loyalty_text,
    FieldId.DEFENSE: lambda card: card.defense_text,
}

FIELD_GETTERS: dict[FieldId, Callable[[CardAccessor], Any]] = {
    FieldId.NAME: lambda card: card.name,
    FieldId.TYPE: lambda card: card.type_line,
    FieldId.ORACLE: lambda card: card.oracle_text,
    FieldId.MANA: lambda card: card.mana_cost,
    FieldId.ARTIST: lambda card: card.artist,
    FieldId.KEYWORD: lambda card: card.keywords,
    FieldId.GAME: lambda card: card.games,
    FieldId.COLOR: lambda card: card.colors,
    FieldId.IDENTITY: lambda card: card.color_identity,
    FieldId.PRODUCES: lambda card: card.produced_mana,
    FieldId.MANA_VALUE: lambda card: card.mana_value,
    FieldId.POWER: lambda card: card.power,
    FieldId.TOUGHNESS: lambda card: card.toughness,
    FieldId.LOYALTY: lambda card: card.loyalty,
    FieldId.DEFENSE: lambda card: card.defense,
    FieldId.YEAR: lambda card: card.year,
    FieldId.DATE: lambda card: card.released_at,
    FieldId.RARITY: lambda card: card.rarity,
    FieldId.SET: lambda card: card.set_code,
    FieldId.NUMBER: lambda card: card.collector_number,
    FieldId.LAYOUT: lambda card: card.layout,
    FieldId.LANG: lambda card: card.lang,
    FieldId.FORMAT: lambda card: card.legalities,
    FieldId.BANNED: lambda card: card.legalities,
    FieldId.RESTRICTED: lambda card: card.legalities,
    FieldId.IS: lambda card: card.has_flag,
    FieldId.NOT: lambda card: card.has_flag,
}


def match_text(node: ComparisonNode, card_value: str | None) -> bool:
    """Free text: ':' is a case-insensitive substring test, '=' is exact equality."""
    if isinstance(node.value, RegexValueNode):
        matched = card_value is not None and node.value.search(card_value)
        return not matched if node.operator == CompareOp.NE else bool(matched)
    if card_value is None:
        # A card without the field is "not equal" to anything
        return node.operator == CompareOp.NE
    needle = node.value.value.lower()
    haystack = card_value.lower()
    if node.operator == CompareOp.COLON:
        return needle in haystack
    if node.operator == CompareOp.EQ:
        return haystack == needle
    return haystack != needle


def match_discrete(node: ComparisonNode, card_value: str | None) -> bool:
    """Enumerated values such as set codes: ':' and '=' are both exact equality."""
    if isinstance(node.value, RegexValueNode) or node.operator != CompareOp.COLON:
        return match_text(node, card_value)
    if card_value is None:
        return False
    return card_value.lower() == node.value.value.lower()


def match_list(node: ComparisonNode, card_value: tuple[str, ...] | None) -> bool:
    """Lists such as keywords: ':' matches a substring of any item, '=' any whole item."""
    items = card_value or ()
    if node.operator == CompareOp.NE:
        positive = ComparisonNode(node.field, CompareOp.EQ, node.value)
        return not match_list(positive, items)
    if isinstance(node.value, RegexValueNode):
        return any(node.value.search(item) for item in items)
    needle = node.value.value.lower()
    if node.operator == CompareOp.COLON:
        return any(needle in item.lower() for item in items)
    return any(item.lower() == needle for item in items)


def match_color(node: ComparisonNode, card_value: frozenset | None) -> bool:
    """Colors compare as sets; a numeric value compares the number of colors."""
    if card_value is None and node.field == FieldId.PRODUCES:
        return False
    if isinstance(node.value, NumericValueNode):
        count = len(card_value or ())
        return NUMERIC_OPERATORS[node.operator](count, node.value.value)
    if not isinstance(node.value, ColorSetValueNode):
        msg = f"Color comparison needs a color set, got {node.value!r}"
        raise TypeError(msg)
    return compare_colors(card_value, node.value.value, node.operator)


def match_numeric(node: ComparisonNode, card_value: float | None) -> bool:
    """Numbers; a card without the value matches nothing, not even '!='."""
    if card_value is None:
        return False
    return NUMERIC_OPERATORS[node.operator](card_value, node.value.value)


def match_star(node: ComparisonNode, card_value: str | None) -> bool:
    """Stats written with '*', such as '*' or '1+*'; a card without the stat matches nothing."""
    if card_value is None:
        return False
    has_star = "*" in card_value
    return not has_star if node.operator == CompareOp.NE else has_star


def match_date(node: ComparisonNode, card_value: str | None) -> bool:
    """ISO dates compare as strings, which is calendar order."""
    if not card_value:
        return False
    return NUMERIC_OPERATORS[node.operator](card_value, node.value.value)


def match_rarity(node: ComparisonNode, card_value: str | None) -> bool:
    """Rarities compare by their order common < uncommon < rare < mythic < special < bonus."""
    card_rank = RARITY_TO_NUMBER.get((card_value or "").lower())
    if card_rank is None:
        return False
    return NUMERIC_OPERATORS[node.operator](card_rank, RARITY_TO_NUMBER[node.value.value])


def match_legality(node: ComparisonNode, card_value: dict[str, str] | None) -> bool:
    """Format legality: f: accepts legal or restricted, banned: and restricted: need that status."""
    status = (card_value or {}).get(node.value.value)
    matched = status in LEGAL_STATUSES[node.field]
    return not matched if node.operator == CompareOp.NE else matched


def match_flag(node: ComparisonNode, card_value: Callable[[str], bool]) -> bool:
    """Boolean predicates; not: and '!=' both invert."""
    matched = card_value(node.value.value)
    if node.field == FieldId.NOT:
        matched = not matched
    return not matched if node.operator == CompareOp.NE else matched


KIND_MATCHERS: dict[FieldKind, Callable[[ComparisonNode, Any], bool]] = {
    FieldKind.TEXT: match_text,
    FieldKind.DISCRETE: match_discrete,
    FieldKind.LIST: match_list,
    FieldKind.COLOR: match_color,
    FieldKind.NUMERIC: match_numeric,
    FieldKind.DATE: match_date,
    FieldKind.RARITY: match_rarity,
    FieldKind.LEGALITY: match_legality,
    FieldKind.FLAG: match_flag,
}

_missing_getters = set(FieldId) - set(FIELD_GETTERS)
if _missing_getters:
    msg = f"No card getter for fields: {sorted(_missing_getters)}"
    raise AssertionError(msg)
_missing_matchers = set(FieldKind) - set(KIND_MATCHERS)
if _missing_matchers:
    msg = f"No matcher for field kinds: {sorted(_missing_matchers)}"
    raise AssertionError(msg)


def match_name(card: CardAccessor, matches: Callable[[str], bool]) -> bool:
    """Check the card name and, for multi-face cards, each face name."""
    if matches(card.name):
        return True
    return any(matches(face_name) for face_name in getattr(card, "face_names", ()))


def match_oracle(card: CardAccessor, matches: Callable[[str], bool]) -> bool:
    """Check the oracle text and, for multi-face cards, each face's own text."""
    if matches(card.oracle_text):
        return True
    return any(matches(face_text) for face_text in getattr(card, "face_oracle_texts", ()))


def evaluate_comparison(node: ComparisonNode, card: CardAccessor) -> bool:
    """Evaluate one field comparison."""
    info = FIELD_ID_TO_FIELD_INFO[node.field]
    if node.field == FieldId.NAME and node.operator != CompareOp.NE:
        return match_name(card, lambda name: match_text(node, name))
    if node.field == FieldId.ORACLE and node.operator != CompareOp.NE:
        return match_oracle(card, lambda text: match_text(node, text))
    if node.field in STAT_TEXT_GETTERS and isinstance(node.value, KeywordValueNode):
        return match_star(node, STAT_TEXT_GETTERS[node.field](card))
    card_value = FIELD_GETTERS[node.field](card)
    return KIND_MATCHERS[info.kind](node, card_value)


def evaluate(node: QueryNode, card: CardAccessor) -> bool:
    """Check whether a card matches a query.

    AND and OR short-circuit, so the right operand is only read when needed.

    Args:
        node: The parsed query.
        card: The card to test.

    Returns:
        True if the card matches.

    Raises:
        TypeError: If the tree contains a node type the evaluator does not know.
    """
    if isinstance(node, AndNode):
        return evaluate(node.left, card) and evaluate(node.right, card)
    if isinstance(node, OrNode):
        return evaluate(node.left, card) or evaluate(node.right, card)
    if isinstance(node, NotNode):
        return not evaluate(node.operand, card)
    if isinstance(node, ComparisonNode):
        return evaluate_comparison(node, card)
    if isinstance(node, BareTermNode):
        needle = node.text.lower()
        return match_name(card, lambda name: needle in name.lower())
    if isinstance(node, BareRegexNode):
        return match_name(card, node.regex.search)
    msg = f"Cannot evaluate node of type {type(node).__name__}"
    raise TypeError(msg)
