"""Color set algebra for color and color identity searches.

Colors compare as sets:

- ``:`` or ``>=`` means "superset of" (the card has at least these colors)
- ``=`` means "exactly these colors"
- ``!=`` means "not exactly these colors"
- ``<=`` means "subset of" (the card fits in these colors, commander deck building)
- ``<`` means "strict subset"
- ``>`` means "strict superset"

Colorless is the empty set. ``C`` is only understood while parsing and never ends
up inside a color set.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from cardsearch.parsing.field_info import CompareOp

if TYPE_CHECKING:
    from collections.abc import Iterable


class Color(StrEnum):
    """The five colors plus the colorless marker used while parsing."""

    W = "W"
    U = "U"
    B = "B"
    R = "R"
    G = "G"
    C = "C"


ColorSet = frozenset[Color]

WUBRG_ORDER = (Color.W, Color.U, Color.B, Color.R, Color.G)
EMPTY_COLOR_SET: ColorSet = frozenset()

COLOR_CODE_TO_NAME = {
    Color.W: "white",
    Color.U: "blue",
    Color.B: "black",
    Color.R: "red",
    Color.G: "green",
    Color.C: "colorless",
}

COLOR_NAME_TO_CODE = {v: k for k, v in COLOR_CODE_TO_NAME.items()}

COLORLESS_NAMES = frozenset({"c", "colorless"})


def sort_colors(colors: Iterable[Color]) -> tuple[Color, ...]:
    """Return the colors in canonical WUBRG order, dropping colorless and duplicates."""
    present = set(colors)
    return tuple(color for color in WUBRG_ORDER if color in present)


def _key(letters: str) -> tuple[Color, ...]:
    return sort_colors(Color(letter) for letter in letters)


# Keys are in WUBRG order; the label shows the traditional ordering of each group
COLOR_GROUP_NAMES: dict[tuple[Color, ...], tuple[str, str]] = {
    # Guilds
    _key("WU"): ("Azorius", "WU"),
    _key("WB"): ("Orzhov", "WB"),
    _key("WR"): ("Boros", "WR"),
    _key("WG"): ("Selesnya", "WG"),
    _key("UB"): ("Dimir", "UB"),
    _key("UR"): ("Izzet", "UR"),
    _key("UG"): ("Simic", "UG"),
    _key("BR"): ("Rakdos", "BR"),
    _key("BG"): ("Golgari", "BG"),
    _key("RG"): ("Gruul", "RG"),
    # Shards
    _key("WUG"): ("Bant", "GWU"),
    _key("WUB"): ("Esper", "WUB"),
    _key("UBR"): ("Grixis", "UBR"),
    _key("BRG"): ("Jund", "BRG"),
    _key("WRG"): ("Naya", "RGW"),
    # Wedges
    _key("WBG"): ("Abzan", "WBG"),
    _key("WUR"): ("Jeskai", "URW"),
    _key("UBG"): ("Sultai", "BGU"),
    _key("WBR"): ("Mardu", "RWB"),
    _key("URG"): ("Temur", "GUR"),
    # Four colors
    _key("WUBR"): ("Non-Green", "WUBR"),
    _key("WUBG"): ("Non-Red", "WUBG"),
    _key("WURG"): ("Non-Black", "WURG"),
    _key("WBRG"): ("Non-Blue", "WBRG"),
    _key("UBRG"): ("Non-White", "UBRG"),
    # All five
    _key("WUBRG"): ("Five-Color", "WUBRG"),
}

# Four-color nicknames in common use alongside the "non-" names
FOUR_COLOR_NICKNAMES = {
    "artifice": _key("WUBR"),
    "growth": _key("WUBG"),
    "altruism": _key("WURG"),
    "aggression": _key("WBRG"),
    "chaos": _key("UBRG"),
}

COLOR_ALIASES: dict[str, ColorSet] = {name: frozenset({code}) for name, code in COLOR_NAME_TO_CODE.items() if code is not Color.C}
COLOR_ALIASES.update({name: EMPTY_COLOR_SET for name in COLORLESS_NAMES})
COLOR_ALIASES.update({name.lower(): frozenset(key) for key, (name, _) in COLOR_GROUP_NAMES.items()})
COLOR_ALIASES.update({name: frozenset(key) for name, key in FOUR_COLOR_NICKNAMES.items()})
COLOR_ALIASES["fivecolor"] = frozenset(WUBRG_ORDER)


def as_color_set(colors: Iterable[Color | str] | None) -> ColorSet:
    """Normalize card data (letters or Color members) to a ColorSet.

    Unknown letters and the colorless marker are dropped; ``None`` is the empty set.
    """
    if colors is None:
        return EMPTY_COLOR_SET
    result = set()
    for icolor in colors:
        letter = str(icolor).strip().upper()
        if letter in WUBRG_ORDER:
            result.add(Color(letter))
    return frozenset(result)


def parse_colors(text: str) -> ColorSet:
    """Parse user-typed colors into a ColorSet.

    Accepts letters in any case and combination (``w``, ``wubrg``, ``bg``), full color
    names (``white`` ... ``colorless``) and group names (``azorius``, ``jund``, ``abzan``,
    ``non-green``, ``chaos``). Unrecognized characters are dropped rather than reported,
    so ``"wx"`` is ``{W}`` and ``"123"`` is the empty set.
    """
    lowered = text.strip().lower()
    alias = COLOR_ALIASES.get(lowered)
    if alias is not None:
        return alias
    return frozenset(Color(letter) for letter in lowered.upper() if letter in WUBRG_ORDER)


def is_subset(a: ColorSet, b: ColorSet) -> bool:
    """Check if every color in a is also in b."""
    return all(color in b for color in a)


def is_superset(a: ColorSet, b: ColorSet) -> bool:
    """Check if every color in b is also in a."""
    return is_subset(b, a)


def sets_equal(a: ColorSet, b: ColorSet) -> bool:
    """Check if two color sets contain the same colors."""
    return len(a) == len(b) and is_subset(a, b)


def is_strict_subset(a: ColorSet, b: ColorSet) -> bool:
    """Check if a is a subset of b and not equal to it."""
    return len(a) < len(b) and is_subset(a, b)


def is_strict_superset(a: ColorSet, b: ColorSet) -> bool:
    """Check if a is a superset of b and not equal to it."""
    return len(a) > len(b) and is_superset(a, b)


_OPERATOR_TO_RELATION = {
    CompareOp.COLON: is_superset,
    CompareOp.GE: is_superset,
    CompareOp.EQ: sets_equal,
    CompareOp.NE: lambda a, b: not sets_equal(a, b),
    CompareOp.LE: is_subset,
    CompareOp.LT: is_strict_subset,
    CompareOp.GT: is_strict_superset,
}


def compare_colors(card_colors: Iterable[Color | str] | None, query_colors: Iterable[Color | str], operator: CompareOp | str) -> bool:
    """Compare a card's colors against the colors from a query.

    Args:
        card_colors: The card's colors or color identity; None means colorless.
        query_colors: The colors typed in the query.
        operator: The comparison operator.

    Returns:
        Whether the card satisfies the comparison.
    """
    relation = _OPERATOR_TO_RELATION[CompareOp(operator)]
    return relation(as_color_set(card_colors), as_color_set(query_colors))


def format_colors(colors: Iterable[Color | str]) -> str:
    """Render colors as WUBRG-ordered letters, ``C`` for colorless."""
    ordered = sort_colors(as_color_set(colors))
    if not ordered:
        return "C"
    return "".join(ordered)


def color_identity_label(colors: Iterable[Color | str] | None) -> str:
    """Get a display label for a color identity.

    The lookup is keyed by the WUBRG-sorted colors, so any ordering of the same
    colors yields the same label.

    Examples:
        >>> color_identity_label(["U", "W"])
        'Azorius (WU)'
        >>> color_identity_label(["G"])
        'Green'
        >>> color_identity_label([])
        'Colorless'
    """
    ordered = sort_colors(as_color_set(colors))
    if not ordered:
        return "Colorless"
    if len(ordered) == 1:
        return COLOR_CODE_TO_NAME[ordered[0]].title()
    name, canonical = COLOR_GROUP_NAMES[ordered]
    return f"{name} ({canonical})"
