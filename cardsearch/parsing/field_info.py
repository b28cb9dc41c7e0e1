"""Searchable card fields, their aliases and comparison operators."""

from __future__ import annotations

from enum import StrEnum


class CompareOp(StrEnum):
    """Comparison operators accepted between a field and a value.

    ``:`` is field-dependent: containment for text, superset for colors and
    equality for numbers.
    """

    COLON = ":"
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


ALL_OPERATORS = frozenset(CompareOp)
EQUALITY_OPERATORS = frozenset({CompareOp.COLON, CompareOp.EQ, CompareOp.NE})


class FieldKind(StrEnum):
    """Enumeration of comparison behaviours for fields."""

    TEXT = "text"  # Free-form text, ':' means substring
    DISCRETE = "discrete"  # Enumerated text values, ':' means exact match
    LIST = "list"  # A list of text values (keywords, games)
    COLOR = "color"  # Color sets compared with set algebra
    NUMERIC = "numeric"  # Numbers, possibly absent on a card
    DATE = "date"  # ISO dates, compared in calendar order
    RARITY = "rarity"  # Ordered rarity names
    LEGALITY = "legality"  # Format legality lookups
    FLAG = "flag"  # Boolean is:/not: predicates


class FieldId(StrEnum):
    """Canonical names for every searchable field."""

    NAME = "name"
    TYPE = "type"
    ORACLE = "oracle"
    MANA = "mana"
    ARTIST = "artist"
    KEYWORD = "keyword"
    GAME = "game"
    COLOR = "color"
    IDENTITY = "identity"
    PRODUCES = "produces"
    MANA_VALUE = "manavalue"
    POWER = "power"
    TOUGHNESS = "toughness"
    LOYALTY = "loyalty"
    DEFENSE = "defense"
    YEAR = "year"
    DATE = "date"
    RARITY = "rarity"
    SET = "set"
    NUMBER = "number"
    LAYOUT = "layout"
    LANG = "lang"
    FORMAT = "format"
    BANNED = "banned"
    RESTRICTED = "restricted"
    IS = "is"
    NOT = "not"


KIND_TO_OPERATORS: dict[FieldKind, frozenset[CompareOp]] = {
    FieldKind.TEXT: EQUALITY_OPERATORS,
    FieldKind.DISCRETE: EQUALITY_OPERATORS,
    FieldKind.LIST: EQUALITY_OPERATORS,
    FieldKind.COLOR: ALL_OPERATORS,
    FieldKind.NUMERIC: ALL_OPERATORS,
    FieldKind.DATE: ALL_OPERATORS,
    FieldKind.RARITY: ALL_OPERATORS,
    FieldKind.LEGALITY: EQUALITY_OPERATORS,
    FieldKind.FLAG: EQUALITY_OPERATORS,
}

# Kinds whose values may be written as /regex/
REGEX_KINDS = frozenset({FieldKind.TEXT, FieldKind.DISCRETE, FieldKind.LIST})

# Stats that may be searched for a literal * (pow=*)
STAR_STAT_FIELDS = frozenset({FieldId.POWER, FieldId.TOUGHNESS, FieldId.LOYALTY, FieldId.DEFENSE})


class FieldInfo:
    """Information about a searchable field and its search aliases."""

    def __init__(self, *, field_id: FieldId, kind: FieldKind, search_aliases: list[str], label: str) -> None:
        """Initialize field information.

        Args:
            field_id: The canonical field identifier.
            kind: How values of this field are compared.
            search_aliases: Names a user may type before the operator.
            label: Human-readable name used in explanations.
        """
        self.field_id = field_id
        self.kind = kind
        self.search_aliases = search_aliases
        self.label = label

    @property
    def operators(self) -> frozenset[CompareOp]:
        """Operators that are meaningful for this field."""
        return KIND_TO_OPERATORS[self.kind]

    def __repr__(self: FieldInfo) -> str:
        """Return a string representation of the field info."""
        return (
            "FieldInfo("
            f"field_id={self.field_id}, "
            f"kind={self.kind}, "
            f"search_aliases={self.search_aliases}, "
            f"label={self.label!r}"
            ")"
        )


FIELDS = [
    FieldInfo(field_id=FieldId.NAME, kind=FieldKind.TEXT, search_aliases=["name", "n"], label="name"),
    FieldInfo(field_id=FieldId.TYPE, kind=FieldKind.TEXT, search_aliases=["type", "t"], label="type"),
    FieldInfo(field_id=FieldId.ORACLE, kind=FieldKind.TEXT, search_aliases=["oracle", "o"], label="oracle text"),
    FieldInfo(field_id=FieldId.MANA, kind=FieldKind.TEXT, search_aliases=["mana", "m"], label="mana cost"),
    FieldInfo(field_id=FieldId.ARTIST, kind=FieldKind.TEXT, search_aliases=["artist", "a"], label="artist"),
    FieldInfo(field_id=FieldId.KEYWORD, kind=FieldKind.LIST, search_aliases=["keyword", "kw"], label="keyword"),
    FieldInfo(field_id=FieldId.GAME, kind=FieldKind.LIST, search_aliases=["game"], label="game"),
    FieldInfo(field_id=FieldId.COLOR, kind=FieldKind.COLOR, search_aliases=["color", "colors", "c"], label="color"),
    FieldInfo(
        field_id=FieldId.IDENTITY,
        kind=FieldKind.COLOR,
        search_aliases=["identity", "id", "ci", "coloridentity", "color_identity"],
        label="color identity",
    ),
    FieldInfo(field_id=FieldId.PRODUCES, kind=FieldKind.COLOR, search_aliases=["produces"], label="produced mana"),
    FieldInfo(field_id=FieldId.MANA_VALUE, kind=FieldKind.NUMERIC, search_aliases=["manavalue", "mv", "cmc"], label="mana value"),
    FieldInfo(field_id=FieldId.POWER, kind=FieldKind.NUMERIC, search_aliases=["power", "pow"], label="power"),
    FieldInfo(field_id=FieldId.TOUGHNESS, kind=FieldKind.NUMERIC, search_aliases=["toughness", "tou"], label="toughness"),
    FieldInfo(field_id=FieldId.LOYALTY, kind=FieldKind.NUMERIC, search_aliases=["loyalty", "loy"], label="loyalty"),
    FieldInfo(field_id=FieldId.DEFENSE, kind=FieldKind.NUMERIC, search_aliases=["defense", "def"], label="defense"),
    FieldInfo(field_id=FieldId.YEAR, kind=FieldKind.NUMERIC, search_aliases=["year"], label="release year"),
    FieldInfo(field_id=FieldId.DATE, kind=FieldKind.DATE, search_aliases=["date"], label="release date"),
    FieldInfo(field_id=FieldId.RARITY, kind=FieldKind.RARITY, search_aliases=["rarity", "r"], label="rarity"),
    FieldInfo(field_id=FieldId.SET, kind=FieldKind.DISCRETE, search_aliases=["set", "s", "e", "edition"], label="set"),
    FieldInfo(field_id=FieldId.NUMBER, kind=FieldKind.DISCRETE, search_aliases=["number", "cn"], label="collector number"),
    FieldInfo(field_id=FieldId.LAYOUT, kind=FieldKind.DISCRETE, search_aliases=["layout"], label="layout"),
    FieldInfo(field_id=FieldId.LANG, kind=FieldKind.DISCRETE, search_aliases=["lang", "language"], label="language"),
    FieldInfo(field_id=FieldId.FORMAT, kind=FieldKind.LEGALITY, search_aliases=["format", "f", "legal"], label="format"),
    FieldInfo(field_id=FieldId.BANNED, kind=FieldKind.LEGALITY, search_aliases=["banned"], label="banned in"),
    FieldInfo(field_id=FieldId.RESTRICTED, kind=FieldKind.LEGALITY, search_aliases=["restricted"], label="restricted in"),
    FieldInfo(field_id=FieldId.IS, kind=FieldKind.FLAG, search_aliases=["is"], label="is"),
    FieldInfo(field_id=FieldId.NOT, kind=FieldKind.FLAG, search_aliases=["not"], label="is not"),
]

ALIAS_TO_FIELD_INFO: dict[str, FieldInfo] = {}
FIELD_ID_TO_FIELD_INFO: dict[FieldId, FieldInfo] = {}

for info in FIELDS:
    FIELD_ID_TO_FIELD_INFO[info.field_id] = info
    for ialias in info.search_aliases:
        ialias = ialias.lower()
        if ialias in ALIAS_TO_FIELD_INFO:
            msg = f"Alias {ialias!r} is declared by more than one field"
            raise AssertionError(msg)
        ALIAS_TO_FIELD_INFO[ialias] = info

KNOWN_FIELD_ALIASES = frozenset(ALIAS_TO_FIELD_INFO)


def resolve_field(name: str) -> FieldInfo | None:
    """Look up a field by any of its aliases (case-insensitive).

    Returns:
        The matching FieldInfo, or None when the name is not a known field.
    """
    return ALIAS_TO_FIELD_INFO.get(name.lower())


RARITY_TO_NUMBER = {
    "common": 0,
    "uncommon": 1,
    "rare": 2,
    "mythic": 3,
    "special": 4,
    "bonus": 5,
}

RARITY_ALIASES = {
    "c": "common",
    "u": "uncommon",
    "r": "rare",
    "m": "mythic",
    "s": "special",
    "b": "bonus",
}


def normalize_rarity(rarity: str) -> str | None:
    """Expand rarity shorthand to its full lowercase name.

    Returns:
        The canonical rarity name, or None if the rarity is not recognized.
    """
    lowered = rarity.strip().lower()
    lowered = RARITY_ALIASES.get(lowered, lowered)
    if lowered in RARITY_TO_NUMBER:
        return lowered
    return None


IS_PREDICATE_NAMES = frozenset(
    {
        # Printing characteristics
        "reprint",
        "reserved",
        "promo",
        "full",
        "digital",
        # Finishes
        "foil",
        "nonfoil",
        "etched",
        # Layouts
        "split",
        "flip",
        "transform",
        "mdfc",
        "dfc",
        "meld",
        "leveler",
        "saga",
        "adventure",
        "battle",
        "prototype",
        # Deck building
        "commander",
        # Types
        "permanent",
        "spell",
        "creature",
        "artifact",
        "enchantment",
        "land",
        "planeswalker",
        "instant",
        "sorcery",
        "legendary",
        "vanilla",
        # Colors and mana symbols
        "multicolor",
        "multicolored",
        "colorless",
        "monocolored",
        "hybrid",
        "phyrexian",
    },
)
