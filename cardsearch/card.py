"""Card records evaluated by search queries."""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from cardsearch.parsing.colors import ColorSet, as_color_set
from cardsearch.parsing.field_info import IS_PREDICATE_NAMES

STAT_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
HYBRID_PATTERN = re.compile(r"\{(?:[WUBRG2C])/[WUBRG]\}")
PHYREXIAN_PATTERN = re.compile(r"\{[^}]*/P\}|\{P\}")
FACE_SEPARATOR = "\n//\n"
PERMANENT_TYPES = ("creature", "artifact", "enchantment", "land", "planeswalker", "battle")
SPELL_TYPES = ("instant", "sorcery")
COMMANDER_TYPES = ("creature", "vehicle", "spacecraft")


class CardAccessor(Protocol):
    """Read-only view of a card used by the evaluator."""

    name: str
    face_names: tuple[str, ...]
    type_line: str
    oracle_text: str
    face_oracle_texts: tuple[str, ...]
    mana_cost: str
    artist: str
    keywords: tuple[str, ...]
    games: tuple[str, ...]
    colors: ColorSet
    color_identity: ColorSet
    produced_mana: ColorSet | None
    mana_value: float | None
    power: float | None
    toughness: float | None
    loyalty: float | None
    defense: float | None
    power_text: str | None
    toughness_text: str | None
    loyalty_text: str | None
    defense_text: str | None
    year: float | None
    released_at: str | None
    rarity: str
    set_code: str
    collector_number: str
    layout: str
    lang: str
    legalities: Mapping[str, str]

    def has_flag(self, name: str) -> bool:
        """Check an ``is:`` predicate such as ``reprint`` or ``commander``."""
        ...


def maybeify(func: Callable) -> Callable:
    """Wrap a converter so None and unparseable values become None."""

    @functools.wraps(func)
    def wrapper(val: str | int | float | None) -> float | None:
        if val is None:
            return None
        try:
            return func(val)
        except (ValueError, TypeError):
            return None

    return wrapper


@maybeify
def maybe_float(val: str | int | float | None) -> float | None:
    """Convert value to float, returning None if conversion fails."""
    return float(val)


def parse_stat(val: str | int | float | None) -> float | None:
    """Convert a power/toughness/loyalty/defense string to a number.

    Any value containing ``*`` counts as 0, so ``*`` and ``1+*`` are both 0. Values with
    no digits and no ``*`` (such as ``X`` or ``?``) have no numeric value.
    """
    if val is None:
        return None
    if isinstance(val, int | float):
        return float(val)
    if "*" in val:
        return 0.0
    match = STAT_NUMBER_PATTERN.search(val)
    if match:
        return float(match.group())
    return None


def _stat_text(val: str | int | float | None) -> str | None:
    if val is None:
        return None
    return str(val)


def _release_year(released_at: str | None) -> float | None:
    if not released_at:
        return None
    return maybe_float(released_at[:4])


@dataclass(frozen=True)
class Card:
    """An immutable card record built from Scryfall JSON."""

    name: str
    type_line: str = ""
    oracle_text: str = ""
    mana_cost: str = ""
    artist: str = ""
    face_names: tuple[str, ...] = ()
    face_type_lines: tuple[str, ...] = ()
    face_oracle_texts: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    games: tuple[str, ...] = ()
    finishes: tuple[str, ...] = ()
    colors: ColorSet = frozenset()
    color_identity: ColorSet = frozenset()
    produced_mana: ColorSet | None = None
    mana_value: float | None = None
    power: float | None = None
    toughness: float | None = None
    loyalty: float | None = None
    defense: float | None = None
    power_text: str | None = None
    toughness_text: str | None = None
    loyalty_text: str | None = None
    defense_text: str | None = None
    year: float | None = None
    released_at: str | None = None
    rarity: str = ""
    set_code: str = ""
    collector_number: str = ""
    layout: str = "normal"
    lang: str = "en"
    legalities: Mapping[str, str] = field(default_factory=dict)
    reserved: bool = False
    reprint: bool = False
    promo: bool = False
    full_art: bool = False
    digital: bool = False

    @classmethod
    def from_scryfall(cls: type[Card], raw: dict[str, Any]) -> Card:
        """Build a card from a Scryfall card object.

        Double-faced cards keep their faces' oracle text joined with ``//`` and take
        mana cost and stats from the front face when the card itself has none.

        Args:
            raw: One card object from the Scryfall API or a bulk data file.

        Returns:
            The card record.
        """
        faces = raw.get("card_faces") or []
        front = faces[0] if faces else {}

        oracle_text = raw.get("oracle_text")
        if not oracle_text and faces:
            oracle_text = FACE_SEPARATOR.join(face.get("oracle_text", "") for face in faces if face.get("oracle_text"))

        colors = raw.get("colors")
        if colors is None and faces:
            colors = [color for face in faces for color in face.get("colors", [])]

        produced = raw.get("produced_mana")

        def from_card_or_front(key: str) -> Any:  # noqa: ANN401
            value = raw.get(key)
            if value is None:
                value = front.get(key)
            return value

        return cls(
            name=raw["name"],
            type_line=raw.get("type_line") or " // ".join(face.get("type_line", "") for face in faces),
            oracle_text=oracle_text or "",
            mana_cost=raw.get("mana_cost") or front.get("mana_cost") or "",
            artist=from_card_or_front("artist") or "",
            face_names=tuple(face["name"] for face in faces if face.get("name")),
            face_type_lines=tuple(face.get("type_line", "") for face in faces),
            face_oracle_texts=tuple(face.get("oracle_text", "") for face in faces),
            keywords=tuple(raw.get("keywords") or ()),
            games=tuple(raw.get("games") or ()),
            finishes=tuple(raw.get("finishes") or ()),
            colors=as_color_set(colors),
            color_identity=as_color_set(raw.get("color_identity")),
            produced_mana=None if produced is None else as_color_set(produced),
            mana_value=maybe_float(raw.get("cmc")),
            power=parse_stat(from_card_or_front("power")),
            toughness=parse_stat(from_card_or_front("toughness")),
            loyalty=parse_stat(from_card_or_front("loyalty")),
            defense=parse_stat(from_card_or_front("defense")),
            power_text=_stat_text(from_card_or_front("power")),
            toughness_text=_stat_text(from_card_or_front("toughness")),
            loyalty_text=_stat_text(from_card_or_front("loyalty")),
            defense_text=_stat_text(from_card_or_front("defense")),
            year=_release_year(raw.get("released_at")),
            released_at=raw.get("released_at") or None,
            rarity=(raw.get("rarity") or "").lower(),
            set_code=(raw.get("set") or "").lower(),
            collector_number=str(raw.get("collector_number") or ""),
            layout=raw.get("layout") or "normal",
            lang=raw.get("lang") or "en",
            legalities=dict(raw.get("legalities") or {}),
            reserved=bool(raw.get("reserved")),
            reprint=bool(raw.get("reprint")),
            promo=bool(raw.get("promo")),
            full_art=bool(raw.get("full_art")),
            digital=bool(raw.get("digital")),
        )

    def has_flag(self: Card, name: str) -> bool:
        """Check an ``is:`` predicate; unknown names never match."""
        predicate = IS_PREDICATES.get(name.lower())
        if predicate is None:
            return False
        return predicate(self)


def _type_includes(*types: str) -> Callable[[Card], bool]:
    def predicate(card: Card) -> bool:
        type_line = card.type_line.lower()
        return any(t in type_line for t in types)

    return predicate


def _layout_is(*layouts: str) -> Callable[[Card], bool]:
    return lambda card: card.layout in layouts


def can_be_commander(card: Card) -> bool:
    """Legendary creatures, vehicles and spacecraft, or cards that say so, can lead a deck."""
    type_lines = (card.type_line, *card.face_type_lines)
    oracle_texts = (card.oracle_text, *card.face_oracle_texts)
    for type_line in type_lines:
        lowered = type_line.lower()
        if "legendary" in lowered and any(t in lowered for t in COMMANDER_TYPES):
            return True
    return any("can be your commander" in text.lower() for text in oracle_texts)


IS_PREDICATES: dict[str, Callable[[Card], bool]] = {
    # Printing characteristics
    "reprint": lambda card: card.reprint,
    "reserved": lambda card: card.reserved,
    "promo": lambda card: card.promo,
    "full": lambda card: card.full_art,
    "digital": lambda card: card.digital,
    # Finishes
    "foil": lambda card: "foil" in card.finishes,
    "nonfoil": lambda card: "nonfoil" in card.finishes,
    "etched": lambda card: "etched" in card.finishes,
    # Layouts
    "split": _layout_is("split"),
    "flip": _layout_is("flip"),
    "transform": _layout_is("transform"),
    "mdfc": _layout_is("modal_dfc"),
    "dfc": _layout_is("transform", "modal_dfc"),
    "meld": _layout_is("meld"),
    "leveler": _layout_is("leveler"),
    "saga": _layout_is("saga"),
    "adventure": _layout_is("adventure"),
    "battle": _layout_is("battle"),
    "prototype": _layout_is("prototype"),
    # Deck building
    "commander": can_be_commander,
    # Types
    "permanent": _type_includes(*PERMANENT_TYPES),
    "spell": _type_includes(*SPELL_TYPES),
    "creature": _type_includes("creature"),
    "artifact": _type_includes("artifact"),
    "enchantment": _type_includes("enchantment"),
    "land": _type_includes("land"),
    "planeswalker": _type_includes("planeswalker"),
    "instant": _type_includes("instant"),
    "sorcery": _type_includes("sorcery"),
    "legendary": _type_includes("legendary"),
    "vanilla": lambda card: "creature" in card.type_line.lower() and not card.oracle_text.strip(),
    # Colors and mana symbols
    "multicolor": lambda card: len(card.colors) > 1,
    "multicolored": lambda card: len(card.colors) > 1,
    "colorless": lambda card: not card.colors,
    "monocolored": lambda card: len(card.colors) == 1,
    "hybrid": lambda card: HYBRID_PATTERN.search(card.mana_cost.upper()) is not None,
    "phyrexian": lambda card: PHYREXIAN_PATTERN.search(card.mana_cost.upper()) is not None,
}

if set(IS_PREDICATES) != IS_PREDICATE_NAMES:
    msg = f"is: predicates out of sync with the parser: {sorted(set(IS_PREDICATES) ^ IS_PREDICATE_NAMES)}"
    raise AssertionError(msg)
