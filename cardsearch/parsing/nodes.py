"""AST node classes for query parsing.

Nodes are immutable values: they hold no reference to the token stream, compare and
hash structurally, and can be evaluated against any number of cards.
"""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from typing import Any

import cachetools

from cardsearch.parsing.colors import ColorSet, format_colors
from cardsearch.parsing.field_info import CompareOp, FieldId
from cardsearch.settings import settings

# Matching is always case-insensitive; g, u and y have no meaning for a single search
REGEX_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "u": 0,
    "y": 0,
}

_regex_cache: cachetools.LRUCache = cachetools.LRUCache(maxsize=settings.regex_cache_size)
_regex_lock = threading.Lock()


@cachetools.cached(cache=_regex_cache, lock=_regex_lock)
def compile_regex(pattern: str, flags: str = "") -> re.Pattern[str]:
    """Compile a query regex once and share it between nodes.

    Args:
        pattern: The regex source between the slashes.
        flags: Flag letters that followed the closing slash.

    Returns:
        The compiled pattern.

    Raises:
        re.error: If the pattern does not compile.
    """
    re_flags = re.IGNORECASE
    for flag in flags:
        if flag not in REGEX_FLAG_MAP:
            msg = f"Unknown regex flag {flag!r}"
            raise ValueError(msg)
        re_flags |= REGEX_FLAG_MAP[flag]
    return re.compile(pattern, re_flags)


def _freeze(node: QueryNode) -> None:
    node.__dict__["_frozen"] = True


# AST Classes
class QueryNode(ABC):
    """Base class for all query nodes in the abstract syntax tree (AST)."""

    def __setattr__(self: QueryNode, name: str, value: object) -> None:
        """Reject mutation once the node is built."""
        if self.__dict__.get("_frozen"):
            msg = f"{self.__class__.__name__} is immutable"
            raise AttributeError(msg)
        super().__setattr__(name, value)

    @abstractmethod
    def to_dict(self: QueryNode) -> dict[str, Any]:
        """Convert this node to a JSON-compatible dictionary."""


class LeafNode(QueryNode):
    """Abstract base class for leaf nodes in the AST.

    Not intended to be used directly.
    """


class ValueNode(LeafNode):
    """Represents the value side of a comparison."""

    value: Any
    type_name = "value"

    def __repr__(self: ValueNode) -> str:
        """Return a string representation of the value node."""
        return f"{self.__class__.__name__}({self.value!r})"

    def __eq__(self: ValueNode, other: object) -> bool:
        """Check equality with another ValueNode based on value."""
        if not isinstance(other, self.__class__):
            return False
        return self.value == other.value

    def __hash__(self: ValueNode) -> int:
        """Return a hash based on the class name and value."""
        return hash((self.__class__.__name__, self.value))

    def to_dict(self: ValueNode) -> dict[str, Any]:
        """Convert this value node to a dictionary."""
        return {"type": self.type_name, "value": self.value}


class StringValueNode(ValueNode):
    """Represents a string value node, such as 'flying' or 'Lightning Bolt'."""

    type_name = "string"

    def __init__(self: StringValueNode, value: str) -> None:
        """Initialize a StringValueNode with a string value."""
        self.value = value
        _freeze(self)


class NumericValueNode(ValueNode):
    """Represents a numeric value node in the AST."""

    type_name = "number"

    def __init__(self: NumericValueNode, value: float) -> None:
        """Initialize a NumericValueNode with a numeric value."""
        self.value = float(value)
        _freeze(self)


class KeywordValueNode(ValueNode):
    """Represents a keyword value such as a format name, rarity or is: flag."""

    type_name = "keyword"

    def __init__(self: KeywordValueNode, value: str) -> None:
        """Initialize a KeywordValueNode with a lowercase keyword."""
        self.value = value.lower()
        _freeze(self)


class ColorSetValueNode(ValueNode):
    """Represents a set of colors such as {W, U}; colorless is the empty set."""

    type_name = "colors"

    def __init__(self: ColorSetValueNode, value: ColorSet) -> None:
        """Initialize a ColorSetValueNode with a color set."""
        self.value = frozenset(value)
        _freeze(self)

    def __repr__(self: ColorSetValueNode) -> str:
        """Return a string representation in WUBRG order."""
        return f"{self.__class__.__name__}({format_colors(self.value)})"

    def to_dict(self: ColorSetValueNode) -> dict[str, Any]:
        """Convert this value node to a dictionary with WUBRG-ordered letters, C when colorless."""
        return {"type": self.type_name, "value": format_colors(self.value)}


class RegexValueNode(ValueNode):
    r"""Represents a regex pattern value node, such as /^{T}:/ or /\spp/."""

    type_name = "regex"

    def __init__(self: RegexValueNode, value: str, flags: str = "") -> None:
        """Initialize a RegexValueNode and compile its pattern.

        Raises:
            re.error: If the pattern does not compile.
        """
        self.value = value
        self.flags = flags
        self.compiled = compile_regex(value, flags)
        _freeze(self)

    @property
    def pattern(self: RegexValueNode) -> str:
        """The regex source."""
        return self.value

    def search(self: RegexValueNode, text: str) -> bool:
        """Check whether the pattern matches anywhere in the text."""
        return self.compiled.search(text) is not None

    def __repr__(self: RegexValueNode) -> str:
        """Return a string representation of the regex node."""
        return f"{self.__class__.__name__}(/{self.value}/{self.flags})"

    def __eq__(self: RegexValueNode, other: object) -> bool:
        """Check equality based on pattern and flags."""
        if not isinstance(other, self.__class__):
            return False
        return (self.value, self.flags) == (other.value, other.flags)

    def __hash__(self: RegexValueNode) -> int:
        """Return a hash based on pattern and flags."""
        return hash((self.__class__.__name__, self.value, self.flags))

    def to_dict(self: RegexValueNode) -> dict[str, Any]:
        """Convert this value node to a dictionary."""
        return {"type": self.type_name, "value": self.value, "flags": self.flags}


class ComparisonNode(QueryNode):
    """Represents a field comparison such as ``t:creature`` or ``mv<=3``."""

    def __init__(self: ComparisonNode, field: FieldId, operator: CompareOp, value: ValueNode) -> None:
        """Initialize a ComparisonNode.

        Args:
            field: The field being compared.
            operator: The comparison operator.
            value: The value the field is compared against.
        """
        self.field = FieldId(field)
        self.operator = CompareOp(operator)
        self.value = value
        _freeze(self)

    def to_dict(self: ComparisonNode) -> dict[str, Any]:
        """Convert this comparison to a dictionary."""
        return {
            "type": "comparison",
            "field": str(self.field),
            "operator": str(self.operator),
            "value": self.value.to_dict(),
        }

    def __repr__(self: ComparisonNode) -> str:
        """Return a string representation of the comparison node."""
        return f"{self.__class__.__name__}({self.field}, {self.operator}, {self.value})"

    def __eq__(self: ComparisonNode, other: object) -> bool:
        """Check equality with another ComparisonNode based on field, operator and value."""
        if not isinstance(other, self.__class__):
            return False
        return (self.field, self.operator, self.value) == (other.field, other.operator, other.value)

    def __hash__(self: ComparisonNode) -> int:
        """Return a hash based on the class name, field, operator and value."""
        return hash((self.__class__.__name__, self.field, self.operator, self.value))


class BareTermNode(LeafNode):
    """Represents a word or quoted phrase with no field, matched against the card name."""

    def __init__(self: BareTermNode, text: str) -> None:
        """Initialize a BareTermNode with the search text."""
        self.text = text
        _freeze(self)

    def to_dict(self: BareTermNode) -> dict[str, Any]:
        """Convert this node to a dictionary."""
        return {"type": "bare_term", "text": self.text}

    def __repr__(self: BareTermNode) -> str:
        """Return a string representation of the bare term node."""
        return f"{self.__class__.__name__}({self.text!r})"

    def __eq__(self: BareTermNode, other: object) -> bool:
        """Check equality with another BareTermNode based on its text."""
        if not isinstance(other, self.__class__):
            return False
        return self.text == other.text

    def __hash__(self: BareTermNode) -> int:
        """Return a hash based on the class name and text."""
        return hash((self.__class__.__name__, self.text))


class BareRegexNode(LeafNode):
    """Represents a /regex/ with no field, matched against the card name."""

    def __init__(self: BareRegexNode, regex: RegexValueNode) -> None:
        """Initialize a BareRegexNode wrapping a regex value."""
        self.regex = regex
        _freeze(self)

    @property
    def pattern(self: BareRegexNode) -> str:
        """The regex source."""
        return self.regex.pattern

    @property
    def flags(self: BareRegexNode) -> str:
        """The regex flag letters."""
        return self.regex.flags

    def to_dict(self: BareRegexNode) -> dict[str, Any]:
        """Convert this node to a dictionary."""
        return {"type": "bare_regex", "value": self.regex.to_dict()}

    def __repr__(self: BareRegexNode) -> str:
        """Return a string representation of the bare regex node."""
        return f"{self.__class__.__name__}(/{self.pattern}/{self.flags})"

    def __eq__(self: BareRegexNode, other: object) -> bool:
        """Check equality with another BareRegexNode based on its regex."""
        if not isinstance(other, self.__class__):
            return False
        return self.regex == other.regex

    def __hash__(self: BareRegexNode) -> int:
        """Return a hash based on the class name and regex."""
        return hash((self.__class__.__name__, self.regex))


class BinaryBooleanNode(QueryNode):
    """Base class for AND/OR nodes with a left and a right operand."""

    type_name = "binary"

    def __init__(self: BinaryBooleanNode, left: QueryNode, right: QueryNode) -> None:
        """Initialize the node with its two operands."""
        self.left = left
        self.right = right
        _freeze(self)

    def to_dict(self: BinaryBooleanNode) -> dict[str, Any]:
        """Convert this node and its operands to a dictionary."""
        return {"type": self.type_name, "left": self.left.to_dict(), "right": self.right.to_dict()}

    def __repr__(self: BinaryBooleanNode) -> str:
        """Return a string representation of the node."""
        return f"{self.__class__.__name__}({self.left}, {self.right})"

    def __eq__(self: BinaryBooleanNode, other: object) -> bool:
        """Check equality with another node of the same class based on operands."""
        if not isinstance(other, self.__class__):
            return False
        return self.left == other.left and self.right == other.right

    def __hash__(self: BinaryBooleanNode) -> int:
        """Return a hash based on the class name and operands."""
        return hash((self.__class__.__name__, self.left, self.right))


class AndNode(BinaryBooleanNode):
    """Represents a logical AND; juxtaposed terms are joined with AND."""

    type_name = "and"


class OrNode(BinaryBooleanNode):
    """Represents a logical OR."""

    type_name = "or"


class NotNode(QueryNode):
    """Represents a logical NOT operation."""

    def __init__(self: NotNode, operand: QueryNode) -> None:
        """Initialize a NotNode with its operand."""
        self.operand = operand
        _freeze(self)

    def to_dict(self: NotNode) -> dict[str, Any]:
        """Convert this node to a dictionary."""
        return {"type": "not", "operand": self.operand.to_dict()}

    def __repr__(self: NotNode) -> str:
        """Return a string representation of the NOT node."""
        return f"{self.__class__.__name__}({self.operand})"

    def __eq__(self: NotNode, other: object) -> bool:
        """Check equality with another NotNode based on operand."""
        if not isinstance(other, self.__class__):
            return False
        return self.operand == other.operand

    def __hash__(self: NotNode) -> int:
        """Return a hash based on the class name and operand."""
        return hash((self.__class__.__name__, self.operand))
