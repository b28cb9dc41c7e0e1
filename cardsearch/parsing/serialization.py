"""Encode and decode query ASTs as JSON."""

from __future__ import annotations

from typing import Any

import orjson

from cardsearch.parsing.colors import parse_colors
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
    StringValueNode,
    ValueNode,
)


def value_from_dict(data: dict[str, Any]) -> ValueNode:
    """Rebuild a value node from ``ValueNode.to_dict()`` output.

    Raises:
        ValueError: If the value type is unknown.
    """
    value_type = data.get("type")
    if value_type == "string":
        return StringValueNode(data["value"])
    if value_type == "number":
        return NumericValueNode(data["value"])
    if value_type == "keyword":
        return KeywordValueNode(data["value"])
    if value_type == "colors":
        return ColorSetValueNode(parse_colors(data["value"]))
    if value_type == "regex":
        return RegexValueNode(data["value"], data.get("flags", ""))
    msg = f"Unknown value type: {value_type!r}"
    raise ValueError(msg)


def node_from_dict(data: dict[str, Any]) -> QueryNode:
    """Rebuild a query node from ``QueryNode.to_dict()`` output.

    Regex values are recompiled, so a decoded tree is ready to evaluate.

    Raises:
        ValueError: If the node type is unknown.
    """
    node_type = data.get("type")
    if node_type == "and":
        return AndNode(node_from_dict(data["left"]), node_from_dict(data["right"]))
    if node_type == "or":
        return OrNode(node_from_dict(data["left"]), node_from_dict(data["right"]))
    if node_type == "not":
        return NotNode(node_from_dict(data["operand"]))
    if node_type == "comparison":
        return ComparisonNode(data["field"], data["operator"], value_from_dict(data["value"]))
    if node_type == "bare_term":
        return BareTermNode(data["text"])
    if node_type == "bare_regex":
        regex = value_from_dict(data["value"])
        if not isinstance(regex, RegexValueNode):
            msg = f"bare_regex needs a regex value, got {regex!r}"
            raise ValueError(msg)
        return BareRegexNode(regex)
    msg = f"Unknown node type: {node_type!r}"
    raise ValueError(msg)


def dumps_query(node: QueryNode) -> bytes:
    """Serialize a query AST to JSON bytes."""
    return orjson.dumps(node.to_dict())


def loads_query(data: bytes | str) -> QueryNode:
    """Deserialize a query AST produced by ``dumps_query``."""
    return node_from_dict(orjson.loads(data))
