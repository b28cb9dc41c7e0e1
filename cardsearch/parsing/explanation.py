"""Generate human-readable explanations from query AST nodes."""

from __future__ import annotations

from cardsearch.parsing.colors import sort_colors
from cardsearch.parsing.field_info import FIELD_ID_TO_FIELD_INFO, CompareOp, FieldId, FieldKind
from cardsearch.parsing.nodes import (
    AndNode,
    BareRegexNode,
    BareTermNode,
    BinaryBooleanNode,
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

OPERATOR_LABELS = {
    CompareOp.COLON: "includes",
    CompareOp.EQ: "is",
    CompareOp.NE: "is not",
    CompareOp.LT: "<",
    CompareOp.LE: "≤",
    CompareOp.GT: ">",
    CompareOp.GE: "≥",
}

NUMERIC_OPERATOR_LABELS = {**OPERATOR_LABELS, CompareOp.COLON: "=", CompareOp.EQ: "=", CompareOp.NE: "≠"}

COLOR_OPERATOR_LABELS = {
    CompareOp.COLON: "includes at least",
    CompareOp.EQ: "is exactly",
    CompareOp.NE: "is not exactly",
    CompareOp.LT: "is a strict subset of",
    CompareOp.LE: "is within",
    CompareOp.GT: "is a strict superset of",
    CompareOp.GE: "includes at least",
}


def explain_query(query_node: QueryNode) -> str:
    """Generate a human-readable explanation of a query AST.

    Args:
        query_node: The root query node to explain.

    Returns:
        A human-readable string explaining the query.
    """
    if isinstance(query_node, AndNode):
        parts = [_explain_operand(operand, AndNode) for operand in _flatten(query_node)]
        return " and ".join(parts)

    if isinstance(query_node, OrNode):
        parts = [_explain_operand(operand, OrNode) for operand in _flatten(query_node)]
        return " or ".join(parts)

    if isinstance(query_node, NotNode):
        return f"not ({explain_query(query_node.operand)})"

    if isinstance(query_node, ComparisonNode):
        return _explain_comparison(query_node)

    if isinstance(query_node, BareTermNode):
        return f'the name includes "{query_node.text}"'

    if isinstance(query_node, BareRegexNode):
        return f"the name matches {_explain_value(query_node.regex)}"

    # For other node types, return a generic representation
    return str(query_node)


def _flatten(node: BinaryBooleanNode) -> list[QueryNode]:
    """Collect the operands of a chain of the same boolean operator, in source order."""
    operands: list[QueryNode] = []
    for child in (node.left, node.right):
        if type(child) is type(node):
            operands.extend(_flatten(child))
        else:
            operands.append(child)
    return operands


def _explain_operand(operand: QueryNode, parent_type: type) -> str:
    """Explain an operand, parenthesizing a nested boolean of a different kind."""
    explanation = explain_query(operand)
    if isinstance(operand, BinaryBooleanNode) and not isinstance(operand, parent_type):
        return f"({explanation})"
    return explanation


def _explain_comparison(node: ComparisonNode) -> str:
    """Explain a field comparison.

    Args:
        node: The comparison node to explain.

    Returns:
        A human-readable explanation of the comparison.
    """
    info = FIELD_ID_TO_FIELD_INFO[node.field]
    value_str = _explain_value(node.value)

    if info.kind == FieldKind.FLAG:
        verb = "is" if (node.field == FieldId.IS) == (node.operator != CompareOp.NE) else "is not"
        return f"the card {verb} {value_str}"

    if info.kind == FieldKind.LEGALITY:
        status = {FieldId.FORMAT: "legal", FieldId.BANNED: "banned", FieldId.RESTRICTED: "restricted"}[node.field]
        verb = "is not" if node.operator == CompareOp.NE else "is"
        return f"it {verb} {status} in {value_str}"

    if info.kind == FieldKind.COLOR and isinstance(node.value, NumericValueNode):
        return f"the number of colors in the {info.label} {NUMERIC_OPERATOR_LABELS[node.operator]} {value_str}"

    if info.kind == FieldKind.COLOR:
        operator_str = COLOR_OPERATOR_LABELS[node.operator]
    elif info.kind in (FieldKind.NUMERIC, FieldKind.RARITY, FieldKind.DATE):
        operator_str = NUMERIC_OPERATOR_LABELS[node.operator]
    elif isinstance(node.value, RegexValueNode):
        operator_str = "does not match" if node.operator == CompareOp.NE else "matches"
    elif info.kind == FieldKind.DISCRETE and node.operator == CompareOp.COLON:
        operator_str = "is"
    else:
        operator_str = OPERATOR_LABELS[node.operator]

    return f"the {info.label} {operator_str} {value_str}"


def _explain_value(value_node: ValueNode) -> str:
    """Explain a value node.

    Args:
        value_node: The value node to explain.

    Returns:
        A human-readable version of the value.
    """
    if isinstance(value_node, StringValueNode):
        return f'"{value_node.value}"'
    if isinstance(value_node, NumericValueNode):
        number = value_node.value
        return str(int(number)) if number.is_integer() else str(number)
    if isinstance(value_node, ColorSetValueNode):
        ordered = sort_colors(value_node.value)
        if not ordered:
            return "{C}"
        return "".join(f"{{{color}}}" for color in ordered)
    if isinstance(value_node, RegexValueNode):
        return f"/{value_node.pattern}/{value_node.flags}"
    if isinstance(value_node, KeywordValueNode):
        return value_node.value
    return str(value_node.value)
