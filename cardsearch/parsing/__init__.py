"""Query parsing, evaluation and AST generation for card search queries."""

from cardsearch.parsing.colors import (
    Color,
    color_identity_label,
    compare_colors,
    is_strict_subset,
    is_strict_superset,
    is_subset,
    is_superset,
    parse_colors,
    sets_equal,
)
from cardsearch.parsing.errors import ParseError, ParseErrorKind
from cardsearch.parsing.evaluator import evaluate
from cardsearch.parsing.explanation import explain_query
from cardsearch.parsing.field_info import CompareOp, FieldId, FieldKind
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
)
from cardsearch.parsing.parser import parse, parse_search_query
from cardsearch.parsing.serialization import dumps_query, loads_query
from cardsearch.parsing.tokens import Token, TokenKind, tokenize

node_types = [
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
]
enums = [Color, CompareOp, FieldId, FieldKind, ParseErrorKind, TokenKind]
classes = [ParseError, Token]
functions = [
    color_identity_label,
    compare_colors,
    dumps_query,
    evaluate,
    explain_query,
    is_strict_subset,
    is_strict_superset,
    is_subset,
    is_superset,
    loads_query,
    parse,
    parse_colors,
    parse_search_query,
    sets_equal,
    tokenize,
]
__all__ = [x.__name__ for x in node_types + enums + classes + functions]
