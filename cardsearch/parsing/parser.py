"""Recursive-descent parser turning query tokens into an AST.

Grammar, lowest precedence first::

    query      := or_expr
    or_expr    := and_expr (OR and_expr)*
    and_expr   := not_expr ([AND] not_expr)*
    not_expr   := '-' not_expr | atom
    atom       := '(' or_expr ')' | comparison | EXACT_NAME | WORD | QUOTED | REGEX
    comparison := FIELD_OP value

Both binary operators are left-associative, so ``a b c`` is ``And(And(a, b), c)``.
Parsing stops at the first error.
"""

from __future__ import annotations

import datetime
import logging
import re
import threading

import cachetools

from cardsearch.parsing.colors import parse_colors
from cardsearch.parsing.errors import ParseError, ParseErrorKind
from cardsearch.parsing.field_info import (
    EQUALITY_OPERATORS,
    IS_PREDICATE_NAMES,
    REGEX_KINDS,
    STAR_STAT_FIELDS,
    CompareOp,
    FieldId,
    FieldInfo,
    FieldKind,
    normalize_rarity,
    resolve_field,
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
    StringValueNode,
    ValueNode,
)
from cardsearch.parsing.tokens import Token, TokenKind, tokenize
from cardsearch.settings import settings

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r"-?(?:\d+(?:\.\d+)?|\.\d+)")
COLOR_COUNT_PATTERN = re.compile(r"\d+")
VALUE_TOKEN_KINDS = frozenset({TokenKind.WORD, TokenKind.QUOTED, TokenKind.REGEX})
# Tokens that may begin an atom
ATOM_START_KINDS = frozenset(
    {
        TokenKind.LPAREN,
        TokenKind.NOT,
        TokenKind.FIELD_OP,
        TokenKind.EXACT_NAME,
        TokenKind.WORD,
        TokenKind.QUOTED,
        TokenKind.REGEX,
    },
)


class QueryParser:
    """Parser state for one query: the token list and a cursor into it."""

    def __init__(self: QueryParser, query: str, tokens: list[Token]) -> None:
        """Initialize the parser.

        Args:
            query: The raw query text, used in error messages.
            tokens: The tokens produced by ``tokenize(query)``.
        """
        self.query = query
        self.tokens = tokens
        self.pos = 0

    def peek(self: QueryParser) -> Token | None:
        """Return the current token without consuming it."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self: QueryParser) -> Token:
        """Consume and return the current token."""
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def check(self: QueryParser, *kinds: TokenKind) -> bool:
        """Check whether the current token has one of the given kinds."""
        token = self.peek()
        return token is not None and token.kind in kinds

    def error(self: QueryParser, kind: ParseErrorKind, message: str, token: Token | None = None) -> ParseError:
        """Build an error located at a token, or at the end of the query when there is none."""
        if token is None:
            return ParseError(kind, message, self.query, len(self.query))
        return ParseError(kind, message, self.query, token.start, token.end)

    def parse(self: QueryParser) -> QueryNode:
        """Parse the whole token list.

        Raises:
            ParseError: On the first syntax or value error.
        """
        if not self.tokens:
            raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, "Empty query")
        node = self.parse_or()
        token = self.peek()
        if token is not None:
            if token.kind == TokenKind.RPAREN:
                raise self.error(ParseErrorKind.UNBALANCED_PARENS, "Unmatched closing parenthesis", token)
            raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, f"Unexpected {token.text!r}", token)
        return node

    def parse_or(self: QueryParser) -> QueryNode:
        """or_expr := and_expr (OR and_expr)*."""
        node = self.parse_and()
        while self.check(TokenKind.OR):
            or_token = self.advance()
            if not self.check(*ATOM_START_KINDS):
                raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, f"Expected a search term after {or_token.text!r}", self.peek() or or_token)
            node = OrNode(node, self.parse_and())
        return node

    def parse_and(self: QueryParser) -> QueryNode:
        """and_expr := not_expr ([AND] not_expr)*."""
        node = self.parse_not()
        while True:
            if self.check(TokenKind.AND):
                and_token = self.advance()
                if not self.check(*ATOM_START_KINDS):
                    raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, f"Expected a search term after {and_token.text!r}", self.peek() or and_token)
            elif not self.check(*ATOM_START_KINDS):
                return node
            node = AndNode(node, self.parse_not())

    def parse_not(self: QueryParser) -> QueryNode:
        """not_expr := '-' not_expr | atom."""
        if self.check(TokenKind.NOT):
            not_token = self.advance()
            if not self.check(*ATOM_START_KINDS):
                raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, "Expected a search term after '-'", self.peek() or not_token)
            return NotNode(self.parse_not())
        return self.parse_atom()

    def parse_atom(self: QueryParser) -> QueryNode:
        """Parse a group, comparison or bare term."""
        token = self.peek()
        if token is None:
            raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, "Unexpected end of query")

        if token.kind == TokenKind.LPAREN:
            return self.parse_group()
        if token.kind == TokenKind.FIELD_OP:
            return self.parse_comparison()

        self.advance()
        if token.kind == TokenKind.EXACT_NAME:
            return ComparisonNode(FieldId.NAME, CompareOp.EQ, StringValueNode(token.text))
        if token.kind in (TokenKind.WORD, TokenKind.QUOTED):
            return BareTermNode(token.text)
        if token.kind == TokenKind.REGEX:
            return BareRegexNode(self.make_regex(token))
        if token.kind == TokenKind.RPAREN:
            raise self.error(ParseErrorKind.UNBALANCED_PARENS, "Unmatched closing parenthesis", token)
        raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, f"Unexpected {token.text!r}", token)

    def parse_group(self: QueryParser) -> QueryNode:
        """Parse '(' or_expr ')'."""
        lparen = self.advance()
        if self.check(TokenKind.RPAREN):
            raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, "Empty parentheses", self.peek())
        if self.peek() is None:
            raise self.error(ParseErrorKind.UNBALANCED_PARENS, "Expected closing parenthesis", lparen)
        node = self.parse_or()
        if not self.check(TokenKind.RPAREN):
            raise self.error(ParseErrorKind.UNBALANCED_PARENS, "Expected closing parenthesis", lparen)
        self.advance()
        return node

    def parse_comparison(self: QueryParser) -> ComparisonNode:
        """Parse FIELD_OP value, resolving the field and typing the value."""
        field_token = self.advance()
        info = resolve_field(field_token.field)
        if info is None:
            raise ParseError(
                ParseErrorKind.UNKNOWN_FIELD,
                f"Unknown field {field_token.field!r}",
                self.query,
                field_token.start,
                field_token.start + len(field_token.field),
            )

        operator = field_token.operator
        if operator not in info.operators:
            allowed = " ".join(sorted(info.operators))
            raise self.error(
                ParseErrorKind.INVALID_OPERATOR,
                f"Operator {operator!s} is not supported for {info.label}; use one of {allowed}",
                field_token,
            )

        value_token = self.peek()
        if value_token is None or value_token.kind not in VALUE_TOKEN_KINDS or not value_token.is_adjacent_to(field_token):
            raise self.error(ParseErrorKind.INVALID_COMPARISON_VALUE, f"Expected a value after {field_token.text!r}", value_token)
        self.advance()

        value = self.make_value(info, operator, value_token)
        if info.kind == FieldKind.COLOR and operator == CompareOp.COLON and value == ColorSetValueNode(frozenset()):
            # c:c would otherwise match every card
            operator = CompareOp.EQ
        return ComparisonNode(info.field_id, operator, value)

    def make_value(self: QueryParser, info: FieldInfo, operator: CompareOp, token: Token) -> ValueNode:  # noqa: C901, PLR0911
        """Convert a value token to the value node type the field expects."""
        if token.kind == TokenKind.REGEX:
            if info.kind not in REGEX_KINDS:
                raise self.error(ParseErrorKind.INVALID_COMPARISON_VALUE, f"Regular expressions are not supported for {info.label}", token)
            return self.make_regex(token)

        text = token.text
        if text == "*" and info.field_id in STAR_STAT_FIELDS:
            if operator not in EQUALITY_OPERATORS:
                raise self.error(ParseErrorKind.INVALID_COMPARISON_VALUE, f"{info.label.capitalize()} * can only be compared with : = !=", token)
            return KeywordValueNode(text)

        if info.kind == FieldKind.NUMERIC:
            if not NUMBER_PATTERN.fullmatch(text.strip()):
                raise self.error(ParseErrorKind.INVALID_COMPARISON_VALUE, f"Expected a number for {info.label}, got {text!r}", token)
            return NumericValueNode(float(text))

        if info.kind == FieldKind.DATE:
            try:
                return KeywordValueNode(datetime.date.fromisoformat(text).isoformat())
            except ValueError as e:
                raise self.error(ParseErrorKind.INVALID_COMPARISON_VALUE, f"Expected a date like 2020-01-31 for {info.label}, got {text!r}", token) from e

        if info.kind == FieldKind.COLOR:
            if COLOR_COUNT_PATTERN.fullmatch(text):
                return NumericValueNode(float(text))
            return ColorSetValueNode(parse_colors(text))

        if info.kind == FieldKind.RARITY:
            rarity = normalize_rarity(text)
            if rarity is None:
                raise self.error(ParseErrorKind.INVALID_COMPARISON_VALUE, f"Unknown rarity {text!r}", token)
            return KeywordValueNode(rarity)

        if info.kind == FieldKind.LEGALITY:
            return KeywordValueNode(text)

        if info.kind == FieldKind.FLAG:
            if text.lower() not in IS_PREDICATE_NAMES:
                raise self.error(ParseErrorKind.INVALID_COMPARISON_VALUE, f"Unknown {info.label}: value {text!r}", token)
            return KeywordValueNode(text)

        return StringValueNode(text)

    def make_regex(self: QueryParser, token: Token) -> RegexValueNode:
        """Compile a regex token, reporting bad patterns at the token."""
        try:
            return RegexValueNode(token.text, token.flags)
        except re.error as e:
            raise self.error(ParseErrorKind.INVALID_REGEX, f"Invalid regex: {e}", token) from e


def parse(query: str) -> QueryNode:
    """Parse a search query string into an AST.

    Args:
        query: The search query, e.g. ``t:creature o:flying c<=wu``.

    Returns:
        The root node of the query.

    Raises:
        ParseError: If the query is empty or malformed. Only the first problem is reported.

    Examples:
        >>> parse("t:creature mv<=3")
        AndNode(ComparisonNode(type, :, StringValueNode('creature')), ComparisonNode(manavalue, <=, NumericValueNode(3.0)))
    """
    tokens = tokenize(query)
    node = QueryParser(query, tokens).parse()
    logger.debug("Parsed %r into %r", query, node)
    return node


_parse_cache: cachetools.LRUCache = cachetools.LRUCache(maxsize=settings.parse_cache_size)
_parse_cache_lock = threading.Lock()


@cachetools.cached(cache=_parse_cache, lock=_parse_cache_lock)
def _cached_parse(query: str) -> QueryNode:
    logger.debug("Parse cache miss for %r", query)
    return parse(query)


def parse_search_query(query: str) -> QueryNode:
    """Parse a query, reusing the AST from an earlier identical query when caching is enabled.

    Failed parses are not cached.
    """
    if settings.enable_parse_cache:
        return _cached_parse(query)
    return parse(query)


def clear_parse_cache() -> None:
    """Drop every memoised AST."""
    with _parse_cache_lock:
        _parse_cache.clear()

