"""Tokenizer for card search queries.

The token grammar is a flat pyparsing ``MatchFirst`` over the token classes; ordering
matters because earlier alternatives win. A comparison such as ``pow>-1`` is lexed as a
field-operator token followed by a value token that must start right after the
operator, so a leading ``-`` or an embedded ``:`` is part of the value there.

Outside a comparison a ``/`` opens a regex only where an atom may begin: at the start
of the query or after ``(``, ``-``, ``OR`` or ``AND``. Elsewhere it is part of a word.
Tabs are kept as they are so token positions index the original query.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import cachetools
from pyparsing import Literal, OneOrMore, Opt, ParseBaseException, ParserElement, Regex

from cardsearch.parsing.errors import ParseError, ParseErrorKind
from cardsearch.parsing.field_info import CompareOp

if TYPE_CHECKING:
    from collections.abc import Callable

    from pyparsing import ParseResults

    ParseAction = Callable[[str, int, ParseResults], "Token"]

logger = logging.getLogger(__name__)

QUOTED_BODY = r'"(?:[^"\\]|\\.)*"'
UNTERMINATED_QUOTED_BODY = r'"(?:[^"\\]|\\.)*\\?$'
REGEX_BODY = r"/(?:[^/\\]|\\.)*/[gimsuy]*"
UNTERMINATED_REGEX_BODY = r"/(?:[^/\\]|\\.)*\\?$"
FIELD_OP_PATTERN = re.compile(r"(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?P<op>!=|<=|>=|[:=<>])")
ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)
# What may precede a bare regex: start of query, '(', a standalone '-', OR or AND
REGEX_START_PATTERN = re.compile(r"(?:^|\(|(?:^|[\s(])-+|(?:^|[\s()])(?i:or|and))\s*$")


class TokenKind(StrEnum):
    """Token categories produced by the tokenizer."""

    WORD = "word"
    QUOTED = "quoted"
    REGEX = "regex"
    FIELD_OP = "field_op"
    LPAREN = "lparen"
    RPAREN = "rparen"
    AND = "and"
    OR = "or"
    NOT = "not"
    EXACT_NAME = "exact_name"


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    ``start`` and ``end`` are character indexes into the query; ``text`` is the
    decoded value (quotes and escapes removed, regex slashes stripped).
    """

    kind: TokenKind
    text: str
    start: int
    end: int
    field: str | None = None
    operator: CompareOp | None = None
    flags: str = ""

    def is_adjacent_to(self, other: Token) -> bool:
        """Check whether this token begins exactly where ``other`` ends."""
        return self.start == other.end


def unescape(body: str) -> str:
    r"""Remove backslash escapes, so ``\"`` becomes ``"``."""
    return ESCAPE_PATTERN.sub(r"\1", body)


def _simple(kind: TokenKind) -> ParseAction:
    """Build a parse action that turns the matched text into a token of one kind."""

    def action(_query: str, loc: int, toks: ParseResults) -> Token:
        text = toks[0]
        return Token(kind=kind, text=text, start=loc, end=loc + len(text))

    return action


def _make_quoted(_query: str, loc: int, toks: ParseResults) -> Token:
    raw = toks[0]
    return Token(kind=TokenKind.QUOTED, text=unescape(raw[1:-1]), start=loc, end=loc + len(raw))


def _make_regex(_query: str, loc: int, toks: ParseResults) -> Token:
    raw = toks[0]
    closing = raw.rindex("/")
    return Token(kind=TokenKind.REGEX, text=raw[1:closing], flags=raw[closing + 1 :], start=loc, end=loc + len(raw))


def _make_exact_name(_query: str, loc: int, toks: ParseResults) -> Token:
    raw = toks[0]
    name = raw[1:].lstrip()
    if name.startswith('"'):
        name = unescape(name[1:-1])
    return Token(kind=TokenKind.EXACT_NAME, text=name, start=loc, end=loc + len(raw))


def _make_field_op(_query: str, loc: int, toks: ParseResults) -> Token:
    raw = toks[0]
    match = FIELD_OP_PATTERN.fullmatch(raw)
    return Token(
        kind=TokenKind.FIELD_OP,
        text=raw,
        field=match.group("field"),
        operator=CompareOp(match.group("op")),
        start=loc,
        end=loc + len(raw),
    )


def _unterminated(kind: ParseErrorKind, message: str) -> ParseAction:
    """Build a parse action that rejects an unclosed quote or regex."""

    def action(query: str, loc: int, toks: ParseResults) -> Token:
        raise ParseError(kind, message, query, loc, loc + len(toks[0]))

    return action


def regex_may_start(query: str, loc: int, _toks: ParseResults) -> bool:
    """Check whether a bare ``/`` at ``loc`` opens a regex rather than being part of a word.

    ``fire / ice`` is three words, while ``(/^goblin/`` and ``a OR /^goblin/`` hold regexes.
    """
    return REGEX_START_PATTERN.search(query, 0, loc) is not None


def create_value_parsers() -> dict[str, ParserElement]:
    """Create the elements that may appear as a comparison value.

    Returns:
        Dictionary containing value parser elements
    """
    quoted_string = Regex(QUOTED_BODY).set_parse_action(_make_quoted)
    unterminated_string = Regex(UNTERMINATED_QUOTED_BODY, flags=re.DOTALL).set_parse_action(
        _unterminated(ParseErrorKind.UNTERMINATED_STRING, "Unterminated quoted string"),
    )
    regex_literal = Regex(REGEX_BODY).set_parse_action(_make_regex)
    unterminated_regex = Regex(UNTERMINATED_REGEX_BODY, flags=re.DOTALL).set_parse_action(
        _unterminated(ParseErrorKind.UNTERMINATED_REGEX, "Unterminated regex"),
    )
    # Values may start with '-' and contain ':' (pow>-1, o:{T}:)
    value_word = Regex(r'[^\s()"]+').set_parse_action(_simple(TokenKind.WORD))
    return {
        "quoted_string": quoted_string,
        "unterminated_string": unterminated_string,
        "regex_literal": regex_literal,
        "unterminated_regex": unterminated_regex,
        "value_word": value_word,
    }


@cachetools.cached(cache={})
def get_token_expr() -> ParserElement:
    """Create the token grammar.

    Cached so the grammar is only built once per process.

    Returns:
        A parser element matching the whole query as a sequence of tokens.
    """
    values = create_value_parsers()
    quoted_string = values["quoted_string"]
    unterminated_string = values["unterminated_string"]
    # The position check must run before the unterminated action raises
    bare_regex = Regex(REGEX_BODY).add_condition(regex_may_start).add_parse_action(_make_regex)
    bare_unterminated_regex = (
        Regex(UNTERMINATED_REGEX_BODY, flags=re.DOTALL)
        .add_condition(regex_may_start)
        .add_parse_action(_unterminated(ParseErrorKind.UNTERMINATED_REGEX, "Unterminated regex"))
    )

    lparen = Literal("(").set_parse_action(_simple(TokenKind.LPAREN))
    rparen = Literal(")").set_parse_action(_simple(TokenKind.RPAREN))

    exact_name = Regex(rf'!\s*(?:{QUOTED_BODY}|[^\s()"]+)').set_parse_action(_make_exact_name)
    unterminated_exact_name = Regex(rf"!\s*{UNTERMINATED_QUOTED_BODY}", flags=re.DOTALL).set_parse_action(
        _unterminated(ParseErrorKind.UNTERMINATED_STRING, "Unterminated quoted string"),
    )

    # Keywords are whole words: "order" and "android" stay words
    operator_or = Regex(r"(?i)or(?=[\s()]|$)").set_parse_action(_simple(TokenKind.OR))
    operator_and = Regex(r"(?i)and(?=[\s()]|$)").set_parse_action(_simple(TokenKind.AND))
    operator_not = Literal("-").set_parse_action(_simple(TokenKind.NOT))

    field_op = Regex(FIELD_OP_PATTERN.pattern).set_parse_action(_make_field_op)
    regex_literal = values["regex_literal"]
    unterminated_regex = values["unterminated_regex"]
    value = quoted_string | unterminated_string | regex_literal | unterminated_regex | values["value_word"]
    comparison = field_op + Opt(value.copy().leave_whitespace())

    # A '-' inside a word is literal; only a leading '-' negates
    word = Regex(r'[^\s()"\-][^\s()"]*').set_parse_action(_simple(TokenKind.WORD))

    token = (
        lparen
        | rparen
        | exact_name
        | unterminated_exact_name
        | quoted_string
        | unterminated_string
        | bare_regex
        | bare_unterminated_regex
        | operator_or
        | operator_and
        | operator_not
        | comparison
        | word
    )
    return OneOrMore(token).parse_with_tabs()


def tokenize(query: str) -> list[Token]:
    """Split a query into tokens.

    Args:
        query: The raw query text.

    Returns:
        The tokens in source order; an empty list for a blank query.

    Raises:
        ParseError: For unterminated quotes or regexes, or text that is not a token.
    """
    if not query.strip():
        return []
    try:
        parsed = get_token_expr().parse_string(query, parse_all=True)
    except ParseBaseException as e:
        msg = f"Unexpected character {query[e.loc]!r}" if e.loc < len(query) else "Unexpected end of query"
        raise ParseError(ParseErrorKind.UNEXPECTED_TOKEN, msg, query, e.loc) from e
    tokens = list(parsed)
    logger.debug("Tokenized %r into %d tokens", query, len(tokens))
    return tokens
