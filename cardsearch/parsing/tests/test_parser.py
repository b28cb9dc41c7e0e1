"""Tests for query parsing: precedence, value typing and errors."""

from __future__ import annotations

import pytest

from cardsearch.parsing.colors import Color
from cardsearch.parsing.errors import ParseError, ParseErrorKind
from cardsearch.parsing.field_info import CompareOp, FieldId
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
from cardsearch.parsing.parser import parse


def text(field: FieldId, value: str, operator: CompareOp = CompareOp.COLON) -> ComparisonNode:
    return ComparisonNode(field, operator, StringValueNode(value))


def number(field: FieldId, operator: CompareOp, value: float) -> ComparisonNode:
    return ComparisonNode(field, operator, NumericValueNode(value))


class TestPrecedence:
    """Test operator precedence and associativity."""

    def test_juxtaposition_is_and(self) -> None:
        assert parse("t:creature o:flying") == AndNode(text(FieldId.TYPE, "creature"), text(FieldId.ORACLE, "flying"))

    def test_explicit_and_matches_juxtaposition(self) -> None:
        assert parse("t:creature AND o:flying") == parse("t:creature o:flying")
        assert parse("t:creature and o:flying") == parse("t:creature o:flying")

    def test_and_binds_tighter_than_or(self) -> None:
        a, b, c = BareTermNode("a"), BareTermNode("b"), BareTermNode("c")
        assert parse("a OR b c") == OrNode(a, AndNode(b, c))
        assert parse("a b OR c") == OrNode(AndNode(a, b), c)

    def test_and_is_left_associative(self) -> None:
        a, b, c = BareTermNode("a"), BareTermNode("b"), BareTermNode("c")
        assert parse("a b c") == AndNode(AndNode(a, b), c)

    def test_or_is_left_associative(self) -> None:
        a, b, c = BareTermNode("a"), BareTermNode("b"), BareTermNode("c")
        assert parse("a or b or c") == OrNode(OrNode(a, b), c)

    def test_not_binds_tightest(self) -> None:
        assert parse("-t:land") == NotNode(text(FieldId.TYPE, "land"))
        assert parse("-a b") == AndNode(NotNode(BareTermNode("a")), BareTermNode("b"))

    def test_double_negation(self) -> None:
        assert parse("--a") == NotNode(NotNode(BareTermNode("a")))

    def test_parentheses_group(self) -> None:
        a, b, c = BareTermNode("a"), BareTermNode("b"), BareTermNode("c")
        assert parse("(a OR b) c") == AndNode(OrNode(a, b), c)
        assert parse("-(a OR b)") == NotNode(OrNode(a, b))

    def test_nested_parentheses(self) -> None:
        assert parse("((a))") == BareTermNode("a")

    def test_parse_is_idempotent(self) -> None:
        query = 't:creature (c<=wu OR id:g) -is:reprint "lightning bolt" OR /^goblin/'
        assert parse(query) == parse(query)
        assert hash(parse(query)) == hash(parse(query))


class TestAtoms:
    """Test bare terms and exact names."""

    def test_bare_word(self) -> None:
        assert parse("bolt") == BareTermNode("bolt")

    def test_quoted_phrase(self) -> None:
        assert parse('"lightning bolt"') == BareTermNode("lightning bolt")

    def test_hyphenated_word_is_not_negated(self) -> None:
        assert parse("non-creature") == BareTermNode("non-creature")

    def test_bare_regex(self) -> None:
        node = parse("/^goblin/")
        assert node == BareRegexNode(RegexValueNode("^goblin"))
        assert node.pattern == "^goblin"
        assert node.flags == ""

    def test_exact_name(self) -> None:
        assert parse('!"Lightning Bolt"') == text(FieldId.NAME, "Lightning Bolt", CompareOp.EQ)
        assert parse("!Shock") == text(FieldId.NAME, "Shock", CompareOp.EQ)

    def test_tab_inside_quotes_is_kept(self) -> None:
        assert parse('"a\tb"') == BareTermNode("a\tb")

    def test_tab_separates_terms(self) -> None:
        assert parse("a\tb") == AndNode(BareTermNode("a"), BareTermNode("b"))

    def test_slash_between_words_is_a_word(self) -> None:
        assert parse("fire / ice") == AndNode(AndNode(BareTermNode("fire"), BareTermNode("/")), BareTermNode("ice"))

    def test_regex_after_word_is_a_word(self) -> None:
        assert parse("goblin /^a/") == AndNode(BareTermNode("goblin"), BareTermNode("/^a/"))

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("(/^a/)", BareRegexNode(RegexValueNode("^a"))),
            ("-/^a/", NotNode(BareRegexNode(RegexValueNode("^a")))),
            ("b OR /^a/", OrNode(BareTermNode("b"), BareRegexNode(RegexValueNode("^a")))),
            ("b or /^a/", OrNode(BareTermNode("b"), BareRegexNode(RegexValueNode("^a")))),
            ("b AND /^a/", AndNode(BareTermNode("b"), BareRegexNode(RegexValueNode("^a")))),
            ("b (/^a/)", AndNode(BareTermNode("b"), BareRegexNode(RegexValueNode("^a")))),
        ],
    )
    def test_regex_where_an_atom_starts(self, query: str, expected: QueryNode) -> None:
        assert parse(query) == expected


class TestFieldValues:
    """Test that values are typed according to their field."""

    @pytest.mark.parametrize(
        ("query", "field"),
        [
            ("t:elf", FieldId.TYPE),
            ("type:elf", FieldId.TYPE),
            ("o:elf", FieldId.ORACLE),
            ("oracle:elf", FieldId.ORACLE),
            ("name:elf", FieldId.NAME),
            ("a:elf", FieldId.ARTIST),
            ("artist:elf", FieldId.ARTIST),
            ("s:elf", FieldId.SET),
            ("set:elf", FieldId.SET),
            ("T:elf", FieldId.TYPE),
        ],
    )
    def test_field_aliases(self, query: str, field: FieldId) -> None:
        assert parse(query) == text(field, "elf")

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("mv<=3", number(FieldId.MANA_VALUE, CompareOp.LE, 3)),
            ("cmc=2.5", number(FieldId.MANA_VALUE, CompareOp.EQ, 2.5)),
            ("pow>4", number(FieldId.POWER, CompareOp.GT, 4)),
            ("pow>-1", number(FieldId.POWER, CompareOp.GT, -1)),
            ("tou<.5", number(FieldId.TOUGHNESS, CompareOp.LT, 0.5)),
            ("loy:3", number(FieldId.LOYALTY, CompareOp.COLON, 3)),
            ("year>=2020", number(FieldId.YEAR, CompareOp.GE, 2020)),
        ],
    )
    def test_numeric_values(self, query: str, expected: ComparisonNode) -> None:
        assert parse(query) == expected

    @pytest.mark.parametrize(
        ("query", "operator", "colors"),
        [
            ("c:r", CompareOp.COLON, {Color.R}),
            ("c<=wu", CompareOp.LE, {Color.W, Color.U}),
            ("id>=bg", CompareOp.GE, {Color.B, Color.G}),
            ("ci=jund", CompareOp.EQ, {Color.B, Color.R, Color.G}),
            ("color!=azorius", CompareOp.NE, {Color.W, Color.U}),
        ],
    )
    def test_color_values(self, query: str, operator: CompareOp, colors: set[Color]) -> None:
        node = parse(query)
        assert isinstance(node, ComparisonNode)
        assert node.operator == operator
        assert node.value == ColorSetValueNode(frozenset(colors))

    def test_identity_aliases(self) -> None:
        assert parse("id<=wu").field == FieldId.IDENTITY
        assert parse("ci<=wu").field == FieldId.IDENTITY

    @pytest.mark.parametrize("query", ["c:c", "c:colorless", "id:c"])
    def test_colorless_colon_means_exactly_colorless(self, query: str) -> None:
        node = parse(query)
        assert node.operator == CompareOp.EQ
        assert node.value == ColorSetValueNode(frozenset())

    def test_digits_on_color_field_count_colors(self) -> None:
        assert parse("c>=2") == ComparisonNode(FieldId.COLOR, CompareOp.GE, NumericValueNode(2))

    @pytest.mark.parametrize(("query", "rarity"), [("r:m", "mythic"), ("r>=rare", "rare"), ("rarity:C", "common")])
    def test_rarity_values(self, query: str, rarity: str) -> None:
        assert parse(query).value == KeywordValueNode(rarity)

    def test_flag_value(self) -> None:
        assert parse("is:Reprint") == ComparisonNode(FieldId.IS, CompareOp.COLON, KeywordValueNode("reprint"))

    def test_format_value(self) -> None:
        assert parse("f:Modern") == ComparisonNode(FieldId.FORMAT, CompareOp.COLON, KeywordValueNode("modern"))

    def test_quoted_value(self) -> None:
        assert parse('o:"draw a card"') == text(FieldId.ORACLE, "draw a card")

    def test_regex_value(self) -> None:
        node = parse("o:/^{T}:/")
        assert node == ComparisonNode(FieldId.ORACLE, CompareOp.COLON, RegexValueNode("^{T}:"))

    def test_name_regex_value(self) -> None:
        node = parse("name:/bolt$/i")
        assert node.value == RegexValueNode("bolt$", "i")

    def test_field_regex_after_word(self) -> None:
        assert parse("goblin o:/^a/") == AndNode(BareTermNode("goblin"), ComparisonNode(FieldId.ORACLE, CompareOp.COLON, RegexValueNode("^a")))

    @pytest.mark.parametrize(
        ("query", "field", "operator"),
        [
            ("pow=*", FieldId.POWER, CompareOp.EQ),
            ("tou:*", FieldId.TOUGHNESS, CompareOp.COLON),
            ("pow!=*", FieldId.POWER, CompareOp.NE),
            ("loy=*", FieldId.LOYALTY, CompareOp.EQ),
        ],
    )
    def test_star_stat_values(self, query: str, field: FieldId, operator: CompareOp) -> None:
        assert parse(query) == ComparisonNode(field, operator, KeywordValueNode("*"))

    @pytest.mark.parametrize(
        ("query", "operator", "date"),
        [
            ("date>=2020-01-01", CompareOp.GE, "2020-01-01"),
            ("date=1993-08-05", CompareOp.EQ, "1993-08-05"),
            ("date<20200131", CompareOp.LT, "2020-01-31"),
        ],
    )
    def test_date_values(self, query: str, operator: CompareOp, date: str) -> None:
        assert parse(query) == ComparisonNode(FieldId.DATE, operator, KeywordValueNode(date))


class TestParseErrors:
    """Test error kinds and positions."""

    @pytest.mark.parametrize(
        ("query", "kind", "position"),
        [
            ("", ParseErrorKind.UNEXPECTED_TOKEN, 0),
            ("   ", ParseErrorKind.UNEXPECTED_TOKEN, 3),
            ("(a", ParseErrorKind.UNBALANCED_PARENS, 0),
            ("a (b c", ParseErrorKind.UNBALANCED_PARENS, 2),
            ("(", ParseErrorKind.UNBALANCED_PARENS, 0),
            ("a)", ParseErrorKind.UNBALANCED_PARENS, 1),
            (")", ParseErrorKind.UNBALANCED_PARENS, 0),
            ("()", ParseErrorKind.UNEXPECTED_TOKEN, 1),
            ("foo:bar", ParseErrorKind.UNKNOWN_FIELD, 0),
            ("t:creature xyz<=3", ParseErrorKind.UNKNOWN_FIELD, 11),
            ("mv<=abc", ParseErrorKind.INVALID_COMPARISON_VALUE, 4),
            ("pow>", ParseErrorKind.INVALID_COMPARISON_VALUE, 4),
            ("t: creature", ParseErrorKind.INVALID_COMPARISON_VALUE, 3),
            ("mv:/3/", ParseErrorKind.INVALID_COMPARISON_VALUE, 3),
            ("r:legendary", ParseErrorKind.INVALID_COMPARISON_VALUE, 2),
            ("is:shiny", ParseErrorKind.INVALID_COMPARISON_VALUE, 3),
            ("o<foo", ParseErrorKind.INVALID_OPERATOR, 0),
            ("o:/[/", ParseErrorKind.INVALID_REGEX, 2),
            ("/(/", ParseErrorKind.INVALID_REGEX, 0),
            ('"open', ParseErrorKind.UNTERMINATED_STRING, 0),
            ("/open", ParseErrorKind.UNTERMINATED_REGEX, 0),
            ("OR a", ParseErrorKind.UNEXPECTED_TOKEN, 0),
            ("a OR", ParseErrorKind.UNEXPECTED_TOKEN, 2),
            ("a OR OR b", ParseErrorKind.UNEXPECTED_TOKEN, 5),
            ("a AND", ParseErrorKind.UNEXPECTED_TOKEN, 2),
            ("a -", ParseErrorKind.UNEXPECTED_TOKEN, 2),
            ("(a OR) b", ParseErrorKind.UNEXPECTED_TOKEN, 5),
            ("pow>*", ParseErrorKind.INVALID_COMPARISON_VALUE, 4),
            ("mv=*", ParseErrorKind.INVALID_COMPARISON_VALUE, 3),
            ("date>=2020-13-01", ParseErrorKind.INVALID_COMPARISON_VALUE, 6),
            ("date:yesterday", ParseErrorKind.INVALID_COMPARISON_VALUE, 5),
        ],
    )
    def test_error(self, query: str, kind: ParseErrorKind, position: int) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse(query)
        assert exc_info.value.kind == kind
        assert exc_info.value.position == position

    def test_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="Unknown field 'foo'"):
            parse("foo:bar")

    def test_byte_offset_counts_utf8(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("Æther foo:bar")
        assert exc_info.value.position == 6
        assert exc_info.value.offset == 7

    def test_positions_after_a_tab(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("a\tfoo:bar")
        assert exc_info.value.position == 2
        assert exc_info.value.span == (2, 5)

    def test_pointer_marks_the_span(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("t:elf foo:bar")
        assert exc_info.value.pointer() == "t:elf foo:bar\n      ^^^"

    def test_to_dict(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("(a")
        assert exc_info.value.to_dict() == {
            "kind": "unbalanced_parens",
            "message": "Expected closing parenthesis",
            "position": 0,
            "offset": 0,
            "span": [0, 1],
        }
