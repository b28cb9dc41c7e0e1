"""Errors raised while tokenizing and parsing search queries."""

from __future__ import annotations

from enum import StrEnum


class ParseErrorKind(StrEnum):
    """Categories of query errors, stable enough for callers to branch on."""

    UNEXPECTED_TOKEN = "unexpected_token"
    UNKNOWN_FIELD = "unknown_field"
    INVALID_COMPARISON_VALUE = "invalid_comparison_value"
    UNTERMINATED_STRING = "unterminated_string"
    UNTERMINATED_REGEX = "unterminated_regex"
    UNBALANCED_PARENS = "unbalanced_parens"
    INVALID_OPERATOR = "invalid_operator"
    INVALID_REGEX = "invalid_regex"


class ParseError(ValueError):
    """A query could not be parsed.

    The first problem found aborts parsing; no partial AST is produced.

    Attributes:
        kind: The error category.
        message: Human-readable description suitable for display under a search box.
        query: The full query text.
        position: Character index of the failure within ``query``.
        span: ``(start, end)`` character range of the offending text.
    """

    def __init__(self, kind: ParseErrorKind, message: str, query: str, position: int, end: int | None = None) -> None:
        """Initialize the error.

        Args:
            kind: The error category.
            message: Human-readable description.
            query: The full query text.
            position: Character index where the failure starts.
            end: Character index where the offending text ends; defaults to ``position + 1``.
        """
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.query = query
        self.position = max(0, min(position, len(query)))
        if end is None:
            end = self.position + 1
        self.span = (self.position, max(self.position, min(end, len(query))))

    @property
    def offset(self) -> int:
        """UTF-8 byte offset of the failure within the query."""
        return len(self.query[: self.position].encode("utf-8"))

    def pointer(self) -> str:
        """Render the query with a caret line marking the failure.

        Examples:
            >>> print(ParseError(ParseErrorKind.UNKNOWN_FIELD, "Unknown field 'foo'", "foo:bar", 0, 3).pointer())
            foo:bar
            ^^^
        """
        start, end = self.span
        width = max(1, end - start)
        return f"{self.query}\n{' ' * start}{'^' * width}"

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-compatible description of the error."""
        return {
            "kind": str(self.kind),
            "message": self.message,
            "position": self.position,
            "offset": self.offset,
            "span": list(self.span),
        }

    def __repr__(self) -> str:
        """Return a string representation of the error."""
        return f"ParseError(kind={self.kind}, message={self.message!r}, position={self.position})"
