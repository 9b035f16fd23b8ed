"""JSON parser: recursive descent into a generic value tree.

The tree is shape-agnostic: objects become ``dict`` (insertion ordered, last
duplicate key wins), arrays become ``list``, and scalars become ``None``,
``bool``, ``int``, ``float`` or ``str``. Floats are ``JsonFloat`` values that
remember their source text.
"""

from __future__ import annotations

from .tokens import (
    JsonError,
    TK_EOF,
    TK_FLOAT,
    TK_INT,
    TK_OP,
    TK_STRING,
    Token,
    tokenize,
)

MAX_DEPTH = 256


class ParseError(JsonError):
    """Parse error with location info."""


class JsonFloat(float):
    """A float that keeps its source text, so ``Decimal`` targets read it exactly."""

    text: str

    def __new__(cls, text: str) -> JsonFloat:
        value = super().__new__(cls, text)
        value.text = text
        return value


class Parser:
    """Recursive descent parser for JSON."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.depth: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.type == TK_OP and tok.value == value

    def expect(self, value: str) -> Token:
        tok = self.current()
        if tok.type != TK_OP or tok.value != value:
            raise self.error("expected '" + value + "', got " + _describe(tok))
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def enter(self) -> None:
        """Open one level of nesting; deeper than MAX_DEPTH is rejected."""
        if self.depth >= MAX_DEPTH:
            raise self.error("nesting too deep (limit " + str(MAX_DEPTH) + ")")
        self.depth += 1

    # ── Grammar ──────────────────────────────────────────────

    def parse_document(self) -> object:
        """document := value EOF"""
        value = self.parse_value()
        if self.current().type != TK_EOF:
            raise self.error("unexpected " + _describe(self.current()) + " after value")
        return value

    def parse_value(self) -> object:
        tok = self.current()
        if tok.type == TK_OP:
            if tok.value == "{":
                return self.parse_object()
            if tok.value == "[":
                return self.parse_array()
            raise self.error("unexpected " + _describe(tok))
        if tok.type == TK_STRING:
            self.advance()
            return tok.value
        if tok.type == TK_INT:
            self.advance()
            return int(tok.value)
        if tok.type == TK_FLOAT:
            self.advance()
            return JsonFloat(tok.value)
        if tok.type == "true":
            self.advance()
            return True
        if tok.type == "false":
            self.advance()
            return False
        if tok.type == "null":
            self.advance()
            return None
        raise self.error("unexpected " + _describe(tok))

    def parse_object(self) -> dict[str, object]:
        """object := '{' (STRING ':' value (',' STRING ':' value)*)? '}'"""
        self.enter()
        self.expect("{")
        result: dict[str, object] = {}
        if self.at("}"):
            self.advance()
            self.depth -= 1
            return result
        while True:
            key_tok = self.current()
            if key_tok.type != TK_STRING:
                raise self.error("expected member name, got " + _describe(key_tok))
            self.advance()
            self.expect(":")
            result[key_tok.value] = self.parse_value()
            if self.at(","):
                self.advance()
                continue
            self.expect("}")
            self.depth -= 1
            return result

    def parse_array(self) -> list[object]:
        """array := '[' (value (',' value)*)? ']'"""
        self.enter()
        self.expect("[")
        result: list[object] = []
        if self.at("]"):
            self.advance()
            self.depth -= 1
            return result
        while True:
            result.append(self.parse_value())
            if self.at(","):
                self.advance()
                continue
            self.expect("]")
            self.depth -= 1
            return result


def _describe(tok: Token) -> str:
    if tok.type == TK_EOF:
        return "end of input"
    if tok.type == TK_STRING:
        return "string " + repr(tok.value)
    return "'" + tok.value + "'"


def parse(source: str) -> object:
    """Parse JSON text into a generic value tree."""
    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse_document()
