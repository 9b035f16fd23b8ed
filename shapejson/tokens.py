"""JSON tokenizer: lexes text into a flat token list."""

from __future__ import annotations


# Token type constants
TK_INT = "INT"
TK_FLOAT = "FLOAT"
TK_STRING = "STRING"
TK_OP = "OP"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "true",
    "false",
    "null",
}

SINGLE_OPS: set[str] = {
    "{",
    "}",
    "[",
    "]",
    ",",
    ":",
}

ESCAPE_MAP: dict[str, str] = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


class JsonError(Exception):
    """Malformed JSON text, with location info."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class TokenizeError(JsonError):
    """Error during tokenization."""


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_hex(c: str) -> bool:
    return (c >= "0" and c <= "9") or (c >= "a" and c <= "f") or (c >= "A" and c <= "F")


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _read_hex4(src: str, pos: int, line: int, col: int) -> int:
    """Read the four hex digits of a \\u escape starting at pos."""
    if pos + 4 > len(src):
        raise TokenizeError("incomplete \\u escape", line, col)
    digits = src[pos : pos + 4]
    for h in digits:
        if not _is_hex(h):
            raise TokenizeError("invalid \\u escape", line, col)
    return int(digits, 16)


def _process_escape(src: str, pos: int, line: int, col: int) -> tuple[str, int]:
    """Process escape after backslash. Returns (resolved_text, new_pos)."""
    if pos >= len(src):
        raise TokenizeError("unexpected end of string in escape", line, col)
    c = src[pos]
    if c in ESCAPE_MAP:
        return ESCAPE_MAP[c], pos + 1
    if c == "u":
        code = _read_hex4(src, pos + 1, line, col)
        pos += 5
        # High surrogate followed by an escaped low surrogate forms one code point
        if 0xD800 <= code <= 0xDBFF and src[pos : pos + 2] == "\\u":
            low = _read_hex4(src, pos + 2, line, col)
            if 0xDC00 <= low <= 0xDFFF:
                code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                pos += 6
        return chr(code), pos
    raise TokenizeError("invalid escape: \\" + c, line, col)


def tokenize(source: str) -> list[Token]:
    """Tokenize JSON text into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    # A leading byte-order mark is not part of the document
    if source.startswith("\ufeff"):
        pos = 1

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r":
            pos += 1
            col += 1
            continue

        start_pos = pos
        start_line = line
        start_col = col

        # Number: -?(0|[1-9][0-9]*)(.[0-9]+)?([eE][+-]?[0-9]+)?
        if c == "-" or _is_digit(c):
            if c == "-":
                pos += 1
                col += 1
                if pos >= length or not _is_digit(source[pos]):
                    raise TokenizeError("invalid number", start_line, start_col)
            if source[pos] == "0":
                pos += 1
                col += 1
                if pos < length and _is_digit(source[pos]):
                    raise TokenizeError(
                        "leading zeros are not allowed", start_line, start_col
                    )
            else:
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            is_float = False
            if pos < length and source[pos] == ".":
                is_float = True
                pos += 1
                col += 1
                if pos >= length or not _is_digit(source[pos]):
                    raise TokenizeError("invalid fraction", start_line, start_col)
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            if pos < length and (source[pos] == "e" or source[pos] == "E"):
                is_float = True
                pos += 1
                col += 1
                if pos < length and (source[pos] == "+" or source[pos] == "-"):
                    pos += 1
                    col += 1
                if pos >= length or not _is_digit(source[pos]):
                    raise TokenizeError("invalid float exponent", start_line, start_col)
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            raw = source[start_pos:pos]
            if is_float:
                tokens.append(Token(TK_FLOAT, raw, start_line, start_col))
            else:
                tokens.append(Token(TK_INT, raw, start_line, start_col))
            continue

        # String literal: "..."
        if c == '"':
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                ch = source[pos]
                if ch < " ":
                    raise TokenizeError(
                        "unescaped control character in string", line, col
                    )
                if ch == "\\":
                    escape_start = pos
                    pos += 1
                    text, pos = _process_escape(source, pos, line, col)
                    chars.append(text)
                    col += pos - escape_start
                else:
                    chars.append(ch)
                    pos += 1
                    col += 1
            if pos >= length:
                raise TokenizeError(
                    "unterminated string literal", start_line, start_col
                )
            pos += 1  # skip closing "
            col += 1
            tokens.append(Token(TK_STRING, "".join(chars), start_line, start_col))
            continue

        # Literal names: true, false, null
        if _is_alpha(c):
            while pos < length and _is_alpha(source[pos]):
                pos += 1
                col += 1
            word = source[start_pos:pos]
            if word not in KEYWORDS:
                raise TokenizeError("unexpected word: " + word, start_line, start_col)
            tokens.append(Token(word, word, start_line, start_col))
            continue

        # Structural characters
        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        raise TokenizeError("unexpected character: " + repr(c), line, col)

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
