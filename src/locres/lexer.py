"""Lexical scanner for C-family source text.

The lexer walks the text as a small state machine so that comments and the contents of
string literals never reach the pattern matcher as code. Interpolation holes
(``$"..{expr}.."`` and `` `..${expr}..` ``) are code again: their tokens are kept on the
string token they belong to.

A construct still open at the end of the text (unterminated string, block comment or
interpolation) is closed implicitly and the result is marked ``partial``. A single-line
string literal that reaches the end of its line is closed there for the same reason.
"""
import enum
from dataclasses import dataclass, field


class LexState(enum.Enum):
    CODE = "code"
    LINE_COMMENT = "line-comment"
    BLOCK_COMMENT = "block-comment"
    STRING_LITERAL = "string-literal"
    INTERPOLATED_EXPRESSION = "interpolated-expression"


class TokenKind(enum.Enum):
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    PUNCT = "punct"


ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "`": "`",
    "$": "$",
    "{": "{",
    "}": "}",
    "\n": "",
}


@dataclass
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int
    # Literal text between interpolation holes; a plain string has a single segment.
    segments: list[str] = field(default_factory=list)
    expressions: list[list["Token"]] = field(default_factory=list)

    @property
    def interpolated(self) -> bool:
        return bool(self.expressions)

    def is_punct(self, char: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == char


@dataclass
class LexResult:
    tokens: list[Token]
    partial: bool = False
    warnings: list[str] = field(default_factory=list)
    transitions: list[tuple[int, int, LexState]] = field(default_factory=list)


@dataclass
class _CodeFrame:
    tokens: list[Token] = field(default_factory=list)
    depth: int = 0


@dataclass
class _StringFrame:
    line: int
    column: int
    quote: str
    verbatim: bool = False
    interpolated: bool = False
    template: bool = False
    buffer: list[str] = field(default_factory=list)
    segments: list[str] = field(default_factory=list)
    expressions: list[list[Token]] = field(default_factory=list)


class Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1
        self.state = LexState.CODE
        self.partial = False
        self.warnings: list[str] = []
        self.transitions: list[tuple[int, int, LexState]] = [(1, 1, LexState.CODE)]
        self._stack: list[_CodeFrame | _StringFrame] = [_CodeFrame()]
        self._resume = LexState.CODE
        self._comment_line = 0

    def tokenize(self) -> LexResult:
        handlers = {
            LexState.CODE: self._code,
            LexState.INTERPOLATED_EXPRESSION: self._code,
            LexState.LINE_COMMENT: self._line_comment,
            LexState.BLOCK_COMMENT: self._block_comment,
            LexState.STRING_LITERAL: self._string,
        }
        while self.pos < len(self.text):
            handlers[self.state]()
        self._finish()
        return LexResult(self._stack[0].tokens, self.partial, self.warnings, self.transitions)

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def _advance(self, count: int = 1) -> None:
        chunk = self.text[self.pos : self.pos + count]
        newline = chunk.rfind("\n")
        if newline == -1:
            self.column += len(chunk)
        else:
            self.line += chunk.count("\n")
            self.column = len(chunk) - newline
        self.pos += len(chunk)

    def _enter(self, state: LexState) -> None:
        self.state = state
        self.transitions.append((self.line, self.column, state))

    def _code_state(self) -> LexState:
        return LexState.CODE if len(self._stack) == 1 else LexState.INTERPOLATED_EXPRESSION

    def _emit(self, kind: TokenKind, text: str, line: int, column: int) -> None:
        self._stack[-1].tokens.append(Token(kind, text, line, column))

    def _string_prefix(self) -> tuple[int, bool, bool] | None:
        """Return (prefix length, verbatim, interpolated) if a string literal starts here."""
        ch, nxt, third = self._peek(), self._peek(1), self._peek(2)
        if ch in "\"'`":
            return 0, False, False
        if ch == "@" and nxt == '"':
            return 1, True, False
        if ch == "$" and nxt == '"':
            return 1, False, True
        if (ch, nxt) in (("$", "@"), ("@", "$")) and third == '"':
            return 2, True, True
        return None

    def _code(self) -> None:
        ch = self._peek()
        frame = self._stack[-1]
        line, column = self.line, self.column

        if ch == "/" and self._peek(1) == "/":
            self._resume = self.state
            self._enter(LexState.LINE_COMMENT)
            self._advance(2)
        elif ch == "/" and self._peek(1) == "*":
            self._resume = self.state
            self._comment_line = line
            self._enter(LexState.BLOCK_COMMENT)
            self._advance(2)
        elif (prefix := self._string_prefix()) is not None:
            length, verbatim, interpolated = prefix
            quote = self._peek(length)
            self._stack.append(
                _StringFrame(
                    line,
                    column,
                    quote,
                    verbatim=verbatim or quote == "`",
                    interpolated=interpolated or quote == "`",
                    template=quote == "`",
                )
            )
            self._enter(LexState.STRING_LITERAL)
            self._advance(length + 1)
        elif ch.isalpha() or ch == "_":
            end = self.pos + 1
            while end < len(self.text) and (self.text[end].isalnum() or self.text[end] == "_"):
                end += 1
            self._emit(TokenKind.IDENTIFIER, self.text[self.pos : end], line, column)
            self._advance(end - self.pos)
        elif ch.isdigit():
            end = self.pos + 1
            while end < len(self.text) and (self.text[end].isalnum() or self.text[end] in "._"):
                end += 1
            self._emit(TokenKind.NUMBER, self.text[self.pos : end], line, column)
            self._advance(end - self.pos)
        elif ch.isspace():
            self._advance()
        elif self.state is LexState.INTERPOLATED_EXPRESSION and ch == "}" and frame.depth == 0:
            self._advance()
            self._close_interpolation()
        else:
            if self.state is LexState.INTERPOLATED_EXPRESSION and ch == "{":
                frame.depth += 1
            elif self.state is LexState.INTERPOLATED_EXPRESSION and ch == "}":
                frame.depth -= 1
            self._emit(TokenKind.PUNCT, ch, line, column)
            self._advance()

    def _line_comment(self) -> None:
        end = self.text.find("\n", self.pos)
        if end == -1:
            end = len(self.text)
        self._advance(end - self.pos)
        if end < len(self.text):
            self._enter(self._resume)

    def _block_comment(self) -> None:
        end = self.text.find("*/", self.pos)
        if end == -1:
            self._advance(len(self.text) - self.pos)
            self.partial = True
            self.warnings.append(f"Unterminated block comment starting on line {self._comment_line}")
            return
        self._advance(end + 2 - self.pos)
        self._enter(self._resume)

    def _string(self) -> None:
        frame = self._stack[-1]
        ch, nxt = self._peek(), self._peek(1)

        if ch == "\\" and not (frame.verbatim and not frame.template):
            if nxt == "":
                self._advance()
                return
            frame.buffer.append(ESCAPES.get(nxt, "\\" + nxt))
            self._advance(2)
        elif ch == frame.quote:
            if frame.verbatim and not frame.template and nxt == frame.quote:
                frame.buffer.append(ch)
                self._advance(2)
            else:
                self._advance()
                self._close_string()
        elif frame.template and ch == "$" and nxt == "{":
            self._open_interpolation()
            self._advance(2)
        elif frame.interpolated and not frame.template and ch in "{}":
            if nxt == ch:
                frame.buffer.append(ch)
                self._advance(2)
            elif ch == "{":
                self._open_interpolation()
                self._advance()
            else:
                frame.buffer.append(ch)
                self._advance()
        elif ch == "\n" and not frame.verbatim:
            self.partial = True
            self.warnings.append(f"Unterminated string literal on line {frame.line}")
            self._close_string()
        else:
            frame.buffer.append(ch)
            self._advance()

    def _open_interpolation(self) -> None:
        frame = self._stack[-1]
        frame.segments.append("".join(frame.buffer))
        frame.buffer = []
        self._stack.append(_CodeFrame())
        self._enter(LexState.INTERPOLATED_EXPRESSION)

    def _close_interpolation(self) -> None:
        code = self._stack.pop()
        self._stack[-1].expressions.append(code.tokens)
        self._enter(LexState.STRING_LITERAL)

    def _close_string(self) -> None:
        frame = self._stack.pop()
        segments = frame.segments + ["".join(frame.buffer)]
        self._stack[-1].tokens.append(
            Token(
                TokenKind.STRING,
                "".join(segments),
                frame.line,
                frame.column,
                segments,
                frame.expressions,
            )
        )
        self._enter(self._code_state())

    def _finish(self) -> None:
        while len(self._stack) > 1:
            self.partial = True
            top = self._stack[-1]
            if isinstance(top, _StringFrame):
                self.warnings.append(f"Unterminated string literal on line {top.line}")
                self._close_string()
            else:
                self.warnings.append("Unterminated interpolation expression")
                self._close_interpolation()


def tokenize(text: str) -> LexResult:
    return Lexer(text).tokenize()
