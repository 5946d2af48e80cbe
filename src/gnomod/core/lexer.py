import enum
from dataclasses import dataclass
from typing import NoReturn

from gnomod.errors import ManifestError, ManifestSyntaxError
from gnomod.models import START, Comment, Position


class TokenKind(enum.Enum):
    EOF = "EOF"
    COMMENT = "comment"  # whole-line comment, handed to the parser
    EOL_COMMENT = "suffix comment"  # end-of-line comment, attached later
    IDENT = "identifier"
    STRING = "string"
    NEWLINE = "\n"
    LPAREN = "("
    RPAREN = ")"
    LBRACK = "["
    RBRACK = "]"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","

    @property
    def is_comment(self) -> bool:
        return self in (TokenKind.COMMENT, TokenKind.EOL_COMMENT)

    @property
    def is_eol(self) -> bool:
        """Report whether a token of this kind terminates a line."""
        return self in (TokenKind.EOF, TokenKind.EOL_COMMENT, TokenKind.NEWLINE)


_PUNCTUATION = {
    "\n": TokenKind.NEWLINE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACK,
    "]": TokenKind.RBRACK,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ",": TokenKind.COMMA,
}

_BLOCK_COMMENT_ERROR = "mod files must use // comments (not /* */ comments)"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    pos: Position
    end_pos: Position


class LexAbort(Exception):
    """Raised after an error has been recorded; only ever caught by ``parse``."""


def is_ident(c: str) -> bool:
    """Report whether ``c`` may appear in a bare identifier token.

    Most printable runes qualify, except for a handful of ASCII punctuation characters.
    """
    if c in " ()[]{},":
        return False
    return c != "" and not c.isspace() and c.isprintable()


class Lexer:
    """Pull-based tokenizer for manifest text.

    ``peek`` reports the kind of the next token and ``lex`` consumes it. Suffix
    comments are both returned as tokens and queued on ``comments`` for the
    comment assigner. Errors are recorded on ``errors`` and abort with ``LexAbort``.
    """

    def __init__(self, filename: str, data: bytes | str, errors: list[ManifestError] | None = None) -> None:
        self.filename = filename
        self._invalid_pos: Position | None = None  # first byte that is not valid UTF-8
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                data = data[: e.start].decode("utf-8")
                self._invalid_pos = START.add(data)
        self._text = data
        self._index = 0
        self._line = START.line
        self._column = START.column
        self._byte = START.byte_offset
        self._token_start = 0
        self._token_pos = START
        self.comments: list[Comment] = []
        self.errors: list[ManifestError] = errors if errors is not None else []
        self._token = Token(TokenKind.EOF, "", START, START)
        self._primed = False

    @property
    def pos(self) -> Position:
        return Position(line=self._line, column=self._column, byte_offset=self._byte)

    def error(self, message: str, pos: Position | None = None) -> NoReturn:
        self.errors.append(ManifestSyntaxError(message, filename=self.filename, pos=pos or self.pos))
        raise LexAbort

    def peek(self) -> TokenKind:
        if not self._primed:
            self._read_token()
            self._primed = True
        return self._token.kind

    def lex(self) -> Token:
        self.peek()
        tok = self._token
        self._read_token()
        return tok

    def _eof(self) -> bool:
        return self._index >= len(self._text)

    def _peek_rune(self) -> str:
        if self._eof():
            return ""
        return self._text[self._index]

    def _peek_prefix(self, prefix: str) -> bool:
        return self._text.startswith(prefix, self._index)

    def _read_rune(self) -> str:
        if self._eof():
            self.error("internal lexer error: read at EOF")
        c = self._text[self._index]
        self._index += 1
        if c == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        self._byte += len(c.encode("utf-8"))
        return c

    def _start_token(self) -> None:
        self._token_start = self._index
        self._token_pos = self.pos

    def _end_token(self, kind: TokenKind) -> None:
        text = self._text[self._token_start : self._index]
        if kind.is_comment:
            if text.endswith("\r\n"):
                text = text[:-2]
            elif text.endswith("\n"):
                text = text[:-1]
        self._token = Token(kind, text, self._token_pos, self.pos)

    def _read_token(self) -> None:
        if self._invalid_pos is not None:
            self.error("invalid UTF-8 encoding", pos=self._invalid_pos)

        while not self._eof():
            c = self._peek_rune()
            if c in " \t\r":
                self._read_rune()
                continue

            if self._peek_prefix("//"):
                self._start_token()
                # A comment is a suffix comment if anything but spaces precedes it on its line.
                line_start = self._text.rfind("\n", 0, self._index) + 1
                suffix = self._text[line_start : self._index].strip() != ""
                self._read_rune()
                self._read_rune()
                while not self._eof() and self._read_rune() != "\n":
                    pass

                if not suffix:
                    self._end_token(TokenKind.COMMENT)
                    return
                self._end_token(TokenKind.EOL_COMMENT)
                self.comments.append(Comment(start=self._token.pos, token=self._token.text, suffix=True))
                return

            if self._peek_prefix("/*"):
                self.error(_BLOCK_COMMENT_ERROR)

            break

        self._start_token()

        if self._eof():
            self._end_token(TokenKind.EOF)
            return

        c = self._peek_rune()
        if c in _PUNCTUATION:
            self._read_rune()
            self._end_token(_PUNCTUATION[c])
            return

        if c in "\"`":
            quote = c
            self._read_rune()
            while True:
                if self._eof():
                    self.error("unexpected EOF in string", pos=self._token_pos)
                if self._peek_rune() == "\n":
                    self.error("unexpected newline in string")
                c = self._read_rune()
                if c == quote:
                    break
                if c == "\\" and quote != "`":
                    if self._eof():
                        self.error("unexpected EOF in string", pos=self._token_pos)
                    self._read_rune()
            self._end_token(TokenKind.STRING)
            return

        if not is_ident(c):
            self.error(f"unexpected input character {c!r}")

        while is_ident(self._peek_rune()):
            if self._peek_prefix("//"):
                break
            if self._peek_prefix("/*"):
                self.error(_BLOCK_COMMENT_ERROR)
            self._read_rune()
        self._end_token(TokenKind.IDENT)
