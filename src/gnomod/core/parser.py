from typing import NoReturn

from gnomod.core.comments import assign_comments
from gnomod.core.lexer import LexAbort, Lexer, Token, TokenKind
from gnomod.core.syntax import CommentBlock, FileSyntax, Line, LineBlock, LParen, RParen, Stmt
from gnomod.errors import ErrorList, ManifestError
from gnomod.models import Comment, Position


class Parser:
    """Recursive-descent builder of the generic syntax tree.

    The grammar is line oriented: a statement is a comment block, a line of
    tokens, or a ``keyword (`` block of lines closed by ``)`` on its own line.
    """

    def __init__(self, lexer: Lexer) -> None:
        self._lexer = lexer
        self.file = FileSyntax(name=lexer.filename)

    def error(self, message: str) -> NoReturn:
        self._lexer.error(message)

    def _peek(self) -> TokenKind:
        return self._lexer.peek()

    def _lex(self) -> Token:
        return self._lexer.lex()

    def parse_file(self) -> FileSyntax:
        cb: CommentBlock | None = None
        while True:
            kind = self._peek()
            if kind is TokenKind.NEWLINE:
                self._lex()
                if cb is not None:
                    self.file.stmts.append(cb)
                    cb = None
            elif kind is TokenKind.COMMENT:
                tok = self._lex()
                if cb is None:
                    cb = CommentBlock(start=tok.pos)
                cb.comments.before.append(Comment(start=tok.pos, token=tok.text))
            elif kind is TokenKind.EOF:
                if cb is not None:
                    self.file.stmts.append(cb)
                return self.file
            else:
                self.file.stmts.append(self._parse_stmt())
                if cb is not None:
                    self.file.stmts[-1].comments.before = cb.comments.before
                    cb = None

    def _parse_stmt(self) -> Stmt:
        tok = self._lex()
        start = tok.pos
        end = tok.end_pos
        tokens = [tok.text]
        while True:
            tok = self._lex()
            if tok.kind.is_eol:
                return Line(tokens=tokens, start=start, end=end)

            if tok.kind is TokenKind.LPAREN:
                following = self._peek()
                if following.is_eol:
                    return self._parse_line_block(start, tokens, tok)
                if following is TokenKind.RPAREN:
                    rparen = self._lex()
                    if self._peek().is_eol:
                        self._lex()
                        return LineBlock(
                            tokens=tokens,
                            start=start,
                            lparen=LParen(pos=tok.pos),
                            rparen=RParen(pos=rparen.pos),
                        )
                    # "( )" in the middle of the line, not a block.
                    tokens.extend([tok.text, rparen.text])
                else:
                    # "(" in the middle of the line, not a block.
                    tokens.append(tok.text)
                continue

            tokens.append(tok.text)
            end = tok.end_pos

    def _parse_line_block(self, start: Position, tokens: list[str], lparen: Token) -> LineBlock:
        block = LineBlock(tokens=tokens, start=start, lparen=LParen(pos=lparen.pos))
        comments: list[Comment] = []
        while True:
            kind = self._peek()
            if kind is TokenKind.EOL_COMMENT:
                # Already queued on the lexer; attached by assign_comments.
                self._lex()
            elif kind is TokenKind.NEWLINE:
                self._lex()
                # A blank line is kept as an empty comment, at most one in a row.
                if (not comments and block.lines) or (comments and comments[-1].token != ""):
                    comments.append(Comment())
            elif kind is TokenKind.COMMENT:
                tok = self._lex()
                comments.append(Comment(start=tok.pos, token=tok.text))
            elif kind is TokenKind.EOF:
                self.error(
                    f"syntax error (unterminated block started at "
                    f"{self._lexer.filename}:{block.start.line}:{block.start.column})"
                )
            elif kind is TokenKind.RPAREN:
                rparen = self._lex()
                block.rparen = RParen(pos=rparen.pos)
                block.rparen.comments.before = comments
                if not self._peek().is_eol:
                    self.error("syntax error (expected newline after closing paren)")
                self._lex()
                return block
            else:
                line = self._parse_line()
                line.comments.before = comments
                block.lines.append(line)
                comments = []

    def _parse_line(self) -> Line:
        tok = self._lex()
        if tok.kind.is_eol:
            self.error("internal parse error: parse_line at end of line")
        start = tok.pos
        end = tok.end_pos
        tokens = [tok.text]
        while True:
            tok = self._lex()
            if tok.kind.is_eol:
                return Line(tokens=tokens, start=start, end=end, in_block=True)
            tokens.append(tok.text)
            end = tok.end_pos


def parse(filename: str, data: bytes | str) -> FileSyntax:
    """Parse manifest text into a syntax tree with comments attached.

    Raises ``ErrorList`` holding every error recorded before the parse stopped.
    """
    errors: list[ManifestError] = []
    lexer = Lexer(filename, data, errors)
    parser = Parser(lexer)
    try:
        file = parser.parse_file()
    except LexAbort:
        raise ErrorList(errors) from None
    if errors:
        raise ErrorList(errors)

    assign_comments(file, lexer.comments)
    return file
