from gnomod.core.syntax import CommentBlock, Expr, FileSyntax, Line, LineBlock, LParen, RParen
from gnomod.models import Comment


class Printer:
    """Render a syntax tree in canonical manifest layout."""

    def __init__(self) -> None:
        self._out = ""
        self._comment: list[Comment] = []  # suffix comments queued until end of line
        self._margin = 0

    def getvalue(self) -> str:
        return self._out

    def _write(self, s: str) -> None:
        self._out += s

    def _indent(self) -> int:
        """Return the position on the current line, 0-based."""
        return len(self._out) - (self._out.rfind("\n") + 1)

    def _trim(self) -> None:
        self._out = self._out.rstrip(" \t")

    def newline(self) -> None:
        if self._comment:
            self._write(" ")
            for i, com in enumerate(self._comment):
                if i > 0:
                    self._trim()
                    self._write("\n" + "\t" * self._margin)
                self._write(com.token.strip())
            self._comment = []

        self._trim()
        # No blank line at the top of the file or after another blank line.
        if self._out and not self._out.endswith("\n\n"):
            self._write("\n")
        self._write("\t" * self._margin)

    def file(self, f: FileSyntax) -> None:
        for com in f.comments.before:
            self._write(com.token.strip())
            self.newline()

        for i, stmt in enumerate(f.stmts):
            self.expr(stmt)
            if not isinstance(stmt, CommentBlock):
                self.newline()

            for com in stmt.comments.after:
                self._write(com.token.strip())
                self.newline()

            if i + 1 < len(f.stmts):
                self.newline()

        for com in f.comments.after:
            self._write(com.token.strip())
            self.newline()

    def expr(self, x: Expr) -> None:
        before = x.comments.before
        if before:
            # Line comments go at the current margin, on a line of their own.
            self._trim()
            if self._indent() > 0:
                self._write("\n")
            self._write("\t" * self._margin)
            for com in before:
                self._write(com.token.strip())
                self.newline()

        if isinstance(x, LParen):
            self._write("(")
        elif isinstance(x, RParen):
            self._write(")")
        elif isinstance(x, Line):
            self._tokens(x.tokens)
        elif isinstance(x, LineBlock) and _is_inline_empty(x):
            self._tokens(x.tokens)
            self._write(" ()")
            self._comment.extend(x.lparen.comments.suffix)
            self._comment.extend(x.rparen.comments.suffix)
        elif isinstance(x, LineBlock):
            self._tokens(x.tokens)
            self._write(" ")
            self.expr(x.lparen)
            self._margin += 1
            for line in x.lines:
                self.newline()
                self.expr(line)
            # Comments before the closing paren stay at the margin of the lines.
            for com in x.rparen.comments.before:
                self.newline()
                self._write(com.token.strip())
            self._margin -= 1
            self.newline()
            self._write(")")
            self._comment.extend(x.rparen.comments.suffix)
        elif not isinstance(x, CommentBlock):
            raise TypeError(f"printer: unexpected type {type(x).__name__}")

        self._comment.extend(x.comments.suffix)

    def _tokens(self, tokens: list[str]) -> None:
        sep = ""
        for t in tokens:
            if t in (",", ")", "]", "}"):
                sep = ""
            self._write(sep + t)
            sep = " "
            if t in ("(", "[", "{"):
                sep = ""


def _is_inline_empty(x: LineBlock) -> bool:
    """Report whether ``x`` was written as ``keyword ()`` on a single line."""
    if x.lines or x.lparen.comments.before or x.rparen.comments.before:
        return False
    return x.lparen.pos.line > 0 and x.lparen.pos.line == x.rparen.pos.line


def format_file(f: FileSyntax) -> bytes:
    """Serialize a syntax tree; lines marked as removed are expected to be cleaned up first."""
    printer = Printer()
    printer.file(f)
    text = printer.getvalue()
    # Remove trailing blank lines.
    while text.endswith("\n") and (len(text) == 1 or text[-2] == "\n"):
        text = text[:-1]
    return text.encode("utf-8")
