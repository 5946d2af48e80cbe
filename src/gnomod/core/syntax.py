"""Generic, line-oriented syntax tree for manifest files.

The tree knows nothing about directive semantics. A file is a sequence of
statements; each statement is a single ``Line``, a parenthesized ``LineBlock``
of lines sharing a keyword, or a free-standing ``CommentBlock``. Every node
carries a ``Comments`` holder so that comments can be re-emitted next to the
syntax they belong to.
"""

from dataclasses import dataclass, field
from typing import TypeAlias

from gnomod.models import Comment, Position

_ZERO = Position(line=0, column=0, byte_offset=0)


@dataclass
class Comments:
    before: list[Comment] = field(default_factory=list)  # whole-line comments before the node
    suffix: list[Comment] = field(default_factory=list)  # end-of-line comments after the node
    after: list[Comment] = field(default_factory=list)  # whole-line comments after the node


@dataclass(eq=False)
class CommentBlock:
    start: Position
    comments: Comments = field(default_factory=Comments)

    def span(self) -> tuple[Position, Position]:
        return self.start, self.start


@dataclass(eq=False)
class Line:
    tokens: list[str]
    start: Position = _ZERO
    end: Position = _ZERO
    in_block: bool = False
    comments: Comments = field(default_factory=Comments)

    def span(self) -> tuple[Position, Position]:
        return self.start, self.end


@dataclass(eq=False)
class LParen:
    pos: Position = _ZERO
    comments: Comments = field(default_factory=Comments)

    def span(self) -> tuple[Position, Position]:
        return self.pos, self.pos.add("(")


@dataclass(eq=False)
class RParen:
    pos: Position = _ZERO
    comments: Comments = field(default_factory=Comments)

    def span(self) -> tuple[Position, Position]:
        return self.pos, self.pos.add(")")


@dataclass(eq=False)
class LineBlock:
    tokens: list[str]
    start: Position = _ZERO
    lparen: LParen = field(default_factory=LParen)
    lines: list[Line] = field(default_factory=list)
    rparen: RParen = field(default_factory=RParen)
    comments: Comments = field(default_factory=Comments)

    def span(self) -> tuple[Position, Position]:
        return self.start, self.rparen.pos.add(")")


Stmt: TypeAlias = Line | LineBlock | CommentBlock


@dataclass(eq=False)
class FileSyntax:
    name: str = ""
    stmts: list[Stmt] = field(default_factory=list)
    # before holds stray suffix comments, after holds trailing whole-line comments
    comments: Comments = field(default_factory=Comments)

    def span(self) -> tuple[Position, Position]:
        if not self.stmts:
            return _ZERO, _ZERO
        start, _ = self.stmts[0].span()
        _, end = self.stmts[-1].span()
        return start, end

    def cleanup(self) -> None:
        """Drop lines marked as removed, and blocks left without lines.

        A block that lost lines and is down to a single line (with no comments
        before its closing paren) is collapsed back into a plain line.
        """
        kept: list[Stmt] = []
        for stmt in self.stmts:
            if isinstance(stmt, Line):
                if not stmt.tokens:
                    continue
            elif isinstance(stmt, LineBlock):
                lines = [line for line in stmt.lines if line.tokens]
                if not lines:
                    continue
                shrunk = len(lines) < len(stmt.lines)
                if shrunk and len(lines) == 1 and not stmt.rparen.comments.before:
                    # Reuse the surviving line so entries pointing at it stay valid.
                    only = lines[0]
                    only.tokens = stmt.tokens + only.tokens
                    only.start = stmt.start
                    only.in_block = False
                    only.comments = Comments(
                        before=stmt.comments.before + only.comments.before,
                        suffix=only.comments.suffix + stmt.comments.suffix,
                        after=only.comments.after + stmt.comments.after,
                    )
                    kept.append(only)
                    continue
                stmt.lines = lines
            kept.append(stmt)
        self.stmts = kept


Expr: TypeAlias = FileSyntax | Line | LineBlock | CommentBlock | LParen | RParen
