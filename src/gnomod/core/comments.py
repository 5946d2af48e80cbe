"""Attach comments to nearby syntax.

Two lists of all nodes are built by one traversal: preorder (ordered by start,
outer nodes first) and postorder (ordered by end, outer nodes last). The
preorder list assigns each whole-line comment to the syntax immediately
following it; the postorder list assigns each end-of-line comment to the
syntax immediately preceding it.
"""

from collections import deque

from gnomod.core.syntax import CommentBlock, Expr, FileSyntax, Line, LineBlock, LParen, RParen
from gnomod.models import Comment


def order(x: Expr, pre: list[Expr], post: list[Expr]) -> None:
    pre.append(x)
    if isinstance(x, FileSyntax):
        for stmt in x.stmts:
            order(stmt, pre, post)
    elif isinstance(x, LineBlock):
        order(x.lparen, pre, post)
        for line in x.lines:
            order(line, pre, post)
        order(x.rparen, pre, post)
    elif not isinstance(x, (Line, CommentBlock, LParen, RParen)):
        raise TypeError(f"order: unexpected type {type(x).__name__}")
    post.append(x)


def assign_comments(file: FileSyntax, comments: list[Comment]) -> None:
    pre: list[Expr] = []
    post: list[Expr] = []
    order(file, pre, post)

    line = deque(c for c in comments if not c.suffix)
    suffix = [c for c in comments if c.suffix]

    for x in pre:
        start, _ = x.span()
        while line and line[0].start is not None and start.byte_offset >= line[0].start.byte_offset:
            x.comments.before.append(line.popleft())

    file.comments.after.extend(line)

    for x in reversed(post):
        if isinstance(x, FileSyntax):
            continue
        start, end = x.span()
        # In "x ( y\n z ) // c", the comment belongs to z, not to the multi-line block.
        if start.line != end.line:
            continue
        while suffix and suffix[-1].start is not None and end.byte_offset <= suffix[-1].start.byte_offset:
            x.comments.suffix.append(suffix.pop())

    # Suffix comments were assigned last-first.
    for x in post:
        x.comments.suffix.reverse()

    file.comments.before.extend(suffix)
