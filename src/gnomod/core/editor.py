"""In-place edits of the generic syntax tree.

Removal is deferred: ``mark_line_as_removed`` only clears a line, and
``FileSyntax.cleanup`` drops cleared lines when the file is written. Entries
holding references to other lines stay valid for the whole edit session.
"""

from gnomod.core.syntax import FileSyntax, Line, LineBlock, Stmt
from gnomod.models import Comment

_INDIRECT = "// indirect"


def mark_line_as_removed(line: Line) -> None:
    """Clear ``line`` (and its end-of-line comments) so cleanup drops it."""
    line.tokens = []
    line.comments.suffix = []


def update_line(line: Line, *tokens: str) -> None:
    if line.in_block:
        tokens = tokens[1:]
    line.tokens = list(tokens)


def _find_last_with_keyword(file: FileSyntax, keyword: str) -> Stmt | None:
    for stmt in reversed(file.stmts):
        if isinstance(stmt, Line) and stmt.tokens and stmt.tokens[0] == keyword:
            return stmt
        if isinstance(stmt, LineBlock) and stmt.tokens[0] == keyword:
            return stmt
    return None


def add_line(file: FileSyntax, hint: Stmt | Line | None, *tokens: str) -> Line:
    """Add a line holding ``tokens`` to ``file`` and return it.

    With a hint whose keyword matches, the line goes at the end of the hint's
    block (or right after the hint line inside its block), turning a bare hint
    line into a block first. With a non-matching hint, the line is inserted
    right after the hint's statement. Without a hint, the line is appended to
    the last statement sharing its keyword, or to the end of the file.
    """
    keyword = tokens[0]
    if hint is None:
        hint = _find_last_with_keyword(file, keyword)

    def new_line_after(i: int) -> Line:
        new = Line(tokens=list(tokens))
        file.stmts.insert(i + 1, new)
        return new

    if hint is not None:
        for i, stmt in enumerate(file.stmts):
            if isinstance(stmt, Line) and stmt is hint:
                if not stmt.tokens or stmt.tokens[0] != keyword:
                    return new_line_after(i)

                # Convert the line into a block holding it and the new line.
                block = LineBlock(tokens=stmt.tokens[:1], lines=[stmt])
                stmt.tokens = stmt.tokens[1:]
                stmt.in_block = True
                file.stmts[i] = block
                new = Line(tokens=list(tokens[1:]), in_block=True)
                block.lines.append(new)
                return new

            if isinstance(stmt, LineBlock):
                if stmt is hint:
                    if stmt.tokens[0] != keyword:
                        return new_line_after(i)
                    new = Line(tokens=list(tokens[1:]), in_block=True)
                    stmt.lines.append(new)
                    return new

                for j, line in enumerate(stmt.lines):
                    if line is hint:
                        if stmt.tokens[0] != keyword:
                            return new_line_after(i)
                        new = Line(tokens=list(tokens[1:]), in_block=True)
                        stmt.lines.insert(j + 1, new)
                        return new

    new = Line(tokens=list(tokens))
    file.stmts.append(new)
    return new


def is_indirect(line: Line) -> bool:
    """Report whether ``line`` carries a ``// indirect`` marker comment."""
    if not line.comments.suffix:
        return False
    fields = line.comments.suffix[0].token.removeprefix("//").split()
    return (len(fields) == 1 and fields[0] == "indirect") or (len(fields) > 1 and fields[0] == "indirect;")


def set_indirect(line: Line, indirect: bool) -> None:
    if is_indirect(line) == indirect:
        return
    suffix = line.comments.suffix
    if indirect:
        if not suffix:
            line.comments.suffix = [Comment(token=_INDIRECT, suffix=True)]
            return
        text = suffix[0].token.removeprefix("//").strip()
        if not text:
            suffix[0] = suffix[0].model_copy(update={"token": _INDIRECT})
        else:
            suffix[0] = suffix[0].model_copy(update={"token": f"{_INDIRECT}; {text}"})
        return

    text = suffix[0].token.removeprefix("//").strip()
    if text == "indirect":
        line.comments.suffix = []
        return
    token = suffix[0].token
    i = token.index("indirect;")
    suffix[0] = suffix[0].model_copy(update={"token": "//" + token[i + len("indirect;") :]})
