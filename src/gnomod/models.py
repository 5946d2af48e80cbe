from pydantic import BaseModel, ConfigDict


class Position(BaseModel):
    """A location in a manifest file: 1-based line and column (in runes), 0-based byte offset."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    byte_offset: int

    def add(self, text: str) -> "Position":
        """Return the position reached after consuming ``text`` from this one."""
        line = self.line
        column = self.column
        byte_offset = self.byte_offset + len(text.encode("utf-8"))
        if "\n" in text:
            line += text.count("\n")
            text = text[text.rindex("\n") + 1 :]
            column = 1
        return Position(
            line=line,
            column=column + len(text),
            byte_offset=byte_offset,
        )


START = Position(line=1, column=1, byte_offset=0)


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Position | None = None
    token: str = ""  # the full comment text, including the leading "//"
    suffix: bool = False


class ModuleVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    version: str = ""

    def __str__(self) -> str:
        if not self.version:
            return self.path
        return f"{self.path}@{self.version}"


class PackageInfo(BaseModel):
    dir: str
    name: str
    draft: bool = False
    requires: list[str] = []
