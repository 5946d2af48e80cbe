from collections.abc import Iterable, Iterator

from gnomod.models import Position


class ManifestError(Exception):
    """An error tied to a location (and possibly a directive) in a manifest file."""

    def __init__(
        self,
        err: Exception | str,
        filename: str = "",
        pos: Position | None = None,
        verb: str = "",
        mod_path: str = "",
    ) -> None:
        self.err = err
        self.filename = filename
        self.pos = pos
        self.verb = verb
        self.mod_path = mod_path
        super().__init__(str(self))

    def __str__(self) -> str:
        pos = ""
        if self.pos is not None and self.pos.column > 1:
            pos = f"{self.filename}:{self.pos.line}:{self.pos.column}: "
        elif self.pos is not None and self.pos.line > 0:
            pos = f"{self.filename}:{self.pos.line}: "
        elif self.filename:
            pos = f"{self.filename}: "

        directive = ""
        if self.mod_path:
            directive = f"{self.verb} {self.mod_path}: "
        elif self.verb:
            directive = f"{self.verb}: "

        return pos + directive + str(self.err)


class ManifestSyntaxError(ManifestError):
    """Malformed token or unexpected token for the grammar."""


class DirectiveError(ManifestError):
    """A directive with the wrong arity, a bad version or a malformed path."""


class ErrorList(Exception):
    """All errors collected while parsing one manifest, in source order."""

    def __init__(self, errors: Iterable[ManifestError]) -> None:
        self.errors = list(errors)
        super().__init__(str(self))

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def __iter__(self) -> Iterator[ManifestError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


class InvalidVersionError(ValueError):
    def __init__(self, version: str, err: Exception | str) -> None:
        self.version = version
        self.err = err
        super().__init__(f'version "{version}" invalid: {err}')


class ModulePathError(ValueError):
    def __init__(self, path: str, err: Exception | str) -> None:
        self.path = path
        self.err = err
        super().__init__(f'malformed module path "{path}": {err}')


class ResolutionError(Exception):
    """A module path that cannot be resolved (replace cycle, broken dependency manifest)."""

    def __init__(self, path: str, err: Exception | str) -> None:
        self.path = path
        self.err = err
        super().__init__(f"{path}: {err}")
