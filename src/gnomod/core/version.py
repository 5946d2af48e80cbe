"""Semantic version canonicalization and module path checks.

Versions follow the ``vMAJOR[.MINOR[.PATCH[-PRERELEASE][+BUILD]]]`` form. The
shorthands ``v1`` and ``v1.2`` are accepted and canonicalize to ``v1.0.0`` and
``v1.2.0``; build metadata is dropped except for ``+incompatible``.
"""

import re

from gnomod.errors import InvalidVersionError, ModulePathError

_NUM = r"(0|[1-9][0-9]*)"
_IDENTS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_SEMVER_RE = re.compile(
    rf"^v{_NUM}(?:\.{_NUM}(?:\.{_NUM}(-{_IDENTS})?(\+{_IDENTS})?)?)?$",
)
_PATH_ELEM_RE = re.compile(r"^[A-Za-z0-9._~+-]+$")


def _parse(v: str) -> tuple[str, str, str, str, str] | None:
    m = _SEMVER_RE.match(v)
    if m is None:
        return None
    major, minor, patch, prerelease, build = m.groups()
    if prerelease:
        for ident in prerelease[1:].split("."):
            if ident.isdigit() and len(ident) > 1 and ident[0] == "0":
                return None
    return major, minor or "0", patch or "0", prerelease or "", build or ""


def is_valid(v: str) -> bool:
    return _parse(v) is not None


def canonical(v: str) -> str:
    """Return the canonical form of a semantic version, or "" if ``v`` is not one."""
    parsed = _parse(v)
    if parsed is None:
        return ""
    major, minor, patch, prerelease, _ = parsed
    return f"v{major}.{minor}.{patch}{prerelease}"


def major(v: str) -> str:
    parsed = _parse(v)
    if parsed is None:
        return ""
    return f"v{parsed[0]}"


def build(v: str) -> str:
    parsed = _parse(v)
    if parsed is None:
        return ""
    return parsed[4]


def canonical_version(v: str) -> str:
    cv = canonical(v)
    if build(v) == "+incompatible":
        cv += "+incompatible"
    return cv


def split_path_version(path: str) -> tuple[str, str, bool]:
    """Split a module path into its prefix and ``/vN`` major-version suffix.

    The third value is False when the suffix is malformed (``/v0``, ``/v1``, ``/v1.2``, ``/v01``).
    """
    i = len(path)
    dot = False
    while i > 0 and (path[i - 1].isdigit() and path[i - 1].isascii() or path[i - 1] == "."):
        if path[i - 1] == ".":
            dot = True
        i -= 1
    if i <= 1 or i == len(path) or path[i - 1] != "v" or path[i - 2] != "/":
        return path, "", True
    prefix, path_major = path[: i - 2], path[i - 2 :]
    if dot or len(path_major) <= 2 or path_major[2] == "0" or path_major == "/v1":
        return path, "", False
    return prefix, path_major, True


def module_path_major(path: str) -> str:
    _, path_major, ok = split_path_version(path)
    if not ok:
        raise ModulePathError(path, "invalid module path")
    return path_major


def match_path_major(v: str, path_major: str) -> bool:
    m = major(v)
    if not path_major:
        return m in ("v0", "v1") or build(v) == "+incompatible"
    return path_major[0] in "/." and m == path_major[1:]


def check_path_major(v: str, path_major: str) -> None:
    if match_path_major(v, path_major):
        return
    expected = path_major[1:] if path_major else "v0 or v1"
    raise InvalidVersionError(v, f"should be {expected}, not {major(v)}")


def check_canonical_version(path: str, v: str) -> None:
    """Check that ``v`` is a canonical version acceptable for module ``path``."""
    _, path_major, ok = split_path_version(path)
    if not ok:
        raise ModulePathError(path, "invalid module path")
    if not v or v != canonical_version(v):
        raise InvalidVersionError(v, "must be of the form v1.2.3")
    check_path_major(v, path_major)


def check_import_path(path: str) -> None:
    """Check that ``path`` is a well-formed slash-separated import path."""
    if not path:
        raise ModulePathError(path, "empty string")
    if path.startswith("/") or path.endswith("/"):
        raise ModulePathError(path, "leading or trailing slash")
    for elem in path.split("/"):
        if not elem:
            raise ModulePathError(path, "double slash")
        if elem in (".", ".."):
            raise ModulePathError(path, f'invalid path element "{elem}"')
        if not _PATH_ELEM_RE.match(elem):
            raise ModulePathError(path, f'invalid char in path element "{elem}"')
        if elem.endswith("."):
            raise ModulePathError(path, "trailing dot in path element")
