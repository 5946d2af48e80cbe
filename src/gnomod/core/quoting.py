import re

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}
_QUOTE_ESCAPES = {v: "\\" + k for k, v in _SIMPLE_ESCAPES.items() if k != "'"}

_ESCAPE_RE = re.compile(r"\\(x[0-9A-Fa-f]{2}|u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|[0-7]{3}|.)", re.DOTALL)


def _is_print(c: str) -> bool:
    return c.isprintable() or c == " "


def unquote(s: str) -> str:
    """Interpret a double-quoted or back-quoted string literal.

    Raises ``ValueError`` for anything that is not a single well-formed literal.
    """
    if len(s) < 2 or s[0] != s[-1] or s[0] not in "\"`":
        raise ValueError("invalid syntax")
    body = s[1:-1]
    if s[0] == "`":
        if "`" in body:
            raise ValueError("invalid syntax")
        return body.replace("\r", "")
    if "\n" in body:
        raise ValueError("invalid syntax")

    out: list[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c == '"':
            raise ValueError("invalid syntax")
        if c != "\\":
            out.append(c)
            i += 1
            continue
        m = _ESCAPE_RE.match(body, i)
        if m is None:
            raise ValueError("invalid syntax")
        esc = m.group(1)
        if esc in _SIMPLE_ESCAPES and esc != "'":
            out.append(_SIMPLE_ESCAPES[esc])
        elif esc[0] in "xuU" and len(esc) > 1:
            code = int(esc[1:], 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                raise ValueError("invalid syntax")
            out.append(chr(code))
        elif len(esc) == 3 and esc.isdigit():
            code = int(esc, 8)
            if code > 255:
                raise ValueError("invalid syntax")
            out.append(chr(code))
        else:
            raise ValueError("invalid syntax")
        i = m.end()
    return "".join(out)


def quote(s: str) -> str:
    out = ['"']
    for c in s:
        if c in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[c])
        elif _is_print(c):
            out.append(c)
        elif ord(c) < 0x100:
            out.append(f"\\x{ord(c):02x}")
        elif ord(c) < 0x10000:
            out.append(f"\\u{ord(c):04x}")
        else:
            out.append(f"\\U{ord(c):08x}")
    out.append('"')
    return "".join(out)


def must_quote(s: str) -> bool:
    """Report whether ``s`` must be quoted to survive as a single manifest token."""
    for c in s:
        if c in " \"'`":
            return True
        if c in "()[]{},":
            if len(s) > 1:
                return True
        elif not _is_print(c):
            return True
    return s == "" or "//" in s or "/*" in s


def auto_quote(s: str) -> str:
    if must_quote(s):
        return quote(s)
    return s


def parse_string(token: str) -> tuple[str, str]:
    """Decode a directive argument.

    Returns the decoded value and the token rewritten in canonical quoting.
    """
    value = token
    if token.startswith('"'):
        value = unquote(token)
    elif any(q in token for q in "\"'`"):
        # Other quotes are reserved, so that 'x' is an error rather than a literal.
        raise ValueError("unquoted string cannot contain quote")
    return value, auto_quote(value)


def is_directory_path(ns: str) -> bool:
    """Report whether ``ns`` is a local directory path rather than a module path.

    Unix and Windows syntaxes are both recognized, since manifests move between systems.
    """
    return (
        ns in (".", "..")
        or ns.startswith(("./", ".\\", "../", "..\\", "/", "\\"))
        or (len(ns) >= 2 and ns[0].isascii() and ns[0].isalpha() and ns[1] == ":")
    )
