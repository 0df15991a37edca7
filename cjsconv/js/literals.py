"""Decoding of JavaScript string literal tokens.

``decode_string_literal`` turns the raw text of a quoted literal (quotes
included) into the string value it denotes. Malformed escapes never raise;
they degrade to the escaped character itself.
"""

from __future__ import annotations

_SIMPLE_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

_OCTAL_DIGITS = frozenset("01234567")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

REPLACEMENT_CHARACTER = "�"


def _is_hex(text: str) -> bool:
    return bool(text) and all(ch in _HEX_DIGITS for ch in text)


def _code_point(value: int) -> str:
    # Lone surrogates can't be encoded, and Python rejects values past the
    # Unicode range.
    if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        return REPLACEMENT_CHARACTER
    return chr(value)


def strip_quotes(token: str) -> str | None:
    """Remove one matching pair of ``"`` or ``'`` quotes.

    Returns ``None`` when *token* is not a quoted literal.
    """
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    return None


def unescape(body: str) -> str:
    """Interpret JavaScript escape sequences in an unquoted literal body."""
    out: list[str] = []
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue

        if i + 1 >= n:
            # Trailing backslash, keep it
            out.append("\\")
            break

        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
        elif esc in _OCTAL_DIGITS:
            end = i + 2
            while end < n and end < i + 4 and body[end] in _OCTAL_DIGITS:
                end += 1
            out.append(_code_point(int(body[i + 1:end], 8)))
            i = end
        elif esc == "x":
            digits = body[i + 2:i + 4]
            if len(digits) == 2 and _is_hex(digits):
                out.append(chr(int(digits, 16)))
                i += 4
            else:
                out.append("x")
                i += 2
        elif esc == "u":
            if body[i + 2:i + 3] == "{":
                close = body.find("}", i + 3)
                digits = body[i + 3:close] if close != -1 else ""
                if _is_hex(digits):
                    out.append(_code_point(int(digits, 16)))
                    i = close + 1
                else:
                    out.append("u")
                    i += 2
            else:
                digits = body[i + 2:i + 6]
                if len(digits) == 4 and _is_hex(digits):
                    out.append(_code_point(int(digits, 16)))
                    i += 6
                else:
                    out.append("u")
                    i += 2
        else:
            # Unknown escape: the backslash is dropped
            out.append(esc)
            i += 2
    return "".join(out)


def decode_string_literal(token: str) -> str:
    """Decode a quoted literal token such as ``'a\\x41'`` to ``"aA"``.

    Tokens without a matching pair of quotes are unescaped as-is.
    """
    body = strip_quotes(token)
    return unescape(token if body is None else body)
