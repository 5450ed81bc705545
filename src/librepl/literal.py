"""Literal encoding shared by requests and completion responses.

librepl.literal
~~~~~~~~~~~~~~~

Strings are packed as double-quoted tokens using Haskell string-literal
escapes. The encoder emits a small, predictable subset; the decoder accepts
the full escape syntax a REPL may print back, including numeric escapes,
ASCII mnemonics, control escapes and string gaps.
"""

from __future__ import annotations

import string

from librepl.exc import LiteralDecodeError


#: Single-character escapes, in both directions
_CHAR_ESCAPES = {
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

_ENCODE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}

#: ASCII control mnemonics, longest first so ``SOH`` wins over ``SO``
_ASCII_NAMES = sorted(
    {
        "NUL": 0,
        "SOH": 1,
        "STX": 2,
        "ETX": 3,
        "EOT": 4,
        "ENQ": 5,
        "ACK": 6,
        "BEL": 7,
        "BS": 8,
        "HT": 9,
        "LF": 10,
        "VT": 11,
        "FF": 12,
        "CR": 13,
        "SO": 14,
        "SI": 15,
        "DLE": 16,
        "DC1": 17,
        "DC2": 18,
        "DC3": 19,
        "DC4": 20,
        "NAK": 21,
        "SYN": 22,
        "ETB": 23,
        "CAN": 24,
        "EM": 25,
        "SUB": 26,
        "ESC": 27,
        "FS": 28,
        "GS": 29,
        "RS": 30,
        "US": 31,
        "SP": 32,
        "DEL": 127,
    }.items(),
    key=lambda item: -len(item[0]),
)

_OCTAL_DIGITS = frozenset("01234567")
_HEX_DIGITS = frozenset(string.hexdigits)
_GAP_WHITESPACE = frozenset(" \t\n\r\f\v")


def literal_encode(text: str) -> str:
    r"""Return ``text`` as a double-quoted literal token.

    Examples
    --------
    >>> literal_encode('say "hi"')
    '"say \\"hi\\""'
    >>> literal_encode("a\nb")
    '"a\\nb"'
    >>> literal_encode("\x011")
    '"\\1\\&1"'
    """
    out = ['"']
    for index, char in enumerate(text):
        escaped = _ENCODE_ESCAPES.get(char)
        if escaped is not None:
            out.append(escaped)
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\{ord(char)}")
            following = text[index + 1 : index + 2]
            if following.isdigit() and following.isascii():
                out.append("\\&")
        else:
            out.append(char)
    out.append('"')
    return "".join(out)


def _read_digits(body: str, pos: int, digits: frozenset[str]) -> tuple[str, int]:
    start = pos
    while pos < len(body) and body[pos] in digits:
        pos += 1
    return body[start:pos], pos


def _char_from_code(code: int, token: str) -> str:
    if code > 0x10FFFF:
        msg = f"numeric escape out of range: {code}"
        raise LiteralDecodeError(msg, token)
    return chr(code)


def literal_decode(token: str) -> str:
    r"""Decode a double-quoted literal token.

    Surrounding whitespace is ignored.

    Examples
    --------
    >>> literal_decode('"say \\"hi\\""')
    'say "hi"'
    >>> literal_decode(r'"\955x\SOH\^A\x41"')
    'λx\x01\x01A'
    >>> literal_decode(r'"ab\   \cd"')
    'abcd'
    """
    token = token.strip()
    if len(token) < 2 or token[0] != '"' or token[-1] != '"':
        msg = "missing surrounding double quotes"
        raise LiteralDecodeError(msg, token)

    body = token[1:-1]
    out: list[str] = []
    pos = 0
    while pos < len(body):
        char = body[pos]
        if char == '"':
            msg = f"unescaped double quote at offset {pos}"
            raise LiteralDecodeError(msg, token)
        if char != "\\":
            out.append(char)
            pos += 1
            continue

        pos += 1
        if pos >= len(body):
            msg = "dangling backslash"
            raise LiteralDecodeError(msg, token)
        char = body[pos]

        if char in _CHAR_ESCAPES:
            out.append(_CHAR_ESCAPES[char])
            pos += 1
        elif char == "&":
            # Empty escape, separates a numeric escape from a following digit
            pos += 1
        elif char.isdigit() and char.isascii():
            digits, pos = _read_digits(body, pos, frozenset(string.digits))
            out.append(_char_from_code(int(digits), token))
        elif char == "x":
            digits, pos = _read_digits(body, pos + 1, _HEX_DIGITS)
            if not digits:
                msg = "empty hexadecimal escape"
                raise LiteralDecodeError(msg, token)
            out.append(_char_from_code(int(digits, 16), token))
        elif char == "o":
            digits, pos = _read_digits(body, pos + 1, _OCTAL_DIGITS)
            if not digits:
                msg = "empty octal escape"
                raise LiteralDecodeError(msg, token)
            out.append(_char_from_code(int(digits, 8), token))
        elif char == "^":
            control = body[pos + 1 : pos + 2]
            if not control or not ("@" <= control <= "_"):
                msg = f"bad control escape at offset {pos}"
                raise LiteralDecodeError(msg, token)
            out.append(chr(ord(control) - ord("@")))
            pos += 2
        elif char in _GAP_WHITESPACE:
            end = pos
            while end < len(body) and body[end] in _GAP_WHITESPACE:
                end += 1
            if end >= len(body) or body[end] != "\\":
                msg = f"unterminated string gap at offset {pos}"
                raise LiteralDecodeError(msg, token)
            pos = end + 1
        else:
            for name, code in _ASCII_NAMES:
                if body.startswith(name, pos):
                    out.append(chr(code))
                    pos += len(name)
                    break
            else:
                msg = f"unknown escape \\{char}"
                raise LiteralDecodeError(msg, token)

    return "".join(out)


__all__ = ["literal_decode", "literal_encode"]
