"""
ReBAR - Lua Table Reader
=========================
Reads the Lua tables that BAR unit definitions are written in.

A definition is a chunk of ``local`` bindings followed by ``return`` and a
table. Values may be constant expressions: arithmetic (``+ - * / // % ^``),
string concatenation (``..``), parentheses and references to earlier locals.
Function calls, control flow and globals are rejected.

Tables come back as dicts; a table whose keys are exactly 1..n (written
positionally or as [i] = ...) comes back as a list.
"""

import math
import re
from typing import Dict, List, Optional, Tuple

from rebar.errors import LuaSyntaxError

_TOKEN_RE = re.compile(r"""
    (?P<ws>[ \t\r\n]+)
  | (?P<block_comment>--\[(?P<bc_eq>=*)\[.*?\](?P=bc_eq)\])
  | (?P<comment>--[^\n]*)
  | (?P<long_string>\[(?P<ls_eq>=*)\[.*?\](?P=ls_eq)\])
  | (?P<string>"(?:[^"\\\n]|\\z\s*|\\.)*"|'(?:[^'\\\n]|\\z\s*|\\.)*')
  | (?P<number>0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>\.\.|//|[{}\[\]()=,;+\-*/%^])
""", re.VERBOSE | re.DOTALL)

_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b", "f": "\f",
    "v": "\v", "\\": "\\", '"': '"', "'": "'", "\n": "\n",
}

_KEYWORDS = {"true": True, "false": False, "nil": None}

# Binary operator -> (left priority, right priority), as in Lua's own parser.
# Right priority below left makes the operator right-associative.
_BINARY_PRIORITY = {
    "..": (9, 8),
    "+": (10, 10), "-": (10, 10),
    "*": (11, 11), "/": (11, 11), "//": (11, 11), "%": (11, 11),
    "^": (14, 13),
}
_UNARY_PRIORITY = 12


# (kind, value, line)
Token = Tuple[str, object, int]


def _unescape(body: str, line: int) -> str:
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            i += 2
        elif nxt in "0123456789":
            digits = re.match(r"\d{1,3}", body[i + 1:]).group(0)
            code = int(digits)
            if code > 255:
                raise LuaSyntaxError(f"decimal escape too large: \\{digits}", line)
            out.append(chr(code))
            i += 1 + len(digits)
        elif nxt == "x":
            m = re.match(r"[0-9a-fA-F]{2}", body[i + 2:])
            if not m:
                raise LuaSyntaxError("hexadecimal digit expected in \\x escape", line)
            out.append(chr(int(m.group(0), 16)))
            i += 4
        elif nxt == "u":
            m = re.match(r"\{([0-9a-fA-F]+)\}", body[i + 2:])
            if not m:
                raise LuaSyntaxError("malformed \\u{XXX} escape", line)
            code = int(m.group(1), 16)
            if code > 0x10FFFF:
                raise LuaSyntaxError(f"UTF-8 value too large: \\u{{{m.group(1)}}}", line)
            out.append(chr(code))
            i += 2 + len(m.group(0))
        elif nxt == "z":
            i += 2
            while i < len(body) and body[i].isspace():
                i += 1
        else:
            raise LuaSyntaxError(f"invalid escape sequence '\\{nxt}'", line)
    return "".join(out)


def tokenize(text: str) -> List[Token]:
    tokens = []
    pos = 0
    line = 1
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise LuaSyntaxError(f"unexpected character {text[pos]!r}", line)
        kind = m.lastgroup
        raw = m.group(0)
        if kind == "string":
            tokens.append(("string", _unescape(raw[1:-1], line), line))
        elif kind == "long_string":
            level = len(m.group("ls_eq"))
            body = raw[level + 2:-(level + 2)]
            # A newline directly after the opening bracket is skipped
            if body.startswith("\n"):
                body = body[1:]
            tokens.append(("string", body, line))
        elif kind == "number":
            value = int(raw, 16) if raw[:2] in ("0x", "0X") else _number(raw)
            tokens.append(("number", value, line))
        elif kind == "name":
            tokens.append(("name", raw, line))
        elif kind == "op":
            tokens.append(("op", raw, line))

        line += raw.count("\n")
        pos = m.end()
    tokens.append(("eof", None, line))
    return tokens


def _number(raw: str):
    if re.fullmatch(r"\d+", raw):
        return int(raw)
    return float(raw)


# ---------------------------------------------------------------------------
# Constant folding
# ---------------------------------------------------------------------------

def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _lua_type(value) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    return "table"


def _tostring(value) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if math.isnan(value):
        return "nan"
    text = "%.14g" % value
    if re.fullmatch(r"-?\d+", text):
        text += ".0"
    return text


def _arith(op: str, a, b, line: int):
    for value in (a, b):
        if not _is_number(value):
            raise LuaSyntaxError(f"attempt to perform arithmetic on a {_lua_type(value)} value", line)
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/":
        if b == 0:
            if a == 0 or math.isnan(a):
                return math.nan
            return math.copysign(math.inf, a) * math.copysign(1.0, b)
        return a / b
    if op == "^":
        try:
            return math.pow(a, b)
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf
    # // and %
    if b == 0:
        raise LuaSyntaxError(f"attempt to perform 'n{op}0'", line)
    return a // b if op == "//" else a % b


def _concat(a, b, line: int) -> str:
    for value in (a, b):
        if not (isinstance(value, str) or _is_number(value)):
            raise LuaSyntaxError(f"attempt to concatenate a {_lua_type(value)} value", line)
    return "".join(v if isinstance(v, str) else _tostring(v) for v in (a, b))


class _Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.locals: Dict[str, object] = {}

    def peek(self, offset: int = 0) -> Token:
        return self.tokens[min(self.pos + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def at_op(self, op: str) -> bool:
        return self.peek()[:2] == ("op", op)

    def at_name(self, name: str) -> bool:
        return self.peek()[:2] == ("name", name)

    def expect_op(self, op: str):
        kind, value, line = self.advance()
        if kind != "op" or value != op:
            raise LuaSyntaxError(f"expected {op!r}, got {_describe(kind, value)}", line)

    def parse_chunk(self):
        while self.at_name("local"):
            self.parse_local()
            if self.at_op(";"):
                self.advance()

        kind, value, line = self.peek()
        if kind == "name" and value == "return":
            self.advance()
        elif not (kind == "op" and value == "{"):
            raise LuaSyntaxError(f"expected table, got {_describe(kind, value)}", line)
        table = self.parse_expr()
        if not isinstance(table, (dict, list)):
            raise LuaSyntaxError(f"expected table, got {_lua_type(table)} value", line)

        # An optional trailing semicolon is valid after a return statement
        if self.at_op(";"):
            self.advance()
        kind, value, line = self.peek()
        if kind != "eof":
            raise LuaSyntaxError(f"unexpected {_describe(kind, value)} after table", line)
        return table

    def parse_local(self):
        self.advance()
        kind, name, line = self.advance()
        if kind != "name" or name in _KEYWORDS or name in ("local", "return"):
            raise LuaSyntaxError(f"expected name after 'local', got {_describe(kind, name)}", line)
        value = None
        if self.at_op("="):
            self.advance()
            value = self.parse_expr()
        self.locals[name] = value

    def parse_table(self):
        self.expect_op("{")
        keyed = {}
        positional = []
        while True:
            kind, value, line = self.peek()
            if kind == "op" and value == "}":
                self.advance()
                break

            if kind == "op" and value == "[":
                self.advance()
                key = _table_key(self.parse_expr(), line)
                self.expect_op("]")
                self.expect_op("=")
                keyed[key] = self.parse_expr()
            elif kind == "name" and value not in _KEYWORDS and self.peek(1)[:2] == ("op", "="):
                self.advance()
                self.advance()
                keyed[value] = self.parse_expr()
            else:
                positional.append(self.parse_expr())

            kind, value, line = self.peek()
            if kind == "op" and value in (",", ";"):
                self.advance()
            elif not (kind == "op" and value == "}"):
                raise LuaSyntaxError(f"expected ',' or '}}', got {_describe(kind, value)}", line)

        if not keyed:
            return positional
        # Lua arrays are 1-based; positional entries win over explicit [i] keys
        for i, item in enumerate(positional, start=1):
            keyed[i] = item
        if all(type(k) is int for k in keyed) and set(keyed) == set(range(1, len(keyed) + 1)):
            return [keyed[i] for i in range(1, len(keyed) + 1)]
        return keyed

    def parse_expr(self, limit: int = 0):
        kind, value, line = self.peek()
        if kind == "op" and value == "-":
            self.advance()
            operand = self.parse_expr(_UNARY_PRIORITY)
            if not _is_number(operand):
                raise LuaSyntaxError(f"attempt to perform arithmetic on a {_lua_type(operand)} value", line)
            left = -operand
        else:
            left = self.parse_simple()

        while True:
            kind, op, line = self.peek()
            priority = _BINARY_PRIORITY.get(op) if kind == "op" else None
            if priority is None or priority[0] <= limit:
                return left
            self.advance()
            right = self.parse_expr(priority[1])
            left = _concat(left, right, line) if op == ".." else _arith(op, left, right, line)

    def parse_simple(self):
        kind, value, line = self.peek()
        if kind == "op" and value == "{":
            return self.parse_table()
        self.advance()
        if kind == "op" and value == "(":
            inner = self.parse_expr()
            self.expect_op(")")
            return inner
        if kind in ("string", "number"):
            return value
        if kind == "name" and value in _KEYWORDS:
            return _KEYWORDS[value]
        if kind == "name" and value in self.locals:
            return self.locals[value]
        if kind == "name":
            raise LuaSyntaxError(f"unknown variable {value!r}", line)
        raise LuaSyntaxError(f"unsupported expression {_describe(kind, value)}", line)


def _table_key(key, line: int):
    if key is None or isinstance(key, (dict, list)):
        raise LuaSyntaxError(f"unsupported table key of type {_lua_type(key)}", line)
    # Lua normalises integral float keys, so t[2/2] is t[1]
    if isinstance(key, float) and key.is_integer():
        return int(key)
    return key


def _describe(kind: str, value) -> str:
    if kind == "eof":
        return "end of input"
    if kind == "string":
        return f"string {value!r}"
    return repr(value)


def parse_lua_table(text: str, source: Optional[str] = None):
    """Evaluate a definition chunk and return its table as Python data."""
    try:
        return _Parser(tokenize(text)).parse_chunk()
    except LuaSyntaxError as e:
        e.source = source
        raise
