"""A small template language used by the hLink web pages.

Text is copied through verbatim except for:

* ``\\x`` -- the character ``x`` taken literally;
* ``[sym arg ...]`` -- replaced by the value of a symbol;
* ``[[if pred?() ...]]``, ``[[else-if ...]]``, ``[[else]]``, ``[[end]]``;
* ``[[foreach name in list]] ... [[end]]``.

Arguments are split on spaces; single quotes group words into one argument.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Mapping, Optional, Sequence


class TemplResult(IntEnum):
    """Outcome of rendering a template."""

    ok = 0
    aborted = 1
    unterminated = 2
    not_found = 3
    invalid = 4


_MESSAGES = {
    TemplResult.ok: "OK",
    TemplResult.aborted: "Aborted",
    TemplResult.unterminated: "Unterminated",
    TemplResult.not_found: "Symbol not found",
    TemplResult.invalid: "Invalid",
}


class TemplateError(Exception):
    """Rendering failed; ``result`` tells why."""

    def __init__(self, result: TemplResult) -> None:
        self.result = result
        super().__init__(_MESSAGES.get(result, "Unknown"))


class _SymKind(Enum):
    strings = "vs"
    string = "ss"
    str_func = "sf"
    bool_func = "bf"


@dataclass
class _Sym:
    kind: _SymKind
    value: Any


@dataclass
class TemplCtx:
    """State handed to template functions."""

    ren: "TemplRen"

    def abort(self) -> None:
        """Make the current rendering fail with ``aborted``."""
        self.ren.abort_bit = True


_IF_LIKE = ("end", "if", "else-if", "else")
_END = ("end",)
_IF_BODY_END = ("else", "else-if", "end")
_END_TAG = "[[end]]"


def _at(src: str, i: int) -> str:
    return src[i] if 0 <= i < len(src) else ""


def _split_until_bracket(src: str, i: int) -> tuple[list[str], int, bool]:
    """Split arguments up to the closing bracket; also report an open quote."""
    args: list[str] = []
    cur: list[str] = []
    in_quote = False
    n = len(src)
    while i < n:
        c = src[i]
        if c == "\\":
            i += 1
            cur.append(_at(src, i))
            i += 1
            continue
        if c == "'":
            in_quote = not in_quote
            i += 1
            continue
        if not in_quote:
            if c == " ":
                args.append("".join(cur))
                cur = []
                while _at(src, i) == " ":
                    i += 1
                continue
            if c == "]":
                break
        cur.append(c)
        i += 1
    if cur:
        args.append("".join(cur))
    return args, i, in_quote


def _skip_to_keywords(src: str, i: int, keywords: Sequence[str]) -> int:
    """Return the position just before the next ``[[kw`` with kw in keywords."""
    n = len(src)
    while i < n:
        if src[i] == "\\":
            i += 1
        elif src.startswith("[[", i):
            i += 2
            if any(src.startswith(kw, i) for kw in keywords):
                return i - 3
        i += 1
    return i


class TemplRen:
    """Template renderer holding a table of symbols."""

    def __init__(self, headers: Optional[Mapping[str, str]] = None) -> None:
        self.headers: dict[str, str] = dict(headers or {})
        self.syms: dict[str, _Sym] = {}
        self.abort_bit = False

    def use(self, sym: str, val: Any) -> None:
        """Bind a symbol.

        A string or a list of strings is bound as a value. A callable taking
        ``(ctx, args)`` is bound as a function; symbols whose name contains
        ``?`` are predicates returning a bool, others return a string.
        """
        if isinstance(val, str):
            self.syms[sym] = _Sym(_SymKind.string, val)
        elif isinstance(val, (list, tuple)):
            self.syms[sym] = _Sym(_SymKind.strings, [str(v) for v in val])
        elif callable(val):
            kind = _SymKind.bool_func if "?" in sym else _SymKind.str_func
            self.syms[sym] = _Sym(kind, val)
        else:
            raise TypeError(f"cannot bind {type(val).__name__} to a template symbol")

    def use_default(self) -> None:
        """Bind the built-in symbols."""
        self.use("user-agent", self.headers.get("user-agent", ""))
        self.use("abort()", _abort_impl)
        self.use("not?()", _not_impl)
        self.use("xref()", _xref_impl)
        self.use("eq?()", _eq_impl)

    @staticmethod
    def strerr(res: TemplResult) -> str:
        """Readable message for a result."""
        return _MESSAGES.get(res, "Unknown")

    def finish(self, src: str) -> str:
        """Render ``src``; raises TemplateError on failure."""
        self.abort_bit = False
        ctx = TemplCtx(self)
        out: list[str] = []
        self._finish_until(src, out, ctx, 0, _END)
        return "".join(out)

    # ------------------------------------------------------------ evaluation

    def _eval_boolean(self, ctx: TemplCtx, args: list[str]) -> bool:
        if not args:
            return False
        sym = self.syms.get(args[0])
        if sym is None or sym.kind is not _SymKind.bool_func:
            return False
        return bool(sym.value(ctx, args[1:]))

    def _eval_string(self, ctx: TemplCtx, args: list[str]) -> str:
        if not args:
            raise TemplateError(TemplResult.not_found)
        sym = self.syms.get(args[0])
        if sym is None:
            raise TemplateError(TemplResult.not_found)
        rest = args[1:]
        if sym.kind is _SymKind.strings:
            raise TemplateError(TemplResult.invalid)
        if sym.kind is _SymKind.string:
            return sym.value
        if sym.kind is _SymKind.str_func:
            return str(sym.value(ctx, rest))
        return "true" if sym.value(ctx, rest) else "false"

    def _finish_until(
        self, src: str, out: list[str], ctx: TemplCtx, i: int, keywords: Sequence[str]
    ) -> int:
        n = len(src)
        while i < n:
            c = src[i]
            if c == "\\":
                i += 1
                out.append(_at(src, i))
            elif c == "[":
                i += 1
                if i + 1 == n:
                    raise TemplateError(TemplResult.unterminated)
                if _at(src, i) == "[":
                    i = self._operator(src, out, ctx, i + 1, keywords)
                    if i < 0:
                        return -i - 1
                else:
                    args, i, unterminated = _split_until_bracket(src, i)
                    if unterminated:
                        raise TemplateError(TemplResult.unterminated)
                    text = self._eval_string(ctx, args)
                    if self.abort_bit:
                        raise TemplateError(TemplResult.aborted)
                    out.append(text)
            else:
                out.append(c)
            i += 1
        return i

    def _operator(
        self, src: str, out: list[str], ctx: TemplCtx, i: int, keywords: Sequence[str]
    ) -> int:
        """Handle ``[[...]]``; a negative return encodes a keyword stop at ``-r - 1``."""
        if i + 1 == len(src):
            raise TemplateError(TemplResult.unterminated)
        args, i, unterminated = _split_until_bracket(src, i)
        if unterminated:
            raise TemplateError(TemplResult.unterminated)
        i += 2
        if not args:
            raise TemplateError(TemplResult.invalid)
        op, args = args[0], args[1:]

        if op in keywords:
            return -(i - 1) - 1

        if op in ("if", "else-if"):
            if self._eval_boolean(ctx, args):
                i = self._finish_until(src, out, ctx, i, _IF_BODY_END)
                if not (i >= 7 and src[i - 7:] == _END_TAG):
                    i = _skip_to_keywords(src, i, _END)
            else:
                i = _skip_to_keywords(src, i, _IF_LIKE)
        elif op == "else":
            i = self._finish_until(src, out, ctx, i, _END)
        elif op == "foreach":
            if len(args) != 3 or args[1] != "in":
                raise TemplateError(TemplResult.invalid)
            name = args[0]
            sym = self.syms.get(args[2])
            if sym is None:
                raise TemplateError(TemplResult.not_found)
            if sym.kind is not _SymKind.strings:
                raise TemplateError(TemplResult.invalid)
            values = list(sym.value)
            start = i
            for value in values:
                self.use(name, value)
                i = self._finish_until(src, out, ctx, start, _END)
            if not values:
                i = _skip_to_keywords(src, i, _END)
        else:
            raise TemplateError(TemplResult.invalid)
        return i


# ---------------------------------------------------------------- built-ins


def _eq_impl(ctx: TemplCtx, args: list[str]) -> bool:
    if len(args) < 2:
        ctx.abort()
        return False
    return args[0] == args[1]


def _not_impl(ctx: TemplCtx, args: list[str]) -> bool:
    return not ctx.ren._eval_boolean(ctx, list(args))


def _abort_impl(ctx: TemplCtx, args: list[str]) -> str:
    ctx.abort()
    return ""


def _xref_impl(ctx: TemplCtx, args: list[str]) -> str:
    if len(args) != 3:
        ctx.abort()
        return ""
    syms = ctx.ren.syms
    if args[1] not in syms or args[2] in syms:
        ctx.abort()
        return ""
    dst = syms[args[1]]
    haystack = syms[args[1]]
    if dst.kind is not _SymKind.strings:
        ctx.abort()
        return ""
    needle = args[0]
    for found, value in zip(haystack.value, dst.value):
        if found == needle:
            return value
    return ""


TemplFunc = Callable[[TemplCtx, list], Any]