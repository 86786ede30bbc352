"""
Type-text classification helpers.

Every function accepts either a structural `TypeHandle` (when the symbol
source could provide one) or the plain type text taken from a declaration.
None of them raise: text that cannot be classified falls back to itself.
"""

from __future__ import annotations

import re
from typing import List, Optional, Union

from umlgen.adapters.symbols import TypeHandle

TypeLike = Union[TypeHandle, str, None]

# Generic names that denote a homogeneous collection of their first argument
COLLECTION_NAMES = {
    # TypeScript / JavaScript
    "Array", "ReadonlyArray", "Set", "ReadonlySet", "Map", "ReadonlyMap",
    "WeakSet", "WeakMap", "Iterable", "AsyncIterable",
    # C#
    "List", "IList", "IReadOnlyList", "ICollection", "IReadOnlyCollection",
    "IEnumerable", "HashSet", "ISet", "Dictionary", "IDictionary",
    "IReadOnlyDictionary", "Queue", "Stack", "LinkedList",
}

# Names that never become relation targets
BUILTIN_TYPES = {
    "string", "number", "boolean", "bigint", "symbol", "any", "unknown",
    "void", "never", "object", "undefined", "null", "this",
    "String", "Number", "Boolean", "Object", "Function", "Symbol", "BigInt",
    "Date", "RegExp", "Error", "Promise", "Record", "Partial", "Readonly",
    "Pick", "Omit", "Required",
    # C#
    "int", "long", "short", "byte", "sbyte", "uint", "ulong", "ushort",
    "float", "double", "decimal", "bool", "char", "dynamic", "var",
    "DateTime", "Guid", "Task",
}

_IMPORT_PREFIX = re.compile(r"import\([^)]*\)\.")
_ARRAY_SUFFIX = re.compile(r"^(?P<elem>.+?)\s*\[\s*\]$", re.S)
_GENERIC = re.compile(r"^(?P<base>[\w.$]+)\s*<(?P<args>.*)>$", re.S)
_TRAILING_BRACKETS = re.compile(r"(\s*\[\s*\])+$")
_READONLY = re.compile(r"^readonly\s+")

_OPENERS = "([{<"
_CLOSERS = ")]}>"


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """
    Split on `sep` only where it is not nested inside (), [], {} or <>
    and not inside a string literal. Empty parts are dropped.
    """
    parts: List[str] = []
    buf: List[str] = []
    depth = 0
    quote: Optional[str] = None
    prev = ""

    for ch in text:
        if quote:
            buf.append(ch)
            if ch == quote and prev != "\\":
                quote = None
            prev = ch
            continue

        if ch in "\"'`":
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and not (ch == ">" and prev == "="):
            depth = max(0, depth - 1)

        if ch == sep and depth == 0:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        prev = ch

    parts.append("".join(buf))
    return [p.strip() for p in parts if p.strip()]


def _clean(text: str) -> str:
    t = _IMPORT_PREFIX.sub("", text or "")
    return t.strip().rstrip(";").strip()


def _unwrap_nullable(text: str) -> str:
    """Foo | null -> Foo, Foo? -> Foo"""
    parts = split_top_level(text, "|")
    if len(parts) > 1:
        rest = [p for p in parts if p not in ("null", "undefined")]
        if len(rest) == 1:
            text = rest[0]
    if text.endswith("?"):
        text = text[:-1].strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()
    return text


def _normalize(text: str) -> str:
    # `readonly Item[]` is still an Item[]; keyof / typeof stay literal text
    return _READONLY.sub("", _unwrap_nullable(_clean(text)))


def _is_inline_literal(text: str) -> bool:
    return text.startswith("{")


def _bare(name: str) -> str:
    # drop module-path prefixes: ns.models.Item -> Item
    return name.strip().rsplit(".", 1)[-1]


def _handle_name(t: TypeHandle) -> Optional[str]:
    for name in (t.alias_name, t.name):
        if name and not name.startswith("__"):
            return name
    return None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def is_collection(t: TypeLike) -> bool:
    if t is None:
        return False

    if isinstance(t, TypeHandle):
        if t.is_array:
            return True
        name = _handle_name(t)
        if name and _bare(name) in COLLECTION_NAMES and t.type_arguments:
            return True
        return is_collection(t.text)

    s = _normalize(t)
    if not s or _is_inline_literal(s):
        return False
    if _ARRAY_SUFFIX.match(s):
        return True
    m = _GENERIC.match(s)
    return bool(m and _bare(m.group("base")) in COLLECTION_NAMES)


def element_type(t: TypeLike) -> TypeLike:
    if not is_collection(t):
        return t

    if isinstance(t, TypeHandle):
        if t.is_array and t.element is not None:
            return t.element
        if t.type_arguments:
            return t.type_arguments[0]
        return element_type(t.text)

    s = _normalize(t)
    m = _ARRAY_SUFFIX.match(s)
    if m:
        return _unwrap_nullable(m.group("elem").strip())
    m = _GENERIC.match(s)
    if m:
        args = split_top_level(m.group("args"))
        if args:
            return args[0]
    return t


def base_name(t: TypeLike) -> str:
    if t is None:
        return ""

    if isinstance(t, TypeHandle):
        if t.is_object:
            return "object"
        name = _handle_name(t)
        if name:
            return _bare(name.split("<", 1)[0])
        if not t.text and (t.alias_name or t.name):
            # only anonymous (__type / __object) names available
            return "object"
        return base_name(t.text)

    s = _normalize(t)
    if not s:
        return ""
    if _is_inline_literal(s):
        return "object"

    stripped = s.split("<", 1)[0]
    stripped = _TRAILING_BRACKETS.sub("", stripped).strip()
    if not stripped:
        return s
    if re.fullmatch(r"[\w.$]+", stripped):
        return _bare(stripped) or s
    return stripped


def format_type(t: TypeLike) -> Optional[str]:
    """Display text for a member / parameter type."""
    if t is None:
        return None

    if isinstance(t, TypeHandle):
        if t.is_object:
            return "object"
        if t.text:
            return format_type(t.text)
        return _handle_name(t) or "object"

    s = _clean(t)
    if not s:
        return None
    if _is_inline_literal(s):
        return "object"
    return s


def is_builtin(name: str) -> bool:
    return not name or name in BUILTIN_TYPES
