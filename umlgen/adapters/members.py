"""
umlgen/adapters/members.py

Raw member symbol -> (Member, candidate relations).

Works from the member's declaration text (the source line(s) at the symbol's
range), optionally refined by a structural TypeHandle when the symbol source
provides one. Handles:

  - properties / fields, enum members
  - constructors, methods, get / set accessors
  - visibility (private / protected / #private) and static / abstract flags
  - TypeScript `name: Type` and C#-style `Type name` declarations
  - object-destructured parameters collapsed to a single `options` parameter
  - literal initializers (`count = 0`) when no annotation is present

Relations are returned, never attached: the entity builder owns the list.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from umlgen.adapters.symbols import Symbol, SymbolKind
from umlgen.cir.model import Member, Parameter, Relation
from umlgen.cir.types import (
    TypeLike,
    base_name,
    element_type,
    format_type,
    is_builtin,
    is_collection,
    split_top_level,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DESTRUCTURED_PARAM_NAME = "options"
ANONYMOUS_OBJECT = "object"
UNTYPED = "any"

_MODIFIER_WORDS = (
    "public", "private", "protected", "internal", "static", "abstract",
    "readonly", "override", "declare", "async", "export", "default",
    "virtual", "sealed", "extern", "unsafe", "new", "const", "final",
)
_PARAM_PREFIX_WORDS = (
    "public", "private", "protected", "readonly", "override",
    "ref", "out", "in", "params", "this",
)

_DECORATOR = re.compile(r"^\s*(?:@[\w.$]+(?:\([^)]*\))?\s*)+")
_ATTRIBUTE = re.compile(r"^\s*(?:\[[^\]]*\]\s*)+")
_DECORATOR_NAME = re.compile(r"@[\w.$]+")
# `[Serializable]`, `[return: NotNull]`; not index signatures like `[key: string]`
_ATTRIBUTE_START = re.compile(r"\[\s*(?:\w+\s*:\s*)?[A-Z]\w*\b(?!\s*[:?])")
_MEMBER_AFTER_BRACKET = re.compile(r"[ \t]*[(:?<!]")
_WORD = re.compile(r"^([A-Za-z_$][\w$]*)\s+")
_ACCESSOR = re.compile(r"^(?P<acc>get|set)\s+(?P<name>[#\w$]+)\s*(?:<[^(]*>)?\s*\(")
_PROP_NAME = re.compile(r"""^(?P<name>\#?[\w$]+|'[^']*'|"[^"]*")\s*[?!]?\s*""")
_SIMPLE_PARAM = re.compile(r"^(?P<rest>\.\.\.)?\s*(?P<name>[\w$]+)\s*\??\s*(?::\s*(?P<type>.+))?$", re.S)
_PREFIX_TYPED = re.compile(r"^(?P<type>.+?)\s+(?P<name>[\w$]+)$", re.S)

_MAX_DECLARATION_LINES = 40

# Collections / class fields map to a fixed relation table
_FIELD_RELATION = {
    ("class", False): "composition",
    ("class", True): "aggregation",
    ("interface", False): "association",
    ("interface", True): "aggregation",
    ("type", False): "association",
    ("type", True): "aggregation",
}


# ---------------------------------------------------------------------------
# Text scanning
# ---------------------------------------------------------------------------

def strip_leading_decorators(text: str) -> str:
    """
    Drop `@Decorator(...)` and C# `[Attribute]` blocks in front of a
    declaration. Arguments may span several lines.
    """
    i = 0
    while True:
        while i < len(text) and text[i].isspace():
            i += 1
        if text.startswith("@", i):
            m = _DECORATOR_NAME.match(text, i)
            if m is None:
                break
            i = m.end()
            j = i
            while j < len(text) and text[j] in " \t":
                j += 1
            if j < len(text) and text[j] == "(":
                i = matching_close(text, j) + 1
        elif _ATTRIBUTE_START.match(text, i):
            close = matching_close(text, i)
            if _MEMBER_AFTER_BRACKET.match(text, close + 1):
                break  # computed member name, e.g. [Symbol.iterator]()
            i = close + 1
        else:
            break
    return text[i:]


def declaration_lines(lines: List[str], symbol: Symbol, extra: int = 0) -> List[str]:
    """
    Lines of a declaration starting at its first non-decorator text. A
    server's range for a decorated declaration starts at the decorator.
    """
    start = symbol.start_line
    if start < 0 or start >= len(lines):
        return []
    last = min(len(lines) - 1, max(symbol.end_line, start) + extra)
    text = "\n".join(lines[start:last + 1])
    return strip_leading_decorators(text).split("\n")


def declaration_text(lines: List[str], symbol: Symbol) -> str:
    """
    Source text of a declaration: its first line, extended over the
    following lines while parentheses are still open (multi-line signatures).
    """
    decl = declaration_lines(lines, symbol, _MAX_DECLARATION_LINES)
    if not decl:
        return ""

    parts = [decl[0].strip()]
    depth = parts[0].count("(") - parts[0].count(")")
    i = 0
    while depth > 0 and i < len(decl) - 1:
        i += 1
        nxt = decl[i].strip()
        parts.append(nxt)
        depth += nxt.count("(") - nxt.count(")")

    return " ".join(p for p in parts if p)


def scan_until(text: str, stops: str, start: int = 0) -> int:
    """
    Index of the first char in `stops` found at bracket depth 0 (outside
    strings), or len(text). `=` is never matched as part of `=>` / `==`.
    """
    depth = 0
    quote: Optional[str] = None
    i = start
    while i < len(text):
        ch = text[i]
        nxt = text[i + 1] if i + 1 < len(text) else ""
        prev = text[i - 1] if i > 0 else ""
        if quote:
            if ch == quote and prev != "\\":
                quote = None
        elif ch in "\"'`":
            quote = ch
        elif depth == 0 and ch in stops and not (ch == "=" and nxt in "=>"):
            return i
        elif ch in "([{<":
            depth += 1
        elif ch in ")]}>" and not (ch == ">" and prev == "="):
            depth = max(0, depth - 1)
        i += 1
    return len(text)


def matching_close(text: str, open_index: int) -> int:
    """Index of the bracket closing the one at `open_index` (or len(text))."""
    pairs = {"(": ")", "{": "}", "[": "]", "<": ">"}
    opener = text[open_index]
    closer = pairs[opener]
    depth = 0
    quote: Optional[str] = None
    for i in range(open_index, len(text)):
        ch = text[i]
        if quote:
            if ch == quote and text[i - 1] != "\\":
                quote = None
            continue
        if ch in "\"'`":
            quote = ch
        elif ch == opener:
            depth += 1
        elif ch == closer and not (closer == ">" and text[i - 1] == "="):
            depth -= 1
            if depth == 0:
                return i
    return len(text)


def strip_modifiers(text: str, words=_MODIFIER_WORDS) -> Tuple[str, List[str]]:
    """Remove decorators / attributes and leading modifier keywords."""
    found: List[str] = []
    rest = text.strip()
    while True:
        before = rest
        rest = _DECORATOR.sub("", rest)
        rest = _ATTRIBUTE.sub("", rest) if words is _MODIFIER_WORDS else rest
        m = _WORD.match(rest)
        if m and m.group(1) in words:
            found.append(m.group(1))
            rest = rest[m.end():]
        if rest == before:
            return rest.strip(), found


def _visibility(modifiers: List[str], name: str) -> str:
    if "private" in modifiers or name.startswith("#"):
        return "private"
    if "protected" in modifiers:
        return "protected"
    return "public"


def _clean_name(name: str) -> str:
    # C# servers may report "GetUser(int)"
    return name.split("(", 1)[0].strip().lstrip("#")


# ---------------------------------------------------------------------------
# Types from text
# ---------------------------------------------------------------------------

def _annotation_after(text: str) -> Optional[str]:
    """`: Type = init;` -> `Type`"""
    text = text.lstrip()
    if not text.startswith(":"):
        return None
    body = text[1:].strip()
    if body.startswith("{"):
        return ANONYMOUS_OBJECT
    end = scan_until(body, "=;{")
    return body[:end].strip() or None


def _infer_from_initializer(text: str) -> Optional[str]:
    text = text.lstrip()
    if not text.startswith("=") or text.startswith("=>"):
        return None
    value = text[1:].strip().rstrip(";").strip()
    if re.fullmatch(r"-?\d[\d_]*(\.\d+)?([eE][+-]?\d+)?n?", value):
        return "bigint" if value.endswith("n") else "number"
    if value[:1] in ("'", '"', "`"):
        return "string"
    if value in ("true", "false"):
        return "boolean"
    if value.startswith("["):
        return "any[]"
    if value.startswith("{"):
        return ANONYMOUS_OBJECT
    m = re.match(r"^new\s+([\w$.]+(?:<[^(]*>)?)\s*\(", value)
    if m:
        return m.group(1)
    return None


def _prefix_type(rest: str, name: str) -> Optional[str]:
    """C#-style `List<Item> Items` -> `List<Item>` when the name is not first."""
    m = re.match(r"^(?P<type>.+?)\s+" + re.escape(name) + r"\b", rest)
    if m and not rest.startswith(name):
        t = m.group("type").strip()
        if t and t not in _MODIFIER_WORDS:
            return t
    return None


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

def parse_parameter(raw: str) -> Tuple[Parameter, Optional[str]]:
    """
    One parameter source text -> (Parameter, relation type text or None).
    Object-destructuring patterns collapse to `options`.
    """
    p, _ = strip_modifiers(raw, _PARAM_PREFIX_WORDS)

    if p.startswith("{"):
        close = matching_close(p, 0)
        annotation = _annotation_after(p[close + 1:])
        if annotation and annotation != ANONYMOUS_OBJECT:
            return Parameter(DESTRUCTURED_PARAM_NAME, format_type(annotation)), annotation
        return Parameter(DESTRUCTURED_PARAM_NAME, ANONYMOUS_OBJECT), None

    p = p[:scan_until(p, "=")].strip()

    m = _SIMPLE_PARAM.match(p)
    if m:
        name = m.group("name")
        ptype = (m.group("type") or "").strip()
        if not ptype:
            return Parameter(name, UNTYPED), None
        return Parameter(name, format_type(ptype) or UNTYPED), ptype

    m = _PREFIX_TYPED.match(p)
    if m:
        ptype = m.group("type").strip()
        return Parameter(m.group("name"), format_type(ptype) or UNTYPED), ptype

    return Parameter(p or DESTRUCTURED_PARAM_NAME, UNTYPED), None


def parse_parameters(inner: str) -> List[Tuple[Parameter, Optional[str]]]:
    return [parse_parameter(raw) for raw in split_top_level(inner)]


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------

def _relation_for(t: TypeLike, rtype_table_key: Optional[str], label: str) -> Optional[Relation]:
    """
    Candidate relation for a typed slot. `rtype_table_key` is the owner kind
    for fields, None for parameters / return types (always dependency).
    """
    if t is None:
        return None
    coll = is_collection(t)
    target = base_name(element_type(t))
    if is_builtin(target):
        return None

    if rtype_table_key is None:
        rtype = "dependency"
    else:
        rtype = _FIELD_RELATION.get((rtype_table_key, coll))
        if rtype is None:
            return None

    return Relation(
        type=rtype,
        target=target,
        label=label,
        source_cardinality="1",
        target_cardinality="0..*" if coll else "1",
    )


# ---------------------------------------------------------------------------
# Member kinds
# ---------------------------------------------------------------------------

def _build_property(
    symbol: Symbol, name: str, rest: str, modifiers: List[str], owner_kind: str
) -> Tuple[Member, List[Relation]]:
    type_like: TypeLike = symbol.type
    if type_like is None:
        m = _PROP_NAME.match(rest)
        tail = rest[m.end():] if m else ""
        type_like = (
            _annotation_after(tail)
            or _infer_from_initializer(tail)
            or _prefix_type(rest, name)
        )

    member = Member(
        name=name,
        kind="property",
        visibility=_visibility(modifiers, symbol.name),
        type=format_type(type_like),
        is_static="static" in modifiers,
        is_abstract="abstract" in modifiers,
    )
    rel = _relation_for(type_like, owner_kind, name)
    return member, [rel] if rel else []


def _build_callable(
    symbol: Symbol,
    name: str,
    rest: str,
    modifiers: List[str],
    owner_kind: str,
    kind: str,
) -> Tuple[Member, List[Relation]]:
    relations: List[Relation] = []

    acc = _ACCESSOR.match(rest)
    sig = rest[acc.start("name"):] if acc else rest

    paren = sig.find("(")
    head = sig[:paren] if paren >= 0 else sig
    name_at = head.rfind(name)
    generic_part = head[name_at + len(name):] if name_at >= 0 and kind != "constructor" else ""
    type_parameters: Optional[List[str]] = None
    lt = generic_part.find("<")
    if lt >= 0:
        close = matching_close(generic_part, lt)
        tps = [tp.split()[0] for tp in split_top_level(generic_part[lt + 1:close]) if tp.split()]
        type_parameters = tps or None

    params: List[Parameter] = []
    after = ""
    if paren >= 0:
        close = matching_close(sig, paren)
        for param, ptype in parse_parameters(sig[paren + 1:close]):
            params.append(param)
            rel = _relation_for(ptype, None, param.name)
            if rel:
                relations.append(rel)
        after = sig[close + 1:]

    return_like: TypeLike = None
    if kind not in ("setter", "constructor"):
        return_like = symbol.type or _annotation_after(after)
        if return_like is None and kind == "method":
            return_like = _prefix_type(rest, name)
        rel = _relation_for(return_like, None, name)
        if rel:
            relations.append(rel)

    member = Member(
        name=name,
        kind=kind,
        visibility=_visibility(modifiers, symbol.name),
        return_type=format_type(return_like),
        parameters=params,
        is_static="static" in modifiers,
        is_abstract="abstract" in modifiers,
        type_parameters=type_parameters,
    )
    return member, relations


def build_member(
    symbol: Symbol, lines: List[str], owner_kind: str
) -> Tuple[Optional[Member], List[Relation]]:
    """
    Build one member of an entity of `owner_kind` (class / interface / enum /
    type). Returns (None, []) for child symbols that are not members.
    """
    name = _clean_name(symbol.name)

    if owner_kind == "enum" or symbol.kind == SymbolKind.EnumMember:
        return Member(name=name, kind="property"), []

    text = declaration_text(lines, symbol)
    rest, modifiers = strip_modifiers(text)
    accessor = _ACCESSOR.match(rest)

    if symbol.kind == SymbolKind.Constructor:
        return _build_callable(symbol, "constructor", rest, modifiers, owner_kind, "constructor")

    if accessor:
        kind = "getter" if accessor.group("acc") == "get" else "setter"
        return _build_callable(symbol, name, rest, modifiers, owner_kind, kind)

    if symbol.kind in (SymbolKind.Method, SymbolKind.Function):
        return _build_callable(symbol, name, rest, modifiers, owner_kind, "method")

    if symbol.kind in (SymbolKind.Field, SymbolKind.Property, SymbolKind.Variable, SymbolKind.Constant):
        # `name(...)` under a property kind is a method signature in interfaces
        m = _PROP_NAME.match(rest)
        if (
            m
            and _clean_name(m.group("name")) == name
            and rest[m.end():].lstrip().startswith(("(", "<"))
            and symbol.type is None
        ):
            return _build_callable(symbol, name, rest, modifiers, owner_kind, "method")
        return _build_property(symbol, name, rest, modifiers, owner_kind)

    return None, []


def property_from_text(line: str) -> Optional[Symbol]:
    """
    Pseudo property symbol for one body line of an object-shaped type alias
    whose symbol carries no children. Used with `build_member`.
    """
    rest, _ = strip_modifiers(line)
    m = _PROP_NAME.match(rest)
    if not m:
        return None
    return Symbol(name=m.group("name").strip("'\""), kind=SymbolKind.Property, start_line=0, end_line=0)

