"""
umlgen/adapters/entities.py

Symbol tree -> Entity list.

One mapping function per entity kind, chosen through an explicit dispatch
table on the symbol kind (plus the declaration header for type aliases):

  - class       generic parameters, abstract flag, one base class, interfaces
  - interface   generic parameters, extended interfaces
  - enum        every child becomes a public untyped property
  - type        `type X = { ... }` aliases; each named property is a member

Functions, variables and primitive aliases produce nothing. Namespace /
module container symbols are walked so that servers which nest declarations
under a namespace symbol still yield their classes.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

from umlgen.adapters.members import (
    build_member,
    declaration_lines,
    matching_close,
    property_from_text,
    scan_until,
)
from umlgen.adapters.symbols import SourceUnit, Symbol, SymbolKind
from umlgen.cir.model import Entity, Member, Relation
from umlgen.cir.types import base_name, split_top_level

logger = logging.getLogger(__name__)

_MAX_HEADER_LINES = 10

_DECL_KEYWORD = re.compile(r"\b(?:class|struct|record|interface)\s+(?P<name>[\w$]+)")
_TYPE_ALIAS = re.compile(r"\btype\s+(?P<name>[\w$]+)\s*(?P<tp><.*?>)?\s*=\s*(?P<rhs>.*)$", re.S)
_EXTENDS = re.compile(r"\bextends\s+(?P<names>.+?)(?=\bimplements\b|$)", re.S)
_IMPLEMENTS = re.compile(r"\bimplements\s+(?P<names>.+)$", re.S)
_CSHARP_INTERFACE = re.compile(r"^I[A-Z]")

_CONTAINER_KINDS = (SymbolKind.Namespace, SymbolKind.Module, SymbolKind.Package)
_ALIAS_CANDIDATE_KINDS = (
    SymbolKind.Variable,
    SymbolKind.Constant,
    SymbolKind.TypeParameter,
    SymbolKind.Object,
    SymbolKind.Class,
    SymbolKind.Struct,
    SymbolKind.Interface,
)


# ---------------------------------------------------------------------------
# Header parsing
# ---------------------------------------------------------------------------

def header_text(lines: List[str], symbol: Symbol) -> str:
    """Declaration header, past any decorators, up to its opening brace."""
    parts: List[str] = []
    for line in declaration_lines(lines, symbol)[:_MAX_HEADER_LINES]:
        parts.append(line.strip())
        if "{" in line:
            break
    return " ".join(parts)


def _type_parameters(text: str) -> Tuple[List[str], str]:
    """`<T extends X, U> rest` -> (["T", "U"], "rest")"""
    text = text.lstrip()
    if not text.startswith("<"):
        return [], text
    close = matching_close(text, 0)
    params = [tp.split()[0] for tp in split_top_level(text[1:close]) if tp.split()]
    return params, text[close + 1:]


def _names(clause: str) -> List[str]:
    return [n for n in (base_name(part) for part in split_top_level(clause)) if n]


def parse_header(header: str, name: str) -> Tuple[List[str], List[str], List[str], bool]:
    """
    Returns (type_parameters, extends, implements, is_abstract) from a class or
    interface header. Understands `extends` / `implements` and the C#
    `: Base, IFoo` form.
    """
    is_abstract = bool(re.search(r"\babstract\b", header))

    m = _DECL_KEYWORD.search(header)
    after = header[m.end():] if m else header
    if not m and name in header:
        after = header[header.index(name) + len(name):]

    type_params, rest = _type_parameters(after)
    rest = rest[:scan_until(rest, "{")].strip()

    extends: List[str] = []
    implements: List[str] = []

    if rest.startswith(":"):
        # C#: first non-interface-looking name is the base class
        for n in _names(rest[1:].split(" where ", 1)[0]):
            if not extends and not implements and not _CSHARP_INTERFACE.match(n):
                extends.append(n)
            else:
                implements.append(n)
        return type_params, extends, implements, is_abstract

    em = _EXTENDS.search(rest)
    if em:
        extends = _names(em.group("names"))
    im = _IMPLEMENTS.search(rest)
    if im:
        implements = _names(im.group("names"))
    return type_params, extends, implements, is_abstract


def _alias_match(lines: List[str], symbol: Symbol) -> Optional[re.Match]:
    m = _TYPE_ALIAS.search(header_text(lines, symbol))
    if m and m.group("name") == _entity_name(symbol):
        return m
    return None


def _entity_name(symbol: Symbol) -> str:
    return symbol.name.split("<", 1)[0].strip()


# ---------------------------------------------------------------------------
# Member collection
# ---------------------------------------------------------------------------

def _collect_members(
    children: List[Symbol], lines: List[str], owner_kind: str
) -> Tuple[List[Member], List[Relation]]:
    members: List[Member] = []
    relations: List[Relation] = []
    for child in children:
        member, rels = build_member(child, lines, owner_kind)
        if member is None:
            continue
        members.append(member)
        relations.extend(rels)
    return members, relations


def _object_shape_body(lines: List[str], symbol: Symbol) -> str:
    """Text between the braces of `type X = { ... }`."""
    end = min(len(lines) - 1, max(symbol.end_line, symbol.start_line))
    text = "\n".join(lines[symbol.start_line:end + 1])
    eq = text.find("=")
    brace = text.find("{", eq + 1 if eq >= 0 else 0)
    if brace < 0:
        return ""
    close = matching_close(text, brace)
    return text[brace + 1:close]


def _members_from_body(body: str) -> Tuple[List[Member], List[Relation]]:
    members: List[Member] = []
    relations: List[Relation] = []
    for piece in split_top_level(body.replace("\n", ";"), ";"):
        for decl in split_top_level(piece):
            pseudo = property_from_text(decl)
            if pseudo is None:
                continue
            member, rels = build_member(pseudo, [decl], "type")
            if member is not None:
                members.append(member)
                relations.extend(rels)
    return members, relations


# ---------------------------------------------------------------------------
# One function per entity kind
# ---------------------------------------------------------------------------

def class_entity(symbol: Symbol, lines: List[str]) -> Entity:
    name = _entity_name(symbol)
    type_params, extends, implements, is_abstract = parse_header(header_text(lines, symbol), name)
    members, relations = _collect_members(symbol.children, lines, "class")
    return Entity(
        name=name,
        kind="class",
        is_abstract=is_abstract,
        type_parameters=type_params,
        extends=extends[:1],
        implements=implements,
        members=members,
        relations=relations,
    )


def interface_entity(symbol: Symbol, lines: List[str]) -> Entity:
    name = _entity_name(symbol)
    type_params, extends, implements, _ = parse_header(header_text(lines, symbol), name)
    members, relations = _collect_members(symbol.children, lines, "interface")
    return Entity(
        name=name,
        kind="interface",
        type_parameters=type_params,
        extends=extends + implements,
        members=members,
        relations=relations,
    )


def enum_entity(symbol: Symbol, lines: List[str]) -> Entity:
    members, _ = _collect_members(symbol.children, lines, "enum")
    return Entity(name=_entity_name(symbol), kind="enum", members=members)


def type_alias_entity(symbol: Symbol, lines: List[str]) -> Optional[Entity]:
    m = _alias_match(lines, symbol)
    is_object = bool(symbol.type and symbol.type.is_object)
    if not is_object and not (m and m.group("rhs").lstrip().startswith("{")):
        return None

    type_params, _ = _type_parameters(m.group("tp") or "") if m else ([], "")
    if symbol.children:
        members, relations = _collect_members(symbol.children, lines, "type")
    else:
        members, relations = _members_from_body(_object_shape_body(lines, symbol))

    return Entity(
        name=_entity_name(symbol),
        kind="type",
        type_parameters=type_params,
        members=members,
        relations=relations,
    )


EntityBuilder = Callable[[Symbol, List[str]], Optional[Entity]]

ENTITY_BUILDERS: Dict[SymbolKind, EntityBuilder] = {
    SymbolKind.Class: class_entity,
    SymbolKind.Struct: class_entity,
    SymbolKind.Interface: interface_entity,
    SymbolKind.Enum: enum_entity,
    SymbolKind.Variable: type_alias_entity,
    SymbolKind.Constant: type_alias_entity,
    SymbolKind.TypeParameter: type_alias_entity,
    SymbolKind.Object: type_alias_entity,
}


class EntityAdapter:
    """
    Symbol trees -> entities with candidate relations.
    Relations are not finalized here; see umlgen.cir.relations.
    """

    def _builder_for(self, symbol: Symbol, lines: List[str]) -> Optional[EntityBuilder]:
        if symbol.kind in _ALIAS_CANDIDATE_KINDS and _alias_match(lines, symbol):
            return type_alias_entity
        return ENTITY_BUILDERS.get(symbol.kind)

    def _walk(self, symbols: List[Symbol], lines: List[str], out: List[Entity]) -> None:
        for symbol in symbols:
            if symbol.kind in _CONTAINER_KINDS:
                self._walk(symbol.children, lines, out)
                continue
            builder = self._builder_for(symbol, lines)
            if builder is None:
                continue
            entity = builder(symbol, lines)
            if entity is not None:
                out.append(entity)

    def build_entities(self, unit: SourceUnit) -> List[Entity]:
        entities: List[Entity] = []
        self._walk(unit.symbols, unit.lines, entities)
        for e in entities:
            e.namespace = unit.namespace
        logger.debug("%s: %d entities", unit.path, len(entities))
        return entities

    def build_entities_for_units(self, units: List[SourceUnit]) -> List[Entity]:
        """
        Entities of every unit, in unit order then declaration order.
        A unit that fails to build is logged and contributes nothing.
        """
        entities: List[Entity] = []
        for unit in units:
            try:
                entities.extend(self.build_entities(unit))
            except Exception as e:
                logger.warning("Failed to build entities for %s: %s", unit.path, e, exc_info=True)
        return entities
