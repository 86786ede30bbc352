"""
umlgen/adapters/symbols.py

Uniform symbol-tree input for the entity builder.

Whatever produced the symbols (a language server, a pre-recorded dump, a
test fixture), the builders only ever see these dataclasses:

  - SymbolKind   closed enumeration of structural kinds (LSP numbering)
  - TypeHandle   optional structural type information for a symbol
  - Symbol       one node of a per-file symbol tree
  - SourceUnit   one source file: its text, its symbols and its namespace

LSP `DocumentSymbol` JSON can be converted with `symbol_from_lsp` /
`unit_from_lsp`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


class SymbolKind(IntEnum):
    File = 1
    Module = 2
    Namespace = 3
    Package = 4
    Class = 5
    Method = 6
    Property = 7
    Field = 8
    Constructor = 9
    Enum = 10
    Interface = 11
    Function = 12
    Variable = 13
    Constant = 14
    String = 15
    Number = 16
    Boolean = 17
    Array = 18
    Object = 19
    Key = 20
    Null = 21
    EnumMember = 22
    Struct = 23
    Event = 24
    Operator = 25
    TypeParameter = 26


@dataclass
class TypeHandle:
    text: str                                  # type as written / printed
    name: Optional[str] = None                 # declared symbol name, if any
    alias_name: Optional[str] = None           # alias symbol name, preferred over `name`
    is_array: bool = False
    element: Optional["TypeHandle"] = None     # array element type
    type_arguments: List["TypeHandle"] = field(default_factory=list)
    is_object: bool = False                    # object-literal shape


@dataclass
class Symbol:
    name: str
    kind: SymbolKind
    start_line: int                            # 0-based, inclusive
    end_line: int                              # 0-based, inclusive
    children: List["Symbol"] = field(default_factory=list)
    type: Optional[TypeHandle] = None          # property type; return type for callables
    detail: Optional[str] = None


@dataclass
class SourceUnit:
    path: str
    text: str
    symbols: List[Symbol] = field(default_factory=list)
    namespace: Optional[str] = None

    @property
    def lines(self) -> List[str]:
        return self.text.splitlines()


def _kind_from_number(value: Any) -> SymbolKind:
    try:
        return SymbolKind(int(value))
    except (TypeError, ValueError):
        return SymbolKind.Null


def type_handle_from_dict(data: Optional[Dict[str, Any]]) -> Optional[TypeHandle]:
    if not data:
        return None
    element = type_handle_from_dict(data.get("element"))
    args = [type_handle_from_dict(a) for a in data.get("typeArguments", []) or []]
    return TypeHandle(
        text=data.get("text", "") or "",
        name=data.get("name"),
        alias_name=data.get("aliasName"),
        is_array=bool(data.get("isArray", False)),
        element=element,
        type_arguments=[a for a in args if a is not None],
        is_object=bool(data.get("isObject", False)),
    )


def symbol_from_lsp(data: Dict[str, Any]) -> Symbol:
    """
    Convert one LSP DocumentSymbol (hierarchical form) to a Symbol.
    Flat SymbolInformation entries (with `location`) are accepted too.
    """
    rng = data.get("range")
    if rng is None:
        rng = (data.get("location") or {}).get("range") or {}
    start = (rng.get("start") or {}).get("line", 0)
    end = (rng.get("end") or {}).get("line", start)

    return Symbol(
        name=data.get("name", ""),
        kind=_kind_from_number(data.get("kind")),
        start_line=start,
        end_line=end,
        children=[symbol_from_lsp(c) for c in data.get("children", []) or []],
        type=type_handle_from_dict(data.get("type")),
        detail=data.get("detail"),
    )


def unit_from_lsp(
    path: str,
    text: str,
    symbols: List[Dict[str, Any]],
    namespace: Optional[str] = None,
) -> SourceUnit:
    return SourceUnit(
        path=path,
        text=text,
        symbols=[symbol_from_lsp(s) for s in symbols or []],
        namespace=namespace,
    )
