import asyncio
import os
from typing import Any, Dict, List, Optional

import pytest

from umlgen.acquire.lsp_client import LanguageServerError
from umlgen.adapters.symbols import SourceUnit, SymbolKind, unit_from_lsp

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def read_fixture(name: str) -> str:
    with open(os.path.join(FIXTURES_DIR, name), "r", encoding="utf-8") as f:
        return f.read()


def lsp_symbol(
    name: str,
    kind: SymbolKind,
    line: int,
    end: Optional[int] = None,
    children: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """LSP DocumentSymbol JSON as a language server would send it (0-based lines)."""
    rng = {
        "start": {"line": line, "character": 0},
        "end": {"line": line if end is None else end, "character": 0},
    }
    return {
        "name": name,
        "kind": int(kind),
        "range": rng,
        "selectionRange": rng,
        "children": children or [],
    }


K = SymbolKind


def sample_symbols() -> List[Dict[str, Any]]:
    return [
        lsp_symbol("Greeter", K.Interface, 0, 2, [
            lsp_symbol("greet", K.Method, 1),
        ]),
        lsp_symbol("Address", K.Variable, 4, 6, [
            lsp_symbol("street", K.Property, 5),
        ]),
        lsp_symbol("Role", K.Enum, 8, 11, [
            lsp_symbol("Admin", K.EnumMember, 9),
            lsp_symbol("User", K.EnumMember, 10),
        ]),
        lsp_symbol("Person", K.Class, 13, 38, [
            lsp_symbol("id", K.Property, 14),
            lsp_symbol("age", K.Property, 15),
            lsp_symbol("_name", K.Property, 16),
            lsp_symbol("address", K.Property, 17),
            lsp_symbol("constructor", K.Constructor, 19, 23),
            lsp_symbol("name", K.Property, 25, 27),
            lsp_symbol("name", K.Property, 29, 31),
            lsp_symbol("calculateSalary", K.Method, 33, 35),
            lsp_symbol("greet", K.Method, 37),
        ]),
        lsp_symbol("Employee", K.Class, 40, 44, [
            lsp_symbol("role", K.Property, 41),
            lsp_symbol("greet", K.Method, 42),
            lsp_symbol("assignTo", K.Method, 43),
        ]),
        lsp_symbol("Department", K.Class, 46, 48, [
            lsp_symbol("employees", K.Property, 47),
        ]),
        lsp_symbol("Repository", K.Class, 50, 59, [
            lsp_symbol("count", K.Property, 51),
            lsp_symbol("items", K.Property, 52),
            lsp_symbol("add", K.Method, 53, 55),
            lsp_symbol("reset", K.Method, 56, 58),
        ]),
        lsp_symbol("helper", K.Function, 61),
    ]


def destruct_symbols() -> List[Dict[str, Any]]:
    return [
        lsp_symbol("Options", K.Variable, 0, 3, [
            lsp_symbol("foo", K.Property, 1),
            lsp_symbol("bar", K.Property, 2),
        ]),
        lsp_symbol("Config", K.Class, 5, 17, [
            lsp_symbol("foo", K.Property, 6),
            lsp_symbol("bar", K.Property, 7),
            lsp_symbol("constructor", K.Constructor, 8, 11),
            lsp_symbol("update", K.Method, 13, 16),
        ]),
    ]


def destruct_untyped_symbols() -> List[Dict[str, Any]]:
    return [
        lsp_symbol("ConfigUntyped", K.Class, 0, 12, [
            lsp_symbol("foo", K.Property, 1),
            lsp_symbol("bar", K.Property, 2),
            lsp_symbol("constructor", K.Constructor, 3, 6),
            lsp_symbol("update", K.Method, 8, 11),
        ]),
    ]


def worker_symbols() -> List[Dict[str, Any]]:
    return [
        lsp_symbol("Worker", K.Class, 0, 15, [
            lsp_symbol("test", K.Property, 1),
            lsp_symbol("queue", K.Property, 2),
            lsp_symbol("#secret", K.Property, 3),
            lsp_symbol("run", K.Method, 5, 10),
            lsp_symbol("map", K.Method, 12, 14),
        ]),
        lsp_symbol("Job", K.Interface, 17, 20, [
            lsp_symbol("id", K.Property, 18),
            lsp_symbol("owner", K.Property, 19),
        ]),
    ]


FIXTURE_SYMBOLS = {
    "sample.ts": sample_symbols,
    "destruct.ts": destruct_symbols,
    "destructUntyped.ts": destruct_untyped_symbols,
    "worker.ts": worker_symbols,
}


def fixture_unit(name: str, namespace: Optional[str] = "fixtures") -> SourceUnit:
    return unit_from_lsp(
        os.path.join(FIXTURES_DIR, name),
        read_fixture(name),
        FIXTURE_SYMBOLS[name](),
        namespace,
    )


@pytest.fixture
def sample_unit() -> SourceUnit:
    return fixture_unit("sample.ts")


@pytest.fixture
def destruct_unit() -> SourceUnit:
    return fixture_unit("destruct.ts")


@pytest.fixture
def destruct_untyped_unit() -> SourceUnit:
    return fixture_unit("destructUntyped.ts")


@pytest.fixture
def worker_unit() -> SourceUnit:
    return fixture_unit("worker.ts")


class FakeClient:
    """In-process stand-in for a language server, answering from FIXTURE_SYMBOLS."""

    def __init__(self, delays: Optional[Dict[str, float]] = None, failing: Optional[set] = None) -> None:
        self.delays = delays or {}
        self.failing = failing or set()
        self.initialized_at: Optional[str] = None
        self.shut_down = False
        self.requested: List[str] = []

    async def initialize(self, root: str) -> None:
        self.initialized_at = root

    async def document_symbols(self, path: str, content: str) -> List[Dict[str, Any]]:
        name = os.path.basename(path)
        self.requested.append(name)
        await asyncio.sleep(self.delays.get(name, 0))
        if name in self.failing:
            raise LanguageServerError(f"-32603: cannot analyse {name}")
        return FIXTURE_SYMBOLS[name]() if name in FIXTURE_SYMBOLS else []

    async def shutdown(self) -> None:
        self.shut_down = True


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
