from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from umlgen import config
from umlgen.acquire.files import collect_files
from umlgen.acquire.lsp_client import LanguageClient, StdioLanguageClient
from umlgen.acquire.pipeline import acquire_units
from umlgen.adapters.entities import EntityAdapter
from umlgen.adapters.symbols import SourceUnit
from umlgen.cir.graph import CIRGraph
from umlgen.cir.model import Entity
from umlgen.cir.relations import finalize_relations
from umlgen.detect import detect_language
from umlgen.mermaid_rules import generate_class_diagram

logger = logging.getLogger(__name__)

entity_adapter = EntityAdapter()


@dataclass
class DiagramResult:
    mermaid: str
    entities: List[Entity]
    errors: List[Dict[str, str]] = field(default_factory=list)


def build_entities(units: List[SourceUnit]) -> List[Entity]:
    """Symbol trees -> finalized entities, in unit order."""
    return finalize_relations(entity_adapter.build_entities_for_units(units))


def generate_from_units(units: List[SourceUnit]) -> str:
    return generate_class_diagram(build_entities(units))


def build_graph(units: List[SourceUnit]) -> CIRGraph:
    return CIRGraph.from_entities(build_entities(units))


def _all_extensions() -> List[str]:
    return [ext for exts in config.SOURCE_EXTENSIONS.values() for ext in exts]


def default_client(language: str) -> StdioLanguageClient:
    command = config.LANGUAGE_SERVERS[language]
    return StdioLanguageClient(command[0], command[1:], language_id=language)


async def generate_from_paths(
    paths: List[str],
    client: Optional[LanguageClient] = None,
    root: Optional[str] = None,
    language: Optional[str] = None,
) -> DiagramResult:
    """
    Collect source files under `paths`, fetch their symbols from a language
    server and render the diagram. The language is taken from the first
    file's extension when not given.
    """
    files = collect_files(paths, _all_extensions())
    if language is None:
        language = config.DEFAULT_LANGUAGE
        if files:
            detected, _, _ = detect_language("", files[0])
            if detected in config.SOURCE_EXTENSIONS:
                language = detected
    files = [f for f in files if f.endswith(config.SOURCE_EXTENSIONS[language])]
    logger.info("Generating %s diagram from %d files", language, len(files))

    client = client or default_client(language)
    await client.initialize(root or os.getcwd())
    try:
        units, errors = await acquire_units(files, client, root)
    finally:
        await client.shutdown()

    entities = build_entities(units)
    return DiagramResult(generate_class_diagram(entities), entities, errors)
