from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from umlgen import config
from umlgen.acquire.files import namespace_of
from umlgen.acquire.lsp_client import LanguageClient, LanguageServerError
from umlgen.adapters.symbols import SourceUnit, unit_from_lsp

logger = logging.getLogger(__name__)


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


async def acquire_units(
    files: List[str],
    client: LanguageClient,
    root: Optional[str] = None,
    timeout: float = config.SYMBOL_REQUEST_TIMEOUT_SECONDS,
) -> Tuple[List[SourceUnit], List[Dict[str, str]]]:
    """
    Read each file and fetch its symbol tree, concurrently.
    Units come back in `files` order whatever order the fetches finish in.
    A file that cannot be read or analysed is logged, recorded in the error
    list and contributes an empty unit.
    """
    sem = asyncio.Semaphore(config.MAX_CONCURRENT_REQUESTS)

    async def fetch(path: str) -> Tuple[SourceUnit, Optional[Dict[str, str]]]:
        namespace = namespace_of(path, root)
        async with sem:
            try:
                text = await asyncio.to_thread(_read_text, path)
                symbols = await asyncio.wait_for(client.document_symbols(path, text), timeout)
            except (OSError, UnicodeDecodeError, LanguageServerError, asyncio.TimeoutError) as e:
                logger.warning("Failed to analyse %s: %s", path, e)
                error = {"file": path, "error": str(e) or type(e).__name__}
                return SourceUnit(path=path, text="", namespace=namespace), error
        return unit_from_lsp(path, text, symbols, namespace), None

    results = await asyncio.gather(*(fetch(f) for f in files))

    units = [unit for unit, _ in results]
    errors = [err for _, err in results if err is not None]
    logger.info("Acquired %d units (%d failed)", len(units), len(errors))
    return units, errors
