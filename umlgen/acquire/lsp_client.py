"""
umlgen/acquire/lsp_client.py

Minimal Language Server Protocol client over stdio.

Spawns the server as an asyncio subprocess and speaks JSON-RPC 2.0 with
`Content-Length` framing. Responses are matched to requests by id, so
several `document_symbols` calls may be in flight at once; the caller is
responsible for putting them back in a stable order.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class LanguageServerError(RuntimeError):
    pass


class LanguageClient(Protocol):
    async def initialize(self, root: str) -> None: ...

    async def document_symbols(self, path: str, content: str) -> List[Dict[str, Any]]: ...

    async def shutdown(self) -> None: ...


class StdioLanguageClient:
    def __init__(self, command: str, args: Optional[List[str]] = None, language_id: str = "typescript") -> None:
        self.command = command
        self.args = list(args or [])
        self.language_id = language_id
        self._proc: Optional[asyncio.subprocess.Process] = None
        self._reader: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._write_lock = asyncio.Lock()

    # ---------------- lifecycle ----------------

    async def initialize(self, root: str) -> None:
        try:
            self._proc = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise LanguageServerError(f"Failed to start {self.command}: {e}") from e

        self._reader = asyncio.create_task(self._read_loop())
        params = {
            "processId": os.getpid(),
            "rootUri": Path(root).resolve().as_uri(),
            "capabilities": {
                "textDocument": {
                    "documentSymbol": {"hierarchicalDocumentSymbolSupport": True},
                },
            },
        }
        await self.request("initialize", params)
        await self.notify("initialized", {})
        logger.info("Language server %s initialized at %s", self.command, root)

    async def shutdown(self) -> None:
        if self._proc is None:
            return
        try:
            if self._proc.returncode is None:
                await asyncio.wait_for(self.request("shutdown", None), timeout=5)
                await self.notify("exit", None)
        except (LanguageServerError, asyncio.TimeoutError, ConnectionError) as e:
            logger.warning("Language server did not shut down cleanly: %s", e)
        finally:
            if self._reader is not None:
                self._reader.cancel()
            if self._proc.returncode is None:
                try:
                    self._proc.kill()
                except ProcessLookupError:
                    pass
                await self._proc.wait()
            self._proc = None

    # ---------------- requests ----------------

    async def document_symbols(self, path: str, content: str) -> List[Dict[str, Any]]:
        uri = Path(path).resolve().as_uri()
        await self.notify(
            "textDocument/didOpen",
            {
                "textDocument": {
                    "uri": uri,
                    "languageId": self.language_id,
                    "version": 1,
                    "text": content,
                }
            },
        )
        try:
            result = await self.request("textDocument/documentSymbol", {"textDocument": {"uri": uri}})
        finally:
            try:
                await self.notify("textDocument/didClose", {"textDocument": {"uri": uri}})
            except (LanguageServerError, ConnectionError) as e:
                logger.debug("didClose for %s not sent: %s", uri, e)
        return result or []

    async def request(self, method: str, params: Any) -> Any:
        if self._proc is None:
            raise LanguageServerError("LSP not initialized")
        msg_id = next(self._ids)
        fut = asyncio.get_running_loop().create_future()
        self._pending[msg_id] = fut
        try:
            await self._send({"jsonrpc": "2.0", "id": msg_id, "method": method, "params": params})
            return await fut
        finally:
            self._pending.pop(msg_id, None)

    async def notify(self, method: str, params: Any) -> None:
        await self._send({"jsonrpc": "2.0", "method": method, "params": params})

    # ---------------- wire ----------------

    async def _send(self, payload: Dict[str, Any]) -> None:
        if self._proc is None or self._proc.stdin is None:
            raise LanguageServerError("LSP not initialized")
        body = json.dumps(payload).encode("utf-8")
        header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
        async with self._write_lock:
            self._proc.stdin.write(header + body)
            await self._proc.stdin.drain()

    async def _read_message(self) -> Optional[Dict[str, Any]]:
        assert self._proc is not None and self._proc.stdout is not None
        length = None
        while True:
            line = await self._proc.stdout.readline()
            if not line:
                return None
            line = line.strip()
            if not line:
                break
            name, _, value = line.decode("ascii", "replace").partition(":")
            if name.lower() == "content-length":
                length = int(value.strip())
        if length is None:
            raise LanguageServerError("Missing Content-Length header")
        body = await self._proc.stdout.readexactly(length)
        return json.loads(body.decode("utf-8"))

    async def _read_loop(self) -> None:
        try:
            while True:
                msg = await self._read_message()
                if msg is None:
                    break
                await self._dispatch(msg)
        except (asyncio.IncompleteReadError, LanguageServerError, ValueError) as e:
            logger.warning("Language server stream error: %s", e)
        finally:
            for fut in self._pending.values():
                if not fut.done():
                    fut.set_exception(LanguageServerError("Language server exited"))

    async def _dispatch(self, msg: Dict[str, Any]) -> None:
        if "method" in msg:
            # server -> client request (configuration, progress...): answer null
            if "id" in msg:
                await self._send({"jsonrpc": "2.0", "id": msg["id"], "result": None})
            return

        fut = self._pending.get(msg.get("id"))
        if fut is None or fut.done():
            return
        if "error" in msg:
            err = msg["error"] or {}
            fut.set_exception(LanguageServerError(f"{err.get('code')}: {err.get('message')}"))
        else:
            fut.set_result(msg.get("result"))
