from __future__ import annotations

import os
import shlex

from dotenv import load_dotenv  # type: ignore

load_dotenv()

API_TITLE = "UML Mermaid Generator (symbols -> classDiagram)"

# Source files picked up when walking directories, per language
SOURCE_EXTENSIONS = {
    "typescript": (".ts", ".tsx"),
    "csharp": (".cs",),
}

# Language servers spoken to over stdio
LANGUAGE_SERVERS = {
    "typescript": shlex.split(
        os.getenv("UMLGEN_TS_SERVER", "typescript-language-server --stdio")
    ),
    "csharp": shlex.split(os.getenv("UMLGEN_CS_SERVER", "csharp-ls")),
}

DEFAULT_LANGUAGE = os.getenv("UMLGEN_LANGUAGE", "typescript")

# Upper bound for one symbol request; acquisition is the only part with I/O
SYMBOL_REQUEST_TIMEOUT_SECONDS = float(os.getenv("UMLGEN_SYMBOL_TIMEOUT", "30"))

# Concurrent documentSymbol requests in flight against one server
MAX_CONCURRENT_REQUESTS = int(os.getenv("UMLGEN_MAX_CONCURRENT", "8"))
