import re
from typing import Dict, List, Optional, Tuple

from umlgen import config

# Extension -> language, from the configured source extensions
_EXT = {ext: lang for lang, exts in config.SOURCE_EXTENSIONS.items() for ext in exts}

# Hints shared by both languages (class, interface, enum, new X()) are left
# out: only syntax that tells TypeScript and C# apart is counted.

# TypeScript
_TS_HINTS = [
    r"\bexport\s+(default\s+)?(abstract\s+)?(class|interface|type|enum|function|const)\b",
    r"\bimport\s+(type\s+)?\{[^}]*\}\s+from\s+['\"]",   # ES imports
    r"\bimplements\s+\w+",                              # implements clause
    r"\bconstructor\s*\(",                              # constructors
    r"\btype\s+\w+(<[^>]*>)?\s*=",                      # type aliases
    r"\b(let|const)\s+\w+\s*(:\s*[\w<>\[\]]+\s*)?=",    # let / const bindings
    r"\w+\??\s*:\s*(string|number|boolean|any|unknown|void)\b",  # `name: type`
    r"\)\s*:\s*(Promise<[^>]+>|void|string|number)\s*\{",        # return annotations
    r"=>",                                              # arrow functions
    r"\breadonly\s+\w+\s*:",                            # readonly members
    r"#\w+\s*[:=;]",                                    # ES private fields
    r"console\.(log|error|warn)",                       # console output
    r"===|!==",                                         # strict equality
]

# C#
_CS_HINTS = [
    r"^\s*using\s+[\w.]+\s*;",                          # using directives
    r"\bnamespace\s+[\w.]+\s*[;{]?",                    # namespace declarations
    r"\b(class|struct|record)\s+\w+(<[^>]*>)?\s*:\s*\w+",  # base class / interface list
    r"\binterface\s+I[A-Z]\w*",                         # I-prefixed interfaces
    r"\{\s*get;\s*(private\s+|init;\s*|set;\s*)?",      # auto properties
    r"\b(public|private|protected|internal)\s+(static\s+)?(void|int|string|bool|Task)\s+\w+\s*\(",
    r"\basync\s+Task(<[^>]+>)?\s+\w+",                  # async methods
    r"\b(List|IEnumerable|Dictionary|IList)<[\w, ]+>\s+\w+",  # typed collections
    r"^\s*\[\w+(\(.*\))?\]\s*$",                        # attributes on their own line
    r"\bvar\s+\w+\s*=",                                 # var declarations
    r"Console\.Write(Line)?\s*\(",                      # console output
    r"\bstatic\s+void\s+Main\s*\(",                     # entry point
    r"\b(string|int|bool|decimal|double)\s+\w+\s*[,)=;]",  # typed locals / params
]

_HINTS: Dict[str, List[str]] = {
    "typescript": _TS_HINTS,
    "csharp": _CS_HINTS,
}

# Confidence needed before a heuristic guess is accepted
_MIN_CONFIDENCE = 0.6


def _score(patterns: List[str], text: str) -> float:
    hits = sum(bool(re.search(p, text, re.M)) for p in patterns)

    # 6 hits --> 0.6, 10 or more --> 1.0, linear in between
    if hits >= 10:
        return 1.0
    if hits >= 6:
        return round(0.6 + (hits - 6) * 0.1, 2)
    return round(hits * 0.1, 2)


def detect_language(code: str, filename: Optional[str] = None) -> Tuple[str, float, str]:
    """
    (language, confidence, source): by file extension when one is known,
    else by counting language-specific hints in `code`.
    """
    if filename:
        for ext, lang in _EXT.items():
            if filename.endswith(ext):
                return lang, 0.95, "extension"

    scores = {lang: _score(patterns, code) for lang, patterns in _HINTS.items()}
    lang = max(scores, key=scores.get)
    if scores[lang] >= _MIN_CONFIDENCE:
        return lang, scores[lang], "heuristic"

    return "unknown", 0.0, "none"
