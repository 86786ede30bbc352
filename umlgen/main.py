# umlgen/main.py
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from umlgen import config
from umlgen.adapters.symbols import SourceUnit, unit_from_lsp
from umlgen.detect import detect_language
from umlgen.mermaid_rules import generate_class_diagram, generate_readme
from umlgen.service import build_entities, build_graph

app = FastAPI(title=config.API_TITLE)


class UnitModel(BaseModel):
    path: str
    text: str = ""
    namespace: Optional[str] = None
    symbols: List[Dict[str, Any]] = Field(default_factory=list)  # LSP DocumentSymbol JSON


class DiagramRequest(BaseModel):
    units: List[UnitModel] = Field(default_factory=list)
    diagram_type: str = "class"  # "class" or "readme"
    title: Optional[str] = None


class DiagramResponse(BaseModel):
    mermaid: str


class CIRRequest(BaseModel):
    units: List[UnitModel] = Field(default_factory=list)


class CIRResponse(BaseModel):
    cir: Dict[str, Any]


class DetectRequest(BaseModel):
    code: str
    filename: Optional[str] = None


def _to_units(units: List[UnitModel]) -> List[SourceUnit]:
    return [unit_from_lsp(u.path, u.text, u.symbols, u.namespace) for u in units]


@app.post("/diagram", response_model=DiagramResponse)
def diagram(req: DiagramRequest):
    dt = req.diagram_type.lower().strip()
    entities = build_entities(_to_units(req.units))

    if dt == "class":
        mermaid = generate_class_diagram(entities)
    elif dt == "readme":
        mermaid = generate_readme(req.title or "Diagram", entities)
    else:
        raise HTTPException(status_code=400, detail=f"Unsupported diagram_type: {req.diagram_type}")

    return DiagramResponse(mermaid=mermaid)


@app.post("/cir", response_model=CIRResponse)
def cir(req: CIRRequest):
    graph = build_graph(_to_units(req.units))
    return CIRResponse(cir=graph.to_debug_json())


@app.post("/detect")
def detect(req: DetectRequest):
    lang, conf, source = detect_language(req.code, req.filename)
    return {
        "language": lang,
        "confidence": conf,
        "source": source
    }
