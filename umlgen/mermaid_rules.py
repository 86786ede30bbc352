from __future__ import annotations

from typing import Dict, List, Optional

from umlgen.cir.model import Entity, Member, Parameter, Relation

DIAGRAM_HEADER = "classDiagram"

# Map member visibility to Mermaid symbols
VISIBILITY_MAP = {
    "public": "+",
    "protected": "#",
    "private": "-",
}

# Relation type -> Mermaid arrow
ARROW_MAP = {
    "inheritance": "<|--",
    "implementation": "<|..",
    "association": "-->",
    "composition": "*--",
    "aggregation": "o--",
    "dependency": "..>",
}

STEREOTYPES = {
    "interface": "<<interface>>",
    "enum": "<<enumeration>>",
}

STATIC_MARK = "$"
ABSTRACT_MARK = "*"


def _group_by_namespace(entities: List[Entity]) -> Dict[Optional[str], List[Entity]]:
    # dicts keep first-seen order
    groups: Dict[Optional[str], List[Entity]] = {}
    for e in entities:
        groups.setdefault(e.namespace, []).append(e)
    return groups


def _generic_suffix(params: Optional[List[str]]) -> str:
    return f"~{', '.join(params)}~" if params else ""


def _param_list(params: Optional[List[Parameter]]) -> str:
    return ", ".join(f"{p.name}: {p.type}" for p in params or [])


def _member_line(m: Member, owner: str) -> str:
    symbol = VISIBILITY_MAP.get(m.visibility, "+")
    name = m.name + _generic_suffix(m.type_parameters)
    static_mark = STATIC_MARK if m.is_static else ""
    abstract_mark = ABSTRACT_MARK if m.is_abstract else ""

    if m.kind == "property":
        type_part = f": {m.type}" if m.type else ""
        return f"{symbol}{name}{static_mark}{abstract_mark}{type_part}"

    params = _param_list(m.parameters)
    if m.kind == "constructor":
        return f"{symbol}{owner}({params}){abstract_mark}"

    prefix = {"getter": "get ", "setter": "set "}.get(m.kind, "")
    return_part = f": {m.return_type}" if m.return_type else ""
    return f"{symbol}{prefix}{name}{static_mark}({params}){abstract_mark}{return_part}"


def _entity_lines(e: Entity, indent: str) -> List[str]:
    lines = [f"{indent}class {e.name}{_generic_suffix(e.type_parameters)} {{"]
    stereotype = STEREOTYPES.get(e.kind)
    if stereotype:
        lines.append(f"{indent}  {stereotype}")
    if e.is_abstract:
        lines.append(f"{indent}  <<abstract>>")
    for m in e.members:
        lines.append(f"{indent}  {_member_line(m, e.name)}")
    lines.append(f"{indent}}}")
    return lines


def _cardinality(value: Optional[str]) -> str:
    return f' "{value}"' if value else ""


def relation_line(source: str, rel: Relation) -> str:
    arrow = ARROW_MAP[rel.type]
    if rel.type in ("inheritance", "implementation"):
        # Mermaid draws these from the parent side
        return f"  {rel.target} {arrow} {source}"
    left = _cardinality(rel.source_cardinality)
    right = _cardinality(rel.target_cardinality)
    label = f" : {rel.label}" if rel.label else ""
    return f"  {source}{left} {arrow}{right} {rel.target}{label}"


# ======================================================================
#  CLASS DIAGRAM GENERATION
# ======================================================================

def generate_class_diagram(entities: List[Entity]) -> str:
    """
    Finalized entities -> Mermaid classDiagram text.
    Namespaces in first-seen order, entities in declaration order, then one
    line per relation in entity order. Deterministic for identical input.
    """
    lines: List[str] = [DIAGRAM_HEADER]

    for ns, group in _group_by_namespace(entities).items():
        if ns:
            lines.append(f"  namespace {ns} {{")
            for e in group:
                lines.extend(_entity_lines(e, "    "))
            lines.append("  }")
        else:
            for e in group:
                lines.extend(_entity_lines(e, "  "))

    for e in entities:
        for rel in e.relations:
            lines.append(relation_line(e.name, rel))

    return "\n".join(lines)


# ======================================================================
#  README GENERATION
# ======================================================================

def generate_readme(title: str, entities: List[Entity]) -> str:
    """Markdown page embedding the class diagram in a mermaid fence."""
    diagram = generate_class_diagram(entities)
    return f"# {title}\n\n```mermaid\n{diagram}\n```\n"
