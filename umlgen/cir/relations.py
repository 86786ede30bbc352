from __future__ import annotations

from typing import Dict, List

from umlgen.cir.model import Entity, Relation

# Lower rank wins when several relations share (owner, target)
RELATION_PRIORITY: Dict[str, int] = {
    "inheritance": 0,
    "implementation": 1,
    "composition": 2,
    "aggregation": 3,
    "association": 4,
    "dependency": 5,
}


def _dedupe(relations: List[Relation]) -> List[Relation]:
    """
    Keep one relation per target: the highest-priority type, first one on
    ties. Survivors keep the position of the first relation to their target.
    """
    best: Dict[str, Relation] = {}
    order: List[str] = []
    for rel in relations:
        current = best.get(rel.target)
        if current is None:
            best[rel.target] = rel
            order.append(rel.target)
        elif RELATION_PRIORITY[rel.type] < RELATION_PRIORITY[current.type]:
            best[rel.target] = rel
    return [best[t] for t in order]


def finalize_relations(entities: List[Entity]) -> List[Entity]:
    """
    Run once over the complete entity set:
      1. extends / implements -> inheritance / implementation relations
      2. drop relations whose target is not a known entity name
      3. one relation per (owner, target), by RELATION_PRIORITY

    Entity names are matched as a set: when two entities share a name, a
    relation to that name is kept (once per owner) and both blocks render.
    """
    names = {e.name for e in entities}

    for e in entities:
        candidates = list(e.relations)
        candidates.extend(Relation(type="inheritance", target=p) for p in e.extends)
        candidates.extend(Relation(type="implementation", target=i) for i in e.implements)

        known = [r for r in candidates if r.target in names]
        e.relations = _dedupe(known)

    return entities
