import networkx as nx # type: ignore
from typing import Any, Dict, List

from umlgen.cir.model import Entity

class CIRGraph:
    """
    Typed multi-graph view of a finalized entity set.
    Nodes: Entity, Member
    Edges: HAS_MEMBER, INHERITANCE, IMPLEMENTATION, ASSOCIATION,
           COMPOSITION, AGGREGATION, DEPENDENCY
    """
    def __init__(self) -> None:
        self.g = nx.MultiDiGraph()

    def add_node(self, node_id: str, kind: str, payload: Any) -> None:
        self.g.add_node(node_id, kind=kind, payload=payload)

    def add_edge(self, src: str, dst: str, etype: str, **attrs: Any) -> None:
        self.g.add_edge(src, dst, etype=etype, **attrs)

    @staticmethod
    def entity_id(e: Entity) -> str:
        return f"entity:{e.namespace}.{e.name}" if e.namespace else f"entity:{e.name}"

    @classmethod
    def from_entities(cls, entities: List[Entity]) -> "CIRGraph":
        graph = cls()
        # relation targets are names; the last entity with a name wins
        id_by_name: Dict[str, str] = {}

        for e in entities:
            eid = cls.entity_id(e)
            graph.add_node(eid, "Entity", {
                "name": e.name,
                "kind": e.kind,
                "namespace": e.namespace,
                "is_abstract": e.is_abstract,
                "type_parameters": list(e.type_parameters),
            })
            id_by_name[e.name] = eid
            for m in e.members:
                mid = f"member:{eid[len('entity:'):]}:{m.kind}:{m.name}"
                graph.add_node(mid, "Member", m)
                graph.add_edge(eid, mid, "HAS_MEMBER")

        for e in entities:
            src = cls.entity_id(e)
            for r in e.relations:
                dst = id_by_name.get(r.target)
                if dst is None:
                    continue
                graph.add_edge(
                    src,
                    dst,
                    r.type.upper(),
                    label=r.label,
                    source_cardinality=r.source_cardinality,
                    target_cardinality=r.target_cardinality,
                )
        return graph

    def to_debug_json(self) -> Dict[str, Any]:
        """
        Convert graph to JSON-like dict for debugging / API responses.
        """
        nodes = []
        for node_id, data in self.g.nodes(data=True):
            payload = data.get("payload")
            if hasattr(payload, "__dict__"):
                attrs = dict(payload.__dict__)
                if attrs.get("parameters"):
                    attrs["parameters"] = [dict(p.__dict__) for p in attrs["parameters"]]
            else:
                attrs = dict(payload) if isinstance(payload, dict) else {}
            nodes.append({
                "id": node_id,
                "kind": data.get("kind"),
                "attrs": attrs,
            })

        edges = []
        for src, dst, data in self.g.edges(data=True):
            edge = {
                "src": src,
                "dst": dst,
                "type": data.get("etype"),
            }
            extra = {k: v for k, v in data.items() if k != "etype" and v is not None}
            if extra:
                edge["attrs"] = extra
            edges.append(edge)

        return {"nodes": nodes, "edges": edges}
