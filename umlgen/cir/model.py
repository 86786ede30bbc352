from dataclasses import dataclass, field
from typing import List, Literal, Optional

Visibility = Literal["public", "protected", "private"]
MemberKind = Literal["property", "method", "getter", "setter", "constructor"]
EntityKind = Literal["class", "interface", "enum", "type"]
RelationType = Literal[
    "inheritance",
    "implementation",
    "association",
    "composition",
    "aggregation",
    "dependency",
]

@dataclass
class Parameter:
    name: str
    type: str                 # display type text (e.g. Options, object, Item[])

@dataclass
class Member:
    name: str
    kind: MemberKind
    visibility: Visibility = "public"
    type: Optional[str] = None            # properties
    return_type: Optional[str] = None     # methods / getters
    parameters: Optional[List[Parameter]] = None
    is_static: bool = False
    is_abstract: bool = False
    type_parameters: Optional[List[str]] = None

@dataclass
class Relation:
    type: RelationType
    target: str               # entity name, source is the owning entity
    label: Optional[str] = None
    source_cardinality: Optional[str] = None
    target_cardinality: Optional[str] = None  # "1" or "0..*"

@dataclass
class Entity:
    name: str
    kind: EntityKind
    is_abstract: bool = False
    type_parameters: List[str] = field(default_factory=list)
    extends: List[str] = field(default_factory=list)
    implements: List[str] = field(default_factory=list)
    namespace: Optional[str] = None
    members: List[Member] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
