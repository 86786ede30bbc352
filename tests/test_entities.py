import logging

from umlgen.adapters.entities import EntityAdapter, parse_header
from umlgen.adapters.symbols import SourceUnit, Symbol, SymbolKind, unit_from_lsp
from umlgen.service import generate_from_units

from conftest import lsp_symbol


def _by_name(entities):
    return {e.name: e for e in entities}


def test_sample_entities(sample_unit):
    entities = EntityAdapter().build_entities(sample_unit)

    # helper() is a function: no entity
    assert [e.name for e in entities] == [
        "Greeter", "Address", "Role", "Person", "Employee", "Department", "Repository",
    ]
    assert all(e.namespace == "fixtures" for e in entities)

    ents = _by_name(entities)
    assert ents["Greeter"].kind == "interface"
    assert ents["Address"].kind == "type"
    assert ents["Role"].kind == "enum"
    assert [m.name for m in ents["Role"].members] == ["Admin", "User"]


def test_class_header_and_members(sample_unit):
    ents = _by_name(EntityAdapter().build_entities(sample_unit))

    person = ents["Person"]
    assert person.is_abstract
    assert person.implements == ["Greeter"]
    assert person.extends == []
    assert [(m.kind, m.name) for m in person.members] == [
        ("property", "id"),
        ("property", "age"),
        ("property", "_name"),
        ("property", "address"),
        ("constructor", "constructor"),
        ("getter", "name"),
        ("setter", "name"),
        ("method", "calculateSalary"),
        ("method", "greet"),
    ]

    employee = ents["Employee"]
    assert employee.extends == ["Person"]
    assert not employee.is_abstract

    repo = ents["Repository"]
    assert repo.type_parameters == ["T"]
    count = repo.members[0]
    assert (count.name, count.type, count.is_static) == ("count", "number", True)


def test_candidate_relations_are_not_filtered_yet(sample_unit):
    ents = _by_name(EntityAdapter().build_entities(sample_unit))
    targets = [r.target for r in ents["Repository"].relations]
    # generic parameter T is not an entity but is still a candidate here
    assert "T" in targets


def test_type_alias_members(destruct_unit):
    ents = _by_name(EntityAdapter().build_entities(destruct_unit))
    options = ents["Options"]
    assert options.kind == "type"
    assert [(m.name, m.type, m.visibility) for m in options.members] == [
        ("foo", "string", "public"),
        ("bar", "number", "public"),
    ]


def test_type_alias_without_children_reads_body():
    text = "type Point = { x: number; owner: Owner }\n"
    unit = unit_from_lsp("p.ts", text, [lsp_symbol("Point", SymbolKind.Variable, 0)])
    (point,) = EntityAdapter().build_entities(unit)
    assert point.kind == "type"
    assert [(m.name, m.type) for m in point.members] == [("x", "number"), ("owner", "Owner")]
    assert [(r.type, r.target, r.label) for r in point.relations] == [("association", "Owner", "owner")]


def test_non_object_alias_is_ignored():
    text = "type Id = string;\nconst answer = 42;\n"
    unit = unit_from_lsp("a.ts", text, [
        lsp_symbol("Id", SymbolKind.Variable, 0),
        lsp_symbol("answer", SymbolKind.Constant, 1),
    ])
    assert EntityAdapter().build_entities(unit) == []


def test_generic_type_alias():
    text = "type Box<T> = {\n  value: T;\n}\n"
    unit = unit_from_lsp("b.ts", text, [
        lsp_symbol("Box", SymbolKind.Variable, 0, 2, [lsp_symbol("value", SymbolKind.Property, 1)]),
    ])
    (box,) = EntityAdapter().build_entities(unit)
    assert box.type_parameters == ["T"]


def test_interface_extends_list():
    text = "interface Admin<T> extends User, Auditable<T> {\n}\n"
    unit = unit_from_lsp("i.ts", text, [lsp_symbol("Admin", SymbolKind.Interface, 0, 1)])
    (admin,) = EntityAdapter().build_entities(unit)
    assert admin.type_parameters == ["T"]
    assert admin.extends == ["User", "Auditable"]
    assert admin.implements == []


def test_class_keeps_single_base():
    params, extends, implements, is_abstract = parse_header(
        "export class Manager extends Employee implements Greeter, Payable {", "Manager"
    )
    assert params == []
    assert extends == ["Employee"]
    assert implements == ["Greeter", "Payable"]
    assert not is_abstract


def test_csharp_base_list():
    params, extends, implements, _ = parse_header(
        "public class OrderService<T> : ServiceBase, IOrderService, IDisposable where T : class", "OrderService"
    )
    assert params == ["T"]
    assert extends == ["ServiceBase"]
    assert implements == ["IOrderService", "IDisposable"]

    _, extends, implements, _ = parse_header("public class Repo : IRepo", "Repo")
    assert extends == []
    assert implements == ["IRepo"]


def test_container_symbols_are_walked():
    text = "namespace Shop {\n  export class Cart {\n    items: Item[];\n  }\n}\n"
    unit = unit_from_lsp("c.ts", text, [
        lsp_symbol("Shop", SymbolKind.Namespace, 0, 4, [
            lsp_symbol("Cart", SymbolKind.Class, 1, 3, [lsp_symbol("items", SymbolKind.Property, 2)]),
        ]),
    ], namespace="shop")
    (cart,) = EntityAdapter().build_entities(unit)
    assert cart.name == "Cart"
    assert cart.namespace == "shop"
    assert cart.relations[0].type == "aggregation"


def test_units_keep_order():
    adapter = EntityAdapter()
    a = unit_from_lsp("a.ts", "class A {}\n", [lsp_symbol("A", SymbolKind.Class, 0)])
    b = unit_from_lsp("b.ts", "class B {}\n", [lsp_symbol("B", SymbolKind.Class, 0)])
    assert [e.name for e in adapter.build_entities_for_units([b, a])] == ["B", "A"]


def test_empty_unit():
    assert EntityAdapter().build_entities(SourceUnit(path="x.ts", text="")) == []


DECORATED = """\
@Component({
  selector: 'app-foo',
  template: '<p>{{ item }}</p>',
})
export class Foo extends Base implements Bar {
  @Input()
  item: Item;
}
class Base {}
interface Bar {}
class Item {}
"""


def _decorated_unit():
    return unit_from_lsp("foo.ts", DECORATED, [
        lsp_symbol("Foo", SymbolKind.Class, 0, 7, [
            lsp_symbol("item", SymbolKind.Property, 5, 6),
        ]),
        lsp_symbol("Base", SymbolKind.Class, 8),
        lsp_symbol("Bar", SymbolKind.Interface, 9),
        lsp_symbol("Item", SymbolKind.Class, 10),
    ])


def test_decorated_class_keeps_its_header():
    foo = EntityAdapter().build_entities(_decorated_unit())[0]
    assert foo.extends == ["Base"]
    assert foo.implements == ["Bar"]
    item = foo.members[0]
    assert (item.name, item.type) == ("item", "Item")
    assert [(r.type, r.target) for r in foo.relations] == [("composition", "Item")]


def test_decorated_class_diagram():
    text = generate_from_units([_decorated_unit()])
    assert "  Base <|-- Foo" in text
    assert "  Bar <|.. Foo" in text
    assert '  Foo "1" *-- "1" Item : item' in text


def test_csharp_attribute_lines_are_skipped():
    text = "[Serializable]\n[Table(\"orders\")]\npublic class Order : EntityBase, IOrder\n{\n}\n"
    unit = unit_from_lsp("Order.cs", text, [lsp_symbol("Order", SymbolKind.Class, 0, 4)])
    (order,) = EntityAdapter().build_entities(unit)
    assert order.extends == ["EntityBase"]
    assert order.implements == ["IOrder"]


def test_failing_unit_does_not_stop_the_build(caplog):
    broken = SourceUnit(
        path="broken.ts",
        text="class A {\n}\n",
        symbols=[Symbol(name="A", kind=SymbolKind.Class, start_line=0, end_line=1, children=[None])],
    )
    good = unit_from_lsp("b.ts", "class B {}\n", [lsp_symbol("B", SymbolKind.Class, 0)])

    with caplog.at_level(logging.WARNING, logger="umlgen.adapters.entities"):
        entities = EntityAdapter().build_entities_for_units([broken, good])

    assert [e.name for e in entities] == ["B"]
    assert "broken.ts" in caplog.text
