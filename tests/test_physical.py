"""Tests for the physical mapper, validators and logical layer."""

from semdown.compiler import compile_text
from semdown.graph import SemanticType
from semdown.physical import build_logical_schema, map_physical, validate_physical


def test_tables_and_columns(sales_graph):
    """Test one table per entity with synthesized keys and foreign key columns."""
    schema = map_physical(sales_graph)
    assert list(schema.tables) == ["physical_person", "physical_customer", "physical_order"]

    order = schema.tables["physical_order"]
    assert [c.name for c in order.columns] == ["order_id", "order_date", "customer_id"]
    assert order.primary_key == ["order_id"]
    (fk,) = order.foreign_keys
    assert (fk.column, fk.ref_table, fk.ref_column) == ("customer_id", "physical_customer", "customer_id")
    assert not order.get_column("order_date").nullable


def test_identifying_attribute_is_primary_key(order_graph):
    """Test that a declared identifier becomes the primary key column."""
    table = map_physical(order_graph).tables["physical_order"]
    assert table.primary_key == ["order_number"]
    assert [c.name for c in table.columns] == ["order_number", "order_date", "total_amount", "status"]
    assert table.get_column("total_amount").semantic_type == SemanticType.NUMBER


def test_derived_attributes_are_not_stored(sales_graph):
    """Test that derived attributes never become physical columns."""
    schema = map_physical(sales_graph)
    names = {c.name for t in schema.tables.values() for c in t.columns}
    assert "customer_zipcode" not in names


def test_one_to_many_adds_key_to_child():
    """Test that `A has one or more B` puts A's key on B."""
    graph = compile_text(
        "**Customer**\n- Customer is identified by its Customer Number (Number).\n"
        "- Customer has one or more Orders.\n"
        "**Order**\n- Order has an Order Date.\n"
    )
    order = map_physical(graph).tables["physical_order"]
    column = order.get_column("customer_id")
    assert column.semantic_type == SemanticType.NUMBER
    assert order.foreign_keys[0].ref_column == "customer_number"


def _codes(text):
    graph = compile_text(text)
    return [issue.code for issue in validate_physical(graph, map_physical(graph))]


def test_validate_physical(sales_graph):
    """Test that a model that maps cleanly reports no issues."""
    assert validate_physical(sales_graph, map_physical(sales_graph)) == []


def test_shared_foreign_key_backs_both_declarations():
    """Test that a link declared from both sides maps to one foreign key."""
    graph = compile_text(
        "**Customer**\n- Customer has one or more Orders.\n"
        "**Order**\n- Order has a Customer.\n"
    )
    schema = map_physical(graph)
    (fk,) = schema.tables["physical_order"].foreign_keys
    assert (fk.relationship, fk.shared_by) == (1, [0])
    assert schema.foreign_key_for(0) is fk
    assert schema.referencing_table(0).name == "physical_order"
    assert validate_physical(graph, schema) == []


def test_validate_suffixed_table_name():
    """Test that entities whose table names collide are reported."""
    graph = compile_text(
        "**OrderLine**\n- OrderLine has a Name.\n**Order Line**\n- Order Line has a Name.\n"
    )
    issues = validate_physical(graph, map_physical(graph))
    assert [(i.code, i.location) for i in issues] == [("TABLE_NAME_SUFFIXED", "physical_order_line_2")]


def test_validate_unstored_attribute_and_unsourced_column():
    """Test an attribute whose column name is taken and the derived column it leaves without a source."""
    codes = _codes(
        "**Customer**\n- Customer has a Zip Code.\n- Customer has a ZipCode.\n"
        "**Order**\n- Order has a Customer.\n"
    )
    assert codes == ["ATTRIBUTE_NOT_STORED", "DERIVED_COLUMN_UNSOURCED"]


def test_validate_foreign_key_on_attribute_column():
    """Test a reference that reuses a declared attribute column."""
    codes = _codes(
        "**Order**\n- Order has a Customer Id.\n- Order has a Customer.\n"
        "**Customer**\n- Customer has a Name.\n"
    )
    assert "FK_ON_ATTRIBUTE_COLUMN" in codes


def test_validate_shared_foreign_key_column():
    """Test two references that land on one column."""
    codes = _codes(
        "**OrderLine**\n- OrderLine has a Name.\n**Order Line**\n- Order Line has a Note.\n"
        "**Invoice**\n- Invoice has an OrderLine.\n- Invoice has an Order Line.\n"
    )
    assert "FK_COLUMN_SHARED" in codes
    assert "TABLE_NAME_SUFFIXED" in codes


def test_validate_skipped_join():
    """Test that a derivation path with no foreign key is reported."""
    graph = compile_text("**Customer**\n- Customer has a Name.\n**Order**\n- Order has a Customer.\n")
    physical = map_physical(graph)
    physical.tables["physical_order"].foreign_keys.clear()
    issues = validate_physical(graph, physical)
    assert [i.code for i in issues] == ["JOIN_SKIPPED", "DERIVED_COLUMN_UNSOURCED"]
    assert issues[0].stage == "LogicalViews"


def test_derived_column_clash_is_not_resolved():
    """Test that a derived attribute whose column name is taken stays out of the view."""
    graph = compile_text("**Customer**\n- Customer has an Id.\n**Order**\n- Order has a Customer.\n")
    physical = map_physical(graph)
    view = build_logical_schema(graph, physical).views["logical_order"]

    (diag,) = view.diagnostics
    assert diag.code == "DerivedColumnClash"
    assert diag.details["column"] == "customer_id"
    assert view.get_column("Customer Id") is None
    assert view.get_column("customer_id").attribute == "Customer"
    issues = validate_physical(graph, physical)
    assert [(i.code, i.location) for i in issues] == [("DERIVED_COLUMN_CLASH", "logical_order.customer_id")]


def test_logical_view_joins(sales_graph):
    """Test derived columns and the LEFT JOIN chain of the Order view."""
    logical = build_logical_schema(sales_graph, map_physical(sales_graph))
    view = logical.views["logical_order"]
    assert [j.table for j in view.joins] == ["physical_customer", "physical_person"]
    assert [(j.alias, j.parent_alias) for j in view.joins] == [("t1", "t0"), ("t2", "t1")]

    zipcode = view.get_column("Customer Zipcode")
    assert (zipcode.name, zipcode.source_alias, zipcode.source_column) == ("customer_zipcode", "t1", "zipcode")
    person_name = view.get_column("customer_person_name")
    assert (person_name.source_alias, person_name.source_column) == ("t2", "name")
    assert view.key_column == "order_id"
