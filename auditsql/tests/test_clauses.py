import pytest

from auditsql.domain.clauses import build_insert_columns, build_set_clause, build_where_clause
from auditsql.domain.specs import BoundParameter, ParamType, normalize_condition, normalize_value
from auditsql.errors import InvalidArgument


def test_bare_and_structured_values_normalize_alike():
    assert normalize_value(5) == (5, None)
    assert normalize_value({"value": 5}) == (5, None)
    assert normalize_value({"value": 5, "datatype": ParamType.INT}) == (5, ParamType.INT)


def test_structured_value_requires_value_key():
    with pytest.raises(InvalidArgument):
        normalize_value({"datatype": ParamType.STR})


@pytest.mark.parametrize("bad", ["2", 1.5, True])
def test_datatype_must_be_integer(bad):
    with pytest.raises(InvalidArgument):
        normalize_value({"value": "x", "datatype": bad})


def test_condition_operator_defaults_and_uppercases():
    assert normalize_condition("name", "Delta").operator == "="
    assert normalize_condition("name", {"operator": "like", "value": "D%"}).operator == "LIKE"


def test_insert_columns():
    cols, placeholders, bindings = build_insert_columns(
        {"name": "Delta", "quantity": {"value": 5, "datatype": ParamType.INT}}
    )
    assert cols == "name, quantity"
    assert placeholders == ":ins_0, :ins_1"
    assert bindings == [
        BoundParameter("ins_0", "Delta", None),
        BoundParameter("ins_1", 5, ParamType.INT),
    ]


def test_set_clause():
    clause, bindings = build_set_clause({"quantity": 7, "remarks": None})
    assert clause == "quantity = :set_0, remarks = :set_1"
    assert [b.placeholder for b in bindings] == ["set_0", "set_1"]
    assert bindings[1].value is None


def test_where_clause_joins_with_and():
    clause, bindings = build_where_clause({"id": 3, "quantity": {"operator": ">=", "value": 10}})
    assert clause == "id = :where_0 AND quantity >= :where_1"
    assert [(b.placeholder, b.value) for b in bindings] == [("where_0", 3), ("where_1", 10)]


def test_where_null_becomes_is_null_without_binding():
    clause, bindings = build_where_clause({"remarks": None})
    assert clause == "remarks IS NULL"
    assert bindings == []

    clause, bindings = build_where_clause({"remarks": {"operator": "!=", "value": None}})
    assert clause == "remarks IS NOT NULL"
    assert bindings == []

    clause, _ = build_where_clause({"remarks": {"operator": "<>", "value": None}})
    assert clause == "remarks IS NOT NULL"


def test_null_check_does_not_consume_placeholder():
    clause, bindings = build_where_clause({"remarks": None, "name": "Delta"})
    assert clause == "remarks IS NULL AND name = :where_0"
    assert [b.placeholder for b in bindings] == ["where_0"]


def test_null_with_other_operator_is_bound():
    clause, bindings = build_where_clause({"quantity": {"operator": ">", "value": None}})
    assert clause == "quantity > :where_0"
    assert bindings == [BoundParameter("where_0", None, None)]


@pytest.mark.parametrize("spec", [{"operator": "!="}, {"operator": "="}, {"datatype": ParamType.STR}])
def test_condition_mapping_requires_value_key(spec):
    with pytest.raises(InvalidArgument):
        build_where_clause({"name": spec})


def test_explicit_null_condition_still_allowed():
    clause, _ = build_where_clause({"name": {"operator": "!=", "value": None}})
    assert clause == "name IS NOT NULL"


@pytest.mark.parametrize("op", ["", 0, False])
def test_falsy_operator_rejected(op):
    with pytest.raises(InvalidArgument):
        build_where_clause({"id": {"operator": op, "value": 1}})


def test_where_rejects_in_operator():
    with pytest.raises(InvalidArgument):
        build_where_clause({"id": {"operator": "IN", "value": 1}})


@pytest.mark.parametrize(
    "builder", [build_set_clause, build_where_clause, lambda v: build_insert_columns(v)]
)
def test_bad_column_names_rejected(builder):
    with pytest.raises(InvalidArgument):
        builder({"name; DROP TABLE stock": 1})
    with pytest.raises(InvalidArgument):
        builder({3: 1})


def test_empty_mapping_is_not_rejected_by_builder():
    assert build_set_clause({}) == ("", [])
    assert build_where_clause({}) == ("", [])
    assert build_insert_columns({}) == ("", "", [])


def test_set_and_where_placeholders_never_collide():
    _, set_b = build_set_clause({"a": 1, "b": 2})
    _, where_b = build_where_clause({"a": 1, "b": 2})
    names = [b.placeholder for b in set_b + where_b]
    assert len(names) == len(set(names))
