"""Tests for building and rendering queries."""

import graphql
import pytest

from gql_getit.core.errors import DuplicateKeyError, QueryArgumentError
from gql_getit.core.query import Query
from gql_getit.core.selection import Field, NestedFields, SubQuery
from gql_getit.core.values import GraphQLEnum


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def owner_query():
    """A sub-select with alias, comment and parameters."""
    return (
        Query()
        .name("owner")
        .alias("primaryOwner")
        .comment("the first owner")
        .where("active", True)
        .select("first", "last")
    )


@pytest.fixture
def dealer_query():
    """A top-level query with parameters and a nested field."""
    return (
        Query()
        .name("NearestDealer")
        .where("zip", "91403")
        .where("make", "aston martin")
        .select("distance", {"dealer": ["name", "phone"]})
    )


# =============================================================================
# Mutators
# =============================================================================


class TestMutators:
    """Tests for the fluent setters."""

    def test_mutators_return_same_instance(self):
        query = Query()
        assert query.name("a") is query
        assert query.alias("b") is query
        assert query.comment("c") is query
        assert query.select("d") is query
        assert query.where("e", 1) is query
        assert query.batch(Query().name("f").select("g")) is query
        assert query.raw("{ h }") is query
        assert query.clear() is query

    def test_setters_overwrite(self):
        query = Query().name("first").name("second").alias("x").alias("y")
        assert query.query_name == "second"
        assert query.alias_name == "y"

    def test_new_query_is_empty(self):
        query = Query()
        assert query.query_name is None
        assert query.alias_name is None
        assert query.query_comment is None
        assert query.raw_query is None
        assert query.select_list == []
        assert query.where_map == {}
        assert query.batch_list == []
        assert query.errors == []

    def test_clear_resets_everything(self, dealer_query):
        """Test that clear() empties every field so the query can be reused."""
        dealer_query.alias("d").comment("c").raw("{ x }").batch(Query().name("b").select("y"))
        dealer_query.clear()

        assert dealer_query.query_name is None
        assert dealer_query.alias_name is None
        assert dealer_query.query_comment is None
        assert dealer_query.raw_query is None
        assert dealer_query.select_list == []
        assert dealer_query.where_map == {}
        assert dealer_query.batch_list == []

        # Reusable after clearing
        dealer_query.where("zip", "1").name("again").select("id")
        assert str(dealer_query) == 'again(zip: "1") {\n  id\n}'

    def test_model_properties_are_copies(self, dealer_query):
        dealer_query.select_list.clear()
        dealer_query.where_map.clear()
        assert len(dealer_query.select_list) == 2
        assert len(dealer_query.where_map) == 2


class TestSelect:
    """Tests for select()."""

    def test_strings_become_fields_in_order(self):
        query = Query().select("c", "a").select("b")
        assert query.select_list == [Field("c"), Field("a"), Field("b")]

    def test_mapping_becomes_nested_fields(self):
        query = Query().select({"owner": ["first", "last"]})
        assert query.select_list == [NestedFields("owner", ("first", "last"))]

    def test_lists_are_flattened(self):
        query = Query().select(["a", ["b", "c"]], "d")
        assert [item.name for item in query.select_list] == ["a", "b", "c", "d"]

    def test_query_becomes_sub_query(self, owner_query):
        query = Query().name("car").select(owner_query)
        assert isinstance(query.select_list[0], SubQuery)
        assert query.sub_selects == [owner_query]

    def test_unsupported_item_type(self):
        with pytest.raises(QueryArgumentError, match="int"):
            Query().select(42)

    def test_unsupported_item_leaves_query_unchanged(self):
        query = Query().select("id")
        with pytest.raises(QueryArgumentError):
            query.select("name", 3.5)
        assert query.select_list == [Field("id")]

    def test_empty_sub_query_rejected(self):
        with pytest.raises(QueryArgumentError, match="nothing selected"):
            Query().name("car").select(Query().name("owner"))

    def test_empty_sub_query_inside_nested_field_rejected(self):
        with pytest.raises(QueryArgumentError):
            Query().select({"owner": [Query().name("address")]})

    def test_raw_sub_query_accepted(self):
        sub = Query().raw("owner { id }")
        query = Query().name("car").select(sub)
        assert query.sub_selects == [sub]

    def test_select_into_itself_rejected(self):
        query = Query().name("car").select("id")
        with pytest.raises(QueryArgumentError):
            query.select(query)


class TestWhere:
    """Tests for where()."""

    def test_key_value(self):
        query = Query().where("id", 3).where("name", "x")
        assert query.where_map == {"id": 3, "name": "x"}

    def test_mapping(self):
        query = Query().where({"id": 3, "name": "x"})
        assert query.where_map == {"id": 3, "name": "x"}

    def test_none_is_a_value(self):
        query = Query().where("parent", None)
        assert query.where_map == {"parent": None}

    def test_duplicate_key_rejected(self):
        query = Query().where("id", 3)
        with pytest.raises(DuplicateKeyError) as exc_info:
            query.where("id", 4)
        assert exc_info.value.key == "id"
        assert "id" in str(exc_info.value)

    def test_duplicate_key_rejected_with_equal_value(self):
        query = Query().where("id", 3)
        with pytest.raises(DuplicateKeyError):
            query.where("id", 3)

    def test_duplicate_key_is_a_key_error(self):
        with pytest.raises(KeyError):
            Query().where("id", 1).where({"id": 1})

    def test_mapping_is_atomic(self):
        """Test that a rejected entry means none of the mapping is added."""
        query = Query().where("b", 1)
        with pytest.raises(DuplicateKeyError):
            query.where({"a": 1, "b": 2, "c": 3})
        assert query.where_map == {"b": 1}

    def test_empty_key_rejected(self):
        with pytest.raises(QueryArgumentError):
            Query().where("", 1)

    def test_unrenderable_value_rejected(self):
        with pytest.raises(QueryArgumentError):
            Query().where("thing", object())

    def test_single_argument_must_be_mapping(self):
        with pytest.raises(QueryArgumentError):
            Query().where("id")

    def test_non_string_key_with_value_rejected(self):
        with pytest.raises(QueryArgumentError):
            Query().where({"id": 1}, 2)


class TestBatch:
    """Tests for batch()."""

    def test_batch_list(self):
        other = Query().name("b").select("y")
        query = Query().name("a").select("x").batch(other)
        assert query.batch_list == [other]

    def test_batch_with_itself_rejected(self):
        query = Query().name("a").select("x")
        with pytest.raises(QueryArgumentError):
            query.batch(query)


# =============================================================================
# Rendering
# =============================================================================


class TestRender:
    """Tests for the rendered query text."""

    def test_simple(self):
        assert str(Query().name("users").select("id", "name")) == "users {\n  id\n  name\n}"

    def test_parameters_and_nested_fields(self, dealer_query):
        assert str(dealer_query) == (
            'NearestDealer(zip: "91403", make: "aston martin") {\n'
            "  distance\n"
            "  dealer {\n"
            "    name\n"
            "    phone\n"
            "  }\n"
            "}"
        )

    def test_alias_header(self):
        query = Query().alias("a").name("b").select("id")
        assert str(query) == "a: b {\n  id\n}"
        assert query.result_name() == "a"

    def test_name_only_resolves_to_name(self):
        query = Query().name("b").select("id")
        assert str(query) == "b {\n  id\n}"
        assert query.result_name() == "b"

    def test_alias_only_used_as_field_name(self):
        assert str(Query().alias("users").select("id")) == "users {\n  id\n}"

    def test_default_name(self):
        query = Query().select("id")
        assert query.render(default_name="viewer") == "viewer {\n  id\n}"

    def test_missing_name_rejected(self):
        with pytest.raises(QueryArgumentError, match="name"):
            Query().select("id").render()

    def test_multi_line_comment(self):
        query = Query().name("users").comment("line1\nline2").select("id")
        assert str(query) == "users {\n  # line1\n  # line2\n  id\n}"

    def test_blank_comment_line(self):
        query = Query().name("users").comment("top\n\nbottom").select("id")
        assert str(query).splitlines()[1:4] == ["  # top", "  #", "  # bottom"]

    def test_selection_order_preserved(self):
        query = Query().name("q").select("z", "a").select({"m": ["y", "b"]}, "c")
        assert str(query) == "q {\n  z\n  a\n  m {\n    y\n    b\n  }\n  c\n}"

    def test_sub_query(self, owner_query):
        query = Query().name("car").where("vin", "X1").select("id", owner_query)
        assert str(query) == (
            'car(vin: "X1") {\n'
            "  id\n"
            "  primaryOwner: owner(active: true) {\n"
            "    # the first owner\n"
            "    first\n"
            "    last\n"
            "  }\n"
            "}"
        )

    def test_sub_query_inside_nested_field(self, owner_query):
        query = Query().name("car").select({"registration": ["plate", owner_query]})
        lines = str(query).splitlines()
        assert lines[1] == "  registration {"
        assert lines[3] == "    primaryOwner: owner(active: true) {"

    def test_sub_query_needs_its_own_name(self):
        sub = Query().select("first")
        query = Query().name("car").select(sub)
        with pytest.raises(QueryArgumentError):
            query.render(default_name="ignored")

    def test_sub_query_mutated_after_attach(self):
        """Test that sub-queries are held by reference."""
        sub = Query().name("owner").select("first")
        query = Query().name("car").select(sub)
        sub.select("last")
        assert "    last" in str(query)

    def test_empty_selection_rejected(self):
        with pytest.raises(QueryArgumentError, match="nothing selected"):
            Query().name("users").render()

    def test_enum_parameter(self):
        query = Query().name("users").where("status", GraphQLEnum("ACTIVE")).select("id")
        assert str(query).startswith("users(status: ACTIVE) {")

    def test_batch(self):
        q1 = Query().name("a").select("x")
        q2 = Query().name("b").where("id", 2).select("y")
        assert str(q1.batch(q2)) == "a {\n  x\n}\nb(id: 2) {\n  y\n}"

    def test_batches_render_in_order(self):
        query = Query().name("first").select("id")
        for alias in ("second", "third"):
            query.batch(Query().name("users").alias(alias).select("id"))
        headers = [line for line in str(query).splitlines() if line.endswith("{")]
        assert headers == ["first {", "second: users {", "third: users {"]

    def test_batch_does_not_change_other_query(self):
        q1 = Query().name("a").select("x")
        q2 = Query().name("b").select("y")
        q1.batch(q2)
        assert str(q2) == "b {\n  y\n}"

    def test_sub_query_batches_rendered_at_top_level(self):
        """Test that a sub-query's batches become top-level blocks, not nested ones."""
        owner = Query().name("owner").select("first").batch(Query().name("other").select("x"))
        parent = Query().name("dealers").select("id", owner)

        assert str(parent) == (
            "dealers {\n"
            "  id\n"
            "  owner {\n"
            "    first\n"
            "  }\n"
            "}\n"
            "other {\n"
            "  x\n"
            "}"
        )
        fields = parent.parse().definitions[0].selection_set.selections
        assert [f.name.value for f in fields] == ["dealers", "other"]

    def test_own_batches_before_sub_query_batches(self):
        owner = Query().name("owner").select("first").batch(Query().name("nested").select("x"))
        parent = (
            Query().name("dealers").select(owner).batch(Query().name("sibling").select("y"))
        )
        headers = [line for line in str(parent).splitlines() if line.endswith("{") and not line.startswith(" ")]
        assert headers == ["dealers {", "sibling {", "nested {"]

    def test_sub_query_batches_render_alone(self):
        owner = Query().name("owner").select("first").batch(Query().name("other").select("x"))
        assert str(owner) == "owner {\n  first\n}\nother {\n  x\n}"

    def test_cycle_through_sub_query_batch_rejected(self):
        owner = Query().name("owner").select("first")
        parent = Query().name("dealers").select(owner)
        owner.batch(parent)
        with pytest.raises(QueryArgumentError, match="inside itself"):
            parent.render()

    def test_batched_query_needs_name(self):
        query = Query().name("a").select("x").batch(Query().select("y"))
        with pytest.raises(QueryArgumentError):
            query.render()

    def test_cycle_rejected(self):
        a = Query().name("a").select("x")
        b = Query().name("b").select("y")
        a.batch(b)
        b.batch(a)
        with pytest.raises(QueryArgumentError, match="inside itself"):
            a.render()

    def test_render_is_idempotent(self, dealer_query, owner_query):
        dealer_query.select(owner_query).batch(Query().name("other").select("id"))
        assert str(dealer_query) == str(dealer_query)


class TestRaw:
    """Tests for raw queries."""

    def test_raw_rendered_verbatim(self):
        query = Query().name("users").select("id").where("x", 1).raw("{ foo }").select("more")
        assert str(query) == "{ foo }"

    def test_raw_ignores_batches(self):
        query = Query().raw("users { id }").batch(Query().name("b").select("y"))
        assert str(query) == "users { id }"

    def test_empty_raw_is_ignored(self):
        query = Query().raw("").name("users").select("id")
        assert query.raw_query is None
        assert str(query) == "users {\n  id\n}"

    def test_empty_raw_keeps_existing_raw(self):
        query = Query().raw("users { id }").raw("")
        assert query.raw_query == "users { id }"

    def test_raw_sub_query_is_indented(self):
        query = Query().name("car").select("id", Query().raw("owner {\n  name\n}"))
        assert str(query) == "car {\n  id\n  owner {\n    name\n  }\n}"


class TestDocument:
    """Tests for the enclosing operation block."""

    def test_query_block(self):
        assert Query().name("users").select("id").document() == "query {\nusers {\n  id\n}\n}"

    def test_mutation_block(self):
        query = Query().name("addUser").where("name", "x").select("id")
        assert query.document("mutation").startswith("mutation {\n")

    def test_unsupported_operation_type(self):
        with pytest.raises(QueryArgumentError):
            Query().name("users").select("id").document("subscription")

    def test_rendered_document_parses(self, dealer_query, owner_query):
        """Test that a complex query is syntactically valid GraphQL."""
        dealer_query.comment("nearest\ndealers").select(owner_query).batch(
            Query().name("NearestDealer").alias("second").where("zip", "10001").select("distance")
        )
        document = dealer_query.parse()

        operation = document.definitions[0]
        assert isinstance(operation, graphql.OperationDefinitionNode)
        fields = operation.selection_set.selections
        assert [f.name.value for f in fields] == ["NearestDealer", "NearestDealer"]
        assert fields[1].alias.value == "second"

    def test_parse_reports_bad_raw_text(self):
        with pytest.raises(graphql.GraphQLSyntaxError):
            Query().raw("users { id").parse()
