"""
tests/test_differ.py
Unit tests for zenogen.differ.

Tests cover:
- deep_equal / compare_objects semantics
- created / updated / deleted classification and ordering
- breaking-change rule
- affected generators
- affected files handed through from the dependency graph
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from conftest import APP_DOCUMENT, HOME_PAGE, STATUS_ENUM, USERS_ENTITY
from zenogen.dependency_graph import GenerationDependencyGraph
from zenogen.differ import SchemaDiffer, compare_objects, create_schema_differ, deep_equal, schema_path
from zenogen.models import ChangeType, FieldChangeType, SchemaType


@pytest.fixture()
def differ() -> SchemaDiffer:
    return create_schema_differ(GenerationDependencyGraph(clock=lambda: 1700000000.0))


def _entity(**overrides: Any) -> Dict[str, Any]:
    data = copy.deepcopy(USERS_ENTITY)
    data.update(overrides)
    return data


# ===========================================================================
# Structural helpers
# ===========================================================================


class TestDeepEqual:

    @pytest.mark.parametrize(
        "a, b",
        [
            ({"a": [1, {"b": None}]}, {"a": [1, {"b": None}]}),
            ([], []),
            (1, 1.0),
            ("x", "x"),
            (None, None),
        ],
    )
    def test_equal(self, a: Any, b: Any) -> None:
        assert deep_equal(a, b)

    @pytest.mark.parametrize(
        "a, b",
        [
            ({"a": 1}, {"a": 1, "b": None}),
            ([1, 2], [2, 1]),
            (True, 1),
            (0, False),
            ("1", 1),
            ({}, []),
            (None, {}),
        ],
    )
    def test_not_equal(self, a: Any, b: Any) -> None:
        assert not deep_equal(a, b)


class TestCompareObjects:

    def test_added_removed_modified_in_key_order(self) -> None:
        changes = compare_objects({"a": 1, "b": 2, "c": 3}, {"a": 1, "c": 4, "d": 5})
        assert [(c.field, c.change_type) for c in changes] == [
            ("b", FieldChangeType.REMOVED),
            ("c", FieldChangeType.MODIFIED),
            ("d", FieldChangeType.ADDED),
        ]
        assert changes[1].old_value == 3
        assert changes[1].new_value == 4

    def test_non_dicts_give_no_changes(self) -> None:
        assert compare_objects([1], {"a": 1}) == []

    def test_schema_path(self) -> None:
        assert schema_path(SchemaType.ENTITY, "users") == "entities/users.json"
        assert schema_path(SchemaType.APP, "app") == "app.json"


# ===========================================================================
# SchemaDiffer
# ===========================================================================


class TestCompareSchemaSet:

    def test_identical_sets_have_no_changes(self, differ: SchemaDiffer, make_schema_set) -> None:
        result = differ.compare_schema_set(make_schema_set(), make_schema_set())
        assert result.is_empty
        assert not result.has_breaking_changes
        assert result.affected_generators == []
        assert result.affected_files == []

    def test_created_entity(self, differ: SchemaDiffer, make_schema_set) -> None:
        old = make_schema_set()
        new = make_schema_set(
            entities={"users": USERS_ENTITY, "posts": _entity(tableName="posts")}
        )
        result = differ.compare_schema_set(old, new)
        assert len(result.changes) == 1
        change = result.changes[0]
        assert change.change_type == ChangeType.CREATED
        assert change.schema_type == SchemaType.ENTITY
        assert change.name == "posts"
        assert change.path == "entities/posts.json"
        assert change.previous_schema is None
        assert change.current_schema is new.entities["posts"]
        assert change.field_changes is None
        assert not result.has_breaking_changes

    def test_deleted_entity_is_breaking(self, differ: SchemaDiffer, make_schema_set) -> None:
        old = make_schema_set()
        new = make_schema_set(entities={}, pages={})
        result = differ.compare_schema_set(old, new)
        kinds = [(c.change_type, c.schema_type, c.name) for c in result.changes]
        assert kinds == [
            (ChangeType.DELETED, SchemaType.ENTITY, "users"),
            (ChangeType.DELETED, SchemaType.PAGE, "home"),
        ]
        assert result.has_breaking_changes

    def test_deleted_enum_is_breaking(self, differ: SchemaDiffer, make_schema_set) -> None:
        entity = _entity()
        entity["columns"]["status"]["validation"] = {}
        old = make_schema_set(entities={"users": entity})
        new = make_schema_set(entities={"users": entity}, enums={})
        result = differ.compare_schema_set(old, new)
        assert result.has_breaking_changes
        assert result.affected_generators == ["models"]

    def test_adding_a_column_is_not_breaking(self, differ: SchemaDiffer, make_schema_set) -> None:
        entity = _entity()
        entity["columns"]["bio"] = {"dbConstraints": {"type": "text", "nullable": True}}
        result = differ.compare_schema_set(make_schema_set(), make_schema_set(entities={"users": entity}))
        assert not result.has_breaking_changes
        change = result.changes[0]
        assert change.change_type == ChangeType.UPDATED
        assert [fc.field for fc in change.field_changes] == ["columns"]
        assert change.field_changes[0].change_type == FieldChangeType.MODIFIED

    def test_removing_a_top_level_field(self, differ: SchemaDiffer, make_schema_set) -> None:
        entity = _entity()
        del entity["icon"]
        result = differ.compare_schema_set(make_schema_set(), make_schema_set(entities={"users": entity}))
        field_change = result.changes[0].field_changes[0]
        assert field_change.field == "icon"
        assert field_change.change_type == FieldChangeType.REMOVED
        assert field_change.old_value == "user"
        assert not result.has_breaking_changes

    def test_app_change_is_a_single_update(self, differ: SchemaDiffer, make_schema_set) -> None:
        app = copy.deepcopy(APP_DOCUMENT)
        app["name"] = "Renamed"
        result = differ.compare_schema_set(make_schema_set(), make_schema_set(app=app))
        assert len(result.changes) == 1
        change = result.changes[0]
        assert (change.change_type, change.schema_type, change.name, change.path) == (
            ChangeType.UPDATED,
            SchemaType.APP,
            "app",
            "app.json",
        )
        assert result.affected_generators == ["pages", "api"]

    def test_changes_ordered_by_kind(self, differ: SchemaDiffer, make_schema_set) -> None:
        enum = copy.deepcopy(STATUS_ENUM)
        enum["description"] = "Changed"
        page = copy.deepcopy(HOME_PAGE)
        page["title"] = "Start"
        app = copy.deepcopy(APP_DOCUMENT)
        app["description"] = "Changed"
        new = make_schema_set(
            entities={"users": _entity(displayName="People")},
            enums={"status": enum},
            pages={"home": page},
            app=app,
        )
        result = differ.compare_schema_set(make_schema_set(), new)
        assert [c.schema_type for c in result.changes] == [
            SchemaType.ENTITY,
            SchemaType.ENUM,
            SchemaType.PAGE,
            SchemaType.APP,
        ]

    def test_comparison_is_reflexive(self, differ: SchemaDiffer, schema_set) -> None:
        assert differ.compare_schema_set(schema_set, schema_set).is_empty


# ===========================================================================
# Affected generators & files
# ===========================================================================


class TestAffected:

    def test_entity_without_page_fields(self, differ: SchemaDiffer, make_schema_set) -> None:
        new = make_schema_set(entities={"users": _entity(icon="person")})
        result = differ.compare_schema_set(make_schema_set(), new)
        assert result.affected_generators == ["models", "components", "api"]

    def test_entity_page_field_adds_pages(self, differ: SchemaDiffer, make_schema_set) -> None:
        new = make_schema_set(entities={"users": _entity(generatePages=False)})
        result = differ.compare_schema_set(make_schema_set(), new)
        assert result.affected_generators == ["models", "components", "api", "pages"]

    def test_created_entity_does_not_add_pages(self, differ: SchemaDiffer, make_schema_set) -> None:
        new = make_schema_set(
            entities={"users": USERS_ENTITY, "posts": _entity(tableName="posts")}
        )
        result = differ.compare_schema_set(make_schema_set(), new)
        assert result.affected_generators == ["models", "components", "api"]

    def test_column_change_produces_migration(self, differ: SchemaDiffer, make_schema_set) -> None:
        entity = _entity()
        entity["columns"]["name"]["dbConstraints"]["length"] = 200
        result = differ.compare_schema_set(make_schema_set(), make_schema_set(entities={"users": entity}))
        paths = [f.path for f in result.affected_files]
        assert paths[0] == "src/models/users.ts"
        assert "drizzle/migrations/1700000000000_users_updated.sql" in paths
        assert "src/app/api/users/route.ts" in paths
        # ``columns`` is not a page trigger.
        assert "src/app/users/page.tsx" not in paths

    def test_to_dict(self, differ: SchemaDiffer, make_schema_set) -> None:
        new = make_schema_set(entities={"users": _entity(icon="person")})
        data = differ.compare_schema_set(make_schema_set(), new).to_dict()
        assert data["hasBreakingChanges"] is False
        assert data["changes"][0]["fieldChanges"] == [
            {"field": "icon", "type": "modified", "oldValue": "user", "newValue": "person"}
        ]
        assert data["affectedGenerators"] == ["models", "components", "api"]
