# File: zenogen/differ.py
"""
Zeno Generator - Schema Differ
===============================
Structural comparison of two ``SchemaSet`` snapshots.

For each collection (entities, enums, pages) the union of names is walked
in first-seen order and every name is classified as created, deleted or,
when both versions exist and differ, updated with a top-level field diff.
The app document is a singleton and yields at most one ``updated`` change.

Comparison works on ``SchemaModel.to_data()``: the JSON-shaped dict holding
exactly the keys the author wrote, so a missing key and a key set to
``null`` are different.

Breaking changes follow a fixed, enumerable rule: deleting an entity or an
enum, or removing the ``columns``, ``values`` or ``tableName`` field of a
document.  It is not a semantic analysis of the schema.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from zenogen.dependency_graph import GenerationDependencyGraph
from zenogen.models import (
    ChangeType,
    FieldChange,
    FieldChangeType,
    SchemaChange,
    SchemaDiffResult,
    SchemaModel,
    SchemaSet,
    SchemaType,
)
from zenogen.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.differ")

_BREAKING_REMOVALS: Tuple[str, ...] = ("columns", "values", "tableName")
_PAGE_TRIGGER_FIELDS: Tuple[str, ...] = ("generateForm", "generateTable", "generatePages")

_FOLDERS: Dict[SchemaType, str] = {
    SchemaType.ENTITY: "entities",
    SchemaType.ENUM: "enums",
    SchemaType.PAGE: "pages",
}


# ---------------------------------------------------------------------------
# Structural helpers
# ---------------------------------------------------------------------------


def deep_equal(a: Any, b: Any) -> bool:
    """
    Recursive structural equality over JSON-shaped values.

    Lists compare pairwise in order; dicts need identical key sets.  Booleans
    never equal numbers, unlike Python's ``True == 1``.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (dict, list)) or isinstance(b, (dict, list)):
        return False
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


def compare_objects(old: Any, new: Any) -> List[FieldChange]:
    """
    Top-level (non-recursive) field diff of two JSON objects.

    Returns an empty list when either side is not a dict.
    """
    if not isinstance(old, dict) or not isinstance(new, dict):
        return []

    changes: List[FieldChange] = []
    for key in _ordered_union(old, new):
        if key not in old:
            changes.append(FieldChange(key, FieldChangeType.ADDED, new_value=new[key]))
        elif key not in new:
            changes.append(FieldChange(key, FieldChangeType.REMOVED, old_value=old[key]))
        elif not deep_equal(old[key], new[key]):
            changes.append(
                FieldChange(key, FieldChangeType.MODIFIED, old[key], new[key])
            )
    return changes


def _ordered_union(first: Mapping[str, Any], second: Mapping[str, Any]) -> List[str]:
    return list(first) + [k for k in second if k not in first]


def schema_path(schema_type: SchemaType, name: str) -> str:
    """Schema-relative path of a document (``entities/users.json``)."""
    if schema_type == SchemaType.APP:
        return "app.json"
    return f"{_FOLDERS[schema_type]}/{name}.json"


# ---------------------------------------------------------------------------
# Differ
# ---------------------------------------------------------------------------


class SchemaDiffer:
    """Computes ``SchemaDiffResult`` objects for pairs of snapshots."""

    def __init__(self, graph: Optional[GenerationDependencyGraph] = None) -> None:
        self.graph: GenerationDependencyGraph = graph or GenerationDependencyGraph()

    def compare_schema_set(self, old: SchemaSet, new: SchemaSet) -> SchemaDiffResult:
        with Timer("diff schema sets"):
            changes: List[SchemaChange] = []
            changes.extend(self._compare_collection(SchemaType.ENTITY, old.entities, new.entities))
            changes.extend(self._compare_collection(SchemaType.ENUM, old.enums, new.enums))
            changes.extend(self._compare_collection(SchemaType.PAGE, old.pages, new.pages))

            old_app: Dict[str, Any] = old.app.to_data()
            new_app: Dict[str, Any] = new.app.to_data()
            if not deep_equal(old_app, new_app):
                changes.append(
                    SchemaChange(
                        change_type=ChangeType.UPDATED,
                        schema_type=SchemaType.APP,
                        name="app",
                        path=schema_path(SchemaType.APP, "app"),
                        previous_schema=old.app,
                        current_schema=new.app,
                        field_changes=tuple(compare_objects(old_app, new_app)),
                    )
                )

            result: SchemaDiffResult = SchemaDiffResult(
                changes=changes,
                has_breaking_changes=self.has_breaking_changes(changes),
                affected_generators=self.affected_generators(changes),
                affected_files=self.graph.get_affected_files(changes),
            )

        if changes:
            logger.info(
                "Schema diff: %d change(s), breaking=%s, generators=%s, %d affected file(s).",
                len(changes),
                result.has_breaking_changes,
                result.affected_generators,
                len(result.affected_files),
            )
        else:
            logger.debug("Schema diff: no changes.")
        return result

    def _compare_collection(
        self,
        schema_type: SchemaType,
        old: Mapping[str, SchemaModel],
        new: Mapping[str, SchemaModel],
    ) -> List[SchemaChange]:
        changes: List[SchemaChange] = []
        for name in _ordered_union(old, new):
            path: str = schema_path(schema_type, name)
            before: Optional[SchemaModel] = old.get(name)
            after: Optional[SchemaModel] = new.get(name)

            if before is None and after is not None:
                changes.append(
                    SchemaChange(ChangeType.CREATED, schema_type, name, path, current_schema=after)
                )
            elif before is not None and after is None:
                changes.append(
                    SchemaChange(ChangeType.DELETED, schema_type, name, path, previous_schema=before)
                )
            elif before is not None and after is not None:
                before_data: Dict[str, Any] = before.to_data()
                after_data: Dict[str, Any] = after.to_data()
                if not deep_equal(before_data, after_data):
                    changes.append(
                        SchemaChange(
                            ChangeType.UPDATED,
                            schema_type,
                            name,
                            path,
                            previous_schema=before,
                            current_schema=after,
                            field_changes=tuple(compare_objects(before_data, after_data)),
                        )
                    )
        return changes

    # -- Classification -----------------------------------------------------

    @staticmethod
    def has_breaking_changes(changes: Sequence[SchemaChange]) -> bool:
        for change in changes:
            if change.change_type == ChangeType.DELETED and change.schema_type in (
                SchemaType.ENTITY,
                SchemaType.ENUM,
            ):
                return True
            for fc in change.field_changes or ():
                if fc.change_type == FieldChangeType.REMOVED and fc.field in _BREAKING_REMOVALS:
                    return True
        return False

    @staticmethod
    def affected_generators(changes: Sequence[SchemaChange]) -> List[str]:
        """Deduplicated generator names in first-seen order."""
        generators: Dict[str, None] = {}
        for change in changes:
            if change.schema_type == SchemaType.ENTITY:
                names: Tuple[str, ...] = ("models", "components", "api")
                if change.touches(*_PAGE_TRIGGER_FIELDS):
                    names += ("pages",)
            elif change.schema_type == SchemaType.ENUM:
                names = ("models",)
            elif change.schema_type == SchemaType.PAGE:
                names = ("pages",)
            else:
                names = ("pages", "api")
            for name in names:
                generators.setdefault(name, None)
        return list(generators)


def create_schema_differ(
    graph: Optional[GenerationDependencyGraph] = None,
) -> SchemaDiffer:
    return SchemaDiffer(graph)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "deep_equal",
    "compare_objects",
    "schema_path",
    "SchemaDiffer",
    "create_schema_differ",
]
