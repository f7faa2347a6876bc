# File: zenogen/dependency_graph.py
"""
Zeno Generator - Dependency Graph
==================================
Maps schema changes to the generated files that have gone stale.

The mapping is a closed, deterministic table keyed by schema kind:

    entity ─► model, [migration], [Form/Table/Modal], [API route], [4 CRUD pages]
    enum   ─► enum model + shared models index
    page   ─► the page file
    app    ─► root layout, [navigation], [auth route]

Bracketed outputs depend on which top-level fields the change touched.
When a change carries no field diff (creation, deletion, or a raw
filesystem event) the UI, API and page outputs of an entity are assumed
stale; migration, navigation and auth outputs are not.

When several changes hit the same output path their reasons are appended
in order and their source dependencies are unioned.

A separate general-purpose edge store (``add_dependency`` /
``get_dependents``) is available for ad-hoc bookkeeping; the default
mapping does not use it.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from zenogen.models import AffectedFile, ChangeType, FieldChange, SchemaChange, SchemaType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.dependency_graph")

# ---------------------------------------------------------------------------
# Trigger fields
# ---------------------------------------------------------------------------

_DB_SCHEMA_FIELDS: FrozenSet[str] = frozenset({"columns", "tableName", "dbConstraints"})
_UI_FIELDS: FrozenSet[str] = frozenset(
    {"generateForm", "generateTable", "columns", "ui", "displayName", "tableName"}
)
# The entity document spells the flag ``generateAPI``.
_API_FIELDS: FrozenSet[str] = frozenset(
    {"generateApi", "generateAPI", "columns", "validation"}
)
_PAGE_FIELDS: FrozenSet[str] = frozenset(
    {"generatePages", "generateForm", "generateTable", "displayName"}
)
_NAVIGATION_FIELDS: FrozenSet[str] = frozenset({"navigation", "name"})
_AUTH_FIELDS: FrozenSet[str] = frozenset({"auth", "email"})

_COMPONENT_KINDS: Tuple[str, ...] = ("Form", "Table", "Modal")
_ENTITY_PAGES: Tuple[Tuple[str, str], ...] = (
    ("List", "src/app/{name}/page.tsx"),
    ("Create", "src/app/{name}/create/page.tsx"),
    ("Detail", "src/app/{name}/[id]/page.tsx"),
    ("Edit", "src/app/{name}/[id]/edit/page.tsx"),
)

APP_SOURCE: str = "app.json"
MODELS_INDEX_PATH: str = "src/models/index.ts"
ROOT_LAYOUT_PATH: str = "src/app/layout.tsx"
NAVIGATION_PATH: str = "src/components/Navigation.tsx"
AUTH_ROUTE_PATH: str = "src/app/api/auth/[...nextauth]/route.ts"


def _touches(
    field_changes: Optional[Sequence[FieldChange]],
    fields: FrozenSet[str],
    default: bool,
) -> bool:
    if field_changes is None:
        return default
    return any(fc.field in fields for fc in field_changes)


class GenerationDependencyGraph:
    """
    Tracks which generated files depend on which schema files.

    ``clock`` returns seconds since the epoch and stamps migration file
    names; tests pass a fixed clock.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock: Callable[[], float] = clock
        self._dependencies: Dict[str, Set[str]] = {}
        self._reverse: Dict[str, Set[str]] = {}

    # -- Edge store ---------------------------------------------------------

    def add_dependency(self, source: str, dependent: str) -> None:
        self._dependencies.setdefault(source, set()).add(dependent)
        self._reverse.setdefault(dependent, set()).add(source)

    def get_dependents(self, file: str) -> List[str]:
        return sorted(self._dependencies.get(file, ()))

    def get_dependencies(self, file: str) -> List[str]:
        return sorted(self._reverse.get(file, ()))

    def clear(self) -> None:
        self._dependencies.clear()
        self._reverse.clear()

    def stats(self) -> Dict[str, int]:
        return {
            "total_files": len(self._dependencies),
            "total_dependencies": sum(len(d) for d in self._dependencies.values()),
        }

    # -- Change mapping -----------------------------------------------------

    def get_affected_files(self, changes: Sequence[SchemaChange]) -> List[AffectedFile]:
        """
        Resolve *changes* into affected output files, merged by path.

        Output order is the order in which each path was first produced.
        """
        merged: Dict[str, AffectedFile] = {}
        for change in changes:
            for affected in self.files_for_change(change):
                existing: Optional[AffectedFile] = merged.get(affected.path)
                if existing is None:
                    merged[affected.path] = affected
                else:
                    existing.merge(affected)

        logger.debug(
            "%d change(s) affect %d file(s).", len(changes), len(merged)
        )
        return list(merged.values())

    def files_for_change(self, change: SchemaChange) -> List[AffectedFile]:
        """Affected files contributed by a single change, before merging."""
        if change.schema_type == SchemaType.ENTITY:
            return self._entity_files(change)
        if change.schema_type == SchemaType.ENUM:
            return self._enum_files(change)
        if change.schema_type == SchemaType.PAGE:
            return self._page_files(change)
        return self._app_files(change)

    def migration_path(self, name: str, change_type: ChangeType) -> str:
        stamp: int = int(self._clock() * 1000)
        return f"drizzle/migrations/{stamp}_{name}_{change_type.value}.sql"

    # -- Per-kind mappings --------------------------------------------------

    def _entity_files(self, change: SchemaChange) -> List[AffectedFile]:
        name: str = change.name
        kind: str = change.change_type.value
        source: str = f"entities/{name}.json"
        diff: Optional[Sequence[FieldChange]] = change.field_changes

        def _file(path: str, generator: str, reason: str) -> AffectedFile:
            return AffectedFile(path, generator, [reason], {source})

        files: List[AffectedFile] = [
            _file(f"src/models/{name}.ts", "models", f"Entity {name} {kind}")
        ]

        if _touches(diff, _DB_SCHEMA_FIELDS, default=False):
            files.append(
                _file(
                    self.migration_path(name, change.change_type),
                    "models",
                    f"Database schema change for entity {name}",
                )
            )

        if _touches(diff, _UI_FIELDS, default=True):
            for component in _COMPONENT_KINDS:
                files.append(
                    _file(
                        f"src/components/{name}/{name}{component}.tsx",
                        "components",
                        f"{component} component for entity {name} {kind}",
                    )
                )

        if _touches(diff, _API_FIELDS, default=True):
            files.append(
                _file(
                    f"src/app/api/{name}/route.ts",
                    "api",
                    f"API routes for entity {name} {kind}",
                )
            )

        if _touches(diff, _PAGE_FIELDS, default=True):
            for label, template in _ENTITY_PAGES:
                files.append(
                    _file(
                        template.format(name=name),
                        "pages",
                        f"{label} page for entity {name} {kind}",
                    )
                )

        return files

    @staticmethod
    def _enum_files(change: SchemaChange) -> List[AffectedFile]:
        name: str = change.name
        kind: str = change.change_type.value
        source: str = f"enums/{name}.json"
        # Enums are assumed to be referenced widely, so the index is always stale.
        return [
            AffectedFile(
                f"src/models/enums/{name}.ts", "models", [f"Enum {name} {kind}"], {source}
            ),
            AffectedFile(
                MODELS_INDEX_PATH,
                "models",
                [f"Re-export updated due to enum {name} {kind}"],
                {source},
            ),
        ]

    @staticmethod
    def _page_files(change: SchemaChange) -> List[AffectedFile]:
        name: str = change.name
        return [
            AffectedFile(
                f"src/app/{name}/page.tsx",
                "pages",
                [f"Custom page {name} {change.change_type.value}"],
                {f"pages/{name}.json"},
            )
        ]

    @staticmethod
    def _app_files(change: SchemaChange) -> List[AffectedFile]:
        kind: str = change.change_type.value
        diff: Optional[Sequence[FieldChange]] = change.field_changes
        files: List[AffectedFile] = [
            AffectedFile(
                ROOT_LAYOUT_PATH, "pages", [f"App configuration {kind}"], {APP_SOURCE}
            )
        ]
        if _touches(diff, _NAVIGATION_FIELDS, default=False):
            files.append(
                AffectedFile(
                    NAVIGATION_PATH,
                    "pages",
                    [f"Navigation updated due to app {kind}"],
                    {APP_SOURCE},
                )
            )
        if _touches(diff, _AUTH_FIELDS, default=False):
            files.append(
                AffectedFile(
                    AUTH_ROUTE_PATH, "api", [f"Auth configuration {kind}"], {APP_SOURCE}
                )
            )
        return files


def create_dependency_graph(
    clock: Callable[[], float] = time.time,
) -> GenerationDependencyGraph:
    return GenerationDependencyGraph(clock)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "APP_SOURCE",
    "MODELS_INDEX_PATH",
    "ROOT_LAYOUT_PATH",
    "NAVIGATION_PATH",
    "AUTH_ROUTE_PATH",
    "GenerationDependencyGraph",
    "create_dependency_graph",
]
