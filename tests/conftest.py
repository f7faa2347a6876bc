"""
tests/conftest.py
Shared fixtures for the zenogen test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Callable, Dict, Optional

import pytest

from zenogen.models import SchemaSet
from zenogen.validators import build_schema_set


# ---------------------------------------------------------------------------
# Raw schema documents
# ---------------------------------------------------------------------------

USERS_ENTITY: Dict[str, Any] = {
    "tableName": "users",
    "displayName": "Users",
    "icon": "user",
    "generateForm": True,
    "generateTable": True,
    "generateAPI": True,
    "generatePages": True,
    "columns": {
        "id": {"dbConstraints": {"type": "uuid", "primaryKey": True}},
        "email": {
            "dbConstraints": {"type": "varchar", "length": 255, "unique": True},
            "validation": {"required": True, "email": True},
            "ui": {"label": "Email", "placeholder": "you@example.com"},
        },
        "name": {
            "dbConstraints": {"type": "varchar", "length": 100, "nullable": False},
            "validation": {"required": True, "min": 2, "max": 100},
        },
        "status": {
            "dbConstraints": {"type": "varchar", "length": 20, "default": "ACTIVE"},
            "validation": {"enum": "status"},
        },
    },
}

STATUS_ENUM: Dict[str, Any] = {
    "description": "Account status",
    "values": {
        "ACTIVE": {"label": "Active", "color": "#22c55e"},
        "INACTIVE": {"label": "Inactive", "color": "#6b7280"},
        "PENDING": {"label": "Pending"},
    },
}

HOME_PAGE: Dict[str, Any] = {
    "route": "/",
    "title": "Home",
    "sections": [{"type": "table", "title": "Latest users", "entity": "users"}],
}

APP_DOCUMENT: Dict[str, Any] = {
    "name": "Test App",
    "description": "Application used by the test suite",
    "url": "https://example.com",
    "theme": {"primary": "#3b82f6"},
}


def write_json(path: pathlib.Path, data: Any) -> pathlib.Path:
    """Write *data* as pretty JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Document fixtures (deep copies so tests can mutate freely)
# ---------------------------------------------------------------------------


@pytest.fixture()
def users_entity() -> Dict[str, Any]:
    return copy.deepcopy(USERS_ENTITY)


@pytest.fixture()
def status_enum() -> Dict[str, Any]:
    return copy.deepcopy(STATUS_ENUM)


@pytest.fixture()
def home_page() -> Dict[str, Any]:
    return copy.deepcopy(HOME_PAGE)


@pytest.fixture()
def app_document() -> Dict[str, Any]:
    return copy.deepcopy(APP_DOCUMENT)


# ---------------------------------------------------------------------------
# On-disk project
# ---------------------------------------------------------------------------


@pytest.fixture()
def schema_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """
    A complete, valid schema directory::

        zeno/app.json
        zeno/entities/users.json
        zeno/enums/status.json
        zeno/pages/home.json
    """
    root = tmp_path / "zeno"
    write_json(root / "app.json", APP_DOCUMENT)
    write_json(root / "entities" / "users.json", USERS_ENTITY)
    write_json(root / "enums" / "status.json", STATUS_ENUM)
    write_json(root / "pages" / "home.json", HOME_PAGE)
    return root


# ---------------------------------------------------------------------------
# In-memory schema sets
# ---------------------------------------------------------------------------

SchemaSetFactory = Callable[..., SchemaSet]


@pytest.fixture()
def make_schema_set() -> SchemaSetFactory:
    """
    Build a validated ``SchemaSet`` from raw documents.

    Defaults to the simple project; pass ``entities=``, ``enums=``,
    ``pages=`` or ``app=`` to replace a collection.
    """

    def _factory(
        entities: Optional[Dict[str, Any]] = None,
        enums: Optional[Dict[str, Any]] = None,
        pages: Optional[Dict[str, Any]] = None,
        app: Optional[Dict[str, Any]] = None,
    ) -> SchemaSet:
        schema_set, result = build_schema_set(
            copy.deepcopy(entities if entities is not None else {"users": USERS_ENTITY}),
            copy.deepcopy(enums if enums is not None else {"status": STATUS_ENUM}),
            copy.deepcopy(pages if pages is not None else {"home": HOME_PAGE}),
            copy.deepcopy(app if app is not None else APP_DOCUMENT),
            "zeno",
        )
        assert schema_set is not None, result.format_report()
        return schema_set

    return _factory


@pytest.fixture()
def schema_set(make_schema_set: SchemaSetFactory) -> SchemaSet:
    return make_schema_set()
