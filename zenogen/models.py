# File: zenogen/models.py
"""
Zeno Generator - Core Data Models
==================================
Pydantic V2 models for the four schema kinds (entity, enum, page, app), the
aggregate ``SchemaSet``, and the plain value types that flow through the
incremental engine (generated files, schema changes, affected files).

These models are the single source of truth for the whole pipeline:

    Schema Files → Loader → SchemaSet → Pipeline / Differ → Dependency Graph

Conventions:
    - JSON keys are camelCase (``tableName``); Python attributes are
      snake_case (``table_name``).  Both spellings are accepted on input.
    - Schema models are frozen — a ``SchemaSet`` is a snapshot, never edited.
    - ``to_data()`` returns exactly the keys the author wrote, so an absent
      key and a key explicitly set to ``null`` stay distinguishable.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Set, Tuple, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class SchemaType(str, Enum):
    """Kinds of schema document a generator can consume."""

    ENTITY = "entity"
    ENUM = "enum"
    PAGE = "page"
    APP = "app"


class ChangeType(str, Enum):
    """Lifecycle change of a whole schema document."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class FieldChangeType(str, Enum):
    """Change of a single top-level field inside a schema document."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_BLOCK_CONFIG: ConfigDict = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)

# Top-level documents keep unknown extension blocks so they can be diffed.
_DOCUMENT_CONFIG: ConfigDict = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="allow",
)

_TABLE_NAME_RE: re.Pattern[str] = re.compile(r"^[a-z][a-z0-9_]*$")
_ENUM_KEY_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Z0-9_]*$")
_HEX_COLOR_PATTERN: str = r"^#[0-9a-fA-F]{6}$"
_ROUTE_PATTERN: str = r"^/[a-z0-9\-/]*$"


class SchemaModel(BaseModel):
    """Base for every schema block."""

    model_config = _BLOCK_CONFIG

    def to_data(self) -> Dict[str, Any]:
        """JSON-shaped dict containing only the keys that were supplied."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ---------------------------------------------------------------------------
# Entity schema
# ---------------------------------------------------------------------------


class ColumnReference(SchemaModel):
    """Foreign-key target of a column."""

    table: str = Field(..., min_length=1)
    column: str = Field(..., min_length=1)
    on_delete: Optional[Literal["cascade", "restrict", "set null"]] = None


class DbConstraints(SchemaModel):
    """Storage-level definition of a column."""

    type: str = Field(..., min_length=1, description="Database column type.")
    length: Optional[int] = Field(default=None, gt=0)
    precision: Optional[int] = Field(default=None, gt=0)
    scale: Optional[int] = Field(default=None, ge=0)
    nullable: Optional[bool] = None
    default: Optional[Union[bool, int, float, str]] = None
    primary_key: Optional[bool] = None
    unique: Optional[bool] = None
    references: Optional[ColumnReference] = None


class ValidationRules(SchemaModel):
    """Form / API validation rules for a column."""

    required: Optional[bool] = None
    min: Optional[float] = None
    max: Optional[float] = None
    email: Optional[bool] = None
    url: Optional[bool] = None
    pattern: Optional[str] = None
    enum: Optional[str] = Field(default=None, description="Name of an enum schema.")

    @model_validator(mode="after")
    def _email_excludes_pattern(self) -> "ValidationRules":
        if self.email and self.pattern:
            raise ValueError("Cannot use both 'email: true' and 'pattern' together")
        return self


class UiMetadata(SchemaModel):
    """Presentation hints for a column."""

    label: Optional[str] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    section: Optional[str] = None
    readonly: Optional[bool] = None
    type: Optional[str] = None
    accept: Optional[str] = None
    format: Optional[Literal["datetime", "currency"]] = None


class EntityColumn(SchemaModel):
    db_constraints: DbConstraints
    validation: Optional[ValidationRules] = None
    ui: Optional[UiMetadata] = None


class EntityIndex(SchemaModel):
    columns: List[str] = Field(..., min_length=1)
    unique: Optional[bool] = None


class EntityRelationship(SchemaModel):
    type: Literal["many-to-one", "one-to-many"]
    table: str = Field(..., min_length=1, description="Target table name.")
    foreign_key: Optional[str] = None


class FormSection(SchemaModel):
    name: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    fields: List[str] = Field(..., min_length=1)
    collapsible: Optional[bool] = None
    default_open: Optional[bool] = None


class FormVisibility(SchemaModel):
    create: Optional[List[str]] = None
    edit: Optional[List[str]] = None
    hidden: Optional[List[str]] = None


class TableVisibility(SchemaModel):
    list_: Optional[List[str]] = Field(default=None, alias="list")
    hidden: Optional[List[str]] = None


class EntityVisibility(SchemaModel):
    form: Optional[FormVisibility] = None
    table: Optional[TableVisibility] = None


class EntityUi(SchemaModel):
    list_fields: Optional[List[str]] = None
    search_fields: Optional[List[str]] = None
    sort_field: Optional[str] = None
    sort_order: Optional[Literal["asc", "desc"]] = None
    form_sections: Optional[List[FormSection]] = None
    visibility: Optional[EntityVisibility] = None


class EntitySchema(SchemaModel):
    """
    One database entity and everything generated from it.

    A single ``EntitySchema`` drives the ORM model, migrations, form / table /
    modal components, the API route and the CRUD pages.
    """

    model_config = _DOCUMENT_CONFIG

    table_name: str = Field(..., min_length=1, description="Table name (snake_case).")
    display_name: str = Field(..., min_length=1)
    icon: Optional[str] = None
    description: Optional[str] = None
    generate_form: Optional[bool] = None
    generate_table: Optional[bool] = None
    generate_api: Optional[bool] = Field(default=None, alias="generateAPI")
    generate_pages: Optional[bool] = None
    columns: Dict[str, EntityColumn]
    indexes: Optional[Dict[str, EntityIndex]] = None
    relationships: Optional[Dict[str, EntityRelationship]] = None
    ui: Optional[EntityUi] = None
    seed_data: Optional[List[Dict[str, Any]]] = None

    @field_validator("table_name")
    @classmethod
    def _table_name_format(cls, v: str) -> str:
        if not _TABLE_NAME_RE.match(v):
            raise ValueError("Table name must be lowercase with underscores")
        return v

    @field_validator("columns")
    @classmethod
    def _single_primary_key(cls, v: Dict[str, EntityColumn]) -> Dict[str, EntityColumn]:
        if any(not name for name in v):
            raise ValueError("Column names must not be empty")
        primary: List[str] = [n for n, c in v.items() if c.db_constraints.primary_key]
        if len(primary) > 1:
            raise ValueError(
                f"Only one primary key is allowed per entity (found: {primary})"
            )
        return v

    @property
    def primary_key(self) -> Optional[str]:
        for name, column in self.columns.items():
            if column.db_constraints.primary_key:
                return name
        return None

    def referenced_tables(self) -> Set[str]:
        """Tables named by relationships and column foreign keys."""
        targets: Set[str] = {r.table for r in (self.relationships or {}).values()}
        for column in self.columns.values():
            if column.db_constraints.references is not None:
                targets.add(column.db_constraints.references.table)
        return targets

    def __repr__(self) -> str:
        return f"<Entity {self.table_name} ({len(self.columns)} cols)>"


# ---------------------------------------------------------------------------
# Enum schema
# ---------------------------------------------------------------------------


class EnumValue(SchemaModel):
    label: str = Field(..., min_length=1)
    color: Optional[str] = Field(default=None, pattern=_HEX_COLOR_PATTERN)
    icon: Optional[str] = None


class EnumSchema(SchemaModel):
    """A named set of uppercase value keys with display labels."""

    model_config = _DOCUMENT_CONFIG

    description: Optional[str] = None
    values: Dict[str, EnumValue]

    @field_validator("values")
    @classmethod
    def _value_keys(cls, v: Dict[str, EnumValue]) -> Dict[str, EnumValue]:
        if not v:
            raise ValueError("Enum must have at least one value")
        bad: List[str] = [k for k in v if not _ENUM_KEY_RE.match(k)]
        if bad:
            raise ValueError(f"Enum keys must be uppercase with underscores: {bad}")
        return v

    def __repr__(self) -> str:
        return f"<Enum {sorted(self.values)}>"


# ---------------------------------------------------------------------------
# Page schema
# ---------------------------------------------------------------------------


class HeaderNavigation(SchemaModel):
    include: Optional[bool] = None
    icon: Optional[str] = None
    order: Optional[int] = None


class FooterNavigation(SchemaModel):
    include: Optional[bool] = None
    section: Optional[str] = None


class PageNavigation(SchemaModel):
    header: Optional[HeaderNavigation] = None
    footer: Optional[FooterNavigation] = None


class PageStat(SchemaModel):
    title: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)
    icon: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=_HEX_COLOR_PATTERN)


class PageSectionFilters(SchemaModel):
    limit: Optional[int] = Field(default=None, gt=0)
    order_by: Optional[str] = None


class PageSection(SchemaModel):
    """One block of a page; required fields depend on ``type``."""

    type: Literal["hero", "stats", "table", "content", "custom"]
    title: Optional[str] = None
    subtitle: Optional[str] = None
    entity: Optional[str] = None
    content: Optional[str] = None
    columns: Optional[Literal[1, 2, 3, 4]] = None
    padding: Optional[Literal["none", "sm", "md", "lg"]] = None
    background: Optional[Literal["base", "neutral", "primary", "secondary"]] = None
    stats: Optional[List[PageStat]] = None
    filters: Optional[PageSectionFilters] = None
    display: Optional[Literal["cards", "table"]] = None

    @model_validator(mode="after")
    def _type_requirements(self) -> "PageSection":
        if self.type == "table" and not self.entity:
            raise ValueError("Table sections require an 'entity' reference")
        if self.type == "stats" and not self.stats:
            raise ValueError("Stats sections require a non-empty 'stats' list")
        if self.type == "content" and not self.content:
            raise ValueError("Content sections require 'content' text")
        return self


class PageMetadata(SchemaModel):
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[List[str]] = None


class PageAuth(SchemaModel):
    required: Optional[bool] = None
    roles: Optional[List[str]] = None
    redirect: Optional[str] = None


class PageSchema(SchemaModel):
    """A custom page composed of ordered sections."""

    model_config = _DOCUMENT_CONFIG

    route: str = Field(..., min_length=1, pattern=_ROUTE_PATTERN)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    layout: Optional[Literal["default", "auth", "minimal"]] = None
    navigation: Optional[PageNavigation] = None
    sections: List[PageSection] = Field(..., min_length=1)
    metadata: Optional[PageMetadata] = None
    auth: Optional[PageAuth] = None

    def referenced_entities(self) -> List[str]:
        return [s.entity for s in self.sections if s.entity]

    def __repr__(self) -> str:
        return f"<Page {self.route} ({len(self.sections)} sections)>"


# ---------------------------------------------------------------------------
# App schema
# ---------------------------------------------------------------------------


class AppTheme(SchemaModel):
    primary: Optional[str] = Field(default=None, pattern=_HEX_COLOR_PATTERN)
    secondary: Optional[str] = Field(default=None, pattern=_HEX_COLOR_PATTERN)
    accent: Optional[str] = Field(default=None, pattern=_HEX_COLOR_PATTERN)
    neutral: Optional[str] = Field(default=None, pattern=_HEX_COLOR_PATTERN)


class AppFeatures(SchemaModel):
    search: Optional[bool] = None
    rounded: Optional[bool] = None
    dark_mode: Optional[bool] = None
    high_contrast: Optional[bool] = None
    breadcrumbs: Optional[bool] = None
    pagination: Optional[bool] = None
    comments: Optional[bool] = None
    analytics: Optional[bool] = None


class AppMetadata(SchemaModel):
    keywords: Optional[List[str]] = None
    author: Optional[str] = Field(default=None, min_length=1)
    language: Optional[str] = Field(
        default=None, min_length=2, max_length=2, description="ISO 639-1 code."
    )


class AppSchema(SchemaModel):
    """Application-wide metadata (``app.json``)."""

    model_config = _DOCUMENT_CONFIG

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    url: str
    theme: Optional[AppTheme] = None
    features: Optional[AppFeatures] = None
    metadata: Optional[AppMetadata] = None

    @field_validator("url")
    @classmethod
    def _valid_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("URL must be a valid URL")
        return v


# ---------------------------------------------------------------------------
# SchemaSet: aggregate root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaSet:
    """
    The complete, validated in-memory model of an application.

    Invariant: every cross-reference (relationship targets, column foreign
    keys, page table sections) names an entity in ``entities``.  The loader
    guarantees this; the engine never receives a set that failed the check.
    """

    entities: Dict[str, EntitySchema]
    enums: Dict[str, EnumSchema]
    pages: Dict[str, PageSchema]
    app: AppSchema

    def collection(self, schema_type: SchemaType) -> Mapping[str, SchemaModel]:
        """Return the name → schema mapping for *schema_type*."""
        if schema_type == SchemaType.ENTITY:
            return self.entities
        if schema_type == SchemaType.ENUM:
            return self.enums
        if schema_type == SchemaType.PAGE:
            return self.pages
        return {"app": self.app}

    def counts(self) -> Dict[str, int]:
        return {
            "entities": len(self.entities),
            "enums": len(self.enums),
            "pages": len(self.pages),
        }

    def __repr__(self) -> str:
        return (
            f"<SchemaSet {len(self.entities)} entities, "
            f"{len(self.enums)} enums, {len(self.pages)} pages>"
        )


# ---------------------------------------------------------------------------
# Generator I/O value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeneratedFile:
    """A single output file produced by a generator (path relative to output dir)."""

    path: str
    content: str


@dataclass(frozen=True, slots=True)
class GeneratorContext:
    """Identical execution context handed to every generator in a batch."""

    schemas: SchemaSet
    output_dir: str
    schema_dir: str
    config: Mapping[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Diff value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldChange:
    """Top-level field difference between two versions of a schema document."""

    field: str
    change_type: FieldChangeType
    old_value: Any = None
    new_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"field": self.field, "type": self.change_type.value}
        if self.change_type != FieldChangeType.ADDED:
            data["oldValue"] = self.old_value
        if self.change_type != FieldChangeType.REMOVED:
            data["newValue"] = self.new_value
        return data


@dataclass(frozen=True, slots=True)
class SchemaChange:
    """
    A created / updated / deleted schema document.

    Raw changes built from filesystem events carry only the identifying
    fields; changes produced by the differ also carry both schema versions
    and, for updates, the field-level diff.  ``field_changes`` is ``None``
    when no diff context exists.
    """

    change_type: ChangeType
    schema_type: SchemaType
    name: str
    path: str
    previous_schema: Optional[SchemaModel] = None
    current_schema: Optional[SchemaModel] = None
    field_changes: Optional[Tuple[FieldChange, ...]] = None

    @property
    def is_enriched(self) -> bool:
        return self.previous_schema is not None or self.current_schema is not None

    def touches(self, *fields: str) -> bool:
        """True when the field diff mentions any of *fields*."""
        return any(fc.field in fields for fc in self.field_changes or ())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.change_type.value,
            "schemaType": self.schema_type.value,
            "name": self.name,
            "path": self.path,
        }
        if self.field_changes is not None:
            data["fieldChanges"] = [fc.to_dict() for fc in self.field_changes]
        return data


@dataclass(slots=True)
class AffectedFile:
    """
    An output path whose regeneration is implied by one or more changes.

    Mutable on purpose: the dependency graph merges later contributions into
    the first record it saw for a path.
    """

    path: str
    generator_name: str
    reasons: List[str] = field(default_factory=list)
    dependencies: Set[str] = field(default_factory=set)

    def merge(self, other: "AffectedFile") -> None:
        self.reasons.extend(other.reasons)
        self.dependencies |= other.dependencies

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "generator": self.generator_name,
            "reasons": list(self.reasons),
            "dependencies": sorted(self.dependencies),
        }


@dataclass(frozen=True, slots=True)
class SchemaDiffResult:
    """Output of ``SchemaDiffer.compare_schema_set``."""

    changes: List[SchemaChange]
    has_breaking_changes: bool
    affected_generators: List[str]
    affected_files: List[AffectedFile]

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changes": [c.to_dict() for c in self.changes],
            "hasBreakingChanges": self.has_breaking_changes,
            "affectedGenerators": list(self.affected_generators),
            "affectedFiles": [f.to_dict() for f in self.affected_files],
        }


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaType",
    "ChangeType",
    "FieldChangeType",
    "SchemaModel",
    "ColumnReference",
    "DbConstraints",
    "ValidationRules",
    "UiMetadata",
    "EntityColumn",
    "EntityIndex",
    "EntityRelationship",
    "FormSection",
    "FormVisibility",
    "TableVisibility",
    "EntityVisibility",
    "EntityUi",
    "EntitySchema",
    "EnumValue",
    "EnumSchema",
    "HeaderNavigation",
    "FooterNavigation",
    "PageNavigation",
    "PageStat",
    "PageSectionFilters",
    "PageSection",
    "PageMetadata",
    "PageAuth",
    "PageSchema",
    "AppTheme",
    "AppFeatures",
    "AppMetadata",
    "AppSchema",
    "SchemaSet",
    "GeneratedFile",
    "GeneratorContext",
    "FieldChange",
    "SchemaChange",
    "AffectedFile",
    "SchemaDiffResult",
]

logger.debug("zenogen.models loaded — %d public symbols.", len(__all__))
