# File: zenogen/validators.py
"""
Zeno Generator - Schema Validators
===================================
Turns raw JSON documents into validated schema models and reports every
problem found along the way.

Pydantic handles per-document structure (required fields, regex rules,
section requirements).  This module adds:

- conversion of pydantic errors into flat ``ValidationError`` records with a
  best-effort line number taken from the raw JSON source;
- **cross-reference validation** over a whole schema set: relationship
  targets, column foreign keys, enum references and page table sections
  must all name something that exists.

Usage by downstream modules:
    from zenogen.validators import build_schema_set
    schema_set, result = build_schema_set(entities, enums, pages, app, base)
    if not result.is_valid:
        ...
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import ValidationError as PydanticValidationError

from zenogen.models import (
    AppSchema,
    EntitySchema,
    EnumSchema,
    PageSchema,
    SchemaModel,
    SchemaSet,
    SchemaType,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "path", "line", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        path: str = "",
        line: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.path: str = path
        self.line: Optional[int] = line
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    @property
    def location(self) -> str:
        if self.line is not None:
            return f"{self.path}:{self.line}"
        return self.path

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "path": self.path,
        }
        if self.line is not None:
            data["line"] = self.line
        if self.context:
            data["context"] = self.context
        return data


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the validators."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        path: str = "",
        line: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, path, line, context))

    def add_warning(
        self,
        code: str,
        message: str,
        path: str = "",
        line: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(
            ValidationError("warning", code, message, path, line, context)
        )

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            prefix: str = "❌" if item.is_error else "⚠️"
            lines.append(f"  {prefix} {item.location}")
            lines.append(f"       [{item.code}] {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Line lookup
# ---------------------------------------------------------------------------


def locate_line(source: Optional[str], loc: Sequence[Any]) -> Optional[int]:
    """
    Best-effort line number of the JSON key addressed by *loc*.

    Walks the string segments of *loc* in order, searching for each
    ``"key":`` after the previous match.  Integer segments (list indexes)
    are skipped.  Returns ``None`` when nothing can be located.
    """
    if not source or not loc:
        return None

    position: int = 0
    found: Optional[int] = None
    for segment in loc:
        if not isinstance(segment, str):
            continue
        pattern: re.Pattern[str] = re.compile(rf'"{re.escape(segment)}"\s*:')
        match = pattern.search(source, position)
        if match is None:
            break
        position = match.end()
        found = match.start()

    if found is None:
        return None
    return source.count("\n", 0, found) + 1


# ---------------------------------------------------------------------------
# Per-document validation
# ---------------------------------------------------------------------------

_MODEL_FOR_KIND: Dict[SchemaType, Type[SchemaModel]] = {
    SchemaType.ENTITY: EntitySchema,
    SchemaType.ENUM: EnumSchema,
    SchemaType.PAGE: PageSchema,
    SchemaType.APP: AppSchema,
}

_VALUE_ERROR_PREFIX: str = "Value error, "


def _format_issue(issue: Mapping[str, Any]) -> str:
    message: str = str(issue.get("msg", "Invalid value"))
    if message.startswith(_VALUE_ERROR_PREFIX):
        message = message[len(_VALUE_ERROR_PREFIX):]
    loc: Tuple[Any, ...] = tuple(issue.get("loc", ()))
    if loc:
        return f"{'.'.join(str(p) for p in loc)}: {message}"
    return message


def validate_document(
    schema_type: SchemaType,
    data: Any,
    file_path: str,
    source: Optional[str] = None,
) -> Tuple[Optional[SchemaModel], ValidationResult]:
    """
    Validate one raw document against the model for *schema_type*.

    Returns the parsed model (``None`` on failure) and the result holding
    one error per pydantic issue.
    """
    result: ValidationResult = ValidationResult()
    model_cls: Type[SchemaModel] = _MODEL_FOR_KIND[schema_type]

    if not isinstance(data, dict):
        result.add_error(
            "NOT_AN_OBJECT",
            f"{schema_type.value.capitalize()} schema must be a JSON object",
            file_path,
            1 if source else None,
        )
        return None, result

    try:
        model: SchemaModel = model_cls.model_validate(data)
    except PydanticValidationError as exc:
        for issue in exc.errors():
            loc: Tuple[Any, ...] = tuple(issue.get("loc", ()))
            result.add_error(
                "SCHEMA_INVALID",
                _format_issue(issue),
                file_path,
                locate_line(source, loc),
                {"type": issue.get("type"), "loc": list(loc)},
            )
        logger.debug("%s failed validation with %d issue(s).", file_path, len(result))
        return None, result

    return model, result


def validate_entity_schema(
    data: Any, file_path: str, source: Optional[str] = None
) -> ValidationResult:
    return validate_document(SchemaType.ENTITY, data, file_path, source)[1]


def validate_enum_schema(
    data: Any, file_path: str, source: Optional[str] = None
) -> ValidationResult:
    return validate_document(SchemaType.ENUM, data, file_path, source)[1]


def validate_page_schema(
    data: Any, file_path: str, source: Optional[str] = None
) -> ValidationResult:
    return validate_document(SchemaType.PAGE, data, file_path, source)[1]


def validate_app_schema(
    data: Any, file_path: str, source: Optional[str] = None
) -> ValidationResult:
    return validate_document(SchemaType.APP, data, file_path, source)[1]


# ---------------------------------------------------------------------------
# Cross-reference validation
# ---------------------------------------------------------------------------


def schema_file_path(base_path: str, schema_type: SchemaType, name: str) -> str:
    """Conventional on-disk location of a schema document."""
    if schema_type == SchemaType.APP:
        return f"{base_path}/app.json"
    folder: str = {
        SchemaType.ENTITY: "entities",
        SchemaType.ENUM: "enums",
        SchemaType.PAGE: "pages",
    }[schema_type]
    return f"{base_path}/{folder}/{name}.json"


def validate_cross_references(
    entities: Mapping[str, EntitySchema],
    enums: Mapping[str, EnumSchema],
    pages: Mapping[str, PageSchema],
    base_path: str,
    sources: Optional[Mapping[str, str]] = None,
) -> ValidationResult:
    """
    Check that every reference in the set resolves by name.

    Only documents that already parsed are inspected; structural failures
    are reported by the per-document pass.

    Complexity: O(E·C + P·S).
    """
    result: ValidationResult = ValidationResult()
    sources = sources or {}

    for entity_name, entity in entities.items():
        path: str = schema_file_path(base_path, SchemaType.ENTITY, entity_name)
        source: Optional[str] = sources.get(path)

        for rel_name, relationship in (entity.relationships or {}).items():
            if relationship.table not in entities:
                result.add_error(
                    "UNKNOWN_ENTITY_REFERENCE",
                    f"Referenced entity '{relationship.table}' not found",
                    path,
                    locate_line(source, ("relationships", rel_name, "table")),
                    {"relationship": rel_name},
                )

        for col_name, column in entity.columns.items():
            references = column.db_constraints.references
            if references is not None and references.table not in entities:
                result.add_error(
                    "UNKNOWN_ENTITY_REFERENCE",
                    f"Referenced entity '{references.table}' not found",
                    path,
                    locate_line(
                        source,
                        ("columns", col_name, "dbConstraints", "references", "table"),
                    ),
                    {"column": col_name},
                )
            rules = column.validation
            if rules is not None and rules.enum and rules.enum not in enums:
                result.add_error(
                    "UNKNOWN_ENUM_REFERENCE",
                    f"Referenced enum '{rules.enum}' not found",
                    path,
                    locate_line(source, ("columns", col_name, "validation", "enum")),
                    {"column": col_name},
                )

    for page_name, page in pages.items():
        path = schema_file_path(base_path, SchemaType.PAGE, page_name)
        source = sources.get(path)
        for index, section in enumerate(page.sections):
            if section.entity and section.entity not in entities:
                result.add_error(
                    "UNKNOWN_ENTITY_REFERENCE",
                    f"Referenced entity '{section.entity}' not found",
                    path,
                    locate_line(source, ("sections", index, "entity")),
                    {"section": index},
                )

    return result


# ---------------------------------------------------------------------------
# Schema-set validation (full pipeline)
# ---------------------------------------------------------------------------


def build_schema_set(
    entities: Mapping[str, Any],
    enums: Mapping[str, Any],
    pages: Mapping[str, Any],
    app: Any,
    base_path: str,
    sources: Optional[Mapping[str, str]] = None,
) -> Tuple[Optional[SchemaSet], ValidationResult]:
    """
    Validate raw documents and, when everything passes, assemble a ``SchemaSet``.

    *sources* maps file paths (as produced by :func:`schema_file_path`) to
    their raw text and is only used for line numbers.  An *app* of ``None``
    skips app validation and never yields a set.
    """
    sources = sources or {}
    result: ValidationResult = ValidationResult()

    def _parse_all(
        schema_type: SchemaType, raw: Mapping[str, Any]
    ) -> Dict[str, Any]:
        parsed: Dict[str, Any] = {}
        for name, data in raw.items():
            path: str = schema_file_path(base_path, schema_type, name)
            model, doc_result = validate_document(
                schema_type, data, path, sources.get(path)
            )
            result.merge(doc_result)
            if model is not None:
                parsed[name] = model
        return parsed

    parsed_entities: Dict[str, EntitySchema] = _parse_all(SchemaType.ENTITY, entities)
    parsed_enums: Dict[str, EnumSchema] = _parse_all(SchemaType.ENUM, enums)
    parsed_pages: Dict[str, PageSchema] = _parse_all(SchemaType.PAGE, pages)

    # A missing app document is reported by the caller that failed to read it.
    parsed_app: Optional[SchemaModel] = None
    if app is not None:
        app_path: str = schema_file_path(base_path, SchemaType.APP, "app")
        parsed_app, app_result = validate_document(
            SchemaType.APP, app, app_path, sources.get(app_path)
        )
        result.merge(app_result)

    result.merge(
        validate_cross_references(
            parsed_entities, parsed_enums, parsed_pages, base_path, sources
        )
    )

    if result.has_errors or parsed_app is None:
        for item in result.errors:
            logger.warning("%s: %s", item.location, item.message)
        return None, result

    schema_set: SchemaSet = SchemaSet(
        entities=parsed_entities,
        enums=parsed_enums,
        pages=parsed_pages,
        app=parsed_app,  # type: ignore[arg-type]
    )
    return schema_set, result


def validate_schema_set(
    entities: Mapping[str, Any],
    enums: Mapping[str, Any],
    pages: Mapping[str, Any],
    app: Any,
    base_path: str,
    sources: Optional[Mapping[str, str]] = None,
) -> ValidationResult:
    """Per-document validation plus cross-references, without building the set."""
    return build_schema_set(entities, enums, pages, app, base_path, sources)[1]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "locate_line",
    "validate_document",
    "validate_entity_schema",
    "validate_enum_schema",
    "validate_page_schema",
    "validate_app_schema",
    "schema_file_path",
    "validate_cross_references",
    "build_schema_set",
    "validate_schema_set",
]

logger.debug("zenogen.validators loaded — %d public symbols.", len(__all__))
