# File: zenogen/generator.py
"""
Zeno Generator - Generator Plugin Base
=======================================
Every output concern (ORM models, UI components, API routes, pages) is a
``Generator``: a named unit that declares which schema kinds it consumes and
turns a ``GeneratorContext`` into a list of ``GeneratedFile`` objects.

Lifecycle (template method)::

    pipeline ──► generator.run(context)
                    ├─ validate_context()   (raises GenerationError)
                    └─ generate(context)    (implemented by subclasses)

Generators never write to disk; the pipeline hands their output to the
exporter (or to the caller, in dry-run mode).
"""

from __future__ import annotations

import abc
import logging
from typing import Dict, List

from zenogen.errors import GenerationError
from zenogen.models import (
    EntitySchema,
    EnumSchema,
    GeneratedFile,
    GeneratorContext,
    PageSchema,
    SchemaSet,
    SchemaType,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.generator")


class SupportedSchemas:
    """The slices of a ``SchemaSet`` a particular generator may process."""

    __slots__ = ("entities", "enums", "pages")

    def __init__(
        self,
        entities: Dict[str, EntitySchema],
        enums: Dict[str, EnumSchema],
        pages: Dict[str, PageSchema],
    ) -> None:
        self.entities: Dict[str, EntitySchema] = entities
        self.enums: Dict[str, EnumSchema] = enums
        self.pages: Dict[str, PageSchema] = pages

    def __bool__(self) -> bool:
        return bool(self.entities or self.enums or self.pages)

    def __repr__(self) -> str:
        return (
            f"<SupportedSchemas entities={len(self.entities)} "
            f"enums={len(self.enums)} pages={len(self.pages)}>"
        )


class Generator(abc.ABC):
    """
    Abstract base class for all generators.

    Subclasses set ``name`` (unique within a pipeline) and implement
    :meth:`supports` and :meth:`generate`.

    Example::

        class ModelsGenerator(Generator):
            name = "models"

            def supports(self, schema_type):
                return schema_type in (SchemaType.ENTITY, SchemaType.ENUM)

            def generate(self, context):
                return [
                    GeneratedFile(f"src/models/{n}.ts", "...")
                    for n in context.schemas.entities
                ]
    """

    name: str = ""

    @abc.abstractmethod
    def supports(self, schema_type: SchemaType) -> bool:
        """True when this generator consumes schemas of *schema_type*."""

    @abc.abstractmethod
    def generate(self, context: GeneratorContext) -> List[GeneratedFile]:
        """Produce output files for *context*."""

    # -- Template method ----------------------------------------------------

    def run(self, context: GeneratorContext) -> List[GeneratedFile]:
        self.validate_context(context)
        files: List[GeneratedFile] = list(self.generate(context))
        logger.debug("Generator '%s' produced %d file(s).", self.name, len(files))
        return files

    def validate_context(self, context: GeneratorContext) -> None:
        if context.schemas is None:
            raise GenerationError("schemas are required in context", self.name)
        if not context.output_dir:
            raise GenerationError("output_dir is required in context", self.name)
        if not context.schema_dir:
            raise GenerationError("schema_dir is required in context", self.name)

    # -- Schema selection ---------------------------------------------------

    def filter_supported_schemas(self, schemas: SchemaSet) -> SupportedSchemas:
        return SupportedSchemas(
            entities=schemas.entities if self.supports(SchemaType.ENTITY) else {},
            enums=schemas.enums if self.supports(SchemaType.ENUM) else {},
            pages=schemas.pages if self.supports(SchemaType.PAGE) else {},
        )

    def has_applicable_schemas(self, schemas: SchemaSet) -> bool:
        """
        True when at least one supported collection is non-empty, or the
        generator supports ``app`` (a ``SchemaSet`` always carries one).
        """
        if self.filter_supported_schemas(schemas):
            return True
        return self.supports(SchemaType.APP) and schemas.app is not None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.name}'>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SupportedSchemas",
    "Generator",
]
