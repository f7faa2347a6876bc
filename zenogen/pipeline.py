# File: zenogen/pipeline.py
"""
Zeno Generator - Generation Pipeline
=====================================
Registry and executor for ``Generator`` plugins.

    SchemaSet ─► select applicable generators ─► run (parallel | sequential)
              ─► GenerationResult {files, generators, duration_ms, errors}

Error handling strategy:
    - A generator that raises never aborts the batch; its exception is
      recorded in ``GenerationResult.errors`` and the other generators'
      files are still returned.
    - Callers must inspect ``errors``: the absence of an exception does not
      mean every generator succeeded.

Ordering:
    - Sequential mode runs generators strictly in registration order.
    - Parallel mode runs them on a thread pool; files stay grouped per
      generator in selection order, errors are recorded in completion order.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from zenogen.errors import GenerationError, IncrementalGenerationNotImplemented
from zenogen.generator import Generator
from zenogen.models import GeneratedFile, GeneratorContext, SchemaChange, SchemaSet

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.pipeline")

ENTRY_POINT_GROUP: str = "zenogen.generators"

_PIPELINE_NAME: str = "GenerationPipeline"


# ---------------------------------------------------------------------------
# Options & result
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """
    Per-call options for :meth:`GenerationPipeline.generate`.

    ``generators`` restricts the run to the named generators (unknown names
    are ignored).  ``dry_run`` is informational for the consumer of the
    result; the pipeline itself never touches the filesystem.
    """

    generators: Optional[Sequence[str]] = None
    parallel: bool = True
    dry_run: bool = False
    max_workers: Optional[int] = None


@dataclass(slots=True)
class GenerationResult:
    """Outcome of one ``generate()`` call."""

    files: List[GeneratedFile] = field(default_factory=list)
    generators: List[str] = field(default_factory=list)
    duration_ms: float = 0.0
    errors: List[Exception] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines: List[str] = [
            f"  Status:      {status}",
            f"  Generators:  {', '.join(self.generators) or '-'}",
            f"  Files:       {len(self.files)}",
            f"  Errors:      {len(self.errors)}",
            f"  Duration:    {self.duration_ms:.1f} ms",
        ]
        for error in self.errors:
            lines.append(f"    ❌ {error}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class GenerationPipeline:
    """
    Holds named generators and runs the applicable ones against a ``SchemaSet``.

    Usage::

        pipeline = GenerationPipeline().register(ModelsGenerator())
        result = pipeline.generate(schemas, {"outputDir": "src", "schemaDir": "zeno"})
    """

    def __init__(self) -> None:
        self._generators: Dict[str, Generator] = {}

    # -- Registry -----------------------------------------------------------

    def register(self, generator: Generator) -> "GenerationPipeline":
        if generator.name in self._generators:
            raise GenerationError(
                f"Generator '{generator.name}' is already registered",
                _PIPELINE_NAME,
            )
        self._generators[generator.name] = generator
        logger.debug("Registered generator '%s'.", generator.name)
        return self

    def unregister(self, name: str) -> bool:
        return self._generators.pop(name, None) is not None

    def registered_generators(self) -> List[str]:
        return list(self._generators)

    def has_generator(self, name: str) -> bool:
        return name in self._generators

    def __len__(self) -> int:
        return len(self._generators)

    # -- Execution ----------------------------------------------------------

    def generate(
        self,
        schemas: SchemaSet,
        config: Optional[Mapping[str, Any]] = None,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """
        Run every applicable generator and aggregate the outcome.

        ``config`` is passed to generators untouched; its ``outputDir`` and
        ``schemaDir`` keys (or snake_case equivalents) populate the context.
        """
        options = options or GenerationOptions()
        config = dict(config or {})
        start: float = time.perf_counter()

        context: GeneratorContext = GeneratorContext(
            schemas=schemas,
            output_dir=str(config.get("outputDir", config.get("output_dir", ""))),
            schema_dir=str(config.get("schemaDir", config.get("schema_dir", ""))),
            config=config,
        )

        selected: List[Generator] = self._applicable_generators(
            schemas, options.generators
        )
        result: GenerationResult = GenerationResult(dry_run=options.dry_run)

        if not selected:
            logger.info("No applicable generators for this schema set.")
            result.duration_ms = (time.perf_counter() - start) * 1000.0
            return result

        logger.info(
            "Running %d generator(s) %s: %s",
            len(selected),
            "in parallel" if options.parallel and len(selected) > 1 else "sequentially",
            ", ".join(g.name for g in selected),
        )

        if options.parallel and len(selected) > 1:
            outputs = self._run_parallel(selected, context, result, options.max_workers)
        else:
            outputs = self._run_sequential(selected, context, result)

        for name, files in outputs:
            result.generators.append(name)
            result.files.extend(files)

        result.duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            "Generation finished: %d file(s) from %d generator(s), %d error(s) in %.1f ms.",
            len(result.files),
            len(result.generators),
            len(result.errors),
            result.duration_ms,
        )
        return result

    def generate_changes(
        self,
        changes: Sequence[SchemaChange],
        config: Optional[Mapping[str, Any]] = None,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """Incremental generation is not available; use :meth:`generate`."""
        raise IncrementalGenerationNotImplemented(
            "Incremental generation not yet implemented", _PIPELINE_NAME
        )

    # -- Internals ----------------------------------------------------------

    def _applicable_generators(
        self, schemas: SchemaSet, names: Optional[Sequence[str]]
    ) -> List[Generator]:
        candidates: List[Generator] = list(self._generators.values())
        if names is not None:
            wanted: Set[str] = set(names)
            candidates = [g for g in candidates if g.name in wanted]
        return [g for g in candidates if g.has_applicable_schemas(schemas)]

    @staticmethod
    def _run_sequential(
        selected: List[Generator],
        context: GeneratorContext,
        result: GenerationResult,
    ) -> List[Tuple[str, List[GeneratedFile]]]:
        outputs: List[Tuple[str, List[GeneratedFile]]] = []
        for generator in selected:
            try:
                outputs.append((generator.name, generator.run(context)))
            except Exception as exc:
                logger.error("Generator '%s' failed: %s", generator.name, exc, exc_info=True)
                result.errors.append(exc)
        return outputs

    @staticmethod
    def _run_parallel(
        selected: List[Generator],
        context: GeneratorContext,
        result: GenerationResult,
        max_workers: Optional[int],
    ) -> List[Tuple[str, List[GeneratedFile]]]:
        slots: List[Optional[List[GeneratedFile]]] = [None] * len(selected)
        workers: int = max_workers or len(selected)

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="zenogen-gen"
        ) as executor:
            futures: Dict[Future[List[GeneratedFile]], int] = {
                executor.submit(generator.run, context): index
                for index, generator in enumerate(selected)
            }
            for future in as_completed(futures):
                index: int = futures[future]
                name: str = selected[index].name
                try:
                    slots[index] = future.result()
                except Exception as exc:
                    logger.error("Generator '%s' failed: %s", name, exc, exc_info=exc)
                    result.errors.append(exc)

        return [
            (selected[i].name, files)
            for i, files in enumerate(slots)
            if files is not None
        ]


# ---------------------------------------------------------------------------
# Plugin discovery
# ---------------------------------------------------------------------------


def load_entry_point_generators(group: str = ENTRY_POINT_GROUP) -> List[Generator]:
    """
    Instantiate generators advertised under the *group* entry-point group.

    Each entry point must resolve to a ``Generator`` subclass (instantiated
    without arguments) or to an already-built instance.
    """
    generators: List[Generator] = []
    for ep in entry_points(group=group):
        target: Any = ep.load()
        instance: Any = target() if isinstance(target, type) else target
        if not isinstance(instance, Generator):
            raise GenerationError(
                f"Entry point '{ep.name}' does not provide a Generator",
                _PIPELINE_NAME,
                context={"entry_point": ep.value},
            )
        generators.append(instance)
    logger.debug("Discovered %d generator(s) in '%s'.", len(generators), group)
    return generators


def create_pipeline(generators: Sequence[Generator] = ()) -> GenerationPipeline:
    pipeline: GenerationPipeline = GenerationPipeline()
    for generator in generators:
        pipeline.register(generator)
    return pipeline


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ENTRY_POINT_GROUP",
    "GenerationOptions",
    "GenerationResult",
    "GenerationPipeline",
    "load_entry_point_generators",
    "create_pipeline",
]
