"""
tests/test_pipeline.py
Unit tests for zenogen.generator and zenogen.pipeline.

Tests cover:
- registry bookkeeping and duplicate detection
- applicability filtering per schema kind
- parallel vs sequential execution
- failure isolation (one generator failing never aborts the batch)
- the incremental entry point
"""

from __future__ import annotations

import threading
import time
from typing import List, Sequence

import pytest

from zenogen.errors import GenerationError, IncrementalGenerationNotImplemented
from zenogen.generator import Generator
from zenogen.models import GeneratedFile, GeneratorContext, SchemaSet, SchemaType
from zenogen.pipeline import (
    GenerationOptions,
    GenerationPipeline,
    create_pipeline,
    load_entry_point_generators,
)


CONFIG = {"outputDir": "src", "schemaDir": "zeno"}


# ===========================================================================
# Test generators
# ===========================================================================


class StubGenerator(Generator):
    """Emits one file per supported entity / enum / page."""

    def __init__(
        self,
        name: str,
        kinds: Sequence[SchemaType] = (SchemaType.ENTITY,),
        delay: float = 0.0,
        fail: bool = False,
    ) -> None:
        self.name = name
        self.kinds = tuple(kinds)
        self.delay = delay
        self.fail = fail
        self.contexts: List[GeneratorContext] = []

    def supports(self, schema_type: SchemaType) -> bool:
        return schema_type in self.kinds

    def generate(self, context: GeneratorContext) -> List[GeneratedFile]:
        self.contexts.append(context)
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            raise RuntimeError(f"{self.name} exploded")
        supported = self.filter_supported_schemas(context.schemas)
        names = [*supported.entities, *supported.enums, *supported.pages]
        return [GeneratedFile(f"{self.name}/{n}.ts", f"// {n}\n") for n in names]


# ===========================================================================
# Registry
# ===========================================================================


class TestRegistry:

    def test_register_is_chainable(self) -> None:
        pipeline = GenerationPipeline().register(StubGenerator("a")).register(StubGenerator("b"))
        assert pipeline.registered_generators() == ["a", "b"]
        assert len(pipeline) == 2
        assert pipeline.has_generator("a")

    def test_duplicate_name_rejected(self) -> None:
        pipeline = GenerationPipeline().register(StubGenerator("models"))
        with pytest.raises(GenerationError, match="Generator 'models' is already registered"):
            pipeline.register(StubGenerator("models"))

    def test_unregister(self) -> None:
        pipeline = create_pipeline([StubGenerator("a")])
        assert pipeline.unregister("a") is True
        assert pipeline.unregister("a") is False
        assert len(pipeline) == 0

    def test_no_entry_points_in_unknown_group(self) -> None:
        assert load_entry_point_generators("zenogen.tests.no-such-group") == []


# ===========================================================================
# Applicability
# ===========================================================================


class TestApplicability:

    def test_no_generators_gives_empty_result(self, schema_set: SchemaSet) -> None:
        result = GenerationPipeline().generate(schema_set, CONFIG)
        assert result.files == []
        assert result.generators == []
        assert result.errors == []
        assert result.success

    def test_generator_without_matching_schemas_skipped(self, make_schema_set) -> None:
        schemas = make_schema_set(
            entities={},
            enums={"status": {"values": {"A": {"label": "A"}}}},
            pages={},
        )
        pipeline = create_pipeline([StubGenerator("entities-only")])
        result = pipeline.generate(schemas, CONFIG)
        assert result.generators == []
        assert result.files == []

    def test_app_generator_always_applies(self, make_schema_set) -> None:
        schemas = make_schema_set(entities={}, enums={}, pages={})
        pipeline = create_pipeline([StubGenerator("layout", kinds=(SchemaType.APP,))])
        result = pipeline.generate(schemas, CONFIG)
        assert result.generators == ["layout"]

    def test_named_subset(self, schema_set: SchemaSet) -> None:
        pipeline = create_pipeline([StubGenerator("a"), StubGenerator("b"), StubGenerator("c")])
        result = pipeline.generate(
            schema_set, CONFIG, GenerationOptions(generators=["c", "a", "missing"])
        )
        assert result.generators == ["a", "c"]

    def test_repeated_name_runs_once(self, schema_set: SchemaSet) -> None:
        a = StubGenerator("a")
        pipeline = create_pipeline([a, StubGenerator("b")])
        result = pipeline.generate(
            schema_set, CONFIG, GenerationOptions(generators=["b", "a", "a"], parallel=False)
        )
        assert result.generators == ["a", "b"]
        assert [f.path for f in result.files] == ["a/users.ts", "b/users.ts"]
        assert len(a.contexts) == 1

    def test_context_is_shared(self, schema_set: SchemaSet) -> None:
        first, second = StubGenerator("a"), StubGenerator("b")
        create_pipeline([first, second]).generate(schema_set, CONFIG)
        assert first.contexts[0] is second.contexts[0]
        assert first.contexts[0].output_dir == "src"
        assert first.contexts[0].schema_dir == "zeno"
        assert first.contexts[0].config["outputDir"] == "src"

    def test_missing_output_dir_is_recorded(self, schema_set: SchemaSet) -> None:
        result = create_pipeline([StubGenerator("a")]).generate(schema_set, {"schemaDir": "zeno"})
        assert not result.success
        assert isinstance(result.errors[0], GenerationError)
        assert "output_dir" in str(result.errors[0])


# ===========================================================================
# Execution
# ===========================================================================


class TestExecution:

    def test_parallel_runs_concurrently(self, schema_set: SchemaSet) -> None:
        pipeline = create_pipeline(
            [StubGenerator(f"g{i}", delay=0.05) for i in range(3)]
        )
        result = pipeline.generate(schema_set, CONFIG, GenerationOptions(parallel=True))
        assert result.success
        assert len(result.files) == 3
        assert result.duration_ms < 120

    def test_sequential_runs_one_after_another(self, schema_set: SchemaSet) -> None:
        pipeline = create_pipeline(
            [StubGenerator(f"g{i}", delay=0.05) for i in range(3)]
        )
        result = pipeline.generate(schema_set, CONFIG, GenerationOptions(parallel=False))
        assert result.success
        assert result.generators == ["g0", "g1", "g2"]
        assert result.duration_ms >= 140

    def test_sequential_order_is_registration_order(self, schema_set: SchemaSet) -> None:
        order: List[str] = []
        lock = threading.Lock()

        class Recording(StubGenerator):
            def generate(self, context: GeneratorContext) -> List[GeneratedFile]:
                with lock:
                    order.append(self.name)
                return super().generate(context)

        pipeline = create_pipeline([Recording("z"), Recording("a"), Recording("m")])
        pipeline.generate(schema_set, CONFIG, GenerationOptions(parallel=False))
        assert order == ["z", "a", "m"]

    def test_parallel_files_grouped_in_selection_order(self, schema_set: SchemaSet) -> None:
        pipeline = create_pipeline(
            [StubGenerator("slow", delay=0.05), StubGenerator("fast")]
        )
        result = pipeline.generate(schema_set, CONFIG)
        assert [f.path for f in result.files] == ["slow/users.ts", "fast/users.ts"]

    def test_failure_is_isolated(self, schema_set: SchemaSet) -> None:
        pipeline = create_pipeline(
            [
                StubGenerator("good", kinds=(SchemaType.ENTITY, SchemaType.ENUM)),
                StubGenerator("bad", fail=True),
            ]
        )
        for parallel in (True, False):
            result = pipeline.generate(schema_set, CONFIG, GenerationOptions(parallel=parallel))
            assert not result.success
            assert result.generators == ["good"]
            assert [f.path for f in result.files] == ["good/users.ts", "good/status.ts"]
            assert len(result.errors) == 1
            assert "bad exploded" in str(result.errors[0])

    def test_dry_run_flag_is_reported(self, schema_set: SchemaSet) -> None:
        result = create_pipeline([StubGenerator("a")]).generate(
            schema_set, CONFIG, GenerationOptions(dry_run=True)
        )
        assert result.dry_run is True
        assert "SUCCESS" in result.summary()


class TestIncremental:

    def test_generate_changes_not_implemented(self) -> None:
        pipeline = create_pipeline([StubGenerator("a")])
        with pytest.raises(IncrementalGenerationNotImplemented) as exc_info:
            pipeline.generate_changes([], CONFIG)
        assert isinstance(exc_info.value, NotImplementedError)
        assert exc_info.value.message == "Incremental generation not yet implemented"
