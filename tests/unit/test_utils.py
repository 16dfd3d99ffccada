"""Unit tests for ids, callback folding and instruction templating."""

import pytest

from weft.agents import LlmAgent
from weft.agents.readonly_context import ReadonlyContext
from weft.errors import ServiceNotConfiguredError
from weft.models import MockLlm
from weft.types import Part
from weft.utils.callbacks import canonical_callbacks, first_result
from weft.utils.ids import (
    SequentialIdGenerator,
    UuidIdGenerator,
    new_event_id,
    new_function_call_id,
    new_invocation_id,
    use_id_generator,
)
from weft.utils.instructions import inject_session_state, is_valid_state_name
from tests.conftest import APP, USER


class TestIds:
    def test_sequential_generator_is_deterministic(self):
        with use_id_generator(SequentialIdGenerator()):
            assert new_event_id() == "00000001"
            assert new_event_id() == "00000002"
            assert new_invocation_id() == "e-1"
            assert new_function_call_id() == "weft-1"

    def test_default_restored_after_block(self):
        with use_id_generator(SequentialIdGenerator()):
            pass
        assert new_function_call_id().startswith("weft-")
        assert new_event_id() != "00000001"

    def test_uuid_generator_shapes(self):
        generator = UuidIdGenerator()
        assert len(generator.event_id()) == 8
        assert generator.invocation_id().startswith("e-")
        assert generator.function_call_id().startswith("weft-")


class TestCallbacks:
    def test_canonical_callbacks(self):
        def f():
            pass

        assert canonical_callbacks(None) == []
        assert canonical_callbacks(f) == [f]
        assert canonical_callbacks([f, f]) == [f, f]

    async def test_first_result_short_circuits(self):
        seen = []

        def none(x):
            seen.append("none")
            return None

        async def value(x):
            seen.append("value")
            return x * 2

        def never(x):
            seen.append("never")
            return 0

        assert await first_result([none, value, never], 4) == 8
        assert seen == ["none", "value"]

    async def test_first_result_all_empty(self):
        assert await first_result([lambda: None], accept=lambda r: r is not None) is None


class TestInstructionTemplating:
    @pytest.fixture
    async def readonly(self, make_context):
        agent = LlmAgent("a", model=MockLlm())
        ctx = await make_context(
            agent, state={"name": "Ada", "profile": {"langs": ["py", "c"]}, "user:tier": "gold"}
        )
        return ReadonlyContext(ctx)

    def test_valid_state_names(self):
        assert is_valid_state_name("name")
        assert is_valid_state_name("app:x")
        assert not is_valid_state_name("bad:x")
        assert not is_valid_state_name("1abc")

    async def test_substitutes_state(self, readonly):
        text = await inject_session_state("Hi {name}, tier {user:tier}.", readonly)
        assert text == "Hi Ada, tier gold."

    async def test_nested_paths_and_json(self, readonly):
        assert await inject_session_state("{profile.langs[1]}", readonly) == "c"
        assert await inject_session_state("{profile}", readonly) == '{\n  "langs": [\n    "py",\n    "c"\n  ]\n}'

    async def test_optional_and_invalid_names(self, readonly):
        assert await inject_session_state("[{missing?}]", readonly) == "[]"
        assert await inject_session_state("{not valid}", readonly) == "{not valid}"

    async def test_missing_required_raises(self, readonly):
        with pytest.raises(KeyError, match="Context variable not found"):
            await inject_session_state("{missing}", readonly)

    async def test_artifact_placeholder(self, readonly, artifact_service):
        ctx = readonly.invocation_context
        await artifact_service.save_artifact(
            app_name=APP, user_id=USER, session_id=ctx.session.id, filename="notes", artifact=Part(text="N1")
        )
        assert await inject_session_state("notes: {artifact.notes}", readonly) == "notes: N1"
        assert await inject_session_state("{artifact.other?}", readonly) == ""

    async def test_artifact_without_service_raises(self, readonly):
        readonly.invocation_context.artifact_service = None
        with pytest.raises(ServiceNotConfiguredError):
            await inject_session_state("{artifact.notes}", readonly)
