"""Unit tests for events, event actions and delta-tracked state."""

import pytest

from weft.events import Event, EventActions
from weft.sessions import State, apply_state_delta, replay_state
from weft.types import Content, Part
from tests.conftest import APP, USER, text_event


class TestState:
    def test_reads_prefer_delta(self):
        state = State({"a": 1, "b": 2}, {"a": 10})
        assert state["a"] == 10
        assert state.get("b") == 2
        assert state.get("missing", "d") == "d"

    def test_writes_only_touch_delta(self):
        value = {"a": 1}
        delta = {}
        state = State(value, delta)
        state["b"] = 2
        assert value == {"a": 1}
        assert delta == {"b": 2}
        assert state.has_delta()

    def test_delete_records_none(self):
        delta = {}
        state = State({"a": 1}, delta)
        del state["a"]
        assert delta == {"a": None}
        assert "a" not in state
        with pytest.raises(KeyError):
            state["a"]

    def test_delete_missing_key_raises(self):
        state = State({}, {})
        with pytest.raises(KeyError):
            del state["nope"]

    def test_to_dict_merges(self):
        state = State({"a": 1, "b": 2}, {"b": None, "c": 3})
        assert state.to_dict() == {"a": 1, "c": 3}
        assert len(state) == 2
        assert sorted(state) == ["a", "c"]

    def test_setdefault_and_update(self):
        delta = {}
        state = State({"a": 1}, delta)
        assert state.setdefault("a", 5) == 1
        assert state.setdefault("z", 5) == 5
        state.update({"y": 0})
        assert delta == {"z": 5, "y": 0}

    def test_apply_delta_skips_temp_and_deletes_none(self):
        committed = {"a": 1, "b": 2}
        apply_state_delta(committed, {"a": None, "temp:x": 1, "c": 3})
        assert committed == {"b": 2, "c": 3}


class TestEventActions:
    def test_merge_later_values_win(self):
        first = EventActions(state_delta={"a": 1}, artifact_delta={"f": 0})
        second = EventActions(state_delta={"a": 2, "b": 3}, escalate=True, transfer_to_agent="x")
        first.merge(second)
        assert first.state_delta == {"a": 2, "b": 3}
        assert first.artifact_delta == {"f": 0}
        assert first.escalate is True
        assert first.transfer_to_agent == "x"


class TestEvent:
    def test_ids_are_assigned(self):
        a, b = Event(author="x"), Event(author="x")
        assert a.id and b.id and a.id != b.id

    def test_final_response_rules(self):
        assert text_event("a", "done").is_final_response()
        call = Event(author="a", content=Content(role="model", parts=[Part.from_function_call("t", {}, "1")]))
        assert not call.is_final_response()
        call.long_running_tool_ids = {"1"}
        assert call.is_final_response()
        partial = text_event("a", "chunk", partial=True)
        assert not partial.is_final_response()

    def test_skip_summarization_is_final(self):
        response = Event(
            author="a",
            content=Content(role="user", parts=[Part.from_function_response("t", {"ok": 1}, "1")]),
            actions=EventActions(skip_summarization=True),
        )
        assert response.is_final_response()

    def test_trailing_code_result_is_not_final(self):
        from weft.types import CodeExecutionResult

        event = Event(
            author="a",
            content=Content(role="model", parts=[Part(code_execution_result=CodeExecutionResult("OUTCOME_OK", "1"))]),
        )
        assert event.has_trailing_code_execution_result()
        assert not event.is_final_response()


class TestEventLog:
    async def test_log_keeps_insertion_order_and_drops_partials(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER)
        appended = [
            text_event("user", "q"),
            text_event("a", "chu", partial=True),
            text_event("a", "chunk"),
            text_event("b", "other"),
        ]
        for event in appended:
            await session_service.append_event(session, event)

        stored = await session_service.get_session(app_name=APP, user_id=USER, session_id=session.id)
        assert [e.id for e in stored.events] == [appended[0].id, appended[2].id, appended[3].id]
        assert not any(e.partial for e in stored.events)

    async def test_replay_equals_incremental_commit(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER)
        deltas = [{"a": 1, "b": 1}, {"a": 2, "temp:scratch": "x"}, {"b": None, "c": [1, 2]}]
        for delta in deltas:
            await session_service.append_event(
                session, Event(author="a", actions=EventActions(state_delta=dict(delta)))
            )

        assert session.state == {"a": 2, "c": [1, 2]}
        assert replay_state(session.events) == session.state

    async def test_temp_keys_trimmed_before_commit(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER)
        event = Event(author="a", actions=EventActions(state_delta={"temp:k": 1, "k": 2}))
        await session_service.append_event(session, event)
        assert event.actions.state_delta == {"k": 2}
        assert "temp:k" not in session.state
