"""Unit tests for the in-memory session, artifact and memory services."""

from weft.events import Event, EventActions
from weft.sessions import GetSessionConfig
from weft.types import Part
from tests.conftest import APP, USER, text_event


class TestInMemorySessionService:
    async def test_create_and_get(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER, state={"k": "v"})
        fetched = await session_service.get_session(app_name=APP, user_id=USER, session_id=session.id)
        assert fetched.id == session.id
        assert fetched.state == {"k": "v"}
        assert fetched is not session

    async def test_explicit_session_id(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER, session_id="s-1")
        assert session.id == "s-1"

    async def test_missing_session_is_none(self, session_service):
        assert await session_service.get_session(app_name=APP, user_id=USER, session_id="nope") is None

    async def test_app_and_user_scoped_state_is_shared(self, session_service):
        first = await session_service.create_session(app_name=APP, user_id=USER)
        await session_service.append_event(
            first, Event(author="a", actions=EventActions(state_delta={"app:theme": "dark", "user:lang": "fr", "local": 1}))
        )

        second = await session_service.create_session(app_name=APP, user_id=USER)
        other_user = await session_service.create_session(app_name=APP, user_id="u2")

        assert second.state == {"app:theme": "dark", "user:lang": "fr"}
        assert other_user.state == {"app:theme": "dark"}

    async def test_scoped_delete(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER, state={"user:x": 1})
        await session_service.append_event(session, Event(author="a", actions=EventActions(state_delta={"user:x": None})))
        fresh = await session_service.create_session(app_name=APP, user_id=USER)
        assert "user:x" not in fresh.state

    async def test_scoped_delete_reaches_other_sessions(self, session_service):
        first = await session_service.create_session(app_name=APP, user_id=USER)
        second = await session_service.create_session(app_name=APP, user_id=USER)
        await session_service.append_event(
            first, Event(author="a", actions=EventActions(state_delta={"app:x": 1, "user:y": 2, "local": 3}))
        )

        await session_service.append_event(
            second, Event(author="a", actions=EventActions(state_delta={"app:x": None, "user:y": None}))
        )

        refetched = await session_service.get_session(app_name=APP, user_id=USER, session_id=first.id)
        assert refetched.state == {"local": 3}
        assert session_service.sessions[APP][USER][first.id].state == {"local": 3}

    async def test_scoped_update_from_other_session_wins(self, session_service):
        first = await session_service.create_session(app_name=APP, user_id=USER, state={"app:mode": "a"})
        second = await session_service.create_session(app_name=APP, user_id=USER)
        await session_service.append_event(first, Event(author="a", actions=EventActions(state_delta={"app:mode": "b"})))
        await session_service.append_event(second, Event(author="a", actions=EventActions(state_delta={"app:mode": "c"})))

        refetched = await session_service.get_session(app_name=APP, user_id=USER, session_id=first.id)
        assert refetched.state == {"app:mode": "c"}

    async def test_create_drops_temp_state(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER, state={"temp:x": 1, "y": 2})
        assert session.state == {"y": 2}

    async def test_get_with_config(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER)
        for i in range(4):
            await session_service.append_event(session, text_event("a", f"m{i}", timestamp=float(i)))
        recent = await session_service.get_session(
            app_name=APP, user_id=USER, session_id=session.id, config=GetSessionConfig(num_recent_events=2)
        )
        assert [e.content.text for e in recent.events] == ["m2", "m3"]
        after = await session_service.get_session(
            app_name=APP, user_id=USER, session_id=session.id, config=GetSessionConfig(after_timestamp=1.0)
        )
        assert len(after.events) == 3

    async def test_list_and_delete(self, session_service):
        session = await session_service.create_session(app_name=APP, user_id=USER)
        await session_service.append_event(session, text_event("user", "hi"))
        listed = await session_service.list_sessions(app_name=APP, user_id=USER)
        assert [s.id for s in listed.sessions] == [session.id]
        assert listed.sessions[0].events == []

        await session_service.delete_session(app_name=APP, user_id=USER, session_id=session.id)
        assert await session_service.get_session(app_name=APP, user_id=USER, session_id=session.id) is None


class TestInMemoryArtifactService:
    async def test_versions(self, artifact_service):
        keys = dict(app_name=APP, user_id=USER, session_id="s")
        assert await artifact_service.save_artifact(filename="f.txt", artifact=Part(text="v0"), **keys) == 0
        assert await artifact_service.save_artifact(filename="f.txt", artifact=Part(text="v1"), **keys) == 1

        assert (await artifact_service.load_artifact(filename="f.txt", **keys)).text == "v1"
        assert (await artifact_service.load_artifact(filename="f.txt", version=0, **keys)).text == "v0"
        assert await artifact_service.load_artifact(filename="f.txt", version=5, **keys) is None
        assert await artifact_service.list_versions(filename="f.txt", **keys) == [0, 1]

    async def test_user_namespace_crosses_sessions(self, artifact_service):
        await artifact_service.save_artifact(
            app_name=APP, user_id=USER, session_id="s1", filename="user:profile", artifact=Part(text="p")
        )
        loaded = await artifact_service.load_artifact(
            app_name=APP, user_id=USER, session_id="s2", filename="user:profile"
        )
        assert loaded.text == "p"
        assert await artifact_service.list_artifact_keys(app_name=APP, user_id=USER, session_id="s2") == [
            "user:profile"
        ]

    async def test_delete(self, artifact_service):
        keys = dict(app_name=APP, user_id=USER, session_id="s", filename="f")
        await artifact_service.save_artifact(artifact=Part(text="x"), **keys)
        await artifact_service.delete_artifact(**keys)
        assert await artifact_service.load_artifact(**keys) is None


class TestInMemoryMemoryService:
    async def test_keyword_search(self, session_service, memory_service):
        session = await session_service.create_session(app_name=APP, user_id=USER)
        await session_service.append_event(session, text_event("user", "My cat is called Tom"))
        await session_service.append_event(session, text_event("a", "Nice weather"))
        await memory_service.add_session_to_memory(session)

        found = await memory_service.search_memory(app_name=APP, user_id=USER, query="cat")
        assert [m.content.text for m in found.memories] == ["My cat is called Tom"]
        assert found.memories[0].author == "user"

        other = await memory_service.search_memory(app_name=APP, user_id="u2", query="cat")
        assert other.memories == []

    async def test_clear(self, session_service, memory_service):
        session = await session_service.create_session(app_name=APP, user_id=USER)
        await session_service.append_event(session, text_event("user", "remember apples"))
        await memory_service.add_session_to_memory(session)
        memory_service.clear()
        found = await memory_service.search_memory(app_name=APP, user_id=USER, query="apples")
        assert found.memories == []
