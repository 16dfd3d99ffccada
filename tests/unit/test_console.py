"""Unit tests for the rich console helpers."""

from rich.console import Console

from weft.agents import GraphAgent, GraphNode, SequentialAgent
from weft.events import Event, EventActions
from weft.types import Content, Part
from weft.utils.console import EventTracePrinter, print_event, render_agent_tree
from tests.conftest import EchoAgent, text_event


def recording_console() -> Console:
    return Console(record=True, width=100, color_system=None)


class TestPrintEvent:
    def test_renders_text_tool_calls_and_actions(self):
        console = recording_console()
        event = Event(
            author="planner",
            branch="root.planner",
            content=Content(
                role="model",
                parts=[Part(text="thinking it over"), Part.from_function_call("lookup", {"q": "weft"}, "c1")],
            ),
            actions=EventActions(state_delta={"step": 2}, transfer_to_agent="helper"),
        )

        print_event(event, console)

        output = console.export_text()
        assert "planner" in output
        assert "root.planner" in output
        assert "thinking it over" in output
        assert "Tool call: lookup" in output
        assert '"q": "weft"' in output
        assert "state: {'step': 2}" in output
        assert "transfer to helper" in output

    def test_renders_errors(self):
        console = recording_console()
        print_event(Event(author="a", error_code="AGENT_EXECUTION_ERROR", error_message="boom"), console)
        assert "AGENT_EXECUTION_ERROR: boom" in console.export_text()


class TestAgentTree:
    def test_nested_agents_and_graph_edges(self):
        graph = GraphAgent(
            "flowchart",
            nodes=[GraphNode("S", EchoAgent("start"), targets=["T"]), GraphNode("T", EchoAgent("finish"))],
            root_node="S",
        )
        root = SequentialAgent("pipeline", sub_agents=[EchoAgent("intro"), graph])
        console = recording_console()

        console.print(render_agent_tree(root))

        output = console.export_text()
        for name in ("pipeline", "SequentialAgent", "intro", "flowchart", "finish"):
            assert name in output
        assert "S (root) → T" in output


class TestEventTracePrinter:
    def test_counts_per_author(self):
        printer = EventTracePrinter(console=recording_console(), verbose=False)
        call = Event(
            author="a",
            content=Content(role="model", parts=[Part.from_function_call("x"), Part.from_function_call("y")]),
        )
        for event in [
            text_event("user", "hi"),
            call,
            text_event("a", "done"),
            text_event("b", "partial", partial=True),
            Event(author="b", error_code="AGENT_EXECUTION_ERROR"),
        ]:
            printer.add(event)

        assert printer.model_events == {"a": 2, "b": 1}
        assert printer.tool_calls == {"a": 2}
        assert printer.errors == {"b": 1}

        printer.print_summary()
        output = printer.console.export_text()
        assert "Execution Summary" in output
        assert "user" not in output

    def test_verbose_prints_each_event(self):
        console = recording_console()
        printer = EventTracePrinter(console=console)
        printer.add(text_event("a", "visible line"))
        assert "visible line" in console.export_text()
