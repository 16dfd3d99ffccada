"""
Rich console helpers for watching a session unfold.

Nothing here feeds back into execution; the printers only read events.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import TYPE_CHECKING

from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

if TYPE_CHECKING:
    from ..agents.base_agent import BaseAgent
    from ..events import Event


def _event_title(event: Event) -> str:
    title = f"[bold green]{event.author or '?'}[/bold green]"
    if event.branch:
        title += f" [dim]({event.branch})[/dim]"
    if event.partial:
        title += " [yellow]partial[/yellow]"
    return title


def print_event(event: Event, console: Console | None = None) -> None:
    """Print one event as a panel."""
    console = console or Console()
    body = Tree(_event_title(event))

    if event.content:
        for part in event.content.parts:
            if part.text:
                style = "dim italic" if part.thought else ""
                body.add(Text(part.text, style=style))
            elif part.function_call:
                call = body.add(f"🛠️ [bold yellow]Tool call: {part.function_call.name}[/bold yellow]")
                call.add(JSON(json.dumps(part.function_call.args, ensure_ascii=False, default=str)))
            elif part.function_response:
                resp = body.add(f"✅ [bold]Tool result: {part.function_response.name}[/bold]")
                resp.add(JSON(json.dumps(part.function_response.response, ensure_ascii=False, default=str)))
            elif part.executable_code:
                body.add(Text(part.executable_code.code, style="cyan"))
            elif part.code_execution_result:
                body.add(Text(part.code_execution_result.output, style="magenta"))

    if event.error_code:
        body.add(f"❌ [bold red]{event.error_code}[/bold red]: {event.error_message or ''}")
    if event.actions.state_delta:
        body.add(Text(f"state: {event.actions.state_delta}", style="dim"))
    if event.actions.transfer_to_agent:
        body.add(f"➡️ transfer to [bold]{event.actions.transfer_to_agent}[/bold]")
    if event.actions.escalate:
        body.add("⬆️ escalate")

    console.print(Panel(body, border_style="red" if event.error_code else "blue"))


def render_agent_tree(agent: BaseAgent) -> Tree:
    """Agent hierarchy as a rich tree; graph agents also list their edges."""
    from ..agents.graph_agent import GraphAgent

    tree = Tree(f"🤖 [bold blue]{agent.name}[/bold blue] [dim]{type(agent).__name__}[/dim]")
    if isinstance(agent, GraphAgent):
        layout = agent.describe()
        for node, targets in layout["nodes"].items():
            marker = " (root)" if node == layout["root"] else ""
            label = f"{node}{marker} → {', '.join(targets)}" if targets else f"{node}{marker}"
            tree.add(Text(label, style="dim"))
    for sub_agent in agent.sub_agents:
        tree.add(render_agent_tree(sub_agent))
    return tree


class EventTracePrinter:
    """Collects events and prints per-author counts at the end of a run."""

    def __init__(self, console: Console | None = None, verbose: bool = True) -> None:
        self.console = console or Console()
        self.verbose = verbose
        self.model_events: Counter[str] = Counter()
        self.tool_calls: Counter[str] = Counter()
        self.errors: Counter[str] = Counter()

    def add(self, event: Event) -> None:
        if event.partial:
            return
        if event.author != "user":
            self.model_events[event.author] += 1
        calls = event.get_function_calls()
        if calls:
            self.tool_calls[event.author] += len(calls)
        if event.error_code:
            self.errors[event.author] += 1
        if self.verbose:
            print_event(event, self.console)

    def summary(self) -> Table:
        table = Table(title="Execution Summary")
        table.add_column("Agent", style="cyan")
        table.add_column("Model events", justify="right")
        table.add_column("Tool calls", justify="right")
        table.add_column("Errors", justify="right", style="red")
        authors = sorted(set(self.model_events) | set(self.tool_calls) | set(self.errors))
        for author in authors:
            table.add_row(
                author,
                str(self.model_events[author]),
                str(self.tool_calls[author]),
                str(self.errors[author]),
            )
        return table

    def print_summary(self) -> None:
        self.console.print(self.summary())
