"""Unit tests for code executors and the code-execution processors."""

import base64

import pytest
from pydantic import Field, ValidationError

from weft.agents import LlmAgent
from weft.code_executors import (
    BaseCodeExecutor,
    CodeExecutionResult,
    CodeExecutorContext,
    File,
    SandboxedCodeExecutor,
)
from weft.code_executors.code_execution_utils import (
    CodeExecutionInput,
    convert_code_execution_parts,
    extract_code_and_truncate_content,
)
from weft.events import Event
from weft.models import MockLlm
from weft.types import Blob, Content, Part
from tests.conftest import collect, texts

CODE_REPLY = "Let me compute.\n```python\nprint(6 * 7)\n```\nignored tail"


class RecordingExecutor(BaseCodeExecutor):
    inputs: list = Field(default_factory=list)
    result: CodeExecutionResult = Field(default_factory=lambda: CodeExecutionResult(stdout="ran"))

    async def execute_code(self, invocation_context, code_execution_input):
        self.inputs.append(code_execution_input)
        return self.result


class TestExtraction:
    def test_first_block_extracted_and_tail_dropped(self):
        content = Content.from_text(CODE_REPLY, role="model")

        code = extract_code_and_truncate_content(content, RecordingExecutor().code_block_delimiters)

        assert code == "print(6 * 7)"
        assert content.parts[0].text == "Let me compute.\n"
        assert content.parts[1].executable_code.code == "print(6 * 7)"
        assert len(content.parts) == 2

    def test_no_code(self):
        content = Content.from_text("just words", role="model")
        assert extract_code_and_truncate_content(content, RecordingExecutor().code_block_delimiters) is None
        assert content.text == "just words"

    def test_render_parts_as_text(self):
        executor = RecordingExecutor()
        code = Content.from_text(CODE_REPLY, role="model")
        extract_code_and_truncate_content(code, executor.code_block_delimiters)
        convert_code_execution_parts(code, executor.code_block_delimiters[0], executor.execution_result_delimiters)
        assert code.parts[-1].text == "```tool_code\nprint(6 * 7)\n```"


class TestExecutorContext:
    def test_error_counts_and_results(self):
        state: dict = {}
        context = CodeExecutorContext(state)

        context.increment_error_count("inv")
        context.increment_error_count("inv")
        assert context.get_error_count("inv") == 2
        context.reset_error_count("inv")
        assert context.get_error_count("inv") == 0

        context.update_code_execution_result("inv", "x = 1", "", "")
        delta = context.get_state_delta()
        assert delta["_code_execution_results"]["inv"][0]["code"] == "x = 1"
        assert state == {}

    def test_input_files_and_execution_id(self):
        context = CodeExecutorContext({})
        context.add_input_files([File(name="a.csv", content="", mime_type="text/csv")])
        context.set_execution_id("session-1")
        context.add_processed_file_names(["a.csv"])

        assert [f.name for f in context.get_input_files()] == ["a.csv"]
        assert context.get_execution_id() == "session-1"
        assert context.get_processed_file_names() == ["a.csv"]
        context.clear_input_files()
        assert context.get_input_files() == []


class TestSandboxedCodeExecutor:
    async def test_captures_stdout(self):
        result = await SandboxedCodeExecutor().execute_code(None, CodeExecutionInput(code="print('hi')"))
        assert result.stdout == "hi\n"
        assert result.stderr == ""

    async def test_reports_errors(self):
        result = await SandboxedCodeExecutor().execute_code(None, CodeExecutionInput(code="1 / 0"))
        assert result.stderr == "ZeroDivisionError: division by zero"

    async def test_blocks_modules_outside_allow_list(self):
        code = "import os\nprint(os.getpid() > 0)"
        result = await SandboxedCodeExecutor().execute_code(None, CodeExecutionInput(code=code))
        assert result.stdout == ""
        assert result.stderr == "ImportError: Import of 'os' is not allowed"

    async def test_allowed_module_and_loops(self):
        code = "import math\ntotal = 0\nfor n in [1, 2, 3]:\n    total += n\nprint(math.sqrt(total * 6))"
        result = await SandboxedCodeExecutor().execute_code(None, CodeExecutionInput(code=code))
        assert result.stdout == "6.0\n"
        assert result.stderr == ""

    async def test_private_attribute_access_rejected(self):
        code = "print(().__class__)"
        result = await SandboxedCodeExecutor().execute_code(None, CodeExecutionInput(code=code))
        assert result.stdout == ""
        assert result.stderr.startswith("SyntaxError")

    async def test_runaway_code_is_killed(self):
        executor = SandboxedCodeExecutor(timeout=0.5)
        result = await executor.execute_code(None, CodeExecutionInput(code="while True:\n    pass"))
        assert result.stderr == "Execution timed out after 0.5 seconds"

    def test_rejects_unsupported_modes(self):
        with pytest.raises(ValidationError, match="stateful=True is not supported"):
            SandboxedCodeExecutor(stateful=True)


class TestCodeExecutionFlow:
    async def test_code_runs_and_result_is_fed_back(self, make_context):
        llm = MockLlm([CODE_REPLY, "The answer is 42"])
        agent = LlmAgent("a", model=llm, code_executor=SandboxedCodeExecutor())
        ctx = await make_context(agent)

        events = await collect(ctx)

        code_event, result_event, final = events
        assert code_event.content.parts[-1].executable_code.code == "print(6 * 7)"
        assert result_event.content.parts[0].code_execution_result.output == "Code execution result:\n42\n"
        assert final.content.text == "The answer is 42"

        history = llm.requests[1].contents
        assert history[1].parts[-1].text == "```tool_code\nprint(6 * 7)\n```"
        assert history[2].role == "user"
        assert history[2].parts[0].text == "```tool_output\nCode execution result:\n42\n\n```"
        assert ctx.session.events[1].content.parts[-1].executable_code is not None

    async def test_repeated_failures_disable_execution(self, make_context):
        llm = MockLlm(["```python\nraise ValueError('nope')\n```"])
        agent = LlmAgent("a", model=llm, code_executor=SandboxedCodeExecutor(error_retry_attempts=2))
        ctx = await make_context(agent)

        events = await collect(ctx)

        results = [e for e in events if e.has_trailing_code_execution_result()]
        assert len(results) == 2
        assert all(
            e.content.parts[0].code_execution_result.outcome == "OUTCOME_FAILED" for e in results
        )
        assert llm.call_count == 3
        assert events[-1].content.text.startswith("```python")
        assert ctx.session.state["_code_executor_error_counts"] == {"inv-1": 2}

    async def test_output_files_saved_as_artifacts(self, make_context, artifact_service):
        png = File(name="plot.png", content=base64.b64encode(b"\x89PNG").decode(), mime_type="image/png")
        executor = RecordingExecutor(result=CodeExecutionResult(output_files=[png]))
        agent = LlmAgent("a", model=MockLlm([CODE_REPLY, "done"]), code_executor=executor)
        ctx = await make_context(agent)

        events = await collect(ctx)

        result_event = events[1]
        assert result_event.actions.artifact_delta == {"plot.png": 0}
        assert result_event.content.parts[0].code_execution_result.output == "Saved artifacts:\n`plot.png`"
        saved = await artifact_service.load_artifact(
            app_name=ctx.app_name, user_id=ctx.user_id, session_id=ctx.session.id, filename="plot.png"
        )
        assert saved.inline_data.data == b"\x89PNG"

    async def test_stateful_executor_uses_session_id(self, make_context):
        executor = RecordingExecutor(stateful=True)
        agent = LlmAgent("a", model=MockLlm([CODE_REPLY, "done"]), code_executor=executor)
        ctx = await make_context(agent)
        await collect(ctx)
        assert executor.inputs[0].execution_id == ctx.session.id

    async def test_csv_inputs_are_explored_once(self, make_context, session_service):
        executor = RecordingExecutor(optimize_data_file=True)
        llm = MockLlm(["done"])
        agent = LlmAgent("a", model=llm, code_executor=executor)
        ctx = await make_context(agent, user_text=None)
        upload = Content(
            role="user", parts=[Part(text="analyse"), Part(inline_data=Blob(mime_type="text/csv", data=b"a,b\n1,2"))]
        )
        await session_service.append_event(ctx.session, Event(author="user", content=upload))

        events = await collect(ctx)

        assert len(executor.inputs) == 1
        explored = executor.inputs[0]
        assert [f.name for f in explored.input_files] == ["data_1_2.csv"]
        assert "pd.read_csv('data_1_2.csv')" in explored.code
        assert "explore_df(data_1_2)" in explored.code
        assert events[0].content.parts[0].text == "Processing input file: `data_1_2.csv`"
        assert texts(events)[-1] == "done"
        assert llm.requests[0].contents[0].parts[1].text == "\nAvailable file: `data_1_2.csv`\n"

        await collect(ctx)
        assert len(executor.inputs) == 1
