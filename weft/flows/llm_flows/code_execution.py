"""Code execution around the model call.

The request stage optionally explores attached CSV files and renders prior
code parts as delimited text. The response stage pulls the first code
block out of the model's answer, runs it and reports the result.
"""

from __future__ import annotations

import base64
import copy
import logging
import os
import re
from typing import TYPE_CHECKING, AsyncGenerator

from ...agents.capabilities import HasCodeExecutor
from ...code_executors.base_code_executor import BaseCodeExecutor
from ...code_executors.code_execution_utils import (
    CodeExecutionInput,
    CodeExecutionResult,
    File,
    build_code_execution_result_part,
    build_executable_code_part,
    convert_code_execution_parts,
    extract_code_and_truncate_content,
)
from ...code_executors.code_executor_context import CodeExecutorContext
from ...errors import ServiceNotConfiguredError
from ...events import Event, EventActions
from ...types import Blob, Content, Part
from .base_processor import BaseLlmRequestProcessor, BaseLlmResponseProcessor

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest
    from ...models.llm_response import LlmResponse

logger = logging.getLogger(__name__)

# mime type -> (extension, loader expression)
DATA_FILE_UTIL_MAP: dict[str, tuple[str, str]] = {
    "text/csv": (".csv", "pd.read_csv('{filename}')"),
}

DATA_FILE_HELPER_LIB = '''
import pandas as pd

def explore_df(df: pd.DataFrame) -> None:
  """Prints some information about a pandas DataFrame."""

  with pd.option_context(
      'display.max_columns', None, 'display.expand_frame_repr', False
  ):
    # Print the column names to never encounter KeyError when selecting one.
    df_dtypes = df.dtypes

    # Obtain information about data types and missing values.
    df_nulls = (len(df) - df.isnull().sum()).apply(
        lambda x: f'{x} / {df.shape[0]} non-null'
    )

    # Explore unique total values in columns using `.unique()`.
    df_unique_count = df.apply(lambda x: len(x.unique()))

    # Explore unique values in columns using `.unique()`.
    df_unique = df.apply(lambda x: crop(str(list(x.unique()))))

    df_info = pd.concat(
        (
            df_dtypes.rename('Dtype'),
            df_nulls.rename('Non-Null Count'),
            df_unique_count.rename('Unique Values Count'),
            df_unique.rename('Unique Values'),
        ),
        axis=1,
    )
    df_info.index.name = 'Columns'
    print(f"""Total rows: {df.shape[0]}
Total columns: {df.shape[1]}

{df_info}""")


def crop(s: str, max_chars: int = 64) -> str:
  """Truncates a string to a maximum number of characters."""
  return s[: max_chars - 3] + '...' if len(s) > max_chars else s
'''


def _get_code_executor(ctx: InvocationContext) -> BaseCodeExecutor | None:
    agent = ctx.agent
    if not isinstance(agent, HasCodeExecutor):
        return None
    return agent.code_executor


class CodeExecutionRequestProcessor(BaseLlmRequestProcessor):
    async def run_async(
        self, ctx: InvocationContext, llm_request: LlmRequest
    ) -> AsyncGenerator[Event, None]:
        code_executor = _get_code_executor(ctx)
        if code_executor is None:
            return

        async for event in _run_pre_processor(ctx, llm_request, code_executor):
            yield event

        delimiter = code_executor.code_block_delimiters[0] if code_executor.code_block_delimiters else ("", "")
        for content in llm_request.contents:
            convert_code_execution_parts(content, delimiter, code_executor.execution_result_delimiters)


class CodeExecutionResponseProcessor(BaseLlmResponseProcessor):
    async def run_async(
        self, ctx: InvocationContext, llm_response: LlmResponse
    ) -> AsyncGenerator[Event, None]:
        if llm_response.partial:
            return
        code_executor = _get_code_executor(ctx)
        if code_executor is None:
            return

        executor_context = CodeExecutorContext(ctx.session.state)
        if executor_context.get_error_count(ctx.invocation_id) >= code_executor.error_retry_attempts:
            logger.debug("Code execution disabled for invocation %s after repeated errors", ctx.invocation_id)
            return

        response_content = llm_response.content
        code = extract_code_and_truncate_content(response_content, code_executor.code_block_delimiters)
        if not code:
            return

        yield Event(
            invocation_id=ctx.invocation_id,
            author=ctx.agent.name,
            branch=ctx.branch,
            content=response_content,
            actions=EventActions(state_delta=executor_context.get_state_delta()),
        )

        result = await code_executor.execute_code(
            ctx,
            CodeExecutionInput(
                code=code,
                input_files=executor_context.get_input_files(),
                execution_id=_get_or_set_execution_id(ctx, executor_context, code_executor),
            ),
        )
        executor_context.update_code_execution_result(ctx.invocation_id, code, result.stdout, result.stderr)
        yield await _post_process_code_execution_result(ctx, executor_context, result)

        # The code and result events replace the raw model response.
        llm_response.content = None


async def _run_pre_processor(
    ctx: InvocationContext, llm_request: LlmRequest, code_executor: BaseCodeExecutor
) -> AsyncGenerator[Event, None]:
    if not code_executor.optimize_data_file:
        return

    executor_context = CodeExecutorContext(ctx.session.state)
    if executor_context.get_error_count(ctx.invocation_id) >= code_executor.error_retry_attempts:
        return

    all_input_files = _extract_and_replace_inline_files(executor_context, llm_request)
    processed = set(executor_context.get_processed_file_names())
    for file in all_input_files:
        if file.name in processed:
            continue
        code = _get_data_file_preprocessing_code(file)
        if code is None:
            continue
        executor_context.add_processed_file_names([file.name])
        processed.add(file.name)

        code_content = Content(
            role="model",
            parts=[Part(text=f"Processing input file: `{file.name}`"), build_executable_code_part(code)],
        )
        llm_request.contents.append(copy.deepcopy(code_content))
        yield Event(
            invocation_id=ctx.invocation_id,
            author=ctx.agent.name,
            branch=ctx.branch,
            content=code_content,
            actions=EventActions(state_delta=executor_context.get_state_delta()),
        )

        result = await code_executor.execute_code(
            ctx,
            CodeExecutionInput(
                code=code,
                input_files=[file],
                execution_id=_get_or_set_execution_id(ctx, executor_context, code_executor),
            ),
        )
        executor_context.update_code_execution_result(ctx.invocation_id, code, result.stdout, result.stderr)
        result_event = await _post_process_code_execution_result(ctx, executor_context, result)
        llm_request.contents.append(copy.deepcopy(result_event.content))
        yield result_event


def _extract_and_replace_inline_files(
    executor_context: CodeExecutorContext, llm_request: LlmRequest
) -> list[File]:
    """Swap supported inline data in the request for a file-name hint."""
    all_input_files = executor_context.get_input_files()
    saved_names = {f.name for f in all_input_files}

    for i, content in enumerate(llm_request.contents):
        if content.role != "user" or not content.parts:
            continue
        for j, part in enumerate(content.parts):
            blob = part.inline_data
            if blob is None or blob.mime_type not in DATA_FILE_UTIL_MAP:
                continue
            extension = DATA_FILE_UTIL_MAP[blob.mime_type][0]
            file_name = f"data_{i + 1}_{j + 1}{extension}"
            content.parts[j] = Part(text=f"\nAvailable file: `{file_name}`\n")
            file = File(
                name=file_name,
                content=base64.b64encode(blob.data).decode("ascii"),
                mime_type=blob.mime_type,
            )
            if file_name not in saved_names:
                executor_context.add_input_files([file])
                saved_names.add(file_name)
                all_input_files.append(file)

    return all_input_files


def _get_or_set_execution_id(
    ctx: InvocationContext, executor_context: CodeExecutorContext, code_executor: BaseCodeExecutor
) -> str | None:
    if not code_executor.stateful:
        return None
    execution_id = executor_context.get_execution_id()
    if not execution_id:
        execution_id = ctx.session.id
        executor_context.set_execution_id(execution_id)
    return execution_id


async def _post_process_code_execution_result(
    ctx: InvocationContext, executor_context: CodeExecutorContext, result: CodeExecutionResult
) -> Event:
    if result.stderr:
        executor_context.increment_error_count(ctx.invocation_id)
    else:
        executor_context.reset_error_count(ctx.invocation_id)

    actions = EventActions(state_delta=executor_context.get_state_delta())
    if result.output_files:
        if ctx.artifact_service is None:
            raise ServiceNotConfiguredError("Artifact service")
        for output_file in result.output_files:
            version = await ctx.artifact_service.save_artifact(
                app_name=ctx.app_name,
                user_id=ctx.user_id,
                session_id=ctx.session.id,
                filename=output_file.name,
                artifact=Part(
                    inline_data=Blob(mime_type=output_file.mime_type, data=base64.b64decode(output_file.content))
                ),
            )
            actions.artifact_delta[output_file.name] = version

    return Event(
        invocation_id=ctx.invocation_id,
        author=ctx.agent.name,
        branch=ctx.branch,
        content=Content(role="model", parts=[build_code_execution_result_part(result)]),
        actions=actions,
    )


def _get_data_file_preprocessing_code(file: File) -> str | None:
    if file.mime_type not in DATA_FILE_UTIL_MAP:
        return None
    var_name = re.sub(r"[^a-zA-Z0-9_]", "_", os.path.splitext(file.name)[0])
    if var_name[0].isdigit():
        var_name = "_" + var_name
    loader = DATA_FILE_UTIL_MAP[file.mime_type][1].format(filename=file.name)
    return f"""
{DATA_FILE_HELPER_LIB}

# Load the dataframe.
{var_name} = {loader}

# Use `explore_df` to guide my analysis.
explore_df({var_name})
"""


request_processor = CodeExecutionRequestProcessor()
response_processor = CodeExecutionResponseProcessor()
