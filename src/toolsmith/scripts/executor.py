"""Transform execution under the two-parameter calling contract.

Executes accepted transform bodies with:
- Only the curated capability surface as globals
- Frame, traceback and dunder attribute access refused before compiling
- A worker thread per call, so the event loop never runs script code
- Coroutine bodies driven by a private event loop inside that worker
- A line-level trace deadline that aborts runaway Python loops
- An overall wall-clock budget enforced with asyncio.wait_for
- Result normalization into a TransformOutcome

The executor never raises for script problems: compile errors, script
exceptions and timeouts all come back as ErrorOutcome.
"""

import asyncio
import inspect
import logging
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from toolsmith.scripts import patterns, sandbox, source
from toolsmith.scripts.outcomes import (
    ErrorOutcome,
    TextOutcome,
    TransformOutcome,
    normalize_result,
)
from toolsmith.types import CandidateToolDefinition, InputKind, ToolExample

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_INPUT = "test"


class TransformRejectedError(Exception):
    """Raised when a body parses but must not be run."""


class TransformTimeoutError(BaseException):
    """Raised inside a transform frame once its deadline has passed.

    Derives from BaseException so ``except Exception`` in a script does
    not swallow it.
    """


def timeout_message(budget: float) -> str:
    return f"Transform execution timed out after {budget:g} seconds"


def describe_exception(error: BaseException) -> str:
    detail = str(error)
    name = type(error).__name__
    return f"{name}: {detail}" if detail else name


def _deadline_tracer(deadline: float) -> Callable:
    """Build a trace function that only watches transform frames."""

    def local(frame, event, arg):
        if time.monotonic() > deadline:
            raise TransformTimeoutError()
        return local

    def global_(frame, event, arg):
        if frame.f_code.co_filename != source.TRANSFORM_FILENAME:
            return None
        return local(frame, event, arg)

    return global_


async def _drive(awaitable: Any) -> Any:
    return await awaitable


def representative_input(
    definition: CandidateToolDefinition, test_input: str | None = None
) -> str | bytes:
    """Choose the smoke-test input for a definition.

    Args:
        definition: Candidate about to be tested
        test_input: Sample supplied by the collaborator, if any

    Returns:
        "" for input-less tools; otherwise the supplied sample, the first
        example input, or "test". File tools receive the UTF-8 bytes.
    """
    if definition.input_type == InputKind.NONE.value:
        return ""

    value = test_input
    if not value and definition.examples:
        value = definition.examples[0].input
    if not value:
        value = DEFAULT_SAMPLE_INPUT

    if definition.input_type == InputKind.FILE.value:
        return value.encode("utf-8")
    return value


@dataclass
class ExampleResult:
    """Outcome of running one example through a transform.

    Attributes:
        example: The example that was run
        outcome: What the transform produced
    """

    example: ToolExample
    outcome: TransformOutcome

    @property
    def passed(self) -> bool:
        if isinstance(self.outcome, ErrorOutcome):
            return False
        if self.example.output is None:
            return True
        return (
            isinstance(self.outcome, TextOutcome)
            and self.outcome.text == self.example.output
        )


class ScriptExecutor:
    """Runs transform bodies and normalizes what they return.

    Each call compiles the body afresh against a new globals mapping, so
    nothing leaks between executions.
    """

    DEFAULT_TIMEOUT = 5.0

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """Initialize executor.

        Args:
            timeout: Default wall-clock budget per call, in seconds
        """
        self.timeout = timeout

    async def execute(
        self,
        script_body: str,
        input: str | bytes,
        options: dict[str, Any],
        time_limit: float | None = None,
    ) -> TransformOutcome:
        """Execute a transform body.

        Args:
            script_body: Body of a function receiving (input, options)
            input: Text or binary input
            options: Option values keyed by option id
            time_limit: Budget in seconds (default: executor timeout)

        Returns:
            TransformOutcome; never raises for script failures
        """
        budget = self.timeout if time_limit is None else time_limit

        try:
            function = self._load(script_body)
        except SyntaxError as e:
            return ErrorOutcome(
                f"Transform code has syntax error: {source.describe_syntax_error(e)}"
            )
        except TransformRejectedError as e:
            return ErrorOutcome(str(e))
        except Exception as e:
            return ErrorOutcome(describe_exception(e))

        try:
            return await asyncio.wait_for(
                self._run_in_worker(function, input, dict(options), budget),
                timeout=budget,
            )
        except asyncio.TimeoutError:
            logger.debug("Transform exceeded %ss budget", budget)
            return ErrorOutcome(timeout_message(budget))

    async def run_examples(
        self, definition: CandidateToolDefinition
    ) -> list[ExampleResult]:
        """Run every example of a definition with default options.

        Args:
            definition: Definition whose examples are run

        Returns:
            One ExampleResult per example, in order
        """
        results = []
        options = definition.option_defaults()
        for example in definition.examples or []:
            value: str | bytes = example.input
            if definition.input_type == InputKind.FILE.value:
                value = example.input.encode("utf-8")
            outcome = await self.execute(definition.transform_code, value, options)
            results.append(ExampleResult(example=example, outcome=outcome))
        return results

    def _load(self, script_body: str) -> Callable[..., Any]:
        """Compile a body and return the transform function.

        Running the compiled module only binds the function; the body
        itself does not execute here. Bodies that yield, or that touch
        frame or dunder attributes, are refused before compiling.
        """
        statements = source.parse_body(script_body)

        yielded = source.find_yield(statements)
        if yielded is not None:
            raise TransformRejectedError(source.describe_yield(yielded))

        restricted = source.find_attribute(statements, patterns.FRAME_ATTRIBUTES)
        if restricted is not None:
            raise TransformRejectedError(
                f"Transform code uses restricted attribute "
                f"'{restricted.attr}' (line {restricted.lineno})"
            )

        module = source.build(statements, is_async=source.uses_await(statements))
        code = compile(module, source.TRANSFORM_FILENAME, "exec")
        namespace = sandbox.transform_globals()
        exec(code, namespace)
        return namespace[source.TRANSFORM_FUNCTION]

    async def _run_in_worker(
        self,
        function: Callable[..., Any],
        input: str | bytes,
        options: dict[str, Any],
        budget: float,
    ) -> TransformOutcome:
        """Call the transform on a daemon thread and wait for its outcome.

        A worker stuck in C code ignores the trace deadline; once the
        budget expires it is abandoned and dies with the process.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[TransformOutcome] = loop.create_future()
        deadline = time.monotonic() + budget

        def _deliver(outcome: TransformOutcome) -> None:
            if not future.done():
                future.set_result(outcome)

        def _work() -> None:
            sys.settrace(_deadline_tracer(deadline))
            try:
                result = function(input, options)
                if inspect.isawaitable(result):
                    result = asyncio.run(_drive(result))
                outcome = normalize_result(result)
            except TransformTimeoutError:
                outcome = ErrorOutcome(timeout_message(budget))
            except BaseException as e:
                # Script boundary: anything raised by untrusted code is a result
                outcome = ErrorOutcome(describe_exception(e))
            finally:
                sys.settrace(None)

            try:
                loop.call_soon_threadsafe(_deliver, outcome)
            except RuntimeError:
                logger.debug("Event loop closed before transform finished")

        worker = threading.Thread(target=_work, name="transform-worker", daemon=True)
        worker.start()
        return await future
