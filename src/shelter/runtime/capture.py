#
# src/shelter/runtime/capture.py
#
"""
Runs one test command in isolation and turns everything it does into events.

STDOUT, STDERR and the assertion side-channel are read by three concurrent
readers. Output lines share one sequence counter, assigned in arrival order:
order within a stream is exact, order across streams is best effort.
"""

import asyncio
import contextlib
import itertools
import os
import signal
import time
from collections.abc import AsyncIterator, Iterator

import structlog

from shelter.config.models import Command
from shelter.events import Event, EventKind
from shelter.exceptions import MalformedCommandError
from shelter.runtime.context import RunContext
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.capture")

ASSERT_FD_VAR = "SHELTER_ASSERT_FD"
LINE_LIMIT = 2**16

EXIT_TIMEOUT = 124
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


def _argv(ctx: RunContext, command: Command) -> list[str]:
    if isinstance(command, str):
        return [*ctx.shell, command]
    return list(command)


def _validate(name: str, command: Command) -> None:
    if not name or "\n" in name:
        raise MalformedCommandError("Case names must be non-empty single lines", command=name)
    if not command:
        raise MalformedCommandError("Empty command", command=name)


def exit_status(returncode: int) -> int:
    """Maps a Popen return code to a shell-style exit status."""
    if returncode < 0:
        return 128 - returncode
    return returncode


async def _read_lines(reader: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yields decoded lines without the trailing newline, including a final partial line."""
    split = False
    while True:
        try:
            chunk = await reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            if e.partial:
                yield e.partial.decode("utf-8", errors="replace")
            return
        except asyncio.LimitOverrunError as e:
            # Overlong lines are split into limit-sized pieces.
            chunk = await reader.read(e.consumed)
            yield chunk.decode("utf-8", errors="replace")
            split = True
            continue
        # A lone newline after a split piece only terminates that piece.
        if not (split and chunk == b"\n"):
            yield chunk[:-1].decode("utf-8", errors="replace")
        split = False


async def _pump_output(
    ctx: RunContext,
    reader: asyncio.StreamReader,
    kind: EventKind,
    sequence: Iterator[int],
) -> None:
    async for text in _read_lines(reader):
        ctx.emit(Event.output(kind, next(sequence), text))


async def _pump_assertions(ctx: RunContext, reader: asyncio.StreamReader) -> None:
    async for text in _read_lines(reader):
        if not text:
            continue
        function, _, message = text.partition(" ")
        ctx.emit(Event.assertion_failure(function, message))


async def _open_pipe_reader(fd: int) -> tuple[asyncio.StreamReader, asyncio.BaseTransport]:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=LINE_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    transport, _ = await loop.connect_read_pipe(lambda: protocol, os.fdopen(fd, "rb", buffering=0))
    return reader, transport


def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def _emit_result(ctx: RunContext, started: float, exit_code: int) -> str:
    elapsed = f"{time.perf_counter() - started:.3f}"
    ctx.emit(Event(EventKind.TIME, elapsed))
    ctx.emit(Event(EventKind.EXIT, str(exit_code)))
    return elapsed


async def capture(ctx: RunContext, name: str, command: Command | None = None) -> int:
    """
    Executes one case and emits its full event block.

    Emits CMD, one ENV per visible variable, STDOUT/STDERR/ASSERT while the
    command runs, then TIME and EXIT. Returns only after all three readers
    have reached end-of-stream, so nothing from this case can trail into
    the next one. The exit status is reported, never raised.
    """
    if command is None:
        command = ctx.resolve(name)
    _validate(name, command)
    case_log = log.bind(case=name)

    ctx.emit(Event(EventKind.CMD, name))
    environ = ctx.environment()
    for variable in sorted(environ):
        ctx.emit(Event.env(variable, environ[variable]))

    argv = _argv(ctx, command)
    sequence = itertools.count(1)
    read_fd, write_fd = os.pipe()
    child_env = {**environ, ASSERT_FD_VAR: str(write_fd)}

    case_log.debug("Starting test case", argv=argv, cwd=str(ctx.cwd) if ctx.cwd else None, emoji_key="case")
    started = time.perf_counter()
    try:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=child_env,
                cwd=ctx.cwd,
                pass_fds=(write_fd,),
                start_new_session=ctx.timeout is not None,
                limit=LINE_LIMIT,
            )
        finally:
            os.close(write_fd)
    except OSError as e:
        os.close(read_fd)
        exit_code = EXIT_NOT_FOUND if isinstance(e, FileNotFoundError) else EXIT_NOT_EXECUTABLE
        case_log.warning("Test command could not be started", executable=argv[0], error=str(e))
        ctx.emit(Event.output(EventKind.STDERR, next(sequence), f"shelter: {argv[0]}: {e.strerror or e}"))
        _emit_result(ctx, started, exit_code)
        return exit_code

    assert_reader, assert_transport = await _open_pipe_reader(read_fd)

    async def drain() -> None:
        await asyncio.gather(
            _pump_output(ctx, process.stdout, EventKind.STDOUT, sequence),
            _pump_output(ctx, process.stderr, EventKind.STDERR, sequence),
            _pump_assertions(ctx, assert_reader),
        )
        await process.wait()

    drain_task = asyncio.ensure_future(drain())
    timed_out = False
    try:
        try:
            await asyncio.wait_for(asyncio.shield(drain_task), timeout=ctx.timeout)
        except TimeoutError:
            # Killing the whole process group closes every pipe, so the
            # readers still reach end-of-stream and keep what was written.
            timed_out = True
            case_log.warning("Test case timed out, killing it", timeout=ctx.timeout)
            _kill(process)
            await drain_task
    except asyncio.CancelledError:
        drain_task.cancel()
        if ctx.timeout is not None:
            _kill(process)
        else:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        with contextlib.suppress(asyncio.CancelledError):
            await drain_task
        await process.wait()
        raise
    finally:
        assert_transport.close()

    exit_code = EXIT_TIMEOUT if timed_out else exit_status(process.returncode)

    elapsed = _emit_result(ctx, started, exit_code)
    case_log.info("Test case finished", exit_code=exit_code, time=elapsed, emoji_key="case")
    return exit_code


# 🔼⚙️
