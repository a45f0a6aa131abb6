"""Command execution in Docker containers."""

import asyncio
import sys
from typing import Any, BinaryIO, Dict, List, Optional

import structlog

from ...config import settings
from ...models.errors import DockhandError, ExecFailure
from ...models.resources import ExecOutcome, RunResult, resolve_ref
from ...utils.streams import StreamSettlement, pump_stream, tee_to
from .facade import RuntimeFacade


def _default_output() -> Optional[BinaryIO]:
    if not settings.echo_exec_output:
        return None
    return getattr(sys.stdout, "buffer", None)


class ContainerExecutor:
    """Handles command execution inside Docker containers.

    Output of the running command is piped to ``output`` (the process's
    standard output by default) as it arrives; it is a side channel and
    never part of the returned value. No timeout is applied: a command that
    never exits blocks the caller.
    """

    def __init__(
        self,
        facade: RuntimeFacade,
        output: Optional[BinaryIO] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        self.facade = facade
        self._output = output
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def output(self) -> Optional[BinaryIO]:
        return self._output if self._output is not None else _default_output()

    async def exec(self, container: Any, cmd: List[str]) -> ExecOutcome:
        """Run ``cmd`` in ``container`` and validate its exit.

        Returns:
            The exec inspection, guaranteed ``running=False`` and ``exit_code=0``

        Raises:
            RuntimeAPIError: The exec session could not be created or started
            StreamError: The output stream failed
            ExecFailure: Inspection failed, or the process is still running
                or exited non-zero
        """
        ref = resolve_ref(container)
        log = self._logger.bind(container=ref, cmd=cmd)

        exec_id = await self.facade.exec_create(container, cmd, stdout=True, stderr=True)
        stream = await self.facade.exec_start(exec_id)
        await self._drain(stream, f"exec:{exec_id[:12]}")

        try:
            data = await self.facade.exec_inspect(exec_id)
        except DockhandError as e:
            log.error(f"Docker exec inspect failed: {e.message}")
            raise ExecFailure(
                f"Inspecting exec {exec_id} failed: {e.message}",
                context={"container": ref, "exec_id": exec_id},
            ) from e

        log.debug("exec start inspect data", data=data)
        outcome = ExecOutcome.model_validate(data) if data else None
        if outcome is None or not outcome.succeeded:
            log.error(
                "Docker exec failed: unexpected inspection result",
                running=outcome.running if outcome else None,
                exit_code=outcome.exit_code if outcome else None,
            )
            raise ExecFailure(
                f"Command {cmd} in container {ref} did not exit cleanly",
                exit_code=outcome.exit_code if outcome else None,
                context={"container": ref, "exec_id": exec_id},
            )
        return outcome

    async def run(
        self,
        image: str,
        cmd: Any = None,
        output: Optional[BinaryIO] = None,
        create_options: Optional[Dict[str, Any]] = None,
        start_options: Optional[Dict[str, Any]] = None,
    ) -> RunResult:
        """Create, start and attach to a container, then wait for it to exit.

        Mirrors ``docker run``: the container's output is piped to ``output``
        while it runs and the exit status is returned, not validated.
        """
        try:
            container = await self.facade.create_container(image, command=cmd, **(create_options or {}))
            stream = await self.facade.attach_container(container)
            await self.facade.start_container(container, **(start_options or {}))
            await self._drain(stream, f"run:{container.id[:12]}", output=output)
            status = await self.facade.wait_container(container)
        except DockhandError as e:
            self._logger.warning(f"Image {image} run fails. Error: {e.message}")
            raise

        status = status or {}
        error = status.get("Error")
        self._logger.debug(f"Image {image} run succeeds", status_code=status.get("StatusCode"))
        return RunResult(
            status_code=int(status.get("StatusCode", -1)),
            container=container,
            error=error.get("Message") if isinstance(error, dict) else error,
        )

    async def _drain(
        self,
        stream,
        label: str,
        output: Optional[BinaryIO] = None,
    ) -> None:
        """Pipe ``stream`` to the output and wait for it to finish."""
        loop = asyncio.get_event_loop()
        settlement = StreamSettlement(label, loop=loop)
        sink = tee_to(output if output is not None else self.output)
        await loop.run_in_executor(None, pump_stream, stream, sink, settlement)
        event = await settlement.wait()
        self._logger.debug("Output stream finished", stream=label, outcome=event)
