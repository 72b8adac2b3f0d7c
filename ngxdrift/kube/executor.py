"""Remote command execution inside a container.

Drives the Kubernetes ``pods/exec`` subresource over a websocket and
demultiplexes its channels: every frame starts with one channel byte
(1 = stdout, 2 = stderr, 3 = exec status as a JSON ``v1.Status``).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import aiohttp
from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio.client.exceptions import ApiException

from ngxdrift.errors import RemoteCommandError
from ngxdrift.models.pods import PodIdentity
from ngxdrift.observability.logging import get_logger

_log = get_logger("kube.executor")

STDOUT_CHANNEL = 1
STDERR_CHANNEL = 2
STATUS_CHANNEL = 3


@dataclass
class ExecResult:
    """Captured output of one remote command."""

    stdout: str
    stderr: str


class PodExecutor:
    """Runs one-shot, non-interactive commands in pod containers.

    A fresh exec stream is opened per call; nothing is pooled since every
    pod is a distinct target.
    """

    def __init__(self, ws_client: Any) -> None:
        self._core = k8s_client.CoreV1Api(api_client=ws_client)

    async def run(self, pod: PodIdentity, container: str, command: list[str]) -> ExecResult:
        """Execute *command* and collect stdout and stderr separately.

        Raises:
            RemoteCommandError: the stream could not be established, broke
                mid-way, or the command finished with a Failure status.
        """
        _log.debug("exec_start", pod=pod.name, container=container, command=command)
        try:
            websocket = await self._core.connect_get_namespaced_pod_exec(
                pod.name,
                pod.namespace,
                command=command,
                container=container,
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
            )
            async with websocket as ws:
                stdout, stderr, status = await _drain(ws)
        except ApiException as exc:
            raise RemoteCommandError(pod.name, container, f"exec request failed: {exc.reason}") from exc
        except aiohttp.ClientError as exc:
            raise RemoteCommandError(pod.name, container, f"exec stream failed: {exc}") from exc

        if status is not None and status.get("status") != "Success":
            detail = status.get("message") or "command failed"
            if stderr.strip():
                detail = f"{detail}: {stderr.decode('utf-8', errors='replace').strip()}"
            raise RemoteCommandError(pod.name, container, detail)

        _log.debug("exec_done", pod=pod.name, container=container, stdout_bytes=len(stdout), stderr_bytes=len(stderr))
        return ExecResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


async def _drain(ws: Any) -> tuple[bytes, bytes, dict[str, Any] | None]:
    """Read frames until the server closes the stream."""
    stdout = bytearray()
    stderr = bytearray()
    status: dict[str, Any] | None = None

    async for msg in ws:
        if msg.type == aiohttp.WSMsgType.ERROR:
            raise aiohttp.ClientError(f"websocket error: {ws.exception()}")
        if msg.type not in (aiohttp.WSMsgType.BINARY, aiohttp.WSMsgType.TEXT):
            continue
        frame = msg.data if isinstance(msg.data, bytes) else msg.data.encode("utf-8")
        if len(frame) < 2:
            continue
        channel, payload = frame[0], frame[1:]
        if channel == STDOUT_CHANNEL:
            stdout += payload
        elif channel == STDERR_CHANNEL:
            stderr += payload
        elif channel == STATUS_CHANNEL:
            status = parse_status(payload)

    return bytes(stdout), bytes(stderr), status


def parse_status(payload: bytes) -> dict[str, Any]:
    """Decode the exec status frame; unparseable payloads count as failure."""
    try:
        status = json.loads(payload.decode("utf-8", errors="replace"))
    except ValueError:
        return {"status": "Failure", "message": payload.decode("utf-8", errors="replace")}
    if not isinstance(status, dict):
        return {"status": "Failure", "message": str(status)}
    return status
