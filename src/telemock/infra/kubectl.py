"""kubectl-backed cluster, namespace and port-forward implementations.

All calls shell out to kubectl through asyncio subprocesses, so anything
kubectl can reach (kind, minikube, remote clusters) works unchanged.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import re
from typing import TYPE_CHECKING
from uuid import uuid4

from telemock.config import KubeConfig, get_config
from telemock.errors import KubectlError
from telemock.interfaces import (
    Cluster,
    Namespace,
    NamespaceConfig,
    NamespaceFactory,
    Pod,
    PodFetchFunc,
    PortForwarder,
)
from telemock.logging_schema import LogEvent

if TYPE_CHECKING:
    from telemock.interfaces import ResourceContext

logger = logging.getLogger(__name__)

# kubectl port-forward prints this once the local listener is bound
_FORWARDING_RE = re.compile(r"Forwarding from 127\.0\.0\.1:(\d+) ->")

_READ_CHUNK = 4096
# stderr kept for error messages; older output is discarded
_STDERR_TAIL_BYTES = 8192


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()


class Kubectl:
    """Thin async wrapper around the kubectl binary."""

    def __init__(self, config: KubeConfig | None = None) -> None:
        self._config = config or get_config().kube

    @property
    def config(self) -> KubeConfig:
        return self._config

    def command(self, args: list[str], namespace: str | None = None) -> list[str]:
        """Full argv for a kubectl invocation."""
        cmd = [self._config.kubectl]
        if self._config.context:
            cmd += ["--context", self._config.context]
        if namespace:
            cmd += ["--namespace", namespace]
        return cmd + args

    async def run(
        self,
        args: list[str],
        *,
        namespace: str | None = None,
        input: str | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run kubectl to completion and return stdout.

        Raises:
            KubectlError: Non-zero exit or timeout.
        """
        timeout = timeout or self._config.command_timeout
        proc = await asyncio.create_subprocess_exec(
            *self.command(args, namespace),
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(input.encode() if input is not None else None),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            await _kill(proc)
            raise KubectlError(args, None, f"timed out after {timeout}s") from None
        except BaseException:
            await _kill(proc)
            raise

        if proc.returncode != 0:
            raise KubectlError(args, proc.returncode, stderr.decode(errors="replace"))
        return stdout.decode()

    async def popen(
        self, args: list[str], *, namespace: str | None = None
    ) -> asyncio.subprocess.Process:
        """Start a long-running kubectl process (e.g., port-forward)."""
        return await asyncio.create_subprocess_exec(
            *self.command(args, namespace),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )


# =============================================================================
# Namespaces
# =============================================================================


class KubectlNamespace(Namespace):
    """Namespace deleted on close."""

    def __init__(self, kubectl: Kubectl, name: str) -> None:
        self._kubectl = kubectl
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def close(self) -> None:
        await self._kubectl.run(
            ["delete", "namespace", self._name, "--ignore-not-found", "--wait=false"]
        )
        logger.info(
            "Deleted namespace %s",
            self._name,
            extra={"event": LogEvent.NAMESPACE_DELETED, "namespace": self._name},
        )


class KubectlNamespaceFactory(NamespaceFactory):
    """Creates namespaces named {prefix}-{random suffix}."""

    def __init__(self, kubectl: Kubectl | None = None) -> None:
        self._kubectl = kubectl or Kubectl()

    @staticmethod
    def generate_name(prefix: str) -> str:
        return f"{prefix}-{uuid4().hex[:8]}"

    async def new(self, ctx: ResourceContext, config: NamespaceConfig) -> Namespace:
        name = self.generate_name(config.prefix)
        await self._kubectl.run(["create", "namespace", name])
        return KubectlNamespace(self._kubectl, name)


# =============================================================================
# Port forwarding
# =============================================================================


class KubectlPortForwarder(PortForwarder):
    """kubectl port-forward to a pod, bound on 127.0.0.1.

    Both output pipes are drained for the life of the process. kubectl
    writes a line per handled or failed connection, and a full pipe would
    block it and stall the tunnel.
    """

    def __init__(
        self,
        kubectl: Kubectl,
        pod: Pod,
        local_port: int,
        remote_port: int,
    ) -> None:
        self._kubectl = kubectl
        self._pod = pod
        self._local_port = local_port
        self._remote_port = remote_port
        self._proc: asyncio.subprocess.Process | None = None
        self._stdout_task: asyncio.Task | None = None
        self._stderr_task: asyncio.Task | None = None
        self._stderr_tail = bytearray()
        self._address: str | None = None

    @property
    def address(self) -> str:
        if self._address is None:
            raise RuntimeError("port forwarder not started")
        return self._address

    @property
    def stderr_tail(self) -> str:
        """Most recent kubectl stderr output, bounded in size."""
        return self._stderr_tail.decode(errors="replace")

    async def start(self) -> None:
        """Start kubectl port-forward and wait for its local address.

        Raises:
            KubectlError: kubectl exited or did not report an address in time.
        """
        args = [
            "port-forward",
            f"pod/{self._pod.name}",
            f"{self._local_port}:{self._remote_port}",
        ]
        self._proc = await self._kubectl.popen(args, namespace=self._pod.namespace)
        assert self._proc.stdout is not None and self._proc.stderr is not None
        self._stderr_tail.clear()
        self._stderr_task = asyncio.create_task(self._collect_stderr(self._proc.stderr))

        timeout = self._kubectl.config.forward_start_timeout
        try:
            port = await asyncio.wait_for(
                self._read_local_port(self._proc.stdout), timeout=timeout
            )
        except asyncio.TimeoutError:
            await self.close()
            raise KubectlError(args, None, f"no forwarding address after {timeout}s") from None

        if port is None:
            # stdout closed before the address line: kubectl is exiting
            proc, self._proc = self._proc, None
            stderr_task, self._stderr_task = self._stderr_task, None
            await stderr_task
            returncode = await proc.wait()
            raise KubectlError(args, returncode, self.stderr_tail)

        self._address = f"127.0.0.1:{port}"
        self._stdout_task = asyncio.create_task(self._drain(self._proc.stdout))
        logger.debug("Forwarding %s -> %s:%d", self._address, self._pod.name, self._remote_port)

    @staticmethod
    async def _read_local_port(stdout: asyncio.StreamReader) -> int | None:
        while True:
            try:
                line = await stdout.readline()
            except ValueError:
                # line over the reader limit; it has been discarded
                continue
            if not line:
                return None
            match = _FORWARDING_RE.search(line.decode(errors="replace"))
            if match:
                return int(match.group(1))

    @staticmethod
    async def _drain(stream: asyncio.StreamReader) -> None:
        while await stream.read(_READ_CHUNK):
            pass

    async def _collect_stderr(self, stderr: asyncio.StreamReader) -> None:
        while True:
            chunk = await stderr.read(_READ_CHUNK)
            if not chunk:
                return
            self._stderr_tail += chunk
            del self._stderr_tail[:-_STDERR_TAIL_BYTES]

    async def close(self) -> None:
        for task in (self._stdout_task, self._stderr_task):
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._stdout_task = self._stderr_task = None

        proc, self._proc = self._proc, None
        if proc is None:
            return
        if proc.returncode is not None:
            logger.warning(
                "port-forward to %s exited with code %s: %s",
                self._pod.name,
                proc.returncode,
                self.stderr_tail.strip(),
            )
            return
        with contextlib.suppress(ProcessLookupError):
            proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=5)
        except asyncio.TimeoutError:
            await _kill(proc)


# =============================================================================
# Cluster
# =============================================================================


def _pod_ready(item: dict) -> bool:
    status = item.get("status", {})
    if status.get("phase") != "Running":
        return False
    return any(
        c.get("type") == "Ready" and c.get("status") == "True"
        for c in status.get("conditions", [])
    )


class KubectlCluster(Cluster):
    """Cluster reached through kubectl."""

    def __init__(self, name: str = "default", kubectl: Kubectl | None = None) -> None:
        self._name = name
        self._kubectl = kubectl or Kubectl()

    @property
    def name(self) -> str:
        return self._name

    @property
    def kubectl(self) -> Kubectl:
        return self._kubectl

    async def apply_contents(self, namespace: str, manifest: str) -> None:
        await self._kubectl.run(["apply", "-f", "-"], namespace=namespace, input=manifest)

    def new_single_pod_fetch(self, namespace: str, label_selector: str) -> PodFetchFunc:
        async def fetch() -> list[Pod]:
            out = await self._kubectl.run(
                ["get", "pods", "-l", label_selector, "-o", "json"], namespace=namespace
            )
            return [
                Pod(
                    name=item["metadata"]["name"],
                    namespace=namespace,
                    ready=_pod_ready(item),
                )
                for item in json.loads(out).get("items", [])
            ]

        return fetch

    async def wait_until_pods_are_ready(self, fetch: PodFetchFunc) -> list[Pod]:
        """Poll until fetch returns at least one pod and all are ready.

        Raises:
            TimeoutError: Pods not ready within pod_ready_timeout.
        """
        config = self._kubectl.config
        loop = asyncio.get_running_loop()
        deadline = loop.time() + config.pod_ready_timeout
        pods: list[Pod] = []
        while True:
            pods = await fetch()
            if pods and all(p.ready for p in pods):
                return pods
            if loop.time() >= deadline:
                break
            await asyncio.sleep(config.poll_interval)

        not_ready = [p.name for p in pods if not p.ready]
        raise TimeoutError(
            f"pods not ready after {config.pod_ready_timeout}s "
            f"(found {len(pods)}, not ready: {not_ready})"
        )

    async def new_port_forwarder(
        self, pod: Pod, local_port: int, remote_port: int
    ) -> PortForwarder:
        return KubectlPortForwarder(self._kubectl, pod, local_port, remote_port)
