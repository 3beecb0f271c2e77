# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
Waiting for a database container to become ready.

Containers with a health check are followed through ``docker events`` until
they report healthy; containers without one are polled with ``pg_isready``.
Either way the wait is bounded by a hard timeout, and the event subscription
is killed (together with any children) as soon as the wait ends.
"""
import logging
import shutil
import subprocess
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

import psutil
from tenacity import Retrying, retry_if_result, stop_after_delay, wait_fixed

logger = logging.getLogger(__name__)

HEALTHY_EVENT = "health_status: healthy"
UNHEALTHY_EVENT = "health_status: unhealthy"


class WaitStatus(IntEnum):
    """
    Exit codes of a readiness wait.
    """
    READY = 0
    FAILED = 1  # container not found or timed out
    BAD_ARGUMENTS = 2


@dataclass
class WaitOutcome:
    status: WaitStatus
    message: str

    @property
    def ready(self) -> bool:
        return self.status == WaitStatus.READY


def terminate_process_tree(pid: int, timeout: float = 3.0) -> None:
    """
    Terminates a process and all of its descendants, killing any that linger.

    :param pid: Root process id.
    :param timeout: Seconds to wait after SIGTERM before SIGKILL.
    """
    try:
        parent = psutil.Process(pid)
        procs: List[psutil.Process] = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        return

    for proc in procs:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            pass

    _, alive = psutil.wait_procs(procs, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass


class ContainerHealthWaiter:
    """
    Blocks until a container is ready or a timeout expires.
    """
    def __init__(self,
                 container_name: str,
                 timeout: int = 90,
                 docker_bin: str = "docker",
                 poll_interval: float = 2.0):
        """
        :param container_name: Name of the container to wait for.
        :param timeout: Seconds to wait before giving up.
        :param docker_bin: Docker CLI executable.
        :param poll_interval: Seconds between pg_isready attempts when the
            container has no health check.
        """
        self.container_name = container_name
        self.timeout = timeout
        self.docker_bin = docker_bin
        self.poll_interval = poll_interval

    def wait(self) -> WaitOutcome:
        """
        Waits for the container.

        :return: READY, FAILED (not found or timed out) or BAD_ARGUMENTS.
        """
        name = self.container_name
        if not name:
            return WaitOutcome(WaitStatus.BAD_ARGUMENTS, "Container name is required")
        if not isinstance(self.timeout, int) or self.timeout <= 0:
            return WaitOutcome(WaitStatus.BAD_ARGUMENTS, f"Timeout must be a positive integer, got {self.timeout!r}")
        if shutil.which(self.docker_bin) is None:
            return WaitOutcome(WaitStatus.BAD_ARGUMENTS, f"'{self.docker_bin}' command not found")

        if not self._container_exists():
            return WaitOutcome(WaitStatus.FAILED, f"Container '{name}' not found")

        if not self._has_healthcheck():
            logger.warning("Container '%s' has no health check configured, falling back to pg_isready", name)
            return self._poll_pg_isready()

        if self._health_status() == "healthy":
            return WaitOutcome(WaitStatus.READY, f"Container '{name}' is already healthy")

        logger.info("Waiting for container '%s' to become healthy (timeout: %ss)", name, self.timeout)
        return self._wait_for_event()

    def _docker(self, *args: str, timeout: Optional[float] = 30) -> Optional[subprocess.CompletedProcess]:
        """
        Runs a docker CLI command, returning None if it could not run.
        """
        try:
            return subprocess.run(
                [self.docker_bin, *args],
                capture_output=True,
                text=True,
                timeout=timeout,
                shell=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("docker %s failed: %s", " ".join(args), e)
            return None

    def _inspect(self, template: str) -> str:
        result = self._docker("inspect", self.container_name, "--format", template)
        if result is None or result.returncode != 0:
            return ""
        return result.stdout.strip()

    def _container_exists(self) -> bool:
        result = self._docker("ps", "-a", "--format", "{{.Names}}")
        if result is None or result.returncode != 0:
            return False
        return self.container_name in result.stdout.splitlines()

    def _has_healthcheck(self) -> bool:
        return self._inspect("{{if .State.Health}}true{{else}}false{{end}}") == "true"

    def _health_status(self) -> str:
        return self._inspect("{{.State.Health.Status}}")

    def _postgres_user(self) -> str:
        for line in self._inspect("{{range .Config.Env}}{{println .}}{{end}}").splitlines():
            key, _, value = line.partition("=")
            if key == "POSTGRES_USER" and value:
                return value
        return "postgres"

    def _pg_isready(self, user: str) -> bool:
        result = self._docker("exec", self.container_name, "pg_isready", "-U", user, timeout=10)
        return result is not None and result.returncode == 0

    def _poll_pg_isready(self) -> WaitOutcome:
        user = self._postgres_user()
        retrying = Retrying(
            stop=stop_after_delay(self.timeout),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(lambda ready: not ready),
            retry_error_callback=lambda retry_state: False,
        )
        if retrying(self._pg_isready, user):
            return WaitOutcome(WaitStatus.READY, f"Container '{self.container_name}' is ready (pg_isready)")
        return WaitOutcome(
            WaitStatus.FAILED,
            f"Container '{self.container_name}' did not become ready within {self.timeout}s",
        )

    def _wait_for_event(self) -> WaitOutcome:
        name = self.container_name
        container_id = self._inspect("{{.Id}}") or name

        proc = subprocess.Popen(
            [
                self.docker_bin, "events",
                "--filter", f"container={container_id}",
                "--filter", "event=health_status",
                "--format", "{{.Status}}",
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            shell=False,
        )
        timed_out = threading.Event()

        def expire():
            timed_out.set()
            terminate_process_tree(proc.pid)

        timer = threading.Timer(self.timeout, expire)
        timer.daemon = True
        timer.start()
        try:
            # The container may have turned healthy before the subscription started.
            if self._health_status() == "healthy":
                return WaitOutcome(WaitStatus.READY, f"Container '{name}' is healthy")

            for line in proc.stdout:
                status = line.strip()
                if status == HEALTHY_EVENT:
                    return WaitOutcome(WaitStatus.READY, f"Container '{name}' is healthy")
                if status == UNHEALTHY_EVENT:
                    logger.warning("Container '%s' reported unhealthy, continuing to wait...", name)
        finally:
            timer.cancel()
            terminate_process_tree(proc.pid)
            proc.stdout.close()
            proc.wait()

        if timed_out.is_set():
            return WaitOutcome(
                WaitStatus.FAILED,
                f"Timeout waiting for '{name}' to become healthy after {self.timeout}s "
                f"(check container logs with: docker logs {name})",
            )
        return WaitOutcome(WaitStatus.FAILED, f"Event stream for '{name}' ended before it became healthy")
