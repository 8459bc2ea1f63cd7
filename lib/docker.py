"""Docker container lifecycle for databases started by the benchmark.

Thin wrapper around the ``docker`` CLI. A :class:`DockerContainer` is a
context manager: leaving the ``with`` block stops and removes the container,
whether the benchmark succeeded or not.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

from .errors import DockerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DockerParams:
    image: str
    pre_args: str = ""      # options placed before the image, e.g. ports and env
    post_args: str = ""     # command and arguments passed to the image


class DockerContainer:
    """A detached container started with ``docker run -d``."""

    def __init__(self, container_id: str, image: str) -> None:
        self.id = container_id
        self.image = image
        self.running = True
        self.removed = False

    @classmethod
    def start(cls, image: str, pre_args: str = "", post_args: str = "") -> DockerContainer:
        logger.info("Start Docker image %s", image)
        args = ["run", *pre_args.split(), "-d", image, *post_args.split()]
        container_id = _docker(*args).stdout.strip()
        return cls(container_id, image)

    @classmethod
    def from_params(cls, params: DockerParams, image: str | None = None) -> DockerContainer:
        return cls.start(image or params.image, params.pre_args, params.post_args)

    def logs(self) -> str:
        """Return the container's combined stdout and stderr."""
        logger.info("Logging Docker container %s", self.id)
        result = _docker("logs", self.id)
        return (result.stdout + result.stderr).strip()

    def stop(self) -> None:
        if self.running:
            logger.info("Stopping Docker container %s", self.id)
            _docker("stop", self.id)
            self.running = False

    def remove(self) -> None:
        self.stop()
        if not self.removed:
            logger.info("Delete Docker container %s", self.id)
            _docker("rm", self.id)
            self.removed = True

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.remove()
        except DockerError:
            if exc_type is None:
                raise
            # Keep the original failure; the cleanup error is only logged.
            logger.exception("Failed to remove Docker container %s", self.id)


def _docker(*args: str) -> subprocess.CompletedProcess:
    command = ["docker", *args]
    logger.debug("%s", " ".join(command))
    try:
        result = subprocess.run(command, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise DockerError("docker executable not found on PATH") from exc
    if result.returncode != 0:
        raise DockerError(
            f"Docker command failure ({result.returncode}): {' '.join(command)}\n"
            f"{result.stderr.strip()}"
        )
    if result.stderr.strip():
        logger.debug("%s", result.stderr.strip())
    return result
