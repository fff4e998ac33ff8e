"""Container engine collaborator.

Thin wrapper over the Docker CLI. Query methods never raise on a non-zero
exit; they answer False. Mutating methods raise EngineCommandError.
"""

import logging
import shutil
import subprocess
from typing import List, Optional, Sequence

from .exceptions import EngineCommandError
from .plan import BuildPlan, RunPlan

logger = logging.getLogger(__name__)


class DockerEngine:
    """Docker (or a CLI-compatible engine such as podman) driven via subprocess."""

    def __init__(self, binary: str = "docker"):
        self._cmd = binary

    @property
    def binary(self) -> str:
        return self._cmd

    # Queries

    def is_installed(self) -> bool:
        return shutil.which(self._cmd) is not None

    def is_reachable(self) -> bool:
        return self._succeeds(["info"])

    def version(self) -> Optional[str]:
        """Return the server version, or None if the daemon did not answer."""
        result = subprocess.run(
            [self._cmd, "version", "--format", "{{.Server.Version}}"],
            check=False,
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def image_exists(self, tag: str) -> bool:
        return self._succeeds(["image", "inspect", tag])

    def container_exists(self, name: str) -> bool:
        return self._has_output(["ps", "-a", "--filter", _name_filter(name), "--format", "{{.ID}}"])

    def container_is_running(self, name: str) -> bool:
        return self._has_output(
            [
                "ps",
                "--filter",
                _name_filter(name),
                "--filter",
                "status=running",
                "--format",
                "{{.ID}}",
            ]
        )

    # Mutations

    def build(self, plan: BuildPlan) -> None:
        """Build the image; output streams straight to the terminal."""
        cmd = [self._cmd, "build"]
        if plan.no_cache:
            cmd.append("--no-cache")
        cmd.append("--progress=plain")
        for key, value in plan.build_args.items():
            cmd.extend(["--build-arg", f"{key}={value}"])
        cmd.extend(["-t", plan.tag, plan.context])
        self._stream(cmd)

    def create_container(self, plan: RunPlan) -> None:
        """Create the persistent container detached, idling on sleep."""
        cmd = [self._cmd, "run", "-d", "--name", plan.container_name]
        for volume in plan.volumes:
            cmd.extend(["-v", volume])
        for key, value in plan.environment.items():
            cmd.extend(["-e", f"{key}={value}"])
        cmd.extend(
            [
                "-w",
                plan.workdir,
                "--restart",
                "unless-stopped",
                plan.tag,
                "sleep",
                "infinity",
            ]
        )
        self._check(cmd)

    def start_container(self, name: str) -> None:
        self._check([self._cmd, "start", name])

    def remove_container(self, name: str) -> None:
        self._check([self._cmd, "rm", "-f", name])

    def remove_image(self, tag: str) -> None:
        self._check([self._cmd, "rmi", tag])

    def exec_shell(self, name: str, shell: str = "bash") -> int:
        """Attach an interactive shell and return the shell's exit status.

        The container keeps running after the shell exits.
        """
        cmd = [self._cmd, "exec", "-it", name, shell]
        logger.debug("Running: %s", " ".join(cmd))
        return subprocess.run(cmd, check=False).returncode

    # Internal helpers

    def _succeeds(self, args: Sequence[str]) -> bool:
        result = subprocess.run(
            [self._cmd, *args],
            check=False,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return result.returncode == 0

    def _has_output(self, args: Sequence[str]) -> bool:
        result = subprocess.run(
            [self._cmd, *args],
            check=False,
            capture_output=True,
            text=True,
        )
        return result.returncode == 0 and bool(result.stdout.strip())

    def _check(self, cmd: List[str]) -> None:
        logger.debug("Running: %s", " ".join(cmd))
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            raise EngineCommandError(cmd, e.returncode, e.stderr or "") from e

    def _stream(self, cmd: List[str]) -> None:
        logger.debug("Running: %s", " ".join(cmd))
        result = subprocess.run(cmd, check=False)
        if result.returncode != 0:
            raise EngineCommandError(cmd, result.returncode)


def _name_filter(name: str) -> str:
    return f"name=^/{name}$"
