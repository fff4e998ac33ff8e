"""ednactl: Build and run the eDNA metabarcoding pipeline container.

This package wraps a container engine to build the pipeline image and keep a
single named container around between sessions, with the user's data and
BLAST databases mounted in.

Example:
    >>> from ednactl import resolve_mount
    >>> resolve_mount("/srv/reads", "/home/me/01_eDNA", "/opt/eDNA/01_eDNA", {"/opt/eDNA"})
    MountSpec(raw='/srv/reads', host_path='/srv/reads', container_path='/opt/eDNA/01_eDNA')

Main Components:
    - resolve_mount / resolve_blastdb: Parse HOST[:CONTAINER] mount requests
    - build_image / run_container / build_and_run / rebuild: Engine actions
    - EdnaConfig: Defaults for image, container and mounts
"""

from .api import build_and_run, build_image, probe, rebuild, run_container
from .config import EdnaConfig
from .engine import DockerEngine
from .exceptions import (
    EdnactlError,
    EngineCommandError,
    EngineNotFoundError,
    EngineUnavailableError,
    EngineUnreachableError,
    ExitCode,
    MalformedSpecError,
    MissingArtifactError,
    MissingDirectoryError,
    MountError,
    PreflightError,
    ProtectedTargetError,
)
from .mounts import BlastDbSpec, MountSpec, resolve_blastdb, resolve_mount
from .plan import BuildOptions, BuildPlan, ContainerState, RunOptions, RunPlan

__version__ = "0.1.0"

__all__ = [
    "build_image",
    "run_container",
    "build_and_run",
    "rebuild",
    "probe",
    "resolve_mount",
    "resolve_blastdb",
    "MountSpec",
    "BlastDbSpec",
    "EdnaConfig",
    "DockerEngine",
    "BuildOptions",
    "RunOptions",
    "BuildPlan",
    "RunPlan",
    "ContainerState",
    "ExitCode",
    "EdnactlError",
    "MountError",
    "MalformedSpecError",
    "ProtectedTargetError",
    "PreflightError",
    "MissingArtifactError",
    "MissingDirectoryError",
    "EngineUnavailableError",
    "EngineNotFoundError",
    "EngineUnreachableError",
    "EngineCommandError",
]
