from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .mounts import BlastDbSpec, MountSpec, volume_arg


class ContainerState(str, Enum):
    """What run_container found (or did) for the named container."""

    ABSENT = "absent"
    CREATED = "created"
    STOPPED = "stopped"
    STARTED = "started"
    RUNNING = "running"


@dataclass
class BuildOptions:
    """Build flags as given on the command line; None means use the config."""

    tag: Optional[str] = None
    micromamba_file: Optional[str] = None
    megan_file: Optional[str] = None
    no_cache: bool = False


@dataclass
class RunOptions:
    """Run flags as given on the command line; None means use the config.

    ``build`` is used when the image is missing and has to be built first.
    """

    tag: Optional[str] = None
    mount: Optional[str] = None
    blastdb: Optional[str] = None
    blastdb_env: Optional[str] = None
    build: BuildOptions = field(default_factory=BuildOptions)


@dataclass
class BuildPlan:
    """Everything the engine needs to build the image."""

    tag: str
    context: str
    micromamba_file: str
    megan_file: str
    repo_ref: str
    no_cache: bool = False

    @property
    def build_args(self) -> Dict[str, str]:
        return {
            "REPO_REF": self.repo_ref,
            "MICROMAMBA_FILE": self.micromamba_file,
            "MEGAN_INSTALLER_FILE": self.megan_file,
        }


@dataclass
class RunPlan:
    """Resolved container configuration and the outcome of run_container.

    Attributes:
        tag: Image the container runs
        container_name: Name of the persistent container
        workdir: Working directory inside the container
        data: Resolved data mount
        blastdb: Resolved BLAST database mount and BLASTDB value
        state: CREATED, STARTED or RUNNING once the run completed
        image_built: True if the image was missing and got built
        attached: True if an interactive shell was attached
    """

    tag: str
    container_name: str
    workdir: str
    data: MountSpec
    blastdb: BlastDbSpec
    state: ContainerState = ContainerState.ABSENT
    image_built: bool = False
    attached: bool = False

    @property
    def volumes(self) -> List[str]:
        return [volume_arg(self.data), volume_arg(self.blastdb)]

    @property
    def environment(self) -> Dict[str, str]:
        return {"BLASTDB": self.blastdb.env_value}
