import dataclasses
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

ENV_PREFIX = "EDNACTL_"

DEFAULT_IMAGE_TAG = "edna_pipeline:latest"
DEFAULT_CONTAINER_NAME = "edna_session"
DEFAULT_WORKDIR = "/opt/eDNA"
DEFAULT_DATA_CONTAINER = "/opt/eDNA/01_eDNA"
DEFAULT_BLASTDB_HOST = "/data/blastdb"
DEFAULT_BLASTDB_CONTAINER = "/opt/eDNA/blastdb"
DEFAULT_BLASTDB_ENV = "/opt/eDNA/blastdb/ntdatabase:/opt/eDNA/blastdb/IYS_APC"
DEFAULT_MICROMAMBA_FILE = "micromamba-2.4.0-1.tar.bz2"
DEFAULT_MEGAN_FILE = "MEGAN_Community_unix_6_25_10.sh"
DEFAULT_REPO_REF = "5e509b4f46eb67e32a90bfb38ffbd1c61d2a050b"


def _default_data_host() -> str:
    return os.path.join(os.path.expanduser("~"), "Documents", "01_eDNA")


@dataclass(frozen=True)
class EdnaConfig:
    """Defaults for image, container and mounts.

    Passed explicitly to the resolver and actions so callers can override any
    value without touching process-wide state.

    Attributes:
        image_tag: Image to build and run
        container_name: Name of the persistent container
        workdir: Working directory inside the container
        data_host: Default host data directory (auto-created on run)
        data_container: Default container target for the data mount
        blastdb_host: Default host BLAST database directory (must exist)
        blastdb_container: Default container target for the BLAST database
        blastdb_env: Value exported as BLASTDB inside the container
        protected_containers: Container paths user mounts may not cover
        micromamba_file: Micromamba tarball expected in the build context
        megan_file: MEGAN installer expected in the build context
        repo_ref: Pipeline repository revision passed as a build arg
        engine_binary: Container engine executable
        build_context: Directory handed to the engine as build context
    """

    image_tag: str = DEFAULT_IMAGE_TAG
    container_name: str = DEFAULT_CONTAINER_NAME
    workdir: str = DEFAULT_WORKDIR
    data_host: str = field(default_factory=_default_data_host)
    data_container: str = DEFAULT_DATA_CONTAINER
    blastdb_host: str = DEFAULT_BLASTDB_HOST
    blastdb_container: str = DEFAULT_BLASTDB_CONTAINER
    blastdb_env: str = DEFAULT_BLASTDB_ENV
    protected_containers: FrozenSet[str] = frozenset({DEFAULT_WORKDIR})
    micromamba_file: str = DEFAULT_MICROMAMBA_FILE
    megan_file: str = DEFAULT_MEGAN_FILE
    repo_ref: str = DEFAULT_REPO_REF
    engine_binary: str = "docker"
    build_context: str = "."

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EdnaConfig":
        """Build a config, applying EDNACTL_* overrides from environ.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            EdnaConfig with every non-blank override applied
        """
        if environ is None:
            environ = os.environ

        overrides = {}
        for field_name, var in _ENV_OVERRIDES.items():
            value = environ.get(ENV_PREFIX + var, "").strip()
            if value:
                overrides[field_name] = value

        if "data_host" in overrides:
            overrides["data_host"] = os.path.expanduser(overrides["data_host"])

        return cls(**overrides)

    def with_overrides(self, **changes) -> "EdnaConfig":
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return dataclasses.replace(self, **changes)


_ENV_OVERRIDES = {
    "image_tag": "IMAGE",
    "container_name": "CONTAINER",
    "data_host": "DATA_HOST",
    "blastdb_host": "BLASTDB_HOST",
    "blastdb_env": "BLASTDB_ENV",
    "micromamba_file": "MICROMAMBA_FILE",
    "megan_file": "MEGAN_FILE",
    "repo_ref": "REPO_REF",
    "engine_binary": "ENGINE",
}
