import os
from dataclasses import dataclass
from typing import AbstractSet, Optional, Tuple, Union

from .exceptions import MalformedSpecError, ProtectedTargetError

SEPARATOR = ":"


@dataclass(frozen=True)
class MountSpec:
    """A single resolved HOST[:CONTAINER] mount request.

    Attributes:
        raw: The string the user supplied, or None when defaults were used
        host_path: Path on the launching machine
        container_path: Absolute path inside the container
    """

    raw: Optional[str]
    host_path: str
    container_path: str


@dataclass(frozen=True)
class BlastDbSpec:
    """A resolved BLAST database mount plus the BLASTDB value for the container.

    ``env_value`` is carried through unchanged and is not derived from the
    paths. Keeping the two consistent is up to whoever configures them.
    """

    raw: Optional[str]
    host_path: str
    container_path: str
    env_value: str


def resolve_mount(
    raw: Optional[str],
    default_host: str,
    default_container: str,
    protected_containers: AbstractSet[str] = frozenset(),
) -> MountSpec:
    """Resolve a user mount string against defaults and protected targets.

    Args:
        raw: User input of the form HOST or HOST:CONTAINER, or None/empty
        default_host: Host path used when raw is absent
        default_container: Container path used when raw names no container
        protected_containers: Container paths a user mount must never cover

    Returns:
        The resolved MountSpec

    Raises:
        MalformedSpecError: If either side of HOST:CONTAINER is empty
        ProtectedTargetError: If an explicit container path is protected

    Note:
        Built-in defaults are trusted and never checked against
        protected_containers. Only the text after the first ':' becomes the
        container path, so further colons are kept as-is.
    """
    if not raw:
        return MountSpec(raw=raw, host_path=default_host, container_path=default_container)

    host_path, container_path = _split(raw)
    if container_path is None:
        return MountSpec(raw=raw, host_path=host_path, container_path=default_container)

    if _normalize(container_path) in protected_containers:
        raise ProtectedTargetError(
            f"Refusing to mount over {_normalize(container_path)} "
            "(this would hide the repository in the image). "
            "Mount into a subfolder instead."
        )

    return MountSpec(raw=raw, host_path=host_path, container_path=container_path)


def resolve_blastdb(
    raw: Optional[str],
    default_host: str,
    default_container: str,
    env_value: str,
) -> BlastDbSpec:
    """Resolve the BLAST database mount.

    Same parsing as resolve_mount without any protected targets.
    """
    spec = resolve_mount(raw, default_host, default_container)
    return BlastDbSpec(
        raw=spec.raw,
        host_path=spec.host_path,
        container_path=spec.container_path,
        env_value=env_value,
    )


def volume_arg(spec: Union[MountSpec, BlastDbSpec]) -> str:
    """Render a resolved spec as the value of an engine ``-v`` flag.

    The host side is made absolute so a relative path is never mistaken for
    a named volume.
    """
    host = os.path.abspath(os.path.expanduser(spec.host_path))
    return f"{host}{SEPARATOR}{spec.container_path}"


# Internal helper functions


def _split(raw: str) -> Tuple[str, Optional[str]]:
    """Split on the first separator; container part is None when absent."""
    host_part, _, container_part = raw.partition(SEPARATOR)
    if not host_part.strip():
        raise _malformed(raw)
    if SEPARATOR not in raw:
        return raw, None
    if not container_part.strip():
        raise _malformed(raw)
    return host_part, container_part


def _malformed(raw: str) -> MalformedSpecError:
    return MalformedSpecError(
        f"Invalid mount argument {raw!r}. Use HOST or HOST:CONTAINER"
    )


def _normalize(container_path: str) -> str:
    if container_path.endswith("/") and len(container_path) > 1:
        return container_path[:-1]
    return container_path
