import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

from .config import EdnaConfig
from .engine import DockerEngine
from .exceptions import (
    EngineNotFoundError,
    EngineUnreachableError,
    MissingArtifactError,
    MissingDirectoryError,
)
from .mounts import resolve_blastdb, resolve_mount
from .plan import BuildOptions, BuildPlan, ContainerState, RunOptions, RunPlan

logger = logging.getLogger(__name__)


def build_image(
    options: Optional[BuildOptions] = None,
    *,
    config: Optional[EdnaConfig] = None,
    engine: Optional[DockerEngine] = None,
) -> BuildPlan:
    """Build the pipeline image from the local build context.

    Args:
        options: Flags overriding config (tag, artifact files, no_cache)
        config: Defaults (default: EdnaConfig.from_env())
        engine: Engine collaborator (default: DockerEngine for config)

    Returns:
        The BuildPlan handed to the engine

    Raises:
        EngineNotFoundError: If the engine binary is not on PATH
        EngineUnreachableError: If the engine daemon does not answer
        MissingArtifactError: If an artifact file is absent from the context
        EngineCommandError: If the build itself fails
    """
    config, engine = _defaults(config, engine)
    plan = _build_plan(options or BuildOptions(), config)

    _check_engine(engine)
    _check_artifacts(plan)

    logger.info("Building image '%s' (micromamba file: %s)...", plan.tag, plan.micromamba_file)
    engine.build(plan)
    return plan


def run_container(
    options: Optional[RunOptions] = None,
    *,
    config: Optional[EdnaConfig] = None,
    engine: Optional[DockerEngine] = None,
    interactive: Optional[bool] = None,
) -> RunPlan:
    """Start the persistent container if needed and attach to it.

    Every precondition is checked before anything is changed: engine
    availability, both mount specs, the BLAST database directory and, when
    the image must be built, the build artifacts. Only then is the data
    directory created and the engine asked to build, create or start.

    Args:
        options: Flags overriding config (tag, mounts, BLASTDB value, build)
        config: Defaults (default: EdnaConfig.from_env())
        engine: Engine collaborator (default: DockerEngine for config)
        interactive: Attach a shell; None means attach only if stdin is a TTY

    Returns:
        RunPlan with the resolved mounts and what happened to the container

    Raises:
        EngineNotFoundError: If the engine binary is not on PATH
        EngineUnreachableError: If the engine daemon does not answer
        MalformedSpecError: If --mount or --blastdb cannot be parsed
        ProtectedTargetError: If --mount targets a protected path
        MissingDirectoryError: If the BLAST database directory is absent, or
            the data host path exists but is not a directory
        MissingArtifactError: If the image is missing and cannot be built
        EngineCommandError: If an engine command fails
    """
    config, engine = _defaults(config, engine)
    options = options or RunOptions()

    _check_engine(engine)
    plan, build_plan = _prepare_run(options, config, engine)
    return _start_run(plan, build_plan, engine, interactive)


def build_and_run(
    build_options: Optional[BuildOptions] = None,
    run_options: Optional[RunOptions] = None,
    *,
    config: Optional[EdnaConfig] = None,
    engine: Optional[DockerEngine] = None,
    interactive: Optional[bool] = None,
) -> RunPlan:
    """Build the image, then run the container with the same settings.

    The preconditions of both steps are checked before the build starts, so
    a bad mount or a missing BLAST database directory leaves the engine
    untouched.
    """
    config, engine = _defaults(config, engine)
    build_options = build_options or BuildOptions()
    build_plan = _build_plan(build_options, config)
    if run_options is None:
        run_options = RunOptions(tag=build_plan.tag, build=build_options)

    _check_engine(engine)
    _check_artifacts(build_plan)
    plan, _ = _prepare_run(run_options, config, engine, will_build=True)
    return _start_run(plan, build_plan, engine, interactive)


def rebuild(
    options: Optional[BuildOptions] = None,
    *,
    config: Optional[EdnaConfig] = None,
    engine: Optional[DockerEngine] = None,
) -> BuildPlan:
    """Remove the persistent container and the image, then build afresh.

    Both artifacts are checked before anything is removed.
    """
    config, engine = _defaults(config, engine)
    plan = _build_plan(options or BuildOptions(), config)

    _check_engine(engine)
    _check_artifacts(plan)

    if engine.container_exists(config.container_name):
        logger.info("Removing container '%s'...", config.container_name)
        engine.remove_container(config.container_name)
    else:
        logger.info("Container '%s' not found; skipping removal.", config.container_name)

    if engine.image_exists(plan.tag):
        logger.info("Removing image '%s'...", plan.tag)
        engine.remove_image(plan.tag)
    else:
        logger.info("Image '%s' not found; skipping removal.", plan.tag)

    return build_image(options, config=config, engine=engine)


def probe(
    *,
    config: Optional[EdnaConfig] = None,
    engine: Optional[DockerEngine] = None,
) -> Dict[str, Any]:
    """Report engine, image and container status without changing anything.

    Returns:
        Dict with keys:
            - engine: str - Engine binary name
            - installed: bool - Binary found on PATH
            - reachable: bool - Daemon answered
            - version: Optional[str] - Server version
            - image: Optional[bool] - Image present (None if unreachable)
            - container: Optional[str] - "absent", "stopped" or "running"
    """
    config, engine = _defaults(config, engine)

    report: Dict[str, Any] = {
        "engine": engine.binary,
        "installed": engine.is_installed(),
        "reachable": False,
        "version": None,
        "image": None,
        "container": None,
    }
    if not report["installed"]:
        return report

    report["reachable"] = engine.is_reachable()
    if not report["reachable"]:
        return report

    report["version"] = engine.version()
    report["image"] = engine.image_exists(config.image_tag)
    report["container"] = _container_state(config.container_name, engine).value
    return report


# Internal helper functions


def _defaults(config, engine):
    if config is None:
        config = EdnaConfig.from_env()
    if engine is None:
        engine = DockerEngine(config.engine_binary)
    return config, engine


def _check_engine(engine: DockerEngine) -> None:
    """Fail unless the engine binary exists and its daemon answers."""
    if not engine.is_installed():
        raise EngineNotFoundError(f"{engine.binary} not found in PATH")
    if not engine.is_reachable():
        raise EngineUnreachableError(
            f"{engine.binary} daemon not running or inaccessible"
        )


def _check_artifacts(plan: BuildPlan) -> None:
    """Fail unless both artifact files are present in the build context."""
    for label, filename in (
        ("micromamba", plan.micromamba_file),
        ("MEGAN installer", plan.megan_file),
    ):
        path = os.path.join(plan.context, filename)
        if not os.path.isfile(path):
            raise MissingArtifactError(
                f"{label} file '{filename}' not found in build context '{plan.context}'."
            )


def _build_plan(options: BuildOptions, config: EdnaConfig, tag: Optional[str] = None) -> BuildPlan:
    config = config.with_overrides(
        image_tag=tag or options.tag or None,
        micromamba_file=options.micromamba_file or None,
        megan_file=options.megan_file or None,
    )
    return BuildPlan(
        tag=config.image_tag,
        context=config.build_context,
        micromamba_file=config.micromamba_file,
        megan_file=config.megan_file,
        repo_ref=config.repo_ref,
        no_cache=options.no_cache,
    )


def _prepare_run(
    options: RunOptions,
    config: EdnaConfig,
    engine: DockerEngine,
    will_build: bool = False,
) -> Tuple[RunPlan, Optional[BuildPlan]]:
    """Resolve the run and check every precondition; change nothing.

    Returns the RunPlan and, when the image is missing and will_build is
    False, the BuildPlan needed to produce it.
    """
    plan = _run_plan(options, config)

    # The BLAST database is never created on the user's behalf.
    if not os.path.isdir(os.path.expanduser(plan.blastdb.host_path)):
        raise MissingDirectoryError(
            f"Host BLAST DB directory '{plan.blastdb.host_path}' does not exist."
        )

    data_dir = os.path.expanduser(plan.data.host_path)
    if os.path.exists(data_dir) and not os.path.isdir(data_dir):
        raise MissingDirectoryError(
            f"Host data path '{plan.data.host_path}' exists but is not a directory."
        )

    if will_build:
        return plan, None

    if engine.image_exists(plan.tag):
        logger.info("Image found locally: %s", plan.tag)
        return plan, None

    build_plan = _build_plan(options.build, config, tag=plan.tag)
    _check_artifacts(build_plan)
    return plan, build_plan


def _start_run(
    plan: RunPlan,
    build_plan: Optional[BuildPlan],
    engine: DockerEngine,
    interactive: Optional[bool],
) -> RunPlan:
    """Create the data directory, build if asked, then bring up the container."""
    data_dir = os.path.expanduser(plan.data.host_path)
    if not os.path.isdir(data_dir):
        logger.info("Host data directory '%s' does not exist, creating it.", plan.data.host_path)
        os.makedirs(data_dir, exist_ok=True)

    if build_plan is not None:
        logger.info("Building image '%s' (micromamba file: %s)...", build_plan.tag, build_plan.micromamba_file)
        engine.build(build_plan)
        plan.image_built = True

    plan.state = _ensure_container(plan, engine)

    if interactive is None:
        interactive = sys.stdin.isatty()
    if interactive:
        logger.info(
            "Entering container '%s'. To detach, exit the shell (container keeps running).",
            plan.container_name,
        )
        engine.exec_shell(plan.container_name)
        plan.attached = True
    else:
        logger.info(
            "Container '%s' is running. No TTY available; skipping interactive exec.",
            plan.container_name,
        )

    return plan


def _run_plan(options: RunOptions, config: EdnaConfig) -> RunPlan:
    config = config.with_overrides(
        image_tag=options.tag or None,
        blastdb_env=options.blastdb_env or None,
    )
    data = resolve_mount(
        options.mount,
        config.data_host,
        config.data_container,
        config.protected_containers,
    )
    blastdb = resolve_blastdb(
        options.blastdb,
        config.blastdb_host,
        config.blastdb_container,
        config.blastdb_env,
    )
    return RunPlan(
        tag=config.image_tag,
        container_name=config.container_name,
        workdir=config.workdir,
        data=data,
        blastdb=blastdb,
    )


def _container_state(name: str, engine: DockerEngine) -> ContainerState:
    if not engine.container_exists(name):
        return ContainerState.ABSENT
    if engine.container_is_running(name):
        return ContainerState.RUNNING
    return ContainerState.STOPPED


def _ensure_container(plan: RunPlan, engine: DockerEngine) -> ContainerState:
    """Create, start or reuse the named container; return what was done."""
    state = _container_state(plan.container_name, engine)

    if state is ContainerState.ABSENT:
        logger.info("Creating and starting container '%s' (detached)...", plan.container_name)
        engine.create_container(plan)
        logger.info("Container '%s' created.", plan.container_name)
        return ContainerState.CREATED

    if state is ContainerState.STOPPED:
        logger.info("Container '%s' exists but is stopped, starting...", plan.container_name)
        engine.start_container(plan.container_name)
        return ContainerState.STARTED

    logger.info("Container '%s' is already running.", plan.container_name)
    return ContainerState.RUNNING
