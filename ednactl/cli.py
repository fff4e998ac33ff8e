import json
import logging
import sys
from contextlib import contextmanager
from typing import Optional

import typer

from . import __version__
from .api import build_and_run, build_image, probe, rebuild, run_container
from .config import EdnaConfig
from .exceptions import EdnactlError, ExitCode
from .plan import BuildOptions, RunOptions

app = typer.Typer(
    name="ednactl",
    help="Build the eDNA pipeline image and manage its persistent container",
    add_completion=False,
)

TAG_OPTION = typer.Option(None, "--tag", help="Image tag (default: edna_pipeline:latest)")
MICROMAMBA_OPTION = typer.Option(
    None, "--micromamba-file", "--artifact-a",
    help="Micromamba tar.bz2 in the build context"
)
MEGAN_OPTION = typer.Option(
    None, "--megan-file", "--artifact-b",
    help="MEGAN installer .sh in the build context"
)
NO_CACHE_OPTION = typer.Option(
    False, "--no-cache",
    help="Pass --no-cache to the image build (force fresh build)"
)
MOUNT_OPTION = typer.Option(
    None, "--mount", "--data",
    help="Host data path to mount, HOST or HOST:CONTAINER. "
         "HOST alone mounts into /opt/eDNA/01_eDNA; mounting over /opt/eDNA is refused."
)
BLASTDB_OPTION = typer.Option(
    None, "--blastdb",
    help="Host BLAST DB path to mount, HOST or HOST:CONTAINER "
         "(default: /data/blastdb -> /opt/eDNA/blastdb)"
)
BLASTDB_ENV_OPTION = typer.Option(
    None, "--blastdb-env",
    help="BLASTDB value inside the container"
)
HOST_DATA_ARGUMENT = typer.Argument(
    None, metavar="[HOST_DATA_DIR]",
    help="Host data directory (same as --mount HOST)"
)


@app.callback()
def cli_main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug output, including engine commands"
    ),
):
    """Build the eDNA pipeline image and manage its persistent container."""
    configure_logging(debug=verbose)


@app.command("build")
def cli_build(
    tag: Optional[str] = TAG_OPTION,
    micromamba_file: Optional[str] = MICROMAMBA_OPTION,
    megan_file: Optional[str] = MEGAN_OPTION,
    no_cache: bool = NO_CACHE_OPTION,
):
    """Build the pipeline image.

    Both artifact files must be present in the current directory.

    Examples:

        $ ednactl build --micromamba-file micromamba-2.4.0-1.tar.bz2
    """
    options = BuildOptions(tag, micromamba_file, megan_file, no_cache)
    with _reported_errors():
        plan = build_image(options, config=_load_config())
        typer.echo(f"Image '{plan.tag}' built.")


@app.command("run")
def cli_run(
    host_data_dir: Optional[str] = HOST_DATA_ARGUMENT,
    tag: Optional[str] = TAG_OPTION,
    mount: Optional[str] = MOUNT_OPTION,
    blastdb: Optional[str] = BLASTDB_OPTION,
    blastdb_env: Optional[str] = BLASTDB_ENV_OPTION,
    micromamba_file: Optional[str] = MICROMAMBA_OPTION,
    megan_file: Optional[str] = MEGAN_OPTION,
    no_cache: bool = NO_CACHE_OPTION,
):
    """Start the persistent container if needed and enter it.

    A missing host data directory is created. A missing BLAST DB directory
    is an error. The image is built first if it does not exist yet.

    Examples:

        $ ednactl run --mount ~/Documents/01_eDNA

        $ ednactl run --blastdb /data/blastdb --mount /host/path:/opt/eDNA/01_eDNA
    """
    options = _run_options(
        host_data_dir, tag, mount, blastdb, blastdb_env,
        BuildOptions(tag, micromamba_file, megan_file, no_cache),
    )
    with _reported_errors():
        plan = run_container(options, config=_load_config())
        _print_run_summary(plan)


@app.command("build-and-run")
def cli_build_and_run(
    host_data_dir: Optional[str] = HOST_DATA_ARGUMENT,
    tag: Optional[str] = TAG_OPTION,
    mount: Optional[str] = MOUNT_OPTION,
    blastdb: Optional[str] = BLASTDB_OPTION,
    blastdb_env: Optional[str] = BLASTDB_ENV_OPTION,
    micromamba_file: Optional[str] = MICROMAMBA_OPTION,
    megan_file: Optional[str] = MEGAN_OPTION,
    no_cache: bool = NO_CACHE_OPTION,
):
    """Build the image, then run the container with the same flags."""
    build_options = BuildOptions(tag, micromamba_file, megan_file, no_cache)
    run_options = _run_options(host_data_dir, tag, mount, blastdb, blastdb_env, build_options)
    with _reported_errors():
        plan = build_and_run(build_options, run_options, config=_load_config())
        _print_run_summary(plan)


@app.command("rebuild")
def cli_rebuild(
    tag: Optional[str] = TAG_OPTION,
    micromamba_file: Optional[str] = MICROMAMBA_OPTION,
    megan_file: Optional[str] = MEGAN_OPTION,
    no_cache: bool = NO_CACHE_OPTION,
):
    """Remove the persistent container and the image, then rebuild the image."""
    options = BuildOptions(tag, micromamba_file, megan_file, no_cache)
    with _reported_errors():
        plan = rebuild(options, config=_load_config())
        typer.echo(f"Image '{plan.tag}' rebuilt.")


@app.command("probe")
def cli_probe(
    json_output: bool = typer.Option(
        False, "--json",
        help="Output in JSON format"
    ),
):
    """Check the container engine, image and container status.

    Examples:

        $ ednactl probe

        $ ednactl probe --json
    """
    with _reported_errors():
        report = probe(config=_load_config())

    if json_output:
        typer.echo(json.dumps(report, indent=2))
    else:
        _print_probe_report(report)


@app.command("version")
def cli_version():
    """Print the ednactl version."""
    typer.echo(f"ednactl {__version__}")


def main():
    """Entry point for CLI."""
    app()


def configure_logging(debug: bool = False) -> None:
    """Configure logging.

    Args:
        debug: If True, enable DEBUG level logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("ednactl").setLevel(level)


def _load_config() -> EdnaConfig:
    return EdnaConfig.from_env()


def _run_options(host_data_dir, tag, mount, blastdb, blastdb_env, build_options) -> RunOptions:
    """Fold the legacy positional data directory into --mount."""
    if host_data_dir is not None and mount is not None:
        raise typer.BadParameter(
            "give the data directory either positionally or with --mount, not both",
            param_hint="HOST_DATA_DIR",
        )
    return RunOptions(
        tag=tag,
        mount=mount if mount is not None else host_data_dir,
        blastdb=blastdb,
        blastdb_env=blastdb_env,
        build=build_options,
    )


@contextmanager
def _reported_errors():
    """Turn ednactl errors into a message and their exit status."""
    try:
        yield
    except EdnactlError as e:
        typer.echo(f"Error: {e}", err=True)
        sys.exit(int(e.exit_code))
    except Exception as e:
        typer.echo(f"Unexpected error: {e}", err=True)
        sys.exit(int(ExitCode.ERROR))


def _print_run_summary(plan):
    """Print the resolved mounts and container state."""
    typer.echo(f"Container '{plan.container_name}' ({plan.state.value}) from image {plan.tag}")
    for volume in plan.volumes:
        typer.echo(f"  mount: {volume}")
    typer.echo(f"  BLASTDB={plan.blastdb.env_value}")


def _print_probe_report(report: dict):
    """Print human-readable engine report."""
    def mark(flag):
        return "yes" if flag else "no"

    typer.echo(f"  Engine:      {report['engine']}")
    typer.echo(f"  Installed:   {mark(report['installed'])}")
    typer.echo(f"  Reachable:   {mark(report['reachable'])}")

    if report["reachable"]:
        typer.echo(f"  Version:     {report['version'] or 'unknown'}")
        typer.echo(f"  Image:       {'present' if report['image'] else 'missing'}")
        typer.echo(f"  Container:   {report['container']}")
    elif report["installed"]:
        typer.echo()
        typer.echo("  The daemon is not running or not accessible to this user.")


if __name__ == "__main__":
    main()
