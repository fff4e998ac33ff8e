import shutil

import pytest

from ednactl.config import EdnaConfig
from ednactl.plan import ContainerState

HAS_DOCKER = shutil.which("docker") is not None
DOCKER_ONLY = pytest.mark.skipif(not HAS_DOCKER, reason="requires 'docker' installed")

MUTATING = {
    "build",
    "create_container",
    "start_container",
    "remove_container",
    "remove_image",
    "exec_shell",
}


class FakeEngine:
    """Records engine calls and answers queries from its attributes."""

    def __init__(
        self,
        installed=True,
        reachable=True,
        image=True,
        container=ContainerState.ABSENT,
    ):
        self.binary = "docker"
        self.installed = installed
        self.reachable = reachable
        self.image = image
        self.container = container
        self.calls = []

    @property
    def names(self):
        return [name for name, _ in self.calls]

    @property
    def mutations(self):
        return [name for name in self.names if name in MUTATING]

    def is_installed(self):
        self.calls.append(("is_installed", None))
        return self.installed

    def is_reachable(self):
        self.calls.append(("is_reachable", None))
        return self.reachable

    def version(self):
        return "27.3.1"

    def image_exists(self, tag):
        self.calls.append(("image_exists", tag))
        return self.image

    def container_exists(self, name):
        self.calls.append(("container_exists", name))
        return self.container is not ContainerState.ABSENT

    def container_is_running(self, name):
        self.calls.append(("container_is_running", name))
        return self.container is ContainerState.RUNNING

    def build(self, plan):
        self.calls.append(("build", plan))
        self.image = True

    def create_container(self, plan):
        self.calls.append(("create_container", plan))
        self.container = ContainerState.RUNNING

    def start_container(self, name):
        self.calls.append(("start_container", name))
        self.container = ContainerState.RUNNING

    def remove_container(self, name):
        self.calls.append(("remove_container", name))
        self.container = ContainerState.ABSENT

    def remove_image(self, tag):
        self.calls.append(("remove_image", tag))
        self.image = False

    def exec_shell(self, name, shell="bash"):
        self.calls.append(("exec_shell", name))
        return 0


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def config(tmp_path):
    """Config rooted in tmp_path with an existing BLAST DB directory."""
    blastdb = tmp_path / "blastdb"
    blastdb.mkdir()
    context = tmp_path / "context"
    context.mkdir()
    return EdnaConfig(
        data_host=str(tmp_path / "data"),
        blastdb_host=str(blastdb),
        build_context=str(context),
    )


@pytest.fixture
def artifacts(config):
    """Place both build artifacts in the config's build context."""
    for name in (config.micromamba_file, config.megan_file):
        with open(f"{config.build_context}/{name}", "w") as f:
            f.write("stub")
    return config
