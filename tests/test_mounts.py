import os

import pytest

from ednactl.exceptions import MalformedSpecError, ProtectedTargetError
from ednactl.mounts import BlastDbSpec, MountSpec, resolve_blastdb, resolve_mount, volume_arg

DEFAULT_HOST = "/home/user/Documents/01_eDNA"
DEFAULT_CONTAINER = "/opt/eDNA/01_eDNA"
PROTECTED = frozenset({"/opt/eDNA"})


def resolve(raw):
    return resolve_mount(raw, DEFAULT_HOST, DEFAULT_CONTAINER, PROTECTED)


class TestResolveMount:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_absent_uses_defaults(self, raw):
        """No user input falls back to both defaults."""
        spec = resolve(raw)
        assert spec.host_path == DEFAULT_HOST
        assert spec.container_path == DEFAULT_CONTAINER

    def test_defaults_skip_protection(self):
        """A protected default is trusted and does not fail."""
        spec = resolve_mount(None, DEFAULT_HOST, "/opt/eDNA", PROTECTED)
        assert spec.container_path == "/opt/eDNA"

    def test_host_only_mounts_to_default_target(self):
        """HOST without a colon goes to the default container path."""
        spec = resolve("/srv/reads")
        assert spec.host_path == "/srv/reads"
        assert spec.container_path == DEFAULT_CONTAINER
        assert spec.container_path != spec.host_path

    def test_host_only_relative(self):
        spec = resolve("reads")
        assert spec == MountSpec(raw="reads", host_path="reads", container_path=DEFAULT_CONTAINER)

    def test_host_and_container(self):
        spec = resolve("/srv/reads:/opt/eDNA/02_raw_data")
        assert spec.host_path == "/srv/reads"
        assert spec.container_path == "/opt/eDNA/02_raw_data"
        assert spec.raw == "/srv/reads:/opt/eDNA/02_raw_data"

    def test_extra_colons_stay_in_container_path(self):
        """Only the first colon separates host from container."""
        spec = resolve("/srv/reads:/opt/eDNA/x:y:z")
        assert spec.host_path == "/srv/reads"
        assert spec.container_path == "/opt/eDNA/x:y:z"

    @pytest.mark.parametrize("raw", [":", "/x:", ":/y", "  :/y", "/x:  "])
    def test_malformed(self, raw):
        """An empty side of HOST:CONTAINER is rejected."""
        with pytest.raises(MalformedSpecError):
            resolve(raw)

    @pytest.mark.parametrize("raw", ["/x:/opt/eDNA", "/x:/opt/eDNA/"])
    def test_protected_target(self, raw):
        """Mounting over the install root would hide the repository."""
        with pytest.raises(ProtectedTargetError, match="/opt/eDNA"):
            resolve(raw)

    def test_subdirectory_of_protected_is_allowed(self):
        spec = resolve("/x:/opt/eDNA/sub")
        assert spec.container_path == "/opt/eDNA/sub"

    def test_trailing_slash_is_kept(self):
        """Normalization is for comparison only."""
        spec = resolve("/x:/opt/eDNA/sub/")
        assert spec.container_path == "/opt/eDNA/sub/"

    def test_deterministic(self):
        """Same input, same output."""
        assert resolve("/x:/opt/eDNA/sub") == resolve("/x:/opt/eDNA/sub")
        assert resolve("/x") == resolve("/x")


class TestResolveBlastDb:
    def test_defaults(self):
        spec = resolve_blastdb(None, "/data/blastdb", "/opt/eDNA/blastdb", "/opt/eDNA/blastdb/nt")
        assert spec == BlastDbSpec(
            raw=None,
            host_path="/data/blastdb",
            container_path="/opt/eDNA/blastdb",
            env_value="/opt/eDNA/blastdb/nt",
        )

    def test_no_protected_paths(self):
        """The BLAST DB mount may target any container path."""
        spec = resolve_blastdb("/db:/opt/eDNA", "/data/blastdb", "/opt/eDNA/blastdb", "x")
        assert spec.container_path == "/opt/eDNA"

    def test_env_value_not_derived_from_paths(self):
        """The BLASTDB value passes through even when it names other paths."""
        spec = resolve_blastdb("/db:/mnt/db", "/data/blastdb", "/opt/eDNA/blastdb", "/opt/eDNA/blastdb/nt")
        assert spec.container_path == "/mnt/db"
        assert spec.env_value == "/opt/eDNA/blastdb/nt"

    def test_malformed(self):
        with pytest.raises(MalformedSpecError):
            resolve_blastdb("/db:", "/data/blastdb", "/opt/eDNA/blastdb", "x")


class TestVolumeArg:
    def test_absolute_host(self):
        spec = MountSpec(raw=None, host_path="/srv/reads", container_path="/opt/eDNA/01_eDNA")
        assert volume_arg(spec) == "/srv/reads:/opt/eDNA/01_eDNA"

    def test_relative_host_is_made_absolute(self, tmp_path, monkeypatch):
        """A bare name would otherwise be taken as a named volume."""
        monkeypatch.chdir(tmp_path)
        spec = MountSpec(raw="reads", host_path="reads", container_path="/opt/eDNA/01_eDNA")
        assert volume_arg(spec) == f"{os.path.join(os.getcwd(), 'reads')}:/opt/eDNA/01_eDNA"
