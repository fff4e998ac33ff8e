import os

from ednactl.config import (
    DEFAULT_BLASTDB_ENV,
    DEFAULT_IMAGE_TAG,
    EdnaConfig,
)


class TestEdnaConfig:
    def test_defaults(self):
        config = EdnaConfig.from_env({})
        assert config.image_tag == DEFAULT_IMAGE_TAG
        assert config.container_name == "edna_session"
        assert config.data_container == "/opt/eDNA/01_eDNA"
        assert config.blastdb_host == "/data/blastdb"
        assert config.blastdb_container == "/opt/eDNA/blastdb"
        assert config.blastdb_env == DEFAULT_BLASTDB_ENV
        assert config.protected_containers == frozenset({"/opt/eDNA"})
        assert config.engine_binary == "docker"

    def test_default_data_host_under_home(self):
        config = EdnaConfig.from_env({})
        assert config.data_host == os.path.join(os.path.expanduser("~"), "Documents", "01_eDNA")

    def test_env_overrides(self):
        config = EdnaConfig.from_env({
            "EDNACTL_IMAGE": "edna:dev",
            "EDNACTL_CONTAINER": "edna_dev",
            "EDNACTL_BLASTDB_HOST": "/mnt/blastdb",
            "EDNACTL_BLASTDB_ENV": "/opt/eDNA/blastdb/nt",
            "EDNACTL_ENGINE": "podman",
        })
        assert config.image_tag == "edna:dev"
        assert config.container_name == "edna_dev"
        assert config.blastdb_host == "/mnt/blastdb"
        assert config.blastdb_env == "/opt/eDNA/blastdb/nt"
        assert config.engine_binary == "podman"

    def test_blank_env_is_unset(self):
        config = EdnaConfig.from_env({"EDNACTL_IMAGE": "  "})
        assert config.image_tag == DEFAULT_IMAGE_TAG

    def test_data_host_expands_user(self):
        config = EdnaConfig.from_env({"EDNACTL_DATA_HOST": "~/eDNA"})
        assert config.data_host == os.path.join(os.path.expanduser("~"), "eDNA")

    def test_with_overrides_ignores_none(self):
        config = EdnaConfig.from_env({})
        updated = config.with_overrides(image_tag="edna:dev", megan_file=None)
        assert updated.image_tag == "edna:dev"
        assert updated.megan_file == config.megan_file
        assert config.image_tag == DEFAULT_IMAGE_TAG
