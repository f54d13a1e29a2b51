"""Tests for the configuration objects."""

import dataclasses
from pathlib import Path

import pytest

from dns_manifests.config import DeploymentConfig, read_install_config
from dns_manifests.exceptions import InputException

TESTDATA_DIR = Path("tests/testdata")


async def test_read_install_config() -> None:
    """Test reading the network settings from an install config."""
    install_config = await read_install_config(TESTDATA_DIR / "install-config.yaml")
    assert install_config.networking.service_cidr == "172.30.0.0/16"
    assert install_config.base_domain == "example.com"


async def test_read_install_config_missing_network() -> None:
    """Test an install config without a service network is rejected."""
    with pytest.raises(InputException, match="Invalid install config"):
        await read_install_config(TESTDATA_DIR / "install-config-invalid.yaml")


async def test_read_install_config_empty(tmp_path: Path) -> None:
    """Test an empty install config is rejected."""
    path = tmp_path / "install-config.yaml"
    path.write_text("\n")
    with pytest.raises(InputException, match="is empty"):
        await read_install_config(path)


async def test_read_install_config_not_a_mapping(tmp_path: Path) -> None:
    """Test an install config that is not a mapping is rejected."""
    path = tmp_path / "install-config.yaml"
    path.write_text("- networking\n")
    with pytest.raises(InputException, match="Invalid install config"):
        await read_install_config(path)


async def test_read_install_config_missing_file(tmp_path: Path) -> None:
    """Test a missing install config file."""
    with pytest.raises(InputException, match="Unable to read install config"):
        await read_install_config(tmp_path / "does-not-exist.yaml")


def test_deployment_config_immutable() -> None:
    """Test the deployment config can't be changed once created."""
    config = DeploymentConfig(core_dns_image="coredns", cli_image="cli")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.cli_image = "other"  # type: ignore[misc]
