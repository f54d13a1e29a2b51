"""Configuration objects for dns-manifests."""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import cast

import aiofiles
import yaml
from mashumaro import field_options
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException
from .manifest import BaseManifest

__all__ = [
    "DeploymentConfig",
    "InstallConfig",
    "Networking",
    "read_install_config",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentConfig:
    """Image references used when rendering the DNS workload."""

    core_dns_image: str
    """Image for the DNS server container."""

    cli_image: str
    """Image for the node resolver sidecar container."""


@dataclass
class Networking(BaseManifest):
    """Network settings of the cluster installation."""

    service_cidr: str = field(metadata=field_options(alias="serviceCIDR"))
    """The address range reserved for service cluster IPs."""


@dataclass
class InstallConfig(BaseManifest):
    """Settings of the cluster installation relevant to DNS."""

    networking: Networking

    base_domain: str | None = field(
        metadata=field_options(alias="baseDomain"), default=None
    )


async def read_install_config(config_path: Path) -> InstallConfig:
    """Return the contents of an install configuration file."""
    try:
        async with aiofiles.open(str(config_path)) as config_file:
            content = await config_file.read()
    except OSError as err:
        raise InputException(
            f"Unable to read install config file {config_path}: {err}"
        ) from err
    if not content.strip():
        raise InputException(f"Install config file {config_path} is empty")
    _LOGGER.debug("Loaded install config from %s", config_path)
    try:
        return cast(InstallConfig, InstallConfig.parse_yaml(content))
    except (
        yaml.YAMLError,
        MissingField,
        InvalidFieldValue,
        AttributeError,
        ValueError,
        TypeError,
    ) as err:
        raise InputException(
            f"Invalid install config file {config_path}: {err}"
        ) from err
