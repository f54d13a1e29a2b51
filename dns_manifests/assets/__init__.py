"""Embedded resource templates for the cluster DNS deployment.

Templates are looked up by a fixed logical name through an `AssetResolver`.
The `PackageAssetResolver` serves the YAML files shipped alongside this module
and a `StaticAssetResolver` serves bytes from a mapping, which is useful to
substitute templates:
```python
from dns_manifests import assets

resolver = assets.StaticAssetResolver({assets.DNS_NAMESPACE: b"..."})
stream = resolver.reader(assets.DNS_NAMESPACE)
```
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
import io
import logging
from pathlib import Path
from typing import BinaryIO

from ..exceptions import AssetException

__all__ = [
    "AssetResolver",
    "PackageAssetResolver",
    "StaticAssetResolver",
    "ASSET_FILES",
]

_LOGGER = logging.getLogger(__name__)

CLUSTER_DNS_DEFAULT_CR = "default-custom-resource"
DNS_NAMESPACE = "namespace"
DNS_SERVICE_ACCOUNT = "service-account"
DNS_CLUSTER_ROLE = "cluster-role"
DNS_CLUSTER_ROLE_BINDING = "cluster-role-binding"
DNS_CONFIG_MAP = "config-map"
DNS_DAEMON_SET = "daemon-set"
DNS_SERVICE = "service"

# Files relative to this package that hold the content of each asset.
ASSET_FILES = {
    CLUSTER_DNS_DEFAULT_CR: "cluster-dns-cr.yaml",
    DNS_NAMESPACE: "dns/namespace.yaml",
    DNS_SERVICE_ACCOUNT: "dns/service-account.yaml",
    DNS_CLUSTER_ROLE: "dns/cluster-role.yaml",
    DNS_CLUSTER_ROLE_BINDING: "dns/cluster-role-binding.yaml",
    DNS_CONFIG_MAP: "dns/configmap.yaml",
    DNS_DAEMON_SET: "dns/daemonset.yaml",
    DNS_SERVICE: "dns/service.yaml",
}

ASSETS_DIR = Path(__file__).parent


class AssetResolver(ABC):
    """Interface for looking up the raw content of a named asset."""

    @abstractmethod
    def asset(self, name: str) -> bytes:
        """Return the raw content of the asset or raise an AssetException."""

    def reader(self, name: str) -> BinaryIO:
        """Return a new stream over the content of the asset."""
        return io.BytesIO(self.asset(name))


class PackageAssetResolver(AssetResolver):
    """Resolves assets from the template files bundled with this package."""

    def __init__(self, assets_dir: Path = ASSETS_DIR) -> None:
        """Initialize PackageAssetResolver."""
        self._assets_dir = assets_dir

    def asset(self, name: str) -> bytes:
        """Return the raw content of the asset file."""
        if (filename := ASSET_FILES.get(name)) is None:
            raise AssetException(f"Unknown asset '{name}'")
        path = self._assets_dir / filename
        try:
            return path.read_bytes()
        except OSError as err:
            raise AssetException(
                f"Unable to load asset '{name}' from {path}: {err}"
            ) from err


class StaticAssetResolver(AssetResolver):
    """Resolves assets from an in memory mapping of name to content."""

    def __init__(self, assets: Mapping[str, bytes]) -> None:
        """Initialize StaticAssetResolver."""
        self._assets = dict(assets)

    def asset(self, name: str) -> bytes:
        """Return the raw content of the asset."""
        if (content := self._assets.get(name)) is None:
            raise AssetException(f"Unknown asset '{name}'")
        return content
