"""Test fixtures for dns-manifests."""

import pytest

from dns_manifests.config import DeploymentConfig, InstallConfig, Networking
from dns_manifests.factory import ManifestFactory
from dns_manifests.manifest import ClusterDNS, ClusterDNSSpec, ObjectMeta

CORE_DNS_IMAGE = "quay.io/openshift/origin-coredns:v4.0"
CLI_IMAGE = "quay.io/openshift/origin-cli:v4.0"


@pytest.fixture
def deployment_config() -> DeploymentConfig:
    """Image configuration used when rendering."""
    return DeploymentConfig(core_dns_image=CORE_DNS_IMAGE, cli_image=CLI_IMAGE)


@pytest.fixture
def factory(deployment_config: DeploymentConfig) -> ManifestFactory:
    """A factory serving the templates bundled with the package."""
    return ManifestFactory(deployment_config)


@pytest.fixture
def install_config() -> InstallConfig:
    """An install config with the default service network."""
    return InstallConfig(networking=Networking(service_cidr="172.30.0.0/16"))


@pytest.fixture
def cluster_dns() -> ClusterDNS:
    """A ClusterDNS with a cluster IP and domain set."""
    return ClusterDNS(
        metadata=ObjectMeta(name="default"),
        spec=ClusterDNSSpec(cluster_ip="10.0.0.10", cluster_domain="example.local"),
    )
