"""Factory for the cluster resources that make up the DNS deployment.

The factory decodes the embedded templates and is the single point of control
for mutating them with the deployment configuration. Every method returns a
new object decoded from the template, so callers own what they receive:
```python
from dns_manifests.config import DeploymentConfig
from dns_manifests.factory import ManifestFactory

factory = ManifestFactory(DeploymentConfig(core_dns_image="...", cli_image="..."))
cluster_dns = factory.cluster_dns_default_cr(install_config)
daemon_set = factory.dns_daemon_set(cluster_dns)
service = factory.dns_service(cluster_dns)
```
"""

import enum
import logging
from typing import TypeVar

from . import assets
from .assets import AssetResolver, PackageAssetResolver
from .config import DeploymentConfig, InstallConfig
from .context import trace_context
from .exceptions import InputException, TemplateContractException
from .manifest import (
    ClusterDNS,
    ClusterRole,
    ClusterRoleBinding,
    ConfigMap,
    Container,
    DaemonSet,
    EnvVar,
    Namespace,
    Resource,
    Service,
    ServiceAccount,
)
from .network import dns_cluster_ip

__all__ = [
    "ManifestFactory",
    "ContainerRole",
    "CONTAINER_ROLES",
    "resource_name",
]

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T", bound=Resource)

# Rendered resources are named after the ClusterDNS with this prefix.
RESOURCE_NAME_PREFIX = "dns-"

# Label binding the DaemonSet selector and the Service to the DNS pods.
DNS_LABEL = "dns"

# Domain in the Corefile template replaced by the configured cluster domain.
DEFAULT_CLUSTER_DOMAIN = "cluster.local"
COREFILE_KEY = "Corefile"

# Volume in the DaemonSet template that mounts the Corefile ConfigMap.
CONFIG_VOLUME_NAME = "config-volume"

NAMESERVER_ENV = "NAMESERVER"
CLUSTER_DOMAIN_ENV = "CLUSTER_DOMAIN"


class ContainerRole(enum.Enum):
    """The role a container in the DaemonSet template plays."""

    SERVER = "server"
    NODE_RESOLVER = "node-resolver"


# Containers in the DaemonSet template that receive images and settings.
CONTAINER_ROLES = {
    "dns": ContainerRole.SERVER,
    "dns-node-resolver": ContainerRole.NODE_RESOLVER,
}


def resource_name(dns: ClusterDNS) -> str:
    """Return the name of the resources rendered for the ClusterDNS."""
    return f"{RESOURCE_NAME_PREFIX}{dns.name}"


class ManifestFactory:
    """Creates dns related cluster resources from the embedded templates."""

    def __init__(
        self, config: DeploymentConfig, resolver: AssetResolver | None = None
    ) -> None:
        """Initialize ManifestFactory."""
        self._config = config
        self._resolver = resolver or PackageAssetResolver()

    def _decode(self, asset: str, cls: type[_T]) -> _T:
        """Decode a new copy of the named template."""
        return cls.parse_stream(
            self._resolver.reader(asset), source=f"asset '{asset}'"
        )

    def cluster_dns_default_cr(
        self, install_config: InstallConfig | None
    ) -> ClusterDNS:
        """Build the default ClusterDNS.

        The cluster IP is set to the 10th address of the service network from
        the install config.
        """
        if install_config is None:
            raise InputException("missing install configuration")
        with trace_context("ClusterDNS"):
            cr = self._decode(assets.CLUSTER_DNS_DEFAULT_CR, ClusterDNS)
            cr.spec.cluster_ip = dns_cluster_ip(install_config.networking.service_cidr)
        _LOGGER.debug(
            "Rendered ClusterDNS %s with cluster IP %s", cr.name, cr.spec.cluster_ip
        )
        return cr

    def dns_namespace(self) -> Namespace:
        """Build the Namespace the DNS resources live in."""
        return self._decode(assets.DNS_NAMESPACE, Namespace)

    def dns_service_account(self) -> ServiceAccount:
        return self._decode(assets.DNS_SERVICE_ACCOUNT, ServiceAccount)

    def dns_cluster_role(self) -> ClusterRole:
        return self._decode(assets.DNS_CLUSTER_ROLE, ClusterRole)

    def dns_cluster_role_binding(self) -> ClusterRoleBinding:
        """Build the binding granting the DNS ClusterRole to its ServiceAccount."""
        return self._decode(assets.DNS_CLUSTER_ROLE_BINDING, ClusterRoleBinding)

    def dns_config_map(self, dns: ClusterDNS) -> ConfigMap:
        """Build the ConfigMap holding the Corefile for the DNS server.

        When the ClusterDNS has a cluster domain, every occurrence of the
        default domain in the Corefile is replaced with it.
        """
        with trace_context("ConfigMap"):
            cm = self._decode(assets.DNS_CONFIG_MAP, ConfigMap)
            cm.metadata.name = resource_name(dns)
            if (
                dns.spec.cluster_domain is not None
                and cm.data
                and COREFILE_KEY in cm.data
            ):
                cm.data[COREFILE_KEY] = cm.data[COREFILE_KEY].replace(
                    DEFAULT_CLUSTER_DOMAIN, dns.spec.cluster_domain
                )
        return cm

    def dns_daemon_set(self, dns: ClusterDNS) -> DaemonSet:
        """Build the DaemonSet running the DNS server on every node.

        The pod template and selector are labeled with the resource name, the
        config volume is pointed at the rendered ConfigMap and the containers
        receive their images from the deployment config.
        """
        with trace_context("DaemonSet"):
            ds = self._decode(assets.DNS_DAEMON_SET, DaemonSet)
            name = resource_name(dns)
            ds.metadata.name = name

            template_meta = ds.spec.template.metadata
            if template_meta.labels is None:
                template_meta.labels = {}
            template_meta.labels[DNS_LABEL] = name

            selector = ds.spec.selector
            if selector.match_labels is None:
                selector.match_labels = {}
            selector.match_labels[DNS_LABEL] = name

            pod_spec = ds.spec.template.spec
            volume = next(
                (v for v in pod_spec.volumes or () if v.name == CONFIG_VOLUME_NAME),
                None,
            )
            if volume is None:
                raise TemplateContractException(
                    f"volume '{CONFIG_VOLUME_NAME}' not found in DaemonSet template"
                )
            if volume.config_map is None:
                raise TemplateContractException(
                    f"volume '{CONFIG_VOLUME_NAME}' in DaemonSet template "
                    "is not backed by a ConfigMap"
                )
            volume.config_map.name = name

            for container in pod_spec.containers:
                self._update_container(container, dns)
        return ds

    def _update_container(self, container: Container, dns: ClusterDNS) -> None:
        """Apply the image and settings for the role of the container."""
        role = CONTAINER_ROLES.get(container.name)
        if role == ContainerRole.SERVER:
            container.image = self._config.core_dns_image
        elif role == ContainerRole.NODE_RESOLVER:
            container.image = self._config.cli_image
            if dns.spec.cluster_ip is not None and dns.spec.cluster_domain is not None:
                if container.env is None:
                    container.env = []
                container.env.extend(
                    [
                        EnvVar(name=NAMESERVER_ENV, value=dns.spec.cluster_ip),
                        EnvVar(name=CLUSTER_DOMAIN_ENV, value=dns.spec.cluster_domain),
                    ]
                )
        else:
            _LOGGER.debug("Leaving container '%s' unchanged", container.name)

    def dns_service(self, dns: ClusterDNS) -> Service:
        """Build the Service routing to the DNS pods."""
        with trace_context("Service"):
            svc = self._decode(assets.DNS_SERVICE, Service)
            name = resource_name(dns)
            svc.metadata.name = name

            if svc.metadata.labels is None:
                svc.metadata.labels = {}
            svc.metadata.labels[DNS_LABEL] = name

            if svc.spec.selector is None:
                svc.spec.selector = {}
            svc.spec.selector[DNS_LABEL] = name

            if dns.spec.cluster_ip is not None:
                svc.spec.cluster_ip = dns.spec.cluster_ip
        return svc
