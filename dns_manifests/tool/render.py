"""dns-manifests render action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from collections.abc import Callable
import logging
import os
import pathlib
import sys
from typing import cast

from dns_manifests.config import DeploymentConfig, read_install_config
from dns_manifests.exceptions import InputException
from dns_manifests.factory import ManifestFactory
from dns_manifests.manifest import ClusterDNS, Resource

from .format import FORMATTERS

_LOGGER = logging.getLogger(__name__)

CORE_DNS_IMAGE_ENV = "CORE_DNS_IMAGE"
CLI_IMAGE_ENV = "CLI_IMAGE"

# Kinds in the order they should be applied to a cluster.
KINDS = [
    "ClusterDNS",
    "Namespace",
    "ServiceAccount",
    "ClusterRole",
    "ClusterRoleBinding",
    "ConfigMap",
    "DaemonSet",
    "Service",
]


def _renderers(
    factory: ManifestFactory, cluster_dns: ClusterDNS
) -> dict[str, Callable[[], Resource]]:
    """Return the factory call that renders each kind."""
    return {
        "ClusterDNS": lambda: cluster_dns,
        "Namespace": factory.dns_namespace,
        "ServiceAccount": factory.dns_service_account,
        "ClusterRole": factory.dns_cluster_role,
        "ClusterRoleBinding": factory.dns_cluster_role_binding,
        "ConfigMap": lambda: factory.dns_config_map(cluster_dns),
        "DaemonSet": lambda: factory.dns_daemon_set(cluster_dns),
        "Service": lambda: factory.dns_service(cluster_dns),
    }


class RenderAction:
    """dns-manifests render action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "render",
                help="Render the cluster DNS resources",
                description="""Render the resources for the cluster DNS
                    deployment from the embedded templates, using the service
                    network of the install config for the DNS cluster IP.""",
            ),
        )
        args.add_argument(
            "--install-config",
            type=pathlib.Path,
            required=True,
            help="Path to the install config with the service network",
        )
        args.add_argument(
            "--name",
            type=str,
            default=None,
            help="Name of the ClusterDNS, defaults to the name in the template",
        )
        args.add_argument(
            "--cluster-domain",
            type=str,
            default=None,
            help="Cluster domain served by DNS, defaults to the template domain",
        )
        args.add_argument(
            "--core-dns-image",
            type=str,
            default=os.environ.get(CORE_DNS_IMAGE_ENV),
            help=f"Image for the DNS server (env: {CORE_DNS_IMAGE_ENV})",
        )
        args.add_argument(
            "--cli-image",
            type=str,
            default=os.environ.get(CLI_IMAGE_ENV),
            help=f"Image for the node resolver (env: {CLI_IMAGE_ENV})",
        )
        args.add_argument(
            "--kind",
            dest="kinds",
            choices=KINDS,
            action="append",
            help="Kind of resource to render, may be repeated. Defaults to all.",
        )
        args.add_argument(
            "--output",
            "-o",
            choices=list(FORMATTERS),
            default="yaml",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        install_config: pathlib.Path,
        name: str | None,
        cluster_domain: str | None,
        core_dns_image: str | None,
        cli_image: str | None,
        kinds: list[str] | None,
        output: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        if not core_dns_image or not cli_image:
            raise InputException(
                "Both --core-dns-image and --cli-image (or the "
                f"{CORE_DNS_IMAGE_ENV} and {CLI_IMAGE_ENV} environment variables) "
                "are required"
            )
        config = DeploymentConfig(core_dns_image=core_dns_image, cli_image=cli_image)
        factory = ManifestFactory(config)

        cluster_dns = factory.cluster_dns_default_cr(
            await read_install_config(install_config)
        )
        if name:
            cluster_dns.metadata.name = name
        if cluster_domain:
            cluster_dns.spec.cluster_domain = cluster_domain

        renderers = _renderers(factory, cluster_dns)
        selected = set(kinds or KINDS)
        resources = [renderers[kind]() for kind in KINDS if kind in selected]
        _LOGGER.info("Rendered %d resources for %s", len(resources), cluster_dns.name)
        FORMATTERS[output]().print(resources, file=sys.stdout)
