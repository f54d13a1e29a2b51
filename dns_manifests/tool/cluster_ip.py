"""dns-manifests cluster-ip action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import sys
from typing import cast

from dns_manifests.network import DNS_CLUSTER_IP_OFFSET, cidr_host, parse_cidr

_LOGGER = logging.getLogger(__name__)


class ClusterIPAction:
    """dns-manifests cluster-ip action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "cluster-ip",
                help="Print the DNS cluster IP for a service network",
                description="""Print the address at a fixed offset within the
                    service network that the DNS service is exposed on.""",
            ),
        )
        args.add_argument("cidr", type=str, help="Service network in CIDR notation")
        args.add_argument(
            "--offset",
            type=int,
            default=DNS_CLUSTER_IP_OFFSET,
            help="Host number within the network, negative counts from the end",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        cidr: str,
        offset: int,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        network = parse_cidr(cidr)
        address = cidr_host(network, offset)
        _LOGGER.debug("Host %d of %s is %s", offset, network, address)
        print(address, file=sys.stdout)
