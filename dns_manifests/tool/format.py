"""Library for formatting rendered resources."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
import json
import sys
from typing import Any, Generator, TextIO

import yaml

from dns_manifests.manifest import Resource


def resource_dicts(resources: Iterable[Resource]) -> list[dict[str, Any]]:
    """Return the serialized form of each resource."""
    return [resource.to_dict() for resource in resources]


class StructFormatter(ABC):
    """A formatter that prints resource objects."""

    @abstractmethod
    def format(self, resources: Iterable[Resource]) -> Generator[str, None, None]:
        """Format the resources."""

    def print(self, resources: Iterable[Resource], file: TextIO = sys.stdout) -> None:
        """Print the resources."""
        for line in self.format(resources):
            print(line, file=file)


class YamlFormatter(StructFormatter):
    """A formatter that prints a stream of yaml documents."""

    def format(self, resources: Iterable[Resource]) -> Generator[str, None, None]:
        """Format the resources."""
        content = yaml.dump_all(
            resource_dicts(resources), sort_keys=False, explicit_start=True
        )
        for line in content.rstrip("\n").split("\n"):
            yield line


class JsonFormatter(StructFormatter):
    """A formatter that prints a json list of objects."""

    def format(self, resources: Iterable[Resource]) -> Generator[str, None, None]:
        """Format the resources."""
        for line in json.dumps(resource_dicts(resources), indent=4).split("\n"):
            yield line


FORMATTERS: dict[str, type[StructFormatter]] = {
    "yaml": YamlFormatter,
    "json": JsonFormatter,
}
