"""Exceptions related to dns-manifests."""

__all__ = [
    "DNSManifestException",
    "InputException",
    "DecodeException",
    "TemplateContractException",
    "DerivationException",
    "AssetException",
]


class DNSManifestException(Exception):
    """Generic base exception used for this library."""


class InputException(DNSManifestException):
    """Raised when caller supplied configuration is missing or malformed."""


class DecodeException(DNSManifestException):
    """Raised when a document can't be decoded into the expected resource type."""


class TemplateContractException(DNSManifestException):
    """Raised when a template does not have the structure the factory relies on."""


class DerivationException(DNSManifestException):
    """Raised when a computed value can't be produced from the inputs."""


class AssetException(DNSManifestException):
    """Raised when an embedded asset is unknown or can't be loaded."""
