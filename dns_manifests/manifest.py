"""Typed representation of the resources rendered for cluster DNS.

Each resource is a dataclass that mirrors the subset of the Kubernetes schema
the DNS templates rely on. Fields use snake case in python and the usual
camel case names when decoded from or serialized to YAML/JSON. Fields that are
not set in a template are omitted again on output, so a decoded template
serializes back to an equivalent document.

Documents are decoded with `decode_manifest` or the `parse_stream` and
`parse_yaml` class methods on each resource:
```python
from dns_manifests.manifest import DaemonSet

with open("daemonset.yaml", "rb") as stream:
    daemon_set = DaemonSet.parse_stream(stream)
print(daemon_set.metadata.name)
```
"""

from dataclasses import dataclass, field
import io
import logging
from typing import Any, BinaryIO, ClassVar, TypeVar, cast

import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.codecs.yaml import yaml_decode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import DecodeException

__all__ = [
    "decode_manifest",
    "Resource",
    "ObjectMeta",
    "ClusterDNS",
    "ClusterDNSSpec",
    "Namespace",
    "ServiceAccount",
    "ClusterRole",
    "ClusterRoleBinding",
    "ConfigMap",
    "DaemonSet",
    "Deployment",
    "Service",
    "CustomResourceDefinition",
]

_LOGGER = logging.getLogger(__name__)

# Upper bound on the size of a single document. Anything larger is rejected
# instead of being buffered.
MAX_DOCUMENT_SIZE = 1024 * 1024

CLUSTER_DNS_KIND = "ClusterDNS"
NAMESPACE_KIND = "Namespace"
SERVICE_ACCOUNT_KIND = "ServiceAccount"
CLUSTER_ROLE_KIND = "ClusterRole"
CLUSTER_ROLE_BINDING_KIND = "ClusterRoleBinding"
CONFIG_MAP_KIND = "ConfigMap"
DAEMON_SET_KIND = "DaemonSet"
DEPLOYMENT_KIND = "Deployment"
SERVICE_KIND = "Service"
CRD_KIND = "CustomResourceDefinition"

DNS_GROUP = "dns.openshift.io"
APPS_GROUP = "apps"
RBAC_GROUP = "rbac.authorization.k8s.io"
APIEXTENSIONS_GROUP = "apiextensions.k8s.io"


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    @classmethod
    def parse_yaml(cls, content: str) -> "BaseManifest":
        """Parse a serialized manifest."""
        return yaml_decode(content, cls)

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return yaml.dump(self.to_dict(), sort_keys=False)

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class ObjectMeta(BaseManifest):
    """Metadata common to all resources."""

    name: str | None = None
    """The name of the object."""

    namespace: str | None = None
    """The namespace of the object, unset for cluster scoped objects."""

    labels: dict[str, str] | None = None
    """Labels used to select the object."""

    annotations: dict[str, str] | None = None
    """Non-identifying metadata attached to the object."""


@dataclass
class LabelSelector(BaseManifest):
    """A label query over a set of resources."""

    match_labels: dict[str, str] | None = field(
        metadata=field_options(alias="matchLabels"), default=None
    )
    """Labels that must all be present on a selected object."""

    match_expressions: list[dict[str, Any]] | None = field(
        metadata=field_options(alias="matchExpressions"), default=None
    )
    """Set based label requirements."""


@dataclass
class EnvVar(BaseManifest):
    """An environment variable present in a container."""

    name: str
    value: str | None = None
    value_from: dict[str, Any] | None = field(
        metadata=field_options(alias="valueFrom"), default=None
    )


@dataclass
class ContainerPort(BaseManifest):
    """A network port exposed by a container."""

    container_port: int = field(metadata=field_options(alias="containerPort"))
    name: str | None = None
    protocol: str | None = None
    host_port: int | None = field(
        metadata=field_options(alias="hostPort"), default=None
    )


@dataclass
class VolumeMount(BaseManifest):
    """Describes the mounting of a volume within a container."""

    name: str
    mount_path: str = field(metadata=field_options(alias="mountPath"))
    read_only: bool | None = field(
        metadata=field_options(alias="readOnly"), default=None
    )
    sub_path: str | None = field(
        metadata=field_options(alias="subPath"), default=None
    )


@dataclass
class Container(BaseManifest):
    """A single application container that runs within a pod."""

    name: str
    """The name of the container, unique within the pod."""

    image: str | None = None
    """The container image reference."""

    image_pull_policy: str | None = field(
        metadata=field_options(alias="imagePullPolicy"), default=None
    )
    command: list[str] | None = None
    args: list[str] | None = None
    env: list[EnvVar] | None = None
    """Environment variables to set in the container."""

    ports: list[ContainerPort] | None = None
    volume_mounts: list[VolumeMount] | None = field(
        metadata=field_options(alias="volumeMounts"), default=None
    )
    resources: dict[str, Any] | None = None
    readiness_probe: dict[str, Any] | None = field(
        metadata=field_options(alias="readinessProbe"), default=None
    )
    liveness_probe: dict[str, Any] | None = field(
        metadata=field_options(alias="livenessProbe"), default=None
    )
    security_context: dict[str, Any] | None = field(
        metadata=field_options(alias="securityContext"), default=None
    )
    termination_message_policy: str | None = field(
        metadata=field_options(alias="terminationMessagePolicy"), default=None
    )


@dataclass
class KeyToPath(BaseManifest):
    """Maps a config map key to a path within a volume."""

    key: str
    path: str


@dataclass
class ConfigMapVolumeSource(BaseManifest):
    """Populates a volume with the contents of a ConfigMap."""

    name: str = ""
    """The name of the referenced ConfigMap."""

    items: list[KeyToPath] | None = None
    default_mode: int | None = field(
        metadata=field_options(alias="defaultMode"), default=None
    )


@dataclass
class HostPathVolumeSource(BaseManifest):
    """A directory on the host mapped into the pod."""

    path: str
    type: str | None = None


@dataclass
class Volume(BaseManifest):
    """A named volume in a pod that may be accessed by any container."""

    name: str
    config_map: ConfigMapVolumeSource | None = field(
        metadata=field_options(alias="configMap"), default=None
    )
    host_path: HostPathVolumeSource | None = field(
        metadata=field_options(alias="hostPath"), default=None
    )
    secret: dict[str, Any] | None = None
    empty_dir: dict[str, Any] | None = field(
        metadata=field_options(alias="emptyDir"), default=None
    )


@dataclass
class PodSpec(BaseManifest):
    """Specification of the desired behavior of a pod."""

    containers: list[Container] = field(default_factory=list)
    init_containers: list[Container] | None = field(
        metadata=field_options(alias="initContainers"), default=None
    )
    volumes: list[Volume] | None = None
    service_account_name: str | None = field(
        metadata=field_options(alias="serviceAccountName"), default=None
    )
    node_selector: dict[str, str] | None = field(
        metadata=field_options(alias="nodeSelector"), default=None
    )
    tolerations: list[dict[str, Any]] | None = None
    priority_class_name: str | None = field(
        metadata=field_options(alias="priorityClassName"), default=None
    )
    dns_policy: str | None = field(
        metadata=field_options(alias="dnsPolicy"), default=None
    )
    host_network: bool | None = field(
        metadata=field_options(alias="hostNetwork"), default=None
    )
    restart_policy: str | None = field(
        metadata=field_options(alias="restartPolicy"), default=None
    )
    termination_grace_period_seconds: int | None = field(
        metadata=field_options(alias="terminationGracePeriodSeconds"), default=None
    )


@dataclass
class PodTemplateSpec(BaseManifest):
    """Describes the pods created by a workload."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: PodSpec = field(default_factory=PodSpec)


@dataclass
class DaemonSetSpec(BaseManifest):
    """The desired state of a DaemonSet."""

    selector: LabelSelector = field(default_factory=LabelSelector)
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)
    update_strategy: dict[str, Any] | None = field(
        metadata=field_options(alias="updateStrategy"), default=None
    )
    min_ready_seconds: int | None = field(
        metadata=field_options(alias="minReadySeconds"), default=None
    )


@dataclass
class DeploymentSpec(BaseManifest):
    """The desired state of a Deployment."""

    selector: LabelSelector = field(default_factory=LabelSelector)
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)
    replicas: int | None = None
    strategy: dict[str, Any] | None = None


@dataclass
class ServicePort(BaseManifest):
    """A port exposed by a Service."""

    port: int
    name: str | None = None
    protocol: str | None = None
    target_port: int | str | None = field(
        metadata=field_options(alias="targetPort"), default=None
    )


@dataclass
class ServiceSpec(BaseManifest):
    """The desired state of a Service."""

    selector: dict[str, str] | None = None
    """Route traffic to pods with labels matching this selector."""

    cluster_ip: str | None = field(
        metadata=field_options(alias="clusterIP"), default=None
    )
    """The fixed cluster internal address of the Service."""

    ports: list[ServicePort] | None = None
    type: str | None = None
    session_affinity: str | None = field(
        metadata=field_options(alias="sessionAffinity"), default=None
    )


@dataclass
class PolicyRule(BaseManifest):
    """An action permitted by a ClusterRole."""

    verbs: list[str] = field(default_factory=list)
    api_groups: list[str] | None = field(
        metadata=field_options(alias="apiGroups"), default=None
    )
    resources: list[str] | None = None
    resource_names: list[str] | None = field(
        metadata=field_options(alias="resourceNames"), default=None
    )
    non_resource_urls: list[str] | None = field(
        metadata=field_options(alias="nonResourceURLs"), default=None
    )


@dataclass
class Subject(BaseManifest):
    """A reference to the identity a role binding applies to."""

    kind: str
    name: str
    namespace: str | None = None
    api_group: str | None = field(
        metadata=field_options(alias="apiGroup"), default=None
    )


@dataclass
class RoleRef(BaseManifest):
    """A reference to the role granted by a binding."""

    api_group: str = field(metadata=field_options(alias="apiGroup"), default="")
    kind: str = ""
    name: str = ""


@dataclass
class ClusterDNSSpec(BaseManifest):
    """The desired state of a cluster DNS deployment."""

    cluster_ip: str | None = field(
        metadata=field_options(alias="clusterIP"), default=None
    )
    """The address the DNS service is exposed on within the service network."""

    cluster_domain: str | None = field(
        metadata=field_options(alias="clusterDomain"), default=None
    )
    """The DNS domain served for cluster local names."""


_T = TypeVar("_T", bound="Resource")


@dataclass
class Resource(BaseManifest):
    """Base class for top level kubernetes resources.

    The `kind` and `api_group` of each subclass are fixed and used to check the
    documents decoded into it. The kind is written back out on serialization.
    """

    kind: ClassVar[str] = ""
    """The kind of the object."""

    api_group: ClassVar[str] = ""
    """The API group of the object, empty for the core group."""

    api_version: str = field(metadata=field_options(alias="apiVersion"), default="v1")
    """The apiVersion of the object."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    """Standard object metadata."""

    @property
    def name(self) -> str:
        """Return the name of the object."""
        return self.metadata.name or ""

    @property
    def namespaced_name(self) -> str:
        """Return the namespace and name concatenated as an id."""
        if self.metadata.namespace:
            return f"{self.metadata.namespace}/{self.name}"
        return self.name

    @classmethod
    def parse_stream(cls: type[_T], stream: BinaryIO, source: str = "<stream>") -> _T:
        """Decode a single resource document from a binary stream."""
        return decode_manifest(stream, cls, source)

    @classmethod
    def parse_yaml(cls, content: str) -> "BaseManifest":
        """Decode a single resource document from a YAML or JSON string."""
        return decode_manifest(io.BytesIO(content.encode()), cls)

    def __post_serialize__(self, d: dict[Any, Any]) -> dict[Any, Any]:
        api_version = d.pop("apiVersion")
        return {"apiVersion": api_version, "kind": self.kind, **d}


@dataclass
class ClusterDNS(Resource):
    """The desired state of the cluster DNS service."""

    kind: ClassVar[str] = CLUSTER_DNS_KIND
    api_group: ClassVar[str] = DNS_GROUP

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=f"{DNS_GROUP}/v1alpha1"
    )
    spec: ClusterDNSSpec = field(default_factory=ClusterDNSSpec)


@dataclass
class Namespace(Resource):
    """A Namespace provides a scope for names of resources."""

    kind: ClassVar[str] = NAMESPACE_KIND

    spec: dict[str, Any] | None = None


@dataclass
class ServiceAccount(Resource):
    """An identity for processes that run in a pod."""

    kind: ClassVar[str] = SERVICE_ACCOUNT_KIND

    automount_service_account_token: bool | None = field(
        metadata=field_options(alias="automountServiceAccountToken"), default=None
    )
    image_pull_secrets: list[dict[str, str]] | None = field(
        metadata=field_options(alias="imagePullSecrets"), default=None
    )


@dataclass
class ClusterRole(Resource):
    """A cluster level set of permissions."""

    kind: ClassVar[str] = CLUSTER_ROLE_KIND
    api_group: ClassVar[str] = RBAC_GROUP

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=f"{RBAC_GROUP}/v1"
    )
    rules: list[PolicyRule] | None = None


@dataclass
class ClusterRoleBinding(Resource):
    """Grants the permissions of a ClusterRole to a set of subjects."""

    kind: ClassVar[str] = CLUSTER_ROLE_BINDING_KIND
    api_group: ClassVar[str] = RBAC_GROUP

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=f"{RBAC_GROUP}/v1"
    )
    subjects: list[Subject] | None = None
    role_ref: RoleRef = field(
        metadata=field_options(alias="roleRef"), default_factory=RoleRef
    )


@dataclass
class ConfigMap(Resource):
    """A ConfigMap is an API object used to store data in key-value pairs."""

    kind: ClassVar[str] = CONFIG_MAP_KIND

    data: dict[str, str] | None = None
    """The data in the ConfigMap."""

    binary_data: dict[str, str] | None = field(
        metadata=field_options(alias="binaryData"), default=None
    )
    """The binary data in the ConfigMap."""


@dataclass
class DaemonSet(Resource):
    """Runs a copy of a pod on every selected node."""

    kind: ClassVar[str] = DAEMON_SET_KIND
    api_group: ClassVar[str] = APPS_GROUP

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=f"{APPS_GROUP}/v1"
    )
    spec: DaemonSetSpec = field(default_factory=DaemonSetSpec)


@dataclass
class Deployment(Resource):
    """Manages a replicated set of pods."""

    kind: ClassVar[str] = DEPLOYMENT_KIND
    api_group: ClassVar[str] = APPS_GROUP

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=f"{APPS_GROUP}/v1"
    )
    spec: DeploymentSpec = field(default_factory=DeploymentSpec)


@dataclass
class Service(Resource):
    """A named abstraction of a network service backed by pods."""

    kind: ClassVar[str] = SERVICE_KIND

    spec: ServiceSpec = field(default_factory=ServiceSpec)


@dataclass
class CustomResourceDefinition(Resource):
    """Registers a custom resource type with the cluster."""

    kind: ClassVar[str] = CRD_KIND
    api_group: ClassVar[str] = APIEXTENSIONS_GROUP

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=f"{APIEXTENSIONS_GROUP}/v1"
    )
    spec: dict[str, Any] = field(default_factory=dict)


def _check_kind(doc: dict[str, Any], cls: type[Resource], source: str) -> None:
    """Assert that the document has the kind and API group of the resource."""
    if (kind := doc.get("kind")) != cls.kind:
        raise DecodeException(
            f"Invalid object in {source} expected kind '{cls.kind}', got '{kind}'"
        )
    if not isinstance(api_version := doc.get("apiVersion"), str):
        raise DecodeException(f"Invalid {cls.kind} in {source} missing apiVersion")
    group = api_version.rpartition("/")[0]
    if group != cls.api_group:
        raise DecodeException(
            f"Invalid {cls.kind} in {source} expected group '{cls.api_group}': "
            f"{api_version}"
        )


def decode_manifest(
    stream: BinaryIO, cls: type[_T], source: str = "<stream>"
) -> _T:
    """Decode the single YAML or JSON document in the stream into a resource.

    At most `MAX_DOCUMENT_SIZE` bytes are read. Any read, syntax or schema
    problem is raised as a `DecodeException` that names the source.
    """
    try:
        content = stream.read(MAX_DOCUMENT_SIZE + 1)
    except OSError as err:
        raise DecodeException(
            f"Unable to read {cls.kind} from {source}: {err}"
        ) from err
    if len(content) > MAX_DOCUMENT_SIZE:
        raise DecodeException(
            f"Document in {source} exceeds maximum size of {MAX_DOCUMENT_SIZE} bytes"
        )
    try:
        docs = [doc for doc in yaml.safe_load_all(content) if doc is not None]
    except yaml.YAMLError as err:
        raise DecodeException(f"Unable to parse {source}: {err}") from err
    except RecursionError as err:
        raise DecodeException(f"Document in {source} is nested too deeply") from err
    if len(docs) != 1:
        raise DecodeException(
            f"Expected a single document in {source}, found {len(docs)}"
        )
    if not isinstance(doc := docs[0], dict):
        raise DecodeException(
            f"Invalid {cls.kind} in {source}: expected a mapping, "
            f"got {type(doc).__name__}"
        )
    _check_kind(doc, cls, source)
    try:
        obj = cls.from_dict(doc)
    except (MissingField, InvalidFieldValue, ValueError, TypeError) as err:
        raise DecodeException(f"Invalid {cls.kind} in {source}: {err}") from err
    _LOGGER.debug("Decoded %s %s from %s", cls.kind, obj.namespaced_name, source)
    return cast(_T, obj)
