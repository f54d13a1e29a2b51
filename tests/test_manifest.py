"""Tests for manifest library."""

import io
import json
from typing import Any

import pytest
import yaml

from dns_manifests.assets import ASSET_FILES, ASSETS_DIR
from dns_manifests.exceptions import DecodeException
from dns_manifests.manifest import (
    MAX_DOCUMENT_SIZE,
    ClusterDNS,
    ClusterRole,
    ClusterRoleBinding,
    ConfigMap,
    CustomResourceDefinition,
    DaemonSet,
    Deployment,
    Namespace,
    ObjectMeta,
    Resource,
    Service,
    ServiceAccount,
    decode_manifest,
)

DAEMON_SET = """
kind: DaemonSet
apiVersion: apps/v1
metadata:
  name: dns
  namespace: openshift-cluster-dns
spec:
  template:
    spec:
      containers:
      - name: dns
        image: coredns
"""

INVALID_SPEC = """
kind: DaemonSet
apiVersion: apps/v1
metadata:
  name: dns
spec: invalid
"""

ASSET_KINDS: list[tuple[str, type[Resource]]] = [
    ("default-custom-resource", ClusterDNS),
    ("namespace", Namespace),
    ("service-account", ServiceAccount),
    ("cluster-role", ClusterRole),
    ("cluster-role-binding", ClusterRoleBinding),
    ("config-map", ConfigMap),
    ("daemon-set", DaemonSet),
    ("service", Service),
]


class BrokenStream(io.BytesIO):
    """A stream that fails on every read."""

    def read(self, size: int | None = -1) -> bytes:
        raise OSError("device not ready")


def _stream(content: str) -> io.BytesIO:
    return io.BytesIO(content.encode())


@pytest.mark.parametrize(("asset", "cls"), ASSET_KINDS)
def test_decode_preserves_template(asset: str, cls: type[Resource]) -> None:
    """Test decoding a template and serializing it again keeps every field."""
    path = ASSETS_DIR / ASSET_FILES[asset]
    with path.open("rb") as stream:
        obj = decode_manifest(stream, cls, str(path))
    assert obj.to_dict() == yaml.safe_load(path.read_text())


def test_decode_daemon_set() -> None:
    """Test the fields of a decoded DaemonSet."""
    ds = DaemonSet.parse_stream(_stream(DAEMON_SET))
    assert ds.name == "dns"
    assert ds.namespaced_name == "openshift-cluster-dns/dns"
    assert ds.api_version == "apps/v1"
    containers = ds.spec.template.spec.containers
    assert [c.name for c in containers] == ["dns"]
    assert containers[0].image == "coredns"
    assert containers[0].env is None
    assert ds.spec.selector.match_labels is None
    assert ds.spec.template.metadata.labels is None
    assert ds.spec.template.spec.volumes is None


def test_decode_json() -> None:
    """Test a JSON document is accepted."""
    doc = {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": "dns"},
        "data": {"Corefile": ".:5353 {}"},
    }
    cm = ConfigMap.parse_stream(_stream(json.dumps(doc)))
    assert cm.name == "dns"
    assert cm.data == {"Corefile": ".:5353 {}"}


def test_parse_yaml() -> None:
    """Test decoding from a string."""
    ds = DaemonSet.parse_yaml(DAEMON_SET)
    assert isinstance(ds, DaemonSet)
    assert ds.name == "dns"


def test_decode_deployment() -> None:
    """Test decoding a Deployment."""
    deployment = Deployment.parse_yaml(
        DAEMON_SET.replace("kind: DaemonSet", "kind: Deployment")
        + "  replicas: 2\n"
    )
    assert isinstance(deployment, Deployment)
    assert deployment.spec.replicas == 2
    assert deployment.spec.template.spec.containers[0].name == "dns"


def test_decode_custom_resource_definition() -> None:
    """Test decoding a CustomResourceDefinition."""
    crd = CustomResourceDefinition.parse_yaml(
        """
apiVersion: apiextensions.k8s.io/v1beta1
kind: CustomResourceDefinition
metadata:
  name: clusterdnses.dns.openshift.io
spec:
  group: dns.openshift.io
  names:
    kind: ClusterDNS
    plural: clusterdnses
  scope: Cluster
  version: v1alpha1
"""
    )
    assert isinstance(crd, CustomResourceDefinition)
    assert crd.name == "clusterdnses.dns.openshift.io"
    assert crd.api_version == "apiextensions.k8s.io/v1beta1"
    assert crd.spec["names"]["kind"] == "ClusterDNS"


@pytest.mark.parametrize(
    ("content", "match"),
    [
        (INVALID_SPEC, "Invalid DaemonSet"),
        ("kind: DaemonSet\napiVersion: apps/v1\nspec: [\n", "Unable to parse"),
        (DAEMON_SET.replace("kind: DaemonSet", "kind: Service"), "expected kind"),
        (DAEMON_SET.replace("apps/v1", "v1"), "expected group 'apps'"),
        (DAEMON_SET.replace("apiVersion: apps/v1\n", ""), "missing apiVersion"),
        (DAEMON_SET + "---\n" + DAEMON_SET, "found 2"),
        ("", "found 0"),
        ("- kind: DaemonSet\n", "expected a mapping"),
        (DAEMON_SET.replace("- name: dns\n", "- \n"), "Invalid DaemonSet"),
        (DAEMON_SET + "    metadata:\n      labels: [a, b]\n", "Invalid DaemonSet"),
    ],
)
def test_decode_invalid(content: str, match: str) -> None:
    """Test documents that don't match the schema are rejected."""
    with pytest.raises(DecodeException, match=match):
        DaemonSet.parse_stream(_stream(content), source="test")


def test_decode_error_names_source() -> None:
    """Test decode errors identify where the document came from."""
    with pytest.raises(DecodeException, match="asset 'daemon-set'"):
        decode_manifest(_stream("spec: ["), DaemonSet, "asset 'daemon-set'")


def test_decode_too_large() -> None:
    """Test documents beyond the size limit are rejected."""
    content = b"# " + b"x" * MAX_DOCUMENT_SIZE
    with pytest.raises(DecodeException, match="exceeds maximum size"):
        Namespace.parse_stream(io.BytesIO(content))


def test_decode_read_failure() -> None:
    """Test a failure reading the stream is reported as a decode error."""
    with pytest.raises(DecodeException, match="device not ready"):
        Namespace.parse_stream(BrokenStream())


def test_serialize_resource() -> None:
    """Test serialized resources start with apiVersion and kind and omit unset fields."""
    svc = Service(metadata=ObjectMeta(name="dns-default"))
    svc.spec.cluster_ip = "172.30.0.10"
    data = svc.to_dict()
    assert list(data)[:2] == ["apiVersion", "kind"]
    assert data == {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "dns-default"},
        "spec": {"clusterIP": "172.30.0.10"},
    }


def test_yaml_output() -> None:
    """Test the YAML representation can be decoded again."""
    ds = DaemonSet.parse_yaml(DAEMON_SET)
    content = ds.yaml()
    assert content.startswith("apiVersion: apps/v1\nkind: DaemonSet\n")
    assert DaemonSet.parse_yaml(content) == ds


def test_cluster_dns_defaults() -> None:
    """Test a new ClusterDNS has an empty spec."""
    cr = ClusterDNS(metadata=ObjectMeta(name="default"))
    assert cr.name == "default"
    assert cr.spec.cluster_ip is None
    assert cr.spec.cluster_domain is None
    data: dict[str, Any] = cr.to_dict()
    assert data["apiVersion"] == "dns.openshift.io/v1alpha1"
    assert data["spec"] == {}
