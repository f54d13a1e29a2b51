"""dns-manifests command line entry point.

Example usage:
  python -m dns_manifests render --install-config ./install-config.yaml \
      --core-dns-image quay.io/openshift/coredns:latest \
      --cli-image quay.io/openshift/cli:latest
"""

from dns_manifests.tool.dns_manifests import main

if __name__ == "__main__":
    main()
