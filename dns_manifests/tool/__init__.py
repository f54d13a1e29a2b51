"""Command line tool for dns-manifests."""
