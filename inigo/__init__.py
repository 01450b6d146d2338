"""Helpers for integration tests: ports, certificates, checksums, HTTP pollers and fixture servers."""

__version__ = "0.1.0"