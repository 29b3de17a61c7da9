"""Extract, deduplicate, filter, count, record and replay Kubernetes watch events."""

__version__ = "0.1.0"