"""RBAC Manager: Kubernetes RBAC effective-permission resolution service."""

__version__ = "0.1.0"
