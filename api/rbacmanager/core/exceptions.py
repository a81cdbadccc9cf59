"""Exceptions raised by the RBAC resolution engine and its collaborators."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class RBACError(Exception):
    """Base exception for RBAC engine errors"""


class ValidationError(RBACError):
    """A simulation input names something the cluster does not know."""

    def __init__(self, field: str, value: str, message: Optional[str] = None):
        self.field = field
        self.value = value
        self.message = message or f"Invalid {field}: {value}"
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "field": self.field, "value": self.value}


class CollaboratorError(RBACError):
    """An external collaborator (catalog, discovery, directory) failed."""

    def __init__(self, collaborator: str, message: str):
        self.collaborator = collaborator
        self.message = message
        super().__init__(f"{collaborator}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "collaborator": self.collaborator}


@dataclass(frozen=True)
class InconsistencyWarning:
    """A binding whose roleRef cannot be resolved against the catalog.

    Recorded and skipped during resolution, never raised.
    """

    binding: str
    binding_kind: str
    role_kind: str
    role_name: str
    reason: str
    namespace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "binding": self.binding,
            "bindingKind": self.binding_kind,
            "namespace": self.namespace,
            "roleRef": {"kind": self.role_kind, "name": self.role_name},
            "reason": self.reason,
        }
