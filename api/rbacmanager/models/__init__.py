"""Data models package."""

from .policy import (BindingKind, ClusterRole, ClusterRoleBinding,
                     PolicyCatalog, PolicyRule, Role, RoleBinding, RoleKind,
                     RoleRef, Subject, SubjectKind)

__all__ = [
    "Subject",
    "SubjectKind",
    "PolicyRule",
    "RoleRef",
    "Role",
    "ClusterRole",
    "RoleBinding",
    "ClusterRoleBinding",
    "RoleKind",
    "BindingKind",
    "PolicyCatalog",
]
