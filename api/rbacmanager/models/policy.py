"""Policy catalog value types: subjects, rules, roles and bindings."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SubjectKind(str, Enum):
    """Kinds of identity a binding can name."""

    USER = "User"
    GROUP = "Group"
    SERVICE_ACCOUNT = "ServiceAccount"


class RoleKind(str, Enum):
    """Kinds of role a binding can reference."""

    ROLE = "Role"
    CLUSTER_ROLE = "ClusterRole"


class BindingKind(str, Enum):
    """Kinds of binding."""

    ROLE_BINDING = "RoleBinding"
    CLUSTER_ROLE_BINDING = "ClusterRoleBinding"


@dataclass(frozen=True)
class Subject:
    """An identity that can be granted permissions."""

    kind: SubjectKind
    name: str
    namespace: Optional[str] = None

    @property
    def identity(self) -> Tuple[str, ...]:
        if self.kind == SubjectKind.SERVICE_ACCOUNT:
            return (self.kind.value, self.name, self.namespace or "")
        return (self.kind.value, self.name)

    @property
    def id(self) -> str:
        if self.kind == SubjectKind.SERVICE_ACCOUNT and self.namespace:
            return f"{self.kind.value}:{self.namespace}/{self.name}"
        return f"{self.kind.value}:{self.name}"

    @classmethod
    def user(cls, name: str) -> "Subject":
        return cls(SubjectKind.USER, name)

    @classmethod
    def group(cls, name: str) -> "Subject":
        return cls(SubjectKind.GROUP, name)

    @classmethod
    def service_account(cls, name: str, namespace: str) -> "Subject":
        return cls(SubjectKind.SERVICE_ACCOUNT, name, namespace)

    def to_dict(self) -> Dict[str, Any]:
        data = {"kind": self.kind.value, "name": self.name}
        if self.kind == SubjectKind.SERVICE_ACCOUNT:
            data["namespace"] = self.namespace
        return data


@dataclass(frozen=True)
class PolicyRule:
    """Grants verbs x apiGroups x resources."""

    verbs: Tuple[str, ...] = ()
    api_groups: Tuple[str, ...] = ()
    resources: Tuple[str, ...] = ()
    resource_names: Tuple[str, ...] = ()

    def allows(self, verb: str, resource: str) -> bool:
        """Check whether the rule covers a verb on a resource (``*`` matches all)."""
        verb_ok = "*" in self.verbs or verb in self.verbs
        resource_ok = "*" in self.resources or resource in self.resources
        return verb_ok and resource_ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verbs": list(self.verbs),
            "apiGroups": list(self.api_groups),
            "resources": list(self.resources),
            "resourceNames": list(self.resource_names),
        }


@dataclass(frozen=True)
class RoleRef:
    """Reference from a binding to the role it grants."""

    kind: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "name": self.name}


@dataclass(frozen=True)
class Role:
    """Namespaced bundle of rules."""

    name: str
    namespace: str
    rules: Tuple[PolicyRule, ...] = ()

    kind = RoleKind.ROLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "namespace": self.namespace,
            "rules": [rule.to_dict() for rule in self.rules],
        }


@dataclass(frozen=True)
class ClusterRole:
    """Cluster-wide bundle of rules."""

    name: str
    rules: Tuple[PolicyRule, ...] = ()

    kind = RoleKind.CLUSTER_ROLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "rules": [rule.to_dict() for rule in self.rules],
        }


@dataclass(frozen=True)
class RoleBinding:
    """Grants a Role or ClusterRole within one namespace."""

    name: str
    namespace: str
    role_ref: RoleRef
    subjects: Tuple[Subject, ...] = ()

    kind = BindingKind.ROLE_BINDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "namespace": self.namespace,
            "roleRef": self.role_ref.to_dict(),
            "subjects": [subject.to_dict() for subject in self.subjects],
        }


@dataclass(frozen=True)
class ClusterRoleBinding:
    """Grants a ClusterRole across the whole cluster."""

    name: str
    role_ref: RoleRef
    subjects: Tuple[Subject, ...] = ()

    kind = BindingKind.CLUSTER_ROLE_BINDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "roleRef": self.role_ref.to_dict(),
            "subjects": [subject.to_dict() for subject in self.subjects],
        }


@dataclass(frozen=True)
class PolicyCatalog:
    """Point-in-time snapshot of every role and binding visible to the engine.

    ``namespace`` records the namespace the namespaced collections were
    fetched for; ``None`` means all namespaces.
    """

    roles: Tuple[Role, ...] = ()
    cluster_roles: Tuple[ClusterRole, ...] = ()
    role_bindings: Tuple[RoleBinding, ...] = ()
    cluster_role_bindings: Tuple[ClusterRoleBinding, ...] = ()
    namespace: Optional[str] = None
    fetched_at: Optional[str] = field(default=None, compare=False)

    def find_role(self, name: str, namespace: str) -> Optional[Role]:
        for role in self.roles:
            if role.name == name and role.namespace == namespace:
                return role
        return None

    def find_cluster_role(self, name: str) -> Optional[ClusterRole]:
        for cluster_role in self.cluster_roles:
            if cluster_role.name == name:
                return cluster_role
        return None

    def roles_in(self, namespace: str) -> Tuple[Role, ...]:
        return tuple(role for role in self.roles if role.namespace == namespace)

    @property
    def is_empty(self) -> bool:
        return not (
            self.roles
            or self.cluster_roles
            or self.role_bindings
            or self.cluster_role_bindings
        )
