"""Role activity: is a role referenced by at least one binding."""

from typing import List, Optional

from rbacmanager.models.policy import ClusterRoleBinding, RoleBinding
from rbacmanager.services.index import BindingRef, SubjectIndex


class ActivityResolver:
    """Answers activity questions from the index's role-name lookup.

    Activity is name based. A RoleBinding activates a Role when its roleRef
    names the role, whatever the roleRef kind. A ClusterRole is active only
    when a ClusterRoleBinding references it; RoleBindings that reuse a
    ClusterRole inside a namespace are reported by ``cluster_role_usage``
    but do not mark it active.
    """

    def __init__(self, index: SubjectIndex):
        self.index = index

    def is_role_active(self, role_name: str, namespace: str) -> bool:
        return any(
            isinstance(ref.binding, RoleBinding) and ref.binding.namespace == namespace
            for ref in self.index.bindings_for_role_name(role_name)
        )

    def is_cluster_role_active(self, role_name: str) -> bool:
        return any(
            isinstance(ref.binding, ClusterRoleBinding)
            for ref in self.index.bindings_for_role_name(role_name)
        )

    def role_usage(self, role_name: str, namespace: str) -> List[BindingRef]:
        """RoleBindings in ``namespace`` referencing ``role_name``."""
        return [
            ref
            for ref in self.index.bindings_for_role_name(role_name)
            if isinstance(ref.binding, RoleBinding)
            and ref.binding.namespace == namespace
        ]

    def cluster_role_usage(
        self, role_name: str, namespace: Optional[str] = None
    ) -> List[BindingRef]:
        """Every binding granting the ClusterRole ``role_name``.

        Includes namespaced RoleBindings with a ClusterRole roleRef, optionally
        limited to one namespace.
        """
        usage = []
        for ref in self.index.bindings_for_role_name(role_name):
            binding = ref.binding
            if isinstance(binding, ClusterRoleBinding):
                usage.append(ref)
            elif binding.role_ref.kind == "ClusterRole" and (
                namespace is None or binding.namespace == namespace
            ):
                usage.append(ref)
        return usage
