"""Subject index: which bindings name which subjects, built once per snapshot."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from rbacmanager.core.logging import get_logger
from rbacmanager.models.policy import (ClusterRoleBinding, PolicyCatalog,
                                       RoleBinding, Subject, SubjectKind)

logger = get_logger(__name__)

Binding = Union[RoleBinding, ClusterRoleBinding]


@dataclass(frozen=True)
class Scope:
    """Where a grant applies: one namespace, or the whole cluster."""

    namespace: Optional[str] = None

    @classmethod
    def cluster_wide(cls) -> "Scope":
        return cls(None)

    @classmethod
    def of_namespace(cls, namespace: str) -> "Scope":
        return cls(namespace)

    @property
    def is_cluster_wide(self) -> bool:
        return self.namespace is None

    def to_dict(self) -> Dict[str, str]:
        if self.is_cluster_wide:
            return {"type": "ClusterWide"}
        return {"type": "Namespace", "namespace": self.namespace}

    def __str__(self) -> str:
        return "ClusterWide" if self.is_cluster_wide else f"Namespace({self.namespace})"


@dataclass(frozen=True)
class BindingRef:
    """A binding as seen from one of its subjects."""

    binding: Binding
    scope: Scope

    @property
    def name(self) -> str:
        return self.binding.name

    @property
    def role_name(self) -> str:
        return self.binding.role_ref.name


def scope_of(binding: Binding) -> Scope:
    if isinstance(binding, RoleBinding):
        return Scope.of_namespace(binding.namespace)
    return Scope.cluster_wide()


class SubjectIndex:
    """Maps subject identity to the bindings that reference it.

    The index is a read-only view over one catalog snapshot. Every listed
    subject entry contributes one reference, so a subject named twice in the
    same binding appears twice. References keep catalog iteration order.
    """

    def __init__(self, catalog: PolicyCatalog):
        self.catalog = catalog
        self._by_subject: Dict[Tuple[str, ...], List[BindingRef]] = defaultdict(list)
        self._subjects: Dict[Tuple[str, ...], Subject] = {}
        self._by_role_name: Dict[str, List[BindingRef]] = defaultdict(list)

        for binding in (*catalog.role_bindings, *catalog.cluster_role_bindings):
            self._add(binding)

        logger.debug(
            f"Indexed {len(self._subjects)} subjects across "
            f"{len(catalog.role_bindings)} role bindings and "
            f"{len(catalog.cluster_role_bindings)} cluster role bindings"
        )

    def _add(self, binding: Binding) -> None:
        ref = BindingRef(binding=binding, scope=scope_of(binding))
        self._by_role_name[binding.role_ref.name].append(ref)

        for subject in binding.subjects:
            key = subject.identity
            self._by_subject[key].append(ref)
            self._subjects.setdefault(key, subject)

    def bindings_for(self, subject: Subject) -> List[BindingRef]:
        """Bindings naming ``subject``; empty for an unknown subject."""
        return list(self._by_subject.get(subject.identity, ()))

    def bindings_for_role_name(self, role_name: str) -> List[BindingRef]:
        """Bindings whose roleRef names ``role_name``, whatever its kind."""
        return list(self._by_role_name.get(role_name, ()))

    def subjects(self, kind: Optional[SubjectKind] = None) -> List[Subject]:
        """Distinct subjects named by any binding, in first-seen order."""
        return [
            subject
            for subject in self._subjects.values()
            if kind is None or subject.kind == kind
        ]

    def __contains__(self, subject: Subject) -> bool:
        return subject.identity in self._by_subject

    def __len__(self) -> int:
        return len(self._subjects)


def build_index(catalog: PolicyCatalog) -> SubjectIndex:
    """Build a subject index for a snapshot."""
    return SubjectIndex(catalog)
