"""Effective-permission resolution for a single subject."""

from dataclasses import dataclass, field
from itertools import product
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from rbacmanager.core.exceptions import InconsistencyWarning
from rbacmanager.core.logging import get_logger
from rbacmanager.models.policy import (ClusterRole, ClusterRoleBinding,
                                       PolicyRule, Role, RoleBinding, RoleKind,
                                       Subject)
from rbacmanager.services.index import (Binding, BindingRef, Scope,
                                        SubjectIndex)

logger = get_logger(__name__)

AnyRole = Union[Role, ClusterRole]


@dataclass(frozen=True)
class GrantedRule:
    """One (verb, apiGroup, resource) grant with its scope and provenance."""

    verb: str
    api_group: str
    resource: str
    scope: Scope
    granted_by: str
    via: str
    binding_kind: str
    role_kind: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verb": self.verb,
            "apiGroup": self.api_group,
            "resource": self.resource,
            "scope": self.scope.to_dict(),
            "grantedBy": self.granted_by,
            "bindingKind": self.binding_kind,
            "via": self.via,
            "roleKind": self.role_kind,
        }


@dataclass
class ResolutionResult:
    """Grants for one subject plus any inconsistencies met on the way."""

    subject: Subject
    grants: List[GrantedRule] = field(default_factory=list)
    inconsistencies: List[InconsistencyWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject.to_dict(),
            "grants": [g.to_dict() for g in self.grants],
            "inconsistencies": [i.to_dict() for i in self.inconsistencies],
        }


@dataclass
class SubjectDetails:
    """Bindings naming a subject and the roles they resolve to."""

    subject: Subject
    role_bindings: List[RoleBinding] = field(default_factory=list)
    cluster_role_bindings: List[ClusterRoleBinding] = field(default_factory=list)
    roles: List[Role] = field(default_factory=list)
    cluster_roles: List[ClusterRole] = field(default_factory=list)
    inconsistencies: List[InconsistencyWarning] = field(default_factory=list)

    @property
    def role_names(self) -> List[str]:
        """Names of every role referenced, first-seen order, no repeats."""
        names = []
        for binding in (*self.role_bindings, *self.cluster_role_bindings):
            if binding.role_ref.name not in names:
                names.append(binding.role_ref.name)
        return names

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject.to_dict(),
            "roleBindings": [b.to_dict() for b in self.role_bindings],
            "clusterRoleBindings": [b.to_dict() for b in self.cluster_role_bindings],
            "roles": [r.to_dict() for r in self.roles],
            "clusterRoles": [r.to_dict() for r in self.cluster_roles],
            "roleNames": self.role_names,
            "inconsistencies": [i.to_dict() for i in self.inconsistencies],
        }


@dataclass
class RoleComparison:
    """Rule-level difference between two roles."""

    first: AnyRole
    second: AnyRole
    only_in_first: List[Tuple[str, str, str]] = field(default_factory=list)
    only_in_second: List[Tuple[str, str, str]] = field(default_factory=list)
    common: List[Tuple[str, str, str]] = field(default_factory=list)

    @property
    def identical(self) -> bool:
        return not self.only_in_first and not self.only_in_second

    def to_dict(self) -> Dict[str, Any]:
        def rows(keys):
            return [
                {"verb": verb, "apiGroup": group, "resource": resource}
                for verb, group, resource in keys
            ]

        return {
            "first": self.first.to_dict(),
            "second": self.second.to_dict(),
            "onlyInFirst": rows(self.only_in_first),
            "onlyInSecond": rows(self.only_in_second),
            "common": rows(self.common),
            "identical": self.identical,
        }


def expand_rule(rule: PolicyRule) -> Iterable[Tuple[str, str, str]]:
    """Yield every (verb, apiGroup, resource) a rule grants.

    A rule without apiGroups is read as the core group.
    """
    return product(rule.verbs, rule.api_groups or ("",), rule.resources)


class EffectivePermissionResolver:
    """Turns a subject's bindings into scoped, attributed grants."""

    def __init__(self, index: SubjectIndex):
        self.index = index
        catalog = index.catalog
        self._roles: Dict[Tuple[str, str], Role] = {
            (role.namespace, role.name): role for role in catalog.roles
        }
        self._cluster_roles: Dict[str, ClusterRole] = {
            role.name: role for role in catalog.cluster_roles
        }

    def resolve_role_ref(
        self, binding: Binding
    ) -> Tuple[Optional[AnyRole], Optional[InconsistencyWarning]]:
        """Resolve a binding's roleRef against the snapshot.

        Returns the role, or ``None`` with an inconsistency describing why it
        could not be resolved. A Role reference only resolves inside the
        binding's own namespace.
        """
        ref = binding.role_ref
        namespace = binding.namespace if isinstance(binding, RoleBinding) else None

        def problem(reason: str) -> Tuple[None, InconsistencyWarning]:
            return None, InconsistencyWarning(
                binding=binding.name,
                binding_kind=binding.kind.value,
                role_kind=ref.kind,
                role_name=ref.name,
                reason=reason,
                namespace=namespace,
            )

        if not ref.name:
            return problem("roleRef has no name")

        if ref.kind == RoleKind.CLUSTER_ROLE.value:
            cluster_role = self._cluster_roles.get(ref.name)
            if cluster_role is None:
                return problem(f"ClusterRole {ref.name} not found")
            return cluster_role, None

        if ref.kind == RoleKind.ROLE.value and namespace is not None:
            role = self._roles.get((namespace, ref.name))
            if role is not None:
                return role, None
            elsewhere = sorted(ns for ns, name in self._roles if name == ref.name)
            if elsewhere:
                return problem(
                    f"Role {ref.name} not found in namespace {namespace} "
                    f"(exists in {', '.join(elsewhere)}); cross-namespace "
                    f"references are not allowed"
                )
            return problem(f"Role {ref.name} not found in namespace {namespace}")

        return problem(f"unsupported roleRef kind {ref.kind!r} for {binding.kind.value}")

    def _report(self, subject: Subject, warning: InconsistencyWarning) -> None:
        logger.warning(
            f"Skipping binding {warning.binding}: {warning.reason}",
            extra={
                "subject": subject.id,
                "binding": warning.binding,
                "role": warning.role_name,
            },
        )

    def grants_from(self, ref: BindingRef, role: AnyRole) -> List[GrantedRule]:
        """Expand a resolved role into grants scoped by the binding."""
        return [
            GrantedRule(
                verb=verb,
                api_group=api_group,
                resource=resource,
                scope=ref.scope,
                granted_by=ref.binding.name,
                via=role.name,
                binding_kind=ref.binding.kind.value,
                role_kind=role.kind.value,
            )
            for rule in role.rules
            for verb, api_group, resource in expand_rule(rule)
        ]

    def resolve(self, subject: Subject) -> ResolutionResult:
        """Compute every permission granted to ``subject``.

        Unknown subjects resolve to an empty result. Dangling references are
        recorded on the result and skipped.
        """
        result = ResolutionResult(subject=subject)

        for ref in self.index.bindings_for(subject):
            role, warning = self.resolve_role_ref(ref.binding)
            if warning is not None:
                result.inconsistencies.append(warning)
                self._report(subject, warning)
                continue
            result.grants.extend(self.grants_from(ref, role))

        return result

    def details(self, subject: Subject) -> SubjectDetails:
        """Bindings naming ``subject`` and the roles behind them."""
        details = SubjectDetails(subject=subject)
        seen_bindings = set()
        seen_roles = set()

        for ref in self.index.bindings_for(subject):
            binding = ref.binding
            binding_key = (binding.kind, ref.scope.namespace, binding.name)
            if binding_key in seen_bindings:
                continue
            seen_bindings.add(binding_key)

            if isinstance(binding, RoleBinding):
                details.role_bindings.append(binding)
            else:
                details.cluster_role_bindings.append(binding)

            role, warning = self.resolve_role_ref(binding)
            if warning is not None:
                details.inconsistencies.append(warning)
                continue

            role_key = (role.kind, getattr(role, "namespace", None), role.name)
            if role_key in seen_roles:
                continue
            seen_roles.add(role_key)
            if isinstance(role, Role):
                details.roles.append(role)
            else:
                details.cluster_roles.append(role)

        return details

    def compare(self, first: AnyRole, second: AnyRole) -> RoleComparison:
        """Diff the expanded rules of two roles."""

        def keys(role: AnyRole) -> set:
            return {key for rule in role.rules for key in expand_rule(rule)}

        first_keys, second_keys = keys(first), keys(second)
        return RoleComparison(
            first=first,
            second=second,
            only_in_first=sorted(first_keys - second_keys),
            only_in_second=sorted(second_keys - first_keys),
            common=sorted(first_keys & second_keys),
        )
