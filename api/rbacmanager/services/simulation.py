"""What-if evaluation of a subject against a named role."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set, Tuple

from rbacmanager.core.exceptions import CollaboratorError, ValidationError
from rbacmanager.core.logging import get_logger
from rbacmanager.models.policy import RoleBinding, Subject
from rbacmanager.services.index import SubjectIndex
from rbacmanager.services.permissions import EffectivePermissionResolver

logger = get_logger(__name__)

KUBERNETES_VERBS = (
    "get",
    "list",
    "watch",
    "create",
    "update",
    "patch",
    "delete",
    "deletecollection",
)


class SubjectDirectory(Protocol):
    """System of record for known subjects."""

    def is_known(self, subject: Subject) -> bool: ...


class ApiResourceDiscovery(Protocol):
    """Resource type names the cluster serves."""

    def resource_names(self) -> Set[str]: ...


@dataclass
class SimulationRequest:
    """Inputs to a simulation."""

    subject: Subject
    role_name: str
    actions: Sequence[str]
    resources: Sequence[str]
    namespace: str

    @property
    def pairs(self) -> List[Tuple[str, str]]:
        return [(verb, resource) for verb in self.actions for resource in self.resources]


@dataclass(frozen=True)
class Verdict:
    """Outcome for one (verb, resource) pair."""

    allowed: bool
    reason: str
    granted_by: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "grantedBy": list(self.granted_by),
        }


@dataclass
class SimulationResult:
    """Aggregate outcome: authorized only if every pair is."""

    request: SimulationRequest
    per_pair: Dict[str, Verdict] = field(default_factory=dict)

    @property
    def authorized(self) -> bool:
        return all(verdict.allowed for verdict in self.per_pair.values())

    @property
    def details(self) -> Dict[str, str]:
        return {key: verdict.reason for key, verdict in self.per_pair.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authorized": self.authorized,
            "perPair": {key: v.to_dict() for key, v in self.per_pair.items()},
            "details": self.details,
        }


def pair_key(verb: str, resource: str) -> str:
    return f"{verb}-{resource}"


class SimulationEngine:
    """Checks whether a subject's existing bindings to a role cover some actions.

    No binding is synthesized: a pair is authorized only when a binding that
    already exists references ``role_name``, lists the subject, and resolves to
    a role with a matching rule. RoleBindings count only in the requested
    namespace; ClusterRoleBindings count everywhere.
    """

    def __init__(
        self,
        index: SubjectIndex,
        resolver: EffectivePermissionResolver,
        directory: Optional[SubjectDirectory] = None,
        discovery: Optional[ApiResourceDiscovery] = None,
    ):
        self.index = index
        self.resolver = resolver
        self.directory = directory
        self.discovery = discovery

    def validate(self, request: SimulationRequest) -> None:
        """Reject unknown inputs before any resolution happens.

        Raises:
            ValidationError: naming the first invalid subject, verb, resource
                or role.
            CollaboratorError: if the directory or discovery lookup fails.
        """
        subject = request.subject
        if not subject.name or not self._subject_known(subject):
            raise ValidationError(
                "subject", subject.id, f"Unknown subject: {subject.id}"
            )

        if not request.actions:
            raise ValidationError("action", "", "At least one action is required")
        for verb in request.actions:
            if verb not in KUBERNETES_VERBS:
                raise ValidationError("action", verb, f"Invalid action: {verb}")

        if not request.resources:
            raise ValidationError("resource", "", "At least one resource is required")
        known_resources = self._discovered_resources()
        for resource in request.resources:
            if resource not in known_resources:
                raise ValidationError(
                    "resource", resource, f"Invalid resource: {resource}"
                )

        catalog = self.index.catalog
        if (
            catalog.find_role(request.role_name, request.namespace) is None
            and catalog.find_cluster_role(request.role_name) is None
        ):
            raise ValidationError(
                "role", request.role_name, f"Invalid role name: {request.role_name}"
            )

    def _subject_known(self, subject: Subject) -> bool:
        if self.directory is None:
            return subject in self.index
        try:
            return self.directory.is_known(subject)
        except CollaboratorError:
            raise
        except Exception as e:
            raise CollaboratorError("subject-directory", str(e)) from e

    def _discovered_resources(self) -> Set[str]:
        if self.discovery is None:
            raise CollaboratorError(
                "api-discovery", "No API resource discovery configured"
            )
        try:
            return self.discovery.resource_names()
        except CollaboratorError:
            raise
        except Exception as e:
            raise CollaboratorError("api-discovery", str(e)) from e

    def _granting_bindings(
        self, request: SimulationRequest, verb: str, resource: str
    ) -> List[str]:
        granted = []
        for ref in self.index.bindings_for(request.subject):
            binding = ref.binding
            if binding.role_ref.name != request.role_name:
                continue
            if isinstance(binding, RoleBinding) and binding.namespace != request.namespace:
                continue
            role, warning = self.resolver.resolve_role_ref(binding)
            if warning is not None:
                continue
            if any(rule.allows(verb, resource) for rule in role.rules):
                if binding.name not in granted:
                    granted.append(binding.name)
        return granted

    def evaluate(self, request: SimulationRequest) -> SimulationResult:
        """Evaluate every pair without validating inputs."""
        result = SimulationResult(request=request)
        for verb, resource in request.pairs:
            granted = self._granting_bindings(request, verb, resource)
            if granted:
                verdict = Verdict(
                    allowed=True,
                    reason=(
                        f"{request.subject.kind.value} has the necessary permissions "
                        f"via {', '.join(granted)}"
                    ),
                    granted_by=tuple(granted),
                )
            else:
                verdict = Verdict(
                    allowed=False,
                    reason=(
                        f"{request.subject.kind.value} does not have the necessary "
                        f"permissions: missing {pair_key(verb, resource)}"
                    ),
                )
            result.per_pair[pair_key(verb, resource)] = verdict
        return result

    def simulate(self, request: SimulationRequest) -> SimulationResult:
        """Validate inputs, then evaluate every (verb, resource) pair."""
        self.validate(request)
        result = self.evaluate(request)

        logger.info(
            f"Simulation for {request.subject.id} against role "
            f"{request.role_name}: authorized={result.authorized}",
            extra={
                "subject": request.subject.id,
                "role": request.role_name,
                "namespace": request.namespace,
            },
        )
        return result
