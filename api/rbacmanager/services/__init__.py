"""Business logic services package."""

from .activity import ActivityResolver
from .index import BindingRef, Scope, SubjectIndex, build_index
from .permissions import (EffectivePermissionResolver, GrantedRule,
                          ResolutionResult, RoleComparison, SubjectDetails)
from .rbac import RBACEngine, create_rbac_engine
from .simulation import (KUBERNETES_VERBS, SimulationEngine, SimulationRequest,
                         SimulationResult, Verdict)

__all__ = [
    "RBACEngine",
    "create_rbac_engine",
    "SubjectIndex",
    "build_index",
    "BindingRef",
    "Scope",
    "ActivityResolver",
    "EffectivePermissionResolver",
    "GrantedRule",
    "ResolutionResult",
    "SubjectDetails",
    "RoleComparison",
    "SimulationEngine",
    "SimulationRequest",
    "SimulationResult",
    "Verdict",
    "KUBERNETES_VERBS",
]
