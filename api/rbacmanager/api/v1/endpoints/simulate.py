"""Simulation endpoint: would a subject hold these permissions under a role."""

from fastapi import APIRouter, Depends

from rbacmanager.api.dependencies.rbac import get_simulation_engine
from rbacmanager.models.schemas import (ErrorResponse, SimulateRequest,
                                        SimulateResponse)
from rbacmanager.services.rbac import RBACEngine
from rbacmanager.services.simulation import SimulationRequest

router = APIRouter()


@router.post(
    "/simulate",
    response_model=SimulateResponse,
    responses={
        400: {"model": ErrorResponse, "description": "An input was rejected"},
        502: {"model": ErrorResponse, "description": "A collaborator failed"},
    },
    summary="Simulate Role Assignment",
    description=(
        "Check whether existing bindings of a role give a subject each "
        "requested (verb, resource) pair"
    ),
)
def simulate(
    body: SimulateRequest,
    engine: RBACEngine = Depends(get_simulation_engine),
) -> SimulateResponse:
    request = SimulationRequest(
        subject=body.to_subject(),
        role_name=body.role_name,
        actions=body.actions,
        resources=body.resources,
        namespace=body.namespace,
    )
    result = engine.simulate(request)
    return SimulateResponse(**result.to_dict())
