"""Request and response models for the RBAC API."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rbacmanager.models.policy import RoleKind, Subject, SubjectKind


class SubjectModel(BaseModel):
    """A user, group or service account."""

    kind: SubjectKind = Field(SubjectKind.USER, description="Subject kind")
    name: str = Field(..., min_length=1, description="Subject name")
    namespace: Optional[str] = Field(
        None, description="Namespace, required for service accounts only"
    )

    @model_validator(mode="after")
    def check_namespace(self):
        if self.kind == SubjectKind.SERVICE_ACCOUNT and not self.namespace:
            raise ValueError("namespace is required for ServiceAccount subjects")
        if self.kind != SubjectKind.SERVICE_ACCOUNT:
            self.namespace = None
        return self

    def to_subject(self) -> Subject:
        return Subject(kind=self.kind, name=self.name, namespace=self.namespace)


class SimulateRequest(BaseModel):
    """What-if check of a subject against a role."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "username": "alice",
                "roleName": "viewer",
                "actions": ["get", "list"],
                "resources": ["pods"],
                "namespace": "team-a",
            }
        },
    )

    subject: Optional[SubjectModel] = Field(
        None, description="Subject to simulate; takes precedence over username"
    )
    username: Optional[str] = Field(None, description="Shorthand for a User subject")
    role_name: str = Field(..., alias="roleName", min_length=1)
    actions: List[str] = Field(..., min_length=1)
    resources: List[str] = Field(..., min_length=1)
    namespace: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_subject(self):
        if self.subject is None and not self.username:
            raise ValueError("either subject or username is required")
        return self

    def to_subject(self) -> Subject:
        if self.subject is not None:
            return self.subject.to_subject()
        return Subject.user(self.username)


class RoleSelector(BaseModel):
    """Points at a Role (with namespace) or ClusterRole."""

    kind: RoleKind = RoleKind.ROLE
    name: str = Field(..., min_length=1)
    namespace: Optional[str] = None

    @model_validator(mode="after")
    def check_namespace(self):
        if self.kind == RoleKind.ROLE and not self.namespace:
            raise ValueError("namespace is required for Role")
        return self


class CompareRolesRequest(BaseModel):
    """Two roles to diff."""

    first: RoleSelector
    second: RoleSelector


class SubjectRegistration(SubjectModel):
    """Adds a subject to the directory."""

    source: str = Field("admin", description="Where the subject comes from")


class SubjectEntry(BaseModel):
    """A subject with where it was found."""

    kind: SubjectKind
    name: str
    namespace: Optional[str] = None
    sources: List[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error body for rejected requests."""

    error: str
    field: Optional[str] = None
    value: Optional[str] = None
    collaborator: Optional[str] = None


class SimulateResponse(BaseModel):
    """Simulation outcome."""

    authorized: bool
    per_pair: Dict[str, Dict] = Field(default_factory=dict, alias="perPair")
    details: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)
