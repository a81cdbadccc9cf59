"""Unit tests for policy value types and API schemas."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from rbacmanager.models.policy import (ClusterRole, PolicyCatalog, PolicyRule,
                                       Role, Subject, SubjectKind)
from rbacmanager.models.schemas import (RoleSelector, SimulateRequest,
                                        SimulateResponse, SubjectModel)


@pytest.mark.unit
class TestSubject:
    """Test Subject identity."""

    def test_user_id(self):
        assert Subject.user("alice").id == "User:alice"

    def test_service_account_id(self):
        assert Subject.service_account("ci", "team-a").id == "ServiceAccount:team-a/ci"

    def test_kind_distinguishes_identity(self):
        assert Subject.user("alice").identity != Subject.group("alice").identity

    def test_namespace_ignored_for_users(self):
        """Only service accounts carry a namespace in their identity."""
        assert (
            Subject(SubjectKind.USER, "alice", "team-a").identity
            == Subject.user("alice").identity
        )

    def test_service_account_namespace_in_identity(self):
        assert (
            Subject.service_account("ci", "a").identity
            != Subject.service_account("ci", "b").identity
        )

    def test_to_dict(self):
        assert Subject.group("devs").to_dict() == {"kind": "Group", "name": "devs"}
        assert Subject.service_account("ci", "team-a").to_dict() == {
            "kind": "ServiceAccount",
            "name": "ci",
            "namespace": "team-a",
        }


@pytest.mark.unit
class TestPolicyRule:
    """Test rule matching."""

    def test_exact_match(self):
        rule = PolicyRule(verbs=("get",), resources=("pods",))

        assert rule.allows("get", "pods")
        assert not rule.allows("list", "pods")
        assert not rule.allows("get", "secrets")

    def test_wildcards(self):
        assert PolicyRule(verbs=("*",), resources=("pods",)).allows("delete", "pods")
        assert PolicyRule(verbs=("get",), resources=("*",)).allows("get", "secrets")

    def test_to_dict(self):
        rule = PolicyRule(verbs=("get",), api_groups=("apps",), resources=("deployments",))

        assert rule.to_dict() == {
            "verbs": ["get"],
            "apiGroups": ["apps"],
            "resources": ["deployments"],
            "resourceNames": [],
        }


@pytest.mark.unit
class TestPolicyCatalog:
    """Test catalog lookups."""

    def test_find_role_is_namespaced(self):
        catalog = PolicyCatalog(roles=(Role(name="reader", namespace="team-a"),))

        assert catalog.find_role("reader", "team-a") is not None
        assert catalog.find_role("reader", "team-b") is None

    def test_find_cluster_role(self):
        catalog = PolicyCatalog(cluster_roles=(ClusterRole(name="viewer"),))

        assert catalog.find_cluster_role("viewer").name == "viewer"
        assert catalog.find_cluster_role("ghost") is None

    def test_roles_in(self):
        catalog = PolicyCatalog(
            roles=(
                Role(name="a", namespace="team-a"),
                Role(name="b", namespace="team-b"),
            )
        )

        assert [r.name for r in catalog.roles_in("team-b")] == ["b"]

    def test_is_empty(self):
        assert PolicyCatalog().is_empty
        assert not PolicyCatalog(cluster_roles=(ClusterRole(name="viewer"),)).is_empty

    def test_fetched_at_not_compared(self):
        assert PolicyCatalog(fetched_at="2024-01-01") == PolicyCatalog(fetched_at="later")


@pytest.mark.unit
class TestSchemas:
    """Test request and response models."""

    def test_simulate_request_with_username(self):
        body = SimulateRequest(
            username="alice",
            roleName="viewer",
            actions=["get"],
            resources=["pods"],
            namespace="team-a",
        )

        assert body.role_name == "viewer"
        assert body.to_subject() == Subject.user("alice")

    def test_simulate_request_subject_wins(self):
        body = SimulateRequest(
            subject={"kind": "Group", "name": "devs"},
            username="alice",
            roleName="viewer",
            actions=["get"],
            resources=["pods"],
            namespace="team-a",
        )

        assert body.to_subject() == Subject.group("devs")

    def test_simulate_request_requires_subject(self):
        with pytest.raises(PydanticValidationError):
            SimulateRequest(
                roleName="viewer", actions=["get"], resources=["pods"], namespace="team-a"
            )

    def test_simulate_request_requires_actions(self):
        with pytest.raises(PydanticValidationError):
            SimulateRequest(
                username="alice",
                roleName="viewer",
                actions=[],
                resources=["pods"],
                namespace="team-a",
            )

    def test_service_account_needs_namespace(self):
        with pytest.raises(PydanticValidationError):
            SubjectModel(kind="ServiceAccount", name="ci")

    def test_namespace_dropped_for_users(self):
        model = SubjectModel(kind="User", name="alice", namespace="team-a")

        assert model.namespace is None
        assert model.to_subject() == Subject.user("alice")

    def test_role_selector_needs_namespace_for_role(self):
        with pytest.raises(PydanticValidationError):
            RoleSelector(kind="Role", name="reader")

        assert RoleSelector(kind="ClusterRole", name="viewer").namespace is None

    def test_simulate_response_aliases(self):
        response = SimulateResponse(authorized=True, perPair={}, details={})

        assert response.model_dump(by_alias=True) == {
            "authorized": True,
            "perPair": {},
            "details": {},
        }
