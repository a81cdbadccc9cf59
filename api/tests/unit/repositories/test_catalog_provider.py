"""Unit tests for the Kubernetes policy catalog provider."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException

from rbacmanager.core.exceptions import CollaboratorError
from rbacmanager.models.policy import Subject, SubjectKind
from rbacmanager.repositories.catalog import (KubernetesCatalogProvider,
                                              StaticCatalogProvider,
                                              role_ref_from_k8s,
                                              subjects_from_k8s)

# The converters read attributes only, so API objects are stood in by plain
# namespaces shaped like the client's V1* models.


def k8s_subject(kind, name, namespace=None):
    return SimpleNamespace(kind=kind, name=name, namespace=namespace)


def k8s_rule(verbs, resources, api_groups=None):
    return SimpleNamespace(
        verbs=verbs, api_groups=api_groups, resources=resources, resource_names=None
    )


def k8s_meta(name, namespace=None):
    return SimpleNamespace(name=name, namespace=namespace)


def k8s_role_ref(kind, name):
    return SimpleNamespace(api_group="rbac.authorization.k8s.io", kind=kind, name=name)


def listing(*items):
    return MagicMock(items=list(items))


@pytest.fixture
def rbac_api():
    """Mocked RbacAuthorizationV1Api serving a small cluster."""
    api = MagicMock()

    pod_reader = SimpleNamespace(
        metadata=k8s_meta("pod-reader", "team-a"),
        rules=[k8s_rule(["get", "watch"], ["pods"], api_groups=[""])],
    )
    viewer = SimpleNamespace(
        metadata=k8s_meta("viewer"),
        rules=[k8s_rule(["get", "list"], ["pods"])],
    )
    aggregated = SimpleNamespace(metadata=k8s_meta("aggregated"), rules=None)
    b1 = SimpleNamespace(
        metadata=k8s_meta("b1", "team-a"),
        role_ref=k8s_role_ref("ClusterRole", "viewer"),
        subjects=[
            k8s_subject("User", "alice", namespace="ignored"),
            k8s_subject("ServiceAccount", "ci", namespace="team-a"),
        ],
    )
    admins = SimpleNamespace(
        metadata=k8s_meta("admins"),
        role_ref=k8s_role_ref("ClusterRole", "cluster-admin"),
        subjects=[k8s_subject("Group", "ops")],
    )

    api.list_namespaced_role.return_value = listing(pod_reader)
    api.list_role_for_all_namespaces.return_value = listing(pod_reader)
    api.list_namespaced_role_binding.return_value = listing(b1)
    api.list_role_binding_for_all_namespaces.return_value = listing(b1)
    api.list_cluster_role.return_value = listing(viewer, aggregated)
    api.list_cluster_role_binding.return_value = listing(admins)
    return api


@pytest.fixture
def provider(rbac_api):
    with patch("rbacmanager.repositories.catalog.client.RbacAuthorizationV1Api") as cls:
        cls.return_value = rbac_api
        yield KubernetesCatalogProvider(MagicMock())


@pytest.mark.unit
class TestKubernetesCatalogProvider:
    """Test fetching and converting RBAC objects."""

    def test_fetch_all_namespaces(self, provider, rbac_api):
        catalog = provider.fetch_catalog()

        rbac_api.list_role_for_all_namespaces.assert_called_once()
        rbac_api.list_role_binding_for_all_namespaces.assert_called_once()
        rbac_api.list_namespaced_role.assert_not_called()
        assert catalog.namespace is None
        assert catalog.fetched_at is not None

    def test_fetch_one_namespace(self, provider, rbac_api):
        catalog = provider.fetch_catalog("team-a")

        rbac_api.list_namespaced_role.assert_called_once_with("team-a")
        rbac_api.list_namespaced_role_binding.assert_called_once_with("team-a")
        rbac_api.list_cluster_role.assert_called_once()
        assert catalog.namespace == "team-a"

    def test_roles_converted(self, provider):
        catalog = provider.fetch_catalog()

        role = catalog.find_role("pod-reader", "team-a")
        assert role.rules[0].verbs == ("get", "watch")
        assert role.rules[0].api_groups == ("",)

    def test_cluster_role_without_rules(self, provider):
        catalog = provider.fetch_catalog()

        assert catalog.find_cluster_role("aggregated").rules == ()
        assert catalog.find_cluster_role("viewer").rules[0].api_groups == ()

    def test_bindings_converted(self, provider):
        catalog = provider.fetch_catalog()

        b1 = catalog.role_bindings[0]
        assert b1.namespace == "team-a"
        assert b1.role_ref.kind == "ClusterRole"
        assert b1.subjects == (
            Subject.user("alice"),
            Subject.service_account("ci", "team-a"),
        )
        assert catalog.cluster_role_bindings[0].subjects == (Subject.group("ops"),)

    def test_api_error_is_collaborator_error(self, provider, rbac_api):
        rbac_api.list_cluster_role.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(CollaboratorError) as exc_info:
            provider.fetch_catalog()

        assert exc_info.value.collaborator == "policy-catalog"
        assert "cluster roles" in exc_info.value.message

    def test_empty_listing(self, provider, rbac_api):
        rbac_api.list_cluster_role_binding.return_value = MagicMock(items=None)

        assert provider.fetch_catalog().cluster_role_bindings == ()


@pytest.mark.unit
class TestConverters:
    """Test object conversion edge cases."""

    def test_unknown_subject_kind_dropped(self):
        subjects = subjects_from_k8s(
            [k8s_subject("Robot", "r2"), k8s_subject("Group", "devs")]
        )

        assert subjects == (Subject.group("devs"),)

    def test_no_subjects(self):
        assert subjects_from_k8s(None) == ()

    def test_missing_role_ref(self):
        ref = role_ref_from_k8s(None)

        assert ref.kind == ""
        assert ref.name == ""

    def test_service_account_kind(self):
        (subject,) = subjects_from_k8s([k8s_subject("ServiceAccount", "ci", "ns")])

        assert subject.kind == SubjectKind.SERVICE_ACCOUNT
        assert subject.namespace == "ns"


@pytest.mark.unit
class TestStaticCatalogProvider:
    """Test the fixed-snapshot provider."""

    def test_full_catalog(self, sample_catalog):
        assert StaticCatalogProvider(sample_catalog).fetch_catalog() is sample_catalog

    def test_namespace_filter(self, sample_catalog):
        catalog = StaticCatalogProvider(sample_catalog).fetch_catalog("team-b")

        assert [r.name for r in catalog.roles] == ["secret-reader"]
        assert catalog.role_bindings == ()
        assert catalog.cluster_roles == sample_catalog.cluster_roles
        assert catalog.namespace == "team-b"
