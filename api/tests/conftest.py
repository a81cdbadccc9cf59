"""Pytest configuration and shared fixtures for RBAC Manager tests."""

from typing import Iterable

import pytest
from fakeredis import FakeStrictRedis
from fastapi.testclient import TestClient

from rbacmanager.models.policy import (ClusterRole, ClusterRoleBinding,
                                       PolicyCatalog, PolicyRule, Role,
                                       RoleBinding, RoleRef, Subject)
from rbacmanager.repositories.catalog import StaticCatalogProvider
from rbacmanager.repositories.discovery import StaticResourceDiscovery
from rbacmanager.repositories.subjects import SubjectDirectoryRepository
from rbacmanager.services.rbac import RBACEngine

# ============================================================================
# Builders
# ============================================================================


def rule(verbs: Iterable[str], resources: Iterable[str], api_groups=("",)) -> PolicyRule:
    return PolicyRule(
        verbs=tuple(verbs), api_groups=tuple(api_groups), resources=tuple(resources)
    )


def role_binding(name, namespace, role_kind, role_name, *subjects) -> RoleBinding:
    return RoleBinding(
        name=name,
        namespace=namespace,
        role_ref=RoleRef(kind=role_kind, name=role_name),
        subjects=tuple(subjects),
    )


def cluster_role_binding(name, role_name, *subjects, role_kind="ClusterRole"):
    return ClusterRoleBinding(
        name=name,
        role_ref=RoleRef(kind=role_kind, name=role_name),
        subjects=tuple(subjects),
    )


# ============================================================================
# Redis Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def fake_redis_session():
    """Single FakeRedis instance for entire test session."""
    return FakeStrictRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def fake_redis(fake_redis_session):
    """Function-scoped view of the session redis, flushed before each test."""
    fake_redis_session.flushdb()
    yield fake_redis_session


# ============================================================================
# Subject Fixtures
# ============================================================================


@pytest.fixture
def alice():
    return Subject.user("alice")


@pytest.fixture
def bob():
    return Subject.user("bob")


@pytest.fixture
def devs():
    return Subject.group("devs")


@pytest.fixture
def ops():
    return Subject.group("ops")


@pytest.fixture
def ci_bot():
    return Subject.service_account("ci", "team-a")


# ============================================================================
# Catalog Fixtures
# ============================================================================


@pytest.fixture
def viewer_catalog(alice):
    """ClusterRole viewer bound to alice in team-a through RoleBinding b1."""
    return PolicyCatalog(
        cluster_roles=(
            ClusterRole(name="viewer", rules=(rule(["get", "list"], ["pods"]),)),
        ),
        role_bindings=(role_binding("b1", "team-a", "ClusterRole", "viewer", alice),),
    )


@pytest.fixture
def sample_catalog(alice, bob, devs, ops, ci_bot):
    """A catalog exercising every binding shape."""
    return PolicyCatalog(
        roles=(
            Role(
                name="pod-reader",
                namespace="team-a",
                rules=(rule(["get", "watch"], ["pods"]),),
            ),
            Role(
                name="secret-reader",
                namespace="team-b",
                rules=(rule(["get"], ["secrets"]),),
            ),
            Role(
                name="orphan",
                namespace="team-a",
                rules=(rule(["delete"], ["configmaps"]),),
            ),
        ),
        cluster_roles=(
            ClusterRole(name="viewer", rules=(rule(["get", "list"], ["pods"]),)),
            ClusterRole(name="admin-all", rules=(rule(["*"], ["*"], ["*"]),)),
            ClusterRole(name="unused", rules=(rule(["get"], ["nodes"]),)),
        ),
        role_bindings=(
            role_binding("b1", "team-a", "ClusterRole", "viewer", alice),
            role_binding("read-pods", "team-a", "Role", "pod-reader", devs, ci_bot),
            role_binding("dangling", "team-a", "Role", "missing-role", bob),
            role_binding("cross-ns", "team-a", "Role", "secret-reader", bob),
        ),
        cluster_role_bindings=(
            cluster_role_binding("admins", "admin-all", ops),
            cluster_role_binding("alice-view", "viewer", alice),
        ),
    )


@pytest.fixture
def empty_catalog():
    return PolicyCatalog()


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def discovery():
    """Discovery serving a fixed set of resource names."""
    return StaticResourceDiscovery(
        ["pods", "secrets", "configmaps", "deployments", "nodes", "services"]
    )


@pytest.fixture
def directory(fake_redis, alice, devs, ci_bot):
    """Subject directory with alice, devs and the ci service account registered."""
    repo = SubjectDirectoryRepository(fake_redis)
    repo.register(alice, source="admin")
    repo.register(devs, source="oidc")
    repo.register(ci_bot, source="admin")
    return repo


@pytest.fixture
def rbac_engine(sample_catalog, directory, discovery):
    """Engine over the sample catalog with all collaborators wired."""
    return RBACEngine(sample_catalog, directory=directory, discovery=discovery)


@pytest.fixture
def viewer_engine(viewer_catalog, directory, discovery):
    return RBACEngine(viewer_catalog, directory=directory, discovery=discovery)


# ============================================================================
# API Test Client Fixtures
# ============================================================================


@pytest.fixture
def app_overrides(sample_catalog, directory, discovery):
    """Collaborator overrides applied to the FastAPI app."""
    from rbacmanager.api.dependencies.rbac import (get_catalog_provider,
                                                   get_resource_discovery,
                                                   get_subject_directory)

    return {
        get_catalog_provider: lambda: StaticCatalogProvider(sample_catalog),
        get_resource_discovery: lambda: discovery,
        get_subject_directory: lambda: directory,
    }


@pytest.fixture
def test_client(app_overrides):
    """Test client with Kubernetes and Redis collaborators replaced."""
    from rbacmanager.main import app

    app.dependency_overrides.update(app_overrides)
    yield TestClient(app)
    app.dependency_overrides.clear()
