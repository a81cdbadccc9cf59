"""Redis-backed directory of known subjects."""

from typing import Dict, List, Optional

from redis import Redis, RedisError

from rbacmanager.core.exceptions import CollaboratorError
from rbacmanager.core.logging import get_logger
from rbacmanager.models.policy import Subject, SubjectKind

logger = get_logger(__name__)

SOURCE_KEY = "subjects:source"


def _set_key(kind: SubjectKind) -> str:
    return f"subjects:{kind.value.lower()}"


def _member(subject: Subject) -> str:
    if subject.kind == SubjectKind.SERVICE_ACCOUNT:
        return f"{subject.namespace or ''}/{subject.name}"
    return subject.name


def _from_member(kind: SubjectKind, member: str) -> Subject:
    if kind == SubjectKind.SERVICE_ACCOUNT:
        namespace, _, name = member.partition("/")
        return Subject(kind=kind, name=name, namespace=namespace or None)
    return Subject(kind=kind, name=member)


class SubjectDirectoryRepository:
    """Known subjects, stored as one Redis set per subject kind.

    Service accounts are stored as ``namespace/name``. The optional source
    (``admin``, ``oidc``...) of each entry is kept in a hash.
    """

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    def register(self, subject: Subject, source: str = "admin") -> None:
        try:
            pipeline = self.redis.pipeline()
            pipeline.sadd(_set_key(subject.kind), _member(subject))
            pipeline.hset(SOURCE_KEY, subject.id, source)
            pipeline.execute()
        except RedisError as e:
            raise CollaboratorError("subject-directory", str(e)) from e
        logger.info(f"Registered subject {subject.id}", extra={"subject": subject.id})

    def remove(self, subject: Subject) -> bool:
        try:
            removed = self.redis.srem(_set_key(subject.kind), _member(subject))
            self.redis.hdel(SOURCE_KEY, subject.id)
        except RedisError as e:
            raise CollaboratorError("subject-directory", str(e)) from e
        return bool(removed)

    def is_known(self, subject: Subject) -> bool:
        try:
            return bool(self.redis.sismember(_set_key(subject.kind), _member(subject)))
        except RedisError as e:
            logger.error(f"Subject lookup failed for {subject.id}: {e}")
            raise CollaboratorError("subject-directory", str(e)) from e

    def list_subjects(self, kind: Optional[SubjectKind] = None) -> List[Subject]:
        kinds = [kind] if kind else list(SubjectKind)
        subjects = []
        try:
            for k in kinds:
                for member in sorted(self.redis.smembers(_set_key(k))):
                    subjects.append(_from_member(k, member))
        except RedisError as e:
            raise CollaboratorError("subject-directory", str(e)) from e
        return subjects

    def sources(self) -> Dict[str, str]:
        try:
            return dict(self.redis.hgetall(SOURCE_KEY))
        except RedisError as e:
            raise CollaboratorError("subject-directory", str(e)) from e
