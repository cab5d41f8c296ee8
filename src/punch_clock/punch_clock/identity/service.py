from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.constants import DEFAULT_TOKEN_MAX_AGE
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from ..core.logging_config import get_logger
from ..subjects.repository import SubjectRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class VerifiedSubject:
    subject_id: int
    role: Role

    @property
    def is_reviewer(self) -> bool:
        return self.role == Role.REVIEWER


class IdentityService(Protocol):
    """Turns an opaque bearer token into a verified subject."""

    def verify(self, token: str) -> VerifiedSubject:
        raise NotImplementedError


class SignedTokenIdentityService(IdentityService):
    """Bearer tokens signed with the app secret, like Flask session cookies.

    When a subject repository is given, the stored role wins over the one in
    the token and inactive subjects are refused.
    """

    SALT = "punch-clock-token"

    def __init__(
        self,
        secret_key: str,
        *,
        max_age: int = DEFAULT_TOKEN_MAX_AGE,
        subjects: Optional[SubjectRepository] = None,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.SALT)
        self._max_age = int(max_age)
        self._subjects = subjects

    def issue(self, subject_id: int, role: Role = Role.EMPLOYEE) -> str:
        return self._serializer.dumps({"sub": int(subject_id), "role": Role(role).value})

    def verify(self, token: str) -> VerifiedSubject:
        if not token:
            raise AuthenticationError("Missing bearer token")
        try:
            payload = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired:
            raise AuthenticationError("Token expired")
        except BadSignature:
            logger.info("Rejected token with a bad signature")
            raise AuthenticationError("Invalid token")

        try:
            subject_id = int(payload["sub"])
            role = Role(payload.get("role", Role.EMPLOYEE.value))
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Malformed token")

        if self._subjects is not None:
            subject = self._subjects.get_by_id(subject_id)
            if subject is None or not subject.is_active:
                raise AuthenticationError("Unknown or inactive subject")
            role = subject.role

        return VerifiedSubject(subject_id=subject_id, role=role)
