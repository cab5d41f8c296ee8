from __future__ import annotations

from functools import wraps

from flask import g, jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    InvalidStateTransition,
    NotFoundError,
    SequenceViolation,
    ValidationError,
)
from ..core.logging_config import get_logger
from ..identity.service import IdentityService

logger = get_logger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (SequenceViolation, 409),
    (NotFoundError, 404),
    (InvalidStateTransition, 409),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
)


def ok(payload: dict | None = None, status: int = 200):
    body = {"success": True}
    body.update(payload or {})
    return jsonify(body), status


def error_response(exc: DomainError):
    status = 400
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = code
            break

    body = {"success": False, "message": str(exc), "error": exc.code}
    if isinstance(exc, SequenceViolation):
        body["rule"] = exc.rule.value
        body["expected_kind"] = exc.expected_kind.value if exc.expected_kind else None
    return jsonify(body), status


def json_endpoint(view):
    """Translate domain errors to JSON; anything else is a logged 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return jsonify({"success": False, "message": "Internal server error", "error": "server_error"}), 500

    return wrapper


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Missing bearer token")
    return token.strip()


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def auth_decorators(identity: IdentityService):
    """Build (login_required, reviewer_required) bound to an identity service.

    The verified subject is available as ``flask.g.subject`` inside the view.
    Place them under ``json_endpoint`` so auth failures become JSON errors.
    """

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.subject = identity.verify(bearer_token())
            return view(*args, **kwargs)

        return wrapper

    def reviewer_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.subject = identity.verify(bearer_token())
            if not g.subject.is_reviewer:
                raise AuthorizationError("Reviewer role required")
            return view(*args, **kwargs)

        return wrapper

    return login_required, reviewer_required
