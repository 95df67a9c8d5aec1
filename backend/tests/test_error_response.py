import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.utils.errors import (
    AuthorizationFailure,
    BookingError,
    ConflictError,
    NotFoundError,
    RemoteFailure,
    TransitionError,
    ValidationError,
    error_payload,
)


@pytest.mark.parametrize(
    "exc_cls, status_code, code, retryable",
    [
        (ValidationError, 422, "validation_error", False),
        (TransitionError, 409, "invalid_transition", False),
        (ConflictError, 409, "stale_write", False),
        (AuthorizationFailure, 403, "forbidden", False),
        (NotFoundError, 404, "not_found", False),
        (RemoteFailure, 503, "remote_failure", True),
    ],
)
def test_error_classes(exc_cls, status_code, code, retryable):
    exc = exc_cls("Nope", {"field": "bad"})
    assert isinstance(exc, BookingError)
    assert exc.status_code == status_code
    assert error_payload(exc) == {
        "detail": {
            "message": "Nope",
            "field_errors": {"field": "bad"},
            "code": code,
            "retryable": retryable,
        }
    }


def test_conflict_is_a_transition_error():
    with pytest.raises(TransitionError):
        raise ConflictError("Changed meanwhile")


def test_field_errors_default_to_empty():
    assert ValidationError("Bad").field_errors == {}


def test_request_validation_uses_same_envelope():
    client = TestClient(app)
    resp = client.post('/api/v1/auth/register', json={'email': 'not-an-email', 'password': 'x'})
    assert resp.status_code == 422
    detail = resp.json()['detail']
    assert detail['code'] == 'validation_error'
    assert detail['retryable'] is False
    assert set(detail['field_errors']) == {'email', 'password'}
