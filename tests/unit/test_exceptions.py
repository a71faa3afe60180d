"""
Unit tests for the error taxonomy.
"""

import asyncio

import httpx
import pytest

from tryon_assets.exceptions import (
    AssetLayerError,
    AssetNotFoundError,
    AuthorizationError,
    CapabilityError,
    ServiceRequestError,
    SubmissionError,
    TransportError,
    TransportTimeoutError,
    error_from_status,
    error_kind_of,
)
from tryon_assets.models.enums import ErrorKind


@pytest.mark.parametrize(
    "status_code,error_type",
    [
        (500, TransportError),
        (502, TransportError),
        (408, TransportError),
        (429, TransportError),
        (401, AuthorizationError),
        (403, AuthorizationError),
        (404, AssetNotFoundError),
        (415, CapabilityError),
        (400, ServiceRequestError),
    ],
)
def test_error_from_status(status_code, error_type):
    error = error_from_status(status_code, "message", {"path": "/ai/test"})

    assert type(error) is error_type
    assert error.details["status"] == status_code
    assert error.details["path"] == "/ai/test"


def test_authorization_default_message_is_user_facing():
    assert "sign in" in AuthorizationError().message


def test_only_transport_errors_are_retryable():
    assert TransportError("x").retryable
    assert TransportTimeoutError("x").retryable
    assert not AuthorizationError().retryable
    assert not CapabilityError("x").retryable


def test_str_includes_details():
    error = AssetLayerError("Failed", {"reference": "a.glb"})

    assert str(error) == "Failed | Details: {'reference': 'a.glb'}"
    assert str(AssetLayerError("Plain")) == "Plain"


@pytest.mark.parametrize(
    "error,kind",
    [
        (TransportError("x"), ErrorKind.TRANSPORT),
        (httpx.ConnectError("refused"), ErrorKind.TRANSPORT),
        (asyncio.TimeoutError(), ErrorKind.TRANSPORT),
        (ConnectionRefusedError(), ErrorKind.TRANSPORT),
        (AuthorizationError(), ErrorKind.AUTHORIZATION),
        (KeyError("x"), ErrorKind.UNKNOWN),
        (None, ErrorKind.UNKNOWN),
    ],
)
def test_error_kind_of(error, kind):
    assert error_kind_of(error) == kind


def test_submission_error_mirrors_cause_kind():
    cause = AuthorizationError()
    error = SubmissionError("Could not submit", cause=cause)

    assert error.kind == ErrorKind.AUTHORIZATION
    assert error.cause is cause
    assert SubmissionError("no cause").kind == ErrorKind.UNKNOWN
