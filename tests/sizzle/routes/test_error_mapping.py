"""Tests for sizzle.routes.errors — exception → HTTP status mapping."""
import pytest

from sizzle.exceptions import (
    AuthenticationError, ConfigurationError, GHLAPIError, GHLError, RecordNotFoundError,
    ServiceTimeoutError, ServiceUnreachableError, SizzleError, ValidationError,
)
from sizzle.routes.errors import status_for
from sizzle.services.circuit_breaker import CircuitOpenError


@pytest.mark.parametrize('exc, status', [
    (ValidationError('bad'), 400),
    (AuthenticationError(), 401),
    (RecordNotFoundError('pipeline_entries', {'id': 'x'}), 404),
    (ConfigurationError('missing'), 500),
    (ServiceTimeoutError(15), 504),
    (ServiceUnreachableError(), 503),
    (CircuitOpenError('ghl', retry_after=30), 503),
    (GHLAPIError(404), 502),
    (GHLError('No pipelines found'), 500),
    (SizzleError('other'), 500),
])
def test_status_for(exc, status):
    assert status_for(exc) == status


def test_circuit_open_includes_retry_after(client, ghl_client):
    ghl_client.get_pipelines.side_effect = CircuitOpenError('ghl', retry_after=42.4)
    resp = client.get('/api/pipeline')
    assert resp.status_code == 503
    assert resp.get_json()['retry_after'] == 42
