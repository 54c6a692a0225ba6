"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
from contextlib import contextmanager
from unittest.mock import Mock

import pytest

# Add src and hooks to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../hooks'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')
os.environ.pop('METRICS_NAMESPACE', None)

SMTP_ENV = {
    'EMAIL_HOST': 'smtp-relay.example.com',
    'EMAIL_PORT': '587',
    'EMAIL_USER': 'relay-user',
    'EMAIL_PASS': 'relay-secret',
    'EMAIL_TO': 'inbox@example.com',
    'EMAIL_FROM': 'noreply@example.com',
}


@pytest.fixture
def smtp_env():
    """Complete delivery configuration."""
    return dict(SMTP_ENV)


@pytest.fixture
def valid_payload():
    """A submission that passes validation."""
    return {
        'firstName': 'Ada',
        'lastName': 'Lovelace',
        'email': 'ada@example.com',
        'message': 'Hello'
    }


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:contact-form"
    context.function_name = "contact-form-test"
    return context


class FakeTransport:
    """Stands in for SmtpTransport; records sent messages."""

    def __init__(self, message_id='abc123', error=None):
        self.message_id = message_id
        self.error = error
        self.sent = []
        self.closed = 0

    def send(self, message):
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return self.message_id

    def factory(self, settings):
        @contextmanager
        def scope():
            try:
                yield self
            finally:
                self.closed += 1
        return scope()


@pytest.fixture
def fake_transport():
    return FakeTransport()
