"""
Tests for domain models.
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.errors import ValidationError
from domain.models import (
    DeliveryResult,
    INVALID_EMAIL_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    Submission,
    is_valid_email,
)


class TestIsValidEmail:
    """Test the local@domain.tld pattern."""

    @pytest.mark.parametrize('address', [
        'ada@example.com',
        'a.b+tag@sub.example.co.uk',
        'x@y.z',
    ])
    def test_accepts_valid_addresses(self, address):
        assert is_valid_email(address)

    @pytest.mark.parametrize('address', [
        'not-an-email',
        'ada@example',
        'ada example@example.com',
        'ada@@example.com',
        '@example.com',
        'ada@.com.',
        'ada@example.com\n',
        '',
    ])
    def test_rejects_invalid_addresses(self, address):
        assert not is_valid_email(address)


class TestSubmission:
    """Test Submission validation."""

    def test_from_payload_valid(self, valid_payload):
        submission = Submission.from_payload(valid_payload)

        assert submission.first_name == 'Ada'
        assert submission.last_name == 'Lovelace'
        assert submission.email == 'ada@example.com'
        assert submission.message == 'Hello'
        assert submission.full_name == 'Ada Lovelace'

    @pytest.mark.parametrize('field', ['firstName', 'lastName', 'email', 'message'])
    def test_missing_field_rejected(self, valid_payload, field):
        del valid_payload[field]

        with pytest.raises(ValidationError) as exc_info:
            Submission.from_payload(valid_payload)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == MISSING_FIELDS_MESSAGE

    @pytest.mark.parametrize('field', ['firstName', 'lastName', 'email', 'message'])
    def test_empty_field_rejected(self, valid_payload, field):
        valid_payload[field] = ''

        with pytest.raises(ValidationError):
            Submission.from_payload(valid_payload)

    def test_non_string_field_rejected(self, valid_payload):
        valid_payload['message'] = {'nested': 'object'}

        with pytest.raises(ValidationError):
            Submission.from_payload(valid_payload)

    def test_invalid_email_rejected(self, valid_payload):
        valid_payload['email'] = 'not-an-email'

        with pytest.raises(ValidationError) as exc_info:
            Submission.from_payload(valid_payload)

        assert exc_info.value.message == INVALID_EMAIL_MESSAGE

    def test_missing_fields_checked_before_email(self, valid_payload):
        valid_payload['email'] = 'not-an-email'
        valid_payload['message'] = ''

        with pytest.raises(ValidationError) as exc_info:
            Submission.from_payload(valid_payload)

        assert exc_info.value.message == MISSING_FIELDS_MESSAGE

    def test_non_dict_payload_rejected(self):
        with pytest.raises(ValidationError):
            Submission.from_payload(['Ada', 'Lovelace'])


class TestDeliveryResult:
    """Test DeliveryResult rendering."""

    def test_success_body(self):
        result = DeliveryResult(success=True, message='Sent', message_id='abc123')

        assert result.to_body() == {
            'success': True,
            'message': 'Sent',
            'messageId': 'abc123'
        }

    def test_failure_body_with_error(self):
        result = DeliveryResult(
            success=False,
            message='Failed',
            status_code=500,
            error_detail='Internal server error'
        )

        body = result.to_body()
        assert body['success'] is False
        assert body['error'] == 'Internal server error'
        assert 'messageId' not in body

    def test_validation_failure_has_no_error_field(self):
        result = DeliveryResult(success=False, message='Invalid email address', status_code=400)

        assert result.to_body() == {'success': False, 'message': 'Invalid email address'}

    def test_failure_never_renders_message_id(self):
        result = DeliveryResult(success=False, message='x', status_code=500, message_id='leak')

        assert 'messageId' not in result.to_body()

    def test_repr_success(self):
        result = DeliveryResult(success=True, message='Sent', message_id='abc123')

        assert 'success=True' in repr(result)
        assert 'abc123' in repr(result)

    def test_repr_failure(self):
        result = DeliveryResult(success=False, message='Invalid email address', status_code=400)

        assert 'success=False' in repr(result)
        assert 'status=400' in repr(result)
