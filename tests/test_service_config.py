"""
Tests for delivery configuration loading.
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.errors import ConfigError
from services import config


class TestLoadSettings:
    """Test SmtpSettings construction from the environment."""

    def test_load_complete_settings(self, smtp_env):
        settings = config.load_settings(smtp_env)

        assert settings.host == 'smtp-relay.example.com'
        assert settings.port == 587
        assert settings.user == 'relay-user'
        assert settings.password == 'relay-secret'
        assert settings.recipient == 'inbox@example.com'
        assert settings.sender == 'noreply@example.com'
        assert settings.secure is False
        assert settings.verify_tls is True
        assert settings.mailer_name == config.DEFAULT_MAILER_NAME

    def test_sender_defaults_to_user(self, smtp_env):
        del smtp_env['EMAIL_FROM']

        settings = config.load_settings(smtp_env)

        assert settings.sender == 'relay-user'

    def test_port_465_defaults_to_implicit_tls(self, smtp_env):
        smtp_env['EMAIL_PORT'] = '465'

        assert config.load_settings(smtp_env).secure is True

    def test_explicit_secure_flag(self, smtp_env):
        smtp_env['EMAIL_SECURE'] = 'true'
        smtp_env['EMAIL_TLS_VERIFY'] = 'false'

        settings = config.load_settings(smtp_env)

        assert settings.secure is True
        assert settings.verify_tls is False

    @pytest.mark.parametrize('name', config.REQUIRED_VARIABLES)
    def test_missing_variable_raises_config_error(self, smtp_env, name):
        del smtp_env[name]

        with pytest.raises(ConfigError) as exc_info:
            config.load_settings(smtp_env)

        assert exc_info.value.status_code == 500
        assert exc_info.value.missing == [name]
        assert 'configuration missing' in exc_info.value.message

    def test_empty_variable_counts_as_missing(self, smtp_env):
        smtp_env['EMAIL_PASS'] = ''

        assert config.missing_settings(smtp_env) == ['EMAIL_PASS']

    def test_non_integer_port(self, smtp_env):
        smtp_env['EMAIL_PORT'] = 'smtp'

        with pytest.raises(ConfigError) as exc_info:
            config.load_settings(smtp_env)

        assert exc_info.value.missing == ['EMAIL_PORT']

    def test_missing_settings_order(self):
        assert config.missing_settings({}) == list(config.REQUIRED_VARIABLES)


class TestEnvironment:
    """Test environment mode helpers."""

    def test_default_environment(self):
        assert config.current_environment({}) == 'production'
        assert not config.is_development({})

    def test_development(self):
        assert config.is_development({'ENVIRONMENT': 'development'})

    def test_other_environment_is_not_development(self):
        assert not config.is_development({'ENVIRONMENT': 'staging'})


class TestDescribeSettings:
    """Test the redacted configuration report."""

    def test_secrets_are_redacted(self, smtp_env):
        report = config.describe_settings(smtp_env)

        assert report['EMAIL_HOST'] == 'smtp-relay.example.com'
        assert report['EMAIL_PORT'] == '587'
        assert report['EMAIL_USER'] == 'set'
        assert report['EMAIL_PASS'] == 'set'
        assert report['EMAIL_TO'] == 'set'
        assert 'relay-secret' not in report.values()

    def test_missing_values_reported(self):
        report = config.describe_settings({'ENVIRONMENT': 'development'})

        assert report['EMAIL_HOST'] == 'missing'
        assert report['EMAIL_PASS'] == 'missing'
        assert report['ENVIRONMENT'] == 'development'
