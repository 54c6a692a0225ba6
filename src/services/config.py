"""
Delivery configuration read from the Lambda environment.

Settings are re-read on every request so that a missing variable surfaces
as a ConfigError at request time instead of an import-time crash.
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from domain.errors import ConfigError

# Required variables, in reporting order
REQUIRED_VARIABLES = ('EMAIL_HOST', 'EMAIL_PORT', 'EMAIL_USER', 'EMAIL_PASS', 'EMAIL_TO')

# Never echoed by the debug endpoint
SECRET_VARIABLES = ('EMAIL_USER', 'EMAIL_PASS', 'EMAIL_TO')

DEFAULT_ENVIRONMENT = 'production'
DEFAULT_MAILER_NAME = 'Contact Form Relay'
IMPLICIT_TLS_PORT = 465

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == '':
        return default
    return value.strip().lower() in _TRUE_VALUES


def current_environment(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the deployment environment name (e.g. 'development')."""
    environ = os.environ if environ is None else environ
    return environ.get('ENVIRONMENT') or DEFAULT_ENVIRONMENT


def is_development(environ: Optional[Mapping[str, str]] = None) -> bool:
    """True when literal error details may be returned to callers."""
    return current_environment(environ) == 'development'


def missing_settings(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """List required delivery variables that are absent or empty."""
    environ = os.environ if environ is None else environ
    return [name for name in REQUIRED_VARIABLES if not environ.get(name)]


@dataclass(frozen=True)
class SmtpSettings:
    """
    SMTP relay settings for a single delivery.

    Attributes:
        host: Relay hostname
        port: Relay port
        user: SMTP username
        password: SMTP password
        recipient: Address that receives contact form messages
        sender: Fixed sender address used in From
        secure: Use implicit TLS when connecting
        verify_tls: Verify the relay certificate
        mailer_name: Value of the X-Mailer header
    """
    host: str
    port: int
    user: str
    password: str
    recipient: str
    sender: str
    secure: bool = False
    verify_tls: bool = True
    mailer_name: str = DEFAULT_MAILER_NAME


def load_settings(environ: Optional[Mapping[str, str]] = None) -> SmtpSettings:
    """
    Build SmtpSettings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        SmtpSettings: Settings for this request

    Raises:
        ConfigError: If a required variable is missing or EMAIL_PORT is not an integer
    """
    environ = os.environ if environ is None else environ

    missing = missing_settings(environ)
    if missing:
        raise ConfigError(
            'Email configuration missing. Please check environment variables.',
            missing=missing
        )

    try:
        port = int(environ['EMAIL_PORT'])
    except ValueError:
        raise ConfigError(
            'Email configuration invalid. EMAIL_PORT must be an integer.',
            missing=['EMAIL_PORT']
        )

    return SmtpSettings(
        host=environ['EMAIL_HOST'],
        port=port,
        user=environ['EMAIL_USER'],
        password=environ['EMAIL_PASS'],
        recipient=environ['EMAIL_TO'],
        sender=environ.get('EMAIL_FROM') or environ['EMAIL_USER'],
        secure=_env_flag(environ.get('EMAIL_SECURE'), port == IMPLICIT_TLS_PORT),
        verify_tls=_env_flag(environ.get('EMAIL_TLS_VERIFY'), True),
        mailer_name=environ.get('MAILER_NAME') or DEFAULT_MAILER_NAME
    )


def describe_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Report which delivery variables are present without leaking secrets.

    Host and port are echoed; credentials and the recipient only as
    'set' or 'missing'.
    """
    environ = os.environ if environ is None else environ

    report = {}
    for name in REQUIRED_VARIABLES + ('EMAIL_FROM',):
        value = environ.get(name)
        if not value:
            report[name] = 'missing'
        elif name in SECRET_VARIABLES or name == 'EMAIL_FROM':
            report[name] = 'set'
        else:
            report[name] = value
    report['ENVIRONMENT'] = current_environment(environ)
    return report
