"""
AWS Lambda handler for the contact form API (API Gateway proxy events).

Thin routing layer that delegates submissions to ContactFormService.
Accepts both REST API (v1) and HTTP API (v2) event shapes.
"""

import base64
import binascii
import json
import logging
import os
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Tuple

from domain.contact_service import ContactFormService, GENERIC_ERROR_DETAIL
from domain.errors import ValidationError
from domain.models import DeliveryResult
from services import config as config_service
from services.metrics import create_metrics_sink
from services.smtp_transport import DELIVERY_FAILED_MESSAGE

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(name)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
    'Content-Type': 'application/json'
}

SERVICE_BANNER = 'Contact Form API is running!'
INVALID_BODY_MESSAGE = 'Invalid request body'

# Container start time, reported as uptime by /health
STARTED_AT = time.time()

# Initialize once at module level (reused across invocations)
metrics = create_metrics_sink()
contact_service = ContactFormService(metrics=metrics)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Route an API Gateway request.

    Args:
        event: API Gateway proxy event
        context: Lambda context

    Returns:
        API Gateway proxy response with CORS headers and a JSON body
    """
    method, path = _request_line(event)
    logger.info(f"{method} {path}")

    try:
        if method == 'OPTIONS':
            return {'statusCode': 200, 'headers': dict(CORS_HEADERS), 'body': ''}

        if path == '/contact':
            if method != 'POST':
                return _response(405, {'success': False, 'message': 'Method not allowed'})
            return _submit(event)

        if method == 'GET':
            route = GET_ROUTES.get(path)
            if route is not None:
                return _response(200, route())

        return _response(404, {'success': False, 'message': 'Not found'})

    except Exception as e:
        logger.error(f"Unhandled error for {method} {path}: {e}", exc_info=True)
        detail = str(e) if config_service.is_development() else GENERIC_ERROR_DETAIL
        return _response(500, {
            'success': False,
            'message': DELIVERY_FAILED_MESSAGE if path == '/contact' else GENERIC_ERROR_DETAIL,
            'error': detail
        })


def _submit(event: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the body and hand it to the contact service."""
    try:
        payload = _decode_body(event)
    except ValidationError as e:
        logger.info(f"Rejected submission: {e.message}")
        result = DeliveryResult(success=False, message=e.message, status_code=e.status_code)
    else:
        result = contact_service.handle(payload)

    logger.info(f"Contact request finished: {result!r}")
    return _response(result.status_code, result.to_body())


def index() -> Dict[str, Any]:
    return {
        'message': SERVICE_BANNER,
        'status': 'success',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'endpoints': {
            'contact': 'POST /contact',
            'health': 'GET /health',
            'debugEnv': 'GET /debug-env',
            'emailStats': 'GET /email-stats'
        }
    }


def health() -> Dict[str, Any]:
    return {
        'status': 'healthy',
        'uptime': round(time.time() - STARTED_AT, 3),
        'environment': config_service.current_environment()
    }


def debug_env() -> Dict[str, Any]:
    """Presence of each delivery setting; secret values are never echoed."""
    report = config_service.describe_settings()
    return {
        'variables': report,
        'configured': not config_service.missing_settings()
    }


def email_stats() -> Dict[str, Any]:
    return metrics.snapshot()


GET_ROUTES = {
    '/': index,
    '/health': health,
    '/debug-env': debug_env,
    '/email-stats': email_stats,
}


def _request_line(event: Dict[str, Any]) -> Tuple[str, str]:
    """Extract (method, normalized path) from a v1 or v2 event."""
    request_context = event.get('requestContext', {})
    http = request_context.get('http', {})
    method = event.get('httpMethod') or http.get('method') or 'GET'
    path = event.get('path') or event.get('rawPath') or http.get('path') or '/'

    # HTTP API named stages keep the stage in rawPath: /prod/contact
    stage = request_context.get('stage')
    if stage and stage != '$default':
        prefix = f"/{stage}"
        if path == prefix or path.startswith(prefix + '/'):
            path = path[len(prefix):]

    path = path.rstrip('/') or '/'
    return method.upper(), path


def _decode_body(event: Dict[str, Any]) -> Any:
    """
    Decode the JSON request body.

    Raises:
        ValidationError: If the body is missing, not JSON, or not a JSON object
    """
    raw: Optional[str] = event.get('body')
    if not raw:
        raise ValidationError(INVALID_BODY_MESSAGE)

    try:
        if event.get('isBase64Encoded'):
            raw = base64.b64decode(raw).decode('utf-8')
        payload = json.loads(raw)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise ValidationError(INVALID_BODY_MESSAGE)

    if not isinstance(payload, dict):
        raise ValidationError(INVALID_BODY_MESSAGE)

    return payload


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': dict(CORS_HEADERS),
        'body': json.dumps(body)
    }
