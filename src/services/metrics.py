"""
Delivery counters for the contact form service.

Counters live for the lifetime of the Lambda container and reset on cold
start. When METRICS_NAMESPACE is set the same events are also published
to CloudWatch so they survive container recycling.
"""

import logging
import os
import threading
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

# Metric names published to CloudWatch
ATTEMPT_METRIC = 'DeliveryAttempted'
SUCCESS_METRIC = 'DeliverySucceeded'
FAILURE_METRIC = 'DeliveryFailed'

# Publishing is best-effort: one attempt, short timeouts
cloudwatch_config = Config(
    retries={
        'max_attempts': 1,
        'mode': 'standard'
    },
    connect_timeout=5,
    read_timeout=10
)


class InMemoryMetrics:
    """
    Process-wide delivery counters.

    attempts is recorded when delivery starts; exactly one of
    succeeded/failed follows, so succeeded + failed <= attempts.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.attempts = 0
        self.succeeded = 0
        self.failed = 0

    def record_attempt(self) -> None:
        with self._lock:
            self.attempts += 1
        self._publish(ATTEMPT_METRIC)

    def record_success(self) -> None:
        with self._lock:
            self.succeeded += 1
        self._publish(SUCCESS_METRIC)

    def record_failure(self) -> None:
        with self._lock:
            self.failed += 1
        self._publish(FAILURE_METRIC)

    def snapshot(self) -> Dict[str, Any]:
        """
        Current counters in the /email-stats response shape.

        Returns:
            Dict with totalAttempts, successful, failed and successRate
            (percentage rounded to two decimals, 0.0 before any attempt)
        """
        with self._lock:
            attempts, succeeded, failed = self.attempts, self.succeeded, self.failed

        rate = round(succeeded / attempts * 100, 2) if attempts else 0.0
        return {
            'totalAttempts': attempts,
            'successful': succeeded,
            'failed': failed,
            'successRate': rate
        }

    def _publish(self, metric_name: str) -> None:
        """Hook for sinks that forward events elsewhere."""


class CloudWatchMetrics(InMemoryMetrics):
    """In-memory counters that also publish each event to CloudWatch."""

    def __init__(self, namespace: str, environment: str = 'production', client: Any = None):
        super().__init__()
        self.namespace = namespace
        self.environment = environment
        self.client = client or boto3.client('cloudwatch', config=cloudwatch_config)
        logger.info(f"CloudWatch metrics enabled: namespace={namespace}")

    def _publish(self, metric_name: str) -> None:
        try:
            self.client.put_metric_data(
                Namespace=self.namespace,
                MetricData=[{
                    'MetricName': metric_name,
                    'Dimensions': [{'Name': 'Environment', 'Value': self.environment}],
                    'Value': 1,
                    'Unit': 'Count'
                }]
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Failed to publish {metric_name} to CloudWatch: {e}")


def create_metrics_sink(environ: Optional[Dict[str, str]] = None) -> InMemoryMetrics:
    """
    Pick the metrics sink for this container.

    Returns:
        CloudWatchMetrics if METRICS_NAMESPACE is set, otherwise InMemoryMetrics
    """
    environ = os.environ if environ is None else environ
    namespace = environ.get('METRICS_NAMESPACE', '')
    if namespace:
        return CloudWatchMetrics(
            namespace,
            environment=environ.get('ENVIRONMENT') or 'production'
        )
    return InMemoryMetrics()
