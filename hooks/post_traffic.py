import json
import boto3
import os
import logging
from datetime import datetime, timedelta, timezone

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
cloudwatch = boto3.client('cloudwatch')

# Window inspected after the traffic shift
WINDOW_MINUTES = 5


def count_delivery_failures(namespace, environment, window_minutes=WINDOW_MINUTES):
    """Sum of DeliveryFailed datapoints over the last window_minutes."""
    end_time = datetime.now(timezone.utc)
    start_time = end_time - timedelta(minutes=window_minutes)

    response = cloudwatch.get_metric_statistics(
        Namespace=namespace,
        MetricName='DeliveryFailed',
        Dimensions=[
            {
                'Name': 'Environment',
                'Value': environment
            }
        ],
        StartTime=start_time,
        EndTime=end_time,
        Period=window_minutes * 60,
        Statistics=['Sum']
    )

    logger.info(f"CloudWatch metrics: {json.dumps(response, default=str)}")
    return sum(point.get('Sum', 0) for point in response.get('Datapoints', []))


def lambda_handler(event, context):
    """
    Post-traffic hook for CodeDeploy.
    Fails the deployment when contact form deliveries started failing.
    """
    logger.info(f"Post-traffic hook triggered: {json.dumps(event)}")

    deployment_id = event['DeploymentId']
    lifecycle_event_hook_execution_id = event['LifecycleEventHookExecutionId']

    try:
        namespace = os.environ.get('METRICS_NAMESPACE', '')
        environment = os.environ.get('ENVIRONMENT') or 'production'
        max_failures = int(os.environ.get('MAX_DELIVERY_FAILURES', '0'))

        if namespace:
            failures = count_delivery_failures(namespace, environment)
            logger.info(f"Delivery failures in last {WINDOW_MINUTES} minutes: {failures}")

            if failures > max_failures:
                raise Exception(
                    f"Delivery failures too high: {failures} > {max_failures}"
                )
        else:
            logger.info("METRICS_NAMESPACE not set, skipping delivery metric check")

        logger.info("Post-traffic validation passed")

        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Succeeded'
        )

        return {
            'statusCode': 200,
            'body': json.dumps('Post-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Post-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will trigger rollback
        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Failed'
        )

        return {
            'statusCode': 500,
            'body': json.dumps(f'Post-traffic validation failed: {str(e)}')
        }
