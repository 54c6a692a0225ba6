import json
import boto3
import os
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
lambda_client = boto3.client('lambda')

# Smoke tests: (name, event, expected statusCode)
# The invalid submission must be rejected before any mail is sent.
SMOKE_TESTS = [
    (
        'health',
        {'httpMethod': 'GET', 'path': '/health'},
        200
    ),
    (
        'invalid-submission',
        {
            'httpMethod': 'POST',
            'path': '/contact',
            'body': json.dumps({
                'firstName': 'Pre',
                'lastName': 'Deployment',
                'email': 'not-an-email',
                'message': 'Smoke test'
            })
        },
        400
    ),
]


def invoke_smoke_test(target_function, name, event, expected_status):
    """Invoke the new version with one event and check the response status."""
    logger.info(f"Smoke test '{name}' on {target_function}")

    response = lambda_client.invoke(
        FunctionName=target_function,
        InvocationType='RequestResponse',
        Payload=json.dumps(event)
    )

    response_payload = json.loads(response['Payload'].read())
    logger.info(f"Test response: {json.dumps(response_payload)}")

    if response.get('FunctionError'):
        raise Exception(f"Function returned error: {response_payload}")

    if response.get('StatusCode') != 200:
        raise Exception(f"Unexpected invoke status code: {response.get('StatusCode')}")

    if response_payload.get('statusCode') != expected_status:
        raise Exception(
            f"Smoke test '{name}' expected {expected_status}, "
            f"got {response_payload.get('statusCode')}"
        )


def lambda_handler(event, context):
    """
    Pre-traffic hook for CodeDeploy.
    Runs smoke tests against the new version before shifting traffic.
    """
    logger.info(f"Pre-traffic hook triggered: {json.dumps(event)}")

    deployment_id = event['DeploymentId']
    lifecycle_event_hook_execution_id = event['LifecycleEventHookExecutionId']

    try:
        target_function = os.environ.get('TARGET_FUNCTION')
        if not target_function:
            raise Exception("TARGET_FUNCTION environment variable is not set")

        for name, test_event, expected_status in SMOKE_TESTS:
            invoke_smoke_test(target_function, name, test_event, expected_status)

        logger.info("Pre-traffic validation passed")

        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Succeeded'
        )

        return {
            'statusCode': 200,
            'body': json.dumps('Pre-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Pre-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will prevent deployment
        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Failed'
        )

        return {
            'statusCode': 500,
            'body': json.dumps(f'Pre-traffic validation failed: {str(e)}')
        }
