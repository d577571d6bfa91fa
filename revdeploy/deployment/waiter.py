#!/usr/bin/env python3
"""
Bounded polling for deployment completion.

The service reports status on a fixed cadence, so a timeout in minutes is
turned into a number of poll attempts rather than tracked as a wall clock
deadline. Slow poll calls can therefore stretch the real wait past the
nominal timeout.
"""

import math
import time

from botocore.exceptions import BotoCoreError, ClientError

from .service import FAILURE_STATES, SUCCEEDED
from ..exceptions import DeploymentWaitFailed

# CodeDeploy's own deploymentSuccessful waiter polls every 15 seconds
POLL_INTERVAL_SECONDS = 15


class WaiterExhausted(Exception):
    def __init__(self, attempts, last_result=None):
        super().__init__(f"Max attempts exceeded ({attempts})")
        self.attempts = attempts
        self.last_result = last_result


class WaiterFailureState(Exception):
    def __init__(self, result):
        super().__init__(f"Waiter encountered a terminal failure state: {result}")
        self.result = result


def max_attempts_for_timeout(timeout_minutes, interval=POLL_INTERVAL_SECONDS):
    """round(timeout * 60 / interval), rounding halves up, at least one attempt."""
    attempts = math.floor(timeout_minutes * 60 / interval + 0.5)
    return max(1, int(attempts))


class BoundedPoller:
    """
    Calls poll() until is_success(result) or is_failure(result), sleeping
    interval seconds between attempts, for at most max_attempts calls.
    """

    def __init__(self, poll, is_success, is_failure, max_attempts,
                 interval=POLL_INTERVAL_SECONDS, sleep=time.sleep, on_attempt=None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.poll = poll
        self.is_success = is_success
        self.is_failure = is_failure
        self.max_attempts = max_attempts
        self.interval = interval
        self.sleep = sleep
        self.on_attempt = on_attempt

    def run(self):
        result = None
        for attempt in range(1, self.max_attempts + 1):
            result = self.poll()
            if self.on_attempt:
                self.on_attempt(attempt, result)
            if self.is_success(result):
                return result
            if self.is_failure(result):
                raise WaiterFailureState(result)
            if attempt < self.max_attempts:
                self.sleep(self.interval)
        raise WaiterExhausted(self.max_attempts, result)


def _wait_failed(application_name, deployment_id, cause):
    return DeploymentWaitFailed(
        f"Deployment failed for application {application_name}: {cause}",
        application=application_name, deployment_id=deployment_id
    )


def _describe(status):
    if status.message:
        return f"deployment {status.state}: {status.message}"
    return f"deployment {status.state}"


def wait_for_deployment_success(service, application_name, deployment_id, max_attempts,
                                interval=POLL_INTERVAL_SECONDS, sleep=time.sleep):
    """Block until the deployment succeeds, raising DeploymentWaitFailed otherwise."""
    def _log_attempt(attempt, status):
        print(f"  [{attempt}/{max_attempts}] status: {status.state}")

    poller = BoundedPoller(
        poll=lambda: service.get_deployment_status(deployment_id),
        is_success=lambda status: status.state == SUCCEEDED,
        is_failure=lambda status: status.state in FAILURE_STATES,
        max_attempts=max_attempts,
        interval=interval,
        sleep=sleep,
        on_attempt=_log_attempt,
    )

    try:
        return poller.run()
    except WaiterFailureState as e:
        raise _wait_failed(application_name, deployment_id, _describe(e.result)) from e
    except (WaiterExhausted, BotoCoreError, ClientError) as e:
        raise _wait_failed(application_name, deployment_id, str(e)) from e
