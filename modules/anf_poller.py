"""
Polling of Azure NetApp Files resources until they reach a wanted state.

The ARM cache makes the control plane eventually consistent: right after a
create a Get may still answer 404, and right after a delete it may still return
the resource. ResourcePoller is the single place where the sample waits for the
real state to show up. It always sleeps the full interval before each
observation, including the first one, and never gives up before it has used its
whole attempt budget.

Three waiting modes exist:
    AWAIT_PRESENCE   a successful observation ends the wait
    AWAIT_ABSENCE    a failed observation ends the wait (the error is the signal)
    AWAIT_PREDICATE  a successful observation whose state satisfies a predicate
                     ends the wait (used for the replication mirror state)
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from azure.core.exceptions import ResourceNotFoundError

from modules.anf_exceptions import ObservationError, OperationCancelledError, WaitTimeoutError
from modules.anf_sdk import AnfClient
from modules.anf_uri import ResourceIdentity, ResourceLevel


DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_MAX_ATTEMPTS = 50


class WaitMode(Enum):
    AWAIT_PRESENCE = "presence"
    AWAIT_ABSENCE = "absence"
    AWAIT_PREDICATE = "predicate"


@dataclass(frozen=True)
class WaitPolicy:
    """
    How long and for what a poll waits.

    Attributes:
        interval: Seconds slept before every observation
        max_attempts: Upper bound on the number of observations
        mode: What ends the wait
        predicate: Condition over the observed state, AWAIT_PREDICATE only
    """
    interval: float = DEFAULT_INTERVAL_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    mode: WaitMode = WaitMode.AWAIT_PRESENCE
    predicate: Optional[Callable[[Any], bool]] = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval < 0:
            raise ValueError("interval cannot be negative")
        if (self.mode is WaitMode.AWAIT_PREDICATE) != (self.predicate is not None):
            raise ValueError("a predicate is required for, and only for, AWAIT_PREDICATE")

    @classmethod
    def presence(cls, interval: float = DEFAULT_INTERVAL_SECONDS, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> "WaitPolicy":
        return cls(interval, max_attempts, WaitMode.AWAIT_PRESENCE)

    @classmethod
    def absence(cls, interval: float = DEFAULT_INTERVAL_SECONDS, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> "WaitPolicy":
        return cls(interval, max_attempts, WaitMode.AWAIT_ABSENCE)

    @classmethod
    def until(
        cls,
        predicate: Callable[[Any], bool],
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> "WaitPolicy":
        return cls(interval, max_attempts, WaitMode.AWAIT_PREDICATE, predicate)


class OutcomeKind(Enum):
    PRESENT = "present"
    ABSENT = "absent"
    OBSERVATION_FAILED = "observation_failed"


@dataclass(frozen=True)
class PollOutcome:
    """Result of a single observation."""
    kind: OutcomeKind
    state: Any = None
    cause: Optional[Exception] = None

    @classmethod
    def present(cls, state: Any) -> "PollOutcome":
        return cls(OutcomeKind.PRESENT, state=state)

    @classmethod
    def absent(cls, cause: Optional[Exception] = None) -> "PollOutcome":
        return cls(OutcomeKind.ABSENT, cause=cause)

    @classmethod
    def failed(cls, cause: Exception) -> "PollOutcome":
        return cls(OutcomeKind.OBSERVATION_FAILED, cause=cause)

    @property
    def is_present(self) -> bool:
        return self.kind is OutcomeKind.PRESENT


def mirror_state_is(target: str) -> Callable[[Any], bool]:
    """Predicate matching a ReplicationStatus whose mirror state equals `target`."""
    def matches(status: Any) -> bool:
        current = getattr(status, "mirror_state", None)
        return current is not None and str(getattr(current, "value", current)).lower() == target.lower()
    return matches


class ResourcePoller:
    """Waits for ANF resources by repeatedly observing them through an AnfClient."""

    def __init__(
        self,
        client: AnfClient,
        sleep: Optional[Callable[[float], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.client = client
        self.cancel_event = cancel_event
        if sleep is None:
            # Waiting on the event wakes up as soon as it is set
            sleep = cancel_event.wait if cancel_event is not None else time.sleep
        self.sleep = sleep

    def _observer(self, identity: ResourceIdentity, check_replication: bool) -> Callable[[ResourceIdentity], Any]:
        """Resolve the observation call for the identity's level, once per poll."""
        if identity.level is ResourceLevel.VOLUME and check_replication:
            return self.client.get_replication_status
        observers = {
            ResourceLevel.ACCOUNT: self.client.get_account,
            ResourceLevel.POOL: self.client.get_pool,
            ResourceLevel.VOLUME: self.client.get_volume,
            ResourceLevel.SNAPSHOT: self.client.get_snapshot,
        }
        return observers[identity.level]

    @staticmethod
    def _observe(observer: Callable[[ResourceIdentity], Any], identity: ResourceIdentity) -> PollOutcome:
        try:
            return PollOutcome.present(observer(identity))
        except ResourceNotFoundError as e:
            return PollOutcome.absent(e)
        except Exception as e:
            return PollOutcome.failed(ObservationError(identity.resource_id, e))

    def observe(self, identity: ResourceIdentity, check_replication: bool = False) -> PollOutcome:
        """Perform a single observation without sleeping."""
        return self._observe(self._observer(identity, check_replication), identity)

    def _check_cancelled(self, identity: ResourceIdentity) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCancelledError(f"Wait for {identity.resource_id} was cancelled")

    def poll(self, identity: ResourceIdentity, policy: WaitPolicy, check_replication: bool = False) -> Any:
        """
        Observe `identity` until `policy` is satisfied.

        Args:
            identity: Resource to observe
            policy: Interval, attempt budget and wait mode
            check_replication: For volumes, observe the replication status
                instead of the volume itself

        Returns:
            The state that satisfied the policy (None for AWAIT_ABSENCE)

        Raises:
            WaitTimeoutError: If the attempts are exhausted
            OperationCancelledError: If the cancel event is set before or during a sleep
        """
        observer = self._observer(identity, check_replication)
        last: Optional[PollOutcome] = None
        last_state = None

        for attempt in range(1, policy.max_attempts + 1):
            self._check_cancelled(identity)
            self.sleep(policy.interval)
            self._check_cancelled(identity)
            last = self._observe(observer, identity)

            if last.is_present:
                last_state = last.state

            if policy.mode is WaitMode.AWAIT_ABSENCE:
                # Any failure counts as absence, not only a 404
                if not last.is_present:
                    logging.debug(
                        f"{identity.resource_id} gone after {attempt} attempt(s) ({last.kind.value}: {last.cause})"
                    )
                    return None
            elif last.is_present:
                if policy.mode is WaitMode.AWAIT_PRESENCE or policy.predicate(last.state):
                    logging.debug(f"{identity.resource_id} ready after {attempt} attempt(s)")
                    return last.state
            logging.debug(
                f"[{identity.name}] Attempt {attempt}/{policy.max_attempts}: {last.kind.value}"
            )

        last_error = None if last.is_present else last.cause
        if policy.mode is WaitMode.AWAIT_ABSENCE:
            message = f"exceeded number of retries: {policy.max_attempts}, {identity.resource_id} still exists"
        elif policy.mode is WaitMode.AWAIT_PRESENCE:
            message = (
                f"resource still not found after number of retries: {policy.max_attempts}, error: {last_error}"
            )
        else:
            message = (
                f"{identity.resource_id} did not reach the expected state after number of retries: "
                f"{policy.max_attempts}, last state: {last_state}, error: {last_error}"
            )
        raise WaitTimeoutError(
            message,
            resource_id=identity.resource_id,
            attempts=policy.max_attempts,
            last_state=last_state,
            last_error=last_error,
        )

    def wait_for_resource(
        self,
        resource_id: str,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        retries: int = DEFAULT_MAX_ATTEMPTS,
        check_replication: bool = False,
    ) -> Any:
        """Wait for a resource to be fully ready following a creation operation."""
        return self.poll(
            ResourceIdentity.parse(resource_id),
            WaitPolicy.presence(interval, retries),
            check_replication,
        )

    def wait_for_no_resource(
        self,
        resource_id: str,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        retries: int = DEFAULT_MAX_ATTEMPTS,
        check_replication: bool = False,
    ) -> None:
        """
        Wait for a resource to stop existing following a deletion.

        ARM may keep returning the cached resource for a while after it was
        deleted; the wait ends on the first failed Get.
        """
        self.poll(
            ResourceIdentity.parse(resource_id),
            WaitPolicy.absence(interval, retries),
            check_replication,
        )

    def wait_for_mirror_state(
        self,
        volume_id: str,
        mirror_state: str,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        retries: int = DEFAULT_MAX_ATTEMPTS,
    ) -> Any:
        """Wait for a volume's replication to report `mirror_state`; returns the status."""
        identity = ResourceIdentity.parse(volume_id)
        if not identity.is_volume():
            raise ValueError(f"Mirror state can only be observed on volumes, got {volume_id}")
        return self.poll(
            identity,
            WaitPolicy.until(mirror_state_is(mirror_state), interval, retries),
            check_replication=True,
        )
