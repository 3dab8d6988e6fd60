"""
Change Notifier - tells viewers that a tenant's jobs (or one job's activity)
changed, so they can re-fetch.

A signal carries no row data. Delivery is at-least-once liveness: several
changes may arrive as one signal, and a subscriber that was not connected
misses the signal entirely and must re-fetch on reconnect. Handlers must be
idempotent re-fetches.

Signals go to in-process callbacks registered with subscribe() and to the
Channels layer groups that the websocket consumers listen on.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

COMPANY_SCOPE = "company"
JOB_ACTIVITY_SCOPE = "job_activity"

# Channels message type, routed to the consumers' job_changed handler.
CHANNEL_MESSAGE_TYPE = "job.changed"


def company_group_name(company_id: Any) -> str:
    return f"jobs-company-{company_id}"


def job_activity_group_name(job_id: Any) -> str:
    return f"activity-job-{job_id}"


GROUP_NAMERS = {
    COMPANY_SCOPE: company_group_name,
    JOB_ACTIVITY_SCOPE: job_activity_group_name,
}


@dataclass(frozen=True)
class ChangeSignal:
    scope: str
    key: str
    reason: str = "changed"

    def as_message(self) -> Dict[str, str]:
        return {"scope": self.scope, "key": self.key, "reason": self.reason}


OnChange = Callable[[ChangeSignal], Any]


@dataclass(eq=False)
class Subscription:
    notifier: "ChangeNotifier"
    scope: str
    key: str
    callback: OnChange
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    active: bool = True

    def unsubscribe(self) -> None:
        self.notifier.unsubscribe(self)


class ChangeNotifier:
    def __init__(self, use_channel_layer: bool = True) -> None:
        self._subscriptions: Dict[Tuple[str, str], Dict[uuid.UUID, Subscription]] = {}
        self._lock = threading.Lock()
        self._local = threading.local()
        self.use_channel_layer = use_channel_layer

    # Registration

    def subscribe(self, company_id: Any, on_change: OnChange) -> Subscription:
        """Register ``on_change`` for every job change within one company."""
        return self._register(COMPANY_SCOPE, company_id, on_change)

    def subscribe_job_activity(self, job_id: Any, on_change: OnChange) -> Subscription:
        return self._register(JOB_ACTIVITY_SCOPE, job_id, on_change)

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription. Calling it twice is harmless."""
        with self._lock:
            bucket = self._subscriptions.get((subscription.scope, subscription.key))
            if bucket is not None:
                bucket.pop(subscription.id, None)
                if not bucket:
                    self._subscriptions.pop((subscription.scope, subscription.key), None)
            subscription.active = False

    def subscriber_count(self, scope: str, key: Any) -> int:
        with self._lock:
            return len(self._subscriptions.get((scope, str(key)), {}))

    def _register(self, scope: str, key: Any, on_change: OnChange) -> Subscription:
        subscription = Subscription(
            notifier=self, scope=scope, key=str(key), callback=on_change
        )
        with self._lock:
            bucket = self._subscriptions.setdefault((scope, subscription.key), {})
            bucket[subscription.id] = subscription
        logger.debug(f"Subscribed {subscription.id} to {scope}:{subscription.key}")
        return subscription

    # Publishing

    def notify_company(self, company_id: Any, reason: str = "changed") -> None:
        self.notify(ChangeSignal(COMPANY_SCOPE, str(company_id), reason))

    def notify_job_activity(self, job_id: Any, reason: str = "changed") -> None:
        self.notify(ChangeSignal(JOB_ACTIVITY_SCOPE, str(job_id), reason))

    def notify(self, signal: ChangeSignal) -> None:
        pending = self._pending()
        if pending is not None:
            # Inside coalesce(): keep the first signal per key
            pending.setdefault((signal.scope, signal.key), signal)
            return
        self._deliver(signal)

    @contextmanager
    def coalesce(self) -> Iterator[None]:
        """
        Collect signals raised inside the block and deliver at most one per
        (scope, key) when the outermost block exits.
        """
        depth = getattr(self._local, "depth", 0)
        if depth == 0:
            self._local.pending = {}
        self._local.depth = depth + 1
        try:
            yield
        finally:
            self._local.depth -= 1
            if self._local.depth == 0:
                pending = self._local.pending
                self._local.pending = None
                for signal in pending.values():
                    self._deliver(signal)

    def _pending(self) -> Optional[Dict[Tuple[str, str], ChangeSignal]]:
        if getattr(self._local, "depth", 0) > 0:
            return self._local.pending
        return None

    def _deliver(self, signal: ChangeSignal) -> None:
        with self._lock:
            targets: List[Subscription] = list(
                self._subscriptions.get((signal.scope, signal.key), {}).values()
            )

        for subscription in targets:
            if not subscription.active:
                continue
            try:
                subscription.callback(signal)
            except Exception as exc:
                # A broken subscriber must never fail the writer
                logger.exception(
                    f"Change subscriber {subscription.id} failed for "
                    f"{signal.scope}:{signal.key}: {exc}"
                )

        if self.use_channel_layer:
            self._broadcast(signal)

        logger.info(
            f"Change signal {signal.scope}:{signal.key} ({signal.reason}) "
            f"delivered to {len(targets)} local subscriber(s)"
        )

    def _broadcast(self, signal: ChangeSignal) -> None:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        group = GROUP_NAMERS[signal.scope](signal.key)
        try:
            async_to_sync(channel_layer.group_send)(
                group, {"type": CHANNEL_MESSAGE_TYPE, **signal.as_message()}
            )
        except Exception as exc:
            logger.warning(f"Channel layer send to {group} failed: {exc}")


# Process-wide notifier used by the signal handlers and consumers.
notifier = ChangeNotifier()
