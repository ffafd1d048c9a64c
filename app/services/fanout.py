"""
Drive notification fan-out.

Runs after a drive create/update has committed, inside a Celery worker,
never on the request path. Push and WhatsApp go out concurrently; push
batches run in parallel on a bounded pool, WhatsApp recipients go one by one.

Nothing raised here reaches the admin who saved the drive: every failure
becomes a DispatchOutcome and a log line.
"""
import enum
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from app.config import settings
from app.integrations.push import PUSH_BATCH_LIMIT, PushGateway
from app.integrations.retry import call_with_retry
from app.integrations.whatsapp import WhatsAppGateway
from app.services.dispatch import (
    Channel,
    ChannelSummary,
    DispatchOutcome,
    NotificationTarget,
    mask,
)
from app.services.drive_snapshot import DriveSnapshot
from app.services.eligibility import EligibilityEvaluator
from app.services.errors import ChannelConfigError, DispatchError, NotFoundError
from app.services.recipients import resolve_push_targets, resolve_whatsapp_targets

logger = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"


PUSH_TITLES = {
    EventKind.CREATED: "New Placement Drive!",
    EventKind.UPDATED: "Placement Drive Updated",
}
PUSH_BODIES = {
    EventKind.CREATED: "{company} is hiring for {role}. Apply before {deadline}. Check eligibility now!",
    EventKind.UPDATED: (
        "Updates have been made to {company} ({role}). Deadline: {deadline}. "
        "Check for changes or deadline extensions."
    ),
}
PUSH_DATA_TYPES = {
    EventKind.CREATED: "new_drive",
    EventKind.UPDATED: "drive_update",
}


def chunk(items: List, size: int) -> List[List]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def build_push_message(snapshot: DriveSnapshot, event: EventKind) -> Dict:
    body = PUSH_BODIES[event].format(
        company=snapshot.company_name,
        role=snapshot.job_role,
        deadline=snapshot.deadline.strftime("%d %b %Y, %H:%M"),
    )
    return {
        "title": PUSH_TITLES[event],
        "body": body,
        "data": {"drive_id": str(snapshot.id), "type": PUSH_DATA_TYPES[event]},
    }


def build_template_components(snapshot: DriveSnapshot) -> List[Dict]:
    """Body parameters {{1}}=company, {{2}}=role, {{3}}=deadline."""
    return [
        {
            "type": "body",
            "parameters": [
                {"type": "text", "text": snapshot.company_name},
                {"type": "text", "text": snapshot.job_role},
                {"type": "text", "text": snapshot.deadline.strftime("%d %b")},
            ],
        }
    ]


@dataclass
class FanoutSummary:
    drive_id: int
    event: EventKind
    eligible: int = 0
    push: Optional[ChannelSummary] = None
    whatsapp: Optional[ChannelSummary] = None
    aborted: Optional[str] = None
    outcomes: List[DispatchOutcome] = field(default_factory=list)

    def as_log_dict(self) -> dict:
        result = {"drive_id": self.drive_id, "event": self.event.value, "eligible": self.eligible}
        if self.aborted:
            result["aborted"] = self.aborted
        for name, summary in (("push", self.push), ("whatsapp", self.whatsapp)):
            if summary is not None:
                result[name] = {
                    "delivered": summary.delivered,
                    "attempted": summary.attempted,
                    "failed": summary.failed,
                    "skipped": summary.skipped,
                    "channel_skipped": summary.channel_skipped,
                }
        return result


class FanoutCoordinator:
    def __init__(
        self,
        evaluator: EligibilityEvaluator,
        drive_store,
        push_gateway_factory: Callable = PushGateway.from_settings,
        whatsapp_gateway_factory: Callable = WhatsAppGateway.from_settings,
        max_inflight_batches: int = 4,
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        whatsapp_templates: Optional[Dict[EventKind, str]] = None,
        whatsapp_language_code: str = "en_US",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.evaluator = evaluator
        self.drive_store = drive_store
        self.push_gateway_factory = push_gateway_factory
        self.whatsapp_gateway_factory = whatsapp_gateway_factory
        self.max_inflight_batches = max(1, max_inflight_batches)
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.whatsapp_templates = whatsapp_templates or {
            EventKind.CREATED: "new_drive_alert",
            EventKind.UPDATED: "drive_update_alert",
        }
        self.whatsapp_language_code = whatsapp_language_code
        self.sleep = sleep

    def run(self, snapshot: DriveSnapshot, event: EventKind) -> FanoutSummary:
        event = EventKind(event)
        summary = FanoutSummary(drive_id=snapshot.id, event=event)

        try:
            if not self.drive_store.exists(snapshot.id):
                raise NotFoundError(f"drive {snapshot.id} no longer exists")
            eligible = self.evaluator.evaluate(snapshot)
        except NotFoundError as e:
            logger.info("Fan-out for drive %s aborted: %s", snapshot.id, e)
            summary.aborted = "drive_not_found"
            return summary
        except Exception as e:
            logger.error("Fan-out for drive %s aborted, eligibility lookup failed: %s", snapshot.id, e)
            summary.aborted = "eligibility_lookup_failed"
            return summary

        summary.eligible = len(eligible)
        if not eligible:
            logger.info("Fan-out for drive %s: no eligible students", snapshot.id)

        push_targets, push_skipped = resolve_push_targets(eligible)
        wa_targets, wa_skipped = resolve_whatsapp_targets(eligible)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix=f"fanout-{snapshot.id}") as pool:
            push_future = pool.submit(self._guard, Channel.PUSH, self._dispatch_push, snapshot, event, push_targets)
            wa_future = pool.submit(self._guard, Channel.WHATSAPP, self._dispatch_whatsapp, snapshot, event, wa_targets)
            push_outcomes = push_skipped + push_future.result()
            wa_outcomes = wa_skipped + wa_future.result()

        summary.push = ChannelSummary.from_outcomes(Channel.PUSH, push_outcomes)
        summary.whatsapp = ChannelSummary.from_outcomes(Channel.WHATSAPP, wa_outcomes)
        summary.push.channel_skipped = any(o.reason == "channel_unavailable" for o in push_outcomes)
        summary.whatsapp.channel_skipped = any(o.reason == "channel_unavailable" for o in wa_outcomes)
        summary.outcomes = push_outcomes + wa_outcomes

        logger.info(
            "Fan-out for drive %s (%s): push %d/%d delivered, whatsapp %d/%d delivered, %d eligible",
            snapshot.id, event.value,
            summary.push.delivered, summary.push.attempted,
            summary.whatsapp.delivered, summary.whatsapp.attempted,
            summary.eligible,
        )
        return summary

    def _guard(self, channel: Channel, fn, snapshot: DriveSnapshot, event: EventKind,
               targets: List[NotificationTarget]) -> List[DispatchOutcome]:
        """Run one channel; an unexpected error fails the channel, never the sibling."""
        try:
            return fn(snapshot, event, targets)
        except Exception as e:
            logger.exception("Fan-out %s channel crashed for drive %s", channel.value, snapshot.id)
            return [DispatchOutcome.failed(channel, f"channel_error: {e}", count=len(targets))]

    def _open_gateway(self, channel: Channel, factory: Callable, snapshot: DriveSnapshot, targets):
        try:
            return factory(), None
        except ChannelConfigError as e:
            logger.warning(
                "Skipping %s for drive %s (%d recipients): %s",
                channel.value, snapshot.id, len(targets), e,
            )
            return None, [DispatchOutcome.skipped(channel, "channel_unavailable", count=len(targets))]

    # ── push ────────────────────────────────────────────────────────────

    def _dispatch_push(self, snapshot: DriveSnapshot, event: EventKind,
                       targets: List[NotificationTarget]) -> List[DispatchOutcome]:
        if not targets:
            logger.info("Push: no eligible students with tokens for drive %s", snapshot.id)
            return []

        gateway, skipped = self._open_gateway(Channel.PUSH, self.push_gateway_factory, snapshot, targets)
        if gateway is None:
            return skipped

        message = build_push_message(snapshot, event)
        batches = chunk([t.address for t in targets], PUSH_BATCH_LIMIT)
        workers = min(self.max_inflight_batches, len(batches))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"push-{snapshot.id}") as pool:
            futures = [
                pool.submit(self._send_push_batch, gateway, snapshot, index, batch, message)
                for index, batch in enumerate(batches, start=1)
            ]
            outcomes = []
            for future in futures:
                outcomes.extend(future.result())
        return outcomes

    def _send_push_batch(self, gateway, snapshot: DriveSnapshot, index: int,
                         tokens: List[str], message: Dict) -> List[DispatchOutcome]:
        context = f"drive={snapshot.id} batch={index} size={len(tokens)}"
        try:
            success = call_with_retry(
                lambda: gateway.send_multicast(tokens, message["title"], message["body"], message["data"]),
                max_retries=self.max_retries,
                backoff_seconds=self.backoff_seconds,
                label=f"push batch {index} for drive {snapshot.id}",
                sleep=self.sleep,
            )
        except DispatchError as e:
            logger.error("Push batch failed (%s): %s", context, e.reason)
            return [DispatchOutcome.failed(Channel.PUSH, e.reason, count=len(tokens), context=context)]
        except Exception as e:
            logger.error("Push batch failed unexpectedly (%s): %s", context, e)
            return [DispatchOutcome.failed(Channel.PUSH, str(e), count=len(tokens), context=context)]

        success = max(0, min(int(success or 0), len(tokens)))
        outcomes = []
        if success:
            outcomes.append(DispatchOutcome.delivered(Channel.PUSH, count=success, context=context))
        if success < len(tokens):
            outcomes.append(DispatchOutcome.failed(
                Channel.PUSH, "rejected_by_provider", count=len(tokens) - success, context=context,
            ))
        return outcomes

    # ── whatsapp ────────────────────────────────────────────────────────

    def _dispatch_whatsapp(self, snapshot: DriveSnapshot, event: EventKind,
                           targets: List[NotificationTarget]) -> List[DispatchOutcome]:
        if not targets:
            logger.info("WhatsApp: no eligible students with numbers for drive %s", snapshot.id)
            return []

        gateway, skipped = self._open_gateway(Channel.WHATSAPP, self.whatsapp_gateway_factory, snapshot, targets)
        if gateway is None:
            return skipped

        template = self.whatsapp_templates[event]
        components = build_template_components(snapshot)
        send_id = f"drive-{snapshot.id}-{event.value}"

        outcomes = []
        for target in targets:
            context = f"drive={snapshot.id} student={target.student_id} to={mask(target.address)}"
            try:
                call_with_retry(
                    lambda: gateway.send_template(
                        target.address, template, self.whatsapp_language_code, components, send_id=send_id,
                    ),
                    max_retries=self.max_retries,
                    backoff_seconds=self.backoff_seconds,
                    label=f"whatsapp to {mask(target.address)}",
                    sleep=self.sleep,
                )
                outcomes.append(DispatchOutcome.delivered(Channel.WHATSAPP, context=context))
            except DispatchError as e:
                logger.error("WhatsApp send failed (%s): %s", context, e.reason)
                outcomes.append(DispatchOutcome.failed(Channel.WHATSAPP, e.reason, context=context))
            except Exception as e:
                logger.error("WhatsApp send failed unexpectedly (%s): %s", context, e)
                outcomes.append(DispatchOutcome.failed(Channel.WHATSAPP, str(e), context=context))

        return outcomes


def build_coordinator(db) -> FanoutCoordinator:
    """Wire the coordinator against the SQL stores and the configured gateways."""
    from app.repositories.drives import SqlDriveStore
    from app.repositories.students import SqlStudentProfileStore

    return FanoutCoordinator(
        evaluator=EligibilityEvaluator(SqlStudentProfileStore(db)),
        drive_store=SqlDriveStore(db),
        max_inflight_batches=settings.fanout_max_inflight_batches,
        max_retries=settings.gateway_max_retries,
        backoff_seconds=settings.gateway_backoff_seconds,
        whatsapp_templates={
            EventKind.CREATED: settings.whatsapp_template_created,
            EventKind.UPDATED: settings.whatsapp_template_updated,
        },
        whatsapp_language_code=settings.whatsapp_language_code,
    )
