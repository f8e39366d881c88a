"""
Dead man's switch.

A user sets a check-in interval (7-365 days) and picks trusted contacts. Each
check-in pushes the due date forward. Once a check-in is missed:

    day 0 overdue  -> reminder 1
    day 1 overdue  -> reminder 2
    day 2 overdue  -> reminder 3
    day 3+ overdue, 3 reminders sent -> trigger: one access code per contact

evaluate() is the pure decision; sweep() applies it to every due switch.
Reminders are telemetry events only, no email is sent.

Run a sweep from cron with the `legacy-diary-sweep` console script.
"""

from __future__ import annotations

import argparse
import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta

from dotenv import load_dotenv

from legacy_diary.config import (
    SWITCH_GRACE_DAYS,
    SWITCH_MAX_INTERVAL_DAYS,
    SWITCH_MAX_NOTIFICATIONS,
    SWITCH_MIN_INTERVAL_DAYS,
)
from legacy_diary.contacts.repository import TrustedContactRepository
from legacy_diary.errors import NotFoundError, StateConflictError
from legacy_diary.legacy import access
from legacy_diary.legacy.models import (
    DeadMansSwitch,
    LegacyAccessCode,
    SwitchAction,
    SwitchConfig,
    SwitchStatus,
)
from legacy_diary.legacy.repository import DeadMansSwitchRepository, LegacyAccessRepository
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import counter, log_event
from legacy_diary.utils.clock import ensure_utc, utc_now
from legacy_diary.utils.validators import ValidationError

logger = get_logger(__name__)

MAX_CUSTOM_MESSAGE_LENGTH = 5000


def evaluate(switch: DeadMansSwitch, now: datetime) -> SwitchAction:
    """
    Decide what a sweep at `now` should do with this switch.

    Not active or not yet due -> NONE. Overdue -> NOTIFY when no reminder has
    gone out yet on the current overdue day, up to three reminders, and never
    more reminders than overdue days (counting day 0). Overdue by
    SWITCH_GRACE_DAYS or more, all reminders sent and a full day since the last
    one -> TRIGGER.
    """
    if switch.status != SwitchStatus.ACTIVE.value:
        return SwitchAction.NONE

    now = ensure_utc(now)
    due = ensure_utc(switch.next_check_in_due)
    if now < due:
        return SwitchAction.NONE

    days_overdue = (now - due).days
    last_notified = ensure_utc(switch.last_notified_at) if switch.last_notified_at else None

    if switch.notifications_sent >= SWITCH_MAX_NOTIFICATIONS:
        if days_overdue < SWITCH_GRACE_DAYS:
            return SwitchAction.NONE
        if last_notified is not None and now - last_notified < timedelta(days=1):
            return SwitchAction.NONE
        return SwitchAction.TRIGGER

    if switch.notifications_sent >= days_overdue + 1:
        return SwitchAction.NONE

    if last_notified is not None and last_notified >= due:
        if (last_notified - due).days >= days_overdue:
            return SwitchAction.NONE

    return SwitchAction.NOTIFY


def _validate_interval(days: int) -> int:
    if not SWITCH_MIN_INTERVAL_DAYS <= days <= SWITCH_MAX_INTERVAL_DAYS:
        raise ValidationError(
            f"Check-in interval must be between {SWITCH_MIN_INTERVAL_DAYS} "
            f"and {SWITCH_MAX_INTERVAL_DAYS} days"
        )
    return days


def _validate_contacts(user_id: str, contact_ids: list[str]) -> list[str]:
    owned = {c.id for c in TrustedContactRepository.list_by_user(user_id)}
    selected: list[str] = []
    for contact_id in contact_ids:
        if contact_id not in owned:
            raise NotFoundError("Trusted contact not found")
        if contact_id not in selected:
            selected.append(contact_id)
    return selected


def get_switch(user_id: str) -> DeadMansSwitch | None:
    return DeadMansSwitchRepository.get_by_user(user_id)


def configure(user_id: str, config: SwitchConfig, now: datetime | None = None) -> DeadMansSwitch:
    """
    Create or replace the user's switch; it becomes active and the first
    check-in is due one interval from now.

    Raises:
        ValidationError: Interval out of range or message too long
        NotFoundError: A contact id is not one of the user's contacts
        StateConflictError: The switch has already triggered
    """
    now = ensure_utc(now or utc_now())
    interval = _validate_interval(config.check_in_interval_days)
    contact_ids = _validate_contacts(user_id, config.trusted_contact_ids)

    message = (config.custom_message or "").strip() or None
    if message and len(message) > MAX_CUSTOM_MESSAGE_LENGTH:
        raise ValidationError(f"Message exceeds maximum length of {MAX_CUSTOM_MESSAGE_LENGTH}")

    existing = DeadMansSwitchRepository.get_by_user(user_id)
    if existing is not None and existing.status == SwitchStatus.TRIGGERED.value:
        raise StateConflictError("The switch has already been triggered")

    switch = DeadMansSwitch(
        id=existing.id if existing else str(uuid.uuid4()),
        user_id=user_id,
        status=SwitchStatus.ACTIVE,
        check_in_interval_days=interval,
        last_check_in=now,
        next_check_in_due=now + timedelta(days=interval),
        notifications_sent=0,
        trusted_contact_ids=contact_ids,
        custom_message=message,
        created_at=existing.created_at if existing else now,
        updated_at=now,
    )
    DeadMansSwitchRepository.save(switch)
    log_event(
        "switch.configured",
        user_id=user_id,
        interval_days=interval,
        contacts=len(contact_ids),
    )
    return switch


def _require_switch(user_id: str) -> DeadMansSwitch:
    switch = DeadMansSwitchRepository.get_by_user(user_id)
    if switch is None:
        raise NotFoundError("No dead man's switch configured")
    if switch.status == SwitchStatus.TRIGGERED.value:
        raise StateConflictError("The switch has already been triggered")
    return switch


def check_in(user_id: str, now: datetime | None = None) -> DeadMansSwitch:
    """
    Reset the schedule and the reminder count. A paused switch stays paused.

    Raises:
        NotFoundError: No switch configured
        StateConflictError: The switch has already triggered
    """
    now = ensure_utc(now or utc_now())
    switch = _require_switch(user_id)

    switch.last_check_in = now
    switch.next_check_in_due = now + timedelta(days=switch.check_in_interval_days)
    switch.notifications_sent = 0
    switch.last_notified_at = None
    switch.updated_at = now
    DeadMansSwitchRepository.save(switch)

    counter("switch.check_ins")
    logger.info("User %s checked in; next due %s", user_id, switch.next_check_in_due.isoformat())
    return switch


def pause(user_id: str, now: datetime | None = None) -> DeadMansSwitch:
    """
    Raises:
        NotFoundError: No switch configured
        StateConflictError: The switch has already triggered
    """
    switch = _require_switch(user_id)
    switch.status = SwitchStatus.PAUSED
    switch.updated_at = ensure_utc(now or utc_now())
    DeadMansSwitchRepository.save(switch)
    log_event("switch.paused", user_id=user_id)
    return switch


def resume(user_id: str, now: datetime | None = None) -> DeadMansSwitch:
    """
    Re-activate a paused switch. Counts as a check-in.

    Raises:
        NotFoundError: No switch configured
        StateConflictError: The switch has already triggered
    """
    now = ensure_utc(now or utc_now())
    switch = _require_switch(user_id)
    switch.status = SwitchStatus.ACTIVE
    switch.last_check_in = now
    switch.next_check_in_due = now + timedelta(days=switch.check_in_interval_days)
    switch.notifications_sent = 0
    switch.last_notified_at = None
    switch.updated_at = now
    DeadMansSwitchRepository.save(switch)
    log_event("switch.resumed", user_id=user_id)
    return switch


def remove(user_id: str) -> bool:
    """Delete the user's switch. Codes already issued by a trigger stay active."""
    removed = DeadMansSwitchRepository.delete(user_id)
    if removed:
        log_event("switch.removed", user_id=user_id)
    return removed


@dataclass
class SweepReport:
    evaluated: int = 0
    notified: list[str] = field(default_factory=list)
    triggered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    codes_issued: int = 0


def _trigger(switch: DeadMansSwitch, now: datetime) -> int:
    """
    Issue one access code per selected contact, then mark the switch triggered.

    If issuing fails part way, codes from this attempt are revoked and the
    switch stays active so the next sweep can retry.
    """
    issued: list[LegacyAccessCode] = []
    try:
        for contact_id in switch.trusted_contact_ids:
            try:
                issued.append(access.issue_access_code(switch.user_id, contact_id))
            except NotFoundError:
                logger.warning(
                    "Skipping missing contact %s for user %s", contact_id, switch.user_id
                )
    except Exception:
        for code in issued:
            LegacyAccessRepository.deactivate(code.id)
        raise

    switch.status = SwitchStatus.TRIGGERED
    switch.updated_at = now
    DeadMansSwitchRepository.save(switch)

    log_event(
        "switch.triggered",
        user_id=switch.user_id,
        contacts=len(switch.trusted_contact_ids),
        codes_issued=len(issued),
    )
    return len(issued)


def sweep(now: datetime | None = None) -> SweepReport:
    """
    Evaluate every due, active switch and apply the decision.

    Side Effects:
        - Increments notifications_sent on reminded switches
        - Marks triggered switches and issues legacy access codes
        - Emits switch.reminder / switch.triggered telemetry events
    """
    now = ensure_utc(now or utc_now())
    report = SweepReport()

    for switch in DeadMansSwitchRepository.list_due(now):
        report.evaluated += 1
        action = evaluate(switch, now)

        if action == SwitchAction.NOTIFY:
            switch.notifications_sent += 1
            switch.last_notified_at = now
            switch.updated_at = now
            DeadMansSwitchRepository.save(switch)
            report.notified.append(switch.user_id)
            counter("switch.reminders")
            log_event(
                "switch.reminder",
                user_id=switch.user_id,
                reminder=switch.notifications_sent,
                due=switch.next_check_in_due.isoformat(),
            )
        elif action == SwitchAction.TRIGGER:
            try:
                report.codes_issued += _trigger(switch, now)
            except Exception as e:
                logger.error("Switch trigger failed for user %s: %s", switch.user_id, e)
                report.failed.append(switch.user_id)
                counter("switch.trigger_failures")
                continue
            report.triggered.append(switch.user_id)
            counter("switch.triggers")

    logger.info(
        "Switch sweep: evaluated=%d notified=%d triggered=%d failed=%d",
        report.evaluated,
        len(report.notified),
        len(report.triggered),
        len(report.failed),
    )
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one dead man's switch sweep")
    parser.add_argument(
        "--now",
        help="ISO-8601 timestamp to evaluate at (defaults to the current UTC time)",
    )
    args = parser.parse_args(argv)

    load_dotenv()

    from legacy_diary.infrastructure.database import init_database

    init_database()
    now = ensure_utc(datetime.fromisoformat(args.now)) if args.now else None
    report = sweep(now)
    print(json.dumps(asdict(report), indent=2))
    return 1 if report.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
