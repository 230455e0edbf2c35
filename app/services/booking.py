from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Set, Tuple

from app.clients.gateway import GatewayClient
from app.schemas.appointment import AppointmentInsert
from app.schemas.notification import Notification
from app.services.query_cache import QueryCache
from app.services.validation import Schema, email_format, max_length, one_of, required, validate

logger = logging.getLogger(__name__)

APPOINTMENTS_TABLE = "appointments"

SERVICE_LABELS: Dict[str, str] = {
    "haircut": "Hair Cut",
    "beard": "Beard Styling",
    "wash": "Hair Wash",
    "premium": "Premium Grooming",
}

SERVICE_PRICES: Dict[str, str] = {
    "haircut": "$35",
    "beard": "$25",
    "wash": "$15",
    "premium": "$75",
}

BOOKING_FIELDS: Tuple[str, ...] = ("firstName", "lastName", "email", "phone", "service", "datetime")

BOOKING_RULES: Schema = {
    "firstName": [
        required("First name is required"),
        max_length(50, "First name must be less than 50 characters"),
    ],
    "lastName": [
        required("Last name is required"),
        max_length(50, "Last name must be less than 50 characters"),
    ],
    "email": [
        required("Email is required"),
        email_format("Invalid email address"),
        max_length(255, "Email must be less than 255 characters"),
    ],
    "phone": [],
    "service": [
        required("Please select a service"),
        one_of(SERVICE_LABELS, "Please select a valid service"),
    ],
    "datetime": [
        required("Please select a date and time"),
    ],
}

VALIDATION_FAILED = "Please fix the errors in the form"
INVALID_DATETIME = "Invalid date/time"
BOOKING_SENT = "Booking request sent!"
BOOKING_FAILED = "Booking failed"
GENERIC_FAILURE = "Something went wrong. Please try again."
BOOKING_IN_PROGRESS = "Booking already received"

DUPLICATE_WINDOW_SECONDS = 30.0


class InvalidDateTime(ValueError):
    pass


def split_datetime(value: str) -> Tuple[str, str]:
    """Split a ``datetime-local`` value into ``(YYYY-MM-DD, HH:MM:SS)``."""

    date_part, _, time_part = value.partition("T")
    hours_minutes = time_part[:5]
    if not date_part or not hours_minutes:
        raise InvalidDateTime(value)
    return date_part, f"{hours_minutes}:00"


def service_label(key: str) -> str:
    return SERVICE_LABELS.get(key, key)


def build_appointment(values: Mapping[str, str]) -> AppointmentInsert:
    appointment_date, appointment_time = split_datetime(values["datetime"])
    return AppointmentInsert(
        customer_name=f"{values['firstName'].strip()} {values['lastName'].strip()}",
        customer_phone=values.get("phone") or None,
        customer_email=values["email"],
        service_name=service_label(values["service"]),
        appointment_date=appointment_date,
        appointment_time=appointment_time,
    )


@dataclass
class BookingOutcome:
    ok: bool
    submitted: bool = False
    notification: Optional[Notification] = None
    errors: Dict[str, str] = field(default_factory=dict)


class BookingService:
    """Validates a booking request and inserts the appointment row."""

    def __init__(self, gateway: GatewayClient, *, cache: QueryCache) -> None:
        self._gateway = gateway
        self._cache = cache

    async def submit(self, data: Mapping[str, Optional[str]]) -> BookingOutcome:
        validation = validate(BOOKING_RULES, data)
        if not validation.ok:
            logger.info("Booking rejected by validation: %s", sorted(validation.errors))
            return BookingOutcome(
                ok=False,
                notification=Notification.failure(VALIDATION_FAILED),
                errors=validation.errors,
            )

        try:
            appointment = build_appointment(validation.values)
        except InvalidDateTime:
            logger.info("Booking rejected: unusable date/time %r", validation.values["datetime"])
            return BookingOutcome(ok=False, notification=Notification.failure(INVALID_DATETIME))

        logger.info("Booking %s for %s", appointment.service_name, appointment.customer_name)
        result = await self._gateway.insert(APPOINTMENTS_TABLE, appointment.model_dump())
        if not result.ok:
            return BookingOutcome(
                ok=False,
                submitted=True,
                notification=Notification.failure(BOOKING_FAILED, result.message_or(GENERIC_FAILURE)),
            )

        self._cache.invalidate((APPOINTMENTS_TABLE,))
        self._cache.invalidate(("dashboard",))
        return BookingOutcome(
            ok=True,
            submitted=True,
            notification=Notification.success(
                BOOKING_SENT, "We'll confirm your appointment shortly."
            ),
        )


class BookingForm:
    """State of one booking form: field values, inline errors and the in-flight flag."""

    def __init__(self, values: Mapping[str, Optional[str]] | None = None) -> None:
        self.values: Dict[str, str] = {name: "" for name in BOOKING_FIELDS}
        for name, value in (values or {}).items():
            if name in self.values and value is not None:
                self.values[name] = value
        self.errors: Dict[str, str] = {}
        self.submitting = False

    def edit(self, name: str, value: str) -> None:
        self.values[name] = value
        # Only the edited field's error goes away; the rest wait for the next submit.
        self.errors.pop(name, None)

    def reset(self) -> None:
        self.values = {name: "" for name in BOOKING_FIELDS}
        self.errors = {}

    async def submit(self, service: BookingService) -> Optional[BookingOutcome]:
        """Submit once; returns ``None`` when a submission is already in flight."""

        if self.submitting:
            logger.debug("Ignoring duplicate booking submission")
            return None
        self.submitting = True
        try:
            outcome = await service.submit(self.values)
            if outcome.ok:
                self.reset()
            else:
                self.errors = dict(outcome.errors)
            return outcome
        finally:
            self.submitting = False


BookingKey = Tuple[str, ...]


def booking_key(values: Mapping[str, Optional[str]]) -> BookingKey:
    """Identity of a booking request: trimmed, case-folded field values."""

    return tuple((values.get(name) or "").strip().casefold() for name in BOOKING_FIELDS)


class SubmissionGuard:
    """Process-wide record of booking requests in flight or just accepted.

    A request whose key is in flight, or was accepted within ``window``
    seconds, is refused. Failed submissions release their key so the
    customer can retry at once.
    """

    def __init__(self, window: float = DUPLICATE_WINDOW_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self._window = window
        self._clock = clock
        self._in_flight: Set[BookingKey] = set()
        self._accepted: Dict[BookingKey, float] = {}

    def _expire(self) -> None:
        cutoff = self._clock() - self._window
        for key in [key for key, at in self._accepted.items() if at < cutoff]:
            del self._accepted[key]

    def claim(self, key: BookingKey) -> bool:
        self._expire()
        if key in self._in_flight or key in self._accepted:
            return False
        self._in_flight.add(key)
        return True

    def release(self, key: BookingKey, *, accepted: bool) -> None:
        self._in_flight.discard(key)
        if accepted:
            self._accepted[key] = self._clock()

    def clear(self) -> None:
        self._in_flight.clear()
        self._accepted.clear()
