from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from django.db.models import QuerySet, Sum
from django.utils import timezone

from .errors import BoostNotFound, ErrorKind, InvalidPhone, PaymentError
from .gateway import PayHeroClient
from .models import Boost
from .phone import normalize_phone

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Customer"


def create_boost(**fields) -> Boost:
    return Boost.objects.create(**fields)


def list_boosts() -> QuerySet[Boost]:
    return Boost.objects.all()


def get_boost(pk: int) -> Boost:
    try:
        return Boost.objects.get(pk=pk)
    except Boost.DoesNotExist:
        raise BoostNotFound(f"Boost {pk} not found.")


def boosts_for_identification_number(identification_number: str) -> QuerySet[Boost]:
    return Boost.objects.filter(identification_number=identification_number)


def get_boost_by_reference(reference: str | None) -> Optional[Boost]:
    if not reference:
        return None
    return Boost.objects.filter(external_reference=reference).first()


def delete_boost(pk: int) -> None:
    get_boost(pk).delete()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """
    Whole-calendar-day window, 00:00:00 to 23:59:59 in the project time zone.
    """
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    end = timezone.make_aware(datetime.combine(day, time(23, 59, 59)), tz)
    return start, end


def paid_boosts(start: datetime | None = None, end: datetime | None = None) -> QuerySet[Boost]:
    qs = Boost.objects.filter(paid=True)
    if start is not None:
        qs = qs.filter(payment_date__gte=start)
    if end is not None:
        qs = qs.filter(payment_date__lte=end)
    return qs


def paid_boosts_on(day: date) -> QuerySet[Boost]:
    return paid_boosts(*day_bounds(day))


def total_fees(start: datetime | None = None, end: datetime | None = None) -> Decimal:
    total = paid_boosts(start, end).aggregate(total=Sum("fee"))["total"]
    return total or Decimal("0")


def paid_count(start: datetime | None = None, end: datetime | None = None) -> int:
    return paid_boosts(start, end).count()


def mark_boost_paid(reference: str | None) -> Optional[Boost]:
    boost = get_boost_by_reference(reference)
    if boost is None:
        return None
    boost.mark_paid()
    return boost


def generate_reference() -> str:
    return f"BOOST-{uuid.uuid4()}"


@dataclass
class PaymentOutcome:
    reference: Optional[str] = None
    body: Optional[str] = None
    error: Optional[PaymentError] = None
    boost: Optional[Boost] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _release_claim(boost: Boost | None, reference: str) -> None:
    # The push was never accepted, so the boost can be paid again.
    if boost is None:
        return
    Boost.objects.filter(pk=boost.pk, external_reference=reference).update(external_reference=None)
    boost.external_reference = None


def initiate_boost_payment(
    gateway: PayHeroClient,
    phone: str,
    fee=None,
    customer_name: str | None = None,
    boost: Boost | None = None,
) -> PaymentOutcome:
    """
    Normalise the phone number and start a PayHero push for the fee.

    When a boost is given its fee is charged unless one is passed explicitly,
    and the generated reference is claimed on it before the push, so the
    callback can find it. The claim is released if the push is not accepted.
    """
    try:
        phone = normalize_phone(phone)
    except InvalidPhone as exc:
        return PaymentOutcome(error=PaymentError(ErrorKind.INVALID_PHONE, str(exc)))

    if boost is not None and fee is None:
        fee = boost.fee

    if fee is None:
        return PaymentOutcome(error=PaymentError(ErrorKind.UNEXPECTED, "Fee is required"))

    reference = generate_reference()

    if boost is not None:
        # Claim the boost before calling the gateway; a concurrent pay for
        # the same boost matches no row here.
        claimed = Boost.objects.filter(
            pk=boost.pk,
            paid=False,
            external_reference__isnull=True,
        ).update(external_reference=reference)
        if not claimed:
            return PaymentOutcome(
                error=PaymentError(ErrorKind.ALREADY_INITIATED, "Payment already initiated for this boost"),
                boost=boost,
            )
        boost.external_reference = reference

    try:
        result = gateway.initiate(fee, phone, customer_name or DEFAULT_CUSTOMER_NAME, reference)
    except Exception:
        _release_claim(boost, reference)
        raise
    if not result.ok:
        _release_claim(boost, reference)
        return PaymentOutcome(reference=reference, error=result.error, boost=boost)

    if boost is not None:
        logger.info("Linked reference %s to boost %s", reference, boost.pk)

    return PaymentOutcome(reference=reference, body=result.body, boost=boost)
