from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rest_framework.exceptions import NotFound


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_PHONE = "invalid_phone"
    GATEWAY = "gateway"
    UNEXPECTED = "unexpected"
    ALREADY_INITIATED = "already_initiated"


@dataclass(frozen=True)
class PaymentError:
    """
    Failure of a payment step, returned rather than raised.

    `status` and `body` are only set for GATEWAY errors and carry the
    upstream HTTP status code and raw response body.
    """

    kind: ErrorKind
    message: str
    status: Optional[int] = None
    body: Optional[str] = None


class InvalidPhone(ValueError):
    pass


class BoostNotFound(NotFound):
    default_detail = "Boost not found."
    default_code = "boost_not_found"
