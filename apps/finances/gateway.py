"""
VNPay Payment Gateway Integration

Builds signed redirect URLs for the VNPay hosted payment page and
verifies the signature of the parameters VNPay sends back. This module
is pure formatting and cryptography: it never reads or writes invoices.

Signing scheme (VNPay 2.1.0): all ``vnp_*`` parameters except the hash
fields are sorted by key, each key and value is URL-encoded with
``quote_plus``, the pairs are joined with ``&`` and the resulting string
is signed with HMAC-SHA512 using the merchant hash secret.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Mapping
from urllib.parse import quote_plus
from zoneinfo import ZoneInfo

import structlog
from django.conf import settings  # type: ignore

from shared.domain.value_objects import Money

logger = structlog.get_logger(__name__)

VNPAY_VERSION = "2.1.0"
VNPAY_TIMEZONE = ZoneInfo("Asia/Ho_Chi_Minh")
VNPAY_DATE_FORMAT = "%Y%m%d%H%M%S"
SUCCESS_RESPONSE_CODE = "00"

HASH_FIELDS = ("vnp_SecureHash", "vnp_SecureHashType")
REQUIRED_CALLBACK_FIELDS = ("vnp_Amount", "vnp_ResponseCode", "vnp_TxnRef", "vnp_SecureHash")


class PaymentGatewayError(Exception):
    """Gateway is misconfigured or a payment URL cannot be built."""


@dataclass(frozen=True)
class CallbackVerification:
    valid: bool
    reference: str = ""
    response_code: str = ""
    amount: Money | None = None
    transaction_status: str = ""
    transaction_no: str = ""
    bank_code: str = ""

    @property
    def is_success(self) -> bool:
        return self.valid and self.response_code == SUCCESS_RESPONSE_CODE


def canonical_query(params: Mapping[str, str]) -> str:
    """Sorted, URL-encoded ``key=value`` pairs joined with ``&``."""
    return "&".join(
        f"{quote_plus(str(key))}={quote_plus(str(value))}"
        for key, value in sorted(params.items())
    )


def sign(data: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha512).hexdigest()


def vnpay_locale(locale: str) -> str:
    return "vn" if (locale or "").lower().startswith("vi") or locale == "vn" else "en"


class VnpayGateway:
    """Stateless VNPay adapter bound to one merchant configuration."""

    def __init__(
        self,
        tmn_code: str,
        hash_secret: str,
        payment_url: str,
        return_url: str,
        *,
        expire_minutes: int = 15,
    ):
        if not tmn_code or not hash_secret or not payment_url:
            raise PaymentGatewayError("VNPay terminal code, hash secret and payment URL are required")
        self.tmn_code = tmn_code
        self.hash_secret = hash_secret
        self.payment_url = payment_url
        self.return_url = return_url
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls) -> "VnpayGateway":
        return cls(
            tmn_code=getattr(settings, "VNPAY_TMN_CODE", ""),
            hash_secret=getattr(settings, "VNPAY_HASH_SECRET", ""),
            payment_url=getattr(settings, "VNPAY_PAYMENT_URL", ""),
            return_url=getattr(settings, "VNPAY_RETURN_URL", ""),
            expire_minutes=int(getattr(settings, "VNPAY_EXPIRE_MINUTES", 15)),
        )

    def build_redirect_url(
        self,
        client_ip: str,
        amount: Money,
        description: str,
        reference: str,
        *,
        locale: str = "vn",
        now: datetime | None = None,
    ) -> str:
        """
        Signed URL of the VNPay payment page for ``reference``

        Args:
            client_ip: Payer's IP address, required by VNPay
            amount: Amount to charge; sent as hundredths
            description: Free-text order info shown to the payer
            reference: Transaction reference (our invoice code)
            locale: Payment page language
            now: Creation time, defaults to the current time

        Raises:
            PaymentGatewayError: If the request cannot be built
        """
        if not client_ip:
            raise PaymentGatewayError("Client IP address is required")
        if not reference:
            raise PaymentGatewayError("Transaction reference is required")
        if not isinstance(amount, Money) or amount.minor_units <= 0:
            raise PaymentGatewayError(f"Invalid payment amount: {amount!r}")

        created = (now or datetime.now(tz=VNPAY_TIMEZONE)).astimezone(VNPAY_TIMEZONE)
        params = {
            "vnp_Version": VNPAY_VERSION,
            "vnp_Command": "pay",
            "vnp_TmnCode": self.tmn_code,
            "vnp_Amount": str(amount.minor_units),
            "vnp_CurrCode": "VND",
            "vnp_TxnRef": reference,
            "vnp_OrderInfo": description,
            "vnp_OrderType": "other",
            "vnp_Locale": vnpay_locale(locale),
            "vnp_ReturnUrl": self.return_url,
            "vnp_IpAddr": client_ip,
            "vnp_CreateDate": created.strftime(VNPAY_DATE_FORMAT),
            "vnp_ExpireDate": (created + timedelta(minutes=self.expire_minutes)).strftime(VNPAY_DATE_FORMAT),
        }
        query = canonical_query(params)
        secure_hash = sign(query, self.hash_secret)

        logger.info("vnpay_url_built", reference=reference, amount=str(amount.amount))
        return f"{self.payment_url}?{query}&vnp_SecureHash={secure_hash}"

    def verify_callback(self, params: Mapping[str, str]) -> CallbackVerification:
        """
        Check the signature of a VNPay return/IPN parameter set

        Any missing required field, foreign terminal code, malformed
        amount or signature mismatch yields ``valid=False``.
        """
        missing = [name for name in REQUIRED_CALLBACK_FIELDS if not params.get(name)]
        if missing:
            logger.warning("vnpay_callback_missing_fields", missing=missing)
            return CallbackVerification(valid=False)

        signed = {
            key: value
            for key, value in params.items()
            if key.startswith("vnp_") and key not in HASH_FIELDS
        }
        expected = sign(canonical_query(signed), self.hash_secret)
        supplied = str(params["vnp_SecureHash"]).lower()
        if not hmac.compare_digest(expected.encode(), supplied.encode("utf-8", "ignore")):
            logger.warning("vnpay_callback_bad_signature", reference=params.get("vnp_TxnRef"))
            return CallbackVerification(valid=False)

        if params.get("vnp_TmnCode") and params["vnp_TmnCode"] != self.tmn_code:
            logger.warning("vnpay_callback_foreign_terminal", tmn_code=params.get("vnp_TmnCode"))
            return CallbackVerification(valid=False)

        try:
            minor_units = int(Decimal(str(params["vnp_Amount"])))
            amount = Money.from_minor_units(minor_units)
        except (ArithmeticError, ValueError):
            logger.warning("vnpay_callback_bad_amount", amount=params.get("vnp_Amount"))
            return CallbackVerification(valid=False)

        return CallbackVerification(
            valid=True,
            reference=str(params["vnp_TxnRef"]),
            response_code=str(params["vnp_ResponseCode"]),
            amount=amount,
            transaction_status=str(params.get("vnp_TransactionStatus", "")),
            transaction_no=str(params.get("vnp_TransactionNo", "")),
            bank_code=str(params.get("vnp_BankCode", "")),
        )
