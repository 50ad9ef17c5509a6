import hashlib
import hmac
from datetime import datetime
from decimal import Decimal
from urllib.parse import parse_qsl, urlsplit

import pytest
from django.test import override_settings

from apps.finances.gateway import (
    PaymentGatewayError,
    VNPAY_TIMEZONE,
    VnpayGateway,
    canonical_query,
    sign,
)
from shared.domain.value_objects import Money

SECRET = "UNITTESTSECRET"


@pytest.fixture
def gateway():
    return VnpayGateway(
        tmn_code="TMN00001",
        hash_secret=SECRET,
        payment_url="https://pay.example/vpcpay.html",
        return_url="https://shop.example/return",
    )


def _callback(**overrides):
    params = {
        "vnp_Amount": "140000",
        "vnp_BankCode": "NCB",
        "vnp_OrderInfo": "Payment-for-invoice-INV-1-1",
        "vnp_PayDate": "20300110140000",
        "vnp_ResponseCode": "00",
        "vnp_TmnCode": "TMN00001",
        "vnp_TransactionNo": "14000001",
        "vnp_TransactionStatus": "00",
        "vnp_TxnRef": "INV-1-1",
    }
    params.update(overrides)
    params["vnp_SecureHash"] = sign(canonical_query(params), SECRET)
    return params


def test_signature_is_hmac_sha512_over_sorted_encoded_query():
    params = {"vnp_b": "x y", "vnp_a": "1&2"}

    assert canonical_query(params) == "vnp_a=1%262&vnp_b=x+y"
    expected = hmac.new(SECRET.encode(), b"vnp_a=1%262&vnp_b=x+y", hashlib.sha512).hexdigest()
    assert sign(canonical_query(params), SECRET) == expected


def test_redirect_url_carries_vnpay_parameters(gateway):
    now = datetime(2030, 1, 10, 14, 0, tzinfo=VNPAY_TIMEZONE)

    url = gateway.build_redirect_url(
        "203.0.113.7",
        Money(Decimal("1400")),
        "Payment-for-invoice-INV-1-1",
        "INV-1-1",
        locale="en",
        now=now,
    )

    assert url.startswith("https://pay.example/vpcpay.html?")
    params = dict(parse_qsl(urlsplit(url).query))
    assert params["vnp_Version"] == "2.1.0"
    assert params["vnp_Command"] == "pay"
    assert params["vnp_TmnCode"] == "TMN00001"
    assert params["vnp_Amount"] == "140000"
    assert params["vnp_CurrCode"] == "VND"
    assert params["vnp_Locale"] == "en"
    assert params["vnp_CreateDate"] == "20300110140000"
    assert params["vnp_ExpireDate"] == "20300110141500"
    assert params["vnp_ReturnUrl"] == "https://shop.example/return"

    supplied = params.pop("vnp_SecureHash")
    assert supplied == sign(canonical_query(params), SECRET)


def test_vietnamese_locale_maps_to_vn(gateway):
    url = gateway.build_redirect_url("127.0.0.1", Money(Decimal("10")), "x", "INV-2-2", locale="vi")

    assert dict(parse_qsl(urlsplit(url).query))["vnp_Locale"] == "vn"


def test_zero_amount_cannot_be_paid(gateway):
    with pytest.raises(PaymentGatewayError):
        gateway.build_redirect_url("127.0.0.1", Money.zero(), "x", "INV-3-3")


def test_genuine_callback_verifies(gateway):
    verification = gateway.verify_callback(_callback())

    assert verification.valid
    assert verification.is_success
    assert verification.reference == "INV-1-1"
    assert verification.amount == Money(Decimal("1400"))
    assert verification.transaction_no == "14000001"
    assert verification.bank_code == "NCB"


def test_uppercase_hash_and_hash_type_are_accepted(gateway):
    params = _callback()
    params["vnp_SecureHash"] = params["vnp_SecureHash"].upper()
    params["vnp_SecureHashType"] = "HmacSHA512"

    assert gateway.verify_callback(params).valid


@pytest.mark.parametrize("field, value", [
    ("vnp_Amount", "1"),
    ("vnp_ResponseCode", "24"),
    ("vnp_TxnRef", "INV-9-9"),
    ("vnp_BankCode", "VCB"),
])
def test_any_altered_field_invalidates_callback(gateway, field, value):
    params = _callback()
    params[field] = value

    assert not gateway.verify_callback(params).valid


def test_non_ascii_hash_is_invalid(gateway):
    params = _callback()
    params["vnp_SecureHash"] = "é" * 128

    assert not gateway.verify_callback(params).valid


def test_missing_hash_is_invalid(gateway):
    params = _callback()
    del params["vnp_SecureHash"]

    assert not gateway.verify_callback(params).valid


def test_foreign_terminal_is_invalid(gateway):
    assert not gateway.verify_callback(_callback(vnp_TmnCode="OTHER001")).valid


def test_wrong_secret_is_invalid():
    other = VnpayGateway("TMN00001", "ANOTHERSECRET", "https://pay.example/", "https://shop.example/return")

    assert not other.verify_callback(_callback()).valid


@override_settings(VNPAY_HASH_SECRET="")
def test_missing_configuration_raises():
    with pytest.raises(PaymentGatewayError):
        VnpayGateway.from_settings()
