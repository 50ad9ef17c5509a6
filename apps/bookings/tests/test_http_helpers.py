from django.test import RequestFactory
from rest_framework.exceptions import ErrorDetail

from shared.infrastructure.http import first_error_code, get_client_ip


def _request(**meta):
    return RequestFactory().get("/", **meta)


def test_forwarded_for_wins_over_remote_addr():
    request = _request(HTTP_X_FORWARDED_FOR="198.51.100.4, 10.0.0.1", REMOTE_ADDR="10.0.0.1")

    assert get_client_ip(request) == "198.51.100.4"


def test_ipv6_loopback_becomes_ipv4_loopback():
    assert get_client_ip(_request(REMOTE_ADDR="::1")) == "127.0.0.1"


def test_ipv4_mapped_address_is_unwrapped():
    assert get_client_ip(_request(REMOTE_ADDR="::ffff:192.0.2.10")) == "192.0.2.10"


def test_first_error_code_prefers_application_codes():
    errors = {
        "start_time": [ErrorDetail("This field is required.", code="required")],
        "non_field_errors": [ErrorDetail("Mismatch", code="QUANTITY_MISMATCH")],
    }

    assert first_error_code(errors) == "QUANTITY_MISMATCH"
    assert first_error_code({"x": [ErrorDetail("bad", code="invalid")]}) == "VALIDATION_ERROR"
