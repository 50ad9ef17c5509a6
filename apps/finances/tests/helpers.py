"""Signed VNPay callback parameters for tests."""

from django.conf import settings

from apps.finances.gateway import canonical_query, sign


def signed_callback(invoice_code: str, amount_minor: int, response_code: str = "00", **extra) -> dict:
    params = {
        "vnp_Amount": str(amount_minor),
        "vnp_BankCode": "NCB",
        "vnp_OrderInfo": f"Payment-for-invoice-{invoice_code}",
        "vnp_PayDate": "20300110140000",
        "vnp_ResponseCode": response_code,
        "vnp_TmnCode": settings.VNPAY_TMN_CODE,
        "vnp_TransactionNo": "14000001",
        "vnp_TransactionStatus": "00" if response_code == "00" else "02",
        "vnp_TxnRef": invoice_code,
    }
    params.update(extra)
    params["vnp_SecureHash"] = sign(canonical_query(params), settings.VNPAY_HASH_SECRET)
    return params
