import json

import httpx
import pytest

from app.services.slip_service import SlipVerifier, parse_verdict, pick_number


def verifier_returning(status_code, body=None, content=None, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=body)

    return SlipVerifier(api_key="key", check_url="https://slip.test/check", transport=httpx.MockTransport(handler))


@pytest.mark.parametrize("value", ["1234.00", 1234, "1,234", 1234.0])
def test_amount_normalization(value):
    assert pick_number([{"amount": value}], ["amount"]) == 1234.0


def test_amount_found_in_nested_data():
    verdict = parse_verdict(True, {"success": True, "message": "OK", "data": {"paidAmount": "2500", "transRef": "ref1"}})
    assert verdict.ok
    assert verdict.amount == 2500.0
    assert verdict.bank_ref == "ref1"


def test_zero_amount_is_absent():
    assert parse_verdict(True, {"message": "OK", "data": {"amount": 0}}).amount is None


def test_duplicate_code():
    verdict = parse_verdict(False, {"code": 1012, "message": "Duplicate slip"})
    assert verdict.duplicate
    assert not verdict.ok


def test_ok_requires_http_success_and_success_text():
    assert not parse_verdict(False, {"message": "success"}).ok
    assert not parse_verdict(True, {"message": "ไม่ผ่าน"}).ok
    assert parse_verdict(True, {"message": "Correct QR Verification"}).ok
    assert parse_verdict(True, {}).ok


def test_transacted_at_from_date_and_time():
    verdict = parse_verdict(True, {"message": "OK", "data": {"date": "2024-05-03", "time": "10:15"}})
    assert verdict.transacted_at == "2024-05-03 10:15"


async def test_missing_api_key_is_not_ok():
    verifier = SlipVerifier(api_key="", check_url="https://slip.test/check")
    verdict = await verifier.verify_by_url("https://dorm.test/a.jpg")
    assert not verdict.ok
    assert verdict.message == "missing api key"
    await verifier.close()


async def test_verify_by_url_sends_json_with_amount():
    seen = []
    verifier = verifier_returning(200, {"success": True, "message": "OK", "data": {"amount": 2500}}, seen=seen)

    verdict = await verifier.verify_by_url("https://dorm.test/a.jpg", expected_amount=2500)

    assert verdict.ok and verdict.amount == 2500.0
    body = json.loads(seen[0].content)
    assert body == {"url": "https://dorm.test/a.jpg", "log": True, "amount": 2500}
    assert seen[0].headers["x-authorization"] == "key"
    await verifier.close()


async def test_verify_by_data_sends_multipart():
    seen = []
    verifier = verifier_returning(200, {"message": "OK"}, seen=seen)

    await verifier.verify_by_data(b"slip-bytes")

    assert seen[0].headers["content-type"].startswith("multipart/form-data")
    assert b"slip-bytes" in seen[0].content
    await verifier.close()


async def test_non_json_body_is_tolerated():
    verifier = verifier_returning(502, content=b"<html>bad gateway</html>")

    verdict = await verifier.verify_by_url("https://dorm.test/a.jpg")

    assert not verdict.ok
    assert verdict.message == "ERROR"
    assert verdict.amount is None
    await verifier.close()
