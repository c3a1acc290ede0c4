from __future__ import annotations

from saic_gateway._redact import mask_vin, redact_for_log
from saic_gateway.models.message import RequestTemplate


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "applicationId": "511",
        "uid": "0000000000000000000000000000000000000000000000000#",
        "token": "abcdef",
        "vin": "LSJA0000000000001",
        "nested": {"userToken": "secret", "speed": 120},
    }

    redacted = redact_for_log(payload)
    assert redacted["applicationId"] == "511"
    assert redacted["uid"] == "<redacted>"
    assert redacted["token"] == "<redacted>"
    assert redacted["vin"] == "***0001"
    assert redacted["nested"]["userToken"] == "<redacted>"
    assert redacted["nested"]["speed"] == 120


def test_redact_for_log_handles_models_and_bytes() -> None:
    template = RequestTemplate(
        uid="uid-1",
        token="token-1",
        vin="LSJA0000000000001",
        application_id="510",
        protocol_version=25857,
        message_id=1,
        application_data=b"\x01\x02",
    )

    redacted = redact_for_log(template)
    assert redacted["uid"] == "<redacted>"
    assert redacted["reserved"] == "<redacted>"
    assert redacted["application_data"] == "<bytes:2b>"
    assert redacted["message_id"] == 1


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_mask_vin_keeps_last_characters() -> None:
    assert mask_vin("LSJA0000000000001") == "***0001"
    assert mask_vin("0001") == "<redacted>"
