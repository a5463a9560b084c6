from datetime import datetime, timedelta, timezone

import pytest

from aegean.types import (
    CreateKeyRequest,
    CreateKeyResponse,
    DomainInfo,
    EmailLog,
    LoginRequest,
    LoginResponse,
    LogsPage,
    SendEmailRequest,
    Site,
    SiteInput,
    from_wire,
    to_wire,
)


def test_login_request_omits_empty_alias():
    password = "password"
    wire = to_wire(LoginRequest(email="ada@example.com", password=password))
    assert wire == {"email": "ada@example.com", "password": "password"}


def test_login_request_includes_alias_when_set():
    password = "password"
    wire = to_wire(LoginRequest(account_alias="acme", email="ada@example.com", password=password))
    assert list(wire) == ["accountAlias", "email", "password"]
    assert wire["accountAlias"] == "acme"


def test_pointer_false_is_kept_and_unset_pointers_dropped():
    wire = to_wire(SiteInput(slug="shop", bucket_name="bucket", spa_fallback=False))
    assert wire["spaFallback"] is False
    assert "enabled" not in wire
    assert "defaultCacheMaxAge" not in wire
    assert "keyPrefix" not in wire


def test_create_key_request_rate_limit_optional():
    assert "rateLimit" not in to_wire(CreateKeyRequest(name="ci"))
    assert to_wire(CreateKeyRequest(name="ci", rate_limit=0))["rateLimit"] == 0


def test_send_email_sender_maps_to_from():
    wire = to_wire(SendEmailRequest(to="a@example.com", subject="s", html="<p>hi</p>",
                                    sender="b@example.com"))
    assert wire["from"] == "b@example.com"
    assert "replyTo" not in wire


def test_domain_info_round_trip():
    data = {
        "id": "2",
        "domainName": "acme.com",
        "type": "CUSTOM",
        "verified": False,
        "createdAt": "2026-05-15T10:20:30Z",
        "dnsRecords": [
            {"type": "TXT", "record": "DKIM", "host": "h", "value": "v",
             "purpose": "p", "required": True},
        ],
        "unknownField": 42,
    }
    info = from_wire(DomainInfo, data)
    assert info.domain_name == "acme.com"
    assert info.created_at == datetime(2026, 5, 15, 10, 20, 30, tzinfo=timezone.utc)
    assert info.dns_records[0].required is True
    assert info.dns_records[0].verified is None
    wire = to_wire(info)
    assert wire["createdAt"] == "2026-05-15T10:20:30Z"
    assert "unknownField" not in wire
    assert "verified" not in wire["dnsRecords"][0]


def test_null_for_plain_field_gives_default():
    info = from_wire(DomainInfo, {"id": None, "dnsRecords": None})
    assert info.id == ""
    assert info.dns_records == []


def test_fractional_seconds_truncate_to_microseconds():
    info = from_wire(Site, {"createdAt": "2026-05-15T10:20:30.123456789Z"})
    assert info.created_at.microsecond == 123456
    assert to_wire(info)["createdAt"] == "2026-05-15T10:20:30.123456Z"


def test_offset_time_round_trip():
    text = "2026-05-15T10:20:30+02:00"
    site = from_wire(Site, {"updatedAt": text})
    assert site.updated_at.utcoffset() == timedelta(hours=2)
    assert to_wire(site)["updatedAt"] == text


def test_zero_time_default_on_wire():
    assert to_wire(CreateKeyResponse())["createdAt"] == "0001-01-01T00:00:00Z"


def test_logs_page_round_trip():
    page = LogsPage(
        content=[EmailLog(id="l1", recipient="a@example.com", subject="s", status="sent",
                          sent_at=datetime(2026, 5, 15, 1, 2, 3, tzinfo=timezone.utc))],
        total_elements=1,
        total_pages=1,
        first=True,
        last=True,
        number_of_elements=1,
    )
    assert from_wire(LogsPage, to_wire(page)) == page


def test_from_wire_list_type():
    logs = from_wire(list[EmailLog], [{"id": "a"}, {"id": "b"}])
    assert [log.id for log in logs] == ["a", "b"]


def test_float_field_accepts_integer():
    response = from_wire(LoginResponse, {"balance": 10, "token": "token"})
    assert response.balance == 10
    assert isinstance(response.balance, float)


def test_integer_field_rejects_fraction():
    with pytest.raises(ValueError, match="defaultCacheMaxAge"):
        from_wire(Site, {"defaultCacheMaxAge": 1.5})


def test_bool_field_rejects_string():
    with pytest.raises(ValueError, match="verified"):
        from_wire(DomainInfo, {"verified": "yes"})


def test_bad_timestamp_rejected():
    with pytest.raises(ValueError):
        from_wire(Site, {"createdAt": "yesterday"})


def test_non_mapping_rejected():
    with pytest.raises(ValueError, match="expected an object"):
        from_wire(Site, ["not", "an", "object"])