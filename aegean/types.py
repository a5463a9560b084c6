"""Request and response records exchanged with the API, and their wire form."""

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, get_args, get_origin

_OMIT_EMPTY = "empty"
_OMIT_NONE = "none"

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})$"
)


def _wire(name: str, default: Any = dataclasses.MISSING, *, omit: "str | None" = None,
          factory: Any = dataclasses.MISSING) -> Any:
    return dataclasses.field(
        default=default,
        default_factory=factory,
        metadata={"wire": name, "omit": omit},
    )


# ─── Auth ────────────────────────────────────────────────────────────────────


@dataclass
class LoginRequest:
    account_alias: str = _wire("accountAlias", "", omit=_OMIT_EMPTY)
    email: str = _wire("email", "")
    password: str = _wire("password", "")


@dataclass
class LoginResponse:
    token: str = _wire("token", "")
    user_id: str = _wire("userId", "")
    account_id: str = _wire("accountId", "")
    email: str = _wire("email", "")
    name: str = _wire("name", "")
    balance: float = _wire("balance", 0.0)
    plan_type: str = _wire("planType", "")
    role: str = _wire("role", "")


# ─── API keys ────────────────────────────────────────────────────────────────


@dataclass
class CreateKeyRequest:
    name: str = _wire("name", "")
    rate_limit: int | None = _wire("rateLimit", None, omit=_OMIT_NONE)


@dataclass
class CreateKeyResponse:
    id: str = _wire("id", "")
    name: str = _wire("name", "")
    key: str = _wire("key", "")
    created_at: datetime = _wire("createdAt", _ZERO_TIME)


@dataclass
class APIKeyInfo:
    id: str = _wire("id", "")
    name: str = _wire("name", "")
    key_prefix: str = _wire("keyPrefix", "")
    rate_limit: int = _wire("rateLimit", 0)
    last_used_at: datetime | None = _wire("lastUsedAt", None, omit=_OMIT_NONE)
    created_at: datetime = _wire("createdAt", _ZERO_TIME)


# ─── Domains ─────────────────────────────────────────────────────────────────


@dataclass
class AddDomainRequest:
    domain_name: str = _wire("domainName", "")
    type: str = _wire("type", "")
    intent: str = _wire("intent", "", omit=_OMIT_EMPTY)


@dataclass
class DNSRecord:
    type: str = _wire("type", "")
    record: str = _wire("record", "")
    host: str = _wire("host", "")
    value: str = _wire("value", "")
    purpose: str = _wire("purpose", "")
    required: bool = _wire("required", False)
    verified: bool | None = _wire("verified", None, omit=_OMIT_NONE)


@dataclass
class DomainInfo:
    id: str = _wire("id", "")
    domain_name: str = _wire("domainName", "")
    type: str = _wire("type", "")
    verified: bool = _wire("verified", False)
    dkim_selector: str = _wire("dkimSelector", "", omit=_OMIT_EMPTY)
    dkim_public_key: str = _wire("dkimPublicKey", "", omit=_OMIT_EMPTY)
    created_at: datetime = _wire("createdAt", _ZERO_TIME)
    dns_records: list[DNSRecord] = _wire("dnsRecords", omit=_OMIT_EMPTY, factory=list)


# ─── Email send ──────────────────────────────────────────────────────────────


@dataclass
class SendEmailRequest:
    to: str = _wire("to", "")
    subject: str = _wire("subject", "")
    html: str = _wire("html", "")
    sender: str = _wire("from", "", omit=_OMIT_EMPTY)
    reply_to: str = _wire("replyTo", "", omit=_OMIT_EMPTY)


@dataclass
class SendEmailResponse:
    id: str = _wire("id", "")
    status: str = _wire("status", "")
    error: str = _wire("error", "", omit=_OMIT_EMPTY)


# ─── Logs ────────────────────────────────────────────────────────────────────


@dataclass
class EmailLog:
    id: str = _wire("id", "")
    recipient: str = _wire("recipient", "")
    sender: str = _wire("sender", "", omit=_OMIT_EMPTY)
    subject: str = _wire("subject", "")
    status: str = _wire("status", "")
    error: str = _wire("error", "", omit=_OMIT_EMPTY)
    sent_at: datetime | None = _wire("sentAt", None, omit=_OMIT_NONE)
    opened_at: datetime | None = _wire("openedAt", None, omit=_OMIT_NONE)
    clicked_at: datetime | None = _wire("clickedAt", None, omit=_OMIT_NONE)
    bounced_at: datetime | None = _wire("bouncedAt", None, omit=_OMIT_NONE)
    delivered_at: datetime | None = _wire("deliveredAt", None, omit=_OMIT_NONE)


@dataclass
class LogsPage:
    """One page of email logs in the server's paged-list shape."""

    content: list[EmailLog] = _wire("content", factory=list)
    total_elements: int = _wire("totalElements", 0)
    total_pages: int = _wire("totalPages", 0)
    number: int = _wire("number", 0)
    size: int = _wire("size", 0)
    first: bool = _wire("first", False)
    last: bool = _wire("last", False)
    number_of_elements: int = _wire("numberOfElements", 0)


# ─── Account ─────────────────────────────────────────────────────────────────


@dataclass
class AccountView:
    account_id: str = _wire("accountId", "")
    alias: str = _wire("alias", "")
    name: str = _wire("name", "")
    plan_type: str = _wire("planType", "")
    balance: float = _wire("balance", 0.0)
    my_role: str = _wire("myRole", "")
    membership_id: str = _wire("membershipId", "")


# ─── Static sites ────────────────────────────────────────────────────────────


@dataclass
class Site:
    id: str = _wire("id", "")
    slug: str = _wire("slug", "")
    bucket_name: str = _wire("bucketName", "")
    key_prefix: str = _wire("keyPrefix", "")
    index_document: str = _wire("indexDocument", "")
    error_document: str = _wire("errorDocument", "")
    spa_fallback: bool = _wire("spaFallback", False)
    default_cache_max_age: int = _wire("defaultCacheMaxAge", 0)
    enabled: bool = _wire("enabled", False)
    custom_domain: str = _wire("customDomain", "", omit=_OMIT_EMPTY)
    preferred_subdomain: str = _wire("preferredSubdomain", "", omit=_OMIT_EMPTY)
    created_at: datetime = _wire("createdAt", _ZERO_TIME)
    updated_at: datetime = _wire("updatedAt", _ZERO_TIME)


@dataclass
class SiteInput:
    """Create/update payload; ``None`` optional fields are left off the wire."""

    slug: str = _wire("slug", "")
    bucket_name: str = _wire("bucketName", "")
    key_prefix: str = _wire("keyPrefix", "", omit=_OMIT_EMPTY)
    index_document: str = _wire("indexDocument", "", omit=_OMIT_EMPTY)
    error_document: str = _wire("errorDocument", "", omit=_OMIT_EMPTY)
    spa_fallback: bool | None = _wire("spaFallback", None, omit=_OMIT_NONE)
    default_cache_max_age: int | None = _wire("defaultCacheMaxAge", None, omit=_OMIT_NONE)
    enabled: bool | None = _wire("enabled", None, omit=_OMIT_NONE)
    custom_domain: str = _wire("customDomain", "", omit=_OMIT_EMPTY)
    preferred_subdomain: str = _wire("preferredSubdomain", "", omit=_OMIT_EMPTY)


@dataclass
class SiteDeployment:
    id: str = _wire("id", "")
    deployment_prefix: str = _wire("deploymentPrefix", "")
    bytes_total: int = _wire("bytesTotal", 0)
    file_count: int = _wire("fileCount", 0)
    notes: str = _wire("notes", "", omit=_OMIT_EMPTY)
    created_at: datetime = _wire("createdAt", _ZERO_TIME)


# ─── Wire conversion ─────────────────────────────────────────────────────────


def to_wire(value: Any) -> Any:
    """Convert records, timestamps and containers into JSON-ready data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out: dict[str, Any] = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            omit = f.metadata.get("omit")
            if omit == _OMIT_NONE and item is None:
                continue
            if omit == _OMIT_EMPTY and (item is None or not item):
                continue
            out[f.metadata.get("wire", f.name)] = to_wire(item)
        return out
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, Mapping):
        return {str(key): to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    return value


def from_wire(cls: Any, data: Any) -> Any:
    """Build ``cls`` (a record class or e.g. ``list[Site]``) from decoded JSON.

    Unknown keys are ignored; a mismatched value raises ValueError.
    """
    where = getattr(cls, "__name__", str(cls))
    if dataclasses.is_dataclass(cls):
        return _from_mapping(cls, data, where)
    return _convert(cls, data, where)


def _from_mapping(cls: type, raw: Any, where: str) -> Any:
    if not isinstance(raw, Mapping):
        raise ValueError(f"{where}: expected an object, got {type(raw).__name__}")
    kwargs = {}
    for f in dataclasses.fields(cls):
        key = f.metadata.get("wire", f.name)
        if key in raw:
            kwargs[f.name] = _convert(f.type, raw[key], f"{where}.{key}")
    return cls(**kwargs)


def _zero(tp: Any) -> Any:
    if get_origin(tp) is list:
        return []
    if tp is datetime:
        return _ZERO_TIME
    return tp()


def _convert(tp: Any, raw: Any, where: str) -> Any:
    origin = get_origin(tp)
    if origin is not None and origin is not list:
        if raw is None:
            return None
        (inner,) = [arg for arg in get_args(tp) if arg is not type(None)]
        return _convert(inner, raw, where)
    if raw is None:
        return _zero(tp)
    if origin is list:
        if not isinstance(raw, list):
            raise ValueError(f"{where}: expected an array, got {type(raw).__name__}")
        (item_type,) = get_args(tp)
        return [_convert(item_type, item, f"{where}[{i}]") for i, item in enumerate(raw)]
    if dataclasses.is_dataclass(tp):
        return _from_mapping(tp, raw, where)
    if tp is datetime:
        if not isinstance(raw, str):
            raise ValueError(f"{where}: expected a timestamp string, got {type(raw).__name__}")
        try:
            return _parse_time(raw)
        except ValueError as exc:
            raise ValueError(f"{where}: {exc}") from exc
    if tp is bool:
        if not isinstance(raw, bool):
            raise ValueError(f"{where}: expected a boolean, got {type(raw).__name__}")
        return raw
    if tp is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ValueError(f"{where}: expected an integer, got {raw!r}")
        return raw
    if tp is float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"{where}: expected a number, got {raw!r}")
        return float(raw)
    if tp is str:
        if not isinstance(raw, str):
            raise ValueError(f"{where}: expected a string, got {type(raw).__name__}")
        return raw
    raise TypeError(f"{where}: unsupported field type {tp!r}")


def _parse_time(text: str) -> datetime:
    match = _TIME_PATTERN.match(text)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "").ljust(6, "0")[:6])
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        tz = timezone(sign * offset)
    try:
        return datetime(int(year), int(month), int(day), int(hour), int(minute),
                        int(second), micro, tzinfo=tz)
    except ValueError as exc:
        raise ValueError(f"invalid RFC 3339 timestamp {text!r}: {exc}") from exc


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, rest = divmod(abs(total), 3600)
    return f"{text}{sign}{hours:02d}:{rest // 60:02d}"