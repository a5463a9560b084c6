"""Sender-domain helpers: id resolution, verification polling and rendering."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, TextIO

from aegean import output
from aegean.client import APIError, Client
from aegean.types import DNSRecord, DomainInfo

_CHECK_HEADERS = ["TYPE", "HOST", "DNS", "STATUS", "VALUE"]
_LIST_HEADERS = ["ID", "DOMAIN", "TYPE", "VERIFIED", "CREATED"]


def looks_like_uuid(value: str) -> bool:
    """Cheap UUID heuristic; the server does the authoritative parse."""
    return len(value) == 36 and value.count("-") == 4


def resolve_domain_id(client: Client, name_or_id: str) -> str:
    """Return ``name_or_id`` if it looks like an id, else look the name up."""
    if looks_like_uuid(name_or_id):
        return name_or_id
    return client.find_domain_by_name(name_or_id).id


def verified_label(verified: bool | None, required: bool) -> str:
    """Short status word for a DNS record check."""
    if verified is None:
        return "?"
    if verified:
        return "ok"
    return "MISSING" if required else "missing"


def truncate_cell(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` characters, ending with an ellipsis when cut."""
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"


def _date(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


def _structured(stream: TextIO, format: str, value: Any) -> bool:
    """Write ``value`` as JSON or YAML if asked to; report whether it did."""
    if format == output.FORMAT_JSON:
        output.to_json(stream, value)
        return True
    if format == output.FORMAT_YAML:
        output.to_yaml(stream, value)
        return True
    return False


def _check_rows(records: Sequence[DNSRecord]) -> list[list[str]]:
    return [
        [r.type, r.host, r.record, verified_label(r.verified, r.required), truncate_cell(r.value, 60)]
        for r in records
    ]


def render_domain(stream: TextIO, format: str, info: DomainInfo) -> None:
    """Show one domain and, if any, the DNS records it needs."""
    if _structured(stream, format, info):
        return
    verified = "true" if info.verified else "false"
    stream.write(
        f"Domain: {info.domain_name}\n"
        f"  id:       {info.id}\n"
        f"  type:     {info.type}\n"
        f"  verified: {verified}\n"
    )
    if not info.dns_records:
        return
    stream.write("\n  Required DNS records:\n")
    output.table(stream, _CHECK_HEADERS, _check_rows(info.dns_records))


def render_domain_list(stream: TextIO, format: str, domains: Sequence[DomainInfo]) -> None:
    """Show the account's domains as a table (or JSON/YAML)."""
    if _structured(stream, format, list(domains)):
        return
    if not domains:
        stream.write(
            "No domains on this account. Register one with `aegean domains add <name>`.\n"
        )
        return
    rows = [
        [d.id, d.domain_name, d.type, "yes" if d.verified else "no", _date(d.created_at)]
        for d in domains
    ]
    output.table(stream, _LIST_HEADERS, rows)


def render_checks(stream: TextIO, format: str, records: Sequence[DNSRecord]) -> None:
    """Show the current DNS check results for a domain."""
    if _structured(stream, format, list(records)):
        return
    if not records:
        stream.write("No DNS checks yet.\n")
        return
    output.table(stream, _CHECK_HEADERS, _check_rows(records))


def _format_duration(seconds: float) -> str:
    """Render a duration compactly, e.g. ``15s``, ``5m0s``, ``1h2m3.5s``, ``250ms``."""
    ns = round(seconds * 1_000_000_000)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    def fraction(whole: int, rest: int, digits: int) -> str:
        if not rest:
            return str(whole)
        return f"{whole}." + f"{rest:0{digits}d}".rstrip("0")

    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{fraction(ns // 1_000, ns % 1_000, 3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{fraction(ns // 1_000_000, ns % 1_000_000, 6)}ms"
    hours, rest = divmod(ns, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    secs = fraction(rest // 1_000_000_000, rest % 1_000_000_000, 9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}"
    if minutes:
        return f"{sign}{minutes}m{secs}"
    return f"{sign}{secs}"


def poll_verification(
    client: Client,
    domain_id: str,
    name: str,
    timeout: float = 300.0,
    every: float = 15.0,
    stream: TextIO | None = None,
    sleep: Callable[[float], Any] = time.sleep,
) -> DomainInfo:
    """Ask the server to verify a domain until it passes or ``timeout`` seconds pass.

    A 404 raises LookupError at once. When time runs out the last error is
    raised, or TimeoutError if the server simply never reported success.
    """
    deadline = time.monotonic() + timeout
    attempt = 1
    while True:
        error: Exception | None = None
        try:
            info = client.verify_domain(domain_id)
        except APIError as exc:
            if exc.status == 404:
                raise LookupError(f"domain {name} not found") from exc
            error = exc
        except (OSError, ValueError) as exc:
            error = exc
        else:
            if info.verified:
                if stream is not None:
                    stream.write(f"Verified {info.domain_name} ✓\n")
                return info
        if time.monotonic() >= deadline:
            if error is not None:
                raise error
            raise TimeoutError(
                f"verification did not complete within {_format_duration(timeout)} "
                "(DNS may still be propagating)"
            )
        if stream is not None:
            stream.write(
                f"  attempt {attempt}: not verified yet — retrying in {_format_duration(every)}\n"
            )
        sleep(every)
        attempt += 1