"""Sending email and reading email logs: body assembly, rendering, tailing."""

from __future__ import annotations

import dataclasses
import sys
from datetime import datetime
from typing import Any, TextIO

from aegean import output
from aegean.client import Client
from aegean.types import EmailLog, LogsPage, SendEmailResponse

_PRE_OPEN = '<pre style="font-family:inherit;margin:0;white-space:pre-wrap">'


def escape_html(text: str) -> str:
    """Escape ``&``, ``<`` and ``>``."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def resolve_body(
    text: str = "", html: str = "", html_file: str = "", stdin: TextIO | None = None
) -> str:
    """Pick the HTML body: ``html_file`` beats ``html`` beats ``text``.

    ``html_file`` of ``-`` reads ``stdin``. Plain text is escaped and wrapped
    in a ``<pre>`` block.
    """
    if html_file:
        if html_file == "-":
            source = stdin if stdin is not None else sys.stdin
            try:
                return source.read()
            except OSError as exc:
                raise OSError(f"read --html-file: {exc}") from exc
        try:
            with open(html_file, encoding="utf-8", errors="replace") as handle:
                return handle.read()
        except OSError as exc:
            raise OSError(f"open --html-file: {exc}") from exc
    if html:
        return html
    if text:
        return _PRE_OPEN + escape_html(text) + "</pre>"
    raise ValueError("one of --text, --html, or --html-file is required")


def _structured(stream: TextIO, format: str, value: Any) -> bool:
    if format == output.FORMAT_JSON:
        output.to_json(stream, value)
        return True
    if format == output.FORMAT_YAML:
        output.to_yaml(stream, value)
        return True
    return False


def render_send_result(stream: TextIO, format: str, response: SendEmailResponse) -> None:
    """Show the message id and status of a sent email."""
    if _structured(stream, format, response):
        return
    stream.write(f"→ message id: {response.id}\n→ status:     {response.status}\n")
    if response.error:
        stream.write(f"→ error:      {response.error}\n")


def safe_time(moment: datetime | None) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:MM:SS``, or ``-`` when absent."""
    if moment is None:
        return "-"
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def render_logs(stream: TextIO, format: str, page: LogsPage) -> None:
    """Show one page of email logs with a page footer."""
    if _structured(stream, format, page):
        return
    if not page.content:
        stream.write("No log entries yet.\n")
        return
    rows = [
        [safe_time(entry.sent_at), entry.status, entry.recipient, _truncate(entry.subject, 50)]
        for entry in page.content
    ]
    output.table(stream, ["SENT", "STATUS", "RECIPIENT", "SUBJECT"], rows)
    stream.write(
        f"\nshowing page {page.number + 1} of {page.total_pages} "
        f"({page.total_elements} total)\n"
    )


@dataclasses.dataclass
class LogTailer:
    """Tracks which log entries were already seen across repeated polls.

    The first successful poll only records the existing entries; later polls
    return (and, if ``stream`` is set, print) entries not seen before.
    """

    stream: TextIO | None = None
    seen: set[str] = dataclasses.field(default_factory=set)
    first: bool = True

    def poll(self, client: Client, size: int = 20) -> list[EmailLog]:
        """Fetch the newest page and return the entries that are new."""
        page = client.list_logs(0, size)
        fresh = []
        for entry in page.content:
            if entry.id in self.seen:
                continue
            self.seen.add(entry.id)
            if not self.first:
                fresh.append(entry)
        self.first = False
        if self.stream is not None:
            for entry in fresh:
                self.stream.write(
                    f"[{safe_time(entry.sent_at)}] {entry.status} → "
                    f"{entry.recipient} — {entry.subject}\n"
                )
        return fresh