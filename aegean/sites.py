"""Static-site helpers: bundle building, site resolution and rendering."""

from __future__ import annotations

import io
import os
import time
import zipfile
from collections.abc import Iterator, Sequence
from datetime import datetime
from typing import Any, TextIO
from urllib.parse import quote

from aegean import output
from aegean.client import Client
from aegean.domains import looks_like_uuid
from aegean.types import Site, SiteDeployment

MAX_BUNDLE_BYTES = 250 * 1024 * 1024
"""Largest bundle the server accepts; checked before uploading."""

_SKIP_NAMES = frozenset({".git", "node_modules", ".DS_Store"})
_BYTE_UNITS = ("KB", "MB", "GB", "TB")
_SITE_HEADERS = ["SLUG", "BUCKET", "PREFERRED", "ENABLED", "CREATED"]
_HISTORY_HEADERS = ["ID", "WHEN", "FILES", "BYTES", "NOTES"]


def human_bytes(count: int) -> str:
    """Format a byte count as ``N B``, ``X.Y KB``, ``X.Y MB`` and so on."""
    unit = 1024
    if count < unit:
        return f"{count} B"
    divisor, exponent = unit, 0
    scaled = count // unit
    while scaled >= unit:
        divisor *= unit
        exponent += 1
        scaled //= unit
    if exponent >= len(_BYTE_UNITS):
        raise ValueError(f"byte count {count} is too large to format")
    return f"{count / divisor:.1f} {_BYTE_UNITS[exponent]}"


def _dos_time(mtime: float) -> tuple[int, int, int, int, int, int]:
    stamp = time.localtime(mtime)
    if stamp.tm_year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    return (stamp.tm_year, stamp.tm_mon, stamp.tm_mday,
            stamp.tm_hour, stamp.tm_min, stamp.tm_sec)


def _walk(directory: str, prefix: str) -> Iterator[tuple[str, str, os.stat_result]]:
    """Yield (entry name, path, lstat) for every file to bundle, in lexical order."""
    for name in sorted(os.listdir(directory)):
        if name in _SKIP_NAMES:
            continue
        path = os.path.join(directory, name)
        info = os.lstat(path)
        if os.path.isdir(path) and not os.path.islink(path):
            yield from _walk(path, f"{prefix}{name}/")
            continue
        if name.endswith(".swp"):
            continue
        yield f"{prefix}{name}", path, info


def zip_directory(root: str | os.PathLike[str]) -> bytes:
    """Zip every file under ``root`` in memory, skipping VCS and editor noise."""
    root_path = os.path.normpath(os.fspath(root))
    os.stat(root_path)
    if not os.path.isdir(root_path):
        raise NotADirectoryError(f"{root_path} is not a directory")
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for entry_name, path, info in _walk(root_path, ""):
            header = zipfile.ZipInfo(entry_name, date_time=_dos_time(info.st_mtime))
            header.compress_type = zipfile.ZIP_DEFLATED
            with open(path, "rb") as handle:
                archive.writestr(header, handle.read())
    return buffer.getvalue()


def load_bundle(path: str | os.PathLike[str]) -> tuple[bytes, str]:
    """Return (zip bytes, upload name) for a directory or a ready-made ``.zip``.

    Raises OSError when ``path`` cannot be read and ValueError when it is
    neither a directory nor a zip file, or the bundle is over the size cap.
    """
    text = os.fspath(path)
    try:
        os.stat(text)
    except OSError as exc:
        raise OSError(f"read {text}: {exc}") from exc
    if os.path.isdir(text):
        data = zip_directory(text)
        name = os.path.basename(os.path.normpath(text)) + ".zip"
        if name in ("..zip", "./zip", ".zip"):
            name = "bundle.zip"
    else:
        try:
            with open(text, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            raise OSError(f"read {text}: {exc}") from exc
        name = os.path.basename(text)
        if not name.lower().endswith(".zip"):
            raise ValueError(
                f"{text} is not a directory and doesn't end in .zip — "
                "pass a built bundle or a source directory"
            )
    if len(data) > MAX_BUNDLE_BYTES:
        raise ValueError(
            f"bundle is {human_bytes(len(data))}, exceeds the 250 MB backend cap — "
            "split or trim before retrying"
        )
    return data, name


def resolve_site_ref(client: Client, ref: str) -> tuple[str, str]:
    """Return (id, slug) for a site id or slug; ids are used as given."""
    if looks_like_uuid(ref):
        return ref, ref
    site = client.find_site(ref)
    return site.id, site.slug


def default_slug(client: Client) -> str:
    """Return the slug of the account's only site.

    LookupError if there are none, ValueError if there are several.
    """
    sites = client.list_sites()
    if not sites:
        raise LookupError(
            "no sites on this account — create one first: "
            "aegean sites create --slug <name> --bucket <bucket>"
        )
    if len(sites) > 1:
        raise ValueError("multiple sites on this account — pass --slug <name> to disambiguate")
    return sites[0].slug


def fetch_account_alias(client: Client) -> str:
    """Return the calling account's alias."""
    return client.current_account().alias


def browser_host(endpoint: str) -> str:
    """Strip the scheme and the first ``api.`` from an API endpoint."""
    host = endpoint.removeprefix("https://").removeprefix("http://")
    return host.replace("api.", "", 1)


def _path_escape(segment: str) -> str:
    return quote(segment, safe="$&+=:@")


def _structured(stream: TextIO, format: str, value: Any) -> bool:
    if format == output.FORMAT_JSON:
        output.to_json(stream, value)
        return True
    if format == output.FORMAT_YAML:
        output.to_yaml(stream, value)
        return True
    return False


def _date(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


def render_site_list(stream: TextIO, format: str, sites: Sequence[Site]) -> None:
    """Show the account's sites as a table (or JSON/YAML)."""
    if _structured(stream, format, list(sites)):
        return
    if not sites:
        stream.write(
            "No sites yet. Create one with "
            "`aegean sites create --slug <name> --bucket <bucket>`.\n"
        )
        return
    rows = [
        [
            site.slug,
            site.bucket_name,
            site.preferred_subdomain or "(derived)",
            "yes" if site.enabled else "no",
            _date(site.created_at),
        ]
        for site in sites
    ]
    output.table(stream, _SITE_HEADERS, rows)


def render_history(stream: TextIO, format: str, deployments: Sequence[SiteDeployment]) -> None:
    """Show a site's deployments, newest first as the server returns them."""
    if _structured(stream, format, list(deployments)):
        return
    if not deployments:
        stream.write("No deployments yet. Run `aegean sites deploy ./dist`.\n")
        return
    rows = []
    for deployment in deployments:
        notes = deployment.notes
        if len(notes) > 40:
            notes = notes[:40] + "…"
        when = deployment.created_at
        rows.append([
            deployment.id,
            f"{_date(when)} {when.hour:02d}:{when.minute:02d}",
            str(deployment.file_count),
            str(deployment.bytes_total),
            notes,
        ])
    output.table(stream, _HISTORY_HEADERS, rows)


def render_deploy_result(
    stream: TextIO, deployment: SiteDeployment, slug: str, endpoint: str, alias: str = ""
) -> None:
    """Summarise a finished deployment and where the site can be reached."""
    host = browser_host(endpoint)
    stream.write(
        f"✓ deployment {deployment.id} — {deployment.file_count} files, "
        f"{human_bytes(deployment.bytes_total)}\n"
    )
    if alias:
        stream.write(
            f"  path URL    : https://{host}/sites/{_path_escape(alias)}/{_path_escape(slug)}/\n"
            f"  wildcard URL: https://{alias}-{slug}.sites.{host}/  "
            "(live once *.sites.* DNS+TLS is provisioned)\n"
        )
    else:
        stream.write(
            f"  open: https://{host}/sites/<your-alias>/{slug}/\n"
            "        (or the wildcard URL once *.sites.* DNS+TLS is provisioned)\n"
        )