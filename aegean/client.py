"""HTTP client for the Aegean API.

Two auth modes are supported: a JWT sent as ``Authorization: Bearer <token>``
and an API key sent as ``X-API-Key``. Non-2xx replies raise ``APIError``.
"""

from __future__ import annotations

import copy
import dataclasses
import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import requests

from aegean.types import (
    AccountView,
    AddDomainRequest,
    APIKeyInfo,
    CreateKeyRequest,
    CreateKeyResponse,
    DNSRecord,
    DomainInfo,
    LoginRequest,
    LoginResponse,
    LogsPage,
    SendEmailRequest,
    SendEmailResponse,
    Site,
    SiteDeployment,
    SiteInput,
    from_wire,
    to_wire,
)

DEFAULT_TIMEOUT = 30.0
UPLOAD_TIMEOUT = 300.0
USER_AGENT = "aegean-cli"


class APIError(Exception):
    """The server replied with a status outside 200-299."""

    def __init__(self, status: int, method: str, path: str, body: str) -> None:
        super().__init__(status, method, path, body)
        self.status = status
        self.method = method
        self.path = path
        self.body = body

    def __str__(self) -> str:
        body = self.body.strip()
        if not body:
            return f"{self.method} {self.path}: HTTP {self.status}"
        if len(body) > 400:
            body = body[:400] + "…"
        return f"{self.method} {self.path}: HTTP {self.status} — {body}"


def _escape(segment: str) -> str:
    """Escape one path segment so it cannot add path separators."""
    return quote(segment, safe="$&+,;=:@")


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "…"


def _quoted(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _build(cls: Any, data: Any) -> Any:
    """Build a record from decoded JSON; an empty reply gives an empty record."""
    if data is None and dataclasses.is_dataclass(cls):
        return cls()
    return from_wire(cls, data)


class Client:
    """Base URL, HTTP session and credentials for talking to the API."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = DEFAULT_TIMEOUT
        self.user_agent = USER_AGENT
        self.token = ""
        self.api_key = ""

    def with_token(self, token: str) -> Client:
        """Return a copy that sends ``token`` as a bearer JWT."""
        out = copy.copy(self)
        out.token = token
        return out

    def with_api_key(self, key: str) -> Client:
        """Return a copy that sends ``key`` in the X-API-Key header."""
        out = copy.copy(self)
        out.api_key = key
        return out

    # ─── Low level ───────────────────────────────────────────────────────────

    def _auth_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _check(self, response: requests.Response, method: str, path: str) -> str:
        text = response.content.decode("utf-8", errors="replace")
        if not 200 <= response.status_code < 300:
            raise APIError(response.status_code, method, path, text)
        return text

    def _send(self, method: str, path: str, body: Any = None) -> tuple[int, str]:
        headers = self._auth_headers()
        data = None
        if body is not None:
            try:
                data = json.dumps(to_wire(body)).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise ValueError(f"marshal {method} {path} body: {exc}") from exc
            headers["Content-Type"] = "application/json"
        try:
            response = self.session.request(
                method, self.base_url + path, data=data, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise ConnectionError(f"{method} {path}: {exc}") from exc
        return response.status_code, self._check(response, method, path)

    @staticmethod
    def _decode(method: str, path: str, status: int, text: str) -> Any:
        if status == 204 or not text:
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            raise ValueError(
                f"decode {method} {path} response: {exc} (body: {_truncate(text, 200)})"
            ) from exc

    def request(self, method: str, path: str, body: Any = None) -> Any:
        """Send ``body`` as JSON and return the decoded reply, or None when empty."""
        status, text = self._send(method, path, body)
        return self._decode(method, path, status, text)

    def request_multipart(
        self,
        path: str,
        field_name: str,
        file_name: str,
        file_bytes: bytes,
        content_type: str,
        fields: Mapping[str, str] | None = None,
    ) -> Any:
        """POST a multipart form holding one file plus plain fields; return decoded JSON."""
        headers = self._auth_headers()
        part = (file_name, file_bytes, content_type) if content_type else (file_name, file_bytes)
        try:
            response = self.session.post(
                self.base_url + path,
                data=dict(fields or {}),
                files={field_name: part},
                headers=headers,
                timeout=max(self.timeout, UPLOAD_TIMEOUT),
            )
        except requests.RequestException as exc:
            raise ConnectionError(f"POST {path}: {exc}") from exc
        text = self._check(response, "POST", path)
        return self._decode("POST", path, response.status_code, text)

    # ─── Auth ────────────────────────────────────────────────────────────────

    def login(self, request: LoginRequest) -> LoginResponse:
        return _build(LoginResponse, self.request("POST", "/auth/login", request))

    # ─── API keys ────────────────────────────────────────────────────────────

    def create_api_key(self, request: CreateKeyRequest) -> CreateKeyResponse:
        return _build(CreateKeyResponse, self.request("POST", "/api/keys", request))

    def list_api_keys(self) -> list[APIKeyInfo]:
        return _build(list[APIKeyInfo], self.request("GET", "/api/keys"))

    def delete_api_key(self, key_id: str) -> None:
        self._send("DELETE", "/api/keys/" + _escape(key_id))

    # ─── Domains ─────────────────────────────────────────────────────────────

    def add_domain(self, request: AddDomainRequest) -> DomainInfo:
        if not request.type:
            request = dataclasses.replace(request, type="CUSTOM")
        return _build(DomainInfo, self.request("POST", "/api/domains", request))

    def list_domains(self) -> list[DomainInfo]:
        return _build(list[DomainInfo], self.request("GET", "/api/domains"))

    def verify_domain(self, domain_id: str) -> DomainInfo:
        path = f"/api/domains/{_escape(domain_id)}/verify"
        return _build(DomainInfo, self.request("POST", path))

    def domain_checks(self, domain_id: str) -> list[DNSRecord]:
        path = f"/api/domains/{_escape(domain_id)}/checks"
        return _build(list[DNSRecord], self.request("GET", path))

    def find_domain_by_name(self, name: str) -> DomainInfo:
        """Return the account's domain called ``name``; LookupError if none."""
        for domain in self.list_domains():
            if domain.domain_name == name:
                return domain
        raise LookupError(
            f"no domain named {_quoted(name)} on this account (run `aegean domains list`)"
        )

    # ─── Email ───────────────────────────────────────────────────────────────

    def send_email(self, request: SendEmailRequest) -> SendEmailResponse:
        return _build(SendEmailResponse, self.request("POST", "/v1/email/send", request))

    # ─── Logs ────────────────────────────────────────────────────────────────

    def list_logs(self, page: int, size: int) -> LogsPage:
        return _build(LogsPage, self.request("GET", f"/v1/logs?page={page}&size={size}"))

    # ─── Account ─────────────────────────────────────────────────────────────

    def current_account(self) -> AccountView:
        return _build(AccountView, self.request("GET", "/v1/account"))

    # ─── Sites ───────────────────────────────────────────────────────────────

    def list_sites(self) -> list[Site]:
        return _build(list[Site], self.request("GET", "/api/sites"))

    def find_site(self, slug: str) -> Site:
        """Return the account's site with ``slug``; LookupError if none."""
        for site in self.list_sites():
            if site.slug == slug:
                return site
        raise LookupError(
            f"no site with slug {_quoted(slug)} on this account (run `aegean sites list`)"
        )

    def create_site(self, site: SiteInput) -> Site:
        return _build(Site, self.request("POST", "/api/sites", site))

    def update_site(self, site_id: str, site: SiteInput) -> Site:
        return _build(Site, self.request("PUT", "/api/sites/" + _escape(site_id), site))

    def delete_site(self, site_id: str) -> None:
        self._send("DELETE", "/api/sites/" + _escape(site_id))

    def deploy_site(
        self, site_id: str, zip_bytes: bytes, zip_name: str, notes: str = ""
    ) -> SiteDeployment:
        """Upload a zip bundle; the server extracts and activates it."""
        fields = {"notes": notes} if notes else {}
        data = self.request_multipart(
            f"/api/sites/{_escape(site_id)}/deployments",
            "file",
            zip_name,
            zip_bytes,
            "application/zip",
            fields,
        )
        return _build(SiteDeployment, data)

    def list_site_deployments(self, site_id: str) -> list[SiteDeployment]:
        path = f"/api/sites/{_escape(site_id)}/deployments"
        return _build(list[SiteDeployment], self.request("GET", path))

    def activate_deployment(self, site_id: str, deployment_id: str) -> None:
        self._send(
            "POST", f"/api/sites/{_escape(site_id)}/activate/{_escape(deployment_id)}"
        )