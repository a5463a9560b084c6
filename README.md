# aegean

A Python client library for the Aegean Cloud Engine API. It covers:

- logging in and managing API keys,
- registering sender domains and checking their DKIM/SPF/DMARC/MX records,
- sending transactional email and reading the delivery logs,
- registering static sites, deploying zipped bundles and rolling back.

Results can be rendered as a plain-text table, as JSON or as a simple YAML
listing, so the same data can go to a terminal or to another program.

## Installation

```
pip install .
```

`requests` is the only runtime dependency. To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `aegean.types` — dataclasses for every request and reply (`LoginRequest`,
  `DomainInfo`, `SendEmailRequest`, `LogsPage`, `Site`, `SiteInput`,
  `SiteDeployment`, …), plus `to_wire(value)` and `from_wire(cls, data)` to
  convert them to and from the server's camelCase JSON. Optional fields that
  are empty or `None` are left off the wire; timestamps are RFC 3339 strings.
- `aegean.client` — `Client` and `APIError`.
- `aegean.output` — text tables, JSON and YAML rendering.
- `aegean.domains` — domain id resolution, verification polling, rendering.
- `aegean.messaging` — email body assembly, send results, log pages, tailing.
- `aegean.sites` — bundle building, site resolution, deploy output.

## Authentication

The API takes two kinds of credentials:

- a JWT, sent as `Authorization: Bearer …`, for account-level endpoints
  (`/auth`, `/api/keys`, `/api/domains`, `/api/sites`, `/v1/account`);
- an API key, sent as `X-API-Key`, for `/v1/email` and `/v1/logs`.

`with_token` and `with_api_key` return a copy of the client carrying the
extra credential; the original is left unchanged.

```python
from aegean.client import Client
from aegean.types import LoginRequest

password = "password"
base = Client("https://api.example.com")
login = base.login(LoginRequest(email="ada@example.com", password=password))
session = base.with_token(login.token)
mailer = session.with_api_key("placeholder")
```

Any non-2xx reply raises `aegean.client.APIError`, which has `status`,
`method`, `path` and `body` attributes; its message holds the method, path,
status and the response body cut to 400 characters. A transport failure
raises `ConnectionError`, and a reply that is not valid JSON raises
`ValueError`. `find_domain_by_name` and `find_site` raise `LookupError` when
nothing matches.

## Domains

```python
import sys

from aegean.domains import poll_verification, render_checks, render_domain_list, resolve_domain_id

render_domain_list(sys.stdout, "text", session.list_domains())

domain_id = resolve_domain_id(session, "mail.example.com")  # a name or a UUID
render_checks(sys.stdout, "text", session.domain_checks(domain_id))

info = poll_verification(session, domain_id, "mail.example.com",
                         timeout=300, every=15, stream=sys.stdout)
```

`poll_verification` asks the server to verify the domain until it reports
success, writing one line per failed attempt. A 404 raises `LookupError` at
once; when the timeout runs out it re-raises the last error, or raises
`TimeoutError` if the server simply never reported the domain as verified.
`add_domain` sends type `CUSTOM` when none is given.

## Sending email and reading logs

```python
from aegean.messaging import LogTailer, render_logs, render_send_result, resolve_body
from aegean.types import SendEmailRequest

body = resolve_body("Hello from the build server.", "", "", sys.stdin)
result = mailer.send_email(
    SendEmailRequest(to="ada@example.com", subject="Build finished", html=body)
)
render_send_result(sys.stdout, "text", result)

render_logs(sys.stdout, "yaml", mailer.list_logs(0, 20))

tailer = LogTailer(stream=sys.stdout)
tailer.poll(mailer, 20)          # records what is already there
new_entries = tailer.poll(mailer, 20)  # only entries not seen before
```

`resolve_body(text, html, html_file, stdin)` prefers `html_file` (where `-`
means `stdin`), then `html`, then `text`; plain text is HTML-escaped and
wrapped in a `<pre>` block. With none of them it raises `ValueError`.

## Static sites

```python
from aegean.sites import load_bundle, render_deploy_result, render_history, resolve_site_ref

site_id, slug = resolve_site_ref(session, "shop")  # a slug or a UUID
bundle, name = load_bundle("dist")  # a directory is zipped, a .zip is read as is

deployment = session.deploy_site(site_id, bundle, name, "first release")
render_deploy_result(sys.stdout, deployment, slug, "https://api.example.com",
                     session.current_account().alias)
render_history(sys.stdout, "text", session.list_site_deployments(site_id))

session.activate_deployment(site_id, deployment.id)  # roll back or forward
```

`zip_directory` skips `.git`, `node_modules`, `.DS_Store` and `*.swp`.
`load_bundle` raises `ValueError` for a file that is not a `.zip` and for a
bundle over 250 MB (`MAX_BUNDLE_BYTES`), the server's own limit; `deploy_site`
itself does not check the size. `default_slug` returns the slug of an
account's only site, `human_bytes` formats sizes such as `47.0 MB`, and
`browser_host` turns an API endpoint into the host the sites are served from.

## Output formats

`aegean.output` renders any of the above:

- `validate(format)` accepts `text`, `json` or `yaml` and raises `ValueError`
  otherwise;
- `to_json(stream, value)` writes JSON indented by two spaces;
- `to_yaml(stream, value)` writes nested mappings and lists with sorted keys,
  quoting scalars that hold `:`, `#`, a newline or edge spaces;
- `table(stream, headers, rows)` writes a fixed-width table with a divider row.

## What this package does not do

It is a library only: it installs no command-line program, does not prompt
for passwords, and does not read or store configuration or credentials on
disk. The caller supplies the endpoint, the token and the API key.