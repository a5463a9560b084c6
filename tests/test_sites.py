import io
import json
import zipfile
from datetime import datetime, timezone

import pytest
import responses

from aegean import sites
from aegean.client import Client
from aegean.types import Site, SiteDeployment

BASE = "https://api.example.com"
SITE_ID = "11111111-2222-3333-4444-555555555555"


@pytest.fixture
def api():
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def client():
    return Client(BASE).with_token("token")


def _site(slug, site_id="s1", **extra):
    return {"id": site_id, "slug": slug, "bucketName": "bucket", **extra}


# ─── human_bytes ─────────────────────────────────────────────────────────────


def test_human_bytes_small_counts_are_plain():
    assert sites.human_bytes(0) == "0 B"
    assert sites.human_bytes(1023) == "1023 B"


def test_human_bytes_megabytes_example():
    assert sites.human_bytes(47 * 1024 * 1024) == "47.0 MB"


@pytest.mark.parametrize("power,suffix", [(1, "KB"), (2, "MB"), (3, "GB"), (4, "TB")])
def test_human_bytes_unit_boundaries(power, suffix):
    assert sites.human_bytes(1024**power) == f"1.0 {suffix}"


def test_human_bytes_too_large():
    with pytest.raises(ValueError):
        sites.human_bytes(1024**5)


# ─── zip_directory ───────────────────────────────────────────────────────────


def _make_tree(root):
    (root / "index.html").write_text("<h1>hi</h1>")
    (root / "assets").mkdir()
    (root / "assets" / "app.js").write_text("console.log(1)")
    (root / ".git").mkdir()
    (root / ".git" / "config").write_text("x")
    (root / "node_modules" / "dep").mkdir(parents=True)
    (root / "node_modules" / "dep" / "index.js").write_text("x")
    (root / ".DS_Store").write_text("x")
    (root / "notes.swp").write_text("x")


def test_zip_directory_skips_noise_and_keeps_content(tmp_path):
    _make_tree(tmp_path)
    data = sites.zip_directory(tmp_path)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert archive.namelist() == ["assets/app.js", "index.html"]
        assert archive.read("index.html") == b"<h1>hi</h1>"
        assert archive.read("assets/app.js") == b"console.log(1)"
        assert all(i.compress_type == zipfile.ZIP_DEFLATED for i in archive.infolist())


def test_zip_directory_rejects_file(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    with pytest.raises(NotADirectoryError):
        sites.zip_directory(target)


def test_zip_directory_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        sites.zip_directory(tmp_path / "absent")


# ─── load_bundle ─────────────────────────────────────────────────────────────


def test_load_bundle_directory_named_after_dir(tmp_path):
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_text("ok")
    data, name = sites.load_bundle(dist)
    assert name == "dist.zip"
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert archive.namelist() == ["index.html"]


def test_load_bundle_current_directory_is_bundle_zip(tmp_path, monkeypatch):
    (tmp_path / "index.html").write_text("ok")
    monkeypatch.chdir(tmp_path)
    _, name = sites.load_bundle(".")
    assert name == "bundle.zip"


def test_load_bundle_prebuilt_zip_is_passed_through(tmp_path):
    archive = tmp_path / "Site.ZIP"
    archive.write_bytes(b"PK-bytes")
    data, name = sites.load_bundle(archive)
    assert data == b"PK-bytes"
    assert name == "Site.ZIP"


def test_load_bundle_rejects_non_zip_file(tmp_path):
    other = tmp_path / "site.tar"
    other.write_bytes(b"x")
    with pytest.raises(ValueError, match="doesn't end in .zip"):
        sites.load_bundle(other)


def test_load_bundle_missing_path(tmp_path):
    with pytest.raises(OSError, match="read"):
        sites.load_bundle(tmp_path / "nope.zip")


def test_load_bundle_enforces_size_cap(tmp_path, monkeypatch):
    archive = tmp_path / "big.zip"
    archive.write_bytes(b"0123456789")
    monkeypatch.setattr(sites, "MAX_BUNDLE_BYTES", 5)
    with pytest.raises(ValueError, match="250 MB backend cap"):
        sites.load_bundle(archive)


# ─── site resolution ─────────────────────────────────────────────────────────


def test_resolve_site_ref_uuid_needs_no_request(api, client):
    assert sites.resolve_site_ref(client, SITE_ID) == (SITE_ID, SITE_ID)
    assert len(api.calls) == 0


def test_resolve_site_ref_slug_lookup(api, client):
    api.add(responses.GET, f"{BASE}/api/sites",
            json=[_site("blog", "a"), _site("shop", "b")])
    assert sites.resolve_site_ref(client, "shop") == ("b", "shop")


def test_resolve_site_ref_unknown_slug(api, client):
    api.add(responses.GET, f"{BASE}/api/sites", json=[_site("blog")])
    with pytest.raises(LookupError, match="no site with slug"):
        sites.resolve_site_ref(client, "shop")


def test_default_slug_single_site(api, client):
    api.add(responses.GET, f"{BASE}/api/sites", json=[_site("shop")])
    assert sites.default_slug(client) == "shop"


def test_default_slug_no_sites(api, client):
    api.add(responses.GET, f"{BASE}/api/sites", json=[])
    with pytest.raises(LookupError, match="no sites on this account"):
        sites.default_slug(client)


def test_default_slug_many_sites(api, client):
    api.add(responses.GET, f"{BASE}/api/sites", json=[_site("a"), _site("b")])
    with pytest.raises(ValueError, match="multiple sites"):
        sites.default_slug(client)


def test_fetch_account_alias(api, client):
    api.add(responses.GET, f"{BASE}/v1/account", json={"accountId": "acc", "alias": "acme"})
    assert sites.fetch_account_alias(client) == "acme"


# ─── hosts and rendering ─────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "endpoint,host",
    [
        ("https://api.example.com", "example.com"),
        ("http://localhost:8080", "localhost:8080"),
        ("https://api.dev.example.com", "dev.example.com"),
    ],
)
def test_browser_host(endpoint, host):
    assert sites.browser_host(endpoint) == host


def test_render_site_list_text():
    created = datetime(2026, 5, 15, 12, 0, tzinfo=timezone.utc)
    rows = [
        Site(id="1", slug="shop", bucket_name="b1", enabled=True, created_at=created),
        Site(id="2", slug="blog", bucket_name="b2", enabled=False,
             preferred_subdomain="myblog", created_at=created),
    ]
    stream = io.StringIO()
    sites.render_site_list(stream, "text", rows)
    lines = stream.getvalue().splitlines()
    assert lines[0].split() == ["SLUG", "BUCKET", "PREFERRED", "ENABLED", "CREATED"]
    assert lines[2].split() == ["shop", "b1", "(derived)", "yes", "2026-05-15"]
    assert lines[3].split() == ["blog", "b2", "myblog", "no", "2026-05-15"]


def test_render_site_list_empty():
    stream = io.StringIO()
    sites.render_site_list(stream, "text", [])
    assert stream.getvalue().startswith("No sites yet.")


def test_render_site_list_json_round_trip():
    stream = io.StringIO()
    sites.render_site_list(stream, "json", [Site(id="1", slug="shop")])
    decoded = json.loads(stream.getvalue())
    assert decoded[0]["slug"] == "shop"
    assert decoded[0]["id"] == "1"


def test_render_history_truncates_notes():
    when = datetime(2026, 5, 15, 9, 30, tzinfo=timezone.utc)
    long_notes = "x" * 50
    stream = io.StringIO()
    sites.render_history(stream, "text", [
        SiteDeployment(id="d1", bytes_total=2048, file_count=3, notes=long_notes, created_at=when),
    ])
    lines = stream.getvalue().splitlines()
    assert lines[0].split() == ["ID", "WHEN", "FILES", "BYTES", "NOTES"]
    assert lines[2].split() == ["d1", "2026-05-15", "09:30", "3", "2048", "x" * 40 + "…"]


def test_render_history_empty():
    stream = io.StringIO()
    sites.render_history(stream, "text", [])
    assert "No deployments yet." in stream.getvalue()


def test_render_deploy_result_with_alias():
    stream = io.StringIO()
    deployment = SiteDeployment(id="d1", bytes_total=47 * 1024 * 1024, file_count=3)
    sites.render_deploy_result(stream, deployment, "shop", BASE, "acme")
    text = stream.getvalue()
    assert text.startswith("✓ deployment d1 — 3 files, 47.0 MB\n")
    assert "https://example.com/sites/acme/shop/" in text
    assert "https://acme-shop.sites.example.com/" in text


def test_render_deploy_result_without_alias():
    stream = io.StringIO()
    deployment = SiteDeployment(id="d2", bytes_total=10, file_count=1)
    sites.render_deploy_result(stream, deployment, "shop", BASE, "")
    text = stream.getvalue()
    assert "https://example.com/sites/<your-alias>/shop/" in text
    assert "wildcard URL:" not in text