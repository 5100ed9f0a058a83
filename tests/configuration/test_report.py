import pytest

from core.config import Configuration
from shared.formatting import format_bytes, format_duration


def _initialized(**fields) -> Configuration:
    config = Configuration(**fields)
    config.initialize()
    return config


def test_server_url_for_wildcard_address():
    url = _initialized().get_server_url()
    assert url.scheme == "http"
    assert url.netloc == "127.0.0.1:8080"
    assert url.path == ""
    assert url.geturl() == "http://127.0.0.1:8080"


def test_server_url_with_tls_and_base_path():
    url = _initialized(
        ssl_enabled=True,
        listen_address="192.168.0.10",
        listen_port=8443,
        path="/files/",
    ).get_server_url()
    assert url.geturl() == "https://192.168.0.10:8443/files"


def test_server_url_for_ipv6_wildcard():
    url = _initialized(listen_address="::").get_server_url()
    assert url.netloc == "[::1]:8080"
    assert url.hostname == "::1"
    assert url.port == 8080


def test_default_summary():
    assert str(_initialized()) == (
        "Maximum file size : 10 GB\n"
        "Maximum files per upload : 1000\n"
        "Default upload TTL : 30d\n"
        "Maximum upload TTL : 30d\n"
        "One shot upload : enabled\n"
        "Removable upload : enabled\n"
        "Streaming upload : enabled\n"
        "Upload password : enabled\n"
        "Authentication : disabled\n"
    )


def test_summary_with_authentication_providers():
    config = _initialized(
        download_domain="https://dl.example.com",
        default_ttl=0,
        max_ttl=0,
        one_shot=False,
        stream=False,
        authentication=True,
        ovh_api_key="key",
        ovh_api_secret="secret",
    )
    lines = str(config).splitlines()
    assert lines[0] == "Download domain : https://dl.example.com"
    assert "Default upload TTL : unlimited" in lines
    assert "Maximum upload TTL : unlimited" in lines
    assert "One shot upload : disabled" in lines
    assert "Streaming upload : disabled" in lines
    assert lines[-4:] == [
        "Authentication : enabled",
        "Google authentication : disabled",
        "OVH authentication : enabled",
        "OVH API endpoint : https://eu.api.ovh.com/1.0",
    ]


def test_public_view_hides_secrets():
    config = _initialized(
        authentication=True,
        google_api_client_id="client",
        google_api_secret="g-s3cr3t",
        ovh_api_key="key",
        ovh_api_secret="o-s3cr3t",
    )
    view = config.to_public_dict()
    assert view["googleAuthentication"] is True
    assert view["ovhAuthentication"] is True
    assert view["maxFileSize"] == 10_000_000_000
    assert view["defaultTTL"] == 2_592_000
    assert "g-s3cr3t" not in view.values()
    assert "o-s3cr3t" not in view.values()
    assert not any("secret" in key.lower() for key in view)


@pytest.mark.parametrize(
    "num, expected",
    [
        (0, "0 B"),
        (999, "999 B"),
        (1500, "1.5 kB"),
        (1_000_000, "1.0 MB"),
        (25_000_000, "25 MB"),
        (10_000_000_000, "10 GB"),
    ],
)
def test_format_bytes(num, expected):
    assert format_bytes(num) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0s"),
        (45, "45s"),
        (5400, "1h30m"),
        (3661, "1h1m1s"),
        (129_600, "1d12h"),
        (2_592_000, "30d"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
