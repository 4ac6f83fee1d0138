import fetch
from getterlib.registry import all_providers


def test_cli_writes_fetched_bytes(tmp_path):
    src = tmp_path / "index.yaml"
    src.write_bytes(b"apiVersion: v1\n")
    out = tmp_path / "out.yaml"
    assert fetch.main([src.as_uri(), "--out", str(out)]) == 0
    assert out.read_bytes() == b"apiVersion: v1\n"


def test_cli_reports_unsupported_scheme(tmp_path):
    assert fetch.main(["ftp://example.com/chart.tgz"]) == 1


def test_cli_passes_options_to_http(http_server, tmp_path):
    srv = http_server(lambda req: (200, req.headers.get("User-Agent"), {}))
    out = tmp_path / "ua.txt"
    assert fetch.main([srv.url, "--user-agent", "cli-test", "--out", str(out)]) == 0
    assert out.read_text() == "cli-test"


def test_cli_keeps_plain_http_from_environment(monkeypatch):
    seen = []

    def spy(settings, metrics=None):
        seen.append(settings)
        return all_providers(settings, metrics=metrics)

    monkeypatch.setenv("GETTERLIB_PLAIN_HTTP", "1")
    monkeypatch.setattr(fetch, "all_providers", spy)
    assert fetch.main(["ftp://example.com/chart.tgz", "--enable-oci"]) == 1
    assert seen[0].enable_oci
    assert seen[0].plain_http


def test_cli_reports_bad_timeout_setting(monkeypatch):
    monkeypatch.setenv("GETTERLIB_TIMEOUT", "abc")
    assert fetch.main(["https://example.com/index.yaml"]) == 1
