from diagserver.errors import GatewayDiscoveryError, HostnameLookupError
from diagserver.services import summary

from conftest import StubProcessLister


def _raise(exc: Exception):
    def _fn():
        raise exc

    return _fn


async def test_version_returns_fixed_string(api_client) -> None:
    resp = await api_client.get("/version")
    assert resp.status_code == 200
    assert resp.text == "1.2\n"
    assert resp.headers["content-type"].startswith("text/plain")


async def test_version_follows_settings(api_client, test_app) -> None:
    test_app.state.settings.version = "9.9"
    resp = await api_client.get("/version")
    assert resp.text == "9.9\n"


async def test_responses_include_x_request_id(api_client) -> None:
    resp = await api_client.get("/version")
    assert resp.headers.get("x-request-id")


async def test_oneline_without_forwarded_for(api_client) -> None:
    resp = await api_client.get("/oneline")
    assert resp.status_code == 200
    body = resp.text
    assert body.endswith("\n")
    assert body.count("\n") == 1
    assert " Hello, World: Host=test, LocalAddr=10.0.0.5, RemoteAddr=127.0.0.1:123" in body
    assert "X-Forwarded-For=" not in body


async def test_oneline_with_forwarded_for(api_client) -> None:
    resp = await api_client.get("/oneline", headers={"X-Forwarded-For": "1.2.3.4"})
    assert resp.status_code == 200
    assert resp.text.rstrip("\n").endswith(", X-Forwarded-For=1.2.3.4")


async def test_oneline_echoes_summary_to_stdout_and_stderr(api_client, capfd) -> None:
    # No configure_logging() here: create_app alone must wire the stderr echo.
    capfd.readouterr()
    resp = await api_client.get("/oneline")
    assert resp.status_code == 200

    out, err = capfd.readouterr()
    echoed = [line for line in err.splitlines() if line.startswith("(STDERR) ")]
    assert len(echoed) == 1
    assert echoed[0].endswith("<onelineHandler>")
    assert "Hello, World: Host=test" in echoed[0]
    assert "request_summary" in out
    assert "onelineHandler" in out


async def test_root_echoes_summary_to_stdout_and_stderr(api_client, capfd) -> None:
    capfd.readouterr()
    resp = await api_client.get("/")
    assert resp.status_code == 200

    out, err = capfd.readouterr()
    echoed = [line for line in err.splitlines() if line.startswith("(STDERR) ")]
    assert len(echoed) == 1
    assert echoed[0].endswith("<helloHandler>")
    assert "Hello, World: Host=test, LocalAddr=10.0.0.5, RemoteAddr=127.0.0.1:123" in echoed[0]
    assert "request_summary" in out
    assert "helloHandler" in out


async def test_version_does_not_echo_to_stderr(api_client, capfd) -> None:
    capfd.readouterr()
    await api_client.get("/version")
    _, err = capfd.readouterr()
    assert "(STDERR)" not in err


async def test_root_lists_headers_sorted(api_client) -> None:
    resp = await api_client.get("/", headers={"X-Zeta": "last", "b-header": "two", "Accept": "text/plain"})
    assert resp.status_code == 200
    lines = resp.text.splitlines()

    assert lines[0] == "Hello, World!"
    assert lines[2] == "  Hostname: diag-host"
    assert lines[3] == "  LocalAddress: 10.0.0.5"
    assert lines[4] == "  Gateway: 10.0.0.1"
    assert lines[5] == "  Headers:"

    header_lines = [line for line in lines[6:] if line.startswith("    ")]
    names = [line.strip().split(":", 1)[0] for line in header_lines]
    assert names == sorted(names)
    assert "X-Zeta" in names
    assert "B-Header" in names
    assert "Host" not in names
    assert "    X-Zeta: [last]" in header_lines

    assert lines[-2] == "  Host: test"
    assert lines[-1] == "  RemoteAddress: 127.0.0.1:123"


async def test_unmatched_paths_get_the_diagnostic_body(api_client) -> None:
    resp = await api_client.get("/anything/else")
    assert resp.status_code == 200
    lines = resp.text.splitlines()
    assert lines[0] == "Hello, World!"
    assert lines[2] == "  Hostname: diag-host"
    assert lines[-2] == "  Host: test"


async def test_root_accepts_any_method(api_client) -> None:
    for method in ("POST", "PUT", "DELETE"):
        resp = await api_client.request(method, "/")
        assert resp.status_code == 200
        assert resp.text.startswith("Hello, World!\n")


async def test_root_stops_after_hostname_failure(api_client, monkeypatch) -> None:
    monkeypatch.setattr(summary, "get_hostname", _raise(HostnameLookupError("no name")))
    resp = await api_client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Hello, World!\n"


async def test_root_stops_after_gateway_failure(api_client, monkeypatch) -> None:
    monkeypatch.setattr(summary, "discover_gateway", _raise(GatewayDiscoveryError("no default route")))
    resp = await api_client.get("/")
    assert resp.status_code == 200
    lines = resp.text.splitlines()
    assert lines[-1] == "  LocalAddress: 10.0.0.5"
    assert "Gateway" not in resp.text
    assert "Headers" not in resp.text


async def test_ps_lists_one_line_per_process(api_client, process_lister) -> None:
    resp = await api_client.get("/ps")
    assert resp.status_code == 200
    lines = resp.text.splitlines()
    assert len(lines) == len(process_lister.processes)
    assert lines[0] == "* init\t[/sbin/init splash]"
    assert lines[2] == "* kworker/0:1\t[]"


async def test_ps_reports_enumeration_failure_inline(api_client, test_app) -> None:
    test_app.state.process_lister = StubProcessLister(error="permission denied")
    resp = await api_client.get("/ps")
    assert resp.status_code == 200
    assert resp.text == "process listing failed: permission denied\n"
