"""
Integration Tests: HttpCraftCli ↔ subprocess ↔ decoder/normalizer pipeline.

The httpcraft executable is replaced by the ``fake_httpcraft`` script from
conftest.py, which replays canned stdout and records its argv.
"""

import json

import pytest

from mcp_httpcraft.client import HttpCraftCli
from mcp_httpcraft.decoding import ResponseMode
from mcp_httpcraft.errors import DecodeError, LaunchError, NonZeroExitError


@pytest.mark.integration
@pytest.mark.asyncio
async def test_request_decodes_http_envelope(fake_httpcraft):
    """
    Given: httpcraft prints an HTTP-envelope response
    When: request() is called
    Then: The argv is built for the request sub-command and stdout is decoded
    """
    fake_httpcraft.respond(
        json.dumps(
            {
                "statusCode": 201,
                "headers": {"Content-Type": "application/json"},
                "body": {"id": 1},
                "duration": 80,
            }
        )
    )

    response = await HttpCraftCli().request(
        "https://api.example.com/items",
        method="POST",
        headers={"X-Trace": "abc"},
        body='{"name": "item"}',
    )

    assert response.mode == ResponseMode.HTTP
    assert response.success is True
    assert response.status_code == 201
    assert response.data == {"id": 1}
    assert fake_httpcraft.last_args == [
        "request",
        "--method",
        "POST",
        "https://api.example.com/items",
        "--header",
        "X-Trace: abc",
        "--data",
        '{"name": "item"}',
        "--json",
    ]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_call_api_decodes_api_envelope(fake_httpcraft):
    fake_httpcraft.respond('{"status": "error", "error": "Unknown endpoint", "meta": {}}')

    response = await HttpCraftCli().call_api("github", "nope", profile="me")

    assert response.mode == ResponseMode.API
    assert response.success is False
    assert response.error == "Unknown endpoint"
    assert fake_httpcraft.last_args == ["github", "nope", "--profile", "me", "--json"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_request_with_text_output(fake_httpcraft):
    fake_httpcraft.respond("HTTP/1.1 200 OK\nContent-Type: text/html\n\n<p>hi</p>\n")

    response = await HttpCraftCli().request("https://example.com")

    assert response.mode == ResponseMode.TEXT
    assert response.status_code == 200
    assert response.content_type == "text/html"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_chain(fake_httpcraft):
    """
    Given: httpcraft prints a chain result with one failed step
    When: run_chain() is called
    Then: The outcome and an empty validation report are returned
    """
    fake_httpcraft.respond(
        json.dumps(
            {
                "success": False,
                "steps": [
                    {"name": "login", "success": True, "response": {"statusCode": 200}},
                    {"name": "order", "success": False, "error": "402 Payment Required"},
                ],
                "failedStep": 1,
                "totalDuration": 640,
            }
        )
    )

    outcome, report = await HttpCraftCli().run_chain("checkout", stop_on_failure=True)

    assert report.valid
    assert outcome.success is False
    assert outcome.failed_step_index == 1
    assert outcome.total_duration == 640
    assert outcome.steps[0].response.status_code == 200
    assert fake_httpcraft.last_args == [
        "chain",
        "exec",
        "checkout",
        "--stop-on-failure",
        "--json",
    ]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_chain_single_response(fake_httpcraft):
    fake_httpcraft.respond('{"statusCode": 200, "body": "done"}')

    outcome, report = await HttpCraftCli().run_chain("one-shot")

    assert report.valid
    assert [step.name for step in outcome.steps] == ["single-request"]
    assert outcome.total_duration >= 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_non_zero_exit_raises(fake_httpcraft):
    fake_httpcraft.respond("", exit_code=1, stderr="Error: Profile 'x' not found")

    with pytest.raises(NonZeroExitError) as exc_info:
        await HttpCraftCli().request("https://example.com", profile="x")

    assert exc_info.value.exit_code == 1
    assert "Profile 'x' not found" in str(exc_info.value)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_execute_json(fake_httpcraft):
    fake_httpcraft.respond('[{"name": "github"}, {"name": "stripe"}]')

    value = await HttpCraftCli().execute_json(["list", "apis", "--json"])

    assert value == [{"name": "github"}, {"name": "stripe"}]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_execute_json_rejects_text(fake_httpcraft):
    fake_httpcraft.respond("not json at all")

    with pytest.raises(DecodeError):
        await HttpCraftCli().execute_json(["list", "apis"])


@pytest.mark.integration
@pytest.mark.asyncio
async def test_execute_text_lines(fake_httpcraft):
    fake_httpcraft.respond("github\n\n  stripe  \n")

    assert await HttpCraftCli().execute_text(["list", "apis"]) == ["github", "stripe"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_version_and_availability(fake_httpcraft):
    client = HttpCraftCli()

    assert await client.get_version() == "httpcraft 1.4.2"
    assert await client.is_available() is True


@pytest.mark.integration
@pytest.mark.asyncio
async def test_unavailable_executable(monkeypatch, tmp_path):
    monkeypatch.setenv("HTTPCRAFT_PATH", str(tmp_path / "missing"))
    client = HttpCraftCli()

    assert await client.is_available() is False
    with pytest.raises(LaunchError):
        await client.get_version()
