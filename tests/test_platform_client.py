"""Tests for the hosting platform client."""

import asyncio
import json

import httpx
import pytest

from app.config import Settings
from app.errors import ConfigurationError, PlatformError
from app.services.platform_client import PlatformDomainClient, create_platform_client

DOMAIN = "shop.example.com"


class Recorder:
    """MockTransport handler that replays queued responses and records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(recorder: Recorder, **overrides) -> PlatformDomainClient:
    options = {
        "token": "tok",
        "project_id": "prj_1",
        "base_url": "https://platform.test",
        "max_attempts": 2,
        "retry_wait": 0,
        "transport": httpx.MockTransport(recorder),
    }
    options.update(overrides)
    return PlatformDomainClient(**options)


def _error(status: int, code: str, message: str = "nope") -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": code, "message": message}})


class TestAttachDomain:
    async def test_success(self):
        recorder = Recorder(httpx.Response(200, json={
            "name": DOMAIN,
            "verified": False,
            "verification": [{"type": "TXT", "domain": f"_vercel.{DOMAIN}", "value": "v"}],
        }))
        client = _client(recorder)

        result = await client.attach_domain(DOMAIN)

        assert result.verified is False
        assert result.challenges[0].value == "v"
        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v10/projects/prj_1/domains"
        assert request.headers["Authorization"] == "Bearer tok"
        assert json.loads(request.content) == {"name": DOMAIN}

    async def test_preserves_platform_code(self):
        recorder = Recorder(_error(409, "domain_already_in_use", "in use"))
        client = _client(recorder)

        with pytest.raises(PlatformError) as exc_info:
            await client.attach_domain(DOMAIN)

        assert exc_info.value.code == "domain_already_in_use"
        assert exc_info.value.message == "in use"
        assert exc_info.value.http_status == 409
        assert len(recorder.requests) == 1  # 4xx is never retried

    async def test_team_id_sent_as_query(self):
        recorder = Recorder(httpx.Response(200, json={"verified": True}))
        client = _client(recorder, team_id="team_9")

        await client.attach_domain(DOMAIN)

        assert recorder.requests[0].url.params["teamId"] == "team_9"

    async def test_alias_redirect_payload(self):
        recorder = Recorder(httpx.Response(200, json={}))
        client = _client(recorder)

        await client.attach_alias_with_redirect(f"www.{DOMAIN}", DOMAIN, 308)

        assert json.loads(recorder.requests[0].content) == {
            "name": f"www.{DOMAIN}",
            "redirect": DOMAIN,
            "redirectStatusCode": 308,
        }

    async def test_alias_failure_raises(self):
        client = _client(Recorder(_error(400, "invalid_domain")))
        with pytest.raises(PlatformError):
            await client.attach_alias_with_redirect(f"www.{DOMAIN}", DOMAIN)


class TestRetryAndTimeout:
    async def test_retries_once_on_5xx(self):
        recorder = Recorder(
            _error(502, "bad_gateway"),
            httpx.Response(200, json={"verified": False}),
        )
        client = _client(recorder)

        result = await client.attach_domain(DOMAIN)

        assert result.verified is False
        assert len(recorder.requests) == 2

    async def test_gives_up_after_max_attempts(self):
        recorder = Recorder(_error(503, "unavailable"), _error(503, "unavailable"))
        client = _client(recorder)

        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_config(DOMAIN)

        assert exc_info.value.http_status == 503
        assert exc_info.value.is_transient
        assert len(recorder.requests) == 2

    async def test_timeout_is_platform_error(self):
        recorder = Recorder(
            httpx.ReadTimeout("slow"),
            httpx.ReadTimeout("slow"),
        )
        client = _client(recorder)

        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_config(DOMAIN)

        assert exc_info.value.code == "platform_timeout"
        assert exc_info.value.http_status == 504
        assert len(recorder.requests) == 2

    async def test_post_not_resent_after_read_timeout(self):
        recorder = Recorder(
            httpx.ReadTimeout("slow"),
            httpx.Response(200, json={"verified": False}),
        )
        client = _client(recorder)

        with pytest.raises(PlatformError) as exc_info:
            await client.attach_domain(DOMAIN)

        assert exc_info.value.code == "platform_timeout"
        assert len(recorder.requests) == 1

    async def test_post_resent_after_connect_error(self):
        recorder = Recorder(
            httpx.ConnectError("refused"),
            httpx.Response(200, json={"verified": False}),
        )
        client = _client(recorder)

        result = await client.attach_domain(DOMAIN)

        assert result.verified is False
        assert len(recorder.requests) == 2

    async def test_delete_resent_after_read_timeout(self):
        recorder = Recorder(httpx.ReadTimeout("slow"), httpx.Response(200, json={}))
        client = _client(recorder)

        await client.detach_domain(DOMAIN)

        assert len(recorder.requests) == 2

    async def test_total_timeout_bounds_slow_response(self):
        async def stall(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json={})

        client = _client(
            Recorder(), timeout=0.05, max_attempts=1, transport=httpx.MockTransport(stall),
        )

        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_config(DOMAIN)

        assert exc_info.value.code == "platform_timeout"
        assert exc_info.value.http_status == 504

    async def test_slow_get_is_retried(self):
        calls = []

        async def stall_once(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                await asyncio.sleep(1)
            return httpx.Response(200, json={"misconfigured": False})

        client = _client(Recorder(), timeout=0.05, transport=httpx.MockTransport(stall_once))

        config = await client.get_domain_config(DOMAIN)

        assert config.misconfigured is False
        assert len(calls) == 2

    async def test_network_error_is_platform_error(self):
        recorder = Recorder(httpx.ConnectError("refused"))
        client = _client(recorder, max_attempts=1)

        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_details(DOMAIN)

        assert exc_info.value.code == "platform_unreachable"
        assert exc_info.value.is_transient


class TestConfiguration:
    @pytest.mark.parametrize("overrides", [{"token": ""}, {"project_id": ""}])
    async def test_missing_credentials_make_no_request(self, overrides):
        recorder = Recorder()
        client = _client(recorder, **overrides)

        with pytest.raises(ConfigurationError):
            await client.attach_domain(DOMAIN)

        assert recorder.requests == []

    def test_factory_reads_settings(self):
        settings = Settings(
            PLATFORM_API_TOKEN="abc",
            PLATFORM_PROJECT_ID="prj_x",
            PLATFORM_TEAM_ID="team_x",
        )
        client = create_platform_client(settings)

        assert client.token == "abc"
        assert client.project_id == "prj_x"
        assert client.team_id == "team_x"


class TestGetDomainConfig:
    async def test_parses_config(self):
        recorder = Recorder(httpx.Response(200, json={
            "aValues": ["76.76.21.21"],
            "cnameTarget": "cname.vercel-dns.com",
            "misconfigured": False,
        }))
        client = _client(recorder)

        config = await client.get_domain_config(DOMAIN)

        assert recorder.requests[0].url.path == f"/v6/domains/{DOMAIN}/config"
        assert config.misconfigured is False
        assert config.recommended_a_records == ["76.76.21.21"]

    async def test_client_error_raises(self):
        client = _client(Recorder(_error(403, "forbidden")))
        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_config(DOMAIN)
        assert not exc_info.value.is_transient


class TestGetDomainDetails:
    async def test_returns_details(self):
        recorder = Recorder(httpx.Response(200, json={
            "name": DOMAIN,
            "verified": True,
            "verification": [],
        }))
        client = _client(recorder)

        details = await client.get_domain_details(DOMAIN)

        assert recorder.requests[0].url.path == f"/v9/projects/prj_1/domains/{DOMAIN}"
        assert details is not None
        assert details.verification == []

    async def test_not_found_returns_none(self):
        client = _client(Recorder(_error(404, "not_found")))
        assert await client.get_domain_details(DOMAIN) is None

    async def test_auth_failure_raises(self):
        client = _client(Recorder(_error(401, "forbidden", "Not authorized")))
        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_details(DOMAIN)
        assert exc_info.value.http_status == 401


class TestDetachDomain:
    async def test_success(self):
        recorder = Recorder(httpx.Response(200, json={}))
        client = _client(recorder)

        await client.detach_domain(DOMAIN)

        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.path == f"/v9/projects/prj_1/domains/{DOMAIN}"

    async def test_not_found_is_success(self):
        client = _client(Recorder(_error(404, "not_found")))
        await client.detach_domain(DOMAIN)

    async def test_other_error_raises(self):
        client = _client(Recorder(_error(400, "domain_is_verified")))
        with pytest.raises(PlatformError) as exc_info:
            await client.detach_domain(DOMAIN)
        assert exc_info.value.code == "domain_is_verified"

    async def test_error_without_json_body(self):
        client = _client(Recorder(httpx.Response(400, text="bad request")))
        with pytest.raises(PlatformError) as exc_info:
            await client.detach_domain(DOMAIN)
        assert exc_info.value.code == "platform_error"


class TestUnreadableResponses:
    async def test_non_json_details(self):
        client = _client(Recorder(httpx.Response(200, text="<html>gateway</html>")))

        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_details(DOMAIN)

        assert exc_info.value.code == "invalid_response"
        assert exc_info.value.http_status == 502

    async def test_non_json_config(self):
        client = _client(Recorder(httpx.Response(200, text="<html>gateway</html>")))

        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_config(DOMAIN)

        assert exc_info.value.code == "invalid_response"

    async def test_non_object_json(self):
        client = _client(Recorder(httpx.Response(200, json=["not", "an", "object"])))

        with pytest.raises(PlatformError) as exc_info:
            await client.attach_domain(DOMAIN)

        assert exc_info.value.code == "invalid_response"

    async def test_wrong_shape_challenge(self):
        client = _client(Recorder(httpx.Response(200, json={
            "verification": [{"type": "TXT", "domain": f"_vercel.{DOMAIN}", "value": {"nested": 1}}],
        })))

        with pytest.raises(PlatformError) as exc_info:
            await client.get_domain_details(DOMAIN)

        assert exc_info.value.code == "invalid_response"
