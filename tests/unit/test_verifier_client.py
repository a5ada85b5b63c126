"""Unit tests for the server-side verification client."""

import httpx
import pytest

from client.verifier import USER_AGENT, VERIFY_PATH, VerificationClient

API_URL = "https://api.example.test"


class _FakeHttp:
    """Records posts and answers with a canned response or exception."""

    def __init__(self, status=200, payload=None, raises=None, text=None):
        self.status = status
        self.payload = payload
        self.raises = raises
        self.text = text
        self.calls = []
        self.closed = False

    async def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.raises is not None:
            raise self.raises
        request = httpx.Request("POST", url)
        if self.text is not None:
            return httpx.Response(self.status, text=self.text, request=request)
        return httpx.Response(self.status, json=self.payload, request=request)

    async def aclose(self):
        self.closed = True


OK_PAYLOAD = {
    "success": True,
    "score": 0.8,
    "action": "allow",
    "challenge_ts": "2024-01-15T10:30:00+00:00",
    "hostname": "example.com",
    "verification_time": 12,
}


def _client(http):
    return VerificationClient("da_live_secret", api_url=API_URL + "/", http_client=http)


class TestVerify:
    async def test_request_shape(self):
        http = _FakeHttp(payload=OK_PAYLOAD)
        await _client(http).verify("tok", remoteip="1.2.3.4", user_agent="ua", action="login")
        url, kwargs = http.calls[0]
        assert url == API_URL + VERIFY_PATH
        assert kwargs["headers"] == {"X-API-Key": "da_live_secret"}
        assert kwargs["json"] == {
            "token": "tok",
            "response": "server_verification",
            "userAgent": "ua",
            "ipAddress": "1.2.3.4",
            "action": "login",
        }

    async def test_success_passthrough(self):
        result = await _client(_FakeHttp(payload=OK_PAYLOAD)).verify("tok")
        assert result["success"] is True
        assert result["score"] == 0.8
        assert result["hostname"] == "example.com"
        assert "error-codes" not in result

    async def test_unsuccessful_result(self):
        payload = dict(OK_PAYLOAD, success=False, action="block", score=0.1)
        result = await _client(_FakeHttp(payload=payload)).verify("tok")
        assert result["success"] is False
        assert result["error-codes"] == ["verification-failed"]

    @pytest.mark.parametrize(
        "http",
        [
            _FakeHttp(raises=httpx.ConnectError("refused")),
            _FakeHttp(raises=httpx.ReadTimeout("slow")),
            _FakeHttp(status=401, payload={"success": False, "code": "invalid_key"}),
            _FakeHttp(status=500, payload={}),
            _FakeHttp(text="<html>oops</html>"),
            _FakeHttp(payload=[1, 2, 3]),
        ],
        ids=["connect", "timeout", "http_401", "http_500", "not_json", "not_object"],
    )
    async def test_failures_never_raise(self, http):
        result = await _client(http).verify("tok")
        assert result == {"success": False, "error-codes": ["request-failed"]}


class TestVerifyWithValidation:
    async def test_all_checks_pass(self):
        result = await _client(_FakeHttp(payload=OK_PAYLOAD)).verify_with_validation(
            "tok",
            expected_action="allow",
            minimum_score=0.5,
            expected_hostname="example.com",
        )
        assert result["is_valid"] is True
        assert result["validation_errors"] == []

    async def test_each_mismatch_reported(self):
        result = await _client(_FakeHttp(payload=OK_PAYLOAD)).verify_with_validation(
            "tok",
            expected_action="login",
            minimum_score=0.9,
            expected_hostname="other.example",
        )
        assert result["is_valid"] is False
        assert result["validation_errors"] == [
            "action-mismatch",
            "score-too-low",
            "hostname-mismatch",
        ]

    async def test_failed_verification_skips_checks(self):
        http = _FakeHttp(raises=httpx.ConnectError("refused"))
        result = await _client(http).verify_with_validation("tok", expected_action="login")
        assert result["is_valid"] is False
        assert result["validation_errors"] == []
        assert result["error-codes"] == ["request-failed"]


async def test_context_manager_closes_transport():
    http = _FakeHttp(payload=OK_PAYLOAD)
    async with _client(http) as client:
        await client.verify("tok")
    assert http.closed


def test_default_transport_sets_user_agent():
    client = VerificationClient("k")
    assert client._http._client.headers["User-Agent"] == USER_AGENT
