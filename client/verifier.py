"""Server-side verification client for sites integrating the widget.

A site backend receives the widget's challenge token with the form post and
confirms it with ``verify``; ``verify_with_validation`` also checks the
result against the action, minimum score and hostname the site expects.

Neither method raises: transport and HTTP failures come back as
``{"success": False, "error-codes": ["request-failed"]}``.
"""

from typing import Any, Optional

import httpx

from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

DEFAULT_API_URL = "https://api.defendaminecraft.online"
VERIFY_PATH = "/api/v1/verify"
USER_AGENT = "DefendAMinecraft-Server/1.0.0"


class VerificationClient:
    def __init__(
        self,
        secret_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        self._secret_key = secret_key
        self._api_url = api_url.rstrip("/")
        self._http = http_client or HttpClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "VerificationClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def verify(
        self,
        response: str,
        remoteip: Optional[str] = None,
        user_agent: Optional[str] = None,
        action: Optional[str] = None,
    ) -> dict[str, Any]:
        try:
            resp = await self._http.post(
                f"{self._api_url}{VERIFY_PATH}",
                json={
                    "token": response,
                    "response": "server_verification",
                    "userAgent": user_agent,
                    "ipAddress": remoteip,
                    "action": action,
                },
                headers={"X-API-Key": self._secret_key},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning(
                "verification_request_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return {"success": False, "error-codes": ["request-failed"]}
        if not isinstance(data, dict):
            log.warning("verification_response_not_an_object")
            return {"success": False, "error-codes": ["request-failed"]}

        result: dict[str, Any] = {
            "success": bool(data.get("success", False)),
            "score": data.get("score"),
            "action": data.get("action"),
            "challenge_ts": data.get("challenge_ts"),
            "hostname": data.get("hostname"),
            "verification_time": data.get("verification_time"),
        }
        if not result["success"]:
            result["error-codes"] = ["verification-failed"]
        return result

    async def verify_with_validation(
        self,
        response: str,
        remoteip: Optional[str] = None,
        user_agent: Optional[str] = None,
        action: Optional[str] = None,
        *,
        expected_action: Optional[str] = None,
        minimum_score: Optional[float] = None,
        expected_hostname: Optional[str] = None,
    ) -> dict[str, Any]:
        result = await self.verify(response, remoteip, user_agent, action)
        errors: list[str] = []

        if result["success"]:
            if expected_action and result.get("action") != expected_action:
                errors.append("action-mismatch")
            if minimum_score and (result.get("score") or 0) < minimum_score:
                errors.append("score-too-low")
            if expected_hostname and result.get("hostname") != expected_hostname:
                errors.append("hostname-mismatch")

        return {
            **result,
            "is_valid": result["success"] and not errors,
            "validation_errors": errors,
        }
