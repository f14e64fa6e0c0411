"""Identity verification clients: PAN lookup, Aadhaar authentication and liveness"""

import httpx
from typing import Any, Dict
from finrisk_gateway.config import settings
from finrisk_gateway.domain.exceptions import VerificationProviderError
from finrisk_gateway.domain.models import LivenessResult, ProviderOutcome, VerificationOutcome
from finrisk_gateway.infrastructure.observability.metrics import external_call_failures_counter


class KycClient:
    """Client for the PAN and Aadhaar verification provider"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.kyc_api_base
        self.api_key = api_key if api_key is not None else settings.kyc_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _post(self, path: str, id_number: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}{path}",
                    json={"key": self.api_key, "id_number": id_number},
                )
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                external_call_failures_counter.labels(service="kyc").inc()
                raise VerificationProviderError(f"KYC provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                external_call_failures_counter.labels(service="kyc").inc()
                raise VerificationProviderError(f"KYC provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                external_call_failures_counter.labels(service="kyc").inc()
                raise VerificationProviderError(f"KYC provider unreachable: {e}") from e
            except ValueError as e:
                external_call_failures_counter.labels(service="kyc").inc()
                raise VerificationProviderError(f"Invalid response from KYC provider: {e}") from e

    async def verify_pan(self, pan_number: str) -> VerificationOutcome:
        """
        Look up a PAN with the provider.

        Raises:
            VerificationProviderError: Provider unreachable or malformed response
        """
        result = await self._post("/api/v1/pan/pan_advance", pan_number)
        data = result.get("data") or {}
        full_name = data.get("full_name") or result.get("full_name")

        if result.get("status") == "success" or full_name:
            return VerificationOutcome(ProviderOutcome.VERIFIED, details="PAN record found", name_on_record=full_name)
        return VerificationOutcome(ProviderOutcome.FAILED, details=str(result.get("message", "Invalid PAN response.")))

    async def verify_aadhaar(self, aadhaar_number: str) -> VerificationOutcome:
        """
        Authenticate an Aadhaar number with the provider.

        Raises:
            VerificationProviderError: Provider unreachable or malformed response
        """
        result = await self._post("/api/v1/aadhaar/verify", aadhaar_number)
        if result.get("status") == "success":
            return VerificationOutcome(ProviderOutcome.VERIFIED, details="UIDAI authentication succeeded")
        return VerificationOutcome(
            ProviderOutcome.FAILED, details=str(result.get("message", "UIDAI Authentication Failed."))
        )


class LivenessClient:
    """Client for the biometric liveness detection service"""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.liveness_api_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def check_liveness(self, image_base64: str) -> LivenessResult:
        """
        Submit a selfie (base64 data URL) for liveness analysis.

        Raises:
            VerificationProviderError: On timeout, HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.url, json={"image": image_base64})
                response.raise_for_status()
                data = response.json()

                return LivenessResult(
                    is_live=bool(data["isLive"]),
                    confidence_score=float(data["confidenceScore"]),
                    reasoning=str(data.get("reasoning", "")),
                )

            except httpx.TimeoutException as e:
                external_call_failures_counter.labels(service="liveness").inc()
                raise VerificationProviderError(f"Liveness service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                external_call_failures_counter.labels(service="liveness").inc()
                raise VerificationProviderError(f"Liveness service error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                external_call_failures_counter.labels(service="liveness").inc()
                raise VerificationProviderError(f"Liveness service unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                external_call_failures_counter.labels(service="liveness").inc()
                raise VerificationProviderError(f"Invalid liveness data: {e}") from e
