"""Statement analyzer HTTP client for structured bank statement metrics"""

import httpx
from finrisk_gateway.domain.models import BankStatementAnalysis
from finrisk_gateway.domain.exceptions import StatementAnalyzerError
from finrisk_gateway.config import settings
from finrisk_gateway.infrastructure.observability.metrics import external_call_failures_counter


class StatementAnalyzerClient:
    """Client for the external AI statement analysis service"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = base_url or settings.statement_analyzer_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def analyze_statement(self, statement_text: str) -> BankStatementAnalysis:
        """
        Submit statement text and parse the analyzer's numeric summary.

        Raises:
            StatementAnalyzerError: On timeout, HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.url, json={"text": statement_text})
                response.raise_for_status()
                data = response.json()
                payload = data.get("data", data)

                return BankStatementAnalysis(
                    avg_monthly_balance=float(payload["avgMonthlyBalance"]),
                    salary_credits=float(payload["salaryCredits"]),
                    existing_emis=int(payload["existingEmis"]),
                    emi_amount=float(payload["emiAmount"]),
                    bounces=int(payload["bounces"]),
                    negative_balance_days=int(payload["negativeBalanceDays"]),
                    income_stability_score=float(payload["incomeStabilityScore"]),
                    summary=str(payload.get("summary", "")),
                )

            except httpx.TimeoutException as e:
                external_call_failures_counter.labels(service="statement_analyzer").inc()
                raise StatementAnalyzerError(f"Statement analyzer timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                external_call_failures_counter.labels(service="statement_analyzer").inc()
                raise StatementAnalyzerError(f"Statement analyzer error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                external_call_failures_counter.labels(service="statement_analyzer").inc()
                raise StatementAnalyzerError(f"Statement analyzer unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                external_call_failures_counter.labels(service="statement_analyzer").inc()
                raise StatementAnalyzerError(f"Invalid analysis data from analyzer: {e}") from e
