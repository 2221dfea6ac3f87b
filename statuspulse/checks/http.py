from __future__ import annotations

import socket
from typing import Callable

import httpx

from statuspulse.checks.base import ProbeOutcome
from statuspulse.domain.models import MonitoredService

DEFAULT_USER_AGENT = "statuspulse/1.0"

ClientFactory = Callable[[], httpx.AsyncClient]


class HttpMonitor:
    """Plain HTTP check: exact status code, optional literal body content."""

    timeout_label = "Request"

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._client_factory = client_factory or (lambda: httpx.AsyncClient(follow_redirects=True))
        self._user_agent = user_agent

    async def probe(self, service: MonitoredService) -> ProbeOutcome:
        async with self._client_factory() as client:
            response = await client.request(
                service.method.upper(),
                service.url,
                headers=self._headers(service),
                content=self._body(service),
                timeout=service.timeout_ms / 1000,
            )
        return self._evaluate(service, response)

    def describe_error(self, exc: Exception) -> str:
        return _normalize_error(exc)

    def _headers(self, service: MonitoredService) -> dict[str, str]:
        headers = {"User-Agent": self._user_agent}
        headers.update(self._custom_headers(service))
        if service.bearer_token:
            headers["Authorization"] = f"Bearer {service.bearer_token}"
        return headers

    def _custom_headers(self, service: MonitoredService) -> dict[str, str]:
        return {}

    def _body(self, service: MonitoredService) -> str | None:
        return None

    def _evaluate(self, service: MonitoredService, response: httpx.Response) -> ProbeOutcome:
        if response.status_code != service.expected_status:
            return ProbeOutcome(
                status_code=response.status_code,
                error=f"Expected status {service.expected_status}, got {response.status_code}",
            )
        if service.expected_content and service.expected_content not in response.text:
            return ProbeOutcome(
                status_code=response.status_code,
                error=f'Expected content "{service.expected_content}" not found in response',
            )
        return ProbeOutcome(status_code=response.status_code)


class KeywordMonitor(HttpMonitor):
    """Passes when the configured keyword appears in the body, ignoring case."""

    def _evaluate(self, service: MonitoredService, response: httpx.Response) -> ProbeOutcome:
        if not service.keyword:
            return ProbeOutcome(
                status_code=response.status_code,
                error="No keyword specified for keyword monitoring",
            )
        if service.keyword.lower() not in response.text.lower():
            return ProbeOutcome(
                status_code=response.status_code,
                error=f'Keyword "{service.keyword}" not found in response',
            )
        return ProbeOutcome(status_code=response.status_code)


class ApiMonitor(HttpMonitor):
    """API check with custom headers and JSON body; any 2xx passes."""

    def _custom_headers(self, service: MonitoredService) -> dict[str, str]:
        return dict(service.request_headers)

    def _headers(self, service: MonitoredService) -> dict[str, str]:
        headers = super()._headers(service)
        if service.request_body and not any(k.lower() == "content-type" for k in headers):
            headers["Content-Type"] = "application/json"
        return headers

    def _body(self, service: MonitoredService) -> str | None:
        return service.request_body or None

    def _evaluate(self, service: MonitoredService, response: httpx.Response) -> ProbeOutcome:
        if not response.is_success:
            return ProbeOutcome(
                status_code=response.status_code,
                error=f"API returned non-2xx status: {response.status_code}",
            )
        return ProbeOutcome(status_code=response.status_code)


def _normalize_error(exc: Exception) -> str:
    if isinstance(exc, httpx.ConnectError):
        return f"connect_error: {exc}" if str(exc) else "connect_error"
    if isinstance(exc, httpx.TransportError):
        return exc.__class__.__name__.lower()
    if isinstance(exc, socket.gaierror):
        return "dns_error"
    return str(exc) or exc.__class__.__name__
