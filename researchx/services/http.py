import logging

import requests

from researchx.errors import ProviderError, ProviderUnavailable

logger = logging.getLogger(__name__)


class ProviderClient:
    """
    Bearer-authenticated JSON client for one third-party provider.

    Non-2xx answers raise ProviderError carrying the provider's status and
    message; requests that got no answer raise ProviderUnavailable. Nothing
    is retried.
    """

    name = "provider"

    def __init__(self, base_url, api_key, timeout=10, session=None):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _error_message(self, data, response):
        return data.get("message")

    def _request(self, method, path, json=None, timeout=None):
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(
                method,
                url,
                json=json,
                headers=self._headers(),
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{self.name} request failed: {method} {path}: {e}")
            raise ProviderUnavailable(f"No response from {self.name}", provider=self.name) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {"data": data}

        if not response.ok:
            provider_message = self._error_message(data, response)
            logger.error(
                f"{self.name} returned {response.status_code} for {method} {path}: {provider_message}"
            )
            raise ProviderError(
                provider_message or f"API error: {response.reason}",
                status_code=response.status_code,
                provider=self.name,
                response_data=data,
                provider_message=provider_message,
            )

        return data
