from researchx.services.http import ProviderClient


class QuetextClient(ProviderClient):
    name = "plagiarism service"

    def __init__(self, base_url, api_key, timeout=10, status_timeout=5, session=None):
        super().__init__(base_url, api_key, timeout=timeout, session=session)
        self.status_timeout = status_timeout

    @classmethod
    def from_settings(cls, settings, session=None):
        return cls(
            settings.quetext_base_url,
            settings.quetext_api_key,
            timeout=settings.provider_timeout,
            status_timeout=settings.status_timeout,
            session=session,
        )

    def check(self, text, language, detailed=False):
        return self._request("POST", "/v1/plagiarism", json={
            "text": text,
            "language": language,
            # Detailed matches only when asked for
            "scan": 1 if detailed else 0,
        })

    def status(self):
        return self._request("GET", "/v1/status", timeout=self.status_timeout)
