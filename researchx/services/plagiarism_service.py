from researchx.errors import ProviderError, ProviderUnavailable, ServiceNotConfigured


class PlagiarismService:
    """Reshapes plagiarism provider answers into the response envelope."""

    def __init__(self, settings, client):
        self.settings = settings
        self.client = client

    def check(self, text, language, detailed=False):
        if not self.client.configured:
            raise ServiceNotConfigured("Plagiarism check service is not configured")

        data = self.client.check(text, language, detailed=detailed)

        result = {
            "success": True,
            "score": data.get("score"),
            "plagiarism": data.get("plagiarism"),
            "warnings": data.get("warnings") or [],
            "language": language,
        }

        if detailed:
            result["matches"] = data.get("matches") or []

        return result

    def status(self):
        """Returns (payload, http_status). The provider probe is never retried."""
        if not self.client.configured:
            return {
                "service": "plagiarism",
                "status": "disabled",
                "message": "QUETEXT_API_KEY not configured",
            }, 200

        try:
            api_status = self.client.status()
        except (ProviderError, ProviderUnavailable):
            return {
                "service": "plagiarism",
                "status": "unavailable",
                "error": "Unable to connect to plagiarism service",
            }, 503

        return {
            "service": "plagiarism",
            "status": "operational",
            "provider": "Quetext",
            "limits": {
                "max_text_length": self.settings.max_text_length,
                "min_text_length": self.settings.min_text_length,
                "supported_languages": list(self.settings.supported_languages),
            },
            "api_status": api_status,
        }, 200
