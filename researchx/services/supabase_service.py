from researchx.services.http import ProviderClient


class SupabaseAuthClient(ProviderClient):
    """Sign-up against a Supabase (GoTrue) auth endpoint."""

    name = "auth provider"

    @classmethod
    def from_settings(cls, settings, session=None):
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.provider_timeout,
            session=session,
        )

    def _headers(self):
        headers = super()._headers()
        headers["apikey"] = self.api_key
        return headers

    def _error_message(self, data, response):
        return (
            data.get("msg")
            or data.get("error_description")
            or data.get("message")
            or data.get("error")
        )

    def sign_up(self, email, password):
        return self._request("POST", "/auth/v1/signup", json={
            "email": email,
            "password": password,
        })
