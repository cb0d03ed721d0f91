from urllib.parse import quote

from researchx.errors import ProviderError
from researchx.services.http import ProviderClient


class PaystackClient(ProviderClient):
    """Thin wrapper over the Paystack transaction and transfer endpoints."""

    name = "paystack"

    @classmethod
    def from_settings(cls, settings, session=None):
        return cls(
            settings.paystack_base_url,
            settings.paystack_secret_key,
            timeout=settings.provider_timeout,
            session=session,
        )

    def _call(self, method, path, json=None):
        body = self._request(method, path, json=json)
        # Paystack wraps every answer as {"status": bool, "message": str, "data": {...}}
        if body.get("status") is False:
            raise ProviderError(
                body.get("message") or "Paystack request was not successful",
                status_code=502,
                provider=self.name,
                response_data=body,
                provider_message=body.get("message"),
            )
        return body.get("data") or {}

    def initialize_transaction(self, *, email, amount, reference, callback_url, metadata=None):
        """amount is in kobo."""
        return self._call("POST", "/transaction/initialize", json={
            "email": email,
            "amount": amount,
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata or {},
        })

    def verify_transaction(self, reference):
        return self._call("GET", f"/transaction/verify/{quote(reference, safe='')}")

    def create_transfer_recipient(self, account):
        return self._call("POST", "/transferrecipient", json={
            "type": "nuban",
            "name": account.account_name,
            "account_number": account.account_number,
            "bank_code": account.bank_code,
            "currency": account.currency,
        })

    def initiate_transfer(self, *, amount, recipient, reason, reference):
        """reference doubles as the idempotency key for the transfer."""
        return self._call("POST", "/transfer", json={
            "source": "balance",
            "amount": amount,
            "recipient": recipient,
            "reason": reason,
            "reference": reference,
        })
