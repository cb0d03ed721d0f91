import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional, Tuple

from flask import current_app

from .base import ConfigurationError

EXTENSION_KEY = "researchx"


@dataclass(frozen=True)
class SettlementAccount:
    """Bank account every verified payment is transferred to."""

    account_number: str = "0818022720"
    bank_code: str = "044"
    account_name: str = "ResearchX Platform"
    bank_name: str = "Access Bank"
    currency: str = "NGN"


@dataclass(frozen=True)
class Settings:
    """
    Process-wide, read-only configuration.

    Built once at startup by ``create_app`` and handed to every service,
    so handlers never read provider credentials from the environment.
    """

    environment: str = "development"

    # Payment provider
    paystack_secret_key: Optional[str] = None
    paystack_base_url: str = "https://api.paystack.co"
    transaction_fee_percentage: Decimal = Decimal("1.5")
    transfer_deduction_rate: Decimal = Decimal("0.015")
    settlement: SettlementAccount = field(default_factory=SettlementAccount)
    base_url: str = "http://localhost:5000"
    fallback_email: str = "user@example.com"

    # Plagiarism provider
    quetext_api_key: Optional[str] = None
    quetext_base_url: str = "https://api.quetext.com"
    min_text_length: int = 100
    max_text_length: int = 10000
    supported_languages: Tuple[str, ...] = ("en", "es", "fr", "de")

    # Auth provider
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # Outbound timeouts (seconds)
    provider_timeout: float = 10.0
    status_timeout: float = 5.0

    redis_url: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def fee_rate(self) -> Decimal:
        return self.transaction_fee_percentage / Decimal(100)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None, environment: str = None) -> "Settings":
        """Read settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        defaults = SettlementAccount()

        settlement = SettlementAccount(
            account_number=env.get("SETTLEMENT_ACCOUNT_NUMBER", defaults.account_number),
            bank_code=env.get("SETTLEMENT_BANK_CODE", defaults.bank_code),
            account_name=env.get("SETTLEMENT_ACCOUNT_NAME", defaults.account_name),
            bank_name=env.get("SETTLEMENT_BANK_NAME", defaults.bank_name),
            currency=env.get("SETTLEMENT_CURRENCY", defaults.currency),
        )

        try:
            return cls(
                environment=(environment or env.get("APP_ENV", "development")).lower(),
                paystack_secret_key=env.get("PAYSTACK_SECRET_KEY") or None,
                paystack_base_url=env.get("PAYSTACK_BASE_URL", cls.paystack_base_url).rstrip("/"),
                transaction_fee_percentage=Decimal(env.get("TRANSACTION_FEE_PERCENTAGE", "1.5")),
                transfer_deduction_rate=Decimal(env.get("TRANSFER_DEDUCTION_RATE", "0.015")),
                settlement=settlement,
                base_url=env.get("BASE_URL", cls.base_url).rstrip("/"),
                quetext_api_key=env.get("QUETEXT_API_KEY") or None,
                quetext_base_url=env.get("QUETEXT_BASE_URL", cls.quetext_base_url).rstrip("/"),
                supabase_url=(env.get("SUPABASE_URL") or "").rstrip("/") or None,
                supabase_anon_key=env.get("SUPABASE_ANON_KEY") or None,
                provider_timeout=float(env.get("PROVIDER_TIMEOUT", "10")),
                status_timeout=float(env.get("STATUS_TIMEOUT", "5")),
                redis_url=env.get("REDIS_URL") or None,
            )
        except (ArithmeticError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}")

    def validate(self) -> None:
        """Fail fast on settings that cannot work in this environment."""
        if self.transaction_fee_percentage < 0:
            raise ConfigurationError("TRANSACTION_FEE_PERCENTAGE must not be negative")

        if not Decimal(0) <= self.transfer_deduction_rate < Decimal(1):
            raise ConfigurationError("TRANSFER_DEDUCTION_RATE must be in [0, 1)")

        if self.is_production:
            if not self.paystack_secret_key:
                raise ConfigurationError("PAYSTACK_SECRET_KEY is required in production")
            if not self.base_url.startswith("https://"):
                raise ConfigurationError("BASE_URL must use HTTPS in production")

    def __repr__(self) -> str:
        return f"<Settings environment={self.environment}>"


def get_settings() -> Settings:
    """Return the settings object attached to the running app."""
    return current_app.extensions[EXTENSION_KEY]
