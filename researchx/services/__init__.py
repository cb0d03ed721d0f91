from dataclasses import dataclass

from flask import current_app

from .paystack_service import PaystackClient
from .quetext_service import QuetextClient
from .supabase_service import SupabaseAuthClient

EXTENSION_KEY = "researchx.providers"


@dataclass
class Providers:
    paystack: PaystackClient
    plagiarism: QuetextClient
    auth: SupabaseAuthClient


def build_providers(settings, session=None):
    """One client per provider, shared by every request of the process."""
    return Providers(
        paystack=PaystackClient.from_settings(settings, session=session),
        plagiarism=QuetextClient.from_settings(settings, session=session),
        auth=SupabaseAuthClient.from_settings(settings, session=session),
    )


def get_providers() -> Providers:
    return current_app.extensions[EXTENSION_KEY]
