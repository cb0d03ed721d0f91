from functools import wraps

from flask import g, request

from researchx.config import get_settings
from researchx.errors import ValidationError


def json_body():
    """The request's JSON object, or an empty dict for anything else."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def check_text_input(text, language, settings):
    """
    Validate a plagiarism check payload and return the text to forward.

    Raises ValidationError for missing, non-string, too short or too long
    text and for unsupported languages.
    """
    if not text or not isinstance(text, str):
        raise ValidationError("Text is required and must be a string")

    if len(text) < settings.min_text_length:
        raise ValidationError(f"Text must be at least {settings.min_text_length} characters long")

    if len(text) > settings.max_text_length:
        raise ValidationError(f"Text must be less than {settings.max_text_length} characters")

    if language not in settings.supported_languages:
        raise ValidationError(
            f"Unsupported language. Supported languages: {', '.join(settings.supported_languages)}"
        )

    return text[:settings.max_text_length]


def validate_text_input(f):
    """
    Decorator validating ``{text, language}`` before the view runs.

    The validated text and language are exposed as ``g.validated_text`` and
    ``g.language``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        data = json_body()
        language = data.get("language", "en")

        g.validated_text = check_text_input(data.get("text"), language, get_settings())
        g.language = language

        return f(*args, **kwargs)
    return decorated_function
