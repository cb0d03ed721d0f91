import logging
import os

import requests

from researchx.client.credentials import Credential, TokenStore
from researchx.client.storage import MemoryStorage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
LEGACY_SIGNUP_URL = "http://localhost:3000/server/signup"

DASHBOARD_PATH = "/dashboard.html"
LOGIN_PATH = "/login.html"
PROJECTS_PATH = "/projects.html"

MIN_PASSWORD_LENGTH = 8
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
UPLOAD_CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class ClientError(Exception):
    pass


class FormValidationError(ClientError):
    pass


class AuthenticationRequired(ClientError):
    pass


class ApiError(ClientError):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def _error_from(response):
    try:
        data = response.json()
    except ValueError:
        data = {}
    if isinstance(data, dict) and data.get("error"):
        return data["error"]
    return f"Request failed with status {response.status_code}"


class ApiClient:
    """
    Talks to the ResearchX API on behalf of a signed-in user.

    ``reauthenticate`` is called when no valid credential is stored; it may
    return a Credential, a bare token, or None.
    """

    def __init__(self, base_url=DEFAULT_BASE_URL, token_store=None, session=None,
                 reauthenticate=None, timeout=10):
        self.base_url = base_url.rstrip("/")
        self.tokens = token_store or TokenStore(MemoryStorage())
        self.session = session or requests.Session()
        self.reauthenticate = reauthenticate
        self.timeout = timeout

    def _token(self):
        token = self.tokens.get()
        if token or self.reauthenticate is None:
            return token

        renewed = self.reauthenticate()
        if isinstance(renewed, Credential):
            self.tokens.save(renewed)
            return renewed.token
        if renewed:
            return self.tokens.store(renewed).token
        return None

    def make_request(self, path, method="GET", body=None, files=None, requires_auth=True):
        headers = {}

        if requires_auth:
            token = self._token()
            if not token:
                raise AuthenticationRequired("Authentication required")
            headers["Authorization"] = f"Bearer {token}"

        kwargs = {"headers": headers, "timeout": self.timeout}
        if files:
            # Multipart: let requests set the boundary header
            kwargs["data"] = body
            kwargs["files"] = files
        elif body is not None:
            kwargs["json"] = body

        response = self.session.request(method, f"{self.base_url}{path}", **kwargs)

        if not response.ok:
            raise ApiError(_error_from(response), status_code=response.status_code)

        return response.json()

    def signup(self, user_data):
        """
        Register and keep the returned token.

        Returns the page to continue on: the dashboard when a token came
        back, the login page when the account still needs confirming.
        """
        if not user_data.get("email") or not user_data.get("password") or not user_data.get("name"):
            raise FormValidationError("Please fill in all required fields")

        if len(user_data["password"]) < MIN_PASSWORD_LENGTH:
            raise FormValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        data = self.make_request("/auth/signup", "POST", user_data, requires_auth=False)

        if not data.get("success"):
            raise ApiError(data.get("error") or "Signup failed")

        if data.get("token"):
            self.tokens.store(data["token"])
            return DASHBOARD_PATH

        return LOGIN_PATH

    def upload_project(self, project_data, file_path):
        """Create a project record, then attach its document. Returns the next page."""
        if not project_data.get("title") or not project_data.get("description"):
            raise FormValidationError("Title and description are required")

        if not file_path or not os.path.isfile(file_path):
            raise FormValidationError("Please select a file to upload")

        content_type = UPLOAD_CONTENT_TYPES.get(os.path.splitext(file_path)[1].lower())
        if content_type is None:
            raise FormValidationError("Only PDF, DOC, and DOCX files are allowed")

        if os.path.getsize(file_path) > MAX_UPLOAD_BYTES:
            raise FormValidationError("File size must be less than 10MB")

        project = self.make_request("/projects", "POST", project_data)
        project_id = project.get("projectId")
        if not project.get("success") or not project_id:
            raise ApiError(project.get("error") or "Failed to create project")

        with open(file_path, "rb") as fh:
            upload = self.make_request(
                f"/upload/project/{project_id}",
                "POST",
                body={"projectId": project_id},
                files={"file": (os.path.basename(file_path), fh, content_type)},
            )

        if not upload.get("success"):
            raise ApiError(upload.get("error") or "File upload failed")

        logger.info(f"Project {project_id} uploaded")
        return PROJECTS_PATH

    def logout(self):
        self.tokens.clear()


def legacy_signup(user_data, url=LEGACY_SIGNUP_URL, session=None, timeout=10):
    """
    Older signup flow posting straight to a local server.

    Returns the login page on success.
    """
    session = session or requests.Session()
    response = session.post(url, json=user_data, timeout=timeout)

    try:
        data = response.json()
    except ValueError:
        raise ApiError(f"Request failed with status {response.status_code}", response.status_code)

    if data.get("success"):
        return LOGIN_PATH

    raise ApiError(f"Signup failed: {data.get('error')}", response.status_code)
