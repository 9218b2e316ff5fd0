import logging
import mimetypes
import os
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response; `message` is the server-provided text."""

    def __init__(self, status_code: int, message: str, payload: Any = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload


class AuthenticationError(ApiError):
    """401/403 from a protected route; the stored token has been cleared."""


class PortfolioClient:
    def __init__(
        self,
        base_url: str = "http://localhost:5001",
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token: Optional[str] = None
        self.user: Optional[dict] = None

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "PortfolioClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def logout(self) -> None:
        self.token = None
        self.user = None

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.http.request(method, path, headers=headers, **kwargs)
        if response.is_success:
            return response.json()

        try:
            payload = response.json()
        except ValueError:
            payload = None
        message = response.reason_phrase
        if isinstance(payload, dict):
            message = payload.get("detail") or payload.get("message") or message

        if response.status_code in (401, 403):
            logger.warning("Authentication error (%s): %s", response.status_code, message)
            self.logout()
            raise AuthenticationError(response.status_code, message, payload)
        raise ApiError(response.status_code, message, payload)

    # Public

    def health(self) -> dict:
        return self._request("GET", "/api/health")

    def submit_inquiry(
        self,
        name: str,
        email: str,
        message: str,
        phone: Optional[str] = None,
        company: Optional[str] = None,
    ) -> dict:
        body = {"name": name, "email": email, "message": message}
        if phone:
            body["phone"] = phone
        if company:
            body["company"] = company
        return self._request("POST", "/api/inquiries", json=body)

    def list_projects(
        self, category: Optional[str] = None, featured: bool = False
    ) -> list:
        params = {}
        if category:
            params["category"] = category
        if featured:
            params["featured"] = "true"
        return self._request("GET", "/api/projects", params=params)

    def get_project(self, project_id: int) -> dict:
        return self._request("GET", f"/api/projects/{project_id}")

    # Admin

    def login(self, email: str, password: str) -> dict:
        data = self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        self.token = data["token"]
        self.user = data["user"]
        return data["user"]

    def list_inquiries(self) -> list:
        return self._request("GET", "/api/inquiries")

    def update_inquiry_status(self, inquiry_id: int, status: str) -> dict:
        return self._request(
            "PATCH", f"/api/inquiries/{inquiry_id}", json={"status": status}
        )

    def delete_inquiry(self, inquiry_id: int) -> dict:
        return self._request("DELETE", f"/api/inquiries/{inquiry_id}")

    def create_project(self, fields: dict, image: str) -> dict:
        with open(image, "rb") as fh:
            return self._request(
                "POST",
                "/api/projects",
                data=_form_data(fields),
                files={"image": _image_part(image, fh)},
            )

    def update_project(
        self, project_id: int, fields: dict, image: Optional[str] = None
    ) -> dict:
        if image is None:
            return self._request(
                "PUT", f"/api/projects/{project_id}", data=_form_data(fields)
            )
        with open(image, "rb") as fh:
            return self._request(
                "PUT",
                f"/api/projects/{project_id}",
                data=_form_data(fields),
                files={"image": _image_part(image, fh)},
            )

    def delete_project(self, project_id: int) -> dict:
        return self._request("DELETE", f"/api/projects/{project_id}")


def _form_data(fields: dict) -> dict:
    """Flatten project fields into multipart form values."""
    data = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(value)
        elif isinstance(value, bool):
            value = "true" if value else "false"
        data[key] = str(value)
    return data


def _image_part(path: str, fh) -> tuple:
    content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return (os.path.basename(path), fh, content_type)
