from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from ..config import DEFAULT_API_URL

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ClientError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class StudentRegistryClient:
    """Thin wrapper over the student registry HTTP API.

    Update, delete and import send the admin credential: the role header by
    default, or a bearer token when ``token`` is given.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        admin_header: str = "x-role",
        admin_role: str = "admin",
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.admin_header = admin_header
        self.admin_role = admin_role
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def students_url(self) -> str:
        return f"{self.base_url}/students"

    def _admin_headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {self.admin_header: self.admin_role}

    def _request(self, method: str, url: str, **kwargs) -> Any:
        kwargs.setdefault("timeout", self.timeout)
        logger.debug(f"{method} {url}")
        response = self.session.request(method, url, **kwargs)
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise ClientError(response.status_code, message)
        return response.json()

    def list_students(self) -> List[Dict[str, str]]:
        return self._request("GET", self.students_url)

    def get_student(self, student_id: str) -> Dict[str, str]:
        return self._request("GET", f"{self.students_url}/{student_id}")

    def add_student(self, student: Dict[str, str]) -> Dict[str, str]:
        return self._request("POST", self.students_url, json=student)

    def update_student(self, student_id: str, fields: Dict[str, str]) -> Dict[str, str]:
        return self._request(
            "PUT",
            f"{self.students_url}/{student_id}",
            json=fields,
            headers=self._admin_headers(),
        )

    def delete_student(self, student_id: str) -> Dict[str, str]:
        return self._request(
            "DELETE", f"{self.students_url}/{student_id}", headers=self._admin_headers()
        )

    def search(self, query: str) -> List[Dict[str, str]]:
        return self._request("GET", f"{self.students_url}/search", params={"q": query})

    def stats(self) -> Dict[str, int]:
        return self._request("GET", f"{self.students_url}/stats")

    def upload_csv(self, path: str | Path) -> Dict[str, Any]:
        path = Path(path)
        with path.open("rb") as handle:
            return self._request(
                "POST",
                f"{self.students_url}/upload",
                files={"file": (path.name, handle, "text/csv")},
                headers=self._admin_headers(),
            )
