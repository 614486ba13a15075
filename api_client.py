"""
HTTP client for the school administration API.

Thin wrapper over ``requests``: one method per endpoint, JSON in and out.
Any transport failure or non-2xx response is raised as ``ApiError``.
"""
import os
import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

SCHOOL_API_URL = os.getenv("SCHOOL_API_URL", "http://localhost:5000")


class ApiError(Exception):
    """Raised when a request fails or the API answers with an error status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class SchoolApiClient:
    def __init__(self, base_url: str = SCHOOL_API_URL, session=None, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, payload: Optional[Dict] = None):
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = _error_text(exc.response) or str(exc)
            logger.warning("%s %s failed (%s): %s", method, path, status, message)
            raise ApiError(message, status) from exc
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(str(exc)) from exc

    # Courses
    def list_courses(self) -> List[Dict]:
        return self._request("GET", "/api/courses")

    def create_course(self, fields: Dict) -> Dict:
        return self._request("POST", "/api/courses", fields)

    def update_course(self, course_id: int, fields: Dict) -> Optional[Dict]:
        return self._request("PUT", f"/api/courses/{course_id}", fields)

    def delete_course(self, course_id: int) -> Dict:
        return self._request("DELETE", f"/api/courses/{course_id}")

    # Teachers
    def list_teachers(self) -> List[Dict]:
        return self._request("GET", "/api/teachers")

    def create_teacher(self, fields: Dict) -> Dict:
        return self._request("POST", "/api/teachers", fields)

    def update_teacher(self, teacher_id: int, fields: Dict) -> Optional[Dict]:
        return self._request("PUT", f"/api/teachers/{teacher_id}", fields)

    def delete_teacher(self, teacher_id: int) -> Dict:
        return self._request("DELETE", f"/api/teachers/{teacher_id}")

    # Subject catalog
    def available_subjects(self) -> List[str]:
        return self._request("GET", "/api/scheduling/available-subjects")


def _error_text(response) -> Optional[str]:
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error")
    return None
