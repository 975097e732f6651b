"""HTTP API client for interacting with the social chat server."""
from typing import Any, Dict, List, Optional

import requests

from .storage import get_token

DEFAULT_ERROR_MESSAGE = "An error occurred"


def describe_error(exc: BaseException) -> str:
    """Return a short human readable reason for a failed request."""
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        try:
            detail = exc.response.json().get("detail")
        except ValueError:
            detail = None
        if isinstance(detail, str) and detail:
            return detail
    return str(exc) or DEFAULT_ERROR_MESSAGE


class APIClient:
    def __init__(self, base_url: str, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        token = get_token()
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = requests.request(
            method, f"{self.base_url}{path}", headers=self._headers(), timeout=self.timeout, **kwargs
        )
        resp.raise_for_status()
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/auth/register", json=payload)

    def login(self, login: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", json={"login": login, "password": password})

    def logout(self) -> Dict[str, Any]:
        return self._request("POST", "/auth/logout")

    def list_users(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if name:
            params["name"] = name
        return self._request("GET", "/users", params=params)

    def get_user(self, user_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")

    def list_friends(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/friends")

    def get_friend_status(self, user_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/friends/{user_id}/status")

    def send_friend_request(self, target_user_id: int) -> Dict[str, Any]:
        return self._request("POST", "/friends/requests", json={"target_user_id": target_user_id})

    def accept_friend_request(self, friendship_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/friends/requests/{friendship_id}/accept")

    def decline_friend_request(self, friendship_id: int) -> None:
        self._request("DELETE", f"/friends/requests/{friendship_id}/decline")

    def get_messages(self, friend_id: int, after_message_id: int = 0) -> List[Dict[str, Any]]:
        return self._request("GET", f"/messages/{friend_id}", params={"after_message_id": after_message_id})

    def send_message(self, friend_id: int, content: str) -> Dict[str, Any]:
        return self._request("POST", f"/messages/{friend_id}", json={"content": content})
