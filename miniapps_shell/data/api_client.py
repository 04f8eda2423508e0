import logging
import os
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

# Toggles are sent with POST and must never be replayed.
RETRYABLE_METHODS = ("GET", "DELETE")
DEFAULT_TIMEOUT = 10

_providers = {"secret": None, "user": None}


class ApiError(RuntimeError):
    def __init__(self, status_code: int, reason: str, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error {status_code} {reason}: {detail}")


def _retrying_session() -> requests.Session:
    adapter = HTTPAdapter(
        max_retries=Retry(
            total=2,
            backoff_factor=0.4,
            status_forcelist=(502, 503, 504),
            allowed_methods=RETRYABLE_METHODS,
            raise_on_status=False,
        ),
        pool_connections=8,
        pool_maxsize=8,
    )
    session = requests.Session()
    for prefix in ("http://", "https://"):
        session.mount(prefix, adapter)
    return session


_SESSION = _retrying_session()


def configure(secret_getter, user_getter):
    """Install the callables that resolve app secrets and the signed-in email."""
    _providers["secret"] = secret_getter
    _providers["user"] = user_getter


def _setting(name):
    getter = _providers["secret"]
    value = getter(("app", name), None) if getter else None
    return value or os.getenv(name) or ""


def is_enabled():
    return bool(_setting("API_BASE_URL") and _setting("BACKEND_SESSION_SECRET"))


def _identity_headers():
    token = _setting("BACKEND_SESSION_SECRET")
    if not token:
        raise RuntimeError("BACKEND_SESSION_SECRET is not configured")
    user_getter = _providers["user"]
    email = user_getter() if user_getter else None
    if not email:
        raise RuntimeError("No signed-in user email for the API call")
    return {"X-User-Email": email, "X-Backend-Token": token}


def _error_detail(response):
    try:
        return response.json().get("detail")
    except ValueError:
        return response.text


def _send(method: str, path: str, params: dict | None, json: dict | None, timeout: int) -> requests.Response:
    base_url = _setting("API_BASE_URL").rstrip("/")
    if not base_url:
        raise RuntimeError("API_BASE_URL is not configured")
    response = _SESSION.request(
        method,
        base_url + path,
        params=params,
        json=json,
        headers=_identity_headers(),
        timeout=timeout,
    )
    if response.ok:
        return response
    logger.warning("API %s %s returned %s", method, path, response.status_code)
    raise ApiError(response.status_code, response.reason, _error_detail(response))


def request(method: str, path: str, params: dict | None = None, json: dict | None = None, timeout: int = DEFAULT_TIMEOUT) -> Any:
    response = _send(method, path, params, json, timeout)
    if response.status_code == 204 or not response.content:
        return None
    return response.json()


def download_text(path: str, params: dict | None = None, timeout: int = 15) -> str:
    return _send("GET", path, params, None, timeout).text


def get(path, params=None):
    return request("GET", path, params=params)


def post(path, json=None, params=None):
    return request("POST", path, params=params, json=json)


def patch(path, json=None):
    return request("PATCH", path, json=json)


def delete(path, params=None):
    return request("DELETE", path, params=params)
