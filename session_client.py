"""Client side of EstoqueHub: the stored session and the REST API client.

The session lives in a small JSON file that plays the role of the browser's
local storage: one object whose ``estoquehub_session`` key holds
``{token, email, name, loginTime}``.
"""
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from settings import API_URL, SESSION_KEY, STORAGE_PATH, TOKEN_EXPIRATION_HOURS

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


@dataclass
class Session:
    token: str
    email: str
    name: str
    login_time: datetime

    @classmethod
    def from_api(cls, data, now=None):
        data = data or {}
        token, user = data.get("token"), data.get("user")
        if not token or not user:
            raise ValueError("Invalid server response.")
        name = user.get("name") or user.get("fullName") or user.get("nome") or "User"
        return cls(token=token, email=user.get("email", ""), name=name, login_time=now or _now())

    @classmethod
    def from_dict(cls, data):
        login_time = datetime.fromisoformat(data["loginTime"])
        if login_time.tzinfo is None:
            login_time = login_time.replace(tzinfo=timezone.utc)
        return cls(token=data["token"], email=data.get("email", ""), name=data.get("name", ""), login_time=login_time)

    def to_dict(self):
        return {
            "token": self.token,
            "email": self.email,
            "name": self.name,
            "loginTime": self.login_time.isoformat(),
        }

    def is_valid(self, now=None):
        if not self.token:
            return False
        return (now or _now()) - self.login_time < timedelta(hours=TOKEN_EXPIRATION_HOURS)


class SessionStore:
    def __init__(self, path=STORAGE_PATH):
        self.path = path

    def _read_all(self) -> dict:
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("Local storage at %s is unreadable, ignoring it", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(data, fh)

    def load(self) -> Optional[Session]:
        raw = self._read_all().get(SESSION_KEY)
        if raw is None:
            return None
        try:
            return Session.from_dict(json.loads(raw) if isinstance(raw, str) else raw)
        except (KeyError, TypeError, ValueError):
            return None

    def save(self, session: Session):
        data = self._read_all()
        data[SESSION_KEY] = json.dumps(session.to_dict())
        self._write_all(data)

    def clear(self):
        data = self._read_all()
        if data.pop(SESSION_KEY, None) is not None:
            self._write_all(data)


class ApiError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiClient:
    """Thin wrapper over the EstoqueHub REST API.

    ``http`` is any ``httpx.Client`` (a FastAPI ``TestClient`` works too).
    The session is passed in explicitly, nothing is read from storage here.
    """

    def __init__(self, http: Optional[httpx.Client] = None, session: Optional[Session] = None):
        self._owns_http = http is None
        self.http = http or httpx.Client(base_url=API_URL)
        self.session = session

    def close(self):
        # only the client created here is ours to close
        if self._owns_http:
            self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def auth_headers(self):
        headers = {"Content-Type": "application/json"}
        if self.session and self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    def _request(self, method, url, default_error, json_body=None):
        try:
            response = self.http.request(method, url, headers=self.auth_headers(), json=json_body)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError(default_error) from exc

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None

        if response.is_error:
            message = default_error
            if isinstance(data, dict):
                message = data.get("detail") or data.get("error") or data.get("message") or default_error
            raise ApiError(message, response.status_code)
        return data

    # auth

    def login(self, email, password):
        return self._request("POST", "/auth/login", "Login failed.", {"email": email, "password": password})

    def register(self, name, email, password):
        body = {"name": name, "email": email, "password": password}
        return self._request("POST", "/auth/register", "Registration failed.", body)

    # products

    def list_products(self):
        return self._request("GET", "/products", "Failed to load products.") or []

    def create_product(self, product):
        return self._request("POST", "/products", "Failed to create product", product)

    def update_product(self, product_id, product):
        return self._request("PUT", f"/products/{product_id}", "Failed to update product", product)

    def delete_product(self, product_id):
        self._request("DELETE", f"/products/{product_id}", "Failed to remove product")
