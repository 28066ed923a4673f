"""EventHub API client.

This module wraps the EventHub REST API in a small synchronous client
built on ``requests``.  Every call returns a tuple ``(data, error)``:
on success ``data`` is the ``data`` member of the response envelope
and ``error`` is ``None``; on failure ``data`` is ``None`` and
``error`` is a dictionary with keys ``status_code`` and ``message``
taken from the error envelope.

The client also publishes user-facing notifications ("toasts") through
a :class:`Notifier`.  Failed calls always publish a destructive toast;
a few successful calls (login, registration, joining an event, ...)
publish a confirmation.  A UI subscribes to the notifier to show them.

Authentication uses the session returned by ``login``/``register``.
The identifier is kept in the ``requests`` cookie jar and is also sent
as a bearer token, so the client works against servers that only set
``Secure`` cookies while it talks plain HTTP.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class Toast:
    """A notification shown to the user.

    Attributes:
        id: Identifier unique within the process.
        title: Short headline.
        description: Optional longer text.
        variant: ``"default"`` or ``"destructive"``.
    """

    id: str
    title: str
    description: Optional[str] = None
    variant: str = "default"


Listener = Callable[[Optional[Toast]], None]


class Notifier:
    """Publish/subscribe registry for toasts.

    Listeners receive each new :class:`Toast`, and ``None`` when the
    current toast is dismissed.  ``subscribe`` returns a function that
    removes the listener again.  If ``auto_dismiss`` is set, a dismissal
    is published that many seconds after each toast.
    """

    def __init__(self, auto_dismiss: Optional[float] = None) -> None:
        self.auto_dismiss = auto_dismiss
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()
        self._ids = itertools.count()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self, title: str, description: Optional[str] = None, variant: str = "default") -> Toast:
        """Publish a toast to all current listeners and return it."""
        toast = Toast(id=str(next(self._ids)), title=title, description=description, variant=variant)
        self._publish(toast)
        if self.auto_dismiss is not None:
            timer = threading.Timer(self.auto_dismiss, self.dismiss)
            timer.daemon = True
            timer.start()
        return toast

    def dismiss(self) -> None:
        self._publish(None)

    def _publish(self, toast: Optional[Toast]) -> None:
        # Copy so listeners may unsubscribe while being notified.
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(toast)
            except Exception:
                logger.exception("Toast listener %r failed", listener)


# Process-wide registry used by clients that are not given their own.
default_notifier = Notifier(auto_dismiss=3.0)


class EventHubClient:
    """Client for the EventHub API."""

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        notifier: Optional[Notifier] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the API server, e.g. ``http://localhost:8000``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            notifier: Registry receiving toasts; defaults to the
                module-level :data:`default_notifier`.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.notifier = notifier if notifier is not None else default_notifier
        self.timeout = timeout
        self.session_token: Optional[str] = None

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if body.get("message"):
                return str(body["message"])
        return "An error occurred"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Result:
        """Perform an HTTP request and unwrap the response envelope.

        Returns:
            A tuple ``(data, error)`` as described in the module docstring.
        """
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.session_token:
            headers["Authorization"] = f"Bearer {self.session_token}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = self._error_message(exc.response) if exc.response is not None else str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

        if not response.content:
            return None, None
        try:
            body = response.json()
        except ValueError:
            return response.text, None
        if isinstance(body, dict) and "success" in body:
            return body.get("data"), None
        return body, None

    def _call(
        self,
        method: str,
        path: str,
        *,
        success_title: Optional[str] = None,
        error_title: str = "Error",
        **kwargs: Any,
    ) -> Result:
        """``_request`` plus toasts for the outcome."""
        data, error = self._request(method, path, **kwargs)
        if error:
            self.notifier.notify(error_title, error["message"], variant="destructive")
        elif success_title:
            self.notifier.notify(success_title)
        return data, error

    def _remember_session(self, data: Any) -> None:
        if isinstance(data, dict) and isinstance(data.get("session"), dict):
            self.session_token = data["session"].get("id")

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def register(self, email: str, password: str, name: Optional[str] = None) -> Result:
        payload: Dict[str, Any] = {"email": email, "password": password}
        if name:
            payload["name"] = name
        data, error = self._call(
            "POST", "/api/auth/register", json_body=payload,
            success_title="Account created", error_title="Registration failed",
        )
        self._remember_session(data)
        return data, error

    def login(self, email: str, password: str) -> Result:
        data, error = self._call(
            "POST", "/api/auth/login", json_body={"email": email, "password": password},
            success_title="Welcome back!", error_title="Login failed",
        )
        self._remember_session(data)
        return data, error

    def logout(self) -> Result:
        data, error = self._call("POST", "/api/auth/logout", success_title="Logged out")
        if not error:
            self.session_token = None
            self.session.cookies.clear()
        return data, error

    def me(self) -> Result:
        """Return ``({"user": ...}, None)`` for the logged-in user.

        A 401 here only means nobody is logged in, so it is not toasted.
        """
        return self._request("GET", "/api/auth/me")

    def delete_account(self) -> Result:
        data, error = self._call("DELETE", "/api/auth/me", success_title="Account deleted")
        if not error:
            self.session_token = None
            self.session.cookies.clear()
        return data, error

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def list_events(
        self, page: int = 1, limit: int = 10, sort: str = "date", order: str = "asc"
    ) -> Result:
        """Return ``({"events": [...], "pagination": {...}}, None)``."""
        params = {"page": page, "limit": limit, "sort": sort, "order": order}
        return self._call("GET", "/api/events", params=params)

    def get_event(self, event_id: str) -> Result:
        return self._call("GET", f"/api/events/{event_id}")

    def created_events(self) -> Result:
        return self._call("GET", "/api/events/user/created")

    def create_event(self, payload: Dict[str, Any]) -> Result:
        """Create an event.  ``payload`` uses the API's camelCase keys."""
        return self._call("POST", "/api/events", json_body=payload, success_title="Event created")

    def update_event(self, event_id: str, payload: Dict[str, Any]) -> Result:
        return self._call("PUT", f"/api/events/{event_id}", json_body=payload, success_title="Event updated")

    def delete_event(self, event_id: str) -> Result:
        return self._call("DELETE", f"/api/events/{event_id}", success_title="Event deleted")

    # ------------------------------------------------------------------
    # Attendees
    # ------------------------------------------------------------------
    def join_event(self, event_id: str) -> Result:
        return self._call(
            "POST", f"/api/attendees/{event_id}/join",
            success_title="Joined event", error_title="Could not join event",
        )

    def leave_event(self, event_id: str) -> Result:
        return self._call(
            "DELETE", f"/api/attendees/{event_id}/leave",
            success_title="Left event", error_title="Could not leave event",
        )

    def list_attendees(self, event_id: str) -> Result:
        return self._call("GET", f"/api/attendees/{event_id}")

    def joined_events(self) -> Result:
        return self._call("GET", "/api/attendees/user/joined")

    # ------------------------------------------------------------------
    # Banner
    # ------------------------------------------------------------------
    def upload_banner(
        self, event_id: str, filename: str, content: bytes, content_type: str
    ) -> Result:
        files = {"banner": (filename, content, content_type)}
        return self._call(
            "POST", f"/api/upload/{event_id}/banner", files=files,
            success_title="Banner uploaded", error_title="Upload failed",
        )

    def delete_banner(self, event_id: str) -> Result:
        return self._call("DELETE", f"/api/upload/{event_id}/banner", success_title="Banner removed")
