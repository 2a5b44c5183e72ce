"""
Python client for the CRM API.

Every call is resolved through the contract table, so method and URL never
drift from the server's bindings. Useful for scripts and for tests, where a
FastAPI ``TestClient`` can be passed in as the HTTP client.
"""

from typing import Any, Optional

import httpx

from leadcrm.contracts import build_url, route_for
from leadcrm.sse import SSEDecoder, collect_reply


class APIError(Exception):
    def __init__(self, status_code: int, message: str, field: Optional[str] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.field = field


class CRMClient:
    def __init__(self, base_url: str = "http://localhost:8000", http: Optional[httpx.Client] = None,
                 timeout: float = 30.0):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _call(self, operation: str, json: Any = None, **params) -> Any:
        route = route_for(operation)
        response = self.http.request(route.method, build_url(route.path, **params), json=json)
        self._raise_for_status(response)
        if response.status_code == 204:
            return None
        return response.json()

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        raise APIError(response.status_code, body.get("message", response.reason_phrase), body.get("field"))

    # --- Leads ---
    def list_leads(self) -> list[dict]:
        return self._call("leads.list")

    def get_lead(self, lead_id: int) -> dict:
        return self._call("leads.get", id=lead_id)

    def create_lead(self, **fields) -> dict:
        return self._call("leads.create", json=fields)

    def update_lead(self, lead_id: int, **fields) -> dict:
        return self._call("leads.update", json=fields, id=lead_id)

    def delete_lead(self, lead_id: int) -> None:
        self._call("leads.delete", id=lead_id)

    # --- Applications ---
    def list_applications(self) -> list[dict]:
        return self._call("applications.list")

    def get_application(self, application_id: int) -> dict:
        return self._call("applications.get", id=application_id)

    def create_application(self, **fields) -> dict:
        return self._call("applications.create", json=fields)

    def update_application(self, application_id: int, **fields) -> dict:
        return self._call("applications.update", json=fields, id=application_id)

    def delete_application(self, application_id: int) -> None:
        self._call("applications.delete", id=application_id)

    # --- Conversations ---
    def list_conversations(self) -> list[dict]:
        return self._call("conversations.list")

    def get_conversation(self, conversation_id: int) -> dict:
        return self._call("conversations.get", id=conversation_id)

    def create_conversation(self, title: Optional[str] = None) -> dict:
        return self._call("conversations.create", json={"title": title} if title else {})

    def delete_conversation(self, conversation_id: int) -> None:
        self._call("conversations.delete", id=conversation_id)

    def dashboard_stats(self) -> dict:
        return self._call("dashboard.stats")

    def send_message(self, conversation_id: int, content: str) -> str:
        """Send a chat message and return the assembled assistant reply.

        Raises ChatStreamError when the server reports a failure mid-stream.
        """
        route = route_for("conversations.send_message")
        url = build_url(route.path, id=conversation_id)
        frames = []
        decoder = SSEDecoder()
        with self.http.stream(route.method, url, json={"content": content}) as response:
            if not response.is_success:
                response.read()
                self._raise_for_status(response)
            for chunk in response.iter_bytes():
                frames.extend(decoder.feed(chunk))
        frames.extend(decoder.flush())
        return collect_reply(frames)
