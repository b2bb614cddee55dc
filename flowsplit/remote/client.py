# flowsplit/remote/client.py
"""
Thin client for the n8n public REST API (workflows only).

Authentication is the static `X-N8N-API-KEY` header. Failures are never
retried here; every transport or HTTP error surfaces as RemoteApiError.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from flowsplit.errors import InvalidWorkflow, RemoteApiError
from flowsplit.utils.logger import get_logger

log = get_logger("remote")

API_PREFIX = "/api/v1/workflows"
API_KEY_HEADER = "X-N8N-API-KEY"

# copied onto cleaned nodes only when set
_OPTIONAL_NODE_FIELDS = ("webhookId", "credentials")


def clean_for_update(workflow: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reduce a workflow to the subset the store accepts on PUT:
    name, nodes (whitelisted fields), connections, settings.
    """
    if not workflow or not isinstance(workflow.get("nodes"), list):
        raise InvalidWorkflow("Invalid workflow structure: missing nodes list")

    nodes = []
    for node in workflow["nodes"]:
        clean = {
            "parameters": node.get("parameters") or {},
            "type": node.get("type"),
            "typeVersion": node.get("typeVersion") or 1,
            "position": node.get("position") or [0, 0],
            "id": node.get("id"),
            "name": node.get("name"),
        }
        for key in _OPTIONAL_NODE_FIELDS:
            if node.get(key):
                clean[key] = node[key]
        nodes.append(clean)

    return {
        "name": workflow.get("name") or "Untitled Workflow",
        "nodes": nodes,
        "connections": workflow.get("connections") or {},
        "settings": workflow.get("settings") or {},
    }


class N8nClient:
    def __init__(
        self,
        base_url: str = "",
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_settings(cls, settings) -> "N8nClient":
        return cls(settings.api_url, settings.api_key, timeout=settings.timeout)

    def is_configured(self) -> bool:
        return self.base_url != "" and self.api_key != ""

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={API_KEY_HEADER: self.api_key, "Content-Type": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "N8nClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, endpoint: str, body: Any = None) -> Any:
        if not self.is_configured():
            raise RemoteApiError("API not configured (set N8N_API_URL and N8N_API_KEY)")

        log.debug("%s %s%s", method, self.base_url, endpoint)
        try:
            resp = self._http().request(method, endpoint, json=body)
        except httpx.HTTPError as e:
            raise RemoteApiError(f"{method} {endpoint} failed: {e}") from e

        if resp.is_error:
            raise RemoteApiError(
                f"API request failed: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteApiError(
                f"{method} {endpoint} returned non-JSON content", status_code=resp.status_code
            ) from e

    # -------- workflows --------
    def list_workflows(self) -> List[Dict[str, Any]]:
        payload = self._request("GET", API_PREFIX) or {}
        return list(payload.get("data") or [])

    def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self._request("GET", f"{API_PREFIX}/{workflow_id}")

    def create_workflow(self, workflow: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", API_PREFIX, workflow)

    def update_workflow(self, workflow_id: str, workflow: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"{API_PREFIX}/{workflow_id}", clean_for_update(workflow))

    def delete_workflow(self, workflow_id: str) -> None:
        self._request("DELETE", f"{API_PREFIX}/{workflow_id}")

    def test_connection(self) -> bool:
        try:
            self.list_workflows()
        except RemoteApiError as e:
            log.warning("Connection test failed: %s", e)
            return False
        return True
