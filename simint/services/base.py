from __future__ import annotations

from typing import Any, List

from simint.client.http import ApiClient


def unwrap_data(payload: Any) -> Any:
    """Return `payload["data"]` for enveloped responses, else the payload itself.

    The backend answers either `{success, message, data}` or the bare value.
    """

    if isinstance(payload, dict) and payload.get("data") is not None:
        return payload["data"]
    return payload


def unwrap_list(payload: Any) -> List[Any]:
    """Like unwrap_data, but always returns a list (empty when the shape is unknown)."""

    data = unwrap_data(payload)
    if isinstance(data, list):
        return data
    return []


class Service:
    """Base for resource services; all I/O goes through the shared ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client
