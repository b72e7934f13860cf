"""
Async facade over the blocking Gmail API resource.
"""
from __future__ import annotations

import asyncio
from typing import Any, Protocol

USER_ID = "me"


class EmailSource(Protocol):
    """Read/write operations the run flows need from a mailbox."""

    async def list_message_ids(
        self,
        query: str,
        *,
        label_ids: list[str] | None = None,
        max_results: int | None = None,
    ) -> list[str | None]: ...

    async def get_message(self, message_id: str) -> dict[str, Any]: ...

    async def get_thread(self, thread_id: str) -> dict[str, Any]: ...

    async def create_draft(self, raw: str, thread_id: str) -> dict[str, Any]: ...


class GmailMailbox:
    """EmailSource backed by googleapiclient; every call runs in a worker thread."""

    def __init__(self, service: Any):
        self._service = service

    async def list_message_ids(
        self,
        query: str,
        *,
        label_ids: list[str] | None = None,
        max_results: int | None = None,
    ) -> list[str | None]:
        params: dict[str, Any] = {"userId": USER_ID, "q": query}
        if label_ids:
            params["labelIds"] = label_ids
        if max_results is not None:
            params["maxResults"] = max_results

        request = self._service.users().messages().list(**params)
        response = await asyncio.to_thread(request.execute)
        return [message.get("id") for message in response.get("messages") or []]

    async def get_message(self, message_id: str) -> dict[str, Any]:
        request = self._service.users().messages().get(userId=USER_ID, id=message_id, format="full")
        return await asyncio.to_thread(request.execute)

    async def get_thread(self, thread_id: str) -> dict[str, Any]:
        request = self._service.users().threads().get(userId=USER_ID, id=thread_id, format="full")
        return await asyncio.to_thread(request.execute)

    async def create_draft(self, raw: str, thread_id: str) -> dict[str, Any]:
        body = {"message": {"raw": raw, "threadId": thread_id}}
        request = self._service.users().drafts().create(userId=USER_ID, body=body)
        return await asyncio.to_thread(request.execute)
