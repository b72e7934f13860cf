"""
Bounded-concurrency retrieval of unread messages.
"""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Sequence, TypeVar

import structlog

from inbox_agent.domain.email_metadata import EmailMetadata
from inbox_agent.errors import ErrorCode, GmailFetchError
from inbox_agent.services.gmail.mailbox import EmailSource
from inbox_agent.services.gmail.parse import parse_gmail_message

logger = structlog.get_logger(__name__)

T = TypeVar("T")

UNREAD_QUERY = "is:unread"
INBOX_LABEL = "INBOX"


def usable_ids(raw_ids: Sequence[str | None]) -> list[str]:
    """Drop missing, null and blank ids from a listing response."""
    return [item for item in raw_ids if isinstance(item, str) and item.strip()]


async def fetch_details_bounded(
    list_ids: Callable[[], Awaitable[Sequence[str | None]]],
    get_detail: Callable[[str], Awaitable[T]],
    concurrency: int,
) -> list[T]:
    """List ids, then fetch each detail with at most ``concurrency`` calls in flight.

    Results follow listing order, not completion order. The first failure
    cancels the pending fetches and propagates.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    ids = usable_ids(await list_ids())
    if not ids:
        return []

    semaphore = asyncio.Semaphore(concurrency)

    async def fetch_one(item_id: str) -> T:
        async with semaphore:
            return await get_detail(item_id)

    tasks = [asyncio.ensure_future(fetch_one(item_id)) for item_id in ids]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        # Collect the cancelled/failed siblings so none is left unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def fetch_unread_emails(
    mailbox: EmailSource,
    *,
    query: str = UNREAD_QUERY,
    label_ids: list[str] | None = None,
    max_results: int | None = None,
    concurrency: int = 5,
) -> list[EmailMetadata]:
    """Fetch and parse unread messages matching ``query`` in listing order."""
    started = time.monotonic()
    logger.info(
        "gmail.fetch_started",
        label_ids=label_ids,
        max_results=max_results,
        concurrency=concurrency,
    )

    async def list_ids() -> Sequence[str | None]:
        return await mailbox.list_message_ids(query, label_ids=label_ids, max_results=max_results)

    async def get_detail(message_id: str) -> EmailMetadata:
        return parse_gmail_message(await mailbox.get_message(message_id))

    try:
        emails = await fetch_details_bounded(list_ids, get_detail, concurrency)
    except Exception as e:
        logger.error(
            "gmail.fetch_failed",
            code=ErrorCode.GMAIL_FETCH_FAILED.value,
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=round((time.monotonic() - started) * 1000),
        )
        raise GmailFetchError(f"Failed to fetch unread emails: {e}") from e

    logger.info(
        "gmail.fetch_completed",
        message_count=len(emails),
        duration_ms=round((time.monotonic() - started) * 1000),
    )
    return emails
