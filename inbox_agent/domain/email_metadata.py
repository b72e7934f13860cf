"""
Parsed view of a single Gmail message.
"""
from __future__ import annotations

from email.utils import parseaddr

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_SUBJECT = "(no subject)"


class EmailMetadata(BaseModel):
    """Headers and decoded body of one message.

    Only ``id`` and ``thread_id`` are safe to log; everything else is mailbox content.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    thread_id: str = ""
    subject: str = NO_SUBJECT
    sender: str = ""
    reply_to: str = ""
    to: str = ""
    date: str = ""
    snippet: str = ""
    body_text: str = ""
    message_id_header: str | None = None
    references: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("id must not be blank")
        return value

    @field_validator("subject")
    @classmethod
    def default_subject(cls, value: str) -> str:
        return value.strip() or NO_SUBJECT

    @property
    def reply_address(self) -> str:
        """Bare address a reply should go to (Reply-To wins over From)."""
        _, address = parseaddr(self.reply_to or self.sender)
        return address
