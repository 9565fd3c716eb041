"""Quote records."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from pyfeedsync.models._base import FeedBaseModel


class Quote(FeedBaseModel):
    """A single quote.

    Accepts both the zenquotes wire keys (``q``/``a``) and the cached form
    (``text``/``author``), so the same model decodes network payloads and
    cached blobs.

    Parameters
    ----------
    id : str
        Stable id within one fetched list (assigned at decode time).
    text : str
        Quote body. Must be non-empty.
    author : str
        Author name; ``"Unknown"`` when the feed omits it.
    category : str or None
        Optional category label.
    """

    id: str
    text: str = Field(validation_alias=AliasChoices("text", "q"))
    author: str = Field(default="Unknown", validation_alias=AliasChoices("author", "a"))
    category: str | None = None

    @field_validator("text")
    @classmethod
    def _require_text(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("quote text must be non-empty")
        return text

    @field_validator("author", mode="before")
    @classmethod
    def _default_author(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Unknown"
        return value

    def share_text(self) -> str:
        return f'"{self.text}"\n— {self.author}'
