"""Resource definitions: where a payload lives and how to decode it."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from pyfeedsync.exceptions import DecodeError

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class Resource(Generic[T]):
    """A named remote JSON resource.

    Parameters
    ----------
    key : str
        Resource key, also used as the cache key.
    url : str
        HTTP GET endpoint returning JSON.
    adapter : TypeAdapter
        Validates both the prepared wire payload and cached blobs into ``T``.
    prepare : callable, optional
        Reshapes the raw wire payload before validation (e.g. assigning ids
        or unwrapping a one-element list).  Must raise ``ValueError`` or
        ``TypeError`` on unexpected shapes.  Not applied to cached blobs,
        which are stored in the already-prepared form.
    headers : mapping
        Extra request headers.
    """

    key: str
    url: str
    adapter: TypeAdapter[Any]
    prepare: Callable[[Any], Any] | None = None
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)

    def decode(self, payload: Any) -> T:
        """Validate a freshly fetched wire payload."""
        try:
            prepared = self.prepare(payload) if self.prepare is not None else payload
            value: T = self.adapter.validate_python(prepared)
        except (ValidationError, ValueError, TypeError) as exc:
            raise DecodeError(
                f"Unexpected {self.key} payload: {_summarize(exc)}",
                resource=self.key,
            ) from exc
        return value

    def load(self, cached: Any) -> T:
        """Validate a blob previously produced by :meth:`dump`."""
        try:
            value: T = self.adapter.validate_python(cached)
        except (ValidationError, ValueError, TypeError) as exc:
            raise DecodeError(f"Cached {self.key} payload is invalid: {_summarize(exc)}", resource=self.key) from exc
        return value

    def dump(self, value: T) -> Any:
        """JSON-compatible form of *value* for the cache store."""
        return self.adapter.dump_python(value, mode="json")


def _summarize(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
        more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
        return f"{loc}: {first.get('msg', exc)}{more}"
    return str(exc)
