"""Base model for decoded resource payloads.

Every resource model inherits from :class:`FeedBaseModel` which provides:

* ``frozen=True`` so decoded values can be shared between the engine
  state, the cache and consumers without defensive copies.
* ``extra="ignore"`` so additive upstream fields never break decoding.
* A ``model_validator(mode="before")`` that refuses non-object input with a
  readable message instead of pydantic's generic type error.

Fields are required unless the upstream payload is known to omit them:
a partially shaped response must fail decoding rather than leak ``None``
into consumers.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class FeedBaseModel(BaseModel):
    """Base for decoded resource models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _require_object(cls, values: Any) -> Any:
        if isinstance(values, BaseModel):
            return values
        if not isinstance(values, dict):
            raise ValueError(f"{cls.__name__} expects a JSON object, got {type(values).__name__}")
        for key, value in values.items():
            if isinstance(value, float) and math.isnan(value):
                raise ValueError(f"{cls.__name__}.{key} is NaN")
        return values
