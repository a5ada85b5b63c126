"""
Base model for all stored document models.

Documents use UUID4 strings as ``_id`` so the same record shape works for the
MongoDB backend and the in-memory store. StoredModel provides to_mongo() /
from_mongo() for round-tripping between Python objects and raw dicts.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.generators import generate_id


class StoredModel(BaseModel):
    """
    Base for all document models.

    Stores the document ``_id`` as ``id``. Subclasses add collection-specific
    fields on top.

    to_mongo()   — converts model → dict suitable for insert/update
    from_mongo() — converts raw dict → model instance (returns None
                   gracefully when passed None)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_id, alias="_id")

    def to_mongo(self) -> dict:
        """Return a dict ready for insertion, keyed by ``_id``."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_mongo(cls, data: Optional[dict]):
        """Build a model instance from a raw document dict.

        Returns None when data is None (e.g. find_one returns None).
        Missing optional fields are filled with their defaults.
        """
        if data is None:
            return None
        return cls.model_validate(data)
