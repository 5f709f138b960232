"""
Shared base for MongoDB document models.

Documents are loaded with ``from_mongo`` and written with ``to_mongo``; the
``_id`` key is exposed as ``id`` (a PyObjectId). Keys a model does not declare
are ignored on load, so other services can add fields to the same collection.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    """ObjectId usable as a pydantic v2 field type (serialized as its hex string in JSON)."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        if isinstance(v, ObjectId):
            return v
        if isinstance(v, str) and ObjectId.is_valid(v):
            return ObjectId(v)
        raise ValueError(f"Invalid ObjectId: {v!r}")


class MongoBaseModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Raw document dict; an unset ``_id`` is left out for MongoDB to assign."""
        doc = self.model_dump(by_alias=True)
        if doc.get("_id") is None:
            doc.pop("_id", None)
        return doc

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["MongoBaseModel"]:
        """Validate a raw document; ``None`` (a find_one miss) passes through."""
        if data is None:
            return None
        return cls.model_validate(data)

    @classmethod
    def from_mongo_many(cls, docs: Iterable[dict]) -> list["MongoBaseModel"]:
        return [cls.model_validate(doc) for doc in docs]
