"""Common base for entities persisted in the graph store."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from scooterbooter.db.keys import Key


class Entity(BaseModel):
    """Typed view over a schemaless store item.

    Attributes are stored and serialized in camelCase. Key and index columns
    are derived from the entity by :meth:`key` and :meth:`index_fields`, so
    read and write paths never format them by hand.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def key(self) -> Key:
        raise NotImplementedError

    def index_fields(self) -> dict[str, str]:
        return {}

    def to_item(self) -> dict[str, Any]:
        """Return the full store item for this entity."""
        item = self.model_dump(by_alias=True, mode="json")
        key = self.key()
        item.update(self.index_fields())
        item["pk"] = key.pk
        item["sk"] = key.sk
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]):
        """Validate a raw store item into the entity type."""
        return cls.model_validate(item)

    def public(self, **extra: Any) -> dict[str, Any]:
        """Return the camelCase API representation."""
        body = self.model_dump(by_alias=True, mode="json")
        body.update(extra)
        return body
