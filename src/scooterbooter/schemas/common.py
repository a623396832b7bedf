"""Shared base for request bodies."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request body accepting camelCase keys and ignoring unknown ones."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
