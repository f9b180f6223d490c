"""Shared pydantic base for models serialized to the dashboard."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys.

    Log files and the stats cache use camelCase field names, and the
    dashboard expects the same shape back, so every report model accepts
    either the alias or the Python field name and dumps by alias.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict:
        """Dump to a JSON-ready dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
