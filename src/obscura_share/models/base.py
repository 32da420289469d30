"""
Shared model configuration.

Share files are stored with camelCase keys so they stay readable by the
desktop application; models accept either camelCase or snake_case input.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Mapping

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps in older files were written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class ShareModel(BaseModel):
    """Base model for everything persisted in a share file."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dict with on-disk key names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def normalize_updates(cls, updates: Mapping[str, Any]) -> dict[str, Any]:
        """
        Map a partial update onto field names.

        Keys may be field names or their camelCase aliases.

        Raises:
            ValueError: If a key does not name a field
        """
        by_alias = {
            (info.alias or name): name
            for name, info in cls.model_fields.items()
        }
        normalized = {}
        for key, value in updates.items():
            if key in cls.model_fields:
                normalized[key] = value
            elif key in by_alias:
                normalized[by_alias[key]] = value
            else:
                raise ValueError(f"Unknown field for {cls.__name__}: {key}")
        return normalized
