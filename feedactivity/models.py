from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler, field_validator
from pydantic_core import core_schema


class FeedID(str):
    """Identifier of a feed in ``slug:user_id`` form."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(cls, core_schema.str_schema())

    def value(self) -> str:
        return str(self)


@runtime_checkable
class Feed(Protocol):
    """Anything an activity can be addressed to."""

    @property
    def feed_id(self) -> FeedID: ...

    @property
    def token(self) -> str: ...


class FeedReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    user_id: str
    token: str = ""

    @property
    def feed_id(self) -> FeedID:
        return FeedID(f"{self.slug}:{self.user_id}")

    def __str__(self) -> str:
        if self.token:
            return f"{self.feed_id} {self.token}"
        return self.feed_id.value()


class Activity(BaseModel):
    """A single feed event, as written to and read from the feed service."""

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    id: str = ""
    actor: str = ""
    verb: str = ""
    object: str = ""
    target: str = ""
    origin: FeedID = FeedID("")
    timestamp: Optional[datetime] = None
    foreign_id: str = ""
    data: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    to: List[Feed] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def raw_text(cls, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8")
        return value


__all__ = ["Activity", "Feed", "FeedID", "FeedReference"]
