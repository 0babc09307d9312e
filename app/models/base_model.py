# /app/models/base_model.py

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _to_naive_utc(value: datetime) -> datetime:
    # Stored timestamps are naive UTC; clients send ISO strings with "Z" or an offset.
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class APIModel(BaseModel):
    """
    Shared base for every API contract.

    Fields are declared in snake_case so they can be read straight off the ORM
    objects, and are exposed to (and accepted from) clients in camelCase.
    """
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
