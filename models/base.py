"""Base model with camelCase serialization for API input/output."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, emits camelCase with ``by_alias``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
