from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Mutable domain object with identity."""

    model_config = ConfigDict(arbitrary_types_allowed=True)
