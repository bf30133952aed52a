from typing import Generic, TypeVar
from pydantic import BaseModel, ConfigDict, RootModel

T = TypeVar("T")


class ValueObject(BaseModel):
    """Immutable and hashable; two value objects with equal fields are the same value."""

    model_config = ConfigDict(frozen=True)


class RootValueObject(RootModel[T], Generic[T]):
    """A single validated value, e.g. a DOI."""

    model_config = ConfigDict(frozen=True)
