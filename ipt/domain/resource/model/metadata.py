from datetime import date, datetime
from decimal import Decimal

from pydantic import Field, field_validator

from ipt.domain.resource.model.value import INITIAL_RESOURCE_VERSION
from ipt.domain.resource.model.version import (
    VersionLike,
    next_major_version,
    next_minor_version,
    to_version,
)
from ipt.domain.shared.model.entity import Entity


class Agent(Entity):
    """A person or organisation responsible for the dataset (EML creator, contact, ...)."""

    first_name: str | None = None
    last_name: str | None = None
    organisation: str | None = None
    email: str | None = None


class Citation(Entity):
    citation: str | None = None
    identifier: str | None = None


class Eml(Entity):
    """The slice of the EML document the resource reads and writes in place."""

    title: str | None = None
    eml_version: Decimal = INITIAL_RESOURCE_VERSION
    date_stamp: datetime | date | None = None
    creators: list[Agent] = Field(default_factory=list)
    citation: Citation | None = None
    alternate_identifiers: list[str] = Field(default_factory=list)
    license_url: str | None = None

    @field_validator("eml_version", mode="before")
    @classmethod
    def _coerce_version(cls, v: VersionLike) -> Decimal:
        return to_version(v)

    def next_version_after_minor_change(self) -> Decimal:
        return next_minor_version(self.eml_version)

    def next_version_after_major_change(self) -> Decimal:
        return next_major_version(self.eml_version)
