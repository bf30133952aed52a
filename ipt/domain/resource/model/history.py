from datetime import datetime
from decimal import Decimal

from pydantic import field_validator

from ipt.domain.resource.model.value import DOI, IdentifierStatus, PublicationStatus
from ipt.domain.resource.model.version import VersionLike, to_version
from ipt.domain.shared.model.value import ValueObject


class VersionHistory(ValueObject):
    """Snapshot of a published version and the identifier it was released under."""

    version: Decimal
    publication_status: PublicationStatus
    doi: DOI | None = None
    doi_status: IdentifierStatus = IdentifierStatus.UNRESERVED
    change_summary: str | None = None
    released: datetime | None = None
    modified_by: str | None = None  # email of the user who published

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, v: VersionLike) -> Decimal:
        return to_version(v)
