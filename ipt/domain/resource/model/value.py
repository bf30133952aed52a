from __future__ import annotations

import re
from decimal import Decimal
from enum import StrEnum
from typing import ClassVar

from pydantic import field_validator

from ipt.domain.shared.model.value import RootValueObject

# ---------- Constants ----------

INITIAL_RESOURCE_VERSION = Decimal("1.0")
DOI_RESOLVER = "https://doi.org/"
PLACEHOLDER_CITATION = "Will be replaced by auto-generated citation"

DWC_ROWTYPE_OCCURRENCE = "http://rs.tdwg.org/dwc/terms/Occurrence"
DWC_ROWTYPE_TAXON = "http://rs.tdwg.org/dwc/terms/Taxon"
DWC_ROWTYPE_EVENT = "http://rs.tdwg.org/dwc/terms/Event"

GBIF_SUPPORTED_LICENSES = frozenset(
    {
        "http://creativecommons.org/publicdomain/zero/1.0/legalcode",
        "http://creativecommons.org/licenses/by/4.0/legalcode",
        "http://creativecommons.org/licenses/by-nc/4.0/legalcode",
    }
)


# ---------- Enumerations ----------


class PublicationStatus(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"
    REGISTERED = "registered"
    DELETED = "deleted"


class IdentifierStatus(StrEnum):
    """Status of a resource DOI, governing where the DOI is advertised."""

    UNRESERVED = "unreserved"
    RESERVED_PENDING_PUBLICATION = "reserved_pending_publication"
    PUBLIC_PENDING_PUBLICATION = "public_pending_publication"
    PUBLIC = "public"
    UNAVAILABLE = "unavailable"


class PublicationMode(StrEnum):
    AUTO_PUBLISH_ON = "auto_publish_on"
    AUTO_PUBLISH_OFF = "auto_publish_off"


class MaintenanceUpdateFrequency(StrEnum):
    ANNUALLY = "annually"
    BIANNUALLY = "biannually"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"
    AS_NEEDED = "asNeeded"
    CONTINUALLY = "continually"
    IRREGULAR = "irregular"
    NOT_PLANNED = "notPlanned"
    UNKNOWN = "unknown"
    OTHER_MAINTENANCE_PERIOD = "otherMaintenancePeriod"

    @classmethod
    def find_by_identifier(cls, identifier: str | None) -> MaintenanceUpdateFrequency | None:
        """Case-insensitive lookup by identifier; None when nothing matches."""
        if not identifier:
            return None
        wanted = identifier.strip().lower()
        for member in cls:
            if member.value.lower() == wanted or member.name.lower() == wanted:
                return member
        return None


class CoreRowType(StrEnum):
    OCCURRENCE = "occurrence"
    CHECKLIST = "checklist"
    SAMPLINGEVENT = "samplingevent"
    METADATA = "metadata"
    OTHER = "other"


# ---------- DOI ----------


class DOI(RootValueObject[str]):
    """
    Digital Object Identifier in prefix/suffix form, e.g. 10.1234/qu83ng.
    Accepts "doi:" and resolver URL forms; stored lower case.
    """

    _re: ClassVar[re.Pattern] = re.compile(r"^10\.\d{4,9}/\S+$")
    _prefixes: ClassVar[tuple[str, ...]] = (
        "doi:",
        "https://doi.org/",
        "http://doi.org/",
        "https://dx.doi.org/",
        "http://dx.doi.org/",
    )

    @field_validator("root")
    @classmethod
    def _validate(cls, v: str) -> str:
        v = v.strip().lower()
        for prefix in cls._prefixes:
            if v.startswith(prefix):
                v = v[len(prefix) :]
                break
        if not cls._re.match(v):
            raise ValueError("invalid DOI (expected 10.<registrant>/<suffix>)")
        return v

    @classmethod
    def parse(cls, s: str) -> DOI:
        return cls.model_validate(s)

    @property
    def prefix(self) -> str:
        return self.root.split("/", 1)[0]

    @property
    def suffix(self) -> str:
        return self.root.split("/", 1)[1]

    @property
    def url(self) -> str:
        """Resolvable URL for this DOI."""
        return f"{DOI_RESOLVER}{self.root}"

    def __str__(self) -> str:
        return self.root
