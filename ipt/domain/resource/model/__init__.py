from ipt.domain.resource.model.directory import Organisation, User
from ipt.domain.resource.model.history import VersionHistory
from ipt.domain.resource.model.mapping import Extension, ExtensionMapping, FieldMapping, Source
from ipt.domain.resource.model.metadata import Agent, Citation, Eml
from ipt.domain.resource.model.value import (
    DOI,
    CoreRowType,
    IdentifierStatus,
    MaintenanceUpdateFrequency,
    PublicationMode,
    PublicationStatus,
)

__all__ = [
    "Agent",
    "Citation",
    "CoreRowType",
    "DOI",
    "Eml",
    "Extension",
    "ExtensionMapping",
    "FieldMapping",
    "IdentifierStatus",
    "MaintenanceUpdateFrequency",
    "Organisation",
    "PublicationMode",
    "PublicationStatus",
    "Source",
    "User",
    "VersionHistory",
]
