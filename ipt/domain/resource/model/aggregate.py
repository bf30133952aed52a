from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from functools import total_ordering
from threading import RLock
from typing import Any, assert_never
from urllib.parse import urlsplit
from uuid import UUID

from pydantic import Field, PrivateAttr

from ipt.domain.resource.model.directory import Organisation, User
from ipt.domain.resource.model.history import VersionHistory
from ipt.domain.resource.model.mapping import (
    Extension,
    ExtensionMapping,
    Source,
    normalise_source_name,
)
from ipt.domain.resource.model.metadata import Citation, Eml
from ipt.domain.resource.model.value import (
    DOI,
    DWC_ROWTYPE_EVENT,
    DWC_ROWTYPE_OCCURRENCE,
    DWC_ROWTYPE_TAXON,
    GBIF_SUPPORTED_LICENSES,
    INITIAL_RESOURCE_VERSION,
    PLACEHOLDER_CITATION,
    CoreRowType,
    IdentifierStatus,
    MaintenanceUpdateFrequency,
    PublicationMode,
    PublicationStatus,
)
from ipt.domain.resource.model.version import (
    VersionLike,
    compare_versions,
    to_version,
    versions_equal,
)
from ipt.domain.resource.util.citation import build_citation, publication_year
from ipt.domain.shared.error import AlreadyExistsError, ValidationError
from ipt.domain.shared.model.aggregate import Aggregate

logger = logging.getLogger(__name__)

_URI_CHARS = re.compile(r"[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _is_uri_reference(value: str) -> bool:
    """Absolute URIs and relative references such as /ipt/resource?r=birds."""
    if not _URI_CHARS.fullmatch(value) or _BAD_ESCAPE.search(value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    # brackets only delimit an IPv6 host
    return not any(c in "[]" for c in parts.path + parts.query + parts.fragment)


def _normalise_license(url: str) -> str:
    url = url.strip().lower().rstrip("/")
    if url.startswith("https://"):
        url = "http://" + url[len("https://") :]
    return url


_SUPPORTED_LICENSES = frozenset(_normalise_license(u) for u in GBIF_SUPPORTED_LICENSES)

_CORE_TYPES = {
    DWC_ROWTYPE_TAXON.lower(): CoreRowType.CHECKLIST,
    DWC_ROWTYPE_OCCURRENCE.lower(): CoreRowType.OCCURRENCE,
    DWC_ROWTYPE_EVENT.lower(): CoreRowType.SAMPLINGEVENT,
}


@total_ordering
class Resource(Aggregate):
    """
    A published dataset: its metadata, mapping configuration, versions and DOI.

    Resources are identified by their shortname, which is unique within an
    installation and orders resources case-insensitively.
    """

    shortname: str
    eml: Eml = Field(default_factory=Eml)
    declared_core_type: str | None = None
    subtype: str | None = None
    update_frequency: MaintenanceUpdateFrequency | None = None
    status: PublicationStatus = PublicationStatus.PRIVATE
    publication_mode: PublicationMode = PublicationMode.AUTO_PUBLISH_OFF
    citation_auto_generated: bool = False

    # resource version and EML version are the same
    eml_version: Decimal | None = None
    replaced_eml_version: Decimal | None = None

    last_published: datetime | None = None
    next_published: datetime | None = None
    records_published: int = 0

    # registry data, only exists when status is registered
    key: UUID | None = None
    organisation: Organisation | None = None

    creator: User | None = None
    created: datetime | None = None
    modifier: User | None = None
    modified: datetime | None = None
    metadata_modified: datetime | None = None
    mappings_modified: datetime | None = None
    sources_modified: datetime | None = None
    managers: list[User] = Field(default_factory=list)

    sources: list[Source] = Field(default_factory=list)
    mappings: list[ExtensionMapping] = Field(default_factory=list)

    change_summary: str | None = None
    version_history: list[VersionHistory] = Field(default_factory=list)  # newest first

    identifier_status: IdentifierStatus = IdentifierStatus.UNRESERVED
    doi: DOI | None = None
    doi_organisation_key: UUID | None = None

    _lock: Any = PrivateAttr(default_factory=RLock)

    def model_post_init(self, __context: Any) -> None:
        if self.eml.title is None:
            self.eml.title = self.shortname

    # ------------------------------------------------------------------
    # identity
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self.shortname == other.shortname

    def __lt__(self, other: Resource) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self.shortname.casefold() < other.shortname.casefold()

    def __hash__(self) -> int:
        return hash(self.shortname)

    def __str__(self) -> str:
        return f"Resource {self.shortname}"

    # copies never share the synchronisation lock

    def __copy__(self) -> Resource:
        copied = super().__copy__()
        copied._lock = RLock()
        return copied

    def __deepcopy__(self, memo: dict[int, Any] | None = None) -> Resource:
        memo = {} if memo is None else memo
        memo[id(self._lock)] = RLock()
        return super().__deepcopy__(memo)

    # ------------------------------------------------------------------
    # versions
    # ------------------------------------------------------------------

    @property
    def version(self) -> Decimal:
        """Current resource version, falling back to the EML version."""
        return self.eml.eml_version if self.eml_version is None else self.eml_version

    @property
    def replaced_version(self) -> Decimal:
        """
        The version about to be replaced by the next publication (if publication is in
        progress), or the version replaced by the latest publication.
        """
        if self.replaced_eml_version is None:
            return INITIAL_RESOURCE_VERSION
        return self.replaced_eml_version

    def set_eml_version(self, v: VersionLike | None) -> None:
        """
        Set a new resource version. If it is greater than the current one, the current
        version is recorded as the replaced version first.

        Minor versions compare with their trailing zeros: 1.10 > 1.9.
        """
        new = None if v is None else to_version(v)
        if new is not None and self.eml_version is not None:
            if compare_versions(new, self.eml_version) > 0:
                self.set_replaced_eml_version(self.eml_version)
        self.eml_version = new
        if new is not None:
            self.eml.eml_version = new

    def set_replaced_eml_version(self, v: VersionLike | None) -> None:
        """Set the replaced version; it must match the last published version when one exists."""
        replaced = None if v is None else to_version(v)
        last = self.last_published_version
        if replaced is not None and last is not None and not versions_equal(replaced, last):
            raise ValidationError(
                f"Version replaced ({replaced}) should be equal to last published version ({last})",
                field="replaced_eml_version",
            )
        self.replaced_eml_version = replaced

    def next_version(self) -> Decimal:
        """
        The version the next publication will get.

        Never published: the EML version. A reserved DOI about to become public bumps
        the major version when either no DOI has been assigned yet and the resource is
        publicly visible, or a DOI has been assigned already. Anything else bumps the
        minor version.
        """
        if self.last_published is None:
            return self.eml.eml_version
        if self.doi is not None and self.identifier_status == IdentifierStatus.PUBLIC_PENDING_PUBLICATION:
            if not self.is_already_assigned_doi() and self.status in (
                PublicationStatus.PUBLIC,
                PublicationStatus.REGISTERED,
            ):
                return self.eml.next_version_after_major_change()
            elif self.is_already_assigned_doi():
                return self.eml.next_version_after_major_change()
        return self.eml.next_version_after_minor_change()

    # ------------------------------------------------------------------
    # version history
    # ------------------------------------------------------------------

    def add_version_history(self, history: VersionHistory) -> None:
        """Prepend a history entry unless one with the same version exists."""
        if any(versions_equal(vh.version, history.version) for vh in self.version_history):
            return
        self.version_history.insert(0, history)

    def remove_version_history(self, version: VersionLike | None) -> None:
        if version is None:
            return
        self.version_history = [
            vh for vh in self.version_history if not versions_equal(vh.version, version)
        ]

    def find_version_history(self, version: VersionLike | None) -> VersionHistory | None:
        if version is None:
            return None
        for vh in self.version_history:
            if versions_equal(vh.version, version):
                return vh
        return None

    def is_already_assigned_doi(self) -> bool:
        """Only DOIs that are public have officially been assigned."""
        if not self.version_history:
            return False
        latest = self.version_history[0]
        return latest.doi is not None and latest.doi_status == IdentifierStatus.PUBLIC

    @property
    def assigned_doi(self) -> DOI | None:
        """DOI assigned to the last published version, if it was public."""
        if self.is_already_assigned_doi():
            return self.version_history[0].doi
        return None

    @property
    def last_published_version(self) -> Decimal | None:
        if self.version_history:
            return self.version_history[0].version
        return None

    @property
    def last_published_version_change_summary(self) -> str | None:
        if self.version_history:
            return self.version_history[0].change_summary or None
        return None

    def last_published_version_publication_status(self) -> PublicationStatus:
        """Status of the last published version, defaulting to private when unknown."""
        if self.version_history:
            return self.version_history[0].publication_status
        if self.status == PublicationStatus.REGISTERED:
            return PublicationStatus.REGISTERED
        return PublicationStatus.PRIVATE

    def is_last_published_version_public(self) -> bool:
        return (
            bool(self.version_history)
            and self.version_history[0].publication_status == PublicationStatus.PUBLIC
        )

    # ------------------------------------------------------------------
    # DOI bookkeeping
    # ------------------------------------------------------------------

    @property
    def alternate_identifiers(self) -> tuple[str, ...]:
        return tuple(self.eml.alternate_identifiers)

    def update_alternate_identifier_for_doi(self) -> None:
        """
        Keep the DOI in the EML alternate identifiers in step with its status.

        Public (or about to be): the DOI is the first alternate identifier, listed once.
        Other DOIs may remain in the list. Unavailable or unreserved: the DOI is removed.
        """
        with self._lock:
            if self.doi is None:
                return
            doi = str(self.doi)
            ids = self.eml.alternate_identifiers
            match self.identifier_status:
                case IdentifierStatus.PUBLIC | IdentifierStatus.PUBLIC_PENDING_PUBLICATION:
                    reordered = [doi] + [i for i in ids if i.lower() != doi.lower()]
                    if reordered != ids:
                        ids[:] = reordered
                        logger.debug(f"DOI={doi} added to alternate identifiers of {self.shortname}")
                case IdentifierStatus.UNAVAILABLE | IdentifierStatus.UNRESERVED:
                    remaining = [i for i in ids if i.lower() != doi.lower()]
                    if len(remaining) != len(ids):
                        ids[:] = remaining
                        logger.debug(f"DOI={doi} removed from alternate identifiers of {self.shortname}")
                case IdentifierStatus.RESERVED_PENDING_PUBLICATION:
                    pass
                case _ as unreachable:
                    assert_never(unreachable)

    def update_citation_identifier_for_doi(self) -> None:
        """
        Keep the EML citation identifier in step with the DOI status.

        Public (or about to be): the DOI URL is the citation identifier. Unavailable or
        unreserved: the identifier is cleared. A resource with a DOI always has a
        citation, so a placeholder is created (and marked auto-generated) when missing.
        """
        with self._lock:
            if self.doi is None:
                return
            url = self.doi.url
            match self.identifier_status:
                case IdentifierStatus.PUBLIC | IdentifierStatus.PUBLIC_PENDING_PUBLICATION:
                    if self.eml.citation is None:
                        self.citation_auto_generated = True
                        self.eml.citation = Citation(citation=PLACEHOLDER_CITATION, identifier=url)
                    else:
                        self.eml.citation.identifier = url
                    logger.debug(f"DOI={url} set as citation identifier of {self.shortname}")
                case IdentifierStatus.UNAVAILABLE | IdentifierStatus.UNRESERVED:
                    if self.eml.citation is None:
                        self.citation_auto_generated = True
                        self.eml.citation = Citation(citation=PLACEHOLDER_CITATION)
                    else:
                        self.eml.citation.identifier = None
                    logger.debug(f"DOI={url} unset as citation identifier of {self.shortname}")
                case IdentifierStatus.RESERVED_PENDING_PUBLICATION:
                    pass
                case _ as unreachable:
                    assert_never(unreachable)

    # ------------------------------------------------------------------
    # citation
    # ------------------------------------------------------------------

    def generate_citation(self, version: VersionLike, homepage: str) -> str | None:
        """
        Build the resource citation for ``version``, e.g. to preview the upcoming one.

        Returns None if the homepage is not a valid URI reference or the version is not
        a finite number.
        """
        try:
            if not _is_uri_reference(homepage):
                raise ValueError(f"invalid URI: {homepage!r}")
            v = to_version(version)
        except (ValueError, InvalidOperation):
            logger.error(
                f"Failed to generate citation for {self.shortname}: "
                f"homepage={homepage!r}, version={version!r}",
                exc_info=True,
            )
            return None

        if self.doi is not None:
            identifier = self.doi.url
        elif self.eml.citation is not None and self.eml.citation.identifier:
            identifier = self.eml.citation.identifier
        else:
            identifier = homepage

        title = (self.title or "").strip() or self.shortname
        return build_citation(
            creators=self.eml.creators,
            year=publication_year(self.eml.date_stamp),
            title=title,
            version=v,
            publisher=self.organisation.name if self.organisation else None,
            core_type=self.core_type,
            identifier=identifier,
        )

    # ------------------------------------------------------------------
    # mappings
    # ------------------------------------------------------------------

    @property
    def core_row_type(self) -> str | None:
        """Row type of the first core mapping, which always determines the core row type."""
        for m in self.mappings:
            if m.is_core:
                return m.extension.row_type
        return None

    def get_core_mappings(self, row_type: str | None = None) -> list[ExtensionMapping]:
        """Core mappings of ``row_type`` (default: the core row type)."""
        row_type = row_type if row_type is not None else self.core_row_type
        if row_type is None:
            return []
        return [
            m for m in self.mappings if m.is_core and m.extension.row_type.lower() == row_type.lower()
        ]

    @property
    def core_type_term(self) -> str | None:
        cores = self.get_core_mappings()
        return cores[0].extension.row_type if cores else None

    def has_core(self) -> bool:
        return self.core_type_term is not None

    @property
    def core_type(self) -> str | None:
        """
        The declared core type until a core mapping exists; from then on it is derived
        from the core row type.
        """
        row_type = self.core_row_type
        if row_type is None:
            return self.declared_core_type
        return _CORE_TYPES.get(row_type.lower(), CoreRowType.OTHER).value.capitalize()

    def set_core_type(self, core_type: str | None) -> None:
        self.declared_core_type = core_type or None

    def get_mappings(self, row_type: str | None) -> list[ExtensionMapping]:
        """Mappings for ``row_type``, in the order they were added."""
        if row_type is None:
            return []
        return [m for m in self.mappings if m.extension is not None and m.extension.row_type == row_type]

    def get_mapping(self, row_type: str | None, index: int | None) -> ExtensionMapping | None:
        if row_type is None or index is None:
            return None
        maps = self.get_mappings(row_type)
        if 0 <= index < len(maps):
            return maps[index]
        return None

    def add_mapping(self, mapping: ExtensionMapping | None) -> int | None:
        """
        Add a mapping and return its index within ``get_mappings(row_type)``.

        Non-core mappings need a core mapping to exist already.
        """
        if mapping is None or mapping.extension is None:
            return None
        if not mapping.is_core and not self.has_core():
            raise ValidationError(
                "Cannot add extension mapping before a core mapping exists", field="mappings"
            )
        index = len(self.get_mappings(mapping.extension.row_type))
        self.mappings.append(mapping)
        return index

    def delete_mapping(self, mapping: ExtensionMapping | None) -> bool:
        """
        Delete a mapping. Deleting the last core mapping clears all other mappings too,
        since extensions cannot exist without a core.
        """
        if mapping is None:
            return False
        core_row_type = self.core_row_type
        for i, m in enumerate(self.mappings):
            if m is mapping:
                del self.mappings[i]
                break
        else:
            return False
        if mapping.is_core and not self.get_core_mappings(core_row_type):
            self.mappings.clear()
        return True

    @property
    def mapped_extensions(self) -> list[Extension]:
        """Extensions mapped to, core first, each listed once."""
        extensions: dict[Extension, None] = {}
        for m in self.mappings:
            if m.extension is not None and m.source is not None:
                extensions.setdefault(m.extension, None)
            else:
                logger.error(f"Mapping referencing no extension or source for resource: {self.shortname}")
        return list(extensions)

    def has_mapped_data(self) -> bool:
        return any(m.field_mappings for m in self.get_core_mappings())

    def has_occurrence_mapping(self) -> bool:
        """True if any mapping, core or extension, targets the occurrence row type."""
        return bool(self.get_mappings(DWC_ROWTYPE_OCCURRENCE))

    # ------------------------------------------------------------------
    # sources
    # ------------------------------------------------------------------

    def get_source(self, name: str | None) -> Source | None:
        if name is None:
            return None
        name = normalise_source_name(name)
        for s in self.sources:
            if s.name == name:
                return s
        return None

    def sorted_sources(self) -> list[Source]:
        return sorted(self.sources, key=lambda s: s.name)

    def add_source(self, src: Source, allow_overwrite: bool = False) -> None:
        """
        Add a source. A source with the same name is replaced only if
        ``allow_overwrite`` is set, in which case mappings follow the new instance.
        """
        exists = src in self.sources
        if exists and not allow_overwrite:
            raise AlreadyExistsError(f"Source {src.name} already exists in {self.shortname}")
        src.resource = self.shortname
        if exists:
            self.sources = [s for s in self.sources if s != src]
            for m in self.mappings:
                if m.source is not None and m.source == src:
                    m.source = src
        self.sources.append(src)

    def delete_source(self, src: Source | None) -> bool:
        """Delete a source and every mapping that reads from it."""
        if src is None:
            return False
        result = src in self.sources
        self.sources = [s for s in self.sources if s != src]
        for m in list(self.mappings):
            if m.source is not None and m.source == src:
                self.delete_mapping(m)
                title = m.extension.title if m.extension else None
                logger.debug(f"Cascading source delete to mapping {title}")
        return result

    # ------------------------------------------------------------------
    # other metadata
    # ------------------------------------------------------------------

    @property
    def title(self) -> str | None:
        return self.eml.title

    def set_title(self, title: str | None) -> None:
        self.eml.title = title

    @property
    def title_and_shortname(self) -> str:
        """Title with the shortname in brackets when they differ, for log messages."""
        title = self.eml.title or ""
        if self.shortname.lower() != title.lower():
            return f"{title} ({self.shortname})"
        return title

    def set_shortname(self, shortname: str) -> None:
        self.shortname = shortname
        if self.eml.title is None:
            self.eml.title = shortname

    def set_subtype(self, subtype: str | None) -> None:
        self.subtype = subtype.lower() if subtype else None

    def set_update_frequency(self, identifier: str | None) -> None:
        self.update_frequency = MaintenanceUpdateFrequency.find_by_identifier(identifier)

    def add_manager(self, manager: User | None) -> None:
        if manager is not None and manager not in self.managers:
            self.managers.append(manager)

    def set_created(self, created: datetime | None) -> None:
        self.created = created
        if self.modified is None:
            self.modified = created

    def set_creator(self, creator: User | None) -> None:
        self.creator = creator
        if self.modifier is None:
            self.modifier = creator

    def set_metadata_modified(self, when: datetime) -> None:
        self.modified = when
        self.metadata_modified = when

    def set_mappings_modified(self, when: datetime) -> None:
        self.modified = when
        self.mappings_modified = when

    def set_sources_modified(self, when: datetime) -> None:
        self.modified = when
        self.sources_modified = when

    def is_published(self) -> bool:
        return self.last_published is not None

    def has_published_data(self) -> bool:
        return self.records_published > 0

    def is_registered(self) -> bool:
        return self.key is not None and self.status == PublicationStatus.REGISTERED

    def is_publicly_available(self) -> bool:
        return self.status in (PublicationStatus.PUBLIC, PublicationStatus.REGISTERED)

    def uses_auto_publishing(self) -> bool:
        return (
            self.publication_mode == PublicationMode.AUTO_PUBLISH_ON
            and self.update_frequency is not None
        )

    def is_assigned_gbif_supported_license(self) -> bool:
        """Checked before publishing a new version."""
        url = self.eml.license_url
        return url is not None and _normalise_license(url) in _SUPPORTED_LICENSES
