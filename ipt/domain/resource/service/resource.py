import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import List, assert_never

from ipt.domain.resource.model.aggregate import Resource
from ipt.domain.resource.model.directory import Organisation, User
from ipt.domain.resource.model.history import VersionHistory
from ipt.domain.resource.model.metadata import Citation
from ipt.domain.resource.model.value import IdentifierStatus, PublicationStatus
from ipt.domain.resource.model.version import VersionLike
from ipt.domain.resource.port.doi_registrar import DoiRegistrar
from ipt.domain.resource.port.repository import ResourceRepository
from ipt.domain.shared.error import ConflictError, InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_SHORTNAME = re.compile(r"^[a-zA-Z0-9_\-]+$")

_PENDING = (
    IdentifierStatus.PUBLIC_PENDING_PUBLICATION,
    IdentifierStatus.RESERVED_PENDING_PUBLICATION,
)


@dataclass
class ResourceService:
    """Drives resources through publication and their DOI lifecycle."""

    resource_repo: ResourceRepository
    doi_registrar: DoiRegistrar
    base_url: str

    def homepage(self, shortname: str) -> str:
        return f"{self.base_url.rstrip('/')}/resource?r={shortname}"

    async def create(
        self,
        shortname: str,
        creator: User,
        *,
        core_type: str | None = None,
        organisation: Organisation | None = None,
    ) -> Resource:
        if not _SHORTNAME.match(shortname):
            raise ValidationError(
                f"Invalid shortname '{shortname}': use letters, digits, '_' and '-' only",
                field="shortname",
            )
        if await self.resource_repo.get(shortname) is not None:
            raise ConflictError(f"Resource already exists: {shortname}")

        resource = Resource(shortname=shortname, organisation=organisation)
        resource.set_core_type(core_type)
        resource.set_created(datetime.now(UTC))
        resource.set_creator(creator)
        resource.add_manager(creator)
        await self.resource_repo.save(resource)
        logger.info(f"Created {resource}")
        return resource

    async def get(self, shortname: str) -> Resource:
        resource = await self.resource_repo.get(shortname)
        if resource is None:
            raise NotFoundError(f"Resource not found: {shortname}")
        return resource

    async def list(self, *, limit: int | None = None, offset: int | None = None) -> List[Resource]:
        return await self.resource_repo.list(limit=limit, offset=offset)

    async def reserve_doi(self, shortname: str) -> Resource:
        """Reserve a new DOI; it becomes public with the next publication."""
        resource = await self.get(shortname)
        if resource.status == PublicationStatus.DELETED:
            raise InvalidStateError(f"Cannot reserve a DOI for deleted {resource}")
        if resource.doi is not None and resource.identifier_status in _PENDING:
            raise InvalidStateError(f"{resource} already has DOI {resource.doi} reserved")

        doi = await self.doi_registrar.reserve(resource)
        resource.doi = doi
        resource.identifier_status = IdentifierStatus.PUBLIC_PENDING_PUBLICATION
        resource.doi_organisation_key = resource.organisation.key if resource.organisation else None
        resource.update_alternate_identifier_for_doi()
        resource.update_citation_identifier_for_doi()
        await self.resource_repo.save(resource)
        logger.info(f"Reserved DOI {doi} for {resource.title_and_shortname}")
        return resource

    async def delete_doi(self, shortname: str) -> Resource:
        """
        Cancel a reserved DOI. If an earlier version was published under a DOI,
        that DOI becomes the resource DOI again.
        """
        resource = await self.get(shortname)
        if resource.doi is None or resource.identifier_status not in _PENDING:
            raise InvalidStateError(f"{resource} has no reserved DOI to delete")

        doi = resource.doi
        await self.doi_registrar.deactivate(doi)
        resource.identifier_status = IdentifierStatus.UNRESERVED
        resource.update_alternate_identifier_for_doi()
        resource.update_citation_identifier_for_doi()

        resource.doi = resource.assigned_doi
        if resource.doi is not None:
            resource.identifier_status = IdentifierStatus.PUBLIC
            resource.update_alternate_identifier_for_doi()
            resource.update_citation_identifier_for_doi()
        else:
            resource.doi_organisation_key = None
        await self.resource_repo.save(resource)
        logger.info(f"Deleted reserved DOI {doi} of {resource.title_and_shortname}")
        return resource

    async def delete(self, shortname: str) -> Resource:
        """Mark a resource deleted; its DOI is no longer advertised."""
        resource = await self.get(shortname)
        resource.status = PublicationStatus.DELETED
        if resource.doi is not None:
            match resource.identifier_status:
                case IdentifierStatus.PUBLIC:
                    await self.doi_registrar.deactivate(resource.doi)
                    resource.identifier_status = IdentifierStatus.UNAVAILABLE
                case IdentifierStatus.PUBLIC_PENDING_PUBLICATION | IdentifierStatus.RESERVED_PENDING_PUBLICATION:
                    await self.doi_registrar.deactivate(resource.doi)
                    resource.identifier_status = IdentifierStatus.UNRESERVED
                case IdentifierStatus.UNAVAILABLE | IdentifierStatus.UNRESERVED:
                    pass
                case _ as unreachable:
                    assert_never(unreachable)
            resource.update_alternate_identifier_for_doi()
            resource.update_citation_identifier_for_doi()
        await self.resource_repo.save(resource)
        logger.info(f"Deleted {resource.title_and_shortname}")
        return resource

    async def publish(
        self,
        shortname: str,
        *,
        change_summary: str | None = None,
        publisher: User | None = None,
    ) -> Resource:
        """
        Publish the next version of a resource.

        A DOI pending publication is registered and becomes public, the DOI is synced
        into the metadata, an auto-generated citation is rebuilt, and a version
        history entry is recorded for the new version.
        """
        resource = await self.get(shortname)
        if resource.status == PublicationStatus.DELETED:
            raise InvalidStateError(f"Cannot publish deleted {resource}")

        now = datetime.now(UTC)
        version = resource.next_version()
        register = (
            resource.doi is not None
            and resource.identifier_status == IdentifierStatus.PUBLIC_PENDING_PUBLICATION
        )
        if register:
            # nothing is changed if the agency fails
            await self.doi_registrar.register(resource, resource.doi)

        resource.set_eml_version(version)
        if register:
            resource.identifier_status = IdentifierStatus.PUBLIC
        resource.update_alternate_identifier_for_doi()
        resource.update_citation_identifier_for_doi()

        if resource.eml.date_stamp is None:
            resource.eml.date_stamp = now
        if resource.citation_auto_generated:
            self._regenerate_citation(resource, version)

        resource.change_summary = change_summary
        resource.last_published = now
        if publisher is not None:
            resource.modifier = publisher
            resource.modified = now

        resource.add_version_history(
            VersionHistory(
                version=version,
                publication_status=resource.status,
                doi=resource.doi,
                doi_status=resource.identifier_status,
                change_summary=change_summary,
                released=now,
                modified_by=publisher.email if publisher else None,
            )
        )
        await self.resource_repo.save(resource)
        logger.info(f"Published {resource.title_and_shortname} v{version}")
        return resource

    async def citation_for(self, shortname: str, version: VersionLike | None = None) -> str | None:
        """Citation preview, by default for the upcoming version."""
        resource = await self.get(shortname)
        v = resource.next_version() if version is None else version
        return resource.generate_citation(v, self.homepage(shortname))

    def _regenerate_citation(self, resource: Resource, version: Decimal) -> None:
        text = resource.generate_citation(version, self.homepage(resource.shortname))
        if text is None:
            return
        if resource.eml.citation is None:
            resource.eml.citation = Citation(citation=text)
        else:
            resource.eml.citation.citation = text
