from datetime import UTC, datetime
from decimal import Decimal

import pytest

from ipt.domain.resource.model.aggregate import Resource
from ipt.domain.resource.model.history import VersionHistory
from ipt.domain.resource.model.metadata import Eml
from ipt.domain.resource.model.value import DOI, IdentifierStatus, PublicationStatus
from ipt.domain.shared.error import ValidationError


def _published(
    version: str = "1.0",
    status: PublicationStatus = PublicationStatus.PUBLIC,
    doi_status: IdentifierStatus | None = None,
) -> Resource:
    resource = Resource(
        shortname="birds",
        eml=Eml(eml_version=version),
        status=status,
        last_published=datetime.now(UTC),
    )
    if doi_status is not None:
        resource.doi = DOI("10.1234/birds")
        resource.identifier_status = doi_status
    return resource


def _assign_public_doi(resource: Resource) -> None:
    resource.add_version_history(
        VersionHistory(
            version=resource.eml.eml_version,
            publication_status=resource.status,
            doi=DOI("10.1234/older"),
            doi_status=IdentifierStatus.PUBLIC,
        )
    )


class TestNextVersion:
    def test_never_published_uses_metadata_version(self):
        resource = Resource(shortname="birds", eml=Eml(eml_version="1.0"))
        assert resource.next_version() == Decimal("1.0")

    def test_minor_bump_without_doi(self):
        assert str(_published("1.9").next_version()) == "1.10"
        assert str(_published("1.10").next_version()) == "1.11"

    def test_major_bump_for_first_doi_of_public_resource(self):
        resource = _published("1.3", PublicationStatus.PUBLIC, IdentifierStatus.PUBLIC_PENDING_PUBLICATION)
        assert str(resource.next_version()) == "2.0"

    def test_major_bump_for_first_doi_of_registered_resource(self):
        resource = _published("1.3", PublicationStatus.REGISTERED, IdentifierStatus.PUBLIC_PENDING_PUBLICATION)
        assert str(resource.next_version()) == "2.0"

    def test_minor_bump_for_first_doi_of_private_resource(self):
        resource = _published("1.3", PublicationStatus.PRIVATE, IdentifierStatus.PUBLIC_PENDING_PUBLICATION)
        assert str(resource.next_version()) == "1.4"

    def test_major_bump_for_new_doi_after_assigned_one(self):
        resource = _published("1.3", PublicationStatus.PRIVATE, IdentifierStatus.PUBLIC_PENDING_PUBLICATION)
        _assign_public_doi(resource)
        assert str(resource.next_version()) == "2.0"

    def test_minor_bump_when_doi_already_public(self):
        resource = _published("2.0", PublicationStatus.PUBLIC, IdentifierStatus.PUBLIC)
        _assign_public_doi(resource)
        assert str(resource.next_version()) == "2.1"

    def test_minor_bump_when_doi_only_reserved(self):
        resource = _published("1.0", PublicationStatus.PUBLIC, IdentifierStatus.RESERVED_PENDING_PUBLICATION)
        assert str(resource.next_version()) == "1.1"


class TestSetEmlVersion:
    def test_greater_version_archives_current(self):
        resource = Resource(shortname="birds")
        resource.set_eml_version("1.9")
        resource.set_eml_version("1.10")

        assert resource.version == Decimal("1.10")
        assert resource.replaced_version == Decimal("1.9")
        assert str(resource.eml.eml_version) == "1.10"

    def test_leading_zero_minor_is_replaced(self):
        resource = Resource(shortname="birds")
        resource.set_eml_version("1.01")
        resource.set_eml_version("1.1")

        assert str(resource.replaced_version) == "1.01"

    def test_lower_version_keeps_replaced(self):
        resource = Resource(shortname="birds")
        resource.set_eml_version("1.10")
        resource.set_eml_version("1.9")

        assert resource.version == Decimal("1.9")
        assert resource.replaced_eml_version is None

    def test_first_version_replaces_nothing(self):
        resource = Resource(shortname="birds")
        resource.set_eml_version("1.0")

        assert resource.replaced_eml_version is None
        assert resource.replaced_version == Decimal("1.0")

    def test_version_falls_back_to_metadata(self):
        resource = Resource(shortname="birds", eml=Eml(eml_version="3.2"))
        assert resource.version == Decimal("3.2")


class TestSetReplacedEmlVersion:
    def test_must_match_last_published_version(self):
        resource = Resource(shortname="birds")
        resource.add_version_history(
            VersionHistory(version="1.1", publication_status=PublicationStatus.PUBLIC)
        )

        with pytest.raises(ValidationError):
            resource.set_replaced_eml_version("1.0")
        assert resource.replaced_eml_version is None

        resource.set_replaced_eml_version("1.1")
        assert resource.replaced_version == Decimal("1.1")

    def test_anything_goes_without_history(self):
        resource = Resource(shortname="birds")
        resource.set_replaced_eml_version("4.2")
        assert resource.replaced_version == Decimal("4.2")
