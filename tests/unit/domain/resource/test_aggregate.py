import copy
from datetime import UTC, datetime
from uuid import uuid4

from ipt.domain.resource.model.aggregate import Resource
from ipt.domain.resource.model.directory import User
from ipt.domain.resource.model.metadata import Eml
from ipt.domain.resource.model.value import (
    DOI,
    IdentifierStatus,
    MaintenanceUpdateFrequency,
    PublicationMode,
    PublicationStatus,
)


class TestResourceIdentity:
    def test_equality_by_shortname(self):
        assert Resource(shortname="birds") == Resource(shortname="birds", status=PublicationStatus.PUBLIC)
        assert Resource(shortname="birds") != Resource(shortname="Birds")
        assert len({Resource(shortname="birds"), Resource(shortname="birds")}) == 1

    def test_ordering_ignores_case(self):
        resources = [Resource(shortname=n) for n in ("mammals", "Birds", "ants")]
        assert [r.shortname for r in sorted(resources)] == ["ants", "Birds", "mammals"]

    def test_str(self):
        assert str(Resource(shortname="birds")) == "Resource birds"


class TestCopy:
    def _reserved(self) -> Resource:
        resource = Resource(shortname="birds", eml=Eml(title="Birds"))
        resource.doi = DOI("10.1234/birds")
        resource.identifier_status = IdentifierStatus.PUBLIC_PENDING_PUBLICATION
        resource.update_alternate_identifier_for_doi()
        return resource

    def test_deep_copy_is_independent(self):
        resource = self._reserved()

        snapshot = resource.model_copy(deep=True)
        snapshot.eml.alternate_identifiers.append("urn:lsid:example:birds")

        assert snapshot == resource
        assert resource.alternate_identifiers == ("10.1234/birds",)
        assert snapshot._lock is not resource._lock

    def test_copied_resource_still_synchronises(self):
        snapshot = copy.deepcopy(self._reserved())
        snapshot.identifier_status = IdentifierStatus.UNRESERVED

        snapshot.update_alternate_identifier_for_doi()

        assert snapshot.alternate_identifiers == ()

    def test_shallow_copy_gets_own_lock(self):
        resource = self._reserved()

        shallow = copy.copy(resource)

        assert shallow._lock is not resource._lock
        assert shallow.eml is resource.eml


class TestTitle:
    def test_shortname_seeds_missing_title(self):
        assert Resource(shortname="birds").title == "birds"
        assert Resource(shortname="birds", eml=Eml(title="Birds of Denmark")).title == "Birds of Denmark"

    def test_title_and_shortname(self):
        assert Resource(shortname="birds").title_and_shortname == "birds"
        resource = Resource(shortname="birds", eml=Eml(title="Birds of Denmark"))
        assert resource.title_and_shortname == "Birds of Denmark (birds)"

    def test_set_shortname_keeps_existing_title(self):
        resource = Resource(shortname="birds", eml=Eml(title="Birds of Denmark"))
        resource.set_shortname("dk-birds")
        assert resource.shortname == "dk-birds"
        assert resource.title == "Birds of Denmark"

    def test_set_title(self):
        resource = Resource(shortname="birds")
        resource.set_title("Birds")
        assert resource.eml.title == "Birds"


class TestPublicationState:
    def test_registered_needs_key(self):
        resource = Resource(shortname="birds", status=PublicationStatus.REGISTERED)
        assert not resource.is_registered()
        resource.key = uuid4()
        assert resource.is_registered()
        assert resource.is_publicly_available()

    def test_private_and_deleted_are_not_public(self):
        assert not Resource(shortname="birds").is_publicly_available()
        assert not Resource(shortname="birds", status=PublicationStatus.DELETED).is_publicly_available()

    def test_published(self):
        resource = Resource(shortname="birds")
        assert not resource.is_published()
        assert not resource.has_published_data()
        resource.last_published = datetime.now(UTC)
        resource.records_published = 12
        assert resource.is_published()
        assert resource.has_published_data()

    def test_auto_publishing_needs_mode_and_frequency(self):
        resource = Resource(shortname="birds")
        resource.set_update_frequency("monthly")
        assert resource.update_frequency == MaintenanceUpdateFrequency.MONTHLY
        assert not resource.uses_auto_publishing()

        resource.publication_mode = PublicationMode.AUTO_PUBLISH_ON
        assert resource.uses_auto_publishing()

        resource.set_update_frequency("sometimes")
        assert resource.update_frequency is None
        assert not resource.uses_auto_publishing()

    def test_gbif_supported_license(self):
        resource = Resource(shortname="birds")
        assert not resource.is_assigned_gbif_supported_license()

        resource.eml.license_url = "https://creativecommons.org/licenses/by/4.0/legalcode/"
        assert resource.is_assigned_gbif_supported_license()

        resource.eml.license_url = "http://creativecommons.org/licenses/by-sa/4.0/legalcode"
        assert not resource.is_assigned_gbif_supported_license()


class TestMetaMetadata:
    def test_subtype_lower_cased(self):
        resource = Resource(shortname="birds")
        resource.set_subtype("Taxonomic Authority")
        assert resource.subtype == "taxonomic authority"
        resource.set_subtype("")
        assert resource.subtype is None

    def test_created_seeds_modified(self):
        resource = Resource(shortname="birds")
        creator = User(email="kim@example.org")
        when = datetime(2024, 1, 1, tzinfo=UTC)
        resource.set_created(when)
        resource.set_creator(creator)

        assert resource.modified == when
        assert resource.modifier == creator

    def test_modified_stamps(self):
        resource = Resource(shortname="birds")
        when = datetime(2024, 2, 1, tzinfo=UTC)
        resource.set_mappings_modified(when)
        assert resource.mappings_modified == when
        assert resource.modified == when

        later = datetime(2024, 3, 1, tzinfo=UTC)
        resource.set_sources_modified(later)
        resource.set_metadata_modified(later)
        assert resource.sources_modified == later
        assert resource.metadata_modified == later
        assert resource.modified == later

    def test_managers_listed_once(self):
        resource = Resource(shortname="birds")
        resource.add_manager(User(email="kim@example.org"))
        resource.add_manager(User(email="KIM@example.org", first_name="Kim"))
        resource.add_manager(None)

        assert len(resource.managers) == 1
