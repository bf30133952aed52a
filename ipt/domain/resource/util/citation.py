"""Citation assembly for resources.

Format: ``Creators (PublicationYear): Title. Version. Publisher. ResourceType. Identifier``
"""

from datetime import date, datetime
from decimal import Decimal

from ipt.domain.resource.model.metadata import Agent
from ipt.domain.resource.model.version import plain


def _trim_to_none(s: str | None) -> str | None:
    if s is None:
        return None
    s = s.strip()
    return s or None


def author_name(creator: Agent) -> str | None:
    """
    Name of a creator as it appears in a citation, or None if the creator does not qualify.

    A creator needs a last name and at least one first name ("Smith J P"). If both
    names are blank on purpose, the organisation name is used instead.
    """
    last_name = _trim_to_none(creator.last_name)
    first_names = _trim_to_none(creator.first_name)
    organisation = _trim_to_none(creator.organisation)
    if last_name and first_names:
        initials = " ".join(name[0].upper() for name in first_names.split())
        return f"{last_name} {initials}"
    if last_name is None and first_names is None and organisation:
        return organisation
    return None


def publication_year(stamp: datetime | date | None) -> int:
    """Year of the date stamp, 0 when unknown."""
    if stamp is None:
        return 0
    return stamp.year


def build_citation(
    *,
    creators: list[Agent],
    year: int,
    title: str,
    version: Decimal,
    publisher: str | None,
    core_type: str | None,
    identifier: str,
) -> str:
    authors = ", ".join(name for c in creators if (name := author_name(c)))

    head = authors
    if year > 0:
        head = f"{authors} ({year}): " if authors else f"({year}): "
    elif authors:
        head = f"{authors}: "

    parts = [f"{title}.", f"v{plain(version)}."]
    if publisher := _trim_to_none(publisher):
        parts.append(f"{publisher}.")

    resource_type = "Dataset"
    if core_type:
        resource_type += "/" + core_type.lower().capitalize()
    parts.append(f"{resource_type}.")
    parts.append(identifier)

    return head + " ".join(parts)
