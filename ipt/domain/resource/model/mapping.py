import re

from pydantic import Field, field_validator

from ipt.domain.shared.model.entity import Entity
from ipt.domain.shared.model.value import ValueObject

_NAME_JUNK = re.compile(r"[\s.:/\\\"']+")


def normalise_source_name(name: str) -> str:
    """Drop a trailing file extension, whitespace and path punctuation: "My data.csv" -> "Mydata"."""
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return _NAME_JUNK.sub("", stem).strip()


class Extension(ValueObject):
    """A Darwin Core (or other) row type that source data can be mapped to."""

    row_type: str
    title: str
    core: bool = False


class FieldMapping(ValueObject):
    term: str
    index: int | None = None  # source column; None when only a default value is used
    default_value: str | None = None


class Source(Entity):
    """A data source of a resource. Sources are identified by their normalised name."""

    name: str
    resource: str | None = None  # shortname of the owning resource
    rows: int = 0

    @field_validator("name")
    @classmethod
    def _normalise(cls, v: str) -> str:
        v = normalise_source_name(v)
        if not v:
            raise ValueError("source name must not be empty")
        return v

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Source):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)


class ExtensionMapping(Entity):
    extension: Extension | None = None
    source: Source | None = None
    field_mappings: list[FieldMapping] = Field(default_factory=list)

    @property
    def is_core(self) -> bool:
        return self.extension is not None and self.extension.core
