from uuid import UUID

from ipt.domain.shared.model.entity import Entity


class Organisation(Entity):
    key: UUID
    name: str | None = None


class User(Entity):
    email: str
    first_name: str | None = None
    last_name: str | None = None

    @property
    def name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or self.email

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.email.lower() == other.email.lower()

    def __hash__(self) -> int:
        return hash(self.email.lower())
