from __future__ import annotations

from abc import abstractmethod
from typing import List, Protocol

from ipt.domain.resource.model.aggregate import Resource
from ipt.domain.shared.port import Port


class ResourceRepository(Port, Protocol):
    @abstractmethod
    async def get(self, shortname: str) -> Resource | None: ...

    @abstractmethod
    async def save(self, resource: Resource) -> None: ...

    @abstractmethod
    async def list(
        self, *, limit: int | None = None, offset: int | None = None
    ) -> List[Resource]: ...
