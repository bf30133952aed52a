from abc import abstractmethod
from typing import Protocol

from ipt.domain.resource.model.aggregate import Resource
from ipt.domain.resource.model.value import DOI
from ipt.domain.shared.port import Port


class DoiRegistrar(Port, Protocol):
    """
    The DOI registration agency account an installation mints DOIs with.

    Implementations raise ExternalServiceError when the agency rejects a request
    or cannot be reached.
    """

    @abstractmethod
    async def reserve(self, resource: Resource) -> DOI: ...

    @abstractmethod
    async def register(self, resource: Resource, doi: DOI) -> None: ...

    @abstractmethod
    async def deactivate(self, doi: DOI) -> None: ...
