from dishka import AsyncContainer, Provider, make_async_container

from ipt.config import Config
from ipt.domain.resource.util.di import ResourceProvider


def create_container(*providers: Provider, config: Config | None = None) -> AsyncContainer:
    """Build the container. ``providers`` must supply the resource repository and DOI registrar."""
    config = config or Config()

    return make_async_container(
        ResourceProvider(),
        *providers,
        context={Config: config},
    )
