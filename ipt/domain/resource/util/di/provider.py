from dishka import Provider, Scope, from_context, provide

from ipt.config import Config
from ipt.domain.resource.port.doi_registrar import DoiRegistrar
from ipt.domain.resource.port.repository import ResourceRepository
from ipt.domain.resource.service.resource import ResourceService


class ResourceProvider(Provider):
    """Provides the resource service; the repository and DOI registrar come from the host."""

    config = from_context(provides=Config, scope=Scope.APP)

    @provide(scope=Scope.APP)
    def service(
        self,
        config: Config,
        resource_repo: ResourceRepository,
        doi_registrar: DoiRegistrar,
    ) -> ResourceService:
        return ResourceService(
            resource_repo=resource_repo,
            doi_registrar=doi_registrar,
            base_url=config.server.base_url,
        )
