from ipt.domain.resource.util.di.provider import ResourceProvider

__all__ = ["ResourceProvider"]
