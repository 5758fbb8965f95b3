"""
Provider registry: maps each provider to its API base path.

This is the only place that knows how a provider is addressed. Adding a
provider means adding an enum member and one entry below.
"""

from typing import Tuple, Union

from utils.constants import API_ROOT
from utils.storage.base import Provider
from utils.storage.errors import UnknownProviderError

_BASE_PATHS = {
    Provider.GCP: f"{API_ROOT}/gcp",
    Provider.AWS: f"{API_ROOT}/aws",
    Provider.HUAWEI: f"{API_ROOT}/huawei",
    Provider.ALIBABA: f"{API_ROOT}/alibaba",
    Provider.AZURE: f"{API_ROOT}/azure",
}

# Fixed order used when aggregating connections across providers
PROVIDERS: Tuple[Provider, ...] = tuple(_BASE_PATHS)

ProviderLike = Union[Provider, str]


def resolve_provider(provider: ProviderLike) -> Provider:
    """Coerce a provider code or enum member; unknown identifiers are fatal."""
    if isinstance(provider, Provider):
        if provider not in _BASE_PATHS:
            raise UnknownProviderError(provider)
        return provider
    try:
        resolved = Provider(str(provider).lower())
    except ValueError:
        raise UnknownProviderError(provider) from None
    if resolved not in _BASE_PATHS:
        raise UnknownProviderError(provider)
    return resolved


def base_path(provider: ProviderLike) -> str:
    return _BASE_PATHS[resolve_provider(provider)]


def endpoint(provider: ProviderLike, suffix: str) -> str:
    """Return the full API path for ``suffix`` under the provider's base path."""
    return base_path(provider) + suffix
