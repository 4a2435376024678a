"""
Factory for resolving the adapter of a connection's provider.
"""

from typing import Optional

from ats_connect.data.models.connection import AtsConnection
from ats_connect.utils.constants import AtsProvider
from ats_connect.utils.logger import get_logger

from .adapters import (
    BambooHRAdapter,
    BullhornAdapter,
    GenericAdapter,
    GreenhouseAdapter,
    ICIMSAdapter,
    JazzHRAdapter,
    JobviteAdapter,
    LeverAdapter,
    SuccessFactorsAdapter,
    TaleoAdapter,
    WorkdayAdapter,
)
from .base import ProviderAdapter

logger = get_logger(__name__)


class AdapterFactory:
    """
    Factory class for provider adapters.

    Adapters are stateless, so one instance per provider is shared.
    """

    _adapters: dict[AtsProvider, ProviderAdapter] = {}
    _generic: Optional[ProviderAdapter] = None
    _initialized: bool = False

    @classmethod
    def _initialize(cls) -> None:
        """Initialize available adapters."""
        if cls._initialized:
            return

        adapters: list[ProviderAdapter] = [
            WorkdayAdapter(),
            GreenhouseAdapter(),
            LeverAdapter(),
            BambooHRAdapter(),
            SuccessFactorsAdapter(),
            TaleoAdapter(),
            ICIMSAdapter(),
            JazzHRAdapter(),
            BullhornAdapter(),
            JobviteAdapter(),
        ]
        cls._adapters = {adapter.provider: adapter for adapter in adapters}
        cls._generic = GenericAdapter()
        cls._initialized = True

    @classmethod
    def get_adapter(cls, provider: Optional[str | AtsProvider]) -> ProviderAdapter:
        """
        Get the adapter for a provider id.

        Unknown providers get the generic adapter rather than an error.
        """
        cls._initialize()

        resolved = provider if isinstance(provider, AtsProvider) else AtsProvider.from_value(provider)
        if resolved is None:
            logger.warning(f"No adapter for provider '{provider}' - using generic adapter")
            return cls._generic
        return cls._adapters[resolved]

    @classmethod
    def for_connection(cls, connection: AtsConnection) -> ProviderAdapter:
        return cls.get_adapter(connection.provider)

    @classmethod
    def supported_providers(cls) -> list[AtsProvider]:
        cls._initialize()
        return list(cls._adapters)


def get_adapter(provider: Optional[str | AtsProvider]) -> ProviderAdapter:
    """Convenience wrapper around :meth:`AdapterFactory.get_adapter`."""
    return AdapterFactory.get_adapter(provider)
