"""Adapter registry: one adapter per engine family, created on first use."""

from typing import Callable, Optional

from sqlsentry.config import Configuration, EngineFamily
from sqlsentry.constants import DB_CONNECT_TIMEOUT, DB_POOL_SIZE
from sqlsentry.database.adapters import BaseAdapter, create_adapter
from sqlsentry.database.logging import log_pool_operation

AdapterFactory = Callable[[EngineFamily, Configuration], BaseAdapter]


class ConnectionRegistry:
    """Owns the adapters for one configuration.

    Each adapter in turn owns the connections for the profiles of its engine
    family. Lookups are a plain check-then-create; a session runs one
    statement at a time, so no locking is needed.
    """

    def __init__(
        self,
        config: Configuration,
        adapter_factory: Optional[AdapterFactory] = None,
        connect_timeout: float = DB_CONNECT_TIMEOUT,
    ):
        """Initialize registry.

        Args:
            config: Configuration providing profiles and safety policy
            adapter_factory: Callable creating an adapter for an engine family
                (defaults to create_adapter)
            connect_timeout: Connection establishment timeout passed to adapters
        """
        self.config = config
        self._factory = adapter_factory or (
            lambda engine, cfg: create_adapter(engine, cfg, connect_timeout=connect_timeout)
        )
        self._adapters: dict[EngineFamily, BaseAdapter] = {}

    def get_adapter(self, engine: EngineFamily) -> BaseAdapter:
        """Get or create the adapter for an engine family."""
        if engine not in self._adapters:
            self._adapters[engine] = self._factory(engine, self.config)
        return self._adapters[engine]

    def adapter_for_profile(self, profile_name: str) -> BaseAdapter:
        """Resolve a profile's engine family and return its adapter.

        Raises:
            ConfigurationError: If the profile does not exist
        """
        return self.get_adapter(self.config.engine_for(profile_name))

    @property
    def active_engines(self) -> tuple[EngineFamily, ...]:
        return tuple(self._adapters)

    async def close_all(self) -> None:
        """Release every adapter's connections and forget the adapters."""
        adapters = list(self._adapters.items())
        self._adapters.clear()
        for engine, adapter in adapters:
            await adapter.release_all()
            log_pool_operation(f"{engine.value}://", "close_all", DB_POOL_SIZE, len(self._adapters))
