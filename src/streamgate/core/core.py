from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

import httpx
from pymongo import AsyncMongoClient

from streamgate.config import Config
from streamgate.core.modules.stream.store import MemoryStreamStore, MongoStreamStore, StreamStore
from streamgate.core.modules.track.store import MemoryTrackStore, MongoTrackStore, TrackStore


class Stores:
    """Bundle of persistence backends shared by all services."""

    def __init__(self, tracks: TrackStore, streams: StreamStore) -> None:
        self.tracks = tracks
        self.streams = streams

    @classmethod
    def mongo(cls, client: AsyncMongoClient[dict[str, Any]], database_name: str) -> Stores:
        database = client.get_database(database_name)
        return cls(tracks=MongoTrackStore(database), streams=MongoStreamStore(client, database))

    @classmethod
    def memory(cls) -> Stores:
        return cls(tracks=MemoryTrackStore(), streams=MemoryStreamStore())

    async def start(self) -> None:
        """Prepare backends (indexes etc.) on application startup."""
        await self.tracks.on_start()
        await self.streams.on_start()


class Service:
    """Base class for services backed by the shared stores."""

    def __init__(self, stores: Stores) -> None:
        self.stores = stores
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from streamgate.core.modules.asset.service import AssetService  # noqa: PLC0415
    from streamgate.core.modules.payment.service import PaymentService  # noqa: PLC0415
    from streamgate.core.modules.stream.service import StreamService  # noqa: PLC0415
    from streamgate.core.modules.track.service import TrackService  # noqa: PLC0415

    track: TrackService
    payment: PaymentService
    stream: StreamService
    asset: AssetService

    def __init__(self, stores: Stores) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("track", "streamgate.core.modules.track.service", "TrackService"),
            ("payment", "streamgate.core.modules.payment.service", "PaymentService"),
            ("stream", "streamgate.core.modules.stream.service", "StreamService"),
            ("asset", "streamgate.core.modules.asset.service", "AssetService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(stores)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, stores, and all service instances.

    Stores default to MongoDB at ``config.database_url``. Passing ``stores``
    (e.g. ``Stores.memory()``) skips the Mongo client entirely; ``http_transport``
    replaces the network transport used to reach the payment facilitator.
    """

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    stores: Stores
    services: Services

    def __init__(
        self, config: Config, stores: Stores | None = None, http_transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.config = config
        self.http_transport = http_transport
        self.mongo_client = None
        if stores is None:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            stores = Stores.mongo(self.mongo_client, urlparse(config.database_url).path[1:])
        self.stores = stores
        self.services = Services(stores)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.stores.start()
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
