"""Persistence backends for tracks."""

from typing import Any, Protocol

from pymongo.asynchronous.database import AsyncDatabase

from streamgate.core.modules.track.models import Track


class TrackStore(Protocol):
    async def on_start(self) -> None: ...

    async def get_by_id(self, track_id: str) -> Track | None: ...

    async def insert(self, track: Track) -> None: ...


class MongoTrackStore:
    """Tracks kept in the ``tracks`` collection."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("tracks")

    async def on_start(self) -> None:
        await self._collection.create_index([("created_at", -1)])

    async def get_by_id(self, track_id: str) -> Track | None:
        doc = await self._collection.find_one({"_id": track_id})
        if doc is None:
            return None
        return Track.model_validate(doc)

    async def insert(self, track: Track) -> None:
        await self._collection.insert_one(track.to_mongo())


class MemoryTrackStore:
    """Process-local track store for tests and local runs."""

    def __init__(self) -> None:
        self._tracks: dict[str, Track] = {}

    async def on_start(self) -> None:
        pass

    async def get_by_id(self, track_id: str) -> Track | None:
        return self._tracks.get(track_id)

    async def insert(self, track: Track) -> None:
        if track.id in self._tracks:
            raise ValueError(f"Duplicate track id: {track.id}")
        self._tracks[track.id] = track
