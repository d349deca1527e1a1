import structlog

from streamgate.core.core import Service
from streamgate.core.modules.track.models import Track
from streamgate.errors import NotFoundError

logger = structlog.get_logger(__name__)


class TrackService(Service):
    """Read access to tracks registered by the ingestion workflow."""

    async def get_track(self, track_id: str) -> Track:
        """Get track by ID, raising NotFoundError if it does not exist."""
        track = await self.stores.tracks.get_by_id(track_id)
        if track is None:
            raise NotFoundError(f"Track not found: {track_id}")
        return track

    async def find_track(self, track_id: str) -> Track | None:
        return await self.stores.tracks.get_by_id(track_id)

    async def add_track(self, track: Track) -> Track:
        """Register a track produced by ingestion."""
        await self.stores.tracks.insert(track)
        logger.debug("Added track", track_id=track.id, title=track.title)
        return track
