import re
from functools import cached_property
from pathlib import Path, PurePosixPath

import structlog

from streamgate.core.core import Service
from streamgate.core.modules.delivery.media import content_type_for, is_audio_file
from streamgate.core.modules.track.models import Track
from streamgate.errors import AccessDeniedError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

COVER_RE = re.compile(r"^(?P<track_id>[^_]+)_cover\.[A-Za-z0-9]+$")


def cover_track_id(name: str) -> str | None:
    """Track id encoded in a ``<trackId>_cover.<ext>`` file name."""
    match = COVER_RE.fullmatch(name)
    return match.group("track_id") if match else None


class AssetService(Service):
    """Resolves files under the uploads directory for the public and paid routes."""

    @cached_property
    def root(self) -> Path:
        return Path(self.core.config.uploads_path).resolve()

    def confine(self, relative_path: str) -> Path:
        """Resolve ``relative_path`` under the uploads root.

        Raises:
            AccessDeniedError: The path resolves outside the root
        """
        target = (self.root / relative_path).resolve()
        if not target.is_relative_to(self.root) or target == self.root:
            logger.warning("Blocked path outside uploads root", path=relative_path)
            raise AccessDeniedError("Access denied")
        return target

    async def resolve_public_file(self, relative_path: str) -> Path:
        """Resolve a file for the public route, which only ever serves cover art.

        Raises:
            ValidationError: Empty path or a path containing NUL
            AccessDeniedError: Path escapes the root, names an audio file, or is not a cover image
            NotFoundError: Cover's track or file does not exist
        """
        if not relative_path or not relative_path.strip("/") or "\x00" in relative_path:
            raise ValidationError("Invalid file path")

        target = self.confine(relative_path)
        name = target.name

        # Audio is blocked before any existence check so the route reveals nothing about it
        if is_audio_file(name):
            raise AccessDeniedError("Audio files must be accessed through the stream endpoint")

        track_id = cover_track_id(name)
        if track_id is None or target.parent != self.root or not content_type_for(name).startswith("image/"):
            raise AccessDeniedError("Only cover images are served from this route")

        track = await self.core.services.track.find_track(track_id)
        if track is None:
            raise NotFoundError("Track not found")
        # Only the cover recorded on the track, when one is recorded
        if track.cover_file and PurePosixPath(track.cover_file).name != name:
            raise NotFoundError("File not found")
        if not target.is_file():
            raise NotFoundError("File not found")
        return target

    def resolve_audio_file(self, track: Track) -> Path:
        """Path of a track's audio file, for delivery after a session was validated.

        Raises:
            NotFoundError: Audio file missing on disk
        """
        target = self.confine(PurePosixPath(track.audio_file).name)
        if not target.is_file():
            logger.error("Audio file missing", track_id=track.id, audio_file=track.audio_file)
            raise NotFoundError("Audio file not found")
        return target
