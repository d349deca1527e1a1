"""Content types and response headers for delivered files."""

from pathlib import PurePath

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".jfif": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".ogg", ".m4a", ".flac"})

NO_STORE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Paid audio: play inline only, never cached, sniffed, framed or referred onwards
PROTECTED_HEADERS = {
    "Accept-Ranges": "bytes",
    "Content-Disposition": "inline",
    "X-Content-Type-Options": "nosniff",
    **NO_STORE_HEADERS,
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

PUBLIC_HEADERS = {
    "Accept-Ranges": "bytes",
}


def content_type_for(name: str) -> str:
    return CONTENT_TYPES.get(PurePath(name).suffix.lower(), DEFAULT_CONTENT_TYPE)


def is_audio_file(name: str) -> bool:
    return PurePath(name).suffix.lower() in AUDIO_EXTENSIONS
