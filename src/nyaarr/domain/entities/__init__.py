from .errors import DebridError
from .media import (
    ConversionResult,
    ConversionStatus,
    MediaId,
    MediaKind,
    PlaceholderReason,
    StreamCandidate,
    StreamRequest,
    TitleResolution,
    TorrentRecord,
    parse_media_id,
)

__all__ = [
    "ConversionResult",
    "ConversionStatus",
    "DebridError",
    "MediaId",
    "MediaKind",
    "PlaceholderReason",
    "StreamCandidate",
    "StreamRequest",
    "TitleResolution",
    "TorrentRecord",
    "parse_media_id",
]
