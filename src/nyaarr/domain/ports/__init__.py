from .cache import CachePort
from .debrid import DebridProviderPort
from .in_flight import InFlightPort
from .metadata import AnimeMetadataPort, AnimeSearchPort, CinemetaPort
from .torrent_index import TorrentIndexPort

__all__ = [
    "AnimeMetadataPort",
    "AnimeSearchPort",
    "CachePort",
    "CinemetaPort",
    "DebridProviderPort",
    "InFlightPort",
    "TorrentIndexPort",
]
