from .debrid_conversion import DebridConversionUseCase
from .stream_pipeline import StreamPipelineUseCase
from .title_resolver import TitleResolver
from .torrent_discovery import TorrentDiscoveryUseCase

__all__ = [
    "DebridConversionUseCase",
    "StreamPipelineUseCase",
    "TitleResolver",
    "TorrentDiscoveryUseCase",
]
