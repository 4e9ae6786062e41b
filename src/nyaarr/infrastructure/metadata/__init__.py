from .anilist import HttpxAniListClient
from .cinemeta import HttpxCinemetaClient
from .kitsu import HttpxKitsuClient

__all__ = ["HttpxAniListClient", "HttpxCinemetaClient", "HttpxKitsuClient"]
