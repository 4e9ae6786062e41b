from .nyaa import NyaaClient, parse_search_page

__all__ = ["NyaaClient", "parse_search_page"]
