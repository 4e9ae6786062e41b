from .stream_formatter import format_candidate_title, format_placeholder_title

__all__ = ["format_candidate_title", "format_placeholder_title"]
