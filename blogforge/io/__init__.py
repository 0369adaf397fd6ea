"""Blog request input."""

from .request_source import RequestSource, build_request, load_request_file

__all__ = ["RequestSource", "build_request", "load_request_file"]
