# Core package - Infrastructure components
from .browser import WebpageCapturer
from .storage import ResultStore, FileSystemResultStore, RedisResultStore

__all__ = [
    # Webpage capture
    "WebpageCapturer",
    # Result storage
    "ResultStore",
    "FileSystemResultStore",
    "RedisResultStore",
]
