from .base import Publisher
from .buffered import BufferedPublisher
from .memory import LogPublisher, MemoryPublisher
from .serializer import encode

__all__ = [
    "Publisher",
    "BufferedPublisher",
    "LogPublisher",
    "MemoryPublisher",
    "encode",
]
