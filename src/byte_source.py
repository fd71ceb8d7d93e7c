import logging
from typing import Protocol

import config
from errors import Cancelled


class ByteSource(Protocol):
    """
    Sequential, single-pass supplier of bytes.

    read_byte() returns the next byte as an int in 0..255, or None once the
    stream is exhausted. Implementations may raise OSError on I/O failure or
    Cancelled when a cancellation request was observed.
    """

    def read_byte(self):
        ...


class MemoryByteSource:
    """
    Serves bytes from an in-memory buffer.
    """

    def __init__(self, data):
        self._data = bytes(data)
        self._pos = 0

    def read_byte(self):
        if self._pos >= len(self._data):
            return None
        value = self._data[self._pos]
        self._pos += 1
        return value


class FileByteSource:
    """
    Serves bytes from a binary file object, reading it in chunks.
    """

    def __init__(self, fileobj, chunk_size=config.FILE_READ_CHUNK):
        """
        Args:
            fileobj: A file object opened in binary mode. It is not closed here.
            chunk_size (int): Number of bytes fetched per underlying read.
        """
        self._file = fileobj
        self._chunk_size = chunk_size
        self._chunk = b""
        self._pos = 0
        self._exhausted = False

    def read_byte(self):
        if self._pos >= len(self._chunk):
            if self._exhausted:
                return None
            self._chunk = self._file.read(self._chunk_size)
            self._pos = 0
            if not self._chunk:
                self._exhausted = True
                return None
        value = self._chunk[self._pos]
        self._pos += 1
        return value


class CancellableSource:
    """
    Wraps another source and raises Cancelled once the given event is set.
    """

    def __init__(self, source, cancel_event):
        """
        Args:
            source: The wrapped byte source.
            cancel_event (threading.Event): Set by the owner to request cancellation.
        """
        self._source = source
        self._cancel_event = cancel_event

    def read_byte(self):
        if self._cancel_event.is_set():
            logging.info("Cancellation observed by byte source.")
            raise Cancelled("analysis cancelled")
        return self._source.read_byte()
