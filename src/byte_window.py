import numpy as np

from errors import IllegalState, InvalidConfiguration


def validate_window(size, stride):
    """
    Checks a window configuration without touching any byte source.

    Raises:
        InvalidConfiguration: If size is not positive or stride is not in 1..size.
    """
    if size <= 0:
        raise InvalidConfiguration(f"window size must be greater than zero, got {size}")
    if stride <= 0 or stride > size:
        raise InvalidConfiguration(
            f"stride must be greater than zero and less than/equal to size (size={size}, stride={stride})"
        )


class ByteWindow:
    """
    A fixed-capacity sliding window over a byte source.

    The window is filled eagerly on construction. Each call to advance() drops
    the first `stride` bytes, shifts the rest to the front and refills the tail
    from the source. advance() is the only method that mutates the buffer.
    """

    def __init__(self, size, stride, source):
        """
        Args:
            size (int): Window capacity in bytes.
            stride (int): Bytes the window moves per advance, 0 < stride <= size.
            source: A ByteSource providing read_byte().
        """
        validate_window(size, stride)
        self.size = size
        self.stride = stride
        self._source = source
        self._buffer = np.zeros(size, dtype=np.uint8)
        self._bytes_in_buffer = 0
        self._at_eof = False
        self._fill()

    def _read(self, limit):
        """
        Reads up to limit bytes from the source. Returns (data, hit_eof).
        """
        data = bytearray()
        while len(data) < limit:
            value = self._source.read_byte()
            if value is None:
                return data, True
            data.append(value)
        return data, False

    def _fill(self):
        data, hit_eof = self._read(self.size)
        self._buffer[:len(data)] = np.frombuffer(bytes(data), dtype=np.uint8)
        self._bytes_in_buffer = len(data)
        self._at_eof = hit_eof

    @property
    def bytes_in_buffer(self):
        return self._bytes_in_buffer

    @property
    def at_eof(self):
        return self._at_eof

    def bytes(self):
        """
        Returns a read-only view of the current window contents.
        """
        view = self._buffer[:self._bytes_in_buffer]
        view.flags.writeable = False
        return view

    def advance(self):
        """
        Moves the window forward by `stride` bytes.

        Returns:
            bool: False if the source had no new byte at all, meaning there is
            no further window. The buffer is left untouched in that case, so
            bytes() still returns the last real window. True otherwise.

        Raises:
            IllegalState: If the window already reached end-of-stream.
        """
        if self._at_eof:
            raise IllegalState("Already at EOF")

        data, hit_eof = self._read(self.stride)
        if hit_eof:
            self._at_eof = True
            if not data:
                return False

        keep = self._bytes_in_buffer - self.stride
        # numpy handles the overlapping copy
        self._buffer[:keep] = self._buffer[self.stride:self._bytes_in_buffer]
        tail = self.size - self.stride
        self._buffer[tail:tail + len(data)] = np.frombuffer(bytes(data), dtype=np.uint8)

        self._bytes_in_buffer = keep + len(data)
        return True


if __name__ == '__main__':
    from byte_source import MemoryByteSource

    window = ByteWindow(4, 2, MemoryByteSource(bytes([1, 2, 3, 4, 5, 6])))
    print(f"First window: {list(window.bytes())}")
    while not window.at_eof:
        if not window.advance():
            print("No further window.")
            break
        print(f"Window: {list(window.bytes())} (eof={window.at_eof})")
