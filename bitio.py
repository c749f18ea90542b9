import logging
from typing import Optional

logger = logging.getLogger(__name__)

PAD_BIT = 0 # value used to fill the last byte on close


class BitWriter:
    """
    Bit sink over a binary stream. Bits are packed MSB-first into bytes;
    close() writes the trailing partial byte padded with PAD_BIT
    """

    def __init__(self, stream):
        self.stream = stream
        self.acc = 0
        self.acc_bits = 0
        self.bits_written = 0
        self.pad_bits = 0
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def write_bit(self, bit: int) -> None:
        if self.closed:
            raise ValueError("write to a closed BitWriter")
        if bit not in (0, 1):
            raise ValueError(f"bit must be 0 or 1, got {bit!r}")
        self.acc = (self.acc << 1) | bit
        self.acc_bits += 1
        self.bits_written += 1
        if self.acc_bits == 8:
            self.stream.write(bytes([self.acc]))
            self.acc = 0
            self.acc_bits = 0

    def write_bits(self, code: str) -> None: # code: string of '0'/'1'
        for ch in code:
            self.write_bit(1 if ch == "1" else 0)

    def close(self) -> int:
        """
        Flush the partial byte (if any). Returns the number of pad bits added
        """
        if self.closed:
            return self.pad_bits
        if self.acc_bits != 0:
            self.pad_bits = 8 - self.acc_bits
            fill = (1 << self.pad_bits) - 1 if PAD_BIT else 0
            self.stream.write(bytes([((self.acc << self.pad_bits) | fill) & 0xFF]))
            self.acc = 0
            self.acc_bits = 0
        self.closed = True
        logger.debug("bit writer closed: %d bits, %d pad bits", self.bits_written, self.pad_bits)
        return self.pad_bits


class BitReader:
    """
    Bit source over bytes, read MSB-first. If bit_length is given only that
    many bits are readable, so trailing padding is never returned
    """

    def __init__(self, data: bytes, bit_length: Optional[int] = None):
        total = len(data) * 8
        if bit_length is None:
            bit_length = total
        if not 0 <= bit_length <= total:
            raise ValueError(f"bit_length {bit_length} outside 0..{total}")
        self.data = data
        self.bit_length = bit_length
        self.position = 0

    def has_next_bit(self) -> bool:
        return self.position < self.bit_length

    def next_bit(self) -> int:
        if not self.has_next_bit():
            raise EOFError("no more bits")
        byte = self.data[self.position >> 3]
        bit = (byte >> (7 - (self.position & 7))) & 1
        self.position += 1
        return bit
