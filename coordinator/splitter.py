"""Chunk splitter: turns a total size into ordered, bounded byte ranges."""

from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Tuple

from common.constants import PART_SUFFIX_WIDTH
from coordinator.exceptions import CapacityExceededError, ValidationError


@dataclass(frozen=True)
class ChunkRange:
    """
    Half-open byte range [start, end) of the original stream.
    """
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


def split(
    size_total: int,
    max_part_size: int,
    max_total_size: Optional[int] = None,
) -> List[ChunkRange]:
    """
    Split a stream of size_total bytes into ranges of at most max_part_size.

    Args:
        size_total: Total number of bytes in the stream
        max_part_size: Largest allowed part in bytes
        max_total_size: Aggregate cap; larger streams are rejected

    Returns:
        Ranges ordered by index, covering [0, size_total) exactly. A stream
        that fits in one part (including an empty one) yields one range.

    Raises:
        ValidationError: If the sizes are negative or the part size is not positive
        CapacityExceededError: If size_total is over max_total_size
    """
    if max_part_size <= 0:
        raise ValidationError(f"Part size must be positive, got {max_part_size}")
    if size_total < 0:
        raise ValidationError(f"Stream size must not be negative, got {size_total}")

    if max_total_size is not None and size_total > max_total_size:
        raise CapacityExceededError(
            f"Total file is too large. Maximum allowed size for combined parts is "
            f"{max_total_size // (1024 * 1024)} MB ({max_total_size} bytes), got {size_total} bytes"
        )

    if size_total <= max_part_size:
        return [ChunkRange(index=0, start=0, end=size_total)]

    return [
        ChunkRange(index=index, start=start, end=min(start + max_part_size, size_total))
        for index, start in enumerate(range(0, size_total, max_part_size))
    ]


def part_name(filename: str, index: int, part_count: int) -> str:
    """
    Name under which a part is stored in the sink.

    A single-part file keeps its own name; parts of a larger file get a
    zero-padded suffix, e.g. video.mp4.part002.
    """
    if part_count <= 1:
        return filename
    return f"{filename}.part{index:0{PART_SUFFIX_WIDTH}d}"


def read_chunks(stream: BinaryIO, ranges: List[ChunkRange]) -> Iterator[Tuple[ChunkRange, bytes]]:
    """
    Read the bytes of each range from a file-like object, in order.

    The stream is read sequentially from its current position; ranges must
    come from split() so they are contiguous.
    """
    for chunk in ranges:
        data = stream.read(chunk.size) if chunk.size else b""
        if len(data) != chunk.size:
            raise ValidationError(
                f"Stream ended early: part {chunk.index} expected {chunk.size} bytes, got {len(data)}"
            )
        yield chunk, data
