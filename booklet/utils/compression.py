# booklet/utils/compression.py
"""
Streaming zlib compression for backup artifacts.

Both directions work chunk by chunk, so neither the database nor the backup
has to fit in memory and no output size has to be guessed in advance.
"""

import logging
import zlib
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class CompressionError(Exception):
    """Raised when compression or decompression fails."""
    pass


def compress_file(
    source_path: Union[str, Path],
    target_path: Union[str, Path],
    compression_level: int = 9
) -> Path:
    """Compress a file into a single zlib stream.

    Args:
        source_path: Path to source file to compress
        target_path: Path of the compressed file to write
        compression_level: Compression level 1-9 (9 = maximum compression)

    Returns:
        Path to the compressed file

    Raises:
        CompressionError: If compression fails
        FileNotFoundError: If source file doesn't exist
    """
    source_path = Path(source_path)
    target_path = Path(target_path)

    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    target_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        compressor = zlib.compressobj(compression_level)
        with open(source_path, "rb") as f_in, open(target_path, "wb") as f_out:
            while chunk := f_in.read(CHUNK_SIZE):
                f_out.write(compressor.compress(chunk))
            f_out.write(compressor.flush())
    except (OSError, zlib.error) as e:
        target_path.unlink(missing_ok=True)
        raise CompressionError(f"Failed to compress {source_path}: {e}") from e

    original_size = source_path.stat().st_size
    compressed_size = target_path.stat().st_size
    compression_ratio = (1 - compressed_size / original_size) * 100 if original_size > 0 else 0
    logger.info(
        f"Compression completed: {source_path.name} "
        f"({original_size:,} bytes -> {compressed_size:,} bytes, "
        f"{compression_ratio:.1f}% reduction)"
    )
    return target_path


def decompress_file(source_path: Union[str, Path], target_path: Union[str, Path]) -> Path:
    """Decompress a single zlib stream into a file.

    The input must be exactly one complete stream: truncated input and bytes
    after the end of the stream are both rejected.

    Args:
        source_path: Path to the compressed file
        target_path: Path of the decompressed file to write

    Returns:
        Path to the decompressed file

    Raises:
        CompressionError: If the input is not a valid zlib stream
        FileNotFoundError: If source file doesn't exist
    """
    source_path = Path(source_path)
    target_path = Path(target_path)

    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    target_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        decompressor = zlib.decompressobj()
        with open(source_path, "rb") as f_in, open(target_path, "wb") as f_out:
            while chunk := f_in.read(CHUNK_SIZE):
                if decompressor.eof:
                    raise CompressionError(f"Unexpected data after end of stream in {source_path}")
                # Cap each output block so a highly compressed chunk cannot balloon in memory
                data = decompressor.decompress(chunk, CHUNK_SIZE)
                f_out.write(data)
                while decompressor.unconsumed_tail:
                    f_out.write(decompressor.decompress(decompressor.unconsumed_tail, CHUNK_SIZE))
            f_out.write(decompressor.flush())

        if not decompressor.eof:
            raise CompressionError(f"Compressed stream in {source_path} is truncated")
        if decompressor.unused_data:
            raise CompressionError(f"Unexpected data after end of stream in {source_path}")
    except zlib.error as e:
        target_path.unlink(missing_ok=True)
        raise CompressionError(f"Failed to decompress {source_path}: {e}") from e
    except CompressionError:
        target_path.unlink(missing_ok=True)
        raise
    except OSError as e:
        target_path.unlink(missing_ok=True)
        raise CompressionError(f"Failed to decompress {source_path}: {e}") from e

    logger.debug(f"Decompressed {source_path.name} to {target_path} ({target_path.stat().st_size:,} bytes)")
    return target_path
