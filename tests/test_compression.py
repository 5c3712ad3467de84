# tests/test_compression.py
import os
import zlib
import pytest
from booklet.utils.compression import CHUNK_SIZE, CompressionError, compress_file, decompress_file


@pytest.fixture
def payload(tmp_path):
    """A file spanning several chunks, partly compressible"""
    path = tmp_path / "payload.bin"
    path.write_bytes(os.urandom(CHUNK_SIZE) + b"booklet" * CHUNK_SIZE)
    return path


def test_compress_and_decompress(tmp_path, payload):
    compressed = compress_file(payload, tmp_path / "payload.zip")
    assert compressed.stat().st_size < payload.stat().st_size

    restored = decompress_file(compressed, tmp_path / "restored.bin")
    assert restored.read_bytes() == payload.read_bytes()


def test_compressed_file_is_plain_zlib(tmp_path, payload):
    """Test the artifact is a single zlib stream readable by zlib itself"""
    compressed = compress_file(payload, tmp_path / "payload.zip")
    assert zlib.decompress(compressed.read_bytes()) == payload.read_bytes()


def test_decompress_garbage(tmp_path):
    source = tmp_path / "garbage.zip"
    source.write_bytes(b"this is not compressed at all")
    target = tmp_path / "out.bin"
    with pytest.raises(CompressionError):
        decompress_file(source, target)
    assert not target.exists()


def test_decompress_truncated(tmp_path, payload):
    compressed = compress_file(payload, tmp_path / "payload.zip")
    data = compressed.read_bytes()
    compressed.write_bytes(data[:len(data) // 2])
    with pytest.raises(CompressionError, match="truncated"):
        decompress_file(compressed, tmp_path / "out.bin")


def test_decompress_trailing_data(tmp_path):
    source = tmp_path / "trailing.zip"
    source.write_bytes(zlib.compress(b"booklet") + b"extra")
    with pytest.raises(CompressionError, match="after end of stream"):
        decompress_file(source, tmp_path / "out.bin")


def test_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        compress_file(tmp_path / "missing.db", tmp_path / "out.zip")
    with pytest.raises(FileNotFoundError):
        decompress_file(tmp_path / "missing.zip", tmp_path / "out.db")
