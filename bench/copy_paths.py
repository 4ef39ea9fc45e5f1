"""Throughput benchmark for the two stream copy paths.

Copies a 32 MB temporary file through the native handle path and through the
generic chunk loop. Meant for manual runs, not collected by pytest.
"""

import asyncio
import os
import sys
import time
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from streamwrap import AsyncStream, for_temp_file
from streamwrap.io.copy import generic_copy

SIZE = 32 * 1024 * 1024


def _source():
    stream = for_temp_file()
    stream.write(os.urandom(SIZE))
    stream.rewind()
    return stream


def bench_native():
    """Copy between two handle-backed streams."""
    with _source() as src, for_temp_file() as dst:
        start = time.perf_counter()
        copied = src.copy_to_stream(dst)
        elapsed = time.perf_counter() - start
    print(f"native:  {copied} bytes in {elapsed:.3f}s ({copied / elapsed / 2**20:.0f} MB/s)")


def bench_generic(chunk_size: int):
    """Copy through the chunk loop the same pair would use if either end had no handle."""
    with _source() as src, for_temp_file() as dst:
        start = time.perf_counter()
        copied = generic_copy(src, dst, None, chunk_size)
        elapsed = time.perf_counter() - start
    print(f"generic: {copied} bytes in {elapsed:.3f}s with {chunk_size} byte chunks")


async def bench_async():
    """Copy through AsyncStream."""
    with _source() as src, for_temp_file() as dst:
        start = time.perf_counter()
        copied = await AsyncStream(src).copy_to_stream(AsyncStream(dst))
        elapsed = time.perf_counter() - start
    print(f"async:   {copied} bytes in {elapsed:.3f}s")


if __name__ == "__main__":
    print("streamwrap copy benchmark")
    print("=" * 40)

    bench_native()
    for chunk in (1024, 64 * 1024):
        bench_generic(chunk)
    asyncio.run(bench_async())

    print("\nBenchmark complete!")
