"""
Line source and sink for gcodeclean.

- read_lines: lazy, synchronous line source over a text file
- write_lines_async: async sink that yields control after every line
- clean_file: run the pipeline from one file into its derived output file
"""

import asyncio
import errno
import logging
import os
from collections.abc import AsyncIterator, Iterable, Iterator

from gcodeclean import config
from gcodeclean.processing.pipeline import PipelineOptions, clean_lines

logger = logging.getLogger(__name__)


def derive_output_path(path: str) -> str:
    """
    Output file name for an input file

    ``-gcc`` goes before the extension; a name without an extension gets
    ``-gcc.nc`` appended.

    Examples:
        part.nc -> part-gcc.nc
        part -> part-gcc.nc
    """
    root, ext = os.path.splitext(path)
    if not ext:
        return f"{path}{config.OUTPUT_SUFFIX}{config.DEFAULT_EXTENSION}"
    return f"{root}{config.OUTPUT_SUFFIX}{ext}"


def read_lines(path: str) -> Iterator[str]:
    """
    Lines of a UTF-8 text file without their terminators, read lazily

    Undecodable bytes come through as surrogate escapes, so they reach the
    tokenizer as ordinary malformed text and are written back unchanged.
    """
    with open(path, encoding="utf-8", errors="surrogateescape") as f:
        for raw in f:
            yield raw.rstrip("\r\n")


async def write_lines_async(path: str, lines: Iterable[str]) -> AsyncIterator[int]:
    """
    Write lines to ``path``, overwriting it

    Yields:
        Running count of lines written, after each line
    """
    count = 0
    with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
        for line in lines:
            f.write(line)
            f.write("\n")
            count += 1
            yield count
            # Let other tasks run between lines
            await asyncio.sleep(0)


async def clean_file_async(path: str, output: str | None = None, options: PipelineOptions | None = None) -> int:
    """
    Clean ``path`` into ``output`` (derived from ``path`` when omitted)

    Returns:
        Number of lines written

    Raises:
        OSError: if the input cannot be read or the output written
    """
    output = output or derive_output_path(path)
    if not os.path.isfile(path):
        # Fail before the output file is created
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
    logger.info(f"Cleaning {path} -> {output}")
    written = 0
    async for written in write_lines_async(output, clean_lines(read_lines(path), options)):
        logger.debug(f"Lines written: {written}")
    logger.info(f"Wrote {written} lines to {output}")
    return written


def clean_file(path: str, output: str | None = None, options: PipelineOptions | None = None) -> int:
    """
    Synchronous wrapper around clean_file_async.

    Raises RuntimeError when called from a running event loop; await
    clean_file_async there instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(clean_file_async(path, output, options))
    raise RuntimeError("clean_file was called while an event loop is running; await clean_file_async instead")
