from __future__ import annotations

import copy
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, List, Optional, Union

from seqtagfinder.constants import DEFAULT_BATCH_SIZE, DEFAULT_BUFFER_SIZE
from seqtagfinder.logging_utils import get_logger
from seqtagfinder.optional_imports import require

from .batch_channel import BatchChannel, ChannelClosedError

if TYPE_CHECKING:
    import pysam as pysam_types

try:
    import pysam
except Exception:
    pysam = None  # type: ignore

logger = get_logger(__name__)

RecordBatch = List[Any]


class BamIOError(RuntimeError):
    """A background BAM reader or writer failed."""


def _require_pysam() -> "pysam_types":
    """Return the pysam module or raise if unavailable."""
    if pysam is not None:
        return pysam
    return require("pysam", purpose="reading and writing BAM files")


class RecordSource:
    """Read records on a background thread and publish them in batches.

    Records are copied with ``copy_record`` before they are queued, so the
    consumer never holds a view into a buffer the reader will overwrite. The
    final partial batch is flushed at end of input; end of stream is seen by
    the consumer as :meth:`next_batch` returning ``None``.

    Parameters
    ----------
    records : Iterable
        Record iterator from the codec. Consumed only on the reader thread.
    batch_size : int
        Number of records per published batch.
    buffer_size : int
        Number of batches that may wait in the channel before the reader blocks.
    copy_record : callable
        Function producing an independently owned copy of a record.
    on_close : callable, optional
        Called on the reader thread once reading stops (e.g. to close the file).
    header : optional
        Codec header of the input, kept for building a compatible writer.
    """

    def __init__(
        self,
        records: Iterable[Any],
        batch_size: int = DEFAULT_BATCH_SIZE,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        *,
        copy_record: Callable[[Any], Any] = copy.copy,
        on_close: Optional[Callable[[], None]] = None,
        header: Any = None,
        name: str = "record-source",
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.batch_size = batch_size
        self.header = header
        self.name = name
        self.channel: BatchChannel[RecordBatch] = BatchChannel(buffer_size)
        self.records_read = 0
        self._records = records
        self._copy_record = copy_record
        self._on_close = on_close
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        batch: RecordBatch = []
        try:
            for record in self._records:
                if self.channel.closed:
                    logger.debug("%s: consumer closed the channel, stopping early", self.name)
                    return
                batch.append(self._copy_record(record))
                self.records_read += 1
                if len(batch) == self.batch_size:
                    self.channel.send(batch)
                    batch = []
            if batch:
                self.channel.send(batch)
        except ChannelClosedError:
            logger.debug("%s: consumer closed the channel, stopping early", self.name)
        except Exception as exc:
            logger.error("%s: failed after %d records: %s", self.name, self.records_read, exc)
            self._error = exc
        finally:
            self.channel.close()
            if self._on_close is not None:
                try:
                    self._on_close()
                except Exception as exc:
                    if self._error is None:
                        self._error = exc

    def next_batch(self) -> Optional[RecordBatch]:
        """Return the next batch, or ``None`` at end of input."""
        return self.channel.receive()

    def __iter__(self) -> Iterator[RecordBatch]:
        return iter(self.channel)

    def finish(self) -> None:
        """Stop the reader, wait for its thread and re-raise any failure."""
        self.channel.close()
        self._thread.join()
        if self._error is not None:
            raise BamIOError(f"{self.name}: failed to read records") from self._error

    def __enter__(self) -> "RecordSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.finish()
        else:
            self.channel.close()
            self._thread.join()
        return False


class RecordSink:
    """Write batches of records on a background thread, in arrival order.

    Parameters
    ----------
    writer : object
        Codec writer with a ``write(record)`` method. Used only on the writer thread.
    buffer_size : int
        Number of batches that may wait in the channel before :meth:`write` blocks.
    on_close : callable, optional
        Called on the writer thread after the last batch (e.g. to close the file).
    """

    def __init__(
        self,
        writer: Any,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        *,
        on_close: Optional[Callable[[], None]] = None,
        name: str = "record-sink",
    ):
        self.name = name
        self.channel: BatchChannel[RecordBatch] = BatchChannel(buffer_size)
        self.records_written = 0
        self._writer = writer
        self._on_close = on_close
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _fail(self, exc: BaseException) -> None:
        logger.error("%s: failed after %d records: %s", self.name, self.records_written, exc)
        self._error = exc
        # unblocks a producer waiting in send()
        self.channel.close()

    def _run(self) -> None:
        try:
            for batch in self.channel:
                for record in batch:
                    self._writer.write(record)
                    self.records_written += 1
        except Exception as exc:
            self._fail(exc)
        finally:
            if self._on_close is not None:
                try:
                    self._on_close()
                except Exception as exc:
                    if self._error is None:
                        self._fail(exc)

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise BamIOError(f"{self.name}: failed to write records") from self._error

    def write(self, batch: RecordBatch) -> None:
        """Hand ``batch`` to the writer thread; the caller must not reuse it."""
        try:
            self.channel.send(batch)
        except ChannelClosedError:
            self._thread.join()
            self._raise_if_failed()
            raise

    def finish(self) -> None:
        """Flush queued batches, wait for the writer thread and re-raise any failure."""
        self.channel.close()
        self._thread.join()
        self._raise_if_failed()

    def __enter__(self) -> "RecordSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.finish()
        else:
            self.channel.close()
            self._thread.join()
        return False


def open_record_source(
    bam_path: Union[str, Path],
    batch_size: int = DEFAULT_BATCH_SIZE,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> RecordSource:
    """Open a BAM file and start a :class:`RecordSource` over all of its records."""
    pysam_mod = _require_pysam()
    try:
        bam = pysam_mod.AlignmentFile(str(bam_path), "rb", check_sq=False)
    except (OSError, ValueError) as exc:
        raise BamIOError(f"Failed to open BAM file {bam_path}: {exc}") from exc
    return RecordSource(
        bam.fetch(until_eof=True),
        batch_size,
        buffer_size,
        on_close=bam.close,
        header=bam.header,
        name=f"reader[{Path(bam_path).name}]",
    )


def open_record_sink(
    out_path: Union[str, Path],
    header: Any,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    threads: int = 1,
) -> RecordSink:
    """Create a BAM file with ``header`` and start a :class:`RecordSink` writing to it."""
    pysam_mod = _require_pysam()
    try:
        out_bam = pysam_mod.AlignmentFile(str(out_path), "wb", header=header, threads=threads)
    except (OSError, ValueError) as exc:
        raise BamIOError(f"Failed to create BAM writer {out_path}: {exc}") from exc
    return RecordSink(
        out_bam,
        buffer_size,
        on_close=out_bam.close,
        name=f"writer[{Path(out_path).name}]",
    )


def read_sequence_bytes(record: Any) -> bytes:
    """Return the read's query sequence as uppercase ASCII bytes (empty if unset)."""
    seq = record.query_sequence
    if not seq:
        return b""
    return seq.upper().encode("ascii")
