"""Ingestion pipeline — directory → chunks → embeddings → vector store.

Runs offline.  Record ids are deterministic (``{filename}_chunk_{index}``)
so re-running over the same directory overwrites rather than duplicates.

Command line::

    rag-ingest ./docs --max-chunk-size 2000 --min-overlap-size 300
"""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable

from rag_datasource.errors import DataSourceError
from rag_datasource.ingestion.chunker import chunk_document, validate_chunk_sizes
from rag_datasource.ingestion.embedder import Embedder
from rag_datasource.ingestion.loader import list_source_files, load_document
from rag_datasource.ingestion.models import IngestionReport
from rag_datasource.retrieval.base import VectorStoreBase
from rag_datasource.retry import with_retry

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Populate a vector store from a directory of text documents.

    Parameters
    ----------
    embedder:
        Embeds each chunk.  Must use the same model as retrieval.
    store:
        Target vector store.
    max_chunk_size / min_overlap_size:
        Chunking policy, see :func:`~rag_datasource.ingestion.chunker.split_text`.
    max_workers:
        Number of files processed concurrently.
    retry_attempts:
        Attempts per embed / upsert call; ``1`` disables retry.
    retry_initial_wait:
        First back-off delay in seconds.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStoreBase,
        *,
        max_chunk_size: int = 2000,
        min_overlap_size: int = 300,
        max_workers: int = 1,
        retry_attempts: int = 1,
        retry_initial_wait: float = 1.0,
    ) -> None:
        validate_chunk_sizes(max_chunk_size, min_overlap_size)
        self._embedder = embedder
        self._store = store
        self.max_chunk_size = max_chunk_size
        self.min_overlap_size = min_overlap_size
        self.max_workers = max(1, max_workers)
        self._embed = with_retry(
            embedder.embed, attempts=retry_attempts, initial_wait=retry_initial_wait, jitter=retry_initial_wait
        )
        self._upsert = with_retry(
            store.upsert, attempts=retry_attempts, initial_wait=retry_initial_wait, jitter=retry_initial_wait
        )

    def ingest(self, directory: str | Path, *, fail_fast: bool = False) -> IngestionReport:
        """Chunk, embed and upsert every file in *directory*.

        A failure aborts the remaining chunks of that file only; it is logged
        and recorded in the returned report, and the next file proceeds.
        With *fail_fast* the first failure is re-raised instead; with several
        workers, files already in flight finish and queued files are skipped.
        """
        files = list_source_files(directory)
        logger.info("Ingesting %d files from %s", len(files), directory)
        report = IngestionReport()

        if self.max_workers == 1:
            outcomes = (self._ingest_guarded(path, fail_fast) for path in files)
            self._collect(report, files, outcomes)
        else:
            results: dict[Path, int | Exception] = {}
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ingest") as pool:
                futures = {pool.submit(self._ingest_guarded, path, fail_fast): path for path in files}
                for future in as_completed(futures):
                    try:
                        results[futures[future]] = future.result()
                    except Exception:
                        # Only reached with fail_fast; files not yet started are dropped.
                        pool.shutdown(wait=True, cancel_futures=True)
                        raise
            self._collect(report, files, (results[path] for path in files))

        logger.info(
            "Ingestion finished: %d files, %d chunks stored, %d failed",
            report.files_processed,
            report.chunks_stored,
            len(report.failures),
        )
        return report

    def ingest_file(self, path: str | Path) -> int:
        """Ingest a single file and return the number of chunks stored."""
        document = load_document(path)
        chunks = chunk_document(
            document.document_id,
            document.text,
            max_chunk_size=self.max_chunk_size,
            min_overlap_size=self.min_overlap_size,
        )
        for chunk in chunks:
            vector = self._embed(chunk.text)
            self._upsert(
                chunk.record_id,
                vector,
                chunk.text,
                metadata={"source": document.document_id, "chunk_index": chunk.index},
            )
            logger.info("Stored vector for file: %s, chunk: %d", document.document_id, chunk.index)
        return len(chunks)

    # -- internals ------------------------------------------------------------

    def _ingest_guarded(self, path: Path, fail_fast: bool) -> int | Exception:
        try:
            return self.ingest_file(path)
        except (DataSourceError, OSError, RuntimeError) as exc:
            # RuntimeError is what TextLoader raises for unreadable files.
            if fail_fast:
                raise
            logger.error("Failed to ingest %s; continuing with next file", path.name, exc_info=True)
            return exc

    @staticmethod
    def _collect(report: IngestionReport, files: list[Path], outcomes: Iterable[int | Exception]) -> None:
        for path, outcome in zip(files, outcomes):
            if isinstance(outcome, Exception):
                report.failures[path.name] = f"{type(outcome).__name__}: {outcome}"
            else:
                report.files_processed += 1
                report.chunks_stored += outcome


# ──────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    from rag_datasource.config import settings
    from rag_datasource.ingestion.embedder import get_embedder
    from rag_datasource.retrieval.factory import get_vector_store

    parser = argparse.ArgumentParser(description="Ingest a directory of text documents into the vector store")
    parser.add_argument("directory", help="Directory containing the source documents")
    parser.add_argument("--max-chunk-size", type=int, default=settings.max_chunk_size)
    parser.add_argument("--min-overlap-size", type=int, default=settings.min_overlap_size)
    parser.add_argument("--workers", type=int, default=settings.ingest_max_workers)
    parser.add_argument("--retries", type=int, default=settings.ingest_retry_attempts)
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failing file")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pipeline = IngestionPipeline(
        get_embedder(settings),
        get_vector_store(settings),
        max_chunk_size=args.max_chunk_size,
        min_overlap_size=args.min_overlap_size,
        max_workers=args.workers,
        retry_attempts=args.retries,
    )
    report = pipeline.ingest(args.directory, fail_fast=args.fail_fast)
    for name, error in report.failures.items():
        print(f"FAILED {name}: {error}", file=sys.stderr)
    print(f"Stored {report.chunks_stored} chunks from {report.files_processed} files")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
