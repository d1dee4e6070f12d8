"""
Lily - LilyVectorStore
========================
Read-side wrapper around the LanceDB document table.

The table is populated by an external ingestion job; this module only
opens it and runs similarity queries.  Each row holds:

  • ``vector``   : fixed-size float32 embedding
  • ``content``  : passage text
  • ``filename`` : source document label (nullable)

Design decisions:
  • **Singleton DB connection** : ``_get_connection()`` caches the
    ``lancedb.DBConnection`` per path to avoid file-lock issues.
  • **Store-side filtering** : the similarity threshold and result cap
    are applied by LanceDB (``distance_range`` + ``limit``), with the
    threshold itself counted as a hit.  Rows come back in the store's
    order and are never re-sorted here.
  • **Lazy open** : the connection and table are opened on the first
    search, so construction never touches the filesystem.
  • **Empty table on first use** : a missing table is created empty,
    so a fresh deployment yields zero hits rather than an error.

Usage:
    from lily.src.database.vector_store import LilyVectorStore
    store = LilyVectorStore()
    rows = store.search(query_vector, threshold=0.5, limit=5)   # opens the table on first call
"""

from __future__ import annotations

import struct
import threading

import lancedb
import pyarrow as pa

from lily.config.settings import settings
from lily.src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Type Aliases ──────────────────────────────────────────────────────
SearchRow = dict[str, str | float | list[float] | None]

# ── Constants ──────────────────────────────────────────────────────────
_DEFAULT_DIMENSIONS = 768
_DISTANCE_TYPE = "cosine"
_DB_LOCK = threading.Lock()
_db_connection_cache: dict[str, lancedb.DBConnection] = {}


def document_schema(dimensions: int) -> pa.Schema:
    """Arrow schema of the document table for *dimensions*-long vectors."""
    return pa.schema([
        pa.field("vector", pa.list_(pa.float32(), dimensions)),
        pa.field("content", pa.utf8()),
        pa.field("filename", pa.utf8(), nullable=True),
    ])


def inclusive_upper_bound(distance: float) -> float:
    """Next float32 above *distance* (clamped at zero).

    LanceDB compares distances as float32 against a half-open
    ``[lower, upper)`` range, so this turns ``< upper`` into ``<= distance``.
    """
    bits = struct.unpack("<I", struct.pack("<f", max(distance, 0.0)))[0]
    return struct.unpack("<f", struct.pack("<I", bits + 1))[0]


def _get_connection(db_path: str) -> lancedb.DBConnection:
    """Return a cached ``lancedb.DBConnection`` for *db_path* (thread-safe)."""
    if db_path not in _db_connection_cache:
        with _DB_LOCK:
            if db_path not in _db_connection_cache:
                logger.info("Opening new LanceDB connection: %s", db_path)
                _db_connection_cache[db_path] = lancedb.connect(db_path)
    return _db_connection_cache[db_path]


class LilyVectorStore:
    """
    Similarity search over the LanceDB document table.

    Nothing is opened at construction; the connection and table are
    resolved on first use, so a bad path surfaces as a search error.

    Parameters
    ----------
    db_path
        Override the database directory.  Defaults to ``settings.LANCEDB_PATH``.
    table_name
        Override the table name.  Defaults to ``settings.LANCEDB_TABLE_NAME``.
    dimensions
        Vector length used when the table has to be created.
    """

    __slots__ = ("_db_path", "_table_name", "_dimensions", "_lock", "db", "table")

    def __init__(self, db_path: str | None = None, table_name: str | None = None, dimensions: int | None = None) -> None:
        self._db_path: str = str(db_path or settings.LANCEDB_PATH)
        self._table_name: str = table_name or settings.LANCEDB_TABLE_NAME
        self._dimensions: int = dimensions or settings.EMBEDDING_DIMENSIONS or _DEFAULT_DIMENSIONS
        self._lock = threading.Lock()
        self.db: lancedb.DBConnection | None = None
        self.table: lancedb.table.Table | None = None


    def open_table(self) -> lancedb.table.Table:
        """Return the document table, connecting and creating it on first call."""
        if self.table is None:
            with self._lock:
                if self.table is None:
                    self._connect()
        return self.table


    def _connect(self) -> None:
        """Open (or re-use) the LanceDB connection and open the table."""
        try:
            self.db = _get_connection(self._db_path)

            try:
                table = self.db.open_table(self._table_name)
                logger.info("Opened existing table '%s' (%d rows).", self._table_name, table.count_rows())
            except (FileNotFoundError, ValueError):
                table = self.db.create_table(self._table_name, schema=document_schema(self._dimensions))
                logger.warning("Table '%s' not found; created an empty one (%d dims).", self._table_name, self._dimensions)
            self.table = table

        except OSError as exc:
            logger.error("LanceDB filesystem error at %s: %s", self._db_path, exc)
            raise
        except Exception:
            logger.exception("Unexpected error connecting to LanceDB.")
            raise


    def search(self, query_vector: list[float], threshold: float, limit: int) -> list[SearchRow]:
        """
        Return up to *limit* rows whose cosine similarity is at least *threshold*.

        Similarity is ``1 - _distance``.  LanceDB's ``distance_range`` is
        half-open, so the upper bound is nudged one float32 step past
        ``1 - threshold`` to keep rows sitting exactly on the threshold.

        Parameters
        ----------
        query_vector
            Query embedding, same dimensionality as the stored vectors.
        threshold
            Minimum similarity in ``[0, 1]``.
        limit
            Maximum number of rows.

        Returns
        -------
        list[SearchRow]
            Rows with ``content``, ``filename`` and ``_distance``, nearest first.
        """
        table = self.open_table()
        upper_bound = inclusive_upper_bound(1.0 - threshold)

        query = table.search(query_vector, vector_column_name="vector").distance_type(_DISTANCE_TYPE).distance_range(upper_bound=upper_bound).select(["content", "filename"]).limit(limit)

        rows: list[SearchRow] = query.to_list()
        logger.info("Search returned %d row(s) (threshold=%.2f, limit=%d).", len(rows), threshold, limit)
        return rows


    def count(self) -> int:
        """Return the total number of rows in the table."""
        return self.open_table().count_rows()


    def __repr__(self) -> str:
        rows = self.table.count_rows() if self.table is not None else "?"
        return f"LilyVectorStore(db='{self._db_path}', table='{self._table_name}', rows={rows})"
