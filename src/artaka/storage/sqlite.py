"""SQLite knowledge store.

Persists knowledge items in a single table using aiosqlite:

    knowledge_items(
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT, type TEXT, path TEXT,
        tags TEXT,          -- JSON array of strings
        description TEXT,
        content TEXT,
        embedding BLOB      -- little-endian float32 array
    )

with secondary indexes on path and type.
"""

import json
import os
from typing import Any, Optional

import aiosqlite

from artaka.config.schema import StoreConfig
from artaka.core.similarity import EmbeddingDecodeError, decode_embedding, encode_embedding
from artaka.entities import ItemType, KnowledgeItem
from artaka.observability.logging import get_logger
from artaka.storage.base import KnowledgeStore, StorageError

logger = get_logger(__name__)

_COLUMNS = "id, title, type, path, tags, description, content, embedding"


class SQLiteKnowledgeStore(KnowledgeStore):
    """SQLite knowledge store implementation.

    One connection per instance, opened by initialize() and reused until
    close().
    """

    storage_type = "sqlite"

    def __init__(self, config: StoreConfig) -> None:
        """Initialize SQLite knowledge store."""
        super().__init__(config)

        conn_str = config.connection_string
        if conn_str is None:
            self.db_path = os.path.expanduser("~/.artaka/knowledge.db")
        elif conn_str.startswith("sqlite:///"):
            self.db_path = os.path.expanduser(conn_str.replace("sqlite:///", "", 1))
        else:
            self.db_path = os.path.expanduser(conn_str)

        self.connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Open the connection and create the table and indexes."""
        if self.connection is not None:
            return

        try:
            if self.db_path != ":memory:":
                db_dir = os.path.dirname(os.path.abspath(self.db_path))
                os.makedirs(db_dir, exist_ok=True)

            self.connection = await aiosqlite.connect(self.db_path)
            self.connection.row_factory = aiosqlite.Row

            await self.connection.execute("""
                CREATE TABLE IF NOT EXISTS knowledge_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT,
                    type TEXT,
                    path TEXT,
                    tags TEXT,
                    description TEXT,
                    content TEXT,
                    embedding BLOB
                )
            """)
            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_knowledge_items_path ON knowledge_items(path)"
            )
            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_knowledge_items_type ON knowledge_items(type)"
            )
            await self.connection.commit()

            logger.debug("sqlite_store_initialized", db_path=self.db_path)

        except Exception as e:
            raise StorageError(
                f"Failed to initialize SQLite knowledge store: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    def _require_connection(self) -> aiosqlite.Connection:
        if not self.connection:
            raise StorageError("Database not initialized", storage_type="sqlite")
        return self.connection

    def _row_to_item(self, row: Any) -> KnowledgeItem:
        embedding = None
        if row["embedding"] is not None:
            try:
                embedding = decode_embedding(row["embedding"])
            except EmbeddingDecodeError as e:
                logger.warning("skipping_invalid_embedding", item_id=row["id"], title=row["title"], error=str(e))

        return KnowledgeItem(
            id=row["id"],
            title=row["title"] or "",
            type=ItemType(row["type"]),
            path=row["path"],
            tags=json.loads(row["tags"]) if row["tags"] else [],
            description=row["description"] or "",
            content=row["content"],
            embedding=embedding,
        )

    async def _fetch_one(self, query: str, params: tuple, action: str) -> Optional[KnowledgeItem]:
        connection = self._require_connection()
        try:
            cursor = await connection.execute(query, params)
            row = await cursor.fetchone()
            return self._row_to_item(row) if row else None
        except Exception as e:
            raise StorageError(
                f"Failed to {action}: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def _fetch_all(self, query: str, params: tuple, action: str) -> list[KnowledgeItem]:
        connection = self._require_connection()
        try:
            cursor = await connection.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_item(row) for row in rows]
        except Exception as e:
            raise StorageError(
                f"Failed to {action}: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def add_item(self, item: KnowledgeItem) -> int:
        """Insert an item and return its id."""
        connection = self._require_connection()

        try:
            cursor = await connection.execute(
                """
                INSERT INTO knowledge_items (title, type, path, tags, description, content, embedding)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.title,
                    item.type.value,
                    item.path,
                    json.dumps(item.tags),
                    item.description,
                    item.content,
                    encode_embedding(item.embedding) if item.embedding else None,
                ),
            )
            await connection.commit()
            return cursor.lastrowid
        except Exception as e:
            raise StorageError(
                f"Failed to add knowledge item: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def get_by_id(self, item_id: int, item_type: Optional[ItemType] = None) -> Optional[KnowledgeItem]:
        """Retrieve an item by id."""
        if item_type is None:
            return await self._fetch_one(
                f"SELECT {_COLUMNS} FROM knowledge_items WHERE id = ?", (item_id,), "get item by id"
            )
        return await self._fetch_one(
            f"SELECT {_COLUMNS} FROM knowledge_items WHERE type = ? AND id = ?",
            (item_type.value, item_id),
            "get item by id",
        )

    async def get_by_path(self, path: str) -> Optional[KnowledgeItem]:
        """Retrieve the file item for an exact path."""
        return await self._fetch_one(
            f"SELECT {_COLUMNS} FROM knowledge_items WHERE type = ? AND path = ?",
            (ItemType.FILE.value, path),
            "get item by path",
        )

    async def get_by_title(self, title: str, item_type: Optional[ItemType] = None) -> Optional[KnowledgeItem]:
        """Retrieve an item by case-insensitive title."""
        if item_type is None:
            return await self._fetch_one(
                f"SELECT {_COLUMNS} FROM knowledge_items WHERE LOWER(title) = LOWER(?) ORDER BY id",
                (title,),
                "get item by title",
            )
        return await self._fetch_one(
            f"SELECT {_COLUMNS} FROM knowledge_items WHERE type = ? AND LOWER(title) = LOWER(?) ORDER BY id",
            (item_type.value, title),
            "get item by title",
        )

    async def list_items(self, item_type: Optional[ItemType] = None) -> list[KnowledgeItem]:
        """List every item in insertion order."""
        if item_type is None:
            return await self._fetch_all(
                f"SELECT {_COLUMNS} FROM knowledge_items ORDER BY id", (), "list items"
            )
        return await self._fetch_all(
            f"SELECT {_COLUMNS} FROM knowledge_items WHERE type = ? ORDER BY id",
            (item_type.value,),
            "list items",
        )

    async def list_with_embeddings(self, item_type: Optional[ItemType] = None) -> list[KnowledgeItem]:
        """List items with a readable embedding; corrupt blobs are skipped."""
        if item_type is None:
            items = await self._fetch_all(
                f"SELECT {_COLUMNS} FROM knowledge_items WHERE embedding IS NOT NULL ORDER BY id",
                (),
                "list items with embeddings",
            )
        else:
            items = await self._fetch_all(
                f"SELECT {_COLUMNS} FROM knowledge_items WHERE type = ? AND embedding IS NOT NULL ORDER BY id",
                (item_type.value,),
                "list items with embeddings",
            )
        return [item for item in items if item.embedding]

    async def update_item(self, item: KnowledgeItem) -> bool:
        """Overwrite the mutable fields of an item."""
        connection = self._require_connection()

        try:
            cursor = await connection.execute(
                """
                UPDATE knowledge_items
                SET title = ?, tags = ?, description = ?, content = ?, embedding = ?
                WHERE id = ?
                """,
                (
                    item.title,
                    json.dumps(item.tags),
                    item.description,
                    item.content,
                    encode_embedding(item.embedding) if item.embedding else None,
                    item.id,
                ),
            )
            await connection.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(
                f"Failed to update knowledge item: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def delete_by_id(self, item_id: int) -> bool:
        """Delete one item."""
        connection = self._require_connection()

        try:
            cursor = await connection.execute("DELETE FROM knowledge_items WHERE id = ?", (item_id,))
            await connection.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(
                f"Failed to delete knowledge item: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def count(self) -> int:
        """Number of stored items."""
        connection = self._require_connection()

        try:
            cursor = await connection.execute("SELECT COUNT(*) AS count FROM knowledge_items")
            row = await cursor.fetchone()
            return row["count"]
        except Exception as e:
            raise StorageError(
                f"Failed to count knowledge items: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def clear(self) -> int:
        """Delete every row."""
        connection = self._require_connection()

        try:
            cursor = await connection.execute("DELETE FROM knowledge_items")
            await connection.commit()
            return cursor.rowcount
        except Exception as e:
            raise StorageError(
                f"Failed to delete knowledge items: {e}",
                storage_type="sqlite",
                original_error=e,
            )

    async def close(self) -> None:
        """Close connections and cleanup resources."""
        if self.connection:
            await self.connection.close()
            self.connection = None
