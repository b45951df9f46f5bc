"""SQLite-backed knowledge item store.

Holds every knowledge item with its processing status and normalized
content. The relevance search is a best-effort term match: each query
term found in ``processed_content`` (case-insensitive) adds one point,
results are ordered by points, then newest first, then id, so the order
is deterministic for a given store state.
"""

import logging
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text, case, create_engine, delete, literal, or_, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from second_brain.models.schemas import ItemStatus, KnowledgeItem, Modality

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class KnowledgeItemRecord(Base):
    """Row of the ``knowledge_items`` table."""

    __tablename__ = "knowledge_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(512))
    modality: Mapped[str] = mapped_column(String(16))
    original_content: Mapped[str] = mapped_column(Text)
    processed_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), index=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    source_timestamp: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, index=True)


def _to_item(record: KnowledgeItemRecord) -> KnowledgeItem:
    return KnowledgeItem(
        id=record.id,
        title=record.title,
        modality=Modality(record.modality),
        original_content=record.original_content,
        processed_content=record.processed_content,
        status=ItemStatus(record.status),
        metadata=dict(record.details or {}),
        source_timestamp=record.source_timestamp,
        created_at=record.created_at,
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class KnowledgeStore:
    """Persistence for knowledge items.

    Every public method opens its own short session, so one store can be
    shared across requests and threads. The database file and schema are
    created on first use, so an unreachable database surfaces as an error
    from the call that needed it and the next call tries again.
    """

    def __init__(self, database_url: str) -> None:
        """Configure the engine; nothing is opened yet.

        Args:
            database_url: SQLAlchemy URL, e.g. ``sqlite:///data/knowledge.db``.
        """
        url = make_url(database_url)
        engine_kwargs: dict[str, Any] = {}
        self._database_dir: Path | None = None
        if url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                engine_kwargs["poolclass"] = StaticPool
            else:
                self._database_dir = Path(url.database).parent

        self._engine = create_engine(url, **engine_kwargs)
        self._sessions = sessionmaker(self._engine, expire_on_commit=False)
        self._schema_lock = threading.Lock()
        self._schema_ready = False

    def _ensure_schema(self) -> None:
        with self._schema_lock:
            if self._schema_ready:
                return
            if self._database_dir is not None:
                self._database_dir.mkdir(parents=True, exist_ok=True)
            Base.metadata.create_all(self._engine)
            self._schema_ready = True
            logger.info(f"Knowledge store ready at {self._engine.url}")

    def open(self) -> None:
        """Create the database and schema now rather than on first use."""
        if not self._schema_ready:
            self._ensure_schema()

    def _session(self) -> Session:
        if not self._schema_ready:
            self._ensure_schema()
        return self._sessions()

    def create_item(
        self,
        title: str,
        modality: Modality,
        original_content: str,
        status: ItemStatus = ItemStatus.PENDING,
        processed_content: str | None = None,
        metadata: dict[str, Any] | None = None,
        source_timestamp: datetime | None = None,
    ) -> KnowledgeItem:
        """Insert a new item and return it."""
        record = KnowledgeItemRecord(
            id=str(uuid.uuid4()),
            title=title,
            modality=Modality(modality).value,
            original_content=original_content,
            processed_content=processed_content,
            status=ItemStatus(status).value,
            details=metadata or {},
            source_timestamp=source_timestamp or _utcnow(),
            created_at=_utcnow(),
        )
        with self._session() as session, session.begin():
            session.add(record)
        logger.info(f"Stored knowledge item {record.id} ({record.modality}, {record.status})")
        return _to_item(record)

    def get_item(self, item_id: str) -> KnowledgeItem | None:
        with self._session() as session:
            record = session.get(KnowledgeItemRecord, item_id)
            return _to_item(record) if record else None

    def list_items(self) -> list[KnowledgeItem]:
        """All items, newest first."""
        stmt = select(KnowledgeItemRecord).order_by(
            KnowledgeItemRecord.created_at.desc(), KnowledgeItemRecord.id
        )
        with self._session() as session:
            return [_to_item(r) for r in session.scalars(stmt)]

    def find_item(
        self,
        file_name: str | None = None,
        url: str | None = None,
        title: str | None = None,
    ) -> KnowledgeItem | None:
        """Look an item up by file name, URL or title, newest first.

        The file name matches anywhere inside ``original_content`` (stored
        file keys carry a timestamp prefix); URL and title must match exactly.
        """
        stmt = select(KnowledgeItemRecord)
        if file_name:
            stmt = stmt.where(
                KnowledgeItemRecord.original_content.ilike(
                    f"%{_escape_like(file_name)}%", escape="\\"
                )
            )
        elif url:
            stmt = stmt.where(KnowledgeItemRecord.original_content == url)
        elif title:
            stmt = stmt.where(KnowledgeItemRecord.title == title)
        else:
            return None

        stmt = stmt.order_by(KnowledgeItemRecord.created_at.desc()).limit(1)
        with self._session() as session:
            record = session.scalars(stmt).first()
            return _to_item(record) if record else None

    def update_item(self, item_id: str, **fields: Any) -> KnowledgeItem | None:
        """Set the given columns on one item.

        Returns:
            The updated item, or None if it does not exist.
        """
        with self._session() as session, session.begin():
            record = session.get(KnowledgeItemRecord, item_id)
            if record is None:
                return None
            for name, value in fields.items():
                if isinstance(value, (ItemStatus, Modality)):
                    value = value.value
                setattr(record, name, value)
        return _to_item(record)

    def mark_processing(self, item_id: str) -> KnowledgeItem | None:
        return self.update_item(item_id, status=ItemStatus.PROCESSING)

    def complete_item(
        self, item_id: str, processed_content: str, title: str | None = None
    ) -> KnowledgeItem | None:
        fields: dict[str, Any] = {
            "processed_content": processed_content,
            "status": ItemStatus.COMPLETED,
        }
        if title:
            fields["title"] = title
        return self.update_item(item_id, **fields)

    def fail_item(self, item_id: str) -> KnowledgeItem | None:
        return self.update_item(item_id, status=ItemStatus.FAILED)

    def delete_item(self, item_id: str) -> bool:
        """Delete one item. Returns False when it did not exist."""
        with self._session() as session, session.begin():
            result = session.execute(
                delete(KnowledgeItemRecord).where(KnowledgeItemRecord.id == item_id)
            )
            deleted = result.rowcount > 0
        return deleted

    def search(self, terms: list[str], limit: int) -> list[KnowledgeItem]:
        """Rank completed items by how many query terms they contain.

        Args:
            terms: Lower-cased query terms.
            limit: Maximum number of items to return.

        Returns:
            Matching completed items, most relevant first.
        """
        if not terms:
            return []

        content = KnowledgeItemRecord.processed_content
        matches = [content.ilike(f"%{_escape_like(term)}%", escape="\\") for term in terms]
        score = sum(
            (case((match, 1), else_=0) for match in matches), start=literal(0)
        ).label("score")

        stmt = (
            select(KnowledgeItemRecord, score)
            .where(KnowledgeItemRecord.status == ItemStatus.COMPLETED.value)
            .where(or_(*matches))
            .order_by(
                score.desc(),
                KnowledgeItemRecord.created_at.desc(),
                KnowledgeItemRecord.id,
            )
            .limit(limit)
        )
        with self._session() as session:
            return [_to_item(record) for record, _ in session.execute(stmt)]
