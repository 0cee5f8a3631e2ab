import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from databases import Database
from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, insert, select
from sqlalchemy.orm import declarative_base

from records import CitationRecord

logger = logging.getLogger(__name__)

DATABASE_URL = "sqlite+aiosqlite:///./citations.db"

# SQLite INTEGER PRIMARY KEY range
MAX_CITATION_ID = 2 ** 63 - 1

Base = declarative_base()

# list-valued columns, stored as JSON text
_ARRAY_COLUMNS = (
    "officer_badges",
    "officer_usernames",
    "officer_ranks",
    "officer_user_ids",
    "penal_codes",
    "amounts_due",
    "jail_times",
)


class Citation(Base):
    __tablename__ = "citations"

    id = Column(Integer, primary_key=True, index=True)
    officer_badges = Column(Text, nullable=False)
    officer_usernames = Column(Text, nullable=False)
    officer_ranks = Column(Text, nullable=False)
    officer_user_ids = Column(Text, nullable=False)
    violator_username = Column(String, nullable=False, index=True)
    violator_signature = Column(String, nullable=False)
    violation_type = Column(String, nullable=False)
    penal_codes = Column(Text, nullable=False)
    amounts_due = Column(Text, nullable=False)
    jail_times = Column(Text, nullable=True)
    total_amount = Column(String, nullable=False)
    total_jail_time = Column(String, nullable=True)
    additional_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Citation(id={self.id}, violator_username='{self.violator_username}', total_amount='{self.total_amount}')>"


citations_table = Citation.__table__


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _row_to_citation(row) -> dict:
    data = dict(row._mapping)
    for column in _ARRAY_COLUMNS:
        raw = data.get(column)
        if raw:
            try:
                data[column] = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Citation %s has a malformed %s column", data.get("id"), column)
                data[column] = []
        else:
            data[column] = []
    return {_to_camel(key): value for key, value in data.items()}


class CitationStore:
    """Citation persistence through an async ``databases`` connection."""

    def __init__(self, database_url: str = DATABASE_URL):
        self.database_url = database_url
        self.database = Database(database_url)

    async def connect(self):
        # Sync engine only for creating tables
        sync_url = self.database_url.replace("+aiosqlite", "")
        connect_args = {"check_same_thread": False} if sync_url.startswith("sqlite") else {}
        engine_sync = create_engine(sync_url, connect_args=connect_args)
        try:
            Base.metadata.create_all(bind=engine_sync)
        finally:
            engine_sync.dispose()
        await self.database.connect()
        logger.info("Citation store connected (%s)", sync_url)

    async def disconnect(self):
        await self.database.disconnect()

    async def create_citation(self, record: CitationRecord) -> dict:
        values = {
            "officer_badges": record.officer_badges,
            "officer_usernames": record.officer_usernames,
            "officer_ranks": record.officer_ranks,
            "officer_user_ids": record.officer_user_ids,
            "violator_username": record.violator_username,
            "violator_signature": record.violator_signature,
            "violation_type": record.violation_type,
            "penal_codes": record.penal_codes,
            "amounts_due": record.amounts_due,
            "jail_times": record.jail_times,
            "total_amount": record.total_amount,
            "total_jail_time": record.total_jail_time,
            "additional_notes": record.additional_notes or None,
            "created_at": datetime.now(timezone.utc),
        }
        row = {
            key: json.dumps(value) if key in _ARRAY_COLUMNS else value
            for key, value in values.items()
        }
        citation_id = await self.database.execute(insert(citations_table).values(**row))
        values["id"] = citation_id
        return {_to_camel(key): value for key, value in values.items()}

    async def get_citation(self, citation_id: int) -> Optional[dict]:
        if not 0 < citation_id <= MAX_CITATION_ID:
            return None
        query = select(citations_table).where(citations_table.c.id == citation_id)
        row = await self.database.fetch_one(query)
        if row is None:
            return None
        return _row_to_citation(row)

    async def list_citations(self) -> List[dict]:
        query = select(citations_table).order_by(citations_table.c.id)
        rows = await self.database.fetch_all(query)
        return [_row_to_citation(row) for row in rows]
