"""
Campaign Service Data Repository

Data access layer - PostgreSQL (Async, asyncpg)

Implements CampaignStoreProtocol over the tables created by
migrations/001_create_campaign_tables.sql. Column names are checked
against a fixed whitelist before any SQL is built.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import asyncpg

from core.config import InfraConfig
from core.postgres_client import PostgresClientWrapper

from .protocols import (
    APPLICATIONS_TABLE,
    CAMPAIGNS_TABLE,
    SUBMISSIONS_TABLE,
    ConstraintViolationError,
    StoreError,
)

logger = logging.getLogger(__name__)


TABLE_COLUMNS = {
    CAMPAIGNS_TABLE: {
        "id", "brand_id", "title", "status", "content_type", "budget", "spent",
        "start_date", "end_date", "brief", "requirements",
        "total_view_target", "original_view_target", "repurposed_view_target",
        "metrics", "rejection_reason", "approved_by", "approved_at",
        "rejected_by", "rejected_at", "created_at", "updated_at",
    },
    APPLICATIONS_TABLE: {
        "id", "campaign_id", "creator_id", "status", "platforms", "earned",
        "engagement", "created_at", "updated_at",
    },
    SUBMISSIONS_TABLE: {
        "id", "campaign_id", "creator_id", "platform", "content_type", "post_url",
        "status", "views", "engagement", "earned", "rejection_feedback",
        "created_at", "updated_at",
    },
}

DATE_COLUMNS = {"start_date", "end_date"}
TIMESTAMP_COLUMNS = {"approved_at", "rejected_at", "created_at", "updated_at"}

# SQLSTATE codes reported as constraint violations
CONSTRAINT_SQLSTATES = {
    "23505": "unique",
    "23514": "check",
    "23503": "foreign_key",
    "23502": "not_null",
}


def _coerce_param(column: str, value: Any) -> Any:
    """Convert wire values (ISO strings) into the types asyncpg binds"""
    if value is None:
        return None
    if column in DATE_COLUMNS and isinstance(value, str):
        return date.fromisoformat(value[:10])
    if column in TIMESTAMP_COLUMNS and isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


def _row_to_record(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: float(v) if isinstance(v, Decimal) else v for k, v in row.items()}


class CampaignRepository:
    """Campaign service data repository - PostgreSQL (Async)"""

    def __init__(
        self,
        config: Optional[InfraConfig] = None,
        db: Optional[PostgresClientWrapper] = None,
    ):
        self.config = config or InfraConfig.from_env()
        self.db = db or PostgresClientWrapper("campaign_service", config=self.config)
        self.schema = self.config.postgres_schema

    async def initialize(self):
        """Initialize database connection"""
        await self.db.connect()
        logger.info("Campaign repository initialized with PostgreSQL")

    async def close(self):
        """Close database connection"""
        await self.db.close()
        logger.info("Campaign repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        return await self.db.health_check()

    # ====================
    # Generic Record Access
    # ====================

    async def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record; the database assigns the id when absent"""
        columns = self._check_columns(table, record)
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        sql = (
            f"INSERT INTO {self._table(table)} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) RETURNING *"
        )
        row = await self._fetchrow(sql, [_coerce_param(c, record[c]) for c in columns])
        return _row_to_record(row)

    async def update(
        self, table: str, record_id: str, patch: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Apply a patch; returns None when no row has the id"""
        if not patch:
            return await self.select_by_id(table, record_id)

        columns = self._check_columns(table, patch)
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=1))
        sql = (
            f"UPDATE {self._table(table)} SET {assignments} "
            f"WHERE id = ${len(columns) + 1} RETURNING *"
        )
        params = [_coerce_param(c, patch[c]) for c in columns] + [record_id]
        row = await self._fetchrow(sql, params)
        return _row_to_record(row) if row else None

    async def select_by_id(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        sql = f"SELECT * FROM {self._table(table)} WHERE id = $1"
        row = await self._fetchrow(sql, [record_id])
        return _row_to_record(row) if row else None

    async def select_where(
        self,
        table: str,
        filters: Dict[str, Any],
        order_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch records matching every filter"""
        where, params = self._where(table, filters)
        self._check_columns(table, {order_by: None})

        sql = f"SELECT * FROM {self._table(table)}{where} ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            params.append(int(limit))
            sql += f" LIMIT ${len(params)}"

        rows = await self._fetch(sql, params)
        return [_row_to_record(r) for r in rows]

    async def count_where(self, table: str, filters: Dict[str, Any]) -> int:
        where, params = self._where(table, filters)
        sql = f"SELECT COUNT(*) FROM {self._table(table)}{where}"
        try:
            return int(await self.db.query_value(sql, params))
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise self._translate(e)

    async def delete(self, table: str, record_id: str) -> bool:
        sql = f"DELETE FROM {self._table(table)} WHERE id = $1 RETURNING id"
        row = await self._fetchrow(sql, [record_id])
        return row is not None

    async def upsert_application(
        self, record: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], bool]:
        """Insert a join record, or return the existing one for the same pair"""
        columns = self._check_columns(APPLICATIONS_TABLE, record)
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        sql = (
            f"INSERT INTO {self._table(APPLICATIONS_TABLE)} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) "
            f"ON CONFLICT (campaign_id, creator_id) DO NOTHING RETURNING *"
        )
        row = await self._fetchrow(sql, [_coerce_param(c, record[c]) for c in columns])
        if row:
            return _row_to_record(row), True

        existing = await self.select_where(
            APPLICATIONS_TABLE,
            {"campaign_id": record["campaign_id"], "creator_id": record["creator_id"]},
            limit=1,
        )
        if not existing:
            raise StoreError(
                f"Join record for {record['campaign_id']}/{record['creator_id']} vanished after conflict"
            )
        return existing[0], False

    # ====================
    # Helpers
    # ====================

    def _table(self, table: str) -> str:
        if table not in TABLE_COLUMNS:
            raise StoreError(f"Unknown table: {table}")
        return f"{self.schema}.{table}"

    def _check_columns(self, table: str, values: Dict[str, Any]) -> List[str]:
        allowed = TABLE_COLUMNS.get(table)
        if allowed is None:
            raise StoreError(f"Unknown table: {table}")
        unknown = [c for c in values if c not in allowed]
        if unknown:
            raise StoreError(f"Unknown columns for {table}: {', '.join(unknown)}")
        return list(values)

    def _where(self, table: str, filters: Dict[str, Any]) -> Tuple[str, List[Any]]:
        columns = self._check_columns(table, filters)
        clauses, params = [], []
        for column in columns:
            value = filters[column]
            if isinstance(value, (list, tuple, set)):
                params.append([_coerce_param(column, v) for v in value])
                clauses.append(f"{column} = ANY(${len(params)})")
            elif value is None:
                clauses.append(f"{column} IS NULL")
            else:
                params.append(_coerce_param(column, value))
                clauses.append(f"{column} = ${len(params)}")
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    async def _fetch(self, sql: str, params: List[Any]) -> List[Dict[str, Any]]:
        try:
            return await self.db.query(sql, params)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise self._translate(e)

    async def _fetchrow(self, sql: str, params: List[Any]) -> Optional[Dict[str, Any]]:
        try:
            return await self.db.query_row(sql, params)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise self._translate(e)

    def _translate(self, error: Exception) -> StoreError:
        """Map driver errors onto the store error hierarchy"""
        sqlstate = getattr(error, "sqlstate", None)
        if sqlstate in CONSTRAINT_SQLSTATES:
            constraint = getattr(error, "constraint_name", None)
            logger.warning(f"Constraint violation ({CONSTRAINT_SQLSTATES[sqlstate]}) on {constraint}: {error}")
            return ConstraintViolationError(str(error), code=sqlstate, constraint=constraint)

        logger.error(f"Campaign store error [{sqlstate}]: {error}")
        if isinstance(error, asyncpg.PostgresError):
            return StoreError(str(error), code=sqlstate, category="database")
        return StoreError(str(error), code=sqlstate, category="connection")


__all__ = ["CampaignRepository", "TABLE_COLUMNS"]
