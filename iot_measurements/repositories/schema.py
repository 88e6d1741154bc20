from __future__ import annotations

from sqlalchemy import Column, Float, Index, Integer, MetaData, String, Table

TABLE_NAME = "measurements"
SELECT_COLUMNS = "id, device_id, type, value, timestamp"

metadata = MetaData()

measurements = Table(
    TABLE_NAME,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("device_id", Integer, nullable=False),
    Column("type", String(16), nullable=False),
    Column("value", Float, nullable=False),
    Column("timestamp", String(32), nullable=False),
    Index("ix_measurements_timestamp", "timestamp"),
    Index("ix_measurements_type", "type"),
)
