# dit/models/track_plays_table.py
# Play analytics: one row per started track play

from sqlalchemy import Table, Column, String, Integer, Boolean, TIMESTAMP, Index

from dit.db.base import metadata


track_plays = Table(
    'track_plays',
    metadata,
    Column('id', String(36), primary_key=True),  # uuid4 string
    Column('track_key', String(200), nullable=False),
    Column('session_token', String(200), nullable=True),
    Column('ip', String(64), nullable=True),
    Column('user_agent', String(512), nullable=True),
    Column('ms_played', Integer, nullable=False, default=0),
    Column('completed', Boolean, nullable=False, default=False),
    Column('completed_at', TIMESTAMP(timezone=True), nullable=True),
    Column('idempotency_key', String(200), nullable=True, unique=True),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_track_plays_track_key', 'track_key'),
)
