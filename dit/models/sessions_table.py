# dit/models/sessions_table.py
# Opaque session tokens issued on code redemption

from sqlalchemy import Table, Column, Integer, String, TIMESTAMP, Index

from dit.db.base import metadata


user_sessions = Table(
    'user_sessions',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('session_token', String(200), nullable=False, unique=True),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Column('last_active', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_user_sessions_last_active', 'last_active'),
)
