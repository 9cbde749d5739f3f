# dit/models/access_codes_table.py
# Access codes provisioned out-of-band (album / special tiers)

from sqlalchemy import Table, Column, Integer, String, Boolean, TIMESTAMP

from dit.db.base import metadata


access_codes = Table(
    'access_codes',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('code', String(64), nullable=False, unique=True),  # stored uppercase
    Column('type', String(32), nullable=True),  # album, special, ...
    Column('active', Boolean, nullable=False, default=True),
    Column('created_at', TIMESTAMP(timezone=True), nullable=True),
)
