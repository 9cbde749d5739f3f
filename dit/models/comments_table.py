# dit/models/comments_table.py
# Append-only comment threads under wall posts

from sqlalchemy import Table, Column, String, Text, TIMESTAMP, ForeignKey, Index

from dit.db.base import metadata


comments = Table(
    'comments',
    metadata,
    Column('id', String(36), primary_key=True),  # uuid4 string
    Column('post_id', String(36), ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
    Column('content', Text, nullable=False),  # <= 1000 chars, sanitized
    Column('author_name', String(100), nullable=True),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_comments_post_id_created_at', 'post_id', 'created_at'),
)
