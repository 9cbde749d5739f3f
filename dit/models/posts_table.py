# dit/models/posts_table.py
# Social wall posts and their per-session likes

from sqlalchemy import Table, Column, Integer, String, Text, TIMESTAMP, ForeignKey, Index, PrimaryKeyConstraint

from dit.db.base import metadata


posts = Table(
    'posts',
    metadata,
    Column('id', String(36), primary_key=True),  # uuid4 string
    Column('content', Text, nullable=False),  # <= 280 chars, sanitized
    Column('author_name', String(100), nullable=True),
    Column('source', String(32), nullable=True),
    Column('care_package_code', String(64), nullable=True),
    Column('likes', Integer, nullable=False, default=0),  # denormalized count of post_likes
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_posts_created_at', 'created_at'),
)


post_likes = Table(
    'post_likes',
    metadata,
    Column('post_id', String(36), ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
    Column('session_token', String(200), nullable=False),
    Column('created_at', TIMESTAMP(timezone=True), nullable=True),
    PrimaryKeyConstraint('post_id', 'session_token'),
)
