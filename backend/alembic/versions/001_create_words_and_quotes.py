"""Create words and quotes tables

Revision ID: 001
Revises: None
Create Date: 2024-06-10 00:00:00.000000+00:00

What:  Creates the `words` and `quotes` tables read by SqlRecordStore.
How:   Plain string ids and timezone-aware timestamps, so the same migration
       runs on PostgreSQL and SQLite. Values for `id` and `created_at` are
       supplied by the ORM mapping at insert time.

Rollback: downgrade() drops both tables (all records are lost; images in
storage are left in place).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "words",
        sa.Column("id", sa.String(36), nullable=False, comment="Opaque record identifier (UUID string)"),
        sa.Column("chinese_word", sa.String(255), nullable=False, comment="Chinese characters"),
        sa.Column("pinyin", sa.String(255), nullable=True, comment="Pronunciation, e.g. 'nǐ hǎo'"),
        sa.Column("meaning", sa.Text(), nullable=False, comment="English or Khmer meaning"),
        sa.Column("part_of_speech", sa.String(20), nullable=True),
        sa.Column("example", sa.Text(), nullable=True),
        sa.Column(
            "image_url",
            sa.Text(),
            nullable=True,
            comment="Absolute URL of the illustration, never checked for reachability",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            comment="When this word was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    # List pages read newest first (ORDER BY created_at DESC)
    op.create_index("idx_words_created_at", "words", [sa.text("created_at DESC")])

    op.create_table(
        "quotes",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("text", sa.Text(), nullable=False, comment="Quoted content"),
        sa.Column("meaning", sa.Text(), nullable=False, comment="Translation or explanation"),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quotes_created_at", "quotes", [sa.text("created_at DESC")])


def downgrade() -> None:
    op.drop_index("idx_quotes_created_at", table_name="quotes")
    op.drop_table("quotes")
    op.drop_index("idx_words_created_at", table_name="words")
    op.drop_table("words")
