"""Add expiry_notice_sent_at to posts

Revision ID: 002
Revises: 001
Create Date: (run alembic upgrade head)

Marks a post whose owner already got the expiring-soon notice. Backfilled from existing
post_expiring_soon notifications so those posts are not notified twice.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("posts", sa.Column("expiry_notice_sent_at", sa.DateTime(timezone=True), nullable=True))
    op.execute(
        """
        UPDATE posts SET expiry_notice_sent_at = n.created_at
        FROM (
            SELECT post_id, MIN(created_at) AS created_at
            FROM notifications
            WHERE type = 'post_expiring_soon' AND post_id IS NOT NULL
            GROUP BY post_id
        ) AS n
        WHERE posts.id = n.post_id
        """
    )


def downgrade() -> None:
    op.drop_column("posts", "expiry_notice_sent_at")
