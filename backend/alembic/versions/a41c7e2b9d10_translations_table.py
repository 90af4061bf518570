"""translations table keyed by language_code and translation_key

Revision ID: a41c7e2b9d10
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a41c7e2b9d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if not insp.has_table("translations"):
        op.create_table(
            "translations",
            sa.Column("id", sa.BigInteger(), primary_key=True),
            sa.Column("language_code", sa.String(length=16), nullable=False),
            sa.Column("translation_key", sa.Text(), nullable=False),
            sa.Column("translation_value", sa.Text(), nullable=False),
            sa.Column("context", sa.Text(), nullable=True),
            sa.Column("source_text", sa.Text(), nullable=True),
            sa.Column(
                "auto_translated",
                sa.Boolean(),
                nullable=False,
                server_default=sa.false(),
            ),
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
        )

    # The upsert path relies on this constraint as its conflict target.
    op.execute(
        sa.text(
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_translations_language_key "
            "ON translations (language_code, translation_key)"
        )
    )
    op.execute(
        sa.text(
            "CREATE INDEX IF NOT EXISTS ix_translations_key "
            "ON translations (translation_key)"
        )
    )
    op.execute(
        sa.text(
            "CREATE INDEX IF NOT EXISTS ix_translations_language_key_pattern "
            "ON translations (language_code, translation_key text_pattern_ops)"
        )
    )


def downgrade() -> None:
    op.execute(sa.text("DROP INDEX IF EXISTS ix_translations_language_key_pattern"))
    op.execute(sa.text("DROP INDEX IF EXISTS ix_translations_key"))
    op.execute(sa.text("DROP INDEX IF EXISTS uq_translations_language_key"))
    op.drop_table("translations")
