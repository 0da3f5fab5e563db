"""Record the tax rate on each sale

Revision ID: 20261020_sale_tax_rate
Revises: 20261019_initial
Create Date: 2026-10-20

Existing sales were taxed at the default rate of 800 bps.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_sale_tax_rate"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.add_column(
            sa.Column("tax_rate_bps", sa.Integer(), nullable=False, server_default="800")
        )


def downgrade():
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.drop_column("tax_rate_bps")
