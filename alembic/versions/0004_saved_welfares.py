from alembic import op

revision = "0004_saved_welfares"
down_revision = "0003_adoptions_emergencies_messages"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS saved_welfares (
      donor_id UUID NOT NULL REFERENCES donors(id) ON DELETE CASCADE,
      welfare_id UUID NOT NULL REFERENCES welfare_organizations(id) ON DELETE CASCADE,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      PRIMARY KEY (donor_id, welfare_id)
    );
    """
    )


def downgrade():
    op.execute("DROP TABLE IF EXISTS saved_welfares;")
