from alembic import op

revision = "0002_cases_donations"
down_revision = "0001_accounts"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS cases (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      title TEXT NOT NULL,
      description TEXT NOT NULL,
      target_amount NUMERIC(12,2) NOT NULL CHECK (target_amount > 0),
      amount_raised NUMERIC(14,2) NOT NULL DEFAULT 0 CHECK (amount_raised >= 0),
      image_urls TEXT[] NOT NULL DEFAULT '{}',
      created_by UUID NOT NULL REFERENCES welfare_organizations(id) ON DELETE CASCADE,
      welfare_address TEXT NOT NULL,
      assigned_doctor UUID NULL REFERENCES doctors(id) ON DELETE SET NULL,
      medical_issue TEXT NULL,
      cost_breakdown JSONB NOT NULL DEFAULT '[]'::jsonb,
      has_updates BOOLEAN NOT NULL DEFAULT FALSE,
      status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active','completed')),
      emergency_id UUID NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_cases_created_by ON cases(created_by, created_at);
    CREATE INDEX IF NOT EXISTS idx_cases_active ON cases(created_at) WHERE status = 'active';

    CREATE TABLE IF NOT EXISTS case_updates (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      case_id UUID NOT NULL REFERENCES cases(id) ON DELETE CASCADE,
      title TEXT NOT NULL,
      content TEXT NOT NULL,
      image_urls TEXT[] NOT NULL DEFAULT '{}',
      posted_by UUID NOT NULL,
      is_success_story BOOLEAN NOT NULL DEFAULT FALSE,
      is_published BOOLEAN NOT NULL DEFAULT TRUE,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_case_updates_case ON case_updates(case_id, created_at);

    CREATE TABLE IF NOT EXISTS donations (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      donor_id UUID NOT NULL REFERENCES donors(id) ON DELETE RESTRICT,
      case_id UUID NOT NULL REFERENCES cases(id) ON DELETE RESTRICT,
      welfare_id UUID NOT NULL REFERENCES welfare_organizations(id) ON DELETE RESTRICT,
      amount NUMERIC(36,18) NOT NULL CHECK (amount > 0),
      amount_usd NUMERIC(14,2) NOT NULL CHECK (amount_usd >= 0),
      eth_usd_rate NUMERIC(14,4) NOT NULL,
      tx_hash TEXT NOT NULL UNIQUE,
      status TEXT NOT NULL DEFAULT 'Confirmed',
      donor_address TEXT NULL,
      organization_address TEXT NULL,
      message TEXT NOT NULL DEFAULT '',
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_donations_case ON donations(case_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_donations_donor ON donations(donor_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_donations_welfare ON donations(welfare_id, created_at);
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS donations;
    DROP TABLE IF EXISTS case_updates;
    DROP TABLE IF EXISTS cases;
    """
    )
