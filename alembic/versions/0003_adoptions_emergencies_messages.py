from alembic import op

revision = "0003_adoptions_emergencies_messages"
down_revision = "0002_cases_donations"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS adoptions (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      name TEXT NOT NULL,
      type TEXT NOT NULL CHECK (type IN ('Dog','Cat','Other')),
      breed TEXT NOT NULL,
      age TEXT NOT NULL,
      gender TEXT NOT NULL CHECK (gender IN ('Male','Female')),
      size TEXT NOT NULL CHECK (size IN ('Small','Medium','Large')),
      description TEXT NOT NULL,
      images TEXT[] NOT NULL DEFAULT '{}',
      location TEXT NOT NULL,
      health TEXT NULL,
      behavior TEXT NULL,
      status TEXT NOT NULL DEFAULT 'available'
        CHECK (status IN ('available','reserved','adopted')),
      posted_by UUID NOT NULL REFERENCES welfare_organizations(id) ON DELETE CASCADE,
      adopted_by UUID NULL REFERENCES donors(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CHECK ((status = 'adopted') = (adopted_by IS NOT NULL))
    );
    CREATE INDEX IF NOT EXISTS idx_adoptions_status ON adoptions(status, created_at);

    CREATE TABLE IF NOT EXISTS adoption_requests (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      adoption_id UUID NOT NULL REFERENCES adoptions(id) ON DELETE RESTRICT,
      donor_id UUID NOT NULL REFERENCES donors(id) ON DELETE RESTRICT,
      donor_name TEXT NOT NULL,
      contact_number TEXT NOT NULL,
      email TEXT NOT NULL,
      reason TEXT NOT NULL,
      preferred_contact TEXT NOT NULL,
      status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN
        ('pending','approved','rejected','payment pending','under review','completed')),
      payment_proof TEXT NULL,
      payment_amount NUMERIC(12,2) NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_adoption_requests_donor ON adoption_requests(donor_id, created_at);
    -- at most one completed request per listing
    CREATE UNIQUE INDEX IF NOT EXISTS uq_adoption_requests_completed
      ON adoption_requests(adoption_id) WHERE status = 'completed';
    -- one open request per donor per listing
    CREATE UNIQUE INDEX IF NOT EXISTS uq_adoption_requests_open
      ON adoption_requests(adoption_id, donor_id)
      WHERE status NOT IN ('rejected','completed');

    CREATE TABLE IF NOT EXISTS emergencies (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      name TEXT NOT NULL,
      phone TEXT NOT NULL,
      email TEXT NOT NULL DEFAULT '',
      animal_type TEXT NOT NULL,
      condition TEXT NOT NULL,
      location TEXT NOT NULL,
      description TEXT NOT NULL,
      status TEXT NOT NULL DEFAULT 'New'
        CHECK (status IN ('New','Assigned','In Progress','Resolved')),
      assigned_to UUID NULL REFERENCES welfare_organizations(id) ON DELETE SET NULL,
      medical_issue TEXT NULL,
      estimated_cost NUMERIC(12,2) NULL,
      treatment_plan TEXT NULL,
      images TEXT[] NOT NULL DEFAULT '{}',
      converted_to_case BOOLEAN NOT NULL DEFAULT FALSE,
      case_id UUID NULL REFERENCES cases(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CHECK (NOT converted_to_case OR case_id IS NOT NULL)
    );
    CREATE INDEX IF NOT EXISTS idx_emergencies_open ON emergencies(created_at)
      WHERE NOT converted_to_case AND status <> 'Resolved';

    ALTER TABLE cases
      ADD CONSTRAINT fk_cases_emergency
      FOREIGN KEY (emergency_id) REFERENCES emergencies(id) ON DELETE SET NULL;
    CREATE UNIQUE INDEX IF NOT EXISTS uq_cases_emergency ON cases(emergency_id)
      WHERE emergency_id IS NOT NULL;

    CREATE TABLE IF NOT EXISTS messages (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      from_id UUID NOT NULL,
      to_id UUID NOT NULL,
      title TEXT NOT NULL,
      content TEXT NOT NULL,
      related_case UUID NULL REFERENCES cases(id) ON DELETE SET NULL,
      is_read BOOLEAN NOT NULL DEFAULT FALSE,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_messages_to ON messages(to_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_messages_from ON messages(from_id, created_at);
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS messages;
    ALTER TABLE cases DROP CONSTRAINT IF EXISTS fk_cases_emergency;
    DROP INDEX IF EXISTS uq_cases_emergency;
    DROP TABLE IF EXISTS emergencies;
    DROP TABLE IF EXISTS adoption_requests;
    DROP TABLE IF EXISTS adoptions;
    """
    )
