"""
careledger Database Schema
Accounts, appointments, clinical notes, and the append-only audit ledger.
"""

SCHEMA = """
-- =============================================================================
-- 1. PATIENTS - Patient accounts
-- =============================================================================
CREATE TABLE IF NOT EXISTS patients (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,

    -- Patient Info
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    date_of_birth TEXT NOT NULL,
    phone TEXT NOT NULL,
    gender TEXT NOT NULL,

    -- Address
    address TEXT,
    city TEXT,
    state TEXT,
    zip_code TEXT,

    -- Account
    status TEXT DEFAULT 'active',
    email_verified INTEGER DEFAULT 0,

    -- Metadata
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_patients_created ON patients(created_at);


-- =============================================================================
-- 2. CLINICIANS - Clinician accounts
-- =============================================================================
CREATE TABLE IF NOT EXISTS clinicians (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,

    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    license_number TEXT NOT NULL UNIQUE,
    specialization TEXT NOT NULL,
    bio TEXT,
    phone TEXT NOT NULL,

    status TEXT DEFAULT 'active',
    email_verified INTEGER DEFAULT 0,

    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_clinicians_specialization ON clinicians(specialization);


-- =============================================================================
-- 3. APPOINTMENTS
-- =============================================================================
CREATE TABLE IF NOT EXISTS appointments (
    id TEXT PRIMARY KEY,
    patient_id TEXT NOT NULL,
    clinician_id TEXT NOT NULL,

    -- Scheduling (UTC ISO-8601)
    scheduled_at TEXT NOT NULL,
    duration_minutes INTEGER DEFAULT 30,
    reason_for_visit TEXT,
    appointment_type TEXT DEFAULT 'in-person',

    -- Status: scheduled, cancelled, completed, no-show
    status TEXT DEFAULT 'scheduled',

    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,

    FOREIGN KEY (patient_id) REFERENCES patients(id) ON DELETE CASCADE,
    FOREIGN KEY (clinician_id) REFERENCES clinicians(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_appointments_patient ON appointments(patient_id);
CREATE INDEX IF NOT EXISTS idx_appointments_clinician ON appointments(clinician_id);
CREATE INDEX IF NOT EXISTS idx_appointments_scheduled ON appointments(scheduled_at);


-- =============================================================================
-- 4. CLINICAL_NOTES - One note per appointment
-- =============================================================================
CREATE TABLE IF NOT EXISTS clinical_notes (
    id TEXT PRIMARY KEY,
    appointment_id TEXT NOT NULL UNIQUE,
    patient_id TEXT NOT NULL,
    clinician_id TEXT NOT NULL,

    chief_complaint TEXT,
    history_of_present_illness TEXT,
    physical_exam TEXT,
    assessment TEXT,
    plan TEXT,
    medications TEXT,
    follow_up TEXT,

    -- Status: draft, finalized, signed
    status TEXT DEFAULT 'draft',

    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,

    FOREIGN KEY (appointment_id) REFERENCES appointments(id) ON DELETE CASCADE,
    FOREIGN KEY (patient_id) REFERENCES patients(id) ON DELETE CASCADE,
    FOREIGN KEY (clinician_id) REFERENCES clinicians(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_notes_patient ON clinical_notes(patient_id);
CREATE INDEX IF NOT EXISTS idx_notes_clinician ON clinical_notes(clinician_id);


-- =============================================================================
-- 5. AUDIT_LOGS - Append-only access and mutation ledger
-- =============================================================================
-- No foreign keys: the ledger must outlive the records it describes.
CREATE TABLE IF NOT EXISTS audit_logs (
    id TEXT PRIMARY KEY,
    actor_id TEXT NOT NULL,
    actor_role TEXT,
    action TEXT NOT NULL,
    resource_type TEXT NOT NULL,
    resource_id TEXT,
    old_values TEXT,   -- JSON object
    new_values TEXT,   -- JSON object
    ip_address TEXT,
    correlation_id TEXT,
    description TEXT NOT NULL,
    status TEXT NOT NULL,  -- success, failure
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_audit_actor ON audit_logs(actor_id);
CREATE INDEX IF NOT EXISTS idx_audit_resource ON audit_logs(resource_type, resource_id);
CREATE INDEX IF NOT EXISTS idx_audit_created ON audit_logs(created_at);
CREATE INDEX IF NOT EXISTS idx_audit_correlation ON audit_logs(correlation_id);

CREATE TRIGGER IF NOT EXISTS audit_logs_no_update
BEFORE UPDATE ON audit_logs
BEGIN
    SELECT RAISE(ABORT, 'audit_logs is append-only');
END;

CREATE TRIGGER IF NOT EXISTS audit_logs_no_delete
BEFORE DELETE ON audit_logs
BEGIN
    SELECT RAISE(ABORT, 'audit_logs is append-only');
END;
"""
