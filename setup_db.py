#!/usr/bin/env python3
"""Check the CareerPath Supabase tables.

Verifies that the required tables exist and prints any missing schema
that needs to be created via the Supabase SQL Editor.

Usage:
    python setup_db.py
"""

import os
import sys

from dotenv import load_dotenv
from supabase import create_client

load_dotenv()

# The SQL to run in Supabase SQL Editor if tables don't exist yet.
SETUP_SQL = """\
-- ── profiles ─────────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS profiles (
    id                UUID DEFAULT gen_random_uuid() PRIMARY KEY,
    name              TEXT,
    skills            TEXT[] NOT NULL DEFAULT '{}',
    preferred_track   TEXT,
    experience_level  TEXT,
    created_at        TIMESTAMPTZ NOT NULL DEFAULT now()
);

-- ── jobs ─────────────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS jobs (
    id                UUID DEFAULT gen_random_uuid() PRIMARY KEY,
    title             TEXT NOT NULL,
    company           TEXT NOT NULL,
    location          TEXT NOT NULL,
    required_skills   TEXT[] NOT NULL DEFAULT '{}',
    experience_level  TEXT NOT NULL,
    job_type          TEXT,
    track             TEXT NOT NULL,
    description       TEXT NOT NULL DEFAULT '',
    salary            TEXT,
    application_link  TEXT,
    created_at        TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_jobs_track ON jobs (lower(track));

-- ── resources ────────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS resources (
    id              UUID DEFAULT gen_random_uuid() PRIMARY KEY,
    title           TEXT NOT NULL,
    platform        TEXT NOT NULL,
    url             TEXT NOT NULL,
    related_skills  TEXT[] NOT NULL DEFAULT '{}',
    cost            TEXT NOT NULL CHECK (cost IN ('Free', 'Paid')),
    description     TEXT,
    duration        TEXT,
    level           TEXT CHECK (level IN ('Beginner', 'Intermediate', 'Advanced')),
    rating          NUMERIC CHECK (rating BETWEEN 0 AND 5),
    created_at      TIMESTAMPTZ NOT NULL DEFAULT now()
);

-- ── chat_sessions ────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS chat_sessions (
    session_key  TEXT PRIMARY KEY,
    briefing     TEXT NOT NULL,
    transcript   JSONB NOT NULL DEFAULT '[]',
    created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_chat_sessions_updated ON chat_sessions (updated_at);
"""

REQUIRED_TABLES = ["profiles", "jobs", "resources", "chat_sessions"]


def main() -> int:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")

    if not url or not key:
        print("ERROR: Set SUPABASE_URL and SUPABASE_KEY environment variables.")
        return 1

    client = create_client(url, key)

    print("Checking Supabase tables …\n")
    all_ok = True
    for table in REQUIRED_TABLES:
        try:
            client.table(table).select("*").limit(1).execute()
            print(f"  ✓ {table}")
        except Exception as e:
            print(f"  ✗ {table}  — {e}")
            all_ok = False

    if all_ok:
        print("\nAll tables exist. You're good to go!")
        return 0

    print("\n" + "=" * 60)
    print("Some tables are missing. Run the following SQL in the")
    print("Supabase SQL Editor (https://supabase.com/dashboard):\n")
    print(SETUP_SQL)
    print("=" * 60)
    return 1


if __name__ == "__main__":
    sys.exit(main())
