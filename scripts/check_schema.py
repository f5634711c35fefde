#!/usr/bin/env python3
# =============================================================================
# scripts/check_schema.py - Print the Database Schema Report
# =============================================================================
# Shows which of the tables and columns the API relies on exist in the
# connected Supabase project.
#
# Usage:
#   python scripts/check_schema.py
#
# Exit codes:
#   0 - report printed
#   1 - missing credentials
# =============================================================================

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from supabase import Client, create_client

from lib.diagnostics import schema_report
from lib.schema import ColumnProber


def status_label(exists: bool | None) -> str:
    if exists is None:
        return "? unknown"
    return "OK" if exists else "MISSING"


def format_report(report: dict) -> list[str]:
    """Human-readable lines for a schema_report() result."""
    lines = []
    for table, entry in report.items():
        lines.append(f"{table}: {status_label(entry['exists'])}")
        for column, exists in entry["columns"].items():
            lines.append(f"  {table}.{column}: {status_label(exists)}")
        if entry["error"]:
            lines.append(f"  error: {entry['error']}")
    return lines


def main(client: Client | None = None) -> int:
    """Print the report; returns the process exit code."""
    if client is None:
        load_dotenv()
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_SERVICE_KEY")
        if not url or not key:
            print("Error: Missing Supabase credentials. Set SUPABASE_URL and SUPABASE_SERVICE_KEY in .env")
            return 1
        client = create_client(url, key)

    print("Checking database schema...")
    print()
    for line in format_report(schema_report(ColumnProber(client))):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
