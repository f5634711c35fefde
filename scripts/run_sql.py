#!/usr/bin/env python3
# =============================================================================
# scripts/run_sql.py - Apply SQL Fix Files
# =============================================================================
# Runs one or more .sql files against the hosted database through the
# `exec_sql` RPC, one statement at a time.
#
# Statements are found naively: `--` comments are stripped and the text is
# split on ";". Don't use it for function bodies containing semicolons.
# A failing statement is logged and the batch continues.
#
# Usage:
#   python scripts/run_sql.py fixes/fix-views.sql [more.sql ...]
#
# Exit codes:
#   0 - all files processed (individual statements may have failed)
#   1 - missing credentials, no files given, or an unreadable file
# =============================================================================

import logging
import os
import re
import sys
from dataclasses import dataclass, field

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from supabase import Client, create_client

from lib.supabase_client import error_code

logger = logging.getLogger("run_sql")

COMMENT_PATTERN = re.compile(r"--.*$", re.MULTILINE)


@dataclass
class BatchResult:
    """Outcome of running one file."""
    executed: int = 0
    failed: list[tuple[int, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.executed + len(self.failed)


def split_statements(sql: str) -> list[str]:
    """Strip `--` comments, split on ';', drop empty statements."""
    without_comments = COMMENT_PATTERN.sub("", sql)
    return [statement.strip() for statement in without_comments.split(";") if statement.strip()]


def execute_statements(client: Client, statements: list[str]) -> BatchResult:
    """Execute statements via exec_sql; failures are logged and skipped."""
    result = BatchResult()

    for number, statement in enumerate(statements, start=1):
        logger.info(f"Executing statement {number}/{len(statements)}...")
        try:
            client.rpc("exec_sql", {"sql": statement}).execute()
        except Exception as e:
            code = error_code(e)
            logger.error(f"Statement {number} failed{f' [{code}]' if code else ''}: {e}")
            logger.error(f"Statement: {statement}")
            result.failed.append((number, str(e)))
            continue
        result.executed += 1

    return result


def load_client() -> Client | None:
    """Client from SUPABASE_URL + SUPABASE_SERVICE_KEY, or None if unset."""
    load_dotenv()
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_KEY")
    if not url or not key:
        return None
    return create_client(url, key)


def main(argv: list[str] | None = None, client: Client | None = None) -> int:
    """Run every file named in argv; returns the process exit code."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    paths = sys.argv[1:] if argv is None else argv

    if not paths:
        logger.error("Usage: run_sql.py FILE.sql [FILE.sql ...]")
        return 1

    client = client or load_client()
    if client is None:
        logger.error("Missing Supabase credentials. Set SUPABASE_URL and SUPABASE_SERVICE_KEY in .env")
        return 1

    for path in paths:
        try:
            with open(path, encoding="utf-8") as handle:
                sql = handle.read()
        except OSError as e:
            logger.error(f"Cannot read {path}: {e}")
            return 1

        statements = split_statements(sql)
        logger.info(f"{path}: found {len(statements)} SQL statements")
        result = execute_statements(client, statements)
        logger.info(f"{path}: {result.executed}/{result.total} statements succeeded, {len(result.failed)} failed")

    return 0


if __name__ == "__main__":
    sys.exit(main())
