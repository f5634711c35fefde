# =============================================================================
# tests/test_run_sql.py - SQL Batch Script Tests
# =============================================================================

from scripts.run_sql import BatchResult, execute_statements, main, split_statements
from tests.fakes import FakeSupabase, api_error

SQL = """
-- recreate the profile views
DROP VIEW IF EXISTS teacher_profiles;
CREATE VIEW teacher_profiles AS SELECT id FROM teachers; -- trailing comment

;
GRANT SELECT ON teacher_profiles TO authenticated;
"""


class TestSplitStatements:
    def test_comments_and_empty_statements_removed(self):
        assert split_statements(SQL) == [
            "DROP VIEW IF EXISTS teacher_profiles",
            "CREATE VIEW teacher_profiles AS SELECT id FROM teachers",
            "GRANT SELECT ON teacher_profiles TO authenticated",
        ]


class TestExecuteStatements:
    def test_failures_do_not_stop_batch(self):
        """A failing statement is recorded and the rest still run."""
        def exec_sql(params):
            if params["sql"].startswith("CREATE"):
                raise api_error("42P07", "relation already exists")
            return None

        db = FakeSupabase(rpcs={"exec_sql": exec_sql})

        result = execute_statements(db, split_statements(SQL))

        assert result.executed == 2
        assert [number for number, _ in result.failed] == [2]
        assert result.total == 3
        assert len(db.calls_to("exec_sql")) == 3

    def test_empty_batch(self):
        assert execute_statements(FakeSupabase(), []) == BatchResult()


class TestMain:
    """Exit codes of the script."""

    def test_success(self, tmp_path):
        path = tmp_path / "fix.sql"
        path.write_text(SQL, encoding="utf-8")
        db = FakeSupabase(rpcs={"exec_sql": None})

        assert main([str(path)], client=db) == 0
        assert db.calls_to("exec_sql")[0].payload == {"sql": "DROP VIEW IF EXISTS teacher_profiles"}

    def test_statement_errors_still_exit_zero(self, tmp_path):
        path = tmp_path / "fix.sql"
        path.write_text(SQL, encoding="utf-8")

        # exec_sql RPC missing entirely: every statement fails, batch completes
        assert main([str(path)], client=FakeSupabase()) == 0

    def test_no_files(self):
        assert main([], client=FakeSupabase()) == 1

    def test_missing_credentials(self, tmp_path, monkeypatch):
        monkeypatch.setattr("scripts.run_sql.load_client", lambda: None)
        assert main([str(tmp_path / "fix.sql")]) == 1

    def test_unreadable_file(self, tmp_path):
        assert main([str(tmp_path / "missing.sql")], client=FakeSupabase()) == 1
