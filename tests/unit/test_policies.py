"""Unit tests for row-level security policies and database functions."""

import pytest

from docchat.db.functions import (
    CREATE_NEW_USER_TRIGGER_SQL,
    DROP_MATCH_FILE_SECTIONS_SQL,
    HANDLE_NEW_USER_SQL,
    MATCH_FILE_SECTIONS_SQL,
)
from docchat.db.policies import (
    IS_TEAM_MEMBER_SQL,
    POLICIES,
    RLS_TABLES,
    RLSPolicy,
    disable_rls_sql,
    enable_rls_sql,
    policies_for,
)


class TestRLSPolicy:
    """Tests for the RLSPolicy value type."""

    def test_create_sql_with_using(self):
        policy = RLSPolicy("users", "Users can update own user.", "update", using="auth.uid() = id")

        assert policy.create_sql() == (
            'create policy "Users can update own user." on users\n'
            "  for update using (auth.uid() = id)"
        )

    def test_create_sql_with_check(self):
        policy = RLSPolicy("users", "Users can insert their own user.", "insert", with_check="auth.uid() = id")

        assert policy.create_sql() == (
            'create policy "Users can insert their own user." on users\n'
            "  for insert with check (auth.uid() = id)"
        )

    def test_drop_sql(self):
        policy = RLSPolicy("users", "Public users are viewable by everyone.", "select", using="true")

        assert policy.drop_sql() == 'drop policy if exists "Public users are viewable by everyone." on users'

    def test_unknown_command_rejected(self):
        with pytest.raises(ValueError, match="Unsupported"):
            RLSPolicy("users", "bad", "truncate", using="true")

    def test_insert_with_using_rejected(self):
        with pytest.raises(ValueError):
            RLSPolicy("users", "bad", "insert", using="true")

    def test_expression_required(self):
        with pytest.raises(ValueError):
            RLSPolicy("users", "bad", "select")


class TestPolicies:
    """Tests for the policy set."""

    def test_every_table_has_rls(self):
        assert RLS_TABLES == [
            "users",
            "teams",
            "memberships",
            "projects",
            "domains",
            "tokens",
            "files",
            "file_sections",
        ]

    def test_user_policies(self):
        users = {policy.command: policy for policy in policies_for("users")}

        assert users["select"].using == "true"
        assert users["insert"].with_check == "auth.uid() = id"
        assert users["update"].using == "auth.uid() = id"

    def test_policy_names_unique_per_table(self):
        keys = [(policy.table, policy.name) for policy in POLICIES]
        assert len(keys) == len(set(keys))

    def test_team_scoped_tables_use_membership_check(self):
        for table in RLS_TABLES:
            if table == "users" or table == "memberships":
                continue
            select_policies = [p for p in policies_for(table) if p.command == "select"]
            assert select_policies, table
            assert "is_team_member" in select_policies[0].using

    def test_project_writes_require_admin(self):
        writes = [p for p in policies_for("projects") if p.command != "select"]

        assert {p.command for p in writes} == {"insert", "update", "delete"}
        for policy in writes:
            assert "'admin'" in (policy.using or policy.with_check)

    def test_enable_and_disable_sql(self):
        assert enable_rls_sql("files") == "alter table files enable row level security"
        assert disable_rls_sql("files") == "alter table files disable row level security"

    def test_is_team_member_function(self):
        assert "public.is_team_member" in IS_TEAM_MEMBER_SQL
        assert "security definer" in IS_TEAM_MEMBER_SQL
        assert "auth.uid()" in IS_TEAM_MEMBER_SQL


class TestFunctions:
    """Tests for database function definitions."""

    def test_match_file_sections_signature(self):
        assert "match_file_sections(" in MATCH_FILE_SECTIONS_SQL
        assert "embedding vector(1536)" in MATCH_FILE_SECTIONS_SQL
        assert "returns table (path text, content text, token_count int, similarity float)" in MATCH_FILE_SECTIONS_SQL

    def test_match_file_sections_query(self):
        sql = MATCH_FILE_SECTIONS_SQL

        assert "(file_sections.embedding <#> embedding) * -1 as similarity" in sql
        assert "length(file_sections.content) >= min_content_length" in sql
        assert "(file_sections.embedding <#> embedding) * -1 > match_threshold" in sql
        assert "order by file_sections.embedding <#> embedding" in sql
        assert "limit match_count" in sql

    def test_drop_matches_signature(self):
        assert DROP_MATCH_FILE_SECTIONS_SQL == (
            "drop function if exists match_file_sections(vector(1536), float, int, int)"
        )

    def test_new_user_trigger(self):
        assert "insert into public.users (id, full_name, email, avatar_url)" in HANDLE_NEW_USER_SQL
        assert "after insert on auth.users" in CREATE_NEW_USER_TRIGGER_SQL
        assert "public.handle_new_user()" in CREATE_NEW_USER_TRIGGER_SQL
