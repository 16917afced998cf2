"""
Row-level security policies.

Policies are kept as values so the migration can create and drop them, and
so the predicates can be inspected in tests. The ``users`` policies are the
public-profile rules; every other table is scoped to the teams the current
``auth.uid()`` is a member of, through ``is_team_member``.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class RLSPolicy:
    """A single ``create policy`` statement."""
    table: str
    name: str
    command: str
    using: Optional[str] = None
    with_check: Optional[str] = None

    def __post_init__(self):
        if self.command not in ("select", "insert", "update", "delete", "all"):
            raise ValueError(f"Unsupported policy command: {self.command}")
        if self.command == "insert" and self.using is not None:
            raise ValueError("Insert policies only accept a with check expression")
        if self.using is None and self.with_check is None:
            raise ValueError(f"Policy '{self.name}' needs a using or with check expression")

    def create_sql(self) -> str:
        sql = f'create policy "{self.name}" on {self.table}\n  for {self.command}'
        if self.using is not None:
            sql += f" using ({self.using})"
        if self.with_check is not None:
            sql += f" with check ({self.with_check})"
        return sql

    def drop_sql(self) -> str:
        return f'drop policy if exists "{self.name}" on {self.table}'


IS_TEAM_MEMBER_SQL = """
create or replace function public.is_team_member(
  check_team_id uuid,
  member_type membership_type default null
)
returns boolean
language sql
security definer
stable
as $$
  select exists (
    select 1 from public.memberships
    where memberships.team_id = check_team_id
      and memberships.user_id = auth.uid()
      and (member_type is null or memberships.type = member_type)
  );
$$;
"""

DROP_IS_TEAM_MEMBER_SQL = "drop function if exists public.is_team_member(uuid, membership_type)"

_PROJECT_MEMBER = (
    "exists (select 1 from public.projects p "
    "where p.id = project_id and public.is_team_member(p.team_id))"
)
_PROJECT_ADMIN = (
    "exists (select 1 from public.projects p "
    "where p.id = project_id and public.is_team_member(p.team_id, 'admin'))"
)

POLICIES: List[RLSPolicy] = [
    # Users
    RLSPolicy("users", "Public users are viewable by everyone.", "select", using="true"),
    RLSPolicy("users", "Users can insert their own user.", "insert", with_check="auth.uid() = id"),
    RLSPolicy("users", "Users can update own user.", "update", using="auth.uid() = id"),

    # Teams
    RLSPolicy("teams", "Users can only see teams they are members of.", "select",
              using="public.is_team_member(id)"),
    RLSPolicy("teams", "Users can create teams.", "insert",
              with_check="auth.uid() = created_by"),
    RLSPolicy("teams", "Team admins can update teams.", "update",
              using="public.is_team_member(id, 'admin')"),

    # Memberships
    RLSPolicy("memberships", "Users can only see their own memberships.", "select",
              using="auth.uid() = user_id"),
    RLSPolicy("memberships", "Team admins can manage memberships.", "all",
              using="public.is_team_member(team_id, 'admin')"),

    # Projects
    RLSPolicy("projects", "Users can only see projects of their teams.", "select",
              using="public.is_team_member(team_id)"),
    RLSPolicy("projects", "Team admins can insert projects.", "insert",
              with_check="public.is_team_member(team_id, 'admin')"),
    RLSPolicy("projects", "Team admins can update projects.", "update",
              using="public.is_team_member(team_id, 'admin')"),
    RLSPolicy("projects", "Team admins can delete projects.", "delete",
              using="public.is_team_member(team_id, 'admin')"),

    # Domains
    RLSPolicy("domains", "Users can only see domains of their projects.", "select",
              using=_PROJECT_MEMBER),
    RLSPolicy("domains", "Team admins can manage domains.", "all",
              using=_PROJECT_ADMIN),

    # Tokens
    RLSPolicy("tokens", "Users can only see tokens of their projects.", "select",
              using=_PROJECT_MEMBER),
    RLSPolicy("tokens", "Team admins can manage tokens.", "all",
              using=_PROJECT_ADMIN),

    # Files
    RLSPolicy("files", "Users can only see files of their projects.", "select",
              using=_PROJECT_MEMBER),

    # File sections
    RLSPolicy("file_sections", "Users can only see sections of their files.", "select",
              using=(
                  "exists (select 1 from public.files f "
                  "join public.projects p on p.id = f.project_id "
                  "where f.id = file_id and public.is_team_member(p.team_id))"
              )),
]

RLS_TABLES: List[str] = list(dict.fromkeys(policy.table for policy in POLICIES))


def enable_rls_sql(table: str) -> str:
    return f"alter table {table} enable row level security"


def disable_rls_sql(table: str) -> str:
    return f"alter table {table} disable row level security"


def policies_for(table: str) -> List[RLSPolicy]:
    """Return the policies defined on ``table``, in creation order."""
    return [policy for policy in POLICIES if policy.table == table]
