"""Database-side functions and triggers created by the migrations."""

from .models import EMBEDDING_DIMENSION

# OpenAI embeddings are normalized to length 1, so cosine similarity and dot
# product rank identically. pgvector's <#> returns the negative inner product.
MATCH_FILE_SECTIONS_SQL = f"""
create or replace function match_file_sections(
  embedding vector({EMBEDDING_DIMENSION}),
  match_threshold float,
  match_count int,
  min_content_length int
)
returns table (path text, content text, token_count int, similarity float)
language plpgsql
as $$
#variable_conflict use_variable
begin
  return query
  select
    files.path,
    file_sections.content,
    file_sections.token_count,
    (file_sections.embedding <#> embedding) * -1 as similarity
  from file_sections
  join files
    on file_sections.file_id = files.id
  where length(file_sections.content) >= min_content_length
  and (file_sections.embedding <#> embedding) * -1 > match_threshold
  order by file_sections.embedding <#> embedding
  limit match_count;
end;
$$;
"""

DROP_MATCH_FILE_SECTIONS_SQL = (
    f"drop function if exists match_file_sections(vector({EMBEDDING_DIMENSION}), float, int, int)"
)

HANDLE_NEW_USER_SQL = """
create or replace function public.handle_new_user()
returns trigger as $$
begin
  insert into public.users (id, full_name, email, avatar_url)
  values (
    new.id,
    new.raw_user_meta_data->>'full_name',
    new.raw_user_meta_data->>'email',
    new.raw_user_meta_data->>'avatar_url'
  );
  return new;
end;
$$ language plpgsql security definer;
"""

CREATE_NEW_USER_TRIGGER_SQL = """
create trigger on_auth_user_created
  after insert on auth.users
  for each row execute procedure public.handle_new_user();
"""

DROP_NEW_USER_TRIGGER_SQL = "drop trigger if exists on_auth_user_created on auth.users"
DROP_HANDLE_NEW_USER_SQL = "drop function if exists public.handle_new_user()"
