"""Unit tests for file indexing."""

from sqlalchemy import func, select

from docchat.db.models import File, FileSection
from docchat.rag.indexer import FileIndexer
from docchat.rag.search import SectionSearchService

DOC = """# Getting started

Install the package and create a project.

## Custom domains

Add the domains allowed to use your public project key.
"""


def _section_count(session):
    return session.scalar(select(func.count()).select_from(FileSection))


class TestFileIndexer:
    """Tests for FileIndexer."""

    def test_index_new_file(self, db_session, seed, fake_embedding_service):
        indexer = FileIndexer(db_session, fake_embedding_service)

        file = indexer.index_file(seed.project_a.id, "docs/start.md", DOC, meta={"title": "Start"})

        assert file.id is not None
        assert file.path == "docs/start.md"
        assert file.meta == {"title": "Start"}
        assert [s.content.splitlines()[0] for s in file.sections] == [
            "# Getting started",
            "## Custom domains",
        ]
        assert all(s.token_count > 0 for s in file.sections)
        fake_embedding_service.embed_batch.assert_called_once()

    def test_reindex_replaces_sections(self, db_session, seed, fake_embedding_service):
        indexer = FileIndexer(db_session, fake_embedding_service)
        first = indexer.index_file(seed.project_a.id, "docs/start.md", DOC)

        second = indexer.index_file(seed.project_a.id, "docs/start.md", "# Only one section\n\nShort.")

        assert second.id == first.id
        assert len(second.sections) == 1
        assert _section_count(db_session) == 1
        assert db_session.scalar(select(func.count()).select_from(File)) == 1

    def test_same_path_in_other_project_is_separate(self, db_session, seed, fake_embedding_service):
        indexer = FileIndexer(db_session, fake_embedding_service)

        a = indexer.index_file(seed.project_a.id, "index.md", DOC)
        b = indexer.index_file(seed.project_b.id, "index.md", DOC)

        assert a.id != b.id
        assert _section_count(db_session) == 4

    def test_remove_file_cascades_to_sections(self, db_session, seed, fake_embedding_service):
        indexer = FileIndexer(db_session, fake_embedding_service)
        indexer.index_file(seed.project_a.id, "docs/start.md", DOC)

        assert indexer.remove_file(seed.project_a.id, "docs/start.md") is True
        assert _section_count(db_session) == 0
        assert indexer.remove_file(seed.project_a.id, "docs/start.md") is False

    def test_indexed_sections_are_searchable(self, db_session, seed, config, fake_embedding_service, make_embedding):
        indexer = FileIndexer(db_session, fake_embedding_service)
        indexer.index_file(seed.project_a.id, "docs/start.md", DOC)

        matches = SectionSearchService(db_session, config).match_file_sections(
            make_embedding(1.0), 0.5, 10, 30, project_id=seed.project_a.id
        )

        assert len(matches) == 2
        assert {m.path for m in matches} == {"docs/start.md"}
        assert all(m.similarity == 1.0 for m in matches)
