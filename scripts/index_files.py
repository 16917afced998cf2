"""
Index Documentation Files for a Project

This script:
1. Walks a directory for Markdown and text files
2. Splits each file into sections
3. Generates embeddings through LiteLLM
4. Stores files and sections in the database (replacing previous sections)

Usage:
    # Index a docs folder into a project
    python scripts/index_files.py --project-id <uuid> ./docs

    # Only index some extensions
    python scripts/index_files.py --project-id <uuid> ./docs --ext .md --ext .mdx

    # Remove files from the project that no longer exist on disk
    python scripts/index_files.py --project-id <uuid> ./docs --prune
"""

import sys
import uuid
import logging
import argparse
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from sqlalchemy import select
from tqdm import tqdm

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from docchat.db.models import File, Project
from docchat.db.session import SessionLocal
from docchat.rag.config import get_search_config
from docchat.rag.embedding_service import get_embedding_service
from docchat.rag.indexer import FileIndexer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment
load_dotenv()

DEFAULT_EXTENSIONS = [".md", ".mdx", ".txt"]


def find_files(root: Path, extensions: List[str]) -> List[Path]:
    """Return files under ``root`` with one of ``extensions``, sorted by path."""
    extensions = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
    return sorted(
        p for p in root.rglob("*")
        if p.is_file() and p.suffix.lower() in extensions
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Index documentation files into a project")
    parser.add_argument("directory", type=Path, help="Directory to index")
    parser.add_argument("--project-id", required=True, help="Project UUID")
    parser.add_argument(
        "--ext",
        action="append",
        dest="extensions",
        help=f"File extension to include (default: {' '.join(DEFAULT_EXTENSIONS)})",
    )
    parser.add_argument(
        "--prune",
        action="store_true",
        help="Delete indexed files that are no longer in the directory",
    )
    args = parser.parse_args()

    if not args.directory.is_dir():
        logger.error(f"Not a directory: {args.directory}")
        return 1

    try:
        project_id = uuid.UUID(args.project_id)
    except ValueError:
        logger.error(f"Invalid project id: {args.project_id}")
        return 1

    config = get_search_config()
    session = SessionLocal()

    try:
        if session.get(Project, project_id) is None:
            logger.error(f"Project not found: {project_id}")
            return 1

        indexer = FileIndexer(session, get_embedding_service(config), config)
        paths = find_files(args.directory, args.extensions or DEFAULT_EXTENSIONS)
        logger.info(f"Found {len(paths)} files in {args.directory}")

        seen = set()
        indexed = set()
        failed = 0
        for path in tqdm(paths, desc="Indexing"):
            relative = path.relative_to(args.directory).as_posix()
            seen.add(relative)
            try:
                content = path.read_text(encoding="utf-8")
                indexer.index_file(project_id, relative, content, meta={"source": "cli"})
                indexed.add(relative)
            except Exception as e:
                session.rollback()
                failed += 1
                logger.error(f"Failed to index {relative}: {e}")

        if args.prune:
            stored = session.scalars(
                select(File.path).where(File.project_id == project_id)
            ).all()
            for stale in sorted(set(stored) - seen):
                indexer.remove_file(project_id, stale)

        logger.info(f"Indexed {len(indexed)} files ({failed} failed)")
        return 0 if failed == 0 else 2

    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
