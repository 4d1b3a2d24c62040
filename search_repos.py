"""Main entry point: search GitHub and print ranked repositories.

Usage:
    python search_repos.py <query> [page]
"""
import asyncio
import logging
import sys
from repointel.application.engine import RepositoryIntelligenceEngine
from repointel.config import load_settings
from repointel.domain.exceptions import SearchFailed
from repointel.domain.models import SearchFilters


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Execute a single search."""
    if len(sys.argv) < 2:
        logger.error("Usage: python search_repos.py <query> [page]")
        sys.exit(1)

    query = sys.argv[1]
    page = int(sys.argv[2]) if len(sys.argv) > 2 else 1

    settings = load_settings()
    if not settings.github_token:
        logger.warning("GITHUB_TOKEN not set; enrichment lookups will degrade")

    engine = RepositoryIntelligenceEngine.from_settings(settings)

    try:
        result = await engine.search(
            query,
            SearchFilters(archived=False),
            page=page,
            timeout=settings.request_timeout_seconds
        )

        logger.info("=" * 50)
        logger.info(f"Results for {query!r} (page {page}, {result.total_count} total):")
        for repo in result.repositories:
            logger.info(f"  [{repo.quality_score:>3}] {repo.full_name} ({repo.stars} stars)")
        if result.has_more:
            logger.info(f"More results: python search_repos.py {query!r} {result.next_page}")
        logger.info("=" * 50)

    except SearchFailed as e:
        logger.error(f"Search failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
