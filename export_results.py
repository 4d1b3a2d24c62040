"""Export one page of search results to CSV."""
import asyncio
import csv
import logging
import sys
from repointel.application.engine import RepositoryIntelligenceEngine
from repointel.config import load_settings
from repointel.domain.exceptions import SearchFailed
from repointel.domain.models import SearchResult


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

HEADER = [
    'id', 'full_name', 'language', 'stars', 'forks', 'open_issues',
    'quality_score', 'contributor_count', 'updated_at', 'html_url'
]


def write_csv(result: SearchResult, output_file: str) -> int:
    """Write search results to a CSV file.

    Args:
        result: Search result to export
        output_file: Path to output CSV file

    Returns:
        Number of rows written
    """
    with open(output_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(HEADER)

        for repo in result.repositories:
            writer.writerow([
                repo.id,
                repo.full_name,
                repo.language or '',
                repo.stars,
                repo.forks,
                repo.open_issues,
                repo.quality_score,
                '' if repo.contributor_count is None else repo.contributor_count,
                repo.updated_at.isoformat(),
                repo.html_url,
            ])

    return len(result.repositories)


async def export_to_csv(query: str, output_file: str = "repositories.csv"):
    """Search GitHub and export the ranked page to CSV."""
    settings = load_settings()
    engine = RepositoryIntelligenceEngine.from_settings(settings)

    try:
        result = await engine.search(query, timeout=settings.request_timeout_seconds)
        row_count = write_csv(result, output_file)
        logger.info(f"Exported {row_count} repositories to {output_file}")
    except SearchFailed as e:
        logger.error(f"Error exporting search results: {e}")
        sys.exit(1)
    finally:
        await engine.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        logger.error("Usage: python export_results.py <query> [output.csv]")
        sys.exit(1)
    output_file = sys.argv[2] if len(sys.argv) > 2 else "repositories.csv"
    asyncio.run(export_to_csv(sys.argv[1], output_file))
