"""Display trending repositories and the insights derived from them."""
import asyncio
import logging
import sys
from repointel.application.engine import RepositoryIntelligenceEngine
from repointel.config import load_settings
from repointel.domain.exceptions import SearchFailed
from repointel.domain.models import Timeframe


logging.basicConfig(level=logging.WARNING)


def print_section(title: str):
    """Print a section header."""
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


async def display_trending(timeframe: Timeframe, language=None):
    """Fetch the trending window and print its analysis."""
    engine = RepositoryIntelligenceEngine.from_settings(load_settings())
    try:
        analysis = await engine.get_trending(timeframe, language)
    finally:
        await engine.close()

    insights = analysis.insights

    print_section(f"Trending ({timeframe.value}, {language or 'all languages'})")
    print(f"Repositories: {len(analysis.repositories)}")
    print(f"Average stars: {insights.average_stars:,}")
    print(f"Average quality: {insights.average_quality}")
    print(f"Average contributors: {insights.average_contributors}")

    print_section("Top Repositories")
    print(f"{'Repository':<40} {'Stars':>10} {'Quality':>8}")
    print("-" * 60)
    for repo in analysis.repositories[:10]:
        print(f"{repo.full_name:<40} {repo.stars:>10,} {repo.quality_score:>8}")

    print_section("Top Languages")
    for entry in insights.top_languages:
        print(f"{entry.language:<30} {entry.count:>10}")

    print_section("Emerging Topics")
    for entry in insights.emerging_topics:
        print(f"{entry.topic:<30} {entry.momentum:>10}")


if __name__ == "__main__":
    try:
        timeframe = Timeframe(sys.argv[1]) if len(sys.argv) > 1 else Timeframe.WEEKLY
        language = sys.argv[2] if len(sys.argv) > 2 else None
        asyncio.run(display_trending(timeframe, language))
    except (ValueError, SearchFailed) as e:
        print(f"Error: {e}")
        sys.exit(1)
