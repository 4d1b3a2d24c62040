"""Verify that the setup is correct before running searches."""
import asyncio
import os
import sys
import aiohttp
from dotenv import load_dotenv

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')

RATE_LIMIT_URL = "https://api.github.com/rate_limit"


def check_environment_variables():
    """Check required environment variables."""
    print("Checking environment variables...")

    required_vars = ["GITHUB_TOKEN"]
    optional_vars = [
        "SEARCH_PAGE_SIZE", "CACHE_TTL_SECONDS", "RATE_LIMIT_MAX_QUOTA",
        "RATE_LIMIT_LOW_WATER", "RATE_LIMIT_MIN_INTERVAL_MS", "ENRICH_RESULTS", "EXCLUDED_USERS"
    ]

    missing = [var for var in required_vars if not os.getenv(var)]
    if missing:
        print(f"❌ Missing required environment variables: {', '.join(missing)}")
        return False

    print("✅ Required environment variables set")

    for var in optional_vars:
        if os.getenv(var):
            print(f"   {var}: {os.getenv(var)}")

    return True


def check_github_token():
    """Verify GitHub token format."""
    print("\nChecking GitHub token...")

    token = os.getenv("GITHUB_TOKEN")
    if not token:
        print("❌ GITHUB_TOKEN not set")
        return False

    if token.startswith("ghp_") or token.startswith("github_pat_"):
        print("✅ GitHub token format looks valid")
        print(f"   Token prefix: {token[:10]}...")
    else:
        print("⚠️  Token format may be invalid (expected ghp_* or github_pat_*)")
    return True


async def fetch_rate_limit(token: str) -> dict:
    headers = {"Accept": "application/vnd.github+json", "Authorization": f"Bearer {token}"}
    async with aiohttp.ClientSession(headers=headers) as session:
        async with session.get(RATE_LIMIT_URL, timeout=aiohttp.ClientTimeout(total=15)) as response:
            response.raise_for_status()
            return await response.json()


def check_api_access():
    """Check the token against the live rate-limit endpoint."""
    print("\nChecking GitHub API access...")

    token = os.getenv("GITHUB_TOKEN")
    if not token:
        print("❌ Skipped: GITHUB_TOKEN not set")
        return False

    try:
        data = asyncio.run(fetch_rate_limit(token))
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        print(f"❌ Failed to reach the GitHub API: {e}")
        return False

    search = data.get("resources", {}).get("search", {})
    core = data.get("resources", {}).get("core", {})
    print("✅ GitHub API reachable")
    print(f"   Core quota: {core.get('remaining')}/{core.get('limit')}")
    print(f"   Search quota: {search.get('remaining')}/{search.get('limit')}")
    return True


def main():
    """Run all verification checks."""
    print("=" * 60)
    print("Repository Intelligence - Setup Verification")
    print("=" * 60)

    checks = [
        ("Environment Variables", check_environment_variables),
        ("GitHub Token", check_github_token),
        ("GitHub API Access", check_api_access),
    ]

    results = {name: check_func() for name, check_func in checks}

    print("\n" + "=" * 60)
    print("Verification Summary")
    print("=" * 60)

    for name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"{status}: {name}")

    if all(results.values()):
        print("\n✅ All checks passed! Ready to search.")
        print("\nNext steps:")
        print("  python search_repos.py \"react dashboard\"")
        sys.exit(0)
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        print("\nCommon solutions:")
        print("  - Set GITHUB_TOKEN: export GITHUB_TOKEN=your_token")
        print("  - Check network access to api.github.com")
        sys.exit(1)


if __name__ == "__main__":
    main()
