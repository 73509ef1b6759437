"""
Setup verification script for the Book Companion backend.
Checks all dependencies and services are properly configured.
"""
import asyncio
import sys
import os
from typing import List, Tuple

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_status(message: str, status: bool):
    """Print colored status message."""
    symbol = f"{GREEN}✓{RESET}" if status else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


async def check_python_version() -> bool:
    """Check Python version is 3.11+."""
    version = sys.version_info
    if version.major == 3 and version.minor >= 11:
        print_status(f"Python version: {version.major}.{version.minor}.{version.micro}", True)
        return True
    else:
        print_status(f"Python version {version.major}.{version.minor} (requires 3.11+)", False)
        return False


async def check_dependencies() -> bool:
    """Check if required packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "asyncpg",
        "httpx",
        "aiofiles",
        "pydantic_settings",
        "alembic",
    ]

    all_installed = True
    for package in required_packages:
        try:
            __import__(package)
            print_status(f"Package '{package}' installed", True)
        except ImportError:
            print_status(f"Package '{package}' missing", False)
            all_installed = False

    return all_installed


async def check_env_file() -> bool:
    """Check if .env file exists and carries the Gemini key."""
    if not os.path.exists(".env"):
        print_status(".env file missing (copy from .env.example)", False)
        return False

    print_status(".env file exists", True)
    from app.config import settings

    has_key = bool(settings.GEMINI_API_KEY)
    print_status(f"GEMINI_API_KEY: {'Set' if has_key else 'Missing'}", has_key)
    return has_key


async def check_project_layout() -> bool:
    """Check the summary directory and the context roots the chat indexer walks."""
    from app.config import settings

    summary_ok = os.path.isdir(settings.SUMMARY_DIR)
    if summary_ok:
        print_status(f"Summary directory exists ({settings.SUMMARY_DIR})", True)
    else:
        print(f"  {YELLOW}Summary directory missing (will be created on startup){RESET}")

    found = 0
    for path, _ in settings.get_context_roots():
        full = os.path.join(settings.PROJECT_ROOT, path)
        exists = os.path.isdir(full)
        found += exists
        print_status(f"Context root {full}: {'Found' if exists else 'Missing'}", exists)

    return found > 0


async def check_gemini() -> bool:
    """Check that the Gemini API accepts the configured key and model."""
    from app.config import settings
    from app.services.llm_client import GeminiClient, LLMConfigurationError

    try:
        client = GeminiClient()
    except LLMConfigurationError as e:
        print_status(str(e), False)
        return False

    ok = await client.check_health()
    print_status(f"Gemini model '{settings.GEMINI_MODEL}': {'Reachable' if ok else 'Unreachable'}", ok)
    if not ok:
        print(f"  {YELLOW}Check GEMINI_API_KEY and network access to {settings.GEMINI_BASE_URL}{RESET}")
    return ok


async def check_database() -> bool:
    """Check the configured database accepts connections."""
    try:
        from sqlalchemy import text
        from app.database import engine

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        await engine.dispose()

        print_status("Database connection successful", True)
        return True

    except Exception as e:
        print_status(f"Database connection failed: {str(e)}", False)
        print(f"  {YELLOW}Check DATABASE_URL, then run: alembic upgrade head{RESET}")
        return False


async def main():
    """Run all verification checks."""
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}Book Companion Backend - Setup Verification{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

    checks: List[Tuple[str, callable]] = [
        ("Python Version", check_python_version),
        ("Dependencies", check_dependencies),
        ("Environment File", check_env_file),
        ("Project Layout", check_project_layout),
        ("Database", check_database),
        ("Gemini API", check_gemini),
    ]

    results = []

    for check_name, check_func in checks:
        print(f"\n{BLUE}Checking {check_name}...{RESET}")
        try:
            result = await check_func()
            results.append(result)
        except Exception as e:
            print_status(f"Error during check: {str(e)}", False)
            results.append(False)

    # Summary
    print(f"\n{BLUE}{'='*60}{RESET}")
    passed = sum(results)
    total = len(results)

    if passed == total:
        print(f"{GREEN}✓ All checks passed! ({passed}/{total}){RESET}")
        print(f"\n{GREEN}You're ready to run the backend:{RESET}")
        print(f"  uvicorn app.main:app --reload --port 3001")
    else:
        print(f"{RED}✗ Some checks failed ({passed}/{total} passed){RESET}")
        print(f"\n{YELLOW}Please fix the issues above before running the backend.{RESET}")
        sys.exit(1)

    print(f"{BLUE}{'='*60}{RESET}\n")


if __name__ == "__main__":
    asyncio.run(main())
