"""Pytest configuration and fixtures for integration tests.

Loads .env and skips the whole suite when AWS credentials are not configured.
These tests call the real Bedrock runtime and incur model charges.
"""

import os
import pytest
from dotenv import load_dotenv
from pathlib import Path


def pytest_configure(config):
    """Load environment variables from the project root .env before collection."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: These tests require AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY")
    print(f"Environment loaded from: {env_path}")
    print(f"  - Region: {os.getenv('AWS_REGION', 'us-east-1')}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_aws_credentials():
    """Skip all integration tests if AWS credentials are missing."""
    missing = [name for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY") if not os.getenv(name)]

    if missing:
        pytest.skip(
            f"Integration tests skipped. Missing AWS credentials: {', '.join(missing)}. Please set these in your .env file.",
            allow_module_level=True,
        )
