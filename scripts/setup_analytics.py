#!/usr/bin/env python3
"""
=====================================================
AI Receptionist - Analytics Tab Setup Script
=====================================================
Adds an 'Analytics' tab to the interaction log spreadsheet with
counts per channel, intent and language.

Usage:
    python scripts/setup_analytics.py

Reads SHEET_ID and the service account settings from .env.
"""

import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import get_settings  # noqa: E402
from services.interactions.interaction_logger import create_interaction_logger  # noqa: E402


async def setup_analytics() -> int:
    settings = get_settings()
    interaction_logger = create_interaction_logger(settings.model_dump())

    if interaction_logger.primary is None:
        print("Error: SHEET_ID and a Google service account (file or JSON) are required.")
        return 1

    try:
        created = await interaction_logger.ensure_analytics_tab()
    except Exception as e:
        print(f"\nError: {e}")
        return 1

    if created:
        print(f"Analytics tab created in spreadsheet {settings.sheet_id}.")
    else:
        print("Analytics tab already exists - nothing to do.")
    return 0


def main():
    print("=" * 60)
    print("AI Receptionist - Analytics Tab Setup")
    print("=" * 60)
    print()
    sys.exit(asyncio.run(setup_analytics()))


if __name__ == "__main__":
    main()
