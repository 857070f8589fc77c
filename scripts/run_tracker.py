#!/usr/bin/env python3
"""
Run the live smart money tracker service.

    python scripts/run_tracker.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from smart_money.realtime.service import main


if __name__ == "__main__":
    asyncio.run(main())
