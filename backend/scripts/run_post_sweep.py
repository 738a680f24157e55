#!/usr/bin/env python3
"""
Run one post sweep now: expire overdue posts, then send expiring-soon notices.
Same job the API schedules hourly; useful with SCHEDULER_ENABLED=false or from cron.
Run: cd backend && python scripts/run_post_sweep.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from foodshare.scheduler.post_sweep_job import run_post_sweep_job


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    result = run_post_sweep_job()
    if result is None:
        print("Sweep failed; see log above.")
        sys.exit(1)
    print(f"Done. expired={result['expired']}, notified={result['notified']}")


if __name__ == "__main__":
    main()
