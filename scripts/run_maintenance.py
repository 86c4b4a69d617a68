"""
Run a maintenance job once. Meant to be invoked by cron, e.g.:

    1 0 * * *   python -m scripts.run_maintenance auto_mark_attendance
    30 0 * * *  python -m scripts.run_maintenance auto_clock_out
    5 0 1 1 *   python -m scripts.run_maintenance holiday_sync
"""
import argparse
import json
import sys
from datetime import datetime

from backoffice.core.logging import setup_logging
from backoffice.database import init_db
from backoffice.services.scheduler import JOBS, run_job


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run an HR back office maintenance job")
    parser.add_argument("job", choices=sorted(JOBS), help="Job to run")
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Reference time in ISO format (defaults to the current time)"
    )
    args = parser.parse_args(argv)

    setup_logging()
    init_db()
    try:
        result = run_job(args.job, now=args.now)
    except Exception as e:
        print(f"Job {args.job} failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
