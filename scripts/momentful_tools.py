"""Operational helpers for a Momentful deployment.

Run with:
    python3 scripts/momentful_tools.py buckets
    python3 scripts/momentful_tools.py wait-runway <task_id> [--api http://localhost:8000]
    python3 scripts/momentful_tools.py wait-prediction <prediction_id>
    python3 scripts/momentful_tools.py sync-videos <project_id>

``buckets`` talks to Supabase directly with the service-role key from the
environment; the other commands go through a running API.
"""

import argparse
import asyncio
import sys
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from momentful.client import ApiClientError, MomentfulClient
from momentful.errors import JobError
from momentful.services.storage import ensure_buckets_exist, get_missing_buckets


def cmd_buckets(args: argparse.Namespace) -> int:
    print("--- Storage buckets ---")
    missing = get_missing_buckets()
    print("missing before setup ->", missing or "none")
    result = ensure_buckets_exist()
    print("created ->", result.created or "none")
    for error in result.errors:
        print("error ->", error)
    return 0 if result.success else 1


def _print_progress(status: str, progress: float | None) -> None:
    suffix = f" ({progress:.0%})" if progress is not None else ""
    print(f"  status: {status}{suffix}")


async def _wait(args: argparse.Namespace) -> int:
    async with MomentfulClient(args.api) as api:
        try:
            if args.command == "wait-runway":
                status = await api.wait_for_runway_job(args.job_id, on_progress=_print_progress)
            else:
                status = await api.wait_for_prediction(args.job_id, on_progress=_print_progress)
        except (JobError, ApiClientError) as e:
            print(f"job {args.job_id} did not succeed: {e}")
            return 1
    print("output ->", status.output_url)
    return 0


async def _sync(args: argparse.Namespace) -> int:
    async with MomentfulClient(args.api) as api:
        updated = await api.update_project_video_statuses(args.project_id)
    print(f"updated {updated} video(s)")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Momentful operational helpers.")
    parser.add_argument("--api", default="http://localhost:8000", help="Momentful API base URL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("buckets", help="Create any missing storage buckets")
    for name in ("wait-runway", "wait-prediction"):
        p = sub.add_parser(name, help="Poll a job until it finishes")
        p.add_argument("job_id")
    p = sub.add_parser("sync-videos", help="Refresh a project's video statuses from Runway")
    p.add_argument("project_id")

    args = parser.parse_args()
    if args.command == "buckets":
        return cmd_buckets(args)
    if args.command == "sync-videos":
        return asyncio.run(_sync(args))
    return asyncio.run(_wait(args))


if __name__ == "__main__":
    sys.exit(main())
