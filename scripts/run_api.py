#!/usr/bin/env python3
"""
Run the Nexus Admin API.

Usage:
  python scripts/run_api.py
  python scripts/run_api.py --port 8001 --host 0.0.0.0
  python scripts/run_api.py --reload
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    from config.settings import settings
    parser = argparse.ArgumentParser(description="Run Nexus Admin API")
    parser.add_argument("--host", default=settings.api.host, help="Bind host")
    parser.add_argument("--port", type=int, default=settings.api.port, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Enable reload (dev)")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of workers (default 1). Ignored when --reload.",
    )
    args = parser.parse_args()

    import uvicorn

    settings.print_info()
    kwargs = {"host": args.host, "port": args.port, "reload": args.reload, "factory": True}
    if not args.reload and args.workers > 1:
        kwargs["workers"] = args.workers
    uvicorn.run("nexus_admin.api.server:create_app", **kwargs)


if __name__ == "__main__":
    main()
