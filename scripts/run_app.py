#!/usr/bin/env python3
"""Check configuration and launch the headline API with uvicorn.

This script handles:
- Reporting missing or optional environment variables
- Starting the FastAPI backend
- Waiting for the health check
- Graceful shutdown on Ctrl+C
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Sequence

ROOT_DIR = Path(__file__).resolve().parents[1]
UVICORN_APP = "news_brief.api.server:app"
REWRITE_KEYS = ["OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY"]


def check_env_vars() -> list[str]:
    """Check for required environment variables and return list of missing ones."""
    required = ["NEWS_API_KEY"]
    optional = ["API_BASE_URL", "AI_MODEL"]

    missing = [var for var in required if not os.environ.get(var)]

    if missing:
        print(f"[env] WARNING: Missing required environment variables: {', '.join(missing)}")
        print("[env] Please set these in your .env file or environment.")

    rewrite_key = next((var for var in REWRITE_KEYS if os.environ.get(var)), None)
    if rewrite_key:
        print(f"[env] Rewrite service key taken from {rewrite_key}.")
    else:
        print(
            "[env] Note: no rewrite key set "
            f"({', '.join(REWRITE_KEYS)}); headlines will be served untranslated."
        )

    for var in optional:
        if not os.environ.get(var):
            print(f"[env] Note: Optional variable {var} not set.")

    return missing


def start_process(label: str, command: Sequence[str], env: dict[str, str]) -> subprocess.Popen:
    """Launch a child process and return the handle."""

    print(f"[{label}] {' '.join(command)}")
    return subprocess.Popen(  # noqa: S603 - command constructed above
        command,
        cwd=ROOT_DIR,
        env=env,
    )


def wait_for_backend(base_url: str, timeout: float) -> None:
    """Poll the backend health endpoint until it responds or timeout occurs."""

    health_url = f"{base_url.rstrip('/')}" + "/health"
    deadline = time.time() + timeout
    print(f"[backend] Waiting for health check at {health_url} ...")
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(health_url, timeout=3):  # noqa: S310
                print("[backend] Health check succeeded.")
                return
        except urllib.error.URLError:
            time.sleep(1.0)
    print("[backend] Health check timed out; the server may still be starting.")


def shutdown_process(proc: subprocess.Popen | None, label: str) -> None:
    if proc is None or proc.poll() is not None:
        return

    print(f"[{label}] Stopping...")
    proc.terminate()
    try:
        proc.wait(timeout=10)
    except subprocess.TimeoutExpired:
        print(f"[{label}] Terminate timed out. Killing...")
        proc.kill()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check configuration, then start the headline API server."
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host/interface for the FastAPI server (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the FastAPI server (default: 8000).",
    )
    parser.add_argument(
        "--startup-timeout",
        type=float,
        default=30.0,
        help="Seconds to wait for the health endpoint.",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable uvicorn auto-reload.",
    )
    parser.add_argument(
        "--skip-env-check",
        action="store_true",
        help="Skip checking for required environment variables.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not args.skip_env_check:
        missing = check_env_vars()
        if missing:
            print("[env] Continuing anyway; /api/news will report success=false.")

    base_url = f"http://{args.host}:{args.port}"

    backend_cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        UVICORN_APP,
        "--host",
        args.host,
        "--port",
        str(args.port),
    ]
    if args.reload:
        backend_cmd.append("--reload")

    backend_proc = None
    try:
        backend_proc = start_process("backend", backend_cmd, os.environ.copy())
        wait_for_backend(base_url, args.startup_timeout)

        print("[runner] Server is running. Press Ctrl+C to stop.")
        print(f"[runner] News endpoint: {base_url}/api/news")
        print(f"[runner] API Docs: {base_url}/docs")

        while True:
            status = backend_proc.poll()
            if status is not None:
                print(f"[backend] exited with status {status}.")
                break
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\n[runner] Caught KeyboardInterrupt. Shutting down...")
    finally:
        shutdown_process(backend_proc, "backend")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
