#!/usr/bin/env python3
"""
Bulk-load log events from a file into the console via its API.

Accepts CSV (header: level,message,source,category,tenant_id), JSON Lines,
or a JSON array of event objects. Logs in with an emailed verification
code, then posts each event to /monitoring/logs.

Usage:
    python ingest_log_events.py events.csv --email admin@example.com
"""

import argparse
import csv
import json
import sys
from pathlib import Path

import requests

API_BASE = "http://localhost:8000"
EVENT_FIELDS = ("level", "message", "source", "category", "tenant_id")


def parse_events(path: Path):
    """
    Read events from a CSV, JSONL or JSON array file.

    Returns (events, skipped) where skipped counts unreadable rows.
    """
    text = path.read_text(encoding="utf-8")
    events = []
    skipped = 0

    if path.suffix.lower() == ".csv":
        reader = csv.DictReader(text.splitlines())
        for row in reader:
            event = {k: (row.get(k) or "").strip() for k in EVENT_FIELDS}
            event = {k: v for k, v in event.items() if v}
            if not event.get("level") or not event.get("message") or not event.get("source"):
                skipped += 1
                continue
            events.append(event)
        return events, skipped

    stripped = text.lstrip()
    if stripped.startswith("["):
        try:
            rows = json.loads(stripped)
        except json.JSONDecodeError as e:
            print(f"⚠️  Unreadable JSON array: {e}")
            return events, 1
    else:
        rows = []
        for line_num, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError as e:
                print(f"⚠️  Skipping line {line_num}: {e}")
                skipped += 1

    for row in rows:
        if not isinstance(row, dict):
            skipped += 1
            continue
        events.append(row)

    return events, skipped


def error_message(response: requests.Response) -> str:
    """Server error message, tolerating bodies that are not JSON."""
    try:
        return response.json().get("message") or response.reason
    except (ValueError, AttributeError):
        return f"HTTP {response.status_code}: {response.text[:200]}"


def login(http: requests.Session, email: str) -> bool:
    """Request a code, prompt for it, and establish a session cookie."""
    response = http.post(f"{API_BASE}/auth/code", json={"email": email}, timeout=10)
    response.raise_for_status()
    print(f"📧 Verification code requested for {email}")

    code = input("Enter the 6-digit code: ").strip()
    response = http.post(
        f"{API_BASE}/auth/login",
        json={"email": email, "code": code},
        timeout=10
    )
    if response.status_code != 200:
        print(f"❌ Login failed: {error_message(response)}")
        return False
    print("✅ Logged in")
    return True


def upload_events(http: requests.Session, events):
    """Post events one by one. Returns (created, rejected)."""
    created = 0
    rejected = 0
    for index, event in enumerate(events, start=1):
        try:
            response = http.post(f"{API_BASE}/monitoring/logs", json=event, timeout=10)
        except requests.RequestException as e:
            print(f"❌ Event {index}: {e}")
            rejected += 1
            continue

        if response.status_code == 201:
            created += 1
        else:
            print(f"⚠️  Event {index} rejected: {error_message(response)}")
            rejected += 1
    return created, rejected


def main(argv=None) -> bool:
    global API_BASE

    parser = argparse.ArgumentParser(description="Bulk-load log events into the console")
    parser.add_argument("path", type=Path, help="CSV, JSONL or JSON array file")
    parser.add_argument("--email", required=True, help="Admin email to log in with")
    parser.add_argument("--api", default=API_BASE, help=f"API base URL (default {API_BASE})")
    args = parser.parse_args(argv)
    API_BASE = args.api.rstrip("/")

    if not args.path.exists():
        print(f"❌ File not found: {args.path}")
        return False

    events, skipped = parse_events(args.path)
    print(f"📖 Parsed {len(events)} events from {args.path} ({skipped} skipped)")
    if not events:
        return False

    print("🔗 Checking API connectivity...")
    try:
        requests.get(f"{API_BASE}/health/", timeout=5).raise_for_status()
    except requests.RequestException as e:
        print(f"❌ API not reachable at {API_BASE}: {e}")
        print("   Start the API with: uvicorn main:app --reload")
        return False

    with requests.Session() as http:
        if not login(http, args.email):
            return False
        created, rejected = upload_events(http, events)

    print()
    print("=" * 70)
    print("📊 INGESTION SUMMARY")
    print("=" * 70)
    print(f"Parsed:   {len(events)}")
    print(f"Skipped:  {skipped}")
    print(f"Created:  {created}")
    print(f"Rejected: {rejected}")

    return created > 0


if __name__ == '__main__':
    sys.exit(0 if main() else 1)
