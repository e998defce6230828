"""DEADLINE - news event search and synthesis

Simple CLI for running the pipeline against one stored event.
"""

import argparse
import asyncio
import sys
from datetime import date

from deadline.config import settings
from deadline.errors import PipelineError
from deadline.pipeline.controller import EventPipeline


async def run_details(event_id: str) -> int:
    """Search, scrape and synthesize details for the given event."""
    print(f"Event: {event_id}")
    print("-" * 50)

    pipeline = EventPipeline.from_settings(settings)
    try:
        result = await pipeline.process_event(event_id)
    except PipelineError as exc:
        print(f"\n[!] Error: {exc}")
        return 1
    finally:
        await pipeline.aclose()

    details = result.details
    print(f"[*] Query: {result.event.query}")
    print(f"[+] Search results: {len(result.scraped.results)}")
    print(f"[+] Articles scraped: {len(result.scraped.articles)}")
    print(f"[+] Images found: {len(details.images)}")
    print(f"\n{'='*50}")
    print(f"Location: {details.location or 'N/A'}")
    print(f"Accused: {len(details.accused)}  Victims: {len(details.victims)}  Timeline: {len(details.timeline)}")
    print(f"Details: {len(details.details)} chars")
    print(f"{'='*50}")
    for source in details.sources:
        print(f"  - {source}")
    return 0


async def run_updates(event_id: str, since: date | None = None) -> int:
    """Look for developments published since the event was last refreshed."""
    print(f"Event: {event_id}")
    print("-" * 50)

    pipeline = EventPipeline.from_settings(settings)
    try:
        analysis = await pipeline.analyze_updates(event_id, since)
    except PipelineError as exc:
        print(f"\n[!] Error: {exc}")
        return 1
    finally:
        await pipeline.aclose()

    if not analysis.has_new_updates:
        print("[*] No new updates")
    for update in analysis.updates:
        print(f"  {update.date}: {update.title}")
        print(f"     {update.description}")
    if analysis.status:
        print(f"\n[*] Status: {analysis.status}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="DEADLINE event pipeline")
    subparsers = parser.add_subparsers(dest="command", required=True)

    details = subparsers.add_parser("details", help="Build the full event record")
    details.add_argument("--event-id", "-e", required=True, help="Event to process")

    updates = subparsers.add_parser("updates", help="Find developments since the last refresh")
    updates.add_argument("--event-id", "-e", required=True, help="Event to process")
    updates.add_argument("--since", type=date.fromisoformat, help="Cutoff date (YYYY-MM-DD)")

    args = parser.parse_args()

    if args.command == "details":
        code = asyncio.run(run_details(args.event_id))
    else:
        code = asyncio.run(run_updates(args.event_id, args.since))
    sys.exit(code)


if __name__ == "__main__":
    main()
