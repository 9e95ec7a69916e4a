#!/usr/bin/env python3
"""
Listing Video - Main Entry Point

Usage:
    # Start the HTTP server
    python main.py server

    # Submit a listing video
    python main.py generate --images URL1 URL2 URL3 URL4 URL5 \\
        --address "123 Main St, Springfield" --price 850000 --beds 3 --baths 2 \\
        --description "Renovated family home"

    # Check a job once
    python main.py status JOB_ID --provider shotstack

    # Poll a job until it finishes
    python main.py wait JOB_ID --interval 5 --timeout 600
"""

import argparse
import asyncio
import json
import logging
import sys
import time

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("listingvideo")


async def generate_video(args) -> int:
    """Submit one listing video and print the job handle."""
    from core.errors import ListingVideoError
    from services.orchestrator import JobOrchestrator

    payload = {
        "images": args.images,
        "propertyFacts": {
            "address": args.address,
            "price": args.price,
            "bedCount": args.beds,
            "bathCount": args.baths,
            "description": args.description,
        },
        "styleOptions": {"style": args.style},
    }

    orchestrator = JobOrchestrator()
    try:
        result = await orchestrator.submit(payload, provider=args.provider)
    except ListingVideoError as e:
        logger.error(f"Generation failed [{e.error_code}]: {e.message}")
        print(json.dumps(e.to_response(), indent=2))
        return 1
    finally:
        await orchestrator.close()

    print(json.dumps(result.to_response(), indent=2))
    return 0


async def check_status(job_id: str, provider: str) -> int:
    """Print a single normalized status."""
    from core.errors import ListingVideoError
    from services.orchestrator import JobOrchestrator

    orchestrator = JobOrchestrator()
    try:
        status = await orchestrator.poll(provider, job_id)
    except ListingVideoError as e:
        logger.error(f"Status check failed [{e.error_code}]: {e.message}")
        print(json.dumps(e.to_response(), indent=2))
        return 1
    finally:
        await orchestrator.close()

    print(json.dumps(status.to_response(), indent=2))
    return 0


async def wait_for_completion(
    job_id: str,
    provider: str,
    poll_interval: float = 5.0,
    timeout: float = 600.0,
    orchestrator=None,
) -> int:
    """
    Poll a job until it reaches a terminal status.

    Transient status query failures are logged and polling continues;
    giving up is decided by the timeout alone.
    """
    from core.errors import StatusQueryError
    from services.orchestrator import JobOrchestrator
    from services.video_generation import JobPhase, Provider, RenderJob

    owns_orchestrator = orchestrator is None
    if owns_orchestrator:
        orchestrator = JobOrchestrator()
    job = RenderJob(provider=Provider.parse(provider), provider_job_id=job_id)
    started = time.monotonic()

    try:
        while True:
            try:
                phase = await orchestrator.refresh(job)
            except StatusQueryError as e:
                logger.warning(f"Status check failed [{e.error_code}]: {e.message}")
                phase = job.phase

            if phase.is_terminal:
                break

            elapsed = time.monotonic() - started
            if elapsed > timeout:
                logger.error(f"Gave up on {job_id} after {elapsed:.0f}s")
                return 2

            logger.info(f"{job_id}: {phase.value} ({elapsed:.0f}s elapsed)")
            await asyncio.sleep(poll_interval)
    finally:
        if owns_orchestrator:
            await orchestrator.close()

    if job.phase == JobPhase.DONE:
        print(job.output_url)
        return 0

    logger.error(f"Render failed: {job.failure_reason or 'no reason given'}")
    return 1


def start_server(host: str, port: int):
    import uvicorn

    uvicorn.run("services.orchestrator.server:app", host=host, port=port)


def main():
    parser = argparse.ArgumentParser(
        description="Listing Video - vertical property walkthroughs from listing photos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Server command
    server_parser = subparsers.add_parser("server", help="Start HTTP server")
    server_parser.add_argument("--host", default="0.0.0.0", help="Host to bind")
    server_parser.add_argument("--port", type=int, default=8765, help="Port to bind")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Submit a listing video")
    gen_parser.add_argument("--images", "-i", nargs="+", required=True, help="Photo URLs in order")
    gen_parser.add_argument("--address", required=True, help="Street address, suburb")
    gen_parser.add_argument("--price", required=True, help="Listing price")
    gen_parser.add_argument("--beds", type=int, required=True, help="Bedroom count")
    gen_parser.add_argument("--baths", type=float, required=True, help="Bathroom count")
    gen_parser.add_argument("--description", required=True, help="Property description")
    gen_parser.add_argument("--style", default="modern", help="Visual style")
    gen_parser.add_argument(
        "--provider",
        "-p",
        choices=["shotstack", "luma"],
        help="Render provider (default: DEFAULT_VIDEO_PROVIDER)",
    )

    # Status command
    status_parser = subparsers.add_parser("status", help="Check a job once")
    status_parser.add_argument("job_id", help="Provider job ID")
    status_parser.add_argument("--provider", "-p", choices=["shotstack", "luma"], default="shotstack")

    # Wait command
    wait_parser = subparsers.add_parser("wait", help="Poll a job until it finishes")
    wait_parser.add_argument("job_id", help="Provider job ID")
    wait_parser.add_argument("--provider", "-p", choices=["shotstack", "luma"], default="shotstack")
    wait_parser.add_argument("--interval", type=float, default=5.0, help="Seconds between polls")
    wait_parser.add_argument("--timeout", type=float, default=600.0, help="Seconds before giving up")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "server":
        start_server(args.host, args.port)

    elif args.command == "generate":
        sys.exit(asyncio.run(generate_video(args)))

    elif args.command == "status":
        sys.exit(asyncio.run(check_status(args.job_id, args.provider)))

    elif args.command == "wait":
        sys.exit(asyncio.run(
            wait_for_completion(args.job_id, args.provider, args.interval, args.timeout)
        ))


if __name__ == "__main__":
    main()
