#!/usr/bin/env python3
"""
Region Watch Script
===================

Standalone script that watches a screen region and prints recognized text.

This script:
    1. Captures the region on a fixed interval
    2. Waits for each change to settle before recognizing it
    3. Prints every recognition event
    4. Reports a final summary

Prerequisites:
    - A display that mss can grab
    - For --backend vision: GOOGLE_APPLICATION_CREDENTIALS must be set

Usage:
    python scripts/watch_region.py --region 100,200,640,120
    python scripts/watch_region.py --region 0,0,800,100 --backend vision --duration 300
"""

import argparse
import asyncio
import logging
import os
import sys
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from regionwatch.capture import ScreenRegionSource
from regionwatch.detector import StabilityDetector
from regionwatch.imaging import FrameDiffer
from regionwatch.models import PreprocessConfig, RecognitionEvent, Region
from regionwatch.pipeline import CaptureCycle, CaptureScheduler
from regionwatch.recognition import (
    MockRecognitionEngine,
    RecognitionDispatcher,
    VisionRecognitionEngine,
)


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_region(value: str) -> Region:
    """Parse 'x,y,width,height'."""
    try:
        x, y, width, height = (int(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"region must be x,y,width,height, got {value!r}"
        )
    return Region(x=x, y=y, width=width, height=height)


def print_event(event: RecognitionEvent) -> None:
    if event.success:
        print(f"[frame {event.frame_id}] {event.text}", flush=True)
    else:
        print(f"[frame {event.frame_id}] recognition failed: {event.error}", flush=True)


async def run_watch(
    region: Region,
    interval_ms: int,
    duration: int,
    backend: str,
    language_hints: list,
    preprocess: PreprocessConfig,
) -> dict:
    """
    Watch the region until the duration elapses.

    Returns:
        Final metrics dict
    """
    logger.info("=" * 60)
    logger.info("Region Watch")
    logger.info("=" * 60)
    logger.info(f"Region: {region.x},{region.y} {region.width}x{region.height}")
    logger.info(f"Interval: {interval_ms} ms")
    logger.info(f"Duration: {duration} seconds")
    logger.info(f"Backend: {backend}")
    logger.info("=" * 60)

    if backend == "vision":
        engine = VisionRecognitionEngine()
    else:
        engine = MockRecognitionEngine()

    dispatcher = RecognitionDispatcher(engine, language_hints=language_hints)
    dispatcher.add_listener(print_event)

    cycle = CaptureCycle(
        source=ScreenRegionSource(region),
        detector=StabilityDetector(FrameDiffer()),
        dispatcher=dispatcher,
        preprocess_config=preprocess,
    )
    scheduler = CaptureScheduler()

    start_time = time.time()
    scheduler.start(interval_ms / 1000.0, cycle.run_once)

    try:
        await asyncio.sleep(duration)
        logger.info(f"Watch duration ({duration}s) reached")
    finally:
        scheduler.stop()
        await scheduler.wait_idle()

    total_time = time.time() - start_time
    scheduler_metrics = scheduler.get_metrics()
    cycle_metrics = cycle.get_metrics()
    recognition_metrics = dispatcher.get_metrics()

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Ticks: {scheduler_metrics['ticks']}")
    logger.info(f"Ticks dropped: {scheduler_metrics['ticks_dropped']}")
    logger.info(f"Outcomes: {cycle_metrics['outcomes']}")
    logger.info(f"Recognitions: {recognition_metrics['dispatch_count']}")
    logger.info(f"Recognition failures: {recognition_metrics['failure_count']}")
    logger.info("=" * 60)

    return {
        "duration": total_time,
        "ticks": scheduler_metrics["ticks"],
        "ticks_dropped": scheduler_metrics["ticks_dropped"],
        "recognitions": recognition_metrics["dispatch_count"],
        "failures": recognition_metrics["failure_count"],
    }


def main():
    parser = argparse.ArgumentParser(
        description="Watch a screen region and recognize settled text changes"
    )
    parser.add_argument(
        "--region",
        type=parse_region,
        required=True,
        help="Region as x,y,width,height relative to the primary monitor",
    )
    parser.add_argument(
        "--interval-ms",
        type=int,
        default=int(os.environ.get("REGIONWATCH_INTERVAL_MS", "1000")),
        help="Milliseconds between captures (default: 1000)",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=60,
        help="Watch duration in seconds (default: 60)",
    )
    parser.add_argument(
        "--backend",
        choices=["mock", "vision"],
        default="mock",
        help="Recognition backend (default: mock)",
    )
    parser.add_argument(
        "--language-hints",
        default="ja",
        help="Comma separated language hints (default: ja)",
    )
    parser.add_argument("--binarize", type=int, metavar="PERCENT", help="Binarize threshold")
    parser.add_argument("--blur", type=int, default=0, help="Blur radius (default: 0)")
    parser.add_argument("--dilate", action="store_true", help="Apply one dilation pass")
    parser.add_argument("--invert", action="store_true", help="Invert colours")

    args = parser.parse_args()

    preprocess = PreprocessConfig(
        binarize_enabled=args.binarize is not None,
        binarize_threshold=args.binarize if args.binarize is not None else 50,
        blur_radius=args.blur,
        dilate_enabled=args.dilate,
        invert=args.invert,
    )

    try:
        result = asyncio.run(run_watch(
            region=args.region,
            interval_ms=args.interval_ms,
            duration=args.duration,
            backend=args.backend,
            language_hints=[h.strip() for h in args.language_hints.split(",") if h.strip()],
            preprocess=preprocess,
        ))
    except KeyboardInterrupt:
        logger.info("Watch interrupted by user")
        sys.exit(0)

    sys.exit(0 if result["ticks"] > 0 else 1)


if __name__ == "__main__":
    main()
