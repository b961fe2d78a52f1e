"""
Frame Stream Consumer
=====================

Remote alternative to screen grabbing: the capture loop samples a region
out of frames pushed by a WebSocket frame stream.

This module provides:
    - StreamFrameConsumer: holds a connection open, decodes each message
      and keeps ONLY the newest frame
    - StreamRegionSource: FrameSource cropping the configured region out
      of that frame

Message Contract:
    {
        "frame_id": 1234,
        "timestamp": 1707321234.5,
        "image": "<base64 PNG or JPEG>"
    }

Design Rules:
    - The capture loop samples on its own interval; frames arriving in
      between overwrite each other, nothing is queued
    - Out-of-order ids or timestamps are counted and logged, not dropped
    - Undecodable messages are counted and skipped
    - The connection is re-established after a fixed backoff, whether
      it failed or was closed cleanly by the peer
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional, Union

import numpy as np
import websockets
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
)

from regionwatch.capture.image_decoder import ImageDecodeError, decode_image_rgba
from regionwatch.models.frame import Frame
from regionwatch.models.region import Region


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StreamConsumerMetrics:
    """Counters exposed through /metrics for the stream source."""

    frames_received: int = 0
    reconnect_count: int = 0
    last_frame_id: int = -1
    last_timestamp: float = 0.0
    validation_warnings: int = 0
    parse_errors: int = 0
    decode_errors: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class StreamFrameConsumer:
    """
    Keeps the most recent frame of a WebSocket frame stream.

    Attributes:
        url: Stream endpoint
        connected: True while a connection is open
        latest: Newest decoded frame, or None before the first message
        metrics: StreamConsumerMetrics

    Example:
        consumer = StreamFrameConsumer("ws://localhost:8000/ws/stream")
        task = asyncio.create_task(consumer.run())

        source = StreamRegionSource(consumer, Region(x=0, y=0, width=320, height=80))
        ...
        await consumer.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        reconnect_backoff_ms: int = 500,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Args:
            url: WebSocket URL of the frame stream
            reconnect_backoff_ms: Delay before each reconnect
            max_reconnect_attempts: Give up after this many reconnects (0 = never)
        """
        self.url = url
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts
        self.metrics = StreamConsumerMetrics()

        self._websocket = None
        self._connected: bool = False
        self._running: bool = False
        self._stopped = asyncio.Event()
        self._latest: Optional[Frame] = None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def latest(self) -> Optional[Frame]:
        return self._latest

    async def run(self) -> None:
        """
        Consume until stop() is called or reconnects are exhausted.
        """
        self._running = True
        self._stopped.clear()
        logger.info(f"StreamFrameConsumer starting: {self.url}")

        while self._running:
            try:
                await self._consume_connection()
            except Exception as e:
                if not self._running:
                    break
                self._connected = False
                logger.error(f"Frame stream connection lost: {e}")
            else:
                if not self._running:
                    break
                logger.info("Frame stream closed; reconnecting")

            if not self._may_reconnect():
                logger.error(
                    f"Giving up on frame stream after "
                    f"{self.metrics.reconnect_count} reconnects"
                )
                break
            if await self._backoff():
                break

        logger.info("StreamFrameConsumer stopped")

    def _may_reconnect(self) -> bool:
        limit = self.max_reconnect_attempts
        return limit == 0 or self.metrics.reconnect_count < limit

    async def _backoff(self) -> bool:
        """Sleep before reconnecting; True if stop() was called meanwhile."""
        self.metrics.reconnect_count += 1
        delay = self.reconnect_backoff_ms / 1000.0
        logger.info(
            f"Reconnect #{self.metrics.reconnect_count} to frame stream in {delay:.1f}s"
        )
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def stop(self) -> None:
        """Ask run() to exit and close the open connection, if any."""
        self._running = False
        self._stopped.set()

        websocket = self._websocket
        if websocket is not None:
            try:
                await websocket.close()
            except ConnectionClosed:
                pass
        self._connected = False

    async def _consume_connection(self) -> None:
        """Hold one connection open and handle messages until it closes."""
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
            max_size=None,
        ) as ws:
            self._websocket = ws
            self._connected = True
            logger.info(f"Frame stream connected: {self.url}")

            try:
                async for raw in ws:
                    if not self._running:
                        break
                    self.handle_message(raw)
            except ConnectionClosedOK:
                logger.info("Frame stream closed by peer")
            except ConnectionClosedError as e:
                logger.warning(f"Frame stream closed abnormally: {e}")
                raise
            finally:
                self._connected = False
                self._websocket = None

    def handle_message(self, raw: Union[str, bytes]) -> Optional[Frame]:
        """
        Decode one stream message and make it the latest frame.

        Returns:
            The new Frame, or None if the message was unusable
        """
        fields = self._parse(raw)
        if fields is None:
            return None
        frame_id, timestamp, image_b64 = fields

        self._check_ordering(frame_id, timestamp)

        try:
            pixels = decode_image_rgba(image_b64, frame_id)
        except ImageDecodeError as e:
            self.metrics.decode_errors += 1
            logger.error(str(e))
            return None

        frame = Frame(pixels=pixels, timestamp=timestamp, frame_id=frame_id)
        self._latest = frame
        self.metrics.frames_received += 1
        self.metrics.last_frame_id = frame_id
        self.metrics.last_timestamp = timestamp
        return frame

    def _parse(self, raw: Union[str, bytes]) -> Optional[tuple]:
        try:
            data = json.loads(raw)
            return int(data["frame_id"]), float(data["timestamp"]), str(data["image"])
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.metrics.parse_errors += 1
            logger.error(f"Frame stream message is not JSON: {e}")
        except (KeyError, ValueError, TypeError) as e:
            self.metrics.parse_errors += 1
            logger.error(f"Frame stream message missing fields: {e}")
        return None

    def _check_ordering(self, frame_id: int, timestamp: float) -> None:
        """Count (but accept) frames that arrive out of order."""
        last_id = self.metrics.last_frame_id
        if last_id >= 0 and frame_id <= last_id:
            self.metrics.validation_warnings += 1
            logger.warning(f"Stream frame_id not increasing: {frame_id} after {last_id}")

        last_ts = self.metrics.last_timestamp
        if last_ts > 0 and timestamp < last_ts:
            self.metrics.validation_warnings += 1
            logger.warning(
                f"Stream timestamp went backwards: {timestamp:.3f} after {last_ts:.3f}"
            )


class StreamRegionSource:
    """
    FrameSource that crops a region out of the stream's latest frame.

    Attributes:
        consumer: StreamFrameConsumer providing full frames
        region: Rectangle to crop, in stream pixel coordinates
    """

    def __init__(self, consumer: StreamFrameConsumer, region: Region) -> None:
        self.consumer = consumer
        self.region = region

    def capture_region(self) -> Optional[Frame]:
        """
        Crop the region from the latest frame.

        Returns:
            Cropped RGBA Frame, or None if no frame has arrived yet or the
            region does not overlap the stream image
        """
        latest = self.consumer.latest
        if latest is None:
            return None

        region = self.region.clamp(latest.width, latest.height)
        if region.is_empty:
            return None

        crop = latest.pixels[
            region.y:region.y + region.height,
            region.x:region.x + region.width,
        ]
        return Frame(
            pixels=np.array(crop, copy=True),
            timestamp=latest.timestamp,
            frame_id=latest.frame_id,
        )

    def get_metrics(self) -> dict:
        """Get source metrics for observability."""
        return {
            "connected": self.consumer.connected,
            **self.consumer.metrics.to_dict(),
        }
