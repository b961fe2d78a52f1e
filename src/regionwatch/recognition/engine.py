"""
Recognition Engine
==================

Recognition abstraction for settled frames.

This module provides the RecognitionEngine protocol and the
MockRecognitionEngine implementation, which returns deterministic text
WITHOUT external API calls.

Design Rules:
    - Takes a canonical Frame plus language hints
    - Returns RecognizedText, or raises RecognitionFailure
    - Engines never retry; the dispatcher decides what a failure means
"""

import logging
import time
from typing import Iterable, Optional, Protocol, Sequence

from regionwatch.models.frame import Frame
from regionwatch.models.recognition import RecognizedText


logger = logging.getLogger(__name__)


class RecognitionFailure(Exception):
    """Raised when recognition fails or yields no usable text."""
    pass


class RecognitionEngine(Protocol):
    """
    Protocol for recognition backends.

    Implemented by:
        - MockRecognitionEngine (testing, offline runs)
        - VisionRecognitionEngine (Google Cloud Vision text detection)
    """

    async def recognize(
        self,
        frame: Frame,
        language_hints: Sequence[str],
    ) -> RecognizedText:
        """
        Recognize text in a canonical frame.

        Args:
            frame: Canonical (preprocessed) frame
            language_hints: BCP-47 language codes, e.g. ["ja"]

        Returns:
            RecognizedText

        Raises:
            RecognitionFailure: On any failure or empty result
        """
        ...


class MockRecognitionEngine:
    """
    Deterministic mock recognition engine.

    Produces text derived from the frame, so the same frame always yields
    the same text, and can be scripted to fail on chosen calls.

    Attributes:
        template: Format string; receives frame_id, width, height, call
        fail_on_calls: 1-based call numbers that raise RecognitionFailure
        calls: Frames received so far, in call order
    """

    def __init__(
        self,
        template: str = "frame {frame_id} ({width}x{height})",
        fail_on_calls: Optional[Iterable[int]] = None,
    ) -> None:
        """
        Initialize mock recognition engine.

        Args:
            template: Text template for results
            fail_on_calls: Call numbers (1-based) that should fail
        """
        self.template = template
        self.fail_on_calls = set(fail_on_calls or ())
        self.calls: list = []

        logger.info(f"MockRecognitionEngine initialized: template={template!r}")

    async def recognize(
        self,
        frame: Frame,
        language_hints: Sequence[str],
    ) -> RecognizedText:
        """Return templated text, or fail if this call is scripted to."""
        started = time.perf_counter()
        self.calls.append(frame)
        call = len(self.calls)

        if call in self.fail_on_calls:
            raise RecognitionFailure(f"Scripted failure on call {call}")

        text = self.template.format(
            frame_id=frame.frame_id,
            width=frame.width,
            height=frame.height,
            call=call,
        )
        return RecognizedText(
            text=text,
            language_hints=list(language_hints),
            latency_ms=(time.perf_counter() - started) * 1000.0,
        )
