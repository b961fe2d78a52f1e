"""
Recognition Models
==================

Output contract of the recognition stage.

RecognizedText is what an engine returns for one settled frame.
RecognitionEvent is what the dispatcher publishes to listeners
(the HTTP/WebSocket surface), for successes and failures alike.

Example:
    {
        "success": true,
        "text": "こんにちは",
        "error": null,
        "frame_id": 42,
        "timestamp": 1707321234.567,
        "latency_ms": 183.2
    }
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class RecognizedText(BaseModel):
    """
    Text recognized in a canonical frame.

    Attributes:
        text: Full recognized text (may span several lines)
        language_hints: Hints that were sent with the request
        latency_ms: Wall-clock time spent in the engine
    """

    text: str = Field(..., description="Full recognized text")
    language_hints: List[str] = Field(
        default_factory=list,
        description="Language hints sent with the request",
    )
    latency_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Time spent in the recognition engine",
    )


class RecognitionEvent(BaseModel):
    """
    Notification for one recognition attempt.

    Attributes:
        success: Whether usable text was recognized
        text: Recognized text (None on failure)
        error: Failure description (None on success)
        frame_id: Capture id of the settled frame
        timestamp: Capture timestamp of the settled frame
        latency_ms: Time spent on the attempt
    """

    success: bool = Field(..., description="Recognition produced usable text")
    text: Optional[str] = Field(default=None, description="Recognized text")
    error: Optional[str] = Field(default=None, description="Failure description")
    frame_id: int = Field(..., ge=0, description="Capture id of the settled frame")
    timestamp: float = Field(..., description="Capture timestamp of the settled frame")
    latency_ms: float = Field(default=0.0, ge=0.0, description="Attempt latency")
