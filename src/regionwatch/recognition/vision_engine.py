"""
Vision Recognition Engine
=========================

Production recognition engine using Google Cloud Vision text detection.

This engine:
    - PNG-encodes the canonical frame
    - Calls Vision TEXT_DETECTION with language hints
    - Runs the blocking client call in a worker thread
    - Treats API errors and empty annotations as failures

Design Rules:
    - Fail fast on misconfiguration
    - Never retry; one call per settled change
    - Log all API calls
"""

import asyncio
import logging
import time
from typing import Optional, Sequence

import cv2

from regionwatch.models.frame import Frame
from regionwatch.models.recognition import RecognizedText
from regionwatch.recognition.engine import RecognitionFailure


logger = logging.getLogger(__name__)


class VisionAPIError(RecognitionFailure):
    """Raised when the Vision API call itself fails."""
    pass


def encode_png(frame: Frame) -> bytes:
    """Encode an RGBA frame as PNG bytes."""
    try:
        bgra = cv2.cvtColor(frame.pixels, cv2.COLOR_RGBA2BGRA)
        ok, buffer = cv2.imencode(".png", bgra)
    except cv2.error as e:
        raise RecognitionFailure(f"PNG encoding failed for frame {frame.frame_id}: {e}") from e
    if not ok:
        raise RecognitionFailure(f"PNG encoding failed for frame {frame.frame_id}")
    return buffer.tobytes()


class VisionRecognitionEngine:
    """
    Recognition engine backed by Google Cloud Vision.

    Attributes:
        credentials_path: Path to service account JSON (None = ADC)
        timeout_sec: Per-request timeout passed to the client
    """

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        timeout_sec: float = 30.0,
    ) -> None:
        """
        Initialize Vision recognition engine.

        Args:
            credentials_path: Path to service account JSON (optional)
            timeout_sec: Request timeout in seconds

        Raises:
            ImportError: If google-cloud-vision is not installed
            VisionAPIError: If the client cannot be created
        """
        self.timeout_sec = timeout_sec

        self._api_call_count: int = 0
        self._api_error_count: int = 0

        self._client = None
        self._init_client(credentials_path)

        logger.info(f"VisionRecognitionEngine initialized: timeout={timeout_sec}s")

    def _init_client(self, credentials_path: Optional[str]) -> None:
        """Initialize Google Cloud Vision client."""
        try:
            from google.cloud import vision

            if credentials_path:
                self._client = vision.ImageAnnotatorClient.from_service_account_json(
                    credentials_path
                )
                logger.info(f"Vision client initialized from: {credentials_path}")
            else:
                # Use default credentials (ADC / GOOGLE_APPLICATION_CREDENTIALS)
                self._client = vision.ImageAnnotatorClient()
                logger.info("Vision client initialized with default credentials")

        except ImportError:
            raise ImportError(
                "google-cloud-vision is required for VisionRecognitionEngine. "
                "Install with: pip install google-cloud-vision"
            )
        except Exception as e:
            raise VisionAPIError(f"Failed to initialize Vision client: {e}")

    async def recognize(
        self,
        frame: Frame,
        language_hints: Sequence[str],
    ) -> RecognizedText:
        """
        Detect text in a frame.

        Args:
            frame: Canonical frame to send
            language_hints: Language codes for the image context

        Returns:
            RecognizedText with the full text annotation

        Raises:
            RecognitionFailure: API error, transport error or no text
        """
        from google.cloud import vision

        started = time.perf_counter()
        content = encode_png(frame)

        request = vision.AnnotateImageRequest(
            image=vision.Image(content=content),
            features=[vision.Feature(type_=vision.Feature.Type.TEXT_DETECTION)],
            image_context=vision.ImageContext(language_hints=list(language_hints)),
        )

        try:
            response = await asyncio.to_thread(
                self._client.batch_annotate_images,
                requests=[request],
                timeout=self.timeout_sec,
            )
        except Exception as e:
            self._api_error_count += 1
            raise VisionAPIError(f"Vision API call failed: {e}") from e
        finally:
            self._api_call_count += 1

        if not response.responses:
            self._api_error_count += 1
            raise VisionAPIError(f"Vision API returned no response for frame {frame.frame_id}")
        result = response.responses[0]
        if result.error.message:
            self._api_error_count += 1
            raise VisionAPIError(f"Vision API: {result.error.message}")

        text = result.full_text_annotation.text
        latency_ms = (time.perf_counter() - started) * 1000.0

        logger.debug(
            f"Vision API: frame={frame.frame_id}, chars={len(text)}, "
            f"latency={latency_ms:.0f}ms"
        )

        if not text.strip():
            raise RecognitionFailure(f"No text detected in frame {frame.frame_id}")

        return RecognizedText(
            text=text,
            language_hints=list(language_hints),
            latency_ms=latency_ms,
        )

    @property
    def api_call_count(self) -> int:
        """Total API calls made."""
        return self._api_call_count

    @property
    def api_error_count(self) -> int:
        """Total API errors."""
        return self._api_error_count

    def get_metrics(self) -> dict:
        """Get engine metrics for observability."""
        return {
            "api_call_count": self._api_call_count,
            "api_error_count": self._api_error_count,
        }
