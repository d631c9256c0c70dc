"""
Boundary between the speech recognizer and the ordering core.

Recognizer payloads are narrowed into TranscriptEvent before they reach the
session. CaptureSupervisor keeps a recognizer running while the kiosk is
listening, restarting it with a fixed backoff and a capped number of retries.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from config import Config

logger = logging.getLogger(__name__)


class CaptureError(Exception):
    """Raised when speech capture cannot be (re)started within the retry budget."""


@dataclass(frozen=True)
class TranscriptEvent:
    """A single transcript delivery from the recognizer."""
    text: str
    is_final: bool = True
    confidence: Optional[float] = None
    received_at: float = field(default_factory=time.time)

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise TypeError(f"Transcript text must be a string, got {type(self.text).__name__}")

    @classmethod
    def from_payload(cls, payload: Dict) -> "TranscriptEvent":
        """Build an event from a loosely typed recognizer or socket payload."""
        if not isinstance(payload, dict):
            raise TypeError("Transcript payload must be a JSON object")
        text = payload.get("transcript", payload.get("text", ""))
        if text is None:
            text = ""
        if not isinstance(text, str):
            raise TypeError("Transcript payload 'transcript' must be a string")

        is_final = payload.get("isFinal", payload.get("is_final", True))
        confidence = payload.get("confidence")
        try:
            confidence = float(confidence) if confidence is not None else None
        except (TypeError, ValueError):
            confidence = None

        return cls(text=text, is_final=bool(is_final), confidence=confidence)


class SpeechCapture(ABC):
    """Capability interface for a speech recognizer."""

    @abstractmethod
    def start(self) -> None:
        """Begin continuous recognition. May raise if the microphone is unavailable."""

    @abstractmethod
    def stop(self) -> None:
        """Stop recognition."""


class CaptureSupervisor:
    """
    Keeps a SpeechCapture running while capture is wanted.

    start() and on_capture_ended() retry a failing recognizer up to
    max_retries times, sleeping backoff seconds between attempts, then give
    up with CaptureError.
    """

    def __init__(self, capture: SpeechCapture,
                 max_retries: int = Config.CAPTURE_MAX_RETRIES,
                 backoff: float = Config.CAPTURE_RETRY_BACKOFF,
                 sleep: Callable[[float], None] = time.sleep):
        self.capture = capture
        self.max_retries = max_retries
        self.backoff = backoff
        self._sleep = sleep
        self._lock = threading.Lock()
        self.wanted = False
        self.running = False
        self.restart_count = 0

    def start(self) -> None:
        with self._lock:
            self.wanted = True
            self._start_with_retries()

    def stop(self) -> None:
        with self._lock:
            self.wanted = False
            if not self.running:
                return
            self.running = False
            try:
                self.capture.stop()
            except Exception as e:
                logger.warning(f"⚠️ Error stopping speech capture: {e}")

    def on_capture_ended(self) -> bool:
        """
        Called when the recognizer stops on its own.
        Returns True if it was restarted, False if capture is no longer wanted.
        """
        with self._lock:
            self.running = False
            if not self.wanted:
                return False
            logger.info("🔄 Speech capture ended unexpectedly, restarting")
            self.restart_count += 1
            self._start_with_retries()
            return True

    def _start_with_retries(self) -> None:
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                self.capture.start()
                self.running = True
                if attempt > 1:
                    logger.info(f"✅ Speech capture started on attempt {attempt}")
                return
            except Exception as e:
                logger.warning(f"⚠️ Speech capture start failed (attempt {attempt}/{attempts}): {e}")
                if attempt == attempts:
                    self.wanted = False
                    raise CaptureError(f"Speech capture failed after {attempts} attempts") from e
                self._sleep(self.backoff)
