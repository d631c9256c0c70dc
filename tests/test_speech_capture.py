"""
Tests for transcript event narrowing and the capture restart supervisor.
"""
import pytest

from speech_capture import CaptureError, CaptureSupervisor, SpeechCapture, TranscriptEvent


class FlakyCapture(SpeechCapture):
    """Recognizer that fails a fixed number of start attempts."""

    def __init__(self, failures=0, fail_stop=False):
        self.failures = failures
        self.fail_stop = fail_stop
        self.start_calls = 0
        self.stop_calls = 0

    def start(self):
        self.start_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise OSError("microphone unavailable")

    def stop(self):
        self.stop_calls += 1
        if self.fail_stop:
            raise OSError("already stopped")


class TestTranscriptEvent:
    """Tests for TranscriptEvent.from_payload()."""

    def test_final_transcript(self):
        event = TranscriptEvent.from_payload({"transcript": "2 naan", "isFinal": True, "confidence": "0.9"})
        assert event.text == "2 naan"
        assert event.is_final
        assert event.confidence == pytest.approx(0.9)

    def test_interim_transcript(self):
        event = TranscriptEvent.from_payload({"transcript": "2 na", "isFinal": False})
        assert not event.is_final

    def test_text_key_and_snake_case_flag(self):
        event = TranscriptEvent.from_payload({"text": "naan", "is_final": False})
        assert event.text == "naan"
        assert not event.is_final

    def test_defaults(self):
        event = TranscriptEvent.from_payload({})
        assert event.text == ""
        assert event.is_final
        assert event.confidence is None

    def test_null_transcript_is_empty(self):
        assert TranscriptEvent.from_payload({"transcript": None}).text == ""

    def test_bad_confidence_dropped(self):
        assert TranscriptEvent.from_payload({"transcript": "naan", "confidence": "high"}).confidence is None

    def test_non_string_transcript_rejected(self):
        with pytest.raises(TypeError):
            TranscriptEvent.from_payload({"transcript": 42})

    def test_non_dict_payload_rejected(self):
        with pytest.raises(TypeError):
            TranscriptEvent.from_payload(["naan"])

    def test_direct_construction_checks_text(self):
        with pytest.raises(TypeError):
            TranscriptEvent(text=None)


class TestCaptureSupervisor:
    """Tests for bounded restart of the recognizer."""

    @pytest.fixture
    def sleeps(self):
        return []

    def make(self, capture, sleeps, max_retries=3):
        return CaptureSupervisor(capture, max_retries=max_retries, backoff=0.5, sleep=sleeps.append)

    def test_start_succeeds(self, sleeps):
        capture = FlakyCapture()
        supervisor = self.make(capture, sleeps)
        supervisor.start()
        assert supervisor.running
        assert supervisor.wanted
        assert capture.start_calls == 1
        assert sleeps == []

    def test_start_retries_with_backoff(self, sleeps):
        capture = FlakyCapture(failures=2)
        supervisor = self.make(capture, sleeps)
        supervisor.start()
        assert supervisor.running
        assert capture.start_calls == 3
        assert sleeps == [0.5, 0.5]

    def test_start_gives_up(self, sleeps):
        capture = FlakyCapture(failures=10)
        supervisor = self.make(capture, sleeps, max_retries=2)
        with pytest.raises(CaptureError):
            supervisor.start()
        assert capture.start_calls == 3
        assert not supervisor.running
        assert not supervisor.wanted

    def test_restart_after_unexpected_end(self, sleeps):
        capture = FlakyCapture()
        supervisor = self.make(capture, sleeps)
        supervisor.start()
        assert supervisor.on_capture_ended()
        assert supervisor.restart_count == 1
        assert capture.start_calls == 2
        assert supervisor.running

    def test_no_restart_after_stop(self, sleeps):
        capture = FlakyCapture()
        supervisor = self.make(capture, sleeps)
        supervisor.start()
        supervisor.stop()
        assert not supervisor.on_capture_ended()
        assert capture.start_calls == 1
        assert capture.stop_calls == 1

    def test_restart_failure_raises(self, sleeps):
        capture = FlakyCapture()
        supervisor = self.make(capture, sleeps, max_retries=1)
        supervisor.start()
        capture.failures = 5
        with pytest.raises(CaptureError):
            supervisor.on_capture_ended()
        assert not supervisor.wanted

    def test_stop_errors_are_logged_not_raised(self, sleeps):
        capture = FlakyCapture(fail_stop=True)
        supervisor = self.make(capture, sleeps)
        supervisor.start()
        supervisor.stop()
        assert not supervisor.running

    def test_stop_when_not_running(self, sleeps):
        capture = FlakyCapture()
        supervisor = self.make(capture, sleeps)
        supervisor.stop()
        assert capture.stop_calls == 0
