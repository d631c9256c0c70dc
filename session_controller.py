#!/usr/bin/env python3
"""
Session control for the voice kiosk.

SessionController holds the pure transitions:
    (SessionState, input) -> (SessionState, SessionEffects)
VoiceSession wraps them for a host: it owns the current state, serializes
transcript processing, drives the capture supervisor and clears the
idempotency guard after the settle delay.
"""

import logging
import random
import threading
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from cart_engine import Cart, CartReconciler, OperationType, ResolvedOperation
from config import Config
from menu_data import CatalogItem, find_item_by_id, get_menu, item_to_dict
from menu_matcher import MenuMatcher
from nlp_processor import TranscriptInterpreter
from speech_capture import CaptureError, CaptureSupervisor, TranscriptEvent

logger = logging.getLogger(__name__)

IDLE = "idle"
LISTENING = "listening"

VIEW_MENU = "menu"
VIEW_CART = "cart"

MSG_WELCOME = 'Say "start recording" to begin'
MSG_LISTENING = "Listening for commands..."
MSG_STOPPED = 'Recording stopped. Say "start recording" to begin again.'
MSG_STOPPED_MANUAL = "Recording stopped."
MSG_VIEW_CART = 'Viewing cart. Say "add more" to return to menu.'
MSG_VIEW_MENU = 'Back to menu. Say "go to cart" to view your order.'
MSG_UNRECOGNIZED = "Command not recognized. Please try again."
MSG_ORDER_RESET = "Order has been reset."
MSG_CAPTURE_FAILED = "Speech recognition is unavailable. Please try again."


def generate_order_id() -> str:
    return f"{Config.ORDER_ID_PREFIX}{random.randint(0, 9999)}"


@dataclass(frozen=True)
class SessionState:
    """Everything the kiosk core remembers between inputs."""
    listening: bool = False
    last_processed_transcript: str = ""
    cart: Cart = field(default_factory=Cart)
    view: str = VIEW_MENU
    status_message: str = MSG_WELCOME
    order_id: str = ""

    @property
    def capture_state(self) -> str:
        return LISTENING if self.listening else IDLE

    def to_dict(self) -> Dict:
        return {
            "order_id": self.order_id,
            "state": self.capture_state,
            "listening": self.listening,
            "view": self.view,
            "status_message": self.status_message,
            "cart": self.cart.to_dict(),
        }


@dataclass(frozen=True)
class SessionEffects:
    """What the host should do after an input was handled."""
    cart: Cart
    status_message: str
    navigation: Optional[str] = None
    capture_signal: Optional[str] = None  # "start" | "stop"
    applied: Tuple[ResolvedOperation, ...] = ()
    ignored: Tuple[ResolvedOperation, ...] = ()
    reset_capture: bool = False
    duplicate: bool = False

    def to_dict(self) -> Dict:
        return {
            "cart": self.cart.to_dict(),
            "status_message": self.status_message,
            "navigation": self.navigation,
            "capture_signal": self.capture_signal,
            "applied": [operation.type for operation in self.applied],
            "ignored": [operation.type for operation in self.ignored],
            "duplicate": self.duplicate,
        }


def new_session(order_id: Optional[str] = None) -> SessionState:
    return SessionState(order_id=order_id or generate_order_id())


class SessionController:
    """Pure session transitions; never mutates the state it is given"""

    def __init__(self, interpreter: TranscriptInterpreter, reconciler: CartReconciler):
        self.interpreter = interpreter
        self.reconciler = reconciler

    def handle_transcript(self, state: SessionState, transcript: str) -> Tuple[SessionState, SessionEffects]:
        """
        Interpret a transcript and apply its operations in spoken order.

        While idle only StartCapture is honored; everything before it is
        ignored. Once StopCapture is applied, the rest of the transcript is
        ignored. A transcript equal to the last one processed is skipped.
        """
        if not isinstance(transcript, str):
            raise TypeError(f"Transcript must be a string, got {type(transcript).__name__}")

        if transcript == state.last_processed_transcript:
            logger.debug("Duplicate transcript ignored")
            return state, SessionEffects(cart=state.cart, status_message=state.status_message, duplicate=True)

        operations = self.interpreter.interpret(transcript)

        listening = state.listening
        cart = state.cart
        view = state.view
        navigation = None
        capture_signal = None
        messages: List[str] = []
        applied: List[ResolvedOperation] = []
        ignored: List[ResolvedOperation] = []

        for operation in operations:
            if operation.type == OperationType.START_CAPTURE:
                if not listening:
                    listening = True
                    capture_signal = "start"
                    messages.append(MSG_LISTENING)
                applied.append(operation)
                continue

            if not listening:
                ignored.append(operation)
                continue

            if operation.type == OperationType.STOP_CAPTURE:
                listening = False
                capture_signal = "stop"
                messages.append(MSG_STOPPED)
            elif operation.type == OperationType.NAVIGATE_TO_CART:
                view = navigation = VIEW_CART
                messages.append(MSG_VIEW_CART)
            elif operation.type == OperationType.NAVIGATE_TO_MENU:
                view = navigation = VIEW_MENU
                messages.append(MSG_VIEW_MENU)
            elif operation.type == OperationType.UNRECOGNIZED:
                messages.append(MSG_UNRECOGNIZED)
            else:
                cart, message = self.reconciler.apply_one(cart, operation)
                if message:
                    messages.append(message)
            applied.append(operation)

        if ignored:
            logger.info(f"🔇 Idle, ignored {len(ignored)} operation(s)")

        status = " ".join(messages) if messages else state.status_message
        new_state = replace(
            state,
            listening=listening,
            last_processed_transcript=transcript,
            cart=cart,
            view=view,
            status_message=status,
        )
        effects = SessionEffects(
            cart=cart,
            status_message=status,
            navigation=navigation,
            capture_signal=capture_signal,
            applied=tuple(applied),
            ignored=tuple(ignored),
            reset_capture=bool(applied),
        )
        return new_state, effects

    def manual_add(self, state: SessionState, item: CatalogItem, quantity: int = 1) -> Tuple[SessionState, SessionEffects]:
        """UI add-to-cart click; goes through the same reconciler as voice."""
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        operation = ResolvedOperation.add(item, quantity)
        result = self.reconciler.apply(state.cart, [operation])
        new_state = replace(state, cart=result.cart, status_message=result.message)
        return new_state, SessionEffects(cart=result.cart, status_message=result.message, applied=(operation,))

    def manual_reset(self, state: SessionState) -> Tuple[SessionState, SessionEffects]:
        operation = ResolvedOperation.command(OperationType.RESET)
        result = self.reconciler.apply(state.cart, [operation])
        new_state = replace(state, cart=result.cart, status_message=MSG_ORDER_RESET)
        return new_state, SessionEffects(cart=result.cart, status_message=MSG_ORDER_RESET, applied=(operation,))

    def navigate(self, state: SessionState, view: str) -> Tuple[SessionState, SessionEffects]:
        if view not in (VIEW_MENU, VIEW_CART):
            raise ValueError(f"Unknown view: {view}")
        message = MSG_VIEW_CART if view == VIEW_CART else MSG_VIEW_MENU
        new_state = replace(state, view=view, status_message=message)
        return new_state, SessionEffects(cart=state.cart, status_message=message, navigation=view)

    def set_listening(self, state: SessionState, listening: bool) -> Tuple[SessionState, SessionEffects]:
        """Start/stop button. Clears the idempotency guard like a fresh capture."""
        if listening == state.listening:
            return replace(state, last_processed_transcript=""), SessionEffects(
                cart=state.cart, status_message=state.status_message)
        message = MSG_LISTENING if listening else MSG_STOPPED_MANUAL
        new_state = replace(state, listening=listening, last_processed_transcript="", status_message=message)
        return new_state, SessionEffects(
            cart=state.cart,
            status_message=message,
            capture_signal="start" if listening else "stop",
        )

    def reset_capture(self, state: SessionState) -> SessionState:
        """Clear the idempotency guard so the next utterance is processed even if identical."""
        return replace(state, last_processed_transcript="")


class VoiceSession:
    """Owns one kiosk session's state and serializes every input through the controller"""

    def __init__(self, session_id: str, menu_name: str = "kiosk",
                 supervisor: Optional[CaptureSupervisor] = None,
                 strategy: str = Config.MATCH_STRATEGY,
                 reset_delay: Optional[float] = Config.TRANSCRIPT_RESET_DELAY):
        self.session_id = session_id
        self.menu = get_menu(menu_name)
        interpreter = TranscriptInterpreter(self.menu, matcher=MenuMatcher(self.menu, strategy=strategy))
        self.controller = SessionController(interpreter, CartReconciler(self.menu))
        self.state = new_session()
        self.supervisor = supervisor
        self.reset_delay = reset_delay
        self.transcripts: List[str] = []
        self._lock = threading.RLock()
        self._reset_timer: Optional[threading.Timer] = None

    @property
    def cart(self) -> Cart:
        return self.state.cart

    @property
    def listening(self) -> bool:
        return self.state.listening

    @property
    def status_message(self) -> str:
        return self.state.status_message

    def on_transcript(self, transcript: str) -> SessionEffects:
        with self._lock:
            self.state, effects = self.controller.handle_transcript(self.state, transcript)
            if not effects.duplicate:
                self.transcripts.append(transcript)
                logger.info(f"📊 Session {self.session_id}: {self.cart.item_count} items, "
                            f"total: {self.cart.total:.2f}")
            effects = self._drive_capture(effects)
            if effects.reset_capture:
                self._schedule_capture_reset()
            return effects

    def on_transcript_event(self, event: TranscriptEvent) -> Optional[SessionEffects]:
        """Interim results are only displayed by the host; finals are interpreted."""
        if not event.is_final:
            return None
        return self.on_transcript(event.text)

    def on_capture_ended(self) -> None:
        if not self.supervisor:
            return
        with self._lock:
            try:
                self.supervisor.on_capture_ended()
            except CaptureError as e:
                logger.error(f"❌ {e}")
                self.state = replace(self.state, listening=False, status_message=MSG_CAPTURE_FAILED)

    def start_capture(self) -> SessionEffects:
        return self._apply_manual(self.controller.set_listening, True)

    def stop_capture(self) -> SessionEffects:
        return self._apply_manual(self.controller.set_listening, False)

    def manual_add(self, item_id: str, quantity: int = 1) -> SessionEffects:
        item = find_item_by_id(self.menu, item_id)
        if item is None:
            raise ValueError(f"Unknown menu item: {item_id}")
        return self._apply_manual(self.controller.manual_add, item, quantity)

    def reset_order(self) -> SessionEffects:
        return self._apply_manual(self.controller.manual_reset)

    def navigate(self, view: str) -> SessionEffects:
        return self._apply_manual(self.controller.navigate, view)

    def reset_capture(self) -> None:
        with self._lock:
            self.state = self.controller.reset_capture(self.state)

    def close(self) -> None:
        with self._lock:
            self._cancel_reset_timer()
            if self.supervisor:
                self.supervisor.stop()

    def to_dict(self) -> Dict:
        with self._lock:
            data = self.state.to_dict()
        data["session_id"] = self.session_id
        data["menu_items"] = [item_to_dict(item) for item in self.menu.items]
        data["categories"] = list(self.menu.categories)
        return data

    def _apply_manual(self, transition, *args) -> SessionEffects:
        with self._lock:
            self.state, effects = transition(self.state, *args)
            return self._drive_capture(effects)

    def _drive_capture(self, effects: SessionEffects) -> SessionEffects:
        if not self.supervisor or not effects.capture_signal:
            return effects
        if effects.capture_signal == "stop":
            self.supervisor.stop()
            return effects
        try:
            self.supervisor.start()
        except CaptureError as e:
            logger.error(f"❌ {e}")
            self.state = replace(self.state, listening=False, status_message=MSG_CAPTURE_FAILED)
            return replace(effects, status_message=MSG_CAPTURE_FAILED, capture_signal=None)
        return effects

    def _schedule_capture_reset(self) -> None:
        if self.reset_delay is None:
            return
        self._cancel_reset_timer()
        self._reset_timer = threading.Timer(self.reset_delay, self.reset_capture)
        self._reset_timer.daemon = True
        self._reset_timer.start()

    def _cancel_reset_timer(self) -> None:
        if self._reset_timer:
            self._reset_timer.cancel()
            self._reset_timer = None
