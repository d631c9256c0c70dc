#!/usr/bin/env python3
"""
Voice Kiosk Ordering Web Application
A Flask web app that exposes the transcript interpretation core to the kiosk
front end. Speech recognition runs in the browser; finished transcripts are
posted here (or sent over Socket.IO) and the updated cart is pushed back.
"""

import logging
import uuid

from flask import Flask, request, jsonify, session
from flask_socketio import SocketIO, emit

from config import Config
from menu_data import get_items_by_category, get_menu, item_to_dict
from quantity_parser import parse_quantity
from session_controller import VIEW_CART, VIEW_MENU, VoiceSession
from speech_capture import TranscriptEvent

# Set up logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config['SECRET_KEY'] = Config.SECRET_KEY
app.config['TRANSCRIPT_RESET_DELAY'] = Config.TRANSCRIPT_RESET_DELAY
socketio = SocketIO(app, cors_allowed_origins="*")

# Global state
user_sessions = {}


def get_voice_session():
    """Look up the kiosk session bound to this browser session"""
    session_id = session.get('session_id')
    if not session_id or session_id not in user_sessions:
        return None
    return user_sessions[session_id]


def emit_effects(voice_session, effects):
    """Push cart and navigation changes to connected clients"""
    socketio.emit('cart_update', {
        'cart': effects.cart.to_dict(),
        'status_message': effects.status_message,
        'session_id': voice_session.session_id
    })
    if effects.navigation:
        socketio.emit('navigate', {
            'view': effects.navigation,
            'session_id': voice_session.session_id
        })


def no_session():
    return jsonify({"error": "No active session"}), 400


@app.route('/api/start_session')
def start_session():
    """Start a new ordering session"""
    existing_session_id = session.get('session_id')
    menu_name = request.args.get('menu', 'kiosk')

    if existing_session_id and existing_session_id in user_sessions:
        logger.info(f"🔄 Reusing existing session: {existing_session_id}")
        data = user_sessions[existing_session_id].to_dict()
        data["reused"] = True
        return jsonify(data)

    session_id = str(uuid.uuid4())
    voice_session = VoiceSession(session_id, menu_name,
                                 reset_delay=app.config['TRANSCRIPT_RESET_DELAY'])
    user_sessions[session_id] = voice_session
    session['session_id'] = session_id

    logger.info(f"➕ Created new session: {session_id}, Total sessions: {len(user_sessions)}")

    data = voice_session.to_dict()
    data["reused"] = False
    return jsonify(data)


@app.route('/api/end_session', methods=['POST'])
def end_session():
    """End the current session and forget its cart"""
    session_id = session.pop('session_id', None)
    voice_session = user_sessions.pop(session_id, None) if session_id else None
    if voice_session is None:
        return no_session()
    voice_session.close()
    logger.info(f"🗑️ Ended session: {session_id}")
    return jsonify({"success": True})


@app.route('/api/menu')
def get_menu_items():
    """Menu items, optionally filtered by category"""
    menu = get_menu(request.args.get('menu', 'kiosk'))
    category = request.args.get('category', '')
    return jsonify({
        "menu": menu.name,
        "categories": list(menu.categories),
        "items": [item_to_dict(item) for item in get_items_by_category(menu, category)]
    })


@app.route('/api/transcript', methods=['POST'])
def process_transcript():
    """Interpret a finished transcript and update the cart"""
    voice_session = get_voice_session()
    if voice_session is None:
        return no_session()

    try:
        event = TranscriptEvent.from_payload(request.get_json(silent=True))
    except TypeError as e:
        return jsonify({"error": str(e)}), 400

    effects = voice_session.on_transcript_event(event)
    if effects is None:
        return jsonify({"success": True, "interim": True, "state": voice_session.to_dict()})

    emit_effects(voice_session, effects)
    result = effects.to_dict()
    result["success"] = True
    result["listening"] = voice_session.listening
    return jsonify(result)


@app.route('/api/manual_add', methods=['POST'])
def manual_add():
    """Add-to-cart click from the menu grid"""
    voice_session = get_voice_session()
    if voice_session is None:
        return no_session()

    data = request.get_json(silent=True) or {}
    item_id = data.get('item_id')
    if not item_id:
        return jsonify({"error": "Missing item_id"}), 400

    raw_quantity = data.get('quantity')
    if raw_quantity is None or raw_quantity == '':
        quantity = Config.DEFAULT_QUANTITY
    else:
        quantity = parse_quantity(str(raw_quantity))
        if quantity is None:
            return jsonify({"error": f"Invalid quantity: {raw_quantity!r}"}), 400
    if quantity < 1:
        return jsonify({"error": "Quantity must be at least 1"}), 400

    try:
        effects = voice_session.manual_add(str(item_id), quantity)
    except ValueError as e:
        return jsonify({"error": str(e)}), 404

    emit_effects(voice_session, effects)
    return jsonify({"success": True, **effects.to_dict()})


@app.route('/api/reset', methods=['POST'])
def reset_order():
    """Reset button on the cart view"""
    voice_session = get_voice_session()
    if voice_session is None:
        return no_session()

    effects = voice_session.reset_order()
    emit_effects(voice_session, effects)
    return jsonify({"success": True, **effects.to_dict()})


@app.route('/api/navigate', methods=['POST'])
def navigate():
    """Switch between the menu and cart views"""
    voice_session = get_voice_session()
    if voice_session is None:
        return no_session()

    view = (request.get_json(silent=True) or {}).get('view')
    if view not in (VIEW_MENU, VIEW_CART):
        return jsonify({"error": f"Unknown view: {view}"}), 400

    effects = voice_session.navigate(view)
    emit_effects(voice_session, effects)
    return jsonify({"success": True, **effects.to_dict()})


@app.route('/api/recording', methods=['POST'])
def toggle_recording():
    """Start/stop recording button"""
    voice_session = get_voice_session()
    if voice_session is None:
        return no_session()

    action = (request.get_json(silent=True) or {}).get('action')
    if action == 'start':
        effects = voice_session.start_capture()
    elif action == 'stop':
        effects = voice_session.stop_capture()
    else:
        return jsonify({"error": "action must be 'start' or 'stop'"}), 400

    return jsonify({"success": True, "listening": voice_session.listening, **effects.to_dict()})


@app.route('/api/capture_reset', methods=['POST'])
def capture_reset():
    """Recognizer buffer was cleared; accept the next transcript even if identical"""
    voice_session = get_voice_session()
    if voice_session is None:
        return no_session()

    voice_session.reset_capture()
    return jsonify({"success": True})


@app.route('/api/cart')
def get_cart():
    """Get current cart state"""
    voice_session = get_voice_session()
    if voice_session is None:
        return no_session()

    return jsonify(voice_session.to_dict())


@socketio.on('connect')
def handle_connect():
    """Handle client connection"""
    logger.info(f"Client connected: {request.sid}")


@socketio.on('disconnect')
def handle_disconnect():
    """Handle client disconnection"""
    logger.info(f"Client disconnected: {request.sid}")


@socketio.on('transcript')
def handle_transcript(data):
    """Transcript delivered over the socket by the browser recognizer"""
    session_id = (data or {}).get('session_id') if isinstance(data, dict) else None
    voice_session = user_sessions.get(session_id)

    if voice_session is None:
        emit('error', {'msg': 'No active session'})
        return

    try:
        event = TranscriptEvent.from_payload(data)
    except TypeError as e:
        emit('error', {'msg': str(e)})
        return

    effects = voice_session.on_transcript_event(event)
    if effects is not None:
        emit_effects(voice_session, effects)


if __name__ == '__main__':
    print(f"""
🍛 Voice Kiosk Ordering System
==============================
🌐 API: http://localhost:{Config.PORT}
🎤 Voice transcript interpretation and cart reconciliation
📱 Real-time cart updates over Socket.IO
    """)

    socketio.run(app, host='0.0.0.0', port=Config.PORT, debug=Config.DEBUG)
