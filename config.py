#!/usr/bin/env python3
"""
Configuration settings for the Voice Kiosk Ordering System
"""

import os

class Config:
    """Application configuration"""

    # Flask Configuration
    SECRET_KEY = os.getenv('SECRET_KEY', 'voice-kiosk-secret-key-change-in-production')
    PORT = int(os.environ.get('PORT', 5000))
    DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true'

    # Menu matching configuration
    # Scores are distances in [0, 1]; lower is a better match.
    MATCH_STRATEGY = os.getenv('MATCH_STRATEGY', 'fuzzy')  # "fuzzy" or "substring"
    MATCH_THRESHOLD = float(os.getenv('MATCH_THRESHOLD', 0.4))
    ACCEPT_THRESHOLD = float(os.getenv('ACCEPT_THRESHOLD', 0.5))

    # Quantity configuration
    DEFAULT_QUANTITY = 1
    MAX_QUANTITY_WORD = 50

    # Transcript configuration
    MAX_TRANSCRIPT_LENGTH = int(os.getenv('MAX_TRANSCRIPT_LENGTH', 2000))
    TRANSCRIPT_RESET_DELAY = float(os.getenv('TRANSCRIPT_RESET_DELAY', 1.0))  # seconds

    # Speech capture supervision
    CAPTURE_MAX_RETRIES = int(os.getenv('CAPTURE_MAX_RETRIES', 3))
    CAPTURE_RETRY_BACKOFF = float(os.getenv('CAPTURE_RETRY_BACKOFF', 1.0))  # seconds

    # Order configuration
    ORDER_ID_PREFIX = "KSK"

    # Logging Configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
