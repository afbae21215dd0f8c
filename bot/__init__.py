"""Telegram front-end for Sign Spotlight."""
