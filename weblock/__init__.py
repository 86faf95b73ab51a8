# =======================================================================================
# weblock/__init__.py - Package Initialization
# =======================================================================================
"""
SecureWebLock - Electronic Lock Management Dashboard

A single-page dashboard for an electronic door-lock demo, backed by a
real-time document store and mirrored into every open page over WebSockets.
"""

__version__ = "1.0.0"
__author__ = "SecureWebLock Team"
