
"""Run the live emoji overlay.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_overlay.py  # (to see camera overlay window)

Press 'q' to quit the window.
"""
import logging

from core.config import Settings
from core.live import run_live_overlay

def main():
    logging.basicConfig(level=logging.INFO)
    s = Settings()
    run_live_overlay(s)

if __name__ == '__main__':
    main()
