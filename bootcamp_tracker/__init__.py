"""Bootcamp Tracker - course progress, streaks and achievements service"""

__version__ = "1.0.0"
