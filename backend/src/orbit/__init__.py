"""Orbit realtime support package."""
