"""Playback queue services and catalog adapters."""
