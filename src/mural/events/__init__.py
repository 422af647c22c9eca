"""Mural event system."""

from mural.events.bus import EventBus
from mural.events.types import EventType

__all__ = ["EventBus", "EventType"]
