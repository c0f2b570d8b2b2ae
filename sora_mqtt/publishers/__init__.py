"""
MQTT Publishers
===============

Bounded Context: Message Production

Design:
- BasePublisher: Abstract base with connection management
- ZoneSetPublisher: Publishes a mission's SORA zones

Public API
----------
    BasePublisher: Abstract publisher (for custom publishers)
    ZoneSetPublisher: Zone set message publisher
"""

from .base import BasePublisher
from .zone_set import ZoneSetPublisher

__all__ = [
    'BasePublisher',
    'ZoneSetPublisher',
]
