"""
Domain events for module lifecycle transitions.
"""

from modsync.core.events.bus import EventBus, EventBusConfig
from modsync.core.events.models import (
    MODULE_DISABLED,
    MODULE_ENABLED,
    BaseEvent,
    EventSeverity,
    SourceSubsystem,
    module_disabled,
    module_enabled,
)
from modsync.core.events.subscribers import JsonlEventSubscriber

__all__ = [
    "MODULE_DISABLED",
    "MODULE_ENABLED",
    "BaseEvent",
    "EventBus",
    "EventBusConfig",
    "EventSeverity",
    "JsonlEventSubscriber",
    "SourceSubsystem",
    "module_disabled",
    "module_enabled",
]
