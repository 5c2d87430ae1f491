"""Domain enumerations and state-transition rules."""

import enum


class StopType(str, enum.Enum):
    PICKUP = "pickup"
    DROPOFF = "dropoff"


class RoutingProfile(str, enum.Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"


class WatcherStatus(str, enum.Enum):
    IDLE = "IDLE"
    RESOLVING = "RESOLVING"
    RESOLVED = "RESOLVED"
    FAILED = "FAILED"


# State machine: maps current status -> set of valid next statuses
WATCHER_TRANSITIONS: dict[WatcherStatus, set[WatcherStatus]] = {
    WatcherStatus.IDLE: {WatcherStatus.IDLE, WatcherStatus.RESOLVING},
    WatcherStatus.RESOLVING: {
        WatcherStatus.IDLE,
        WatcherStatus.RESOLVING,
        WatcherStatus.RESOLVED,
        WatcherStatus.FAILED,
    },
    WatcherStatus.RESOLVED: {WatcherStatus.IDLE, WatcherStatus.RESOLVING},
    WatcherStatus.FAILED: {WatcherStatus.IDLE, WatcherStatus.RESOLVING},
}
