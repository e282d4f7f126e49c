"""
Wheel orientation state.

States:
- UNKNOWN: no FlipFlopWheel value, or not a mouse. Cannot be toggled.
- NORMAL: FlipFlopWheel = 0
- FLIPPED: FlipFlopWheel = 1
"""

import logging
import time
from enum import Enum
from typing import Callable, List, Optional
from dataclasses import dataclass

from .catalog import DeviceInstance, MOUSE_DRIVER, is_mouse
from .errors import InvalidStateError, NotFoundError
from .store import HierarchicalStore

log = logging.getLogger(__name__)

FLIP_FLOP_WHEEL = "FlipFlopWheel"


class WheelState(Enum):
    UNKNOWN = -1
    NORMAL = 0
    FLIPPED = 1

    @classmethod
    def from_value(cls, value: int) -> "WheelState":
        """Map a stored FlipFlopWheel value to a state."""
        if value == 0:
            return cls.NORMAL
        if value == 1:
            return cls.FLIPPED
        raise InvalidStateError(f"{FLIP_FLOP_WHEEL} value {value!r} is neither 0 nor 1")

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass
class StateChange:
    """Represents a completed toggle."""
    instance: DeviceInstance
    old_state: WheelState
    new_state: WheelState
    timestamp: float


class WheelStateResolver:
    """Reads the current wheel state of a device instance from the store."""

    def __init__(self, store: HierarchicalStore, mouse_driver: str = MOUSE_DRIVER):
        self.store = store
        self.mouse_driver = mouse_driver

    def resolve(self, instance: DeviceInstance) -> WheelState:
        """
        Resolve the wheel state of an instance.

        Non-mice and instances without a description are UNKNOWN, as are
        mice whose Device Parameters node or FlipFlopWheel value is missing.

        Raises:
            InvalidStateError: if FlipFlopWheel holds something other than 0 or 1.
            AccessError: on any store failure other than a missing node/value.
        """
        if not is_mouse(instance.description, self.mouse_driver):
            log.debug(f"Skip {instance.friendly_name!r} - it's not a mouse")
            return WheelState.UNKNOWN

        path = instance.params_path
        try:
            names = self.store.list_value_names(path)
            if FLIP_FLOP_WHEEL.lower() not in (n.lower() for n in names):
                return WheelState.UNKNOWN
            value = self.store.read_integer_value(path, FLIP_FLOP_WHEEL)
        except NotFoundError:
            return WheelState.UNKNOWN

        log.debug(f"{instance}: {FLIP_FLOP_WHEEL}={value}")
        return WheelState.from_value(value)


class WheelToggler:
    """
    Flips the wheel orientation of a device instance.

    NORMAL <-> FLIPPED is the only transition. The read and the write are
    separate store calls; a concurrent writer between them wins or loses
    without detection.
    """

    def __init__(self, store: HierarchicalStore, resolver: Optional[WheelStateResolver] = None):
        self.store = store
        self.resolver = resolver or WheelStateResolver(store)
        self._listeners: List[Callable[[StateChange], None]] = []

    def add_listener(self, callback: Callable[[StateChange], None]):
        """Add a state change listener."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[StateChange], None]):
        """Remove a state change listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self, change: StateChange):
        for listener in self._listeners:
            try:
                listener(change)
            except Exception:
                # The value is already written
                log.exception(f"State change listener {listener!r} failed")

    def toggle(self, instance: DeviceInstance) -> WheelState:
        """
        Toggle the wheel orientation and return the new state.

        Raises:
            InvalidStateError: if the current state is UNKNOWN or invalid.
            AccessError: if the store cannot be read or written.
        """
        current = self.resolver.resolve(instance)
        if current == WheelState.UNKNOWN:
            raise InvalidStateError(
                f"Cannot toggle {instance}: no established scroll-orientation value"
            )

        new_value = current.value ^ 1
        log.debug(f"New value for {instance} is {new_value}")
        self.store.write_integer_value(instance.params_path, FLIP_FLOP_WHEEL, new_value)

        new_state = WheelState.from_value(new_value)
        log.info(f"Wheel direction of {instance}: {current.label} -> {new_state.label}")

        self._notify_listeners(StateChange(
            instance=instance,
            old_state=current,
            new_state=new_state,
            timestamp=time.time()
        ))
        return new_state
