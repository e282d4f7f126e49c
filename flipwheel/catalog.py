"""
Device enumeration from the HID branch of the device tree.

Each child of the root path is a device (usually a VID/PID string), and
each child of a device is one instance of it. Instances carry a DeviceDesc
value such as "@msmouse.inf,%hid.mousedevice%;HID-compliant mouse".
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import AccessError, MalformedDescriptor
from .store import HierarchicalStore, join_path

log = logging.getLogger(__name__)

ROOT_PATH = r"SYSTEM\CurrentControlSet\Enum\HID"
DEVICE_PARAMETERS = "Device Parameters"
DEVICE_DESC = "DeviceDesc"

# Driver token of the mouse class driver
MOUSE_DRIVER = "@mouhid.inf"


@dataclass(frozen=True)
class DeviceDescription:
    """Parsed form of a DeviceDesc value."""
    driver: str
    device_type: str
    name: str


@dataclass(frozen=True)
class Device:
    """A device class node directly under the root path."""
    id: str
    root: str = ROOT_PATH

    @property
    def path(self) -> str:
        return join_path(self.root, self.id)


@dataclass(frozen=True)
class DeviceInstance:
    """One instance node under a Device."""
    device_id: str
    id: str
    description: Optional[DeviceDescription] = None
    root: str = ROOT_PATH

    @property
    def path(self) -> str:
        return join_path(self.root, self.device_id, self.id)

    @property
    def params_path(self) -> str:
        return join_path(self.path, DEVICE_PARAMETERS)

    @property
    def friendly_name(self) -> str:
        return self.description.name if self.description else ""

    def __str__(self):
        return f"{self.device_id}\\{self.id}"


def parse_descriptor(raw: str) -> DeviceDescription:
    """
    Parse a "<driver>,<type>;<name>" descriptor.

    The driver ends at the first comma and the type at the first semicolon.
    Everything after that semicolon is the name, commas and all.

    Raises:
        MalformedDescriptor: if a separator is missing or the semicolon
            comes before the comma.
    """
    comma = raw.find(',')
    semicolon = raw.find(';')
    if comma < 0 or semicolon < 0 or semicolon < comma:
        raise MalformedDescriptor(raw)

    return DeviceDescription(
        driver=raw[:comma],
        device_type=raw[comma + 1:semicolon],
        name=raw[semicolon + 1:],
    )


def is_mouse(description: Optional[DeviceDescription], driver: str = MOUSE_DRIVER) -> bool:
    """True if the description names the mouse class driver (exact match)."""
    return description is not None and description.driver == driver


class DeviceCatalog:
    """Reads devices and their instances from a HierarchicalStore."""

    def __init__(self, store: HierarchicalStore, root: str = ROOT_PATH,
                 mouse_driver: str = MOUSE_DRIVER):
        self.store = store
        self.root = root
        self.mouse_driver = mouse_driver

    def list_root_devices(self) -> List[Device]:
        """
        List the devices under the root path, in store order.

        Raises:
            AccessError: if the root path cannot be listed.
        """
        names = self.store.list_children(self.root)
        log.debug(f"Got {len(names)} device names under {self.root}")
        return [Device(id=name, root=self.root) for name in names]

    def list_instances(self, device: Device) -> List[DeviceInstance]:
        """
        List the instances of a device, in store order.

        An instance whose DeviceDesc is missing, unreadable or malformed is
        still returned, with description set to None.

        Raises:
            AccessError: if the device path cannot be listed.
        """
        result = []
        for name in self.store.list_children(device.path):
            path = join_path(device.path, name)
            description = None
            try:
                description = parse_descriptor(self.store.read_string_value(path, DEVICE_DESC))
            except MalformedDescriptor as e:
                log.debug(f"{path}: {e}")
            except AccessError as e:
                log.debug(f"{path}: no usable {DEVICE_DESC} ({e})")

            result.append(DeviceInstance(
                device_id=device.id,
                id=name,
                description=description,
                root=device.root,
            ))
        return result

    def is_mouse(self, instance: DeviceInstance) -> bool:
        return is_mouse(instance.description, self.mouse_driver)

    def load_mice(self, devices: Optional[Iterable[Device]] = None) -> List[DeviceInstance]:
        """
        Collect every mouse instance across devices.

        Order is device order, then instance order within each device.
        """
        if devices is None:
            devices = self.list_root_devices()

        mice = []
        for device in devices:
            log.debug(f"Processing device {device.id}")
            for instance in self.list_instances(device):
                mouse = self.is_mouse(instance)
                log.debug(f"\t{instance.id}: is mouse: {mouse}")
                if mouse:
                    mice.append(instance)
        return mice
