import pytest

from flipwheel.catalog import ROOT_PATH, DeviceCatalog
from flipwheel.store import MemoryStore

from .helpers import nest

MOUSE_DESC = "@mouhid.inf,%hid.mousedevice%;HID-compliant mouse"
KEYBOARD_DESC = "@keyboard.inf,%hid.keyboarddevice%;HID Keyboard Device"


@pytest.fixture
def hid_tree():
    return {
        'VID_046D&PID_C077': {
            '7&1a2b3c&0&0000': {
                'DeviceDesc': "@mouhid.inf,%hid.mousedevice%;Logitech Mouse",
                'Device Parameters': {'FlipFlopWheel': 0},
            },
        },
        'VID_04D9&PID_1702&MI_00': {
            '8&2222&0&0000': {
                'DeviceDesc': KEYBOARD_DESC,
                'Device Parameters': {'FlipFlopWheel': 1},
            },
        },
        'VID_1532&PID_0084': {
            '9&aaaa&0&0000': {
                'DeviceDesc': "@mouhid.inf,%hid.mousedevice%;Razer Mouse",
                'Device Parameters': {'FlipFlopWheel': 1},
            },
            '9&bbbb&0&0000': {
                'DeviceDesc': MOUSE_DESC,
                'Device Parameters': {'SelectiveSuspendEnabled': 1},
            },
            '9&cccc&0&0000': {
                'DeviceDesc': "broken descriptor",
            },
        },
    }


@pytest.fixture
def store(hid_tree):
    return MemoryStore(nest(ROOT_PATH, hid_tree))


@pytest.fixture
def catalog(store):
    return DeviceCatalog(store)
