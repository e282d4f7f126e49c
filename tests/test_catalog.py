import pytest

from flipwheel.catalog import (
    DeviceCatalog, DeviceDescription, DeviceInstance, Device, ROOT_PATH,
    is_mouse, parse_descriptor,
)
from flipwheel.errors import AccessError, MalformedDescriptor, ParseError
from flipwheel.store import MemoryStore, join_path


def test_parse_descriptor():
    desc = parse_descriptor("@mouhid.inf,%HID\\VID_046D%;Generic USB Mouse")
    assert desc == DeviceDescription(
        driver="@mouhid.inf",
        device_type="%HID\\VID_046D%",
        name="Generic USB Mouse",
    )


def test_parse_descriptor_empty_fields():
    assert parse_descriptor("drv,;") == DeviceDescription("drv", "", "")
    assert parse_descriptor(",;") == DeviceDescription("", "", "")


def test_parse_descriptor_name_keeps_separators():
    desc = parse_descriptor("drv,type;Mouse, wireless; v2")
    assert desc.device_type == "type"
    assert desc.name == "Mouse, wireless; v2"


@pytest.mark.parametrize("raw", [
    "",
    "no separators",
    "drv,type only",
    "drv;name only",
    "drv;type,name",
])
def test_parse_descriptor_malformed(raw):
    with pytest.raises(MalformedDescriptor) as excinfo:
        parse_descriptor(raw)
    assert isinstance(excinfo.value, ParseError)
    assert excinfo.value.raw == raw


def test_is_mouse_is_exact():
    assert is_mouse(DeviceDescription("@mouhid.inf", "", "Mouse"))
    assert not is_mouse(DeviceDescription("@MOUHID.INF", "", "Mouse"))
    assert not is_mouse(DeviceDescription("@mouhid.inf ", "", "Mouse"))
    assert not is_mouse(DeviceDescription("@mouhid", "", "Mouse"))
    assert not is_mouse(None)
    assert is_mouse(DeviceDescription("@msmouse.inf", "", "Mouse"), driver="@msmouse.inf")


def test_instance_paths():
    instance = DeviceInstance(device_id="VID_1", id="7&1", description=None)
    assert instance.path == join_path(ROOT_PATH, "VID_1", "7&1")
    assert instance.params_path == join_path(ROOT_PATH, "VID_1", "7&1", "Device Parameters")
    assert instance.friendly_name == ""
    assert str(instance) == "VID_1\\7&1"


def test_list_root_devices_keeps_store_order(catalog):
    devices = catalog.list_root_devices()
    assert [d.id for d in devices] == [
        'VID_046D&PID_C077',
        'VID_04D9&PID_1702&MI_00',
        'VID_1532&PID_0084',
    ]
    assert devices[0].path == join_path(ROOT_PATH, 'VID_046D&PID_C077')


def test_list_root_devices_missing_root():
    catalog = DeviceCatalog(MemoryStore({}))
    with pytest.raises(AccessError):
        catalog.list_root_devices()


def test_list_instances_tolerates_bad_descriptors(catalog):
    instances = catalog.list_instances(Device('VID_1532&PID_0084'))
    assert [i.id for i in instances] == ['9&aaaa&0&0000', '9&bbbb&0&0000', '9&cccc&0&0000']
    assert all(i.device_id == 'VID_1532&PID_0084' for i in instances)
    assert instances[0].friendly_name == 'Razer Mouse'
    assert instances[2].description is None


def test_list_instances_without_descriptor(store):
    store.tree['SYSTEM']['CurrentControlSet']['Enum']['HID']['VID_X'] = {'0000': {}}
    instances = DeviceCatalog(store).list_instances(Device('VID_X'))
    assert instances == [DeviceInstance(device_id='VID_X', id='0000', description=None)]


def test_list_instances_descriptor_wrong_type(store):
    store.tree['SYSTEM']['CurrentControlSet']['Enum']['HID']['VID_X'] = {'0000': {'DeviceDesc': 7}}
    instances = DeviceCatalog(store).list_instances(Device('VID_X'))
    assert instances[0].description is None


def test_list_instances_denied_device(store, catalog):
    store.deny(join_path(ROOT_PATH, 'VID_1532&PID_0084'))
    with pytest.raises(AccessError):
        catalog.list_instances(Device('VID_1532&PID_0084'))


def test_list_instances_missing_device(catalog):
    with pytest.raises(AccessError):
        catalog.list_instances(Device('VID_FFFF'))


def test_load_mice_order(catalog):
    mice = catalog.load_mice()
    assert [str(m) for m in mice] == [
        'VID_046D&PID_C077\\7&1a2b3c&0&0000',
        'VID_1532&PID_0084\\9&aaaa&0&0000',
        'VID_1532&PID_0084\\9&bbbb&0&0000',
    ]


def test_load_mice_given_devices(catalog):
    mice = catalog.load_mice([Device('VID_1532&PID_0084'), Device('VID_046D&PID_C077')])
    assert [m.device_id for m in mice] == [
        'VID_1532&PID_0084', 'VID_1532&PID_0084', 'VID_046D&PID_C077',
    ]


def test_load_mice_custom_driver(store):
    catalog = DeviceCatalog(store, mouse_driver='@keyboard.inf')
    assert [m.device_id for m in catalog.load_mice()] == ['VID_04D9&PID_1702&MI_00']


def test_load_mice_aborts_on_denied_device(store, catalog):
    store.deny(join_path(ROOT_PATH, 'VID_04D9&PID_1702&MI_00'))
    with pytest.raises(AccessError):
        catalog.load_mice()


def test_custom_root():
    store = MemoryStore({'Enum': {'HID': {'Dev': {'Inst': {'DeviceDesc': '@mouhid.inf,;M'}}}}})
    catalog = DeviceCatalog(store, root='Enum\\HID')
    mice = catalog.load_mice()
    assert mice == [DeviceInstance('Dev', 'Inst', DeviceDescription('@mouhid.inf', '', 'M'), root='Enum\\HID')]
    assert mice[0].path == 'Enum\\HID\\Dev\\Inst'
