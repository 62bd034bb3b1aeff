import pytest

from pn532.device import PN532, ConnectionState
from pn532.exceptions import CommandTimeout, NegotiationError, ProtocolError, ValidationError
from pn532.frame import PN532_ACK_FRAME, PN532_WAKEUP_PREAMBLE
from pn532.options import DeviceOptions

from conftest import BLOCK, FAKE_PATH, Fake_Transport, response, tag_response


def make_device(transport, **kwargs):
    return PN532(transport, DeviceOptions(**kwargs), settle_delay=0, probe_timeout=0.02)


def test_get_firmware_version(transport):
    assert make_device(transport).get_firmware_version() == (0x32, 0x01, 0x06, 0x07)
    assert transport.bodies(0x02) == [b'\x02']


def test_get_tag(transport):
    tag = make_device(transport).get_tag()
    assert tag.uid == '04:a2:3f'
    assert tag.length_uid == 3
    assert tag.uid_dec == '416263'
    assert tag.atqa == b'\x00\x44'
    assert tag.sak == 0x08
    assert transport.bodies(0x4A) == [b'\x4a\x01\x00']


def test_get_tag_seven_byte_uid(transport):
    transport.script(0x4A, [PN532_ACK_FRAME, tag_response([0x04, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66])])
    tag = make_device(transport).get_tag()
    assert tag.uid == '04:11:22:33:44:55:66'
    assert tag.length_uid == 7


def test_get_tag_without_target(transport):
    transport.script(0x4A, [PN532_ACK_FRAME, response(0x4B, [0x00])])
    assert make_device(transport).get_tag() is None


def test_get_tag_length_mismatch(transport):
    transport.script(0x4A, [PN532_ACK_FRAME, tag_response(length=7)])
    with pytest.raises(ValidationError):
        make_device(transport).get_tag()


def test_unexpected_response_code(transport):
    transport.script(0x4A, [PN532_ACK_FRAME, response(0x03, [0x32, 0x01, 0x06, 0x07])])
    with pytest.raises(ProtocolError):
        make_device(transport).get_tag()


def test_authenticate_block(transport):
    device = make_device(transport, block_address=0x04, auth_type=0x61, auth_key=[1, 2, 3, 4, 5, 6])
    assert device.authenticate_block('04:a2:3f', 3)
    assert transport.bodies(0x40) == [bytes([0x40, 0x01, 0x61, 0x04, 1, 2, 3, 4, 5, 6, 0x04, 0xA2, 0x3F])]


def test_authenticate_block_uid_mismatch_is_not_sent(transport):
    with pytest.raises(ValidationError):
        make_device(transport).authenticate_block('04:a2:3f', 4)
    assert transport.writes == []


def test_authenticate_block_malformed_uid(transport):
    with pytest.raises(ValidationError):
        make_device(transport).authenticate_block('04:zz:3f', 3)
    assert transport.writes == []


def test_authenticate_block_rejected(transport):
    transport.script(0x40, [PN532_ACK_FRAME, response(0x41, [0x14])])
    with pytest.raises(ProtocolError) as info:
        make_device(transport).authenticate_block('04:a2:3f', 3)
    assert info.value.status == 0x14


def test_read_block(transport):
    assert make_device(transport, block_address=0x05).read_block() == BLOCK[:6]
    assert transport.bodies(0x40) == [b'\x40\x01\x30\x05']


def test_read_block_too_short(transport):
    transport.script(0x40, [PN532_ACK_FRAME, response(0x41, [0x00, 0x01])])
    with pytest.raises(ProtocolError):
        make_device(transport).read_block()


def test_set_sam(transport):
    assert make_device(transport).set_sam()
    assert transport.bodies(0x14) == [b'\x14\x01\x00\x01']


def test_power_down_wakes_next_command(transport):
    device = make_device(transport)
    device.get_firmware_version()
    device.get_firmware_version()
    device.power_down()
    device.set_sam()
    assert transport.bodies(0x16) == [b'\x16\x55']
    assert transport.writes[1].startswith(b'\x00\x00\xff')
    assert transport.writes[2].startswith(b'\x00\x00\xff')
    assert transport.writes[3].startswith(PN532_WAKEUP_PREAMBLE)


def test_set_baudrate(transport):
    device = make_device(transport)
    assert device.set_baudrate(57600, timeout=1)
    assert transport.bodies(0x10) == [b'\x10\x03']
    assert transport.writes[1] == PN532_ACK_FRAME
    assert transport.baudrate == 57600


def test_set_baudrate_keeps_device_ready():
    transport = Fake_Transport()
    device = make_device(transport, baudrate=115200)
    device.open()
    assert device.set_baudrate(57600, timeout=1)
    assert device.state == ConnectionState.READY
    assert device.is_ready
    assert transport.baudrate == 57600


def test_set_baudrate_failure_closes(transport):
    device = make_device(transport)
    device.state = ConnectionState.READY
    transport.script(0x10, None)
    with pytest.raises(CommandTimeout):
        device.set_baudrate(57600, timeout=0.05)
    assert device.state == ConnectionState.CLOSED
    assert not device.is_ready


def test_open_with_fixed_baudrate():
    transport = Fake_Transport()
    device = make_device(transport, baudrate=115200)
    device.open()
    assert device.state == ConnectionState.READY
    assert device.is_ready
    assert transport.opens == [(FAKE_PATH, 115200)]
    assert transport.commands() == [0x16, 0x14]


def test_open_negotiates():
    transport = Fake_Transport(device_rate=57600)
    device = make_device(transport)
    device.open()
    assert device.is_ready
    assert transport.baudrate == 230400
    assert transport.commands()[-4:] == [0x02, 0x10, 0x16, 0x14]


def test_open_failure_closes():
    transport = Fake_Transport(device_rate=4800)
    device = make_device(transport)
    with pytest.raises(NegotiationError):
        device.open()
    assert device.state == ConnectionState.CLOSED
    assert not transport.is_open


def test_default_command_timeout(transport):
    device = PN532(transport)
    assert device.timeout == 60
    assert device.channel.timeout == 60
    device.reopen(FAKE_PATH, 115200)
    assert device.channel.timeout == 60


def test_close(transport):
    device = make_device(transport, baudrate=115200)
    device.open()
    device.close()
    assert device.state == ConnectionState.CLOSED
    assert not device.is_ready
