import pytest

from pn532.exceptions import ProtocolError
from pn532.frame import (PN532_ACK_FRAME, PN532_ERROR_FRAME, PN532_HOSTTOPN532, PN532_NACK_FRAME, FrameType,
                         decode, encode, frame_complete, split_frames, unpack)

from conftest import response, tag_response


def test_encode_get_firmware_version():
    assert encode([0x02]) == b'\x00\x00\xff\x02\xfe\xd4\x02\x2a\x00'


@pytest.mark.parametrize('payload', [
    [0x02],
    [0x2C],  # direction byte and payload sum up to 0x100
    [0x4A, 0x01, 0x00],
    [0x40, 0x01, 0x60, 0x04] + [0xFF] * 6 + [0x04, 0xA2, 0x3F, 0x11],
    list(range(200)),
])
def test_checksums(payload):
    frame = encode(payload)
    length, lcs, dcs = frame[3], frame[4], frame[-2]
    assert length == len(payload) + 1
    assert (length + lcs) % 256 == 0
    assert (sum(payload) + PN532_HOSTTOPN532 + dcs) % 256 == 0
    assert unpack(frame) == (PN532_HOSTTOPN532, bytes(payload))


def test_encode_rejects_empty_payload():
    with pytest.raises(ValueError):
        encode([])


def test_decode_control_frames():
    assert decode([0x00, 0x00, 0xFF, 0x00, 0xFF, 0x00]) == FrameType.ACK
    assert decode([0x00, 0x00, 0xFF, 0xFF, 0x00, 0x00]) == FrameType.NACK
    assert decode([0x00, 0x00, 0xFF, 0x01, 0xFF, 0x7F, 0x81, 0x00]) == FrameType.ERROR


def test_decode_data_frames():
    assert decode(tag_response()) == FrameType.DATA
    assert decode(response(0x03, [0x32, 0x01, 0x06, 0x07])) == FrameType.DATA
    assert decode(response(0x41, [0x00] + [0x11] * 16)) == FrameType.DATA


def test_decode_data_exchange_with_status_is_error():
    assert decode(response(0x41, [0x14])) == FrameType.ERROR


def test_split_control_frames_and_remainder():
    segments = list(split_frames(PN532_ACK_FRAME + PN532_NACK_FRAME + b'\x01\x02\x03\x04'))
    assert segments == [PN532_ACK_FRAME, PN532_NACK_FRAME, b'\x01\x02\x03\x04']


def test_split_ack_glued_to_data():
    data = tag_response()
    assert list(split_frames(PN532_ACK_FRAME + data)) == [PN532_ACK_FRAME, data]


def test_split_error_frame():
    assert list(split_frames(PN532_ERROR_FRAME)) == [PN532_ERROR_FRAME]


def test_split_empty_buffer():
    assert list(split_frames(b'')) == []


def test_frame_complete():
    data = tag_response()
    assert frame_complete(data)
    assert not frame_complete(data[:9])
    assert not frame_complete(b'\x00\x00')
    assert frame_complete(b'\x01\x02\x03\x04')


def test_unpack_rejects_bad_checksum():
    frame = bytearray(response(0x03, [0x32, 0x01, 0x06, 0x07]))
    frame[-2] ^= 0xFF
    with pytest.raises(ProtocolError) as info:
        unpack(frame)
    assert info.value.frame == bytes(frame)


def test_unpack_rejects_bad_length_checksum():
    frame = bytearray(response(0x15))
    frame[4] = 0x00
    with pytest.raises(ProtocolError):
        unpack(frame)


def test_unpack_rejects_missing_start_code():
    with pytest.raises(ProtocolError):
        unpack(b'\x00\x00\x00\x00')
