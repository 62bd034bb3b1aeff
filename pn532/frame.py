import binascii
import logging
from functools import reduce

from pn532.exceptions import ProtocolError

PN532_PREAMBLE                      = 0x00
PN532_STARTCODE1                    = 0x00
PN532_STARTCODE2                    = 0xFF
PN532_POSTAMBLE                     = 0x00

PN532_HOSTTOPN532                   = 0xD4
PN532_PN532TOHOST                   = 0xD5

PN532_ACK_FRAME                     = b'\x00\x00\xff\x00\xff\x00'
PN532_NACK_FRAME                    = b'\x00\x00\xff\xff\x00\x00'
PN532_ERROR_FRAME                   = b'\x00\x00\xff\x01\xff\x7f\x81\x00'
PN532_WAKEUP_PREAMBLE               = b'\x55\x55\x00\x00\x00\x00\x00\x00\x00'

PN532_RESPONSE_INDATAEXCHANGE       = 0x41

# control frames in the order they are searched for
CONTROL_FRAMES = (PN532_ACK_FRAME, PN532_NACK_FRAME, PN532_ERROR_FRAME)

logger = logging.getLogger('pn532.frame')


class FrameType(object):
    ACK = 'ACKFRAME'
    NACK = 'NACKFRAME'
    ERROR = 'ERRORFRAME'
    DATA = 'DATAFRAME'


def _uint8_add(a, b):
    """Add add two values as unsigned 8-bit values."""
    return ((a & 0xFF) + (b & 0xFF)) & 0xFF


def length_checksum(length):
    return _uint8_add(~length, 1)


def data_checksum(data):
    """Two's complement of the byte sum, so that sum(data) + checksum == 0 mod 256."""
    checksum = reduce(_uint8_add, data, 0xFF)
    return ~checksum & 0xFF


def encode(payload, direction=PN532_HOSTTOPN532):
    """Build a frame around payload (command code followed by its parameters).

    Layout: preamble, start codes, LEN, LCS, direction byte, payload, DCS,
    postamble. LEN counts the direction byte and the payload.
    """
    payload = bytes(bytearray(payload))
    length = len(payload) + 1
    if not 1 < length < 255:
        raise ValueError('Payload must be array of 1 to 253 bytes.')
    frame = bytearray(length + 7)
    frame[0] = PN532_PREAMBLE
    frame[1] = PN532_STARTCODE1
    frame[2] = PN532_STARTCODE2
    frame[3] = length & 0xFF
    frame[4] = length_checksum(length)
    frame[5] = direction & 0xFF
    frame[6:-2] = payload
    frame[-2] = data_checksum(bytearray([direction & 0xFF]) + payload)
    frame[-1] = PN532_POSTAMBLE
    return bytes(frame)


def is_ack(buffer):
    return bytes(buffer) == PN532_ACK_FRAME


def is_nack(buffer):
    return bytes(buffer[:6]) == PN532_NACK_FRAME


def is_error(buffer):
    # The second branch matches an InDataExchange response (code 0x41 right
    # after the direction byte) carrying a non-zero status byte.
    if len(buffer) < 8:
        return False
    if bytes(buffer[:8]) == PN532_ERROR_FRAME:
        return True
    return buffer[6] == PN532_RESPONSE_INDATAEXCHANGE and buffer[7] != 0


def decode(buffer):
    """Classify a single frame by its fixed byte pattern."""
    buffer = bytearray(buffer)
    if is_ack(buffer):
        return FrameType.ACK
    if is_nack(buffer):
        return FrameType.NACK
    if is_error(buffer):
        return FrameType.ERROR
    return FrameType.DATA


def _next_control(buffer, start):
    found = None
    for pattern in CONTROL_FRAMES:
        index = buffer.find(pattern, start)
        if index >= 0 and (found is None or index < found[0]):
            found = (index, pattern)
    return found


def split_frames(buffer):
    """Yield the logical frames glued together in one received chunk.

    Control frames are sliced out in the order they appear. Whatever is left
    over is yielded last as a single data frame.
    """
    buffer = bytes(bytearray(buffer))
    remainder = b''
    position = 0
    while position < len(buffer):
        found = _next_control(buffer, position)
        if found is None:
            remainder += buffer[position:]
            break
        index, pattern = found
        remainder += buffer[position:index]
        yield buffer[index:index + len(pattern)]
        position = index + len(pattern)
    if remainder:
        yield remainder


def frame_complete(buffer):
    """Check whether a data remainder already holds the whole frame its LEN announces."""
    buffer = bytes(bytearray(buffer))
    start = buffer.find(b'\x00\xff')
    if start < 0:
        # only preamble zeros so far, the start code is still on its way
        return len(buffer.strip(b'\x00')) > 0
    if len(buffer) < start + 3:
        return False
    length = buffer[start + 2]
    return len(buffer) >= start + length + 5


def unpack(frame):
    """Validate a data frame and return a tuple (direction byte, body).

    Raises ProtocolError if the preamble, the length checksum or the data
    checksum do not match.
    """
    response = bytearray(frame)
    logger.debug("unpacking: {}".format(binascii.hexlify(response).decode()))
    if len(response) == 0 or response[0] != 0x00:
        raise ProtocolError('Response frame does not start with 0x00!', frame)
    # Swallow all the 0x00 values that preceed 0xFF.
    offset = 1
    while offset < len(response) and response[offset] == 0x00:
        offset += 1
    if offset >= len(response) or response[offset] != 0xFF:
        raise ProtocolError('Response frame preamble does not contain 0x00FF!', frame)
    offset += 1
    if offset + 1 >= len(response):
        raise ProtocolError('Response contains no data!', frame)
    # Check length & length checksum match.
    frame_len = response[offset]
    if (frame_len + response[offset + 1]) & 0xFF != 0:
        raise ProtocolError('Response length checksum did not match length!', frame)
    body = response[offset + 2:offset + 2 + frame_len]
    if frame_len == 0 or len(body) != frame_len or len(response) < offset + 3 + frame_len:
        raise ProtocolError('Response is shorter than its announced length!', frame)
    # Check frame checksum value matches bytes.
    checksum = reduce(_uint8_add, response[offset + 2:offset + 3 + frame_len], 0)
    if checksum != 0:
        raise ProtocolError('Response checksum did not match expected value!', frame)
    return body[0], bytes(body[1:])
