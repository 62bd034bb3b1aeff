import collections

import pytest

from pn532.baudrate import BAUD_RATE_CODES
from pn532.exceptions import TransportError
from pn532.frame import PN532_ACK_FRAME, PN532_PN532TOHOST, PN532_WAKEUP_PREAMBLE, encode, unpack
from pn532.transport import Transport

FAKE_PATH = '/dev/fake'
UID = [0x04, 0xA2, 0x3F]
BLOCK = bytes(range(0x10, 0x20))


def response(code, data=b''):
    """A data frame as the PN532 sends it back for command code - 1."""
    return encode(bytes([code]) + bytes(bytearray(data)), PN532_PN532TOHOST)


def tag_response(uid=UID, atqa=(0x00, 0x44), sak=0x08, length=None):
    length = len(uid) if length is None else length
    return response(0x4B, [0x01, 0x01] + list(atqa) + [sak, length] + list(uid))


def default_answer(command, body):
    if command == 0x02:
        return [PN532_ACK_FRAME, response(0x03, [0x32, 0x01, 0x06, 0x07])]
    if command == 0x10:
        return [PN532_ACK_FRAME, response(0x11)]
    if command == 0x14:
        return [PN532_ACK_FRAME, response(0x15)]
    if command == 0x16:
        return [PN532_ACK_FRAME, response(0x17, [0x00])]
    if command == 0x4A:
        return [PN532_ACK_FRAME, tag_response()]
    if command == 0x40 and body[2] == 0x30:
        return [PN532_ACK_FRAME, response(0x41, b'\x00' + BLOCK)]
    if command == 0x40:
        return [PN532_ACK_FRAME, response(0x41, [0x00])]
    return None


def command_of(data):
    """Command code of a written frame, None for raw writes like an ACK."""
    data = bytes(data)
    if data.startswith(PN532_WAKEUP_PREAMBLE):
        data = data[len(PN532_WAKEUP_PREAMBLE):]
    if data == PN532_ACK_FRAME:
        return None, b''
    direction, body = unpack(data)
    return body[0], body


class Fake_Transport(Transport):
    """In-memory transport answering written commands synchronously.

    device_rate is the baud rate the simulated PN532 listens at, None for any
    rate. Scripted answers are consumed per command code before the defaults;
    an answer is a list of chunks, or None to stay silent.
    """

    def __init__(self, path=FAKE_PATH, device_rate=None, failing_opens=0):
        Transport.__init__(self)
        self.path = path
        self.device_rate = device_rate
        self.failing_opens = failing_opens
        self.opened = False
        self.opens = []
        self.writes = []
        self.scripts = collections.defaultdict(collections.deque)

    @property
    def is_open(self):
        return self.opened

    def open(self, path, baudrate):
        self.opens.append((path, baudrate))
        if self.failing_opens > 0:
            self.failing_opens -= 1
            raise TransportError('cannot open {}'.format(path))
        self.path = path
        self.baudrate = baudrate
        self.opened = True

    def close(self):
        self.opened = False

    def script(self, command, *answers):
        self.scripts[command].extend(answers)

    def write(self, data):
        if not self.opened:
            raise TransportError('{} is not open'.format(self.path))
        self.writes.append(bytes(data))
        command, body = command_of(data)
        if command is None:
            return
        if self.device_rate is not None and self.baudrate != self.device_rate:
            return
        if self.scripts[command]:
            answer = self.scripts[command].popleft()
        else:
            answer = default_answer(command, body)
        for chunk in answer or []:
            self.deliver(chunk)
        if command == 0x10 and answer:
            self.device_rate = dict((code, rate) for rate, code in BAUD_RATE_CODES.items())[body[1]]

    def commands(self):
        return [command_of(data)[0] for data in self.writes if command_of(data)[0] is not None]

    def bodies(self, command):
        return [command_of(data)[1] for data in self.writes if command_of(data)[0] == command]


@pytest.fixture
def transport():
    fake = Fake_Transport()
    fake.open(FAKE_PATH, 115200)
    return fake
