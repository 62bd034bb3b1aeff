import binascii
import logging
import time
from threading import RLock

from pn532.baudrate import DEFAULT_BAUDRATE, PROBE_TIMEOUT, TARGET_BAUDRATE, Baud_Negotiator, baud_rate_code
from pn532.channel import COMMAND_TIMEOUT, Command_Channel
from pn532.diagnostics import Diagnostics
from pn532.exceptions import ProtocolError, TransportError, ValidationError
from pn532.frame import PN532_ACK_FRAME, PN532_PN532TOHOST, unpack
from pn532.options import DeviceOptions
from pn532.tag import TagInfo
from pn532.transport import Serial_Transport, Transport

# PN532 Commands
PN532_COMMAND_GETFIRMWAREVERSION    = 0x02
PN532_COMMAND_SETSERIALBAUDRATE     = 0x10
PN532_COMMAND_SAMCONFIGURATION      = 0x14
PN532_COMMAND_POWERDOWN             = 0x16
PN532_COMMAND_INDATAEXCHANGE        = 0x40
PN532_COMMAND_INLISTPASSIVETARGET   = 0x4A

PN532_MIFARE_ISO14443A              = 0x00
PN532_SAMCONFIGURATION_MODE_NORMAL  = 0x01
PN532_WAKEUP_SOURCES                = 0x55  # wake-up enable mask passed to PowerDown

MIFARE_CMD_READ                     = 0x30

SETTLE_DELAY                        = 0.5  # s, around closing and reopening the port
BAUD_SWITCH_TIMEOUT                 = 1.0  # s


class ConnectionState(object):
    CLOSED = 'CLOSED'
    PROBING = 'PROBING'
    SWITCHING = 'SWITCHING'
    AWAITING_SAM = 'AWAITING_SAM'
    READY = 'READY'


class PN532(object):
    """Controller of a PN532 attached over UART.

    Every public operation holds the session lock for its whole duration, so
    a poll cycle and direct calls from other threads never interleave on the
    transport.
    """

    def __init__(self, port, options=None, diagnostics=None, timeout=COMMAND_TIMEOUT,
                 settle_delay=SETTLE_DELAY, probe_timeout=PROBE_TIMEOUT):
        # set-up for logging of pn532. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.WARNING
        self.logtitle = 'pn532.device'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        if isinstance(port, Transport):
            self.transport = port
            self.path = port.path
        else:
            self.transport = Serial_Transport()
            self.path = port
        self.logger.debug("Port: {}".format(self.path))

        self.options = options or DeviceOptions()
        self.diagnostics = diagnostics or Diagnostics()
        self.timeout = timeout
        self.settle_delay = settle_delay
        self.probe_timeout = probe_timeout
        self.session = RLock()
        self.state = ConnectionState.CLOSED
        self.channel = Command_Channel(self.transport, self.diagnostics, self.timeout)

    @property
    def is_ready(self):
        return self.state == ConnectionState.READY and self.transport.is_open

    def _call(self, command, params=(), timeout=None):
        """Send command with params and return the response data following the
        response code. Raises ProtocolError if the answer is not a response to
        command.
        """
        frame = self.channel.submit(bytearray([command]) + bytearray(params), timeout)
        direction, body = unpack(frame)
        if direction != PN532_PN532TOHOST or len(body) == 0 or body[0] != command + 1:
            raise ProtocolError('Received unexpected command response!', frame)
        return body[1:]

    # open
    # INFO:     One attempt of the open sequence: open the port (negotiating the baud rate unless a fixed one is
    #           configured), put the PN532 into power down and wake it up again with the SAM configuration.
    #           Retrying is up to the caller.
    # ARGS:     /
    # RETURNS:  /
    def open(self):
        with self.session:
            try:
                self.state = ConnectionState.PROBING
                if self.options.baudrate:
                    self.reopen(self.path, self.options.baudrate)
                else:
                    Baud_Negotiator(self, TARGET_BAUDRATE, self.probe_timeout).negotiate(self.path)
                self.power_down()
                self.state = ConnectionState.AWAITING_SAM
                self.set_sam()
                self.state = ConnectionState.READY
                self.logger.info('PN532 ready at {} baud'.format(self.transport.baudrate))
            except Exception:
                self.state = ConnectionState.CLOSED
                self._close_quietly()
                raise

    def close(self):
        # no session lock, so closing never waits for a command in flight
        self.state = ConnectionState.CLOSED
        self.transport.close()

    def _close_quietly(self):
        try:
            self.transport.close()
        except TransportError as e:
            self.logger.warning('closing transport failed: {}'.format(e))

    def reopen(self, path, baudrate=DEFAULT_BAUDRATE):
        """Close the transport, open it again at baudrate and bind a new channel to it."""
        self.transport.close()
        self.transport.open(path, baudrate)
        self.path = path
        self.channel = Command_Channel(self.transport, self.diagnostics, self.timeout)

    def get_firmware_version(self, timeout=None):
        """Call PN532 GetFirmwareVersion function and return a tuple with the IC,
        Ver, Rev, and Support values.
        """
        with self.session:
            self.diagnostics.step("Get Firmware...")
            response = self._call(PN532_COMMAND_GETFIRMWAREVERSION, timeout=timeout)
            if len(response) < 4:
                raise ProtocolError('Firmware version response is too short!', response)
            return (response[0], response[1], response[2], response[3])

    def set_sam(self, timeout=None):
        """Configure the PN532 to read MiFare cards."""
        # Send SAM configuration command with configuration for:
        # - 0x01, normal mode
        # - 0x00, no timeout
        # - 0x01, use IRQ pin
        with self.session:
            self.diagnostics.step("Setting SAM config...")
            self._call(PN532_COMMAND_SAMCONFIGURATION, [PN532_SAMCONFIGURATION_MODE_NORMAL, 0x00, 0x01], timeout)
            return True

    def power_down(self, timeout=None):
        """Put the PN532 into power down with wake-up over UART enabled. The
        next command is sent with the wake-up preamble again.
        """
        with self.session:
            self.diagnostics.step("Setting Power Down...")
            self._call(PN532_COMMAND_POWERDOWN, [PN532_WAKEUP_SOURCES], timeout)
            time.sleep(self.settle_delay)
            self.channel.reset_wake()

    def send_ack(self):
        self.channel.send_raw(PN532_ACK_FRAME)

    def set_baudrate(self, baudrate, timeout=BAUD_SWITCH_TIMEOUT):
        """Switch the PN532 and the transport to baudrate.

        The PN532 changes its rate after the ACK that follows its response, so
        the port is closed and reopened at the new rate with a settle delay on
        both sides.
        """
        code = baud_rate_code(baudrate)
        with self.session:
            previous = self.state
            self.state = ConnectionState.SWITCHING
            self.diagnostics.step("Setting Baud Rate... {}".format(baudrate))
            try:
                self._call(PN532_COMMAND_SETSERIALBAUDRATE, [code], timeout)
                self.send_ack()
                time.sleep(self.settle_delay)
                self.transport.close()
                time.sleep(self.settle_delay)
                self.reopen(self.path, baudrate)
            except Exception:
                self.state = ConnectionState.CLOSED
                raise
            self.state = previous
            return True

    def get_tag(self, timeout=None):
        """Wait for one ISO14443A tag and return its TagInfo, or None if the
        PN532 reports no target.
        """
        with self.session:
            self.diagnostics.step("Waiting tag...")
            response = self._call(PN532_COMMAND_INLISTPASSIVETARGET, [0x01, PN532_MIFARE_ISO14443A], timeout)
            # response: NbTg, Tg, ATQA (2), SAK, UID length, UID
            if len(response) == 0 or response[0] == 0x00:
                return None
            if len(response) < 6:
                raise ProtocolError('Target data is too short!', response)
            length_uid = response[5]
            tag = TagInfo(response[6:6 + length_uid], length_uid, response[2:4], response[4])
            if len(tag.uid.split(':')) != length_uid:
                raise ValidationError('UID {} does not match the expected length {}'.format(tag.uid, length_uid))
            return tag

    def authenticate_block(self, uid, length_uid, timeout=None):
        """Authenticate the configured block of the tag with the configured key.

        uid is the colon separated hex UID as returned by get_tag. Raises
        ValidationError without talking to the PN532 if it does not hold
        length_uid bytes.
        """
        try:
            uid_array = [int(part, 16) for part in uid.split(':') if part]
        except ValueError:
            raise ValidationError('UID {} is not colon separated hex'.format(uid))
        if len(uid_array) != length_uid:
            raise ValidationError('UID length {} does not match {}'.format(len(uid_array), length_uid))
        options = self.options
        params = [options.tag_number, options.auth_type, options.block_address] + list(options.auth_key) + uid_array
        with self.session:
            self.diagnostics.step("Authenticate block...")
            response = self._call(PN532_COMMAND_INDATAEXCHANGE, params, timeout)
            self._check_status(response)
            return True

    def read_block(self, timeout=None):
        """Read the configured block and return its first 6 bytes."""
        options = self.options
        with self.session:
            self.diagnostics.step("Read block...")
            response = self._call(PN532_COMMAND_INDATAEXCHANGE,
                                  [options.tag_number, MIFARE_CMD_READ, options.block_address], timeout)
            self._check_status(response)
            if len(response) < 7:
                raise ProtocolError('Block data is too short!', response)
            return bytes(response[1:7])

    def _check_status(self, response):
        if len(response) == 0:
            raise ProtocolError('InDataExchange response carries no status!', response)
        if response[0] != 0x00:
            raise ProtocolError('InDataExchange failed with status {:#04x}'.format(response[0]), response, response[0])
        self.logger.debug("InDataExchange: {}".format(binascii.hexlify(response).decode()))
