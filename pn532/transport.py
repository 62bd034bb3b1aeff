import binascii
import logging
from threading import Thread

import serial

from pn532.exceptions import TransportError

# Read timeout of the receive thread in seconds. Bounds how long exit() waits for the thread.
READ_TIMEOUT = 0.1


# Base interface for byte transports.
# To be used by any duplex byte channel the PN532 can be attached to.
# Attributes:
#     path: The device path the transport was last opened with.
#     baudrate: The baud rate the transport was last opened with.
#     is_open: Whether the channel is currently usable.
class Transport(object):

    def __init__(self):
        self.path = None
        self.baudrate = None
        self.receiver = None

    @property
    def is_open(self):
        raise NotImplementedError("Attribute 'is_open' must be set by class '%s'" % self.__class__.__name__)

    # Registers the function every received chunk of bytes is handed to.
    # Args:
    #     callback: Function taking one bytes argument. Chunks are not frame aligned.
    def set_receiver(self, callback):
        self.receiver = callback

    # Opens the channel.
    # Args:
    #     path: Device path, e.g. '/dev/ttyS0'.
    #     baudrate: Baud rate to open with (int).
    # Raises:
    #     TransportError if the channel could not be opened.
    def open(self, path, baudrate):
        raise NotImplementedError("Method 'open' must be implemented by class '%s'" % self.__class__.__name__)

    # Closes the channel. Closing a closed channel does nothing.
    def close(self):
        raise NotImplementedError("Method 'close' must be implemented by class '%s'" % self.__class__.__name__)

    # Writes raw bytes.
    # Raises:
    #     TransportError if the channel is closed or the write failed.
    def write(self, data):
        raise NotImplementedError("Method 'write' must be implemented by class '%s'" % self.__class__.__name__)

    def deliver(self, data):
        if self.receiver is not None:
            self.receiver(bytes(data))


# Serial_Receiver
# INFO:     Thread continuously reading the serial port and handing every non-empty chunk to the transport.
# ARGS:     transport (Serial_Transport) -> owner of the port, ser (serial.Serial) -> opened port
# RETURNS:  /
class Serial_Receiver(Thread):

    def __init__(self, transport, ser):
        # set-up for logging of the receiver. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.INFO
        self.logtitle = 'pn532.transport'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        Thread.__init__(self, daemon=True)
        self.is_running = False
        self.transport = transport
        self.ser = ser

    def run(self):
        self.is_running = True

        while self.is_running:
            try:
                data = self.ser.read(self.ser.in_waiting or 1)
            except (serial.SerialException, OSError, TypeError) as e:
                # TypeError is what pyserial raises when the port is closed under a pending read
                if self.is_running:
                    self.logger.error("reading serial port failed: {}".format(e))
                    self.transport.failed = True
                self.is_running = False
                break
            if data:
                self.logger.debug("IN: {}".format(binascii.hexlify(data).decode()))
                try:
                    self.transport.deliver(data)
                except Exception as e:
                    self.logger.exception("exception: {}".format(e))
                    continue

    def exit(self):
        self.is_running = False


# Serial_Transport
# INFO:     Transport over a UART port opened with pyserial. Received bytes are read on a daemon thread.
# ARGS:     serial_cls (type) -> class used to open the port, serial.Serial unless given
# RETURNS:  /
class Serial_Transport(Transport):

    def __init__(self, serial_cls=None):
        Transport.__init__(self)
        # set-up for logging of the transport. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.INFO
        self.logtitle = 'pn532.transport'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        self.serial_cls = serial_cls or serial.Serial
        self.ser = None
        self.thread = None
        self.failed = False

    @property
    def is_open(self):
        return self.ser is not None and self.ser.is_open and not self.failed

    def open(self, path, baudrate):
        self.close()
        self.logger.debug("Port: {} at {} baud".format(path, baudrate))
        try:
            self.ser = self.serial_cls(path, baudrate, timeout=READ_TIMEOUT)
        except (serial.SerialException, OSError, ValueError) as e:
            self.ser = None
            raise TransportError("Opening port {} at {} baud failed: {}".format(path, baudrate, e)) from e
        self.path = path
        self.baudrate = baudrate
        self.failed = False
        self.thread = Serial_Receiver(self, self.ser)
        self.thread.start()

    def close(self):
        if self.thread is not None:
            self.thread.exit()
        ser, self.ser = self.ser, None
        try:
            if ser is not None and ser.is_open:
                ser.close()
        except (serial.SerialException, OSError) as e:
            raise TransportError("Closing port {} failed: {}".format(self.path, e)) from e
        finally:
            if self.thread is not None and self.thread.is_alive():
                self.thread.join(1.0)
            self.thread = None

    def write(self, data):
        if not self.is_open:
            raise TransportError("Port {} is not open".format(self.path))
        try:
            self.ser.write(bytes(data))
        except (serial.SerialException, OSError) as e:
            self.failed = True
            raise TransportError("Writing to port {} failed: {}".format(self.path, e)) from e
