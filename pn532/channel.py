import binascii
import logging
from threading import Event, RLock

from pn532.diagnostics import Diagnostics
from pn532.exceptions import CommandTimeout, PN532Error, ProtocolError, TransportError
from pn532.frame import (CONTROL_FRAMES, PN532_ERROR_FRAME, PN532_WAKEUP_PREAMBLE, FrameType, decode, encode, frame_complete,
                         split_frames)

# Deadline of a single command in seconds
COMMAND_TIMEOUT = 60


# Pending_Command
# INFO:     The single command a channel is waiting on. Resolved with the raw data frame or rejected with an error,
#           whichever comes first.
class Pending_Command(object):

    def __init__(self, frame):
        self.frame = frame
        self.event = Event()
        self.response = None
        self.error = None

    def resolve(self, frame):
        self.response = frame
        self.event.set()

    def reject(self, error):
        self.error = error
        self.event.set()


# Command_Channel
# INFO:     Owns the transport while a command is in flight. Received chunks are split into frames and dispatched to
#           the pending command: ACK and NACK frames are flow control and ignored, the first data frame resolves it,
#           the first error frame rejects it. Frames arriving while nothing is pending are dropped.
#           The channel also tracks whether the PN532 is awake; until a response was seen, every command is prefixed
#           with the wake-up preamble.
# ARGS:     transport (Transport) -> opened byte channel, diagnostics (Diagnostics) -> hooks for in/out buffers,
#           timeout (float) -> default deadline per command in seconds, woken (bool) -> initial wake state
# RETURNS:  /
class Command_Channel(object):

    def __init__(self, transport, diagnostics=None, timeout=COMMAND_TIMEOUT, woken=False):
        # set-up for logging of the channel. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.INFO
        self.logtitle = 'pn532.channel'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        self.transport = transport
        self.diagnostics = diagnostics or Diagnostics()
        self.timeout = timeout
        self.woken = woken
        self.lock = RLock()
        self.pending = None
        self.partial = b''
        self.transport.set_receiver(self.feed)

    @property
    def is_pending(self):
        return self.pending is not None

    # submit
    # INFO:     Sends one command and blocks until its outcome is known.
    # ARGS:     payload (bytes) -> command code followed by its parameters, timeout (float) -> deadline in seconds,
    #           the channel default if None
    # RETURNS:  raw bytes of the data frame answering the command
    def submit(self, payload, timeout=None):
        if timeout is None:
            timeout = self.timeout
        frame = encode(payload)
        with self.lock:
            if self.pending is not None:
                raise PN532Error('Cannot submit a command while another one is pending!')
            pending = Pending_Command(frame)
            self.pending = pending
            self.partial = b''
            if not self.woken:
                self.logger.debug('device not woken up yet, prefixing wake-up preamble')
                frame = PN532_WAKEUP_PREAMBLE + frame

        self.logger.debug("OUT: {}".format(binascii.hexlify(frame).decode()))
        self.diagnostics.buffer_out(frame)
        try:
            self.transport.write(frame)
        except TransportError:
            self.release(pending)
            raise

        if not pending.event.wait(timeout):
            self.release(pending)
            if not pending.event.is_set():
                self.logger.debug('command timed out after {}s'.format(timeout))
                raise CommandTimeout('No response within {}s'.format(timeout))
        if pending.error is not None:
            raise pending.error
        return pending.response

    # release
    # INFO:     Forgets the given command if it is still the pending one. Calling it twice does nothing.
    def release(self, pending):
        with self.lock:
            if self.pending is pending:
                self.pending = None
                self.partial = b''

    def send_raw(self, data):
        """Write bytes that are not a command, e.g. an ACK frame. No response is awaited."""
        self.logger.debug("OUT: {}".format(binascii.hexlify(data).decode()))
        self.diagnostics.buffer_out(data)
        self.transport.write(bytes(data))

    def reset_wake(self):
        with self.lock:
            self.woken = False

    # feed
    # INFO:     Receiver of raw chunks from the transport. An incomplete data frame at the end of a chunk is kept and
    #           completed by the following chunks.
    # ARGS:     chunk (bytes) -> received bytes
    # RETURNS:  /
    def feed(self, chunk):
        self.diagnostics.buffer_in(chunk)
        with self.lock:
            buffer = self.partial + bytes(chunk)
            self.partial = b''
            for frame in split_frames(buffer):
                if frame not in CONTROL_FRAMES and not frame_complete(frame):
                    self.partial = frame
                    continue
                self.woken = True
                self.dispatch(frame)

    def dispatch(self, frame):
        frame_type = decode(frame)
        pending = self.pending
        if pending is None:
            self.logger.debug("no command pending, dropping {}: {}".format(frame_type, binascii.hexlify(frame).decode()))
            return
        if frame_type in (FrameType.ACK, FrameType.NACK):
            self.logger.debug("IN: {}".format(frame_type))
            return
        self.pending = None
        if frame_type == FrameType.ERROR:
            self.logger.debug("IN: error frame {}".format(binascii.hexlify(frame).decode()))
            # the syntax error frame carries no status, the InDataExchange variant does
            status = None if frame[:8] == PN532_ERROR_FRAME else frame[7]
            pending.reject(ProtocolError('Device answered with an error frame!', frame, status))
        else:
            pending.resolve(frame)
