import logging
import time
from threading import Thread

from pn532.channel import COMMAND_TIMEOUT
from pn532.device import PN532, SETTLE_DELAY, ConnectionState
from pn532.baudrate import PROBE_TIMEOUT
from pn532.diagnostics import Logging_Diagnostics
from pn532.exceptions import CommandTimeout, PN532Error, ProtocolError, TransportError, ValidationError
from pn532.options import DEFAULT_POLL_INTERVAL, DeviceOptions

NOT_READY_DELAY                     = 0.1   # s
NO_TAG_DELAY                        = 0.02  # s
ERROR_DELAY                         = 0.1   # s
OPEN_RETRY_DELAY                    = 1.0   # s


class PN532_Reader(Thread):

    # __init__
    # INFO:     Sets up logging, the PN532 controller and the state of the poll loop. Nothing is opened yet.
    # ARGS:     port (string or Transport) -> device path or transport, poll_interval (int) -> pause in ms after a tag
    #           was reported, options (DeviceOptions) -> reader options, diagnostics (Diagnostics) -> diagnostic hooks,
    #           built from the show_* options if None. The remaining arguments override timing constants.
    # RETURNS:  /
    def __init__(self, port, poll_interval=DEFAULT_POLL_INTERVAL, options=None, diagnostics=None,
                 timeout=COMMAND_TIMEOUT, settle_delay=SETTLE_DELAY, probe_timeout=PROBE_TIMEOUT,
                 not_ready_delay=NOT_READY_DELAY, no_tag_delay=NO_TAG_DELAY, error_delay=ERROR_DELAY,
                 open_retry_delay=OPEN_RETRY_DELAY):
        # set-up for logging of the reader. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.INFO
        self.logtitle = 'pn532.reader'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        Thread.__init__(self, daemon=True)
        self.is_running = False
        self.open_requested = False
        self.is_polling = True

        self.options = options or DeviceOptions()
        self.diagnostics = diagnostics or Logging_Diagnostics.from_options(self.options)
        self.pn532 = PN532(port, self.options, self.diagnostics, timeout, settle_delay, probe_timeout)
        self.poll_interval = poll_interval
        self.not_ready_delay = not_ready_delay
        self.no_tag_delay = no_tag_delay
        self.error_delay = error_delay
        self.open_retry_delay = open_retry_delay

        self.tag_callback = None
        self.open_callback = None

    # run
    # INFO:     Main thread of this class. Keeps the PN532 open while an open was requested and, as long as a tag
    #           callback is set and polling is not paused, runs one poll cycle after the other.
    # ARGS:     /
    # RETURNS:  /
    def run(self):
        self.is_running = True

        while self.is_running:
            try:
                if not self.pn532.is_ready:
                    if self.open_requested:
                        self.open_device()
                    else:
                        time.sleep(self.not_ready_delay)
                    continue

                if not self.is_polling or self.tag_callback is None:
                    time.sleep(self.not_ready_delay)
                    continue

                self.poll()

            except Exception as e:
                self.logger.exception("exception: {}".format(e))
                time.sleep(self.error_delay)
                continue

        self.pn532.close()

    # open_device
    # INFO:     One supervised attempt of the open sequence. On failure waits the retry delay, the next turn of run()
    #           tries again.
    # ARGS:     /
    # RETURNS:  True if the PN532 is ready, False otherwise
    def open_device(self):
        try:
            self.pn532.open()
        except PN532Error as e:
            self.logger.error("opening PN532 at {} failed: {}. Retrying in {}s".format(self.pn532.path, e, self.open_retry_delay))
            self.diagnostics.error(e)
            time.sleep(self.open_retry_delay)
            return False

        self.logger.info("PN532 opened at {}".format(self.pn532.path))
        if self.open_callback is not None:
            self.open_callback()
        return True

    # poll
    # INFO:     One poll cycle. Validation and protocol errors are logged and retried after a short pause, a timeout ends
    #           the cycle and re-initialises the PN532, a transport error closes it so that it is reopened.
    # ARGS:     /
    # RETURNS:  the reported TagInfo, None if nothing was reported
    def poll(self):
        try:
            tag = self.read_card()
        except CommandTimeout as e:
            self.logger.warning("poll cycle timed out: {}".format(e))
            self.diagnostics.error(e)
            self.reinitialise()
            return None
        except (ValidationError, ProtocolError) as e:
            self.logger.info("poll cycle failed: {}".format(e))
            self.diagnostics.error(e)
            time.sleep(self.error_delay)
            return None
        except TransportError as e:
            self.logger.error("transport failed during poll cycle: {}".format(e))
            self.diagnostics.error(e)
            self.pn532.close()
            return None

        if tag is None:
            time.sleep(self.no_tag_delay)
            return None

        if self.is_polling and self.tag_callback is not None:
            self.logger.debug("detected tag: {}".format(tag))
            self.tag_callback(tag)
        time.sleep(self.poll_interval / 1000.0)
        return tag

    # read_card
    # INFO:     Detects a tag and, if the reader is set to encrypted, authenticates and reads the configured block. The
    #           session lock is held for the whole cycle.
    # ARGS:     /
    # RETURNS:  TagInfo of the tag (with the block data if read), None if no tag was found
    def read_card(self):
        with self.pn532.session:
            tag = self.pn532.get_tag()
            if tag is None:
                return None
            self.diagnostics.info_card(tag)
            if self.options.encrypted:
                self.pn532.authenticate_block(tag.uid, tag.length_uid)
                tag.block = self.pn532.read_block()
            return tag

    # reinitialise
    # INFO:     Aborts whatever the PN532 still works on, puts it into power down and configures the SAM again. If that
    #           fails as well, the PN532 is closed and reopened by run().
    # ARGS:     /
    # RETURNS:  /
    def reinitialise(self):
        if not self.pn532.is_ready:
            return
        try:
            with self.pn532.session:
                self.pn532.send_ack()
                self.pn532.power_down()
                self.pn532.state = ConnectionState.AWAITING_SAM
                self.pn532.set_sam()
                self.pn532.state = ConnectionState.READY
        except PN532Error as e:
            self.logger.error("re-initialising PN532 failed: {}".format(e))
            self.diagnostics.error(e)
            self.pn532.close()

    # open
    # INFO:     Requests the PN532 to be opened and kept open. Starts the thread on first use.
    # ARGS:     /
    # RETURNS:  /
    def open(self):
        self.open_requested = True
        if not self.is_alive():
            self.start()

    # close
    # INFO:     Closes the PN532 and stops reopening it. Does not wait for a running command: a command in flight is not
    #           released by closing, so the thread may stay blocked until its deadline and outlive exit().
    # ARGS:     /
    # RETURNS:  /
    def close(self):
        self.open_requested = False
        self.pn532.close()

    def pause(self):
        self.is_polling = False

    def resume(self):
        self.is_polling = True

    def set_tag_callback(self, function):
        self.tag_callback = function

    def remove_tag_callback(self):
        self.tag_callback = None

    def set_open_callback(self, function):
        self.open_callback = function

    # exit
    # INFO:     Shuts down this thread and closes the PN532. A command in flight still runs until its deadline, so
    #           callers joining the thread should allow for it.
    # ARGS:     /
    # RETURNS:  /
    def exit(self):
        self.logger.info("SHUTDOWN")
        self.close()
        self.is_running = False
