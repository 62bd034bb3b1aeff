import logging

from pn532.exceptions import CommandTimeout, NegotiationError, ProtocolError

# Serial baud rates the PN532 supports, in probing order, mapped to the code of SetSerialBaudRate
BAUD_RATE_CODES = {
    9600:   0x00,
    19200:  0x01,
    38400:  0x02,
    57600:  0x03,
    115200: 0x04,
    230400: 0x05,
}

DEFAULT_BAUDRATE                    = 115200
TARGET_BAUDRATE                     = 230400
PROBE_TIMEOUT                       = 0.5  # s


def baud_rate_code(baudrate):
    try:
        return BAUD_RATE_CODES[baudrate]
    except KeyError:
        raise ValueError('Unsupported baud rate {}, choose one of {}'.format(baudrate, sorted(BAUD_RATE_CODES)))


# Baud_Negotiator
# INFO:     Finds the baud rate a PN532 is currently listening at and switches it to the target rate. Every candidate is
#           probed with GetFirmwareVersion; the first rate that gets any answer is the active one.
# ARGS:     device (PN532) -> controller whose transport and channel are reused, target (int) -> rate to end up at,
#           probe_timeout (float) -> deadline of a single probe in seconds, candidates (iterable) -> rates to probe
# RETURNS:  /
class Baud_Negotiator(object):

    def __init__(self, device, target=TARGET_BAUDRATE, probe_timeout=PROBE_TIMEOUT, candidates=None):
        # set-up for logging of the negotiator. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.INFO
        self.logtitle = 'pn532.baud'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        baud_rate_code(target)
        self.device = device
        self.target = target
        self.probe_timeout = probe_timeout
        self.candidates = list(candidates or BAUD_RATE_CODES)

    # find_baudrate
    # INFO:     Reopens the transport at every candidate rate until the PN532 answers.
    # ARGS:     path (string) -> device path of the transport
    # RETURNS:  the active baud rate (int)
    def find_baudrate(self, path):
        self.device.diagnostics.step("FINDING BAUDRATE...")
        for baudrate in self.candidates:
            self.logger.debug('probing {} baud'.format(baudrate))
            self.device.reopen(path, baudrate)
            try:
                self.device.get_firmware_version(timeout=self.probe_timeout)
            except CommandTimeout:
                continue
            except ProtocolError as e:
                # an error frame is still an answer at this rate
                self.logger.debug('probe at {} baud answered with {}'.format(baudrate, e))
            self.logger.info('found PN532 at {} baud'.format(baudrate))
            self.device.diagnostics.step("FOUND BAUDRATE: {}".format(baudrate))
            return baudrate
        raise NegotiationError('PN532 did not answer at any of {} baud'.format(self.candidates))

    # negotiate
    # INFO:     Finds the active rate and switches the PN532 to the target rate if it differs.
    # ARGS:     path (string) -> device path of the transport
    # RETURNS:  the rate the transport is open at afterwards (int)
    def negotiate(self, path):
        active = self.find_baudrate(path)
        if active != self.target:
            self.logger.info('switching PN532 from {} to {} baud'.format(active, self.target))
            self.device.set_baudrate(self.target)
        return self.target
