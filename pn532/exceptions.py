# Error taxonomy of the PN532 driver.
# Every error raised by this package derives from PN532Error, which itself is a
# RuntimeError so that callers written against plain RuntimeError keep working.


class PN532Error(RuntimeError):
    pass


# ValidationError
# INFO:     A local precondition failed. Nothing was sent to the device.
class ValidationError(PN532Error):
    pass


# ProtocolError
# INFO:     The device answered with an error frame or a frame that could not be parsed.
# ARGS:     frame (bytes) -> raw bytes of the offending frame, status (int) -> device status code if known
class ProtocolError(PN532Error):

    def __init__(self, message, frame=b'', status=None):
        PN532Error.__init__(self, message)
        self.frame = bytes(frame)
        self.status = status


# CommandTimeout
# INFO:     No qualifying response frame arrived before the deadline of the command.
class CommandTimeout(PN532Error):
    pass


# TransportError
# INFO:     Opening, closing or writing the underlying byte channel failed.
class TransportError(PN532Error):
    pass


# NegotiationError
# INFO:     None of the candidate baud rates produced a response.
class NegotiationError(TransportError):
    pass
