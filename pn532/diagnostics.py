import binascii
import logging


# Diagnostics
# INFO:     Capability interface for the diagnostic hooks of the driver. Every hook is a no-op, so an instance of this
#           class can be handed to any component that does not care about diagnostics.
# ARGS:     /
# RETURNS:  /
class Diagnostics(object):

    def step(self, message):
        pass

    def buffer_in(self, data):
        pass

    def buffer_out(self, data):
        pass

    def info_card(self, tag):
        pass

    def error(self, error):
        pass


# Logging_Diagnostics
# INFO:     Forwards the enabled hooks to the 'pn532' logger. Hooks that are not enabled stay silent.
# ARGS:     show_* (bool) -> toggles for the single hooks
# RETURNS:  /
class Logging_Diagnostics(Diagnostics):

    def __init__(self, show_steps=False, show_buffer_in=False, show_buffer_out=False, show_info_card=False, show_errors=False):
        # set-up for logging of diagnostics. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.INFO
        self.logtitle = 'pn532'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        self.show_steps = show_steps
        self.show_buffer_in = show_buffer_in
        self.show_buffer_out = show_buffer_out
        self.show_info_card = show_info_card
        self.show_errors = show_errors

    @classmethod
    def from_options(cls, options):
        return cls(show_steps=options.show_steps,
                   show_buffer_in=options.show_buffer_in,
                   show_buffer_out=options.show_buffer_out,
                   show_info_card=options.show_info_card,
                   show_errors=options.show_errors)

    def step(self, message):
        if self.show_steps:
            self.logger.info("Step: {}".format(message))

    def buffer_in(self, data):
        if self.show_buffer_in:
            self.logger.info("BufferIn: {}".format(binascii.hexlify(bytes(data)).decode()))

    def buffer_out(self, data):
        if self.show_buffer_out:
            self.logger.info("BufferOut: {}".format(binascii.hexlify(bytes(data)).decode()))

    def info_card(self, tag):
        if self.show_info_card:
            self.logger.info("InfoCard: {}".format(tag))

    def error(self, error):
        if self.show_errors:
            self.logger.error("Error: {}".format(error))
