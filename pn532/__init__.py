import os.path

from pn532.device import PN532, ConnectionState
from pn532.diagnostics import Diagnostics, Logging_Diagnostics
from pn532.exceptions import (CommandTimeout, NegotiationError, PN532Error, ProtocolError, TransportError,
                              ValidationError)
from pn532.options import DeviceOptions, read_port_settings
from pn532.reader import PN532_Reader
from pn532.tag import TagInfo
from pn532.transport import Serial_Transport, Transport

# general settings
PATH = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CFG = os.path.join(PATH, "config")
