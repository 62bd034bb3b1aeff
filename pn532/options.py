import configparser
import logging
from collections import namedtuple

MIFARE_CMD_AUTH_A                   = 0x60
MIFARE_CMD_AUTH_B                   = 0x61

DEFAULT_AUTH_KEY                    = (0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF)
DEFAULT_POLL_INTERVAL               = 2000  # ms

logger = logging.getLogger('pn532.options')

_FIELDS = ('encrypted', 'tag_number', 'block_address', 'auth_type', 'auth_key', 'baudrate',
           'show_steps', 'show_buffer_in', 'show_buffer_out', 'show_info_card', 'show_errors')
_FLAGS = ('encrypted', 'show_steps', 'show_buffer_in', 'show_buffer_out', 'show_info_card', 'show_errors')


# DeviceOptions
# INFO:     Immutable set of options for the reader. auth_key is stored as a tuple of six ints, baudrate is None unless
#           a fixed rate should be used (which skips the baud rate negotiation).
class DeviceOptions(namedtuple('DeviceOptions', _FIELDS)):

    __slots__ = ()

    def __new__(cls, encrypted=False, tag_number=0x01, block_address=0x01, auth_type=MIFARE_CMD_AUTH_A,
                auth_key=DEFAULT_AUTH_KEY, baudrate=None, show_steps=False, show_buffer_in=False,
                show_buffer_out=False, show_info_card=False, show_errors=False):
        auth_key = tuple(bytearray(auth_key))
        if len(auth_key) != 6:
            raise ValueError('auth_key must be 6 bytes long, got {}'.format(len(auth_key)))
        if auth_type not in (MIFARE_CMD_AUTH_A, MIFARE_CMD_AUTH_B):
            raise ValueError('auth_type must be 0x60 (key A) or 0x61 (key B), got {:#x}'.format(auth_type))
        if baudrate is not None:
            baudrate = int(baudrate)
        return super(DeviceOptions, cls).__new__(cls, bool(encrypted), int(tag_number), int(block_address),
                                                 auth_type, auth_key, baudrate, bool(show_steps),
                                                 bool(show_buffer_in), bool(show_buffer_out),
                                                 bool(show_info_card), bool(show_errors))

    # from_cfg
    # INFO:     Reads the options from the [pn532] section of a config file. Missing keys keep their defaults.
    # ARGS:     cfg_path (string) -> path to the config file
    # RETURNS:  DeviceOptions
    @classmethod
    def from_cfg(cls, cfg_path):
        section = _read_section(cfg_path)
        kwargs = {}
        for flag in _FLAGS:
            if flag in section:
                kwargs[flag] = section.getboolean(flag)
        for key in ('tag_number', 'block_address', 'auth_type'):
            if key in section:
                kwargs[key] = int(section[key], 0)
        if 'auth_key' in section:
            kwargs['auth_key'] = [int(part, 0) for part in section['auth_key'].replace(',', ' ').split()]
        if section.get('baudrate', '').strip():
            kwargs['baudrate'] = int(section['baudrate'])
        logger.info('options loaded from {}'.format(cfg_path))
        return cls(**kwargs)


# read_port_settings
# INFO:     Reads the serial port and the poll interval from the [pn532] section of a config file.
# ARGS:     cfg_path (string) -> path to the config file
# RETURNS:  tuple (str port, int poll interval in ms)
def read_port_settings(cfg_path):
    section = _read_section(cfg_path)
    return str(section['port']), int(section.get('poll_interval', str(DEFAULT_POLL_INTERVAL)))


def _read_section(cfg_path):
    config = configparser.ConfigParser()
    if not config.read(cfg_path):
        raise FileNotFoundError('config file {} could not be read'.format(cfg_path))
    return config['pn532']
