import os,sys,inspect
current_dir = os.path.dirname(os.path.abspath(inspect.getfile(inspect.currentframe())))
parent_dir = os.path.dirname(current_dir)
sys.path.insert(0, parent_dir)
import logging
import time

from pn532 import CFG, DeviceOptions, PN532_Reader, read_port_settings

# Manual test against a real PN532. Not collected by pytest.
# find port with 'python -m serial.tools.list_ports', set it in config/pn532.cfg


# set-up of general logging
logging.basicConfig(level=logging.DEBUG,
                    format='%(asctime)s\t%(levelname)s\t[%(name)s: %(funcName)s]\t%(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S')

# set-up for logging of the test. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
loglevel = logging.DEBUG
logtitle = 'test'
logger = logging.getLogger(logtitle)
logger.setLevel(loglevel)


cfg_path = os.path.join(CFG, "pn532.cfg")
port, poll_interval = read_port_settings(cfg_path)
options = DeviceOptions.from_cfg(cfg_path)._replace(show_steps=True, show_info_card=True, show_errors=True)

reader = PN532_Reader(port, poll_interval, options)
reader.set_open_callback(lambda: logger.info('firmware: {}'.format(reader.pn532.get_firmware_version())))
reader.set_tag_callback(lambda tag: logger.info('tag {} -> {}'.format(tag, tag.payload)))
reader.open()

try:  # try-block for KeyboardInterrupt
    while True:
        time.sleep(0.5)

except KeyboardInterrupt:  # on CTRL-C, stop all threads and shut down
    reader.exit()
    if reader.is_alive():
        reader.join(5.0)
