import sys
import logging
import time
import os.path
import signal
import queue
from threading import Thread

from pn532 import CFG, DeviceOptions, PN532_Reader, read_port_settings

# general settings
PATH = os.path.dirname(os.path.abspath(__file__))
CFG_FILE = os.path.join(CFG, "pn532.cfg")


class Main(Thread):

    # __init__
    # INFO:     Sets up logging, reads the config file and opens the reader.
    # ARGS:     cfg_path (string) -> path to the config file
    # RETURNS:  /
    def __init__(self, cfg_path=CFG_FILE):

        # set-up of general logging
        logging.basicConfig(level=logging.INFO,
                            format='%(asctime)s\t%(levelname)s\t[%(name)s: %(funcName)s]\t%(message)s',
                            datefmt='%Y-%m-%d %H:%M:%S',
                            handlers=[logging.FileHandler(PATH + "/main.log"), logging.StreamHandler()])

        # set-up for logging of main. Level options: DEBUG, INFO, WARNING, ERROR, CRITICAL
        self.loglevel = logging.INFO
        self.logtitle = 'main'
        self.logger = logging.getLogger(self.logtitle)
        self.logger.setLevel(self.loglevel)

        Thread.__init__(self, daemon=True)
        self.is_running = False
        self.tag_queue = queue.Queue()

        # start services
        port, poll_interval = read_port_settings(cfg_path)
        options = DeviceOptions.from_cfg(cfg_path)
        self.logger.info('starting reader on {}'.format(port))
        self.reader = PN532_Reader(port, poll_interval, options)
        self.reader.set_open_callback(self.opened)
        self.reader.set_tag_callback(self.tag_queue.put)
        self.reader.open()

    # run
    # INFO:     Logs every tag the reader reports until stopped.
    # ARGS:     /
    # RETURNS:  /
    def run(self):
        self.is_running = True

        try:
            while self.is_running:
                try:
                    tag = self.tag_queue.get(timeout=0.2)
                except queue.Empty:
                    continue
                self.logger.info("tag {} read: {}".format(tag.uid, tag.payload))

        except KeyboardInterrupt:  # on CTRL-C, stop all threads and shut down
            self.stop('KeyboardInterrupt')

    def opened(self):
        self.logger.info('reader is open, waiting for tags')

    # stop
    # INFO:     stop the reader thread and join it, log reason for shutdown
    # ARGS:     reason (str) -> title for the shutdown reason
    # RETURNS:  /
    def stop(self, reason='undefined'):

        self.logger.error("SHUTDOWN INITIALISED BY " + reason)

        self.is_running = False
        self.reader.exit()
        if self.reader.is_alive():
            self.reader.join(5.0)

        self.logger.info("SHUTDOWN FINALISED")
        sys.exit()


#
# INFO:     run script as main, attach signal handling
# ARGS:     /
# RETURNS:  /
if __name__ == "__main__":

    main = Main(sys.argv[1] if len(sys.argv) > 1 else CFG_FILE)

    # attach SIGTERM handling
    signal.signal(signal.SIGTERM, lambda signum, frame: main.stop('SIGTERM'))

    main.run()
