import logging
import sys
import threading
import time

from peerlink.config.config import configure_module

logger = logging.getLogger(__name__)

# seconds between polls
poll_interval = 0.02

configure_module(sys.modules[__name__], 'peerlink')


class PollLoop:
    """ Polls a session at a regular interval, whatever state it is in.

        Use tick() from an existing event loop, run() to poll on the calling thread,
        or start() to poll on a daemon thread. Session events are fired on the polling thread.
        Exceptions raised by event handlers are logged and polling continues.
    """

    def __init__(self, session, interval=None, log=logger):
        """
        :param session the ConnectionSession to poll
        :param interval seconds between polls
        """
        self.session = session
        self.interval = interval if interval is not None else sys.modules[__name__].poll_interval
        self.stop_event = threading.Event()
        self.background_thread = None
        self.logger = log

    def tick(self):
        """ polls the session once.
            :return: the messages received """
        return self.session.poll()

    def running(self):
        return not self.stop_event.is_set()

    def run(self, duration=None):
        """
        Polls on the calling thread until stop() is called or duration seconds have passed.
        """
        deadline = None if duration is None else time.monotonic() + duration
        while self.running():
            self._do(self.tick)
            if deadline is not None and time.monotonic() >= deadline:
                break
            self.stop_event.wait(self.interval)

    def start(self):
        """
        Starts polling on a daemon thread.
        """
        if self.background_thread is None:
            self.stop_event.clear()
            t = threading.Thread(target=self._run, name='peerlink-poll')
            t.daemon = True
            self.background_thread = t
            t.start()

    def stop(self, timeout=1.0):
        """ stops polling, waiting for the background thread to finish """
        self.stop_event.set()
        t = self.background_thread
        if t is not None:
            if t is not threading.current_thread():
                t.join(timeout)
            self.background_thread = None

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        self.run()
        self.logger.info("poll thread exiting")

    def _do(self, callme):
        """ runs a function and captures any exceptions """
        try:
            callme()
        except Exception as e:
            self.exception_handler(e)
