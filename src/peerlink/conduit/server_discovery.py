import logging
from queue import Queue

from zeroconf import ServiceBrowser, Zeroconf

from peerlink.connector.base import Peer

logger = logging.getLogger(__name__)


def qualify_service_type(service_subtype):
    """
    >>> qualify_service_type("abc")
    '_abc._tcp.local.'
    """
    return "_" + service_subtype + "._tcp.local."


def service_instance_name(svc_type, svc_name):
    """
    >>> service_instance_name('_rover._tcp.local.', 'bench rig._rover._tcp.local.')
    'bench rig'
    """
    suffix = '.' + svc_type
    return svc_name[:-len(suffix)] if svc_name.endswith(suffix) else svc_name


def peer_for_service(zeroconf, svc_type, svc_name):
    """
    constructs the Peer for a zeroconf service, or None if zeroconf has no usable info for it.
    The peer resource is the (ip address, port) tuple to connect to.
    """
    info = zeroconf.get_service_info(svc_type, svc_name)
    if not info:
        return None
    addresses = info.parsed_addresses()
    if not addresses:
        return None
    host = addresses[0]
    return Peer(service_instance_name(svc_type, svc_name), "%s:%d" % (host, info.port), (host, info.port))


class TCPServerDiscovery:
    """
    Uses zeroconf to discover TCP services that bridge to a peripheral.
    Zeroconf notifies on its own thread. To keep all changes on the caller's thread, notifications
    are pushed to a queue and applied the next time update() is called.

    :param service_subtype  The application-specific subtype of the TCP services to detect. The type
        is qualified automatically with TCP and local supertypes.
    :param use_zeroconf when True, the zeroconf service browser is started
    """
    def __init__(self, service_subtype, use_zeroconf=True):
        self.event_queue = Queue()
        self._servers = {}
        self.service_type = qualify_service_type(service_subtype)
        if use_zeroconf:
            logger.info("listening for zeroconf services of type %s " % self.service_type)
            self.zeroconf = Zeroconf()
            self.browser = ServiceBrowser(self.zeroconf, self.service_type, self)
        else:
            self.zeroconf = None
            self.browser = None

    def add_service(self, zeroconf, svc_type, name):
        """ notification from the service browser that a service has been added """
        peer = peer_for_service(zeroconf, svc_type, name)
        if peer is None:
            logger.warning("no info for service %s type %s" % (name, svc_type))
            return
        logger.info("service available: %s " % name)
        self.event_queue.put((name, peer))

    def update_service(self, zeroconf, svc_type, name):
        """ notification from the service browser that a service's details changed """
        self.add_service(zeroconf, svc_type, name)

    def remove_service(self, zeroconf, svc_type, name):
        """ notification from the service browser that a service has been removed """
        logger.info("service unavailable: %s " % name)
        self.event_queue.put((name, None))

    def update(self):
        """ applies the queued service notifications """
        queue = self.event_queue
        while not queue.empty():
            name, peer = queue.get()
            if peer is None:
                self._servers.pop(name, None)
            else:
                self._servers[name] = peer

    def servers(self):
        """ :return: the peers for the services currently known, after applying pending notifications """
        self.update()
        return [self._servers[name] for name in sorted(self._servers)]

    def close(self):
        if self.zeroconf is not None:
            self.browser.cancel()
            self.zeroconf.close()
            self.zeroconf = self.browser = None
