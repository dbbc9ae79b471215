"""vCenter session handling for the inventory client"""

import ssl
import socket
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from pyVim.connect import SmartConnect, Disconnect
from pyVmomi import vmodl

from vsphere_inventory.client import VSphereClient
from vsphere_inventory.config import Settings, settings as default_settings
from vsphere_inventory.errors import CollaboratorError

logger = logging.getLogger(__name__)


def _ssl_context(verify_ssl: bool) -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    if verify_ssl:
        context.load_default_certs()
    else:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def connect_vcenter(settings: Optional[Settings] = None):
    """
    Connect to vCenter using pyVmomi.

    Args:
        settings: Connection settings, defaults to the environment-backed ones

    Returns:
        ServiceInstance

    Raises:
        CollaboratorError: login or transport failure
    """
    settings = settings or default_settings
    logger.info(f"Attempting to connect to vCenter at {settings.host}...")

    # Bound the handshake so an unreachable vCenter cannot hang the caller
    old_timeout = socket.getdefaulttimeout()
    socket.setdefaulttimeout(settings.connect_timeout)
    try:
        si = SmartConnect(
            host=settings.host,
            user=settings.user,
            pwd=settings.password,
            port=settings.port,
            sslContext=_ssl_context(settings.verify_ssl),
            disableSslCertValidation=not settings.verify_ssl
        )
    except (vmodl.MethodFault, OSError) as e:
        logger.error(f"Failed to connect to vCenter {settings.host}: {e}")
        raise CollaboratorError.from_exception(e, f"Connecting to {settings.host}") from e
    finally:
        socket.setdefaulttimeout(old_timeout)

    logger.info(f"Connected to vCenter at {settings.host}")
    return si


@contextmanager
def vcenter_client(settings: Optional[Settings] = None) -> Iterator[VSphereClient]:
    """Yield a VSphereClient for one session, disconnecting on exit."""
    si = connect_vcenter(settings)
    try:
        yield VSphereClient(si)
    finally:
        try:
            Disconnect(si)
        except (vmodl.MethodFault, OSError) as e:
            logger.warning(f"vCenter disconnect failed: {e}")
