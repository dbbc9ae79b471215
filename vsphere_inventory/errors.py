"""
vSphere Inventory Errors

Two failure kinds reach callers of the walker:

- CollaboratorError: anything the remote vSphere API reported (connectivity,
  permissions, deleted objects, malformed responses). Always fatal to the
  in-flight walk.
- UnknownTypeTagError: the inventory reported a managed object type outside
  the known taxonomy, which means the taxonomy is stale for this vCenter.
"""

from typing import Any, Dict, Optional, Tuple
import re


class InventoryError(Exception):
    """Base exception for inventory traversal"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnknownTypeTagError(InventoryError):
    """Raised when a managed object reference carries an unrecognized type tag"""

    def __init__(self, tag: str):
        message = f"Unknown managed entity type: {tag!r}. The inventory taxonomy is stale for this vCenter."
        super().__init__(message)
        self.tag = tag


class CollaboratorError(InventoryError):
    """Raised when a remote vSphere API call fails"""

    def __init__(self, message: str, fault_type: Optional[str] = None, title: Optional[str] = None,
                 is_recoverable: bool = False, original_message: Optional[str] = None):
        super().__init__(message)
        self.fault_type = fault_type
        self.title = title
        self.is_recoverable = is_recoverable
        self.original_message = original_message

    @classmethod
    def from_exception(cls, error: Exception, operation: str = "") -> "CollaboratorError":
        """
        Build a CollaboratorError from a pyVmomi fault or transport error.

        The caller is expected to raise the result ``from error`` so the
        original fault stays available as ``__cause__``.
        """
        friendly_msg, info = parse_vcenter_error(error)
        prefix = f"{operation} failed: " if operation else ""

        if info:
            return cls(
                f"{prefix}{info['title']}: {friendly_msg}",
                fault_type=info['fault_type'],
                title=info['title'],
                is_recoverable=info['is_recoverable'],
                original_message=info['original_message'],
            )

        return cls(f"{prefix}{friendly_msg}", fault_type=type(error).__name__)


# Mapping of vCenter fault patterns to user-friendly messages
VCENTER_FAULT_MESSAGES: Dict[str, Dict[str, Any]] = {
    'vmodl.fault.ManagedObjectNotFound': {
        'title': 'Object Not Found',
        'message': 'The managed object was removed from the inventory while it was being read.',
        'is_recoverable': True,
    },
    'vmodl.fault.InvalidArgument': {
        'title': 'Invalid Argument',
        'message': 'vCenter rejected the property request. The property may not exist on this API version.',
        'is_recoverable': False,
    },
    'vmodl.fault.RequestCanceled': {
        'title': 'Request Cancelled',
        'message': 'The request was cancelled before vCenter completed it.',
        'is_recoverable': True,
    },
    'vim.fault.InvalidProperty': {
        'title': 'Invalid Property',
        'message': 'The requested property path is not defined for this object type.',
        'is_recoverable': False,
    },
    'vim.fault.NotAuthenticated': {
        'title': 'Session Expired',
        'message': 'The vCenter session is no longer authenticated. Reconnect and retry.',
        'is_recoverable': True,
    },
    'vim.fault.InvalidLogin': {
        'title': 'Authentication Failed',
        'message': 'Invalid credentials for vCenter connection.',
        'is_recoverable': False,
    },
    'vim.fault.NoPermission': {
        'title': 'Permission Denied',
        'message': 'Insufficient permissions to read this part of the inventory.',
        'is_recoverable': False,
    },
    'vim.fault.Timedout': {
        'title': 'Operation Timeout',
        'message': 'The vCenter request timed out.',
        'is_recoverable': True,
    },
    'vim.fault.HostCommunication': {
        'title': 'Host Communication Error',
        'message': 'vCenter could not reach a host while answering the request.',
        'is_recoverable': True,
    },
}


def parse_vcenter_error(error: Exception) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Parse a vCenter exception and return a user-friendly message.

    Returns:
        Tuple of (friendly_message, error_info_dict or None)
    """
    error_str = str(error)
    error_type = type(error).__name__

    # pyVmomi fault classes are named after the full vmodl name
    for fault_pattern, info in VCENTER_FAULT_MESSAGES.items():
        short_name = fault_pattern.rsplit('.', 1)[-1]
        if error_type in (fault_pattern, short_name) or fault_pattern in error_str:
            msg_match = re.search(r"msg\s*=\s*'([^']+)'", error_str)
            actual_msg = msg_match.group(1) if msg_match else None

            return info['message'], {
                'title': info['title'],
                'is_recoverable': info['is_recoverable'],
                'original_message': actual_msg,
                'fault_type': fault_pattern,
            }

    # For unknown errors, try to extract the msg field
    msg_match = re.search(r"msg\s*=\s*'([^']+)'", error_str)
    if msg_match:
        return msg_match.group(1), None

    return error_str or error_type, None
