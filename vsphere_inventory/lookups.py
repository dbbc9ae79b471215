"""Name-based lookups built on the inventory walker."""

import logging
from typing import Callable, List, Optional

from vsphere_inventory.client import InventoryClient
from vsphere_inventory.references import ManagedEntity
from vsphere_inventory.walker import Comparator, build_inventory_map, search

logger = logging.getLogger(__name__)


def ignore_client(predicate: Callable[[ManagedEntity], bool]) -> Comparator:
    """Adapt a plain ``ref -> bool`` predicate to the comparator signature."""

    def comparator(client: InventoryClient, ref: ManagedEntity) -> bool:
        return predicate(ref)

    return comparator


def name_comparator(tag: str, name: str) -> Comparator:
    """
    Match references of type ``tag`` whose ``name`` property equals ``name``.

    The type check runs first so the name is only fetched from vCenter for
    candidates of the right type. Comparison is exact and case-sensitive.
    """

    def comparator(client: InventoryClient, ref: ManagedEntity) -> bool:
        if ref.type != tag:
            return False
        return client.fetch_properties(ref, ["name"]).get("name") == name

    return comparator


def find_by_name(client: InventoryClient, tag: str, name: str,
                 start: Optional[ManagedEntity] = None) -> Optional[ManagedEntity]:
    logger.debug(f"Searching for {tag} named {name!r}")
    return search(client, name_comparator(tag, name), start)


def find_vm_by_name(client: InventoryClient, name: str,
                    start: Optional[ManagedEntity] = None) -> Optional[ManagedEntity]:
    return find_by_name(client, "VirtualMachine", name, start)


def find_host_by_name(client: InventoryClient, name: str,
                      start: Optional[ManagedEntity] = None) -> Optional[ManagedEntity]:
    return find_by_name(client, "HostSystem", name, start)


def find_datastore_by_name(client: InventoryClient, name: str,
                           start: Optional[ManagedEntity] = None) -> Optional[ManagedEntity]:
    """Datastores inside storage pods (datastore clusters) are found too."""
    return find_by_name(client, "Datastore", name, start)


def find_cluster_by_name(client: InventoryClient, name: str,
                         start: Optional[ManagedEntity] = None) -> Optional[ManagedEntity]:
    return find_by_name(client, "ClusterComputeResource", name, start)


def collect_type(client: InventoryClient, tag: str,
                 start: Optional[ManagedEntity] = None) -> List[ManagedEntity]:
    """Every reference of type ``tag`` below ``start``, in walk order."""
    return build_inventory_map(client, start).get(tag, [])
