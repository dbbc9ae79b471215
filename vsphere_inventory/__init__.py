"""
vSphere Inventory Walker

Walks a vCenter inventory tree (datacenters, folders, clusters, hosts, VMs,
datastores, storage pods, networks, distributed switches) through a
read-only client and either collects every object by type or stops at the
first object matching a comparator.

Modules:
- references: typed managed object references and the type-tag resolver
- walker: shared depth-first descent with Collector and Searcher policies
- lookups: name-based lookups (VMs, hosts, datastores, clusters)
- client: collaborator interface and the pyVmomi PropertyCollector client
- connection: vCenter session setup
"""

__version__ = "1.0.0"

from .errors import InventoryError, CollaboratorError, UnknownTypeTagError
from .references import ManagedEntity, ManagedObjectReference, new_reference, resolve
from .walker import (
    Collector,
    Searcher,
    WalkPolicy,
    build_inventory_map,
    inventory_summary,
    search,
    walk,
)
from .lookups import (
    collect_type,
    find_by_name,
    find_cluster_by_name,
    find_datastore_by_name,
    find_host_by_name,
    find_vm_by_name,
    ignore_client,
    name_comparator,
)

__all__ = [
    "InventoryError",
    "CollaboratorError",
    "UnknownTypeTagError",
    "ManagedEntity",
    "ManagedObjectReference",
    "new_reference",
    "resolve",
    "Collector",
    "Searcher",
    "WalkPolicy",
    "build_inventory_map",
    "inventory_summary",
    "search",
    "walk",
    "collect_type",
    "find_by_name",
    "find_cluster_by_name",
    "find_datastore_by_name",
    "find_host_by_name",
    "find_vm_by_name",
    "ignore_client",
    "name_comparator",
]
