"""
vSphere Inventory Walker

Depth-first, pre-order descent over the inventory tree. Each container type
has a fixed rule for finding its children (CHILD_RULES); everything else is a
leaf. The descent itself is shared by two policies:

- Collector: visits every node and groups references by type tag.
- Searcher: evaluates a comparator at each node and stops at the first match,
  leaving later siblings and subtrees unvisited.

Any error raised by the client or the resolver propagates out of the
top-level call untouched. There is no partial result.
"""

import time
import logging
from typing import Any, Callable, Dict, List, Optional

from vsphere_inventory.client import InventoryClient
from vsphere_inventory.references import ManagedEntity, ManagedObjectReference, new_reference

logger = logging.getLogger(__name__)

InventoryMap = Dict[str, List[ManagedEntity]]
Comparator = Callable[[InventoryClient, ManagedEntity], bool]
ChildRule = Callable[[InventoryClient, ManagedEntity], List[ManagedObjectReference]]


# =============================================================================
# Child enumeration rules
# =============================================================================

def _datacenter_children(client: InventoryClient, ref: ManagedEntity) -> List[ManagedObjectReference]:
    return client.folders(ref).ordered()


def _folder_children(client: InventoryClient, ref: ManagedEntity) -> List[ManagedObjectReference]:
    return list(client.children(ref))


def _property_children(prop: str) -> ChildRule:
    """Rule that reads the children from a list-valued property."""

    def rule(client: InventoryClient, ref: ManagedEntity) -> List[ManagedObjectReference]:
        return list(client.fetch_properties(ref, [prop]).get(prop) or [])

    return rule


CHILD_RULES: Dict[str, ChildRule] = {
    "Datacenter": _datacenter_children,
    "Folder": _folder_children,
    "StoragePod": _property_children("childEntity"),
    "ComputeResource": _property_children("host"),
    "ClusterComputeResource": _property_children("host"),
    "DistributedVirtualSwitch": _property_children("portgroup"),
    "VmwareDistributedVirtualSwitch": _property_children("portgroup"),
}


def child_references(client: InventoryClient, ref: ManagedEntity) -> List[ManagedEntity]:
    """Typed children of ``ref`` in visit order. Empty for leaf types."""
    rule = CHILD_RULES.get(ref.type)
    if rule is None:
        return []

    children = [new_reference(moref) for moref in rule(client, ref)]
    logger.debug(f"{ref} has {len(children)} children")
    return children


# =============================================================================
# Walk policies
# =============================================================================

class WalkPolicy:
    """
    Strategy plugged into walk().

    visit() produces the result for a single node, combine() folds a child's
    result into its parent's, and is_terminal() tells the walker to stop
    descending and return immediately.
    """

    def initial(self) -> Any:
        raise NotImplementedError

    def visit(self, client: InventoryClient, ref: ManagedEntity) -> Any:
        raise NotImplementedError

    def combine(self, accumulator: Any, child_result: Any) -> Any:
        raise NotImplementedError

    def is_terminal(self, result: Any) -> bool:
        return False


class Collector(WalkPolicy):
    """Groups every visited reference by type tag."""

    def initial(self) -> InventoryMap:
        return {}

    def visit(self, client: InventoryClient, ref: ManagedEntity) -> InventoryMap:
        return {ref.type: [ref]}

    def combine(self, accumulator: InventoryMap, child_result: InventoryMap) -> InventoryMap:
        for tag, refs in child_result.items():
            accumulator.setdefault(tag, []).extend(refs)
        return accumulator


class Searcher(WalkPolicy):
    """Stops at the first reference the comparator accepts."""

    def __init__(self, comparator: Comparator):
        self.comparator = comparator

    def initial(self) -> Optional[ManagedEntity]:
        return None

    def visit(self, client: InventoryClient, ref: ManagedEntity) -> Optional[ManagedEntity]:
        return ref if self.comparator(client, ref) else None

    def combine(self, accumulator, child_result):
        return child_result if child_result is not None else accumulator

    def is_terminal(self, result) -> bool:
        return result is not None


# =============================================================================
# Descent
# =============================================================================

def _descend(client: InventoryClient, ref: ManagedEntity, policy: WalkPolicy, result: Any) -> Any:
    for child in child_references(client, ref):
        result = policy.combine(result, walk(client, child, policy))
        if policy.is_terminal(result):
            break
    return result


def walk(client: InventoryClient, ref: ManagedEntity, policy: WalkPolicy) -> Any:
    """Visit ``ref`` and, unless the visit is terminal, everything below it."""
    result = policy.visit(client, ref)
    if policy.is_terminal(result):
        return result
    return _descend(client, ref, policy, result)


def walk_below(client: InventoryClient, policy: WalkPolicy, start: Optional[ManagedEntity] = None) -> Any:
    """
    Walk every descendant of ``start`` (default: the root folder).

    The start node itself is not visited.
    """
    if start is None:
        start = new_reference(client.root_folder())
    return _descend(client, start, policy, policy.initial())


# =============================================================================
# Public entry points
# =============================================================================

def build_inventory_map(client: InventoryClient, start: Optional[ManagedEntity] = None) -> InventoryMap:
    """
    Collect every managed object below ``start`` grouped by type tag.

    Lists follow depth-first pre-order with children in the order their
    container reports them. Containers are recorded alongside leaves, so
    inventory["Folder"] includes the vm, host, datastore and network system
    folders of every datacenter as well as user-created folders.

    Raises:
        CollaboratorError: a remote call failed
        UnknownTypeTagError: vCenter reported a type outside the taxonomy
    """
    start_time = time.time()
    inventory = walk_below(client, Collector(), start)

    elapsed_ms = int((time.time() - start_time) * 1000)
    total = sum(len(refs) for refs in inventory.values())
    logger.info(f"Inventory walk collected {total} objects across {len(inventory)} types in {elapsed_ms}ms")
    return inventory


def search(client: InventoryClient, comparator: Comparator,
           start: Optional[ManagedEntity] = None) -> Optional[ManagedEntity]:
    """
    First reference below ``start`` accepted by ``comparator``, or None.

    The comparator runs before a node's children are enumerated; once it
    matches, no further remote calls are made.
    """
    start_time = time.time()
    match = walk_below(client, Searcher(comparator), start)

    elapsed_ms = int((time.time() - start_time) * 1000)
    if match is None:
        logger.info(f"Inventory search found no match in {elapsed_ms}ms")
    else:
        logger.info(f"Inventory search matched {match} in {elapsed_ms}ms")
    return match


def inventory_summary(inventory: InventoryMap) -> Dict[str, int]:
    """Per-type object counts, sorted by type tag."""
    return {tag: len(inventory[tag]) for tag in sorted(inventory)}
