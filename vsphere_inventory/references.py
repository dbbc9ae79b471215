"""
Managed Object References

Typed handles over the vSphere inventory. A reference is the pair the API
hands out for every managed object (type tag, MoRef id); the typed classes
below only exist so the rest of the package can tell folders from hosts
without a round-trip. Specializations (storage pods, clusters, vDS, vApps)
are subclasses of their base type, but dispatch always happens on the type
tag carried by the reference.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Type

from vsphere_inventory.errors import UnknownTypeTagError


@dataclass(frozen=True)
class ManagedObjectReference:
    """Generic (type tag, identity) pair as reported by vCenter."""

    type: str
    value: str

    def __str__(self) -> str:
        return f"{self.type}:{self.value}"


class ManagedEntity:
    """Base class for typed references. Immutable once constructed."""

    __slots__ = ("_moref",)

    def __init__(self, moref: ManagedObjectReference):
        object.__setattr__(self, "_moref", moref)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def reference(self) -> ManagedObjectReference:
        return self._moref

    @property
    def type(self) -> str:
        return self._moref.type

    @property
    def value(self) -> str:
        return self._moref.value

    def __eq__(self, other):
        if not isinstance(other, ManagedEntity):
            return NotImplemented
        return self._moref == other._moref

    def __hash__(self):
        return hash(self._moref)

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"

    def __str__(self):
        return str(self._moref)


class Folder(ManagedEntity):
    __slots__ = ()


class StoragePod(Folder):
    """Datastore cluster. Represented as a specialized folder."""
    __slots__ = ()


class Datacenter(ManagedEntity):
    __slots__ = ()


class ComputeResource(ManagedEntity):
    __slots__ = ()


class ClusterComputeResource(ComputeResource):
    __slots__ = ()


class HostSystem(ManagedEntity):
    __slots__ = ()


class VirtualMachine(ManagedEntity):
    __slots__ = ()


class ResourcePool(ManagedEntity):
    __slots__ = ()


class VirtualApp(ResourcePool):
    __slots__ = ()


class Datastore(ManagedEntity):
    __slots__ = ()


class Network(ManagedEntity):
    __slots__ = ()


class DistributedVirtualSwitch(ManagedEntity):
    __slots__ = ()


class VmwareDistributedVirtualSwitch(DistributedVirtualSwitch):
    __slots__ = ()


class DistributedVirtualPortgroup(ManagedEntity):
    __slots__ = ()


# Type tag -> typed handle class
REFERENCE_TYPES: Dict[str, Type[ManagedEntity]] = {
    "Folder": Folder,
    "StoragePod": StoragePod,
    "Datacenter": Datacenter,
    "VirtualMachine": VirtualMachine,
    "VirtualApp": VirtualApp,
    "ComputeResource": ComputeResource,
    "ClusterComputeResource": ClusterComputeResource,
    "HostSystem": HostSystem,
    "Network": Network,
    "ResourcePool": ResourcePool,
    "DistributedVirtualSwitch": DistributedVirtualSwitch,
    "VmwareDistributedVirtualSwitch": VmwareDistributedVirtualSwitch,
    "DistributedVirtualPortgroup": DistributedVirtualPortgroup,
    "Datastore": Datastore,
}

CONTAINER_TAGS: FrozenSet[str] = frozenset({
    "Datacenter",
    "Folder",
    "StoragePod",
    "ComputeResource",
    "ClusterComputeResource",
    "DistributedVirtualSwitch",
    "VmwareDistributedVirtualSwitch",
})

LEAF_TAGS: FrozenSet[str] = frozenset(REFERENCE_TYPES) - CONTAINER_TAGS


def new_reference(moref: ManagedObjectReference) -> ManagedEntity:
    """Wrap a generic reference in the typed handle for its tag."""
    try:
        cls = REFERENCE_TYPES[moref.type]
    except KeyError:
        raise UnknownTypeTagError(moref.type) from None
    return cls(moref)


def resolve(tag: str, identity: str) -> ManagedEntity:
    """Typed handle for a (type tag, MoRef id) pair."""
    return new_reference(ManagedObjectReference(tag, identity))
