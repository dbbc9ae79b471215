"""
vCenter Inventory Client

Defines the collaborator interface the walker consumes and the pyVmomi
implementation of it. The walker only ever talks to an InventoryClient;
nothing outside this module touches pyVmomi managed objects.

Remote reads go through the PropertyCollector (RetrievePropertiesEx) with a
single ObjectSpec/PropertySpec pair per call, so every child enumeration and
every property lookup is exactly one round-trip.
"""

import logging
from typing import Any, Dict, Iterable, List, NamedTuple

from pyVmomi import vim, vmodl

from vsphere_inventory.errors import CollaboratorError, UnknownTypeTagError
from vsphere_inventory.references import ManagedEntity, ManagedObjectReference

logger = logging.getLogger(__name__)

DATACENTER_FOLDER_PROPERTIES = ["vmFolder", "hostFolder", "datastoreFolder", "networkFolder"]


class DatacenterFolders(NamedTuple):
    """The four fixed sub-folders of a datacenter."""

    vm_folder: ManagedObjectReference
    host_folder: ManagedObjectReference
    datastore_folder: ManagedObjectReference
    network_folder: ManagedObjectReference

    def ordered(self) -> List[ManagedObjectReference]:
        """Folders in visit order: VM, host, datastore, network."""
        return [self.vm_folder, self.host_folder, self.datastore_folder, self.network_folder]


class InventoryClient:
    """
    Read-only view of a vSphere inventory.

    Implementations raise CollaboratorError for any remote failure and must
    not retry on their own behalf.
    """

    def root_folder(self) -> ManagedObjectReference:
        raise NotImplementedError

    def children(self, folder: ManagedEntity) -> List[ManagedObjectReference]:
        """Child entities of a Folder, in the order vCenter reports them."""
        raise NotImplementedError

    def folders(self, datacenter: ManagedEntity) -> DatacenterFolders:
        raise NotImplementedError

    def fetch_properties(self, ref: ManagedEntity, path_set: Iterable[str]) -> Dict[str, Any]:
        """
        Retrieve properties of one managed object.

        Args:
            ref: Typed reference to read
            path_set: Property paths, e.g. ["name"] or ["childEntity"]

        Returns:
            {property_path: value}. Unset properties are omitted; managed
            object values come back as ManagedObjectReference.
        """
        raise NotImplementedError


# Type tag -> pyVmomi managed object class
VIM_TYPES = {
    "Folder": vim.Folder,
    "StoragePod": vim.StoragePod,
    "Datacenter": vim.Datacenter,
    "VirtualMachine": vim.VirtualMachine,
    "VirtualApp": vim.VirtualApp,
    "ComputeResource": vim.ComputeResource,
    "ClusterComputeResource": vim.ClusterComputeResource,
    "HostSystem": vim.HostSystem,
    "Network": vim.Network,
    "ResourcePool": vim.ResourcePool,
    "DistributedVirtualSwitch": vim.DistributedVirtualSwitch,
    "VmwareDistributedVirtualSwitch": vim.dvs.VmwareDistributedVirtualSwitch,
    "DistributedVirtualPortgroup": vim.dvs.DistributedVirtualPortgroup,
    "Datastore": vim.Datastore,
}


def _to_reference(mo) -> ManagedObjectReference:
    return ManagedObjectReference(mo._wsdlName, mo._moId)


def _convert_value(value: Any) -> Any:
    """Replace pyVmomi managed objects (and arrays of them) with plain references."""
    if isinstance(value, vim.ManagedObject):
        return _to_reference(value)
    if isinstance(value, list):
        return [_convert_value(item) for item in value]
    return value


class VSphereClient(InventoryClient):
    """InventoryClient backed by a pyVmomi ServiceInstance."""

    def __init__(self, service_instance):
        self.si = service_instance
        self._content = None

    @property
    def content(self):
        if self._content is None:
            try:
                self._content = self.si.RetrieveContent()
            except (vmodl.MethodFault, OSError) as e:
                raise CollaboratorError.from_exception(e, "RetrieveContent") from e
        return self._content

    def _managed_object(self, ref: ManagedEntity):
        moref = ref.reference()
        try:
            cls = VIM_TYPES[moref.type]
        except KeyError:
            raise UnknownTypeTagError(moref.type) from None
        return cls(moref.value, self.si._stub)

    def root_folder(self) -> ManagedObjectReference:
        return _to_reference(self.content.rootFolder)

    def children(self, folder: ManagedEntity) -> List[ManagedObjectReference]:
        props = self.fetch_properties(folder, ["childEntity"])
        return props.get("childEntity") or []

    def folders(self, datacenter: ManagedEntity) -> DatacenterFolders:
        props = self.fetch_properties(datacenter, DATACENTER_FOLDER_PROPERTIES)
        missing = [p for p in DATACENTER_FOLDER_PROPERTIES if props.get(p) is None]
        if missing:
            raise CollaboratorError(
                f"Datacenter {datacenter} did not report folders: {', '.join(missing)}",
                fault_type="MalformedResponse",
            )
        return DatacenterFolders(
            vm_folder=props["vmFolder"],
            host_folder=props["hostFolder"],
            datastore_folder=props["datastoreFolder"],
            network_folder=props["networkFolder"],
        )

    def fetch_properties(self, ref: ManagedEntity, path_set: Iterable[str]) -> Dict[str, Any]:
        path_set = list(path_set)
        mo = self._managed_object(ref)

        obj_spec = vim.PropertyCollector.ObjectSpec(obj=mo, skip=False)
        prop_spec = vim.PropertyCollector.PropertySpec(
            type=type(mo),
            pathSet=path_set,
            all=False
        )
        filter_spec = vim.PropertyCollector.FilterSpec(
            objectSet=[obj_spec],
            propSet=[prop_spec]
        )

        try:
            result = self.content.propertyCollector.RetrievePropertiesEx(
                specSet=[filter_spec],
                options=vim.PropertyCollector.RetrieveOptions()
            )
        except (vmodl.MethodFault, OSError) as e:
            logger.debug(f"Property fetch {path_set} on {ref} failed: {e}")
            raise CollaboratorError.from_exception(e, f"Reading {', '.join(path_set)} of {ref}") from e

        if not result or not result.objects:
            raise CollaboratorError(
                f"{ref} is not visible to this session",
                fault_type="ObjectNotVisible",
            )

        oc = result.objects[0]

        # Denied or unreadable properties come back in missingSet, not as faults
        for missing in (getattr(oc, "missingSet", None) or []):
            if missing.path in path_set:
                fault = missing.fault
                logger.debug(f"Property {missing.path} of {ref} unreadable: {fault}")
                raise CollaboratorError.from_exception(fault, f"Reading {missing.path} of {ref}") from fault

        return {p.name: _convert_value(p.val) for p in (oc.propSet or [])}
