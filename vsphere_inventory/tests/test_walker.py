import unittest

from vsphere_inventory.errors import CollaboratorError, UnknownTypeTagError
from vsphere_inventory.references import (
    Datacenter,
    LEAF_TAGS,
    ManagedObjectReference,
    new_reference,
    resolve,
)
from vsphere_inventory.walker import (
    CHILD_RULES,
    Collector,
    Searcher,
    build_inventory_map,
    child_references,
    inventory_summary,
    search,
    walk,
)
from vsphere_inventory.tests.fakes import FakeInventoryClient, build_sample_inventory


PRE_ORDER = [
    "Datacenter:datacenter-1",
    "Folder:datacenter-1-vm",
    "VirtualMachine:vm-1",
    "Folder:group-v2",
    "VirtualMachine:vm-2",
    "Folder:datacenter-1-host",
    "ClusterComputeResource:domain-c1",
    "HostSystem:host-1",
    "HostSystem:host-2",
    "ComputeResource:domain-s1",
    "HostSystem:host-3",
    "Folder:datacenter-1-datastore",
    "Datastore:datastore-1",
    "StoragePod:group-p1",
    "Datastore:datastore-2",
    "Folder:datacenter-1-network",
    "Network:network-1",
    "VmwareDistributedVirtualSwitch:dvs-1",
    "DistributedVirtualPortgroup:dvportgroup-1",
]


class BuildInventoryMapTests(unittest.TestCase):
    def setUp(self):
        self.client = build_sample_inventory()

    def test_collects_every_node_below_root(self):
        """Every node below the root folder appears exactly once."""
        inventory = build_inventory_map(self.client)

        total = sum(len(refs) for refs in inventory.values())
        self.assertEqual(total, len(PRE_ORDER))
        self.assertEqual(
            {str(ref) for refs in inventory.values() for ref in refs},
            set(PRE_ORDER),
        )
        self.assertNotIn("Folder:group-d1", {str(ref) for ref in inventory.get("Folder", [])})

    def test_leaf_sets_per_type(self):
        inventory = build_inventory_map(self.client)

        self.assertEqual([r.value for r in inventory["VirtualMachine"]], ["vm-1", "vm-2"])
        self.assertEqual([r.value for r in inventory["HostSystem"]], ["host-1", "host-2", "host-3"])
        self.assertEqual([r.value for r in inventory["Datastore"]], ["datastore-1", "datastore-2"])
        self.assertEqual([r.value for r in inventory["Network"]], ["network-1"])
        self.assertEqual([r.value for r in inventory["DistributedVirtualPortgroup"]], ["dvportgroup-1"])
        self.assertEqual([r.value for r in inventory["StoragePod"]], ["group-p1"])

    def test_map_lists_follow_pre_order(self):
        """Per-type lists keep depth-first pre-order."""
        inventory = build_inventory_map(self.client)

        self.assertEqual(
            [str(r) for r in inventory["Folder"]],
            [ref for ref in PRE_ORDER if ref.startswith("Folder:")],
        )

    def test_values_are_typed_references(self):
        inventory = build_inventory_map(self.client)

        for tag, refs in inventory.items():
            for ref in refs:
                self.assertEqual(ref.type, tag)
                self.assertEqual(type(ref).__name__, tag)

    def test_collector_enumerates_every_container(self):
        """Unlike search, collection issues a request for each container."""
        build_inventory_map(self.client)

        self.assertEqual(self.client.visited(), [
            "Folder:group-d1",
            "Datacenter:datacenter-1",
            "Folder:datacenter-1-vm",
            "Folder:group-v2",
            "Folder:datacenter-1-host",
            "ClusterComputeResource:domain-c1",
            "ComputeResource:domain-s1",
            "Folder:datacenter-1-datastore",
            "StoragePod:group-p1",
            "Folder:datacenter-1-network",
            "VmwareDistributedVirtualSwitch:dvs-1",
        ])

    def test_property_children_use_vsphere_property_names(self):
        build_inventory_map(self.client)

        paths = {call[1]: call[2] for call in self.client.calls if call[0] == "fetch_properties"}
        self.assertEqual(paths["ClusterComputeResource:domain-c1"], ("host",))
        self.assertEqual(paths["ComputeResource:domain-s1"], ("host",))
        self.assertEqual(paths["StoragePod:group-p1"], ("childEntity",))
        self.assertEqual(paths["VmwareDistributedVirtualSwitch:dvs-1"], ("portgroup",))

    def test_empty_root_folder_yields_empty_map(self):
        client = FakeInventoryClient()

        self.assertEqual(build_inventory_map(client), {})

    def test_start_limits_walk_to_subtree(self):
        folders = self.client.folders_of(ManagedObjectReference("Datacenter", "datacenter-1"))
        start = new_reference(folders.host_folder)

        inventory = build_inventory_map(self.client, start)

        self.assertEqual(inventory_summary(inventory), {
            "ClusterComputeResource": 1,
            "ComputeResource": 1,
            "HostSystem": 3,
        })

    def test_duplicate_reachable_reference_is_not_deduplicated(self):
        client = FakeInventoryClient()
        client.add(client.root, "VirtualMachine", "vm-7")
        client.folder_children[client.root].append(client.folder_children[client.root][0])

        inventory = build_inventory_map(client)

        self.assertEqual([r.value for r in inventory["VirtualMachine"]], ["vm-7", "vm-7"])


class DatacenterOrderTests(unittest.TestCase):
    def test_datacenter_folders_visited_vm_host_datastore_network(self):
        client = FakeInventoryClient()
        dc = client.add(client.root, "Datacenter", "datacenter-9")

        children = child_references(client, resolve(dc.type, dc.value))

        self.assertEqual(
            [c.value for c in children],
            ["datacenter-9-vm", "datacenter-9-host", "datacenter-9-datastore", "datacenter-9-network"],
        )

    def test_leaf_types_have_no_rule(self):
        for tag in LEAF_TAGS:
            self.assertNotIn(tag, CHILD_RULES)

    def test_leaf_makes_no_requests(self):
        client = FakeInventoryClient()

        self.assertEqual(child_references(client, resolve("VirtualMachine", "vm-1")), [])
        self.assertEqual(client.calls, [])


class ErrorPropagationTests(unittest.TestCase):
    def test_collaborator_error_on_third_request_aborts_collection(self):
        """Two requests already succeeded; the third failure still aborts the whole call."""
        client = build_sample_inventory()
        failure = CollaboratorError("connection reset", fault_type="ConnectionResetError")
        client.fail_on_call[3] = failure

        with self.assertRaises(CollaboratorError) as ctx:
            build_inventory_map(client)

        self.assertIs(ctx.exception, failure)
        self.assertEqual(len(client.visited()), 3)

    def test_collaborator_error_aborts_search(self):
        client = build_sample_inventory()
        client.fail_on_call[3] = CollaboratorError("denied")

        with self.assertRaises(CollaboratorError):
            search(client, lambda c, ref: False)

    def test_unknown_tag_aborts_collection(self):
        """A node of an unknown type is never silently dropped."""
        client = FakeInventoryClient()
        client.add(client.root, "VirtualMachine", "vm-1")
        folder = client.add(client.root, "Folder", "group-v9")
        client.add(folder, "FutureType", "future-1")

        with self.assertRaises(UnknownTypeTagError) as ctx:
            build_inventory_map(client)

        self.assertEqual(ctx.exception.tag, "FutureType")

    def test_unknown_tag_aborts_search(self):
        client = FakeInventoryClient()
        client.add(client.root, "FutureType", "future-1")

        with self.assertRaises(UnknownTypeTagError):
            search(client, lambda c, ref: False)


class SearchTests(unittest.TestCase):
    def setUp(self):
        self.client = build_sample_inventory()

    def test_returns_first_match_in_pre_order(self):
        match = search(self.client, lambda c, ref: ref.type == "HostSystem")

        self.assertEqual(str(match), "HostSystem:host-1")

    def test_stops_after_match(self):
        """No request is made for anything after the matching node."""
        search(self.client, lambda c, ref: ref.type == "HostSystem")

        self.assertEqual(self.client.visited()[-1], "ClusterComputeResource:domain-c1")
        self.assertNotIn("ComputeResource:domain-s1", self.client.visited())
        self.assertNotIn("Folder:datacenter-1-datastore", self.client.visited())

    def test_match_on_container_does_not_descend(self):
        match = search(self.client, lambda c, ref: ref.type == "StoragePod")

        self.assertEqual(match.value, "group-p1")
        self.assertNotIn("StoragePod:group-p1", self.client.visited())

    def test_comparator_sees_every_node_in_order_when_nothing_matches(self):
        seen = []

        def comparator(client, ref):
            seen.append(str(ref))
            return False

        self.assertIsNone(search(self.client, comparator))
        self.assertEqual(seen, PRE_ORDER)

    def test_comparator_receives_client(self):
        received = []
        search(self.client, lambda c, ref: received.append(c) or True)

        self.assertIs(received[0], self.client)

    def test_empty_root_folder_has_no_match(self):
        self.assertIsNone(search(FakeInventoryClient(), lambda c, ref: True))


class PolicyTests(unittest.TestCase):
    def test_collector_combine_appends_per_tag(self):
        collector = Collector()
        acc = {"HostSystem": [resolve("HostSystem", "host-1")]}

        merged = collector.combine(acc, {
            "HostSystem": [resolve("HostSystem", "host-2")],
            "Datastore": [resolve("Datastore", "datastore-1")],
        })

        self.assertEqual([r.value for r in merged["HostSystem"]], ["host-1", "host-2"])
        self.assertEqual([r.value for r in merged["Datastore"]], ["datastore-1"])
        self.assertFalse(collector.is_terminal(merged))

    def test_walk_includes_starting_node(self):
        client = build_sample_inventory()
        dc = resolve("Datacenter", "datacenter-1")

        inventory = walk(client, dc, Collector())

        self.assertEqual(inventory["Datacenter"], [dc])
        self.assertIsInstance(inventory["Datacenter"][0], Datacenter)

    def test_searcher_keeps_first_result(self):
        searcher = Searcher(lambda c, ref: True)
        first = resolve("VirtualMachine", "vm-1")

        self.assertIs(searcher.combine(None, first), first)
        self.assertIs(searcher.combine(first, None), first)
        self.assertTrue(searcher.is_terminal(first))
        self.assertFalse(searcher.is_terminal(None))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
