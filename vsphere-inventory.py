#!/usr/bin/env python3
"""
vSphere Inventory Script
========================

Walks the inventory of a vCenter and prints how many objects of each type it
holds, or looks up a single VM, host or datastore by exact name.

Requirements:
- Python 3.8+
- pip install -e .

Usage:
1. Export VSPHERE_INVENTORY_HOST, VSPHERE_INVENTORY_USER and
   VSPHERE_INVENTORY_PASSWORD (see vsphere_inventory/config.py)
2. Run: python vsphere-inventory.py
3. Or:  python vsphere-inventory.py --vm web-01

Notes:
- The script only needs read-only access to vCenter
"""

import sys
import logging
import argparse

from vsphere_inventory import (
    InventoryError,
    build_inventory_map,
    find_datastore_by_name,
    find_host_by_name,
    find_vm_by_name,
    inventory_summary,
)
from vsphere_inventory.config import settings
from vsphere_inventory.connection import vcenter_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("vsphere-inventory")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Walk a vCenter inventory")
    lookup = parser.add_mutually_exclusive_group()
    lookup.add_argument("--vm", metavar="NAME", help="find a virtual machine by exact name")
    lookup.add_argument("--host", metavar="NAME", help="find an ESXi host by exact name")
    lookup.add_argument("--datastore", metavar="NAME", help="find a datastore by exact name")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    lookups = [
        (args.vm, find_vm_by_name),
        (args.host, find_host_by_name),
        (args.datastore, find_datastore_by_name),
    ]

    try:
        with vcenter_client(settings) as client:
            for name, finder in lookups:
                if name is None:
                    continue
                match = finder(client, name)
                if match is None:
                    print(f"✗ {name} not found")
                    return 2
                print(f"✓ {name}: {match}")
                return 0

            inventory = build_inventory_map(client)
            print(f"\nInventory of {settings.host}")
            print("=" * 50)
            for tag, count in inventory_summary(inventory).items():
                print(f"  {tag:<35} {count:>8}")
            print("=" * 50)
            return 0
    except InventoryError as e:
        logger.error(f"Inventory walk failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
