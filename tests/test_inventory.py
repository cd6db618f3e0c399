#!/usr/bin/env -S python3 -B -u
"""Unit tests for the device inventory export."""

import unittest
import sys
import os
import csv
import tempfile
import shutil
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.exceptions import EmptyInventoryError, StorageError, ErrorCode
from src.core.inventory import (
    INVENTORY_HEADERS, InventoryRow, inventory_row, inventory_rows, write_inventory_csv
)
from src.core.models import Node, DeviceKind, DeviceData, RouterData, RouterMode


class TestInventoryRows(unittest.TestCase):
    """Test row building."""

    def test_router_row(self):
        node = Node(id='r', kind=DeviceKind.ROUTER,
                    data=RouterData(label='Study AP', model='AX6000', area='书房',
                                    mode=RouterMode.INHERIT, ip='192.168.1.2'))

        row = inventory_row(node)

        self.assertEqual(row.to_csv_row(), ['Study AP', '路由器', 'AX6000', '192.168.1.2', '书房', '继承'])

    def test_non_router_mode_placeholder(self):
        node = Node(id='s', kind=DeviceKind.SMART_HOME, data=DeviceData(label='Lamp'))

        row = inventory_row(node)

        self.assertEqual(row.kind_label, '智能设备')
        self.assertEqual(row.connection_mode, '-')
        self.assertEqual(row.ip, '')

    def test_empty_graph_reports_nothing_to_do(self):
        with self.assertRaises(EmptyInventoryError) as ctx:
            inventory_rows([])

        self.assertEqual(ctx.exception.error_code, ErrorCode.NOTHING_TO_DO)


class TestInventoryCsv(unittest.TestCase):
    """Test CSV output."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_write_csv(self):
        rows = [
            InventoryRow('光猫', '光猫', 'HN8145', '192.168.1.1', '客厅', '-'),
            InventoryRow('主路由', '路由器', '', '192.168.31.1', '客厅', '拨号'),
        ]
        path = Path(self.test_dir) / 'inventory.csv'

        written = write_inventory_csv(path, rows)

        self.assertEqual(written, path)
        raw = path.read_bytes()
        self.assertTrue(raw.startswith(b'\xef\xbb\xbf'))
        with open(path, newline='', encoding='utf-8-sig') as f:
            lines = list(csv.reader(f))
        self.assertEqual(lines[0], INVENTORY_HEADERS)
        self.assertEqual(lines[2], ['主路由', '路由器', '', '192.168.31.1', '客厅', '拨号'])

    def test_no_rows_no_file(self):
        path = Path(self.test_dir) / 'empty.csv'

        with self.assertRaises(EmptyInventoryError):
            write_inventory_csv(path, [])
        self.assertFalse(path.exists())

    def test_unwritable_path(self):
        path = Path(self.test_dir) / 'missing-dir' / 'inventory.csv'
        rows = [InventoryRow('a', 'b', 'c', 'd', 'e', 'f')]

        with self.assertRaises(StorageError):
            write_inventory_csv(path, rows)


if __name__ == '__main__':
    unittest.main()
