#!/usr/bin/env -S python3 -B -u
"""Unit tests for TopologyStorage."""

import unittest
import sys
import os
import tempfile
import shutil
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.exceptions import StorageError
from src.core.storage import STORAGE_KEY, TopologyStorage


class TestTopologyStorage(unittest.TestCase):
    """Save, load and clear the stored document."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.storage = TopologyStorage(Path(self.test_dir) / 'data')

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_path_uses_key(self):
        self.assertEqual(self.storage.path.name, f"{STORAGE_KEY}.json")

    def test_load_without_save(self):
        self.assertIsNone(self.storage.load())

    def test_save_and_load(self):
        document = {'nodes': [{'id': 'a', 'type': 'modemNode', 'data': {'label': '光猫'}}], 'edges': []}

        path = self.storage.save(document)

        self.assertTrue(path.exists())
        self.assertEqual(self.storage.load(), document)
        # No temporary files left behind
        self.assertEqual(sorted(p.name for p in path.parent.iterdir()), [path.name])

    def test_save_overwrites(self):
        self.storage.save({'nodes': [], 'edges': []})
        self.storage.save({'nodes': [], 'edges': [], 'viewMode': 'floorplan'})

        self.assertEqual(self.storage.load()['viewMode'], 'floorplan')

    def test_invalid_json_loads_as_nothing(self):
        self.storage.directory.mkdir(parents=True)
        self.storage.path.write_text('{broken', encoding='utf-8')

        self.assertIsNone(self.storage.load())

    def test_clear(self):
        self.assertFalse(self.storage.clear())
        self.storage.save({'nodes': [], 'edges': []})

        self.assertTrue(self.storage.clear())
        self.assertIsNone(self.storage.load())

    def test_save_into_file_path_fails(self):
        blocker = Path(self.test_dir) / 'blocker'
        blocker.write_text('x')
        storage = TopologyStorage(blocker / 'sub')

        with self.assertRaises(StorageError) as ctx:
            storage.save({'nodes': [], 'edges': []})
        self.assertEqual(ctx.exception.details['operation'], 'save')


if __name__ == '__main__':
    unittest.main()
