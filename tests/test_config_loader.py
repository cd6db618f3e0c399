#!/usr/bin/env -S python3 -B -u
"""Unit tests for configuration loading and accessors."""

import unittest
import sys
import os
import tempfile
import shutil
from pathlib import Path
from unittest import mock

import yaml

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.config_loader import (
    DEFAULT_SUBNETS, load_hnet_config, get_subnet_choices, get_layout_config,
    get_storage_config, get_node_defaults
)
from src.core.exceptions import ConfigurationError
from src.core.topology_editor import TopologyEditor
from src.core.models import ViewMode


class TestLoadConfig(unittest.TestCase):
    """Test configuration file precedence."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.home = Path(self.test_dir) / 'home'
        self.work = Path(self.test_dir) / 'work'
        self.home.mkdir()
        self.work.mkdir()
        self.old_cwd = os.getcwd()
        os.chdir(self.work)
        self.env = mock.patch.dict(os.environ, {'HOME': str(self.home)})
        self.env.start()
        os.environ.pop('HNET_CONF', None)
        os.environ.pop('HNET_DATA', None)

    def tearDown(self):
        self.env.stop()
        os.chdir(self.old_cwd)
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def write_yaml(self, path, data):
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f)
        return path

    def test_defaults_without_files(self):
        config = load_hnet_config()

        self.assertEqual(config['subnets'], DEFAULT_SUBNETS)
        self.assertEqual(config['view_mode'], 'topology')
        self.assertNotIn('_source', config)

    def test_env_file_wins(self):
        env_file = self.write_yaml(Path(self.test_dir) / 'custom.yaml', {'view_mode': 'floorplan'})
        self.write_yaml(self.home / 'hnet.yaml', {'view_mode': 'topology', 'verbose_level': 2})
        os.environ['HNET_CONF'] = str(env_file)

        config = load_hnet_config()

        self.assertEqual(config['view_mode'], 'floorplan')
        self.assertEqual(config['verbose_level'], 0)
        self.assertEqual(config['_source'], str(env_file))

    def test_home_before_current_directory(self):
        self.write_yaml(self.home / 'hnet.yaml', {'verbose_level': 2})
        self.write_yaml(self.work / 'hnet.yaml', {'verbose_level': 3})

        self.assertEqual(load_hnet_config()['verbose_level'], 2)

    def test_current_directory(self):
        self.write_yaml(self.work / 'hnet.yaml', {'subnets': ['10.0.0.0']})

        self.assertEqual(load_hnet_config()['subnets'], ['10.0.0.0'])

    def test_broken_yaml_skipped(self):
        (self.home / 'hnet.yaml').write_text('subnets: [unclosed', encoding='utf-8')
        self.write_yaml(self.work / 'hnet.yaml', {'verbose_level': 1})

        self.assertEqual(load_hnet_config()['verbose_level'], 1)

    def test_non_mapping_rejected(self):
        self.write_yaml(self.work / 'hnet.yaml', ['a', 'b'])

        with self.assertRaises(ConfigurationError):
            load_hnet_config()

    def test_storage_directory_from_env(self):
        os.environ['HNET_DATA'] = str(self.work / 'data')

        self.assertEqual(get_storage_config({})['directory'], str(self.work / 'data'))


class TestConfigAccessors(unittest.TestCase):
    """Test accessor defaults and validation."""

    def test_subnet_choices(self):
        choices = get_subnet_choices({'subnets': ['192.168.8.0/24', '192.168.8.0', '10.0.0.0']})

        self.assertEqual(choices, ['192.168.8.0', '10.0.0.0'])

    def test_default_subnet_choices(self):
        self.assertEqual(get_subnet_choices({}), DEFAULT_SUBNETS)

    def test_invalid_subnet_choice(self):
        with self.assertRaises(ConfigurationError):
            get_subnet_choices({'subnets': ['192.168.1.7'], '_source': 'x.yaml'})

    def test_layout_defaults_and_overrides(self):
        layout = get_layout_config({'layout': {'direction': 'LR'}})

        self.assertEqual(layout['direction'], 'LR')
        self.assertEqual(layout['node_width'], 200)

    def test_storage_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop('HNET_DATA', None)
            storage = get_storage_config({'storage': {'autosave': False}})

        self.assertFalse(storage['autosave'])
        self.assertTrue(storage['directory'].endswith('.hnet'))

    def test_node_defaults(self):
        defaults = get_node_defaults({'node_defaults': {'ip_suffix': 10}})

        self.assertEqual(defaults['ip_suffix'], '10')
        self.assertEqual(defaults['router_mode'], 'dial')

    def test_editor_from_config(self):
        editor = TopologyEditor.from_config({
            'subnets': ['172.16.5.0'],
            'view_mode': 'floorplan',
            'node_defaults': {'ip_suffix': '254'},
        })

        self.assertEqual(editor.subnet_choices, ['172.16.5.0'])
        self.assertEqual(editor.view_mode, ViewMode.FLOORPLAN)
        self.assertEqual(editor.add_node('switchNode').data.ip_suffix, '254')


if __name__ == '__main__':
    unittest.main()
