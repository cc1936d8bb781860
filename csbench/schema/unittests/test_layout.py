import json
import os
import tempfile
import unittest

from pydantic import ValidationError

from csbench.errors import ErrorReason, ProfileException
from csbench.schema.layout import ClientInstance, ClientRole, EnvironmentLayout, load_layout


LAYOUT = {
    'clients': [
        {'name': 'node1', 'ipAddress': '10.0.0.2', 'role': 'Client'},
        {'name': 'node2', 'ipAddress': '10.0.0.5', 'role': 'Server'},
    ]
}


class TestEnvironmentLayout(unittest.TestCase):
    def setUp(self):
        self.layout = EnvironmentLayout.model_validate(LAYOUT)

    def test_aliases(self):
        self.assertEqual(self.layout.clients[0].ip_address, '10.0.0.2')
        instance = ClientInstance(name='node3', ip_address='10.0.0.7', role='Client')
        self.assertEqual(instance.ip_address, '10.0.0.7')

    def test_is_multi_role(self):
        self.assertTrue(self.layout.is_multi_role())
        single = EnvironmentLayout.model_validate(
            {'clients': [{'name': 'a', 'ipAddress': '10.0.0.2', 'role': 'Client'},
                         {'name': 'b', 'ipAddress': '10.0.0.3', 'role': 'client'}]}
        )
        self.assertFalse(single.is_multi_role())
        self.assertFalse(EnvironmentLayout().is_multi_role())

    def test_get_client_instance(self):
        self.assertEqual(self.layout.get_client_instance('NODE2').ip_address, '10.0.0.5')
        self.assertIsNone(self.layout.get_client_instance('node9'))

    def test_get_client_instances_by_role(self):
        servers = self.layout.get_client_instances(ClientRole.SERVER)
        self.assertEqual([s.name for s in servers], ['node2'])
        self.assertEqual(self.layout.get_client_instances('observer'), [])

    def test_duplicate_names_rejected(self):
        with self.assertRaises(ValidationError):
            EnvironmentLayout.model_validate(
                {'clients': [{'name': 'node1', 'role': 'Client'}, {'name': 'NODE1', 'role': 'Server'}]}
            )

    def test_frozen(self):
        with self.assertRaises(ValidationError):
            self.layout.clients[0].role = 'Server'


class TestLoadLayout(unittest.TestCase):
    def test_load_layout(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'layout.json')
            with open(path, 'w') as f:
                json.dump(LAYOUT, f)
            layout = load_layout(path)
        self.assertEqual(len(layout.clients), 2)

    def test_invalid_layout(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'layout.json')
            with open(path, 'w') as f:
                json.dump({'clients': [{'ipAddress': '10.0.0.2'}]}, f)
            with self.assertRaises(ProfileException) as cm:
                load_layout(path)
        self.assertEqual(cm.exception.reason, ErrorReason.LAYOUT_INVALID)


if __name__ == '__main__':
    unittest.main()
