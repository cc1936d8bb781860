import os
import tempfile
import unittest
from unittest.mock import patch

import csbench.lib.linux_utils as linux_utils
from csbench.lib.linux_utils import LinuxDistribution, PlatformID


UBUNTU_OS_RELEASE = '''PRETTY_NAME="Ubuntu 22.04.4 LTS"
NAME="Ubuntu"
VERSION_ID="22.04"
# comment
ID=ubuntu
ID_LIKE=debian
'''


class TestParseOsRelease(unittest.TestCase):
    def test_parse_quoted_and_plain_values(self):
        release = linux_utils.parse_os_release(UBUNTU_OS_RELEASE)
        self.assertEqual(release['NAME'], 'Ubuntu')
        self.assertEqual(release['ID'], 'ubuntu')
        self.assertEqual(release['VERSION_ID'], '22.04')
        self.assertEqual(release['PRETTY_NAME'], 'Ubuntu 22.04.4 LTS')
        self.assertNotIn('#', ''.join(release.keys()))

    def test_parse_empty(self):
        self.assertEqual(linux_utils.parse_os_release(''), {})


class TestLinuxDistributionInfo(unittest.TestCase):
    def test_distribution_mapping(self):
        cases = [
            ({'ID': 'ubuntu'}, LinuxDistribution.UBUNTU),
            ({'ID': 'debian', 'VERSION_ID': '12'}, LinuxDistribution.DEBIAN),
            ({'ID': 'centos', 'VERSION_ID': '8'}, LinuxDistribution.CENTOS8),
            ({'ID': 'centos', 'VERSION_ID': '7'}, LinuxDistribution.CENTOS7),
            ({'ID': 'rhel', 'VERSION_ID': '8.6'}, LinuxDistribution.RHEL8),
            ({'ID': 'rhel', 'VERSION_ID': '7.9'}, LinuxDistribution.RHEL7),
            ({'ID': 'rhel', 'VERSION_ID': '9.2'}, LinuxDistribution.UNKNOWN),
            ({'ID': 'mariner', 'VERSION_ID': '2.0'}, LinuxDistribution.AZLINUX),
            ({'ID': 'azurelinux', 'VERSION_ID': '3.0'}, LinuxDistribution.AZLINUX),
            ({'ID': 'amzn', 'VERSION_ID': '2023'}, LinuxDistribution.AWSLINUX),
            ({'ID': 'sles', 'VERSION_ID': '15.5'}, LinuxDistribution.SUSE),
            ({'ID': 'flatcar'}, LinuxDistribution.FLATCAR),
            ({'ID': 'arch'}, LinuxDistribution.UNKNOWN),
            ({}, LinuxDistribution.UNKNOWN),
        ]
        for release, expected in cases:
            with self.subTest(release=release):
                info = linux_utils.get_linux_distribution_info(release)
                self.assertEqual(info.distribution, expected)

    def test_name_prefers_pretty_name(self):
        info = linux_utils.get_linux_distribution_info(linux_utils.parse_os_release(UBUNTU_OS_RELEASE))
        self.assertEqual(info.name, 'Ubuntu 22.04.4 LTS')


class TestPlatform(unittest.TestCase):
    def test_get_platform(self):
        self.assertEqual(linux_utils.get_platform('linux'), PlatformID.UNIX)
        self.assertEqual(linux_utils.get_platform('win32'), PlatformID.WIN32NT)
        self.assertEqual(linux_utils.get_platform('darwin'), PlatformID.OTHER)

    def test_get_architecture_name(self):
        self.assertEqual(linux_utils.get_architecture_name('x86_64'), 'x64')
        self.assertEqual(linux_utils.get_architecture_name('AMD64'), 'x64')
        self.assertEqual(linux_utils.get_architecture_name('aarch64'), 'arm64')
        self.assertEqual(linux_utils.get_architecture_name('ppc64le'), 'ppc64le')

    def test_platform_architecture_name(self):
        host = linux_utils.HostSystem(system_platform='linux', machine='aarch64')
        self.assertEqual(host.platform_architecture_name, 'linux-arm64')
        host = linux_utils.HostSystem(system_platform='win32', machine='AMD64')
        self.assertEqual(host.platform_architecture_name, 'win-x64')


class TestHostSystem(unittest.TestCase):
    def test_get_linux_distribution_from_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            os_release = os.path.join(tmpdir, 'os-release')
            with open(os_release, 'w') as f:
                f.write(UBUNTU_OS_RELEASE)
            host = linux_utils.HostSystem(os_release_file=os_release)
            info = host.get_linux_distribution()
        self.assertEqual(info.distribution, LinuxDistribution.UBUNTU)

    def test_missing_os_release_is_unknown(self):
        host = linux_utils.HostSystem(os_release_file='/nonexistent/os-release')
        info = host.get_linux_distribution()
        self.assertEqual(info.distribution, LinuxDistribution.UNKNOWN)

    def test_logged_in_user_prefers_sudo_user(self):
        with patch.dict(os.environ, {'SUDO_USER': 'vmadmin'}):
            self.assertEqual(linux_utils.HostSystem().get_logged_in_user(), 'vmadmin')

    @patch('csbench.lib.linux_utils.getpass.getuser', return_value='runner')
    def test_logged_in_user_without_sudo(self, mock_getuser):
        with patch.dict(os.environ, {'SUDO_USER': ''}):
            self.assertEqual(linux_utils.HostSystem().get_logged_in_user(), 'runner')
        mock_getuser.assert_called_once()

    @patch('csbench.lib.linux_utils.getpass.getuser', side_effect=OSError('No username set'))
    def test_logged_in_user_error_propagates(self, mock_getuser):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(OSError):
                linux_utils.HostSystem().get_logged_in_user()


if __name__ == '__main__':
    unittest.main()
