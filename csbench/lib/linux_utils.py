'''
Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved. This notice is intended as a precaution against inadvertent publication and does not imply publication or any waiver of confidentiality.
The year included in the foregoing notice is the year of creation of the work.
All code contained here is Property of Advanced Micro Devices, Inc.
'''

import os
import re
import sys
import getpass
import logging
import platform as host_platform
from dataclasses import dataclass
from enum import Enum

log = logging.getLogger(__name__)

OS_RELEASE_FILE = '/etc/os-release'


class PlatformID(Enum):
    UNIX = "Unix"
    WIN32NT = "Win32NT"
    OTHER = "Other"


class LinuxDistribution(Enum):
    UBUNTU = "Ubuntu"
    DEBIAN = "Debian"
    CENTOS7 = "CentOS7"
    CENTOS8 = "CentOS8"
    RHEL7 = "RHEL7"
    RHEL8 = "RHEL8"
    AZLINUX = "AzLinux"
    AWSLINUX = "AwsLinux"
    SUSE = "SUSE"
    FLATCAR = "Flatcar"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class LinuxDistributionInfo:
    """Distribution as reported by the host, e.g. name='Ubuntu 22.04.4 LTS'."""

    name: str
    distribution: LinuxDistribution


def get_platform(system_platform=None):
    """Map sys.platform onto a PlatformID."""
    system_platform = system_platform or sys.platform
    if system_platform.startswith('linux'):
        return PlatformID.UNIX
    if system_platform in ('win32', 'cygwin'):
        return PlatformID.WIN32NT
    return PlatformID.OTHER


def get_architecture_name(machine=None):
    """Normalized CPU architecture: x64, arm64 or the raw machine string."""
    machine = (machine if machine is not None else host_platform.machine()).lower()
    if machine in ('x86_64', 'amd64', 'x64'):
        return 'x64'
    if machine in ('aarch64', 'arm64'):
        return 'arm64'
    return machine or 'unknown'


def get_platform_architecture_name(platform_id, architecture):
    """
    Platform/architecture name as used in support messages, e.g. 'linux-x64'.
    """
    prefix = {PlatformID.UNIX: 'linux', PlatformID.WIN32NT: 'win'}.get(platform_id, platform_id.value.lower())
    return f'{prefix}-{architecture}'


def parse_os_release(text):
    """
    Parse the contents of /etc/os-release into a dictionary.

    Lines look like KEY=value or KEY="quoted value". Comments and blank lines
    are ignored.

    Example:
        NAME="Ubuntu"
        VERSION_ID="22.04"
        ->
        {'NAME': 'Ubuntu', 'VERSION_ID': '22.04'}
    """
    release = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        match = re.match(r'^([A-Z0-9_]+)=(.*)$', line)
        if match:
            release[match.group(1)] = match.group(2).strip().strip('"').strip("'")
    return release


def get_linux_distribution_info(os_release):
    """
    Resolve a LinuxDistributionInfo from a parsed os-release dictionary.

    The ID field identifies the family; for CentOS and RHEL the major
    VERSION_ID picks the release specific member.
    """
    distro_id = os_release.get('ID', '').lower()
    like = os_release.get('ID_LIKE', '').lower()
    major = os_release.get('VERSION_ID', '').split('.')[0]
    name = os_release.get('PRETTY_NAME') or os_release.get('NAME') or 'Unknown'

    if distro_id == 'ubuntu':
        distribution = LinuxDistribution.UBUNTU
    elif distro_id == 'debian':
        distribution = LinuxDistribution.DEBIAN
    elif distro_id == 'centos':
        distribution = {'7': LinuxDistribution.CENTOS7, '8': LinuxDistribution.CENTOS8}.get(
            major, LinuxDistribution.UNKNOWN
        )
    elif distro_id == 'rhel':
        distribution = {'7': LinuxDistribution.RHEL7, '8': LinuxDistribution.RHEL8}.get(
            major, LinuxDistribution.UNKNOWN
        )
    elif distro_id in ('mariner', 'azurelinux'):
        distribution = LinuxDistribution.AZLINUX
    elif distro_id == 'amzn':
        distribution = LinuxDistribution.AWSLINUX
    elif distro_id in ('sles', 'opensuse', 'opensuse-leap') or 'suse' in like:
        distribution = LinuxDistribution.SUSE
    elif distro_id == 'flatcar':
        distribution = LinuxDistribution.FLATCAR
    else:
        distribution = LinuxDistribution.UNKNOWN

    return LinuxDistributionInfo(name=name, distribution=distribution)


class HostSystem():
    """
    Access to the local host: platform, distribution and the logged in user.

    Passed explicitly into executors so tests can substitute a fake host.
    """

    def __init__(self, os_release_file=OS_RELEASE_FILE, system_platform=None, machine=None):
        self.os_release_file = os_release_file
        self.platform = get_platform(system_platform)
        self.architecture = get_architecture_name(machine)

    @property
    def platform_architecture_name(self):
        return get_platform_architecture_name(self.platform, self.architecture)

    def get_linux_distribution(self):
        """
        Distribution of the host read from /etc/os-release. An unreadable file
        yields an Unknown distribution.
        """
        try:
            with open(self.os_release_file) as f:
                os_release = parse_os_release(f.read())
        except OSError as e:
            log.warning(f'Unable to read {self.os_release_file}: {e}')
            os_release = {}
        info = get_linux_distribution_info(os_release)
        log.debug(f'Linux distribution = {info.distribution.value} ({info.name})')
        return info

    def get_logged_in_user(self):
        """
        User logged in to the host. When running under sudo this is the user
        that invoked sudo rather than root.
        """
        sudo_user = os.environ.get('SUDO_USER', '').strip()
        if sudo_user:
            return sudo_user
        return getpass.getuser()
