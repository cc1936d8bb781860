'''
Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved. This notice is intended as a precaution against inadvertent publication and does not imply publication or any waiver of confidentiality.
The year included in the foregoing notice is the year of creation of the work.
All code contained here is Property of Advanced Micro Devices, Inc.
'''

import logging

from csbench.errors import ErrorReason, WorkloadException
from csbench.lib.linux_utils import (
    LinuxDistribution,
    PlatformID,
    get_platform_architecture_name,
)

log = logging.getLogger(__name__)


SUPPORTED_LINUX_DISTRIBUTIONS = (
    LinuxDistribution.UBUNTU,
    LinuxDistribution.DEBIAN,
    LinuxDistribution.CENTOS8,
    LinuxDistribution.RHEL8,
    LinuxDistribution.AZLINUX,
    LinuxDistribution.AWSLINUX,
)

SUPPORTED_PLATFORM_ARCHITECTURES = (
    get_platform_architecture_name(PlatformID.UNIX, 'x64'),
    get_platform_architecture_name(PlatformID.UNIX, 'arm64'),
)


def validate_platform_support(platform, distribution_info=None, platform_architecture_name=None):
    """
    Fail fast when the host cannot run the workload.

    Parameters:
      platform (PlatformID): Platform family of the host.
      distribution_info (LinuxDistributionInfo): Resolved distribution, required for Unix hosts.
      platform_architecture_name (str): e.g. 'win-x64', used in the failure message only.

    Behavior:
      - Any non-Unix platform fails with ErrorReason.PLATFORM_NOT_SUPPORTED.
      - A Unix platform whose distribution is not in SUPPORTED_LINUX_DISTRIBUTIONS
        fails with ErrorReason.LINUX_DISTRIBUTION_NOT_SUPPORTED.
      - Both messages name the unsupported value and list every supported one.

    Raises:
      WorkloadException
    """
    if platform != PlatformID.UNIX:
        current = platform_architecture_name or platform.value
        raise WorkloadException(
            f"The workload/benchmark is currently not supported on the current platform/architecture "
            f"'{current}'. Supported platform/architectures include: "
            f"{', '.join(SUPPORTED_PLATFORM_ARCHITECTURES)}",
            ErrorReason.PLATFORM_NOT_SUPPORTED,
        )

    distribution = distribution_info.distribution if distribution_info else LinuxDistribution.UNKNOWN
    if distribution not in SUPPORTED_LINUX_DISTRIBUTIONS:
        raise WorkloadException(
            f"The workload/benchmark is not supported on the current Linux distro "
            f"'{distribution.value}'. Supported distros include: "
            f"{', '.join(d.value for d in SUPPORTED_LINUX_DISTRIBUTIONS)}",
            ErrorReason.LINUX_DISTRIBUTION_NOT_SUPPORTED,
        )

    log.info(f'Platform support verified: {distribution.value} ({distribution_info.name})')
