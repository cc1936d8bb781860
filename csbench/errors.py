'''
Copyright 2025 Advanced Micro Devices, Inc.
All rights reserved. This notice is intended as a precaution against inadvertent publication and does not imply publication or any waiver of confidentiality.
The year included in the foregoing notice is the year of creation of the work.
All code contained here is Property of Advanced Micro Devices, Inc.
'''

from enum import Enum
from typing import Optional


class ErrorReason(Enum):
    """Reason codes surfaced with every csbench failure."""

    PLATFORM_NOT_SUPPORTED = "PlatformNotSupported"
    LINUX_DISTRIBUTION_NOT_SUPPORTED = "LinuxDistributionNotSupported"
    WORKLOAD_FAILED = "WorkloadFailed"
    ROLE_NOT_SUPPORTED = "RoleNotSupported"
    ADDRESS_RESOLUTION_FAILED = "AddressResolutionFailed"
    LAYOUT_INVALID = "LayoutInvalid"
    API_REQUEST_FAILED = "ApiRequestFailed"
    INVALID_PROFILE_DEFINITION = "InvalidProfileDefinition"


class CsbenchException(Exception):
    """
    Base class for all csbench errors.

    Args:
        message: Human-readable description including the offending value
        reason: ErrorReason used by callers to branch diagnostics
        outcome: ProcessOutcome of the failed command, when there is one
    """

    def __init__(self, message: str, reason: ErrorReason, outcome=None):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.outcome = outcome

    def __str__(self) -> str:
        return f"{self.message} (reason: {self.reason.value})"


class WorkloadException(CsbenchException):
    """Platform support problems and failed workload processes."""


class DependencyException(CsbenchException):
    """Layout, address, role and API endpoint problems."""


class ProfileException(CsbenchException):
    """Malformed parameters, profile or layout files."""

    def __init__(self, message: str, reason: Optional[ErrorReason] = None):
        super().__init__(message, reason or ErrorReason.INVALID_PROFILE_DEFINITION)
