"""Exception types raised by the operator host."""

from __future__ import annotations

from typing import Optional


class OperatorHostError(Exception):
    code = "OPERATOR_HOST_ERROR"


class DirectoryNotFoundError(OperatorHostError):
    code = "DIRECTORY_NOT_FOUND"

    def __init__(self, directory: str) -> None:
        super().__init__(f"Operators directory does not exist: {directory}")
        self.directory = directory


class DescriptorError(OperatorHostError):
    code = "INVALID_DESCRIPTOR"


class OperatorLoadError(OperatorHostError):
    code = "OPERATOR_LOAD_ERROR"


class RegistrationError(OperatorHostError):
    code = "REGISTRATION_ERROR"

    def __init__(self, message: str, operator_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.operator_name = operator_name


class ServiceNotInitializedError(OperatorHostError):
    code = "SERVICE_NOT_INITIALIZED"
