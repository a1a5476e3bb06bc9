"""Errors raised by the signing pipeline."""
from typing import Optional, Union
from pathlib import Path


class SigningError(Exception):
    """Base class for every terminal failure of a signing call."""


class StoreUnavailable(SigningError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f'Key store {self.path} is unavailable: {reason}')


class CredentialNotFound(SigningError):
    def __init__(self, alias: str, path: Union[str, Path]):
        self.alias = alias
        self.path = str(path)
        super().__init__(f'No private key entry {alias!r} in key store {self.path}')


class CredentialAccessDenied(SigningError):
    def __init__(self, path: Union[str, Path], alias: Optional[str] = None):
        self.path = str(path)
        self.alias = alias
        super().__init__(f'Wrong password for key store {self.path}')


class MalformedInputXml(SigningError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f'Input is not well-formed XML: {reason}')


class MalformedEnvelope(SigningError):
    def __init__(self, element: str, parent: str, reason: Optional[str] = None):
        self.element = element
        self.parent = parent
        super().__init__(reason or f'Envelope has no {element} element under {parent}')


class InvalidReference(SigningError):
    def __init__(self, uri: str, matches: int = 0, reason: Optional[str] = None):
        self.uri = uri
        self.matches = matches
        super().__init__(reason or f'Reference URI {uri!r} matched {matches} elements, expected exactly one')


class AmbiguousReference(InvalidReference):
    """The identifier is carried by more than one element."""


class UnsupportedAlgorithm(SigningError):
    def __init__(self, algorithm: str, kind: str, reason: Optional[str] = None):
        self.algorithm = algorithm
        self.kind = kind
        message = f'Unsupported {kind} algorithm {algorithm!r}'
        if reason:
            message = f'{message}: {reason}'
        super().__init__(message)


class SignatureComputationError(SigningError):
    def __init__(self, reason: str, alias: Optional[str] = None):
        self.reason = reason
        self.alias = alias
        super().__init__(f'Signature computation failed: {reason}')
