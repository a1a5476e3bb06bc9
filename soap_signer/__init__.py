"""SOAP Signer — enveloped XMLDSig for WS-Security headers."""
from .config import SignerConfig
from .errors import (AmbiguousReference, CredentialAccessDenied, CredentialNotFound, InvalidReference,
                     MalformedEnvelope, MalformedInputXml, SignatureComputationError, SigningError,
                     StoreUnavailable, UnsupportedAlgorithm)
from .keystore import CredentialBundle, CredentialStore, PEMKeyStore, PKCS12KeyStore
from .signer import SignedEnvelope, SoapSigner, sign_soap
__all__ = ['sign_soap', 'SoapSigner', 'SignedEnvelope', 'SignerConfig',
           'CredentialBundle', 'CredentialStore', 'PKCS12KeyStore', 'PEMKeyStore',
           'SigningError', 'StoreUnavailable', 'CredentialNotFound', 'CredentialAccessDenied',
           'MalformedInputXml', 'MalformedEnvelope', 'InvalidReference', 'AmbiguousReference',
           'UnsupportedAlgorithm', 'SignatureComputationError']
__version__ = '0.3.0'
