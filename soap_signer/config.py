"""
Signer configuration.

Holds the algorithm suite, the identifier attribute and the names of the
security header elements. A config is immutable once built; one instance
may be shared by any number of concurrent signing calls.
"""
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOAP11_NS = 'http://schemas.xmlsoap.org/soap/envelope/'
SOAP12_NS = 'http://www.w3.org/2003/05/soap-envelope'
WSSE_NS = 'http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd'

C14N_INCLUSIVE = 'http://www.w3.org/TR/2001/REC-xml-c14n-20010315'
RSA_SHA256 = 'http://www.w3.org/2001/04/xmldsig-more#rsa-sha256'
SHA256 = 'http://www.w3.org/2001/04/xmlenc#sha256'


class SignerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # ------------------------------------------------------------------
    # Algorithm suite
    # ------------------------------------------------------------------

    c14n_algorithm: str = Field(
        C14N_INCLUSIVE,
        description='Canonicalization used for every reference and for SignedInfo',
    )

    signature_algorithm: str = Field(
        RSA_SHA256,
        description='Signature method URI or short name such as rsa-sha256',
    )

    digest_algorithm: str = Field(
        SHA256,
        description='Digest method URI or short name such as sha256',
    )

    allow_legacy_algorithms: bool = Field(
        False,
        description='Permit SHA-1 based digest and signature methods',
    )

    # ------------------------------------------------------------------
    # Document layout
    # ------------------------------------------------------------------

    id_attribute: str = Field(
        'Id',
        description='Local name of the attribute that identifies signable elements',
    )

    soap_namespace: Optional[str] = Field(
        SOAP11_NS,
        description='Namespace of the Header element; None matches any namespace',
    )

    security_namespace: Optional[str] = Field(
        WSSE_NS,
        description='Namespace of the Security and token elements; None matches any namespace',
    )

    header_tag: str = Field('Header')
    security_tag: str = Field('Security')
    token_tag: str = Field(
        'BinarySecurityToken',
        description='Element receiving the base64 DER certificate',
    )

    signature_prefix: str = Field(
        'ds',
        description='Namespace prefix used for the emitted signature elements',
    )

    # ------------------------------------------------------------------
    # Parsing and output
    # ------------------------------------------------------------------

    remove_blank_text: bool = Field(
        True,
        description='Drop ignorable whitespace between elements when parsing',
    )

    xml_declaration: bool = Field(True)

    @field_validator('id_attribute', 'header_tag', 'security_tag', 'token_tag')
    @classmethod
    def validate_local_name(cls, v: str) -> str:
        if not v or ':' in v or any(c.isspace() for c in v):
            raise ValueError(f'{v!r} is not a valid XML local name')
        return v

    @field_validator('signature_prefix')
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if ':' in v or any(c.isspace() for c in v) or v.lower().startswith('xml'):
            raise ValueError(f'{v!r} cannot be used as a namespace prefix')
        return v

    @classmethod
    def from_env(cls) -> 'SignerConfig':
        """Build a config from ``SOAP_SIGNER_*`` environment variables."""

        def env_bool(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw.strip().lower() in {'1', 'true', 'yes', 'on'}

        def env_ns(name: str, default: str) -> Optional[str]:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw or None

        return cls(
            c14n_algorithm=os.getenv('SOAP_SIGNER_C14N_ALGORITHM', C14N_INCLUSIVE),
            signature_algorithm=os.getenv('SOAP_SIGNER_SIGNATURE_ALGORITHM', RSA_SHA256),
            digest_algorithm=os.getenv('SOAP_SIGNER_DIGEST_ALGORITHM', SHA256),
            allow_legacy_algorithms=env_bool('SOAP_SIGNER_ALLOW_LEGACY_ALGORITHMS', False),
            id_attribute=os.getenv('SOAP_SIGNER_ID_ATTRIBUTE', 'Id'),
            soap_namespace=env_ns('SOAP_SIGNER_SOAP_NAMESPACE', SOAP11_NS),
            security_namespace=env_ns('SOAP_SIGNER_SECURITY_NAMESPACE', WSSE_NS),
            header_tag=os.getenv('SOAP_SIGNER_HEADER_TAG', 'Header'),
            security_tag=os.getenv('SOAP_SIGNER_SECURITY_TAG', 'Security'),
            token_tag=os.getenv('SOAP_SIGNER_TOKEN_TAG', 'BinarySecurityToken'),
            signature_prefix=os.getenv('SOAP_SIGNER_SIGNATURE_PREFIX', 'ds'),
            remove_blank_text=env_bool('SOAP_SIGNER_REMOVE_BLANK_TEXT', True),
            xml_declaration=env_bool('SOAP_SIGNER_XML_DECLARATION', True),
        )
