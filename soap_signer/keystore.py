"""Credential stores: load the signing key and certificate for an alias."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Tuple, Union

from asn1crypto import pkcs12 as asn1_pkcs12
from cryptography import exceptions as crypto_exceptions
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from .errors import CredentialAccessDenied, CredentialNotFound, StoreUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialBundle:
    private_key: object = field(repr=False)
    certificate: x509.Certificate
    alias: str
    chain: Tuple[x509.Certificate, ...] = ()

    @property
    def certificate_der(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.DER)

    @property
    def certificate_pem(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    @property
    def subject_name(self) -> str:
        return self.certificate.subject.rfc4514_string()


class CredentialStore(Protocol):
    def load(self, alias: str) -> CredentialBundle:
        ...


def _spki(public_key) -> bytes:
    return public_key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)


def _check_pair(private_key, certificate: x509.Certificate, path: Path) -> None:
    if _spki(private_key.public_key()) != _spki(certificate.public_key()):
        raise StoreUnavailable(path, 'private key does not match certificate')


def _issuer_chain(certificate: x509.Certificate, candidates: List[x509.Certificate]) -> Tuple[x509.Certificate, ...]:
    """Order the issuers of ``certificate`` found in ``candidates``, nearest first."""
    chain: List[x509.Certificate] = []
    current = certificate
    while current.issuer != current.subject:
        issuer = next((c for c in candidates
                       if c.subject == current.issuer and c != certificate and c not in chain), None)
        if issuer is None:
            break
        chain.append(issuer)
        current = issuer
    return tuple(chain)


def _friendly_name(attributes) -> Optional[str]:
    for attribute in attributes or ():
        if attribute['type'] == 'friendly_name' and attribute['values']:
            return attribute['values'][0]
    return None


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise StoreUnavailable(path, e.strerror or str(e)) from e


def _password(password: Optional[Union[str, bytes]]) -> Optional[bytes]:
    if not password:
        return None
    if isinstance(password, str):
        return password.encode('utf-8')
    return password


class PKCS12KeyStore:
    """PKCS#12 file store. The alias is the friendly name of the key entry.

    The first key entry comes from ``load_pkcs12``. Further key entries are
    read from the unencrypted safes of the store and decrypted on demand.
    """

    def __init__(self, path: Union[str, Path], password: Optional[Union[str, bytes]] = None):
        self.path = Path(path)
        self._password = _password(password)

    def _parse(self, data: bytes):
        try:
            pfx = asn1_pkcs12.Pfx.load(data, strict=True)
            pfx['auth_safe']['content_type'].native
        except (ValueError, TypeError) as e:
            raise StoreUnavailable(self.path, 'not a PKCS#12 store') from e
        try:
            return pfx, pkcs12.load_pkcs12(data, self._password)
        except (ValueError, TypeError) as e:
            raise CredentialAccessDenied(self.path) from e

    def _key_entry(self, pfx: asn1_pkcs12.Pfx, alias: str):
        for content_info in pfx.authenticated_safe:
            if content_info['content_type'].native != 'data':
                continue
            for bag in asn1_pkcs12.SafeContents.load(content_info['content'].native):
                bag_id = bag['bag_id'].native
                if bag_id not in ('key_bag', 'pkcs8_shrouded_key_bag'):
                    continue
                if _friendly_name(bag['bag_attributes'].native) != alias:
                    continue
                password = self._password if bag_id == 'pkcs8_shrouded_key_bag' else None
                try:
                    return serialization.load_der_private_key(bag['bag_value'].untag().dump(), password)
                except (ValueError, TypeError, crypto_exceptions.UnsupportedAlgorithm) as e:
                    raise StoreUnavailable(self.path, f'cannot read key entry {alias!r}') from e
        return None

    def load(self, alias: str) -> CredentialBundle:
        logger.debug('Loading %r from PKCS#12 store %s', alias, self.path)
        pfx, p12 = self._parse(_read(self.path))
        certificates = [c.certificate for c in p12.additional_certs]
        if p12.cert is not None:
            certificates.insert(0, p12.cert.certificate)

        entry = p12.cert
        name = entry.friendly_name.decode('utf-8') if entry is not None and entry.friendly_name else None
        if p12.key is not None and name == alias:
            private_key, certificate = p12.key, entry.certificate
        else:
            private_key = self._key_entry(pfx, alias)
            if private_key is None:
                raise CredentialNotFound(alias, self.path)
            spki = _spki(private_key.public_key())
            certificate = next((c for c in certificates if _spki(c.public_key()) == spki), None)
            if certificate is None:
                raise StoreUnavailable(self.path, f'no certificate for key entry {alias!r}')

        _check_pair(private_key, certificate, self.path)
        return CredentialBundle(
            private_key=private_key,
            certificate=certificate,
            alias=alias,
            chain=_issuer_chain(certificate, certificates),
        )


class PEMKeyStore:
    """Directory of ``<alias>.key`` / ``<alias>.pem`` file pairs.

    Certificates after the first one in ``<alias>.pem`` form the chain.
    """

    def __init__(self, directory: Union[str, Path], password: Optional[Union[str, bytes]] = None):
        self.directory = Path(directory)
        self._password = _password(password)

    def load(self, alias: str) -> CredentialBundle:
        logger.debug('Loading %r from PEM store %s', alias, self.directory)
        if not self.directory.is_dir():
            raise StoreUnavailable(self.directory, 'not a directory')
        key_path = self.directory / f'{alias}.key'
        cert_path = self.directory / f'{alias}.pem'
        if '/' in alias or '\\' in alias or not key_path.is_file() or not cert_path.is_file():
            raise CredentialNotFound(alias, self.directory)

        key_data = _read(key_path)
        try:
            private_key = serialization.load_pem_private_key(key_data, password=self._password)
        except (ValueError, TypeError) as e:
            if b'ENCRYPTED' in key_data:
                raise CredentialAccessDenied(key_path, alias) from e
            raise StoreUnavailable(key_path, 'unreadable private key') from e
        try:
            certificates = x509.load_pem_x509_certificates(_read(cert_path))
        except ValueError as e:
            raise StoreUnavailable(cert_path, 'unreadable certificate') from e

        certificate = certificates[0]
        _check_pair(private_key, certificate, cert_path)
        return CredentialBundle(private_key=private_key, certificate=certificate, alias=alias,
                                chain=_issuer_chain(certificate, certificates[1:]))
