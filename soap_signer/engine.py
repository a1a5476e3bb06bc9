"""Enveloped XMLDSig computation on top of signxml."""
import base64
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Type

from cryptography import exceptions as crypto_exceptions
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, rsa
from lxml import etree
from signxml import (
    CanonicalizationMethod,
    DigestAlgorithm,
    InvalidInput,
    SignatureMethod,
    XMLSigner,
    methods,
    namespaces,
)

from .config import SignerConfig
from .errors import SignatureComputationError, UnsupportedAlgorithm
from .keystore import CredentialBundle
from .references import WHOLE_DOCUMENT, Reference
from .utils import copy_siblings

logger = logging.getLogger(__name__)

DS_NS = namespaces.ds

_KEY_TYPES = {
    'RSA_': rsa.RSAPrivateKey,
    'ECDSA_': ec.EllipticCurvePrivateKey,
    'DSA_': dsa.DSAPrivateKey,
}


def ds(tag: str) -> str:
    return f'{{{DS_NS}}}{tag}'


def _lookup(enum: Type[Enum], value: str, kind: str):
    for member in enum:
        fragment = member.value.rpartition('#')[2]
        if value in (member.value, member.name) or (fragment and value.lower() == fragment.lower()):
            return member
    raise UnsupportedAlgorithm(value, kind)


class EnvelopedXMLSigner(XMLSigner):
    """XMLSigner that resolves a ``""`` reference to the whole document.

    The stock resolver turns every URI into a fragment, so ``""`` could not
    appear next to ``#id`` references. The document copy is digested after
    signxml strips the placeholder from it.
    """

    def _get_c14n_inputs_from_references(self, doc_root, references):
        c14n_inputs, resolved = [], []
        for reference in references:
            if reference.URI == WHOLE_DOCUMENT:
                c14n_inputs.append(self.get_root(doc_root))
                resolved.append(reference)
            else:
                inputs, refs = super()._get_c14n_inputs_from_references(doc_root, [reference])
                c14n_inputs.extend(inputs)
                resolved.extend(refs)
        return c14n_inputs, resolved


class LegacyXMLSigner(EnvelopedXMLSigner):
    """EnvelopedXMLSigner that accepts SHA-1 based methods."""

    def check_deprecated_methods(self):
        pass


@dataclass(frozen=True)
class SignedInfo:
    canonicalization_method: str
    signature_method: str
    references: Tuple[Reference, ...]
    digest_values: Tuple[bytes, ...]


@dataclass(frozen=True)
class KeyInfo:
    subject_name: str
    certificate_der: bytes


@dataclass(frozen=True)
class Signature:
    element: etree._Element
    signed_info: SignedInfo
    key_info: KeyInfo
    signature_value: bytes


class SignatureEngine:
    def __init__(self, config: SignerConfig):
        self.config = config
        self.c14n_method = _lookup(CanonicalizationMethod, config.c14n_algorithm, 'canonicalization')
        self.signature_method = _lookup(SignatureMethod, config.signature_algorithm, 'signature')
        self.digest_method = _lookup(DigestAlgorithm, config.digest_algorithm, 'digest')
        if self.signature_method.name.startswith('HMAC_'):
            raise UnsupportedAlgorithm(
                self.signature_method.value, 'signature', 'certificate based signing requires a public key method'
            )

        self._new_signer()

    def _new_signer(self) -> XMLSigner:
        signer_class = LegacyXMLSigner if self.config.allow_legacy_algorithms else EnvelopedXMLSigner
        try:
            signer = signer_class(
                method=methods.enveloped,
                signature_algorithm=self.signature_method,
                digest_algorithm=self.digest_method,
                c14n_algorithm=self.c14n_method,
            )
        except InvalidInput as e:
            if 'SHA1' in self.signature_method.name:
                raise UnsupportedAlgorithm(self.signature_method.value, 'signature', str(e)) from e
            raise UnsupportedAlgorithm(self.digest_method.value, 'digest', str(e)) from e
        signer.namespaces = {self.config.signature_prefix: DS_NS}
        return signer

    def key_info(self, credentials: CredentialBundle) -> etree._Element:
        key_info = etree.Element(ds('KeyInfo'), nsmap={self.config.signature_prefix: DS_NS})
        x509_data = etree.SubElement(key_info, ds('X509Data'))
        etree.SubElement(x509_data, ds('X509SubjectName')).text = credentials.subject_name
        etree.SubElement(x509_data, ds('X509Certificate')).text = base64.b64encode(
            credentials.certificate_der).decode('ascii')
        for certificate in credentials.chain:
            etree.SubElement(x509_data, ds('X509Certificate')).text = base64.b64encode(
                certificate.public_bytes(serialization.Encoding.DER)).decode('ascii')
        return key_info

    def _check_key(self, credentials: CredentialBundle) -> None:
        for prefix, key_type in _KEY_TYPES.items():
            if self.signature_method.name.startswith(prefix):
                if not isinstance(credentials.private_key, key_type):
                    raise SignatureComputationError(
                        f'key {credentials.alias!r} cannot be used with {self.signature_method.name}',
                        credentials.alias,
                    )
                return

    def sign(self, root: etree._Element, placeholder: etree._Element,
             references: List[Reference], credentials: CredentialBundle) -> Tuple[etree._Element, Signature]:
        """Sign ``references`` of the document under ``root``.

        ``placeholder`` is an empty ``Signature`` element with
        ``Id="placeholder"`` already attached where the signature belongs.
        Returns the signed document root and the filled-in signature.
        """
        self._check_key(credentials)
        path = root.getroottree().getelementpath(placeholder)
        try:
            signed_root = self._new_signer().sign(
                root,
                key=credentials.private_key,
                cert=credentials.certificate_pem.decode('ascii'),
                reference_uri=[r.uri for r in references],
                key_info=self.key_info(credentials),
                id_attribute=self.config.id_attribute,
            )
        except (InvalidInput, ValueError, TypeError, crypto_exceptions.UnsupportedAlgorithm) as e:
            raise SignatureComputationError(str(e), credentials.alias) from e
        copy_siblings(root, signed_root)

        element = signed_root.find(path)
        if element is None or element.tag != ds('Signature'):
            raise SignatureComputationError('signature element missing from signed document', credentials.alias)
        signature = self._describe(element, references, credentials)
        logger.debug('Computed %s signature over %d references', self.signature_method.name, len(references))
        return signed_root, signature

    def _describe(self, element: etree._Element, references: List[Reference],
                  credentials: CredentialBundle) -> Signature:
        nsmap = {'ds': DS_NS}
        digests = tuple(
            base64.b64decode(v) for v in element.xpath('ds:SignedInfo/ds:Reference/ds:DigestValue/text()',
                                                       namespaces=nsmap)
        )
        value = element.findtext(ds('SignatureValue'), default='')
        return Signature(
            element=element,
            signed_info=SignedInfo(
                canonicalization_method=self.c14n_method.value,
                signature_method=self.signature_method.value,
                references=tuple(references),
                digest_values=digests,
            ),
            key_info=KeyInfo(subject_name=credentials.subject_name, certificate_der=credentials.certificate_der),
            signature_value=base64.b64decode(''.join(value.split())),
        )
