import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from .config import SignerConfig
from .engine import Signature, SignatureEngine
from .header import SecurityHeaderInjector
from .ids import mark_ids
from .keystore import CredentialStore, PEMKeyStore, PKCS12KeyStore
from .references import ReferenceBuilder
from .utils import dump_xml, load_xml

logger = logging.getLogger(__name__)


class Stage(Enum):
    PARSED = 'parsed'
    IDS_MARKED = 'ids-marked'
    CREDENTIAL_LOADED = 'credential-loaded'
    REFERENCES_BUILT = 'references-built'
    SECURITY_LOCATED = 'security-located'
    CERTIFICATE_EMBEDDED = 'certificate-embedded'
    SIGNATURE_INSERTED = 'signature-inserted'
    SERIALIZED = 'serialized'


@dataclass(frozen=True)
class SignedEnvelope:
    xml: str
    signature: Signature
    alias: str


class SoapSigner:
    """Signs SOAP envelopes with credentials taken from ``store``.

    The instance holds configuration only; every call parses its own
    document and loads its own credentials, so one signer can be shared
    between threads.
    """

    def __init__(self, store: CredentialStore, config: Optional[SignerConfig] = None):
        self.store = store
        self.config = config or SignerConfig()
        self.engine = SignatureEngine(self.config)
        self.reference_builder = ReferenceBuilder(self.engine.digest_method.value, self.engine.c14n_method.value)
        self.injector = SecurityHeaderInjector(self.config)

    def _stage(self, stage: Stage) -> None:
        logger.debug('stage=%s', stage.value)

    def sign_envelope(self, xml_input: Union[str, bytes], reference_uris: Iterable[str],
                      alias: str) -> SignedEnvelope:
        cfg = self.config
        root = load_xml(xml_input, cfg.remove_blank_text).getroot()
        self._stage(Stage.PARSED)

        ids = mark_ids(root, cfg.id_attribute)
        self._stage(Stage.IDS_MARKED)

        credentials = self.store.load(alias)
        self._stage(Stage.CREDENTIAL_LOADED)

        references = self.reference_builder.build(reference_uris, ids)
        self._stage(Stage.REFERENCES_BUILT)

        located = self.injector.locate(root)
        self._stage(Stage.SECURITY_LOCATED)

        self.injector.embed_certificate(located, credentials.certificate_der)
        self._stage(Stage.CERTIFICATE_EMBEDDED)

        placeholder = self.injector.insert_signature_slot(located)
        signed_root, signature = self.engine.sign(root, placeholder, references, credentials)
        self._stage(Stage.SIGNATURE_INSERTED)

        xml = dump_xml(signed_root, cfg.xml_declaration)
        self._stage(Stage.SERIALIZED)

        logger.info('Signed envelope with %r (%s), %d reference(s)',
                    alias, credentials.subject_name, len(references))
        return SignedEnvelope(xml=xml, signature=signature, alias=alias)

    def sign(self, xml_input: Union[str, bytes], reference_uris: Iterable[str], alias: str) -> str:
        return self.sign_envelope(xml_input, reference_uris, alias).xml


def sign_soap(xml_input: Union[str, bytes],
              keystore_path: Union[str, Path],
              alias: str,
              password: Optional[Union[str, bytes]],
              reference_uris: Iterable[str],
              config: Optional[SignerConfig] = None) -> str:
    """Sign ``xml_input`` with key ``alias`` from a PKCS#12 file or a PEM directory."""
    path = Path(keystore_path)
    store = PEMKeyStore(path, password) if path.is_dir() else PKCS12KeyStore(path, password)
    return SoapSigner(store, config).sign(xml_input, reference_uris, alias)
