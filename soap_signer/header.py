"""WS-Security header: certificate token and signature slot."""
import base64
import logging
from dataclasses import dataclass
from typing import Optional

from lxml import etree

from .config import SignerConfig
from .engine import DS_NS, ds
from .errors import MalformedEnvelope

logger = logging.getLogger(__name__)


def _tag(namespace: Optional[str], name: str) -> str:
    return f'{{{namespace if namespace is not None else "*"}}}{name}'


def _first(parent: etree._Element, tag: str) -> Optional[etree._Element]:
    return next(parent.iterdescendants(tag), None)


@dataclass
class SecurityHeader:
    header: etree._Element
    security: etree._Element
    token: etree._Element


class SecurityHeaderInjector:
    def __init__(self, config: SignerConfig):
        self.config = config

    def locate(self, root: etree._Element) -> SecurityHeader:
        cfg = self.config
        header = _first(root, _tag(cfg.soap_namespace, cfg.header_tag))
        if header is None:
            raise MalformedEnvelope(cfg.header_tag, etree.QName(root).localname)
        security = _first(header, _tag(cfg.security_namespace, cfg.security_tag))
        if security is None:
            raise MalformedEnvelope(cfg.security_tag, cfg.header_tag)
        token = _first(security, _tag(cfg.security_namespace, cfg.token_tag))
        if token is None:
            raise MalformedEnvelope(cfg.token_tag, cfg.security_tag)
        return SecurityHeader(header, security, token)

    def embed_certificate(self, located: SecurityHeader, certificate_der: bytes) -> None:
        located.token.text = base64.b64encode(certificate_der).decode('ascii')
        logger.debug('Embedded %d byte certificate in %s', len(certificate_der), self.config.token_tag)

    def insert_signature_slot(self, located: SecurityHeader) -> etree._Element:
        """Append an empty ``Signature Id="placeholder"`` as last child of Security."""
        root = located.security.getroottree().getroot()
        for existing in root.iter(ds('Signature')):
            if existing.get('Id') == 'placeholder':
                raise MalformedEnvelope(
                    'Signature', self.config.security_tag, reason='Envelope already contains a placeholder Signature')
        return etree.SubElement(
            located.security, ds('Signature'), Id='placeholder', nsmap={self.config.signature_prefix: DS_NS}
        )
