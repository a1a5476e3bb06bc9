import base64

import pytest
from lxml import etree

from soap_signer import MalformedEnvelope, SignerConfig
from soap_signer.config import SOAP12_NS
from soap_signer.header import SecurityHeaderInjector

from conftest import ENVELOPE, NS


def root_of(xml):
    return etree.fromstring(xml.encode())


def test_locate_and_embed(identity):
    root = root_of(ENVELOPE)
    injector = SecurityHeaderInjector(SignerConfig())
    located = injector.locate(root)
    assert etree.QName(located.security).localname == 'Security'
    injector.embed_certificate(located, identity.cert_der)
    assert base64.b64decode(root.find('.//wsse:BinarySecurityToken', NS).text) == identity.cert_der


def test_signature_slot_is_appended_last():
    root = root_of(ENVELOPE)
    injector = SecurityHeaderInjector(SignerConfig())
    located = injector.locate(root)
    slot = injector.insert_signature_slot(located)
    assert slot.get('Id') == 'placeholder'
    assert slot.prefix == 'ds'
    assert [etree.QName(c).localname for c in located.security] == ['BinarySecurityToken', 'Nonce', 'Signature']


def test_existing_placeholder_is_rejected():
    root = root_of(ENVELOPE)
    injector = SecurityHeaderInjector(SignerConfig())
    located = injector.locate(root)
    injector.insert_signature_slot(located)
    with pytest.raises(MalformedEnvelope):
        injector.insert_signature_slot(located)


def test_first_match_in_document_order():
    xml = ENVELOPE.replace('<ex:Nonce>', '<wsse:BinarySecurityToken>second</wsse:BinarySecurityToken><ex:Nonce>')
    located = SecurityHeaderInjector(SignerConfig()).locate(root_of(xml))
    assert located.token.text is None


def test_wrong_soap_namespace():
    with pytest.raises(MalformedEnvelope) as excinfo:
        SecurityHeaderInjector(SignerConfig(soap_namespace=SOAP12_NS)).locate(root_of(ENVELOPE))
    assert excinfo.value.element == 'Header'


def test_any_namespace():
    xml = ENVELOPE.replace(NS['soapenv'], SOAP12_NS)
    located = SecurityHeaderInjector(SignerConfig(soap_namespace=None)).locate(root_of(xml))
    assert etree.QName(located.header).namespace == SOAP12_NS
