import datetime
from types import SimpleNamespace

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID
from lxml import etree
from signxml import XMLVerifier

from soap_signer import PKCS12KeyStore

PASSWORD = 'secret'
ALIAS = 'mykey'

NS = {
    'soapenv': 'http://schemas.xmlsoap.org/soap/envelope/',
    'wsse': 'http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd',
    'wsu': 'http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd',
    'ds': 'http://www.w3.org/2000/09/xmldsig#',
    'ex': 'urn:example:ping',
}

ENVELOPE = """<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/"
                  xmlns:wsse="http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"
                  xmlns:ex="urn:example:ping">
  <soapenv:Header>
    <ex:Trace>trace-42</ex:Trace>
    <wsse:Security soapenv:mustUnderstand="1">
      <wsse:BinarySecurityToken
          EncodingType="http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-soap-message-security-1.0#Base64Binary"
          ValueType="http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-x509-token-profile-1.0#X509v3"/>
      <ex:Nonce>c2VjcmV0</ex:Nonce>
    </wsse:Security>
  </soapenv:Header>
  <soapenv:Body Id="body1">
    <ex:Ping Id="ping1">
      <ex:Message>hello</ex:Message>
    </ex:Ping>
  </soapenv:Body>
</soapenv:Envelope>
"""


def make_identity(common_name='Test Signer', key=None, issuer=None):
    """Return ``(key, cert)``; the certificate is self-signed unless ``issuer`` is a ``(key, cert)`` pair."""
    if key is None:
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, 'NL'),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, 'Example'),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])
    issuer_key, issuer_cert = issuer or (key, None)
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(issuer_cert.subject if issuer_cert else name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(issuer_key, hashes.SHA256())
    )
    return key, cert


@pytest.fixture(scope='session')
def identity():
    key, cert = make_identity()
    return SimpleNamespace(
        key=key,
        cert=cert,
        cert_pem=cert.public_bytes(serialization.Encoding.PEM),
        cert_der=cert.public_bytes(serialization.Encoding.DER),
    )


@pytest.fixture(scope='session')
def p12_path(identity, tmp_path_factory):
    path = tmp_path_factory.mktemp('store') / 'signer.p12'
    path.write_bytes(pkcs12.serialize_key_and_certificates(
        name=ALIAS.encode(),
        key=identity.key,
        cert=identity.cert,
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(PASSWORD.encode()),
    ))
    return path


@pytest.fixture
def store(p12_path):
    return PKCS12KeyStore(p12_path, PASSWORD)


def parse(xml):
    return etree.fromstring(xml.encode('utf-8'))


def verify(xml, cert_pem, **kwargs):
    return XMLVerifier().verify(xml.encode('utf-8'), x509_cert=cert_pem.decode('ascii'), **kwargs)
