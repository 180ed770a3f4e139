# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import ipaddress
import socket
import ssl
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from mtlsprobe.config import ProbeSettings
from mtlsprobe.diagnostics import DiagnosticLog

KEYSTORE_PASSWORD = "password"


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _issue(
    subject_key,
    common_name: str,
    *,
    issuer_key=None,
    issuer_cert: x509.Certificate | None = None,
    ca: bool = False,
    dns_names=(),
    ip_addresses=(),
    usage=None,
) -> x509.Certificate:
    now = datetime.now(timezone.utc)
    issuer_key = issuer_key or subject_key
    issuer_name = issuer_cert.subject if issuer_cert is not None else _name(common_name)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name))
        .issuer_name(issuer_name)
        .public_key(subject_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=2))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(subject_key.public_key()), critical=False)
    )
    if issuer_cert is not None:
        builder = builder.add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
            critical=False,
        )
    if ca:
        builder = builder.add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
    else:
        builder = builder.add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=True,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
    if usage is not None:
        builder = builder.add_extension(x509.ExtendedKeyUsage([usage]), critical=False)
    san = [x509.DNSName(name) for name in dns_names]
    san += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in ip_addresses]
    if san:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
    return builder.sign(issuer_key, hashes.SHA256())


def _pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def _key_pem(key) -> bytes:
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


@dataclass
class Pki:
    directory: Path
    ca_key: object
    ca_cert: x509.Certificate
    client_key: object
    client_cert: x509.Certificate

    @property
    def ca_path(self) -> Path:
        return self.directory / "ca.pem"

    @property
    def client_p12_path(self) -> Path:
        return self.directory / "client.p12"

    @property
    def client_pem_path(self) -> Path:
        return self.directory / "client.pem"

    def server_files(self, name: str) -> tuple[Path, Path]:
        return self.directory / f"{name}.pem", self.directory / f"{name}.key"

    def issue_client(self, common_name: str, key=None):
        key = key or ec.generate_private_key(ec.SECP256R1())
        cert = _issue(
            key,
            common_name,
            issuer_key=self.ca_key,
            issuer_cert=self.ca_cert,
            usage=ExtendedKeyUsageOID.CLIENT_AUTH,
        )
        return key, cert


@pytest.fixture(scope="session")
def pki(tmp_path_factory) -> Pki:
    directory = tmp_path_factory.mktemp("pki")
    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_cert = _issue(ca_key, "mtlsprobe test CA", ca=True)
    (directory / "ca.pem").write_bytes(_pem(ca_cert))

    servers = {
        "server": (["localhost"], ["127.0.0.1"]),
        "mismatch": (["other.invalid"], []),
    }
    for name, (dns_names, ips) in servers.items():
        key = ec.generate_private_key(ec.SECP256R1())
        cert = _issue(
            key,
            dns_names[0],
            issuer_key=ca_key,
            issuer_cert=ca_cert,
            dns_names=dns_names,
            ip_addresses=ips,
            usage=ExtendedKeyUsageOID.SERVER_AUTH,
        )
        (directory / f"{name}.pem").write_bytes(_pem(cert))
        (directory / f"{name}.key").write_bytes(_key_pem(key))

    client_key = ec.generate_private_key(ec.SECP256R1())
    client_cert = _issue(
        client_key,
        "probe-client",
        issuer_key=ca_key,
        issuer_cert=ca_cert,
        usage=ExtendedKeyUsageOID.CLIENT_AUTH,
    )
    (directory / "client.p12").write_bytes(
        pkcs12.serialize_key_and_certificates(
            b"probe-client",
            client_key,
            client_cert,
            [ca_cert],
            serialization.BestAvailableEncryption(KEYSTORE_PASSWORD.encode()),
        )
    )
    (directory / "client.pem").write_bytes(_pem(client_cert) + _key_pem(client_key))
    return Pki(directory, ca_key, ca_cert, client_key, client_cert)


@dataclass
class MtlsServer:
    port: int
    sni_names: list = field(default_factory=list)
    client_subjects: list = field(default_factory=list)

    def url(self, host: str = "localhost", path: str = "/") -> str:
        return f"https://{host}:{self.port}{path}"


def _make_handler(server_state: MtlsServer):
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):  # noqa: N802
            peer = self.connection.getpeercert()
            if peer:
                server_state.client_subjects.append(peer.get("subject"))
            body = b"ok"
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Content-Length", str(len(body)))
            self.send_header("Connection", "close")
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):  # noqa: A002
            return None

    return Handler


@pytest.fixture
def mtls_server_factory(pki):
    started = []

    def start(cert_name: str = "server") -> MtlsServer:
        cert_path, key_path = pki.server_files(cert_name)
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
        context.load_verify_locations(cafile=str(pki.ca_path))
        context.verify_mode = ssl.CERT_REQUIRED

        state = MtlsServer(port=0)

        def record_sni(ssl_socket, server_name, ssl_context):  # noqa: ARG001
            state.sni_names.append(server_name)

        context.sni_callback = record_sni

        httpd = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(state))
        httpd.socket = context.wrap_socket(httpd.socket, server_side=True)
        state.port = httpd.server_address[1]
        thread = threading.Thread(target=httpd.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)
        thread.start()
        started.append((httpd, thread))
        return state

    yield start

    for httpd, thread in started:
        httpd.shutdown()
        httpd.server_close()
        thread.join(timeout=5)


@pytest.fixture
def mtls_server(mtls_server_factory) -> MtlsServer:
    return mtls_server_factory("server")


@pytest.fixture
def closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def settings() -> ProbeSettings:
    return ProbeSettings(timeout=10.0, trust_env=False, log_lock_timeout=2.0)


@pytest.fixture
def diagnostic_log() -> DiagnosticLog:
    return DiagnosticLog(lock_timeout=2.0)
