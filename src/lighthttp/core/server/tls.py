"""Certificate material for HTTPS listeners.

Configured ``tls.certfile`` / ``tls.keyfile`` are used as-is. Otherwise a
self-signed localhost certificate is generated under ``<home>/tls/`` and
reused until it gets close to expiry.
"""
from __future__ import annotations

import ipaddress
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from lighthttp.core.config import TLSConfig
from lighthttp.core.utils.io import atomic_write, ensure_directory

from .models import TLSMaterial

logger = logging.getLogger(__name__)

CERT_FILENAME = "localhost.crt"
KEY_FILENAME = "localhost.key"


def _cert_is_fresh(cert_path: Path, *, renew_before_days: int) -> bool:
    try:
        cert = x509.load_pem_x509_certificate(cert_path.read_bytes())
    except (OSError, ValueError):
        return False
    deadline = datetime.now(timezone.utc) + timedelta(days=renew_before_days)
    return cert.not_valid_after_utc > deadline


def generate_self_signed(
    cert_path: Path,
    key_path: Path,
    *,
    common_name: str = "localhost",
    valid_days: int = 825,
) -> TLSMaterial:
    """Write a new RSA-2048 self-signed certificate and its key (mode 0600)."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    dns_names = ["localhost"] if common_name == "localhost" else [common_name, "localhost"]
    san = x509.SubjectAlternativeName(
        [x509.DNSName(n) for n in dns_names]
        + [
            x509.IPAddress(ipaddress.IPv4Address("127.0.0.1")),
            x509.IPAddress(ipaddress.IPv6Address("::1")),
        ]
    )
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=valid_days))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(san, critical=False)
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .sign(key, hashes.SHA256())
    )

    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    cert_pem = cert.public_bytes(serialization.Encoding.PEM).decode("ascii")

    atomic_write(key_path, lambda f: f.write(key_pem))
    os.chmod(key_path, 0o600)
    atomic_write(cert_path, lambda f: f.write(cert_pem))
    os.chmod(cert_path, 0o644)
    logger.info("Generated self-signed certificate for %s in %s", common_name, cert_path.parent)
    return TLSMaterial(certfile=cert_path, keyfile=key_path)


def ensure_tls_material(config: TLSConfig | None = None) -> TLSMaterial:
    """Return the certificate pair HTTPS listeners should use."""
    cfg = config or TLSConfig()
    if cfg.certfile is not None and cfg.keyfile is not None:
        return TLSMaterial(certfile=cfg.certfile, keyfile=cfg.keyfile)

    directory = ensure_directory(cfg.generated_dir)
    cert_path = directory / CERT_FILENAME
    key_path = directory / KEY_FILENAME
    if key_path.exists() and _cert_is_fresh(cert_path, renew_before_days=cfg.renew_before_days):
        return TLSMaterial(certfile=cert_path, keyfile=key_path)
    return generate_self_signed(
        cert_path,
        key_path,
        common_name=cfg.common_name,
        valid_days=cfg.valid_days,
    )


__all__ = ["CERT_FILENAME", "KEY_FILENAME", "ensure_tls_material", "generate_self_signed"]
