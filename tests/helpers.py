"""Shared test helpers: deterministic probes and hand-built pass reports."""

import asyncio
import ssl
from datetime import UTC, datetime, timedelta

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from realityprobe.models import PassReport, ProbeResult, ProbeStatus

TIMEOUT = None


def fake_probe(latencies: dict, delays: dict | None = None):
    """Build a probe that returns a fixed latency per domain.

    ``None`` simulates a timeout, an exception instance is raised as-is.
    ``delays`` (seconds) controls completion order without touching latencies.
    """
    delays = delays or {}
    calls: list[str] = []

    async def probe(domain: str, port: int, timeout: float) -> float:
        calls.append(domain)
        await asyncio.sleep(delays.get(domain, 0))
        outcome = latencies[domain]
        if outcome is None:
            raise TimeoutError
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    probe.calls = calls
    return probe


def make_report(latencies: list[tuple[str, float | None]], pass_id: str = "p1", attempt: int = 1) -> PassReport:
    results = []
    for position, (domain, latency) in enumerate(latencies):
        if latency is None:
            results.append(ProbeResult(domain=domain, position=position, status=ProbeStatus.TIMEOUT))
        else:
            results.append(ProbeResult(domain=domain, position=position, status=ProbeStatus.OK, latency_ms=latency))
    return PassReport(pass_id=pass_id, attempt=attempt, results=results)


def scripted(*answers: str):
    """Prompt callable returning *answers* in order and recording the prompts."""
    it = iter(answers)
    prompts: list[str] = []

    def prompt(text: str) -> str:
        prompts.append(text)
        return next(it)

    prompt.prompts = prompts
    return prompt


def tls_server_context(directory, hostname: str = "localhost") -> ssl.SSLContext:
    """Server-side SSL context with a throwaway self-signed certificate for *hostname*."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, hostname)])
    now = datetime.now(UTC)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(hostname)]), critical=False)
        .sign(key, hashes.SHA256())
    )

    cert_path = directory / "server.crt"
    key_path = directory / "server.key"
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )

    ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    ctx.load_cert_chain(cert_path, key_path)
    return ctx
