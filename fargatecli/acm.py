"""Certificates held in AWS Certificate Manager and a client for managing them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

CERTIFICATE_STATUS_ISSUED = "ISSUED"
CERTIFICATE_STATUS_PENDING_VALIDATION = "PENDING_VALIDATION"

DOMAIN_STATUS_FAILED = "FAILED"
DOMAIN_STATUS_PENDING_VALIDATION = "PENDING_VALIDATION"
DOMAIN_STATUS_SUCCESS = "SUCCESS"

VALIDATION_METHOD_DNS = "DNS"


class InvalidNameError(ValueError):
    """Raised when a domain name or alias is not acceptable for a certificate."""


@dataclass
class CertificateResourceRecord:
    """The DNS record used to validate a certificate."""

    type: str = ""
    name: str = ""
    value: str = ""


@dataclass
class CertificateValidation:
    """Details about how to validate one domain name of a certificate."""

    status: str = ""
    domain_name: str = ""
    resource_record: CertificateResourceRecord = field(default_factory=CertificateResourceRecord)

    def is_failed(self) -> bool:
        return self.status == DOMAIN_STATUS_FAILED

    def is_pending_validation(self) -> bool:
        return self.status == DOMAIN_STATUS_PENDING_VALIDATION

    def is_success(self) -> bool:
        return self.status == DOMAIN_STATUS_SUCCESS

    def resource_record_string(self) -> str:
        """Return the resource record for display, or an empty string if there is none."""
        record = self.resource_record
        if not record.type:
            return ""
        return f"{record.type} {record.name} -> {record.value}"


@dataclass
class Certificate:
    """A certificate hosted in AWS Certificate Manager."""

    arn: str = ""
    status: str = ""
    subject_alternative_names: list[str] = field(default_factory=list)
    domain_name: str = ""
    validations: list[CertificateValidation] = field(default_factory=list)
    type: str = ""

    def add_validation(self, validation: CertificateValidation) -> None:
        self.validations.append(validation)

    def is_issued(self) -> bool:
        return self.status == CERTIFICATE_STATUS_ISSUED

    def is_pending_validation(self) -> bool:
        return self.status == CERTIFICATE_STATUS_PENDING_VALIDATION


def get_certificates(certificates: Iterable[Certificate], domain_name: str) -> list[Certificate]:
    """Return the certificates whose domain name equals ``domain_name``."""
    return [c for c in certificates if c.domain_name == domain_name]


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def validate_alias(alias: str) -> None:
    """Check an alias' length and number of octets, raising InvalidNameError if invalid."""
    if not 1 <= _byte_length(alias) <= 253:
        raise InvalidNameError(f"{alias}: An alias must be between 1 and 253 characters in length")
    dots = alias.count(".")
    if dots > 252:
        raise InvalidNameError(f"{alias}: An alias cannot exceed 253 octets")
    if dots == 0:
        raise InvalidNameError(f"{alias}: An alias requires at least 2 octets")


def validate_domain_name(domain_name: str) -> None:
    """Check a domain name's length and number of octets, raising InvalidNameError if invalid."""
    if not 1 <= _byte_length(domain_name) <= 253:
        raise InvalidNameError(
            f"{domain_name}: The domain name must be between 1 and 253 characters in length"
        )
    dots = domain_name.count(".")
    if dots > 62:
        raise InvalidNameError(f"{domain_name}: The domain name cannot exceed 63 octets")
    if dots == 0:
        raise InvalidNameError(f"{domain_name}: The domain name requires at least 2 octets")


class AcmClient:
    """Access to AWS Certificate Manager through an SDK client.

    ``sdk`` is any object offering the Certificate Manager API calls with keyword
    arguments and dictionary responses (for example a boto3 ``acm`` client).
    Errors raised by the SDK propagate to the caller.
    """

    def __init__(self, sdk: Any) -> None:
        self._sdk = sdk

    def delete_certificate(self, arn: str) -> None:
        """Delete the certificate identified by ``arn``."""
        self._sdk.delete_certificate(CertificateArn=arn)

    def import_certificate(
        self, certificate: bytes, private_key: bytes, certificate_chain: bytes = b""
    ) -> str:
        """Import a certificate with its private key and optional chain; return its ARN."""
        request: dict[str, Any] = {"Certificate": certificate, "PrivateKey": private_key}
        if certificate_chain:
            request["CertificateChain"] = certificate_chain
        response = self._sdk.import_certificate(**request)
        return response.get("CertificateArn") or ""

    def inflate_certificate(self, certificate: Certificate) -> None:
        """Fetch the details of a partially known certificate and set them on it."""
        response = self._sdk.describe_certificate(CertificateArn=certificate.arn)
        detail = response.get("Certificate") or {}

        certificate.status = detail.get("Status") or ""
        certificate.subject_alternative_names = list(detail.get("SubjectAlternativeNames") or [])
        certificate.type = detail.get("Type") or ""

        for option in detail.get("DomainValidationOptions") or []:
            validation = CertificateValidation(
                status=option.get("ValidationStatus") or "",
                domain_name=option.get("DomainName") or "",
            )
            record = option.get("ResourceRecord")
            if record is not None:
                validation.resource_record = CertificateResourceRecord(
                    type=record.get("Type") or "",
                    name=record.get("Name") or "",
                    value=record.get("Value") or "",
                )
            certificate.add_validation(validation)

    def list_certificates(self) -> list[Certificate]:
        """Return all certificates of the caller's account, following every page."""
        certificates: list[Certificate] = []
        request: dict[str, Any] = {}
        while True:
            response = self._sdk.list_certificates(**request)
            for summary in response.get("CertificateSummaryList") or []:
                certificates.append(
                    Certificate(
                        arn=summary.get("CertificateArn") or "",
                        domain_name=summary.get("DomainName") or "",
                    )
                )
            token = response.get("NextToken")
            if not token:
                return certificates
            request = {"NextToken": token}

    def request_certificate(self, domain_name: str, aliases: Iterable[str] = ()) -> str:
        """Request a new DNS-validated certificate and return its ARN."""
        request: dict[str, Any] = {
            "DomainName": domain_name,
            "ValidationMethod": VALIDATION_METHOD_DNS,
        }
        aliases = list(aliases)
        if aliases:
            request["SubjectAlternativeNames"] = aliases
        response = self._sdk.request_certificate(**request)
        return response.get("CertificateArn") or ""

    def list_certificate_domain_names(self, certificate_arns: Iterable[str]) -> list[str]:
        """Return the domain names of the certificates with the given ARNs.

        Listing failures are ignored and yield no domain names.
        """
        arns = list(certificate_arns)
        try:
            certificates = self.list_certificates()
        except Exception:
            certificates = []
        return [c.domain_name for c in certificates for arn in arns if c.arn == arn]