"""Operations that find, inspect, list, request, validate and destroy certificates."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from .acm import Certificate, InvalidNameError, get_certificates, validate_alias, validate_domain_name
from .output import humanize, titleize

DESCRIBE_REQUEST_LIMIT_RATE = 10.0


class CertificateNotFoundError(LookupError):
    """Raised when no certificate matches a domain name."""


class TooManyCertificatesError(LookupError):
    """Raised when more than one certificate matches a domain name."""


class _RateLimiter:
    """Spaces calls evenly so that no more than ``rate`` happen per second."""

    def __init__(self, rate: float) -> None:
        self._interval = 1.0 / rate if rate > 0 else 0.0
        self._next = time.monotonic()
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            now = time.monotonic()
            slot = max(self._next, now)
            self._next = slot + self._interval
        delay = slot - now
        if delay > 0:
            time.sleep(delay)


@dataclass
class CertificateOperation:
    """Shared behaviour of operations on a single certificate."""

    acm: Any
    output: Any

    def find_certificate(self, domain_name: str) -> Certificate:
        """Return the one certificate for ``domain_name`` with its full details.

        Raises CertificateNotFoundError or TooManyCertificatesError when there is
        not exactly one match; client errors propagate.
        """
        self.output.debug("Listing certificates [API=acm Action=ListCertificate]")
        certificates = get_certificates(self.acm.list_certificates(), domain_name)

        if not certificates:
            raise CertificateNotFoundError("certificate not found")
        if len(certificates) > 1:
            raise TooManyCertificatesError("too many certificates found")

        certificate = certificates[0]
        self.output.debug(
            "Describing certificate [API=acm Action=DescribeCertificate ARN=%s]", certificate.arn
        )
        self.acm.inflate_certificate(certificate)
        return certificate


@dataclass
class CertificateDestroyOperation(CertificateOperation):
    """Deletes the certificate for a domain name."""

    domain_name: str = ""

    def execute(self) -> None:
        try:
            certificate = self.find_certificate(self.domain_name)
        except CertificateNotFoundError as err:
            self.output.fatal(err, "Could not find certificate for %s", self.domain_name)
            return
        except TooManyCertificatesError as err:
            self.output.fatal(
                err,
                "Multiple certificates found for %s, for safety please destroy the one you "
                "intend via the AWS CLI",
                self.domain_name,
            )
            return
        except Exception as err:
            self.output.fatal(err, "Could not destroy certificate")
            return

        self.output.debug(
            "Deleting certificate [API=acm Action=DeleteCertificate ARN=%s]", certificate.arn
        )
        try:
            self.acm.delete_certificate(certificate.arn)
        except Exception as err:
            self.output.fatal(err, "Could not destroy certificate")
            return

        self.output.info("Destroyed certificate %s", self.domain_name)


@dataclass
class CertificateInfoOperation(CertificateOperation):
    """Shows extended information about the certificate for a domain name."""

    domain_name: str = ""

    def execute(self) -> None:
        try:
            certificate = self.find_certificate(self.domain_name)
        except CertificateNotFoundError:
            self.output.info("No certificate found for %s", self.domain_name)
            return
        except TooManyCertificatesError:
            self.output.fatal(None, "Multiple certificates found for %s", self.domain_name)
            return
        except Exception as err:
            self.output.fatal(err, "Could not find certificate for %s", self.domain_name)
            return

        self.display(certificate)

    def display(self, certificate: Certificate) -> None:
        self.output.key_value("Domain Name", certificate.domain_name, 0)
        self.output.key_value("Status", titleize(certificate.status), 0)
        self.output.key_value("Type", titleize(certificate.type), 0)
        self.output.key_value(
            "Subject Alternative Names", ", ".join(certificate.subject_alternative_names), 0
        )

        if certificate.validations:
            rows = [["DOMAIN NAME", "STATUS", "RECORD"]]
            rows.extend(
                [v.domain_name, titleize(v.status), v.resource_record_string()]
                for v in certificate.validations
            )
            self.output.line_break()
            self.output.table("Validations", rows)


@dataclass
class CertificateListOperation:
    """Lists every certificate with its details, ordered by domain name."""

    acm: Any
    output: Any
    describe_rate: float = DESCRIBE_REQUEST_LIMIT_RATE

    def execute(self) -> None:
        try:
            certificates = self.find()
        except Exception as err:
            self.output.fatal(err, "Could not list certificates")
            return

        if not certificates:
            self.output.info("No certificates found")
            return

        rows = [["CERTIFICATE", "TYPE", "STATUS", "SUBJECT ALTERNATIVE NAMES"]]
        for certificate in sorted(certificates, key=lambda c: c.domain_name):
            rows.append(
                [
                    certificate.domain_name,
                    titleize(certificate.type),
                    titleize(certificate.status),
                    ", ".join(certificate.subject_alternative_names),
                ]
            )

        self.output.table("", rows)

    def find(self) -> list[Certificate]:
        """List certificates and fetch each one's details concurrently, rate limited."""
        self.output.debug("Listing certificates [API=acm Action=ListCertificates]")
        certificates = list(self.acm.list_certificates())
        if not certificates:
            return certificates

        limiter = _RateLimiter(self.describe_rate)

        def inflate(certificate: Certificate) -> None:
            limiter.wait()
            self.output.debug(
                "Describing certificate [API=acm Action=DescribeCertificate ARN=%s]",
                certificate.arn,
            )
            self.acm.inflate_certificate(certificate)

        with ThreadPoolExecutor(max_workers=min(len(certificates), 16)) as pool:
            futures = [pool.submit(inflate, c) for c in certificates]
            for future in as_completed(futures):
                future.result()

        return certificates


@dataclass
class CertificateRequestOperation:
    """Requests a new certificate for a domain name and optional aliases."""

    acm: Any
    output: Any
    domain_name: str = ""
    aliases: list[str] = field(default_factory=list)

    def execute(self) -> None:
        errors = self.validate()
        if errors:
            self.output.fatals(errors, "Invalid certificate request parameters")
            return

        self.output.debug("Requesting certificate [API=acm Action=RequestCertificate]")
        try:
            arn = self.acm.request_certificate(self.domain_name, self.aliases)
        except Exception as err:
            self.output.fatal(err, "Could not request certificate")
            return
        self.output.debug("Requested certificate [ARN=%s]", arn)

        self.output.info("Requested certificate for %s", self.domain_name)
        self.output.line_break()
        self.output.say(
            "You must validate ownership of the domain name for the certificate to be issued.", 0
        )
        self.output.line_break()
        self.output.say(
            "If your domain is hosted using Amazon Route 53, this can be done automatically "
            "by running:",
            0,
        )
        self.output.say("fargate certificate validate %s", 1, self.domain_name)
        self.output.line_break()
        self.output.say("If not, you must manually create the DNS records returned by running:", 0)
        self.output.say("fargate certificate info %s", 1, self.domain_name)

    def validate(self) -> list[InvalidNameError]:
        """Return the problems with the domain name and aliases, if any."""
        errors: list[InvalidNameError] = []
        try:
            validate_domain_name(self.domain_name)
        except InvalidNameError as err:
            errors.append(err)
        for alias in self.aliases:
            try:
                validate_alias(alias)
            except InvalidNameError as err:
                errors.append(err)
        return errors


@dataclass
class CertificateValidateOperation(CertificateOperation):
    """Creates DNS validation records in Route 53 for a pending certificate.

    ``route53`` offers ``list_hosted_zones()``, whose result has
    ``find_super_domain_of(name)`` returning a zone with an ``id`` or None, and
    ``create_resource_record(hosted_zone_id=, record_type=, name=, value=)``.
    """

    domain_name: str = ""
    route53: Any = None

    def execute(self) -> None:
        try:
            certificate = self.find_certificate(self.domain_name)
        except Exception as err:
            self.output.fatal(err, "Could not validate certificate")
            return

        if not certificate.is_pending_validation():
            self.output.fatal(
                ValueError(
                    f"certificate {self.domain_name} is in state {humanize(certificate.status)}"
                ),
                "Could not validate certificate",
            )
            return

        self.output.debug("Listing hosted zones [API=route53 Action=ListHostedZones]")
        try:
            hosted_zones = self.route53.list_hosted_zones()
        except Exception as err:
            self.output.fatal(err, "Could not validate certificate")
            return

        for validation in certificate.validations:
            if validation.is_pending_validation():
                zone = hosted_zones.find_super_domain_of(validation.domain_name)
                if zone is None:
                    self.output.warn(
                        "[%s] could not find zone in Amazon Route 53", validation.domain_name
                    )
                    continue
                self.output.debug(
                    "Creating resource record [API=route53 Action=ChangeResourceRecordSets "
                    "HostedZone=%s]",
                    zone.id,
                )
                record = validation.resource_record
                try:
                    change_id = self.route53.create_resource_record(
                        hosted_zone_id=zone.id,
                        record_type=record.type,
                        name=record.name,
                        value=record.value,
                    )
                except Exception as err:
                    self.output.fatal(err, "Could not validate certificate")
                    return
                self.output.debug("Created resource record [ChangeID=%s]", change_id)
                self.output.info("[%s] created validation record", validation.domain_name)
            elif validation.is_success():
                self.output.info("[%s] already validated", validation.domain_name)
            elif validation.is_failed():
                self.output.fatal(None, "[%s] failed validation", validation.domain_name)
                return
            else:
                self.output.warn(
                    "[%s] unexpected status: %s",
                    validation.domain_name,
                    humanize(validation.status),
                )