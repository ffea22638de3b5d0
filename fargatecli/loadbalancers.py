"""Operations that find, alias, create and list load balancers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from .certificates import (
    DESCRIBE_REQUEST_LIMIT_RATE,
    CertificateNotFoundError,
    CertificateOperation,
    TooManyCertificatesError,
    _RateLimiter,
)
from .output import humanize, titleize
from .port import Port, PortError, inflate_ports, validate_port

DEFAULT_TARGET_GROUP_FORMAT = "%s-default"

TYPE_APPLICATION = "application"
TYPE_NETWORK = "network"


class LoadBalancerNotFoundError(LookupError):
    """Raised when no load balancer matches a name."""


class TooManyLoadBalancersError(LookupError):
    """Raised when more than one load balancer matches a name."""


def _format_listeners(listeners: Any) -> str:
    return ", ".join(str(listener) for listener in listeners or [])


@dataclass
class LBOperation:
    """Shared behaviour of operations on a single load balancer.

    ``elbv2`` offers ``describe_load_balancers_by_name(names)`` returning load
    balancers with ``name``, ``dns_name`` and ``hosted_zone_id`` attributes.
    """

    elbv2: Any = None
    output: Any = None

    def find_lb(self, lb_name: str) -> Any:
        """Return the one load balancer named ``lb_name``.

        Raises LoadBalancerNotFoundError or TooManyLoadBalancersError when there is
        not exactly one match; client errors propagate.
        """
        self.output.debug("Finding load balancer[API=elb2 Action=DescribeLoadBalancers]")
        load_balancers = list(self.elbv2.describe_load_balancers_by_name([lb_name]))

        if not load_balancers:
            raise LoadBalancerNotFoundError("load balancer not found")
        if len(load_balancers) > 1:
            raise TooManyLoadBalancersError("too many load balancers found")

        return load_balancers[0]


@dataclass
class LBAliasOperation(LBOperation):
    """Creates a Route 53 alias record pointing a domain at a load balancer.

    ``route53`` offers ``list_hosted_zones()``, whose result has
    ``find_super_domain_of(name)`` returning a zone with an ``id`` or None, and
    ``create_alias(hosted_zone_id=, record_type=, name=, target=, target_hosted_zone_id=)``.
    """

    alias_domain: str = ""
    lb_name: str = ""
    route53: Any = None

    def execute(self) -> None:
        try:
            load_balancer = self.find_lb(self.lb_name)
        except Exception as err:
            self.output.fatal(err, "Could not alias load balancer")
            return

        try:
            hosted_zones = self.route53.list_hosted_zones()
        except Exception as err:
            self.output.fatal(err, "Could not alias load balancer")
            return

        hosted_zone = hosted_zones.find_super_domain_of(self.alias_domain)
        if hosted_zone is None:
            self.output.warn("Could not find hosted zone for %s", self.alias_domain)
            self.output.say(
                "If you're hosting this domain elsewhere or in another AWS account, please "
                "manually create the alias record:",
                1,
            )
            self.output.say("%s -> %s", 1, self.alias_domain, load_balancer.dns_name)
            return

        self.output.debug("Creating alias record [API=route53 Action=CreateResourceRecordSet]")
        try:
            change_id = self.route53.create_alias(
                hosted_zone_id=hosted_zone.id,
                record_type="A",
                name=self.alias_domain,
                target=load_balancer.dns_name,
                target_hosted_zone_id=load_balancer.hosted_zone_id,
            )
        except Exception as err:
            self.output.fatal(err, "Could not alias load balancer")
            return

        self.output.debug("Created alias record [ChangeID=%s]", change_id)
        self.output.info(
            "Created alias record (%s -> %s)", self.alias_domain, load_balancer.dns_name
        )


@dataclass
class LBCreateOperation:
    """Creates a load balancer with a default target group and one listener per port.

    ``elbv2`` offers ``create_load_balancer``, ``create_target_group`` and
    ``create_listener``, each taking keyword arguments and returning an ARN.
    """

    elbv2: Any = None
    output: Any = None
    acm: Any = None
    lb_name: str = ""
    lb_type: str = ""
    lb_scheme: str = ""
    ports: list[Port] = field(default_factory=list)
    certificate_arns: list[str] = field(default_factory=list)
    subnet_ids: list[str] = field(default_factory=list)
    security_group_ids: list[str] = field(default_factory=list)
    vpc_id: str = ""

    def set_ports(self, input_ports: list[str]) -> list[PortError]:
        """Parse and check the port expressions; set the ports if they are all valid."""
        if not input_ports:
            return [PortError("at least one --port must be specified")]

        ports, errors = inflate_ports(input_ports)
        if errors:
            return errors

        errors = [err for port in ports for err in validate_port(port)]
        protocols = {port.protocol for port in ports}

        if "TCP" in protocols and protocols & {"HTTP", "HTTPS"}:
            return errors + [
                PortError("load balancers do not support commingled TCP and HTTP/HTTPS ports")
            ]

        if not errors:
            self.ports = ports
        return errors

    def infer_type(self) -> None:
        """Set the load balancer type from the first port's protocol, if there is one."""
        if not self.ports:
            return
        protocol = self.ports[0].protocol
        if protocol in ("HTTP", "HTTPS"):
            self.lb_type = TYPE_APPLICATION
        elif protocol == "TCP":
            self.lb_type = TYPE_NETWORK
        else:
            raise ValueError("could not infer type from port settings")

    def set_certificate_arns(self, domain_names: list[str]) -> list[ValueError]:
        """Look up the issued certificate for each domain name; set their ARNs if all found."""
        finder = CertificateOperation(acm=self.acm, output=self.output)
        arns: list[str] = []
        errors: list[ValueError] = []

        for domain_name in domain_names:
            try:
                certificate = finder.find_certificate(domain_name)
            except CertificateNotFoundError:
                errors.append(ValueError(f"no certificate found for {domain_name}"))
                continue
            except TooManyCertificatesError:
                errors.append(ValueError(f"multiple certificates found for {domain_name}"))
                continue
            except Exception as err:
                errors.append(ValueError(f"could not find certificate ARN: {err}"))
                continue

            if certificate.is_issued():
                arns.append(certificate.arn)
            else:
                errors.append(
                    ValueError(
                        f"certificate {domain_name} is in state {humanize(certificate.status)}"
                    )
                )

        if not errors:
            self.certificate_arns = arns
        return errors

    def validate(self) -> list[ValueError]:
        """Return the problems with the operation's settings, if any."""
        errors: list[ValueError] = []
        if not self.lb_name:
            errors.append(ValueError("--name is required"))
        if self.lb_type == TYPE_APPLICATION and len(self.subnet_ids) < 2:
            errors.append(
                ValueError(
                    "HTTP/HTTPS load balancers require two subnet IDs from unique "
                    "Availability Zones"
                )
            )
        if self.lb_type == TYPE_NETWORK and self.security_group_ids:
            errors.append(
                ValueError("security groups can only be specified for HTTP/HTTPS load balancers")
            )
        return errors

    def execute(self) -> None:
        default_target_group_name = DEFAULT_TARGET_GROUP_FORMAT % self.lb_name

        try:
            load_balancer_arn = self.elbv2.create_load_balancer(
                name=self.lb_name,
                security_group_ids=self.security_group_ids,
                subnet_ids=self.subnet_ids,
                type=self.lb_type,
                scheme=self.lb_scheme,
            )
        except Exception as err:
            self.output.fatal(err, "Could not create load balancer")
            return

        self.output.debug("Creating target group [Name=%s]", default_target_group_name)
        try:
            target_group_arn = self.elbv2.create_target_group(
                name=default_target_group_name,
                port=self.ports[0].number,
                protocol=self.ports[0].protocol,
                vpc_id=self.vpc_id,
            )
        except Exception as err:
            self.output.fatal(err, "Could not create default target group")
            return
        self.output.debug("Created target group [ARN=%s]", target_group_arn)

        for port in self.ports:
            self.output.debug(
                "Creating listener [Port=%d Protocol=%s]", port.number, port.protocol
            )
            try:
                listener_arn = self.elbv2.create_listener(
                    certificate_arns=self.certificate_arns,
                    default_target_group_arn=target_group_arn,
                    load_balancer_arn=load_balancer_arn,
                    port=port.number,
                    protocol=port.protocol,
                )
            except Exception as err:
                self.output.fatal(err, "Could not create listener")
                return
            self.output.debug("Created listener [ARN=%s]", listener_arn)

        self.output.info("Created load balancer %s", self.lb_name)


@dataclass
class LBListOperation:
    """Lists every load balancer with its listeners, ordered by name.

    ``elbv2`` offers ``describe_load_balancers()`` and ``describe_listeners(arn)``;
    each load balancer's ``listeners`` attribute is set from the latter.
    """

    elbv2: Any = None
    output: Any = None
    describe_rate: float = DESCRIBE_REQUEST_LIMIT_RATE

    def execute(self) -> None:
        try:
            load_balancers = self.find()
        except Exception as err:
            self.output.fatal(err, "Could not list load balancers")
            return

        if not load_balancers:
            self.output.info("No load balancers found")
            return

        rows = [["NAME", "TYPE", "STATUS", "DNS NAME", "PORTS"]]
        for lb in sorted(load_balancers, key=lambda lb: lb.name):
            rows.append(
                [
                    lb.name,
                    titleize(lb.type),
                    titleize(lb.status),
                    lb.dns_name,
                    _format_listeners(lb.listeners),
                ]
            )

        self.output.table("", rows)

    def find(self) -> list[Any]:
        """Describe load balancers and fetch each one's listeners concurrently, rate limited."""
        self.output.debug("Describing Load Balancers [API=elbv2 Action=DescribeLoadBalancers]")
        load_balancers = list(self.elbv2.describe_load_balancers())
        if not load_balancers:
            return load_balancers

        limiter = _RateLimiter(self.describe_rate)

        def describe(load_balancer: Any) -> None:
            limiter.wait()
            self.output.debug(
                "Describing Listeners [API=elbv2 Action=DescribeListeners LoadBalancerArn=%s]",
                load_balancer.arn,
            )
            load_balancer.listeners = self.elbv2.describe_listeners(load_balancer.arn)

        with ThreadPoolExecutor(max_workers=min(len(load_balancers), 16)) as pool:
            futures = [pool.submit(describe, lb) for lb in load_balancers]
            for future in as_completed(futures):
                future.result()

        return load_balancers