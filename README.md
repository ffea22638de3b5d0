# fargatecli

Building blocks for managing containers on AWS Fargate: TLS certificates in
AWS Certificate Manager, load balancers and their listeners, CloudWatch Logs
events, and the validation rules that go with them (port expressions, domain
names, CPU and memory combinations, regions and environment variables).

Every operation talks to AWS through a client object you hand it. `AcmClient`
and `CloudWatchLogs` wrap any object offering the service calls with keyword
arguments and dictionary responses (a boto3 `acm` or `logs` client fits). The
load balancer and Route 53 operations take duck-typed objects whose expected
methods are described in each class's docstring. The same code therefore runs
against real services or against in-memory stand-ins in your own tests.

Messages for the user go through an output object. The package ships
`ConsoleOutput`, which writes plain, coloured or emoji-prefixed lines and
tab-aligned tables to standard output (or to the text stream in its `stream`
field). Its `fatal` and `fatals` exit the process with status 1 unless its
`test` field is set.

## Modules

- `fargatecli.acm` – `Certificate`, `CertificateValidation`,
  `CertificateResourceRecord`, `AcmClient` (delete, import, inflate, list and
  request certificates), `get_certificates`, `validate_domain_name`,
  `validate_alias` and `InvalidNameError`.
- `fargatecli.output` – `ConsoleOutput` (`debug`, `info`, `warn`, `say`,
  `key_value`, `table`, `line_break`, `fatal`, `fatals`), plus `titleize` and
  `humanize`, which turn `PENDING_VALIDATION` into `Pending Validation` or
  `pending validation`.
- `fargatecli.port` – `Port`, `inflate_port`, `inflate_ports`, `validate_port`
  and `PortError`.
- `fargatecli.certificates` – `CertificateOperation.find_certificate` and the
  operations `CertificateDestroyOperation`, `CertificateInfoOperation`,
  `CertificateListOperation`, `CertificateRequestOperation` and
  `CertificateValidateOperation` (creates DNS validation records in Route 53),
  with `CertificateNotFoundError` and `TooManyCertificatesError`.
- `fargatecli.loadbalancers` – `LBOperation.find_lb` and the operations
  `LBAliasOperation`, `LBCreateOperation` and `LBListOperation`, with
  `LoadBalancerNotFoundError` and `TooManyLoadBalancersError`.
- `fargatecli.logs` – `CloudWatchLogs` (`create_log_group`, `get_logs`),
  `GetLogsInput`, `LogLine`, `GetLogsOperation` and `parse_duration`.
  `GetLogsOperation.run` passes each new event to a handler called with the
  stream name, the message and a colour number; when following it polls every
  second without end and never repeats an event.
- `fargatecli.settings` – `validate_cpu_and_memory`, `validate_region`,
  `resolve_region`, `extract_env_vars`, `EnvVar` and their errors
  (`InvalidCpuAndMemoryCombination`, `InvalidRegionError`, `EnvVarError`).

## Examples

Port expressions accept a bare number (80 is HTTP, 443 is HTTPS, anything
else is TCP) or `protocol:number`:

```python
from fargatecli.port import inflate_port

print(inflate_port("tcp:8080"))   # TCP:8080
print(inflate_port("443"))        # HTTPS:443
```

Domain names and aliases are checked before a certificate is requested:

```python
from fargatecli.acm import InvalidNameError, validate_domain_name

validate_domain_name("www.example.com")   # fine

try:
    validate_domain_name("example")
except InvalidNameError as error:
    print(error)   # example: The domain name requires at least 2 octets
```

Only certain CPU and memory pairings are accepted:

```python
from fargatecli.settings import InvalidCpuAndMemoryCombination, validate_cpu_and_memory

validate_cpu_and_memory("256", "512")      # fine

try:
    validate_cpu_and_memory("1024", "9216")
except InvalidCpuAndMemoryCombination as error:
    print(error)   # prints the table of valid combinations
```

Relative times for logs use durations such as `-10m` or `1h30m`:

```python
from fargatecli.logs import parse_duration

print(parse_duration("-1m30s"))   # -1 day, 23:58:30
```

## What this package does not do

- It has no command-line program; the operations are classes you call from
  your own code.
- It does not create AWS sessions, look up credentials or build SDK clients;
  you pass the client objects in.
- It has no clients of its own for load balancers, Route 53 or EC2. When
  creating a load balancer it does not look up default subnets, a default VPC
  or a default security group; set `subnet_ids`, `security_group_ids` and
  `vpc_id` yourself.
- It does not destroy load balancers, show a single load balancer's details,
  create ECS clusters or manage services and tasks.

## Running the tests

Install the package with its `test` extra and run `pytest` from the project
directory.