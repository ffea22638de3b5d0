"""Global settings of the command line: regions, task sizes and environment variables."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping

VERSION = "0.3.0"

DEFAULT_CLUSTER_NAME = "fargate"
DEFAULT_REGION = "us-east-1"

MEBIBYTES_IN_GIBIBYTE = 1024

SERVICE_LOG_GROUP_FORMAT = "/fargate/service/%s"

VALID_REGIONS = (
    "ap-northeast-1",
    "ap-northeast-2",
    "ap-south-1",
    "ap-southeast-1",
    "ap-southeast-2",
    "ca-central-1",
    "eu-central-1",
    "eu-west-1",
    "eu-west-2",
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
)

_INVALID_CPU_AND_MEMORY_MESSAGE = """Invalid CPU and Memory settings

CPU (CPU Units)    Memory (MiB)
---------------    ------------
256                512, 1024, or 2048
512                1024 through 4096 in 1GiB increments
1024               2048 through 8192 in 1GiB increments
2048               4096 through 16384 in 1GiB increments
4096               8192 through 30720 in 1GiB increments
"""

# Allowed memory range (MiB, whole GiB steps) for each CPU unit setting.
_MEMORY_RANGES = {
    256: (1024, 2048),
    512: (1024, 4096),
    1024: (2048, 8192),
    2048: (4096, 16384),
    4096: (8192, 30720),
}

_INT16 = re.compile(r"[+-]?[0-9]+")


class InvalidCpuAndMemoryCombination(ValueError):
    """Raised when a task's CPU units and memory cannot be combined."""

    def __init__(self, message: str = _INVALID_CPU_AND_MEMORY_MESSAGE) -> None:
        super().__init__(message)


class InvalidRegionError(ValueError):
    """Raised when a region is not one the command line supports."""


class EnvVarError(ValueError):
    """Raised when an environment variable is not given as KEY=value."""


@dataclass(frozen=True)
class EnvVar:
    """An environment variable for a container."""

    key: str
    value: str


def _parse_int16(text: str) -> int:
    if not _INT16.fullmatch(text):
        raise ValueError(f"invalid number {text!r}")
    value = int(text)
    if not -(2**15) <= value < 2**15:
        raise ValueError(f"number {text!r} out of range")
    return value


def _valid_mebibytes(mebibytes: int, low: int, high: int) -> bool:
    return low <= mebibytes <= high and mebibytes % MEBIBYTES_IN_GIBIBYTE == 0


def validate_cpu_and_memory(cpu_units: str, mebibytes: str) -> None:
    """Check that the CPU units and memory make a supported task size.

    Raises ValueError when either is not a number, and
    InvalidCpuAndMemoryCombination when the pair is not supported.
    """
    cpu = _parse_int16(cpu_units)
    memory = _parse_int16(mebibytes)

    if cpu == 256 and memory == 512:
        return
    memory_range = _MEMORY_RANGES.get(cpu)
    if memory_range is not None and _valid_mebibytes(memory, *memory_range):
        return
    raise InvalidCpuAndMemoryCombination()


def validate_region(region: str) -> None:
    """Raise InvalidRegionError unless the region is supported."""
    if region not in VALID_REGIONS:
        raise InvalidRegionError(
            f"Invalid region: {region} [valid regions: {', '.join(VALID_REGIONS)}]"
        )


def resolve_region(flag_region: str, environ: Mapping[str, str], configured_region: str) -> str:
    """Pick the region to use and check it.

    The flag wins, then AWS_DEFAULT_REGION, then AWS_REGION, then the region
    configured for the AWS session, then the default region.
    """
    region = (
        flag_region
        or environ.get("AWS_DEFAULT_REGION", "")
        or environ.get("AWS_REGION", "")
        or configured_region
        or DEFAULT_REGION
    )
    validate_region(region)
    return region


def extract_env_vars(input_env_vars: Iterable[str]) -> list[EnvVar]:
    """Parse KEY=value strings into environment variables with upper-case keys."""
    env_vars: list[EnvVar] = []
    for item in input_env_vars:
        key, separator, value = item.partition("=")
        if not separator:
            raise EnvVarError(f"{item} must be in the form of KEY=value")
        env_vars.append(EnvVar(key=key.upper(), value=value))
    return env_vars