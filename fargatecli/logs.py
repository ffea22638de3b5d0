"""Fetching and following CloudWatch Logs events for tasks and services."""

from __future__ import annotations

import random
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from typing import Any, Callable, Iterator, Optional

from cachetools import LRUCache

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_STREAM_NAME_FORMAT = "fargate/%s/%s"
EVENT_CACHE_SIZE = 10000
FOLLOW_INTERVAL_SECONDS = 1.0
FOLLOW_LOOKBACK = timedelta(seconds=10)

_ALREADY_EXISTS = "ResourceAlreadyExistsException"

_UNIT_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|\u00b5s|\u03bcs|ms|s|m|h)")
_TIMESTAMP = re.compile(r"(\d{4})-(\d{2})-(\d{2}) (\d{1,2}):(\d{2}):(\d{2})")
_ZONE_ABBREVIATION = re.compile(r"[A-Z]{3,5}")


class LogsError(Exception):
    """Raised when logs cannot be fetched or the request for them is invalid."""


@dataclass
class LogLine:
    """One log event."""

    event_id: str = ""
    log_stream_name: str = ""
    message: str = ""
    timestamp: Optional[datetime] = None


@dataclass
class GetLogsInput:
    """What to fetch from a log group; unset times and empty values are not sent."""

    log_group_name: str = ""
    filter: str = ""
    log_stream_names: list[str] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


def _to_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    delta = moment - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def _from_millis(millis: int) -> datetime:
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)


def _error_code(err: BaseException) -> str:
    response = getattr(err, "response", None)
    if isinstance(response, dict):
        return (response.get("Error") or {}).get("Code") or ""
    return ""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``-10m``, ``1h30m`` or ``1.5s``.

    Every number needs a unit (ns, us, µs, ms, s, m, h) except a lone ``0``.
    Raises ValueError when the text is not a duration.
    """
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = Fraction(0)
    position = 0
    while position < len(rest):
        match = _DURATION_PART.match(rest, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        total += Fraction(number) * _UNIT_NANOSECONDS[unit]
        position = match.end()

    nanoseconds = int(total)
    if negative:
        nanoseconds = -nanoseconds
    return timedelta(microseconds=nanoseconds // 1000)


def _parse_timestamp(text: str) -> Optional[datetime]:
    match = _TIMESTAMP.fullmatch(text)
    if match is None:
        return None
    try:
        return datetime(*(int(part) for part in match.groups()), tzinfo=timezone.utc)
    except ValueError:
        return None


class CloudWatchLogs:
    """Access to CloudWatch Logs through an SDK client.

    ``client`` offers ``create_log_group`` and ``filter_log_events`` with keyword
    arguments and dictionary responses (for example a boto3 ``logs`` client).
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def create_log_group(self, log_group_name: str, *args: Any) -> str:
        """Create the log group named by formatting ``log_group_name`` with ``args``.

        A group that already exists is not an error. Returns the group's name.
        """
        name = log_group_name % args if args else log_group_name
        try:
            self._client.create_log_group(logGroupName=name)
        except Exception as err:
            if _error_code(err) == _ALREADY_EXISTS:
                return name
            raise LogsError(f"Could not create Cloudwatch Logs log group: {err}") from err
        return name

    def get_logs(self, request: GetLogsInput) -> list[LogLine]:
        """Return the interleaved events of every page matching ``request``."""
        arguments: dict[str, Any] = {
            "logGroupName": request.log_group_name,
            "interleaved": True,
        }
        if request.start_time is not None:
            arguments["startTime"] = _to_millis(request.start_time)
        if request.end_time is not None:
            arguments["endTime"] = _to_millis(request.end_time)
        if request.filter:
            arguments["filterPattern"] = request.filter
        if request.log_stream_names:
            arguments["logStreamNames"] = list(request.log_stream_names)

        lines: list[LogLine] = []
        try:
            while True:
                response = self._client.filter_log_events(**arguments)
                for event in response.get("events") or []:
                    lines.append(
                        LogLine(
                            event_id=event.get("eventId") or "",
                            message=event.get("message") or "",
                            log_stream_name=event.get("logStreamName") or "",
                            timestamp=_from_millis(event.get("timestamp") or 0),
                        )
                    )
                token = response.get("nextToken")
                if not token:
                    return lines
                arguments["nextToken"] = token
        except LogsError:
            raise
        except Exception as err:
            raise LogsError(f"Could not get logs: {err}") from err


LogHandler = Callable[[str, str, int], Any]


@dataclass
class GetLogsOperation:
    """Fetches, or keeps following, the events of a log group without repeats."""

    log_group_name: str = ""
    namespace: str = ""
    filter: str = ""
    follow: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    log_stream_names: list[str] = field(default_factory=list)
    log_stream_colors: dict[str, int] = field(default_factory=dict)
    rng: Any = field(default_factory=random.Random)
    _event_cache: LRUCache = field(
        default_factory=lambda: LRUCache(maxsize=EVENT_CACHE_SIZE), repr=False
    )

    def add_start_time(self, raw_start_time: str) -> None:
        if raw_start_time:
            self.start_time = self.parse_time(raw_start_time)

    def add_end_time(self, raw_end_time: str) -> None:
        if raw_end_time:
            self.end_time = self.parse_time(raw_end_time)

    def add_tasks(self, tasks: list[str]) -> None:
        """Restrict the logs to the streams of the given task IDs."""
        self.log_stream_names.extend(
            LOG_STREAM_NAME_FORMAT % (self.namespace, task) for task in tasks
        )

    def validate(self) -> None:
        if self.follow and self.end_time is not None:
            raise LogsError("--end-time cannot be specified if following")

    def get_stream_color(self, log_stream_name: str) -> int:
        """Return the colour (0-255) picked at random for a log stream."""
        if self.log_stream_colors.get(log_stream_name, 0) == 0:
            self.log_stream_colors[log_stream_name] = self.rng.randrange(256)
        return self.log_stream_colors[log_stream_name]

    def seen_event(self, event_id: str) -> bool:
        """Return whether the event was seen before, remembering it if not."""
        if event_id in self._event_cache:
            return True
        self._event_cache[event_id] = None
        return False

    def parse_time(self, raw_time: str) -> datetime:
        """Parse a duration relative to now, or ``YYYY-MM-DD HH:MM:SS`` with optional zone."""
        try:
            return datetime.now(timezone.utc) + parse_duration(raw_time.lower())
        except ValueError:
            pass

        parsed = _parse_timestamp(raw_time)
        if parsed is not None:
            return parsed

        stamp, _, zone = raw_time.rpartition(" ")
        if stamp and _ZONE_ABBREVIATION.fullmatch(zone):
            parsed = _parse_timestamp(stamp)
            if parsed is not None:
                return parsed

        raise LogsError(f"Could not parse {raw_time}")

    def new_lines(self, cloudwatch_logs: CloudWatchLogs) -> Iterator[tuple[LogLine, int]]:
        """Yield each event not seen before with its stream's colour."""
        request = GetLogsInput(
            log_group_name=self.log_group_name,
            filter=self.filter,
            log_stream_names=list(self.log_stream_names),
            start_time=self.start_time,
            end_time=self.end_time,
        )
        for line in cloudwatch_logs.get_logs(request):
            color = self.get_stream_color(line.log_stream_name)
            if not self.seen_event(line.event_id):
                yield line, color

    def run(self, cloudwatch_logs: CloudWatchLogs, handler: LogHandler) -> None:
        """Pass new events to ``handler(stream_name, message, color)``.

        When following, polls every second forever, looking back ten seconds.
        """
        if not self.follow:
            self._emit(cloudwatch_logs, handler)
            return

        if self.start_time is None:
            self.start_time = datetime.now(timezone.utc)

        next_tick = time.monotonic()
        while True:
            self._emit(cloudwatch_logs, handler)
            new_start = datetime.now(timezone.utc) - FOLLOW_LOOKBACK
            if new_start > self.start_time:
                self.start_time = new_start
            next_tick += FOLLOW_INTERVAL_SECONDS
            time.sleep(max(0.0, next_tick - time.monotonic()))

    def _emit(self, cloudwatch_logs: CloudWatchLogs, handler: LogHandler) -> None:
        for line, color in self.new_lines(cloudwatch_logs):
            handler(line.log_stream_name, line.message, color)