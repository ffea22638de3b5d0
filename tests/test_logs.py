from datetime import datetime, timedelta, timezone

import pytest

from fargatecli.logs import (
    CloudWatchLogs,
    GetLogsInput,
    GetLogsOperation,
    LogLine,
    LogsError,
    parse_duration,
)


class _AwsError(Exception):
    def __init__(self, code):
        super().__init__(code)
        self.response = {"Error": {"Code": code}}


class _FakeClient:
    def __init__(self, pages=None, create_error=None, filter_error=None):
        self.pages = list(pages or [])
        self.create_error = create_error
        self.filter_error = filter_error
        self.created = []
        self.requests = []

    def create_log_group(self, **kwargs):
        self.created.append(kwargs)
        if self.create_error is not None:
            raise self.create_error
        return {}

    def filter_log_events(self, **kwargs):
        self.requests.append(dict(kwargs))
        if self.filter_error is not None:
            raise self.filter_error
        return self.pages.pop(0)


class _FixedRandom:
    def __init__(self, values):
        self.values = list(values)

    def randrange(self, stop):
        assert stop == 256
        return self.values.pop(0)


def _event(event_id, stream="fargate/web/a", message="hello", timestamp=0):
    return {
        "eventId": event_id,
        "logStreamName": stream,
        "message": message,
        "timestamp": timestamp,
    }


def test_parse_duration_combined_units_equal_total():
    assert parse_duration("1h30m") == parse_duration("90m")


def test_parse_duration_sign():
    assert parse_duration("-10m") == -parse_duration("10m")
    assert parse_duration("+10m") == parse_duration("10m")


def test_parse_duration_fraction():
    assert parse_duration("1.5s") == parse_duration("1500ms")


def test_parse_duration_zero():
    assert parse_duration("0") == timedelta(0)


@pytest.mark.parametrize("text", ["", "10", "abc", "1x", "h", "-"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_create_log_group_formats_name():
    client = _FakeClient()
    name = CloudWatchLogs(client).create_log_group("/fargate/service/%s", "web")
    assert name == "/fargate/service/web"
    assert client.created == [{"logGroupName": "/fargate/service/web"}]


def test_create_log_group_already_exists():
    client = _FakeClient(create_error=_AwsError("ResourceAlreadyExistsException"))
    assert CloudWatchLogs(client).create_log_group("/fargate/task/x") == "/fargate/task/x"


def test_create_log_group_other_error():
    client = _FakeClient(create_error=_AwsError("AccessDenied"))
    with pytest.raises(LogsError):
        CloudWatchLogs(client).create_log_group("/fargate/task/x")


def test_get_logs_minimal_request():
    client = _FakeClient(pages=[{"events": []}])
    lines = CloudWatchLogs(client).get_logs(GetLogsInput(log_group_name="group"))
    assert lines == []
    assert client.requests == [{"logGroupName": "group", "interleaved": True}]


def test_get_logs_follows_pages():
    client = _FakeClient(
        pages=[
            {"events": [_event("1", message="one")], "nextToken": "next"},
            {"events": [_event("2", message="two")]},
        ]
    )
    lines = CloudWatchLogs(client).get_logs(GetLogsInput(log_group_name="group"))
    assert [line.message for line in lines] == ["one", "two"]
    assert [line.event_id for line in lines] == ["1", "2"]
    assert client.requests[1]["nextToken"] == "next"


def test_get_logs_timestamp_round_trip():
    client = _FakeClient(pages=[{"events": [_event("1", timestamp=1500)]}])
    cwl = CloudWatchLogs(client)
    line = cwl.get_logs(GetLogsInput(log_group_name="group"))[0]

    client.pages.append({"events": []})
    cwl.get_logs(
        GetLogsInput(
            log_group_name="group",
            start_time=line.timestamp,
            end_time=line.timestamp,
            filter="ERROR",
            log_stream_names=["fargate/web/a"],
        )
    )
    request = client.requests[1]
    assert request["startTime"] == 1500
    assert request["endTime"] == 1500
    assert request["filterPattern"] == "ERROR"
    assert request["logStreamNames"] == ["fargate/web/a"]


def test_get_logs_error():
    client = _FakeClient(filter_error=RuntimeError("boom"))
    with pytest.raises(LogsError):
        CloudWatchLogs(client).get_logs(GetLogsInput(log_group_name="group"))


def test_add_tasks():
    operation = GetLogsOperation(namespace="web")
    operation.add_tasks(["abc", "def"])
    assert operation.log_stream_names == ["fargate/web/abc", "fargate/web/def"]


def test_add_start_time_empty_leaves_unset():
    operation = GetLogsOperation()
    operation.add_start_time("")
    operation.add_end_time("")
    assert operation.start_time is None
    assert operation.end_time is None


def test_parse_time_timestamp():
    operation = GetLogsOperation()
    expected = datetime(2018, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
    assert operation.parse_time("2018-01-02 15:04:05") == expected
    assert operation.parse_time("2018-01-02 15:04:05 UTC") == expected


def test_parse_time_relative_duration():
    operation = GetLogsOperation()
    before = datetime.now(timezone.utc)
    parsed = operation.parse_time("-1H")
    after = datetime.now(timezone.utc)
    assert before - timedelta(hours=1) <= parsed <= after - timedelta(hours=1)


def test_parse_time_invalid():
    with pytest.raises(LogsError):
        GetLogsOperation().parse_time("yesterday-ish")


def test_add_end_time_sets_parsed_value():
    operation = GetLogsOperation()
    operation.add_end_time("2018-01-02 15:04:05")
    assert operation.end_time == operation.parse_time("2018-01-02 15:04:05")


def test_validate_follow_with_end_time():
    operation = GetLogsOperation(follow=True)
    operation.add_end_time("2018-01-02 15:04:05")
    with pytest.raises(LogsError, match="--end-time cannot be specified if following"):
        operation.validate()


def test_validate_follow_without_end_time():
    operation = GetLogsOperation(follow=True)
    assert operation.validate() is None
    assert operation.end_time is None


def test_stream_colors_are_stable_per_stream():
    operation = GetLogsOperation(rng=_FixedRandom([7, 9]))
    assert operation.get_stream_color("a") == 7
    assert operation.get_stream_color("b") == 9
    assert operation.get_stream_color("a") == 7
    assert operation.log_stream_colors == {"a": 7, "b": 9}


def test_stream_color_zero_is_picked_again():
    operation = GetLogsOperation(rng=_FixedRandom([0, 5]))
    assert operation.get_stream_color("a") == 0
    assert operation.get_stream_color("a") == 5


def test_seen_event():
    operation = GetLogsOperation()
    assert operation.seen_event("e1") is False
    assert operation.seen_event("e1") is True
    assert operation.seen_event("e2") is False


def test_seen_event_forgets_oldest_beyond_cache_size():
    operation = GetLogsOperation()
    for index in range(10001):
        operation.seen_event(f"e{index}")
    assert operation.seen_event("e10000") is True
    assert operation.seen_event("e0") is False


def test_run_passes_each_event_once():
    client = _FakeClient(
        pages=[
            {
                "events": [
                    _event("1", stream="s1", message="one"),
                    _event("1", stream="s1", message="one"),
                    _event("2", stream="s2", message="two"),
                ]
            }
        ]
    )
    operation = GetLogsOperation(log_group_name="group", rng=_FixedRandom([3, 4]))
    received = []
    operation.run(CloudWatchLogs(client), lambda *args: received.append(args))
    assert received == [("s1", "one", 3), ("s2", "two", 4)]


def test_new_lines_skips_events_seen_in_earlier_polls():
    client = _FakeClient(
        pages=[
            {"events": [_event("1")]},
            {"events": [_event("1"), _event("2", message="later")]},
        ]
    )
    cwl = CloudWatchLogs(client)
    operation = GetLogsOperation(log_group_name="group", rng=_FixedRandom([1]))
    first = list(operation.new_lines(cwl))
    second = list(operation.new_lines(cwl))
    assert [line.event_id for line, _ in first] == ["1"]
    assert [line.message for line, _ in second] == ["later"]
    assert isinstance(second[0][0], LogLine)