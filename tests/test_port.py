import pytest

from fargatecli.port import Port, PortError, inflate_port, inflate_ports, validate_port


@pytest.mark.parametrize(
    "port, empty",
    [
        (Port(), True),
        (Port(80, ""), True),
        (Port(0, "HTTP"), True),
        (Port(80, "HTTP"), False),
    ],
)
def test_is_empty(port, empty):
    assert port.is_empty() is empty


@pytest.mark.parametrize(
    "port, text",
    [
        (Port(), ""),
        (Port(80, ""), ""),
        (Port(0, "HTTP"), ""),
        (Port(80, "HTTP"), "HTTP:80"),
        (Port(25, "TCP"), "TCP:25"),
    ],
)
def test_str(port, text):
    assert str(port) == text


@pytest.mark.parametrize(
    "expr, port",
    [
        ("80", Port(80, "HTTP")),
        ("http:80", Port(80, "HTTP")),
        ("hTTp:80", Port(80, "HTTP")),
        ("HTTP:80", Port(80, "HTTP")),
        ("443", Port(443, "HTTPS")),
        ("https:443", Port(443, "HTTPS")),
        ("hTTpS:443", Port(443, "HTTPS")),
        ("HTTPS:443", Port(443, "HTTPS")),
        ("8080", Port(8080, "TCP")),
        ("tcp:8080", Port(8080, "TCP")),
        ("HTTP:8080", Port(8080, "HTTP")),
    ],
)
def test_inflate_port(expr, port):
    assert inflate_port(expr) == port


def test_inflate_port_unparseable():
    with pytest.raises(PortError) as excinfo:
        inflate_port("bargle")
    assert str(excinfo.value) == "could not parse port number from bargle"


def test_inflate_ports_collects_ports_and_errors():
    ports, errors = inflate_ports(["80", "bargle", "tcp:3386"])
    assert ports == [Port(80, "HTTP"), Port(3386, "TCP")]
    assert [str(e) for e in errors] == ["could not parse port number from bargle"]


def test_inflate_ports_several():
    ports, errors = inflate_ports(["tcp:3386", "TCP:5000"])
    assert ports == [Port(3386, "TCP"), Port(5000, "TCP")]
    assert errors == []


def test_validate_port_valid():
    assert validate_port(Port(80, "HTTP")) == []


def test_validate_port_number_out_of_range():
    errors = validate_port(inflate_port("555555555"))
    assert [str(e) for e in errors] == ["invalid port 555555555 (specify within 1 - 65535)"]


def test_validate_port_invalid_protocol():
    errors = validate_port(inflate_port("SMTP:25"))
    assert [str(e) for e in errors] == ["invalid protocol SMTP (specify TCP, HTTP, or HTTPS)"]


def test_validate_port_both_invalid():
    errors = validate_port(Port(0, "FTP"))
    assert len(errors) == 2
    assert str(errors[1]) == "invalid port 0 (specify within 1 - 65535)"