import pytest

from fargatecli.output import ConsoleOutput, humanize, titleize


@pytest.fixture
def console():
    return ConsoleOutput(color=False, emoji=False, verbose=True, test=True)


def test_debug(console, capsys):
    console.debug("PC LOAD LETTER")
    assert capsys.readouterr().out == "[d] PC LOAD LETTER\n"


def test_debug_silent_when_not_verbose(capsys):
    ConsoleOutput(test=True).debug("hidden")
    assert capsys.readouterr().out == ""


def test_info(console, capsys):
    console.info("Welcome! Everything is %s.", "fine")
    assert capsys.readouterr().out == "[i] Welcome! Everything is fine.\n"


def test_fatal(console, capsys):
    console.fatal(RuntimeError("OXY2_TANK_EXPLOSION"), "Houston, we've had a problem.")
    assert capsys.readouterr().out == (
        "[!] Houston, we've had a problem.\n"
        "    - OXY2_TANK_EXPLOSION\n"
    )


def test_fatals(console, capsys):
    errs = [
        RuntimeError("OXY2_TANK_EXPLOSION"),
        RuntimeError("PRIM_FUEL_CELL_FAILURE"),
        RuntimeError("SEC_FUEL_CELL_FAILURE"),
    ]
    console.fatals(errs, "Houston, we've had a problem.")
    assert capsys.readouterr().out == (
        "[!] Houston, we've had a problem.\n"
        "    - OXY2_TANK_EXPLOSION\n"
        "    - PRIM_FUEL_CELL_FAILURE\n"
        "    - SEC_FUEL_CELL_FAILURE\n"
    )


def test_fatal_exits_outside_tests(capsys):
    with pytest.raises(SystemExit) as excinfo:
        ConsoleOutput().fatal(RuntimeError("boom"), "Could not do it")
    assert excinfo.value.code == 1
    assert "Could not do it" in capsys.readouterr().out


def test_key_value(console, capsys):
    console.key_value("Name", "Staten Island", 0)
    console.key_value("County", "Richmond", 1)
    console.key_value("Population", "%d", 1, 468730)
    assert capsys.readouterr().out == (
        "Name: Staten Island\n"
        "    County: Richmond\n"
        "    Population: 468730\n"
    )


def test_say(console, capsys):
    console.say("Hi, my name is %s. My voice is my passport. Verify Me.", 0, "Werner Brandes")
    assert capsys.readouterr().out == (
        "Hi, my name is Werner Brandes. My voice is my passport. Verify Me.\n"
    )


def test_warn(console, capsys):
    console.warn("Keep it secret, keep it safe.")
    assert capsys.readouterr().out == "[!] Keep it secret, keep it safe.\n"


def test_table(console, capsys):
    rows = [
        ["NAME", "ALLEGIANCE"],
        ["Butterbumps", "House Tyrell"],
        ["Jinglebell", "House Frey"],
        ["Moon Boy", "House Baratheon"],
    ]
    console.table("Fools of Westeros", rows)
    assert capsys.readouterr().out == (
        "Fools of Westeros\n"
        "\n"
        "NAME\t\tALLEGIANCE\n"
        "Butterbumps\tHouse Tyrell\n"
        "Jinglebell\tHouse Frey\n"
        "Moon Boy\tHouse Baratheon\n"
    )


def test_table_without_header(console, capsys):
    console.table("", [["A", "B"], ["C", "D"]])
    assert capsys.readouterr().out == "A\tB\nC\tD\n"


def test_line_break(console, capsys):
    console.line_break()
    assert capsys.readouterr().out == "\n"


def test_color_warn_wraps_message(capsys):
    ConsoleOutput(color=True, test=True).warn("careful")
    out = capsys.readouterr().out
    assert out.startswith("[")
    assert "careful" in out
    assert out.endswith("\033[0m\n")


def test_titleize():
    assert titleize("PENDING_VALIDATION") == "Pending Validation"
    assert titleize("AMAZON_ISSUED") == "Amazon Issued"
    assert titleize("SUCCESS") == "Success"


def test_humanize():
    assert humanize("FAILED") == "failed"
    assert humanize("SOME_UNKNOWN_STATUS") == "some unknown status"