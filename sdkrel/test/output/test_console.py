from __future__ import annotations

from sdkrel.output.console import MockConsole, Style


def test_mock_console_records_styles() -> None:
    console = MockConsole()
    console.success("staged a")
    console.error("boom")
    console.print("detail", Style.DIM)

    assert console.messages == ["OK staged a", "error: boom", "detail"]
    assert console.has_error()
    assert console.find("detail")[0].style == Style.DIM


def test_mock_console_table() -> None:
    console = MockConsole()
    console.table("Release plan", ("#", "module"), [("1", "protocol"), ("2", "tbdex")])

    assert console.text == "Release plan\n# | module\n1 | protocol\n2 | tbdex"
