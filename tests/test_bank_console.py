import io

import pytest

from bank_console import Interpreter, main, parse_amount, parse_command, run
from bank_ledger import (
    AccountNotFound,
    InvalidAmount,
    InvalidCategory,
    InvalidCommand,
    UnknownCommand,
)


def test_parse_command_splits_tokens():
    cmd = parse_command("Transfer A  B 10.5\n")
    assert cmd.name == "Transfer"
    assert cmd.args == ("A", "B", "10.5")


@pytest.mark.parametrize("raw", ["1,5", "-1", "NaN", "Infinity", "x"])
def test_parse_amount_rejects_bad_values(raw):
    with pytest.raises(InvalidAmount):
        parse_amount(raw)


def test_create_accepts_both_forms():
    interp = Interpreter()
    r1 = interp.execute_line("Create Account Savings A 100")
    r2 = interp.execute_line("Create checking B 7.5")
    assert r1.message == "A new Savings account created for A with an initial balance of $100.000."
    assert r2.message == "A new Checking account created for B with an initial balance of $7.500."


def test_create_errors():
    interp = Interpreter()
    interp.execute_line("Create Account Savings A 100")
    assert interp.execute_line("Create Account Business A 1").message == "Error: Account A already exists"
    assert isinstance(interp.execute_line("Create Account Gold X 1").error, InvalidCategory)
    assert "X" not in interp.ledger


def test_transfer_reports_missing_account_by_name():
    interp = Interpreter()
    interp.execute_line("Create Account Business B 100")

    missing_dst = interp.execute_line("Transfer B Z 10")
    missing_src = interp.execute_line("Transfer Y B 10")

    assert missing_dst.message == "Error: Account Z does not exist."
    assert missing_src.message == "Error: Account Y does not exist."
    assert interp.ledger.lookup("B").balance == 100


def test_unknown_and_malformed_commands_do_not_stop_stream():
    interp = Interpreter()
    assert isinstance(interp.execute_line("Explode A").error, UnknownCommand)
    assert isinstance(interp.execute_line("Deposit A").error, InvalidCommand)
    assert isinstance(interp.execute_line("Deposit A 1").error, AccountNotFound)
    assert interp.execute_line("Create Account Savings A 1").ok


def test_activate_deactivate_messages():
    interp = Interpreter()
    interp.execute_line("Create Account Savings A 1")
    assert interp.execute_line("Activate A").message == "Error: Account A is already activated."
    assert interp.execute_line("Deactivate A").message == "A's account is now deactivated."
    assert interp.execute_line("Deactivate A").message == "Error: Account A is already deactivated."
    assert interp.execute_line("Activate A").message == "A's account is now activated."
    assert interp.execute_line("Activate Q").message == "Error: Account Q does not exist."


def test_run_executes_exactly_count_lines():
    lines = [
        "3",
        "Create Account Savings A 100",
        "",
        "Deposit A 50",
        "View A",
        "Deposit A 1000",
    ]
    messages = [r.message for r in run(lines)]
    assert messages == [
        "A new Savings account created for A with an initial balance of $100.000.",
        "A successfully deposited $50.000. New Balance: $150.000.",
        "A's Account: Type: Savings, Balance: $150.000, State: Active, "
        "Transactions: [Initial Deposit $100.000, Deposit $50.000].",
    ]


def test_run_rejects_bad_header():
    with pytest.raises(InvalidCommand):
        list(run(["many", "View A"]))


def test_main_prints_results():
    stdin = io.StringIO(
        "5\n"
        "Create Account Savings A 100\n"
        "Withdraw A 50\n"
        "Deactivate A\n"
        "Withdraw A 10\n"
        "View A\n"
    )
    stdout = io.StringIO()

    assert main([], stdin=stdin, stdout=stdout) == 0

    assert stdout.getvalue().splitlines() == [
        "A new Savings account created for A with an initial balance of $100.000.",
        "A successfully withdrew $49.250. New Balance: $50.000. "
        "Transaction Fee: $0.750 (1.5%) in the system.",
        "A's account is now deactivated.",
        "Error: Account A is inactive.",
        "A's Account: Type: Savings, Balance: $50.000, State: Inactive, "
        "Transactions: [Initial Deposit $100.000, Withdrawal $50.000].",
    ]


def test_main_reads_input_file(tmp_path):
    path = tmp_path / "commands.txt"
    path.write_text("1\nView nobody\n")
    stdout = io.StringIO()

    assert main([str(path)], stdout=stdout) == 0
    assert stdout.getvalue() == "Error: Account nobody does not exist.\n"


def test_main_bad_header_exit_code():
    assert main([], stdin=io.StringIO("x\n"), stdout=io.StringIO()) == 2


def test_parse_amount_normalizes_negative_zero():
    assert str(parse_amount("-0")) == "0"


def test_oversized_amount_does_not_stop_stream():
    stdin = io.StringIO(
        "3\n"
        "Create Account Savings A 1e30\n"
        "Create Account Savings B 5\n"
        "Deposit B 123456789012345678901234567\n"
    )
    stdout = io.StringIO()

    assert main([], stdin=stdin, stdout=stdout) == 0

    assert stdout.getvalue().splitlines() == [
        "Error: Invalid amount '1e30'.",
        "A new Savings account created for B with an initial balance of $5.000.",
        "Error: Invalid amount '123456789012345678901234567'.",
    ]


def test_main_missing_input_file(tmp_path):
    stdout = io.StringIO()
    assert main([str(tmp_path / "missing.txt")], stdout=stdout) == 2
    assert stdout.getvalue() == ""
