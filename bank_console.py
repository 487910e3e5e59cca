"""
Zeilenbasierter Befehlsinterpreter für das Ledger.

Eingabeformat: erste Zeile = Anzahl n der Befehle, danach n Befehlszeilen, z.B.

    3
    Create Account Savings A 100
    Withdraw A 50
    View A

Jeder Befehl liefert genau eine Ausgabezeile (Result.message).
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, List, Callable, Iterable, Iterator, Tuple, TextIO

from bank_ledger import (
    BankError,
    InvalidAmount,
    InvalidCommand,
    Ledger,
    OperationKind,
    Result,
    UnknownCommand,
    fmt_money,
    money,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    name: str
    args: Tuple[str, ...]


def parse_command(line: str) -> Command:
    parts = line.split()
    if not parts:
        raise InvalidCommand("Empty command.")
    return Command(parts[0], tuple(parts[1:]))


def parse_amount(raw: str) -> Decimal:
    """Invariante Schreibweise mit Punkt, nur endliche Beträge >= 0."""
    value = money(raw)
    if value < 0:
        raise InvalidAmount(raw)
    return value


class Interpreter:
    """
    Übersetzt geparste Befehle in Aufrufe am Ledger.
    Fachliche Fehler werden zu Fehler-Results, damit ein falscher Befehl
    die folgenden nicht verhindert.
    """

    def __init__(self, ledger: Optional[Ledger] = None):
        self.ledger = ledger or Ledger()
        self._commands: Dict[str, Tuple[Tuple[int, ...], Callable[..., Result]]] = {
            "Create": ((3, 4), self._create),
            "Deposit": ((2,), self._deposit),
            "Withdraw": ((2,), self._withdraw),
            "Transfer": ((3,), self._transfer),
            "View": ((1,), self._view),
            "Activate": ((1,), self._activate),
            "Deactivate": ((1,), self._deactivate),
        }

    def execute(self, command: Command) -> Result:
        try:
            entry = self._commands.get(command.name)
            if entry is None:
                raise UnknownCommand(command.name)
            arities, handler = entry
            if len(command.args) not in arities:
                raise InvalidCommand(f"Invalid arguments for {command.name}.")
            result = handler(*command.args)
        except BankError as e:
            result = Result.failure(e)
        if not result.ok:
            logger.info("%s %s -> %s", command.name, " ".join(command.args), result.message)
        return result

    def execute_line(self, line: str) -> Result:
        try:
            command = parse_command(line)
        except BankError as e:
            return Result.failure(e)
        return self.execute(command)

    # Befehle
    def _create(self, *args: str) -> Result:
        # "Create Account <Typ> <Name> <Betrag>", das Wort "Account" ist optional
        if len(args) == 4:
            if args[0] != "Account":
                raise InvalidCommand("Invalid arguments for Create.")
            args = args[1:]
        category, name, raw = args
        account = self.ledger.open_account(category, name, parse_amount(raw))
        return Result.success(
            f"A new {account.category} account created for {name} "
            f"with an initial balance of ${fmt_money(account.balance)}.")

    def _deposit(self, name: str, raw: str) -> Result:
        return self._single(OperationKind.DEPOSIT, name, raw)

    def _withdraw(self, name: str, raw: str) -> Result:
        return self._single(OperationKind.WITHDRAW, name, raw)

    def _single(self, kind: OperationKind, name: str, raw: str) -> Result:
        amount = parse_amount(raw)
        participants = [self.ledger.lookup(name)] if name in self.ledger else []
        return self.ledger.dispatch(name, kind, amount, participants)

    def _transfer(self, source: str, target: str, raw: str) -> Result:
        amount = parse_amount(raw)
        # beide Konten vor dem Dispatch auflösen, fehlendes Konto einzeln melden
        participants = [self.ledger.lookup(source), self.ledger.lookup(target)]
        return self.ledger.dispatch(source, OperationKind.TRANSFER, amount, participants)

    def _view(self, name: str) -> Result:
        return Result.success(self.ledger.lookup(name).view())

    def _activate(self, name: str) -> Result:
        self.ledger.set_active(name, True)
        return Result.success(f"{name}'s account is now activated.")

    def _deactivate(self, name: str) -> Result:
        self.ledger.set_active(name, False)
        return Result.success(f"{name}'s account is now deactivated.")


def run(lines: Iterable[str], interpreter: Optional[Interpreter] = None) -> Iterator[Result]:
    """
    Generator: liest die Befehlsanzahl und führt danach so viele
    Befehlszeilen aus. Leerzeilen zählen nicht.
    """
    interpreter = interpreter or Interpreter()
    it = (line.strip() for line in lines)
    it = (line for line in it if line)
    header = next(it, None)
    if header is None:
        return
    try:
        count = int(header)
    except ValueError:
        raise InvalidCommand(f"Expected number of commands, got {header!r}.") from None
    for _, line in zip(range(count), it):
        yield interpreter.execute_line(line)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bank-console", description="Run ledger commands.")
    parser.add_argument("input", nargs="?", default=None,
                        help="command file (default: stdin)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None,
         stdout: Optional[TextIO] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        stream=sys.stderr,
    )
    try:
        source = open(args.input, encoding="utf-8") if args.input else (stdin or sys.stdin)
    except OSError as e:
        logger.error("cannot read %s: %s", args.input, e)
        return 2
    out = stdout or sys.stdout
    try:
        for result in run(source):
            print(result.message, file=out)
    except InvalidCommand as e:
        logger.error("%s", e)
        return 2
    finally:
        if args.input:
            source.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
