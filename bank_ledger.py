# für komplexe Typannotationen
from __future__ import annotations

import logging
from dataclasses import dataclass
# ermöglicht exakte Dezimal-Arithmetik
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Dict, List, Callable, Sequence

logger = logging.getLogger(__name__)

# Anzeige-Genauigkeit für Geldbeträge (3 Nachkommastellen)
MILLS = Decimal("0.001")
ZERO = Decimal(0)

# Präfix, an dem Fehlermeldungen erkannt werden
ERROR_MARKER = "Error:"


def money(x) -> Decimal:
    """
    Wandelt Eingaben verlustfrei in Decimal um.
    Erlaubt Int/Str/Decimal als Argument, Floats über ihre str-Darstellung.
    Gerundet wird erst bei der Anzeige (fmt_money).
    """
    if isinstance(x, Decimal):
        value = x
    else:
        try:
            value = Decimal(str(x).strip())
        except InvalidOperation:
            raise InvalidAmount(x) from None
    if not value.is_finite():
        raise InvalidAmount(x)
    # muss sich auf 3 Nachkommastellen darstellen lassen (Kontext-Präzision)
    try:
        value.quantize(MILLS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount(x) from None
    if value.is_zero():
        value = value.copy_abs()
    return value


def fmt_money(x: Decimal) -> str:
    """Betrag mit genau 3 Nachkommastellen, z.B. 49.250"""
    return str(x.quantize(MILLS, rounding=ROUND_HALF_UP))


def fmt_percent(p: Decimal) -> str:
    if p == ZERO:
        return "0"
    return str(p.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# Exceptions, klare Fehlerfälle signalisieren
class BankError(Exception):
    """Allgemeiner Bankfehler."""


class AccountNotFound(BankError):
    """Konto existiert nicht."""

    def __init__(self, name: str):
        super().__init__(f"Account {name} does not exist.")
        self.name = name


class AccountAlreadyExists(BankError):
    """Kontoname bereits vergeben."""

    def __init__(self, name: str):
        super().__init__(f"Account {name} already exists")
        self.name = name


class AccountAlreadyInState(BankError):
    """Aktivieren/Deaktivieren würde nichts ändern."""

    def __init__(self, name: str, active: bool):
        word = "activated" if active else "deactivated"
        super().__init__(f"Account {name} is already {word}.")
        self.name = name
        self.active = active


class AccountInactive(BankError):
    """Konto ist inaktiv, Abgänge gesperrt."""

    def __init__(self, name: str):
        super().__init__(f"Account {name} is inactive.")
        self.name = name


class InsufficientFunds(BankError):
    """Saldo reicht für den Bruttobetrag nicht aus."""

    def __init__(self, name: str):
        super().__init__(f"Insufficient funds for {name}.")
        self.name = name


class InvalidCategory(BankError):
    """Unbekannter Kontotyp."""

    def __init__(self, category: str):
        super().__init__(f"Unknown account category '{category}'.")
        self.category = category


class InvalidAmount(BankError):
    """Betrag ungültig (keine endliche Dezimalzahl)."""

    def __init__(self, raw):
        super().__init__(f"Invalid amount '{raw}'.")
        self.raw = raw


class InvalidCommand(BankError):
    """Befehl mit falschen Argumenten."""


class UnknownCommand(InvalidCommand):
    """Befehlsname unbekannt."""

    def __init__(self, command: str):
        super().__init__(f"Unknown command '{command}'.")
        self.command = command


# Gebührenregeln pro Kontotyp
class FeePolicy:
    """
    Ordnet Kontotypen einen Gebührensatz in Prozent zu.
    Neue Typen können zur Laufzeit registriert werden (Open-Closed):
        policy.register_category("Premium", "0.5")
    Die Suche ignoriert Gross-/Kleinschreibung, gespeichert wird die
    registrierte Schreibweise.
    """

    DEFAULT_RATES = {
        "Savings": Decimal("1.5"),
        "Checking": Decimal("2.0"),
        "Business": Decimal("2.5"),
    }

    def __init__(self, rates: Optional[Dict[str, object]] = None):
        # key (lower) -> (Anzeigename, Prozentsatz)
        self._rates: Dict[str, tuple] = {}
        for category, percent in (rates if rates is not None else self.DEFAULT_RATES).items():
            self.register_category(category, percent)

    def register_category(self, category: str, percent) -> None:
        name = category.strip()
        self._rates[name.lower()] = (name, money(percent))

    def resolve(self, category: str) -> tuple:
        """Liefert (kanonischer Name, Prozentsatz) oder wirft InvalidCategory."""
        entry = self._rates.get(category.strip().lower())
        if entry is None:
            raise InvalidCategory(category)
        return entry

    def fee_percent(self, category: str) -> Decimal:
        return self.resolve(category)[1]

    @staticmethod
    def commission(amount: Decimal, percent: Decimal) -> Decimal:
        return amount * percent / 100


DEFAULT_FEE_POLICY = FeePolicy()


class AccountState(Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


# Konto
class Account:
    """
    Ein Konto im Ledger.
    Verwaltet:
      - Name, Typ und Gebührensatz (unveränderlich)
      - Saldo, Zustand und Historie (nur über Operationen/Ledger änderbar)
    """

    def __init__(self, name: str, balance: Decimal, category: str, fee_percent: Decimal):
        self._name: str = name
        self._category: str = category
        self._fee_percent: Decimal = fee_percent
        self._balance: Decimal = money(balance)
        self._state: AccountState = AccountState.ACTIVE
        self._history: List[str] = [f"Initial Deposit ${fmt_money(self._balance)}"]

    @classmethod
    def create(cls, name: str, initial_balance, category: str,
               fee_policy: Optional[FeePolicy] = None) -> "Account":
        """Konto mit aus dem Typ abgeleitetem Gebührensatz anlegen."""
        policy = fee_policy or DEFAULT_FEE_POLICY
        canonical, percent = policy.resolve(category)
        return cls(name, money(initial_balance), canonical, percent)

    # Eigenschaften, nur lesend von aussen zugänglich
    @property
    def name(self) -> str:
        return self._name

    @property
    def category(self) -> str:
        return self._category

    @property
    def fee_percent(self) -> Decimal:
        return self._fee_percent

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def state(self) -> AccountState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is AccountState.ACTIVE

    @property
    def history(self) -> List[str]:
        # Kopie zurückgeben, um Encapsulation zu wahren
        return list(self._history)

    def view(self) -> str:
        history = ", ".join(self._history)
        return (f"{self._name}'s Account: Type: {self._category}, "
                f"Balance: ${fmt_money(self._balance)}, State: {self._state.value}, "
                f"Transactions: [{history}].")

    def __repr__(self) -> str:
        return f"Account({self._name!r}, {self._category}, balance={self._balance}, {self._state.value})"


def record_transaction(account: Account, description: str) -> None:
    """Historie ergänzen; Fehlermeldungen werden nie verbucht."""
    if description.startswith(ERROR_MARKER):
        return
    account._history.append(description)


# Operationen
class OperationKind(Enum):
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    TRANSFER = "Transfer"


@dataclass(frozen=True)
class Receipt:
    """
    Strukturiertes Ergebnis einer erfolgreichen Operation.
    gross:   angefragter Betrag
    net:     gutgeschriebener bzw. ausgezahlter Betrag (gross - fee)
    balance: neuer Saldo des Hauptkontos
    """
    kind: OperationKind
    account: str
    gross: Decimal
    net: Decimal
    fee: Decimal
    fee_percent: Decimal
    balance: Decimal
    counterparty: Optional[str] = None

    def describe(self) -> str:
        if self.kind is OperationKind.DEPOSIT:
            return (f"{self.account} successfully deposited ${fmt_money(self.gross)}. "
                    f"New Balance: ${fmt_money(self.balance)}.")
        if self.kind is OperationKind.WITHDRAW:
            action = f"withdrew ${fmt_money(self.net)}"
        else:
            action = f"transferred ${fmt_money(self.net)} to {self.counterparty}"
        return (f"{self.account} successfully {action}. "
                f"New Balance: ${fmt_money(self.balance)}. "
                f"Transaction Fee: ${fmt_money(self.fee)} ({fmt_percent(self.fee_percent)}%) in the system.")


@dataclass(frozen=True)
class Result:
    """Ergebnis eines Befehls: Meldung plus optional Beleg oder Fehler."""
    message: str
    receipt: Optional[Receipt] = None
    error: Optional[BankError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, message: str, receipt: Optional[Receipt] = None) -> "Result":
        return cls(message=message, receipt=receipt)

    @classmethod
    def failure(cls, error: BankError) -> "Result":
        return cls(message=f"{ERROR_MARKER} {error}", error=error)


def _deposit(amount: Decimal, participants: Sequence[Account]) -> Receipt:
    account = participants[0]
    balance = money(account.balance + amount)
    description = f"Deposit ${fmt_money(amount)}"
    receipt = Receipt(OperationKind.DEPOSIT, account.name, amount, amount,
                      ZERO, ZERO, balance)
    account._balance = balance
    record_transaction(account, description)
    return receipt


def _withdraw(amount: Decimal, participants: Sequence[Account]) -> Receipt:
    account = participants[0]
    # Reihenfolge: erst Zustand, dann Deckung
    if not account.is_active:
        raise AccountInactive(account.name)
    commission = FeePolicy.commission(amount, account.fee_percent)
    if amount > account.balance:
        raise InsufficientFunds(account.name)
    balance = money(account.balance - amount)
    description = f"Withdrawal ${fmt_money(amount)}"
    receipt = Receipt(OperationKind.WITHDRAW, account.name, amount, amount - commission,
                      commission, account.fee_percent, balance)
    account._balance = balance
    record_transaction(account, description)
    return receipt


def _transfer(amount: Decimal, participants: Sequence[Account]) -> Receipt:
    source, target = participants[0], participants[1]
    if not source.is_active:
        raise AccountInactive(source.name)
    commission = FeePolicy.commission(amount, source.fee_percent)
    if amount > source.balance:
        raise InsufficientFunds(source.name)
    # Gebühr geht an kein Konto (fee sink)
    source_balance = money(source.balance - amount)
    target_balance = money(target.balance + (amount - commission))
    description = f"Transfer ${fmt_money(amount)}"
    receipt = Receipt(OperationKind.TRANSFER, source.name, amount, amount - commission,
                      commission, source.fee_percent, source_balance, counterparty=target.name)
    source._balance = source_balance
    target._balance = target_balance
    record_transaction(source, description)
    return receipt


# genau ein Handler pro Operationsart
_HANDLERS: Dict[OperationKind, Callable[[Decimal, Sequence[Account]], Receipt]] = {
    OperationKind.DEPOSIT: _deposit,
    OperationKind.WITHDRAW: _withdraw,
    OperationKind.TRANSFER: _transfer,
}

_ARITY = {
    OperationKind.DEPOSIT: 1,
    OperationKind.WITHDRAW: 1,
    OperationKind.TRANSFER: 2,
}


def execute_operation(kind: OperationKind, amount, participants: Sequence[Account]) -> Result:
    """
    Führt eine Operation aus. Fachliche Fehler (BankError) werden als
    Fehler-Result zurückgegeben, nicht geworfen.
    """
    if len(participants) != _ARITY[kind]:
        raise ValueError(f"{kind.value} expects {_ARITY[kind]} participant(s), got {len(participants)}")
    try:
        receipt = _HANDLERS[kind](money(amount), participants)
    except BankError as e:
        logger.info("%s rejected: %s", kind.value, e)
        return Result.failure(e)
    logger.debug("%s ok: %s", kind.value, receipt)
    return Result.success(receipt.describe(), receipt)


# Ledger
class Ledger:
    """
    Registry aller Konten für die Laufzeit des Prozesses.
      - Namen sind eindeutig, Konten werden nie entfernt
      - Fabrik für Konten über die Gebührenregeln (FeePolicy)
    Wird explizit erzeugt und an den Aufrufer weitergereicht.
    """

    def __init__(self, fee_policy: Optional[FeePolicy] = None):
        self._accounts: Dict[str, Account] = {}
        self.fee_policy = fee_policy or FeePolicy()

    def __contains__(self, name: str) -> bool:
        return name in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    # Konto eröffnen
    def open_account(self, category: str, name: str, initial_balance) -> Account:
        """
        Erzeugt ein Konto eines registrierten Typs und trägt es ein.
        Duplikate werden vor der Typprüfung erkannt.
        """
        if name in self._accounts:
            raise AccountAlreadyExists(name)
        account = Account.create(name, initial_balance, category, self.fee_policy)
        self.register(name, account)
        return account

    def register(self, name: str, account: Account) -> None:
        if name in self._accounts:
            raise AccountAlreadyExists(name)
        self._accounts[name] = account
        logger.info("registered %r", account)

    def lookup(self, name: str) -> Account:
        account = self._accounts.get(name)
        if account is None:
            raise AccountNotFound(name)
        return account

    def set_active(self, name: str, active: bool) -> Account:
        account = self.lookup(name)
        target = AccountState.ACTIVE if active else AccountState.INACTIVE
        if account.state is target:
            raise AccountAlreadyInState(name, active)
        account._state = target
        logger.info("%s is now %s", name, target.value)
        return account

    def dispatch(self, name: str, kind: OperationKind, amount,
                 participants: Sequence[Account]) -> Result:
        """
        Prüft nur den Namen des Hauptkontos; weitere Beteiligte
        (Transfer-Ziel) muss der Aufrufer vorher auflösen.
        """
        if name not in self._accounts:
            return Result.failure(AccountNotFound(name))
        return execute_operation(kind, amount, participants)
