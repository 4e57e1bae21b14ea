"""Main CLI entry point for OpenSEPA."""

import json
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from opensepa import __version__
from opensepa.conversion import CccConverter
from opensepa.exceptions import OpenSepaError
from opensepa.sepa.xml import CreditTransferGenerator, DirectDebitGenerator, SepaParser
from opensepa.utils.config import get_settings
from opensepa.utils.logging import configure_from_settings, correlation_scope, get_logger
from opensepa.validation import BicValidator, CreditCardValidator, IbanValidator

app = typer.Typer(
    name="opensepa",
    help="🏦 SEPA payment files and banking identifier validation",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)
console = Console()
logger = get_logger(__name__)


class MessageKind(str, Enum):
    CREDIT_TRANSFER = "credit-transfer"
    DIRECT_DEBIT = "direct-debit"


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]OpenSEPA[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """OpenSEPA command line."""
    configure_from_settings(get_settings())


def _properties_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="bold")
    for name, value in rows:
        table.add_row(name, escape(value))
    return table


# ============================================================================
# Identifier commands
# ============================================================================


@app.command()
def iban(iban: str = typer.Argument(..., help="IBAN to validate")) -> None:
    """✅ Validate an IBAN and show its parts.

    Examples:
        opensepa iban "ES91 2100 0418 4502 0005 1332"
    """
    validator = IbanValidator()
    is_valid = validator.is_valid(iban)

    console.print(
        _properties_table(
            "IBAN Validation",
            [
                ("IBAN", iban),
                ("Normalized", validator.normalize(iban)),
                ("Formatted", validator.format(iban)),
                ("Country Code", validator.get_country_code(iban)),
                ("Country", validator.get_country_name(iban) or "-"),
                ("Check Digits", validator.get_check_digits(iban)),
                ("BBAN", validator.get_bban(iban)),
                ("National Format", "Yes" if validator.matches_national_format(iban) else "No"),
                ("Valid", "Yes" if is_valid else "No"),
            ],
        )
    )

    if not is_valid:
        console.print("[red]✗ IBAN is invalid[/]")
        raise typer.Exit(1)
    console.print("[green]✓ IBAN is valid[/]")


@app.command()
def bic(bic: str = typer.Argument(..., help="BIC/SWIFT code to validate")) -> None:
    """✅ Validate a BIC and show bank, country, location and branch codes."""
    validator = BicValidator()
    is_valid = validator.is_valid(bic)

    rows = [("BIC", bic), ("Valid", "Yes" if is_valid else "No")]
    if is_valid:
        rows += [
            ("Formatted", validator.format(bic)),
            ("Bank Code", validator.get_bank_code(bic)),
            ("Country Code", validator.get_country_code(bic)),
            ("Location Code", validator.get_location_code(bic)),
            ("Branch Code", validator.get_branch_code(bic) or "-"),
        ]
    console.print(_properties_table("BIC Validation", rows))

    if not is_valid:
        console.print("[red]✗ BIC is invalid[/]")
        raise typer.Exit(1)
    console.print("[green]✓ BIC is valid[/]")


@app.command()
def card(card_number: str = typer.Argument(..., help="Card number to validate")) -> None:
    """💳 Validate a card number (Luhn) and detect its brand.

    Only the masked number is printed.
    """
    validator = CreditCardValidator()
    normalized = validator.normalize(card_number)
    is_valid = validator.is_valid(card_number)

    console.print(
        _properties_table(
            "Credit Card Validation",
            [
                ("Card Number (masked)", validator.mask(card_number)),
                ("Valid", "✓ Yes" if is_valid else "✗ No"),
                ("Card Type", validator.get_card_type(card_number).label),
                ("BIN", validator.get_bin(card_number)),
                ("Last 4 Digits", validator.get_last_four(card_number)),
                ("Length", f"{len(normalized)} digits"),
            ],
        )
    )

    if not is_valid:
        console.print("[yellow]⚠ The card number is not valid according to the Luhn algorithm.[/]")
        raise typer.Exit(1)
    console.print("[green]✓ The card number is valid.[/]")


@app.command("ccc-to-iban")
def ccc_to_iban(ccc: str = typer.Argument(..., help="20-digit Spanish CCC")) -> None:
    """🔁 Convert a Spanish CCC to its IBAN."""
    converter = CccConverter()
    try:
        result = converter.ccc_to_iban(ccc)
    except OpenSepaError as e:
        console.print(f"[red]✗ {escape(e.message)}[/]")
        raise typer.Exit(1)

    console.print(
        _properties_table(
            "CCC Conversion",
            [
                ("CCC", ccc),
                ("IBAN", result),
                ("Bank Code", converter.get_bank_code(ccc)),
                ("Branch Code", converter.get_branch_code(ccc)),
                ("Control Digits", converter.get_check_digits(ccc)),
                ("Account Number", converter.get_account_number(ccc)),
                ("Control Digits Valid", "Yes" if converter.is_valid_ccc(ccc) else "No"),
            ],
        )
    )
    console.print("[green]✓ CCC converted to IBAN successfully[/]")


# ============================================================================
# SEPA file commands
# ============================================================================


@app.command()
def generate(
    payload: Path = typer.Argument(..., help="JSON payment payload", exists=True, dir_okay=False),
    kind: MessageKind = typer.Option(
        MessageKind.CREDIT_TRANSFER, "--type", "-t", help="Message to generate"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write XML to this file"),
) -> None:
    """📝 Generate a pain.001 or pain.008 file from a JSON payload.

    Examples:
        opensepa generate payments.json --output payments.xml
        opensepa generate collections.json --type direct-debit
    """
    try:
        data = json.loads(payload.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ Invalid JSON: {escape(str(e))}[/]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[red]✗ The payload must be a JSON object[/]")
        raise typer.Exit(1)

    if kind is MessageKind.DIRECT_DEBIT:
        generator: CreditTransferGenerator | DirectDebitGenerator = DirectDebitGenerator()
    else:
        generator = CreditTransferGenerator()

    with correlation_scope():
        logger.info("cli_generate_started", payload=str(payload), message_type=kind.value)
        result = generator.try_generate_from_dict(data)

    if not result.ok:
        console.print(f"[red]✗ {escape(result.error.message)}[/]")
        raise typer.Exit(1)

    xml = result.unwrap()
    if output is None:
        typer.echo(xml)
        return

    output.write_text(xml, encoding="utf-8")
    console.print(f"[green]✓ Written {escape(str(output))}[/]")


@app.command()
def parse(
    document: Path = typer.Argument(..., help="SEPA XML file", exists=True, dir_okay=False),
    kind: MessageKind = typer.Option(
        MessageKind.CREDIT_TRANSFER, "--type", "-t", help="Message to parse"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the parsed message as JSON"),
) -> None:
    """🔍 Summarize a pain.001 or pain.008 file."""
    parser = SepaParser()
    content = document.read_bytes()
    try:
        if kind is MessageKind.DIRECT_DEBIT:
            message = parser.parse_direct_debit(content)
        else:
            message = parser.parse_credit_transfer(content)
    except OpenSepaError as e:
        console.print(f"[red]✗ {escape(e.message)}[/]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(message.to_dict(), indent=2, default=str))
        return

    console.print(
        _properties_table(
            "SEPA Message",
            [
                ("Message ID", message.message_id or "-"),
                ("Created", message.creation_date or "-"),
                ("Initiating Party", message.initiating_party_name or "-"),
                ("Payment Info ID", message.payment_info_id or "-"),
                ("Transactions", str(len(message.transactions))),
                ("Control Sum", str(message.control_sum) if message.control_sum is not None else "-"),
            ],
        )
    )

    table = Table(title="Transactions", show_header=True)
    table.add_column("End-to-End ID", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("IBAN")
    table.add_column("Name")
    for transaction in message.transactions:
        amount = "-" if transaction.amount is None else f"{transaction.amount} {transaction.currency or ''}"
        table.add_row(
            escape(transaction.end_to_end_id or "-"),
            amount.strip(),
            escape(transaction.iban or "-"),
            escape(transaction.name or "-"),
        )
    console.print(table)


if __name__ == "__main__":
    app()
