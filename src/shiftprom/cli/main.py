"""shiftprom CLI - burn, dump and clear a parallel EEPROM through the GPIO bridge."""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

import click

from shiftprom.exceptions import ShiftpromError
from shiftprom.utils.logging import setup_logging

if TYPE_CHECKING:
    from shiftprom.core.programmer import Programmer


def _parse_int(value: str, label: str) -> int:
    """Parse a hex or decimal integer, raising click.BadParameter on error."""
    try:
        return int(value, 0)
    except ValueError as exc:
        raise click.BadParameter(f"Invalid {label}: {value!r} (use hex like 0x7F or decimal)") from exc


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--port", "-p", default="/dev/ttyUSB0", help="Bridge serial port (e.g. /dev/ttyUSB0 or COM4)")
@click.option("--baud", type=int, default=115200, help="Baudrate (default: 115200)")
@click.option("--timeout", type=float, default=2.0, help="Per-request timeout in seconds")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON programmer configuration (pinout, capacity, timing)")
@click.option("--poll-limit", type=click.IntRange(min=1), default=None,
              help="Fail a write after N data-polling reads instead of waiting forever")
@click.option("--simulate", is_flag=True, help="Use the in-memory EEPROM simulator")
@click.pass_context
def cli(
    ctx: click.Context, debug: bool, json_output: bool, port: str, baud: int,
    timeout: float, config_path: str | None, poll_limit: int | None, simulate: bool,
) -> None:
    """shiftprom - parallel EEPROM programmer over a microcontroller bridge."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        json_output=json_output,
        port=port,
        baud=baud,
        timeout=timeout,
        config_path=config_path,
        poll_limit=poll_limit,
        simulate=simulate,
    )
    setup_logging(level="DEBUG" if debug else "INFO", json_output=json_output)


@contextmanager
def _programmer(ctx: click.Context) -> Iterator[Programmer]:
    """Open a Programmer from CLI context, reporting failures as ``[Kind]: message``."""
    from shiftprom.core.programmer import Programmer
    from shiftprom.models.config import ProgrammerConfig
    from shiftprom.transport import SerialConfig, SerialPinTransport, SimulatedPinTransport

    obj = ctx.obj
    try:
        config = ProgrammerConfig.load(obj["config_path"]) if obj["config_path"] else ProgrammerConfig()
        if obj["poll_limit"] is not None:
            config = config.model_copy(update={"poll_limit": obj["poll_limit"]})

        if obj["simulate"]:
            transport = SimulatedPinTransport(pins=config.pins, capacity=config.capacity)
        else:
            transport = SerialPinTransport(
                SerialConfig(port=obj["port"], baud_rate=obj["baud"], timeout=obj["timeout"])
            )

        with Programmer(transport, config) as prog:
            yield prog
    except ShiftpromError as exc:
        click.echo(f"[{exc.kind}]: {exc}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("payload", required=False)
@click.option("--file", "file_path", type=click.Path(exists=True, dir_okay=False),
              help="Burn a raw binary image instead of a built-in payload")
@click.option("--verify", is_flag=True, help="Read back and compare after writing")
@click.pass_context
def burn(ctx: click.Context, payload: str | None, file_path: str | None, verify: bool) -> None:
    """Write a payload from address 0 and dump the written region."""
    from shiftprom.core.payloads import FilePayload, get_payload

    if bool(payload) == bool(file_path):
        raise click.UsageError("Give exactly one of PAYLOAD or --file")

    with _programmer(ctx) as prog:
        image = FilePayload.from_path(file_path) if file_path else get_payload(payload)
        report = prog.run(image)
        mismatches = prog.verify(image.data) if verify else []

        if ctx.obj["json_output"]:
            click.echo(json.dumps({
                "payload": image.name,
                "size": len(image.data),
                "mismatches": [m.model_dump() for m in mismatches],
            }, indent=2))
        else:
            click.echo(f"Wrote {len(image.data)} bytes ({image.name})")
            click.echo(report, nl=False)
            for m in mismatches:
                click.echo(f"  MISMATCH 0x{m.address:03X}: expected {m.expected:02X}, read {m.actual:02X}")
            if verify and not mismatches:
                click.echo("Verify OK")
        if mismatches:
            sys.exit(2)


@cli.command()
@click.option("--lines", type=int, default=16, help="Rows of 16 bytes to print")
@click.pass_context
def dump(ctx: click.Context, lines: int) -> None:
    """Print the device contents as a hex grid."""
    with _programmer(ctx) as prog:
        if ctx.obj["json_output"]:
            click.echo(json.dumps(prog.snapshot(lines).model_dump(), indent=2))
        else:
            click.echo(prog.dump(lines), nl=False)


@cli.command()
@click.option("--bytes", "count", type=int, default=256, help="Bytes to reset from address 0")
@click.pass_context
def clear(ctx: click.Context, count: int) -> None:
    """Reset the start of the device to the erased value."""
    with _programmer(ctx) as prog:
        prog.clear(count)
        cleared = min(max(count, 0), prog.config.capacity)
        click.echo(f"Cleared {cleared} bytes to 0x{prog.config.default_byte:02X}.")


@cli.command()
@click.argument("address")
@click.pass_context
def read(ctx: click.Context, address: str) -> None:
    """Read one byte."""
    addr = _parse_int(address, "address")
    with _programmer(ctx) as prog:
        value = prog.read_byte(addr)
        if ctx.obj["json_output"]:
            click.echo(json.dumps({"address": addr, "value": value}))
        else:
            click.echo(f"0x{addr:03X}: 0x{value:02X}")


@cli.command()
@click.argument("address")
@click.argument("value")
@click.pass_context
def write(ctx: click.Context, address: str, value: str) -> None:
    """Write one byte (hex or decimal)."""
    addr = _parse_int(address, "address")
    byte = _parse_int(value, "value")
    with _programmer(ctx) as prog:
        prog.write_byte(addr, byte)
        click.echo(f"Written 0x{byte:02X} to address 0x{addr:03X}.")


@cli.command()
@click.pass_context
def ports(ctx: click.Context) -> None:
    """List serial ports that could host the bridge."""
    from shiftprom.transport.serial_link import scan_ports

    found = scan_ports()
    if ctx.obj["json_output"]:
        click.echo(json.dumps(found))
    elif not found:
        click.echo("No serial ports found.")
    else:
        for device in found:
            click.echo(f"  {device}")


if __name__ == "__main__":
    cli()
