"""Helpers shared by the CLI command modules.

Structured options use ``key=value`` pairs separated by ``;``, e.g.
``--variant "price=3.99;stock=10;sku=PAP-50;values=<id>,<id>"``.
"""

from __future__ import annotations

from pathlib import Path

import click

from spiceworld.domain.exceptions import DomainException, ProductValidationError
from spiceworld.domain.model.operations import UploadFile
from spiceworld.domain.model.value_objects import Money

_TRUE = {"1", "true", "yes", "y"}
_FALSE = {"0", "false", "no", "n"}


def parse_pairs(raw: str, allowed: set[str], option: str) -> dict[str, str]:
    """Parse 'a=1;b=2;flag' into {'a': '1', 'b': '2', 'flag': 'true'}."""
    result: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition("=")
        key = key.strip().lower()
        if key not in allowed:
            raise click.BadParameter(
                f"Unknown key '{key}'. Expected one of: {', '.join(sorted(allowed))}.",
                param_hint=option,
            )
        result[key] = value.strip() if sep else "true"
    return result


def parse_int(raw: str, key: str, option: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise click.BadParameter(f"Invalid {key} '{raw}'.", param_hint=option)


def parse_bool(raw: str, key: str, option: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise click.BadParameter(f"Invalid {key} '{raw}', expected true or false.", param_hint=option)


def parse_money(raw: str, currency: str) -> Money:
    try:
        return Money.of(raw, currency)
    except DomainException as exc:
        raise click.BadParameter(str(exc), param_hint="price")


def parse_ids(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def read_upload(path: str) -> UploadFile:
    file = Path(path)
    try:
        content = file.read_bytes()
    except OSError as exc:
        raise click.BadParameter(f"Cannot read '{path}': {exc.strerror}")
    return UploadFile(filename=file.name, content=content)


def domain_error(exc: DomainException) -> click.ClickException:
    """Turn a domain error into a ClickException, listing every sub-error."""
    if isinstance(exc, ProductValidationError) and exc.sub_errors:
        lines = [f"{exc.message} [{exc.code}]"]
        lines.extend(f"  - {issue.code}: {issue.message}" for issue in exc.sub_errors)
        return click.ClickException("\n".join(lines))
    return click.ClickException(str(exc))


def echo_warnings(warnings: list[dict], indent: str = "") -> None:
    for warning in warnings:
        click.echo(f"{indent}warning {warning['code']}: {warning['message']}", err=True)
