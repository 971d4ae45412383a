"""CLI commands for rental orders."""

from __future__ import annotations

import click

from rentals.application.dto import LineItemSpec, OrderDTO, ReturnOutcome, TimelineEntryDTO
from rentals.application.load_order import LoadOrderForEditHandler
from rentals.application.order_timeline import OrderTimelineHandler
from rentals.application.process_return import (
    ProcessReturnHandler,
    RetryMissingBatchHandler,
)
from rentals.application.show_order import ShowOrderHandler
from rentals.application.start_rental import StartRentalHandler
from rentals.application.submit_order import SubmitOrderHandler
from rentals.application.update_order_status import UpdateOrderStatusHandler
from rentals.domain.exceptions import DomainException
from rentals.domain.model.draft import OrderDraft
from rentals.domain.model.line_item import LineItem
from rentals.domain.model.order import OrderStatus
from rentals.domain.model.value_objects import Money, Quantity
from rentals.domain.service.return_planner import DamageReport, ReturnRequest
from rentals.infrastructure import bootstrap
from rentals.infrastructure.config import Settings


# --- Parsing ------------------------------------------------------------------


def _parse_items(raw: str) -> list[LineItemSpec]:
    """Parse 'Chair:2:100:photos/chair.jpg,Table:1:200:photos/t.jpg'."""
    specs: list[LineItemSpec] = []
    for entry in raw.split(","):
        entry = entry.strip()
        parts = entry.split(":", 3)
        if len(parts) < 3:
            raise click.BadParameter(
                f"Invalid item format '{entry}'. Expected 'Name:Qty:PricePerDay[:Photo]'."
            )
        name, qty_str, price = parts[0].strip(), parts[1].strip(), parts[2].strip()
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(f"Invalid quantity '{qty_str}' for product '{name}'.")
        photo = parts[3].strip() if len(parts) == 4 else ""
        specs.append(LineItemSpec(name, qty, price, photo))
    return specs


def _parse_pairs(raw: str | None, option: str) -> dict[str, str | None]:
    """Parse 'id1:value,id2' into {id1: 'value', id2: None}."""
    result: dict[str, str | None] = {}
    if not raw:
        return result
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        item_id, _, value = entry.partition(":")
        if not item_id.strip():
            raise click.BadParameter(f"Missing item id in {option} entry '{entry}'.")
        result[item_id.strip()] = value.strip() or None
    return result


def _parse_ids(raw: str | None) -> set[str]:
    if not raw:
        return set()
    return {part.strip() for part in raw.split(",") if part.strip()}


def _to_line_item(spec: LineItemSpec) -> LineItem:
    return LineItem(
        photo_url=spec.photo_url,
        product_name=spec.product_name,
        quantity=Quantity(spec.quantity),
        price_per_day=Money.of(spec.price_per_day),
    )


def _fill_items(draft: OrderDraft, specs: list[LineItemSpec]) -> None:
    # add_item prepends; feed in reverse so the draft keeps the typed order
    for spec in reversed(specs):
        draft.add_item(_to_line_item(spec))


def _build_return_request(
    items: str | None,
    partial: str | None,
    missing: str | None,
    damage: str | None,
    unreturn: str | None,
    late_fee: str | None,
) -> ReturnRequest:
    request = ReturnRequest(
        selected=_parse_ids(items),
        deselected=_parse_ids(unreturn),
        late_fee=Money.of(late_fee) if late_fee is not None else None,
    )
    for item_id, qty in _parse_pairs(partial, "--partial").items():
        try:
            request.partial[item_id] = int(qty or "")
        except ValueError:
            raise click.BadParameter(f"Invalid quantity '{qty}' for item '{item_id}'.")
    request.missing.update(_parse_pairs(missing, "--missing"))
    for item_id, value in _parse_pairs(damage, "--damage").items():
        cost, _, description = (value or "").partition(":")
        request.damage[item_id] = DamageReport(
            cost=Money.of(cost) if cost else None,
            description=description or None,
        )
    # Items named in --partial or --missing are part of the return too.
    request.selected |= set(request.partial) | set(request.missing)
    return request


# --- Display ------------------------------------------------------------------


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.id}  (status={dto.status})")
    click.echo(f"Invoice:  {dto.invoice_number}")
    click.echo(f"Customer: {dto.customer_name or dto.customer_id}")
    click.echo(f"Period:   {dto.start_datetime} -> {dto.end_datetime}")
    if dto.is_late:
        click.echo(f"LATE by {dto.days_overdue} day(s)")
    click.echo()
    click.echo(
        f"  {'Id':<12} {'Product':<20} {'Qty':>4} {'Back':>5} {'Price/day':>11} "
        f"{'Days':>5} {'Total':>11}  Status"
    )
    click.echo(f"  {'-'*86}")
    for item in dto.items:
        click.echo(
            f"  {(item.id or '')[:12]:<12} {item.product_name[:20]:<20} {item.quantity:>4} "
            f"{item.returned_quantity:>5} {item.price_per_day:>11} {item.days:>5} "
            f"{item.line_total:>11}  {item.return_status}"
        )
        if item.missing_note:
            click.echo(f"  {'':<12} note: {item.missing_note}")
    click.echo(f"  {'-'*86}")
    click.echo(f"  {'Subtotal':<27} {dto.subtotal:>20}")
    click.echo(f"  {'Tax':<27} {dto.tax_amount:>20}")
    if dto.late_fee != str(Money.zero()):
        click.echo(f"  {'Late fee':<27} {dto.late_fee:>20}")
    if dto.damage_total != str(Money.zero()):
        click.echo(f"  {'Damage':<27} {dto.damage_total:>20}")
    click.echo(f"  {'Order Total':<27} {dto.total_amount:>20}")
    if dto.security_deposit:
        click.echo(f"  {'Security deposit':<27} {dto.security_deposit:>20}")


def _display_timeline(entries: list[TimelineEntryDTO]) -> None:
    for entry in entries:
        line = f"{entry.created_at}  {entry.action:<18} {entry.user_id or '-'}"
        if entry.item_id:
            line += f"  item={entry.item_id}"
        if entry.previous_status or entry.new_status:
            line += f"  {entry.previous_status} -> {entry.new_status}"
        if entry.notes:
            line += f"  ({entry.notes})"
        click.echo(line)


def _report_outcome(outcome: ReturnOutcome) -> None:
    click.echo(
        f"Order {outcome.order_id}: {outcome.applied} item(s) updated, "
        f"{outcome.missing_applied} missing remainder(s) recorded."
    )
    if outcome.degraded:
        click.secho(f"Warning: {outcome.warning}", fg="yellow", err=True)


# --- Commands -----------------------------------------------------------------


@click.command("create")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--name", default=None, help="Customer name snapshot.")
@click.option("--phone", default=None, help="Customer phone snapshot.")
@click.option("--start", required=True, help="Start date-time (ISO 8601).")
@click.option("--end", required=True, help="End date-time (ISO 8601).")
@click.option("--items", required=True, help="Items as 'Name:Qty:PricePerDay:Photo,...'.")
@click.option("--invoice", default="", help="Invoice number (generated when omitted).")
@click.option("--deposit", default=None, help="Security deposit amount.")
@click.option("--user", "user_id", required=True, help="Acting user ID.")
@click.pass_obj
def order_create(
    config: Settings,
    customer: str,
    name: str | None,
    phone: str | None,
    start: str,
    end: str,
    items: str,
    invoice: str,
    deposit: str | None,
    user_id: str,
) -> None:
    """Create a new rental order."""
    specs = _parse_items(items)

    handler = SubmitOrderHandler(
        order_repo=bootstrap.order_repository(config),
        resolver=bootstrap.tax_profile_resolver(config),
        default_tax_rate=config.default_tax_rate,
        timeout=config.call_timeout,
    )

    try:
        draft = OrderDraft()
        draft.set_customer(customer, name, phone)
        draft.set_start_date(start)
        draft.set_end_date(end)
        draft.set_invoice_number(invoice)
        draft.set_security_deposit(Money.of(deposit) if deposit else None)
        _fill_items(draft, specs)
        dto = handler.handle(draft, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.id} created.")
    _display_order(dto)


@click.command("edit")
@click.option("--id", "order_id", required=True, help="Order ID to edit.")
@click.option("--start", default=None, help="New start date-time (ISO 8601).")
@click.option("--end", default=None, help="New end date-time (ISO 8601).")
@click.option("--items", default=None, help="Replacement items as 'Name:Qty:PricePerDay:Photo,...'.")
@click.option("--invoice", default=None, help="New invoice number.")
@click.option("--deposit", default=None, help="New security deposit amount.")
@click.option("--user", "user_id", required=True, help="Acting user ID.")
@click.pass_obj
def order_edit(
    config: Settings,
    order_id: str,
    start: str | None,
    end: str | None,
    items: str | None,
    invoice: str | None,
    deposit: str | None,
    user_id: str,
) -> None:
    """Edit an existing order; given items replace the current ones."""
    specs = _parse_items(items) if items else None
    order_repo = bootstrap.order_repository(config)

    loader = LoadOrderForEditHandler(order_repo, timeout=config.call_timeout)
    handler = SubmitOrderHandler(
        order_repo=order_repo,
        resolver=bootstrap.tax_profile_resolver(config),
        default_tax_rate=config.default_tax_rate,
        timeout=config.call_timeout,
    )

    try:
        draft = OrderDraft()
        loader.handle(draft, order_id)
        if start:
            draft.set_start_date(start)
        if end:
            draft.set_end_date(end)
        if invoice is not None:
            draft.set_invoice_number(invoice)
        if deposit is not None:
            draft.set_security_deposit(Money.of(deposit))
        if specs is not None:
            for _ in range(len(draft.items)):
                draft.remove_item(0)
            _fill_items(draft, specs)
        dto = handler.handle(draft, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.id} updated.")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@click.pass_obj
def order_show(config: Settings, order_id: str) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=bootstrap.order_repository(config))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("return")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--user", "user_id", required=True, help="Acting user ID.")
@click.option("--items", default=None, help="Item IDs coming back in full, comma separated.")
@click.option("--partial", default=None, help="Partial returns as 'ItemId:Qty,...'.")
@click.option("--missing", default=None, help="Missing items as 'ItemId[:note],...'.")
@click.option("--damage", default=None, help="Damage as 'ItemId:Cost[:description],...'.")
@click.option("--unreturn", default=None, help="Item IDs whose return is reversed.")
@click.option("--late-fee", default=None, help="Late fee for the order.")
@click.pass_obj
def order_return(
    config: Settings,
    order_id: str,
    user_id: str,
    items: str | None,
    partial: str | None,
    missing: str | None,
    damage: str | None,
    unreturn: str | None,
    late_fee: str | None,
) -> None:
    """Process returned, partially returned and missing items."""
    handler = ProcessReturnHandler(
        bootstrap.order_repository(config), timeout=config.call_timeout
    )

    try:
        request = _build_return_request(items, partial, missing, damage, unreturn, late_fee)
        outcome = handler.handle(order_id, request, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _report_outcome(outcome)


@click.command("retry-missing")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--user", "user_id", required=True, help="Acting user ID.")
@click.pass_obj
def order_retry_missing(config: Settings, order_id: str, user_id: str) -> None:
    """Record missing remainders a previous return could not save."""
    handler = RetryMissingBatchHandler(
        bootstrap.order_repository(config), timeout=config.call_timeout
    )

    try:
        outcome = handler.handle(order_id, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _report_outcome(outcome)


@click.command("start")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--user", "user_id", required=True, help="Acting user ID.")
@click.pass_obj
def order_start(config: Settings, order_id: str, user_id: str) -> None:
    """Hand a scheduled order to the customer."""
    handler = StartRentalHandler(bootstrap.order_repository(config), timeout=config.call_timeout)

    try:
        dto = handler.handle(order_id, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.id} started.")
    _display_order(dto)


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option(
    "--status",
    required=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="New order status.",
)
@click.option("--late-fee", default=None, help="Replace the late fee in the same step.")
@click.option("--user", "user_id", required=True, help="Acting user ID.")
@click.pass_obj
def order_status(
    config: Settings,
    order_id: str,
    status: str,
    late_fee: str | None,
    user_id: str,
) -> None:
    """Set an order's status by hand (flag, cancel, ...)."""
    handler = UpdateOrderStatusHandler(
        bootstrap.order_repository(config), timeout=config.call_timeout
    )

    try:
        fee = Money.of(late_fee) if late_fee is not None else None
        dto = handler.handle(order_id, status, user_id, late_fee=fee)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.id} is now {dto.status}.")
    _display_order(dto)


@click.command("timeline")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.pass_obj
def order_timeline(config: Settings, order_id: str) -> None:
    """Show the history of an order, oldest first."""
    handler = OrderTimelineHandler(bootstrap.order_repository(config), timeout=config.call_timeout)

    try:
        entries = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_timeline(entries)
