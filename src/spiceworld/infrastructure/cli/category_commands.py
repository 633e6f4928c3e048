"""CLI commands for the Category aggregate."""

from __future__ import annotations

import click

from spiceworld.application.create_category import CreateCategoryHandler
from spiceworld.application.delete_category import DeleteCategoryHandler
from spiceworld.application.dto import (
    AttributeOperationsSpec,
    AttributeSpec,
    AttributeUpdateSpec,
    CategoryDTO,
)
from spiceworld.application.manage_attributes import (
    AddAttributeValueHandler,
    CreateAttributeHandler,
    DeleteAttributeHandler,
    DeleteAttributeValueHandler,
    RenameAttributeHandler,
    RenameAttributeValueHandler,
)
from spiceworld.application.show_category import ListCategoriesHandler, ShowCategoryHandler
from spiceworld.application.update_category import UpdateCategoryHandler
from spiceworld.domain.exceptions import DomainException
from spiceworld.infrastructure.bootstrap import file_storage, listing_cache, unit_of_work
from spiceworld.infrastructure.cli.parsing import domain_error, parse_ids, read_upload


def _parse_attribute(raw: str) -> AttributeSpec:
    """Parse 'Weight=50g,100g' into an AttributeSpec."""
    name, sep, values = raw.partition("=")
    if not sep or not name.strip():
        raise click.BadParameter(
            f"Invalid attribute '{raw}'. Expected 'Name=value,value'.",
            param_hint="--attribute",
        )
    return AttributeSpec(
        name=name.strip(),
        values=tuple(v.strip() for v in values.split(",") if v.strip()),
    )


def _display_category(dto: CategoryDTO) -> None:
    click.echo(f"Category {dto.name}  (id={dto.id})")
    if dto.image_url:
        click.echo(f"Image: {dto.image_url}")
    if not dto.attributes:
        click.echo("  (no attributes)")
    for attr in dto.attributes:
        click.echo(f"  {attr.name}  (id={attr.id})")
        for value in attr.values:
            click.echo(f"    {value.value:<20} {value.id}")


@click.command("create")
@click.option("--name", required=True, help="Category name.")
@click.option(
    "--attribute",
    "attributes",
    multiple=True,
    help="Attribute as 'Name=value,value'. Repeatable.",
)
@click.option("--image", "image_path", default=None, help="Path to a category image.")
def category_create(name: str, attributes: tuple[str, ...], image_path: str | None) -> None:
    """Create a category with its attribute schema."""
    specs = [_parse_attribute(raw) for raw in attributes]
    image = read_upload(image_path) if image_path else None

    handler = CreateCategoryHandler(uow=unit_of_work(), storage=file_storage())

    try:
        dto = handler.handle(name=name, attributes=specs, image=image)
    except DomainException as exc:
        raise domain_error(exc)

    _display_category(dto)


@click.command("show")
@click.option("--id", "category_id", required=True, help="Category ID to display.")
def category_show(category_id: str) -> None:
    """Show a category and its attribute values."""
    handler = ShowCategoryHandler(uow=unit_of_work())

    try:
        dto = handler.handle(category_id)
    except DomainException as exc:
        raise domain_error(exc)

    _display_category(dto)


@click.command("list")
def category_list() -> None:
    """List all categories."""
    handler = ListCategoriesHandler(uow=unit_of_work())
    categories = handler.handle()

    if not categories:
        click.echo("No categories found.")
        return

    click.echo(f"  {'Name':<24} {'Attributes':>10}  {'ID'}")
    click.echo(f"  {'-'*74}")
    for dto in categories:
        click.echo(f"  {dto.name:<24} {len(dto.attributes):>10}  {dto.id}")


def _split_target(raw: str, option: str, expected: str) -> tuple[str, str]:
    target, sep, rest = raw.partition("=")
    if not sep or not target.strip():
        raise click.BadParameter(f"Invalid value '{raw}'. Expected '{expected}'.", param_hint=option)
    return target.strip(), rest.strip()


def _attribute_operations(
    create: tuple[str, ...],
    delete: tuple[str, ...],
    rename: tuple[str, ...],
    add_values: tuple[str, ...],
    delete_values: tuple[str, ...],
) -> AttributeOperationsSpec:
    """Fold the per-attribute options into one set of attribute operations."""
    updates: dict[str, dict] = {}

    def entry(attribute_id: str) -> dict:
        return updates.setdefault(attribute_id, {"add_values": [], "delete_value_ids": []})

    for raw in rename:
        attribute_id, name = _split_target(raw, "--rename-attribute", "AttributeId=New name")
        entry(attribute_id)["name"] = name
    for raw in add_values:
        attribute_id, values = _split_target(raw, "--add-values", "AttributeId=value,value")
        entry(attribute_id)["add_values"].extend(parse_ids(values))
    for raw in delete_values:
        attribute_id, ids = _split_target(raw, "--delete-values", "AttributeId=valueId,valueId")
        entry(attribute_id)["delete_value_ids"].extend(parse_ids(ids))

    return AttributeOperationsSpec(
        create=tuple(_parse_attribute(raw) for raw in create),
        update=tuple(
            AttributeUpdateSpec(
                id=attribute_id,
                name=fields.get("name"),
                add_values=tuple(fields["add_values"]),
                delete_value_ids=tuple(fields["delete_value_ids"]),
            )
            for attribute_id, fields in updates.items()
        ),
        delete=tuple(delete),
    )


def _echo_drafted(drafted: tuple[str, ...]) -> None:
    for product_id in drafted:
        click.echo(f"warning: product {product_id} moved to DRAFT", err=True)


@click.command("update")
@click.option("--id", "category_id", required=True, help="Category ID to update.")
@click.option("--name", default=None, help="New category name.")
@click.option("--image", "image_path", default=None, help="Path to a replacement image.")
@click.option("--add-attribute", "create", multiple=True, help="New attribute as 'Name=value,value'.")
@click.option("--delete-attribute", "delete", multiple=True, help="Attribute ID to delete.")
@click.option("--rename-attribute", "rename", multiple=True, help="'AttributeId=New name'.")
@click.option("--add-values", multiple=True, help="'AttributeId=value,value'.")
@click.option("--delete-values", multiple=True, help="'AttributeId=valueId,valueId'.")
def category_update(
    category_id: str,
    name: str | None,
    image_path: str | None,
    create: tuple[str, ...],
    delete: tuple[str, ...],
    rename: tuple[str, ...],
    add_values: tuple[str, ...],
    delete_values: tuple[str, ...],
) -> None:
    """Rename a category, replace its image or edit its attributes."""
    ops = _attribute_operations(create, delete, rename, add_values, delete_values)
    image = read_upload(image_path) if image_path else None
    if name is None and image is None and ops.is_empty:
        raise click.UsageError("Nothing to update.")

    handler = UpdateCategoryHandler(
        uow=unit_of_work(), storage=file_storage(), cache=listing_cache()
    )

    try:
        dto = handler.handle(category_id, name=name, image=image, attributes=ops)
    except DomainException as exc:
        raise domain_error(exc)

    _display_category(dto)
    _echo_drafted(dto.drafted_product_ids)


@click.command("delete")
@click.option("--id", "category_id", required=True, help="Category ID to delete.")
def category_delete(category_id: str) -> None:
    """Delete a category that has no products."""
    handler = DeleteCategoryHandler(
        uow=unit_of_work(), storage=file_storage(), cache=listing_cache()
    )

    try:
        handler.handle(category_id)
    except DomainException as exc:
        raise domain_error(exc)

    click.echo(f"Deleted category {category_id}")


@click.group("attribute")
def attribute_group() -> None:
    """Edit a single attribute or attribute value."""


@attribute_group.command("add")
@click.option("--category-id", required=True, help="Category to extend.")
@click.option("--name", required=True, help="Attribute name.")
@click.option("--values", default="", help="Comma-separated values.")
def attribute_add(category_id: str, name: str, values: str) -> None:
    """Add an attribute to a category."""
    handler = CreateAttributeHandler(uow=unit_of_work(), cache=listing_cache())
    try:
        dto = handler.handle(category_id, name, list(parse_ids(values)))
    except DomainException as exc:
        raise domain_error(exc)
    click.echo(f"Added attribute {dto.name}  (id={dto.id})")
    for value in dto.values:
        click.echo(f"  {value.value:<20} {value.id}")


@attribute_group.command("rename")
@click.option("--id", "attribute_id", required=True, help="Attribute ID.")
@click.option("--name", required=True, help="New attribute name.")
def attribute_rename(attribute_id: str, name: str) -> None:
    """Rename an attribute."""
    handler = RenameAttributeHandler(uow=unit_of_work(), cache=listing_cache())
    try:
        dto = handler.handle(attribute_id, name)
    except DomainException as exc:
        raise domain_error(exc)
    click.echo(f"Renamed attribute {dto.id} to {dto.name}")


@attribute_group.command("delete")
@click.option("--id", "attribute_id", required=True, help="Attribute ID.")
def attribute_delete(attribute_id: str) -> None:
    """Delete an attribute and its values."""
    handler = DeleteAttributeHandler(uow=unit_of_work(), cache=listing_cache())
    try:
        drafted = handler.handle(attribute_id)
    except DomainException as exc:
        raise domain_error(exc)
    click.echo(f"Deleted attribute {attribute_id}")
    _echo_drafted(drafted)


@attribute_group.command("add-value")
@click.option("--attribute-id", required=True, help="Attribute to extend.")
@click.option("--value", required=True, help="New value.")
def attribute_add_value(attribute_id: str, value: str) -> None:
    """Add a value to an attribute."""
    handler = AddAttributeValueHandler(uow=unit_of_work(), cache=listing_cache())
    try:
        dto = handler.handle(attribute_id, value)
    except DomainException as exc:
        raise domain_error(exc)
    click.echo(f"Added value {dto.value}  (id={dto.id})")


@attribute_group.command("rename-value")
@click.option("--id", "value_id", required=True, help="Attribute value ID.")
@click.option("--value", required=True, help="New value.")
def attribute_rename_value(value_id: str, value: str) -> None:
    """Rename an attribute value."""
    handler = RenameAttributeValueHandler(uow=unit_of_work(), cache=listing_cache())
    try:
        dto = handler.handle(value_id, value)
    except DomainException as exc:
        raise domain_error(exc)
    click.echo(f"Renamed value {dto.id} to {dto.value}")


@attribute_group.command("delete-value")
@click.option("--id", "value_id", required=True, help="Attribute value ID.")
def attribute_delete_value(value_id: str) -> None:
    """Delete an attribute value, stripping it from variants."""
    handler = DeleteAttributeValueHandler(uow=unit_of_work(), cache=listing_cache())
    try:
        drafted = handler.handle(value_id)
    except DomainException as exc:
        raise domain_error(exc)
    click.echo(f"Deleted value {value_id}")
    _echo_drafted(drafted)
