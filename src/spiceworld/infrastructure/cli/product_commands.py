"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from spiceworld.application.bulk_update_products import BulkUpdateProductsHandler
from spiceworld.application.create_product import CreateProductHandler
from spiceworld.application.delete_product import DeleteProductHandler
from spiceworld.application.dto import ProductDTO
from spiceworld.application.list_products import CountProductsHandler, ListProductsHandler
from spiceworld.application.set_stock import SetStockHandler
from spiceworld.application.show_product import ShowProductHandler
from spiceworld.application.update_product import UpdateProductHandler
from spiceworld.domain.exceptions import DomainException
from spiceworld.domain.model.listing import SORT_FIELDS, ListingQuery
from spiceworld.domain.model.operations import (
    ImageCreate,
    ImageOperations,
    ImageUpdate,
    UploadFile,
    VariantCreate,
    VariantOperations,
    VariantUpdate,
)
from spiceworld.domain.model.product import ProductStatus
from spiceworld.infrastructure.bootstrap import (
    file_storage,
    listing_cache,
    settings,
    unit_of_work,
)
from spiceworld.infrastructure.cli.parsing import (
    domain_error,
    echo_warnings,
    parse_bool,
    parse_ids,
    parse_int,
    parse_money,
    parse_pairs,
    read_upload,
)

_STATUS = click.Choice([s.value for s in ProductStatus], case_sensitive=False)
_VARIANT_KEYS = {"price", "stock", "sku", "values"}
_IMAGE_KEYS = {"file", "alt", "thumbnail"}


def _status(raw: str | None) -> ProductStatus | None:
    return ProductStatus(raw.upper()) if raw else None


def _parse_variant_create(raw: str) -> VariantCreate:
    """Parse 'price=3.99;stock=10;sku=X;values=<id>,<id>'."""
    pairs = parse_pairs(raw, _VARIANT_KEYS, "--variant")
    if "price" not in pairs:
        raise click.BadParameter(f"Variant '{raw}' needs a price.", param_hint="--variant")
    try:
        return VariantCreate(
            price=parse_money(pairs["price"], settings().currency),
            stock=parse_int(pairs.get("stock", "0"), "stock", "--variant"),
            sku=pairs.get("sku") or None,
            attribute_value_ids=parse_ids(pairs.get("values", "")),
        )
    except DomainException as exc:
        raise click.BadParameter(str(exc), param_hint="--variant")


def _parse_variant_update(raw: str) -> VariantUpdate:
    """Parse 'id=<id>;price=4.50;stock=3;sku=X;values=<id>,<id>'."""
    pairs = parse_pairs(raw, _VARIANT_KEYS | {"id"}, "--update-variant")
    if "id" not in pairs:
        raise click.BadParameter(f"Variant update '{raw}' needs an id.", param_hint="--update-variant")
    try:
        return VariantUpdate(
            id=pairs["id"],
            price=parse_money(pairs["price"], settings().currency) if "price" in pairs else None,
            stock=parse_int(pairs["stock"], "stock", "--update-variant") if "stock" in pairs else None,
            sku=pairs.get("sku"),
            attribute_value_ids=parse_ids(pairs["values"]) if "values" in pairs else None,
        )
    except DomainException as exc:
        raise click.BadParameter(str(exc), param_hint="--update-variant")


def _collect_image_creates(
    raw_images: tuple[str, ...], files: list[UploadFile]
) -> list[ImageCreate]:
    """Parse 'file=path;alt=text;thumbnail', appending each file to ``files``."""
    creates: list[ImageCreate] = []
    for raw in raw_images:
        pairs = parse_pairs(raw, _IMAGE_KEYS, "--image")
        if "file" not in pairs:
            raise click.BadParameter(f"Image '{raw}' needs a file.", param_hint="--image")
        files.append(read_upload(pairs["file"]))
        creates.append(
            ImageCreate(
                file_index=len(files) - 1,
                alt_text=pairs.get("alt"),
                is_thumbnail=(
                    parse_bool(pairs["thumbnail"], "thumbnail", "--image")
                    if "thumbnail" in pairs
                    else None
                ),
            )
        )
    return creates


def _collect_image_updates(
    raw_updates: tuple[str, ...], files: list[UploadFile]
) -> list[ImageUpdate]:
    """Parse 'id=<id>;file=path;alt=text;thumbnail=false'."""
    updates: list[ImageUpdate] = []
    for raw in raw_updates:
        pairs = parse_pairs(raw, _IMAGE_KEYS | {"id"}, "--update-image")
        if "id" not in pairs:
            raise click.BadParameter(f"Image update '{raw}' needs an id.", param_hint="--update-image")
        file_index = None
        if "file" in pairs:
            files.append(read_upload(pairs["file"]))
            file_index = len(files) - 1
        updates.append(
            ImageUpdate(
                id=pairs["id"],
                file_index=file_index,
                alt_text=pairs.get("alt"),
                is_thumbnail=(
                    parse_bool(pairs["thumbnail"], "thumbnail", "--update-image")
                    if "thumbnail" in pairs
                    else None
                ),
            )
        )
    return updates


def _display_product(dto: ProductDTO) -> None:
    click.echo(f"Product {dto.name}  (status={dto.status}, version={dto.version})")
    click.echo(f"ID:       {dto.id}")
    click.echo(f"Slug:     {dto.slug}")
    click.echo(f"Category: {dto.category_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.description:
        click.echo(f"About:    {dto.description}")
    click.echo()
    click.echo(f"  {'Variant':<36} {'SKU':<14} {'Price':>12} {'Stock':>6}")
    click.echo(f"  {'-'*71}")
    for v in dto.variants:
        click.echo(f"  {v.id:<36} {v.sku or '-':<14} {v.price:>12} {v.stock:>6}")
        if v.attribute_value_ids:
            click.echo(f"    values: {', '.join(v.attribute_value_ids)}")
    if dto.images:
        click.echo()
        for img in dto.images:
            marker = "*" if img.is_thumbnail else " "
            click.echo(f"  {marker} {img.id}  {img.url}  {img.alt_text or ''}")
    echo_warnings(dto.warnings)


@click.command("create")
@click.option("--name", required=True, help="Product name.")
@click.option("--category", "category_id", required=True, help="Category ID.")
@click.option("--description", default=None, help="Product description.")
@click.option("--status", default=None, type=_STATUS, help="Requested status (default DRAFT).")
@click.option("--variant", "variants", multiple=True, help="'price=..;stock=..;sku=..;values=id,id'. Repeatable.")
@click.option("--image", "images", multiple=True, help="'file=path;alt=..;thumbnail'. Repeatable.")
def product_create(
    name: str,
    category_id: str,
    description: str | None,
    status: str | None,
    variants: tuple[str, ...],
    images: tuple[str, ...],
) -> None:
    """Create a product with its variants and images."""
    variant_creates = [_parse_variant_create(raw) for raw in variants]
    files: list[UploadFile] = []
    image_creates = _collect_image_creates(images, files)

    handler = CreateProductHandler(
        uow=unit_of_work(), storage=file_storage(), cache=listing_cache()
    )

    try:
        dto = handler.handle(
            name=name,
            category_id=category_id,
            variants=variant_creates,
            images=image_creates,
            files=files,
            description=description,
            status=_status(status),
        )
    except DomainException as exc:
        raise domain_error(exc)

    _display_product(dto)


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID to update.")
@click.option("--version", "expected_version", type=int, default=None, help="Version the change was based on.")
@click.option("--name", default=None, help="New name.")
@click.option("--description", default=None, help="New description.")
@click.option("--status", default=None, type=_STATUS, help="Requested status.")
@click.option("--category", "category_id", default=None, help="Move to another category.")
@click.option("--add-variant", "add_variants", multiple=True, help="'price=..;stock=..;sku=..;values=id,id'.")
@click.option("--update-variant", "update_variants", multiple=True, help="'id=..;price=..;stock=..;sku=..;values=id,id'.")
@click.option("--delete-variant", "delete_variants", multiple=True, help="Variant ID to delete.")
@click.option("--add-image", "add_images", multiple=True, help="'file=path;alt=..;thumbnail'.")
@click.option("--update-image", "update_images", multiple=True, help="'id=..;file=path;alt=..;thumbnail=true|false'.")
@click.option("--delete-image", "delete_images", multiple=True, help="Image ID to delete.")
def product_update(
    product_id: str,
    expected_version: int | None,
    name: str | None,
    description: str | None,
    status: str | None,
    category_id: str | None,
    add_variants: tuple[str, ...],
    update_variants: tuple[str, ...],
    delete_variants: tuple[str, ...],
    add_images: tuple[str, ...],
    update_images: tuple[str, ...],
    delete_images: tuple[str, ...],
) -> None:
    """Update a product (partial); untouched fields keep their values."""
    variant_ops = VariantOperations(
        create=[_parse_variant_create(raw) for raw in add_variants],
        update=[_parse_variant_update(raw) for raw in update_variants],
        delete=delete_variants,
    )
    files: list[UploadFile] = []
    image_ops = ImageOperations(
        create=_collect_image_creates(add_images, files),
        update=_collect_image_updates(update_images, files),
        delete=delete_images,
    )

    handler = UpdateProductHandler(
        uow=unit_of_work(), storage=file_storage(), cache=listing_cache()
    )

    try:
        dto = handler.handle(
            product_id=product_id,
            expected_version=expected_version,
            name=name,
            description=description,
            status=_status(status),
            category_id=category_id,
            variants=variant_ops,
            images=image_ops,
            files=files,
        )
    except DomainException as exc:
        raise domain_error(exc)

    _display_product(dto)


@click.command("bulk-update")
@click.option("--ids", required=True, help="Comma-separated product IDs.")
@click.option("--status", default=None, type=_STATUS, help="Status to set.")
@click.option("--category", "category_id", default=None, help="Category to move to.")
def product_bulk_update(ids: str, status: str | None, category_id: str | None) -> None:
    """Set status and/or category for many products at once."""
    handler = BulkUpdateProductsHandler(uow=unit_of_work(), cache=listing_cache())

    try:
        result = handler.handle(
            product_ids=list(parse_ids(ids)),
            status=_status(status),
            category_id=category_id,
        )
    except DomainException as exc:
        raise domain_error(exc)

    click.echo(f"Updated {len(result.updated_ids)} product(s).")
    for product_id, warnings in result.warnings.items():
        click.echo(f"{product_id} stored as DRAFT:", err=True)
        echo_warnings(warnings, indent="  ")


@click.command("delete")
@click.option("--id", "product_id", required=True, help="Product ID to delete.")
def product_delete(product_id: str) -> None:
    """Delete a product with its variants and images."""
    handler = DeleteProductHandler(
        uow=unit_of_work(), storage=file_storage(), cache=listing_cache()
    )

    try:
        handler.handle(product_id)
    except DomainException as exc:
        raise domain_error(exc)

    click.echo(f"Product {product_id} deleted.")


@click.command("show")
@click.option("--id", "product_id", default=None, help="Product ID.")
@click.option("--slug", default=None, help="Product slug.")
def product_show(product_id: str | None, slug: str | None) -> None:
    """Show a product by ID or slug."""
    handler = ShowProductHandler(uow=unit_of_work())

    try:
        dto = handler.handle(product_id=product_id, slug=slug)
    except DomainException as exc:
        raise domain_error(exc)

    _display_product(dto)


@click.command("list")
@click.option("--sort", "sort_by", default="name", type=click.Choice(SORT_FIELDS), help="Sort field.")
@click.option("--desc", is_flag=True, default=False, help="Sort descending.")
@click.option("--skip", default=0, type=int, help="Rows to skip.")
@click.option("--take", default=25, type=int, help="Rows to return.")
@click.option("--name", default=None, help="Name contains (case-insensitive).")
@click.option("--status", default=None, type=_STATUS, help="Only this status.")
@click.option("--category", "category_ids", multiple=True, help="Only these categories. Repeatable.")
def product_list(
    sort_by: str,
    desc: bool,
    skip: int,
    take: int,
    name: str | None,
    status: str | None,
    category_ids: tuple[str, ...],
) -> None:
    """List products with price range and stock."""
    try:
        query = ListingQuery(
            sort_by=sort_by,
            sort_dir="desc" if desc else "asc",
            skip=skip,
            take=take,
            name=name,
            status=_status(status),
            category_ids=category_ids,
        )
        summaries = ListProductsHandler(uow=unit_of_work(), cache=listing_cache()).handle(query)
    except DomainException as exc:
        raise domain_error(exc)

    if not summaries:
        click.echo("No products found.")
        return

    click.echo(f"  {'Name':<24} {'Status':<10} {'Category':<16} {'Price':>24} {'Stock':>6}")
    click.echo(f"  {'-'*84}")
    for s in summaries:
        click.echo(
            f"  {s.name:<24} {s.status:<10} {s.category_name:<16} "
            f"{s.price_range or '-':>24} {s.total_stock:>6}"
        )


@click.command("count")
@click.option("--status", default=None, type=_STATUS, help="Only this status.")
@click.option("--category", "category_ids", multiple=True, help="Only these categories. Repeatable.")
def product_count(status: str | None, category_ids: tuple[str, ...]) -> None:
    """Count products matching the filters."""
    total = CountProductsHandler(uow=unit_of_work()).handle(
        status=_status(status), category_ids=tuple(category_ids)
    )
    click.echo(str(total))


@click.command("set-stock")
@click.option("--variant", "variant_id", required=True, help="Variant ID.")
@click.option("--stock", required=True, type=int, help="New absolute stock level.")
def product_set_stock(variant_id: str, stock: int) -> None:
    """Set the stock level of a variant (restock or correction)."""
    handler = SetStockHandler(uow=unit_of_work(), cache=listing_cache())

    try:
        handler.handle(variant_id, stock)
    except DomainException as exc:
        raise domain_error(exc)

    click.echo(f"Stock for variant {variant_id} set to {stock}.")
