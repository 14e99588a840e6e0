"""Command-line interface for publishing products to a shop."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterable, Sequence

from .config import PublishConfig
from .errors import InvalidRequestError, PublishError
from .images.fetch import new_session
from .io.models import RawBuffer
from .io.outputs import write_outcome, write_records
from .io.session import SHOPIFY_UPLOAD_KIND, JsonFileSessionLog
from .pipeline import PublishOrchestrator
from .shopify.client import ShopifyClient
from .validation import is_valid_shop_url, parse_publish_request

logger = logging.getLogger("craftpublish.cli")

DEFAULT_HISTORY_PATH = Path("out") / "sessions.json"
TOKEN_ENV_VAR = "SHOPIFY_ACCESS_TOKEN"


def _add_shop_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--shop",
        required=True,
        help="Shop domain, with or without https:// (e.g. my-shop.myshopify.com)",
    )
    parser.add_argument(
        "--token",
        default=None,
        help=f"Admin API access token (defaults to ${TOKEN_ENV_VAR})",
    )
    parser.add_argument(
        "--api-version",
        default=None,
        help="Admin API version to call (default from config)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_history_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--history",
        type=Path,
        default=DEFAULT_HISTORY_PATH,
        help="JSON file holding the session activity log",
    )
    parser.add_argument(
        "--session",
        default="default",
        help="Session identity under which publishes are recorded",
    )


def _add_publish_arguments(parser: argparse.ArgumentParser) -> None:
    _add_shop_arguments(parser)
    _add_history_arguments(parser)
    parser.add_argument("--title", required=True, help="Product title")
    parser.add_argument(
        "--description", required=True, help="Product description (HTML allowed)"
    )
    parser.add_argument("--price", required=True, help="Product price")
    parser.add_argument(
        "--image",
        dest="images",
        action="append",
        default=[],
        help="Image as a local path, http(s) URL or data: URI; repeat for more",
    )
    parser.add_argument("--vendor", default=None, help="Vendor name")
    parser.add_argument("--product-type", default=None, help="Product type")
    parser.add_argument("--tags", default=None, help="Comma separated tags")
    parser.add_argument(
        "--status",
        choices=("draft", "active"),
        default=None,
        help="Lifecycle status (default: draft)",
    )
    parser.add_argument(
        "--inventory", type=int, default=None, help="Initial inventory quantity"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of images processed concurrently",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the publish outcome to this JSON file",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide the image progress bar",
    )


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Publish locally captured products and images to a shop."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    publish_parser = subparsers.add_parser(
        "publish", help="Normalize and upload images, then create the product"
    )
    _add_publish_arguments(publish_parser)

    uploads_parser = subparsers.add_parser(
        "uploads", help="List publishes recorded for a session"
    )
    _add_history_arguments(uploads_parser)
    uploads_parser.add_argument(
        "--out", type=Path, default=None, help="Write the list to this JSON file"
    )
    uploads_parser.add_argument(
        "--verbose", action="store_true", help="Enable verbose logging"
    )

    shop_parser = subparsers.add_parser("shop-info", help="Show the shop profile")
    _add_shop_arguments(shop_parser)

    products_parser = subparsers.add_parser("products", help="List shop products")
    _add_shop_arguments(products_parser)
    products_parser.add_argument(
        "--limit", type=int, default=50, help="Maximum products to list (max 250)"
    )
    products_parser.add_argument(
        "--out", type=Path, default=None, help="Write the list to this JSON file"
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _build_config(args: argparse.Namespace) -> PublishConfig:
    config = PublishConfig.from_env()
    if getattr(args, "api_version", None):
        config.api_version = args.api_version
    workers = getattr(args, "workers", None)
    if workers is not None:
        config.max_workers = max(1, workers)
    return config


def _resolve_token(args: argparse.Namespace) -> str:
    return (args.token or os.environ.get(TOKEN_ENV_VAR, "")).strip()


def _load_image_argument(value: str) -> Any:
    """Return a data URI or URL unchanged, or the bytes of a local file."""
    if value.startswith("data:") or value.lower().startswith(("http://", "https://")):
        return value
    path = Path(value).expanduser()
    try:
        return RawBuffer(path.read_bytes(), filename=path.name)
    except OSError as exc:
        logger.warning("Skipping image %s: %s", value, exc)
        return None


def _print_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")
    sys.stdout.flush()


def _print_error(error: PublishError) -> None:
    # Log records go to stderr; stdout carries only the JSON document.
    _print_json({"error": error.to_dict()})


def _run_publish(args: argparse.Namespace) -> int:
    images = [_load_image_argument(value) for value in args.images]
    payload = {
        "title": args.title,
        "description": args.description,
        "price": args.price,
        "shopUrl": args.shop,
        "accessToken": _resolve_token(args),
        "images": [image for image in images if image is not None],
        "vendor": args.vendor,
        "productType": args.product_type,
        "tags": args.tags,
        "status": args.status,
        "inventory": args.inventory,
    }
    try:
        request = parse_publish_request(payload)
    except InvalidRequestError as exc:
        _print_error(exc)
        return 2

    session_log = JsonFileSessionLog(args.history, identity=args.session)
    orchestrator = PublishOrchestrator(
        session_log,
        config=_build_config(args),
        http_factory=new_session,
        progress=not args.no_progress,
    )
    try:
        outcome = orchestrator.run_publish(
            request.fields,
            request.sources,
            request.shop_url,
            request.access_token,
        )
    except PublishError as exc:
        logger.error("Publish failed: %s", exc)
        _print_error(exc)
        return 1

    if args.out:
        write_outcome(args.out, outcome)
        logger.info("Saved publish outcome to %s", args.out)
    _print_json(outcome.to_dict())
    return 0


def _run_uploads(args: argparse.Namespace) -> int:
    session_log = JsonFileSessionLog(args.history, identity=args.session)
    uploads = session_log.activities(args.session, SHOPIFY_UPLOAD_KIND)
    if args.out:
        write_records(args.out, uploads)
    _print_json({"count": len(uploads), "uploads": uploads})
    return 0


def _shop_client(args: argparse.Namespace) -> ShopifyClient | None:
    token = _resolve_token(args)
    if not is_valid_shop_url(args.shop) or not token:
        sys.stderr.write("shopUrl and accessToken are required\n")
        return None
    return ShopifyClient(args.shop, token, _build_config(args), new_session())


def _run_shop_info(args: argparse.Namespace) -> int:
    client = _shop_client(args)
    if client is None:
        return 2
    try:
        shop = client.get_shop()
    except PublishError as exc:
        logger.error("Shop info failed: %s", exc)
        _print_error(exc)
        return 1
    finally:
        client.http.close()
    _print_json(shop)
    return 0


def _run_products(args: argparse.Namespace) -> int:
    client = _shop_client(args)
    if client is None:
        return 2
    try:
        products = client.list_products(limit=args.limit)
    except PublishError as exc:
        logger.error("Product list failed: %s", exc)
        _print_error(exc)
        return 1
    finally:
        client.http.close()
    if args.out:
        write_records(args.out, products)
    _print_json({"count": len(products), "products": products})
    return 0


_COMMANDS = {
    "publish": _run_publish,
    "uploads": _run_uploads,
    "shop-info": _run_shop_info,
    "products": _run_products,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    _configure_logging(args.verbose)
    return _COMMANDS[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
