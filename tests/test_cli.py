from __future__ import annotations

import json

import pytest

from craftpublish import cli

from fakes import (
    PRODUCTS_URL,
    SHOP,
    SHOP_URL,
    UPLOADS_URL,
    FakeHTTP,
    FakeResponse,
    make_image_bytes,
    product_handler,
    upload_handler,
)


@pytest.fixture
def http(monkeypatch) -> FakeHTTP:
    fake = FakeHTTP()
    monkeypatch.setattr(cli, "new_session", lambda: fake)
    monkeypatch.delenv(cli.TOKEN_ENV_VAR, raising=False)
    return fake


def _publish_args(tmp_path, *extra):
    return [
        "publish",
        "--shop",
        f"https://{SHOP}",
        "--token",
        "shpat_test",
        "--title",
        "Hand-thrown mug",
        "--description",
        "Stoneware mug",
        "--price",
        "24.50",
        "--history",
        str(tmp_path / "sessions.json"),
        "--no-progress",
        *extra,
    ]


def test_publish_writes_outcome_and_history(tmp_path, http, capsys):
    image_path = tmp_path / "mug.png"
    image_path.write_bytes(make_image_bytes())
    http.add("POST", UPLOADS_URL, upload_handler())
    http.add("POST", PRODUCTS_URL, product_handler(status="active"))
    out = tmp_path / "outcome.json"

    code = cli.main(
        _publish_args(
            tmp_path,
            "--image",
            str(image_path),
            "--image",
            str(tmp_path / "missing.png"),
            "--status",
            "active",
            "--out",
            str(out),
        )
    )

    assert code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["remote_product_id"] == "987654"
    assert printed["image_count"] == 1
    assert printed["image_urls"][0].startswith("https://cdn.shopify.com/")
    assert "/mug_1_" in printed["image_urls"][0]
    assert json.loads(out.read_text(encoding="utf-8"))["status"] == "active"

    (call,) = http.calls_to(PRODUCTS_URL)
    assert call["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    product = call["json"]["product"]
    assert product["status"] == "active"
    assert product["variants"][0]["price"] == "24.50"
    assert http.closed

    assert cli.main(
        ["uploads", "--history", str(tmp_path / "sessions.json")]
    ) == 0
    listed = json.loads(capsys.readouterr().out)
    assert listed["count"] == 1
    assert listed["uploads"][0]["handle"] == "hand-thrown-mug"


def test_publish_with_invalid_input_exits_2(tmp_path, http, capsys):
    args = _publish_args(tmp_path)
    args[args.index("24.50")] = "-1"
    code = cli.main(args)

    assert code == 2
    error = json.loads(capsys.readouterr().out)["error"]
    assert error["message"] == "Validation Error"
    assert [entry["field"] for entry in error["errors"]] == ["price"]
    assert http.calls == []


def test_publish_failure_exits_1(tmp_path, http, capsys):
    http.add("POST", PRODUCTS_URL, FakeResponse(401, {"errors": "Invalid API key"}))
    code = cli.main(_publish_args(tmp_path))

    assert code == 1
    captured = capsys.readouterr()
    error = json.loads(captured.out)["error"]
    assert error["type"] == "AuthError"
    assert error["message"] == "Invalid Shopify access token"
    assert "Publish failed" in captured.err
    assert not (tmp_path / "sessions.json").exists()


def test_token_is_read_from_environment(tmp_path, http, monkeypatch, capsys):
    monkeypatch.setenv(cli.TOKEN_ENV_VAR, "shpat_env")
    http.add("GET", SHOP_URL, FakeResponse(200, {"shop": {"name": "Craft Shop"}}))

    assert cli.main(["shop-info", "--shop", SHOP]) == 0
    assert json.loads(capsys.readouterr().out) == {"name": "Craft Shop"}
    (call,) = http.calls
    assert call["headers"]["X-Shopify-Access-Token"] == "shpat_env"


def test_shop_info_without_token_exits_2(http, capsys):
    assert cli.main(["shop-info", "--shop", SHOP]) == 2
    assert "accessToken" in capsys.readouterr().err
    assert http.calls == []


def test_products_lists_and_saves(tmp_path, http, capsys):
    http.add(
        "GET",
        PRODUCTS_URL,
        FakeResponse(200, {"products": [{"id": 1}, {"id": 2}]}),
    )
    out = tmp_path / "products.json"

    code = cli.main(
        ["products", "--shop", SHOP, "--token", "t", "--limit", "900", "--out", str(out)]
    )

    assert code == 0
    assert json.loads(capsys.readouterr().out)["count"] == 2
    assert json.loads(out.read_text(encoding="utf-8")) == [{"id": 1}, {"id": 2}]
    assert http.calls[0]["params"] == {"limit": 250}
    assert http.closed
