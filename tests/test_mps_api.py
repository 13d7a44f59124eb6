from __future__ import annotations

RANGE_47_49 = {"fromYear": 2025, "fromWeek": 47, "toYear": 2025, "toWeek": 49}


def _create(client, type_, code, **extra):
    r = client.post("/api/items", json={"type": type_, "code": code, "name": code, **extra})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def test_healthz_and_metrics(client):
    assert client.get("/healthz").json() == {"status": "ok"}
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "mps_projection_requests_total" in r.text


def test_product_balances_end_to_end(client):
    pid = _create(client, "P", "589", openingYear=2025, openingWeek=47, openingBalance=20)
    for week, status in ((48, "ACTIVE"), (49, "active"), (50, "INITIAL")):
        r = client.post(
            "/api/production-orders",
            json={"productId": pid, "quantity": 5, "planYear": 2025, "planWeek": week,
                  "status": status},
        )
        assert r.status_code == 201, r.text

    r = client.get(
        f"/api/mps/products/{pid}/balances",
        params={"fromYear": 2025, "fromWeek": 47, "toYear": 2025, "toWeek": 50},
    )
    assert r.status_code == 200
    balances = r.json()["balances"]
    assert [(b["week"], b["balance"]) for b in balances] == [
        (47, 20),
        (48, 25),
        (49, 30),
        (50, 30),
    ]

    agg = client.get("/api/production", params=RANGE_47_49).json()
    assert agg == [
        {"productId": pid, "year": 2025, "week": 48, "qty": 5},
        {"productId": pid, "year": 2025, "week": 49, "qty": 5},
    ]


def test_material_balances_and_purchase_aggregate(client):
    pid = _create(client, "P", "589")
    mid = _create(client, "M", "NVL3", openingYear=2025, openingWeek=47, openingBalance=10)
    assert client.put(
        "/api/bom", json={"productId": pid, "materialId": mid, "consumePerUnit": 1}
    ).status_code == 200
    client.post(
        "/api/production-orders",
        json={"productId": pid, "quantity": 5, "planYear": 2025, "planWeek": 48,
              "status": "ACTIVE"},
    )
    r = client.post(
        "/api/purchase-orders",
        json={
            "poNumber": "PO-1",
            "status": "confirm",
            "lines": [{"materialId": mid, "quantity": 5, "etaYear": 2025, "etaWeek": 49,
                       "unitPrice": 2}],
        },
    )
    assert r.status_code == 201, r.text
    po_id = r.json()["id"]
    detail = client.get(f"/api/purchase-orders/{po_id}").json()
    assert detail["status"] == "CONFIRM"
    assert detail["totalAmount"] == 10
    assert detail["lines"][0]["materialCode"] == "NVL3"

    r = client.get(f"/api/mps/materials/{mid}/balances", params=RANGE_47_49)
    assert [b["balance"] for b in r.json()["balances"]] == [10, 5, 10]

    assert client.get("/api/purchase", params=RANGE_47_49).json() == [
        {"materialId": mid, "year": 2025, "week": 49, "qty": 5}
    ]
    assert [m["code"] for m in client.get("/api/materials", params={"productId": pid}).json()] == [
        "NVL3"
    ]


def test_overview_returns_product_and_bom_materials(client):
    pid = _create(client, "P", "589", openingYear=2025, openingWeek=47, openingBalance=20)
    mid = _create(client, "M", "NVL3")
    client.put("/api/bom", json={"productId": pid, "materialId": mid, "consumePerUnit": 2})
    r = client.get("/api/mps/overview", params={"productId": pid, **RANGE_47_49})
    assert r.status_code == 200
    body = r.json()
    assert body["product"]["code"] == "589"
    assert len(body["product"]["balances"]) == 3
    assert body["materials"][0]["materialId"] == mid
    assert body["materials"][0]["consumePerUnit"] == 2
    assert [b["balance"] for b in body["materials"][0]["balances"]] == [0, 0, 0]


def test_reversed_range_is_400(client):
    pid = _create(client, "P", "589")
    r = client.get(
        f"/api/mps/products/{pid}/balances",
        params={"fromYear": 2025, "fromWeek": 50, "toYear": 2025, "toWeek": 48},
    )
    assert r.status_code == 400
    assert "error" in r.json()


def test_missing_range_is_400(client):
    r = client.get("/api/production", params={"fromYear": 2025, "fromWeek": 47})
    assert r.status_code == 400
    assert "required" in r.json()["error"]
    r = client.get("/api/production", params={**RANGE_47_49, "toWeek": "abc"})
    assert r.status_code == 400


def test_invalid_body_is_400_with_error_payload(client):
    r = client.post("/api/items", json={"type": "X", "code": "1", "name": "n"})
    assert r.status_code == 400
    assert "error" in r.json()
    r = client.put("/api/opening-balance", json={"itemType": "P", "itemId": 1,
                                                 "startYear": 2025, "startWeek": 60,
                                                 "balanceQty": 1})
    assert r.status_code == 400


def test_opening_balance_roundtrip_keeps_latest(client):
    pid = _create(client, "P", "589")
    assert client.get(f"/api/opening-balance/P/{pid}").json() is None
    for qty in (20, 35):
        r = client.put(
            "/api/opening-balance",
            json={"itemType": "product", "itemId": pid, "startYear": 2025, "startWeek": 47,
                  "balanceQty": qty},
        )
        assert r.status_code == 200
    got = client.get(f"/api/opening-balance/P/{pid}").json()
    assert got == {"itemType": "P", "itemId": pid, "startYear": 2025, "startWeek": 47,
                   "balanceQty": 35}


def test_items_crud(client):
    pid = _create(client, "P", "589", imageUrl="/img/589.png")
    assert client.put(f"/api/items/P/{pid}", json={"name": "Renamed"}).status_code == 200
    items = client.get("/api/items", params={"type": "P", "q": "589"}).json()
    assert [(i["name"], i["imageUrl"]) for i in items] == [("Renamed", "/img/589.png")]

    r = client.post("/api/items", json={"type": "P", "code": "589", "name": "dup"})
    assert r.status_code == 409

    assert client.put("/api/items/P/999", json={"name": "x"}).status_code == 404
    assert client.delete(f"/api/items/P/{pid}").status_code == 200
    assert client.delete(f"/api/items/P/{pid}").status_code == 404
    assert client.get("/api/items", params={"type": "Q"}).status_code == 400


def test_sales_plan_batch_and_rollback(client):
    pid = _create(client, "P", "589")
    r = client.put(
        "/api/sales-plan",
        json={"productId": pid, "plans": [{"year": 2025, "week": 48, "qty": 3},
                                          {"year": 2025, "week": 49, "qty": 4}]},
    )
    assert r.json() == {"success": True, "count": 2}
    rows = client.get("/api/sales-plan", params={"productId": pid, **RANGE_47_49}).json()
    assert [(r["week"], r["qty"]) for r in rows] == [(48, 3), (49, 4)]

    r = client.put(
        "/api/sales-plan",
        json={"productId": pid + 100, "plans": [{"year": 2025, "week": 48, "qty": 1}]},
    )
    assert r.status_code == 409
    assert "error" in r.json()


def test_production_order_update_delete_and_filters(client):
    pid = _create(client, "P", "589")
    oid = client.post(
        "/api/production-orders",
        json={"productId": pid, "quantity": 5, "planYear": 2025, "planWeek": 48},
    ).json()["id"]
    assert client.put(f"/api/production-orders/{oid}", json={"status": "complete"}).status_code == 200
    listed = client.get("/api/production-orders", params={"status": "COMPLETE"}).json()
    assert [(o["id"], o["status"]) for o in listed] == [(oid, "COMPLETE")]
    assert client.get("/api/production-orders", params={"status": "bogus"}).status_code == 400
    assert client.delete(f"/api/production-orders/{oid}").status_code == 200
    assert client.put(f"/api/production-orders/{oid}", json={"quantity": 1}).status_code == 404


def test_purchase_order_update_lines_and_delete(client):
    mid = _create(client, "M", "NVL3")
    po_id = client.post(
        "/api/purchase-orders",
        json={"lines": [{"materialId": mid, "quantity": 1, "etaYear": 2025, "etaWeek": 49}]},
    ).json()["id"]
    r = client.put(
        f"/api/purchase-orders/{po_id}",
        json={"status": "CONFIRM",
              "lines": [{"materialId": mid, "quantity": 2, "etaYear": 2025, "etaWeek": 50,
                         "totalAmount": 7}]},
    )
    assert r.status_code == 200
    lines = client.get(f"/api/purchase-orders/{po_id}/lines").json()
    assert [(ln["quantity"], ln["etaWeek"]) for ln in lines] == [(2, 50)]
    assert client.get("/api/purchase-orders", params={"status": "CONFIRM"}).json()[0][
        "totalAmount"
    ] == 7
    assert client.post("/api/purchase-orders", json={"lines": []}).status_code == 400
    assert client.delete(f"/api/purchase-orders/{po_id}").status_code == 200
    assert client.get(f"/api/purchase-orders/{po_id}").status_code == 404


def test_opening_balance_for_missing_item_is_404(client):
    r = client.put(
        "/api/opening-balance",
        json={"itemType": "P", "itemId": 1, "startYear": 2025, "startWeek": 47,
              "balanceQty": 77},
    )
    assert r.status_code == 404
    assert "error" in r.json()

    pid = _create(client, "P", "589")
    assert client.get(f"/api/opening-balance/P/{pid}").json() is None
    r = client.get(f"/api/mps/products/{pid}/balances", params=RANGE_47_49)
    assert [b["balance"] for b in r.json()["balances"]] == [0, 0, 0]


def test_materials_requires_product_id(client):
    r = client.get("/api/materials")
    assert r.status_code == 400
    assert "error" in r.json()


def test_non_positive_year_is_400(client):
    for year in (0, -1):
        r = client.get("/api/production", params={**RANGE_47_49, "fromYear": year})
        assert r.status_code == 400
        assert "Year" in r.json()["error"]


def test_entrypoint_exposes_no_debug_routes():
    import main

    paths = {getattr(r, "path", "") for r in main.app.routes}
    assert "/healthz" in paths
    assert not [p for p in paths if p.startswith("/debug")]
