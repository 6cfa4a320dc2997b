"""Integration tests for the transactions API."""

from decimal import Decimal

import pytest


def post(client, kind, quantity, unit_price, metal="Gold", day="2024-01-01", profile="Default"):
    return client.post(
        "/api/transactions",
        json={
            "profile": profile,
            "kind": kind,
            "metal": metal,
            "quantity": quantity,
            "unit_price": unit_price,
            "date": day,
        },
    )


@pytest.fixture
def two_lots(client):
    b1 = post(client, "Buy", "100", "50", day="2024-01-05").json()
    b2 = post(client, "Buy", "50", "40", day="2024-01-20").json()
    return b1, b2


class TestCreateTransaction:
    """Test POST /api/transactions."""

    def test_buy_returns_201_with_open_lot(self, client):
        response = post(client, "Buy", "10", "55.5")

        assert response.status_code == 201
        body = response.json()
        assert body["kind"] == "Buy"
        assert Decimal(body["remaining_quantity"]) == Decimal("10")
        assert body["consumed_lots"] == []

    def test_sell_reports_profit_and_consumed_lots(self, client, two_lots):
        b1, b2 = two_lots

        response = post(client, "Sell", "120", "60", day="2024-02-01")

        assert response.status_code == 201
        body = response.json()
        assert body["consumed_lots"] == [b2["id"], b1["id"]]
        assert Decimal(body["realized_profit"]) == Decimal("1700")
        assert [Decimal(d["quantity"]) for d in body["draws"]] == [Decimal("50"), Decimal("70")]

        lot = client.get(f"/api/transactions/{b1['id']}").json()
        assert Decimal(lot["remaining_quantity"]) == Decimal("30")

    def test_short_sell_returns_409_with_shortfall(self, client, two_lots):
        response = post(client, "Sell", "230", "60")

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "InsufficientInventory"
        assert Decimal(body["details"]["shortfall"]) == Decimal("80")
        assert body["path"] == "/api/transactions"
        assert len(client.get("/api/transactions", params={"profile": "Default"}).json()) == 2

    def test_over_precise_sell_cannot_break_audit(self, client):
        post(client, "Buy", "1", "10")
        assert post(client, "Sell", "0.123456785", "11").status_code == 422

        assert post(client, "Sell", "0.12345678", "11").status_code == 201
        audit = client.get("/api/audit", params={"profile": "Default", "metal": "Gold"}).json()
        assert audit["is_consistent"] is True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"quantity": "0"},
            {"unit_price": "-5"},
            {"metal": "Platinum"},
            {"kind": "Swap"},
            {"quantity": "0.123456785"},
            {"unit_price": "1.00005"},
        ],
    )
    def test_invalid_payload_returns_422(self, client, overrides):
        payload = {
            "profile": "Default",
            "kind": "Buy",
            "metal": "Gold",
            "quantity": "1",
            "unit_price": "1",
            "date": "2024-01-01",
        }
        payload.update(overrides)

        response = client.post("/api/transactions", json=payload)

        assert response.status_code == 422


class TestReadTransactions:
    """Test GET /api/transactions."""

    def test_list_requires_profile(self, client):
        assert client.get("/api/transactions").status_code == 422

    def test_list_filters_by_metal(self, client, two_lots):
        post(client, "Buy", "1000", "0.9", metal="Silver")

        response = client.get("/api/transactions", params={"profile": "Default", "metal": "Silver"})

        assert response.status_code == 200
        assert [tx["metal"] for tx in response.json()] == ["Silver"]

    @pytest.mark.parametrize("params", [{"metal": "Copper"}, {"kind": "Transfer"}])
    def test_unknown_filter_value_returns_422(self, client, params):
        response = client.get("/api/transactions", params={"profile": "Default", **params})

        assert response.status_code == 422

    def test_unknown_transaction_returns_404(self, client):
        response = client.get("/api/transactions/999")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "NotFound"
        assert body["details"] == {"entity_type": "Transaction", "identifier": 999}


class TestUpdateTransaction:
    """Test PATCH /api/transactions/{id}."""

    def test_sell_quantity_edit_rematches(self, client, two_lots):
        _, b2 = two_lots
        sell = post(client, "Sell", "120", "60").json()

        response = client.patch(f"/api/transactions/{sell['id']}", json={"quantity": "40"})

        assert response.status_code == 200
        body = response.json()
        assert body["consumed_lots"] == [b2["id"]]
        assert Decimal(body["realized_profit"]) == Decimal("800")

    def test_buy_shrink_below_sold_returns_409(self, client, two_lots):
        b1, _ = two_lots
        post(client, "Sell", "120", "60")

        response = client.patch(f"/api/transactions/{b1['id']}", json={"quantity": "60"})

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "NegativeRemaining"
        assert Decimal(body["details"]["committed"]) == Decimal("70")

    def test_kind_cannot_be_edited(self, client, two_lots):
        b1, _ = two_lots

        response = client.patch(f"/api/transactions/{b1['id']}", json={"kind": "Sell"})

        assert response.status_code == 422

    def test_notes_edit(self, client, two_lots):
        b1, _ = two_lots

        response = client.patch(f"/api/transactions/{b1['id']}", json={"notes": "1oz coins"})

        assert response.status_code == 200
        assert response.json()["notes"] == "1oz coins"


    def test_null_notes_clear_notes(self, client, two_lots):
        b1, _ = two_lots
        client.patch(f"/api/transactions/{b1['id']}", json={"notes": "1oz coins"})

        response = client.patch(f"/api/transactions/{b1['id']}", json={"notes": None})

        assert response.status_code == 200
        assert response.json()["notes"] is None

    def test_over_precise_edit_returns_422(self, client, two_lots):
        b1, _ = two_lots

        response = client.patch(
            f"/api/transactions/{b1['id']}", json={"quantity": "99.000000001"}
        )

        assert response.status_code == 422


class TestDeleteTransaction:
    """Test DELETE /api/transactions/{id}."""

    def test_delete_lot_in_use_returns_409(self, client, two_lots):
        b1, _ = two_lots
        sell = post(client, "Sell", "120", "60").json()

        response = client.delete(f"/api/transactions/{b1['id']}")

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "LotInUse"
        assert body["details"]["sell_ids"] == [sell["id"]]

    def test_delete_sell_restores_lots(self, client, two_lots):
        b1, b2 = two_lots
        sell = post(client, "Sell", "120", "60").json()

        response = client.delete(f"/api/transactions/{sell['id']}")

        assert response.status_code == 204
        lots = client.get("/api/transactions", params={"profile": "Default"}).json()
        assert [Decimal(lot["remaining_quantity"]) for lot in lots] == [
            Decimal("100"),
            Decimal("50"),
        ]

    def test_delete_unknown_returns_404(self, client):
        assert client.delete("/api/transactions/4242").status_code == 404
