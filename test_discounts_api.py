import uuid
from datetime import date, timedelta


def discount_payload(**overrides):
    data = {
        "name": "Perfume week",
        "description": "10% off perfumes",
        "type": "percentage",
        "value": 10,
        "applicable_to": "product_types",
        "product_types": ["perfume"],
    }
    data.update(overrides)
    return data


def create(client, **overrides):
    response = client.post("/discounts", json=discount_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


def test_create_percentage_discount(client):
    """Test creating a percentage discount"""
    data = create(client)
    assert data["type"] == "percentage"
    assert data["value"] == 10
    assert data["applicable_to"] == "product_types"
    assert data["product_types"] == ["perfume"]
    assert data["allow_partial_payment"] is False
    assert data["is_active"] is True


def test_create_category_discount_normalises_alias(client):
    category_id = str(uuid.uuid4())
    data = create(
        client,
        applicable_to="specific_categories",
        product_types=None,
        category_ids=[category_id],
    )
    assert data["applicable_to"] == "categories"
    assert data["category_ids"] == [category_id]


def test_create_requires_targeting(client):
    payload = discount_payload()
    del payload["applicable_to"]
    response = client.post("/discounts", json=payload)
    assert response.status_code == 400
    assert "applicable_to is required" in response.json()["error"]["detail"]


def test_create_rejects_apply_to_all(client):
    response = client.post("/discounts", json=discount_payload(applicable_to="all"))
    assert response.status_code == 400
    assert "not all products" in response.json()["error"]["detail"]


def test_create_rejects_both_target_lists(client):
    response = client.post("/discounts", json=discount_payload(category_ids=[str(uuid.uuid4())]))
    assert response.status_code == 400


def test_create_rejects_empty_product_types(client):
    response = client.post("/discounts", json=discount_payload(product_types=[]))
    assert response.status_code == 400


def test_create_rejects_unknown_product_type(client):
    response = client.post("/discounts", json=discount_payload(product_types=["groceries"]))
    assert response.status_code == 422


def test_create_bottle_return_requires_count(client):
    response = client.post("/discounts", json=discount_payload(type="bottle_return", value=0))
    assert response.status_code == 400
    assert "bottle_return_count" in response.json()["error"]["detail"]


def test_create_rejects_inverted_date_window(client):
    response = client.post("/discounts", json=discount_payload(
        start_date="2026-05-10", end_date="2026-05-01"
    ))
    assert response.status_code == 400


def test_get_discount_with_totals(client):
    discount = create(client)
    client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": discount["id"],
        "customer_id": "cust-1", "order_amount": 200,
    })

    response = client.get(f"/discounts/{discount['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["total_applications"] == 1
    assert data["total_discount_given"] == 20.0


def test_discount_not_found(client):
    response = client.get("/discounts/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"]["detail"] == "Discount not found"


def test_update_discount_is_revalidated(client):
    discount = create(client)

    response = client.put(f"/discounts/{discount['id']}", json={"value": 15, "name": "Perfume fortnight"})
    assert response.status_code == 200
    assert response.json()["value"] == 15
    assert response.json()["name"] == "Perfume fortnight"

    response = client.put(f"/discounts/{discount['id']}", json={"applicable_to": "all"})
    assert response.status_code == 400

    response = client.put(f"/discounts/{discount['id']}", json={"product_types": []})
    assert response.status_code == 400


def test_update_cannot_clear_required_fields(client):
    discount = create(client)

    response = client.put(f"/discounts/{discount['id']}", json={"type": None})
    assert response.status_code == 400
    assert "type cannot be null" in response.json()["error"]["detail"]

    response = client.put(f"/discounts/{discount['id']}", json={"is_active": None})
    assert response.status_code == 400

    response = client.get(f"/discounts/{discount['id']}")
    assert response.json()["type"] == "percentage"
    assert response.json()["is_active"] is True


def test_update_missing_discount(client):
    response = client.put("/discounts/nope", json={"value": 5})
    assert response.status_code == 404


def test_delete_discount(client):
    discount = create(client)
    client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": discount["id"],
        "customer_id": "cust-1", "order_amount": 200,
    })

    response = client.delete(f"/discounts/{discount['id']}")
    assert response.status_code == 204
    assert client.get(f"/discounts/{discount['id']}").status_code == 404
    assert client.get("/discounts/applications/order-1").json()["applications"] == []
    assert client.delete(f"/discounts/{discount['id']}").status_code == 404


def test_list_discounts_filters_and_pagination(client):
    create(client, name="Perfume week")
    create(client, name="Shoe flash", type="fixed_amount", value=50, product_types=["shoes"])
    create(client, name="Layaway friendly", allow_partial_payment=True)
    create(client, name="Old promo", is_active=False)

    data = client.get("/discounts").json()
    assert data["pagination"]["total"] == 3
    assert {d["name"] for d in data["discounts"]} == {"Perfume week", "Shoe flash", "Layaway friendly"}

    data = client.get("/discounts", params={"type": "fixed_amount"}).json()
    assert [d["name"] for d in data["discounts"]] == ["Shoe flash"]

    data = client.get("/discounts", params={"search": "flash"}).json()
    assert [d["name"] for d in data["discounts"]] == ["Shoe flash"]

    data = client.get("/discounts", params={"payment_status": "partial"}).json()
    assert [d["name"] for d in data["discounts"]] == ["Layaway friendly"]

    data = client.get("/discounts", params={"is_active": False}).json()
    assert [d["name"] for d in data["discounts"]] == ["Old promo"]

    data = client.get("/discounts", params={"limit": 2, "page": 2}).json()
    assert len(data["discounts"]) == 1
    assert data["pagination"]["total_pages"] == 2


def test_validate_endpoint(client):
    discount = create(client, min_purchase_amount=500)

    response = client.post("/discounts/validate", json={
        "discount_id": discount["id"], "customer_id": "cust-1", "order_amount": 100,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["eligible"] is False
    assert data["reasons"][0].startswith("Minimum purchase amount")

    response = client.post("/discounts/validate", json={
        "discount_id": discount["id"], "customer_id": "cust-1", "order_amount": 600,
    })
    assert response.json() == {"eligible": True, "reasons": []}


def test_validate_rejects_negative_amount(client):
    discount = create(client)
    response = client.post("/discounts/validate", json={
        "discount_id": discount["id"], "customer_id": "cust-1", "order_amount": -5,
    })
    assert response.status_code == 422


def test_calculate_preview(client):
    discount = create(client, max_discount_amount=50)
    response = client.post("/discounts/calculate", json={
        "discount_id": discount["id"], "order_amount": 1000,
    })
    assert response.status_code == 200
    assert response.json() == {
        "original_amount": 1000.0,
        "discount_amount": 50.0,
        "final_amount": 950.0,
        "discount_percentage": 10.0,
    }


def test_apply_discount(client):
    discount = create(client)
    response = client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": discount["id"],
        "customer_id": "cust-1", "order_amount": 1000,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["discount_amount"] == 100.0
    assert data["final_amount"] == 900.0
    assert data["application_id"]

    applications = client.get("/discounts/applications/order-1").json()["applications"]
    assert len(applications) == 1
    assert applications[0]["discount_name"] == "Perfume week"
    assert applications[0]["discount_percentage"] == 10.0


def test_apply_ineligible_returns_reasons(client):
    discount = create(client, usage_per_customer=1)
    body = {"order_id": "order-1", "discount_id": discount["id"], "customer_id": "cust-1", "order_amount": 100}
    assert client.post("/discounts/apply", json=body).status_code == 200

    response = client.post("/discounts/apply", json={**body, "order_id": "order-2"})
    assert response.status_code == 422
    assert response.json()["error"]["reasons"] == ["Customer usage limit reached"]


def test_apply_partial_payment_rejected_by_default(client):
    discount = create(client)
    response = client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": discount["id"], "customer_id": "cust-1",
        "order_amount": 100, "payment_status": "partial",
    })
    assert response.status_code == 422
    assert "Discounts are not available for partial payments" in response.json()["error"]["reasons"]


def test_apply_duplicate_bottle_return(client):
    first = create(client, name="1 bottle", type="bottle_return", value=0, bottle_return_count=1)
    second = create(client, name="3 bottles", type="bottle_return", value=0, bottle_return_count=3)

    response = client.post("/discounts/apply", json={
        "order_id": "order-9", "discount_id": first["id"], "customer_id": "cust-1", "order_amount": 500,
    })
    assert response.status_code == 200
    assert response.json()["discount_amount"] == 500.0

    response = client.post("/discounts/apply", json={
        "order_id": "order-9", "discount_id": second["id"], "customer_id": "cust-1", "order_amount": 500,
    })
    assert response.status_code == 409
    assert "Only one bottle return discount" in response.json()["error"]["detail"]


def test_apply_unknown_discount(client):
    response = client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": "missing", "customer_id": "cust-1", "order_amount": 100,
    })
    assert response.status_code == 404


def test_apply_non_numeric_amount(client):
    discount = create(client)
    response = client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": discount["id"], "customer_id": "cust-1", "order_amount": "lots",
    })
    assert response.status_code == 422


def test_available_discounts_for_customer(client):
    today = date.today()
    create(client, name="Everyone")
    create(client, name="Gold only", customer_tiers=["gold"])
    create(client, name="Big baskets", min_purchase_amount=1000)
    create(client, name="Not yet", start_date=str(today + timedelta(days=30)))
    once = create(client, name="Once", usage_per_customer=1)
    client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": once["id"], "customer_id": "cust-1", "order_amount": 100,
    })

    response = client.get("/discounts/available/cust-1", params={"order_amount": 200})
    assert response.status_code == 200
    assert {d["name"] for d in response.json()["discounts"]} == {"Everyone"}

    response = client.get("/discounts/available/cust-2", params={"order_amount": 2000, "customer_tier": "gold"})
    names = {d["name"] for d in response.json()["discounts"]}
    assert names == {"Everyone", "Gold only", "Big baskets", "Once"}


def test_stats_overview(client):
    pct = create(client)
    create(client, name="Flat", type="fixed_amount", value=20)
    create(client, name="Bottles", type="bottle_return", value=0, bottle_return_count=1, is_active=False)
    client.post("/discounts/apply", json={
        "order_id": "order-1", "discount_id": pct["id"], "customer_id": "cust-1", "order_amount": 300,
    })

    data = client.get("/discounts/stats/overview").json()
    assert data["total_discounts"] == 3
    assert data["active_discounts"] == 2
    assert data["inactive_discounts"] == 1
    assert data["percentage_discounts"] == 1
    assert data["fixed_amount_discounts"] == 1
    assert data["bottle_return_discounts"] == 1
    assert data["total_applications"] == 1
    assert data["total_discount_given"] == 30.0


def test_business_rules_upsert(client):
    response = client.post("/discounts/rules/business", json={
        "rule_key": "max_bottle_returns_per_order", "rule_value": 1, "rule_type": "bottle_return",
    })
    assert response.status_code == 200
    client.post("/discounts/rules/business", json={
        "rule_key": "max_bottle_returns_per_order", "rule_value": {"limit": 2},
        "rule_type": "bottle_return", "description": "raised for the holidays",
    })
    client.post("/discounts/rules/business", json={
        "rule_key": "allow_stacking", "rule_value": False, "rule_type": "stacking",
    })

    rules = client.get("/discounts/rules/business").json()["rules"]
    assert [r["rule_key"] for r in rules] == ["max_bottle_returns_per_order", "allow_stacking"]
    assert rules[0]["rule_value"] == {"limit": 2}

    rules = client.get("/discounts/rules/business", params={"rule_type": "stacking"}).json()["rules"]
    assert len(rules) == 1
    assert rules[0]["rule_value"] is False


def test_campaigns(client):
    discount = create(client)
    response = client.post("/discounts/campaigns", json={
        "name": "Holiday push", "type": "holiday", "discount_ids": [discount["id"]],
        "start_date": "2026-12-01", "end_date": "2026-12-31", "budget": 5000,
    })
    assert response.status_code == 201
    assert response.json()["discount_count"] == 1

    campaigns = client.get("/discounts/campaigns").json()["campaigns"]
    assert len(campaigns) == 1
    assert campaigns[0]["name"] == "Holiday push"
    assert campaigns[0]["target_audience"] == "all"

    response = client.post("/discounts/campaigns", json={
        "name": "Ghost", "type": "seasonal", "discount_ids": ["missing"],
        "start_date": "2026-12-01", "end_date": "2026-12-31",
    })
    assert response.status_code == 400


def test_health_endpoint(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
