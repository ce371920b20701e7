"""
Integration tests for the public catalog endpoints.
"""


class TestProductListing:
    def test_lists_active_products_only(self, client, make_product):
        make_product(name="Whey")
        make_product(name="Casein", active=False)

        response = client.get("/api/v1/products")

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data["products"]] == ["Whey"]
        assert data["pagination"]["total"] == 1
        assert data["filters"]["active"] is True

    def test_product_shape(self, client, make_product, make_category):
        make_product(
            name="Whey",
            retail_price="49.99",
            distributor_price="39.99",
            stock=12,
            category=make_category("Protein"),
        )

        product = client.get("/api/v1/products").json()["products"][0]

        assert product["retail_price"] == 49.99
        assert product["distributor_price"] == 39.99
        assert product["category"]["name"] == "Protein"
        assert product["inventory"]["stock"] == 12
        assert product["images"] == []

    def test_public_listing_ignores_active_param(self, client, make_product):
        make_product(name="Hidden", active=False)

        response = client.get("/api/v1/products", params={"active": "all"})

        assert response.json()["products"] == []

    def test_search_sort_and_paging(self, client, make_product):
        for name in ("Whey Gold", "Whey Isolate", "Whey Blend", "Zinc"):
            make_product(name=name)

        response = client.get(
            "/api/v1/products",
            params={"search": "whey", "sort": "name", "order": "asc", "limit": 2, "page": 1},
        )

        data = response.json()
        assert [p["name"] for p in data["products"]] == ["Whey Blend", "Whey Gold"]
        assert data["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": True,
            "has_prev": False,
        }
        assert data["filters"]["search"] == "whey"

    def test_limit_over_maximum_is_clamped(self, client, make_product):
        make_product()

        response = client.get("/api/v1/products", params={"limit": 1000})

        assert response.json()["pagination"]["limit"] == 100

    def test_invalid_sort(self, client):
        response = client.get("/api/v1/products", params={"sort": "popularity"})

        assert response.status_code == 422


class TestProductDetail:
    def test_get_product(self, client, make_product):
        product = make_product(name="Whey")

        response = client.get(f"/api/v1/products/{product.id}")

        assert response.status_code == 200
        assert response.json()["product"]["name"] == "Whey"

    def test_inactive_product_is_hidden(self, client, make_product):
        product = make_product(active=False)

        assert client.get(f"/api/v1/products/{product.id}").status_code == 404

    def test_non_integer_id(self, client):
        assert client.get("/api/v1/products/abc").status_code == 422


class TestCategories:
    def test_list_categories(self, client, make_category):
        make_category("Vitamins")
        make_category("Protein")

        response = client.get("/api/v1/categories")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()["categories"]] == ["Protein", "Vitamins"]

    def test_products_by_category(self, client, make_product, make_category):
        protein = make_category("Protein")
        make_product(name="Whey", category=protein)
        make_product(name="Casein", category=protein)
        make_product(name="Hidden", category=protein, active=False)
        make_product(name="Zinc")

        response = client.get(f"/api/v1/products/category/{protein.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["category"]["name"] == "Protein"
        assert [p["name"] for p in data["products"]] == ["Casein", "Whey"]
        assert data["count"] == 2

    def test_products_by_unknown_category(self, client):
        response = client.get("/api/v1/products/category/999")

        assert response.status_code == 404
        assert response.json()["error"]["details"]["resource"] == "Category"
