"""Tests for supplier CRUD routes."""

from stockroom.models.invoice import Invoice, InvoiceStatus
from stockroom.models.supplier import Supplier


class TestSupplierCrud:
    def test_create_supplier(self, client, auth_headers):
        response = client.post("/suppliers", json={"name": "  Fresh Farms  "}, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Fresh Farms"
        assert "createdAt" in data

    def test_create_supplier_blank_name(self, client, auth_headers):
        response = client.post("/suppliers", json={"name": "   "}, headers=auth_headers)
        assert response.status_code == 400

    def test_list_suppliers_ordered_by_name(self, client, db_session, auth_headers):
        db_session.add_all([Supplier(name="Zeta"), Supplier(name="Alpha"), Supplier(name="Mid")])
        db_session.commit()
        response = client.get("/suppliers", headers=auth_headers)
        assert response.status_code == 200
        assert [s["name"] for s in response.json()] == ["Alpha", "Mid", "Zeta"]

    def test_get_supplier_with_products(self, client, auth_headers, test_supplier, test_product):
        response = client.get(f"/suppliers/{test_supplier.id}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Test Supplier"
        assert [p["id"] for p in data["products"]] == [test_product.id]

    def test_get_missing_supplier(self, client, auth_headers):
        response = client.get("/suppliers/9999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["errorKind"] == "not_found"

    def test_non_positive_id_is_bad_request(self, client, auth_headers):
        assert client.get("/suppliers/0", headers=auth_headers).status_code == 400
        assert client.get("/suppliers/abc", headers=auth_headers).status_code == 400

    def test_update_supplier(self, client, auth_headers, test_supplier):
        response = client.put(
            f"/suppliers/{test_supplier.id}", json={"name": "Renamed"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_update_missing_supplier(self, client, auth_headers):
        response = client.put("/suppliers/9999", json={"name": "X"}, headers=auth_headers)
        assert response.status_code == 404

    def test_delete_supplier(self, client, db_session, auth_headers, test_supplier):
        response = client.delete(f"/suppliers/{test_supplier.id}", headers=auth_headers)
        assert response.status_code == 204
        assert db_session.get(Supplier, test_supplier.id) is None

    def test_delete_supplier_with_products_conflicts(self, client, auth_headers, test_supplier, test_product):
        response = client.delete(f"/suppliers/{test_supplier.id}", headers=auth_headers)
        assert response.status_code == 409

    def test_delete_supplier_with_invoices_conflicts(self, client, db_session, auth_headers, test_supplier):
        db_session.add(Invoice(
            supplier_id=test_supplier.id,
            original_name="a.png",
            stored_path="uploads/invoices/a.png",
            mime_type="image/png",
            status=InvoiceStatus.UPLOADED,
        ))
        db_session.commit()
        response = client.delete(f"/suppliers/{test_supplier.id}", headers=auth_headers)
        assert response.status_code == 409
