from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from conftest import ADMIN, CUSTOMER, OTHER_CUSTOMER, STAFF, make_pdf, make_png

from easyprint.api import checkout as checkout_api
from easyprint.models.enums import CheckoutStep
from easyprint.services.uploads import MEDIA_ROOT
from easyprint.services.validation import CAMPUS_LOCATIONS

ORDER = {
    "customer_name": "Juan Dela Cruz",
    "customer_email": "Juan@Example.com",
    "customer_phone": "09171234567",
    "service_type": "DOCUMENT_PRINTING",
    "paper_size": "A4",
    "color_type": "BLACK_AND_WHITE",
    "copies": 2,
    "pages": 5,
    "binding_type": "NONE",
    "file_url": "/media/documents/thesis.pdf",
    "file_name": "thesis.pdf",
    "price_per_page": 2.0,
    "total_price": 30.0,
    "delivery_type": "CAMPUS",
    "delivery_location": CAMPUS_LOCATIONS[0],
    "payment_proof_url": "/media/payments/gcash.png",
    "payment_reference": "1234567890",
}


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


def test_catalog(client):
    prices = client.get("/catalog/prices").json()
    assert prices["price_per_page"]["short"]["full"] == 8.5
    assert prices["delivery"]["courier"] == {"fee": None, "label": "Varies"}
    assert prices["binding_tiers"]["book-soft"][0] == {"max_pages": 150, "price": 300.0}
    packages = client.get("/catalog/rush-packages").json()
    assert [p["id"] for p in packages][:2] == ["1x1-basic", "1x1-rush"]


def test_estimate_snapshot(client):
    r = client.post("/estimate/", json={
        "service_type": "DOCUMENT_PRINTING",
        "files": [{"name": "a.pdf", "url": "/media/documents/a.pdf", "pages": 5}],
        "paper_size": "a4", "print_mode": "black", "copies": 2,
        "binding": "none", "delivery_type": "campus",
    })
    assert r.status_code == 200
    assert r.json()["final_price"] == 30.0


def test_validate_endpoint(client):
    r = client.post("/validate/", json={"step": 4, "draft": {"contact": {
        "name": "Juan", "phone": "123456789", "email": "juan@example.com"}}})
    body = r.json()
    assert body["passed"] is False
    assert body["issues"][0]["title"] == "Invalid Phone"


def test_upload_endpoint(client):
    r = client.post("/upload", files={"file": ("notes.pdf", make_pdf(2), "application/pdf")},
                    data={"type": "documents"})
    assert r.status_code == 200
    assert r.json()["pages"] == 2

    r = client.post("/upload", files={"file": ("virus.exe", b"MZ", "application/octet-stream")})
    assert r.status_code == 400
    assert r.json()["detail"] == "File type .exe is not supported"


def test_orders_need_identity(client):
    assert client.post("/orders", json=ORDER).status_code == 401
    assert client.get("/orders").status_code == 401


def test_create_order_and_numbering(client):
    first = client.post("/orders", json=ORDER, headers=CUSTOMER)
    second = client.post("/orders", json=ORDER, headers=CUSTOMER)
    assert first.status_code == 201
    assert first.json()["order"]["order_number"] == "MQ_1001"
    assert second.json()["order"]["order_number"] == "MQ_1002"

    order = client.get("/orders/MQ_1001", headers=CUSTOMER).json()
    assert order["customer_email"] == "juan@example.com"
    assert order["status"] == "PENDING"
    assert order["total_price"] == 30.0


def test_create_order_rejections(client):
    r = client.post("/orders", json={**ORDER, "customer_name": "  "}, headers=CUSTOMER)
    assert r.status_code == 400
    assert r.json()["detail"] == "Customer name is required"
    r = client.post("/orders", json={**ORDER, "total_price": 0}, headers=CUSTOMER)
    assert r.json()["detail"] == "Valid total price is required"
    assert client.get("/orders", headers=STAFF).json() == []


def test_customers_only_see_their_own_orders(client):
    client.post("/orders", json=ORDER, headers=CUSTOMER)
    client.post("/orders", json={**ORDER, "customer_email": "maria@example.com"}, headers=OTHER_CUSTOMER)

    assert len(client.get("/orders", headers=CUSTOMER).json()) == 1
    assert len(client.get("/orders", headers=STAFF).json()) == 2
    assert client.get("/orders/MQ_1001", headers=OTHER_CUSTOMER).status_code == 404
    assert client.get("/orders/MQ_9999", headers=STAFF).status_code == 404


def test_staff_status_updates(client):
    client.post("/orders", json=ORDER, headers=CUSTOMER)

    assert client.patch("/orders/MQ_1001", json={"status": "READY"}, headers=CUSTOMER).status_code == 403
    assert client.patch("/orders/MQ_1001", json={"status": "LOST"}, headers=STAFF).status_code == 400

    r = client.patch("/orders/MQ_1001", json={"status": "PROCESSING", "admin_notes": "printing now"}, headers=STAFF)
    assert r.status_code == 200
    assert r.json()["status"] == "PROCESSING"
    assert r.json()["admin_notes"] == "printing now"


def test_dashboard(client):
    client.post("/orders", json=ORDER, headers=CUSTOMER)
    client.post("/orders", json={**ORDER, "total_price": 145.0}, headers=CUSTOMER)
    client.post("/orders", json={**ORDER, "total_price": 80.0}, headers=CUSTOMER)
    client.patch("/orders/MQ_1003", json={"status": "CANCELLED"}, headers=STAFF)

    assert client.get("/dashboard/summary", headers=CUSTOMER).status_code == 403

    summary = client.get("/dashboard/summary", headers=STAFF).json()
    assert summary == {"total_orders": 3, "revenue": 175.0, "pending": 2, "open_messages": 0}

    stats = client.get("/dashboard/stats", headers=STAFF).json()["by_status"]
    assert stats["PENDING"] == 2
    assert stats["CANCELLED"] == 1
    assert stats["COMPLETED"] == 0

    recent = client.get("/dashboard/orders?limit=2", headers=STAFF).json()
    assert [o["order_number"] for o in recent] == ["MQ_1003", "MQ_1002"]


def _advance(client, sid):
    return client.post(f"/checkout/sessions/{sid}/next", headers=CUSTOMER).json()


def test_checkout_session_end_to_end(client):
    r = client.post("/checkout/sessions", headers=CUSTOMER)
    assert r.status_code == 201
    sid = r.json()["session_id"]
    base = f"/checkout/sessions/{sid}"

    blocked = _advance(client, sid)
    assert blocked["advanced"] is False
    assert blocked["issue"]["title"] == "No Files"
    assert blocked["state"]["toasts"][0]["title"] == "No Files"

    r = client.post(f"{base}/files", headers=CUSTOMER,
                    files={"file": ("thesis.pdf", make_pdf(5), "application/pdf")})
    assert r.status_code == 200
    assert r.json()["draft"]["files"][0]["pages"] == 5

    client.post(f"{base}/service-type", json={"service_type": "DOCUMENT_PRINTING"}, headers=CUSTOMER)
    assert _advance(client, sid)["step"] == 2

    r = client.patch(f"{base}/draft", json={"paper_size": "a4", "print_mode": "black", "copies": 2}, headers=CUSTOMER)
    assert r.json()["draft"]["computed_total"] == 30.0
    assert _advance(client, sid)["step"] == 3

    client.patch(f"{base}/draft", json={"delivery_type": "campus", "delivery_location": CAMPUS_LOCATIONS[2]},
                 headers=CUSTOMER)
    assert _advance(client, sid)["step"] == 4

    client.patch(f"{base}/draft", json={"contact": {"name": "Juan Dela Cruz", "phone": "123456789",
                                                    "email": "juan@example.com"}}, headers=CUSTOMER)
    assert _advance(client, sid)["issue"]["title"] == "Invalid Phone"
    client.patch(f"{base}/draft", json={"contact": {"phone": "09171234567"}}, headers=CUSTOMER)
    assert _advance(client, sid)["step"] == 5
    review = _advance(client, sid)
    assert review["step"] == 6
    assert review["state"]["pricing"]["final_price"] == 30.0

    r = client.post(f"{base}/payment-screenshot", headers=CUSTOMER,
                    files={"file": ("gcash.png", make_png(), "image/png")})
    assert r.json()["draft"]["payment_proof"]["screenshot_url"].startswith("/media/payments/")
    client.patch(f"{base}/draft", json={"payment_proof": {"reference_number": "1234567890"}}, headers=CUSTOMER)

    done = _advance(client, sid)
    assert done["advanced"] is True
    assert done["order_number"] == "MQ_1001"
    assert done["state"]["step_label"] == "Confirmation"

    order = client.get("/orders/MQ_1001", headers=CUSTOMER).json()
    assert order["total_price"] == 30.0
    assert order["pages"] == 5
    assert order["copies"] == 2
    assert order["delivery_location"] == CAMPUS_LOCATIONS[2]

    assert client.post(f"{base}/next", headers=CUSTOMER).status_code == 409

    fresh = client.post(f"{base}/reset", headers=CUSTOMER).json()
    assert fresh["step"] == 1
    assert fresh["draft"]["files"] == []


def test_checkout_sessions_are_private(client):
    sid = client.post("/checkout/sessions", headers=CUSTOMER).json()["session_id"]
    assert client.get(f"/checkout/sessions/{sid}", headers=OTHER_CUSTOMER).status_code == 404
    assert client.get("/checkout/sessions/nope", headers=CUSTOMER).status_code == 404


def test_checkout_rejects_bad_draft_values(client):
    sid = client.post("/checkout/sessions", headers=CUSTOMER).json()["session_id"]
    r = client.patch(f"/checkout/sessions/{sid}/draft", json={"paper_size": "b5"}, headers=CUSTOMER)
    assert r.status_code == 422


def test_checkout_file_removal_updates_total(client):
    sid = client.post("/checkout/sessions", headers=CUSTOMER).json()["session_id"]
    base = f"/checkout/sessions/{sid}"
    client.post(f"{base}/files", headers=CUSTOMER, files={"file": ("a.png", make_png(), "image/png")})
    r = client.post(f"{base}/files", headers=CUSTOMER, files={"file": ("b.png", make_png(), "image/png")})
    # 2 pages * 2.00 + campus 10
    assert r.json()["draft"]["computed_total"] == 14.0

    r = client.delete(f"{base}/files/0", headers=CUSTOMER)
    assert r.json()["draft"]["computed_total"] == 12.0
    assert client.delete(f"{base}/files/5", headers=CUSTOMER).status_code == 409


def test_dismiss_toast(client):
    sid = client.post("/checkout/sessions", headers=CUSTOMER).json()["session_id"]
    toast_id = _advance(client, sid)["state"]["toasts"][0]["id"]
    r = client.post(f"/checkout/sessions/{sid}/toasts/{toast_id}/dismiss", headers=CUSTOMER)
    assert r.json()["toasts"] == []


def _documents():
    folder = Path(MEDIA_ROOT) / "documents"
    return set(folder.iterdir()) if folder.exists() else set()


def test_checkout_draft_update_is_all_or_nothing(client):
    sid = client.post("/checkout/sessions", headers=CUSTOMER).json()["session_id"]
    base = f"/checkout/sessions/{sid}"
    r = client.patch(f"{base}/draft", json={"paper_size": "a3", "contact": {"nickname": "JD"}}, headers=CUSTOMER)
    assert r.status_code == 422
    assert client.get(base, headers=CUSTOMER).json()["draft"]["paper_size"] == "a4"


def test_refused_checkout_upload_is_not_kept(client):
    sid = client.post("/checkout/sessions", headers=CUSTOMER).json()["session_id"]
    checkout_api._sessions[sid].machine.step = CheckoutStep.CONFIRMATION
    before = _documents()

    r = client.post(f"/checkout/sessions/{sid}/files", headers=CUSTOMER,
                    files={"file": ("late.pdf", make_pdf(1), "application/pdf")})

    assert r.status_code == 409
    assert r.json()["detail"]["title"] == "Order Complete"
    assert _documents() == before


def test_upload_waiting_on_busy_session_does_not_stall_server(client):
    sid = client.post("/checkout/sessions", headers=CUSTOMER).json()["session_id"]
    sess = checkout_api._sessions[sid]
    pool = ThreadPoolExecutor(max_workers=1)

    sess.lock.acquire()
    try:
        pending = pool.submit(client.post, f"/checkout/sessions/{sid}/files", headers=CUSTOMER,
                              files={"file": ("thesis.pdf", make_pdf(2), "application/pdf")})
        assert client.get("/").status_code == 200
        assert not pending.done()
    finally:
        sess.lock.release()

    r = pending.result(timeout=10)
    pool.shutdown()
    assert r.status_code == 200
    assert r.json()["draft"]["files"][0]["pages"] == 2


def test_staff_delete_order_files(client):
    url = client.post("/upload", files={"file": ("thesis.pdf", make_pdf(2), "application/pdf")},
                      data={"type": "documents"}).json()["url"]
    stored = Path(MEDIA_ROOT) / "documents" / url.rsplit("/", 1)[1]
    assert stored.exists()
    client.post("/orders", json={**ORDER, "file_url": url, "file_urls": [url]}, headers=CUSTOMER)

    assert client.post("/orders/MQ_1001/delete-files", headers=CUSTOMER).status_code == 403
    assert client.post("/orders/MQ_9999/delete-files", headers=STAFF).status_code == 404

    r = client.post("/orders/MQ_1001/delete-files", headers=STAFF)
    assert r.status_code == 200
    order = r.json()["order"]
    assert order["file_url"] == ""
    assert order["file_urls"] == []
    assert order["files_deleted_at"] is not None
    assert order["payment_proof_url"] == ORDER["payment_proof_url"]
    assert not stored.exists()


def test_support_messages(client):
    assert client.post("/messages", json={"subject": "Late order"}).status_code == 401
    assert client.post("/messages", json={"subject": " ", "message": "hi"}, headers=CUSTOMER).status_code == 400

    r = client.post("/messages", json={"subject": " Late order ", "message": "Where is MQ_1001?"}, headers=CUSTOMER)
    assert r.status_code == 201
    msg = r.json()
    assert msg["subject"] == "Late order"
    assert msg["status"] == "PENDING"
    client.post("/messages", json={"subject": "Binding", "message": "Do you do wire?"}, headers=OTHER_CUSTOMER)

    assert len(client.get("/messages", headers=CUSTOMER).json()) == 1
    assert len(client.get("/messages", headers=STAFF).json()) == 2
    assert client.get(f"/messages/{msg['id']}", headers=OTHER_CUSTOMER).status_code == 404

    summary = client.get("/dashboard/summary", headers=STAFF).json()
    assert summary["open_messages"] == 2

    reply = {"message": "It is ready for pickup."}
    assert client.post(f"/messages/{msg['id']}/respond", json=reply, headers=STAFF).status_code == 403
    assert client.post(f"/messages/{msg['id']}/respond", json={"message": ""}, headers=ADMIN).status_code == 400
    assert client.post("/messages/999/respond", json=reply, headers=ADMIN).status_code == 404
    r = client.post(f"/messages/{msg['id']}/respond", json=reply, headers=ADMIN)
    assert r.json()["success"] is True

    thread = client.get(f"/messages/{msg['id']}", headers=CUSTOMER).json()
    assert thread["status"] == "RESPONDED"
    assert thread["responded_at"] is not None
    assert [x["message"] for x in thread["responses"]] == ["It is ready for pickup."]
    assert thread["responses"][0]["responded_by"] == ADMIN["X-User-Email"]

    assert client.patch(f"/messages/{msg['id']}", json={"status": "RESOLVED"}, headers=CUSTOMER).status_code == 403
    assert client.patch(f"/messages/{msg['id']}", json={"status": "RESPONDED"}, headers=STAFF).status_code == 400
    r = client.patch(f"/messages/{msg['id']}", json={"status": "RESOLVED"}, headers=STAFF)
    assert r.json()["status"] == "RESOLVED"
    assert client.get("/dashboard/summary", headers=STAFF).json()["open_messages"] == 1

    assert client.delete(f"/messages/{msg['id']}", headers=STAFF).json()["success"] is True
    assert client.get(f"/messages/{msg['id']}", headers=STAFF).status_code == 404
    assert client.get("/messages", headers=CUSTOMER).json() == []
