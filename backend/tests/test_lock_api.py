import pytest
from sqlalchemy.exc import OperationalError

from app.main import app
from app.audit.models import AuditLog, AuditSection
from app.locks.router import get_lock_manager
from app.locks.service import QuotationLockManager


def lock_url(q):
    return f"/api/quotations/{q.id}/lock"


def test_acquire_returns_camel_case_lock(api, alice, quotation):
    r = api(alice).post(lock_url(quotation))
    assert r.status_code == 200
    body = r.json()
    assert body["isLocked"] is True
    assert body["lockedBy"] == str(alice.id)
    assert body["lockedByName"] == "Alice"
    assert body["lockedAt"]
    assert body["expiresInSec"] == 30
    assert body["available"] is True


def test_status_when_unlocked(api, bob, quotation):
    r = api(bob).get(lock_url(quotation))
    assert r.status_code == 200
    assert r.json()["isLocked"] is False
    assert r.json()["lockedByName"] is None


def test_second_editor_gets_conflict_naming_holder(api, alice, bob, quotation, clock):
    api(alice).post(lock_url(quotation))
    clock.advance(5)
    r = api(bob).post(lock_url(quotation))
    assert r.status_code == 409
    detail = r.json()["detail"]
    assert detail["code"] == "lock_conflict"
    assert detail["lockedByName"] == "Alice"

    status = api(bob).get(lock_url(quotation)).json()
    assert status["lockedByName"] == "Alice"
    assert status["expiresInSec"] == 25


def test_reload_by_holder_is_not_a_conflict(api, alice, quotation, clock):
    first = api(alice).post(lock_url(quotation)).json()
    clock.advance(8)
    again = api(alice).post(lock_url(quotation))
    assert again.status_code == 200
    assert again.json()["lockedAt"] == first["lockedAt"]
    assert again.json()["expiresAt"] > first["expiresAt"]


def test_heartbeat_extends_and_loss_is_409(api, alice, bob, quotation, clock):
    a = api(alice)
    a.post(lock_url(quotation))
    clock.advance(10)
    r = a.patch(lock_url(quotation))
    assert r.status_code == 200
    assert r.json()["expiresInSec"] == 30

    r = api(bob).patch(lock_url(quotation))
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "lock_lost"

    clock.advance(31)
    r = a.patch(lock_url(quotation))
    assert r.status_code == 409
    assert api(alice).get(lock_url(quotation)).json()["isLocked"] is False


def test_release_by_other_user_changes_nothing(api, alice, bob, quotation):
    api(alice).post(lock_url(quotation))
    r = api(bob).delete(lock_url(quotation))
    assert r.status_code == 200
    assert r.json() == {"released": False}
    status = api(alice).get(lock_url(quotation)).json()
    assert status["isLocked"] is True
    assert status["lockedByName"] == "Alice"


def test_release_then_other_editor_acquires(api, alice, bob, quotation, clock):
    api(alice).post(lock_url(quotation))
    clock.advance(15)
    assert api(alice).delete(lock_url(quotation)).json() == {"released": True}
    clock.advance(0.1)
    r = api(bob).post(lock_url(quotation))
    assert r.status_code == 200
    assert r.json()["lockedByName"] == "Bob"


def test_abandoned_lock_expires(api, alice, bob, quotation, clock):
    api(alice).post(lock_url(quotation))
    clock.advance(31)
    assert api(bob).get(lock_url(quotation)).json()["isLocked"] is False
    assert api(bob).post(lock_url(quotation)).status_code == 200


def test_viewer_can_watch_but_not_lock(api, alice, vera, quotation):
    api(alice).post(lock_url(quotation))
    v = api(vera)
    assert v.get(lock_url(quotation)).json()["lockedByName"] == "Alice"
    assert v.post(lock_url(quotation)).status_code == 403
    assert v.patch(lock_url(quotation)).status_code == 403


def test_unknown_quotation_is_404(api, alice):
    assert api(alice).post("/api/quotations/999/lock").status_code == 404
    assert api(alice).get("/api/quotations/999/lock").status_code == 404


def test_lock_endpoints_need_a_session(api, quotation):
    anon = api(None)
    assert anon.get(lock_url(quotation)).status_code == 401
    assert anon.post(lock_url(quotation)).status_code == 401
    assert anon.delete(lock_url(quotation)).status_code == 401


def test_holder_comes_from_session_not_body(api, alice, bob, quotation):
    r = api(alice).post(lock_url(quotation), json={"lockedBy": str(bob.id), "lockedByName": "Bob"})
    assert r.json()["lockedByName"] == "Alice"


def test_admin_force_release_is_audited(api, alice, bob, root, quotation, db):
    api(alice).post(lock_url(quotation))
    assert api(bob).delete(lock_url(quotation) + "/force").status_code == 403

    r = api(root).delete(lock_url(quotation) + "/force")
    assert r.json() == {"released": True}
    assert api(bob).post(lock_url(quotation)).status_code == 200

    entry = db.query(AuditLog).filter(AuditLog.section == AuditSection.LOCKS).one()
    assert entry.target_id == str(quotation.id)
    assert "Alice" in entry.summary
    assert entry.user_id == str(root.id)


def test_force_release_without_lock(api, root, quotation):
    assert api(root).delete(lock_url(quotation) + "/force").json() == {"released": False}


class BrokenStore(QuotationLockManager):
    def _down(self, *a, **kw):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    acquire = heartbeat = release = status = _down


@pytest.fixture
def broken_store(api):
    from fastapi import Depends
    from app.deps import get_db

    def _mgr(db=Depends(get_db)):
        return BrokenStore(db)

    app.dependency_overrides[get_lock_manager] = _mgr
    return api


def test_store_failure_degrades_to_no_lock_info(broken_store, alice, quotation):
    c = broken_store(alice)
    r = c.get(lock_url(quotation))
    assert r.status_code == 200
    assert r.json()["isLocked"] is False
    assert r.json()["available"] is False

    r = c.post(lock_url(quotation))
    assert r.status_code == 503
    assert r.json()["detail"]["code"] == "lock_unavailable"

    assert c.patch(lock_url(quotation)).status_code == 503
    r = c.delete(lock_url(quotation))
    assert r.status_code == 200
    assert r.json() == {"released": False}
