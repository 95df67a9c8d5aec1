from datetime import date, datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models import (
    BookingRequest,
    BookingRequestDate,
    RequestStatus,
    User,
    UserRole,
    Vendor,
    VendorInvitation,
    VendorStatus,
)
from app.models.base import BaseModel
from app.api.dependencies import get_db
from app.api.auth import create_access_token


def setup_app():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    return Session


def create_data(Session):
    db = Session()
    admin = User(email='admin@example.com', password='x', role=UserRole.ADMIN)
    viewer = User(email='viewer@example.com', password='x', full_name='Vera', role=UserRole.VIEWER)
    owner = User(email='owner@example.com', password='x', role=UserRole.VENDOR)
    db.add_all([admin, viewer, owner])
    db.commit()
    vendor = Vendor(
        user_id=owner.id,
        business_name='Lens Studio',
        category='photography',
        location='Goa',
    )
    db.add(vendor)
    db.commit()
    ids = admin.id, viewer.id, owner.id, vendor.id
    db.close()
    return ids


def auth(email):
    return {'Authorization': f"Bearer {create_access_token({'sub': email})}"}


ADMIN = auth('admin@example.com')


def test_admin_routes_require_admin():
    Session = setup_app()
    create_data(Session)
    client = TestClient(app)
    denied = client.get('/api/v1/admin/analytics', headers=auth('viewer@example.com'))
    assert denied.status_code == 403
    assert denied.json()['detail']['code'] == 'forbidden'
    assert denied.json()['detail']['retryable'] is False
    not_vendor = client.get('/api/v1/booking-requests/vendor', headers=auth('viewer@example.com'))
    assert not_vendor.status_code == 403
    assert not_vendor.json()['detail']['field_errors'] == {'vendor': 'Required'}
    assert client.get('/api/v1/admin/analytics').status_code == 401
    app.dependency_overrides.pop(get_db, None)


def test_verify_and_reject_vendor():
    Session = setup_app()
    _, _, _, vendor_id = create_data(Session)
    client = TestClient(app)

    pending = client.get('/api/v1/admin/vendors?status=pending', headers=ADMIN).json()
    assert [v['id'] for v in pending] == [vendor_id]

    verified = client.post(f'/api/v1/admin/vendors/{vendor_id}/verify', headers=ADMIN)
    assert verified.status_code == 200
    assert verified.json()['status'] == 'verified'
    assert verified.json()['is_verified'] is True
    assert [v['id'] for v in client.get('/api/v1/vendors/').json()] == [vendor_id]

    rejected = client.post(
        f'/api/v1/admin/vendors/{vendor_id}/reject',
        json={'reason': 'Portfolio missing'},
        headers=ADMIN,
    )
    assert rejected.json()['status'] == 'rejected'
    db = Session()
    assert db.get(Vendor, vendor_id).rejection_reason == 'Portfolio missing'
    db.close()

    assert client.post('/api/v1/admin/vendors/999/verify', headers=ADMIN).status_code == 404

    analytics = client.get('/api/v1/admin/analytics', headers=ADMIN).json()
    assert analytics['total_users'] == 3
    assert analytics['total_vendors'] == 1
    assert analytics['verified_vendors'] == 0
    app.dependency_overrides.pop(get_db, None)


def test_suspend_and_activate_user():
    Session = setup_app()
    admin_id, viewer_id, _, _ = create_data(Session)
    client = TestClient(app)

    users = client.get('/api/v1/admin/users', headers=ADMIN).json()
    assert {u['email'] for u in users} == {
        'admin@example.com',
        'viewer@example.com',
        'owner@example.com',
    }

    self_suspend = client.post(f'/api/v1/admin/users/{admin_id}/suspend', headers=ADMIN)
    assert self_suspend.status_code == 422

    resp = client.post(f'/api/v1/admin/users/{viewer_id}/suspend', headers=ADMIN)
    assert resp.json()['is_active'] is False
    assert client.get('/api/v1/auth/me', headers=auth('viewer@example.com')).status_code == 403

    client.post(f'/api/v1/admin/users/{viewer_id}/activate', headers=ADMIN)
    assert client.get('/api/v1/auth/me', headers=auth('viewer@example.com')).status_code == 200
    app.dependency_overrides.pop(get_db, None)


def test_expire_stale_requests():
    Session = setup_app()
    _, viewer_id, _, vendor_id = create_data(Session)
    db = Session()
    old = datetime.utcnow() - timedelta(days=45)
    stale = BookingRequest(
        vendor_id=vendor_id,
        user_id=viewer_id,
        status=RequestStatus.PENDING,
        version=1,
        created_at=old,
        updated_at=old,
    )
    fresh = BookingRequest(vendor_id=vendor_id, user_id=viewer_id, status=RequestStatus.COUNTERED, version=2)
    accepted = BookingRequest(
        vendor_id=vendor_id,
        user_id=viewer_id,
        status=RequestStatus.ACCEPTED,
        version=2,
        created_at=old,
        updated_at=old,
    )
    stale.dates = [BookingRequestDate(event_date=date(2025, 6, 1))]
    db.add_all([stale, fresh, accepted])
    db.commit()
    stale_id, fresh_id, accepted_id = stale.id, fresh.id, accepted.id
    db.close()

    client = TestClient(app)
    resp = client.post('/api/v1/admin/booking-requests/expire', headers=ADMIN)
    assert resp.status_code == 200
    assert resp.json() == {'expired': [stale_id]}

    rows = client.get('/api/v1/admin/booking-requests', headers=ADMIN).json()
    by_id = {r['id']: r for r in rows}
    assert by_id[stale_id]['status'] == 'expired'
    assert by_id[stale_id]['first_date'] == '2025-06-01'
    assert by_id[stale_id]['requester_name'] == 'Vera'
    assert by_id[fresh_id]['status'] == 'countered'
    assert by_id[accepted_id]['status'] == 'accepted'

    everything = client.post('/api/v1/admin/booking-requests/expire?older_than_days=0', headers=ADMIN)
    assert everything.json() == {'expired': [fresh_id]}

    analytics = client.get('/api/v1/admin/analytics', headers=ADMIN).json()
    assert analytics['requests_by_status']['expired'] == 2
    app.dependency_overrides.pop(get_db, None)


def test_onboarding_application_approval():
    Session = setup_app()
    _, viewer_id, _, _ = create_data(Session)
    client = TestClient(app)
    viewer = auth('viewer@example.com')

    application = {
        'business_name': 'Vera Catering',
        'category': 'catering',
        'location': 'Pune',
    }
    resp = client.post('/api/v1/onboarding/applications', json=application, headers=viewer)
    assert resp.status_code == 201
    app_id = resp.json()['id']
    duplicate = client.post('/api/v1/onboarding/applications', json=application, headers=viewer)
    assert duplicate.status_code == 422

    listed = client.get('/api/v1/admin/onboarding/applications?status=pending', headers=ADMIN).json()
    assert [a['id'] for a in listed] == [app_id]

    approved = client.post(f'/api/v1/admin/onboarding/applications/{app_id}/approve', headers=ADMIN)
    assert approved.status_code == 200
    assert approved.json()['status'] == 'approved'
    vendor_id = approved.json()['vendor_id']

    db = Session()
    assert db.get(User, viewer_id).role == UserRole.VENDOR
    vendor = db.get(Vendor, vendor_id)
    assert vendor.status == VendorStatus.VERIFIED
    assert vendor.business_name == 'Vera Catering'
    db.close()

    again = client.post(f'/api/v1/admin/onboarding/applications/{app_id}/reject', json={}, headers=ADMIN)
    assert again.status_code == 422

    mine = client.get('/api/v1/onboarding/applications/me', headers=viewer).json()
    assert [a['status'] for a in mine] == ['approved']
    app.dependency_overrides.pop(get_db, None)


def test_onboarding_application_rejection():
    Session = setup_app()
    create_data(Session)
    client = TestClient(app)
    resp = client.post(
        '/api/v1/onboarding/applications',
        json={'business_name': 'Vera Decor', 'category': 'decor', 'location': 'Pune'},
        headers=auth('viewer@example.com'),
    )
    app_id = resp.json()['id']
    rejected = client.post(
        f'/api/v1/admin/onboarding/applications/{app_id}/reject',
        json={'reason': 'Outside service area'},
        headers=ADMIN,
    )
    assert rejected.json()['status'] == 'rejected'
    assert rejected.json()['rejection_reason'] == 'Outside service area'
    app.dependency_overrides.pop(get_db, None)


def test_vendor_invitation_flow():
    Session = setup_app()
    _, viewer_id, _, _ = create_data(Session)
    client = TestClient(app)

    created = client.post('/api/v1/admin/invitations', json={'email': 'Viewer@Example.com'}, headers=ADMIN)
    assert created.status_code == 201
    token = created.json()['token']
    assert created.json()['email'] == 'viewer@example.com'

    status = client.get(f'/api/v1/onboarding/invitations/{token}').json()
    assert status == {'email': 'viewer@example.com', 'valid': True, 'reason': None}
    unknown = client.get('/api/v1/onboarding/invitations/nope').json()
    assert unknown['valid'] is False
    assert unknown['reason'] == 'Invitation not found'

    wrong_user = client.post(f'/api/v1/onboarding/invitations/{token}/accept', headers=auth('owner@example.com'))
    assert wrong_user.status_code == 403

    accepted = client.post(f'/api/v1/onboarding/invitations/{token}/accept', headers=auth('viewer@example.com'))
    assert accepted.status_code == 200
    db = Session()
    assert db.get(User, viewer_id).role == UserRole.VENDOR
    assert db.query(VendorInvitation).one().accepted_at is not None
    db.close()

    reused = client.get(f'/api/v1/onboarding/invitations/{token}').json()
    assert reused['reason'] == 'Invitation already used'
    app.dependency_overrides.pop(get_db, None)


def test_expired_invitation_is_refused():
    Session = setup_app()
    _, viewer_id, _, _ = create_data(Session)
    db = Session()
    db.add(
        VendorInvitation(
            email='viewer@example.com',
            token='old-token',
            expires_at=datetime.utcnow() - timedelta(hours=1),
        )
    )
    db.commit()
    db.close()
    client = TestClient(app)
    resp = client.post('/api/v1/onboarding/invitations/old-token/accept', headers=auth('viewer@example.com'))
    assert resp.status_code == 422
    assert resp.json()['detail']['message'] == 'Invitation expired'
    app.dependency_overrides.pop(get_db, None)
