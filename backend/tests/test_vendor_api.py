from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models import User, UserRole
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


def create_users(Session):
    db = Session()
    owner = User(email='owner@example.com', password='x', full_name='Owen', role=UserRole.VIEWER)
    guest = User(email='guest@example.com', password='x', full_name='Gita', role=UserRole.VIEWER)
    other = User(email='other@example.com', password='x', role=UserRole.VIEWER)
    db.add_all([owner, guest, other])
    db.commit()
    ids = owner.id, guest.id, other.id
    db.close()
    return ids


def auth(email):
    return {'Authorization': f"Bearer {create_access_token({'sub': email})}"}


VENDOR = {
    'business_name': 'Bloom Decor',
    'category': 'decor',
    'location': 'Pune',
    'portfolio_images': ['a.jpg'],
}


def create_vendor(client):
    resp = client.post('/api/v1/vendors/', json=VENDOR, headers=auth('owner@example.com'))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_vendor_promotes_user_and_lists():
    Session = setup_app()
    owner_id, _, _ = create_users(Session)
    client = TestClient(app)

    vendor = create_vendor(client)
    assert vendor['user_id'] == owner_id
    assert vendor['status'] == 'pending'
    assert vendor['is_verified'] is False

    db = Session()
    assert db.get(User, owner_id).role == UserRole.VENDOR
    db.close()

    again = client.post('/api/v1/vendors/', json=VENDOR, headers=auth('owner@example.com'))
    assert again.status_code == 422

    # Unverified listings are hidden by default
    assert client.get('/api/v1/vendors/').json() == []
    listed = client.get('/api/v1/vendors/?verified_only=false&category=decor').json()
    assert [v['id'] for v in listed] == [vendor['id']]

    mine = client.get('/api/v1/vendors/me', headers=auth('owner@example.com'))
    assert mine.status_code == 200
    assert mine.json()['business_name'] == 'Bloom Decor'
    assert client.get('/api/v1/vendors/me', headers=auth('guest@example.com')).status_code == 403

    app.dependency_overrides.pop(get_db, None)


def test_only_owner_updates_listing():
    Session = setup_app()
    create_users(Session)
    client = TestClient(app)
    vendor_id = create_vendor(client)['id']

    denied = client.put(
        f'/api/v1/vendors/{vendor_id}',
        json={'location': 'Mumbai'},
        headers=auth('guest@example.com'),
    )
    assert denied.status_code == 403
    assert denied.json()['detail']['code'] == 'forbidden'

    resp = client.put(
        f'/api/v1/vendors/{vendor_id}',
        json={'location': 'Mumbai'},
        headers=auth('owner@example.com'),
    )
    assert resp.status_code == 200
    assert resp.json()['location'] == 'Mumbai'
    assert resp.json()['business_name'] == 'Bloom Decor'

    assert client.get('/api/v1/vendors/999').status_code == 404

    app.dependency_overrides.pop(get_db, None)


def test_package_crud_and_estimate():
    Session = setup_app()
    create_users(Session)
    client = TestClient(app)
    vendor_id = create_vendor(client)['id']
    owner = auth('owner@example.com')

    created = client.post(
        f'/api/v1/vendors/{vendor_id}/packages',
        json={
            'title': 'Dinner buffet',
            'pricing_type': 'per_person',
            'price_per_person': '450',
            'min_persons': 100,
            'extras': [{'name': 'Live counter', 'available_qty': 2, 'price_per_unit': '3000'}],
        },
        headers=owner,
    )
    assert created.status_code == 201, created.text
    package = created.json()
    extra_id = package['extras'][0]['id']

    estimate = client.post(
        f"/api/v1/vendors/{vendor_id}/packages/{package['id']}/estimate",
        json={'persons': 80, 'extras': [{'extra_id': extra_id, 'quantity': 2}]},
    )
    assert estimate.status_code == 200
    body = estimate.json()
    assert body['billable_persons'] == 100
    assert float(body['total']) == 51000.0

    too_many = client.post(
        f"/api/v1/vendors/{vendor_id}/packages/{package['id']}/estimate",
        json={'extras': [{'extra_id': extra_id, 'quantity': 5}]},
    )
    assert too_many.status_code == 422
    assert too_many.json()['detail']['field_errors'] == {f'extras.{extra_id}': 'Only 2 available'}

    updated = client.put(
        f"/api/v1/vendors/{vendor_id}/packages/{package['id']}",
        json={'title': 'Grand buffet', 'extras': []},
        headers=owner,
    )
    assert updated.status_code == 200
    assert updated.json()['title'] == 'Grand buffet'
    assert updated.json()['extras'] == []

    detail = client.get(f'/api/v1/vendors/{vendor_id}').json()
    assert [p['title'] for p in detail['packages']] == ['Grand buffet']

    forbidden = client.delete(
        f"/api/v1/vendors/{vendor_id}/packages/{package['id']}",
        headers=auth('guest@example.com'),
    )
    assert forbidden.status_code == 403
    deleted = client.delete(f"/api/v1/vendors/{vendor_id}/packages/{package['id']}", headers=owner)
    assert deleted.status_code == 204
    assert client.get(f'/api/v1/vendors/{vendor_id}/packages').json() == []

    app.dependency_overrides.pop(get_db, None)


def test_ratings_are_upserted_and_summarised():
    Session = setup_app()
    create_users(Session)
    client = TestClient(app)
    vendor_id = create_vendor(client)['id']

    own = client.post(
        f'/api/v1/vendors/{vendor_id}/ratings',
        json={'rating': 5},
        headers=auth('owner@example.com'),
    )
    assert own.status_code == 422

    first = client.post(
        f'/api/v1/vendors/{vendor_id}/ratings',
        json={'rating': 2, 'review': 'Late'},
        headers=auth('guest@example.com'),
    )
    assert first.status_code == 200
    assert first.json()['user_name'] == 'Gita'
    changed = client.post(
        f'/api/v1/vendors/{vendor_id}/ratings',
        json={'rating': 4, 'review': 'Better after all'},
        headers=auth('guest@example.com'),
    )
    assert changed.json()['id'] == first.json()['id']
    client.post(f'/api/v1/vendors/{vendor_id}/ratings', json={'rating': 5}, headers=auth('other@example.com'))

    out_of_range = client.post(
        f'/api/v1/vendors/{vendor_id}/ratings',
        json={'rating': 6},
        headers=auth('other@example.com'),
    )
    assert out_of_range.status_code == 422
    assert 'rating' in out_of_range.json()['detail']['field_errors']

    stats = client.get(f'/api/v1/vendors/{vendor_id}/ratings/stats').json()
    assert stats['total_ratings'] == 2
    assert stats['average_rating'] == 4.5
    assert stats['distribution'] == {'1': 0, '2': 0, '3': 0, '4': 1, '5': 1}

    page = client.get(f'/api/v1/vendors/{vendor_id}/ratings?page=1&limit=1').json()
    assert page['total'] == 2
    assert page['has_more'] is True
    assert len(page['ratings']) == 1

    mine = client.get(f'/api/v1/vendors/{vendor_id}/ratings/me', headers=auth('guest@example.com'))
    assert mine.json()['rating'] == 4

    detail = client.get(f'/api/v1/vendors/{vendor_id}').json()
    assert detail['average_rating'] == 4.5
    assert detail['total_ratings'] == 2

    app.dependency_overrides.pop(get_db, None)


def test_view_tracking_and_stats():
    Session = setup_app()
    create_users(Session)
    client = TestClient(app)
    vendor_id = create_vendor(client)['id']

    own = client.post(f'/api/v1/vendors/{vendor_id}/views', headers=auth('owner@example.com'))
    assert own.json()['recorded'] is False

    guest = auth('guest@example.com')
    assert client.post(f'/api/v1/vendors/{vendor_id}/views', headers=guest).json()['recorded'] is True
    assert client.post(f'/api/v1/vendors/{vendor_id}/views', headers=guest).json()['recorded'] is False
    anon = client.post(f'/api/v1/vendors/{vendor_id}/views', headers={'User-Agent': 'pytest'})
    assert anon.json()['recorded'] is True

    assert client.get(f'/api/v1/vendors/{vendor_id}/views/stats', headers=guest).status_code == 403
    stats = client.get(f'/api/v1/vendors/{vendor_id}/views/stats', headers=auth('owner@example.com')).json()
    assert stats['total_views'] == 2
    assert stats['unique_views'] == 1
    assert stats['recent_views'] == 2

    app.dependency_overrides.pop(get_db, None)
