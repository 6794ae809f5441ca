import pytest
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import CustomUser
from conftest import PASSWORD

pytestmark = pytest.mark.django_db


def test_register_returns_user_and_tokens(api_client):
    response = api_client.post('/api/auth/register/', {
        'email': 'new@example.com',
        'role': 'SELLER',
        'name': 'Nia New',
        'password': PASSWORD,
        'confirm_password': PASSWORD,
    }, format='json')

    assert response.status_code == 201
    assert response.data['user']['email'] == 'new@example.com'
    assert 'password' not in response.data['user']
    token = AccessToken(response.data['access'])
    assert token['role'] == 'SELLER'
    assert CustomUser.objects.get(email='new@example.com').check_password(PASSWORD)


def test_register_rejects_mismatched_passwords(api_client):
    response = api_client.post('/api/auth/register/', {
        'email': 'new@example.com',
        'role': 'BUYER',
        'password': PASSWORD,
        'confirm_password': PASSWORD + 'x',
    }, format='json')

    assert response.status_code == 400
    assert response.data['kind'] == 'invalid_argument'
    assert not CustomUser.objects.filter(email='new@example.com').exists()


def test_token_obtain_carries_role_claim(api_client, seller):
    response = api_client.post('/api/auth/token/', {'email': seller.email, 'password': PASSWORD}, format='json')

    assert response.status_code == 200
    token = AccessToken(response.data['access'])
    assert str(token['user_id']) == str(seller.id)
    assert token['role'] == 'SELLER'


def test_token_obtain_rejects_inactive_user(api_client, seller):
    seller.is_active = False
    seller.save()

    response = api_client.post('/api/auth/token/', {'email': seller.email, 'password': PASSWORD}, format='json')

    assert response.status_code == 401
    assert response.data['kind'] == 'unauthorized'


def test_missing_token_is_unauthorized(api_client):
    response = api_client.get('/api/auth/users/me/')

    assert response.status_code == 401
    assert response.data['kind'] == 'unauthorized'


def test_profile_update_keeps_role_read_only(client_for, buyer):
    client = client_for(buyer)

    response = client.patch('/api/auth/users/me/', {'name': 'Bea B.', 'role': 'SELLER'}, format='json')

    assert response.status_code == 200
    buyer.refresh_from_db()
    assert buyer.name == 'Bea B.'
    assert buyer.role == CustomUser.Role.BUYER


def test_public_profile(client_for, buyer, seller):
    response = client_for(buyer).get(f'/api/users/{seller.id}/')

    assert response.status_code == 200
    assert response.data['email'] == seller.email
    assert response.data['rating'] is None


def test_public_profile_unknown_user(client_for, buyer):
    response = client_for(buyer).get('/api/users/999999/')

    assert response.status_code == 404
    assert response.data['kind'] == 'not_found'
