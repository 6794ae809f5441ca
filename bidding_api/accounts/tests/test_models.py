import pytest

from accounts.models import CustomUser

pytestmark = pytest.mark.django_db


def test_create_user_requires_email():
    with pytest.raises(ValueError):
        CustomUser.objects.create_user(email='', password='x', role=CustomUser.Role.BUYER)


def test_create_superuser_defaults():
    admin = CustomUser.objects.create_superuser(email='Admin@Example.com', password='x')

    assert admin.is_staff and admin.is_superuser
    assert admin.role == CustomUser.Role.BUYER
    assert admin.email == 'Admin@example.com'


def test_role_helpers(buyer, seller):
    assert buyer.is_buyer and not buyer.is_seller
    assert seller.is_seller and not seller.is_buyer
    assert seller.display_name == 'Sam Seller'


def test_recompute_rating_without_ratings_is_none(seller):
    assert seller.recompute_rating() is None
