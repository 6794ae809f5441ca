from rest_framework.permissions import BasePermission


class IsSelfOrStaff(BasePermission):
    """
    For list endpoints scoped by a user id in the URL (buyer_id, seller_id):
    only that user, or staff, may read them.
    Expects the view to name the kwarg in `owner_url_kwarg`.
    """
    message = "You can only view your own records."

    def has_permission(self, request, view):
        owner_id = view.kwargs.get(getattr(view, 'owner_url_kwarg', 'user_id'))
        if owner_id is None:
            return False
        return request.user.is_staff or str(request.user.id) == str(owner_id)
