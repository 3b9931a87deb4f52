from rest_framework import permissions


class IsRestaurantAdmin(permissions.BasePermission):
    """
    Permission to only allow restaurant admins (staff accounts)
    """
    message = 'Only restaurant admins can change the menu.'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_active and (user.is_staff or user.is_superuser)


class IsRestaurantAdminOrReadOnly(IsRestaurantAdmin):
    """
    Anyone may read the menu; only admins may write
    """
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return super().has_permission(request, view)
