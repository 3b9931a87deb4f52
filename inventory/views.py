import logging

from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework import filters
from rest_framework.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django_filters.rest_framework import DjangoFilterBackend

from authentication.permissions import IsRestaurantAdmin, IsRestaurantAdminOrReadOnly
from availability.cascade import LockKind
from availability.overrides import AvailabilityReason
from availability.schedules import effective_window
from availability.timeofday import Weekday, format_hhmm, weekday_of
from .models import DaySchedule, FoodCategory, MenuItem, SpecialItem
from .serializers import (
    BulkMenuStatusSerializer, BulkSpecialPauseSerializer, DayScheduleSerializer,
    DayScheduleUpdateSerializer, FoodCategorySerializer, MenuItemSerializer, ScheduleSerializer,
    SoldOutScheduleSerializer, SpecialItemSerializer, TodaySpecialItemSerializer,
)
from . import services

logger = logging.getLogger(__name__)


def _category_response(category):
    return Response(FoodCategorySerializer(category).data)


class AdminWritesMixin:
    """Menu reads are public; only restaurant admins may change it"""

    def get_permissions(self):
        if self.request.method in ['POST', 'PUT', 'PATCH', 'DELETE']:
            return [IsRestaurantAdmin()]
        return [AllowAny()]


# Food Category Views
class FoodCategoryListCreateView(AdminWritesMixin, generics.ListCreateAPIView):
    """
    get: List all active food categories
    post: Create a new food category (admins only)
    """
    queryset = FoodCategory.objects.filter(is_active=True).prefetch_related('items')
    serializer_class = FoodCategorySerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_paused', 'is_sold_out', 'is_manually_paused']
    search_fields = ['name']
    ordering_fields = ['sort_order', 'name', 'created_at']
    ordering = ['sort_order', 'name']


class FoodCategoryRetrieveUpdateDestroyView(AdminWritesMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Get category details
    put/patch: Update category (admins only)
    delete: Delete category and the items that only belong to it (admins only)
    """
    queryset = FoodCategory.objects.all()
    serializer_class = FoodCategorySerializer

    def destroy(self, request, *args, **kwargs):
        category = self.get_object()

        with transaction.atomic():
            deleted_items = 0
            updated_items = 0
            for item in category.items.prefetch_related('categories'):
                if item.categories.count() == 1:
                    # Item only has this category, delete it
                    item.delete()
                    deleted_items += 1
                else:
                    item.categories.remove(category)
                    updated_items += 1
            category.delete()

        logger.info(f"Category {category.name} deleted: {deleted_items} items deleted, {updated_items} items updated")
        return Response({
            "success": True,
            "message": f"Category deleted. {deleted_items} items deleted, {updated_items} items updated.",
            "deletedItems": deleted_items,
            "updatedItems": updated_items,
        })


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def toggle_category_pause(request, pk):
    """Flip the manual pause on a category"""
    category = get_object_or_404(FoodCategory, pk=pk)
    category = services.set_manual_pause(category.pk, not category.is_manually_paused)
    return _category_response(category)


def _window_record(window):
    if not window:
        return None
    return {'startTime': format_hhmm(window.start), 'endTime': format_hhmm(window.end)}


@api_view(['GET', 'PATCH'])
@permission_classes([IsRestaurantAdminOrReadOnly])
def category_schedule(request, pk):
    """
    get: The category's effective window per weekday and its overrides
    patch: Replace the category's availability schedule (admins only)
    """
    if request.method == 'GET':
        schedule = services.get_schedule(pk)
        manually_paused, sold_out = services.get_overrides(pk)
        return Response({
            'id': pk,
            # None when the category has no enabled schedule and is never schedule-locked
            'schedule': None if schedule is None else {
                'type': schedule.mode.value,
                'days': {str(int(day)): _window_record(effective_window(schedule, day)) for day in Weekday},
            },
            'isManuallyPaused': manually_paused,
            'soldOut': {
                'active': sold_out.active,
                'resumeAt': format_hhmm(sold_out.resume_at) if sold_out.resume_at is not None else None,
            },
        })

    serializer = ScheduleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    category = services.set_schedule(pk, serializer.validated_data)
    return _category_response(category)


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def toggle_category_soldout(request, pk):
    """Flip sold out by hand; clears any timed resume"""
    category = get_object_or_404(FoodCategory, pk=pk)
    category = services.set_sold_out(category.pk, not category.sold_out_active)
    return _category_response(category)


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def schedule_category_soldout(request, pk):
    """
    Mark a category sold out until a time later today, or cancel that timed
    sold out with ``{"enabled": false}``.

    Cancelling only affects a timed sold out. A category sold out by hand
    stays sold out and is returned unchanged with a ``message``; clear it
    with toggle-soldout.
    """
    serializer = SoldOutScheduleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    category = get_object_or_404(FoodCategory, pk=pk)
    if data['enabled']:
        category = services.set_sold_out(category.pk, True, data['resume_at'])
    elif category.sold_out_resume_at is not None:
        category = services.set_sold_out(category.pk, False)
    else:
        message = "No timed sold out to cancel."
        if category.sold_out_active:
            message += " Use toggle-soldout to clear a manual sold out."
        return Response({**FoodCategorySerializer(category).data, 'message': message})
    return _category_response(category)


def _requested_moment(request):
    """The ``?at=`` instant to evaluate at, or None for now"""
    value = request.query_params.get('at')
    if not value:
        return None
    try:
        moment = parse_datetime(value)
    except ValueError:
        moment = None
    if moment is None:
        raise ValidationError({'at': "Expected an ISO 8601 date and time, e.g. 2025-01-06T21:30"})
    if timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment


@api_view(['GET'])
@permission_classes([AllowAny])
def evaluate_category(request, pk):
    """Live availability of a category, now or at ``?at=``"""
    state = services.evaluate(pk, _requested_moment(request))
    return Response({'id': pk, **services.describe(state)})


# Menu Item Views
class MenuItemListCreateView(AdminWritesMixin, generics.ListCreateAPIView):
    """
    get: List menu items with their category lock state
    post: Create a new menu item (admins only)
    """
    queryset = MenuItem.objects.prefetch_related('categories')
    serializer_class = MenuItemSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['available', 'food_type', 'is_today_special', 'categories__name']
    search_fields = ['name', 'description', 'categories__name']
    ordering_fields = ['name', 'price', 'created_at']
    ordering = ['name']

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if getattr(self.request, 'method', None) == 'GET':
            # One pass over the categories for the whole page instead of per item
            context['category_states'] = services.category_states()
        return context


class MenuItemRetrieveUpdateDestroyView(AdminWritesMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Get menu item details
    put/patch: Update menu item (admins only)
    delete: Delete menu item (admins only)
    """
    queryset = MenuItem.objects.prefetch_related('categories')
    serializer_class = MenuItemSerializer


@api_view(['GET'])
@permission_classes([AllowAny])
def evaluate_menu_item(request, pk):
    """Whether a menu item is locked by its categories, live when ``?at=`` is given"""
    lock = services.evaluate_item(pk, _requested_moment(request))
    return Response({
        'id': pk,
        'locked': lock.locked,
        'reason': lock.kind.value,
        'blockingCategories': lock.blocking_categories,
    })


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def toggle_menu_item_available(request, pk):
    """Flip a menu item's stock toggle"""
    item = get_object_or_404(MenuItem.objects.prefetch_related('categories'), pk=pk)
    item.available = not item.available
    item.save(update_fields=['available', 'updated_at'])
    return Response(MenuItemSerializer(item, context={'request': request}).data)


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def bulk_update_menu_status(request):
    """Set the stock toggle on every item in a category"""
    serializer = BulkMenuStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    category = get_object_or_404(FoodCategory, name=serializer.validated_data['categoryName'])
    available = serializer.validated_data['available']

    updated_count = MenuItem.objects.filter(categories=category).update(
        available=available, updated_at=timezone.now()
    )
    logger.info(f"{updated_count} items in {category.name} marked available={available}")

    return Response({
        "detail": f"Updated {updated_count} menu items",
        "updated_count": updated_count
    })


# Special Item Views
class SpecialItemListCreateView(AdminWritesMixin, generics.ListCreateAPIView):
    """
    get: List all special items
    post: Create a new special item (admins only)
    """
    queryset = SpecialItem.objects.all()
    serializer_class = SpecialItemSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'description']
    ordering_fields = ['sort_order', 'name', 'created_at']
    ordering = ['sort_order', '-created_at']

    def perform_create(self, serializer):
        item = serializer.save()
        services.refresh_special_item(item)


class SpecialItemRetrieveUpdateDestroyView(AdminWritesMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Get special item details
    put/patch: Update special item (admins only)
    delete: Delete special item (admins only)
    """
    queryset = SpecialItem.objects.all()
    serializer_class = SpecialItemSerializer

    def perform_update(self, serializer):
        item = serializer.save()
        services.refresh_special_item(item)


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def toggle_special_item_pause(request, pk):
    item = get_object_or_404(SpecialItem, pk=pk)
    item = services.set_special_item_pause(item.pk, not item.is_manually_paused)
    return Response(SpecialItemSerializer(item).data)


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def toggle_special_item_availability(request, pk):
    """Flip a special item's stock toggle; an unavailable special is never active"""
    item = get_object_or_404(SpecialItem, pk=pk)
    item.available = not item.available
    item.save(update_fields=['available', 'updated_at'])
    return Response(SpecialItemSerializer(item).data)


@api_view(['PATCH'])
@permission_classes([IsRestaurantAdmin])
def bulk_pause_special_items(request):
    serializer = BulkSpecialPauseSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    updated_count = services.set_special_items_pause(
        serializer.validated_data['ids'], serializer.validated_data['isPaused']
    )
    return Response({
        "detail": f"Updated {updated_count} special items",
        "updated_count": updated_count
    })


def _todays_specials(now):
    today = int(weekday_of(now))
    # days is a JSON list, so filter in Python to stay portable across databases
    return [item for item in SpecialItem.objects.all() if today in (item.days or [])]


@api_view(['GET'])
@permission_classes([AllowAny])
def today_special_items(request):
    """All special items bound to today, with their lock status"""
    now = services.local_now()
    context = {'request': request, 'now': now, 'day_windows': services.global_day_windows()}
    serializer = TodaySpecialItemSerializer(_todays_specials(now), many=True, context=context)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([AllowAny])
def today_active_special_items(request):
    """Only the special items that can be ordered right now"""
    now = services.local_now()
    day_windows = services.global_day_windows()
    items = [
        item for item in _todays_specials(now)
        if item.available and services.evaluate_special_item(item, now, day_windows).open
    ]
    context = {'request': request, 'now': now, 'day_windows': day_windows}
    return Response(TodaySpecialItemSerializer(items, many=True, context=context).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def day_schedules(request):
    """Global special-items windows keyed by weekday"""
    schedules = DayScheduleSerializer(DaySchedule.objects.all(), many=True).data
    return Response({
        str(schedule['day']): {'startTime': schedule['startTime'], 'endTime': schedule['endTime']}
        for schedule in schedules
    })


@api_view(['GET', 'PUT'])
@permission_classes([IsRestaurantAdminOrReadOnly])
def day_schedule_detail(request, day):
    if day not in range(7):
        return Response(
            {"detail": "day must be between 0 (Sunday) and 6 (Saturday)"},
            status=status.HTTP_400_BAD_REQUEST
        )

    if request.method == 'GET':
        schedule = DaySchedule.objects.filter(day=day).first()
        if schedule is None:
            return Response({'day': day, 'startTime': None, 'endTime': None})
        return Response(DayScheduleSerializer(schedule).data)

    serializer = DayScheduleUpdateSerializer(data=request.data, context={'day': Weekday(day)})
    serializer.is_valid(raise_exception=True)
    schedule = services.set_day_schedule(day, serializer.validated_data['start'], serializer.validated_data['end'])
    return Response(DayScheduleSerializer(schedule).data)


@api_view(['GET'])
@permission_classes([IsRestaurantAdmin])
def availability_dashboard(request):
    """Availability summary for the admin home screen"""
    categories = list(FoodCategory.objects.filter(is_active=True))
    states = services.category_states(categories=categories)
    reasons = [state.reason for state in states.values()]

    item_locks = [services.item_lock(item, states) for item in MenuItem.objects.prefetch_related('categories')]
    specials = SpecialItem.objects.all()

    return Response({
        'category_stats': {
            'total_categories': len(categories),
            'open_categories': reasons.count(AvailabilityReason.OPEN),
            'schedule_locked_categories': reasons.count(AvailabilityReason.SCHEDULE_LOCKED),
            'paused_categories': reasons.count(AvailabilityReason.MANUALLY_PAUSED),
            'sold_out_categories': reasons.count(AvailabilityReason.SOLD_OUT),
        },
        'menu_stats': {
            'total_menu_items': len(item_locks),
            'locked_menu_items': sum(1 for lock in item_locks if lock.locked),
            'schedule_locked_items': sum(1 for lock in item_locks if lock.kind is LockKind.SCHEDULE_LOCKED),
            'paused_items': sum(1 for lock in item_locks if lock.kind is LockKind.MANUALLY_PAUSED),
        },
        'special_stats': {
            'total_special_items': specials.count(),
            'paused_special_items': specials.filter(is_paused=True).count(),
            'unavailable_special_items': specials.filter(available=False).count(),
        },
    })
