from rest_framework import serializers

from availability.records import DEFAULT_END, DEFAULT_START, decode_day_windows
from availability.timeofday import Weekday, format_hhmm, minutes_of, parse_hhmm, weekday_of
from availability.validators import ScheduleValidationError, validate_schedule, window_errors

from .models import DaySchedule, FoodCategory, MenuItem, SpecialItem
from . import services


def hhmm(value):
    try:
        return parse_hhmm(value)
    except ValueError as exc:
        raise serializers.ValidationError(str(exc))


class DaySlotSerializer(serializers.Serializer):
    day = serializers.IntegerField(min_value=0, max_value=6)
    enabled = serializers.BooleanField(default=True)
    startTime = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    endTime = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class ScheduleSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(default=False)
    type = serializers.ChoiceField(choices=['daily', 'custom'], default='daily')
    startTime = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    endTime = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    days = serializers.ListField(child=serializers.IntegerField(min_value=0, max_value=6), required=False)
    customDays = DaySlotSerializer(many=True, required=False)

    def validate(self, attrs):
        try:
            validate_schedule(attrs)
        except ScheduleValidationError as exc:
            raise serializers.ValidationError({
                'schedule': exc.messages,
                'days': {str(day): errors for day, errors in exc.day_errors.items()},
            })
        return attrs


class SoldOutScheduleSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(default=False)
    endTime = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate(self, attrs):
        if attrs.get('enabled'):
            if not attrs.get('endTime'):
                raise serializers.ValidationError({'endTime': "A resume time is required to schedule sold out."})
            attrs['resume_at'] = hhmm(attrs['endTime'])
        else:
            attrs['resume_at'] = None
        return attrs


class BulkMenuStatusSerializer(serializers.Serializer):
    categoryName = serializers.CharField()
    available = serializers.BooleanField(default=True)


class BulkSpecialPauseSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    isPaused = serializers.BooleanField(default=True)


class AvailabilityFieldsMixin(serializers.Serializer):
    isPaused = serializers.BooleanField(source='is_paused', read_only=True)
    isManuallyPaused = serializers.BooleanField(source='is_manually_paused', read_only=True)


class FoodCategorySerializer(AvailabilityFieldsMixin, serializers.ModelSerializer):
    items_count = serializers.SerializerMethodField()
    schedule = serializers.JSONField(read_only=True)
    soldOutSchedule = serializers.JSONField(source='sold_out_schedule', read_only=True)
    isSoldOut = serializers.BooleanField(source='is_sold_out', read_only=True)
    scheduleLocked = serializers.SerializerMethodField()

    class Meta:
        model = FoodCategory
        fields = [
            'id', 'name', 'description', 'image', 'sort_order', 'is_active', 'created_at',
            'items_count', 'schedule', 'soldOutSchedule', 'isPaused', 'isSoldOut',
            'isManuallyPaused', 'scheduleLocked',
        ]
        read_only_fields = ['created_at', 'items_count']

    def get_items_count(self, obj):
        return obj.items.count()

    def get_scheduleLocked(self, obj):
        return obj.is_paused and not obj.is_manually_paused and not obj.is_sold_out

    def validate_name(self, value):
        """Validate unique category name, ignoring case"""
        queryset = FoodCategory.objects.filter(name__iexact=value.strip())
        if self.instance:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError("Category already exists")
        return value.strip()


class MenuItemSerializer(serializers.ModelSerializer):
    categories = serializers.SlugRelatedField(
        slug_field='name', many=True, queryset=FoodCategory.objects.all()
    )
    lock = serializers.SerializerMethodField()
    is_orderable = serializers.SerializerMethodField()

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'description', 'categories', 'price', 'original_price', 'unit',
            'quantity', 'food_type', 'image', 'available', 'is_today_special',
            'preparation_time', 'tags', 'created_at', 'updated_at', 'lock', 'is_orderable',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_categories(self, value):
        if not value:
            raise serializers.ValidationError("A menu item needs at least one category.")
        return value

    def _lock(self, obj):
        cache = self.context.setdefault('_locks', {})
        if obj.pk not in cache:
            states = self.context.get('category_states')
            if states is None:
                states = services.category_states(categories=obj.categories.all())
            cache[obj.pk] = services.item_lock(obj, states)
        return cache[obj.pk]

    def get_lock(self, obj):
        lock = self._lock(obj)
        return {
            'locked': lock.locked,
            'reason': lock.kind.value,
            'blockingCategories': lock.blocking_categories,
        }

    def get_is_orderable(self, obj):
        return obj.available and not self._lock(obj).locked


class SpecialItemSerializer(AvailabilityFieldsMixin, serializers.ModelSerializer):
    days = serializers.ListField(child=serializers.IntegerField(min_value=0, max_value=6))
    day_schedules = serializers.DictField(child=serializers.DictField(), required=False)

    class Meta:
        model = SpecialItem
        fields = [
            'id', 'name', 'description', 'price', 'original_price', 'days', 'day_schedules',
            'unit', 'quantity', 'food_type', 'image', 'preparation_time', 'tags', 'sort_order',
            'available', 'isPaused', 'isManuallyPaused', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_days(self, value):
        if not value:
            raise serializers.ValidationError("Select at least one day.")
        return sorted(set(value))

    def validate_day_schedules(self, value):
        errors = {}
        for key, window in value.items():
            try:
                day = Weekday(int(key))
            except ValueError:
                errors[key] = [f"Invalid day {key!r}, expected 0 (Sunday) to 6 (Saturday)"]
                continue
            try:
                start, end = parse_hhmm(window.get('startTime')), parse_hhmm(window.get('endTime'))
            except ValueError as exc:
                errors[key] = [str(exc)]
                continue
            problems = window_errors(start, end, day)
            if problems:
                errors[key] = problems
        if errors:
            raise serializers.ValidationError(errors)
        return {str(int(key)): {'startTime': w['startTime'], 'endTime': w['endTime']}
                for key, w in value.items()}


class TodaySpecialItemSerializer(SpecialItemSerializer):
    """Special item with its lock status for today"""
    isActive = serializers.SerializerMethodField()
    isLocked = serializers.SerializerMethodField()
    lockReason = serializers.SerializerMethodField()
    todaySchedule = serializers.SerializerMethodField()

    class Meta(SpecialItemSerializer.Meta):
        fields = SpecialItemSerializer.Meta.fields + ['isActive', 'isLocked', 'lockReason', 'todaySchedule']

    def _state(self, obj):
        return services.evaluate_special_item(obj, self.context.get('now'), self.context.get('day_windows'))

    def get_isActive(self, obj):
        return obj.available and self._state(obj).open

    def get_isLocked(self, obj):
        return not self.get_isActive(obj)

    def get_lockReason(self, obj):
        if not obj.available:
            return 'unavailable'
        if self._state(obj).open:
            return None
        return 'paused' if obj.is_manually_paused else 'outside_schedule'

    def get_todaySchedule(self, obj):
        now = self.context.get('now') or services.local_now()
        day = weekday_of(now)
        item_windows = decode_day_windows(obj.day_schedules)
        window = item_windows.get(day) or (self.context.get('day_windows') or {}).get(day)
        if window is None:
            return None
        return {'startTime': format_hhmm(window.start), 'endTime': format_hhmm(window.end)}


class DayScheduleSerializer(serializers.ModelSerializer):
    startTime = serializers.SerializerMethodField()
    endTime = serializers.SerializerMethodField()

    class Meta:
        model = DaySchedule
        fields = ['day', 'startTime', 'endTime']

    def get_startTime(self, obj):
        return format_hhmm(minutes_of(obj.start_time))

    def get_endTime(self, obj):
        return format_hhmm(minutes_of(obj.end_time))


class DayScheduleUpdateSerializer(serializers.Serializer):
    startTime = serializers.CharField(default=DEFAULT_START)
    endTime = serializers.CharField(default=DEFAULT_END)

    def validate(self, attrs):
        start, end = hhmm(attrs['startTime']), hhmm(attrs['endTime'])
        problems = window_errors(start, end, self.context.get('day'))
        if problems:
            raise serializers.ValidationError({'schedule': problems})
        attrs['start'], attrs['end'] = start, end
        return attrs
