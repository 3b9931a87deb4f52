from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from availability.overrides import SoldOutOverride
from availability.records import decode_schedule, normalize_schedule
from availability.timeofday import format_hhmm, minutes_of


def default_schedule():
    return normalize_schedule(None)


class AvailabilityVersioned(models.Model):
    """Counts saves so the reconciler can tell that the row it read has since changed"""
    availability_version = models.PositiveIntegerField(default=0, editable=False)

    def save(self, *args, **kwargs):
        self.availability_version += 1
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = [*update_fields, 'availability_version']
        super().save(*args, **kwargs)

    class Meta:
        abstract = True


class FoodCategory(AvailabilityVersioned):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    image = models.URLField(blank=True)
    sort_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Availability schedule, stored in the record shape the clients send
    schedule = models.JSONField(default=default_schedule, blank=True)

    # Overrides set by an admin
    is_manually_paused = models.BooleanField(default=False)
    sold_out_active = models.BooleanField(default=False)
    sold_out_resume_at = models.TimeField(null=True, blank=True)

    # Cached state, written only by the availability reconciler
    is_paused = models.BooleanField(default=False)
    is_sold_out = models.BooleanField(default=False)

    def __str__(self):
        return str(self.name)

    @property
    def weekly_schedule(self):
        return decode_schedule(self.schedule, label=f"for category {self.name!r}")

    @property
    def sold_out_override(self):
        resume_at = minutes_of(self.sold_out_resume_at) if self.sold_out_resume_at else None
        return SoldOutOverride(self.sold_out_active, resume_at)

    @property
    def sold_out_schedule(self):
        """The timed sold-out override in the clients' record shape"""
        return {
            'enabled': self.sold_out_active and self.sold_out_resume_at is not None,
            'endTime': format_hhmm(minutes_of(self.sold_out_resume_at)) if self.sold_out_resume_at else None,
        }

    class Meta:
        ordering = ['sort_order', 'name']
        verbose_name_plural = "Food Categories"


class MenuItem(models.Model):
    UNIT_CHOICES = [
        ("piece", "Piece"), ("kg", "Kg"), ("gram", "Gram"), ("liter", "Liter"), ("ml", "ml"),
        ("plate", "Plate"), ("bowl", "Bowl"), ("cup", "Cup"), ("slice", "Slice"), ("inch", "Inch"),
        ("full", "Full"), ("half", "Half"), ("small", "Small"),
        ("half glass", "Half Glass"), ("full glass", "Full Glass"),
    ]

    FOOD_TYPE_CHOICES = [
        ("veg", "Veg"),
        ("nonveg", "Non-Veg"),
        ("egg", "Egg"),
        ("none", "None"),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    categories = models.ManyToManyField(FoodCategory, related_name="items")
    price = models.DecimalField(max_digits=10, decimal_places=2)
    original_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    unit = models.CharField(max_length=20, choices=UNIT_CHOICES, default="piece")
    quantity = models.PositiveIntegerField(default=1)
    food_type = models.CharField(max_length=10, choices=FOOD_TYPE_CHOICES, default="none")
    image = models.URLField(blank=True)
    # Item-level stock toggle, independent of category availability
    available = models.BooleanField(default=True)
    is_today_special = models.BooleanField(default=False)
    preparation_time = models.PositiveIntegerField(default=15)
    tags = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def category_names(self):
        return [category.name for category in self.categories.all()]

    class Meta:
        ordering = ['name']


class SpecialItem(AvailabilityVersioned):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    original_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    # Weekdays the item is offered on, 0=Sunday ... 6=Saturday
    days = models.JSONField(default=list)
    # Optional per-item windows: {"<day>": {"startTime": "HH:MM", "endTime": "HH:MM"}}
    day_schedules = models.JSONField(default=dict, blank=True)
    unit = models.CharField(max_length=20, choices=MenuItem.UNIT_CHOICES, default="piece")
    quantity = models.PositiveIntegerField(default=1)
    food_type = models.CharField(max_length=10, choices=MenuItem.FOOD_TYPE_CHOICES, default="none")
    image = models.URLField(blank=True)
    preparation_time = models.PositiveIntegerField(default=15)
    tags = models.JSONField(default=list, blank=True)
    sort_order = models.IntegerField(default=0)
    # Stock toggle; an unavailable special is locked whatever its schedule
    available = models.BooleanField(default=True)

    is_manually_paused = models.BooleanField(default=False)
    # Cached state, written only by the availability reconciler
    is_paused = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        ordering = ['sort_order', '-created_at']


class DaySchedule(models.Model):
    """Restaurant-wide special-items window for one weekday"""
    day = models.PositiveSmallIntegerField(unique=True, validators=[MinValueValidator(0), MaxValueValidator(6)])
    start_time = models.TimeField()
    end_time = models.TimeField()
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.day}: {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    class Meta:
        ordering = ['day']
