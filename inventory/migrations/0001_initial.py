import django.core.validators
from django.db import migrations, models

import inventory.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='FoodCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('description', models.TextField(blank=True)),
                ('image', models.URLField(blank=True)),
                ('sort_order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('schedule', models.JSONField(blank=True, default=inventory.models.default_schedule)),
                ('is_manually_paused', models.BooleanField(default=False)),
                ('sold_out_active', models.BooleanField(default=False)),
                ('sold_out_resume_at', models.TimeField(blank=True, null=True)),
                ('is_paused', models.BooleanField(default=False)),
                ('is_sold_out', models.BooleanField(default=False)),
            ],
            options={
                'verbose_name_plural': 'Food Categories',
                'ordering': ['sort_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='DaySchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('day', models.PositiveSmallIntegerField(unique=True, validators=[
                    django.core.validators.MinValueValidator(0),
                    django.core.validators.MaxValueValidator(6),
                ])),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['day'],
            },
        ),
        migrations.CreateModel(
            name='SpecialItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('original_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('days', models.JSONField(default=list)),
                ('day_schedules', models.JSONField(blank=True, default=dict)),
                ('unit', models.CharField(choices=[
                    ('piece', 'Piece'), ('kg', 'Kg'), ('gram', 'Gram'), ('liter', 'Liter'), ('ml', 'ml'),
                    ('plate', 'Plate'), ('bowl', 'Bowl'), ('cup', 'Cup'), ('slice', 'Slice'), ('inch', 'Inch'),
                    ('full', 'Full'), ('half', 'Half'), ('small', 'Small'),
                    ('half glass', 'Half Glass'), ('full glass', 'Full Glass'),
                ], default='piece', max_length=20)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('food_type', models.CharField(choices=[
                    ('veg', 'Veg'), ('nonveg', 'Non-Veg'), ('egg', 'Egg'), ('none', 'None'),
                ], default='none', max_length=10)),
                ('image', models.URLField(blank=True)),
                ('preparation_time', models.PositiveIntegerField(default=15)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('sort_order', models.IntegerField(default=0)),
                ('is_manually_paused', models.BooleanField(default=False)),
                ('is_paused', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['sort_order', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='MenuItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('original_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('unit', models.CharField(choices=[
                    ('piece', 'Piece'), ('kg', 'Kg'), ('gram', 'Gram'), ('liter', 'Liter'), ('ml', 'ml'),
                    ('plate', 'Plate'), ('bowl', 'Bowl'), ('cup', 'Cup'), ('slice', 'Slice'), ('inch', 'Inch'),
                    ('full', 'Full'), ('half', 'Half'), ('small', 'Small'),
                    ('half glass', 'Half Glass'), ('full glass', 'Full Glass'),
                ], default='piece', max_length=20)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('food_type', models.CharField(choices=[
                    ('veg', 'Veg'), ('nonveg', 'Non-Veg'), ('egg', 'Egg'), ('none', 'None'),
                ], default='none', max_length=10)),
                ('image', models.URLField(blank=True)),
                ('available', models.BooleanField(default=True)),
                ('is_today_special', models.BooleanField(default=False)),
                ('preparation_time', models.PositiveIntegerField(default=15)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('categories', models.ManyToManyField(related_name='items', to='inventory.foodcategory')),
            ],
            options={
                'ordering': ['name'],
            },
        ),
    ]
