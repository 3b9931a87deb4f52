from django.urls import path
from . import views


urlpatterns = [
    # Food Category URLs
    path('categories/', views.FoodCategoryListCreateView.as_view(), name='category-list-create'),
    path('categories/<int:pk>/', views.FoodCategoryRetrieveUpdateDestroyView.as_view(), name='category-detail'),

    # Category availability overrides
    path('categories/<int:pk>/toggle-pause/', views.toggle_category_pause, name='category-toggle-pause'),
    path('categories/<int:pk>/schedule/', views.category_schedule, name='category-schedule'),
    path('categories/<int:pk>/toggle-soldout/', views.toggle_category_soldout, name='category-toggle-soldout'),
    path('categories/<int:pk>/schedule-soldout/', views.schedule_category_soldout, name='category-schedule-soldout'),
    path('categories/<int:pk>/evaluate/', views.evaluate_category, name='category-evaluate'),

    # Menu Item URLs
    path('items/', views.MenuItemListCreateView.as_view(), name='item-list-create'),
    path('items/bulk-update-status/', views.bulk_update_menu_status, name='item-bulk-update-status'),
    path('items/<int:pk>/', views.MenuItemRetrieveUpdateDestroyView.as_view(), name='item-detail'),
    path('items/<int:pk>/toggle-available/', views.toggle_menu_item_available, name='item-toggle-available'),
    path('items/<int:pk>/evaluate/', views.evaluate_menu_item, name='item-evaluate'),

    # Special Item URLs
    path('specials/', views.SpecialItemListCreateView.as_view(), name='special-list-create'),
    path('specials/today/', views.today_special_items, name='special-today'),
    path('specials/today/active/', views.today_active_special_items, name='special-today-active'),
    path('specials/schedules/', views.day_schedules, name='special-day-schedules'),
    path('specials/schedules/<int:day>/', views.day_schedule_detail, name='special-day-schedule-detail'),
    path('specials/bulk-pause/', views.bulk_pause_special_items, name='special-bulk-pause'),
    path('specials/<int:pk>/', views.SpecialItemRetrieveUpdateDestroyView.as_view(), name='special-detail'),
    path('specials/<int:pk>/toggle-pause/', views.toggle_special_item_pause, name='special-toggle-pause'),
    path('specials/<int:pk>/toggle-availability/', views.toggle_special_item_availability,
         name='special-toggle-availability'),

    # Dashboard
    path('dashboard/', views.availability_dashboard, name='availability-dashboard'),
]
