from django.urls import path

from . import views

urlpatterns = [
    path('rides/', views.post_ride, name='post_ride'),
    path('rides/search/', views.ride_search, name='ride_search'),
    path('rides/mine/', views.my_rides, name='my_rides'),
    path('rides/<int:ride_id>/', views.ride_detail, name='ride_detail'),
    path('rides/<int:ride_id>/passengers/', views.ride_passengers, name='ride_passengers'),
    path('rides/<int:ride_id>/cancel/', views.cancel_ride, name='cancel_ride'),
    path('rides/<int:ride_id>/complete/', views.complete_ride, name='complete_ride'),
    path('rides/<int:ride_id>/book/', views.book_ride, name='book_ride'),
    path('rides/<int:ride_id>/ratings/', views.rate_participant, name='rate_participant'),
    path('driver/stats/', views.driver_stats, name='driver_stats'),

    path('bookings/', views.my_bookings, name='my_bookings'),
    path('bookings/<int:booking_id>/', views.booking_detail, name='booking_detail'),
    path('bookings/<int:booking_id>/cancel/', views.cancel_booking, name='cancel_booking'),
]
