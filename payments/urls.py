from django.urls import path

from . import views

urlpatterns = [
    path('payments/', views.create_payment, name='create_payment'),
    path('payments/<int:payment_id>/', views.payment_detail, name='payment_detail'),
    path('subscription/', views.my_subscription, name='my_subscription'),

    path('admin-dashboard/stats/', views.admin_stats, name='admin_stats'),
    path('admin-dashboard/transactions/', views.admin_transactions, name='admin_transactions'),
    path('admin-dashboard/rides/', views.admin_rides, name='admin_rides'),
]
