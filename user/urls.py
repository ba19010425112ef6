from django.urls import path

from . import views

urlpatterns = [
    path('auth/register/', views.register, name='register'),
    path('auth/login/', views.login_view, name='login'),
    path('auth/logout/', views.logout_view, name='logout'),
    path('auth/me/', views.me, name='me'),
    path('onboarding/', views.onboarding, name='onboarding'),
    path('profile/', views.profile_view, name='profile'),
    path('profile/vehicle/', views.driver_details_view, name='driver_details'),
    path('users/<int:user_id>/rating/', views.user_rating, name='user_rating'),
]
