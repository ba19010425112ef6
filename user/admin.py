from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser, DriverDetails, Profile, UserRole


class ProfileInline(admin.StackedInline):
    model = Profile
    extra = 0
    can_delete = False
    fields = ['full_name', 'phone_number', 'role', 'avatar_url']
    readonly_fields = ['role']


class DriverDetailsInline(admin.StackedInline):
    model = DriverDetails
    extra = 0
    fields = ['car_make', 'car_model', 'car_color', 'license_plate', 'seats_available']


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ['email', 'is_active', 'is_staff', 'date_joined']
    search_fields = ['email', 'profile__full_name']
    ordering = ['-date_joined']
    inlines = [ProfileInline, DriverDetailsInline, UserRoleInline]


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'role', 'phone_number', 'email', 'created_at']
    list_filter = ['role']
    search_fields = ['full_name', 'email', 'phone_number']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('User Information', {
            'fields': ('user', 'full_name', 'email', 'phone_number', 'avatar_url')
        }),
        ('Role', {
            'fields': ('role',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        # Role is fixed once the profile exists
        if obj is not None:
            return self.readonly_fields + ['role', 'user']
        return self.readonly_fields


@admin.register(DriverDetails)
class DriverDetailsAdmin(admin.ModelAdmin):
    list_display = ['license_plate', 'car_make', 'car_model', 'car_color', 'seats_available', 'user']
    search_fields = ['license_plate', 'user__email', 'user__profile__full_name']


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'created_at']
    list_filter = ['role']
    search_fields = ['user__email']
