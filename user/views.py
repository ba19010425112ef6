import logging

from django.contrib.auth import authenticate, login, logout
from django.db import IntegrityError, transaction
from django.forms.models import model_to_dict
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .access import resolve_access
from .exceptions import (
    AccountExists,
    AlreadyOnboarded,
    EmailNotConfirmed,
    InvalidCredentials,
    RoleChangeForbidden,
)
from .forms import DriverDetailsForm, LoginForm, OnboardingForm, ProfileUpdateForm, RegistrationForm
from .models import CustomUser, DriverDetails, Profile, UserRole
from .permissions import IsDriver, IsOnboarded
from .utils import account_payload, driver_details_payload, profile_payload

logger = logging.getLogger(__name__)


def _form_errors(form):
    return Response({'errors': form.errors.get_json_data()}, status=status.HTTP_400_BAD_REQUEST)


def _merged(instance, fields, data):
    """Current values of ``instance`` overlaid with the submitted ``data``."""
    merged = model_to_dict(instance, fields=fields)
    for field in fields:
        if field in data:
            merged[field] = data.get(field)
    return merged


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    form = RegistrationForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    email = form.cleaned_data['email']
    if CustomUser.objects.filter(email__iexact=email).exists():
        raise AccountExists(f"user already registered: {email}")

    try:
        with transaction.atomic():
            user = CustomUser.objects.create_user(
                username=email,
                email=email,
                password=form.cleaned_data['password'],
            )
            UserRole.objects.create(user=user, role=UserRole.USER)
    except IntegrityError:
        # a concurrent registration took the address after the check above
        raise AccountExists(f"user already registered: {email}")

    login(request, user, backend='django.contrib.auth.backends.ModelBackend')
    logger.info("Registered account %s", user.pk)
    return Response(account_payload(resolve_access(user)), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    form = LoginForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    email = form.cleaned_data['email']
    password = form.cleaned_data['password']
    user = authenticate(request, username=email, password=password)

    if user is None:
        pending = CustomUser.objects.filter(email__iexact=email, is_active=False).first()
        if pending is not None and pending.check_password(password):
            raise EmailNotConfirmed(f"email not confirmed for account {pending.pk}")
        raise InvalidCredentials("invalid login credentials")

    login(request, user)
    return Response(account_payload(resolve_access(user)))


@api_view(['POST'])
def logout_view(request):
    logout(request)
    return Response({'status': 'success'})


@api_view(['GET'])
def me(request):
    return Response(account_payload(request.access))


@api_view(['POST'])
def onboarding(request):
    """Create the caller's profile and, for drivers, their vehicle in one step."""
    if request.access.profile is not None:
        raise AlreadyOnboarded(f"profile already exists for user {request.user.pk}")

    form = OnboardingForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    is_driver = form.cleaned_data['role'] == Profile.ROLE_DRIVER
    vehicle_form = DriverDetailsForm(request.data) if is_driver else None
    if vehicle_form is not None and not vehicle_form.is_valid():
        return _form_errors(vehicle_form)

    with transaction.atomic():
        profile = form.save(commit=False)
        profile.user = request.user
        profile.email = request.user.email
        profile.save()
        if vehicle_form is not None:
            details = vehicle_form.save(commit=False)
            details.user = request.user
            details.save()

    logger.info("Onboarded user %s as %s", request.user.pk, profile.role)
    return Response(account_payload(resolve_access(request.user)), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsOnboarded])
def profile_view(request):
    profile = request.access.profile

    if request.method == 'PATCH':
        requested_role = request.data.get('role')
        if requested_role is not None and requested_role != profile.role:
            raise RoleChangeForbidden(f"permission denied: role change requested for profile {profile.pk}")

        fields = list(ProfileUpdateForm.Meta.fields)
        form = ProfileUpdateForm(_merged(profile, fields, request.data), instance=profile)
        if not form.is_valid():
            return _form_errors(form)
        profile = form.save()

    return Response(profile_payload(profile))


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsDriver])
def driver_details_view(request):
    details = get_object_or_404(DriverDetails, user=request.user)

    if request.method == 'PATCH':
        fields = list(DriverDetailsForm.Meta.fields)
        form = DriverDetailsForm(_merged(details, fields, request.data), instance=details)
        if not form.is_valid():
            return _form_errors(form)
        details = form.save()

    return Response(driver_details_payload(details))


@api_view(['GET'])
def user_rating(request, user_id):
    profile = get_object_or_404(Profile, user_id=user_id)
    return Response({
        'user_id': profile.user_id,
        'full_name': profile.full_name,
        'role': profile.role,
        'rating': profile.average_rating,
    })
