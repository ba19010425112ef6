def profile_payload(profile):
    if profile is None:
        return None
    return {
        'id': profile.user_id,
        'full_name': profile.full_name,
        'phone_number': profile.phone_number,
        'email': profile.email,
        'role': profile.role,
        'avatar_url': profile.avatar_url,
        'created_at': profile.created_at.isoformat() if profile.created_at else None,
    }


def driver_details_payload(details):
    if details is None:
        return None
    return {
        'car_make': details.car_make,
        'car_model': details.car_model,
        'car_color': details.car_color,
        'license_plate': details.license_plate,
        'seats_available': details.seats_available,
    }


def driver_summary(user):
    """Public view of a driver: name, phone, vehicle and rating."""
    profile = getattr(user, 'profile', None)
    details = getattr(user, 'driver_details', None)
    return {
        'id': user.pk,
        'full_name': profile.full_name if profile else None,
        'phone_number': profile.phone_number if profile else None,
        'avatar_url': profile.avatar_url if profile else None,
        'vehicle': driver_details_payload(details),
        'rating': profile.average_rating if profile else {'average': 0.0, 'count': 0},
    }


def account_payload(access):
    user = access.user
    return {
        'id': user.pk,
        'email': user.email,
        'state': access.state,
        'is_admin': access.is_admin,
        'profile': profile_payload(access.profile),
        'driver_details': driver_details_payload(access.driver_details),
    }
