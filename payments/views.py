from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from user.permissions import IsDriver, IsOnboarded, IsPlatformAdmin
from .forms import MobileMoneyPaymentForm
from .models import MobileMoneyPayment
from .services import initiate_payment, subscription_status
from .stats import get_platform_stats, recent_rides, recent_transactions


def payment_payload(payment):
    return {
        'id': payment.id,
        'payment_type': payment.payment_type,
        'provider': payment.provider,
        'phone_number': payment.phone_number,
        'amount': payment.amount,
        'booking_id': payment.booking_id,
        'status': payment.status,
        'transaction_ref': payment.transaction_ref,
        'created_at': payment.created_at.isoformat() if payment.created_at else None,
    }


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOnboarded])
def create_payment(request):
    form = MobileMoneyPaymentForm(request.data)
    if not form.is_valid():
        return Response({'errors': form.errors.get_json_data()}, status=status.HTTP_400_BAD_REQUEST)

    payment_type = form.cleaned_data['payment_type']
    access = request.access
    if payment_type == MobileMoneyPayment.TYPE_SUBSCRIPTION and not access.is_driver:
        return Response({'error': 'Only drivers can subscribe.'}, status=status.HTTP_403_FORBIDDEN)
    if payment_type == MobileMoneyPayment.TYPE_BOOKING and not access.is_passenger:
        return Response({'error': 'Only passengers can pay for bookings.'}, status=status.HTTP_403_FORBIDDEN)

    payment = initiate_payment(
        request.user,
        payment_type=payment_type,
        provider=form.cleaned_data['provider'],
        phone_number=form.cleaned_data['phone_number'],
        booking_id=form.cleaned_data.get('booking_id'),
    )
    payment.refresh_from_db()
    return Response(payment_payload(payment), status=status.HTTP_201_CREATED)


@api_view(['GET'])
def payment_detail(request, payment_id):
    payment = get_object_or_404(MobileMoneyPayment, id=payment_id, user=request.user)
    return Response(payment_payload(payment))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDriver])
def my_subscription(request):
    return Response(subscription_status(request.user))


# Admin dashboard

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def admin_stats(request):
    return Response(get_platform_stats())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def admin_transactions(request):
    return Response({'results': recent_transactions()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def admin_rides(request):
    return Response({'results': recent_rides()})
