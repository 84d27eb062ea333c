import logging
from rest_framework import generics, permissions, status, views
from rest_framework.response import Response

from .models import Enrollment
from .serializers import EnrollmentSerializer, EnrollSerializer, VerifyPaymentSerializer
from .services import enroll_in_competition, process_webhook, verify_payment

logger = logging.getLogger(__name__)


class EnrollView(views.APIView):
    """
    Starts a paid enrollment: creates a gateway order and a PENDING payment.
    The client opens checkout with the returned order id and key.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = EnrollSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = enroll_in_competition(request.user, serializer.validated_data['competition_id'])
        return Response({"success": True, "data": data}, status=status.HTTP_201_CREATED)


class VerifyPaymentView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = verify_payment(
            request.user,
            data['payment_id'],
            data['razorpay_order_id'],
            data['razorpay_payment_id'],
            data['razorpay_signature'],
        )
        return Response({
            "success": True,
            "data": {"enrollment_confirmed": result["enrollment_confirmed"]},
            "message": result["message"],
        })


class RazorpayWebhookView(views.APIView):
    """
    Server-to-server callback from Razorpay. Authenticated by the
    X-Razorpay-Signature header over the raw body, not by JWT.
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    http_method_names = ['post', 'options']

    def post(self, request):
        # Signature covers the exact bytes, so never re-serialize request.data here
        message = process_webhook(request.body, request.headers.get('X-Razorpay-Signature'))
        return Response({"success": True, "message": message})


class MyEnrollmentsView(generics.ListAPIView):
    serializer_class = EnrollmentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Enrollment.objects.filter(user=self.request.user).select_related('competition').order_by('-created_at')
