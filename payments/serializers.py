from rest_framework import serializers
from .models import Enrollment


class EnrollSerializer(serializers.Serializer):
    competition_id = serializers.IntegerField(min_value=1)


class VerifyPaymentSerializer(serializers.Serializer):
    payment_id = serializers.IntegerField(min_value=1)
    razorpay_order_id = serializers.CharField(max_length=100)
    razorpay_payment_id = serializers.CharField(max_length=100)
    razorpay_signature = serializers.CharField(max_length=256)


class EnrollmentSerializer(serializers.ModelSerializer):
    competition_title = serializers.ReadOnlyField(source='competition.title')

    class Meta:
        model = Enrollment
        fields = [
            'id', 'competition', 'competition_title', 'payment', 'status',
            'is_payment_confirmed', 'competition_snapshot', 'created_at',
        ]
