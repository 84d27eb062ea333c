from django.urls import path
from .views import EnrollView, MyEnrollmentsView, RazorpayWebhookView, VerifyPaymentView

urlpatterns = [
    # /api/payments/enroll/
    path('enroll/', EnrollView.as_view(), name='enroll-competition'),
    path('verify/', VerifyPaymentView.as_view(), name='verify-payment'),
    path('webhook/', RazorpayWebhookView.as_view(), name='razorpay-webhook'),
    path('enrollments/', MyEnrollmentsView.as_view(), name='my-enrollments'),
]
