from django.contrib import admin
from .models import Enrollment, Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'amount', 'currency', 'status', 'gateway_order_id', 'created_at')
    list_filter = ('status', 'purpose')
    search_fields = ('user__email', 'gateway_order_id', 'gateway_payment_id')
    readonly_fields = ('gateway_response', 'user_snapshot', 'created_at', 'updated_at')


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ('user', 'competition', 'status', 'is_payment_confirmed', 'created_at')
    list_filter = ('status', 'competition')
    search_fields = ('user__email', 'competition__title')
