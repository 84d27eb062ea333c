from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication & Profile ---
    path('api/auth/', include('users.urls')),

    # --- Exam Taking (start / init / answer / heartbeat / submit) ---
    path('api/exams/', include('assessments.urls')),

    # --- Enrollment & Payments ---
    path('api/payments/', include('payments.urls')),

    # --- Admin ---
    path('api/admin/', include('cores.urls')),
]
