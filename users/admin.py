from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class StudentAdmin(UserAdmin):
    list_display = ('email', 'student_name', 'student_grade', 'school_name', 'is_profile_complete')
    list_filter = ('student_grade', 'is_profile_complete', 'is_staff')
    search_fields = ('email', 'student_name', 'phone_number')
    ordering = ('email',)
    fieldsets = UserAdmin.fieldsets + (
        ('Student profile', {'fields': ('phone_number', 'student_name', 'student_grade', 'school_name')}),
    )
