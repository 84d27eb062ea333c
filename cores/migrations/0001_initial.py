import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('SUBMIT', 'Exam Submitted'), ('PAYMENT_SUCCESS', 'Payment Succeeded'), ('PAYMENT_FAILED', 'Payment Failed'), ('ENROLLMENT_CONFIRMED', 'Enrollment Confirmed')], max_length=30)),
                ('target_model', models.CharField(help_text='e.g., Submission, Payment, Enrollment', max_length=50)),
                ('target_object_id', models.CharField(blank=True, max_length=100, null=True)),
                ('details', models.TextField(blank=True, help_text='Description of the transition')),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-timestamp'],
            },
        ),
    ]
