import django.core.validators
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def party_fields(related_name):
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('name', models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(2)])),
        ('email', models.EmailField(max_length=254, unique=True)),
        ('phone', models.CharField(max_length=10, validators=[django.core.validators.RegexValidator(message='Please enter a valid 10-digit phone number', regex='^[6-9]\\d{9}$')])),
        ('address', models.TextField(blank=True, max_length=500)),
        ('notes', models.TextField(blank=True, max_length=1000)),
        ('is_active', models.BooleanField(default=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=related_name, to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Customer',
            fields=party_fields('customers'),
            options={
                'db_table': 'customers',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Supplier',
            fields=party_fields('suppliers'),
            options={
                'db_table': 'suppliers',
                'ordering': ['-created_at'],
            },
        ),
    ]
