import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('stores', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='WholesalerAgreement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('discount_rate', models.DecimalField(decimal_places=4, help_text='Discount as a fraction of the base price (0.20 = 20%)', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('1'))])),
                ('active_from', models.DateTimeField(default=django.utils.timezone.now)),
                ('active_to', models.DateTimeField(blank=True, help_text='Exclusive end of the agreement; empty means open-ended', null=True)),
                ('business_name', models.CharField(blank=True, max_length=100, null=True)),
                ('tax_number', models.CharField(blank=True, max_length=50, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('is_verified', models.BooleanField(default=False)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('store', models.ForeignKey(help_text='Store granting the discount', on_delete=django.db.models.deletion.PROTECT, related_name='wholesaler_agreements', to='stores.store')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='wholesaler_agreements', to=settings.AUTH_USER_MODEL)),
                ('verified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='verified_agreements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wholesaler_agreements',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.AddIndex(
            model_name='wholesaleragreement',
            index=models.Index(fields=['store', 'user', 'active_from'], name='agreement_window_idx'),
        ),
        migrations.AddConstraint(
            model_name='wholesaleragreement',
            constraint=models.UniqueConstraint(condition=models.Q(('active_to__isnull', True)), fields=('user', 'store'), name='unique_open_agreement_per_store_user'),
        ),
        migrations.AddConstraint(
            model_name='wholesaleragreement',
            constraint=models.CheckConstraint(condition=models.Q(('active_to__isnull', True), ('active_to__gt', models.F('active_from')), _connector='OR'), name='agreement_window_ordered'),
        ),
        migrations.AddConstraint(
            model_name='wholesaleragreement',
            constraint=models.CheckConstraint(condition=models.Q(('discount_rate__gte', 0), ('discount_rate__lte', 1)), name='agreement_discount_rate_range'),
        ),
    ]
