from decimal import Decimal
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Inventory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('compare_at_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('cost_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('stock', models.PositiveIntegerField(default=0)),
                ('sku', models.CharField(blank=True, db_index=True, max_length=100)),
                ('barcode', models.CharField(blank=True, db_index=True, max_length=100)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('attributes', models.JSONField(blank=True, default=dict)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('color', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory_variants', to='catalog.color')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory_variants', to='catalog.item')),
                ('size', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory_variants', to='catalog.size')),
            ],
            options={
                'db_table': 'inventory',
                'verbose_name_plural': 'inventory',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['is_active', 'stock'], name='inventory_active_stock_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('item', 'size', 'color'), name='unique_inventory_variant'),
                    models.CheckConstraint(condition=models.Q(('stock__gte', 0)), name='inventory_stock_non_negative'),
                ],
            },
        ),
    ]
