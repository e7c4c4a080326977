# Generated manually

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shopify_order_id', models.CharField(max_length=50, unique=True)),
                ('order_number', models.CharField(db_index=True, max_length=50)),
                ('customer_email', models.EmailField(blank=True, max_length=254)),
                ('total_amount', models.IntegerField(default=0, help_text='Amount in cents')),
                ('currency', models.CharField(default='EUR', max_length=3)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('shipped', 'Shipped'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled'), ('refunded', 'Refunded')], default='pending', max_length=20)),
                ('fulfillment_status', models.CharField(blank=True, max_length=30, null=True)),
                ('payment_status', models.CharField(blank=True, max_length=30, null=True)),
                ('order_data', models.JSONField(blank=True, default=dict)),
                ('order_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='customers.customer')),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-order_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['customer_email'], name='orders_custome_3b9e21_idx'),
                    models.Index(fields=['status'], name='orders_status_7f1c42_idx'),
                    models.Index(fields=['-order_date'], name='orders_order_d_5a8d13_idx'),
                ],
            },
        ),
    ]
