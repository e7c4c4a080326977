# Generated manually

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
        ('orders', '0001_initial'),
        ('cases', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Return',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('return_number', models.CharField(max_length=30, unique=True)),
                ('status', models.CharField(choices=[('nieuw', 'Nieuw'), ('onderweg', 'Onderweg'), ('ontvangen_controle', 'Ontvangen - controle'), ('akkoord_terugbetaling', 'Akkoord terugbetaling'), ('vermiste_pakketten', 'Vermiste pakketten'), ('wachten_klant', 'Wachten op klant'), ('opnieuw_versturen', 'Opnieuw versturen'), ('klaar', 'Klaar'), ('niet_ontvangen', 'Niet ontvangen')], default='nieuw', max_length=30)),
                ('return_reason', models.CharField(blank=True, choices=[('wrong_item', 'Wrong Item'), ('damaged', 'Damaged'), ('defective', 'Defective'), ('size_issue', 'Size Issue'), ('changed_mind', 'Changed Mind'), ('other', 'Other')], max_length=20, null=True)),
                ('other_reason', models.TextField(blank=True)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('urgent', 'Urgent')], default='medium', max_length=10)),
                ('tracking_number', models.CharField(blank=True, max_length=100)),
                ('tracking_carrier', models.CharField(blank=True, max_length=50)),
                ('tracking_url', models.URLField(blank=True, max_length=500)),
                ('requested_at', models.DateTimeField(blank=True, null=True)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('received_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('refund_amount', models.IntegerField(default=0, help_text='Amount in cents')),
                ('refund_status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('refund_method', models.CharField(blank=True, choices=[('original_payment', 'Original Payment'), ('store_credit', 'Store Credit'), ('exchange', 'Exchange')], max_length=20, null=True)),
                ('shopify_return_id', models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ('shopify_return_name', models.CharField(blank=True, max_length=50)),
                ('shopify_status', models.CharField(blank=True, max_length=30)),
                ('synced_at', models.DateTimeField(blank=True, null=True)),
                ('customer_notes', models.TextField(blank=True)),
                ('internal_notes', models.TextField(blank=True)),
                ('condition_notes', models.TextField(blank=True)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_returns', to=settings.AUTH_USER_MODEL)),
                ('case', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='returns', to='cases.case')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_returns', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='returns', to='customers.customer')),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='returns', to='orders.order')),
            ],
            options={
                'db_table': 'returns',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='returns_status_4d2a67_idx'),
                    models.Index(fields=['-created_at'], name='returns_created_8e5b02_idx'),
                    models.Index(fields=['tracking_number'], name='returns_trackin_1c9f38_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReturnItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(blank=True, max_length=100)),
                ('product_name', models.CharField(max_length=255)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('unit_price', models.IntegerField(default=0, help_text='Price in cents')),
                ('condition', models.CharField(blank=True, choices=[('new', 'New'), ('like_new', 'Like New'), ('used', 'Used'), ('damaged', 'Damaged'), ('defective', 'Defective')], max_length=20, null=True)),
                ('restockable', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('return_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='returns.return')),
            ],
            options={
                'db_table': 'return_items',
                'ordering': ['id'],
            },
        ),
    ]
