from django.db import models


class StoreOption(models.Model):
    # key/value runtime configuration (session settings, locations, pricing)
    key = models.CharField(max_length=191, primary_key=True)
    value = models.JSONField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "store_options"


class ShippingSessionRecord(models.Model):
    token = models.CharField(max_length=64, primary_key=True)
    data = models.JSONField(default=dict)
    expires_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "shipping_sessions"
        ordering = ["-created_at"]
