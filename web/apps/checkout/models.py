import uuid
from django.db import models, transaction


class OrderModel(models.Model):
    # UUID PK exposed by the API
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Sequential order number shown to customers and admins
    number = models.BigIntegerField(unique=True, editable=False, null=True)

    class Status(models.TextChoices):
        PENDING = "PENDING"
        PROCESSING = "PROCESSING"

    status = models.CharField(max_length=32, choices=Status.choices, default=Status.PENDING)
    amount_cents = models.PositiveIntegerField(default=0)
    shipping_cents = models.PositiveIntegerField(default=0)
    total_cents = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default="EUR")
    payment_method = models.CharField(max_length=64)
    shipping_label = models.CharField(max_length=255, blank=True, default="")
    customer = models.JSONField(default=dict)
    # Separate delivery address (express checkout), empty otherwise
    shipping_address = models.JSONField(default=dict, blank=True)
    locale = models.CharField(max_length=8, default="en_US")
    meta = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "orders"
        ordering = ["-number"]

    def save(self, *args, **kwargs):
        # Assign incremental `number` only on creation
        if self.number is None:
            with transaction.atomic():
                last = (
                    OrderModel.objects.select_for_update()
                    .order_by("-number")
                    .first()
                )
                self.number = 1 if not last or last.number is None else last.number + 1

        super().save(*args, **kwargs)


class OrderNoteModel(models.Model):
    order = models.ForeignKey(OrderModel, related_name="notes", on_delete=models.CASCADE)
    text = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_notes"
        ordering = ["created_at", "id"]
