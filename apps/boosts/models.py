from django.db import models
from django.utils import timezone


class Boost(models.Model):
    """
    A customer fee-payment record. The fee is collected through a PayHero
    M-Pesa push and reconciled by the payment callback.
    """

    identification_number = models.CharField(max_length=50, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    fee = models.DecimalField(max_digits=12, decimal_places=2)
    paid = models.BooleanField(default=False)
    payment_date = models.DateTimeField(blank=True, null=True)
    external_reference = models.CharField(max_length=100, unique=True, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"Boost {self.pk} ({self.identification_number})"

    def mark_paid(self, when=None) -> None:
        # paid and payment_date are only ever written together.
        self.paid = True
        self.payment_date = when or timezone.now()
        self.save(update_fields=["paid", "payment_date"])
