from django.contrib import admin

from .models import Boost


@admin.register(Boost)
class BoostAdmin(admin.ModelAdmin):
    list_display = ("id", "identification_number", "amount", "fee", "paid", "payment_date", "created_at")
    search_fields = ("identification_number", "external_reference")
    list_filter = ("paid",)
    readonly_fields = ("paid", "payment_date", "external_reference", "created_at")
