from django.contrib import admin

from labflow.lab.models import LabGroup, LabOrder, LabOrderItem, LabResult, LabTest


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "price", "category")
    search_fields = ("code", "name")


@admin.register(LabGroup)
class LabGroupAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "price")
    search_fields = ("code", "name")
    filter_horizontal = ("lab_tests",)


class LabOrderItemInline(admin.TabularInline):
    model = LabOrderItem
    extra = 0


@admin.register(LabOrder)
class LabOrderAdmin(admin.ModelAdmin):
    list_display = ("id", "visit", "status", "total_amount", "payment_method", "order_date")
    list_filter = ("status", "payment_method")
    inlines = [LabOrderItemInline]


@admin.register(LabResult)
class LabResultAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "technician", "result_date")
