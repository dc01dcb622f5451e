from django.contrib import admin

from bookings.models import Booking, FitnessClass, Member


class BookingInline(admin.TabularInline):
    model = Booking
    extra = 0
    fields = ["member", "participation_date", "status"]


@admin.register(FitnessClass)
class FitnessClassAdmin(admin.ModelAdmin):
    list_display = ["name", "status", "start_date", "end_date", "max_capacity"]
    list_filter = ["status"]
    search_fields = ["name"]
    inlines = [BookingInline]


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "phone", "created_at"]
    search_fields = ["name", "email"]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ["member", "fitness_class", "participation_date", "status", "created_at"]
    list_filter = ["status", "fitness_class"]
    search_fields = ["member__name", "member__email"]
    readonly_fields = ["attended_at", "cancelled_at", "cancelled_by"]
