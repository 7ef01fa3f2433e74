from django.contrib import admin
from .models import Event, MerchandiseVariant, EventRegistration


class MerchandiseVariantInline(admin.TabularInline):
    model = MerchandiseVariant
    extra = 0


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'lifecycle_status', 'organizer', 'start_time', 'registered', 'capacity')
    list_filter = ('status', 'lifecycle_status', 'event_type', 'eligibility', 'start_time')
    search_fields = ('title', 'description', 'organizer_name', 'organizer__username')
    date_hierarchy = 'start_time'
    readonly_fields = ('registered',)
    inlines = [MerchandiseVariantInline]


@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):
    list_display = ('ticket_id', 'user', 'event', 'status', 'payment_status', 'checked_in', 'registered_at')
    list_filter = ('status', 'payment_status', 'checked_in')
    search_fields = ('ticket_id', 'user__username', 'email', 'event__title')
    readonly_fields = ('ticket_id', 'ticket_qr', 'ticket_issued_at', 'check_in_time')
