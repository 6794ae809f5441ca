from django.contrib import admin
from .models import Project, Bid, Deliverable, Rating


class BidInline(admin.TabularInline):
    model = Bid
    extra = 0
    fields = ('seller', 'amount', 'duration_days', 'created_at')
    readonly_fields = ('created_at',)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'buyer', 'budget', 'budget_currency', 'status', 'progress', 'deadline', 'reminder_sent', 'created_at')
    list_filter = ('status', 'budget_currency', 'reminder_sent')
    search_fields = ('title', 'buyer__email')
    raw_id_fields = ('buyer', 'selected_bid')
    inlines = [BidInline]


@admin.register(Bid)
class BidAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'seller', 'amount', 'duration_days', 'created_at')
    search_fields = ('project__title', 'seller__email')
    raw_id_fields = ('project', 'seller')


@admin.register(Deliverable)
class DeliverableAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'file', 'uploaded_at', 'updated_at')
    search_fields = ('project__title',)


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'buyer', 'seller', 'value', 'created_at')
    list_filter = ('value',)
    search_fields = ('seller__email', 'buyer__email', 'project__title')
