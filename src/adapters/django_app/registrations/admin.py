"""
Django Admin para Inscrições e Ingressos.

Inscrições e ingressos são somente leitura no admin: mudanças de
status passam pelos use cases (ações abaixo), nunca por edição direta.
"""

from django.contrib import admin, messages

from src.core.shared.exceptions import DomainException

from .models import DomainEventModel, EventModel, RegistrationModel, TicketModel


class ReadOnlyAdminMixin:

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EventModel)
class EventAdmin(admin.ModelAdmin):
    list_display = ['id', 'status', 'is_public', 'capacity', 'start_time', 'end_time', 'owner_id']
    list_filter = ['status', 'is_public']
    search_fields = ['id', 'owner_id']
    ordering = ['-start_time']


@admin.register(RegistrationModel)
class RegistrationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'event', 'user_id', 'status', 'created_at', 'cancelled_at']
    list_filter = ['status']
    search_fields = ['id', 'user_id', 'event__id']
    actions = ['cancel_registrations']

    @admin.action(description='Cancelar inscrições selecionadas')
    def cancel_registrations(self, request, queryset):
        from src.config.container import get_container

        container = get_container()
        cancelled = 0
        for registration_id in queryset.values_list('id', flat=True):
            try:
                container.cancel_registration_service().execute(registration_id)
                cancelled += 1
            except DomainException as e:
                self.message_user(request, f"{registration_id}: {e.message}", messages.WARNING)
        self.message_user(request, f"{cancelled} inscrição(ões) cancelada(s)")


@admin.register(TicketModel)
class TicketAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'event', 'user_id', 'status', 'issued_at', 'used_at']
    list_filter = ['status']
    # ticket_code fica fora da busca e da listagem: é credencial de acesso
    search_fields = ['id', 'user_id', 'registration__id']
    exclude = ['ticket_code']


@admin.register(DomainEventModel)
class DomainEventAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['event_type', 'aggregate_type', 'aggregate_id', 'sequence', 'occurred_at']
    list_filter = ['event_type', 'aggregate_type']
    search_fields = ['aggregate_id', 'event_id']
