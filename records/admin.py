"""
Django admin registrations for the records models.

Mainly useful during development to inspect tenants, accounts and
records.  State that the services own is read-only here: hospital status
only moves through the approve/reject actions, and accounts are managed
through registration, approval and the patient portal.
"""

from django.contrib import admin, messages

from .models import AuditEvent, ChangeRequest, Hospital, Patient, User
from .services import hospitals as tenants
from .services.audit import log_action


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'email', 'status', 'admin_user', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'email')
    readonly_fields = ('status', 'admin_user', 'created_at', 'updated_at')
    actions = ['approve_selected', 'reject_selected']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def _transition(self, request, queryset, action):
        ids = list(queryset.values_list('pk', flat=True))
        for hospital_id in ids:
            hospital = action(hospital_id)
            log_action(user_id=request.user.pk, action=f'hospital_{hospital.status.lower()}',
                       object_type='hospital', object_id=hospital.pk)
        self.message_user(request, f'{len(ids)} hospital(s) updated.', messages.SUCCESS)

    @admin.action(description='Approve selected hospitals')
    def approve_selected(self, request, queryset):
        self._transition(request, queryset, tenants.approve)

    @admin.action(description='Reject selected hospitals')
    def reject_selected(self, request, queryset):
        self._transition(request, queryset, tenants.reject)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'hospital', 'is_active')
    list_filter = ('role', 'is_active', 'hospital')
    search_fields = ('email', 'name')
    exclude = ('password',)

    # View only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'full_name', 'age', 'blood_group', 'risk_level', 'hospital', 'created_at')
    list_filter = ('risk_level', 'blood_group', 'hospital')
    search_fields = ('full_name', 'emergency_contact_name')
    readonly_fields = ('hospital', 'account', 'qr_token', 'qr_code_url')

    # Creation mints the QR image and deletion removes it; both go through the API.
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ChangeRequest)
class ChangeRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'status', 'requested_by', 'reviewed_by', 'created_at')
    list_filter = ('status',)
    search_fields = ('patient__full_name',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'object_type')
