"""Django admin configuration for files app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.html import format_html

from server.apps.files.models import File, FileShare, Folder, UserQuota


def format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'


class FileShareInline(admin.TabularInline):
    """Grants shown on the file page."""

    model = FileShare
    extra = 0
    raw_id_fields = ['user']


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Admin interface for File model."""

    list_display = [
        'original_name',
        'user',
        'folder',
        'size_display',
        'mime_type',
        'is_public',
        'uploaded_at',
    ]

    list_filter = [
        'is_public',
        'mime_type',
        'uploaded_at',
    ]

    search_fields = [
        'original_name',
        'file',
        'checksum_sha256',
    ]

    # Size drives quota accounting, so it is never edited here
    readonly_fields = [
        'file',
        'size_bytes',
        'mime_type',
        'checksum_sha256',
        'uploaded_at',
        'modified_at',
    ]

    raw_id_fields = ['user', 'folder']
    inlines = [FileShareInline]

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format."""
        return format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('user', 'folder')


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin[Folder]):
    """Admin interface for Folder model."""

    list_display = ['name', 'user', 'parent', 'created_at']
    search_fields = ['name', 'user__email']
    raw_id_fields = ['user', 'parent']

    def get_queryset(self, request: HttpRequest) -> QuerySet[Folder]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('user', 'parent')


@admin.register(UserQuota)
class UserQuotaAdmin(admin.ModelAdmin[UserQuota]):
    """Admin interface for UserQuota model."""

    list_display = [
        'user',
        'quota_display',
        'used_display',
        'status_display',
    ]

    search_fields = [
        'user__username',
        'user__email',
    ]

    readonly_fields = [
        'user',
        'used_bytes',
    ]

    def quota_display(self, obj: UserQuota) -> str:
        """Display quota in human-readable format."""
        return format_bytes(obj.quota_bytes)
    quota_display.short_description = 'Quota'  # type: ignore[attr-defined]

    def used_display(self, obj: UserQuota) -> str:
        """Display used bytes in human-readable format."""
        return format_bytes(obj.used_bytes)
    used_display.short_description = 'Used'  # type: ignore[attr-defined]

    def status_display(self, obj: UserQuota) -> str:
        """Display status indicator based on usage.

        Args:
            obj: UserQuota instance.

        Returns:
            HTML formatted status indicator.
        """
        if obj.quota_bytes == 0:
            percentage = 0.0
        else:
            percentage = (obj.used_bytes / obj.quota_bytes) * 100

        if percentage >= 100:
            color = '#dc3545'  # Red - over quota
            status = 'Over Quota'
        elif percentage >= 90:
            color = '#ffc107'  # Yellow - warning
            status = 'Warning'
        else:
            color = '#28a745'  # Green - ok
            status = 'OK'

        return format_html(
            '<span style="color: {color}; font-weight: bold;">'
            '{status} ({percentage})</span>',
            color=color,
            status=status,
            percentage=f'{percentage:.1f}%',
        )
    status_display.short_description = 'Status'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[UserQuota]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('user')
