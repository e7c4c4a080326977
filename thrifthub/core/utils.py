"""Utility functions for audit logging, activities and settings"""
import logging

from .models import AuditLog, Activity, Setting

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, link, sync, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_reference: Reference identifier (e.g., order number, case number)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def log_activity(type, description, user=None, metadata=None):
    """Append an entry to the team activity feed"""
    if user is not None and not user.is_authenticated:
        user = None
    try:
        return Activity.objects.create(
            type=type,
            description=description,
            user=user,
            metadata=metadata or {},
        )
    except Exception as e:
        logger.error(f"Failed to log activity {type}: {str(e)}")
        return None


def get_setting(key, default=None):
    """Return the value of a system setting, or default when it is unset"""
    value = Setting.objects.filter(key=key).values_list('value', flat=True).first()
    return default if value is None else value


def set_setting(key, value, description=''):
    """Create or update a system setting"""
    setting, created = Setting.objects.update_or_create(
        key=key,
        defaults={'value': str(value)},
    )
    if created and description:
        setting.description = description
        setting.save(update_fields=['description'])
    return setting


def delete_setting(key):
    Setting.objects.filter(key=key).delete()


def model_changes(instance, data):
    """Return {field: {'old': ..., 'new': ...}} for the fields in data that differ"""
    changes = {}
    for field, new_value in data.items():
        if not hasattr(instance, field):
            continue
        old_value = getattr(instance, field)
        if hasattr(old_value, 'pk'):
            old_value = old_value.pk
        if str(old_value) != str(new_value):
            changes[field] = {'old': str(old_value) if old_value is not None else None, 'new': str(new_value)}
    return changes


def next_sequence_number(model, field, prefix, width=3):
    """
    Next human-readable number for prefix, e.g. 'RET-2025-' -> 'RET-2025-014'.

    Takes the highest numeric suffix among existing values with the prefix.
    """
    values = model.objects.filter(**{f"{field}__startswith": prefix}).values_list(field, flat=True)
    highest = 0
    for value in values:
        suffix = value[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{str(highest + 1).zfill(width)}"
