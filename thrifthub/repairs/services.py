from .models import Repair


def create_repair(user=None, **fields):
    """Create a repair and seed its timeline"""
    if fields.get('customer') and not fields.get('customer_email'):
        fields['customer_email'] = fields['customer'].email
        fields.setdefault('customer_name', fields['customer'].full_name)
    repair = Repair(created_by=user if user and user.is_authenticated else None, **fields)
    repair.record_status(repair.status, user=user)
    repair.save()
    return repair
