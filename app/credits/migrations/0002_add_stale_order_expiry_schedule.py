"""
Add celery-beat schedule for expiring stale credit orders.

Runs credits.tasks.expire_stale_orders every 15 minutes to fail orders
whose payment was never confirmed.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=15,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name="Expire Stale Credit Orders",
        defaults={
            "task": "credits.tasks.expire_stale_orders",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Fails initiated credit orders older than "
                "CREDITS_ORDER_EXPIRY_HOURS."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name="Expire Stale Credit Orders").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("credits", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
